"""
PeopleDesk HR - Payroll Configuration Schemas

One create/update schema per configuration type. Routes are generic over
the type slug, so request bodies are validated through
`validate_config_payload`.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, Field, ValidationError, create_model, model_validator

from app.utils.error_handling import BadRequestException, ErrorCode, NotFoundException


# ===========================================
# CREATE SCHEMAS
# ===========================================

class PayGradeCreate(BaseModel):
    grade: str = Field(..., min_length=1, max_length=100)
    base_salary: Decimal = Field(..., ge=0)
    gross_salary: Decimal = Field(..., ge=0)


class AllowanceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0)


class TaxRuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    rate: Decimal = Field(..., ge=0, le=100, description="Percentage")


class InsuranceBracketCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    min_salary: Decimal = Field(..., ge=0)
    max_salary: Decimal = Field(..., ge=0)
    employee_rate: Decimal = Field(..., ge=0, le=100)
    employer_rate: Decimal = Field(..., ge=0, le=100)

    @model_validator(mode="after")
    def check_range(self):
        if self.max_salary < self.min_salary:
            raise ValueError("max_salary must not be below min_salary")
        return self


class SigningBonusPolicyCreate(BaseModel):
    position_name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0)


class TerminationBenefitPolicyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0)
    terms: Optional[str] = None


CONFIG_CREATE_SCHEMAS: Dict[str, Type[BaseModel]] = {
    "pay-grades": PayGradeCreate,
    "allowances": AllowanceCreate,
    "tax-rules": TaxRuleCreate,
    "insurance-brackets": InsuranceBracketCreate,
    "signing-bonuses": SigningBonusPolicyCreate,
    "termination-benefits": TerminationBenefitPolicyCreate,
}


def validate_config_payload(config_type: str, payload: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Validate a request body against the schema for config_type.

    With partial=True (updates) only the supplied fields are checked and
    returned.
    """
    schema = CONFIG_CREATE_SCHEMAS.get(config_type)
    if schema is None:
        raise NotFoundException("Configuration type", message=f"Unknown configuration type '{config_type}'")

    unknown = set(payload) - set(schema.model_fields)
    if unknown:
        raise BadRequestException(
            f"Unknown fields: {', '.join(sorted(unknown))}",
            code=ErrorCode.VALIDATION_ERROR,
        )

    try:
        if partial:
            # Validate each supplied field on its own
            validated = {}
            for name, value in payload.items():
                field_info = schema.model_fields[name]
                single_field = create_model(f"{schema.__name__}Partial", **{name: (field_info.annotation, field_info)})
                validated[name] = getattr(single_field.model_validate({name: value}), name)
            return validated
        return schema.model_validate(payload).model_dump()
    except ValidationError as e:
        raise BadRequestException(
            "Invalid configuration data",
            code=ErrorCode.VALIDATION_ERROR,
            details={"errors": e.errors(include_url=False, include_context=False)},
        )


# ===========================================
# RESPONSE SCHEMAS
# ===========================================

def serialize_config_record(record: Any) -> Dict[str, Any]:
    return {column.name: getattr(record, column.name) for column in record.__table__.columns}


class BackupResult(BaseModel):
    backup_name: str
    successful: List[str]
    failed: List[str]
    removed: List[str] = []


class RestoreResult(BaseModel):
    backup_name: str
    restored: Dict[str, int]
    failed: List[str]
