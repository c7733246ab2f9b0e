"""
PeopleDesk HR - Payroll Configuration Models

Configuration records consumed by payroll execution. Every record moves
through DRAFT -> APPROVED | REJECTED and can only be edited while DRAFT.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Numeric, String, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel, AuditMixin


class ConfigStatus(str, Enum):
    """Approval status for configuration records."""
    DRAFT = "draft"
    APPROVED = "approved"
    REJECTED = "rejected"


class ConfigRecordMixin(AuditMixin):
    """Status column shared by every configuration table."""

    status: Mapped[ConfigStatus] = mapped_column(
        SQLEnum(ConfigStatus),
        default=ConfigStatus.DRAFT,
        nullable=False,
        index=True,
    )


class PayGrade(BaseModel, ConfigRecordMixin):
    """Pay grade with base and gross salary."""

    __tablename__ = "pay_grades"

    grade: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    base_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    gross_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)


class Allowance(BaseModel, ConfigRecordMixin):
    """Company-wide allowance added to every employee's gross."""

    __tablename__ = "allowances"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)


class TaxRule(BaseModel, ConfigRecordMixin):
    """Flat income tax rule. Rate is a percentage."""

    __tablename__ = "tax_rules"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)


class InsuranceBracket(BaseModel, ConfigRecordMixin):
    """Insurance contribution bracket keyed on gross salary."""

    __tablename__ = "insurance_brackets"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    min_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    max_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    employee_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    employer_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)


class SigningBonusPolicy(BaseModel, ConfigRecordMixin):
    """Signing bonus amount per position."""

    __tablename__ = "signing_bonus_policies"

    position_name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)


class TerminationBenefitPolicy(BaseModel, ConfigRecordMixin):
    """End-of-service benefit paid on termination or resignation."""

    __tablename__ = "termination_benefit_policies"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    terms: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


# Config type slug -> model, shared by the configuration service, router and backup
CONFIG_MODELS = {
    "pay-grades": PayGrade,
    "allowances": Allowance,
    "tax-rules": TaxRule,
    "insurance-brackets": InsuranceBracket,
    "signing-bonuses": SigningBonusPolicy,
    "termination-benefits": TerminationBenefitPolicy,
}
