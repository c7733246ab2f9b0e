"""
PeopleDesk HR - Payroll Configuration and Backup Tests
"""

import json
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.models.payroll_config import ConfigStatus, PayGrade, TaxRule
from app.schemas.payroll_config import validate_config_payload
from app.services.config_backup_service import (
    ConfigBackupScheduler,
    ConfigBackupService,
)
from app.services.payroll_config_service import PayrollConfigService
from app.utils.error_handling import (
    BadRequestException,
    ConflictException,
    ErrorCode,
    ForbiddenOperationException,
    NotFoundException,
)


class TestConfigPayloadValidation:
    """Request body validation per configuration type."""

    def test_valid_payload(self):
        """A complete pay grade validates to Decimals."""
        data = validate_config_payload(
            "pay-grades", {"grade": "Junior", "base_salary": "3000", "gross_salary": "3500"}
        )
        assert data["base_salary"] == Decimal("3000")

    def test_unknown_field(self):
        """Fields outside the schema are rejected."""
        with pytest.raises(BadRequestException, match="Unknown fields: colour"):
            validate_config_payload("tax-rules", {"name": "PAYE", "rate": 10, "colour": "red"})

    def test_out_of_range_rate(self):
        """Percentages above 100 are rejected with field errors."""
        with pytest.raises(BadRequestException) as exc_info:
            validate_config_payload("tax-rules", {"name": "PAYE", "rate": 150})
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR

    def test_partial_update(self):
        """Partial payloads return only the supplied fields."""
        assert validate_config_payload("allowances", {"amount": "250.50"}, partial=True) == {
            "amount": Decimal("250.50")
        }

    def test_unknown_type(self):
        """Unknown configuration slugs are a 404."""
        with pytest.raises(NotFoundException):
            validate_config_payload("bonuses", {})


class TestPayrollConfigService:
    """Draft-only editing and approval."""

    @pytest.mark.asyncio
    async def test_create_is_draft(self, db_session):
        """New records start as DRAFT."""
        record = await PayrollConfigService(db_session, "tax-rules").create(
            {"name": "PAYE", "rate": Decimal("12.50")}
        )
        assert record.status == ConfigStatus.DRAFT

    @pytest.mark.asyncio
    async def test_approved_record_is_read_only(self, db_session, make_employee):
        """Editing, approving again or deleting an approved record is forbidden."""
        approver = await make_employee()
        service = PayrollConfigService(db_session, "tax-rules")
        record = await service.create({"name": "PAYE", "rate": Decimal("12.50")})

        approved = await service.approve(record.id, approver.id)
        assert approved.status == ConfigStatus.APPROVED
        assert approved.approved_by_id == approver.id
        assert approved.approved_at is not None

        with pytest.raises(ForbiddenOperationException):
            await service.update(record.id, {"rate": Decimal("15")})
        with pytest.raises(ForbiddenOperationException):
            await service.approve(record.id)
        with pytest.raises(ForbiddenOperationException):
            await service.delete(record.id)

    @pytest.mark.asyncio
    async def test_update_and_delete_draft(self, db_session):
        """Drafts can be edited and deleted."""
        service = PayrollConfigService(db_session, "allowances")
        record = await service.create({"name": "Housing", "amount": Decimal("400")})

        updated = await service.update(record.id, {"amount": Decimal("450")})
        assert updated.amount == Decimal("450")

        await service.delete(record.id)
        with pytest.raises(NotFoundException):
            await service.get(record.id)

    @pytest.mark.asyncio
    async def test_list_by_status(self, db_session):
        """Listing filters on status."""
        service = PayrollConfigService(db_session, "allowances")
        housing = await service.create({"name": "Housing", "amount": Decimal("400")})
        await service.create({"name": "Transport", "amount": Decimal("100")})
        await service.reject(housing.id)

        rejected = await service.list(ConfigStatus.REJECTED)

        assert [item.name for item in rejected] == ["Housing"]

    def test_unknown_type(self, db_session):
        """Unknown slugs fail on construction."""
        with pytest.raises(NotFoundException):
            PayrollConfigService(db_session, "bonuses")


class TestConfigBackup:
    """Backup, list and restore of configuration tables."""

    @pytest.mark.asyncio
    async def test_backup_and_restore(self, db_session, pay_grade, backup_dir):
        """A restore brings back the rows captured by the backup."""
        service = ConfigBackupService(db_session, backup_dir)

        result = await service.backup_config_setup()

        assert result["failed"] == []
        assert "pay_grades" in result["successful"]
        assert service.list_backups() == [result["backup_name"]]
        data = service.get_backup_data(result["backup_name"])
        assert data["pay_grades"][0]["grade"] == "Senior Engineer"
        assert data["pay_grades"][0]["base_salary"] == "5000.00"

        db_session.add(TaxRule(name="PAYE", rate=Decimal("10"), status=ConfigStatus.DRAFT))
        pay_grade.base_salary = Decimal("1.00")
        await db_session.commit()

        restored = await service.restore_backup(result["backup_name"])

        assert restored["failed"] == []
        assert restored["restored"]["pay_grades"] == 1
        assert restored["restored"]["tax_rules"] == 0
        db_session.expire_all()
        grades = (await db_session.execute(select(PayGrade))).scalars().all()
        assert [(grade.grade, grade.base_salary, grade.status) for grade in grades] == [
            ("Senior Engineer", Decimal("5000.00"), ConfigStatus.APPROVED)
        ]
        assert (await db_session.execute(select(TaxRule))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_unknown_backup(self, db_session, backup_dir):
        """Unknown names and path tricks are a 404."""
        service = ConfigBackupService(db_session, backup_dir)

        with pytest.raises(NotFoundException):
            await service.restore_backup("backup-missing")
        with pytest.raises(NotFoundException):
            await service.restore_backup("../etc")

    @pytest.mark.asyncio
    async def test_empty_backup(self, db_session, backup_dir):
        """A backup directory without JSON files cannot be restored."""
        service = ConfigBackupService(db_session, backup_dir)
        (service.backup_dir / "backup-empty").mkdir()

        with pytest.raises(BadRequestException, match="No JSON backup files found"):
            await service.restore_backup("backup-empty")

    def test_retention_keeps_newest(self, db_session, backup_dir):
        """Only the newest backups survive cleanup."""
        service = ConfigBackupService(db_session, backup_dir)
        names = [f"backup-2025-0{month}-01T00-00-00" for month in range(1, 6)]
        for name in names:
            (service.backup_dir / name).mkdir()
            (service.backup_dir / name / "pay_grades.json").write_text(json.dumps([]))

        removed = service.clean_old_backups(3)

        assert sorted(removed) == names[:2]
        assert service.list_backups() == list(reversed(names[2:]))


class TestBackupScheduler:
    """Re-entrancy guard around backups."""

    @pytest.mark.asyncio
    async def test_manual_trigger_while_running(self, db_session, backup_dir):
        """A manual trigger during a running backup is a conflict."""
        scheduler = ConfigBackupScheduler()
        scheduler.is_running = True

        with pytest.raises(ConflictException) as exc_info:
            await scheduler.trigger_manual_backup(db_session, backup_dir)
        assert exc_info.value.code == ErrorCode.BACKUP_IN_PROGRESS

    @pytest.mark.asyncio
    async def test_scheduled_run_is_skipped_while_running(self, db_session, backup_dir):
        """A scheduled run during a running backup does nothing."""
        scheduler = ConfigBackupScheduler()
        scheduler.is_running = True

        assert await scheduler.run_scheduled_backup(db_session, backup_dir) is None

    @pytest.mark.asyncio
    async def test_flag_is_released(self, db_session, backup_dir):
        """The flag is cleared once the backup finishes."""
        scheduler = ConfigBackupScheduler()

        result = await scheduler.trigger_manual_backup(db_session, backup_dir)

        assert result["backup_name"].startswith("backup-")
        assert scheduler.is_running is False
