"""
PeopleDesk HR - Performance Service Tests

Rating validation, the appraisal workflow, low-score escalation and
disputes.
"""

from datetime import date

import pytest
from sqlalchemy import func, select

from app.models.employee import EmployeeProfile, EmployeeStatus
from app.models.notification import Notification
from app.models.offboarding import TerminationInitiation, TerminationRequest
from app.models.performance import (
    AppraisalAssignment,
    AppraisalAssignmentStatus,
    AppraisalDisputeStatus,
    AppraisalRecordStatus,
    AppraisalTemplate,
)
from app.services.performance_service import (
    PerformanceService,
    calculate_rating_label,
    is_minimum_score_record,
    validate_ratings,
)
from app.utils.error_handling import (
    AuthorizationException,
    BadRequestException,
    ErrorCode,
    InvalidStateTransitionException,
)


SCALE = {"min": 1, "max": 5, "labels": ["Poor", "Fair", "Good", "Very Good", "Excellent"]}
CRITERIA = [
    {"key": "quality", "title": "Quality of Work", "weight": 60, "required": True},
    {"key": "teamwork", "title": "Teamwork", "weight": 40, "required": False},
]


def _template() -> AppraisalTemplate:
    return AppraisalTemplate(name="Annual", criteria=CRITERIA, rating_scale=SCALE)


async def _count(db_session, model, *conditions) -> int:
    result = await db_session.execute(select(func.count()).select_from(model).where(*conditions))
    return result.scalar()


@pytest.fixture
def appraisal_setup(db_session, make_employee):
    """Factory returning (service, template, cycle, employee, manager)."""

    async def _setup():
        service = PerformanceService(db_session)
        template = await service.create_template("Annual", CRITERIA, SCALE)
        cycle = await service.create_cycle("2025", date(2025, 1, 1), date(2025, 12, 31))
        employee = await make_employee()
        manager = await make_employee(first_name="Manager")
        return service, template, cycle, employee, manager

    return _setup


async def _publish_appraisal(service, template, cycle, employee, manager, rating_value):
    assignment = await service.create_assignment(cycle.id, template.id, employee.id, manager.id)
    record = await service.create_record(
        assignment.id,
        [
            {"key": "quality", "rating_value": rating_value},
            {"key": "teamwork", "rating_value": rating_value},
        ],
    )
    return await service.publish_record(record.id)


class TestRatingLabel:
    """Rating label bands."""

    def test_bands(self):
        """Scores map onto evenly spaced labels; the top band is inclusive."""
        assert calculate_rating_label(1, SCALE) == "Poor"
        assert calculate_rating_label(3.0, SCALE) == "Good"
        assert calculate_rating_label(5, SCALE) == "Excellent"

    def test_without_labels(self):
        """No labels formats the score."""
        assert calculate_rating_label(3, {"min": 1, "max": 5}) == "3.00"


class TestValidateRatings:
    """Ratings checked against the template."""

    def test_weighted_total(self):
        """Weighted scores add up to the total."""
        validated, total = validate_ratings(_template(), [
            {"key": "quality", "rating_value": 5},
            {"key": "teamwork", "rating_value": 3},
        ])

        assert [item["weighted_score"] for item in validated] == [3.0, 1.2]
        assert total == pytest.approx(4.2)

    def test_goals_are_recorded_but_not_scored(self):
        """GOALS is kept with zero value and weight."""
        validated, total = validate_ratings(_template(), [
            {"key": "quality", "rating_value": 5},
            {"key": "GOALS", "rating_value": 4, "comments": "Shipped v2"},
        ])

        goals = validated[-1]
        assert goals["title"] == "Goals"
        assert goals["rating_value"] == 0
        assert goals["comments"] == "Shipped v2"
        assert total == pytest.approx(3.0)

    def test_unknown_key(self):
        """Keys outside the template are rejected."""
        with pytest.raises(BadRequestException, match="Invalid rating key: speed. Not found in template."):
            validate_ratings(_template(), [{"key": "speed", "rating_value": 3}])

    def test_out_of_range(self):
        """Values outside the scale are rejected."""
        with pytest.raises(BadRequestException, match="between 1 and 5") as exc_info:
            validate_ratings(_template(), [{"key": "quality", "rating_value": 9}])
        assert exc_info.value.code == ErrorCode.INVALID_RATING

    def test_missing_required(self):
        """Required criteria must be rated."""
        with pytest.raises(BadRequestException, match="Missing rating for required criterion: Quality of Work"):
            validate_ratings(_template(), [{"key": "teamwork", "rating_value": 3}])

    def test_minimum_score_record(self):
        """Every scored rating at the minimum, ignoring GOALS."""
        assert is_minimum_score_record(
            [{"key": "quality", "rating_value": 1}, {"key": "GOALS", "rating_value": 0}], 1
        )
        assert not is_minimum_score_record([{"key": "quality", "rating_value": 2}], 1)
        assert not is_minimum_score_record([{"key": "GOALS", "rating_value": 0}], 1)


class TestAppraisalWorkflow:
    """Assignments, records and publishing."""

    @pytest.mark.asyncio
    async def test_submit_and_publish(self, db_session, appraisal_setup):
        """Submitting moves the assignment to SUBMITTED, publishing to PUBLISHED."""
        service, template, cycle, employee, manager = await appraisal_setup()
        assignment = await service.create_assignment(cycle.id, template.id, employee.id, manager.id)

        record = await service.create_record(assignment.id, [{"key": "quality", "rating_value": 4}])
        assert record.status == AppraisalRecordStatus.MANAGER_SUBMITTED
        assert record.employee_id == employee.id
        assert record.manager_id == manager.id
        assert (await service.get_assignment(assignment.id)).status == AppraisalAssignmentStatus.SUBMITTED

        record = await service.publish_record(record.id)
        assert record.status == AppraisalRecordStatus.HR_PUBLISHED
        assert (await service.get_assignment(assignment.id)).status == AppraisalAssignmentStatus.PUBLISHED
        assert [item.id for item in await service.get_published_records(employee.id)] == [record.id]

        with pytest.raises(InvalidStateTransitionException):
            await service.publish_record(record.id)

    @pytest.mark.asyncio
    async def test_reminders_go_to_managers(self, db_session, appraisal_setup):
        """Unfinished assignments notify their manager."""
        service, template, cycle, employee, manager = await appraisal_setup()
        await service.create_assignment(cycle.id, template.id, employee.id, manager.id)

        result = await service.send_reminders(cycle_id=cycle.id)

        assert result == {"sent": 1, "failed": 0}
        assert await _count(db_session, Notification, Notification.title == "Appraisal Reminder") == 1


class TestLowScoreEscalation:
    """Repeated minimum-score appraisals."""

    @pytest.mark.asyncio
    async def test_second_minimum_record_does_nothing(self, db_session, appraisal_setup):
        """Below the threshold there is no warning and no suspension."""
        service, template, cycle, employee, manager = await appraisal_setup()
        for _ in range(2):
            await _publish_appraisal(service, template, cycle, employee, manager, 1)

        assert (await db_session.get(EmployeeProfile, employee.id)).status == EmployeeStatus.ACTIVE
        assert await _count(db_session, Notification, Notification.title == "Performance Review Warning") == 0
        assert await _count(db_session, TerminationRequest) == 0

    @pytest.mark.asyncio
    async def test_third_minimum_record_escalates(self, db_session, appraisal_setup):
        """The third minimum-score record warns, suspends and opens a review."""
        service, template, cycle, employee, manager = await appraisal_setup()
        for _ in range(3):
            await _publish_appraisal(service, template, cycle, employee, manager, 1)

        assert (await db_session.get(EmployeeProfile, employee.id)).status == EmployeeStatus.SUSPENDED
        assert await _count(db_session, Notification, Notification.title == "Performance Review Warning") == 1

        result = await db_session.execute(select(TerminationRequest))
        reviews = result.scalars().all()
        assert len(reviews) == 1
        assert reviews[0].employee_id == employee.id
        assert reviews[0].initiator == TerminationInitiation.MANAGER
        assert "3 minimum-score appraisals" in reviews[0].reason

    @pytest.mark.asyncio
    async def test_good_scores_do_not_count(self, db_session, appraisal_setup):
        """Records above the minimum are ignored."""
        service, template, cycle, employee, manager = await appraisal_setup()
        await _publish_appraisal(service, template, cycle, employee, manager, 1)
        await _publish_appraisal(service, template, cycle, employee, manager, 4)
        await _publish_appraisal(service, template, cycle, employee, manager, 1)

        assert await service.count_minimum_score_records(employee.id, 1) == 2
        assert (await db_session.get(EmployeeProfile, employee.id)).status == EmployeeStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_good_record_after_threshold_does_not_escalate_again(self, db_session, appraisal_setup):
        """Publishing a record above the minimum never triggers escalation, even past the threshold."""
        service, template, cycle, employee, manager = await appraisal_setup()
        for _ in range(3):
            await _publish_appraisal(service, template, cycle, employee, manager, 1)

        await _publish_appraisal(service, template, cycle, employee, manager, 4)

        assert await service.count_minimum_score_records(employee.id, 1) == 3
        assert await _count(db_session, Notification, Notification.title == "Performance Review Warning") == 1
        assert await _count(db_session, TerminationRequest) == 1


class TestDisputes:
    """Appraisal disputes."""

    @pytest.mark.asyncio
    async def test_only_owner_can_dispute(self, db_session, appraisal_setup):
        """Another employee cannot dispute the record."""
        service, template, cycle, employee, manager = await appraisal_setup()
        record = await _publish_appraisal(service, template, cycle, employee, manager, 3)

        with pytest.raises(AuthorizationException):
            await service.create_dispute(record.id, manager.id, "Not mine")

    @pytest.mark.asyncio
    async def test_unpublished_record_cannot_be_disputed(self, db_session, appraisal_setup):
        """Only HR_PUBLISHED records are disputable."""
        service, template, cycle, employee, manager = await appraisal_setup()
        assignment = await service.create_assignment(cycle.id, template.id, employee.id, manager.id)
        record = await service.create_record(assignment.id, [{"key": "quality", "rating_value": 3}])

        with pytest.raises(BadRequestException):
            await service.create_dispute(record.id, employee.id, "Too early")

    @pytest.mark.asyncio
    async def test_adjusted_dispute_reopens_and_republishes(self, db_session, appraisal_setup):
        """ADJUSTED reopens the assignment; the manager's update publishes again."""
        service, template, cycle, employee, manager = await appraisal_setup()
        record = await _publish_appraisal(service, template, cycle, employee, manager, 2)
        dispute = await service.create_dispute(record.id, employee.id, "Score ignores Q4")
        assert dispute.status == AppraisalDisputeStatus.OPEN

        dispute = await service.resolve_dispute(
            dispute.id, AppraisalDisputeStatus.ADJUSTED, "Manager to re-rate", resolved_by_id=manager.id
        )
        assert dispute.status == AppraisalDisputeStatus.ADJUSTED
        assignment = await db_session.get(AppraisalAssignment, record.assignment_id)
        assert assignment.status == AppraisalAssignmentStatus.IN_PROGRESS
        assert await _count(db_session, Notification, Notification.title == "Appraisal Dispute Resolved") == 1

        updated = await service.update_record(record.id, [{"key": "quality", "rating_value": 4}])
        assert updated.status == AppraisalRecordStatus.HR_PUBLISHED
        assert assignment.status == AppraisalAssignmentStatus.PUBLISHED

        with pytest.raises(InvalidStateTransitionException):
            await service.resolve_dispute(dispute.id, AppraisalDisputeStatus.REJECTED, "Again")

    @pytest.mark.asyncio
    async def test_open_is_not_a_resolution(self, db_session, appraisal_setup):
        """Resolving to OPEN is rejected."""
        service, template, cycle, employee, manager = await appraisal_setup()
        record = await _publish_appraisal(service, template, cycle, employee, manager, 3)
        dispute = await service.create_dispute(record.id, employee.id, "Unfair")

        with pytest.raises(BadRequestException):
            await service.resolve_dispute(dispute.id, AppraisalDisputeStatus.OPEN, "No")
