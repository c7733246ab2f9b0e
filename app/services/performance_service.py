"""
PeopleDesk HR - Performance Appraisal Service

Templates, cycles, assignments, appraisal records and disputes.

Every time a record reaches HR_PUBLISHED the employee's history is checked
for repeated minimum-score appraisals. At the threshold the employee is
warned, suspended and put up for a termination review; each of those three
steps succeeds or fails on its own.
"""

import logging
import uuid
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.employee import EmployeeProfile, EmployeeStatus
from app.models.notification import NotificationType
from app.models.offboarding import TerminationInitiation
from app.models.performance import (
    GOALS_KEY,
    AppraisalAssignment,
    AppraisalAssignmentStatus,
    AppraisalCycle,
    AppraisalCycleStatus,
    AppraisalDispute,
    AppraisalDisputeStatus,
    AppraisalRecord,
    AppraisalRecordStatus,
    AppraisalTemplate,
)
from app.services.employee_service import EmployeeService
from app.services.notification_service import NotificationSink
from app.services.offboarding_service import OffboardingService
from app.utils.error_handling import (
    AuthorizationException,
    BadRequestException,
    ErrorCode,
    InvalidStateTransitionException,
    NotFoundException,
)

logger = logging.getLogger(__name__)

RELATED_MODULE = "Performance"

PENDING_ASSIGNMENT_STATUSES = (
    AppraisalAssignmentStatus.NOT_STARTED,
    AppraisalAssignmentStatus.IN_PROGRESS,
)


def calculate_rating_label(score: float, rating_scale: Dict[str, Any]) -> str:
    """
    Map a score onto the scale's labels, spread evenly from min to max.

    Without labels the score itself is returned, formatted to 2 decimals.
    """
    labels = rating_scale.get("labels") or []
    if not labels:
        return f"{score:.2f}"

    minimum = rating_scale["min"]
    band = (rating_scale["max"] - minimum) / len(labels)
    for index, label in enumerate(labels):
        lower = minimum + index * band
        upper = minimum + (index + 1) * band
        is_last = index == len(labels) - 1
        if score >= lower and (score <= upper if is_last else score < upper):
            return label
    return labels[-1]


def validate_ratings(
    template: AppraisalTemplate, ratings: Sequence[Dict[str, Any]]
) -> Tuple[List[Dict[str, Any]], float]:
    """
    Check ratings against the template and compute weighted scores.

    Returns:
        Tuple of (validated ratings, total score)
    """
    scale = template.rating_scale
    criteria = {criterion["key"]: criterion for criterion in template.criteria}

    validated: List[Dict[str, Any]] = []
    total = 0.0
    for rating in ratings:
        key = rating["key"]
        if key == GOALS_KEY:
            validated.append({
                "key": GOALS_KEY,
                "title": "Goals",
                "rating_value": 0,
                "weighted_score": 0,
                "comments": rating.get("comments"),
            })
            continue

        criterion = criteria.get(key)
        if criterion is None:
            raise BadRequestException(
                f"Invalid rating key: {key}. Not found in template.",
                field="ratings",
                code=ErrorCode.INVALID_RATING,
            )

        value = rating["rating_value"]
        if value < scale["min"] or value > scale["max"]:
            raise BadRequestException(
                f"Rating value for {key} must be between {scale['min']} and {scale['max']}",
                field="ratings",
                code=ErrorCode.INVALID_RATING,
            )

        weight = criterion.get("weight")
        weighted = value * weight / 100 if weight else value
        validated.append({
            "key": key,
            "title": criterion["title"],
            "rating_value": value,
            "weighted_score": weighted,
            "comments": rating.get("comments"),
        })
        total += weighted

    rated = {rating["key"] for rating in validated}
    for criterion in template.criteria:
        if criterion.get("required") and criterion["key"] not in rated:
            raise BadRequestException(
                f"Missing rating for required criterion: {criterion['title']}",
                field="ratings",
                code=ErrorCode.INVALID_RATING,
            )

    return validated, total


def is_minimum_score_record(ratings: Iterable[Dict[str, Any]], minimum: float) -> bool:
    """True when every scored (non-GOALS) rating sits at the scale minimum."""
    scored = [rating for rating in ratings or [] if rating.get("key") != GOALS_KEY]
    return bool(scored) and all(rating.get("rating_value") == minimum for rating in scored)


class PerformanceService:
    """Service for the appraisal workflow."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.employees = EmployeeService(db)
        self.offboarding = OffboardingService(db)
        self.notifications = NotificationSink(db)

    # ===========================================
    # TEMPLATES & CYCLES
    # ===========================================

    async def create_template(
        self,
        name: str,
        criteria: Sequence[Dict[str, Any]],
        rating_scale: Dict[str, Any],
        description: Optional[str] = None,
    ) -> AppraisalTemplate:
        if rating_scale["min"] >= rating_scale["max"]:
            raise BadRequestException("Rating scale min must be lower than max", field="rating_scale")
        keys = [criterion["key"] for criterion in criteria]
        if len(keys) != len(set(keys)):
            raise BadRequestException("Criterion keys must be unique", field="criteria")

        template = AppraisalTemplate(
            name=name,
            description=description,
            criteria=[dict(criterion) for criterion in criteria],
            rating_scale=dict(rating_scale),
        )
        self.db.add(template)
        await self.db.commit()
        await self.db.refresh(template)
        logger.info(f"Created appraisal template '{name}'")
        return template

    async def list_templates(self) -> List[AppraisalTemplate]:
        result = await self.db.execute(select(AppraisalTemplate).order_by(AppraisalTemplate.name))
        return list(result.scalars().all())

    async def get_template(self, template_id: uuid.UUID) -> AppraisalTemplate:
        template = await self.db.get(AppraisalTemplate, template_id)
        if not template:
            raise NotFoundException("AppraisalTemplate", template_id)
        return template

    async def create_cycle(
        self,
        name: str,
        start_date: date,
        end_date: date,
        status: AppraisalCycleStatus = AppraisalCycleStatus.PLANNED,
    ) -> AppraisalCycle:
        if end_date < start_date:
            raise BadRequestException("Cycle end date must not be before its start date", field="end_date")
        cycle = AppraisalCycle(name=name, start_date=start_date, end_date=end_date, status=status)
        self.db.add(cycle)
        await self.db.commit()
        await self.db.refresh(cycle)
        return cycle

    async def list_cycles(self) -> List[AppraisalCycle]:
        result = await self.db.execute(select(AppraisalCycle).order_by(AppraisalCycle.start_date.desc()))
        return list(result.scalars().all())

    async def get_cycle(self, cycle_id: uuid.UUID) -> AppraisalCycle:
        cycle = await self.db.get(AppraisalCycle, cycle_id)
        if not cycle:
            raise NotFoundException("AppraisalCycle", cycle_id)
        return cycle

    # ===========================================
    # ASSIGNMENTS
    # ===========================================

    async def create_assignment(
        self,
        cycle_id: uuid.UUID,
        template_id: uuid.UUID,
        employee_id: uuid.UUID,
        manager_id: uuid.UUID,
        department_id: Optional[uuid.UUID] = None,
        due_date: Optional[date] = None,
    ) -> AppraisalAssignment:
        await self.get_cycle(cycle_id)
        await self.get_template(template_id)
        employee = await self.employees.get_employee_or_404(employee_id)
        await self.employees.get_employee_or_404(manager_id)

        assignment = AppraisalAssignment(
            cycle_id=cycle_id,
            template_id=template_id,
            employee_id=employee_id,
            manager_id=manager_id,
            department_id=department_id or employee.primary_department_id,
            due_date=due_date,
            status=AppraisalAssignmentStatus.NOT_STARTED,
        )
        self.db.add(assignment)
        await self.db.commit()
        await self.db.refresh(assignment)
        return assignment

    async def list_assignments(
        self,
        cycle_id: Optional[uuid.UUID] = None,
        manager_id: Optional[uuid.UUID] = None,
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[AppraisalAssignmentStatus] = None,
    ) -> List[AppraisalAssignment]:
        query = select(AppraisalAssignment).order_by(AppraisalAssignment.created_at.desc())
        if cycle_id:
            query = query.where(AppraisalAssignment.cycle_id == cycle_id)
        if manager_id:
            query = query.where(AppraisalAssignment.manager_id == manager_id)
        if employee_id:
            query = query.where(AppraisalAssignment.employee_id == employee_id)
        if status:
            query = query.where(AppraisalAssignment.status == status)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_assignment(self, assignment_id: uuid.UUID) -> AppraisalAssignment:
        assignment = await self.db.get(AppraisalAssignment, assignment_id)
        if not assignment:
            raise NotFoundException("AppraisalAssignment", assignment_id)
        return assignment

    async def send_reminders(
        self,
        cycle_id: Optional[uuid.UUID] = None,
        department_id: Optional[uuid.UUID] = None,
        statuses: Optional[Sequence[AppraisalAssignmentStatus]] = None,
    ) -> Dict[str, int]:
        """Remind managers of their unfinished appraisals, one notice per assignment."""
        query = (
            select(AppraisalAssignment, EmployeeProfile)
            .join(EmployeeProfile, EmployeeProfile.id == AppraisalAssignment.employee_id)
            .where(AppraisalAssignment.status.in_(list(statuses or PENDING_ASSIGNMENT_STATUSES)))
        )
        if cycle_id:
            query = query.where(AppraisalAssignment.cycle_id == cycle_id)
        if department_id:
            query = query.where(AppraisalAssignment.department_id == department_id)

        result = await self.db.execute(query)
        sent = failed = 0
        for assignment, employee in result.all():
            notification = await self.notifications.notify(
                "Appraisal Reminder",
                f"Reminder: You have a pending appraisal for {employee.full_name}. Please complete it.",
                notification_type=NotificationType.ALERT,
                recipient_ids=[assignment.manager_id],
                related_module=RELATED_MODULE,
                related_entity_id=assignment.id,
            )
            if notification is None:
                failed += 1
            else:
                sent += 1

        await self.db.commit()
        logger.info(f"Appraisal reminders: {sent} sent, {failed} failed")
        return {"sent": sent, "failed": failed}

    # ===========================================
    # RECORDS
    # ===========================================

    async def get_record(self, record_id: uuid.UUID) -> AppraisalRecord:
        record = await self.db.get(AppraisalRecord, record_id)
        if not record:
            raise NotFoundException("AppraisalRecord", record_id)
        return record

    async def create_record(
        self,
        assignment_id: uuid.UUID,
        ratings: Sequence[Dict[str, Any]],
        manager_summary: Optional[str] = None,
        strengths: Optional[str] = None,
        improvement_areas: Optional[str] = None,
    ) -> AppraisalRecord:
        """Submit the manager's ratings; the assignment becomes SUBMITTED."""
        assignment = await self.get_assignment(assignment_id)
        template = await self.get_template(assignment.template_id)
        validated, total = validate_ratings(template, ratings)

        record = AppraisalRecord(
            assignment_id=assignment.id,
            employee_id=assignment.employee_id,
            template_id=assignment.template_id,
            cycle_id=assignment.cycle_id,
            manager_id=assignment.manager_id,
            ratings=validated,
            total_score=total,
            overall_rating_label=calculate_rating_label(total, template.rating_scale),
            manager_summary=manager_summary,
            strengths=strengths,
            improvement_areas=improvement_areas,
            status=AppraisalRecordStatus.MANAGER_SUBMITTED,
        )
        self.db.add(record)
        assignment.status = AppraisalAssignmentStatus.SUBMITTED

        await self.db.commit()
        await self.db.refresh(record)
        logger.info(f"Appraisal record {record.id} submitted, total score {total}")
        return record

    async def update_record(
        self,
        record_id: uuid.UUID,
        ratings: Sequence[Dict[str, Any]],
        manager_summary: Optional[str] = None,
        strengths: Optional[str] = None,
        improvement_areas: Optional[str] = None,
    ) -> AppraisalRecord:
        """
        Replace a record's ratings.

        An assignment that is IN_PROGRESS but was published before is a
        re-evaluation after an adjusted dispute, and is published again
        directly.
        """
        record = await self.get_record(record_id)
        template = await self.get_template(record.template_id)
        validated, total = validate_ratings(template, ratings)

        assignment = await self.db.get(AppraisalAssignment, record.assignment_id)
        is_re_evaluation = (
            assignment is not None
            and assignment.status == AppraisalAssignmentStatus.IN_PROGRESS
            and assignment.published_at is not None
        )

        record.ratings = validated
        record.total_score = total
        record.overall_rating_label = calculate_rating_label(total, template.rating_scale)
        record.manager_summary = manager_summary
        record.strengths = strengths
        record.improvement_areas = improvement_areas

        if is_re_evaluation:
            now = datetime.utcnow()
            record.status = AppraisalRecordStatus.HR_PUBLISHED
            record.hr_published_at = now
            assignment.status = AppraisalAssignmentStatus.PUBLISHED
            assignment.published_at = now
            await self.db.flush()
            logger.info(f"Appraisal record {record.id} re-evaluated after dispute and published")
            await self.check_low_score_history(record, template)
        else:
            record.status = AppraisalRecordStatus.MANAGER_SUBMITTED

        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def publish_record(self, record_id: uuid.UUID) -> AppraisalRecord:
        record = await self.get_record(record_id)
        if record.status == AppraisalRecordStatus.HR_PUBLISHED:
            raise InvalidStateTransitionException("appraisal record", record.status.value, "publish")
        template = await self.get_template(record.template_id)

        now = datetime.utcnow()
        record.status = AppraisalRecordStatus.HR_PUBLISHED
        record.hr_published_at = now
        assignment = await self.db.get(AppraisalAssignment, record.assignment_id)
        if assignment:
            assignment.status = AppraisalAssignmentStatus.PUBLISHED
            assignment.published_at = now
        await self.db.flush()

        logger.info(f"Appraisal record {record.id} published by HR")
        await self.check_low_score_history(record, template)

        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def get_published_records(self, employee_id: uuid.UUID) -> List[AppraisalRecord]:
        """HR_PUBLISHED records of an employee, newest first."""
        result = await self.db.execute(
            select(AppraisalRecord)
            .where(
                AppraisalRecord.employee_id == employee_id,
                AppraisalRecord.status == AppraisalRecordStatus.HR_PUBLISHED,
            )
            .order_by(AppraisalRecord.hr_published_at.desc())
        )
        return list(result.scalars().all())

    # ===========================================
    # LOW-SCORE ESCALATION
    # ===========================================

    async def count_minimum_score_records(self, employee_id: uuid.UUID, minimum: float) -> int:
        records = await self.get_published_records(employee_id)
        return sum(1 for record in records if is_minimum_score_record(record.ratings, minimum))

    async def check_low_score_history(self, record: AppraisalRecord, template: AppraisalTemplate) -> bool:
        """
        Escalate repeated minimum-score appraisals.

        Called after `record` has been flushed as HR_PUBLISHED, so it is
        part of the count. Returns True when the threshold was reached.
        """
        minimum = template.rating_scale["min"]
        if not is_minimum_score_record(record.ratings, minimum):
            return False

        count = await self.count_minimum_score_records(record.employee_id, minimum)
        threshold = settings.low_score_threshold
        if count < threshold:
            logger.info(f"Employee {record.employee_id} has {count} minimum-score appraisal(s), below {threshold}")
            return False

        logger.warning(
            f"Employee {record.employee_id} has {count} minimum-score appraisals; "
            f"initiating termination review"
        )

        await self.notifications.notify(
            "Performance Review Warning",
            f"Your performance has been flagged due to {count} consecutive low-score appraisals. "
            f"A termination review process has been initiated. Please contact HR for more information.",
            notification_type=NotificationType.ALERT,
            recipient_ids=[record.employee_id],
            related_module=RELATED_MODULE,
            related_entity_id=record.employee_id,
        )

        try:
            async with self.db.begin_nested():
                await self.employees.set_status(record.employee_id, EmployeeStatus.SUSPENDED, commit=False)
        except Exception as e:
            logger.error(f"Failed to suspend employee {record.employee_id}: {e}")

        try:
            async with self.db.begin_nested():
                employee = await self.employees.get_employee_or_404(record.employee_id)
                await self.offboarding.initiate_termination_review(
                    employee_number=employee.employee_number,
                    initiator=TerminationInitiation.MANAGER,
                    reason=(
                        f"Performance-based termination review: Employee has received "
                        f"{count} minimum-score appraisals."
                    ),
                    hr_comments="Automatically initiated due to repeated poor performance appraisals.",
                    commit=False,
                )
        except Exception as e:
            logger.error(f"Failed to initiate termination review for {record.employee_id}: {e}")

        return True

    # ===========================================
    # DISPUTES
    # ===========================================

    async def create_dispute(
        self,
        appraisal_id: uuid.UUID,
        employee_id: uuid.UUID,
        reason: str,
        details: Optional[str] = None,
    ) -> AppraisalDispute:
        record = await self.get_record(appraisal_id)
        if record.employee_id != employee_id:
            raise AuthorizationException()
        if record.status != AppraisalRecordStatus.HR_PUBLISHED:
            raise BadRequestException("Only published appraisals can be disputed", field="appraisal_id")

        dispute = AppraisalDispute(
            appraisal_id=record.id,
            assignment_id=record.assignment_id,
            employee_id=employee_id,
            reason=reason,
            details=details,
            status=AppraisalDisputeStatus.OPEN,
        )
        self.db.add(dispute)
        await self.db.commit()
        await self.db.refresh(dispute)
        logger.info(f"Appraisal dispute {dispute.id} raised on record {record.id}")
        return dispute

    async def list_disputes(self, status: Optional[AppraisalDisputeStatus] = None) -> List[AppraisalDispute]:
        query = select(AppraisalDispute).order_by(AppraisalDispute.created_at.desc())
        if status:
            query = query.where(AppraisalDispute.status == status)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def resolve_dispute(
        self,
        dispute_id: uuid.UUID,
        status: AppraisalDisputeStatus,
        resolution_summary: str,
        resolved_by_id: Optional[uuid.UUID] = None,
    ) -> AppraisalDispute:
        """Close a dispute; ADJUSTED reopens the assignment for re-evaluation."""
        if status == AppraisalDisputeStatus.OPEN:
            raise BadRequestException("Resolution status must be ADJUSTED or REJECTED", field="status")

        dispute = await self.db.get(AppraisalDispute, dispute_id)
        if not dispute:
            raise NotFoundException("AppraisalDispute", dispute_id)
        if dispute.status != AppraisalDisputeStatus.OPEN:
            raise InvalidStateTransitionException("appraisal dispute", dispute.status.value, "resolve")

        dispute.status = status
        dispute.resolution_summary = resolution_summary
        dispute.resolved_by_id = resolved_by_id
        dispute.resolved_at = datetime.utcnow()

        if status == AppraisalDisputeStatus.ADJUSTED:
            assignment = await self.db.get(AppraisalAssignment, dispute.assignment_id)
            if assignment:
                assignment.status = AppraisalAssignmentStatus.IN_PROGRESS

        await self.notifications.notify(
            "Appraisal Dispute Resolved",
            f"Your dispute has been resolved: {resolution_summary}",
            notification_type=NotificationType.INFO,
            recipient_ids=[dispute.employee_id],
            related_module=RELATED_MODULE,
            related_entity_id=dispute.id,
        )

        await self.db.commit()
        await self.db.refresh(dispute)
        logger.info(f"Appraisal dispute {dispute.id} resolved as {status.value}")
        return dispute
