"""
Turning an operator's answers into a persisted submission.

Every precondition the device checks is checked again here, since the client
is not trusted. The submission, its responses, the fail notifications and any
automatic maintenance records are written in one transaction: either all of
them land or none do.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import uuid

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import BadgeNotAuthorizedError, ChecklistValidationError, SubmissionFailedError
from ..models.models import (
    ChecklistQuestion,
    ChecklistResponse,
    ChecklistSubmission,
    ForkliftUnit,
    QualifiedDriver,
)
from ..schemas.checklist import BadgeGate, ChecklistAnswer, ChecklistSubmitRequest, ResponseStatus, ResponseVariant
from .badges import find_active_driver
from .notifications import build_maintenance_record, create_fail_notifications
from .questions import resolve_questions


logger = structlog.get_logger(__name__)


Answer = Tuple[ChecklistQuestion, ResponseStatus, Optional[str]]


@dataclass
class SubmissionResult:
    submission: ChecklistSubmission
    response_count: int
    notification_count: int
    maintenance_count: int = 0


def _check_badge(db: Session, badge_number: str) -> Optional[QualifiedDriver]:
    if not badge_number.strip():
        raise ChecklistValidationError("Please enter your badge number")
    driver = find_active_driver(db, badge_number)
    if driver is None:
        if BadgeGate(settings.badge_gate) == BadgeGate.required:
            logger.info("badge_not_authorized", badge_number=badge_number)
            raise BadgeNotAuthorizedError("Badge number not authorized")
        logger.warning("badge_unrecognized_recorded", badge_number=badge_number)
    return driver


def _check_forklift(db: Session, forklift_id: Optional[uuid.UUID]) -> ForkliftUnit:
    if forklift_id is None:
        raise ChecklistValidationError("Please select a forklift")
    unit = db.query(ForkliftUnit).filter(ForkliftUnit.id == forklift_id).first()
    if not unit or not unit.is_active:
        raise ChecklistValidationError("Selected forklift is not available")
    return unit


def _collect_answers(db: Session, unit: ForkliftUnit, answers: List[ChecklistAnswer]) -> List[Answer]:
    questions = resolve_questions(db, unit.id)
    if not questions:
        raise ChecklistValidationError("No checklist items are configured for this forklift")

    by_question: Dict[uuid.UUID, ChecklistAnswer] = {}
    in_scope = {q.id for q in questions}
    for a in answers:
        if a.question_id not in in_scope:
            raise ChecklistValidationError("Response references a question that is not on this checklist")
        if a.question_id in by_question:
            raise ChecklistValidationError("Each checklist item can only be answered once")
        by_question[a.question_id] = a

    collected: List[Answer] = []
    missing = []
    uncommented = []
    require_comments = ResponseVariant(settings.response_variant) == ResponseVariant.toggle_comment
    for q in questions:
        a = by_question.get(q.id)
        if a is None or a.status is None:
            missing.append(q)
            continue
        comment = (a.comment or "").strip() or None
        if a.status != ResponseStatus.fail:
            comment = None
        elif require_comments and not comment:
            uncommented.append(q)
        collected.append((q, a.status, comment))

    if missing:
        raise ChecklistValidationError("Please answer all checklist items")
    if uncommented:
        raise ChecklistValidationError("Please provide comments for all failed items")
    return collected


def create_submission(
    db: Session,
    badge_number: str,
    forklift_id: uuid.UUID,
    has_failures: bool,
    driver_name: Optional[str] = None,
) -> ChecklistSubmission:
    submission = ChecklistSubmission(
        badge_number=badge_number,
        driver_name=driver_name,
        forklift_id=forklift_id,
        has_failures=has_failures,
    )
    db.add(submission)
    db.flush()
    return submission


def create_responses(db: Session, submission: ChecklistSubmission, answers: List[Answer]) -> List[ChecklistResponse]:
    rows = [
        ChecklistResponse(
            submission_id=submission.id,
            question_id=question.id,
            status=status.value,
            comment=comment,
        )
        for question, status, comment in answers
    ]
    db.add_all(rows)
    db.flush()
    return rows


def submit_checklist(db: Session, payload: ChecklistSubmitRequest) -> SubmissionResult:
    driver = _check_badge(db, payload.badge_number)
    unit = _check_forklift(db, payload.forklift_id)
    answers = _collect_answers(db, unit, payload.responses)

    failed = [(q, comment) for q, status, comment in answers if status == ResponseStatus.fail]
    has_failures = bool(failed)
    forklift_name = unit.name

    try:
        submission = create_submission(
            db,
            badge_number=payload.badge_number,
            forklift_id=unit.id,
            has_failures=has_failures,
            driver_name=driver.driver_name if driver else None,
        )
        responses = create_responses(db, submission, answers)
        notifications = create_fail_notifications(db, submission, failed, forklift_name)

        maintenance_count = 0
        if settings.auto_create_maintenance:
            for n in notifications:
                db.add(build_maintenance_record(n, unit.id, settings.auto_maintenance_priority))
                maintenance_count += 1

        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "checklist_submit_failed",
            badge_number=payload.badge_number,
            forklift_id=str(unit.id),
            error=str(exc),
        )
        raise SubmissionFailedError("Failed to submit checklist. Please try again.") from exc

    db.refresh(submission)
    logger.info(
        "checklist_submitted",
        submission_id=str(submission.id),
        forklift_id=str(unit.id),
        badge_number=submission.badge_number,
        response_count=len(responses),
        fail_count=len(notifications),
        has_failures=has_failures,
    )
    return SubmissionResult(
        submission=submission,
        response_count=len(responses),
        notification_count=len(notifications),
        maintenance_count=maintenance_count,
    )
