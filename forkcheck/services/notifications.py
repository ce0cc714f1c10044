"""
Fail notifications and the maintenance records raised from them.
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple, Union
import uuid

import structlog
from sqlalchemy.orm import Session

from ..models.models import (
    ChecklistQuestion,
    ChecklistSubmission,
    FailNotification,
    MaintenanceRecord,
)
from ..schemas.admin import MaintenancePriority, MaintenanceStatus


logger = structlog.get_logger(__name__)


FailedItem = Tuple[ChecklistQuestion, Optional[str]]  # (question, operator comment)

_REQUIRED_MAINTENANCE_FIELDS = {"issue_description", "status", "priority"}


def create_fail_notifications(
    db: Session,
    submission: ChecklistSubmission,
    failed_items: Iterable[FailedItem],
    forklift_name: str,
) -> List[FailNotification]:
    """
    One notification per failed item, with badge, unit name and question text
    copied as they were at submit time. Later renames do not touch these rows.
    Caller owns the transaction.
    """
    created = []
    for question, comment in failed_items:
        n = FailNotification(
            submission_id=submission.id,
            question_id=question.id,
            badge_number=submission.badge_number,
            forklift_name=forklift_name,
            question_text=question.question_text,
            comment=comment,
            is_read=False,
        )
        db.add(n)
        created.append(n)
    db.flush()
    return created


def list_notifications(db: Session, unread_only: bool = True, limit: Optional[int] = None) -> List[FailNotification]:
    q = db.query(FailNotification)
    if unread_only:
        q = q.filter(FailNotification.is_read.is_(False))
    q = q.order_by(FailNotification.created_at.desc())
    if limit:
        q = q.limit(limit)
    return q.all()


def get_notification(db: Session, notification_id: uuid.UUID) -> FailNotification:
    n = db.query(FailNotification).filter(FailNotification.id == notification_id).first()
    if not n:
        raise LookupError("Notification not found")
    return n


def mark_notification_read(db: Session, notification_id: uuid.UUID) -> FailNotification:
    """Idempotent: ``read_at`` keeps the time of the first call."""
    n = get_notification(db, notification_id)
    if not n.is_read:
        n.is_read = True
        n.read_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(n)
        logger.info("notification_read", notification_id=str(n.id))
    return n


def build_maintenance_record(
    notification: FailNotification,
    forklift_id: uuid.UUID,
    priority: Union[MaintenancePriority, str] = MaintenancePriority.high,
    reported_by: Optional[str] = None,
) -> MaintenanceRecord:
    description = notification.question_text
    if notification.comment:
        description = f"{description}: {notification.comment}"
    return MaintenanceRecord(
        forklift_id=forklift_id,
        issue_description=description,
        priority=MaintenancePriority(priority).value,
        status=MaintenanceStatus.open.value,
        reported_by=reported_by or notification.badge_number,
        is_from_checklist=True,
        fail_notification_id=notification.id,
    )


def create_maintenance_from_notification(
    db: Session,
    notification_id: uuid.UUID,
    priority: Union[MaintenancePriority, str] = MaintenancePriority.high,
    reported_by: Optional[str] = None,
) -> MaintenanceRecord:
    """Open a maintenance record for a failed item. Returns the existing one if already linked."""
    n = get_notification(db, notification_id)
    existing = (
        db.query(MaintenanceRecord)
        .filter(MaintenanceRecord.fail_notification_id == n.id)
        .first()
    )
    if existing:
        return existing

    submission = db.query(ChecklistSubmission).filter(ChecklistSubmission.id == n.submission_id).first()
    if not submission:
        raise LookupError("Submission not found")

    record = build_maintenance_record(n, submission.forklift_id, priority, reported_by)
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(
        "maintenance_created_from_notification",
        notification_id=str(n.id),
        maintenance_id=str(record.id),
        priority=record.priority,
    )
    return record


def apply_maintenance_update(record: MaintenanceRecord, changes: dict) -> MaintenanceRecord:
    """Copy changed fields onto a record, stamping start and completion times the first time each status is reached."""
    for key, value in changes.items():
        if value is None and key in _REQUIRED_MAINTENANCE_FIELDS:
            continue
        if isinstance(value, (MaintenancePriority, MaintenanceStatus)):
            value = value.value
        setattr(record, key, value)

    now = datetime.now(timezone.utc)
    status = changes.get("status")
    if status is not None:
        status = MaintenanceStatus(status)
        if status == MaintenanceStatus.in_progress and record.started_at is None:
            record.started_at = now
        if status == MaintenanceStatus.completed:
            if record.started_at is None:
                record.started_at = now
            if record.completed_at is None:
                record.completed_at = now
    record.updated_at = now
    return record
