from typing import Optional
import uuid

import structlog
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import UniquenessConflictError
from ..models.models import QualifiedDriver
from ..schemas.checklist import BadgeResult


logger = structlog.get_logger(__name__)


def find_active_driver(db: Session, badge: Optional[str]) -> Optional[QualifiedDriver]:
    """Exact match on an active driver's badge; inactive drivers never match."""
    if not badge:
        return None
    return (
        db.query(QualifiedDriver)
        .filter(QualifiedDriver.badge_number == badge, QualifiedDriver.is_active.is_(True))
        .first()
    )


def validate_badge(db: Session, badge: Optional[str], min_length: Optional[int] = None) -> BadgeResult:
    """
    Resolve a typed badge to an authorization result.

    Unknown, inactive and too-short badges all collapse to ``authorized=False``
    so the operator cannot tell them apart. Too-short input never hits the database.
    """
    badge = badge or ""
    if min_length is None:
        min_length = settings.badge_min_length
    if len(badge) < min_length:
        return BadgeResult(authorized=False)

    driver = find_active_driver(db, badge)
    if not driver:
        logger.info("badge_not_authorized", badge_number=badge)
        return BadgeResult(authorized=False)
    return BadgeResult(authorized=True, display_name=driver.driver_name)


def ensure_badge_available(db: Session, badge: str, exclude_id: Optional[uuid.UUID] = None) -> None:
    """Raise a conflict when another active driver already holds the badge."""
    q = db.query(QualifiedDriver).filter(
        QualifiedDriver.badge_number == badge,
        QualifiedDriver.is_active.is_(True),
    )
    if exclude_id is not None:
        q = q.filter(QualifiedDriver.id != exclude_id)
    if q.first():
        raise UniquenessConflictError("Badge number already exists")
