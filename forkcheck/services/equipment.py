from datetime import datetime, timezone
from typing import List, Optional
import uuid

import structlog
from sqlalchemy.orm import Session

from ..errors import ChecklistValidationError
from ..models.models import ForkliftUnit, ChecklistSubmission, MaintenanceRecord


logger = structlog.get_logger(__name__)


def list_active_units(db: Session) -> List[ForkliftUnit]:
    return (
        db.query(ForkliftUnit)
        .filter(ForkliftUnit.is_active.is_(True))
        .order_by(ForkliftUnit.name.asc(), ForkliftUnit.unit_number.asc())
        .all()
    )


def resolve_default_unit(db: Session) -> Optional[ForkliftUnit]:
    """The flagged default if there is one, otherwise the first active unit."""
    units = list_active_units(db)
    for unit in units:
        if unit.is_default:
            return unit
    return units[0] if units else None


def set_default_unit(db: Session, unit_id: uuid.UUID) -> ForkliftUnit:
    """
    Make ``unit_id`` the only default.

    A single UPDATE flips every row at once, so no reader can observe two
    defaults in between. Caller commits.
    """
    unit = db.query(ForkliftUnit).filter(ForkliftUnit.id == unit_id).first()
    if not unit:
        raise LookupError("Forklift not found")
    if not unit.is_active:
        raise ChecklistValidationError("Inactive forklifts cannot be the default")

    db.query(ForkliftUnit).update(
        {ForkliftUnit.is_default: ForkliftUnit.id == unit_id},
        synchronize_session=False,
    )
    db.expire_all()
    logger.info("default_forklift_set", forklift_id=str(unit_id))
    return unit


def has_history(db: Session, unit_id: uuid.UUID) -> bool:
    if db.query(ChecklistSubmission.id).filter(ChecklistSubmission.forklift_id == unit_id).first():
        return True
    return db.query(MaintenanceRecord.id).filter(MaintenanceRecord.forklift_id == unit_id).first() is not None


def retire_unit(db: Session, unit: ForkliftUnit) -> bool:
    """Delete a unit, or deactivate it if anything references it. Returns True when deleted."""
    if has_history(db, unit.id):
        unit.is_active = False
        unit.is_default = False
        unit.updated_at = datetime.now(timezone.utc)
        logger.info("forklift_deactivated", forklift_id=str(unit.id))
        return False
    db.delete(unit)
    logger.info("forklift_deleted", forklift_id=str(unit.id))
    return True
