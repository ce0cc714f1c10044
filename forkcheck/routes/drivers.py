import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from ..auth.security import require_admin
from ..errors import UniquenessConflictError
from ..models.models import QualifiedDriver
from ..schemas.admin import DriverCreate, DriverUpdate, DriverResponse
from ..services.badges import ensure_badge_available

router = APIRouter(prefix="/drivers", tags=["drivers"])


def _get_driver(db: Session, driver_id: uuid.UUID) -> QualifiedDriver:
    driver = db.query(QualifiedDriver).filter(QualifiedDriver.id == driver_id).first()
    if not driver:
        raise HTTPException(status_code=404, detail="Driver not found")
    return driver


def _commit_unique(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise UniquenessConflictError("Badge number already exists") from exc


@router.get("", response_model=List[DriverResponse])
def list_drivers(
    include_inactive: bool = Query(False),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    query = db.query(QualifiedDriver)
    if not include_inactive:
        query = query.filter(QualifiedDriver.is_active.is_(True))
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(QualifiedDriver.driver_name.ilike(term), QualifiedDriver.badge_number.ilike(term)))
    return query.order_by(QualifiedDriver.driver_name.asc()).all()


@router.get("/{driver_id}", response_model=DriverResponse)
def get_driver(driver_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_admin)):
    return _get_driver(db, driver_id)


@router.post("", response_model=DriverResponse, status_code=201)
def create_driver(
    driver: DriverCreate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    ensure_badge_available(db, driver.badge_number)
    d = QualifiedDriver(**driver.dict(), is_active=True)
    db.add(d)
    _commit_unique(db)
    db.refresh(d)
    return d


@router.put("/{driver_id}", response_model=DriverResponse)
def update_driver(
    driver_id: uuid.UUID,
    driver_update: DriverUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    d = _get_driver(db, driver_id)
    update_data = driver_update.dict(exclude_unset=True)
    for key in ("badge_number", "driver_name"):
        if key in update_data:
            value = (update_data[key] or "").strip()
            if not value:
                raise HTTPException(status_code=422, detail=f"{key} must not be blank")
            update_data[key] = value
    if "badge_number" in update_data and d.is_active:
        ensure_badge_available(db, update_data["badge_number"], exclude_id=d.id)

    for key, value in update_data.items():
        setattr(d, key, value)
    d.updated_at = datetime.now(timezone.utc)
    _commit_unique(db)
    db.refresh(d)
    return d


@router.post("/{driver_id}/reactivate", response_model=DriverResponse)
def reactivate_driver(driver_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_admin)):
    d = _get_driver(db, driver_id)
    if not d.is_active:
        ensure_badge_available(db, d.badge_number, exclude_id=d.id)
        d.is_active = True
        d.updated_at = datetime.now(timezone.utc)
        _commit_unique(db)
        db.refresh(d)
    return d


@router.delete("/{driver_id}")
def delete_driver(driver_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_admin)):
    """Soft delete; past submissions keep the badge they were made with"""
    d = _get_driver(db, driver_id)
    d.is_active = False
    d.updated_at = datetime.now(timezone.utc)
    db.commit()
    return {"message": "Driver deactivated successfully"}
