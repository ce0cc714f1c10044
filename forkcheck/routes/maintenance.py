import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import structlog

from ..db import get_db
from ..auth.security import require_admin
from ..models.models import ForkliftUnit, MaintenanceRecord
from ..schemas.admin import (
    MaintenanceCreate,
    MaintenanceUpdate,
    MaintenanceResponse,
    MaintenancePriority,
    MaintenanceStatus,
)
from ..services.notifications import apply_maintenance_update

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


def _get_record(db: Session, record_id: uuid.UUID) -> MaintenanceRecord:
    record = db.query(MaintenanceRecord).filter(MaintenanceRecord.id == record_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="Maintenance record not found")
    return record


@router.get("", response_model=List[MaintenanceResponse])
def list_maintenance(
    status: Optional[MaintenanceStatus] = Query(None),
    priority: Optional[MaintenancePriority] = Query(None),
    forklift_id: Optional[uuid.UUID] = Query(None),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    query = db.query(MaintenanceRecord)
    if status:
        query = query.filter(MaintenanceRecord.status == status.value)
    if priority:
        query = query.filter(MaintenanceRecord.priority == priority.value)
    if forklift_id:
        query = query.filter(MaintenanceRecord.forklift_id == forklift_id)
    return query.order_by(MaintenanceRecord.reported_at.desc()).all()


@router.get("/{record_id}", response_model=MaintenanceResponse)
def get_maintenance(record_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_admin)):
    return _get_record(db, record_id)


@router.post("", response_model=MaintenanceResponse, status_code=201)
def create_maintenance(
    record: MaintenanceCreate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    if not db.query(ForkliftUnit).filter(ForkliftUnit.id == record.forklift_id).first():
        raise HTTPException(status_code=404, detail="Forklift not found")
    data = record.dict()
    data["priority"] = record.priority.value
    m = MaintenanceRecord(**data, status=MaintenanceStatus.open.value, is_from_checklist=False)
    db.add(m)
    db.commit()
    db.refresh(m)
    structlog.get_logger().info("maintenance_created", maintenance_id=str(m.id), priority=m.priority)
    return m


@router.put("/{record_id}", response_model=MaintenanceResponse)
def update_maintenance(
    record_id: uuid.UUID,
    record_update: MaintenanceUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    m = _get_record(db, record_id)
    apply_maintenance_update(m, record_update.dict(exclude_unset=True))
    db.commit()
    db.refresh(m)
    return m


@router.delete("/{record_id}")
def delete_maintenance(record_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_admin)):
    m = _get_record(db, record_id)
    db.delete(m)
    db.commit()
    return {"message": "Maintenance record deleted successfully"}
