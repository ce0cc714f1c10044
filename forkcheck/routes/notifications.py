import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..db import get_db
from ..auth.security import require_admin
from ..schemas.admin import (
    FailNotificationResponse,
    MaintenanceResponse,
    NotificationMaintenanceRequest,
)
from ..services.notifications import (
    create_maintenance_from_notification,
    list_notifications,
    mark_notification_read,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[FailNotificationResponse])
def get_notifications(
    unread_only: bool = Query(True),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    return list_notifications(db, unread_only=unread_only, limit=limit)


@router.post("/{notification_id}/read", response_model=FailNotificationResponse)
def read_notification(notification_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_admin)):
    try:
        return mark_notification_read(db, notification_id)
    except LookupError:
        raise HTTPException(status_code=404, detail="Notification not found")


@router.post("/{notification_id}/maintenance", response_model=MaintenanceResponse)
def notification_to_maintenance(
    notification_id: uuid.UUID,
    body: NotificationMaintenanceRequest = NotificationMaintenanceRequest(),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """Open (or return the already linked) maintenance record for a failed item"""
    try:
        return create_maintenance_from_notification(db, notification_id, body.priority, body.reported_by)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
