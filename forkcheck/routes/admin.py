from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..auth.security import require_admin
from ..models.models import (
    ForkliftUnit,
    ChecklistQuestion,
    QualifiedDriver,
    ChecklistSubmission,
    FailNotification,
    MaintenanceRecord,
)
from ..schemas.admin import AdminSummaryResponse, DriverResponse

router = APIRouter(prefix="/admin", tags=["admin"])


# ---------- DASHBOARD ----------
@router.get("/summary", response_model=AdminSummaryResponse)
def get_summary(db: Session = Depends(get_db), _=Depends(require_admin)):
    """Counts for the admin landing page plus drivers whose certification lapses soon"""
    now = datetime.now(timezone.utc)
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    recert_cutoff = (now + timedelta(days=settings.recert_warning_days)).date()

    todays = db.query(ChecklistSubmission).filter(ChecklistSubmission.submitted_at >= start_of_day)

    recert_due = (
        db.query(QualifiedDriver)
        .filter(
            QualifiedDriver.is_active.is_(True),
            QualifiedDriver.recertify_date.isnot(None),
            QualifiedDriver.recertify_date <= recert_cutoff,
        )
        .order_by(QualifiedDriver.recertify_date.asc())
        .all()
    )

    return AdminSummaryResponse(
        active_forklifts=db.query(ForkliftUnit).filter(ForkliftUnit.is_active.is_(True)).count(),
        active_questions=db.query(ChecklistQuestion).filter(ChecklistQuestion.is_active.is_(True)).count(),
        active_drivers=db.query(QualifiedDriver).filter(QualifiedDriver.is_active.is_(True)).count(),
        unread_notifications=db.query(FailNotification).filter(FailNotification.is_read.is_(False)).count(),
        submissions_today=todays.count(),
        submissions_with_failures_today=todays.filter(ChecklistSubmission.has_failures.is_(True)).count(),
        open_maintenance_count=db.query(MaintenanceRecord).filter(MaintenanceRecord.status == "open").count(),
        in_progress_maintenance_count=db.query(MaintenanceRecord).filter(MaintenanceRecord.status == "in_progress").count(),
        recertification_due=[DriverResponse.model_validate(d) for d in recert_due],
    )
