import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload
import structlog

from ..db import get_db
from ..auth.security import require_admin
from ..models.models import ChecklistSubmission, ChecklistResponse
from ..schemas.admin import (
    SubmissionListItem,
    SubmissionDetail,
    ResponseDetail,
    AdminNotesUpdate,
)

router = APIRouter(prefix="/submissions", tags=["submissions"])


def _list_item(s: ChecklistSubmission) -> dict:
    return {
        "id": s.id,
        "badge_number": s.badge_number,
        "driver_name": s.driver_name,
        "forklift_id": s.forklift_id,
        "forklift_name": s.forklift.name if s.forklift else None,
        "unit_number": s.forklift.unit_number if s.forklift else None,
        "submitted_at": s.submitted_at,
        "has_failures": s.has_failures,
    }


def _response_detail(r: ChecklistResponse) -> dict:
    return {
        "id": r.id,
        "question_id": r.question_id,
        "question_text": r.question.question_text if r.question else None,
        "label": r.question.label if r.question else None,
        "category": r.question.category if r.question else None,
        "status": r.status,
        "comment": r.comment,
        "timestamp": r.timestamp,
        "admin_notes": r.admin_notes,
    }


@router.get("", response_model=List[SubmissionListItem])
def list_submissions(
    forklift_id: Optional[uuid.UUID] = Query(None),
    badge_number: Optional[str] = Query(None),
    has_failures: Optional[bool] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """Newest first"""
    query = db.query(ChecklistSubmission).options(joinedload(ChecklistSubmission.forklift))
    if forklift_id:
        query = query.filter(ChecklistSubmission.forklift_id == forklift_id)
    if badge_number:
        query = query.filter(ChecklistSubmission.badge_number == badge_number)
    if has_failures is not None:
        query = query.filter(ChecklistSubmission.has_failures.is_(has_failures))
    if date_from:
        query = query.filter(ChecklistSubmission.submitted_at >= date_from)
    if date_to:
        query = query.filter(ChecklistSubmission.submitted_at <= date_to)
    rows = query.order_by(ChecklistSubmission.submitted_at.desc()).limit(limit).all()
    return [_list_item(s) for s in rows]


@router.get("/{submission_id}", response_model=SubmissionDetail)
def get_submission(submission_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_admin)):
    s = db.query(ChecklistSubmission).filter(ChecklistSubmission.id == submission_id).first()
    if not s:
        raise HTTPException(status_code=404, detail="Submission not found")
    responses = (
        db.query(ChecklistResponse)
        .options(joinedload(ChecklistResponse.question))
        .filter(ChecklistResponse.submission_id == s.id)
        .all()
    )
    responses.sort(key=lambda r: r.question.sort_order if r.question else 0)
    item = _list_item(s)
    item["responses"] = [_response_detail(r) for r in responses]
    return item


@router.delete("/{submission_id}")
def delete_submission(submission_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_admin)):
    """Removes the submission together with its responses and notifications"""
    s = db.query(ChecklistSubmission).filter(ChecklistSubmission.id == submission_id).first()
    if not s:
        raise HTTPException(status_code=404, detail="Submission not found")
    db.delete(s)
    db.commit()
    structlog.get_logger().info("submission_deleted", submission_id=str(submission_id))
    return {"message": "Submission deleted successfully"}


@router.put("/responses/{response_id}/notes", response_model=ResponseDetail)
def update_response_notes(
    response_id: uuid.UUID,
    body: AdminNotesUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    r = db.query(ChecklistResponse).filter(ChecklistResponse.id == response_id).first()
    if not r:
        raise HTTPException(status_code=404, detail="Response not found")
    r.admin_notes = (body.admin_notes or "").strip() or None
    db.commit()
    db.refresh(r)
    return _response_detail(r)
