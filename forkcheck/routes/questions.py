import uuid
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..db import get_db
from ..auth.security import require_admin
from ..models.models import ChecklistQuestion
from ..schemas.admin import (
    QuestionCreate,
    QuestionUpdate,
    QuestionActiveUpdate,
    QuestionResponse,
)
from ..services.questions import next_sort_order

router = APIRouter(prefix="/questions", tags=["questions"])


def _get_question(db: Session, question_id: uuid.UUID) -> ChecklistQuestion:
    q = db.query(ChecklistQuestion).filter(ChecklistQuestion.id == question_id).first()
    if not q:
        raise HTTPException(status_code=404, detail="Question not found")
    return q


@router.get("", response_model=List[QuestionResponse])
def list_questions(
    include_inactive: bool = Query(True),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    query = db.query(ChecklistQuestion)
    if not include_inactive:
        query = query.filter(ChecklistQuestion.is_active.is_(True))
    return query.order_by(ChecklistQuestion.sort_order.asc()).all()


@router.get("/{question_id}", response_model=QuestionResponse)
def get_question(question_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_admin)):
    return _get_question(db, question_id)


@router.post("", response_model=QuestionResponse, status_code=201)
def create_question(
    question: QuestionCreate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """New questions go to the end of the list; label defaults to Q<position>"""
    sort_order = next_sort_order(db)
    q = ChecklistQuestion(
        question_text=question.question_text,
        label=(question.label or "").strip() or f"Q{sort_order}",
        category=(question.category or "").strip() or "General",
        sort_order=sort_order,
        is_active=True,
    )
    db.add(q)
    db.commit()
    db.refresh(q)
    return q


@router.put("/{question_id}", response_model=QuestionResponse)
def update_question(
    question_id: uuid.UUID,
    question_update: QuestionUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    q = _get_question(db, question_id)
    update_data = question_update.dict(exclude_unset=True)
    if "question_text" in update_data and not (update_data["question_text"] or "").strip():
        raise HTTPException(status_code=422, detail="question_text must not be blank")
    for key, value in update_data.items():
        setattr(q, key, value)
    q.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(q)
    return q


@router.put("/{question_id}/active", response_model=QuestionResponse)
def set_question_active(
    question_id: uuid.UUID,
    body: QuestionActiveUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    q = _get_question(db, question_id)
    q.is_active = body.is_active
    q.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(q)
    return q


@router.delete("/{question_id}")
def delete_question(question_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_admin)):
    """Questions are referenced by past responses, so delete only deactivates"""
    q = _get_question(db, question_id)
    q.is_active = False
    q.updated_at = datetime.now(timezone.utc)
    db.commit()
    return {"message": "Question deactivated successfully"}
