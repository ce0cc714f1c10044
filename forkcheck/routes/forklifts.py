import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from ..auth.security import require_admin
from ..errors import UniquenessConflictError
from ..models.models import ForkliftUnit, ChecklistQuestion
from ..schemas.admin import (
    ForkliftCreate,
    ForkliftUpdate,
    ForkliftResponse,
    QuestionAssignmentsResponse,
)
from ..services.equipment import retire_unit, set_default_unit
from ..services.questions import assign_question, assigned_question_ids, unassign_question

router = APIRouter(prefix="/forklifts", tags=["forklifts"])


def _get_unit(db: Session, forklift_id: uuid.UUID) -> ForkliftUnit:
    unit = db.query(ForkliftUnit).filter(ForkliftUnit.id == forklift_id).first()
    if not unit:
        raise HTTPException(status_code=404, detail="Forklift not found")
    return unit


def _commit_unique(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise UniquenessConflictError("Unit number already exists") from exc


def _ensure_unit_number_free(db: Session, unit_number: str, exclude_id: Optional[uuid.UUID] = None) -> None:
    q = db.query(ForkliftUnit).filter(ForkliftUnit.unit_number == unit_number)
    if exclude_id is not None:
        q = q.filter(ForkliftUnit.id != exclude_id)
    if q.first():
        raise UniquenessConflictError("Unit number already exists")


# ---------- UNITS ----------
@router.get("", response_model=List[ForkliftResponse])
def list_forklifts(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    query = db.query(ForkliftUnit)
    if not include_inactive:
        query = query.filter(ForkliftUnit.is_active.is_(True))
    return query.order_by(ForkliftUnit.name.asc(), ForkliftUnit.unit_number.asc()).all()


@router.get("/{forklift_id}", response_model=ForkliftResponse)
def get_forklift(forklift_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_admin)):
    return _get_unit(db, forklift_id)


@router.post("", response_model=ForkliftResponse, status_code=201)
def create_forklift(
    forklift: ForkliftCreate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    _ensure_unit_number_free(db, forklift.unit_number)
    unit = ForkliftUnit(name=forklift.name, unit_number=forklift.unit_number, is_default=False)
    db.add(unit)
    _commit_unique(db)
    if forklift.is_default:
        set_default_unit(db, unit.id)
        db.commit()
    db.refresh(unit)
    return unit


@router.put("/{forklift_id}", response_model=ForkliftResponse)
def update_forklift(
    forklift_id: uuid.UUID,
    forklift_update: ForkliftUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    unit = _get_unit(db, forklift_id)
    update_data = forklift_update.dict(exclude_unset=True)
    for key in ("name", "unit_number"):
        if key in update_data:
            value = (update_data[key] or "").strip()
            if not value:
                raise HTTPException(status_code=422, detail=f"{key} must not be blank")
            update_data[key] = value
    if "unit_number" in update_data:
        _ensure_unit_number_free(db, update_data["unit_number"], exclude_id=unit.id)

    for key, value in update_data.items():
        setattr(unit, key, value)
    if update_data.get("is_active") is False:
        unit.is_default = False
    unit.updated_at = datetime.now(timezone.utc)

    _commit_unique(db)
    db.refresh(unit)
    return unit


@router.delete("/{forklift_id}")
def delete_forklift(forklift_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_admin)):
    """Delete a forklift, or deactivate it when submissions or maintenance reference it"""
    unit = _get_unit(db, forklift_id)
    deleted = retire_unit(db, unit)
    db.commit()
    if deleted:
        return {"message": "Forklift deleted successfully", "deleted": True}
    return {"message": "Forklift has history and was deactivated", "deleted": False}


@router.post("/{forklift_id}/default", response_model=ForkliftResponse)
def make_default_forklift(forklift_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_admin)):
    _get_unit(db, forklift_id)
    unit = set_default_unit(db, forklift_id)
    db.commit()
    db.refresh(unit)
    return unit


# ---------- QUESTION ASSIGNMENTS ----------
@router.get("/{forklift_id}/questions", response_model=QuestionAssignmentsResponse)
def get_forklift_questions(forklift_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_admin)):
    _get_unit(db, forklift_id)
    return QuestionAssignmentsResponse(forklift_id=forklift_id, question_ids=assigned_question_ids(db, forklift_id))


@router.put("/{forklift_id}/questions/{question_id}", response_model=QuestionAssignmentsResponse)
def assign_forklift_question(
    forklift_id: uuid.UUID,
    question_id: uuid.UUID,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    _get_unit(db, forklift_id)
    if not db.query(ChecklistQuestion).filter(ChecklistQuestion.id == question_id).first():
        raise HTTPException(status_code=404, detail="Question not found")
    assign_question(db, forklift_id, question_id)
    db.commit()
    return QuestionAssignmentsResponse(forklift_id=forklift_id, question_ids=assigned_question_ids(db, forklift_id))


@router.delete("/{forklift_id}/questions/{question_id}", response_model=QuestionAssignmentsResponse)
def unassign_forklift_question(
    forklift_id: uuid.UUID,
    question_id: uuid.UUID,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    _get_unit(db, forklift_id)
    unassign_question(db, forklift_id, question_id)
    db.commit()
    return QuestionAssignmentsResponse(forklift_id=forklift_id, question_ids=assigned_question_ids(db, forklift_id))
