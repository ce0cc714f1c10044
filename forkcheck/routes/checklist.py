import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..schemas.checklist import (
    BadgeResult,
    BadgeValidateRequest,
    ChecklistConfigResponse,
    ChecklistSubmitRequest,
    ChecklistSubmitResponse,
    ForkliftOption,
    QuestionItem,
)
from ..services.badges import validate_badge
from ..services.equipment import list_active_units, resolve_default_unit
from ..services.questions import resolve_questions
from ..services.submission import submit_checklist

router = APIRouter(prefix="/checklist", tags=["checklist"])


@router.get("/config", response_model=ChecklistConfigResponse)
def get_checklist_config():
    """Behaviour switches the operator device needs before rendering the checklist"""
    return ChecklistConfigResponse(
        question_mode=settings.question_mode,
        badge_gate=settings.badge_gate,
        response_variant=settings.response_variant,
        badge_min_length=settings.badge_min_length,
        badge_debounce_ms=settings.badge_debounce_ms,
    )


@router.get("/forklifts", response_model=List[ForkliftOption])
def list_forklift_options(db: Session = Depends(get_db)):
    return list_active_units(db)


@router.get("/forklifts/default", response_model=ForkliftOption)
def get_default_forklift(db: Session = Depends(get_db)):
    unit = resolve_default_unit(db)
    if not unit:
        raise HTTPException(status_code=404, detail="No active forklifts")
    return unit


@router.get("/questions", response_model=List[QuestionItem])
def list_checklist_questions(
    forklift_id: Optional[uuid.UUID] = Query(None),
    db: Session = Depends(get_db),
):
    return resolve_questions(db, forklift_id)


@router.post("/badge/validate", response_model=BadgeResult)
def validate_badge_number(req: BadgeValidateRequest, db: Session = Depends(get_db)):
    return validate_badge(db, req.badge_number)


@router.post("/submissions", response_model=ChecklistSubmitResponse, status_code=201)
def create_checklist_submission(payload: ChecklistSubmitRequest, db: Session = Depends(get_db)):
    result = submit_checklist(db, payload)
    return {
        "submission": result.submission,
        "response_count": result.response_count,
        "notification_count": result.notification_count,
        "maintenance_count": result.maintenance_count,
    }
