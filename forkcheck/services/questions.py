"""
Which questions apply to a forklift.

In ``global`` mode every active question applies to every unit. In
``per_equipment`` mode only questions explicitly assigned to the unit apply; a
unit with no assignment rows at all gets an empty checklist unless the fallback
to the global set is switched on.
"""
from typing import List, Optional, Union
import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..config import settings
from ..models.models import ChecklistQuestion, forklift_question_assignments
from ..schemas.checklist import QuestionMode


logger = structlog.get_logger(__name__)


def list_active_questions(db: Session) -> List[ChecklistQuestion]:
    return (
        db.query(ChecklistQuestion)
        .filter(ChecklistQuestion.is_active.is_(True))
        .order_by(ChecklistQuestion.sort_order.asc(), ChecklistQuestion.created_at.asc())
        .all()
    )


def assigned_question_ids(db: Session, forklift_id: uuid.UUID) -> List[uuid.UUID]:
    rows = db.execute(
        select(forklift_question_assignments.c.question_id).where(
            forklift_question_assignments.c.forklift_id == forklift_id
        )
    ).all()
    return [r[0] for r in rows]


def resolve_questions(
    db: Session,
    forklift_id: Optional[uuid.UUID],
    mode: Optional[Union[QuestionMode, str]] = None,
    fallback: Optional[bool] = None,
) -> List[ChecklistQuestion]:
    mode = QuestionMode(mode or settings.question_mode)
    if fallback is None:
        fallback = settings.question_assignment_fallback

    if mode == QuestionMode.global_mode:
        return list_active_questions(db)

    if forklift_id is None:
        return []

    assigned = assigned_question_ids(db, forklift_id)
    if not assigned:
        if fallback:
            logger.debug("question_assignment_fallback", forklift_id=str(forklift_id))
            return list_active_questions(db)
        return []

    return (
        db.query(ChecklistQuestion)
        .filter(ChecklistQuestion.id.in_(assigned), ChecklistQuestion.is_active.is_(True))
        .order_by(ChecklistQuestion.sort_order.asc(), ChecklistQuestion.created_at.asc())
        .all()
    )


def next_sort_order(db: Session) -> int:
    current = db.query(func.max(ChecklistQuestion.sort_order)).scalar()
    return (current or 0) + 1


def assign_question(db: Session, forklift_id: uuid.UUID, question_id: uuid.UUID) -> bool:
    """Add an assignment row; returns False when it already existed."""
    if question_id in assigned_question_ids(db, forklift_id):
        return False
    db.execute(
        forklift_question_assignments.insert().values(forklift_id=forklift_id, question_id=question_id)
    )
    return True


def unassign_question(db: Session, forklift_id: uuid.UUID, question_id: uuid.UUID) -> bool:
    result = db.execute(
        forklift_question_assignments.delete().where(
            forklift_question_assignments.c.forklift_id == forklift_id,
            forklift_question_assignments.c.question_id == question_id,
        )
    )
    return result.rowcount > 0
