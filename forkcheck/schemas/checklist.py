import uuid
from datetime import datetime
from typing import List, Optional
from enum import Enum

from pydantic import BaseModel, Field


# Matches the badge_number column width
BADGE_MAX_LENGTH = 50


# Enums
class ResponseStatus(str, Enum):
    pass_status = "pass"
    fail = "fail"
    na = "na"


class QuestionMode(str, Enum):
    global_mode = "global"
    per_equipment = "per_equipment"


class BadgeGate(str, Enum):
    required = "required"
    advisory = "advisory"


class ResponseVariant(str, Enum):
    three_state = "three_state"
    toggle_comment = "toggle_comment"


# Operator-facing reads
class ForkliftOption(BaseModel):
    id: uuid.UUID
    name: str
    unit_number: str
    is_default: bool

    class Config:
        from_attributes = True


class QuestionItem(BaseModel):
    id: uuid.UUID
    question_text: str
    category: str
    label: Optional[str] = None
    sort_order: int

    class Config:
        from_attributes = True


class ChecklistConfigResponse(BaseModel):
    question_mode: QuestionMode
    badge_gate: BadgeGate
    response_variant: ResponseVariant
    badge_min_length: int
    badge_debounce_ms: int


# Badge validation
class BadgeValidateRequest(BaseModel):
    badge_number: str = Field(max_length=BADGE_MAX_LENGTH)


class BadgeResult(BaseModel):
    authorized: bool
    display_name: Optional[str] = None


# Submission
class ChecklistAnswer(BaseModel):
    question_id: uuid.UUID
    status: Optional[ResponseStatus] = None  # None means left unanswered
    comment: Optional[str] = None


class ChecklistSubmitRequest(BaseModel):
    badge_number: str = Field(default="", max_length=BADGE_MAX_LENGTH)
    forklift_id: Optional[uuid.UUID] = None
    responses: List[ChecklistAnswer] = []


class SubmissionSummary(BaseModel):
    id: uuid.UUID
    badge_number: str
    driver_name: Optional[str] = None
    forklift_id: uuid.UUID
    submitted_at: datetime
    has_failures: bool

    class Config:
        from_attributes = True


class ChecklistSubmitResponse(BaseModel):
    submission: SubmissionSummary
    response_count: int
    notification_count: int
    maintenance_count: int = 0
