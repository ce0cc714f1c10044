import uuid
from datetime import datetime, date
from typing import Annotated, List, Optional
from enum import Enum

from pydantic import AfterValidator, BaseModel, Field

from .checklist import BADGE_MAX_LENGTH, ResponseStatus


# Enums
class MaintenancePriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class MaintenanceStatus(str, Enum):
    open = "open"
    in_progress = "in_progress"
    completed = "completed"
    deferred = "deferred"


def _required_text(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("must not be blank")
    return v


RequiredText = Annotated[str, AfterValidator(_required_text)]
RequiredCode = Annotated[str, Field(max_length=50), AfterValidator(_required_text)]


# Auth
class AdminLoginRequest(BaseModel):
    passcode: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


# Forklift Unit Schemas
class ForkliftCreate(BaseModel):
    name: RequiredText
    unit_number: RequiredCode
    is_default: bool = False


class ForkliftUpdate(BaseModel):
    name: Optional[str] = None
    unit_number: Optional[str] = Field(default=None, max_length=50)
    is_active: Optional[bool] = None


class ForkliftResponse(BaseModel):
    id: uuid.UUID
    name: str
    unit_number: str
    is_default: bool
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QuestionAssignmentsResponse(BaseModel):
    forklift_id: uuid.UUID
    question_ids: List[uuid.UUID]


# Question Schemas
class QuestionCreate(BaseModel):
    question_text: RequiredText
    label: Optional[str] = None
    category: Optional[str] = None


class QuestionUpdate(BaseModel):
    question_text: Optional[str] = None
    label: Optional[str] = None
    category: Optional[str] = None
    sort_order: Optional[int] = None


class QuestionActiveUpdate(BaseModel):
    is_active: bool


class QuestionResponse(BaseModel):
    id: uuid.UUID
    question_text: str
    category: str
    label: Optional[str] = None
    sort_order: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Driver Schemas
class DriverBase(BaseModel):
    badge_number: str
    driver_name: str
    certified_date: Optional[date] = None
    recertify_date: Optional[date] = None
    trainer: Optional[str] = None


class DriverCreate(DriverBase):
    badge_number: RequiredCode
    driver_name: RequiredText


class DriverUpdate(BaseModel):
    badge_number: Optional[str] = Field(default=None, max_length=BADGE_MAX_LENGTH)
    driver_name: Optional[str] = None
    certified_date: Optional[date] = None
    recertify_date: Optional[date] = None
    trainer: Optional[str] = None


class DriverResponse(DriverBase):
    id: uuid.UUID
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Submission review
class SubmissionListItem(BaseModel):
    id: uuid.UUID
    badge_number: str
    driver_name: Optional[str] = None
    forklift_id: uuid.UUID
    forklift_name: Optional[str] = None
    unit_number: Optional[str] = None
    submitted_at: datetime
    has_failures: bool


class ResponseDetail(BaseModel):
    id: uuid.UUID
    question_id: uuid.UUID
    question_text: Optional[str] = None
    label: Optional[str] = None
    category: Optional[str] = None
    status: ResponseStatus
    comment: Optional[str] = None
    timestamp: datetime
    admin_notes: Optional[str] = None


class SubmissionDetail(SubmissionListItem):
    responses: List[ResponseDetail]


class AdminNotesUpdate(BaseModel):
    admin_notes: Optional[str] = None


# Notifications
class FailNotificationResponse(BaseModel):
    id: uuid.UUID
    submission_id: uuid.UUID
    question_id: uuid.UUID
    badge_number: str
    forklift_name: str
    question_text: str
    comment: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationMaintenanceRequest(BaseModel):
    priority: MaintenancePriority = MaintenancePriority.high
    reported_by: Optional[str] = None


# Maintenance Schemas
class MaintenanceCreate(BaseModel):
    forklift_id: uuid.UUID
    issue_description: RequiredText
    priority: MaintenancePriority = MaintenancePriority.medium
    reported_by: Optional[str] = None
    estimated_cost: Optional[float] = None
    notes: Optional[str] = None


class MaintenanceUpdate(BaseModel):
    issue_description: Optional[str] = None
    status: Optional[MaintenanceStatus] = None
    priority: Optional[MaintenancePriority] = None
    work_performed: Optional[str] = None
    parts_used: Optional[str] = None
    technician_name: Optional[str] = None
    estimated_cost: Optional[float] = None
    actual_cost: Optional[float] = None
    downtime_hours: Optional[float] = None
    notes: Optional[str] = None


class MaintenanceResponse(BaseModel):
    id: uuid.UUID
    forklift_id: uuid.UUID
    issue_description: str
    priority: MaintenancePriority
    status: MaintenanceStatus
    reported_by: Optional[str] = None
    reported_at: datetime
    estimated_cost: Optional[float] = None
    actual_cost: Optional[float] = None
    work_performed: Optional[str] = None
    parts_used: Optional[str] = None
    technician_name: Optional[str] = None
    downtime_hours: Optional[float] = None
    notes: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    is_from_checklist: bool
    fail_notification_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Dashboard Schema
class AdminSummaryResponse(BaseModel):
    active_forklifts: int
    active_questions: int
    active_drivers: int
    unread_notifications: int
    submissions_today: int
    submissions_with_failures_today: int
    open_maintenance_count: int
    in_progress_maintenance_count: int
    recertification_due: List[DriverResponse]
