import uuid
from datetime import datetime, date, timezone
from typing import Optional

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Date,
    Boolean,
    ForeignKey,
    Table,
    Integer,
    Float,
    Numeric,
    UniqueConstraint,
    Text,
    Index,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship, Mapped, mapped_column

from ..db import Base


def uuid_pk() -> Mapped[uuid.UUID]:
    return mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Association table for many-to-many ForkliftUnit<->ChecklistQuestion
forklift_question_assignments = Table(
    "forklift_question_assignments",
    Base.metadata,
    Column("forklift_id", UUID(as_uuid=True), ForeignKey("forklift_units.id", ondelete="CASCADE"), primary_key=True),
    Column("question_id", UUID(as_uuid=True), ForeignKey("checklist_questions.id", ondelete="CASCADE"), primary_key=True),
    UniqueConstraint("forklift_id", "question_id", name="uq_forklift_question"),
)


class ForkliftUnit(Base):
    """Inspectable forklift units; one active unit may be flagged as the default selection"""
    __tablename__ = "forklift_units"

    id: Mapped[uuid.UUID] = uuid_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    questions = relationship(
        "ChecklistQuestion",
        secondary=forklift_question_assignments,
        back_populates="forklifts",
        order_by="ChecklistQuestion.sort_order",
    )
    submissions = relationship("ChecklistSubmission", back_populates="forklift")


class ChecklistQuestion(Base):
    """Inspection items; toggled inactive instead of deleted since responses reference them"""
    __tablename__ = "checklist_questions"

    id: Mapped[uuid.UUID] = uuid_pk()
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), default="General", nullable=False)
    label: Mapped[Optional[str]] = mapped_column(String(50))
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    forklifts = relationship("ForkliftUnit", secondary=forklift_question_assignments, back_populates="questions")


class QualifiedDriver(Base):
    """Operators allowed to run the checklist, looked up by badge number"""
    __tablename__ = "qualified_drivers"

    id: Mapped[uuid.UUID] = uuid_pk()
    badge_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    driver_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    certified_date: Mapped[Optional[date]] = mapped_column(Date)
    recertify_date: Mapped[Optional[date]] = mapped_column(Date, index=True)
    trainer: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Badge numbers are unique among active drivers only
    __table_args__ = (
        Index(
            "uq_active_driver_badge",
            "badge_number",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )


class ChecklistSubmission(Base):
    """One completed checklist; immutable apart from admin deletion"""
    __tablename__ = "checklist_submissions"

    id: Mapped[uuid.UUID] = uuid_pk()
    badge_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # As typed by the operator
    driver_name: Mapped[Optional[str]] = mapped_column(String(255))  # Display name resolved at submit time
    forklift_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("forklift_units.id"), nullable=False, index=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    has_failures: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)  # Computed once at submit time

    forklift = relationship("ForkliftUnit", back_populates="submissions")
    responses = relationship("ChecklistResponse", back_populates="submission", cascade="all, delete-orphan")
    notifications = relationship("FailNotification", back_populates="submission", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_submission_forklift_date", "forklift_id", "submitted_at"),
    )


class ChecklistResponse(Base):
    """One answer within a submission"""
    __tablename__ = "checklist_responses"

    id: Mapped[uuid.UUID] = uuid_pk()
    submission_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("checklist_submissions.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("checklist_questions.id"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(10), nullable=False)  # pass|fail|na
    comment: Mapped[Optional[str]] = mapped_column(Text)  # Operator's description of a failed item
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text)  # Repair notes added during review

    submission = relationship("ChecklistSubmission", back_populates="responses")
    question = relationship("ChecklistQuestion")

    __table_args__ = (
        UniqueConstraint("submission_id", "question_id", name="uq_response_submission_question"),
    )


class FailNotification(Base):
    """Admin alert for a failed item; text fields are snapshots taken at submit time"""
    __tablename__ = "fail_notifications"

    id: Mapped[uuid.UUID] = uuid_pk()
    submission_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("checklist_submissions.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("checklist_questions.id"), nullable=False)
    badge_number: Mapped[str] = mapped_column(String(50), nullable=False)
    forklift_name: Mapped[str] = mapped_column(String(255), nullable=False)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    submission = relationship("ChecklistSubmission", back_populates="notifications")

    __table_args__ = (
        Index("idx_fail_notification_read_created", "is_read", "created_at"),
    )


class MaintenanceRecord(Base):
    """Repair/issue tickets, optionally raised from a failed checklist item"""
    __tablename__ = "maintenance_records"

    id: Mapped[uuid.UUID] = uuid_pk()
    forklift_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("forklift_units.id"), nullable=False, index=True)
    issue_description: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(20), default="medium", nullable=False, index=True)  # low|medium|high|critical
    status: Mapped[str] = mapped_column(String(20), default="open", nullable=False, index=True)  # open|in_progress|completed|deferred
    reported_by: Mapped[Optional[str]] = mapped_column(String(255))
    reported_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    estimated_cost: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False))
    actual_cost: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False))
    work_performed: Mapped[Optional[str]] = mapped_column(Text)
    parts_used: Mapped[Optional[str]] = mapped_column(Text)
    technician_name: Mapped[Optional[str]] = mapped_column(String(255))
    downtime_hours: Mapped[Optional[float]] = mapped_column(Float)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    is_from_checklist: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    fail_notification_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("fail_notifications.id", ondelete="SET NULL"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    forklift = relationship("ForkliftUnit")

    __table_args__ = (
        Index("idx_maintenance_forklift_status", "forklift_id", "status"),
    )
