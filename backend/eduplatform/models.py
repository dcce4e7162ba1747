"""SQLModel data models.

This module defines the marketplace tables using SQLModel. Every table
carries `created_at`/`updated_at` and a `deleted_at` soft-delete marker;
repositories exclude rows whose marker is set.

Status changes are exposed as named methods on the models (`Mission.stop`,
`Option.decline`, ...) so that handlers never write a status string
directly. The methods are plain field assignments: no transition checks
the current state before applying the new one.

All datetimes are timezone-aware UTC, in memory and once loaded back.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel

OPTION_DEFAULT_TTL = timedelta(days=7)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert `value` to aware UTC; naive values are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UtcDateTime(TypeDecorator):
    """`DateTime(timezone=True)` that always hands back aware UTC values.

    SQLite keeps no offset, so values are written as UTC and tagged with
    UTC again when read.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return as_utc(value)

    def process_result_value(self, value, dialect):
        return as_utc(value)


class UserRole(str, Enum):
    famille = "famille"
    enseignant = "enseignant"
    administrator = "administrator"


class MissionStatus(str, Enum):
    active = "active"
    completed = "completed"
    stopped = "stopped"
    paused = "paused"


class CourseStatus(str, Enum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class ReportStatus(str, Enum):
    pending = "pending"
    submitted = "submitted"
    validated = "validated"
    rejected = "rejected"


class OfferStatus(str, Enum):
    draft = "draft"
    open = "open"
    closed = "closed"
    filled = "filled"


class OptionStatus(str, Enum):
    active = "active"
    accepted = "accepted"
    expired = "expired"
    cancelled = "cancelled"


class PaymentStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


class PaymentType(str, Enum):
    course = "course"
    mission = "mission"
    advance = "advance"
    refund = "refund"


class ResourceType(str, Enum):
    document = "document"
    video = "video"
    audio = "audio"
    image = "image"
    link = "link"


class AuditedModel(SQLModel):
    """Creation/update timestamps plus the soft-delete marker."""
    created_at: datetime = Field(default_factory=utcnow, sa_type=UtcDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UtcDateTime)
    deleted_at: Optional[datetime] = Field(default=None, index=True, sa_type=UtcDateTime)

    def touch(self, now: Optional[datetime] = None):
        self.updated_at = now or utcnow()

    def soft_delete(self, now: Optional[datetime] = None):
        self.deleted_at = now or utcnow()


class TimestampedModel(AuditedModel):
    id: Optional[int] = Field(default=None, primary_key=True)


class User(TimestampedModel, table=True):
    """A registered account.

    `role` is fixed at creation and selects the single `Profile` variant
    stored for the user.
    """
    __tablename__ = "users"

    username: str = Field(index=True, unique=True, nullable=False)
    email: str = Field(index=True, unique=True, nullable=False)
    password_hash: str
    phone_number: str = ""
    role: UserRole = Field(index=True)
    is_active: bool = True


class Profile(AuditedModel, table=True):
    """Role-specific data keyed by the owning user id.

    One table holds all three variants; `role` mirrors `User.role` and
    decides which columns are meaningful (`family_name` for a famille,
    `specialization`/`qualifications` for an enseignant, none for an
    administrator).
    """
    __tablename__ = "profiles"

    user_id: int = Field(foreign_key="users.id", primary_key=True)
    role: UserRole
    family_name: str = ""
    specialization: str = ""
    qualifications: str = ""


class Address(TimestampedModel, table=True):
    __tablename__ = "addresses"

    street: str
    city: str
    postal_code: str
    country: str
    latitude: float = 0.0
    longitude: float = 0.0
    user_id: int = Field(foreign_key="users.id", index=True)


class Mission(TimestampedModel, table=True):
    """A teaching engagement between one famille and one enseignant."""
    __tablename__ = "missions"

    start_date: datetime = Field(sa_type=UtcDateTime)
    end_date: Optional[datetime] = Field(default=None, sa_type=UtcDateTime)
    status: MissionStatus = Field(default=MissionStatus.active, index=True)
    description: str = ""
    famille_id: int = Field(foreign_key="users.id", index=True)
    enseignant_id: int = Field(foreign_key="users.id", index=True)

    def stop(self, now: Optional[datetime] = None):
        self.status = MissionStatus.stopped
        self.end_date = now or utcnow()

    def extend(self, end_date: datetime):
        # no check against start_date
        self.end_date = end_date
        self.status = MissionStatus.active

    def pause(self):
        self.status = MissionStatus.paused

    def complete(self):
        self.status = MissionStatus.completed


class Course(TimestampedModel, table=True):
    """A single session of a mission.

    `famille_id` and `enseignant_id` are copied from the parent mission
    when the course is created and are not editable afterwards.
    """
    __tablename__ = "courses"

    scheduled_time: datetime = Field(sa_type=UtcDateTime)
    duration: int
    location: str = ""
    status: CourseStatus = Field(default=CourseStatus.scheduled, index=True)
    mission_id: int = Field(foreign_key="missions.id", index=True)
    famille_id: int = Field(foreign_key="users.id", index=True)
    enseignant_id: int = Field(foreign_key="users.id", index=True)
    address_id: Optional[int] = Field(default=None, foreign_key="addresses.id")

    def schedule(self):
        self.status = CourseStatus.scheduled

    def cancel(self):
        self.status = CourseStatus.cancelled

    def complete(self):
        self.status = CourseStatus.completed

    def declare(self, hours: float):
        # declared hours are not stored anywhere yet
        self.status = CourseStatus.in_progress


class Report(TimestampedModel, table=True):
    __tablename__ = "reports"

    submission_date: Optional[datetime] = Field(default=None, sa_type=UtcDateTime)
    content: str
    status: ReportStatus = Field(default=ReportStatus.pending, index=True)
    validation_date: Optional[datetime] = Field(default=None, sa_type=UtcDateTime)
    comments: str = ""
    enseignant_id: int = Field(foreign_key="users.id", index=True)
    mission_id: int = Field(foreign_key="missions.id", index=True)
    validated_by_id: Optional[int] = Field(default=None, foreign_key="users.id")

    def submit(self, now: Optional[datetime] = None):
        self.status = ReportStatus.submitted
        self.submission_date = now or utcnow()

    def validate_by(self, admin_id: int, now: Optional[datetime] = None):
        self.status = ReportStatus.validated
        self.validated_by_id = admin_id
        self.validation_date = now or utcnow()

    def reject_by(self, admin_id: int, now: Optional[datetime] = None):
        self.status = ReportStatus.rejected
        self.validated_by_id = admin_id
        self.validation_date = now or utcnow()


class EnseignantOffer(SQLModel, table=True):
    """Application of an enseignant to an offer."""
    __tablename__ = "enseignant_offers"

    enseignant_id: int = Field(foreign_key="users.id", primary_key=True)
    offer_id: int = Field(foreign_key="offers.id", primary_key=True)
    cover_letter: str = ""
    availability: str = ""
    applied_at: datetime = Field(default_factory=utcnow, sa_type=UtcDateTime)


class Offer(TimestampedModel, table=True):
    __tablename__ = "offers"

    title: str
    description: str = ""
    hourly_rate: float = 0.0
    publication_date: Optional[datetime] = Field(default=None, sa_type=UtcDateTime)
    status: OfferStatus = Field(default=OfferStatus.draft, index=True)
    requirements: str = ""
    subject: str = Field(default="", index=True)
    level: str = Field(default="", index=True)
    created_by_id: int = Field(foreign_key="users.id", index=True)

    def publish(self, now: Optional[datetime] = None):
        self.status = OfferStatus.open
        self.publication_date = now or utcnow()

    def close(self):
        # applied whatever the current status is
        self.status = OfferStatus.closed

    def fill(self):
        self.status = OfferStatus.filled


class Option(TimestampedModel, table=True):
    """A time-bounded reservation of an enseignant for a famille."""
    __tablename__ = "options"

    creation_date: datetime = Field(default_factory=utcnow, sa_type=UtcDateTime)
    expiration_date: datetime = Field(sa_type=UtcDateTime)
    status: OptionStatus = Field(default=OptionStatus.active, index=True)
    description: str = ""
    enseignant_id: int = Field(foreign_key="users.id", index=True)
    famille_id: int = Field(foreign_key="users.id", index=True)
    offer_id: Optional[int] = Field(default=None, foreign_key="offers.id", index=True)

    def accept(self):
        self.status = OptionStatus.accepted

    def decline(self):
        # there is no dedicated "declined" status
        self.status = OptionStatus.expired

    def cancel(self):
        self.status = OptionStatus.cancelled

    def reject(self):
        self.status = OptionStatus.cancelled

    def expire(self):
        self.status = OptionStatus.expired

    def check_expiration(self, now: Optional[datetime] = None) -> bool:
        """Mark an active option expired once its expiration date passed.

        Returns True when the status changed. Not called by any request
        handler: stale options stay active until expired explicitly.
        """
        now = as_utc(now) or utcnow()
        if self.status == OptionStatus.active and now > as_utc(self.expiration_date):
            self.status = OptionStatus.expired
            return True
        return False


class Payment(TimestampedModel, table=True):
    __tablename__ = "payments"

    amount: float
    payment_date: Optional[datetime] = Field(default=None, sa_type=UtcDateTime)
    status: PaymentStatus = Field(default=PaymentStatus.pending, index=True)
    type: PaymentType
    description: str = ""
    user_id: int = Field(foreign_key="users.id", index=True)
    course_id: Optional[int] = Field(default=None, foreign_key="courses.id", index=True)

    def process(self, now: Optional[datetime] = None):
        # local bookkeeping only, no payment gateway
        self.status = PaymentStatus.completed
        self.payment_date = now or utcnow()

    def fail(self):
        self.status = PaymentStatus.failed

    def refund(self):
        self.status = PaymentStatus.refunded

    def invoice(self, now: Optional[datetime] = None) -> dict:
        issued = now or utcnow()
        return {
            "invoice_number": f"INV-{issued:%Y%m%d}-{self.id}",
            "amount": self.amount,
            "date": self.payment_date,
            "description": self.description,
            "status": self.status,
        }


class UserResource(SQLModel, table=True):
    """Explicit share of a non-public resource with a user."""
    __tablename__ = "user_resources"

    user_id: int = Field(foreign_key="users.id", primary_key=True)
    resource_id: int = Field(foreign_key="resources.id", primary_key=True)


class Resource(TimestampedModel, table=True):
    __tablename__ = "resources"

    title: str
    type: ResourceType
    url: str
    description: str = ""
    file_size: int = 0
    mime_type: str = ""
    upload_date: datetime = Field(default_factory=utcnow, sa_type=UtcDateTime)
    is_public: bool = False
    managed_by_id: int = Field(foreign_key="users.id", index=True)
