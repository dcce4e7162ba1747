"""Pydantic request/response schemas used by the API.

Update payloads declare every field optional with a `None` default so
that services can tell a field that was left out (`exclude_unset`) from
one that was explicitly sent.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, EmailStr, Field

from .models import (
    CourseStatus,
    MissionStatus,
    OfferStatus,
    OptionStatus,
    PaymentStatus,
    PaymentType,
    ReportStatus,
    ResourceType,
    UserRole,
    as_utc,
)


# naive input is read as UTC
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# a blank string on an update means "leave unchanged"
Blankable = BeforeValidator(_blank_to_none)


# -- auth / users -----------------------------------------------------------

class RegisterIn(BaseModel):
    """Payload for account registration; profile fields depend on `role`."""
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)
    role: UserRole
    phone_number: str = ""
    family_name: str = ""
    specialization: str = ""
    qualifications: str = ""


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class PasswordChangeIn(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


class ProfileUpdate(BaseModel):
    username: Annotated[Optional[str], Blankable] = Field(default=None, min_length=3, max_length=50)
    email: Annotated[Optional[EmailStr], Blankable] = None
    phone_number: Optional[str] = None


class UserUpdate(ProfileUpdate):
    """Account fields plus the profile fields of the user's role."""
    family_name: Optional[str] = None
    specialization: Optional[str] = None
    qualifications: Optional[str] = None


class EnseignantCreate(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)
    phone_number: str = ""
    specialization: str = ""
    qualifications: str = ""


class FamilleProfileOut(BaseModel):
    role: Literal["famille"] = "famille"
    family_name: str = ""


class EnseignantProfileOut(BaseModel):
    role: Literal["enseignant"] = "enseignant"
    specialization: str = ""
    qualifications: str = ""


class AdministratorProfileOut(BaseModel):
    role: Literal["administrator"] = "administrator"


ProfileOut = Annotated[
    Union[FamilleProfileOut, EnseignantProfileOut, AdministratorProfileOut],
    Field(discriminator="role"),
]


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    phone_number: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime
    profile: Optional[ProfileOut] = None


class TokenOut(BaseModel):
    """Authentication response containing an access token and the user."""
    token: str
    user: UserOut


class RefreshOut(BaseModel):
    token: str


class MessageOut(BaseModel):
    message: str


# -- addresses --------------------------------------------------------------

class AddressCreate(BaseModel):
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = Field(min_length=1)
    latitude: float = 0.0
    longitude: float = 0.0


class AddressUpdate(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class AddressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    street: str
    city: str
    postal_code: str
    country: str
    latitude: float
    longitude: float
    user_id: int
    created_at: datetime
    updated_at: datetime


class GeocodeOut(BaseModel):
    latitude: float
    longitude: float
    message: str


class RouteOut(BaseModel):
    distance: str
    duration: str
    route: List[str]


# -- payments ---------------------------------------------------------------

class PaymentCreate(BaseModel):
    amount: float = Field(ge=0)
    type: PaymentType
    description: str = ""
    course_id: Optional[int] = Field(default=None, gt=0)
    user_id: Optional[int] = Field(default=None, gt=0)


class PaymentUpdate(BaseModel):
    description: Optional[str] = None


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    amount: float
    payment_date: Optional[datetime]
    status: PaymentStatus
    type: PaymentType
    description: str
    user_id: int
    course_id: Optional[int]
    created_at: datetime
    updated_at: datetime


class PaymentStatsOut(BaseModel):
    total_amount: float
    completed_amount: float
    pending_amount: float
    total_count: int
    completed_count: int
    pending_count: int


class InvoiceOut(BaseModel):
    invoice_number: str
    amount: float
    date: Optional[datetime]
    description: str
    status: PaymentStatus


# -- missions / courses / reports ------------------------------------------

class MissionCreate(BaseModel):
    start_date: UtcDatetime
    end_date: Optional[UtcDatetime] = None
    description: str = ""
    enseignant_id: int = Field(gt=0)
    famille_id: Optional[int] = Field(default=None, gt=0)


class MissionUpdate(BaseModel):
    end_date: Optional[UtcDatetime] = None
    description: Optional[str] = None


class MissionExtend(BaseModel):
    end_date: UtcDatetime


class MissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    start_date: datetime
    end_date: Optional[datetime]
    status: MissionStatus
    description: str
    famille_id: int
    enseignant_id: int
    created_at: datetime
    updated_at: datetime


class CourseCreate(BaseModel):
    mission_id: int = Field(gt=0)
    scheduled_time: UtcDatetime
    duration: int = Field(ge=30, le=480)
    location: str = Field(min_length=1)
    address_id: Optional[int] = Field(default=None, gt=0)


class CourseUpdate(BaseModel):
    scheduled_time: Optional[UtcDatetime] = None
    duration: Optional[int] = Field(default=None, ge=30, le=480)
    location: Optional[str] = None
    address_id: Optional[int] = Field(default=None, gt=0)


class CourseDeclare(BaseModel):
    hours: float = Field(gt=0)


class CourseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    scheduled_time: datetime
    duration: int
    location: str
    status: CourseStatus
    mission_id: int
    famille_id: int
    enseignant_id: int
    address_id: Optional[int]
    created_at: datetime
    updated_at: datetime


class CourseDetailOut(CourseOut):
    payments: List[PaymentOut] = []


class ReportCreate(BaseModel):
    mission_id: int = Field(gt=0)
    content: str = Field(min_length=1)


class ReportUpdate(BaseModel):
    content: Optional[str] = None
    comments: Optional[str] = None


class ReportReview(BaseModel):
    comments: Optional[str] = None


class ReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    submission_date: Optional[datetime]
    content: str
    status: ReportStatus
    validation_date: Optional[datetime]
    comments: str
    enseignant_id: int
    mission_id: int
    validated_by_id: Optional[int]
    created_at: datetime
    updated_at: datetime


class MissionDetailOut(MissionOut):
    courses: List[CourseOut] = []
    reports: List[ReportOut] = []


# -- offers / options -------------------------------------------------------

class OfferCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    hourly_rate: float = Field(ge=0)
    requirements: str = ""
    subject: str = Field(min_length=1)
    level: str = Field(min_length=1)


class OfferUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    requirements: Optional[str] = None
    subject: Optional[str] = None
    level: Optional[str] = None


class OfferApply(BaseModel):
    cover_letter: str = ""
    availability: str = ""


class OfferOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    hourly_rate: float
    publication_date: Optional[datetime]
    status: OfferStatus
    requirements: str
    subject: str
    level: str
    created_by_id: int
    created_at: datetime
    updated_at: datetime


class OptionCreate(BaseModel):
    enseignant_id: int = Field(gt=0)
    famille_id: int = Field(gt=0)
    offer_id: Optional[int] = Field(default=None, gt=0)
    expiration_date: Optional[UtcDatetime] = None
    description: str = ""


class OptionUpdate(BaseModel):
    expiration_date: Optional[UtcDatetime] = None
    description: Optional[str] = None


class OptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    creation_date: datetime
    expiration_date: datetime
    status: OptionStatus
    description: str
    enseignant_id: int
    famille_id: int
    offer_id: Optional[int]
    created_at: datetime
    updated_at: datetime


class OfferDetailOut(OfferOut):
    options: List[OptionOut] = []


class ApplicationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    enseignant_id: int
    offer_id: int
    cover_letter: str
    availability: str
    applied_at: datetime


# -- profiles with relations ------------------------------------------------

class FamilleOut(UserOut):
    missions: List[MissionOut] = []
    courses: List[CourseOut] = []
    options: List[OptionOut] = []


class EnseignantOut(UserOut):
    missions: List[MissionOut] = []
    courses: List[CourseOut] = []
    reports: List[ReportOut] = []
    options: List[OptionOut] = []


# -- resources --------------------------------------------------------------

class ResourceCreate(BaseModel):
    title: str = Field(min_length=1)
    type: ResourceType
    url: str = Field(min_length=1)
    description: str = ""
    file_size: int = Field(default=0, ge=0)
    mime_type: str = ""
    is_public: bool = False


class ResourceUpdate(BaseModel):
    title: Optional[str] = None
    type: Optional[ResourceType] = None
    url: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None


class ResourceShare(BaseModel):
    user_ids: List[int] = Field(min_length=1)


class ResourceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    type: ResourceType
    url: str
    description: str
    file_size: int
    mime_type: str
    upload_date: datetime
    is_public: bool
    managed_by_id: int
    created_at: datetime
    updated_at: datetime
