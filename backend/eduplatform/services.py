"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories and
the authorization gate. Services are intentionally thin: they validate
references between aggregates, apply partial updates and status
transitions, and persist aggregates via repositories. Failures are
raised as `errors.ServiceError` subclasses and rendered by `main.py`.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

import jwt
from passlib.context import CryptContext
from sqlmodel import Session

from . import models, repositories, schemas
from .auth import ensure_admin, ensure_owner_or_admin, is_admin
from .config import Settings
from .errors import (
    ConflictError,
    FeatureNotImplementedError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
    UnauthenticatedError,
)
from .models import UserRole, as_utc, utcnow

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
EXPIRING_WINDOW = timedelta(hours=48)

logger = logging.getLogger("eduplatform.services")

# Text columns that must stay non-empty; a blank value in an update is ignored.
REQUIRED_TEXT_FIELDS = frozenset({
    "username", "email", "street", "city", "postal_code", "country",
    "title", "url", "content", "location",
})

PROFILE_FIELDS = {
    UserRole.famille: ("family_name",),
    UserRole.enseignant: ("specialization", "qualifications"),
    UserRole.administrator: (),
}


def apply_changes(entity, changes: dict) -> List[str]:
    """Copy explicitly sent fields onto `entity`.

    `changes` is a `model_dump(exclude_unset=True)` of an update schema,
    so fields the client left out never appear. A field sent as null
    leaves the column unchanged; so does a blank string for a required
    text column. Any other value, including `0`, `False` and `""` on an
    optional column, is written. Returns the names of applied fields.
    """
    applied = []
    for name, value in changes.items():
        if value is None:
            continue
        if name in REQUIRED_TEXT_FIELDS and isinstance(value, str) and not value.strip():
            continue
        setattr(entity, name, value)
        applied.append(name)
    return applied


def dump(entity, **related) -> dict:
    """Serialize a row without internal columns, adding related lists."""
    data = entity.model_dump(exclude={"deleted_at", "password_hash"})
    data.update(related)
    return data


def profile_out(profile: Optional[models.Profile]) -> Optional[dict]:
    if profile is None:
        return None
    role = UserRole(profile.role)
    out = {"role": role.value}
    for name in PROFILE_FIELDS[role]:
        out[name] = getattr(profile, name)
    return out


class UserService:
    """Accounts and their role-specific profiles."""
    def __init__(self, session: Session):
        self.session = session
        self.users = repositories.UserRepository(session)
        self.profiles = repositories.ProfileRepository(session)

    def describe(self, user: models.User) -> dict:
        return dump(user, profile=profile_out(self.profiles.get(user.id)))

    def describe_many(self, users: Iterable[models.User]) -> List[dict]:
        users = list(users)
        profiles = self.profiles.for_users([u.id for u in users])
        return [dump(u, profile=profile_out(profiles.get(u.id))) for u in users]

    def get_user(self, user_id: int, role: Optional[UserRole] = None) -> models.User:
        """Return the live user, optionally requiring a role, or raise 404."""
        user = self.users.get(user_id)
        if user is None or (role is not None and user.role != role):
            raise NotFoundError(f"{role.value if role else 'user'} not found")
        return user

    def list_users(self, role: Optional[UserRole] = None) -> List[models.User]:
        return self.users.find(role=role)

    def ensure_identity_free(self, username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None):
        if email and self.users.is_taken("email", email, exclude_id):
            raise ConflictError("email already registered")
        if username and self.users.is_taken("username", username, exclude_id):
            raise ConflictError("username already taken")

    def create_account(self, username: str, email: str, password: str, role: UserRole,
                       phone_number: str = "", **profile_fields) -> models.User:
        """Create a user together with the profile variant of `role`."""
        self.ensure_identity_free(username, email)
        user = self.users.create(models.User(
            username=username,
            email=email,
            password_hash=PWD_CTX.hash(password),
            phone_number=phone_number,
            role=role,
        ))
        fields = {name: profile_fields.get(name) or "" for name in PROFILE_FIELDS[role]}
        self.profiles.create(models.Profile(user_id=user.id, role=role, **fields))
        logger.info("user_created id=%s role=%s", user.id, role.value)
        return user

    def update(self, caller: models.User, user_id: int, payload: schemas.ProfileUpdate,
               role: Optional[UserRole] = None) -> models.User:
        """Partially update account fields and the profile of the user's role."""
        user = self.get_user(user_id, role)
        ensure_owner_or_admin(caller, user.id)
        changes = payload.model_dump(exclude_unset=True)
        self.ensure_identity_free(
            (changes.get("username") or "").strip(),
            changes.get("email"),
            exclude_id=user.id,
        )
        account = {k: v for k, v in changes.items() if k in ("username", "email", "phone_number")}
        if apply_changes(user, account):
            self.users.save(user)
        profile_changes = {k: v for k, v in changes.items() if k in PROFILE_FIELDS[UserRole(user.role)]}
        if profile_changes:
            profile = self.profiles.get(user.id)
            if profile is not None and apply_changes(profile, profile_changes):
                self.profiles.save(profile)
        return user

    def delete(self, caller: models.User, user_id: int, role: Optional[UserRole] = None):
        """Soft-delete the profile, then the user.

        The two writes are separate commits; a failure between them
        leaves the user without a profile.
        """
        ensure_admin(caller)
        user = self.get_user(user_id, role)
        profile = self.profiles.get(user.id)
        if profile is not None:
            self.profiles.delete(profile)
        self.users.delete(user)
        logger.info("user_deleted id=%s", user.id)

    def change_password(self, user: models.User, current_password: str, new_password: str):
        if not PWD_CTX.verify(current_password, user.password_hash):
            raise UnauthenticatedError("current password is incorrect")
        user.password_hash = PWD_CTX.hash(new_password)
        self.users.save(user)
        logger.info("password_changed id=%s", user.id)

    def addresses_of(self, caller: models.User, user_id: int) -> List[models.Address]:
        user = self.get_user(user_id)
        ensure_owner_or_admin(caller, user.id)
        return repositories.AddressRepository(self.session).find(user_id=user.id)

    def payments_of(self, caller: models.User, user_id: int) -> List[models.Payment]:
        user = self.get_user(user_id)
        ensure_owner_or_admin(caller, user.id)
        return repositories.PaymentRepository(self.session).find(user_id=user.id)

    def resources_of(self, caller: models.User, user_id: int) -> List[models.Resource]:
        user = self.get_user(user_id)
        ensure_owner_or_admin(caller, user.id)
        return repositories.ResourceRepository(self.session).shared_with(user.id)


class AuthService:
    """Authentication related operations (register, login, token issuing)."""
    def __init__(self, session: Session, settings: Settings):
        self.session = session
        self.settings = settings
        self.accounts = UserService(session)

    def issue_token(self, user: models.User) -> str:
        """Return a signed JWT carrying the user id and role."""
        now = datetime.now(timezone.utc)
        payload = {
            "user_id": user.id,
            "role": UserRole(user.role).value,
            "sub": str(user.id),
            "iss": self.settings.JWT_ISSUER,
            "iat": now,
            "nbf": now,
            "exp": now + timedelta(hours=self.settings.JWT_EXPIRE_HOURS),
        }
        return jwt.encode(payload, self.settings.JWT_SECRET, algorithm=self.settings.JWT_ALGORITHM)

    def register(self, payload: schemas.RegisterIn) -> Tuple[models.User, str]:
        """Create a new account and return it with a fresh token."""
        if payload.role == UserRole.administrator and not self.settings.ALLOW_ADMIN_SIGNUP:
            raise ForbiddenError("administrator registration is disabled")
        user = self.accounts.create_account(
            username=payload.username,
            email=payload.email,
            password=payload.password,
            role=payload.role,
            phone_number=payload.phone_number,
            family_name=payload.family_name,
            specialization=payload.specialization,
            qualifications=payload.qualifications,
        )
        return user, self.issue_token(user)

    def authenticate(self, email: str, password: str) -> Tuple[models.User, str]:
        """Verify credentials and return the user with a signed token."""
        # One lookup by email then verify the supplied password hash.
        user = self.accounts.users.get_by_email(email)
        if not user or not PWD_CTX.verify(password, user.password_hash):
            raise UnauthenticatedError("invalid credentials")
        if not user.is_active:
            raise UnauthenticatedError("account is deactivated")
        logger.info("login id=%s", user.id)
        return user, self.issue_token(user)


class _RoleAccountService:
    """Shared behaviour of the famille and enseignant endpoints."""
    role: UserRole

    def __init__(self, session: Session):
        self.session = session
        self.accounts = UserService(session)
        self.missions = repositories.MissionRepository(session)
        self.courses = repositories.CourseRepository(session)
        self.options = repositories.OptionRepository(session)
        self.payments = repositories.PaymentRepository(session)

    def get_user(self, user_id: int) -> models.User:
        return self.accounts.get_user(user_id, self.role)

    def list(self) -> List[dict]:
        return self.accounts.describe_many(self.accounts.list_users(self.role))

    def update(self, caller: models.User, user_id: int, payload: schemas.UserUpdate) -> dict:
        user = self.accounts.update(caller, user_id, payload, role=self.role)
        return self.accounts.describe(user)

    def delete(self, caller: models.User, user_id: int):
        self.accounts.delete(caller, user_id, role=self.role)

    def payments_of(self, caller: models.User, user_id: int) -> List[models.Payment]:
        user = self.get_user(user_id)
        ensure_owner_or_admin(caller, user.id)
        return self.payments.find(user_id=user.id)

    def _counterparts(self, own_column: str, other_column: str, user_id: int) -> List[dict]:
        """Distinct users on the other side of this user's missions and courses."""
        self.get_user(user_id)
        ids = set(self.missions.distinct_ids(other_column, **{own_column: user_id}))
        ids.update(self.courses.distinct_ids(other_column, **{own_column: user_id}))
        return self.accounts.describe_many(self.accounts.users.list_by_ids(sorted(ids)))


class FamilleService(_RoleAccountService):
    role = UserRole.famille

    def get(self, user_id: int) -> dict:
        user = self.get_user(user_id)
        return dump(
            user,
            profile=profile_out(self.accounts.profiles.get(user.id)),
            missions=self.missions.find(famille_id=user.id),
            courses=self.courses.search(famille_id=user.id),
            options=self.options.find(famille_id=user.id),
        )

    def teachers(self, user_id: int) -> List[dict]:
        return self._counterparts("famille_id", "enseignant_id", user_id)

    def missions_of(self, user_id: int) -> List[models.Mission]:
        return self.missions.find(famille_id=self.get_user(user_id).id)

    def courses_of(self, user_id: int) -> List[models.Course]:
        return self.courses.search(famille_id=self.get_user(user_id).id)

    def options_of(self, user_id: int) -> List[models.Option]:
        return self.options.find(famille_id=self.get_user(user_id).id)

    def review(self, user_id: int):
        self.get_user(user_id)
        raise FeatureNotImplementedError("family reviews are not implemented")


class EnseignantService(_RoleAccountService):
    role = UserRole.enseignant

    def __init__(self, session: Session):
        super().__init__(session)
        self.reports = repositories.ReportRepository(session)
        self.offers = repositories.OfferRepository(session)

    def create(self, caller: models.User, payload: schemas.EnseignantCreate) -> dict:
        ensure_admin(caller)
        user = self.accounts.create_account(role=self.role, **payload.model_dump())
        return self.accounts.describe(user)

    def get(self, user_id: int) -> dict:
        user = self.get_user(user_id)
        return dump(
            user,
            profile=profile_out(self.accounts.profiles.get(user.id)),
            missions=self.missions.find(enseignant_id=user.id),
            courses=self.courses.search(enseignant_id=user.id),
            reports=self.reports.find(enseignant_id=user.id),
            options=self.options.find(enseignant_id=user.id),
        )

    def nearby(self) -> List[dict]:
        # no geolocation yet: every teacher is "nearby"
        return self.list()

    def students(self, user_id: int) -> List[dict]:
        return self._counterparts("enseignant_id", "famille_id", user_id)

    def missions_of(self, user_id: int) -> List[models.Mission]:
        return self.missions.find(enseignant_id=self.get_user(user_id).id)

    def courses_of(self, user_id: int) -> List[models.Course]:
        return self.courses.search(enseignant_id=self.get_user(user_id).id)

    def reports_of(self, user_id: int) -> List[models.Report]:
        return self.reports.find(enseignant_id=self.get_user(user_id).id)

    def options_of(self, user_id: int) -> List[models.Option]:
        return self.options.find(enseignant_id=self.get_user(user_id).id)

    def offers_of(self, user_id: int) -> List[models.Offer]:
        return self.offers.applied_by(self.get_user(user_id).id)


class MissionService:
    """Missions and their transitions."""
    def __init__(self, session: Session):
        self.session = session
        self.accounts = UserService(session)
        self.missions = repositories.MissionRepository(session)
        self.courses = repositories.CourseRepository(session)
        self.reports = repositories.ReportRepository(session)
        self.payments = repositories.PaymentRepository(session)

    def list(self, **filters) -> List[models.Mission]:
        return self.missions.search(**filters)

    def get(self, mission_id: int) -> models.Mission:
        mission = self.missions.get(mission_id)
        if mission is None:
            raise NotFoundError("mission not found")
        return mission

    def detail(self, mission_id: int) -> dict:
        mission = self.get(mission_id)
        return dump(
            mission,
            courses=self.courses.search(mission_id=mission.id),
            reports=self.reports.find(mission_id=mission.id),
        )

    def create(self, caller: models.User, payload: schemas.MissionCreate) -> models.Mission:
        """Create an active mission.

        A famille always creates missions for itself; an administrator
        must name the famille.
        """
        if is_admin(caller):
            if payload.famille_id is None:
                raise InvalidArgumentError("famille_id is required")
            famille_id = payload.famille_id
        elif caller.role == UserRole.famille:
            if payload.famille_id not in (None, caller.id):
                raise ForbiddenError("a famille can only create its own missions")
            famille_id = caller.id
        else:
            raise ForbiddenError("only familles and administrators can create missions")
        self.accounts.get_user(famille_id, UserRole.famille)
        self.accounts.get_user(payload.enseignant_id, UserRole.enseignant)
        mission = self.missions.create(models.Mission(
            start_date=payload.start_date,
            end_date=payload.end_date,
            description=payload.description,
            famille_id=famille_id,
            enseignant_id=payload.enseignant_id,
        ))
        logger.info("mission_created id=%s famille=%s enseignant=%s", mission.id, famille_id, payload.enseignant_id)
        return mission

    def _owned(self, caller: models.User, mission_id: int) -> models.Mission:
        mission = self.get(mission_id)
        ensure_owner_or_admin(caller, mission.famille_id, mission.enseignant_id)
        return mission

    def update(self, caller: models.User, mission_id: int, payload: schemas.MissionUpdate) -> models.Mission:
        mission = self._owned(caller, mission_id)
        apply_changes(mission, payload.model_dump(exclude_unset=True))
        return self.missions.save(mission)

    def delete(self, caller: models.User, mission_id: int):
        mission = self._owned(caller, mission_id)
        self.missions.delete(mission)
        logger.info("mission_deleted id=%s", mission.id)

    def _transition(self, caller, mission_id, action: str, *args) -> models.Mission:
        mission = self._owned(caller, mission_id)
        getattr(mission, action)(*args)
        mission = self.missions.save(mission)
        logger.info("mission_%s id=%s status=%s", action, mission.id, mission.status.value)
        return mission

    def stop(self, caller, mission_id) -> models.Mission:
        return self._transition(caller, mission_id, "stop")

    def extend(self, caller, mission_id, end_date: datetime) -> models.Mission:
        return self._transition(caller, mission_id, "extend", end_date)

    def pause(self, caller, mission_id) -> models.Mission:
        return self._transition(caller, mission_id, "pause")

    def complete(self, caller, mission_id) -> models.Mission:
        return self._transition(caller, mission_id, "complete")

    def courses_of(self, mission_id: int) -> List[models.Course]:
        return self.courses.search(mission_id=self.get(mission_id).id)

    def reports_of(self, mission_id: int) -> List[models.Report]:
        return self.reports.find(mission_id=self.get(mission_id).id)

    def payments_of(self, caller: models.User, mission_id: int) -> List[models.Payment]:
        """Payments attached to any course of the mission."""
        mission = self._owned(caller, mission_id)
        course_ids = self.courses.ids_for_mission(mission.id)
        if not course_ids:
            return []
        return self.payments.for_courses(course_ids)


class CourseService:
    """Courses scheduled under missions."""
    def __init__(self, session: Session):
        self.session = session
        self.courses = repositories.CourseRepository(session)
        self.payments = repositories.PaymentRepository(session)
        self.addresses = repositories.AddressRepository(session)
        self.mission_service = MissionService(session)

    def _with_payments(self, courses: List[models.Course]) -> List[dict]:
        by_course = {c.id: [] for c in courses}
        if by_course:
            for payment in self.payments.for_courses(list(by_course)):
                by_course[payment.course_id].append(payment)
        return [dump(c, payments=by_course[c.id]) for c in courses]

    def list(self, **filters) -> List[dict]:
        return self._with_payments(self.courses.search(**filters))

    def get(self, course_id: int) -> models.Course:
        course = self.courses.get(course_id)
        if course is None:
            raise NotFoundError("course not found")
        return course

    def detail(self, course_id: int) -> dict:
        return self._with_payments([self.get(course_id)])[0]

    def _check_address(self, address_id: Optional[int]):
        if address_id is not None and self.addresses.get(address_id) is None:
            raise NotFoundError("address not found")

    def create(self, caller: models.User, payload: schemas.CourseCreate) -> models.Course:
        """Schedule a course; participants are copied from the mission."""
        mission = self.mission_service.get(payload.mission_id)
        ensure_owner_or_admin(caller, mission.famille_id, mission.enseignant_id)
        self._check_address(payload.address_id)
        course = self.courses.create(models.Course(
            scheduled_time=payload.scheduled_time,
            duration=payload.duration,
            location=payload.location,
            mission_id=mission.id,
            famille_id=mission.famille_id,
            enseignant_id=mission.enseignant_id,
            address_id=payload.address_id,
        ))
        logger.info("course_created id=%s mission=%s", course.id, mission.id)
        return course

    def _owned(self, caller: models.User, course_id: int) -> models.Course:
        course = self.get(course_id)
        ensure_owner_or_admin(caller, course.famille_id, course.enseignant_id)
        return course

    def update(self, caller: models.User, course_id: int, payload: schemas.CourseUpdate) -> models.Course:
        course = self._owned(caller, course_id)
        changes = payload.model_dump(exclude_unset=True)
        self._check_address(changes.get("address_id"))
        apply_changes(course, changes)
        return self.courses.save(course)

    def delete(self, caller: models.User, course_id: int):
        course = self._owned(caller, course_id)
        self.courses.delete(course)
        logger.info("course_deleted id=%s", course.id)

    def _transition(self, caller, course_id, action: str, *args) -> models.Course:
        course = self._owned(caller, course_id)
        getattr(course, action)(*args)
        course = self.courses.save(course)
        logger.info("course_%s id=%s status=%s", action, course.id, course.status.value)
        return course

    def schedule(self, caller, course_id) -> models.Course:
        return self._transition(caller, course_id, "schedule")

    def cancel(self, caller, course_id) -> models.Course:
        return self._transition(caller, course_id, "cancel")

    def complete(self, caller, course_id) -> models.Course:
        return self._transition(caller, course_id, "complete")

    def declare(self, caller, course_id, hours: float) -> models.Course:
        return self._transition(caller, course_id, "declare", hours)

    def payments_of(self, course_id: int) -> List[models.Payment]:
        return self.payments.find(course_id=self.get(course_id).id)


class ReportService:
    """Teacher reports on missions and their review by administrators."""
    def __init__(self, session: Session):
        self.session = session
        self.reports = repositories.ReportRepository(session)
        self.mission_service = MissionService(session)

    def list(self, **filters) -> List[models.Report]:
        return self.reports.find(**filters)

    def get(self, report_id: int) -> models.Report:
        report = self.reports.get(report_id)
        if report is None:
            raise NotFoundError("report not found")
        return report

    def create(self, caller: models.User, payload: schemas.ReportCreate) -> models.Report:
        mission = self.mission_service.get(payload.mission_id)
        if not is_admin(caller) and caller.id != mission.enseignant_id:
            raise ForbiddenError("only the mission's enseignant can write reports")
        report = self.reports.create(models.Report(
            content=payload.content,
            mission_id=mission.id,
            enseignant_id=mission.enseignant_id,
        ))
        logger.info("report_created id=%s mission=%s", report.id, mission.id)
        return report

    def _owned(self, caller: models.User, report_id: int) -> models.Report:
        report = self.get(report_id)
        ensure_owner_or_admin(caller, report.enseignant_id)
        return report

    def update(self, caller: models.User, report_id: int, payload: schemas.ReportUpdate) -> models.Report:
        report = self._owned(caller, report_id)
        apply_changes(report, payload.model_dump(exclude_unset=True))
        return self.reports.save(report)

    def delete(self, caller: models.User, report_id: int):
        report = self._owned(caller, report_id)
        self.reports.delete(report)
        logger.info("report_deleted id=%s", report.id)

    def submit(self, caller: models.User, report_id: int) -> models.Report:
        report = self._owned(caller, report_id)
        report.submit()
        report = self.reports.save(report)
        logger.info("report_submitted id=%s", report.id)
        return report

    def _review(self, admin: models.User, report_id: int, action: str, comments: Optional[str]) -> models.Report:
        ensure_admin(admin)
        report = self.get(report_id)
        getattr(report, action)(admin.id)
        if comments is not None:
            report.comments = comments
        report = self.reports.save(report)
        logger.info("report_reviewed id=%s status=%s by=%s", report.id, report.status.value, admin.id)
        return report

    def validate(self, admin: models.User, report_id: int, comments: Optional[str] = None) -> models.Report:
        return self._review(admin, report_id, "validate_by", comments)

    def reject(self, admin: models.User, report_id: int, comments: Optional[str] = None) -> models.Report:
        return self._review(admin, report_id, "reject_by", comments)


class OfferService:
    """Job offers published by administrators and teacher applications."""
    def __init__(self, session: Session):
        self.session = session
        self.offers = repositories.OfferRepository(session)
        self.options = repositories.OptionRepository(session)

    def list(self, **filters) -> List[models.Offer]:
        return self.offers.search(**filters)

    def active(self) -> List[models.Offer]:
        return self.offers.search(status=models.OfferStatus.open)

    def get(self, offer_id: int) -> models.Offer:
        offer = self.offers.get(offer_id)
        if offer is None:
            raise NotFoundError("offer not found")
        return offer

    def detail(self, offer_id: int) -> dict:
        offer = self.get(offer_id)
        return dump(offer, options=self.options.find(offer_id=offer.id))

    def create(self, admin: models.User, payload: schemas.OfferCreate) -> models.Offer:
        ensure_admin(admin)
        offer = self.offers.create(models.Offer(**payload.model_dump(), created_by_id=admin.id))
        logger.info("offer_created id=%s", offer.id)
        return offer

    def update(self, admin: models.User, offer_id: int, payload: schemas.OfferUpdate) -> models.Offer:
        ensure_admin(admin)
        offer = self.get(offer_id)
        apply_changes(offer, payload.model_dump(exclude_unset=True))
        return self.offers.save(offer)

    def delete(self, admin: models.User, offer_id: int):
        ensure_admin(admin)
        offer = self.get(offer_id)
        self.offers.delete(offer)
        logger.info("offer_deleted id=%s", offer.id)

    def _transition(self, admin, offer_id, action: str) -> models.Offer:
        ensure_admin(admin)
        offer = self.get(offer_id)
        getattr(offer, action)()
        offer = self.offers.save(offer)
        logger.info("offer_%s id=%s status=%s", action, offer.id, offer.status.value)
        return offer

    def publish(self, admin, offer_id) -> models.Offer:
        return self._transition(admin, offer_id, "publish")

    def close(self, admin, offer_id) -> models.Offer:
        return self._transition(admin, offer_id, "close")

    def fill(self, admin, offer_id) -> models.Offer:
        return self._transition(admin, offer_id, "fill")

    def apply(self, caller: models.User, offer_id: int, payload: schemas.OfferApply) -> models.EnseignantOffer:
        """Record an application; applying twice returns the first one."""
        if caller.role != UserRole.enseignant:
            raise ForbiddenError("only enseignants can apply to offers")
        offer = self.get(offer_id)
        existing = self.offers.get_application(offer.id, caller.id)
        if existing is not None:
            return existing
        application = self.offers.add_application(models.EnseignantOffer(
            enseignant_id=caller.id,
            offer_id=offer.id,
            cover_letter=payload.cover_letter,
            availability=payload.availability,
        ))
        logger.info("offer_applied offer=%s enseignant=%s", offer.id, caller.id)
        return application

    def applicants(self, offer_id: int) -> List[models.EnseignantOffer]:
        return self.offers.applications(self.get(offer_id).id)

    def options_of(self, offer_id: int) -> List[models.Option]:
        return self.options.find(offer_id=self.get(offer_id).id)


class OptionService:
    """Time-bounded reservations of a teacher by a family."""
    def __init__(self, session: Session):
        self.session = session
        self.options = repositories.OptionRepository(session)
        self.accounts = UserService(session)
        self.offer_service = OfferService(session)

    def list(self, **filters) -> List[models.Option]:
        return self.options.find(**filters)

    def pending(self) -> List[models.Option]:
        return self.options.find(status=models.OptionStatus.active)

    def expiring(self, now: Optional[datetime] = None) -> List[models.Option]:
        """Options expiring within the next 48 hours; statuses are untouched."""
        now = as_utc(now) or utcnow()
        return self.options.expiring_between(now, now + EXPIRING_WINDOW)

    def get(self, option_id: int) -> models.Option:
        option = self.options.get(option_id)
        if option is None:
            raise NotFoundError("option not found")
        return option

    @staticmethod
    def _check_window(creation_date: datetime, expiration_date: datetime):
        if as_utc(expiration_date) < as_utc(creation_date):
            raise InvalidArgumentError("expiration_date must not be earlier than creation_date")

    def create(self, caller: models.User, payload: schemas.OptionCreate) -> models.Option:
        ensure_owner_or_admin(caller, payload.famille_id, payload.enseignant_id)
        self.accounts.get_user(payload.famille_id, UserRole.famille)
        self.accounts.get_user(payload.enseignant_id, UserRole.enseignant)
        if payload.offer_id is not None:
            self.offer_service.get(payload.offer_id)
        now = utcnow()
        expiration = payload.expiration_date or now + models.OPTION_DEFAULT_TTL
        self._check_window(now, expiration)
        option = self.options.create(models.Option(
            creation_date=now,
            expiration_date=expiration,
            description=payload.description,
            famille_id=payload.famille_id,
            enseignant_id=payload.enseignant_id,
            offer_id=payload.offer_id,
        ))
        logger.info("option_created id=%s expires=%s", option.id, option.expiration_date.isoformat())
        return option

    def _owned(self, caller: models.User, option_id: int) -> models.Option:
        option = self.get(option_id)
        ensure_owner_or_admin(caller, option.famille_id, option.enseignant_id)
        return option

    def update(self, caller: models.User, option_id: int, payload: schemas.OptionUpdate) -> models.Option:
        option = self._owned(caller, option_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("expiration_date") is not None:
            self._check_window(option.creation_date, changes["expiration_date"])
        apply_changes(option, changes)
        return self.options.save(option)

    def delete(self, caller: models.User, option_id: int):
        option = self._owned(caller, option_id)
        self.options.delete(option)
        logger.info("option_deleted id=%s", option.id)

    def _transition(self, caller, option_id, action: str) -> models.Option:
        option = self._owned(caller, option_id)
        getattr(option, action)()
        option = self.options.save(option)
        logger.info("option_%s id=%s status=%s", action, option.id, option.status.value)
        return option

    def accept(self, caller, option_id) -> models.Option:
        return self._transition(caller, option_id, "accept")

    def decline(self, caller, option_id) -> models.Option:
        return self._transition(caller, option_id, "decline")

    def cancel(self, caller, option_id) -> models.Option:
        return self._transition(caller, option_id, "cancel")

    def reject(self, caller, option_id) -> models.Option:
        return self._transition(caller, option_id, "reject")

    def expire(self, caller, option_id) -> models.Option:
        return self._transition(caller, option_id, "expire")


class PaymentService:
    """Local payment bookkeeping; nothing is sent to a payment provider."""
    def __init__(self, session: Session):
        self.session = session
        self.payments = repositories.PaymentRepository(session)
        self.accounts = UserService(session)
        self.course_service = CourseService(session)

    def list(self, caller: models.User, **filters) -> List[models.Payment]:
        if not is_admin(caller):
            if filters.get("user_id") not in (None, caller.id):
                raise ForbiddenError("not allowed to list other users' payments")
            filters["user_id"] = caller.id
        return self.payments.search(**filters)

    def stats(self, caller: models.User) -> dict:
        totals = self.payments.totals_by_status(None if is_admin(caller) else caller.id)
        completed = totals.get(models.PaymentStatus.completed, (0, 0.0))
        pending = totals.get(models.PaymentStatus.pending, (0, 0.0))
        return {
            "total_amount": sum(amount for _, amount in totals.values()),
            "completed_amount": completed[1],
            "pending_amount": pending[1],
            "total_count": sum(count for count, _ in totals.values()),
            "completed_count": completed[0],
            "pending_count": pending[0],
        }

    def get(self, caller: models.User, payment_id: int) -> models.Payment:
        payment = self.payments.get(payment_id)
        if payment is None:
            raise NotFoundError("payment not found")
        ensure_owner_or_admin(caller, payment.user_id)
        return payment

    def create(self, caller: models.User, payload: schemas.PaymentCreate) -> models.Payment:
        user_id = payload.user_id or caller.id
        ensure_owner_or_admin(caller, user_id)
        self.accounts.get_user(user_id)
        if payload.course_id is not None:
            self.course_service.get(payload.course_id)
        payment = self.payments.create(models.Payment(
            amount=payload.amount,
            type=payload.type,
            description=payload.description,
            user_id=user_id,
            course_id=payload.course_id,
        ))
        logger.info("payment_created id=%s user=%s amount=%.2f", payment.id, user_id, payment.amount)
        return payment

    def update(self, caller: models.User, payment_id: int, payload: schemas.PaymentUpdate) -> models.Payment:
        payment = self.get(caller, payment_id)
        apply_changes(payment, payload.model_dump(exclude_unset=True))
        return self.payments.save(payment)

    def delete(self, caller: models.User, payment_id: int):
        payment = self.get(caller, payment_id)
        self.payments.delete(payment)
        logger.info("payment_deleted id=%s", payment.id)

    def _transition(self, caller, payment_id, action: str) -> models.Payment:
        payment = self.get(caller, payment_id)
        getattr(payment, action)()
        payment = self.payments.save(payment)
        logger.info("payment_%s id=%s status=%s", action, payment.id, payment.status.value)
        return payment

    def process(self, caller, payment_id) -> models.Payment:
        return self._transition(caller, payment_id, "process")

    def fail(self, caller, payment_id) -> models.Payment:
        return self._transition(caller, payment_id, "fail")

    def refund(self, caller, payment_id) -> models.Payment:
        ensure_admin(caller)
        return self._transition(caller, payment_id, "refund")

    def invoice(self, caller: models.User, payment_id: int) -> dict:
        return self.get(caller, payment_id).invoice()


class AddressService:
    def __init__(self, session: Session):
        self.session = session
        self.addresses = repositories.AddressRepository(session)

    def list(self, caller: models.User) -> List[models.Address]:
        return self.addresses.find(user_id=None if is_admin(caller) else caller.id)

    def get(self, caller: models.User, address_id: int) -> models.Address:
        address = self.addresses.get(address_id)
        if address is None:
            raise NotFoundError("address not found")
        ensure_owner_or_admin(caller, address.user_id)
        return address

    def create(self, caller: models.User, payload: schemas.AddressCreate) -> models.Address:
        address = self.addresses.create(models.Address(**payload.model_dump(), user_id=caller.id))
        logger.info("address_created id=%s user=%s", address.id, caller.id)
        return address

    def update(self, caller: models.User, address_id: int, payload: schemas.AddressUpdate) -> models.Address:
        address = self.get(caller, address_id)
        apply_changes(address, payload.model_dump(exclude_unset=True))
        return self.addresses.save(address)

    def delete(self, caller: models.User, address_id: int):
        address = self.get(caller, address_id)
        self.addresses.delete(address)
        logger.info("address_deleted id=%s", address.id)

    def geocode(self, query: str) -> dict:
        # no geocoding provider is wired in
        return {
            "latitude": 0.0,
            "longitude": 0.0,
            "message": f"geocoding is not available, placeholder coordinates for {query!r}",
        }

    def route(self, caller: models.User, origin_id: int, destination_id: int) -> dict:
        origin = self.get(caller, origin_id)
        destination = self.get(caller, destination_id)
        return {
            "distance": "0 km",
            "duration": "0 min",
            "route": [
                f"{origin.street}, {origin.city}",
                f"{destination.street}, {destination.city}",
            ],
        }


class ResourceService:
    """Teaching resources managed by administrators."""
    def __init__(self, session: Session):
        self.session = session
        self.resources = repositories.ResourceRepository(session)
        self.accounts = UserService(session)

    def list(self, caller: models.User, type=None, is_public=None) -> List[models.Resource]:
        visible_to = None if is_admin(caller) else caller.id
        return self.resources.search(type=type, is_public=is_public, visible_to=visible_to)

    def _get(self, resource_id: int) -> models.Resource:
        resource = self.resources.get(resource_id)
        if resource is None:
            raise NotFoundError("resource not found")
        return resource

    def get(self, caller: models.User, resource_id: int) -> models.Resource:
        """Return a resource that is public, shared with the caller, or any for admins."""
        resource = self._get(resource_id)
        if is_admin(caller) or resource.is_public or self.resources.is_shared(resource.id, caller.id):
            return resource
        raise ForbiddenError("resource is not shared with you")

    def create(self, admin: models.User, payload: schemas.ResourceCreate) -> models.Resource:
        ensure_admin(admin)
        resource = self.resources.create(models.Resource(
            **payload.model_dump(),
            managed_by_id=admin.id,
            upload_date=utcnow(),
        ))
        logger.info("resource_created id=%s", resource.id)
        return resource

    def update(self, admin: models.User, resource_id: int, payload: schemas.ResourceUpdate) -> models.Resource:
        ensure_admin(admin)
        resource = self._get(resource_id)
        apply_changes(resource, payload.model_dump(exclude_unset=True))
        return self.resources.save(resource)

    def delete(self, admin: models.User, resource_id: int):
        ensure_admin(admin)
        resource = self._get(resource_id)
        self.resources.delete(resource)
        logger.info("resource_deleted id=%s", resource.id)

    def share(self, admin: models.User, resource_id: int, user_ids: List[int]) -> models.Resource:
        ensure_admin(admin)
        resource = self._get(resource_id)
        for user_id in user_ids:
            self.accounts.get_user(user_id)
        self.resources.share(resource.id, user_ids)
        logger.info("resource_shared id=%s users=%s", resource.id, sorted(set(user_ids)))
        return resource

    def unshare(self, admin: models.User, resource_id: int, user_id: int):
        ensure_admin(admin)
        resource = self._get(resource_id)
        if not self.resources.unshare(resource.id, user_id):
            raise NotFoundError("resource is not shared with this user")
        logger.info("resource_unshared id=%s user=%s", resource.id, user_id)
