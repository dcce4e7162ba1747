"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate. Reads only
ever see live rows (`deleted_at IS NULL`); deletion sets the marker and
keeps the row so foreign keys from older records still resolve.
Repositories return SQLModel objects and perform commits/refreshes.
"""

from datetime import datetime
from typing import Generic, Iterable, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from . import models

T = TypeVar("T", bound=SQLModel)


class Repository(Generic[T]):
    """Shared CRUD helpers for soft-deletable tables keyed by `id`."""
    model: Type[T]

    def __init__(self, session: Session):
        self.session = session

    def _live(self):
        return select(self.model).where(self.model.deleted_at.is_(None))

    def _where_equal(self, stmt, **equals):
        """Add an equality clause for every filter that is not None."""
        for name, value in equals.items():
            if value is not None:
                stmt = stmt.where(getattr(self.model, name) == value)
        return stmt

    def _commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def get(self, entity_id: int) -> Optional[T]:
        """Return the live row with primary key `entity_id` or None."""
        stmt = self._live().where(self.model.id == entity_id)
        return self.session.exec(stmt).first()

    def find(self, **equals) -> List[T]:
        """List live rows matching every non-None equality filter."""
        stmt = self._where_equal(self._live(), **equals).order_by(self.model.id)
        return list(self.session.exec(stmt).all())

    def list_by_ids(self, ids: Iterable[int]) -> List[T]:
        ids = list(ids)
        if not ids:
            return []
        stmt = self._live().where(self.model.id.in_(ids)).order_by(self.model.id)
        return list(self.session.exec(stmt).all())

    def create(self, entity: T) -> T:
        """Persist a new row and return the managed instance."""
        self.session.add(entity)
        self._commit()
        self.session.refresh(entity)
        return entity

    def save(self, entity: T) -> T:
        """Write back a modified row, bumping `updated_at`."""
        entity.touch()
        self.session.add(entity)
        self._commit()
        self.session.refresh(entity)
        return entity

    def delete(self, entity: T) -> None:
        """Soft-delete `entity`."""
        entity.soft_delete()
        self.session.add(entity)
        self._commit()


class UserRepository(Repository[models.User]):
    model = models.User

    def get_by_email(self, email: str) -> Optional[models.User]:
        return self.session.exec(self._live().where(models.User.email == email)).first()

    def is_taken(self, field: str, value: str, exclude_id: Optional[int] = None) -> bool:
        """Return True if any row, deleted ones included, uses `value`.

        Deleted rows are checked too because the unique constraints cover
        them.
        """
        column = getattr(models.User, field)
        stmt = select(models.User.id).where(column == value)
        if exclude_id is not None:
            stmt = stmt.where(models.User.id != exclude_id)
        return self.session.exec(stmt).first() is not None


class ProfileRepository(Repository[models.Profile]):
    model = models.Profile

    def get(self, user_id: int) -> Optional[models.Profile]:
        stmt = self._live().where(models.Profile.user_id == user_id)
        return self.session.exec(stmt).first()

    def for_users(self, user_ids: Sequence[int]) -> dict:
        """Map user id to live profile for the given users."""
        if not user_ids:
            return {}
        stmt = self._live().where(models.Profile.user_id.in_(list(user_ids)))
        return {p.user_id: p for p in self.session.exec(stmt).all()}


class AddressRepository(Repository[models.Address]):
    model = models.Address


class MissionRepository(Repository[models.Mission]):
    model = models.Mission

    def search(self, status=None, enseignant_id=None, famille_id=None,
               date_from: Optional[datetime] = None, date_to: Optional[datetime] = None) -> List[models.Mission]:
        stmt = self._where_equal(self._live(), status=status, enseignant_id=enseignant_id, famille_id=famille_id)
        if date_from is not None:
            stmt = stmt.where(models.Mission.start_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(models.Mission.start_date <= date_to)
        return list(self.session.exec(stmt.order_by(models.Mission.id)).all())

    def distinct_ids(self, column: str, **equals) -> List[int]:
        """Distinct values of `column` over live missions matching `equals`."""
        target = getattr(models.Mission, column)
        stmt = select(target).where(models.Mission.deleted_at.is_(None)).distinct()
        for name, value in equals.items():
            stmt = stmt.where(getattr(models.Mission, name) == value)
        return list(self.session.exec(stmt).all())


class CourseRepository(Repository[models.Course]):
    model = models.Course

    def search(self, status=None, enseignant_id=None, famille_id=None, mission_id=None,
               date_from: Optional[datetime] = None, date_to: Optional[datetime] = None) -> List[models.Course]:
        stmt = self._where_equal(
            self._live(), status=status, enseignant_id=enseignant_id,
            famille_id=famille_id, mission_id=mission_id,
        )
        if date_from is not None:
            stmt = stmt.where(models.Course.scheduled_time >= date_from)
        if date_to is not None:
            stmt = stmt.where(models.Course.scheduled_time <= date_to)
        return list(self.session.exec(stmt.order_by(models.Course.scheduled_time, models.Course.id)).all())

    def ids_for_mission(self, mission_id: int) -> List[int]:
        stmt = select(models.Course.id).where(
            models.Course.deleted_at.is_(None),
            models.Course.mission_id == mission_id,
        )
        return list(self.session.exec(stmt).all())

    def distinct_ids(self, column: str, **equals) -> List[int]:
        target = getattr(models.Course, column)
        stmt = select(target).where(models.Course.deleted_at.is_(None)).distinct()
        for name, value in equals.items():
            stmt = stmt.where(getattr(models.Course, name) == value)
        return list(self.session.exec(stmt).all())


class ReportRepository(Repository[models.Report]):
    model = models.Report


class OfferRepository(Repository[models.Offer]):
    model = models.Offer

    def search(self, status=None, subject=None, level=None, min_rate=None, max_rate=None,
               text: Optional[str] = None) -> List[models.Offer]:
        stmt = self._where_equal(self._live(), status=status, subject=subject, level=level)
        if min_rate is not None:
            stmt = stmt.where(models.Offer.hourly_rate >= min_rate)
        if max_rate is not None:
            stmt = stmt.where(models.Offer.hourly_rate <= max_rate)
        if text:
            pattern = f"%{text.lower()}%"
            stmt = stmt.where(or_(
                func.lower(models.Offer.title).like(pattern),
                func.lower(models.Offer.description).like(pattern),
                func.lower(models.Offer.subject).like(pattern),
            ))
        return list(self.session.exec(stmt.order_by(models.Offer.id)).all())

    def get_application(self, offer_id: int, enseignant_id: int) -> Optional[models.EnseignantOffer]:
        return self.session.get(models.EnseignantOffer, (enseignant_id, offer_id))

    def add_application(self, application: models.EnseignantOffer) -> models.EnseignantOffer:
        self.session.add(application)
        self._commit()
        self.session.refresh(application)
        return application

    def applications(self, offer_id: int) -> List[models.EnseignantOffer]:
        stmt = select(models.EnseignantOffer).where(models.EnseignantOffer.offer_id == offer_id)
        return list(self.session.exec(stmt.order_by(models.EnseignantOffer.applied_at)).all())

    def applied_by(self, enseignant_id: int) -> List[models.Offer]:
        stmt = (
            self._live()
            .join(models.EnseignantOffer, models.EnseignantOffer.offer_id == models.Offer.id)
            .where(models.EnseignantOffer.enseignant_id == enseignant_id)
            .order_by(models.Offer.id)
        )
        return list(self.session.exec(stmt).all())


class OptionRepository(Repository[models.Option]):
    model = models.Option

    def expiring_between(self, start: datetime, end: datetime) -> List[models.Option]:
        """Options whose expiration date falls in [start, end], any status."""
        stmt = self._live().where(
            models.Option.expiration_date >= start,
            models.Option.expiration_date <= end,
        )
        return list(self.session.exec(stmt.order_by(models.Option.expiration_date)).all())


class PaymentRepository(Repository[models.Payment]):
    model = models.Payment

    def search(self, status=None, type=None, user_id=None, course_id=None,
               min_amount=None, max_amount=None) -> List[models.Payment]:
        stmt = self._where_equal(self._live(), status=status, type=type, user_id=user_id, course_id=course_id)
        if min_amount is not None:
            stmt = stmt.where(models.Payment.amount >= min_amount)
        if max_amount is not None:
            stmt = stmt.where(models.Payment.amount <= max_amount)
        return list(self.session.exec(stmt.order_by(models.Payment.id)).all())

    def for_courses(self, course_ids: Sequence[int]) -> List[models.Payment]:
        stmt = self._live().where(models.Payment.course_id.in_(list(course_ids)))
        return list(self.session.exec(stmt.order_by(models.Payment.id)).all())

    def totals_by_status(self, user_id: Optional[int] = None) -> dict:
        """Return `{status: (count, amount)}` over live payments."""
        stmt = (
            select(models.Payment.status, func.count(models.Payment.id), func.coalesce(func.sum(models.Payment.amount), 0.0))
            .where(models.Payment.deleted_at.is_(None))
            .group_by(models.Payment.status)
        )
        if user_id is not None:
            stmt = stmt.where(models.Payment.user_id == user_id)
        return {status: (count, float(amount)) for status, count, amount in self.session.exec(stmt).all()}


class ResourceRepository(Repository[models.Resource]):
    model = models.Resource

    def search(self, type=None, is_public=None, visible_to: Optional[int] = None) -> List[models.Resource]:
        """List resources; `visible_to` restricts to public or shared ones."""
        stmt = self._where_equal(self._live(), type=type, is_public=is_public)
        if visible_to is not None:
            shared = select(models.UserResource.resource_id).where(models.UserResource.user_id == visible_to)
            stmt = stmt.where(or_(models.Resource.is_public.is_(True), models.Resource.id.in_(shared)))
        return list(self.session.exec(stmt.order_by(models.Resource.id)).all())

    def shared_with(self, user_id: int) -> List[models.Resource]:
        stmt = (
            self._live()
            .join(models.UserResource, models.UserResource.resource_id == models.Resource.id)
            .where(models.UserResource.user_id == user_id)
            .order_by(models.Resource.id)
        )
        return list(self.session.exec(stmt).all())

    def is_shared(self, resource_id: int, user_id: int) -> bool:
        return self.session.get(models.UserResource, (user_id, resource_id)) is not None

    def share(self, resource_id: int, user_ids: Iterable[int]) -> None:
        for user_id in dict.fromkeys(user_ids):
            if not self.is_shared(resource_id, user_id):
                self.session.add(models.UserResource(user_id=user_id, resource_id=resource_id))
        self._commit()

    def unshare(self, resource_id: int, user_id: int) -> bool:
        link = self.session.get(models.UserResource, (user_id, resource_id))
        if link is None:
            return False
        self.session.delete(link)
        self._commit()
        return True
