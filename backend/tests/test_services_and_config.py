from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import Session

from eduplatform import models, repositories, schemas
from eduplatform.config import DEFAULT_SECRET, Settings
from eduplatform.database import build_engine, create_db_and_tables
from eduplatform.services import apply_changes


def test_apply_changes_distinguishes_absent_from_zero():
    course = models.Course(
        scheduled_time=datetime(2025, 9, 1, 17), duration=60, location='Domicile',
        mission_id=1, famille_id=2, enseignant_id=3, address_id=4,
    )
    payload = schemas.CourseUpdate(duration=30)
    applied = apply_changes(course, payload.model_dump(exclude_unset=True))
    assert applied == ['duration']
    assert course.location == 'Domicile'
    assert course.address_id == 4


def test_apply_changes_skips_null_and_blank_required_text():
    address = models.Address(street='1 rue A', city='Nice', postal_code='06000', country='France', latitude=43.7, user_id=1)
    changes = {'city': '  ', 'street': None, 'latitude': 0.0, 'country': 'Italia'}
    assert apply_changes(address, changes) == ['latitude', 'country']
    assert address.city == 'Nice'
    assert address.street == '1 rue A'
    assert address.latitude == 0.0


def test_request_datetimes_become_aware_utc():
    payload = schemas.MissionExtend(end_date='2025-06-01T12:00:00+02:00')
    assert payload.end_date == datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc)
    assert payload.end_date.utcoffset() == timedelta(0)
    naive = schemas.MissionExtend(end_date='2025-06-01T12:00:00')
    assert naive.end_date == datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_stored_datetimes_load_back_as_aware_utc(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'dates.db'}")
    create_db_and_tables(engine)
    expires = datetime(2025, 1, 17, 14, 30, tzinfo=timezone(timedelta(hours=2)))
    with Session(engine) as session:
        option = repositories.OptionRepository(session).create(
            models.Option(expiration_date=expires, famille_id=1, enseignant_id=2)
        )
        option_id = option.id
    with Session(engine) as session:
        loaded = repositories.OptionRepository(session).get(option_id)
        assert loaded.expiration_date == datetime(2025, 1, 17, 12, 30, tzinfo=timezone.utc)
        assert loaded.expiration_date.tzinfo is not None
        assert loaded.created_at.tzinfo is not None
        assert loaded.check_expiration(now=datetime(2025, 1, 17, 13, 0, tzinfo=timezone.utc)) is True
        found = repositories.OptionRepository(session).expiring_between(
            datetime(2025, 1, 17, 14, 0, tzinfo=timezone(timedelta(hours=2))),
            datetime(2025, 1, 17, 12, 30, tzinfo=timezone.utc),
        )
        assert [o.id for o in found] == [option_id]
    engine.dispose()


def test_settings_overrides_and_validation():
    s = Settings(JWT_EXPIRE_HOURS=2, API_PREFIX='/api/v2')
    assert s.JWT_EXPIRE_HOURS == 2
    assert s.API_PREFIX == '/api/v2'
    with pytest.raises(TypeError):
        Settings(NOT_A_SETTING=1)
    with pytest.raises(RuntimeError):
        Settings(ENV='prod', JWT_SECRET=DEFAULT_SECRET, ALLOW_INSECURE_JWT=False)
    assert Settings(ENV='prod', JWT_SECRET='a-real-secret').ENV == 'prod'
    with pytest.raises(RuntimeError):
        Settings(JWT_EXPIRE_HOURS=0)


def test_model_transitions_are_unguarded():
    offer = models.Offer(title='t', created_by_id=1)
    offer.close()
    offer.close()
    assert offer.status == models.OfferStatus.closed
    mission = models.Mission(start_date=datetime(2025, 9, 1), famille_id=1, enseignant_id=2)
    mission.extend(datetime(2024, 1, 1))
    assert mission.status == models.MissionStatus.active
    assert mission.end_date == datetime(2024, 1, 1)
    payment = models.Payment(amount=10, type=models.PaymentType.course, user_id=1, id=7)
    payment.process(now=datetime(2025, 3, 4, 10))
    assert payment.invoice(now=datetime(2025, 3, 5))['invoice_number'] == 'INV-20250305-7'
