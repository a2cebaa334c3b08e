import os
from datetime import datetime, time
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from booking_backend.database import Base  # noqa: E402
from booking_backend.models.appointment import Appointment  # noqa: E402,F401
from booking_backend.models.business import Business  # noqa: E402
from booking_backend.models.professional import Professional, ProfessionalSchedule  # noqa: E402
from booking_backend.models.service import Service  # noqa: E402
from booking_backend.models.time_block import TimeBlock  # noqa: E402,F401

FIXED_NOW = datetime(2026, 1, 5, 8, 0)

WEEKDAY_HOURS = {'open': '09:00', 'close': '18:00', 'closed': False}
BUSINESS_HOURS = {
    'sunday': {'open': '09:00', 'close': '18:00', 'closed': True},
    'monday': WEEKDAY_HOURS,
    'tuesday': WEEKDAY_HOURS,
    'wednesday': WEEKDAY_HOURS,
    'thursday': WEEKDAY_HOURS,
    'friday': WEEKDAY_HOURS,
    'saturday': {'open': '09:00', 'close': '13:00', 'closed': False},
}


def fixed_clock(timezone_name=None) -> datetime:
    return FIXED_NOW


def seed_booking_data(db) -> SimpleNamespace:
    """One business, two professionals and two services, with Ana on a 12:00 to 13:00 break on weekdays."""
    business = Business(
        name='Studio Centro',
        timezone='America/Sao_Paulo',
        business_hours=BUSINESS_HOURS,
        booking_settings={'buffer_minutes': 30},
    )
    db.add(business)
    db.flush()

    haircut = Service(business_id=business.id, name='Haircut', duration_minutes=30, is_active=True)
    coloring = Service(business_id=business.id, name='Coloring', duration_minutes=90, is_active=True)
    db.add_all([haircut, coloring])
    db.flush()

    ana = Professional(business_id=business.id, name='Ana', is_active=True, custom_buffer=False)
    bia = Professional(business_id=business.id, name='Bia', is_active=True, custom_buffer=False)
    bia.services = [haircut]
    db.add_all([ana, bia])
    db.flush()

    for weekday in range(1, 6):
        db.add(
            ProfessionalSchedule(
                professional_id=ana.id,
                day_of_week=weekday,
                start_time=time(9),
                end_time=time(18),
                break_start=time(12),
                break_end=time(13),
                is_active=True,
            )
        )
        db.add(
            ProfessionalSchedule(
                professional_id=bia.id,
                day_of_week=weekday,
                start_time=time(13),
                end_time=time(18),
                is_active=True,
            )
        )

    db.commit()
    return SimpleNamespace(business=business, ana=ana, bia=bia, haircut=haircut, coloring=coloring)


@pytest.fixture
def booking_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def booking_data(booking_db) -> SimpleNamespace:
    return seed_booking_data(booking_db)


@pytest.fixture
def frozen_clock(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr('booking_backend.scheduling.service.local_now', fixed_clock)
    return fixed_clock


@pytest.fixture
def booking_seeder():
    return seed_booking_data
