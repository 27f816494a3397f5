from datetime import date, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from salon.database import create_db_engine, get_db, init_db
from salon.main import app
from salon.models.db_models import Category, Client, Employee, OpeningHour, Treatment
from salon.services.opening_hours_service import DAYS

# 2024-01-01 is a Monday, 2023-12-31 a Sunday
MONDAY = date(2024, 1, 1)
SUNDAY = date(2023, 12, 31)


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'salon_test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def salon(session_factory):
    """
    Opening hours Mon-Sat 09:00-17:00, Sunday closed.
    Anna and Bram both do the 30 min haircut; only Anna does the 60 min colour.
    The 'legacy' treatment has no duration, 'retired' is inactive.
    """
    session = session_factory()
    for day in DAYS:
        if day == "sunday":
            session.add(OpeningHour(day=day, closed=True))
        else:
            session.add(OpeningHour(day=day, opening_time=time(9, 0), closing_time=time(17, 0), closed=False))

    other = Category(id=1, name="Other")
    hair = Category(id=2, name="Hair")
    haircut = Treatment(name="Haircut", price=25, duration_in_minutes=30, active=True, category=hair)
    colour = Treatment(name="Colour", price=60, duration_in_minutes=60, active=True, category=hair)
    legacy = Treatment(name="Legacy", price=10, duration_in_minutes=None, active=True, category=other)
    retired = Treatment(name="Retired", price=10, duration_in_minutes=30, active=False, category=other)
    anna = Employee(first_name="Anna", last_name="de Vries", treatments=[haircut, colour, legacy, retired])
    bram = Employee(first_name="Bram", last_name="Jansen", treatments=[haircut])
    session.add_all([other, hair, haircut, colour, legacy, retired, anna, bram])
    session.commit()

    ids = {
        "haircut": haircut.id,
        "colour": colour.id,
        "legacy": legacy.id,
        "retired": retired.id,
        "anna": anna.id,
        "bram": bram.id,
    }
    session.close()
    return ids


@pytest.fixture
def existing_client(session_factory):
    session = session_factory()
    client = Client(name="Original Name", email="returning@example.com", phone="+31600000000")
    session.add(client)
    session.commit()
    client_id = client.id
    session.close()
    return client_id


@pytest.fixture
def api_client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # no lifespan: tables come from the engine fixture
    yield TestClient(app)
    app.dependency_overrides.clear()
