import os
import tempfile

# The application modules read DATABASE_URL at import time
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///" + os.path.join(tempfile.mkdtemp(), "rooms.db"),
)

import pytest
from sqlalchemy.pool import NullPool

from bookings import BookingEngine, RoomLocks
from catalog import RoomCatalog
from database import build_engine, build_sessionmaker, init_db


@pytest.fixture
async def db_engine(tmp_path):
    bind = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    await init_db(bind)
    yield bind
    await bind.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_sessionmaker(db_engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def room_locks():
    return RoomLocks()


@pytest.fixture
def catalog(session):
    return RoomCatalog(session)


@pytest.fixture
def booking_engine(session, room_locks):
    return BookingEngine(session, room_locks)


@pytest.fixture
async def room(catalog):
    return await catalog.add_room("Group Study Room 2A", floor=2, capacity=4)


@pytest.fixture
async def other_room(catalog):
    return await catalog.add_room("Group Study Room 2B", floor=2, capacity=4)
