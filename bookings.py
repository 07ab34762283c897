import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, time
from typing import Dict, List, Optional, Tuple, Union

from sqlmodel import select, func
from sqlalchemy import delete, distinct
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from catalog import RoomCatalog
from errors import (
    BookingError,
    BookingValidationError,
    RoomNotFoundError,
    SlotConflictError,
    StorageError,
    storage_errors,
)
from models import Booking, BookingBase, BookingDetail, BookingStats, Room, to_utc_naive, utcnow

logger = logging.getLogger(__name__)

# Display phases, derived from the clock and never stored
UPCOMING = "upcoming"
ACTIVE = "active"
COMPLETED = "completed"


class RoomLocks:
    """Registry of one asyncio.Lock per room id.

    A lock binds to the event loop it first waits on, so keep one registry
    per running application rather than one per process. A lock lives only
    while some caller holds or waits on it.
    """

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}
        self._holders: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, room_id: int):
        lock = self._locks.setdefault(room_id, asyncio.Lock())
        self._holders[room_id] = self._holders.get(room_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[room_id] -= 1
            if not self._holders[room_id]:
                del self._holders[room_id]
                del self._locks[room_id]


def day_window(day: Union[date, datetime]) -> Tuple[datetime, datetime]:
    if isinstance(day, datetime):
        day = to_utc_naive(day).date()
    return datetime.combine(day, time.min), datetime.combine(day, time.max)


def booking_phase(booking: BookingBase, now: Optional[datetime] = None) -> str:
    now = to_utc_naive(now) if now is not None else utcnow()
    if now < to_utc_naive(booking.start_time):
        return UPCOMING
    if now < to_utc_naive(booking.end_time):
        return ACTIVE
    return COMPLETED


class BookingEngine:
    """Creates, queries and removes bookings.

    Every stored booking is active; cancelling deletes the row. For a given
    room no two bookings overlap as half-open ``[start_time, end_time)``
    intervals, so back-to-back bookings are allowed.
    """

    def __init__(self, session: AsyncSession, locks: RoomLocks):
        self.session = session
        self.locks = locks
        self.catalog = RoomCatalog(session)

    async def create_booking(
        self,
        room_id: int,
        user_name: str,
        start_time: datetime,
        end_time: datetime,
    ) -> Booking:
        if room_id is None:
            raise BookingValidationError("room_id is required")
        user_name = (user_name or "").strip()
        if not user_name:
            raise BookingValidationError("user_name is required")
        if start_time is None or end_time is None:
            raise BookingValidationError("start_time and end_time are required")

        start, end = to_utc_naive(start_time), to_utc_naive(end_time)
        if start >= end:
            raise BookingValidationError("start_time must be before end_time")

        # The overlap check and the insert must not interleave with another
        # attempt on the same room.
        async with self.locks.hold(room_id):
            try:
                room = await self.catalog.find_room(
                    room_id, include_inactive=True, for_update=True
                )
                if room is None:
                    raise RoomNotFoundError(room_id)

                if await self._count_overlapping(room_id, start, end) > 0:
                    logger.info(
                        "Rejected booking for room %s (%s - %s): slot taken",
                        room_id, start, end,
                    )
                    raise SlotConflictError(room_id)

                booking = Booking(
                    room_id=room_id,
                    user_name=user_name,
                    start_time=start,
                    end_time=end,
                )
                self.session.add(booking)
                await self.session.commit()
                await self.session.refresh(booking)
            except SQLAlchemyError as exc:
                await self.session.rollback()
                raise StorageError(f"Could not create booking: {exc}") from exc
            except StorageError:
                await self.session.rollback()
                raise
            except BookingError:
                # Nothing was written; commit keeps loaded objects usable and
                # still releases the row lock
                with storage_errors("end booking transaction"):
                    await self.session.commit()
                raise

        logger.info(
            "Booked room %s for %s (%s - %s) as booking %s",
            room_id, user_name, start, end, booking.id,
        )
        return booking

    async def _count_overlapping(self, room_id: int, start: datetime, end: datetime) -> int:
        statement = (
            select(func.count())
            .select_from(Booking)
            .where(
                Booking.room_id == room_id,
                Booking.start_time < end,
                Booking.end_time > start,
            )
        )
        result = await self.session.execute(statement)
        return result.scalar_one()

    async def get_room_bookings(
        self, room_id: int, day: Union[date, datetime]
    ) -> List[Booking]:
        first, last = day_window(day)
        statement = (
            select(Booking)
            .where(
                Booking.room_id == room_id,
                Booking.start_time >= first,
                Booking.start_time <= last,
            )
            .order_by(Booking.start_time)
        )
        with storage_errors("list room bookings"):
            result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def list_all_active_bookings(self) -> List[BookingDetail]:
        return await self._details(self._detail_statement())

    async def list_bookings_in_range(
        self, start_date: datetime, end_date: datetime
    ) -> List[BookingDetail]:
        statement = self._detail_statement().where(
            Booking.start_time >= to_utc_naive(start_date),
            Booking.start_time <= to_utc_naive(end_date),
        )
        return await self._details(statement)

    def _detail_statement(self):
        return (
            select(Booking, Room.name, Room.floor)
            .join(Room, Room.id == Booking.room_id)
            .order_by(Booking.start_time.desc(), Booking.id.desc())
        )

    async def _details(self, statement) -> List[BookingDetail]:
        with storage_errors("list bookings"):
            result = await self.session.execute(statement)
            rows = result.all()
        return [
            BookingDetail(**booking.model_dump(), room_name=room_name, floor=floor)
            for booking, room_name, floor in rows
        ]

    async def delete_booking(self, booking_id: int) -> bool:
        try:
            result = await self.session.execute(
                delete(Booking).where(Booking.id == booking_id)
            )
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StorageError(f"Could not delete booking: {exc}") from exc

        deleted = result.rowcount > 0
        if deleted:
            logger.info("Deleted booking %s", booking_id)
        return deleted

    async def compute_stats(self) -> BookingStats:
        statement = select(
            func.count(Booking.id),
            func.count(distinct(Booking.room_id)),
            func.count(distinct(Booking.user_name)),
        )
        with storage_errors("compute booking stats"):
            result = await self.session.execute(statement)
            total, rooms, users = result.one()
        return BookingStats(total_bookings=total, rooms_booked=rooms, unique_users=users)

    async def clear_all(self) -> int:
        try:
            result = await self.session.execute(delete(Booking))
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StorageError(f"Could not clear bookings: {exc}") from exc
        logger.info("Cleared %d bookings", result.rowcount)
        return result.rowcount
