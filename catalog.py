import logging
from typing import Iterable, List, Mapping, Optional

from sqlmodel import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from errors import BookingValidationError, StorageError, storage_errors
from models import Room

logger = logging.getLogger(__name__)


class RoomCatalog:
    """Read access to room reference data.

    Inactive rooms are hidden from every read here; they stay in the table so
    old bookings can still be joined against them.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_active_rooms(self) -> List[Room]:
        statement = (
            select(Room)
            .where(Room.is_active == True)  # noqa: E712
            .order_by(Room.floor, Room.name)
        )
        with storage_errors("list rooms"):
            result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def list_floors(self) -> List[int]:
        statement = (
            select(Room.floor)
            .where(Room.is_active == True)  # noqa: E712
            .distinct()
            .order_by(Room.floor)
        )
        with storage_errors("list floors"):
            result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def list_rooms_on_floor(self, floor: int) -> List[Room]:
        statement = (
            select(Room)
            .where(Room.floor == floor, Room.is_active == True)  # noqa: E712
            .order_by(Room.name)
        )
        with storage_errors("list rooms on floor"):
            result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def get_room(self, room_id: int) -> Optional[Room]:
        return await self.find_room(room_id)

    async def find_room(
        self, room_id: int, include_inactive: bool = False, for_update: bool = False
    ) -> Optional[Room]:
        statement = select(Room).where(Room.id == room_id)
        if not include_inactive:
            statement = statement.where(Room.is_active == True)  # noqa: E712
        if for_update:
            # Row lock on PostgreSQL; SQLite ignores it
            statement = statement.with_for_update()
        with storage_errors("look up room"):
            result = await self.session.execute(statement)
        return result.scalars().first()

    async def add_room(
        self,
        name: str,
        floor: int,
        capacity: int,
        equipment: Optional[str] = None,
        is_active: bool = True,
    ) -> Room:
        name = (name or "").strip()
        if not name:
            raise BookingValidationError("Room name is required")
        if floor is None or floor < 1:
            raise BookingValidationError("Room floor must be a positive integer")
        if capacity is None or capacity < 1:
            raise BookingValidationError("Room capacity must be a positive integer")

        room = Room(
            name=name,
            floor=floor,
            capacity=capacity,
            equipment=equipment,
            is_active=is_active,
        )
        try:
            self.session.add(room)
            await self.session.commit()
            await self.session.refresh(room)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StorageError(f"Could not add room: {exc}") from exc
        return room

    async def seed(self, rooms: Iterable[Mapping]) -> int:
        with storage_errors("count rooms"):
            result = await self.session.execute(select(func.count()).select_from(Room))
        if result.scalar_one() > 0:
            return 0

        inserted = 0
        try:
            for data in rooms:
                self.session.add(Room(**data))
                inserted += 1
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StorageError(f"Could not seed rooms: {exc}") from exc

        logger.info("Inserted %d sample rooms", inserted)
        return inserted
