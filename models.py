from typing import Optional
from datetime import datetime, timezone
from pydantic import field_serializer
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime, Index


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    # Naive inputs are already taken as UTC
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


# Timestamps are stored as naive UTC; pinned so the column type does not
# follow the ORM default for datetime fields
NAIVE_UTC = DateTime(timezone=False)


class RoomBase(SQLModel):
    name: str
    floor: int = Field(index=True)
    capacity: int
    equipment: Optional[str] = None
    is_active: bool = True


class Room(RoomBase, table=True):
    __tablename__ = "rooms"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_UTC)


class RoomRead(RoomBase):
    id: int


class BookingBase(SQLModel):
    room_id: int = Field(foreign_key="rooms.id")
    user_name: str
    start_time: datetime = Field(sa_type=NAIVE_UTC)
    end_time: datetime = Field(sa_type=NAIVE_UTC)


class Booking(BookingBase, table=True):
    __tablename__ = "bookings"
    __table_args__ = (
        # Overlap checks always filter on room first, then on the interval
        Index("ix_bookings_room_interval", "room_id", "start_time", "end_time"),
        # Ids keep increasing even after the newest booking is deleted
        {"sqlite_autoincrement": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_UTC)


class BookingRead(BookingBase):
    id: int
    created_at: datetime

    @field_serializer("start_time", "end_time", "created_at")
    def serialize_instant(self, value: datetime) -> datetime:
        return as_utc(value)


class BookingDetail(BookingRead):
    """A booking joined with the name and floor of its room."""

    room_name: str
    floor: int


class AdminBookingRead(BookingDetail):
    phase: str


class BookingStats(SQLModel):
    total_bookings: int
    rooms_booked: int
    unique_users: int
