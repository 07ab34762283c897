from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError


class BookingError(Exception):
    """Base class for failures raised by the room catalog and booking engine."""


class BookingValidationError(BookingError):
    """A required input is missing or malformed."""


class SlotConflictError(BookingError):
    """The requested interval overlaps an active booking on the same room."""

    def __init__(self, room_id: int):
        super().__init__("Room is not available for the selected time slot")
        self.room_id = room_id


class RoomNotFoundError(BookingError):
    def __init__(self, room_id: int):
        super().__init__(f"Room {room_id} not found")
        self.room_id = room_id


class StorageError(BookingError):
    """The database failed or is unreachable. Never retried here."""


@contextmanager
def storage_errors(action: str):
    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageError(f"Could not {action}: {exc}") from exc
