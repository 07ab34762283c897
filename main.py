import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import FastAPI, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

import config
from bookings import BookingEngine, RoomLocks, booking_phase, day_window
from catalog import RoomCatalog
from database import async_session, engine, get_session, init_db
from errors import BookingValidationError, RoomNotFoundError, SlotConflictError, StorageError
from models import AdminBookingRead, BookingRead, BookingStats, RoomRead, as_utc, utcnow
from seed import SAMPLE_ROOMS

config.configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Room Reservation Service")


# Pydantic Schemas for Request/Response
class BookingCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: int = Field(alias="roomId")
    user_name: str = Field(alias="userName")
    start_time: datetime = Field(alias="startTime")
    end_time: datetime = Field(alias="endTime")


class DeleteResult(BaseModel):
    deleted: bool


class HealthStatus(BaseModel):
    status: str
    timestamp: datetime


@app.on_event("startup")
async def on_startup():
    # Locks bind to the running loop, so each application run gets its own set
    app.state.room_locks = RoomLocks()
    await init_db()
    if config.SEED_SAMPLE_ROOMS:
        async with async_session() as session:
            await RoomCatalog(session).seed(SAMPLE_ROOMS)
    logger.info("Database initialized")


@app.on_event("shutdown")
async def on_shutdown():
    await engine.dispose()


def get_catalog(session: AsyncSession = Depends(get_session)) -> RoomCatalog:
    return RoomCatalog(session)


def get_booking_engine(
    request: Request, session: AsyncSession = Depends(get_session)
) -> BookingEngine:
    return BookingEngine(session, request.app.state.room_locks)


# --- Error mapping ---
@app.exception_handler(BookingValidationError)
async def validation_error_handler(request: Request, exc: BookingValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(RoomNotFoundError)
async def room_not_found_handler(request: Request, exc: RoomNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(SlotConflictError)
async def slot_conflict_handler(request: Request, exc: SlotConflictError):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Storage failure"},
    )


@app.get("/api/hello")
async def hello():
    return {"message": "Hello World from Backend!"}


@app.get("/api/health", response_model=HealthStatus)
async def health():
    return HealthStatus(status="OK", timestamp=as_utc(utcnow()))


# --- Rooms ---
@app.get("/api/rooms", response_model=List[RoomRead])
async def list_rooms(catalog: RoomCatalog = Depends(get_catalog)):
    return await catalog.list_active_rooms()


@app.get("/api/rooms/floors", response_model=List[int])
async def list_floors(catalog: RoomCatalog = Depends(get_catalog)):
    return await catalog.list_floors()


@app.get("/api/rooms/floor/{floor}", response_model=List[RoomRead])
async def list_rooms_on_floor(floor: int, catalog: RoomCatalog = Depends(get_catalog)):
    return await catalog.list_rooms_on_floor(floor)


@app.get("/api/rooms/{room_id}", response_model=RoomRead)
async def get_room(room_id: int, catalog: RoomCatalog = Depends(get_catalog)):
    room = await catalog.get_room(room_id)
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return room


@app.get("/api/rooms/{room_id}/bookings", response_model=List[BookingRead])
async def room_bookings(
    room_id: int,
    target_date: Optional[date] = Query(None, alias="date"),
    bookings: BookingEngine = Depends(get_booking_engine),
):
    return await bookings.get_room_bookings(room_id, target_date or utcnow().date())


# --- Bookings ---
@app.post("/api/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    bookings: BookingEngine = Depends(get_booking_engine),
):
    return await bookings.create_booking(
        booking_data.room_id,
        booking_data.user_name,
        booking_data.start_time,
        booking_data.end_time,
    )


# --- Admin ---
@app.get("/api/admin/bookings", response_model=List[AdminBookingRead])
async def list_bookings(bookings: BookingEngine = Depends(get_booking_engine)):
    return _with_phase(await bookings.list_all_active_bookings())


@app.get("/api/admin/bookings/stats", response_model=BookingStats)
async def booking_stats(bookings: BookingEngine = Depends(get_booking_engine)):
    return await bookings.compute_stats()


@app.get("/api/admin/bookings/range", response_model=List[AdminBookingRead])
async def bookings_in_range(
    start: date,
    end: date,
    bookings: BookingEngine = Depends(get_booking_engine),
):
    # Whole calendar days on both ends
    first, _ = day_window(start)
    _, last = day_window(end)
    return _with_phase(await bookings.list_bookings_in_range(first, last))


@app.delete("/api/admin/bookings/{booking_id}", response_model=DeleteResult)
async def delete_booking(booking_id: int, bookings: BookingEngine = Depends(get_booking_engine)):
    return DeleteResult(deleted=await bookings.delete_booking(booking_id))


def _with_phase(details) -> List[AdminBookingRead]:
    now = utcnow()
    return [
        AdminBookingRead(**detail.model_dump(), phase=booking_phase(detail, now))
        for detail in details
    ]


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
