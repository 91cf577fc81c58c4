from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Tuple, cast

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from ..domain.repositories import (
    BookingRepository,
    EnrollmentRepository,
    Repositories,
    RoomRepository,
    TicketRepository,
)
from ..models import Booking, Enrollment, Room, Ticket


def _utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SqlAlchemyEnrollmentRepository(EnrollmentRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_user(self, user_id: int) -> Enrollment | None:
        result = await self.session.scalar(select(Enrollment).where(Enrollment.user_id == user_id))
        return result if isinstance(result, Enrollment) else None


class SqlAlchemyTicketRepository(TicketRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_enrollment(self, enrollment_id: int) -> Ticket | None:
        stmt = (
            select(Ticket)
            .options(joinedload(Ticket.ticket_type))
            .where(Ticket.enrollment_id == enrollment_id)
        )
        result = await self.session.scalar(stmt)
        return result if isinstance(result, Ticket) else None


class SqlAlchemyRoomRepository(RoomRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_for_update(self, room_id: int) -> Room | None:
        # Row lock serializes concurrent count-then-write sequences on the same room.
        result = await self.session.scalar(select(Room).where(Room.id == room_id).with_for_update())
        return result if isinstance(result, Room) else None


class SqlAlchemyBookingRepository(BookingRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_user(self, user_id: int) -> Optional[Tuple[Booking, Room]]:
        stmt: Select[Tuple[Booking, Room]] = (
            select(Booking, Room)
            .join(Room, Booking.room_id == Room.id)
            .where(Booking.user_id == user_id)
        )
        row = (await self.session.execute(stmt)).first()
        return cast(Optional[Tuple[Booking, Room]], row)

    async def count_by_room(self, room_id: int) -> int:
        # Locking read: sees rows committed after the transaction's snapshot was taken.
        stmt = select(func.count(Booking.id)).where(Booking.room_id == room_id).with_for_update()
        return int(await self.session.scalar(stmt) or 0)

    async def create(self, *, user_id: int, room_id: int) -> Booking | None:
        now = _utc_now_naive()
        booking = Booking(
            user_id=user_id,
            room_id=room_id,
            created_at=now,
            updated_at=now,
        )
        self.session.add(booking)
        await self.session.flush()
        return booking if booking.id is not None else None

    async def update_room(self, *, booking_id: int, user_id: int, room_id: int) -> Booking | None:
        stmt = (
            select(Booking)
            .where(Booking.id == booking_id, Booking.user_id == user_id)
            .with_for_update()
        )
        booking = await self.session.scalar(stmt)
        if booking is None:
            return None
        booking.room_id = room_id
        booking.updated_at = _utc_now_naive()
        self.session.add(booking)
        await self.session.flush()
        return booking


def build_repositories(session: AsyncSession) -> Repositories:
    return Repositories(
        enrollments=SqlAlchemyEnrollmentRepository(session),
        tickets=SqlAlchemyTicketRepository(session),
        rooms=SqlAlchemyRoomRepository(session),
        bookings=SqlAlchemyBookingRepository(session),
    )
