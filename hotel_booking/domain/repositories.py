from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..models import Booking, Enrollment, Room, Ticket


class EnrollmentRepository(Protocol):
    async def find_by_user(self, user_id: int) -> Enrollment | None: ...


class TicketRepository(Protocol):
    async def find_by_enrollment(self, enrollment_id: int) -> Ticket | None: ...


class RoomRepository(Protocol):
    async def get_for_update(self, room_id: int) -> Room | None: ...


class BookingRepository(Protocol):
    async def find_by_user(self, user_id: int) -> tuple[Booking, Room] | None: ...

    async def count_by_room(self, room_id: int) -> int: ...

    async def create(self, *, user_id: int, room_id: int) -> Booking | None: ...

    async def update_room(self, *, booking_id: int, user_id: int, room_id: int) -> Booking | None: ...


@dataclass(frozen=True)
class Repositories:
    enrollments: EnrollmentRepository
    tickets: TicketRepository
    rooms: RoomRepository
    bookings: BookingRepository
