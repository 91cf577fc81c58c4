import logging

from ..domain.errors import (
    BookingAlreadyExistsError,
    BookingNotFoundError,
    RoomNotFoundError,
)
from ..domain.repositories import Repositories
from ..domain.services import RoomSnapshot, validate_room_capacity
from ..models import Booking, Room
from .eligibility import check_eligibility

logger = logging.getLogger(__name__)


async def get_booking(repos: Repositories, *, user_id: int) -> tuple[Booking, Room]:
    await check_eligibility(repos, user_id=user_id)

    row = await repos.bookings.find_by_user(user_id)
    if row is None:
        raise BookingNotFoundError("booking not found")
    return row


async def create_booking(repos: Repositories, *, user_id: int, room_id: int) -> int:
    await check_eligibility(repos, user_id=user_id)
    await _ensure_room_has_space(repos, room_id=room_id)

    if await repos.bookings.find_by_user(user_id) is not None:
        raise BookingAlreadyExistsError("user already holds a booking")

    booking = await repos.bookings.create(user_id=user_id, room_id=room_id)
    if booking is None:
        raise BookingNotFoundError("booking was not created")
    logger.info("booking %s created for user %s in room %s", booking.id, user_id, room_id)
    return booking.id


async def update_booking(repos: Repositories, *, user_id: int, room_id: int, booking_id: int) -> int:
    await check_eligibility(repos, user_id=user_id)
    # The user's own booking counts towards the target room, even when it is already there.
    await _ensure_room_has_space(repos, room_id=room_id)

    if await repos.bookings.find_by_user(user_id) is None:
        raise BookingNotFoundError("user has no booking to change")

    booking = await repos.bookings.update_room(booking_id=booking_id, user_id=user_id, room_id=room_id)
    if booking is None:
        raise BookingNotFoundError("booking not found")
    logger.info("booking %s moved to room %s for user %s", booking.id, room_id, user_id)
    return booking.id


async def _ensure_room_has_space(repos: Repositories, *, room_id: int) -> Room:
    room = await repos.rooms.get_for_update(room_id)
    if room is None:
        raise RoomNotFoundError("room not found")

    booked = await repos.bookings.count_by_room(room_id)
    validate_room_capacity(RoomSnapshot(capacity=room.capacity, booked=booked))
    return room
