from dataclasses import dataclass

from ..models import TicketStatus
from .errors import PaymentRequiredError, RoomFullError, TicketNotEligibleError


@dataclass(frozen=True)
class TicketSnapshot:
    status: TicketStatus
    is_remote: bool
    includes_hotel: bool


@dataclass(frozen=True)
class RoomSnapshot:
    capacity: int
    booked: int


def validate_ticket(snapshot: TicketSnapshot) -> None:
    """
    Pure validation: the ticket must be paid, in-person and include the hotel.
    Payment is checked first so an unpaid ticket reports that before its type.
    """
    if snapshot.status == TicketStatus.RESERVED:
        raise PaymentRequiredError("ticket payment pending")
    if snapshot.is_remote or not snapshot.includes_hotel:
        raise TicketNotEligibleError("ticket type does not include hotel accommodation")


def validate_room_capacity(snapshot: RoomSnapshot) -> int:
    """Return the free places left before this booking. Raises RoomFullError when none."""
    remaining = snapshot.capacity - snapshot.booked
    if remaining <= 0:
        raise RoomFullError("room is at capacity")
    return remaining
