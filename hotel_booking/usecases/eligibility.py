from ..domain.errors import EnrollmentNotFoundError, TicketNotFoundError
from ..domain.repositories import Repositories
from ..domain.services import TicketSnapshot, validate_ticket


async def check_eligibility(repos: Repositories, *, user_id: int) -> TicketSnapshot:
    """
    Ensure the user holds a paid, in-person ticket that includes the hotel.
    Checked in order: enrollment, ticket, payment, ticket type.
    """
    enrollment = await repos.enrollments.find_by_user(user_id)
    if enrollment is None:
        raise EnrollmentNotFoundError("enrollment not found")

    ticket = await repos.tickets.find_by_enrollment(enrollment.id)
    if ticket is None:
        raise TicketNotFoundError("ticket not found")

    snapshot = TicketSnapshot(
        status=ticket.status,
        is_remote=ticket.ticket_type.is_remote,
        includes_hotel=ticket.ticket_type.includes_hotel,
    )
    validate_ticket(snapshot)
    return snapshot
