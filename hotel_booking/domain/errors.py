from enum import StrEnum


class FailureKind(StrEnum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    PAYMENT_REQUIRED = "payment_required"
    BAD_REQUEST = "bad_request"


class BookingError(Exception):
    """Base for every failure raised by the booking rules."""

    kind: FailureKind = FailureKind.BAD_REQUEST


class NotFoundError(BookingError):
    kind = FailureKind.NOT_FOUND


class ForbiddenError(BookingError):
    kind = FailureKind.FORBIDDEN


class PaymentRequiredError(BookingError):
    kind = FailureKind.PAYMENT_REQUIRED


class EnrollmentNotFoundError(NotFoundError):
    pass


class TicketNotFoundError(NotFoundError):
    pass


class RoomNotFoundError(NotFoundError):
    pass


class BookingNotFoundError(NotFoundError):
    pass


class TicketNotEligibleError(ForbiddenError):
    pass


class RoomFullError(ForbiddenError):
    pass


class BookingAlreadyExistsError(ForbiddenError):
    pass
