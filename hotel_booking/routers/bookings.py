import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_user_id, get_session
from ..domain.errors import BookingError, FailureKind
from ..infrastructure.repositories import build_repositories
from ..schemas import BookingCreate, BookingIdRead, BookingRead, BookingUpdate
from ..usecases import bookings as booking_usecase
from ..utils.audit_log import emit_audit_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/booking", tags=["booking"], dependencies=[Depends(get_current_user_id)])

_STATUS_BY_KIND = {
    FailureKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    FailureKind.PAYMENT_REQUIRED: status.HTTP_402_PAYMENT_REQUIRED,
}


def status_for_failure(exc: BookingError, *, fallback: int = status.HTTP_400_BAD_REQUEST) -> int:
    """Unknown kinds fall back to a generic client error."""
    return _STATUS_BY_KIND.get(exc.kind, fallback)


def _rejected(
    exc: BookingError,
    *,
    operation: str,
    user_id: int,
    fallback: int = status.HTTP_400_BAD_REQUEST,
) -> HTTPException:
    logger.info("booking %s rejected for user %s: %s (%s)", operation, user_id, exc, exc.kind)
    return HTTPException(status_code=status_for_failure(exc, fallback=fallback), detail=str(exc))


def _audit_failed() -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to record booking change")


@router.get("", response_model=BookingRead)
async def get_booking(
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> BookingRead:
    repos = build_repositories(session)
    try:
        booking, room = await booking_usecase.get_booking(repos, user_id=user_id)
    except BookingError as exc:
        raise _rejected(exc, operation="get", user_id=user_id, fallback=status.HTTP_402_PAYMENT_REQUIRED) from exc
    return BookingRead.from_db(booking=booking, room=room)


@router.post("", response_model=BookingIdRead)
async def create_booking(
    payload: BookingCreate,
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> BookingIdRead:
    repos = build_repositories(session)
    try:
        async with session.begin():
            booking_id = await booking_usecase.create_booking(repos, user_id=user_id, room_id=payload.room_id)
    except BookingError as exc:
        raise _rejected(exc, operation="create", user_id=user_id) from exc
    except IntegrityError as exc:
        # Lost a race against another create for the same user.
        logger.info("booking create rejected for user %s: duplicate booking row (%s)", user_id, FailureKind.FORBIDDEN)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="user already holds a booking") from exc

    try:
        emit_audit_log(action="booking.created", booking_id=booking_id, user_id=user_id, room_id=payload.room_id)
    except RuntimeError as exc:
        raise _audit_failed() from exc
    return BookingIdRead(booking_id=booking_id)


@router.put("/{booking_id}", response_model=BookingIdRead)
async def update_booking(
    payload: BookingUpdate,
    booking_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> BookingIdRead:
    repos = build_repositories(session)
    try:
        async with session.begin():
            updated_id = await booking_usecase.update_booking(
                repos,
                user_id=user_id,
                room_id=payload.room_id,
                booking_id=booking_id,
            )
    except BookingError as exc:
        raise _rejected(exc, operation="update", user_id=user_id) from exc

    try:
        emit_audit_log(
            action="booking.room_changed",
            booking_id=updated_id,
            user_id=user_id,
            room_id=payload.room_id,
        )
    except RuntimeError as exc:
        raise _audit_failed() from exc
    return BookingIdRead(booking_id=updated_id)
