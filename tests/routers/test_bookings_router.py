import logging
from datetime import datetime, timezone
from typing import Any, cast

import pytest
from fastapi import HTTPException
from hotel_booking.domain.errors import (
    BookingAlreadyExistsError,
    BookingError,
    BookingNotFoundError,
    EnrollmentNotFoundError,
    PaymentRequiredError,
    RoomFullError,
    TicketNotEligibleError,
)
from hotel_booking.models import Booking, Room
from hotel_booking.routers import bookings as router
from hotel_booking.schemas import BookingCreate, BookingUpdate
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession


class DummySession:
    """Minimal async session stub that supports `async with session.begin()`."""

    def __init__(self) -> None:
        self.begun = 0

    async def __aenter__(self) -> "DummySession":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> bool:
        return False

    def begin(self) -> "DummySession":
        self.begun += 1
        return self


def _room() -> Room:
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return Room(id=3, hotel_id=1, name="Suite 3", capacity=2, created_at=now, updated_at=now)


def _booking(room: Room) -> Booking:
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return Booking(id=40, user_id=7, room_id=room.id, created_at=now, updated_at=now)


@pytest.fixture(autouse=True)
def _stub_collaborators(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_emit(**kwargs: Any) -> None:
        calls.append(kwargs)

    monkeypatch.setattr(router, "build_repositories", lambda s: s)  # type: ignore[assignment]
    monkeypatch.setattr(router, "emit_audit_log", fake_emit)
    return calls


@pytest.mark.asyncio
async def test_get_booking_returns_booking_and_room(monkeypatch: pytest.MonkeyPatch) -> None:
    room = _room()
    booking = _booking(room)

    async def fake_get(repos: object, *, user_id: int) -> tuple[Booking, Room]:
        assert user_id == booking.user_id
        return booking, room

    monkeypatch.setattr(router.booking_usecase, "get_booking", fake_get)

    result = await router.get_booking(session=cast(AsyncSession, DummySession()), user_id=booking.user_id)
    assert result.id == booking.id
    assert result.room.id == room.id
    body = result.model_dump(by_alias=True)
    assert body["Room"]["hotelId"] == room.hotel_id
    assert body["Room"]["capacity"] == room.capacity


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (EnrollmentNotFoundError("x"), 404),
        (BookingNotFoundError("x"), 404),
        (TicketNotEligibleError("x"), 403),
        (PaymentRequiredError("x"), 402),
        (BookingError("unclassified"), 402),
    ],
)
@pytest.mark.asyncio
async def test_get_booking_maps_failures(monkeypatch: pytest.MonkeyPatch, error: BookingError, expected: int) -> None:
    async def fake_get(*args: object, **kwargs: object) -> tuple[Booking, Room]:
        raise error

    monkeypatch.setattr(router.booking_usecase, "get_booking", fake_get)

    with pytest.raises(HTTPException) as excinfo:
        await router.get_booking(session=cast(AsyncSession, DummySession()), user_id=7)
    assert excinfo.value.status_code == expected


@pytest.mark.asyncio
async def test_create_booking_returns_id_and_emits_audit(
    monkeypatch: pytest.MonkeyPatch,
    _stub_collaborators: list[dict[str, Any]],
) -> None:
    session = DummySession()

    async def fake_create(repos: object, *, user_id: int, room_id: int) -> int:
        assert repos is session
        assert (user_id, room_id) == (7, 3)
        return 41

    monkeypatch.setattr(router.booking_usecase, "create_booking", fake_create)

    result = await router.create_booking(
        payload=BookingCreate(roomId=3),
        session=cast(AsyncSession, session),
        user_id=7,
    )
    assert result.booking_id == 41
    assert session.begun == 1
    assert len(_stub_collaborators) == 1
    assert _stub_collaborators[0]["action"] == "booking.created"
    assert _stub_collaborators[0]["booking_id"] == 41


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (EnrollmentNotFoundError("x"), 404),
        (RoomFullError("x"), 403),
        (BookingAlreadyExistsError("x"), 403),
        (PaymentRequiredError("x"), 402),
        (BookingError("unclassified"), 400),
    ],
)
@pytest.mark.asyncio
async def test_create_booking_maps_failures(
    monkeypatch: pytest.MonkeyPatch,
    _stub_collaborators: list[dict[str, Any]],
    error: BookingError,
    expected: int,
) -> None:
    async def fake_create(*args: object, **kwargs: object) -> int:
        raise error

    monkeypatch.setattr(router.booking_usecase, "create_booking", fake_create)

    with pytest.raises(HTTPException) as excinfo:
        await router.create_booking(
            payload=BookingCreate(roomId=3),
            session=cast(AsyncSession, DummySession()),
            user_id=7,
        )
    assert excinfo.value.status_code == expected
    assert _stub_collaborators == []


@pytest.mark.asyncio
async def test_rejected_booking_is_logged_with_failure_kind(
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    async def fake_create(*args: object, **kwargs: object) -> int:
        raise RoomFullError("room is full")

    monkeypatch.setattr(router.booking_usecase, "create_booking", fake_create)
    caplog.set_level(logging.INFO, logger=router.logger.name)

    with pytest.raises(HTTPException):
        await router.create_booking(
            payload=BookingCreate(roomId=3),
            session=cast(AsyncSession, DummySession()),
            user_id=7,
        )

    records = [r for r in caplog.records if r.name == router.logger.name]
    assert len(records) == 1
    assert records[0].levelno == logging.INFO
    message = records[0].getMessage()
    assert "user 7" in message
    assert "forbidden" in message


@pytest.mark.asyncio
async def test_create_booking_duplicate_row_is_forbidden(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_create(*args: object, **kwargs: object) -> int:
        raise IntegrityError("INSERT INTO bookings", None, Exception("uq_bookings_user"))

    monkeypatch.setattr(router.booking_usecase, "create_booking", fake_create)

    with pytest.raises(HTTPException) as excinfo:
        await router.create_booking(
            payload=BookingCreate(roomId=3),
            session=cast(AsyncSession, DummySession()),
            user_id=7,
        )
    assert excinfo.value.status_code == 403


@pytest.mark.asyncio
async def test_create_booking_audit_failure_returns_500(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_create(*args: object, **kwargs: object) -> int:
        return 41

    def failing_emit(**kwargs: Any) -> None:
        raise RuntimeError("fail log")

    monkeypatch.setattr(router.booking_usecase, "create_booking", fake_create)
    monkeypatch.setattr(router, "emit_audit_log", failing_emit)

    with pytest.raises(HTTPException) as excinfo:
        await router.create_booking(
            payload=BookingCreate(roomId=3),
            session=cast(AsyncSession, DummySession()),
            user_id=7,
        )
    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_update_booking_passes_path_id_and_emits_audit(
    monkeypatch: pytest.MonkeyPatch,
    _stub_collaborators: list[dict[str, Any]],
) -> None:
    async def fake_update(repos: object, *, user_id: int, room_id: int, booking_id: int) -> int:
        assert (user_id, room_id, booking_id) == (7, 5, 40)
        return booking_id

    monkeypatch.setattr(router.booking_usecase, "update_booking", fake_update)

    result = await router.update_booking(
        payload=BookingUpdate(roomId=5),
        booking_id=40,
        session=cast(AsyncSession, DummySession()),
        user_id=7,
    )
    assert result.booking_id == 40
    assert _stub_collaborators[0]["action"] == "booking.room_changed"
    assert _stub_collaborators[0]["room_id"] == 5


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (BookingNotFoundError("x"), 404),
        (RoomFullError("x"), 403),
        (PaymentRequiredError("x"), 402),
        (BookingError("unclassified"), 400),
    ],
)
@pytest.mark.asyncio
async def test_update_booking_maps_failures(monkeypatch: pytest.MonkeyPatch, error: BookingError, expected: int) -> None:
    async def fake_update(*args: object, **kwargs: object) -> int:
        raise error

    monkeypatch.setattr(router.booking_usecase, "update_booking", fake_update)

    with pytest.raises(HTTPException) as excinfo:
        await router.update_booking(
            payload=BookingUpdate(roomId=5),
            booking_id=40,
            session=cast(AsyncSession, DummySession()),
            user_id=7,
        )
    assert excinfo.value.status_code == expected
