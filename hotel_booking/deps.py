import logging
from typing import AsyncIterator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import get_sessionmaker
from .models import UserSession
from .utils.auth import InvalidAccessTokenError, decode_access_token, parse_bearer

logger = logging.getLogger(__name__)

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


async def get_session() -> AsyncIterator[AsyncSession]:
    async with get_sessionmaker()() as session:
        yield session


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=_BEARER_CHALLENGE,
    )


async def get_current_user_id(
    authorization: str | None = Header(default=None),
    session: AsyncSession = Depends(get_session),
) -> int:
    token = parse_bearer(authorization)
    if token is None:
        raise _unauthorized("bearer token required")

    settings = get_settings()
    try:
        user_id = decode_access_token(token, secret=settings.auth_secret, algorithms=[settings.auth_algorithm])
    except InvalidAccessTokenError as exc:
        raise _unauthorized("invalid token") from exc

    stmt = select(UserSession.id).where(UserSession.user_id == user_id, UserSession.token == token)
    try:
        session_id = await session.scalar(stmt)
    except ProgrammingError as exc:
        await session.rollback()
        logger.error("session lookup failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="authentication store unavailable",
        ) from exc
    # Close the implicit transaction so routes can open their own with session.begin().
    await session.rollback()

    if session_id is None:
        raise _unauthorized("no active session")
    return user_id
