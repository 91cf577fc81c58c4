import logging
from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import get_settings
from .domain.errors import BookingError
from .routers import bookings
from .routers.bookings import status_for_failure
from .utils.request_id import (
    REQUEST_ID_HEADER,
    bind_request_id,
    generate_request_id,
    reset_request_id,
)

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
    token = bind_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        reset_request_id(token)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed ids and bodies never reach the booking rules.
    return JSONResponse(status_code=400, content={"detail": "invalid request", "errors": jsonable_encoder(exc.errors())})


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    logger.warning("unhandled booking failure on %s: %s (%s)", request.url.path, exc, exc.kind)
    return JSONResponse(status_code=status_for_failure(exc), content={"detail": str(exc)})


configure_logging(get_settings().log_level)

app = FastAPI(title="Hotel Booking API")
app.middleware("http")(request_id_middleware)
app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
app.add_exception_handler(BookingError, booking_error_handler)  # type: ignore[arg-type]


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(bookings.router)
