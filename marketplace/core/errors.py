"""
Marketplace API — Domain error taxonomy

Every failure raised by the order workflow and the stores is a
MarketplaceError. The HTTP layer renders them as
{"detail": <message>, "error": <kind>} with the matching status code.
"""
import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from marketplace.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class MarketplaceError(Exception):
    kind = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"detail": self.message, "error": self.kind}


class NotFound(MarketplaceError):
    """Restaurant, menu item or order does not exist."""
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Unavailable(MarketplaceError):
    """Menu item exists but cannot be ordered right now."""
    kind = "unavailable"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidInput(MarketplaceError):
    kind = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(MarketplaceError):
    """Authenticated, but the caller's role or ownership does not allow this."""
    kind = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidTransition(MarketplaceError):
    kind = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT


class Conflict(MarketplaceError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class Internal(MarketplaceError):
    pass


# ─── HTTP rendering ───────────────────────────────────────────────────────────

async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": "Validation failed",
            "error": InvalidInput.kind,
            "errors": jsonable_encoder(exc.errors()),
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"detail": "Internal server error", "error": Internal.kind}
    # Stack detail only leaves the process in development mode
    if settings.DEBUG:
        content["traceback"] = traceback.format_exception(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
