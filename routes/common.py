"""
Shared route helpers.
"""

from fastapi.responses import JSONResponse
import structlog

from exceptions import AppError, UnsupportedMarketplaceError
from models.product import Marketplace

logger = structlog.get_logger(__name__)


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


def review_error(e: Exception) -> JSONResponse:
    """
    Convert an approve/reject failure to a {success, message} body.

    Review actions always answer with a success flag and a message,
    with the error code alongside for the UI.
    """
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content={
                "success": False,
                "message": e.message,
                "code": e.code,
                "details": e.details
            }
        )
    logger.error("unexpected_review_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "An unexpected error occurred",
            "code": "INTERNAL_ERROR"
        }
    )


def parse_marketplace(value: str) -> Marketplace:
    """
    Raises:
        UnsupportedMarketplaceError: If value isn't a known marketplace
    """
    try:
        return Marketplace(value.lower())
    except ValueError:
        raise UnsupportedMarketplaceError(value, [m.value for m in Marketplace])
