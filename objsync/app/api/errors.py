# objsync/app/api/errors.py
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from objsync.app.db.store import UnknownOwnerError

logger = logging.getLogger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed body or query string"""
    logger.warning(f"Validation error on {request.method} {request.url.path}: {len(exc.errors())} errors")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Malformed request"},
    )


async def unknown_owner_handler(request: Request, exc: UnknownOwnerError):
    """The authenticated user disappeared before the write"""
    logger.warning(f"Write for missing owner on {request.url.path}")

    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": "Invalid credentials"},
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Storage failures never leak internal detail to the client"""
    logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )
