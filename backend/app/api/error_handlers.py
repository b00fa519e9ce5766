"""
Global exception handlers.

CatalogError subclasses carry their own status code; the handler renders
them as `{"detail": message}`, the same shape FastAPI uses for HTTPException.
Request bodies and parameters that fail schema validation (missing fields,
wrong types, integers out of range) are bad input too and come back as 400
with one entry per offending field.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.exceptions import CatalogError
from app.core.logging import get_logger

logger = get_logger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "catalog_error",
            error_type=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        logger.warning("request_validation_failed", errors=errors)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": errors})
