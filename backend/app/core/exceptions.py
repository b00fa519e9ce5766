"""
Typed failures raised by the catalog services.

Each carries the HTTP status the API layer renders it with, so routes never
translate errors by hand.
"""


class CatalogError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(CatalogError):
    """Missing/malformed input, empty patches, out-of-range values."""

    status_code = 400


class NotFoundError(CatalogError):
    status_code = 404


class ConflictError(CatalogError):
    """Reserved for unique-constraint violations that are not idempotent."""

    status_code = 409


class StorageFailure(CatalogError):
    """Database or image I/O failure."""

    status_code = 500
