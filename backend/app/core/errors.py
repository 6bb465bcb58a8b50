"""
Domain errors raised by the services.

Each error carries the HTTP status the routers answer with, so the translation
into ``HTTPException`` stays a one-liner at the route.
"""
from fastapi import HTTPException


class PosError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.message)


class ValidationError(PosError):
    """Missing or malformed input, rejected before any write."""

    status_code = 400


class NotFoundError(PosError):
    status_code = 404


class ConflictError(PosError):
    """The requested change contradicts the current state of the store."""

    status_code = 409


class AlreadyClosedError(ConflictError):
    # Clients have always received 400 for a double close
    status_code = 400
