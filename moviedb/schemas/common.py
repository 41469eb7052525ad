"""
Action results shared by every mutation.

Mutations return either the affected entity or an ActionError; they do not
raise across the service boundary. Routes turn an ActionError into a JSON
response {"error": "..."} with the status of its kind.
"""
from enum import Enum
from typing import Union, TypeVar

from fastapi import status
from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    GENERIC = "generic"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.NOT_AUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.GENERIC: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ActionError(BaseModel):
    """Failed mutation; error is shown to the user as-is"""
    error: str
    kind: ErrorKind = Field(ErrorKind.GENERIC, exclude=True)

    @classmethod
    def not_authenticated(cls) -> "ActionError":
        return cls(error="Not authenticated", kind=ErrorKind.NOT_AUTHENTICATED)

    @classmethod
    def not_found(cls, message: str) -> "ActionError":
        return cls(error=message, kind=ErrorKind.NOT_FOUND)

    @classmethod
    def conflict(cls, message: str) -> "ActionError":
        return cls(error=message, kind=ErrorKind.CONFLICT)

    @classmethod
    def validation(cls, message: str) -> "ActionError":
        return cls(error=message, kind=ErrorKind.VALIDATION)

    @classmethod
    def generic(cls, message: str) -> "ActionError":
        return cls(error=message, kind=ErrorKind.GENERIC)


ActionResult = Union[T, ActionError]


class MessageResponse(BaseModel):
    message: str


class Pagination(BaseModel):
    page: int
    limit: int
    total_items: int
    total_pages: int
