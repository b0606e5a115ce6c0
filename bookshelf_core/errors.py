"""
Bookshelf core exceptions raised by the storage, validation and serialization layers

Those exceptions don't know anything about HTTP. The API layer
registers exception handlers that turn them into responses.
"""

from typing import List, Optional, Union

from . import schemas


class BookshelfError(Exception):
    """
    Base class for all domain-level exceptions of the bookshelf core
    """


class AuthorizationError(BookshelfError):
    """
    Exception when the current user lacks the role required for an operation
    """

    def __init__(self, role: str, message: Optional[str] = None):
        self.role = role
        self.message = message or f"The role {role!r} is required for this operation."
        super().__init__(self.message)


class DecodeError(BookshelfError):
    """
    Exception when a request body couldn't be decoded into an entity payload
    """

    def __init__(self, violations: List[schemas.Violation]):
        self.violations = violations
        super().__init__("; ".join(f"{v.field}: {v.message}" for v in violations))


class ValidationError(BookshelfError):
    """
    Exception carrying the full list of constraint violations of an entity
    """

    def __init__(self, violations: List[schemas.Violation]):
        self.violations = violations
        super().__init__("; ".join(f"{v.field}: {v.message}" for v in violations))


class NotFoundError(BookshelfError):
    """
    Exception when an identity does not resolve to a stored record
    """

    def __init__(self, kind: str, identity: Union[int, str]):
        self.kind = kind
        self.identity = identity
        super().__init__(f"{kind} with ID {identity!r}")
