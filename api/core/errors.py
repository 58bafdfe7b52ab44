"""
Database-layer error taxonomy.

Every failure coming out of `core.db`, `core.transactions` and `core.schema` is
a `DatabaseError` with one `ErrorKind`, so callers can decide whether to retry,
report a conflict or blame the request.
"""

from __future__ import annotations

import asyncio
import enum

import asyncpg


class ErrorKind(str, enum.Enum):
    CONNECTIVITY = "connectivity"
    CONSTRAINT_VIOLATION = "constraint_violation"
    CALLER_MISUSE = "caller_misuse"
    NOT_FOUND = "not_found"
    # Server rejected the statement for another reason (syntax, permissions).
    QUERY = "query"


class DatabaseError(RuntimeError):
    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"DatabaseError(kind={self.kind.value!r}, message={self.message!r})"


class SchemaBootstrapError(RuntimeError):
    pass


# Exceptions the driver (or the network under it) raises for a failed round trip.
DRIVER_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


def classify(exc: BaseException) -> ErrorKind:
    if isinstance(exc, DatabaseError):
        return exc.kind
    if isinstance(exc, asyncpg.IntegrityConstraintViolationError):
        return ErrorKind.CONSTRAINT_VIOLATION
    if isinstance(
        exc,
        (
            asyncpg.PostgresConnectionError,
            asyncpg.CannotConnectNowError,
            asyncpg.TooManyConnectionsError,
        ),
    ):
        return ErrorKind.CONNECTIVITY
    # asyncpg raises a ValueError subclass when arguments cannot be encoded.
    if isinstance(exc, ValueError):
        return ErrorKind.CALLER_MISUSE
    if isinstance(exc, (asyncpg.InterfaceError, OSError, asyncio.TimeoutError)):
        return ErrorKind.CONNECTIVITY
    return ErrorKind.QUERY


def from_driver(exc: BaseException) -> DatabaseError:
    """
    Wrap a driver exception. Callers chain it: `raise from_driver(exc) from exc`.
    """
    if isinstance(exc, DatabaseError):
        return exc
    message = str(exc) or exc.__class__.__name__
    return DatabaseError(classify(exc), message)


def caller_misuse(message: str) -> DatabaseError:
    return DatabaseError(ErrorKind.CALLER_MISUSE, message)
