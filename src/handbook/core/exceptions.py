"""Handbook exception hierarchy.

Every failure that leaves the data-access core is one of the typed classes
below. Driver exceptions are converted exactly once, at the executor
boundary, by [classify_error()][handbook.core.exceptions.classify_error];
code above the executor only ever catches these classes.

Exception hierarchy:

```text
HandbookError (base -- never raised directly)
├── ConfigurationError              -- bad config/credentials, missing database
├── DatabaseError                   -- anything that happened talking to the store
│   ├── PoolClosedError             -- work submitted after close()
│   ├── TransientError              -- retrying the whole operation may succeed
│   │   ├── ConnectionLostError
│   │   └── OperationTimeoutError
│   │       ├── AcquisitionTimeoutError
│   │       ├── QueryTimeoutError
│   │       └── TransactionTimeoutError
│   ├── ContentionError             -- lock conflicts between transactions
│   │   ├── LockTimeoutError
│   │   └── DeadlockError
│   │       └── TransactionRetryExhaustedError
│   └── QueryError                  -- permanent: bad SQL, constraint violation
├── ValidationError                 -- rejected before any statement is issued
└── NotFoundError                   -- the addressed row does not exist
```

Each class carries a ``status_code`` with the HTTP-equivalent status the
request layer maps it to.

See Also:
    [Executor][handbook.core.executor.Executor]: The only place driver
        errors are converted.
    [TransactionCoordinator][handbook.core.transaction.TransactionCoordinator]:
        Retries [DeadlockError][handbook.core.exceptions.DeadlockError].
"""

from __future__ import annotations

import asyncio
from typing import Any, ClassVar

import asyncpg


class HandbookError(Exception):
    """Base exception for all handbook errors.

    Never raised directly -- always use a specific subclass.
    """

    status_code: ClassVar[int] = 500


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(HandbookError):
    """Fatal setup problem: invalid settings, bad credentials, missing database.

    Raised by [Pool.initialize()][handbook.core.pool.Pool.initialize] without
    further retries, since waiting cannot fix it.
    """


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


class DatabaseError(HandbookError):
    """Base for all database-related errors.

    Attributes:
        operation: Executor operation or repository method that failed.
        table: Table the operation addressed, when known.
        sqlstate: PostgreSQL SQLSTATE code of the underlying driver error.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        table: str | None = None,
        sqlstate: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.table = table
        self.sqlstate = sqlstate

    def context(self) -> dict[str, Any]:
        """Return the non-empty context fields, for structured logging."""
        fields = {"operation": self.operation, "table": self.table, "sqlstate": self.sqlstate}
        return {k: v for k, v in fields.items() if v is not None}


class PoolClosedError(DatabaseError):
    """Work was submitted to a pool that has been closed."""

    status_code: ClassVar[int] = 503


class TransientError(DatabaseError):
    """Transient failure: the same operation may succeed if retried later."""

    status_code: ClassVar[int] = 503


class ConnectionLostError(TransientError):
    """The connection to the database dropped mid-operation."""


class OperationTimeoutError(TransientError):
    """An operation exceeded its time budget."""

    status_code: ClassVar[int] = 504


class AcquisitionTimeoutError(OperationTimeoutError):
    """No pooled connection became available within the acquisition timeout."""


class QueryTimeoutError(OperationTimeoutError):
    """A single statement exceeded the execution timeout."""


class TransactionTimeoutError(OperationTimeoutError):
    """A transaction body exceeded its timeout and was rolled back."""


class ContentionError(DatabaseError):
    """Lock contention with a concurrent transaction."""

    status_code: ClassVar[int] = 409


class LockTimeoutError(ContentionError):
    """A lock could not be obtained before the server's lock wait timeout."""


class DeadlockError(ContentionError):
    """The server aborted the transaction to resolve a deadlock.

    Serialization failures are reported as this class too: both are resolved
    by re-running the whole transaction.
    """


class TransactionRetryExhaustedError(DeadlockError):
    """A transaction kept deadlocking until its retry budget ran out.

    Attributes:
        attempts: Total number of attempts made, including the first.
    """

    def __init__(self, message: str, *, attempts: int, **context: Any) -> None:
        super().__init__(message, **context)
        self.attempts = attempts


class QueryError(DatabaseError):
    """Permanent statement failure: syntax, constraint or type error.

    Not retryable. The driver error is chained as ``__cause__``.
    """


# ---------------------------------------------------------------------------
# Request-level errors
# ---------------------------------------------------------------------------


class ValidationError(HandbookError):
    """Caller input was rejected before any statement was issued."""

    status_code: ClassVar[int] = 400


class NotFoundError(HandbookError):
    """The addressed row does not exist.

    Attributes:
        table: Table that was searched.
        key: Identifier that was looked up.
    """

    status_code: ClassVar[int] = 404

    def __init__(self, table: str, key: Any) -> None:
        super().__init__(f"{table} with id {key!r} not found")
        self.table = table
        self.key = key


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

_FATAL_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.InvalidCatalogNameError,
    asyncpg.InvalidPasswordError,
    asyncpg.InvalidAuthorizationSpecificationError,
)

_CONNECTION_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresConnectionError,
    asyncpg.ConnectionDoesNotExistError,
    asyncpg.InterfaceError,
    asyncpg.CannotConnectNowError,
    asyncpg.AdminShutdownError,
    ConnectionError,
    OSError,
)


def is_fatal_connect_error(exc: BaseException) -> bool:
    """Whether a connection failure cannot be fixed by waiting (credentials, missing database)."""
    return isinstance(exc, _FATAL_ERRORS)


def classify_error(
    exc: BaseException,
    *,
    operation: str | None = None,
    table: str | None = None,
) -> BaseException:
    """Map a driver or runtime exception onto the handbook taxonomy.

    Handbook errors are returned unchanged. Exceptions that are not database
    related (including ``asyncio.CancelledError``) are returned unchanged too,
    so the caller can always ``raise classify_error(e) from e`` and only
    database failures change type.

    Args:
        exc: The exception raised while talking to the database.
        operation: Executor operation name, attached as context.
        table: Target table, attached as context.

    Returns:
        The classified exception (never raised here).
    """
    if isinstance(exc, HandbookError | asyncio.CancelledError):
        return exc

    sqlstate = getattr(exc, "sqlstate", None)
    context: dict[str, Any] = {"operation": operation, "table": table, "sqlstate": sqlstate}

    if isinstance(exc, asyncpg.LockNotAvailableError):
        return LockTimeoutError(f"lock wait timeout: {exc}", **context)
    if isinstance(exc, asyncpg.DeadlockDetectedError | asyncpg.SerializationError):
        return DeadlockError(f"transaction aborted by deadlock: {exc}", **context)
    if isinstance(exc, asyncpg.QueryCanceledError | TimeoutError):
        return QueryTimeoutError(f"statement timed out: {exc}", **context)
    if isinstance(exc, _FATAL_ERRORS):
        return ConfigurationError(f"database rejected the connection: {exc}")
    if isinstance(exc, _CONNECTION_ERRORS):
        return ConnectionLostError(f"database connection lost: {exc}", **context)
    if isinstance(exc, asyncpg.PostgresError):
        return QueryError(str(exc), **context)
    return exc
