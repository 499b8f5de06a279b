"""Unit tests for the handbook exception hierarchy and error classification.

Tests verify:
- issubclass relationships match the documented tree
- status codes per branch
- classify_error maps every driver failure family onto exactly one class
"""

import asyncio

import asyncpg
import pytest

from handbook.core.exceptions import (
    AcquisitionTimeoutError,
    ConfigurationError,
    ConnectionLostError,
    ContentionError,
    DatabaseError,
    DeadlockError,
    HandbookError,
    LockTimeoutError,
    NotFoundError,
    OperationTimeoutError,
    PoolClosedError,
    QueryError,
    QueryTimeoutError,
    TransactionRetryExhaustedError,
    TransactionTimeoutError,
    TransientError,
    ValidationError,
    classify_error,
    is_fatal_connect_error,
)


# =============================================================================
# Hierarchy Tests
# =============================================================================


class TestExceptionHierarchy:
    """Verify issubclass relationships match the documented tree."""

    @pytest.mark.parametrize(
        "exc_cls",
        [ConfigurationError, DatabaseError, ValidationError, NotFoundError],
    )
    def test_top_level_inherit_from_handbook_error(self, exc_cls: type) -> None:
        assert issubclass(exc_cls, HandbookError)

    @pytest.mark.parametrize(
        "exc_cls",
        [AcquisitionTimeoutError, QueryTimeoutError, TransactionTimeoutError],
    )
    def test_timeouts_are_transient(self, exc_cls: type) -> None:
        assert issubclass(exc_cls, OperationTimeoutError)
        assert issubclass(exc_cls, TransientError)

    def test_connection_lost_is_transient(self) -> None:
        assert issubclass(ConnectionLostError, TransientError)

    def test_contention_branch(self) -> None:
        assert issubclass(LockTimeoutError, ContentionError)
        assert issubclass(DeadlockError, ContentionError)
        assert issubclass(TransactionRetryExhaustedError, DeadlockError)

    def test_query_error_is_not_transient(self) -> None:
        assert issubclass(QueryError, DatabaseError)
        assert not issubclass(QueryError, TransientError)

    def test_validation_is_not_database(self) -> None:
        assert not issubclass(ValidationError, DatabaseError)
        assert not issubclass(NotFoundError, DatabaseError)


class TestStatusCodes:
    """HTTP-equivalent status per class."""

    @pytest.mark.parametrize(
        ("exc_cls", "status"),
        [
            (ValidationError, 400),
            (NotFoundError, 404),
            (ContentionError, 409),
            (DeadlockError, 409),
            (ConnectionLostError, 503),
            (PoolClosedError, 503),
            (QueryTimeoutError, 504),
            (QueryError, 500),
            (ConfigurationError, 500),
        ],
    )
    def test_status_code(self, exc_cls: type[HandbookError], status: int) -> None:
        assert exc_cls.status_code == status


class TestContext:
    """Context attributes carried by database errors."""

    def test_database_error_context_skips_empty(self) -> None:
        error = QueryError("boom", operation="fetch", table="characters")
        assert error.context() == {"operation": "fetch", "table": "characters"}

    def test_retry_exhausted_attempts(self) -> None:
        error = TransactionRetryExhaustedError("gave up", attempts=4, operation="transaction")
        assert error.attempts == 4
        assert error.operation == "transaction"

    def test_not_found_message(self) -> None:
        error = NotFoundError("characters", 42)
        assert error.table == "characters"
        assert error.key == 42
        assert "42" in str(error)


# =============================================================================
# Classification Tests
# =============================================================================


class TestClassifyError:
    """classify_error() maps driver errors onto the taxonomy."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (asyncpg.LockNotAvailableError("lock"), LockTimeoutError),
            (asyncpg.DeadlockDetectedError("deadlock"), DeadlockError),
            (asyncpg.SerializationError("serialization"), DeadlockError),
            (asyncpg.QueryCanceledError("canceled"), QueryTimeoutError),
            (TimeoutError(), QueryTimeoutError),
            (asyncpg.ConnectionDoesNotExistError("gone"), ConnectionLostError),
            (asyncpg.InterfaceError("closed"), ConnectionLostError),
            (asyncpg.AdminShutdownError("shutdown"), ConnectionLostError),
            (ConnectionResetError(), ConnectionLostError),
            (OSError("unreachable"), ConnectionLostError),
            (asyncpg.InvalidPasswordError("bad password"), ConfigurationError),
            (asyncpg.InvalidCatalogNameError("no db"), ConfigurationError),
            (asyncpg.UniqueViolationError("duplicate"), QueryError),
            (asyncpg.PostgresSyntaxError("syntax"), QueryError),
        ],
    )
    def test_mapping(self, raw: BaseException, expected: type) -> None:
        assert type(classify_error(raw)) is expected

    def test_context_attached(self) -> None:
        error = classify_error(
            asyncpg.UniqueViolationError("duplicate"), operation="fetchrow", table="skills"
        )
        assert isinstance(error, QueryError)
        assert error.operation == "fetchrow"
        assert error.table == "skills"
        assert error.sqlstate == "23505"

    def test_handbook_error_unchanged(self) -> None:
        original = DeadlockError("already classified")
        assert classify_error(original) is original

    def test_cancelled_unchanged(self) -> None:
        cancelled = asyncio.CancelledError()
        assert classify_error(cancelled) is cancelled

    def test_unrelated_exception_unchanged(self) -> None:
        original = KeyError("name_en")
        assert classify_error(original) is original


class TestFatalConnectError:
    """is_fatal_connect_error() distinguishes credentials from outages."""

    def test_fatal(self) -> None:
        assert is_fatal_connect_error(asyncpg.InvalidPasswordError("bad"))
        assert is_fatal_connect_error(asyncpg.InvalidCatalogNameError("missing"))

    def test_not_fatal(self) -> None:
        assert not is_fatal_connect_error(OSError("refused"))
        assert not is_fatal_connect_error(asyncpg.CannotConnectNowError("starting up"))
