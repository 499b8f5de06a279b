"""Data-access core shared by every handbook repository.

Sits between ``handbook.models`` (pure row models) and
``handbook.repositories`` (one repository per table).

Attributes:
    Pool: Bounded asyncpg pool with retrying initialization, background
        health probing and occupancy monitoring.
        See [Pool][handbook.core.pool.Pool].
    Executor: Guarded statement execution with timeouts, error
        classification and slow-statement reporting.
        See [Executor][handbook.core.executor.Executor].
    TransactionCoordinator: Transactions with bounded deadlock retry.
        See [TransactionCoordinator][handbook.core.transaction.TransactionCoordinator].
    Repository: Generic table repository (lookup, listing, search, writes).
        See [Repository][handbook.core.repository.Repository].
    Database: Facade owning all of the above for one process.
        See [Database][handbook.core.database.Database].
"""

from .database import Database, HandbookConfig
from .exceptions import (
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
)
from .executor import Executor, ExecutorConfig
from .logger import Logger, StructuredFormatter, setup_logging
from .metrics import MetricsConfig, MetricsServer, QueryTracker, start_metrics_server
from .pagination import Page, PageInfo, PageRequest, SortOrder
from .pool import (
    DatabaseConfig,
    LeakReport,
    Pool,
    PoolConfig,
    PoolHealth,
    PoolHealthConfig,
    PoolLimitsConfig,
    PoolRetryConfig,
    PoolState,
    PoolStats,
    PoolTimeoutsConfig,
    ServerSettingsConfig,
)
from .repository import Filter, Repository, RepositoryConfig, RepositoryHealth
from .transaction import (
    DeadlockRetryPolicy,
    IsolationLevel,
    TransactionConfig,
    TransactionCoordinator,
    TransactionOptions,
    TransactionState,
)
from .yaml import load_yaml


__all__ = [
    "AcquisitionTimeoutError",
    "ConfigurationError",
    "ConnectionLostError",
    "ContentionError",
    "Database",
    "DatabaseConfig",
    "DatabaseError",
    "DeadlockError",
    "DeadlockRetryPolicy",
    "Executor",
    "ExecutorConfig",
    "Filter",
    "HandbookConfig",
    "HandbookError",
    "IsolationLevel",
    "LeakReport",
    "LockTimeoutError",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "NotFoundError",
    "OperationTimeoutError",
    "Page",
    "PageInfo",
    "PageRequest",
    "Pool",
    "PoolClosedError",
    "PoolConfig",
    "PoolHealth",
    "PoolHealthConfig",
    "PoolLimitsConfig",
    "PoolRetryConfig",
    "PoolState",
    "PoolStats",
    "PoolTimeoutsConfig",
    "QueryError",
    "QueryTimeoutError",
    "QueryTracker",
    "Repository",
    "RepositoryConfig",
    "RepositoryHealth",
    "ServerSettingsConfig",
    "SortOrder",
    "StructuredFormatter",
    "TransactionConfig",
    "TransactionCoordinator",
    "TransactionOptions",
    "TransactionRetryExhaustedError",
    "TransactionState",
    "TransactionTimeoutError",
    "TransientError",
    "ValidationError",
    "classify_error",
    "load_yaml",
    "setup_logging",
    "start_metrics_server",
]
