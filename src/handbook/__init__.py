r"""Handbook -- async PostgreSQL data-access core for a game reference site.

A bounded connection pool, a guarded statement executor, a transaction
coordinator with deadlock retry, and one generic repository specialised
per handbook table. Imports flow strictly downward:

```text
           repositories        One repository per table
             /      \
          core     models      Pool, executor, transactions / row dataclasses
```

Attributes:
    models: Pure frozen dataclasses. Zero I/O, depends only on stdlib.
    core: Connection pool, executor, transactions, generic repository,
        exceptions, logging, metrics.
    repositories: Table contracts and entity-specific finders.

Note:
    For lightweight usage, import directly from subpackages::

        from handbook.models import Character
        from handbook.core import Database

    Top-level imports (``from handbook import Database``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("handbook")

__all__ = [
    "Character",
    "CharacterRepository",
    "Database",
    "Executor",
    "Logger",
    "Page",
    "PageRequest",
    "Pool",
    "PoolConfig",
    "Repository",
    "Swimsuit",
    "SwimsuitRepository",
    "TransactionCoordinator",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "Database": ("handbook.core", "Database"),
    "Executor": ("handbook.core", "Executor"),
    "Logger": ("handbook.core", "Logger"),
    "Page": ("handbook.core", "Page"),
    "PageRequest": ("handbook.core", "PageRequest"),
    "Pool": ("handbook.core", "Pool"),
    "PoolConfig": ("handbook.core", "PoolConfig"),
    "Repository": ("handbook.core", "Repository"),
    "TransactionCoordinator": ("handbook.core", "TransactionCoordinator"),
    "Character": ("handbook.models", "Character"),
    "Swimsuit": ("handbook.models", "Swimsuit"),
    "CharacterRepository": ("handbook.repositories", "CharacterRepository"),
    "SwimsuitRepository": ("handbook.repositories", "SwimsuitRepository"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'handbook' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
