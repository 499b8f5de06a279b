"""
Generic table repository.

[Repository][handbook.core.repository.Repository] implements lookup,
paginated listing, multi-column text search, create/update/delete and batch
insert once, for any table. A concrete repository only declares its table
contract as class variables and maps rows to its model:

```python
class EventRepository(Repository[Event]):
    TABLE = "events"
    COLUMNS = model_columns(Event)
    CREATE_FIELDS = ("unique_key", "name_en", "type", "start_date", "end_date", ...)
    REQUIRED_FIELDS = ("unique_key", "name_en", "type", "start_date", "end_date")
    SEARCH_FIELDS = ("name_jp", "name_en", "unique_key")

    def map_row(self, row):
        return Event.from_row(row)
```

Identifiers that end up in SQL text (table, columns, sort keys) come only
from these class variables and are validated when the subclass is defined.
Every caller-supplied value, search patterns included, is a bound parameter.

Note:
    Listings run the ``COUNT(*)`` and the page query concurrently on two
    connections. Under concurrent writes the total can disagree with the
    returned rows by the rows written in between; callers treat ``total``
    as an estimate for page navigation.
"""

from __future__ import annotations

import asyncio
import re
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar, Generic, NamedTuple, TypeVar

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from .exceptions import ConfigurationError, NotFoundError, ValidationError
from .logger import Logger
from .pagination import Page, PageRequest


if TYPE_CHECKING:
    import asyncpg

    from .executor import Executor


RowT = TypeVar("RowT")

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")

_OPERATORS = frozenset({"=", "!=", "<", "<=", ">", ">=", "in"})

# Primary keys are SERIAL (int4)
_MAX_ID = 2_147_483_647


def escape_like(term: str) -> str:
    """Escape ``LIKE`` wildcards so *term* matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def parse_row_count(status: str) -> int:
    """Row count from a command status tag (``"UPDATE 3"``, ``"INSERT 0 1"``)."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError, IndexError):
        return 0


class RepositoryConfig(BaseModel):
    """Paging, batching and validation limits shared by all repositories."""

    default_page_size: int = Field(default=20, ge=1, description="Rows per page when unspecified")
    max_page_size: int = Field(default=100, ge=1, le=1000, description="Upper bound on page size")
    default_batch_size: int = Field(default=100, ge=1, description="Rows per INSERT in batches")
    max_batch_size: int = Field(default=1000, ge=1, description="Upper bound on batch size")
    search_min_length: int = Field(default=1, ge=1, description="Shortest accepted search term")
    search_max_length: int = Field(default=255, ge=1, description="Longest accepted search term")
    health_check_timeout: float = Field(default=5.0, ge=0.1, description="Table health check budget")

    @field_validator("max_page_size")
    @classmethod
    def validate_max_page_size(cls, v: int, info: ValidationInfo) -> int:
        """Ensure max_page_size >= default_page_size."""
        default = info.data.get("default_page_size", 20)
        if v < default:
            raise ValueError(f"max_page_size ({v}) must be >= default_page_size ({default})")
        return v

    @field_validator("search_max_length")
    @classmethod
    def validate_search_max_length(cls, v: int, info: ValidationInfo) -> int:
        """Ensure search_max_length >= search_min_length."""
        minimum = info.data.get("search_min_length", 1)
        if v < minimum:
            raise ValueError(f"search_max_length ({v}) must be >= search_min_length ({minimum})")
        return v


class Filter(NamedTuple):
    """An extra condition on a listing or search.

    ``value=None`` with ``=``/``!=`` becomes ``IS NULL``/``IS NOT NULL``;
    ``in`` takes a sequence and becomes ``= ANY($n)``.
    """

    column: str
    value: Any
    operator: str = "="

    @classmethod
    def enum(cls, column: str, value: Any, enum: type[StrEnum]) -> Filter:
        """Equality filter on an enum column; unknown values are a ValidationError."""
        try:
            return cls(column, enum(value))
        except ValueError as e:
            allowed = ", ".join(m.value for m in enum)
            raise ValidationError(f"invalid {column} {value!r} (expected one of: {allowed})") from e


@dataclass(frozen=True, slots=True)
class RepositoryHealth:
    """Result of [Repository.health_check()][handbook.core.repository.Repository.health_check]."""

    healthy: bool
    table: str
    error: str | None = None
    response_time: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "table": self.table,
            "error": self.error,
            "response_time": round(self.response_time, 4),
        }


class Repository(ABC, Generic[RowT]):
    """Table-level data access on top of an [Executor][handbook.core.executor.Executor].

    Class variables:
        TABLE: Table name.
        PRIMARY_KEY: Primary key column (integer).
        COLUMNS: Columns selected and mapped by ``map_row``.
        CREATE_FIELDS: Columns accepted by ``create``/``batch_create``.
        UPDATE_FIELDS: Columns accepted by ``update`` (defaults to CREATE_FIELDS).
        REQUIRED_FIELDS: Columns that must be present and non-empty on create.
        SORT_COLUMNS: Allow-list mapping sort keys to columns. Defaults to
            the primary key and every creatable column, each under its own name.
        DEFAULT_SORT: Column used when the requested key is not allowed.
        SEARCH_FIELDS: Columns used by ``search_text``.
        BASE_FILTER: Static condition applied to listings and searches
            (e.g. ``"is_active = TRUE"``); bypassed with ``include_all=True``.
        UNIQUE_KEY: Natural key column used by ``find_by_unique_key``.

    Every method accepts ``conn=`` to take part in a caller's transaction.
    """

    TABLE: ClassVar[str]
    PRIMARY_KEY: ClassVar[str] = "id"
    COLUMNS: ClassVar[tuple[str, ...]] = ()
    CREATE_FIELDS: ClassVar[tuple[str, ...]] = ()
    UPDATE_FIELDS: ClassVar[tuple[str, ...]] = ()
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = ()
    SORT_COLUMNS: ClassVar[Mapping[str, str]] = {}
    DEFAULT_SORT: ClassVar[str] = "id"
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = ()
    BASE_FILTER: ClassVar[str | None] = None
    UNIQUE_KEY: ClassVar[str | None] = "unique_key"

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "TABLE" not in cls.__dict__:
            return
        if not cls.UPDATE_FIELDS:
            cls.UPDATE_FIELDS = cls.CREATE_FIELDS
        if not cls.SORT_COLUMNS:
            cls.SORT_COLUMNS = {c: c for c in (cls.PRIMARY_KEY, *cls.CREATE_FIELDS)}
        cls._validate_contract()

    @classmethod
    def _validate_contract(cls) -> None:
        names = [cls.TABLE, cls.PRIMARY_KEY, *cls.COLUMNS, *cls.SORT_COLUMNS.values()]
        bad = [n for n in names if not _IDENTIFIER.match(n)]
        if bad:
            raise ConfigurationError(f"{cls.__name__}: invalid SQL identifiers {bad}")

        known = set(cls.COLUMNS)
        groups = {
            "PRIMARY_KEY": (cls.PRIMARY_KEY,),
            "CREATE_FIELDS": cls.CREATE_FIELDS,
            "UPDATE_FIELDS": cls.UPDATE_FIELDS,
            "REQUIRED_FIELDS": cls.REQUIRED_FIELDS,
            "SEARCH_FIELDS": cls.SEARCH_FIELDS,
            "SORT_COLUMNS": tuple(cls.SORT_COLUMNS.values()),
            "DEFAULT_SORT": (cls.DEFAULT_SORT,),
            "UNIQUE_KEY": (cls.UNIQUE_KEY,) if cls.UNIQUE_KEY else (),
        }
        for group, columns in groups.items():
            unknown = [c for c in columns if c not in known]
            if unknown:
                raise ConfigurationError(f"{cls.__name__}.{group}: unknown columns {unknown}")
        missing = set(cls.REQUIRED_FIELDS) - set(cls.CREATE_FIELDS)
        if missing:
            raise ConfigurationError(
                f"{cls.__name__}.REQUIRED_FIELDS not creatable: {sorted(missing)}"
            )

    def __init__(self, executor: Executor, config: RepositoryConfig | None = None) -> None:
        self._executor = executor
        self._config = config or RepositoryConfig()
        self._logger = Logger("repository")

    @abstractmethod
    def map_row(self, row: Mapping[str, Any]) -> RowT:
        """Convert a database row into the entity model."""

    @property
    def table(self) -> str:
        return self.TABLE

    @property
    def config(self) -> RepositoryConfig:
        return self._config

    # -------------------------------------------------------------------------
    # SQL Building
    # -------------------------------------------------------------------------

    @property
    def _select_list(self) -> str:
        return ", ".join(self.COLUMNS)

    def _coerce_id(self, value: Any) -> int:
        if isinstance(value, str) and value.strip().isdecimal() and value.strip().isascii():
            value = int(value.strip())
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= _MAX_ID:
            raise ValidationError(f"invalid {self.TABLE} id: {value!r}")
        return value

    def resolve_sort(self, sort_by: str | None) -> str:
        """Map a requested sort key to an allowed column, falling back to DEFAULT_SORT."""
        if sort_by is None:
            return self.DEFAULT_SORT
        column = self.SORT_COLUMNS.get(sort_by)
        if column is None:
            self._logger.debug("sort_key_rejected", table=self.TABLE, sort_by=sort_by)
            return self.DEFAULT_SORT
        return column

    def _order_by(self, request: PageRequest) -> str:
        column = self.resolve_sort(request.sort_by)
        order = f"ORDER BY {column} {request.sort_order.sql}"
        if column != self.PRIMARY_KEY:
            order += f", {self.PRIMARY_KEY} ASC"
        return order

    def _filter_clauses(
        self,
        filters: Sequence[Filter],
        params: list[Any],
    ) -> list[str]:
        """Render *filters* as SQL conditions, appending their values to *params*."""
        clauses: list[str] = []
        for f in filters:
            if f.column not in self.COLUMNS:
                raise ValidationError(f"cannot filter {self.TABLE} by {f.column!r}")
            if f.operator not in _OPERATORS:
                raise ValidationError(f"unsupported filter operator {f.operator!r}")
            if f.value is None and f.operator in ("=", "!="):
                clauses.append(f"{f.column} IS {'NOT ' if f.operator == '!=' else ''}NULL")
                continue
            if f.operator == "in":
                if isinstance(f.value, str) or not isinstance(f.value, Sequence):
                    raise ValidationError(f"'in' filter on {f.column!r} needs a sequence")
                params.append(list(f.value))
                clauses.append(f"{f.column} = ANY(${len(params)})")
                continue
            params.append(f.value)
            clauses.append(f"{f.column} {f.operator} ${len(params)}")
        return clauses

    def _scope(self, include_all: bool) -> list[str]:
        return [self.BASE_FILTER] if self.BASE_FILTER and not include_all else []

    @staticmethod
    def _where(clauses: Sequence[str]) -> str:
        return f" WHERE {' AND '.join(clauses)}" if clauses else ""

    def _page_request(self, request: PageRequest | None) -> PageRequest:
        request = request or PageRequest(limit=self._config.default_page_size)
        return request.clamp(self._config.max_page_size)

    async def _paginate(
        self,
        clauses: list[str],
        params: list[Any],
        request: PageRequest | None,
    ) -> Page[RowT]:
        request = self._page_request(request)
        where = self._where(clauses)
        n = len(params)
        count_sql = f"SELECT COUNT(*) FROM {self.TABLE}{where}"
        data_sql = (
            f"SELECT {self._select_list} FROM {self.TABLE}{where} "
            f"{self._order_by(request)} LIMIT ${n + 1} OFFSET ${n + 2}"
        )
        total, rows = await asyncio.gather(
            self._executor.fetchval(count_sql, *params, table=self.TABLE),
            self._executor.fetch(data_sql, *params, request.limit, request.offset, table=self.TABLE),
        )
        return Page.build([self.map_row(r) for r in rows], request, int(total or 0))

    async def _select(
        self,
        clauses: Sequence[str],
        params: Sequence[Any],
        order_by: str,
        limit: int | None = None,
    ) -> list[RowT]:
        """Unpaginated read for entity-specific finders; *order_by* is trusted SQL."""
        sql = f"SELECT {self._select_list} FROM {self.TABLE}{self._where(clauses)} ORDER BY {order_by}"
        args = list(params)
        if limit is not None:
            args.append(limit)
            sql += f" LIMIT ${len(args)}"
        rows = await self._executor.fetch(sql, *args, table=self.TABLE)
        return [self.map_row(r) for r in rows]

    def _prepare_record(self, data: Mapping[str, Any], *, index: int | None = None) -> dict[str, Any]:
        """Keep creatable fields and check the required ones."""
        if not isinstance(data, Mapping):
            raise ValidationError(f"{self.TABLE} record must be a mapping, got {type(data).__name__}")
        missing = [
            f for f in self.REQUIRED_FIELDS if data.get(f) is None or data.get(f) == ""
        ]
        if missing:
            where = f" (record {index})" if index is not None else ""
            raise ValidationError(
                f"missing required {self.TABLE} fields{where}: {', '.join(missing)}"
            )
        return {f: data[f] for f in self.CREATE_FIELDS if f in data}

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def find_by_id(
        self,
        entity_id: Any,
        *,
        conn: asyncpg.Connection[asyncpg.Record] | None = None,
    ) -> RowT:
        """Fetch one row by primary key.

        Raises:
            ValidationError: If *entity_id* is not a positive integer.
            NotFoundError: If no row has that id.
        """
        key = self._coerce_id(entity_id)
        row = await self._executor.fetchrow(
            f"SELECT {self._select_list} FROM {self.TABLE} WHERE {self.PRIMARY_KEY} = $1",
            key,
            conn=conn,
            table=self.TABLE,
        )
        if row is None:
            raise NotFoundError(self.TABLE, key)
        return self.map_row(row)

    async def find_by_unique_key(
        self,
        unique_key: str,
        *,
        conn: asyncpg.Connection[asyncpg.Record] | None = None,
    ) -> RowT:
        """Fetch one row by its natural key.

        Raises:
            ValidationError: If the key is empty or the table has none.
            NotFoundError: If no row has that key.
        """
        if self.UNIQUE_KEY is None:
            raise ValidationError(f"{self.TABLE} has no unique key")
        if not isinstance(unique_key, str) or not unique_key.strip():
            raise ValidationError(f"invalid {self.TABLE} {self.UNIQUE_KEY}: {unique_key!r}")
        row = await self._executor.fetchrow(
            f"SELECT {self._select_list} FROM {self.TABLE} WHERE {self.UNIQUE_KEY} = $1",
            unique_key.strip(),
            conn=conn,
            table=self.TABLE,
        )
        if row is None:
            raise NotFoundError(self.TABLE, unique_key)
        return self.map_row(row)

    async def find_all(
        self,
        request: PageRequest | None = None,
        filters: Sequence[Filter] = (),
        *,
        include_all: bool = False,
    ) -> Page[RowT]:
        """List rows one page at a time.

        Args:
            request: Page, size and ordering. Out-of-range values are clamped.
            filters: Extra bound-parameter conditions.
            include_all: Skip ``BASE_FILTER``.
        """
        params: list[Any] = []
        clauses = self._scope(include_all) + self._filter_clauses(filters, params)
        return await self._paginate(clauses, params, request)

    async def search(
        self,
        fields: Sequence[str],
        query: str,
        request: PageRequest | None = None,
        filters: Sequence[Filter] = (),
        *,
        include_all: bool = False,
    ) -> Page[RowT]:
        """Case-insensitive substring search across *fields*.

        A row matches when any of the fields contains the query. The query is
        trimmed and matched literally (``%`` and ``_`` have no wildcard
        meaning).

        Raises:
            ValidationError: If the query length is out of bounds or a field
                is not a column of this table.
        """
        term = self.validate_search_term(query)
        if not fields:
            raise ValidationError(f"no search fields given for {self.TABLE}")
        unknown = [f for f in fields if f not in self.COLUMNS]
        if unknown:
            raise ValidationError(f"cannot search {self.TABLE} by {unknown}")

        params: list[Any] = [f"%{escape_like(term)}%"]
        match = "(" + " OR ".join(f"{f}::text ILIKE $1" for f in fields) + ")"
        clauses = [*self._scope(include_all), match, *self._filter_clauses(filters, params)]
        return await self._paginate(clauses, params, request)

    async def search_text(
        self,
        query: str,
        request: PageRequest | None = None,
        filters: Sequence[Filter] = (),
        *,
        include_all: bool = False,
    ) -> Page[RowT]:
        """[search()][handbook.core.repository.Repository.search] over ``SEARCH_FIELDS``."""
        return await self.search(
            self.SEARCH_FIELDS, query, request, filters, include_all=include_all
        )

    def validate_search_term(self, query: Any) -> str:
        """Trimmed search term, or ValidationError when its length is out of bounds."""
        if not isinstance(query, str):
            raise ValidationError("search query must be a string")
        term = query.strip()
        low, high = self._config.search_min_length, self._config.search_max_length
        if not low <= len(term) <= high:
            raise ValidationError(f"search query must be {low}-{high} characters long")
        return term

    async def count(self, filters: Sequence[Filter] = (), *, include_all: bool = False) -> int:
        """Number of rows matching *filters* (and ``BASE_FILTER``)."""
        params: list[Any] = []
        clauses = self._scope(include_all) + self._filter_clauses(filters, params)
        total = await self._executor.fetchval(
            f"SELECT COUNT(*) FROM {self.TABLE}{self._where(clauses)}", *params, table=self.TABLE
        )
        return int(total or 0)

    async def exists(
        self,
        entity_id: Any,
        *,
        conn: asyncpg.Connection[asyncpg.Record] | None = None,
    ) -> bool:
        key = self._coerce_id(entity_id)
        found = await self._executor.fetchval(
            f"SELECT EXISTS(SELECT 1 FROM {self.TABLE} WHERE {self.PRIMARY_KEY} = $1)",
            key,
            conn=conn,
            table=self.TABLE,
        )
        return bool(found)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(
        self,
        data: Mapping[str, Any],
        *,
        conn: asyncpg.Connection[asyncpg.Record] | None = None,
    ) -> RowT:
        """Insert one row and return it as stored (server defaults included).

        Only ``CREATE_FIELDS`` are written; other keys are ignored.

        Raises:
            ValidationError: If a required field is missing or empty.
        """
        record = self._prepare_record(data)
        if record:
            columns = ", ".join(record)
            slots = ", ".join(f"${i}" for i in range(1, len(record) + 1))
            sql = f"INSERT INTO {self.TABLE} ({columns}) VALUES ({slots})"
        else:
            sql = f"INSERT INTO {self.TABLE} DEFAULT VALUES"
        row = await self._executor.fetchrow(
            f"{sql} RETURNING {self._select_list}",
            *record.values(),
            conn=conn,
            table=self.TABLE,
        )
        if row is None:
            raise ValidationError(f"{self.TABLE} insert returned no row")
        self._logger.debug("row_created", table=self.TABLE, id=row[self.PRIMARY_KEY])
        return self.map_row(row)

    async def update(
        self,
        entity_id: Any,
        data: Mapping[str, Any],
        *,
        conn: asyncpg.Connection[asyncpg.Record] | None = None,
    ) -> RowT:
        """Change the ``UPDATE_FIELDS`` present in *data* and return the updated row.

        An update carrying no updatable field changes nothing and returns the
        current row.

        Raises:
            ValidationError: If the id is invalid or a required field is set empty.
            NotFoundError: If no row has that id.
        """
        key = self._coerce_id(entity_id)
        changes = {f: data[f] for f in self.UPDATE_FIELDS if f in data}
        if not changes:
            return await self.find_by_id(key, conn=conn)

        cleared = [
            f for f in self.REQUIRED_FIELDS if f in changes and changes[f] in (None, "")
        ]
        if cleared:
            raise ValidationError(f"required {self.TABLE} fields cannot be empty: {cleared}")

        assignments = [f"{f} = ${i}" for i, f in enumerate(changes, start=2)]
        if "updated_at" in self.COLUMNS and "updated_at" not in changes:
            assignments.append("updated_at = NOW()")
        row = await self._executor.fetchrow(
            f"UPDATE {self.TABLE} SET {', '.join(assignments)} "
            f"WHERE {self.PRIMARY_KEY} = $1 RETURNING {self._select_list}",
            key,
            *changes.values(),
            conn=conn,
            table=self.TABLE,
        )
        if row is None:
            raise NotFoundError(self.TABLE, key)
        return self.map_row(row)

    async def delete(
        self,
        entity_id: Any,
        *,
        conn: asyncpg.Connection[asyncpg.Record] | None = None,
    ) -> None:
        """Delete one row.

        Raises:
            NotFoundError: If no row has that id.
        """
        key = self._coerce_id(entity_id)
        status = await self._executor.execute(
            f"DELETE FROM {self.TABLE} WHERE {self.PRIMARY_KEY} = $1",
            key,
            conn=conn,
            table=self.TABLE,
        )
        if parse_row_count(status) == 0:
            raise NotFoundError(self.TABLE, key)
        self._logger.debug("row_deleted", table=self.TABLE, id=key)

    async def batch_create(
        self,
        records: Sequence[Mapping[str, Any]],
        batch_size: int | None = None,
    ) -> list[int]:
        """Insert many rows atomically, in multi-row ``INSERT`` chunks.

        Every record is validated before anything is written. Fields a record
        does not carry get the column default. All chunks share one
        transaction, so either every row is stored or none is.

        Args:
            records: Rows to insert.
            batch_size: Rows per statement; defaults to ``default_batch_size``.

        Returns:
            The new primary keys, in input order.

        Raises:
            ValidationError: If any record is invalid or the batch size is
                out of bounds.
        """
        size = self._config.default_batch_size if batch_size is None else batch_size
        if not 1 <= size <= self._config.max_batch_size:
            raise ValidationError(
                f"batch_size must be between 1 and {self._config.max_batch_size}, got {size}"
            )
        prepared = [self._prepare_record(r, index=i) for i, r in enumerate(records)]
        if not prepared:
            return []
        columns = [f for f in self.CREATE_FIELDS if any(f in r for r in prepared)]
        if not columns:
            raise ValidationError(f"{self.TABLE} records carry no insertable fields")

        async def insert_chunks(conn: asyncpg.Connection[asyncpg.Record]) -> list[int]:
            ids: list[int] = []
            for start in range(0, len(prepared), size):
                params: list[Any] = []
                tuples: list[str] = []
                for record in prepared[start : start + size]:
                    slots = []
                    for column in columns:
                        if column in record:
                            params.append(record[column])
                            slots.append(f"${len(params)}")
                        else:
                            slots.append("DEFAULT")
                    tuples.append(f"({', '.join(slots)})")
                rows = await self._executor.fetch(
                    f"INSERT INTO {self.TABLE} ({', '.join(columns)}) "
                    f"VALUES {', '.join(tuples)} RETURNING {self.PRIMARY_KEY}",
                    *params,
                    conn=conn,
                    table=self.TABLE,
                )
                ids.extend(row[self.PRIMARY_KEY] for row in rows)
            return ids

        ids = await self._executor.run_transaction(insert_chunks)
        self._logger.info("batch_created", table=self.TABLE, rows=len(ids), batch_size=size)
        return ids

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    async def health_check(self) -> RepositoryHealth:
        """Check the table with a trivial read. Never raises."""
        started = time.monotonic()
        try:
            async with asyncio.timeout(self._config.health_check_timeout):
                await self._executor.fetch(f"SELECT 1 FROM {self.TABLE} LIMIT 1", table=self.TABLE)
        except Exception as e:  # Intentionally broad: health reports carry the error instead of raising
            return RepositoryHealth(
                healthy=False,
                table=self.TABLE,
                error=str(e) or type(e).__name__,
                response_time=time.monotonic() - started,
            )
        return RepositoryHealth(
            healthy=True, table=self.TABLE, response_time=time.monotonic() - started
        )
