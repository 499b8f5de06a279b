"""Shared row-mapping helpers for the frozen dataclass models.

Private module. Used by the ``from_row``/``to_dict`` methods of sibling
model modules and by repositories to derive their column lists.
"""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import fields
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar


T = TypeVar("T")

LANGUAGES: tuple[str, ...] = ("jp", "en", "cn", "tw", "kr")


def model_columns(model: type[Any]) -> tuple[str, ...]:
    """Column names of a model, in declaration order."""
    return tuple(f.name for f in fields(model) if f.init)


def multilingual(prefix: str) -> tuple[str, ...]:
    """``("name_jp", "name_en", ...)`` for a localized column family."""
    return tuple(f"{prefix}_{lang}" for lang in LANGUAGES)


def from_row(model: type[T], row: Mapping[str, Any]) -> T:
    """Build *model* from the row's matching columns; extra columns are ignored."""
    return model(**{name: row[name] for name in model_columns(model) if name in row})


def coerce_enum(value: Any, enum: type[Enum], name: str) -> Any:
    """Convert a raw column value to *enum*, leaving ``None`` alone."""
    if value is None or isinstance(value, enum):
        return value
    try:
        return enum(value)
    except ValueError as e:
        raise ValueError(f"{name}: unknown value {value!r}") from e


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime.date | datetime.datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, tuple):
        return [_serialize(v) for v in value]
    return value


def to_dict(obj: Any) -> dict[str, Any]:
    """JSON-ready dict of a model instance (enum values, ISO dates, decimals as floats)."""
    return {f.name: _serialize(getattr(obj, f.name)) for f in fields(obj) if f.init}
