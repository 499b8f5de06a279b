"""Update log rows: release notes for game versions."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ._mapping import from_row, to_dict


@dataclass(frozen=True, slots=True)
class UpdateLog:
    """A single row in the ``update_logs`` table.

    ``tags``, ``screenshots`` and ``metrics`` are JSONB columns.
    """

    id: int
    unique_key: str
    version: str
    title: str
    content: str
    date: datetime.date
    description: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    is_published: bool = True
    screenshots: tuple[str, ...] = field(default_factory=tuple)
    metrics: Any = None
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", tuple(self.tags or ()))
        object.__setattr__(self, "screenshots", tuple(self.screenshots or ()))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> UpdateLog:
        return from_row(cls, row)

    def to_dict(self) -> dict[str, Any]:
        return to_dict(self)
