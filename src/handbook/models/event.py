"""Event rows: time-boxed in-game events."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ._mapping import coerce_enum, from_row, to_dict
from .constants import EventType


@dataclass(frozen=True, slots=True)
class Event:
    """A single row in the ``events`` table."""

    id: int
    unique_key: str
    name_jp: str
    name_en: str
    name_cn: str
    name_tw: str
    name_kr: str
    type: EventType
    start_date: datetime.date
    end_date: datetime.date
    is_active: bool = True
    game_version: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", coerce_enum(self.type, EventType, "type"))
        if self.end_date < self.start_date:
            raise ValueError(f"end_date {self.end_date} precedes start_date {self.start_date}")

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Event:
        return from_row(cls, row)

    def to_dict(self) -> dict[str, Any]:
        return to_dict(self)

    def is_running(self, on: datetime.date) -> bool:
        return self.start_date <= on <= self.end_date
