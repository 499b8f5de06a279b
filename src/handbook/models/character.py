"""Character rows: the playable girls, with localized names and profile data."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ._mapping import from_row, to_dict


@dataclass(frozen=True, slots=True)
class Character:
    """A single row in the ``characters`` table.

    Attributes:
        unique_key: Stable slug (e.g. ``"kasumi"``).
        birthday: Birth date; only month and day are meaningful.
        is_active: Inactive characters are hidden from listings and search.
    """

    id: int
    unique_key: str
    name_jp: str
    name_en: str
    name_cn: str
    name_tw: str
    name_kr: str
    birthday: datetime.date | None = None
    height: int | None = None
    measurements: str | None = None
    blood_type: str | None = None
    voice_actor_jp: str | None = None
    profile_image_url: str | None = None
    is_active: bool = True
    game_version: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Character:
        return from_row(cls, row)

    def to_dict(self) -> dict[str, Any]:
        return to_dict(self)

    def next_birthday(self, today: datetime.date) -> datetime.date | None:
        """The first birthday on or after *today* (Feb 29 falls on Feb 28 in common years)."""
        if self.birthday is None:
            return None
        for year in (today.year, today.year + 1):
            try:
                candidate = self.birthday.replace(year=year)
            except ValueError:
                candidate = datetime.date(year, 2, 28)
            if candidate >= today:
                return candidate
        return None

    def days_until_birthday(self, today: datetime.date) -> int | None:
        upcoming = self.next_birthday(today)
        return (upcoming - today).days if upcoming is not None else None
