"""Character repository."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from typing import Any, ClassVar

from handbook.core.exceptions import ValidationError
from handbook.core.repository import Repository
from handbook.models import Character, model_columns, multilingual


class CharacterRepository(Repository[Character]):
    """Characters; listings and searches only show active ones by default."""

    TABLE: ClassVar[str] = "characters"
    COLUMNS: ClassVar[tuple[str, ...]] = model_columns(Character)
    CREATE_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        *multilingual("name"),
        "birthday",
        "height",
        "measurements",
        "blood_type",
        "voice_actor_jp",
        "profile_image_url",
        "is_active",
        "game_version",
    )
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = ("unique_key", *multilingual("name"))
    SORT_COLUMNS: ClassVar[Mapping[str, str]] = {
        "id": "id",
        "name": "name_en",
        "name_en": "name_en",
        "name_jp": "name_jp",
        "birthday": "birthday",
        "height": "height",
        "unique_key": "unique_key",
        "is_active": "is_active",
        "game_version": "game_version",
    }
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = (*multilingual("name"), "unique_key")
    BASE_FILTER: ClassVar[str | None] = "is_active = TRUE"

    def map_row(self, row: Mapping[str, Any]) -> Character:
        return Character.from_row(row)

    async def find_upcoming_birthdays(
        self,
        days: int = 7,
        *,
        today: datetime.date | None = None,
    ) -> list[tuple[Character, int]]:
        """Active characters whose birthday falls within the next *days* days.

        Returns:
            ``(character, days_until)`` pairs, soonest first. A birthday
            today counts as 0 days away.
        """
        if isinstance(days, bool) or not isinstance(days, int) or not 0 <= days <= 366:
            raise ValidationError(f"days must be between 0 and 366, got {days!r}")
        today = today or datetime.date.today()

        characters = await self._select(
            [self.BASE_FILTER or "TRUE", "birthday IS NOT NULL"], [], order_by="id"
        )
        upcoming = []
        for character in characters:
            until = character.days_until_birthday(today)
            if until is not None and until <= days:
                upcoming.append((character, until))
        upcoming.sort(key=lambda pair: (pair[1], pair[0].id))
        return upcoming
