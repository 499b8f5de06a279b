"""Episode repository."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from handbook.core.exceptions import ValidationError
from handbook.core.pagination import Page, PageRequest
from handbook.core.repository import Filter, Repository
from handbook.models import Episode, EpisodeType, model_columns, multilingual


class EpisodeRepository(Repository[Episode]):
    TABLE: ClassVar[str] = "episodes"
    COLUMNS: ClassVar[tuple[str, ...]] = model_columns(Episode)
    CREATE_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        *multilingual("title"),
        "unlock_condition_en",
        "episode_type",
        "related_entity_type",
        "related_entity_id",
        "game_version",
    )
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        *multilingual("title"),
        "episode_type",
    )
    SORT_COLUMNS: ClassVar[Mapping[str, str]] = {
        "id": "id",
        "title": "title_en",
        "title_en": "title_en",
        "title_jp": "title_jp",
        "episode_type": "episode_type",
        "type": "episode_type",
        "game_version": "game_version",
    }
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = (
        *multilingual("title"),
        "unlock_condition_en",
        "unique_key",
    )

    def map_row(self, row: Mapping[str, Any]) -> Episode:
        return Episode.from_row(row)

    async def find_by_type(self, episode_type: Any, request: PageRequest | None = None) -> Page[Episode]:
        return await self.find_all(request, [Filter.enum("episode_type", episode_type, EpisodeType)])

    async def find_by_related_entity(
        self,
        entity_type: str,
        entity_id: Any,
        request: PageRequest | None = None,
    ) -> Page[Episode]:
        """Episodes unlocked by a given character, swimsuit, item..."""
        if not isinstance(entity_type, str) or not entity_type.strip():
            raise ValidationError(f"invalid related entity type: {entity_type!r}")
        key = self._coerce_id(entity_id)
        return await self.find_all(
            request,
            [Filter("related_entity_type", entity_type.strip()), Filter("related_entity_id", key)],
        )
