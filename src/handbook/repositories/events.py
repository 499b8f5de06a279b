"""Event repository."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from handbook.core.pagination import Page, PageRequest
from handbook.core.repository import Filter, Repository
from handbook.models import Event, EventType, model_columns, multilingual


class EventRepository(Repository[Event]):
    TABLE: ClassVar[str] = "events"
    COLUMNS: ClassVar[tuple[str, ...]] = model_columns(Event)
    CREATE_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        *multilingual("name"),
        "type",
        "start_date",
        "end_date",
        "is_active",
        "game_version",
    )
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        *multilingual("name"),
        "type",
        "start_date",
        "end_date",
    )
    SORT_COLUMNS: ClassVar[Mapping[str, str]] = {
        "id": "id",
        "name": "name_en",
        "name_en": "name_en",
        "type": "type",
        "start_date": "start_date",
        "end_date": "end_date",
        "is_active": "is_active",
        "game_version": "game_version",
    }
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = (*multilingual("name"), "unique_key")

    def map_row(self, row: Mapping[str, Any]) -> Event:
        return Event.from_row(row)

    async def find_active(self, request: PageRequest | None = None) -> Page[Event]:
        return await self.find_all(request, [Filter("is_active", True)])

    async def find_upcoming(self, request: PageRequest | None = None) -> Page[Event]:
        """Events that have not started yet, per the database clock."""
        request = request or PageRequest(sort_by="start_date")
        return await self._paginate(["start_date > CURRENT_DATE"], [], request)

    async def find_by_type(self, event_type: Any, request: PageRequest | None = None) -> Page[Event]:
        return await self.find_all(request, [Filter.enum("type", event_type, EventType)])
