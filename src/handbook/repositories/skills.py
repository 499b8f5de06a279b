"""Skill repository."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from handbook.core.pagination import Page, PageRequest
from handbook.core.repository import Filter, Repository
from handbook.models import Skill, SkillCategory, model_columns, multilingual


class SkillRepository(Repository[Skill]):
    TABLE: ClassVar[str] = "skills"
    COLUMNS: ClassVar[tuple[str, ...]] = model_columns(Skill)
    CREATE_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        *multilingual("name"),
        "description_en",
        "skill_category",
        "effect_type",
        "game_version",
    )
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        *multilingual("name"),
        "skill_category",
    )
    SORT_COLUMNS: ClassVar[Mapping[str, str]] = {
        "id": "id",
        "name": "name_en",
        "name_en": "name_en",
        "name_jp": "name_jp",
        "skill_category": "skill_category",
        "category": "skill_category",
        "effect_type": "effect_type",
        "game_version": "game_version",
    }
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = (
        *multilingual("name"),
        "description_en",
        "unique_key",
    )

    def map_row(self, row: Mapping[str, Any]) -> Skill:
        return Skill.from_row(row)

    async def find_by_category(self, category: Any, request: PageRequest | None = None) -> Page[Skill]:
        return await self.find_all(request, [Filter.enum("skill_category", category, SkillCategory)])
