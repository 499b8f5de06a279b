"""Swimsuit skill link repository."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from handbook.core.exceptions import NotFoundError, ValidationError
from handbook.core.pagination import Page, PageRequest
from handbook.core.repository import Filter, Repository
from handbook.models import SkillSlot, SwimsuitSkill, model_columns


class SwimsuitSkillRepository(Repository[SwimsuitSkill]):
    """Which skill sits in which slot of a swimsuit."""

    TABLE: ClassVar[str] = "swimsuit_skills"
    COLUMNS: ClassVar[tuple[str, ...]] = model_columns(SwimsuitSkill)
    CREATE_FIELDS: ClassVar[tuple[str, ...]] = ("swimsuit_id", "skill_id", "skill_slot")
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = ("swimsuit_id", "skill_id", "skill_slot")
    UNIQUE_KEY: ClassVar[str | None] = None

    def map_row(self, row: Mapping[str, Any]) -> SwimsuitSkill:
        return SwimsuitSkill.from_row(row)

    async def find_by_swimsuit(self, swimsuit_id: Any) -> list[SwimsuitSkill]:
        """Every slot of one swimsuit, active skill first."""
        key = self._coerce_id(swimsuit_id)
        return await self._select(["swimsuit_id = $1"], [key], "skill_slot ASC")

    async def find_by_skill(
        self, skill_id: Any, request: PageRequest | None = None
    ) -> Page[SwimsuitSkill]:
        key = self._coerce_id(skill_id)
        return await self.find_all(request, [Filter("skill_id", key)])

    async def find_by_slot(self, swimsuit_id: Any, slot: Any) -> SwimsuitSkill:
        """The link in one slot of one swimsuit.

        Raises:
            ValidationError: If the id or slot is invalid.
            NotFoundError: If the slot is empty.
        """
        key = self._coerce_id(swimsuit_id)
        try:
            skill_slot = SkillSlot(slot)
        except ValueError as e:
            raise ValidationError(f"invalid skill_slot {slot!r}") from e
        rows = await self._select(
            ["swimsuit_id = $1", "skill_slot = $2"], [key, skill_slot], "id ASC", limit=1
        )
        if not rows:
            raise NotFoundError(self.TABLE, (key, str(skill_slot)))
        return rows[0]
