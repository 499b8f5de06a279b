"""Links between swimsuits and the skills in their slots."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ._mapping import coerce_enum, from_row, to_dict
from .constants import SkillSlot


@dataclass(frozen=True, slots=True)
class SwimsuitSkill:
    """A single row in the ``swimsuit_skills`` table; ``(swimsuit_id, skill_slot)`` is unique."""

    id: int
    swimsuit_id: int
    skill_id: int
    skill_slot: SkillSlot

    def __post_init__(self) -> None:
        object.__setattr__(self, "skill_slot", coerce_enum(self.skill_slot, SkillSlot, "skill_slot"))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> SwimsuitSkill:
        return from_row(cls, row)

    def to_dict(self) -> dict[str, Any]:
        return to_dict(self)
