"""Skill rows."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ._mapping import coerce_enum, from_row, to_dict
from .constants import SkillCategory


@dataclass(frozen=True, slots=True)
class Skill:
    """A single row in the ``skills`` table."""

    id: int
    unique_key: str
    name_jp: str
    name_en: str
    name_cn: str
    name_tw: str
    name_kr: str
    skill_category: SkillCategory
    description_en: str | None = None
    effect_type: str | None = None
    game_version: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "skill_category", coerce_enum(self.skill_category, SkillCategory, "skill_category")
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Skill:
        return from_row(cls, row)

    def to_dict(self) -> dict[str, Any]:
        return to_dict(self)
