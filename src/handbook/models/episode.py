"""Episode rows: story chapters, optionally tied to another entity."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ._mapping import coerce_enum, from_row, to_dict
from .constants import EpisodeType


@dataclass(frozen=True, slots=True)
class Episode:
    """A single row in the ``episodes`` table.

    Attributes:
        related_entity_type: Kind of entity the episode unlocks with
            (``"character"``, ``"swimsuit"``...), paired with
            ``related_entity_id``.
    """

    id: int
    unique_key: str
    title_jp: str
    title_en: str
    title_cn: str
    title_tw: str
    title_kr: str
    episode_type: EpisodeType
    unlock_condition_en: str | None = None
    related_entity_type: str | None = None
    related_entity_id: int | None = None
    game_version: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "episode_type", coerce_enum(self.episode_type, EpisodeType, "episode_type")
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Episode:
        return from_row(cls, row)

    def to_dict(self) -> dict[str, Any]:
        return to_dict(self)
