"""Document rows: guides and articles with rich JSON content."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ._mapping import from_row, to_dict


@dataclass(frozen=True, slots=True)
class Document:
    """A single row in the ``documents`` table.

    ``content_json_en`` and ``screenshots`` are JSONB columns decoded by the
    pool's codecs.
    """

    id: int
    unique_key: str
    title_en: str
    summary_en: str | None = None
    content_json_en: Any = None
    is_published: bool = False
    screenshots: tuple[str, ...] = field(default_factory=tuple)
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "screenshots", tuple(self.screenshots or ()))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Document:
        return from_row(cls, row)

    def to_dict(self) -> dict[str, Any]:
        return to_dict(self)
