"""Row models for the handbook tables.

Pure frozen dataclasses with no I/O. Each model builds itself from a
database row (``from_row``) and renders a JSON-ready dict (``to_dict``);
enum columns are converted to the enums in
[handbook.models.constants][handbook.models.constants].
"""

from ._mapping import LANGUAGES, model_columns, multilingual
from .bromide import Bromide
from .character import Character
from .constants import (
    BromideRarity,
    BromideType,
    EpisodeType,
    EventType,
    GachaSubtype,
    ItemCategory,
    ItemRarity,
    PoolItemType,
    ShopType,
    SkillCategory,
    SkillSlot,
    SuitType,
    SwimsuitRarity,
)
from .document import Document
from .episode import Episode
from .event import Event
from .gacha import Gacha, GachaPoolEntry
from .item import Item
from .shop_listing import ShopListing
from .skill import Skill
from .swimsuit import Swimsuit
from .swimsuit_skill import SwimsuitSkill
from .update_log import UpdateLog


__all__ = [
    "LANGUAGES",
    "Bromide",
    "BromideRarity",
    "BromideType",
    "Character",
    "Document",
    "Episode",
    "EpisodeType",
    "Event",
    "EventType",
    "Gacha",
    "GachaPoolEntry",
    "GachaSubtype",
    "Item",
    "ItemCategory",
    "ItemRarity",
    "PoolItemType",
    "ShopListing",
    "ShopType",
    "Skill",
    "SkillCategory",
    "SkillSlot",
    "SuitType",
    "Swimsuit",
    "SwimsuitRarity",
    "SwimsuitSkill",
    "UpdateLog",
    "model_columns",
    "multilingual",
]
