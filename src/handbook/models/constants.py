"""Enumerations stored as text columns in the handbook tables.

Values are the exact strings written to the database; models convert raw
column values into these enums in ``__post_init__``.
"""

from __future__ import annotations

from enum import StrEnum


class SwimsuitRarity(StrEnum):
    N = "N"
    R = "R"
    SR = "SR"
    SSR = "SSR"
    SSR_PLUS = "SSR+"


class SuitType(StrEnum):
    """Primary stat of a swimsuit."""

    POW = "POW"
    TEC = "TEC"
    STM = "STM"
    APL = "APL"
    NONE = "N/A"


class SkillCategory(StrEnum):
    ACTIVE = "ACTIVE"
    PASSIVE = "PASSIVE"
    POTENTIAL = "POTENTIAL"


class ItemCategory(StrEnum):
    CURRENCY = "CURRENCY"
    UPGRADE_MATERIAL = "UPGRADE_MATERIAL"
    CONSUMABLE = "CONSUMABLE"
    GIFT = "GIFT"
    ACCESSORY = "ACCESSORY"
    FURNITURE = "FURNITURE"
    SPECIAL = "SPECIAL"


class ItemRarity(StrEnum):
    N = "N"
    R = "R"
    SR = "SR"
    SSR = "SSR"


class BromideType(StrEnum):
    DECO = "DECO"
    OWNER = "OWNER"


class BromideRarity(StrEnum):
    R = "R"
    SR = "SR"
    SSR = "SSR"


class EpisodeType(StrEnum):
    MAIN = "MAIN"
    CHARACTER = "CHARACTER"
    EVENT = "EVENT"
    SWIMSUIT = "SWIMSUIT"
    ITEM = "ITEM"


class EventType(StrEnum):
    FESTIVAL_RANKING = "FESTIVAL_RANKING"
    FESTIVAL_CUMULATIVE = "FESTIVAL_CUMULATIVE"
    TOWER = "TOWER"
    ROCK_CLIMBING = "ROCK_CLIMBING"
    BUTT_BATTLE = "BUTT_BATTLE"
    LOGIN_BONUS = "LOGIN_BONUS"
    STORY = "STORY"


class GachaSubtype(StrEnum):
    TRENDY = "TRENDY"
    NOSTALGIC = "NOSTALGIC"
    BIRTHDAY = "BIRTHDAY"
    ANNIVERSARY = "ANNIVERSARY"
    PAID = "PAID"
    FREE = "FREE"
    ETC = "ETC"


class PoolItemType(StrEnum):
    """Table a gacha pool entry's ``item_id`` points into."""

    SWIMSUIT = "SWIMSUIT"
    BROMIDE = "BROMIDE"
    ITEM = "ITEM"


class ShopType(StrEnum):
    EVENT = "EVENT"
    VIP = "VIP"
    GENERAL = "GENERAL"
    CURRENCY = "CURRENCY"


class SkillSlot(StrEnum):
    """Position of a skill on a swimsuit; each slot holds at most one skill."""

    ACTIVE = "ACTIVE"
    PASSIVE_1 = "PASSIVE_1"
    PASSIVE_2 = "PASSIVE_2"
    POTENTIAL_1 = "POTENTIAL_1"
    POTENTIAL_2 = "POTENTIAL_2"
    POTENTIAL_3 = "POTENTIAL_3"
    POTENTIAL_4 = "POTENTIAL_4"
