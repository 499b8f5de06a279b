"""One repository per handbook table.

Each class declares its table contract on top of
[Repository][handbook.core.repository.Repository] and adds the finders
specific to its entity.
"""

from handbook.core.repository import Repository

from .bromides import BromideRepository
from .characters import CharacterRepository
from .documents import DocumentRepository
from .episodes import EpisodeRepository
from .events import EventRepository
from .gachas import GachaPoolRepository, GachaRepository
from .items import ItemRepository
from .shop_listings import ShopListingRepository
from .skills import SkillRepository
from .swimsuit_skills import SwimsuitSkillRepository
from .swimsuits import SwimsuitRepository
from .update_logs import UpdateLogRepository


ALL_REPOSITORIES: tuple[type[Repository[object]], ...] = (
    CharacterRepository,
    SwimsuitRepository,
    SkillRepository,
    SwimsuitSkillRepository,
    ItemRepository,
    BromideRepository,
    EpisodeRepository,
    EventRepository,
    GachaRepository,
    GachaPoolRepository,
    ShopListingRepository,
    DocumentRepository,
    UpdateLogRepository,
)


__all__ = [
    "ALL_REPOSITORIES",
    "BromideRepository",
    "CharacterRepository",
    "DocumentRepository",
    "EpisodeRepository",
    "EventRepository",
    "GachaPoolRepository",
    "GachaRepository",
    "ItemRepository",
    "ShopListingRepository",
    "SkillRepository",
    "SwimsuitRepository",
    "SwimsuitSkillRepository",
    "UpdateLogRepository",
]
