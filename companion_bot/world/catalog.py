"""
Block and item classification backed by python-minecraft-data
"""
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional

import minecraft_data

from ..logging_config import get_logger

logger = get_logger(__name__)

AXE_NAMES = ("stone_axe", "golden_axe", "iron_axe", "diamond_axe", "netherite_axe")

# Best first
MATERIAL_TIERS = ("netherite", "diamond", "iron", "chainmail", "turtle", "golden", "stone", "leather", "wooden")

ARMOR_SLOTS = {
    "head": ("_helmet",),
    "torso": ("_chestplate",),
    "legs": ("_leggings",),
    "feet": ("_boots",),
}


def is_log(name: str) -> bool:
    """Wood log of any species, stripped variants excluded"""
    return name.endswith("_log") and "stripped" not in name


def is_foliage(name: str) -> bool:
    return "leaves" in name


def is_ore(name: str) -> bool:
    return name.endswith("_ore")


def has_axe(items: Iterable[Any]) -> bool:
    """At least a stone axe in the inventory"""
    return any(item.name in AXE_NAMES for item in items)


def find_axe(items: Iterable[Any]) -> Optional[Any]:
    return next((item for item in items if item.name in AXE_NAMES), None)


def count_logs(items: Iterable[Any]) -> int:
    return sum(item.count for item in items if is_log(item.name))


def material_rank(name: str) -> int:
    """Lower is better; unknown materials rank last"""
    for rank, material in enumerate(MATERIAL_TIERS):
        if name.startswith(material + "_"):
            return rank
    return len(MATERIAL_TIERS)


def best_gear(items: Iterable[Any]) -> Dict[str, Any]:
    """Pick the best armor piece per slot and the best sword for the hand

    Returns:
        Mapping of equip destination to inventory item
    """
    items = list(items)
    choice: Dict[str, Any] = {}

    for destination, suffixes in ARMOR_SLOTS.items():
        candidates = [item for item in items if item.name.endswith(suffixes)]
        if candidates:
            choice[destination] = min(candidates, key=lambda item: material_rank(item.name))

    swords = [item for item in items if item.name.endswith("_sword")]
    if swords:
        choice["hand"] = min(swords, key=lambda item: material_rank(item.name))

    return choice


class MinecraftCatalog:
    """Version-specific block names and food data"""

    def __init__(self, mc_version: str, mc_data: Any = None):
        """Initialize the catalog for a Minecraft version

        Args:
            mc_version: Minecraft version string (e.g., "1.21.1")
            mc_data: Preloaded minecraft_data object, loaded from the package when omitted
        """
        self.version = mc_version
        try:
            self.mc_data = mc_data if mc_data is not None else minecraft_data(mc_version)
            logger.info("Initialized MinecraftCatalog", version=mc_version)
        except Exception as e:
            logger.error("Failed to initialize minecraft-data", version=mc_version, error=str(e))
            raise

        self._log_blocks = sorted(name for name in self.mc_data.blocks_name if is_log(name))
        self._ore_blocks = sorted(name for name in self.mc_data.blocks_name if is_ore(name))

    def log_block_names(self) -> List[str]:
        return list(self._log_blocks)

    def ore_block_names(self) -> List[str]:
        return list(self._ore_blocks)

    def is_food(self, item_name: str) -> bool:
        return item_name in self.mc_data.foods_name

    def has_food(self, items: Iterable[Any]) -> bool:
        return any(self.is_food(item.name) for item in items)

    def match_items(self, items: Iterable[Any], fragment: str) -> List[Any]:
        """Inventory items whose name contains the fragment (used by !place)"""
        fragment = fragment.lower().strip()
        return [item for item in items if fragment in item.name]


@lru_cache(maxsize=4)
def load_catalog(mc_version: str) -> MinecraftCatalog:
    return MinecraftCatalog(mc_version)
