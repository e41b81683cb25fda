from .catalog import MinecraftCatalog, best_gear, count_logs, has_axe, is_foliage, is_log, is_ore, load_catalog
from .geometry import Position, direction_to_vector, sight_direction

__all__ = [
    "MinecraftCatalog",
    "Position",
    "best_gear",
    "count_logs",
    "direction_to_vector",
    "has_axe",
    "is_foliage",
    "is_log",
    "is_ore",
    "load_catalog",
    "sight_direction",
]
