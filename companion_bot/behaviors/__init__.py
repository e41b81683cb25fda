from .base import BehaviorLoop
from .drops import DropCollector
from .maintenance import ActivityWatch, HungerAnnouncer, Maintenance
from .mining import MiningLoop
from .wood import WoodCollectionLoop

__all__ = [
    "ActivityWatch",
    "BehaviorLoop",
    "DropCollector",
    "HungerAnnouncer",
    "Maintenance",
    "MiningLoop",
    "WoodCollectionLoop",
]
