from .mineflayer_session import BridgeConfig, MineflayerSession
from .session import (
    AutoEatOptions,
    Block,
    EntityInfo,
    GameSession,
    InventoryItem,
    PlayerInfo,
    RaycastHit,
    Vitals,
)

__all__ = [
    "AutoEatOptions",
    "Block",
    "BridgeConfig",
    "EntityInfo",
    "GameSession",
    "InventoryItem",
    "MineflayerSession",
    "PlayerInfo",
    "RaycastHit",
    "Vitals",
]
