"""Positions, block faces and line-of-sight helpers."""
import math
from typing import NamedTuple, Optional


class Position(NamedTuple):
    x: float
    y: float
    z: float

    def offset(self, dx: float, dy: float, dz: float) -> "Position":
        return Position(self.x + dx, self.y + dy, self.z + dz)

    def floored(self) -> "Position":
        return Position(math.floor(self.x), math.floor(self.y), math.floor(self.z))

    def scaled(self, factor: float) -> "Position":
        return Position(self.x * factor, self.y * factor, self.z * factor)

    def plus(self, other: "Position") -> "Position":
        return Position(self.x + other.x, self.y + other.y, self.z + other.z)

    def distance_to(self, other: "Position") -> float:
        return math.sqrt((self.x - other.x) ** 2 + (self.y - other.y) ** 2 + (self.z - other.z) ** 2)

    def __str__(self) -> str:
        return f"({self.x:.2f}, {self.y:.2f}, {self.z:.2f})"


# Indexed by mineflayer face id: bottom, top, north, south, west, east
FACE_VECTORS = (
    Position(0, -1, 0),
    Position(0, 1, 0),
    Position(0, 0, -1),
    Position(0, 0, 1),
    Position(-1, 0, 0),
    Position(1, 0, 0),
)


def direction_to_vector(face: int) -> Optional[Position]:
    """Convert a block face id to its unit vector, None for an unknown face"""
    if face < 0 or face > 5:
        return None
    return FACE_VECTORS[face]


def sight_direction(yaw: float, pitch: float) -> Position:
    """Unit vector an entity is looking along"""
    return Position(
        -math.sin(yaw) * math.cos(pitch),
        math.sin(pitch),
        -math.cos(yaw) * math.cos(pitch),
    )
