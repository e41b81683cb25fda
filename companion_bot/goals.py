"""
Navigation goals handed to the pathfinder

These are plain values; the session translates them into mineflayer-pathfinder goals.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .world.geometry import Position


class GoalMode(Enum):
    """How long a goal stays relevant"""

    EXCLUSIVE = "exclusive"  # runs once to completion or cancellation
    PERSISTENT = "persistent"  # re-evaluated by the pathfinder on every world update


@dataclass(frozen=True)
class Goal:
    def describe(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class GoalNear(Goal):
    x: float
    y: float
    z: float
    range: float = 1

    @classmethod
    def around(cls, position: Position, range: float = 1) -> "GoalNear":
        return cls(position.x, position.y, position.z, range)


@dataclass(frozen=True)
class GoalBlock(Goal):
    x: int
    y: int
    z: int


@dataclass(frozen=True)
class GoalXZ(Goal):
    x: int
    z: int


@dataclass(frozen=True)
class GoalY(Goal):
    y: int


@dataclass(frozen=True)
class GoalFollow(Goal):
    entity_id: int
    range: float = 3


@dataclass(frozen=True)
class GoalInvert(Goal):
    goal: Goal

    def describe(self) -> str:
        return f"GoalInvert({self.goal.describe()})"


@dataclass(frozen=True)
class GoalLookAtBlock(Goal):
    position: Position
    range: float = 4


@dataclass(frozen=True)
class GoalPlaceBlock(Goal):
    position: Position
    range: float = 4


def goal_from_coordinates(args: list[str]) -> Optional[Goal]:
    """Build a goto goal from 1-3 integer arguments

    Three numbers select a block, two a column (x z), one a height plane (y).
    Anything unparseable yields None.
    """
    try:
        numbers = [int(arg) for arg in args]
    except ValueError:
        return None

    if len(numbers) == 3:
        return GoalBlock(*numbers)
    if len(numbers) == 2:
        return GoalXZ(*numbers)
    if len(numbers) == 1:
        return GoalY(numbers[0])
    return None


def describe(goal: Optional[Any]) -> str:
    return goal.describe() if goal is not None else "none"
