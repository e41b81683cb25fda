"""
Tests for positions and goal parsing
"""
import math

import pytest

from companion_bot.goals import GoalBlock, GoalFollow, GoalInvert, GoalXZ, GoalY, describe, goal_from_coordinates
from companion_bot.world.geometry import Position, direction_to_vector, sight_direction


@pytest.mark.parametrize(
    "args, expected",
    [
        (["10", "64", "-5"], GoalBlock(10, 64, -5)),
        (["10", "-5"], GoalXZ(10, -5)),
        (["70"], GoalY(70)),
        ([], None),
        (["1", "2", "3", "4"], None),
        (["a", "b"], None),
        (["1.5"], None),
    ],
)
def test_goal_from_coordinates(args, expected):
    assert goal_from_coordinates(args) == expected


def test_describe():
    assert describe(None) == "none"
    assert describe(GoalInvert(GoalFollow(3, 5))) == "GoalInvert(GoalFollow)"


def test_direction_to_vector():
    assert direction_to_vector(1) == Position(0, 1, 0)
    assert direction_to_vector(4) == Position(-1, 0, 0)
    assert direction_to_vector(6) is None
    assert direction_to_vector(-1) is None


def test_sight_direction_is_unit_length():
    looking_north = sight_direction(0.0, 0.0)
    assert looking_north.z == pytest.approx(-1.0)

    down = sight_direction(1.2, -math.pi / 2)
    assert down.y == pytest.approx(-1.0)
    assert math.isclose(down.distance_to(Position(0, 0, 0)), 1.0, rel_tol=1e-9)


def test_position_helpers():
    position = Position(1.7, 64.2, -3.4)

    assert position.floored() == Position(1, 64, -4)
    assert position.offset(1, 0, 0).x == pytest.approx(2.7)
    assert Position(0, 0, 0).distance_to(Position(3, 4, 0)) == 5
    assert str(Position(1, 2, 3)) == "(1.00, 2.00, 3.00)"
