"""
Farkle Engine - Test Configuration and Fixtures

Common fixtures and test data for all test modules.
"""

from collections import deque
from typing import Callable, Iterable

import pytest


class ScriptedDice:
    """Random source that replays fixed faces, one per `randint` call."""

    def __init__(self, faces: Iterable[int]) -> None:
        self._faces = deque(faces)

    def randint(self, a: int, b: int) -> int:
        if not self._faces:
            raise AssertionError("Scripted dice ran out of faces.")
        face = self._faces.popleft()
        assert a <= face <= b
        return face

    @property
    def remaining(self) -> int:
        return len(self._faces)


@pytest.fixture
def scripted_dice() -> Callable[..., ScriptedDice]:
    """
    Factory for deterministic dice.

    Usage: scripted_dice((1, 1, 1, 2, 3, 4), (5, 2, 3)) queues two rolls.
    """
    def _make(*rolls: Iterable[int]) -> ScriptedDice:
        return ScriptedDice(face for roll in rolls for face in roll)
    return _make


# =============================================================================
# SCORING TEST DATA
# =============================================================================

@pytest.fixture
def scoring_rolls() -> dict[str, tuple[tuple[int, ...], int, str]]:
    """
    Common roll patterns with expected best scores under the default rules.

    Returns:
        Dict mapping name to (dice_values, expected_points, description)
    """
    return {
        # Singles
        "single_one": ((1,), 100, "Single 1"),
        "single_five": ((5,), 50, "Single 5"),
        "two_ones": ((1, 1), 200, "Two 1s"),
        "one_and_five": ((1, 5), 150, "One 1 and one 5"),

        # Three of a kind
        "three_ones": ((1, 1, 1), 1000, "Three 1s"),
        "three_twos": ((2, 2, 2), 200, "Three 2s"),
        "three_sixes": ((6, 6, 6), 600, "Three 6s"),

        # Four or more of a kind
        "four_twos": ((2, 2, 2, 2), 400, "Four 2s"),
        "five_fours": ((4, 4, 4, 4, 4), 1600, "Five 4s"),
        "six_ones": ((1, 1, 1, 1, 1, 1), 8000, "Six 1s"),

        # Six-dice specials
        "straight": ((1, 2, 3, 4, 5, 6), 1500, "Straight 1-6"),
        "straight_shuffled": ((6, 4, 2, 5, 3, 1), 1500, "Straight shuffled"),
        "three_pairs": ((2, 2, 3, 3, 4, 4), 1500, "Three pairs"),
        "three_pairs_with_singles": ((1, 1, 5, 5, 3, 3), 1500, "Three pairs beat singles"),

        # Mixed combinations
        "three_ones_plus_five": ((1, 1, 1, 5), 1050, "Three 1s + single 5"),
        "three_fours_plus_one": ((4, 4, 4, 1), 500, "Three 4s + single 1"),
        "four_ones_two_fives": ((1, 1, 1, 1, 5, 5), 2100, "Four 1s + two 5s"),
        "two_triples": ((1, 1, 1, 5, 5, 5), 1500, "Three 1s + three 5s"),
        "bust_roll": ((2, 3, 4, 6, 6, 2), 0, "Farkle"),
    }


@pytest.fixture
def farkle_rolls() -> list[tuple[int, ...]]:
    """Rolls with nothing scoring."""
    return [
        (2,),
        (3,),
        (4,),
        (6,),
        (2, 3),
        (4, 6),
        (2, 3, 4),
        (2, 3, 4, 6),
        (2, 2, 3, 4, 6),
        (2, 3, 4, 6, 6, 2),
    ]


@pytest.fixture
def hot_dice_rolls() -> list[tuple[int, ...]]:
    """Rolls where every die scores."""
    return [
        (1, 2, 3, 4, 5, 6),  # Straight
        (1, 1, 1, 5, 5, 5),  # Two three-of-a-kinds
        (1, 1, 1, 1, 5, 5),  # Four 1s + two 5s
        (2, 2, 4, 4, 6, 6),  # Three pairs
    ]
