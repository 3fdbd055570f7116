"""
Farkle Engine - Player Actions

The closed set of decisions a player can make at a turn decision point.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Roll:
    """Throw the free dice."""


@dataclass(frozen=True)
class Bank:
    """Commit the turn's accumulated points and end the turn."""


@dataclass(frozen=True)
class Keep:
    """
    Set aside scoring dice from the current roll.

    Attributes:
        indices: Positions of the dice to keep
    """
    indices: frozenset[int]

    def __post_init__(self) -> None:
        """Accept any iterable of positions."""
        object.__setattr__(self, "indices", frozenset(self.indices))


Action = Roll | Bank | Keep
