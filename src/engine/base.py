"""
Farkle Engine - Base Classes

This module defines the foundational data structures and enums used throughout
the game engine. Values and state snapshots are immutable (frozen dataclasses);
the engines own the mutable state and hand out snapshots.
"""

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Iterable, Sequence


DIE_FACES = 6
MAX_DICE = 6


class DieStatus(Enum):
    """Whether a die may still be rolled this turn."""
    FREE = "free"
    KEPT = "kept"


class ScoringRule(Enum):
    """Named scoring combinations."""
    SINGLE_ONE = auto()
    SINGLE_FIVE = auto()
    THREE_OF_A_KIND = auto()
    FOUR_OF_A_KIND = auto()
    FIVE_OF_A_KIND = auto()
    SIX_OF_A_KIND = auto()
    FULL_STRAIGHT = auto()     # 1-2-3-4-5-6
    THREE_PAIRS = auto()
    LOW_STRAIGHT = auto()      # 1-2-3-4-5, house rule
    HIGH_STRAIGHT = auto()     # 2-3-4-5-6, house rule


class TurnPhase(Enum):
    """States of the turn state machine."""
    AWAITING_ROLL = "awaiting_roll"
    AWAITING_SELECTION = "awaiting_selection"
    FARKLED = "farkled"
    BANKED = "banked"

    @property
    def is_terminal(self) -> bool:
        return self in (TurnPhase.FARKLED, TurnPhase.BANKED)


class MatchPhase(Enum):
    """States of the match state machine."""
    IN_PROGRESS = "in_progress"
    FINAL_ROUND = "final_round"
    COMPLETE = "complete"


class ToggleResult(Enum):
    """Outcome of toggling a single die while picking."""
    PICKED = auto()
    UNPICKED = auto()
    NOT_PICKABLE = auto()
    NOT_UNPICKABLE = auto()


@dataclass(frozen=True)
class Die:
    """
    A single die on the table.

    Attributes:
        face: Face value (1-6)
        status: FREE dice are rolled next, KEPT dice are set aside
    """
    face: int
    status: DieStatus = DieStatus.FREE

    def __post_init__(self) -> None:
        """Validate the face is within range."""
        if not (1 <= self.face <= DIE_FACES):
            raise ValueError(
                f"Invalid die value {self.face}. Must be between 1 and {DIE_FACES}."
            )

    @property
    def is_kept(self) -> bool:
        return self.status is DieStatus.KEPT


@dataclass(frozen=True)
class DiceSet:
    """
    Ordered dice on the table for the current turn.

    Positions are stable for the whole turn: a roll replaces the faces of the
    free dice in place and kept dice are never re-rolled.
    """
    dice: tuple[Die, ...] = ()

    def __post_init__(self) -> None:
        if len(self.dice) > MAX_DICE:
            raise ValueError(f"At most {MAX_DICE} dice allowed, got {len(self.dice)}.")

    def __len__(self) -> int:
        return len(self.dice)

    def __getitem__(self, index: int) -> Die:
        return self.dice[index]

    def __iter__(self):
        return iter(self.dice)

    @classmethod
    def from_faces(cls, faces: Sequence[int]) -> "DiceSet":
        """Create a set of free dice from face values."""
        return cls(dice=tuple(Die(face) for face in faces))

    @property
    def faces(self) -> tuple[int, ...]:
        return tuple(die.face for die in self.dice)

    @property
    def free_indices(self) -> tuple[int, ...]:
        return tuple(i for i, die in enumerate(self.dice) if not die.is_kept)

    @property
    def kept_indices(self) -> tuple[int, ...]:
        return tuple(i for i, die in enumerate(self.dice) if die.is_kept)

    @property
    def free_faces(self) -> tuple[int, ...]:
        return tuple(self.dice[i].face for i in self.free_indices)

    @property
    def kept_faces(self) -> tuple[int, ...]:
        return tuple(self.dice[i].face for i in self.kept_indices)

    def with_free_faces(self, faces: Sequence[int]) -> "DiceSet":
        """Replace the faces of the free dice, in position order."""
        free = self.free_indices
        if len(faces) != len(free):
            raise ValueError(f"Expected {len(free)} faces, got {len(faces)}.")
        new_faces = dict(zip(free, faces))
        return DiceSet(dice=tuple(
            Die(new_faces[i]) if i in new_faces else die
            for i, die in enumerate(self.dice)
        ))

    def keep(self, indices: Iterable[int]) -> "DiceSet":
        """Mark the given positions as kept."""
        chosen = frozenset(indices)
        return DiceSet(dice=tuple(
            replace(die, status=DieStatus.KEPT) if i in chosen else die
            for i, die in enumerate(self.dice)
        ))

    def release_all(self) -> "DiceSet":
        """Return every die to play (hot dice)."""
        return DiceSet(dice=tuple(replace(die, status=DieStatus.FREE) for die in self.dice))


@dataclass(frozen=True)
class ScoreCombination:
    """
    A single scoring combination found in a roll.

    Attributes:
        rule: The named rule that scores
        faces: The die faces it consumes
        indices: Positions of those dice in the evaluated set
        points: Points awarded for this combination
    """
    rule: ScoringRule
    faces: tuple[int, ...]
    indices: tuple[int, ...]
    points: int

    @property
    def description(self) -> str:
        if self.rule in (ScoringRule.SINGLE_ONE, ScoringRule.SINGLE_FIVE):
            return f"Single {self.faces[0]}"
        if self.rule is ScoringRule.FULL_STRAIGHT:
            return "Straight (1-2-3-4-5-6)"
        if self.rule is ScoringRule.LOW_STRAIGHT:
            return "Low Straight (1-2-3-4-5)"
        if self.rule is ScoringRule.HIGH_STRAIGHT:
            return "High Straight (2-3-4-5-6)"
        if self.rule is ScoringRule.THREE_PAIRS:
            return "Three Pairs"
        return f"{len(self.faces)}x {self.faces[0]}s"

    def __str__(self) -> str:
        return f"{self.description}: {self.points}"


@dataclass(frozen=True)
class KeptSelection:
    """
    Dice set aside in one keep, as recorded in the player's hand.

    Attributes:
        indices: Positions kept
        faces: Face values kept
        combinations: The combinations the kept dice were scored as
        points: Total points of the selection
    """
    indices: tuple[int, ...]
    faces: tuple[int, ...]
    combinations: tuple[ScoreCombination, ...]
    points: int


@dataclass(frozen=True)
class TurnState:
    """
    Snapshot of a player's turn.

    Attributes:
        player_id: Player taking the turn
        phase: Current turn phase
        dice: Dice on the table, kept dice flagged
        dice_remaining: Dice that the next roll will throw
        banked_this_turn: Points accumulated this turn (not yet committed)
        roll_count: Number of rolls taken this turn
        hot_dice_count: Times every die scored and the full set came back
        hand: Selections kept so far this turn
        forfeited_points: Points lost to a farkle
        minimum_bank: Turn score a bank must reach to count (entry threshold)
    """
    player_id: str
    phase: TurnPhase = TurnPhase.AWAITING_ROLL
    dice: DiceSet = field(default_factory=DiceSet)
    dice_remaining: int = MAX_DICE
    banked_this_turn: int = 0
    roll_count: int = 0
    hot_dice_count: int = 0
    hand: tuple[KeptSelection, ...] = ()
    forfeited_points: int = 0
    minimum_bank: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal

    @property
    def can_bank(self) -> bool:
        return self.phase is TurnPhase.AWAITING_ROLL and self.banked_this_turn > 0


@dataclass(frozen=True)
class Player:
    """
    A seat in the match.

    Attributes:
        id: Stable identifier
        name: Display name
        total_score: Committed points
        on_board: Whether the player has met the entry threshold
    """
    id: str
    name: str
    total_score: int = 0
    on_board: bool = False

    def __post_init__(self) -> None:
        if self.total_score < 0:
            raise ValueError(f"Score cannot be negative, got {self.total_score}.")


@dataclass(frozen=True)
class MatchState:
    """
    Snapshot of the whole match.

    Attributes:
        players: Seats in turn order
        current_player_index: Seat whose turn it is
        target_score: Score that triggers the final round
        entry_threshold: Minimum turn score to get on the board
        final_round_triggered_by: Player who first crossed the target
        phase: Current match phase
        round_number: 1-based round counter
        winner_id: Set once the match is complete
    """
    players: tuple[Player, ...]
    current_player_index: int
    target_score: int
    entry_threshold: int
    final_round_triggered_by: str | None = None
    phase: MatchPhase = MatchPhase.IN_PROGRESS
    round_number: int = 1
    winner_id: str | None = None

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    def player(self, player_id: str) -> Player:
        for p in self.players:
            if p.id == player_id:
                return p
        raise KeyError(player_id)
