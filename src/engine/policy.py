"""
Farkle Engine - Decision Policies

A policy answers "what next?" at every decision point of a turn. The match
asks the current player's policy and applies the answer to the turn engine,
so the turn rules are identical for computer and human players.

HeuristicPolicy keeps the best-scoring dice and keeps rolling while the
expected value of another roll beats banking:

    (1 - P(farkle | n)) * (banked + E[points | n]) > banked

where n is the number of dice the next roll would throw.
"""

import logging
from typing import Callable, Iterable, Iterator, Protocol, Sequence

from src.engine.actions import Action, Bank, Keep, Roll
from src.engine.base import ScoreCombination, TurnPhase, TurnState
from src.engine.errors import IllegalTransition, InvalidSelection
from src.engine.scoring import DEFAULT_RULES, ScoringRules, best_selection

logger = logging.getLogger(__name__)


# Probability that a roll of n dice scores nothing (standard rules)
FARKLE_PROBABILITY: dict[int, float] = {
    1: 0.6667,
    2: 0.4444,
    3: 0.2778,
    4: 0.1574,
    5: 0.0772,
    6: 0.0231,
}

# Mean best score of a roll of n dice, counting farkles as zero
EXPECTED_ROLL_POINTS: dict[int, float] = {
    1: 25.0,
    2: 50.0,
    3: 83.6,
    4: 132.2,
    5: 203.3,
    6: 388.2,
}


class DecisionPolicy(Protocol):
    """Chooses the next action for a non-terminal turn."""

    def decide(
        self,
        turn_state: TurnState,
        available_combinations: Sequence[ScoreCombination],
    ) -> Action: ...


class HeuristicPolicy:
    """
    Computer player: keep the maximum-value selection, then weigh the risk
    of farkling against the points already on the table.
    """

    def __init__(
        self,
        rules: ScoringRules = DEFAULT_RULES,
        farkle_probability: dict[int, float] | None = None,
        expected_points: dict[int, float] | None = None,
    ) -> None:
        self.rules = rules
        self.farkle_probability = farkle_probability or FARKLE_PROBABILITY
        self.expected_points = expected_points or EXPECTED_ROLL_POINTS

    def decide(
        self,
        turn_state: TurnState,
        available_combinations: Sequence[ScoreCombination],
    ) -> Action:
        if turn_state.is_terminal:
            raise IllegalTransition(f"No decision to make: turn is {turn_state.phase.value}.")

        if turn_state.phase is TurnPhase.AWAITING_SELECTION:
            best = best_selection(turn_state.dice, self.rules)
            return Keep(i for c in best for i in c.indices)

        if self.should_roll(turn_state):
            return Roll()
        return Bank()

    def should_roll(self, turn_state: TurnState) -> bool:
        """Whether another roll is worth the risk."""
        banked = turn_state.banked_this_turn
        if banked <= 0 or banked < turn_state.minimum_bank:
            return True

        n = turn_state.dice_remaining
        risk = self.farkle_probability[n]
        gain = self.expected_points[n]
        return (1 - risk) * (banked + gain) > banked


ActionSource = Callable[[TurnState, Sequence[ScoreCombination]], Action]


class InteractivePolicy:
    """
    Proxy for a human player: every decision comes from an external source
    (a UI callback, a keyboard reader, a recorded script).
    """

    def __init__(self, source: ActionSource) -> None:
        self._source = source

    @classmethod
    def from_actions(cls, actions: Iterable[Action]) -> "InteractivePolicy":
        """Replay a fixed sequence of actions."""
        remaining: Iterator[Action] = iter(actions)

        def _next(turn_state: TurnState, available: Sequence[ScoreCombination]) -> Action:
            try:
                return next(remaining)
            except StopIteration:
                raise IllegalTransition(
                    f"Action script exhausted while turn is {turn_state.phase.value}."
                ) from None

        return cls(_next)

    def decide(
        self,
        turn_state: TurnState,
        available_combinations: Sequence[ScoreCombination],
    ) -> Action:
        if turn_state.is_terminal:
            raise IllegalTransition(f"No decision to make: turn is {turn_state.phase.value}.")

        action = self._source(turn_state, available_combinations)
        if not isinstance(action, (Roll, Bank, Keep)):
            raise InvalidSelection(f"Unrecognised action {action!r}.")
        logger.debug("%s chose %s", turn_state.player_id, action)
        return action
