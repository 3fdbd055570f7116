"""
Farkle Engine - Turn State Machine

One player's turn: roll the free dice, keep scoring dice, then roll again or
bank. A roll with nothing scoring is a farkle and forfeits the whole turn.
Keeping every die ("hot dice") brings the full set back into play.

    AWAITING_ROLL --roll--> AWAITING_SELECTION --keep--> AWAITING_ROLL
          |                        |
          +--bank--> BANKED        +--(farkle on roll)--> FARKLED
"""

import logging
import random
from typing import Iterable, Protocol

from src.engine.base import (
    MAX_DICE,
    DiceSet,
    KeptSelection,
    ScoreCombination,
    ToggleResult,
    TurnPhase,
    TurnState,
)
from src.engine.errors import IllegalTransition, InvalidSelection
from src.engine.events import EventListener, EventPayload, GameEvent
from src.engine.scoring import DEFAULT_RULES, Evaluation, ScoreEvaluator, ScoringRules
from src.engine.validators import validate_dice_count, validate_selection_indices

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    """Anything that can draw a uniform integer, such as `random.Random`."""

    def randint(self, a: int, b: int) -> int: ...


class TurnEngine:
    """
    State machine for a single turn.

    The engine owns the turn's mutable state; `state` returns an immutable
    snapshot. Failed operations leave the state untouched.
    """

    def __init__(
        self,
        player_id: str,
        *,
        rules: ScoringRules = DEFAULT_RULES,
        dice_count: int = MAX_DICE,
        random_source: RandomSource | None = None,
        minimum_bank: int = 0,
        listener: EventListener | None = None,
    ) -> None:
        self.player_id = player_id
        self._evaluator = ScoreEvaluator(rules)
        self._dice_count = validate_dice_count(dice_count)
        self._random = random_source if random_source is not None else random.Random()
        self._minimum_bank = minimum_bank
        self._listener = listener

        self._phase = TurnPhase.AWAITING_ROLL
        self._dice = DiceSet()
        self._dice_remaining = self._dice_count
        self._banked = 0
        self._forfeited = 0
        self._roll_count = 0
        self._hot_dice_count = 0
        self._hand: list[KeptSelection] = []
        self._evaluation: Evaluation | None = None
        self._pending: set[int] = set()

    # -- queries -----------------------------------------------------------

    @property
    def state(self) -> TurnState:
        return TurnState(
            player_id=self.player_id,
            phase=self._phase,
            dice=self._dice,
            dice_remaining=self._dice_remaining,
            banked_this_turn=self._banked,
            roll_count=self._roll_count,
            hot_dice_count=self._hot_dice_count,
            hand=tuple(self._hand),
            forfeited_points=self._forfeited,
            minimum_bank=self._minimum_bank,
        )

    @property
    def phase(self) -> TurnPhase:
        return self._phase

    @property
    def is_terminal(self) -> bool:
        return self._phase.is_terminal

    @property
    def evaluation(self) -> Evaluation | None:
        """Evaluation of the most recent roll."""
        return self._evaluation

    @property
    def available_combinations(self) -> tuple[ScoreCombination, ...]:
        """Combinations the player may keep right now."""
        if self._phase is not TurnPhase.AWAITING_SELECTION or self._evaluation is None:
            return ()
        return self._evaluation.combinations

    @property
    def pending_selection(self) -> frozenset[int]:
        return frozenset(self._pending)

    def pickable(self) -> frozenset[int]:
        """Free positions that take part in at least one combination."""
        if self._phase is not TurnPhase.AWAITING_SELECTION or self._evaluation is None:
            return frozenset()
        return self._evaluation.scoring_indices

    # -- transitions -------------------------------------------------------

    def roll(self) -> Evaluation:
        """
        Throw the free dice.

        Returns:
            Evaluation of the new roll

        Raises:
            IllegalTransition: If the turn is not awaiting a roll
        """
        self._require(TurnPhase.AWAITING_ROLL, "roll")
        if self._dice_remaining == 0:
            raise IllegalTransition("No free dice left to roll.")

        faces = [self._random.randint(1, 6) for _ in range(self._dice_remaining)]
        if len(self._dice) == self._dice_count:
            self._dice = self._dice.with_free_faces(faces)
        else:
            self._dice = DiceSet.from_faces(faces)
        self._roll_count += 1
        self._pending.clear()

        evaluation = self._evaluator.evaluate(self._dice)
        self._evaluation = evaluation
        logger.debug("%s rolled %s", self.player_id, evaluation.faces)
        self._emit(GameEvent.DICE_ROLLED, faces=evaluation.faces, roll=self._roll_count)

        if evaluation.is_farkle:
            self._forfeited = self._banked
            self._banked = 0
            self._phase = TurnPhase.FARKLED
            logger.info("%s farkled, forfeiting %d points", self.player_id, self._forfeited)
            self._emit(GameEvent.PLAYER_FARKLED, faces=evaluation.faces, forfeited=self._forfeited)
        else:
            self._phase = TurnPhase.AWAITING_SELECTION

        return evaluation

    def select_and_keep(self, indices: Iterable[int]) -> KeptSelection:
        """
        Keep scoring dice from the current roll.

        Args:
            indices: Positions of the dice to keep

        Returns:
            The kept selection with its combinations and points

        Raises:
            IllegalTransition: If the turn is not awaiting a selection
            InvalidSelection: If the dice are not a scoring selection of the
                current roll
        """
        self._require(TurnPhase.AWAITING_SELECTION, "keep dice")
        chosen = validate_selection_indices(indices, len(self._dice))

        already_kept = [i for i in chosen if self._dice[i].is_kept]
        if already_kept:
            raise InvalidSelection(f"Dice {already_kept} were kept on an earlier roll.")

        faces = tuple(self._dice[i].face for i in chosen)
        combinations = self._evaluator.partition_selection(faces, chosen)
        if combinations is None:
            raise InvalidSelection(f"Dice {list(faces)} do not form a scoring selection.")

        selection = KeptSelection(
            indices=chosen,
            faces=faces,
            combinations=combinations,
            points=sum(c.points for c in combinations),
        )
        self._dice = self._dice.keep(chosen)
        self._banked += selection.points
        self._dice_remaining -= len(chosen)
        self._hand.append(selection)
        self._pending.clear()
        self._phase = TurnPhase.AWAITING_ROLL
        logger.debug("%s kept %s for %d", self.player_id, faces, selection.points)
        self._emit(GameEvent.DICE_KEPT, faces=faces, points=selection.points, turn_score=self._banked)

        if self._dice_remaining == 0:
            self._dice_remaining = self._dice_count
            self._dice = self._dice.release_all()
            self._hot_dice_count += 1
            logger.debug("%s has hot dice", self.player_id)
            self._emit(GameEvent.HOT_DICE, turn_score=self._banked)

        return selection

    def bank(self) -> int:
        """
        End the turn and hand back its points.

        Returns:
            The turn's final score

        Raises:
            IllegalTransition: If the turn is not awaiting a roll or has no points
        """
        self._require(TurnPhase.AWAITING_ROLL, "bank")
        if self._banked <= 0:
            raise IllegalTransition("Nothing to bank: keep scoring dice first.")
        self._phase = TurnPhase.BANKED
        return self._banked

    # -- interactive picking -------------------------------------------------

    def toggle(self, index: int) -> ToggleResult:
        """Add or remove one die from the pending selection."""
        self._require(TurnPhase.AWAITING_SELECTION, "pick dice")
        validate_selection_indices((index,), len(self._dice))

        if index in self._pending:
            self._pending.discard(index)
            return ToggleResult.UNPICKED
        if self._dice[index].is_kept:
            return ToggleResult.NOT_UNPICKABLE
        if index not in self.pickable():
            return ToggleResult.NOT_PICKABLE
        self._pending.add(index)
        return ToggleResult.PICKED

    def clear_selection(self) -> None:
        self._pending.clear()

    def confirm_selection(self) -> KeptSelection:
        """
        Keep the pending picks.

        An invalid pick is cleared before InvalidSelection propagates so the
        player starts picking afresh.
        """
        try:
            return self.select_and_keep(self._pending)
        except InvalidSelection:
            self._pending.clear()
            raise

    # -- helpers -------------------------------------------------------------

    def _require(self, phase: TurnPhase, operation: str) -> None:
        if self._phase is not phase:
            raise IllegalTransition(
                f"Cannot {operation} while turn is {self._phase.value}."
            )

    def _emit(self, event: GameEvent, **data) -> None:
        if self._listener is not None:
            self._listener(EventPayload(event=event, player_id=self.player_id, data=data))
