"""
Farkle Engine - Match Orchestration

Drives a match of one or more players to a target score:

    - A bank only counts once the player is on the board, which takes a
      single turn scoring at least the entry threshold.
    - The first player to reach the target starts the final round: every
      other player gets exactly one more turn.
    - Highest total wins. Ties go to the player who crossed the target
      first, then to whoever comes earliest in turn order after them.
    - Optionally the match ends after a fixed number of rounds.
"""

import logging
import random
from dataclasses import dataclass, field, replace
from typing import Mapping, Sequence

from src.config.settings import Settings
from src.engine.actions import Action, Bank, Keep, Roll
from src.engine.base import MAX_DICE, MatchPhase, MatchState, Player, TurnPhase, TurnState
from src.engine.errors import ConfigurationError, IllegalTransition, InvalidSelection
from src.engine.events import EventListener, EventPayload, GameEvent
from src.engine.policy import DecisionPolicy, HeuristicPolicy
from src.engine.scoring import DEFAULT_RULES, ScoringRules
from src.engine.turn import RandomSource, TurnEngine
from src.engine.validators import validate_dice_count, validate_player_ids, validate_points

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchConfig:
    """
    Configuration for a match.

    Attributes:
        target_score: Score that triggers the final round
        entry_threshold: Minimum single-turn score to get on the board
        rules: Scoring table
        dice_count: Dice in a full set
        random_source: Where die rolls come from; seed it to replay a game
        max_rounds: End the match after this many rounds (None = no limit)
        max_selection_retries: Invalid keeps tolerated per turn before the
            error is raised to the caller
    """
    target_score: int = 10000
    entry_threshold: int = 500
    rules: ScoringRules = DEFAULT_RULES
    dice_count: int = MAX_DICE
    random_source: RandomSource = field(default_factory=random.Random, compare=False, repr=False)
    max_rounds: int | None = None
    max_selection_retries: int = 3

    def __post_init__(self) -> None:
        """Validate configuration."""
        validate_points(self.target_score, "target_score", allow_zero=False)
        validate_points(self.entry_threshold, "entry_threshold")
        validate_dice_count(self.dice_count)
        validate_points(self.max_selection_retries, "max_selection_retries")
        if self.max_rounds is not None:
            validate_points(self.max_rounds, "max_rounds", allow_zero=False)
        if not isinstance(self.rules, ScoringRules):
            raise ConfigurationError(f"rules must be ScoringRules, got {type(self.rules).__name__}.")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        rules: ScoringRules = DEFAULT_RULES,
    ) -> "MatchConfig":
        """Build a configuration from application settings."""
        return cls(
            target_score=settings.target_score,
            entry_threshold=settings.entry_threshold,
            rules=rules,
            dice_count=settings.dice_count,
            random_source=random.Random(settings.seed),
            max_rounds=settings.max_rounds,
            max_selection_retries=settings.max_selection_retries,
        )


@dataclass(frozen=True)
class TurnResult:
    """
    Outcome of a finished turn.

    Attributes:
        player_id: Who played
        phase: FARKLED or BANKED
        turn_score: Points banked (0 on a farkle)
        points_awarded: Points added to the player's total
        turn: Final snapshot of the turn
    """
    player_id: str
    phase: TurnPhase
    turn_score: int
    points_awarded: int
    turn: TurnState

    @property
    def forfeited(self) -> bool:
        """True when banked points did not count."""
        return self.phase is TurnPhase.BANKED and self.points_awarded == 0


class MatchEngine:
    """
    Owns the match state and plays it to completion.

    Turns can be driven two ways: `play_turn()` asks each player's
    DecisionPolicy, while `start_turn()` / `finish_turn()` let an
    interactive front end operate the TurnEngine directly.
    """

    def __init__(
        self,
        players: Sequence[str | Player],
        config: MatchConfig | None = None,
        policies: Mapping[str, DecisionPolicy] | None = None,
        default_policy: DecisionPolicy | None = None,
        listener: EventListener | None = None,
    ) -> None:
        self.config = config if config is not None else MatchConfig()
        self._players: list[Player] = [
            p if isinstance(p, Player) else Player(id=f"p{i + 1}", name=p)
            for i, p in enumerate(players)
        ]
        ids = validate_player_ids([p.id for p in self._players])

        policies = dict(policies or {})
        unknown = set(policies) - set(ids)
        if unknown:
            raise ConfigurationError(f"Policies given for unknown players: {sorted(unknown)}.")
        fallback = default_policy if default_policy is not None else HeuristicPolicy(self.config.rules)
        self._policies = {pid: policies.get(pid, fallback) for pid in ids}

        self._listener = listener
        self._current = 0
        self._phase = MatchPhase.IN_PROGRESS
        self._trigger: str | None = None
        self._round = 1
        self._winner: str | None = None
        self._active_turn: TurnEngine | None = None
        self._turn_played = False
        self._turn_history: list[TurnState] = []
        self._events: list[EventPayload] = []

    @classmethod
    def restore(
        cls,
        state: MatchState,
        config: MatchConfig,
        policies: Mapping[str, DecisionPolicy] | None = None,
        default_policy: DecisionPolicy | None = None,
        listener: EventListener | None = None,
    ) -> "MatchEngine":
        """Resume a match at the turn boundary described by `state`."""
        engine = cls(state.players, config, policies, default_policy, listener)
        if not 0 <= state.current_player_index < len(state.players):
            raise ConfigurationError(
                f"current_player_index {state.current_player_index} is out of range."
            )
        ids = [p.id for p in state.players]
        if state.final_round_triggered_by is not None and state.final_round_triggered_by not in ids:
            raise ConfigurationError(
                f"Final round trigger {state.final_round_triggered_by!r} is not a player."
            )
        engine._current = state.current_player_index
        engine._phase = state.phase
        engine._trigger = state.final_round_triggered_by
        engine._round = state.round_number
        engine._winner = state.winner_id
        return engine

    # -- queries -----------------------------------------------------------

    @property
    def state(self) -> MatchState:
        return MatchState(
            players=tuple(self._players),
            current_player_index=self._current,
            target_score=self.config.target_score,
            entry_threshold=self.config.entry_threshold,
            final_round_triggered_by=self._trigger,
            phase=self._phase,
            round_number=self._round,
            winner_id=self._winner,
        )

    @property
    def phase(self) -> MatchPhase:
        return self._phase

    @property
    def players(self) -> tuple[Player, ...]:
        return tuple(self._players)

    @property
    def current_player(self) -> Player:
        return self._players[self._current]

    @property
    def is_complete(self) -> bool:
        return self._phase is MatchPhase.COMPLETE

    @property
    def in_turn(self) -> bool:
        """True between start_turn() and finish_turn()."""
        return self._active_turn is not None

    @property
    def active_turn(self) -> TurnEngine | None:
        """The open turn, if any."""
        return self._active_turn

    @property
    def awaiting_advance(self) -> bool:
        """True once the current player has played and before advance_turn()."""
        return self._turn_played

    @property
    def winner(self) -> Player | None:
        if self._winner is None:
            return None
        return self._players[self._index_of(self._winner)]

    @property
    def turn_history(self) -> tuple[TurnState, ...]:
        """Final snapshots of every finished turn, oldest first."""
        return tuple(self._turn_history)

    @property
    def events(self) -> tuple[EventPayload, ...]:
        return tuple(self._events)

    def leaderboard(self) -> list[Player]:
        """Players by total score, highest first; turn order breaks ties."""
        order = {p.id: i for i, p in enumerate(self._players)}
        return sorted(self._players, key=lambda p: (-p.total_score, order[p.id]))

    # -- turns -------------------------------------------------------------

    def start_turn(self) -> TurnEngine:
        """
        Open a turn for the current player.

        Raises:
            IllegalTransition: If the match is over, a turn is already open,
                or the current player has played and play was not advanced
        """
        if self._phase is MatchPhase.COMPLETE:
            raise IllegalTransition("The match is complete.")
        if self._active_turn is not None:
            raise IllegalTransition("A turn is already in progress.")
        if self._turn_played:
            raise IllegalTransition(
                f"{self.current_player.name} has already played; call advance_turn()."
            )
        if not self._events:
            self._emit(GameEvent.GAME_STARTED, players=[p.id for p in self._players])

        player = self.current_player
        turn = TurnEngine(
            player.id,
            rules=self.config.rules,
            dice_count=self.config.dice_count,
            random_source=self.config.random_source,
            minimum_bank=0 if player.on_board else self.config.entry_threshold,
            listener=self._record,
        )
        self._active_turn = turn
        return turn

    def finish_turn(self, turn: TurnEngine) -> TurnResult:
        """
        Apply a finished turn to the match.

        Raises:
            IllegalTransition: If `turn` is not the open turn or is not over
        """
        if turn is not self._active_turn:
            raise IllegalTransition("That turn was not started by this match.")
        if not turn.is_terminal:
            raise IllegalTransition(f"Turn is still {turn.phase.value}.")

        final = turn.state
        player = self.current_player
        awarded = 0
        turn_score = 0

        if final.phase is TurnPhase.BANKED:
            turn_score = final.banked_this_turn
            if player.on_board or turn_score >= self.config.entry_threshold:
                awarded = turn_score
                player = replace(player, total_score=player.total_score + awarded, on_board=True)
                self._players[self._current] = player
                logger.info("%s banked %d (total %d)", player.name, awarded, player.total_score)
                self._emit(GameEvent.TURN_BANKED, player.id, points=awarded, total=player.total_score)
            else:
                logger.info(
                    "%s banked %d below the entry threshold of %d; points forfeited",
                    player.name, turn_score, self.config.entry_threshold,
                )
                self._emit(GameEvent.POINTS_FORFEITED, player.id, points=turn_score)

        self._turn_history.append(final)
        self._active_turn = None
        self._turn_played = True

        if (
            awarded
            and self._phase is MatchPhase.IN_PROGRESS
            and player.total_score >= self.config.target_score
        ):
            self._phase = MatchPhase.FINAL_ROUND
            self._trigger = player.id
            logger.info("%s reached %d; final round begins", player.name, player.total_score)
            self._emit(GameEvent.FINAL_ROUND_STARTED, player.id, total=player.total_score)

        return TurnResult(
            player_id=player.id,
            phase=final.phase,
            turn_score=turn_score,
            points_awarded=awarded,
            turn=final,
        )

    def play_turn(self, policy: DecisionPolicy | None = None) -> TurnResult:
        """
        Play the current player's turn using their DecisionPolicy.

        Invalid keeps are re-prompted up to `max_selection_retries` times;
        after that the error is raised and the turn stays open. Calling
        play_turn() again resumes it, optionally with a different `policy`.
        """
        turn = self._active_turn if self._active_turn is not None else self.start_turn()
        if policy is None:
            policy = self._policies[turn.player_id]
        retries = 0

        while not turn.is_terminal:
            action = policy.decide(turn.state, turn.available_combinations)
            try:
                self._apply(turn, action)
            except InvalidSelection as exc:
                retries += 1
                if retries > self.config.max_selection_retries:
                    logger.warning(
                        "%s exceeded %d selection retries; turn left open",
                        turn.player_id, self.config.max_selection_retries,
                    )
                    raise
                logger.warning("Invalid selection from %s: %s", turn.player_id, exc)

        return self.finish_turn(turn)

    def advance_turn(self) -> Player | None:
        """
        Pass play to the next player in order.

        Returns:
            The new current player, or None once the match is complete
        """
        if self._phase is MatchPhase.COMPLETE:
            return None
        if self._active_turn is not None:
            raise IllegalTransition("Finish the current turn before advancing.")

        self._turn_played = False
        nxt = (self._current + 1) % len(self._players)
        wraps = nxt == 0

        if self._phase is MatchPhase.FINAL_ROUND:
            if self._players[nxt].id == self._trigger:
                self._complete()
                return None
        elif (
            wraps
            and self.config.max_rounds is not None
            and self._round >= self.config.max_rounds
        ):
            self._complete()
            return None

        if wraps:
            self._round += 1
        self._current = nxt
        self._emit(GameEvent.TURN_ADVANCED, self.current_player.id, round=self._round)
        return self.current_player

    def play(self) -> Player:
        """Play turns until the match is complete and return the winner."""
        while not self.is_complete:
            self.play_turn()
            self.advance_turn()
        return self.winner

    # -- helpers -------------------------------------------------------------

    def _apply(self, turn: TurnEngine, action: Action) -> None:
        if isinstance(action, Roll):
            turn.roll()
        elif isinstance(action, Bank):
            turn.bank()
        elif isinstance(action, Keep):
            turn.select_and_keep(action.indices)
        else:
            raise InvalidSelection(f"Unrecognised action {action!r}.")

    def _complete(self) -> None:
        # Rank from the player who crossed the target, then onward in turn order
        start = self._index_of(self._trigger) if self._trigger is not None else 0
        n = len(self._players)
        ordered = [self._players[(start + k) % n] for k in range(n)]
        best = ordered[0]
        for player in ordered[1:]:
            if player.total_score > best.total_score:
                best = player

        self._phase = MatchPhase.COMPLETE
        self._winner = best.id
        logger.info("%s wins with %d", best.name, best.total_score)
        self._emit(GameEvent.GAME_WON, best.id, total=best.total_score)

    def _index_of(self, player_id: str) -> int:
        for i, p in enumerate(self._players):
            if p.id == player_id:
                return i
        raise KeyError(player_id)

    def _record(self, payload: EventPayload) -> None:
        self._events.append(payload)
        if self._listener is not None:
            self._listener(payload)

    def _emit(self, event: GameEvent, player_id: str | None = None, **data) -> None:
        self._record(EventPayload(event=event, player_id=player_id, data=data))
