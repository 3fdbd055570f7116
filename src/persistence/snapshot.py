"""
Farkle Engine - Snapshot Codec

Converts a MatchEngine to and from a MatchSnapshot (and its JSON text).
Turns are atomic for persistence: a match can only be saved between turns.
"""

import logging
import random
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Mapping

from pydantic import ValidationError

from src.engine.base import MatchState, Player
from src.engine.errors import ConfigurationError, IllegalTransition, SnapshotError
from src.engine.events import EventListener
from src.engine.match import MatchConfig, MatchEngine
from src.engine.policy import DecisionPolicy
from src.engine.scoring import ScoringRules
from src.engine.turn import RandomSource
from src.persistence.models import SNAPSHOT_VERSION, MatchSnapshot, PlayerRecord, RulesRecord

logger = logging.getLogger(__name__)


def snapshot_match(engine: MatchEngine) -> MatchSnapshot:
    """
    Capture a match between turns.

    Raises:
        IllegalTransition: If a turn is in progress, or the current player
            has played and advance_turn() has not been called yet
    """
    if engine.in_turn:
        raise IllegalTransition("Cannot save a match in the middle of a turn.")
    if engine.awaiting_advance:
        raise IllegalTransition("Cannot save a match before play has advanced to the next player.")

    state = engine.state
    config = engine.config
    return MatchSnapshot(
        players=[PlayerRecord.model_validate(p) for p in state.players],
        current_player_index=state.current_player_index,
        phase=state.phase,
        final_round_triggered_by=state.final_round_triggered_by,
        winner_id=state.winner_id,
        round_number=state.round_number,
        target_score=state.target_score,
        entry_threshold=state.entry_threshold,
        dice_count=config.dice_count,
        max_rounds=config.max_rounds,
        max_selection_retries=config.max_selection_retries,
        rules=RulesRecord(**asdict(config.rules)),
        saved_at=datetime.now(timezone.utc),
    )


def restore_match(
    snapshot: MatchSnapshot,
    *,
    policies: Mapping[str, DecisionPolicy] | None = None,
    default_policy: DecisionPolicy | None = None,
    random_source: RandomSource | None = None,
    listener: EventListener | None = None,
) -> MatchEngine:
    """
    Rebuild a MatchEngine from a snapshot.

    Policies, the random source and the listener are runtime collaborators
    and are supplied again by the caller.

    Raises:
        SnapshotError: If the snapshot cannot describe a valid match
    """
    if snapshot.version != SNAPSHOT_VERSION:
        raise SnapshotError(f"Unsupported snapshot version {snapshot.version}.")

    try:
        config = MatchConfig(
            target_score=snapshot.target_score,
            entry_threshold=snapshot.entry_threshold,
            rules=ScoringRules(**snapshot.rules.model_dump()),
            dice_count=snapshot.dice_count,
            random_source=random_source if random_source is not None else random.Random(),
            max_rounds=snapshot.max_rounds,
            max_selection_retries=snapshot.max_selection_retries,
        )
        state = MatchState(
            players=tuple(Player(**p.model_dump()) for p in snapshot.players),
            current_player_index=snapshot.current_player_index,
            target_score=snapshot.target_score,
            entry_threshold=snapshot.entry_threshold,
            final_round_triggered_by=snapshot.final_round_triggered_by,
            phase=snapshot.phase,
            round_number=snapshot.round_number,
            winner_id=snapshot.winner_id,
        )
        engine = MatchEngine.restore(state, config, policies, default_policy, listener)
    except ConfigurationError as exc:
        raise SnapshotError(f"Snapshot describes an invalid match: {exc}") from exc

    logger.info(
        "Restored match: %d players, round %d, %s",
        len(state.players), state.round_number, state.phase.value,
    )
    return engine


def dumps(engine: MatchEngine) -> str:
    """Serialize a match to JSON text."""
    return snapshot_match(engine).model_dump_json()


def loads(data: str | bytes, **kwargs) -> MatchEngine:
    """
    Restore a match from JSON text produced by `dumps`.

    Keyword arguments are passed to `restore_match`.

    Raises:
        SnapshotError: If the text is not a valid snapshot
    """
    try:
        snapshot = MatchSnapshot.model_validate_json(data)
    except ValidationError as exc:
        raise SnapshotError(f"Invalid match snapshot: {exc}") from exc
    return restore_match(snapshot, **kwargs)
