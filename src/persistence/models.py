"""
Farkle Engine - Snapshot Models

Pydantic models for the persisted form of a match. A snapshot is only ever
taken between turns.
"""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from src.engine.base import MatchPhase

SNAPSHOT_VERSION = 1


class PlayerRecord(BaseModel):
    """One seat of the match."""

    id: str = Field(min_length=1)
    name: str
    total_score: int = Field(default=0, ge=0)
    on_board: bool = False

    model_config = {"from_attributes": True}


class RulesRecord(BaseModel):
    """Scoring table in force for the match."""

    single_one: int = Field(default=100, ge=0)
    single_five: int = Field(default=50, ge=0)
    three_ones: int = Field(default=1000, ge=0)
    triple_multiplier: int = Field(default=100, ge=0)
    extra_die_multiplier: int = Field(default=2, ge=1)
    full_straight: int = Field(default=1500, ge=0)
    three_pairs: int = Field(default=1500, ge=0)
    low_straight: int | None = Field(default=None, ge=0)
    high_straight: int | None = Field(default=None, ge=0)

    model_config = {"from_attributes": True}


class MatchSnapshot(BaseModel):
    """Everything needed to resume a match at a turn boundary."""

    version: int = SNAPSHOT_VERSION
    players: list[PlayerRecord] = Field(min_length=1)
    current_player_index: int = Field(default=0, ge=0)
    phase: MatchPhase = MatchPhase.IN_PROGRESS
    final_round_triggered_by: str | None = None
    winner_id: str | None = None
    round_number: int = Field(default=1, ge=1)
    target_score: int = Field(gt=0)
    entry_threshold: int = Field(ge=0)
    dice_count: int = Field(default=6, ge=1, le=6)
    max_rounds: int | None = Field(default=None, gt=0)
    max_selection_retries: int = Field(default=3, ge=0)
    rules: RulesRecord = Field(default_factory=RulesRecord)
    saved_at: datetime | None = None

    @model_validator(mode="after")
    def check_consistency(self) -> "MatchSnapshot":
        """Reject records that could not have come from a real match."""
        ids = [p.id for p in self.players]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Player ids must be unique, got {ids}.")
        if self.current_player_index >= len(self.players):
            raise ValueError(
                f"current_player_index {self.current_player_index} is out of range "
                f"for {len(self.players)} players."
            )
        for field_name in ("final_round_triggered_by", "winner_id"):
            value = getattr(self, field_name)
            if value is not None and value not in ids:
                raise ValueError(f"{field_name} {value!r} is not a player.")
        if self.phase is MatchPhase.FINAL_ROUND and self.final_round_triggered_by is None:
            raise ValueError("A final round needs the player who triggered it.")
        if self.phase is MatchPhase.IN_PROGRESS and self.final_round_triggered_by is not None:
            raise ValueError("Only a final round records who triggered it.")
        if (self.phase is MatchPhase.COMPLETE) != (self.winner_id is not None):
            raise ValueError("A winner is recorded exactly when the match is complete.")
        return self
