"""
Farkle Game Engine.

Pure Python rules with zero UI/storage dependencies.
Handles scoring, the turn and match state machines, and decision policies.
"""

from src.engine.actions import Action, Bank, Keep, Roll
from src.engine.base import (
    Die,
    DiceSet,
    DieStatus,
    KeptSelection,
    MatchPhase,
    MatchState,
    Player,
    ScoreCombination,
    ScoringRule,
    ToggleResult,
    TurnPhase,
    TurnState,
)
from src.engine.errors import (
    ConfigurationError,
    FarkleError,
    IllegalTransition,
    InvalidSelection,
    SnapshotError,
)
from src.engine.events import EventPayload, GameEvent
from src.engine.match import MatchConfig, MatchEngine, TurnResult
from src.engine.policy import DecisionPolicy, HeuristicPolicy, InteractivePolicy
from src.engine.scoring import DEFAULT_RULES, Evaluation, ScoreEvaluator, ScoringRules
from src.engine.turn import TurnEngine

__all__ = [
    # Data Classes
    "Die",
    "DiceSet",
    "KeptSelection",
    "MatchState",
    "Player",
    "ScoreCombination",
    "TurnState",
    "Evaluation",
    "EventPayload",
    "TurnResult",
    # Enums
    "DieStatus",
    "GameEvent",
    "MatchPhase",
    "ScoringRule",
    "ToggleResult",
    "TurnPhase",
    # Actions
    "Action",
    "Bank",
    "Keep",
    "Roll",
    # Errors
    "ConfigurationError",
    "FarkleError",
    "IllegalTransition",
    "InvalidSelection",
    "SnapshotError",
    # Scoring
    "DEFAULT_RULES",
    "ScoreEvaluator",
    "ScoringRules",
    # Engines
    "MatchConfig",
    "MatchEngine",
    "TurnEngine",
    # Policies
    "DecisionPolicy",
    "HeuristicPolicy",
    "InteractivePolicy",
]
