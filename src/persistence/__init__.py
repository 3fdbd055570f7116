"""
Farkle Engine Persistence.

Snapshot models and the codec that saves and resumes matches between turns.
"""

from src.persistence.models import MatchSnapshot, PlayerRecord, RulesRecord
from src.persistence.snapshot import dumps, loads, restore_match, snapshot_match

__all__ = [
    "MatchSnapshot",
    "PlayerRecord",
    "RulesRecord",
    "dumps",
    "loads",
    "restore_match",
    "snapshot_match",
]
