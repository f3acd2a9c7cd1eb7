"""Scoring subsystem — decay, weighted score and action-driven updates."""

from reputation.scoring.engine import ReputationEngine
from reputation.scoring.updater import ReputationUpdater

__all__ = [
    "ReputationEngine",
    "ReputationUpdater",
]
