"""Turn orchestration module for duologue."""

from .data_structures import TurnResult, TurnState
from .orchestrator import TurnOrchestrator

__all__ = ["TurnOrchestrator", "TurnResult", "TurnState"]
