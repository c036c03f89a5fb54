"""
Specter - Codebase Knowledge Graph Analytics

Builds on a persisted knowledge graph of files and symbols enriched with
git history. Derives cycles, change coupling, bus factor, change risk,
technical-debt cost and health trends from it.
"""

__version__ = "0.4.0"

from .context import AnalysisContext
from .outcome import Outcome, OutcomeStatus

__all__ = [
    "AnalysisContext",
    "Outcome",
    "OutcomeStatus",
]
