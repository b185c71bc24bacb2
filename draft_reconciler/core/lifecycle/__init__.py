"""
Draft lifecycle: state machine, application facade and extraction port.
"""

from .extraction import CallableExtractor, ExtractionOracle
from .manager import CommitOutcome, DraftLifecycleManager
from .service import DraftService

__all__ = [
    "DraftLifecycleManager",
    "CommitOutcome",
    "DraftService",
    "ExtractionOracle",
    "CallableExtractor",
]
