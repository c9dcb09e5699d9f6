"""Session pipeline: stream ingestion, gap recovery and finalization."""

from .client import MarketDataClient, SessionResult
from .finalizer import finalize
from .ingestor import IngestResult, StreamIngestor
from .recovery import GapRecoveryEngine, count_missing_above, find_missing
from .state import SessionState

__all__ = [
    "GapRecoveryEngine",
    "IngestResult",
    "MarketDataClient",
    "SessionResult",
    "SessionState",
    "StreamIngestor",
    "finalize",
    "count_missing_above",
    "find_missing",
]
