"""Backend services."""

from .analysis_service import AnalysisService
from .decision_log import DecisionLog
from .history import HistoryStore, MemoryStorage, StorageQuotaExceeded
from .proxy_service import DiffusionClient, FalClient, ProxyError

__all__ = [
    "AnalysisService",
    "DecisionLog",
    "HistoryStore",
    "MemoryStorage",
    "StorageQuotaExceeded",
    "DiffusionClient",
    "FalClient",
    "ProxyError",
]
