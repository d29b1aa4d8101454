from .base import BaseAnalyzer, Control
from .network_analyzer import NetworkAnalyzer
from .storage_analyzer import StorageAnalyzer
from .sql_analyzer import SqlAnalyzer
from .app_service_analyzer import AppServiceAnalyzer
from .compute_analyzer import ComputeAnalyzer

ALL_ANALYZERS = [
    NetworkAnalyzer,
    StorageAnalyzer,
    SqlAnalyzer,
    AppServiceAnalyzer,
    ComputeAnalyzer,
]

__all__ = [
    "BaseAnalyzer",
    "Control",
    "NetworkAnalyzer",
    "StorageAnalyzer",
    "SqlAnalyzer",
    "AppServiceAnalyzer",
    "ComputeAnalyzer",
    "ALL_ANALYZERS",
]
