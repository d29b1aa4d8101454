from .base import BaseCollector, CollectorResult
from .subscriptions import SubscriptionCollector
from .network import NetworkCollector
from .storage import StorageCollector
from .sql import SqlCollector
from .app_service import AppServiceCollector
from .compute import ComputeCollector

# Resource collectors, run concurrently once subscriptions are known
ALL_COLLECTORS = [
    NetworkCollector,
    StorageCollector,
    SqlCollector,
    AppServiceCollector,
    ComputeCollector,
]

__all__ = [
    "BaseCollector",
    "CollectorResult",
    "SubscriptionCollector",
    "NetworkCollector",
    "StorageCollector",
    "SqlCollector",
    "AppServiceCollector",
    "ComputeCollector",
    "ALL_COLLECTORS",
]
