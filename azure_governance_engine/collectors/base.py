"""
Collector base — per-subscription ARM enumeration with uniform bookkeeping.

A collector never raises out of execute(): ARM failures become errors on the
CollectorResult, and 403s become permission gaps so the report can say which
resource types the service principal could not read.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable

from ..arm.client import ArmAPIError, ArmClient
from ..config import CollectionConfig

logger = logging.getLogger("azure_governance_engine.collectors")


class CollectorResult:
    """Normalised resources gathered by one collector, plus run metadata."""

    def __init__(self, collector_name: str):
        self.collector_name = collector_name
        self.data: dict[str, Any] = {}
        self.metadata: dict[str, Any] = {
            "collector": collector_name,
            "started_at": None,
            "completed_at": None,
            "duration_seconds": 0,
            "items_collected": 0,
            "endpoints_queried": 0,
            "errors": [],
            "warnings": [],
            "permission_gaps": [],
        }

    def add_data(self, key: str, value: Any):
        self.data[key] = value
        if isinstance(value, (list, tuple)):
            self.metadata["items_collected"] += len(value)

    def extend_data(self, key: str, values: list):
        """Append to a list entry; subscriptions report into the same key concurrently."""
        self.data.setdefault(key, []).extend(values)
        self.metadata["items_collected"] += len(values)

    def add_error(self, error: str):
        self.metadata["errors"].append(error)
        logger.error(f"[{self.collector_name}] {error}")

    def add_warning(self, warning: str):
        self.metadata["warnings"].append(warning)
        logger.warning(f"[{self.collector_name}] {warning}")

    def add_permission_gap(self, endpoint: str, detail: str):
        self.metadata["permission_gaps"].append(endpoint)
        self.add_warning(f"Permission denied: {endpoint} ({detail})")

    def to_dict(self) -> dict:
        return {"data": self.data, "metadata": self.metadata}


class BaseCollector(ABC):
    """
    Subclasses implement collect(); the base handles timing and turns ARM
    failures into result metadata via safe_list() / safe_get().
    """

    name: str = "base"
    description: str = "Base collector"

    def __init__(
        self,
        arm: ArmClient,
        config: CollectionConfig,
        subscriptions: list[dict],
    ):
        self.arm = arm
        self.config = config
        self.subscriptions = subscriptions

    async def execute(self) -> CollectorResult:
        result = CollectorResult(self.name)
        started = time.time()
        result.metadata["started_at"] = started
        logger.info(f"[{self.name}] Collecting across {len(self.subscriptions) or 'all'} subscriptions")

        try:
            await self.collect(result)
        except Exception as e:
            logger.exception(f"[{self.name}] Collection aborted")
            result.add_error(f"Collection aborted: {type(e).__name__}: {e}")

        finished = time.time()
        result.metadata["completed_at"] = finished
        result.metadata["duration_seconds"] = round(finished - started, 2)
        logger.info(
            f"[{self.name}] {result.metadata['items_collected']} items from "
            f"{result.metadata['endpoints_queried']} endpoints in {result.metadata['duration_seconds']}s"
        )
        return result

    @abstractmethod
    async def collect(self, result: CollectorResult):
        """Query ARM and store normalised resources with result.add_data / extend_data."""
        raise NotImplementedError

    async def safe_list(self, endpoint: str, api_version: str, result: CollectorResult) -> list:
        """Every item of a list endpoint, or [] when ARM refuses or fails."""
        return await self._guarded(self.arm.list_all(endpoint, api_version), endpoint, result, [])

    async def safe_get(self, endpoint: str, api_version: str, result: CollectorResult) -> dict:
        """A single resource, or {} when ARM refuses or fails."""
        return await self._guarded(self.arm.get(endpoint, api_version), endpoint, result, {})

    async def _guarded(self, call: Awaitable, endpoint: str, result: CollectorResult, empty):
        try:
            data = await call
        except ArmAPIError as e:
            if e.status_code == 403:
                result.add_permission_gap(endpoint, str(e))
            else:
                result.add_error(f"{endpoint}: {e}")
            return empty
        except Exception as e:
            result.add_error(f"{endpoint}: {type(e).__name__}: {e}")
            return empty
        result.metadata["endpoints_queried"] += 1
        return data


def resource_group_of(resource_id: str) -> str:
    """Resource group segment of an ARM id ("" when the id is not group-scoped)."""
    parts = (resource_id or "").split("/")
    for idx, part in enumerate(parts[:-1]):
        if part.lower() == "resourcegroups":
            return parts[idx + 1]
    return ""
