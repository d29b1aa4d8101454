"""
Base analyzer class — Abstract interface for all control evaluation modules.
Analyzers receive collected data and produce CIS control results.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from ..network.models import RiskFinding
from ..scoring.models import (
    STATUS_ERROR,
    STATUS_FAIL,
    STATUS_PASS,
    STATUS_SKIPPED,
    ControlResult,
)

logger = logging.getLogger("azure_governance_engine.analyzers")


@dataclass(frozen=True)
class Control:
    """Static definition of a benchmark control evaluated by an analyzer."""
    control_id: str
    title: str
    severity: str
    cis_level: str = "L1"
    remediation: str = ""


class BaseAnalyzer(ABC):
    """
    Abstract base class for all analyzers.
    Each analyzer owns a set of controls and records one result per control per resource.
    """

    name: str = "base"
    category: str = "General"
    description: str = "Base analyzer"
    controls: tuple[Control, ...] = ()

    def __init__(self):
        self.results: list[ControlResult] = []
        self.risk_findings: list[RiskFinding] = []

    def analyze(self, collected_data: dict[str, Any]) -> list[ControlResult]:
        """
        Execute analysis and return control results.
        Subclasses implement _analyze() with specific logic.
        """
        self.results = []
        self.risk_findings = []

        try:
            self._analyze(collected_data)
        except Exception as e:
            logger.exception(f"[{self.name}] Analysis failed: {e}")
            self.results.append(ControlResult(
                control_id=f"{self.name}-error",
                category=self.category,
                severity="Low",
                status=STATUS_ERROR,
                title=f"{self.name} analysis error",
                details=str(e),
            ))

        logger.info(f"[{self.name}] Analysis complete — {len(self.results)} control results")
        return self.results

    @abstractmethod
    def _analyze(self, data: dict[str, Any]):
        """Implement analysis logic. Record outcomes via self.record()."""
        raise NotImplementedError

    def record(
        self,
        control: Control,
        passed: bool,
        resource: Optional[dict] = None,
        details: str = "",
    ) -> ControlResult:
        """Register a PASS/FAIL result of a control against one resource."""
        resource = resource or {}
        result = ControlResult(
            control_id=control.control_id,
            category=self.category,
            severity=control.severity,
            cis_level=control.cis_level,
            status=STATUS_PASS if passed else STATUS_FAIL,
            title=control.title,
            resource_id=resource.get("id", ""),
            resource_name=resource.get("name", ""),
            subscription_id=resource.get("subscription_id", ""),
            details=details,
            remediation="" if passed else control.remediation,
        )
        self.results.append(result)
        return result

    def skip_all(self, reason: str):
        """Mark every control SKIPPED when no resources are in scope."""
        for control in self.controls:
            self.results.append(ControlResult(
                control_id=control.control_id,
                category=self.category,
                severity=control.severity,
                cis_level=control.cis_level,
                status=STATUS_SKIPPED,
                title=control.title,
                details=reason,
            ))

    def get_safe(self, data: dict, *keys, default=None):
        """Safely navigate nested dict keys."""
        current = data
        for key in keys:
            if isinstance(current, dict):
                current = current.get(key, default)
            else:
                return default
        return current


def tls_at_least_12(value: Optional[str]) -> bool:
    """Accepts the TLS spellings ARM uses across providers: TLS1_2, 1.2, 1.3."""
    if not value:
        return False
    normalized = str(value).upper().replace("TLS", "").replace("_", ".").strip(". ")
    try:
        return float(normalized) >= 1.2
    except ValueError:
        return False
