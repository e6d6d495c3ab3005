# -*- coding: utf-8 -*-
"""
CarbonFlow Scoring Service Setup

Provides ``configure_carbonflow(app)`` which wires up the CarbonFlow
scoring core (credibility aggregator, compliance checker, risk engine,
footprint calculator, provenance tracker) and mounts the REST API.

Also exposes ``get_service()`` for programmatic access and the
``CarbonFlowService`` facade class. The facade is the only place that
records Prometheus metrics and provenance chain entries; the scorers it
wraps stay pure.

Usage:
    >>> from fastapi import FastAPI
    >>> from carbonflow.setup import configure_carbonflow
    >>> app = FastAPI()
    >>> import asyncio
    >>> service = asyncio.run(configure_carbonflow(app))

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from carbonflow.compliance import (
    ComplianceChecker,
    ComplianceCheckConfiguration,
    MultiStandardComplianceReport,
    create_compliance_configuration,
)
from carbonflow.config import CarbonFlowConfig, get_config
from carbonflow.exceptions import CarbonFlowException, RiskAssessmentError
from carbonflow.footprint import FootprintCalculator, FootprintReport
from carbonflow.graph import GraphDefect, GraphInput, GraphModel, StageMismatch
from carbonflow.metrics import (
    observe_credibility,
    observe_duration,
    record_analysis,
    record_compliance_check,
    record_error,
    record_graph_defect,
    record_risk_assessment,
)
from carbonflow.provenance import ProvenanceTracker, stamp
from carbonflow.risk import RiskAssessmentEngine, RiskReport
from carbonflow.scoring import CredibilityAggregator, CredibilityReport

logger = logging.getLogger(__name__)

ADHOC_WORKFLOW = "adhoc"


# ===================================================================
# Analysis model
# ===================================================================


class GraphAnalysis(BaseModel):
    """Merged analysis of one graph snapshot.

    Attributes:
        workflow_id: Workflow the analysis belongs to.
        node_count: Valid nodes scored.
        edge_count: Valid edges supplied.
        credibility: Credibility report.
        compliance: Multi-standard compliance report.
        risk: Risk report, or None when no node survived risk filtering.
        footprint: Footprint totals.
        graph_defects: Node records excluded from scoring.
        stage_mismatches: Nodes whose declared stage disagrees with type.
        warnings: Non-fatal conditions met while analysing.
        provenance_hash: SHA-256 over the analysis content.
    """

    model_config = ConfigDict(frozen=True)

    workflow_id: str
    node_count: int = Field(default=0, ge=0)
    edge_count: int = Field(default=0, ge=0)
    credibility: CredibilityReport
    compliance: MultiStandardComplianceReport
    risk: Optional[RiskReport] = None
    footprint: FootprintReport
    graph_defects: List[GraphDefect] = Field(default_factory=list)
    stage_mismatches: List[StageMismatch] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    provenance_hash: str = ""


def _utcnow_iso() -> str:
    """Return current UTC datetime as an ISO-8601 string."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


# ===================================================================
# CarbonFlowService facade
# ===================================================================

_singleton_lock = threading.Lock()
_singleton_instance: Optional["CarbonFlowService"] = None


class CarbonFlowService:
    """Unified facade over the CarbonFlow scoring core.

    Each method builds one validated graph snapshot, delegates to the
    engine, records provenance and updates Prometheus metrics.

    Attributes:
        config: CarbonFlowConfig instance.
        provenance: ProvenanceTracker for the operation audit trail.

    Example:
        >>> service = CarbonFlowService()
        >>> report = service.score_credibility(nodes, workflow_id="wf-001")
        >>> print(report.credibility_score)
    """

    def __init__(
        self,
        config: Optional[CarbonFlowConfig] = None,
        provenance: Optional[ProvenanceTracker] = None,
    ) -> None:
        """Initialize the CarbonFlow service facade.

        Args:
            config: Optional configuration. Uses global config if None.
            provenance: Optional ProvenanceTracker. Creates a new one if None.

        Raises:
            ConfigurationError: If any weight vector or threshold set in
                ``config`` is invalid.
        """
        self.config = config if config is not None else get_config()
        self.config.validate()
        self.provenance = provenance if provenance is not None else ProvenanceTracker()

        self._credibility = CredibilityAggregator(self.config)
        self._compliance = ComplianceChecker(self.config)
        self._risk = RiskAssessmentEngine(self.config)
        self._footprint = FootprintCalculator(self.config)

        self._stats: Dict[str, int] = {
            "analyses": 0,
            "credibility_reports": 0,
            "compliance_reports": 0,
            "risk_reports": 0,
            "footprint_reports": 0,
            "errors": 0,
        }
        self._started = False
        logger.info("CarbonFlowService facade created")

    # ------------------------------------------------------------------
    # Engine properties
    # ------------------------------------------------------------------

    @property
    def credibility_aggregator(self) -> CredibilityAggregator:
        return self._credibility

    @property
    def compliance_checker(self) -> ComplianceChecker:
        return self._compliance

    @property
    def risk_engine(self) -> RiskAssessmentEngine:
        return self._risk

    @property
    def footprint_calculator(self) -> FootprintCalculator:
        return self._footprint

    # ------------------------------------------------------------------
    # Graph handling
    # ------------------------------------------------------------------

    def build_graph(
        self,
        nodes: GraphInput,
        edges: Optional[Iterable[Any]] = None,
    ) -> GraphModel:
        """Build a graph snapshot and record its defects."""
        if isinstance(nodes, GraphModel):
            return nodes
        graph = GraphModel.build(nodes, edges, self.config.derive_stage_from_type)
        for defect in graph.defects:
            record_graph_defect(defect.reason)
        return graph

    def _finish(self, operation: str, started: float) -> None:
        observe_duration(operation, time.perf_counter() - started)

    def _failed(self, operation: str, exc: CarbonFlowException) -> None:
        self._stats["errors"] += 1
        record_error(type(exc).__name__)
        if isinstance(exc, RiskAssessmentError):
            logger.warning("%s rejected: %s", operation, exc)
        else:
            logger.error("%s failed: %s", operation, exc)

    # ------------------------------------------------------------------
    # Single reports
    # ------------------------------------------------------------------

    def score_credibility(
        self,
        nodes: GraphInput,
        workflow_id: str = "",
    ) -> CredibilityReport:
        """Compute the credibility report of a graph snapshot."""
        started = time.perf_counter()
        report = self._credibility.aggregate(self.build_graph(nodes))
        self.provenance.record(
            "credibility", workflow_id or ADHOC_WORKFLOW, "score", report.provenance_hash,
        )
        record_analysis("credibility")
        observe_credibility(report.credibility_score)
        self._stats["credibility_reports"] += 1
        self._finish("score_credibility", started)
        return report

    def check_compliance(
        self,
        nodes: GraphInput,
        standards: Optional[Sequence[str]] = None,
        workflow_id: str = "",
        report_date: Optional[str] = None,
        configuration: Optional[ComplianceCheckConfiguration] = None,
        **overrides: Any,
    ) -> MultiStandardComplianceReport:
        """Check a graph snapshot against the selected standards.

        Args:
            nodes: Node records or a GraphModel.
            standards: Standard ids; configured defaults if None.
            workflow_id: Workflow the report belongs to.
            report_date: Echoed verbatim into the report.
            configuration: Complete configuration; overrides ``standards``.
            **overrides: ComplianceCheckConfiguration fields.

        Raises:
            ConfigurationError: On an invalid standard selection or
                configuration.
        """
        started = time.perf_counter()
        try:
            if configuration is None:
                configuration = create_compliance_configuration(
                    standards, config=self.config, **overrides,
                )
            report = self._compliance.check(
                self.build_graph(nodes), configuration, workflow_id, report_date,
            )
        except CarbonFlowException as exc:
            self._failed("check_compliance", exc)
            raise

        for detail in report.standard_reports.values():
            record_compliance_check(detail.standard.value, detail.level.value)
        self.provenance.record(
            "compliance", workflow_id or ADHOC_WORKFLOW, "check", report.provenance_hash,
        )
        record_analysis("compliance")
        self._stats["compliance_reports"] += 1
        self._finish("check_compliance", started)
        return report

    def assess_risk(
        self,
        nodes: GraphInput,
        workflow_id: str = "",
        industry_type: Optional[str] = None,
    ) -> RiskReport:
        """Run the risk assessment of a graph snapshot.

        Raises:
            RiskAssessmentError: If no node survives filtering.
        """
        started = time.perf_counter()
        try:
            report = self._risk.assess(
                self.build_graph(nodes), workflow_id or ADHOC_WORKFLOW, industry_type,
            )
        except CarbonFlowException as exc:
            self._failed("assess_risk", exc)
            raise

        record_risk_assessment(report.risk_level.value)
        self.provenance.record(
            "risk", report.workflow_id, "assess", report.provenance_hash,
        )
        record_analysis("risk")
        self._stats["risk_reports"] += 1
        self._finish("assess_risk", started)
        return report

    def calculate_footprint(
        self,
        nodes: GraphInput,
        workflow_id: str = "",
    ) -> FootprintReport:
        """Compute per-node and per-stage emissions."""
        started = time.perf_counter()
        report = self._footprint.calculate(self.build_graph(nodes))
        self.provenance.record(
            "footprint", workflow_id or ADHOC_WORKFLOW, "calculate", report.provenance_hash,
        )
        record_analysis("footprint")
        self._stats["footprint_reports"] += 1
        self._finish("calculate_footprint", started)
        return report

    # ------------------------------------------------------------------
    # Merged analysis
    # ------------------------------------------------------------------

    def analyze(
        self,
        nodes: GraphInput,
        edges: Optional[Iterable[Any]] = None,
        workflow_id: str = "",
        standards: Optional[Sequence[str]] = None,
        industry_type: Optional[str] = None,
        report_date: Optional[str] = None,
    ) -> GraphAnalysis:
        """Re-derive every report from one graph snapshot.

        A risk assessment that finds no valid node yields ``risk=None`` and
        a warning instead of failing the analysis. Configuration errors
        propagate.

        Args:
            nodes: Node records or a GraphModel.
            edges: Edge records.
            workflow_id: Workflow the analysis belongs to.
            standards: Compliance standards; configured defaults if None.
            industry_type: Risk benchmark row.
            report_date: Echoed into the compliance report.

        Returns:
            GraphAnalysis.
        """
        started = time.perf_counter()
        workflow = workflow_id or ADHOC_WORKFLOW
        graph = self.build_graph(nodes, edges)
        warnings: List[str] = []

        credibility = self.score_credibility(graph, workflow)
        compliance = self.check_compliance(
            graph, standards, workflow, report_date,
        )
        risk: Optional[RiskReport] = None
        try:
            risk = self.assess_risk(graph, workflow, industry_type)
        except RiskAssessmentError as exc:
            warnings.append(f"Risk assessment skipped: {exc.message}")
        footprint = self.calculate_footprint(graph, workflow)

        if graph.defects:
            warnings.append(f"{len(graph.defects)} node records were excluded")
        mismatches = graph.stage_type_mismatches()

        analysis = stamp(GraphAnalysis(
            workflow_id=workflow,
            node_count=len(graph),
            edge_count=len(graph.edges),
            credibility=credibility,
            compliance=compliance,
            risk=risk,
            footprint=footprint,
            graph_defects=list(graph.defects),
            stage_mismatches=mismatches,
            warnings=warnings,
        ))
        self.provenance.record("analysis", workflow, "analyze", analysis.provenance_hash)
        record_analysis("analysis")
        self._stats["analyses"] += 1
        self._finish("analyze", started)
        logger.info(
            "Graph analysed: workflow=%s nodes=%d credibility=%d compliance=%d risk=%s",
            workflow, len(graph), credibility.credibility_score,
            compliance.aggregate_score.average_score,
            risk.overall_risk_score if risk is not None else "n/a",
        )
        return analysis

    # ------------------------------------------------------------------
    # Health and statistics
    # ------------------------------------------------------------------

    def health_check(self) -> Dict[str, Any]:
        """Return service health, engine availability and statistics."""
        engines = {
            "credibility_aggregator": "available",
            "compliance_checker": "available",
            "risk_engine": "available",
            "footprint_calculator": "available",
        }
        result = {
            "status": "healthy",
            "engines": engines,
            "engines_available": len(engines),
            "engines_total": len(engines),
            "started": self._started,
            "statistics": self.get_statistics(),
            "provenance_entries": self.provenance.entry_count,
            "timestamp": _utcnow_iso(),
        }
        logger.debug("Health check: status=%s", result["status"])
        return result

    def get_statistics(self) -> Dict[str, int]:
        """Return operation counters since the service was created."""
        return dict(self._stats)

    def get_provenance(self) -> ProvenanceTracker:
        return self.provenance

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def startup(self) -> None:
        """Mark the service as started. Safe to call more than once."""
        if self._started:
            logger.debug("CarbonFlowService already started; skipping")
            return
        self._started = True
        logger.info("CarbonFlowService startup complete")

    def shutdown(self) -> None:
        if not self._started:
            return
        self._started = False
        logger.info("CarbonFlowService shut down")


# ===================================================================
# Thread-safe singleton access
# ===================================================================


def get_service() -> CarbonFlowService:
    """Return the singleton CarbonFlowService, creating it if needed.

    Uses double-checked locking for thread safety.
    """
    global _singleton_instance
    if _singleton_instance is None:
        with _singleton_lock:
            if _singleton_instance is None:
                _singleton_instance = CarbonFlowService()
    return _singleton_instance


def reset_service() -> None:
    """Drop the singleton (primarily for test teardown)."""
    global _singleton_instance
    with _singleton_lock:
        _singleton_instance = None


# ===================================================================
# FastAPI integration
# ===================================================================


async def configure_carbonflow(
    app: Any,
    config: Optional[CarbonFlowConfig] = None,
) -> CarbonFlowService:
    """Configure the CarbonFlow service on a FastAPI application.

    Creates the CarbonFlowService, stores it in app.state, mounts the
    CarbonFlow API router and starts the service.

    Args:
        app: FastAPI application instance.
        config: Optional CarbonFlow config.

    Returns:
        CarbonFlowService instance.
    """
    global _singleton_instance

    service = CarbonFlowService(config=config)
    with _singleton_lock:
        _singleton_instance = service

    app.state.carbonflow_service = service
    app.include_router(get_router())
    service.startup()

    logger.info("CarbonFlow service configured on app")
    return service


def get_carbonflow(app: Any) -> CarbonFlowService:
    """Get the CarbonFlowService instance from app state.

    Raises:
        RuntimeError: If the service has not been configured.
    """
    service = getattr(app.state, "carbonflow_service", None)
    if service is None:
        raise RuntimeError(
            "CarbonFlow service not configured. "
            "Call configure_carbonflow(app) first."
        )
    return service


def get_router() -> Any:
    """Return the CarbonFlow FastAPI APIRouter."""
    from carbonflow.api.router import router
    return router


__all__ = [
    "CarbonFlowService",
    "GraphAnalysis",
    "configure_carbonflow",
    "get_carbonflow",
    "get_service",
    "reset_service",
    "get_router",
]
