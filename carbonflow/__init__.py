# -*- coding: utf-8 -*-
"""
CarbonFlow Scoring Core
=======================

Deterministic scoring and risk assessment over a product carbon-footprint
lifecycle graph. It supports:

- Model completeness: lifecycle-stage coverage and per-node required
  fields keyed by lifecycle stage
- Mass balance between input and output product quantities
- Data traceability (evidence or database-matched factors) and
  validation (verified evidence)
- Weighted credibility aggregation of the four component scores
- Multi-standard compliance checking (ISO 14067, GHG Protocol, CBAM,
  China ETS, GB/T 32150, EU Battery Regulation) with cross-standard
  common issues and ranked action items
- Six-dimension risk assessment with per-node risk factors, critical
  issues, organisational recommendations and an illustrative trend
- Per-stage emission footprint with unit conversion
- SHA-256 content hashes on every report and a chain-hashed operation log
- Seven Prometheus metrics with the cf_ prefix
- FastAPI REST API at /api/v1/carbonflow
- Thread-safe configuration with the CF_ env prefix

Key Components:
    - config: CarbonFlowConfig with CF_ env prefix
    - models / graph: Pydantic v2 node models and the GraphModel view
    - scoring: completeness, mass balance, traceability, validation,
      credibility
    - compliance: standard registry, requirement catalogs, checker
    - risk: heuristics and RiskAssessmentEngine
    - footprint: FootprintCalculator
    - provenance: SHA-256 hashing and chain tracking
    - metrics: Prometheus metrics
    - api / setup: FastAPI router and CarbonFlowService facade

Example:
    >>> from carbonflow import aggregate_credibility
    >>> report = aggregate_credibility([
    ...     {"id": "n1", "type": "product", "lifecycleStage": "原材料获取阶段",
    ...      "carbonFactor": "1.5", "quantity": "10"},
    ... ])
    >>> report.model_completeness.score
    40
"""

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Configuration and errors
# ---------------------------------------------------------------------------
from carbonflow.config import (
    CarbonFlowConfig,
    get_config,
    reset_config,
    set_config,
)
from carbonflow.exceptions import (
    CarbonFlowException,
    ConfigurationError,
    GraphInputError,
    RiskAssessmentError,
)

# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------
from carbonflow.graph import GraphDefect, GraphModel, StageMismatch
from carbonflow.models import (
    Edge,
    EvidenceFile,
    EvidenceStatus,
    LifecycleStage,
    Node,
    NodeType,
    SupplierInfo,
    parse_positive,
)

# ---------------------------------------------------------------------------
# Engines
# ---------------------------------------------------------------------------
from carbonflow.scoring import (
    CompletenessScorer,
    CredibilityAggregator,
    CredibilityReport,
    MassBalanceScorer,
    TraceabilityScorer,
    ValidationScorer,
    aggregate_credibility,
    compute_completeness,
    compute_mass_balance,
    compute_traceability,
    compute_validation,
)
from carbonflow.compliance import (
    ComplianceChecker,
    ComplianceLevel,
    MultiStandardComplianceReport,
    StandardId,
    create_compliance_configuration,
    parse_standards,
)
from carbonflow.risk import RiskAssessmentEngine, RiskLevel, RiskReport, assess_risk
from carbonflow.footprint import FootprintCalculator, FootprintReport, calculate_footprint
from carbonflow.provenance import ProvenanceTracker, compute_hash

# ---------------------------------------------------------------------------
# Service facade
# ---------------------------------------------------------------------------
from carbonflow.setup import (
    CarbonFlowService,
    GraphAnalysis,
    configure_carbonflow,
    get_carbonflow,
    get_service,
)

__all__ = [
    "__version__",
    # Configuration and errors
    "CarbonFlowConfig",
    "get_config",
    "set_config",
    "reset_config",
    "CarbonFlowException",
    "ConfigurationError",
    "GraphInputError",
    "RiskAssessmentError",
    # Graph
    "GraphModel",
    "GraphDefect",
    "StageMismatch",
    "Node",
    "Edge",
    "EvidenceFile",
    "EvidenceStatus",
    "SupplierInfo",
    "NodeType",
    "LifecycleStage",
    "parse_positive",
    # Scoring
    "CompletenessScorer",
    "MassBalanceScorer",
    "TraceabilityScorer",
    "ValidationScorer",
    "CredibilityAggregator",
    "CredibilityReport",
    "compute_completeness",
    "compute_mass_balance",
    "compute_traceability",
    "compute_validation",
    "aggregate_credibility",
    # Compliance
    "ComplianceChecker",
    "ComplianceLevel",
    "MultiStandardComplianceReport",
    "StandardId",
    "create_compliance_configuration",
    "parse_standards",
    # Risk
    "RiskAssessmentEngine",
    "RiskLevel",
    "RiskReport",
    "assess_risk",
    # Footprint
    "FootprintCalculator",
    "FootprintReport",
    "calculate_footprint",
    # Provenance
    "ProvenanceTracker",
    "compute_hash",
    # Service
    "CarbonFlowService",
    "GraphAnalysis",
    "configure_carbonflow",
    "get_carbonflow",
    "get_service",
]
