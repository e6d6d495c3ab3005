# -*- coding: utf-8 -*-
"""
Risk Assessment Data Models

Pydantic v2 models for the risk assessment engine: configuration
(dimension weights, node factor weights, thresholds, industry benchmarks)
and the structured RiskReport.

Models:
    - Enumerations: RiskLevel, IssueSeverity, Urgency
    - Configuration: IndustryBenchmark, RiskThresholds,
        RiskAssessmentConfig
    - Results: DimensionRisk, RiskDimensions, RiskFactors, NodeRisk,
        CriticalIssue, RiskRecommendation, ProjectedRisk, RiskTrends,
        RiskMetadata, RiskReport

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from carbonflow.config import CarbonFlowConfig

ScoreValue = Annotated[int, Field(ge=0, le=100)]

DIMENSIONS = (
    "data_quality",
    "compliance",
    "supply_chain",
    "methodology",
    "temporal",
    "geographic",
)

NODE_FACTORS = (
    "data_completeness",
    "factor_reliability",
    "temporal_relevance",
    "geographic_relevance",
    "supplier_credibility",
)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class RiskLevel(str, Enum):
    """Four-bucket risk classification; higher scores are lower risk."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class IssueSeverity(str, Enum):
    """Severity of a cross-cutting critical issue or recommendation."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Urgency(str, Enum):
    """How soon a critical issue should be addressed."""

    IMMEDIATE = "immediate"
    HIGH = "high"
    MEDIUM = "medium"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class IndustryBenchmark(_Frozen):
    """Benchmark row for one industry."""

    average_data_quality: int = Field(..., ge=0, le=100)
    compliance_rate: int = Field(..., ge=0, le=100)
    supplier_risk_threshold: int = Field(..., ge=0, le=100)


DEFAULT_INDUSTRY = "default"

INDUSTRY_BENCHMARKS: Dict[str, IndustryBenchmark] = {
    "manufacturing": IndustryBenchmark(
        average_data_quality=72, compliance_rate=85, supplier_risk_threshold=65,
    ),
    "energy": IndustryBenchmark(
        average_data_quality=78, compliance_rate=90, supplier_risk_threshold=70,
    ),
    "transportation": IndustryBenchmark(
        average_data_quality=68, compliance_rate=80, supplier_risk_threshold=60,
    ),
    DEFAULT_INDUSTRY: IndustryBenchmark(
        average_data_quality=70, compliance_rate=82, supplier_risk_threshold=65,
    ),
}


class RiskThresholds(_Frozen):
    """Risk level cut points: below ``critical`` is CRITICAL, and so on up."""

    critical: int = 40
    high: int = 60
    medium: int = 75


class RiskAssessmentConfig(_Frozen):
    """Risk engine configuration.

    Dimension and node factor weights are separate vectors, each validated
    to sum to 1.0 by the engine.

    Attributes:
        dimension_weights: Weights of the six risk dimensions.
        node_factor_weights: Weights of the five per-node risk factors.
        thresholds: Risk level cut points.
        industry_benchmarks: Benchmark table keyed by industry type.
        placeholder_markers: Label substrings that exclude a node.
        reference_year: Year temporal relevance is measured against.
    """

    dimension_weights: Dict[str, float]
    node_factor_weights: Dict[str, float]
    thresholds: RiskThresholds = Field(default_factory=RiskThresholds)
    industry_benchmarks: Dict[str, IndustryBenchmark] = Field(
        default_factory=lambda: dict(INDUSTRY_BENCHMARKS),
    )
    placeholder_markers: List[str] = Field(default_factory=lambda: ["test", "临时"])
    reference_year: int

    @classmethod
    def from_config(cls, config: CarbonFlowConfig) -> RiskAssessmentConfig:
        """Build the risk configuration from the global configuration."""
        return cls(
            dimension_weights=config.risk_dimension_weights(),
            node_factor_weights=config.node_factor_weights(),
            thresholds=RiskThresholds(**config.risk_thresholds()),
            placeholder_markers=config.placeholder_marker_list(),
            reference_year=config.resolved_reference_year(),
        )

    def benchmark_for(self, industry_type: str) -> IndustryBenchmark:
        """Return the benchmark row, falling back to the default row."""
        return self.industry_benchmarks.get(
            industry_type.strip().lower(),
            self.industry_benchmarks.get(
                DEFAULT_INDUSTRY, INDUSTRY_BENCHMARKS[DEFAULT_INDUSTRY],
            ),
        )


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class DimensionRisk(_Frozen):
    """Score, level and findings for one risk dimension."""

    score: ScoreValue
    level: RiskLevel
    issues: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    details: Dict[str, Any] = Field(default_factory=dict)


class RiskDimensions(_Frozen):
    """The six risk dimensions."""

    data_quality: DimensionRisk
    compliance: DimensionRisk
    supply_chain: DimensionRisk
    methodology: DimensionRisk
    temporal: DimensionRisk
    geographic: DimensionRisk

    def scores(self) -> Dict[str, int]:
        """Return dimension scores in canonical dimension order."""
        return {name: getattr(self, name).score for name in DIMENSIONS}


class RiskFactors(_Frozen):
    """The five per-node risk factor scores."""

    data_completeness: ScoreValue
    factor_reliability: ScoreValue
    temporal_relevance: ScoreValue
    geographic_relevance: ScoreValue
    supplier_credibility: ScoreValue

    def as_dict(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in NODE_FACTORS}


class NodeRisk(_Frozen):
    """Risk assessment of a single node."""

    node_id: str
    node_label: str
    overall_risk: ScoreValue
    risk_level: RiskLevel
    risk_factors: RiskFactors
    critical_flags: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class CriticalIssue(_Frozen):
    """Cross-cutting issue affecting several nodes."""

    id: str
    severity: IssueSeverity
    category: str
    description: str
    affected_nodes: List[str] = Field(default_factory=list)
    affected_node_labels: List[str] = Field(default_factory=list)
    impact: str
    recommendation: str
    urgency: Urgency
    estimated_impact: str


class RiskRecommendation(_Frozen):
    """Organisation-level action synthesised from dimension scores."""

    priority: IssueSeverity
    category: str
    action: str
    expected_impact: str
    timeframe: str
    resources: List[str] = Field(default_factory=list)
    cost: str
    roi: str


class ProjectedRisk(_Frozen):
    one_month: ScoreValue
    three_months: ScoreValue
    six_months: ScoreValue


class RiskTrends(_Frozen):
    """Linear placeholder projection; not a fitted model."""

    current_risk: ScoreValue
    projected_risk: ProjectedRisk
    trend_factors: List[str] = Field(default_factory=list)
    risk_drivers: List[str] = Field(default_factory=list)
    illustrative: bool = True


class RiskMetadata(_Frozen):
    """Assessment bookkeeping; contains no timestamps."""

    node_count: int = Field(..., ge=0)
    filtered_node_count: int = Field(default=0, ge=0)
    skipped_nodes: List[str] = Field(default_factory=list)
    industry_type: str = DEFAULT_INDUSTRY
    config_version: str = "1.0"


class RiskReport(_Frozen):
    """Complete risk assessment of a graph snapshot."""

    workflow_id: str
    overall_risk_score: ScoreValue
    risk_level: RiskLevel
    dimensions: RiskDimensions
    critical_issues: List[CriticalIssue] = Field(default_factory=list)
    recommendations: List[RiskRecommendation] = Field(default_factory=list)
    node_risks: List[NodeRisk] = Field(default_factory=list)
    risk_trends: RiskTrends
    metadata: RiskMetadata
    provenance_hash: str = ""


__all__ = [
    "DIMENSIONS",
    "NODE_FACTORS",
    "RiskLevel",
    "IssueSeverity",
    "Urgency",
    "IndustryBenchmark",
    "DEFAULT_INDUSTRY",
    "INDUSTRY_BENCHMARKS",
    "RiskThresholds",
    "RiskAssessmentConfig",
    "DimensionRisk",
    "RiskDimensions",
    "RiskFactors",
    "NodeRisk",
    "CriticalIssue",
    "RiskRecommendation",
    "ProjectedRisk",
    "RiskTrends",
    "RiskMetadata",
    "RiskReport",
]
