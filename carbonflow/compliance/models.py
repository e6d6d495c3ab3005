# -*- coding: utf-8 -*-
"""
Compliance Checker Data Models

Pydantic v2 models for multi-standard compliance checking: the standard
identifiers, the caller-supplied configuration, per-standard score details
and the cross-standard aggregate report.

Models:
    - Enumerations: StandardId, ComplianceLevel, RequirementSeverity,
        Priority, Effort
    - Configuration: ComplianceThresholds, ComplianceCheckConfiguration
    - Per-standard results: RequirementResult, CategoryScore, NodeIssue,
        NodeIssueGroup, ComplianceSummary, Improvement,
        ComplianceScoreDetail
    - Aggregate: AggregateScore, CommonIssue, ActionItem,
        MultiStandardComplianceReport

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ScoreValue = Annotated[int, Field(ge=0, le=100)]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class StandardId(str, Enum):
    """Regulatory and reporting frameworks known to the checker.

    Only a subset has a registered requirement catalog; see
    :mod:`carbonflow.compliance.standards`.
    """

    ISO_14067 = "ISO_14067"
    ISO_14040_14044 = "ISO_14040_14044"
    ISO_14064 = "ISO_14064"
    ISO_14001 = "ISO_14001"
    ISO_50001 = "ISO_50001"
    PAS_2050 = "PAS_2050"
    PAS_2060 = "PAS_2060"
    GHG_PROTOCOL = "GHG_PROTOCOL"
    CBAM = "CBAM"
    EU_TAXONOMY = "EU_TAXONOMY"
    EU_ETS = "EU_ETS"
    EU_BATTERY_REGULATION = "EU_BATTERY_REGULATION"
    TCFD = "TCFD"
    CSRD = "CSRD"
    SBTI = "SBTI"
    CDP = "CDP"
    GRI = "GRI"
    SASB = "SASB"
    IFRS_S1_S2 = "IFRS_S1_S2"
    CHINA_ETS = "CHINA_ETS"
    CHINA_ENVIRONMENTAL_LAW = "CHINA_ENVIRONMENTAL_LAW"
    CHINA_ENERGY_LAW = "CHINA_ENERGY_LAW"
    CHINA_CLEANER_PRODUCTION = "CHINA_CLEANER_PRODUCTION"
    CCER = "CCER"
    GB_T_32150 = "GB_T_32150"
    GB_T_32151 = "GB_T_32151"
    SBTI_NET_ZERO = "SBTi_NET_ZERO"
    RACE_TO_ZERO = "RACE_TO_ZERO"
    UNGC = "UNGC"
    PARIS_AGREEMENT = "PARIS_AGREEMENT"
    KYOTO_PROTOCOL = "KYOTO_PROTOCOL"


class ComplianceLevel(str, Enum):
    """Four-bucket compliance classification."""

    FULL = "full_compliance"
    SUBSTANTIAL = "substantial_compliance"
    PARTIAL = "partial_compliance"
    NON = "non_compliance"


class RequirementSeverity(str, Enum):
    """Severity of failing a requirement."""

    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class Priority(str, Enum):
    """Improvement priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Effort(str, Enum):
    """Estimated effort to close a gap."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


SEVERITY_PRIORITY: Dict[RequirementSeverity, Priority] = {
    RequirementSeverity.CRITICAL: Priority.HIGH,
    RequirementSeverity.MAJOR: Priority.MEDIUM,
    RequirementSeverity.MINOR: Priority.LOW,
}

PRIORITY_IMPACT: Dict[Priority, int] = {
    Priority.HIGH: 15,
    Priority.MEDIUM: 10,
    Priority.LOW: 5,
}

SEVERITY_RANK: Dict[RequirementSeverity, int] = {
    RequirementSeverity.CRITICAL: 3,
    RequirementSeverity.MAJOR: 2,
    RequirementSeverity.MINOR: 1,
}


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ComplianceThresholds(_CamelModel):
    """Level cut points; a score equal to a cut point reaches that level.

    Attributes:
        critical: Lowest score for partial compliance.
        warning: Lowest score for substantial compliance.
        acceptable: Lowest score for full compliance.
    """

    critical: int = 60
    warning: int = 75
    acceptable: int = 90


class ComplianceCheckConfiguration(_CamelModel):
    """Caller-supplied compliance check configuration.

    Standard ids stay raw strings here so that an unknown id surfaces as a
    ConfigurationError from the checker rather than a parsing error.

    Attributes:
        enabled_standards: Standard ids to evaluate, in report order.
        thresholds: Level cut points.
        auto_refresh: Host hint to recheck on every graph change.
        include_recommendations: Generate improvements and action items.
        include_node_level: Report per-node issues.
        report_format: Host rendering hint (summary or detailed).
        custom_weights: Requirement id to weight overrides.
    """

    enabled_standards: List[str] = Field(default_factory=list)
    thresholds: ComplianceThresholds = Field(default_factory=ComplianceThresholds)
    auto_refresh: bool = True
    include_recommendations: bool = True
    include_node_level: bool = True
    report_format: str = "detailed"
    custom_weights: Optional[Dict[str, float]] = None


# ---------------------------------------------------------------------------
# Per-standard results
# ---------------------------------------------------------------------------


class _Result(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)


class RequirementResult(_Result):
    """Outcome of one requirement for one standard."""

    requirement_id: str
    requirement_name: str
    category: str
    severity: RequirementSeverity
    mandatory: bool
    weight: float = Field(..., ge=0.0)
    score: ScoreValue
    compliant: bool
    applicable_nodes: int = Field(default=0, ge=0)
    failing_nodes: int = Field(default=0, ge=0)
    evidence: List[str] = Field(default_factory=list)
    gaps: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class CategoryScore(_Result):
    """Weighted score of the requirements in one category."""

    category: str
    score: ScoreValue
    requirements: int = Field(..., ge=1)


class NodeIssue(_Result):
    """A requirement a specific node fails."""

    requirement_id: str
    requirement_name: str
    description: str
    severity: RequirementSeverity
    recommendation: str = ""


class NodeIssueGroup(_Result):
    """All issues raised against one node for one standard."""

    node_id: str
    node_label: str
    node_type: Optional[str] = None
    issues: List[NodeIssue] = Field(default_factory=list)


class ComplianceSummary(_Result):
    """Requirement counts; issue counts cover non-compliant requirements."""

    total_requirements: int = Field(default=0, ge=0)
    compliant_requirements: int = Field(default=0, ge=0)
    critical_issues: int = Field(default=0, ge=0)
    major_issues: int = Field(default=0, ge=0)
    minor_issues: int = Field(default=0, ge=0)


class Improvement(_Result):
    """Suggested action to close a non-compliant requirement."""

    requirement_id: str
    priority: Priority
    area: str
    action: str
    impact: str
    effort: Effort


class ComplianceScoreDetail(_Result):
    """Compliance evaluation of a graph against one standard."""

    standard: StandardId
    standard_name: str
    overall_score: ScoreValue
    level: ComplianceLevel
    mandatory_score: ScoreValue
    mandatory_compliance: bool
    recommended_score: ScoreValue
    category_scores: List[CategoryScore] = Field(default_factory=list)
    requirement_results: List[RequirementResult] = Field(default_factory=list)
    node_issues: List[NodeIssueGroup] = Field(default_factory=list)
    summary: ComplianceSummary = Field(default_factory=ComplianceSummary)
    improvements: List[Improvement] = Field(default_factory=list)
    provenance_hash: str = ""


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


class AggregateScore(_Result):
    """Cross-standard score summary."""

    average_score: ScoreValue
    best_performing_standard: StandardId
    worst_performing_standard: StandardId


class CommonIssue(_Result):
    """An issue description raised under two or more standards."""

    description: str
    standards: List[StandardId]
    occurrences: int = Field(..., ge=1)
    severity: RequirementSeverity
    affected_nodes: List[str] = Field(default_factory=list)
    solution: str = ""


class ActionItem(_Result):
    """A ranked improvement drawn from every standard.

    ``priority`` is the 1-based rank after sorting by ``estimated_impact``.
    """

    priority: int = Field(..., ge=1)
    standard: StandardId
    requirement_id: str
    area: str
    action: str
    priority_level: Priority
    effort: Effort
    estimated_impact: int = Field(..., ge=0)


class MultiStandardComplianceReport(_Result):
    """Compliance results for every enabled standard plus the aggregate."""

    workflow_id: str
    report_date: Optional[str] = None
    standards: List[StandardId]
    standard_reports: Dict[str, ComplianceScoreDetail]
    aggregate_score: AggregateScore
    common_issues: List[CommonIssue] = Field(default_factory=list)
    action_items: List[ActionItem] = Field(default_factory=list)
    provenance_hash: str = ""


__all__ = [
    "StandardId",
    "ComplianceLevel",
    "RequirementSeverity",
    "Priority",
    "Effort",
    "SEVERITY_PRIORITY",
    "PRIORITY_IMPACT",
    "SEVERITY_RANK",
    "ComplianceThresholds",
    "ComplianceCheckConfiguration",
    "RequirementResult",
    "CategoryScore",
    "NodeIssue",
    "NodeIssueGroup",
    "ComplianceSummary",
    "Improvement",
    "ComplianceScoreDetail",
    "AggregateScore",
    "CommonIssue",
    "ActionItem",
    "MultiStandardComplianceReport",
]
