# -*- coding: utf-8 -*-
"""
Risk Assessment Engine

Multi-dimensional risk assessment of a lifecycle graph. Scores are
"credibility style": 100 is lowest risk, 0 is highest.

Pipeline (each stage pure and independently testable):
    1. Filter: drop nodes without id or label and placeholder nodes whose
       label contains a configured marker ("test", "临时").
    2. Dimensions: average six per-node heuristics (data quality,
       compliance, supply chain, methodology, temporal, geographic) and
       compare them against the industry benchmark row.
    3. Node risks: weight five per-node factors into an overall risk with
       level, critical flags and recommendations.
    4. Critical issues: high-risk nodes, non-EU-compliant nodes and
       deep-tier suppliers.
    5. Recommendations: rule table over the dimension scores.
    6. Overall score: weighted sum of the dimension scores.
    7. Trend: linear placeholder projection, flagged illustrative.

Risk Levels (defaults):
    CRITICAL:  score < 40
    HIGH:      40 <= score < 60
    MEDIUM:    60 <= score < 75
    LOW:       75 <= score

Zero-Hallucination Guarantees:
    - Every score derives from explicit keyword and threshold rules
    - Dimension and node factor weights validated separately at init
    - Decimal arithmetic with ROUND_HALF_UP for every average
    - No timestamps in the report body

Example:
    >>> from carbonflow.risk import RiskAssessmentEngine
    >>> engine = RiskAssessmentEngine()
    >>> report = engine.assess(nodes, workflow_id="wf-001", industry_type="energy")
    >>> print(report.overall_risk_score, report.risk_level.value)

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from carbonflow.arithmetic import clamp_score, mean, percentage, weighted_sum
from carbonflow.config import (
    CarbonFlowConfig,
    check_ascending_thresholds,
    check_weight_sum,
    get_config,
)
from carbonflow.exceptions import ConfigurationError, RiskAssessmentError
from carbonflow.graph import GraphInput, GraphModel
from carbonflow.models import Node
from carbonflow.provenance import stamp
from carbonflow.risk import heuristics
from carbonflow.risk.models import (
    DEFAULT_INDUSTRY,
    DIMENSIONS,
    NODE_FACTORS,
    CriticalIssue,
    DimensionRisk,
    IndustryBenchmark,
    IssueSeverity,
    NodeRisk,
    ProjectedRisk,
    RiskAssessmentConfig,
    RiskDimensions,
    RiskLevel,
    RiskMetadata,
    RiskRecommendation,
    RiskReport,
    RiskTrends,
    Urgency,
)

logger = logging.getLogger(__name__)

__all__ = [
    "RiskAssessmentEngine",
    "assess_risk",
]

CONFIG_VERSION = "1.0"

# Month horizon -> assumed score change; placeholder, not a fitted model.
TREND_DELTAS: Tuple[Tuple[str, int], ...] = (
    ("one_month", -2),
    ("three_months", -8),
    ("six_months", -15),
)

TREND_FACTORS = [
    "Continuous data quality improvement",
    "Tightening compliance requirements",
    "Greater supply chain transparency",
]

RISK_DRIVER_COUNT = 3
INCOMPLETE_NODE_SCORE = 70
NON_COMPLIANT_NODE_SCORE = 60
LOW_DIMENSION_SCORE = 60
METHODOLOGY_TARGET = 70


class _NodeScores:
    """Per-node heuristic results computed once and shared by every stage."""

    __slots__ = ("node", "dimensions", "risk")

    def __init__(self, node: Node, dimensions: Dict[str, int], risk: NodeRisk) -> None:
        self.node = node
        self.dimensions = dimensions
        self.risk = risk


class RiskAssessmentEngine:
    """Seven-stage risk assessment over a lifecycle graph.

    Attributes:
        _risk_config: Weights, thresholds, benchmarks and markers.
        _derive_stage: Passed through when building graphs.
    """

    def __init__(
        self,
        config: Optional[CarbonFlowConfig] = None,
        risk_config: Optional[RiskAssessmentConfig] = None,
    ) -> None:
        """Initialize RiskAssessmentEngine.

        Args:
            config: Optional configuration. Uses global config if None.
            risk_config: Explicit risk configuration. Built from ``config``
                if None.

        Raises:
            ConfigurationError: If either weight vector does not sum to 1.0,
                names unknown keys or the thresholds are out of order.
        """
        cfg = config or get_config()
        self._derive_stage = cfg.derive_stage_from_type
        self._risk_config = risk_config or RiskAssessmentConfig.from_config(cfg)
        self._validate(self._risk_config)
        self._default_industry = cfg.default_industry_type or DEFAULT_INDUSTRY
        logger.info(
            "RiskAssessmentEngine initialized: thresholds=[C=%d H=%d M=%d] "
            "markers=%s reference_year=%d",
            self._risk_config.thresholds.critical,
            self._risk_config.thresholds.high,
            self._risk_config.thresholds.medium,
            self._risk_config.placeholder_markers,
            self._risk_config.reference_year,
        )

    @staticmethod
    def _validate(risk_config: RiskAssessmentConfig) -> None:
        for name, weights, expected in (
            ("dimension_weights", risk_config.dimension_weights, DIMENSIONS),
            ("node_factor_weights", risk_config.node_factor_weights, NODE_FACTORS),
        ):
            if set(weights) != set(expected):
                raise ConfigurationError(
                    f"{name} must define exactly: {', '.join(expected)}",
                    engine_name="RiskAssessmentEngine",
                    context={"received": sorted(weights)},
                    config_key=name,
                )
            check_weight_sum(weights, name, "RiskAssessmentEngine")
        thresholds = risk_config.thresholds
        check_ascending_thresholds(
            {
                "critical": thresholds.critical,
                "high": thresholds.high,
                "medium": thresholds.medium,
            },
            "risk_thresholds",
            "RiskAssessmentEngine",
        )

    @property
    def config(self) -> RiskAssessmentConfig:
        return self._risk_config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_risk_level(self, score: float) -> RiskLevel:
        """Classify a score; cut points belong to the less severe level."""
        thresholds = self._risk_config.thresholds
        if score < thresholds.critical:
            return RiskLevel.CRITICAL
        if score < thresholds.high:
            return RiskLevel.HIGH
        if score < thresholds.medium:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def assess(
        self,
        nodes: GraphInput,
        workflow_id: str,
        industry_type: Optional[str] = None,
    ) -> RiskReport:
        """Run the full risk assessment.

        Args:
            nodes: GraphModel or iterable of node records.
            workflow_id: Workflow the report belongs to.
            industry_type: Benchmark row (manufacturing, energy,
                transportation). Unknown types use the default row.

        Returns:
            RiskReport.

        Raises:
            RiskAssessmentError: If no node survives filtering and scoring.
        """
        graph = GraphModel.coerce(nodes, self._derive_stage)
        industry = (industry_type or self._default_industry).strip() or DEFAULT_INDUSTRY
        benchmark = self._risk_config.benchmark_for(industry)

        valid = self.filter_nodes(graph)
        filtered = len(graph) - len(valid)
        scored, skipped = self._score_nodes(valid)
        if not scored:
            logger.warning(
                "Risk assessment rejected: workflow=%s received=%d filtered=%d skipped=%d",
                workflow_id, len(graph), filtered, len(skipped),
            )
            raise RiskAssessmentError(
                "No valid nodes remain after filtering",
                workflow_id=workflow_id,
                context={
                    "received": len(graph),
                    "filtered_out": filtered,
                    "skipped": len(skipped),
                },
            )

        dimensions = self.calculate_dimension_risks(scored, benchmark)
        node_risks = [s.risk for s in scored]
        critical_issues = self.identify_critical_issues(scored)
        recommendations = self.generate_recommendations(node_risks, dimensions)
        overall = self.calculate_overall_score(dimensions)
        trends = self.predict_trends(node_risks, dimensions)

        level = self.get_risk_level(overall)
        logger.info(
            "Risk assessed: workflow=%s nodes=%d overall=%d level=%s issues=%d",
            workflow_id, len(scored), overall, level.value, len(critical_issues),
        )
        return stamp(RiskReport(
            workflow_id=workflow_id,
            overall_risk_score=overall,
            risk_level=level,
            dimensions=dimensions,
            critical_issues=critical_issues,
            recommendations=recommendations,
            node_risks=node_risks,
            risk_trends=trends,
            metadata=RiskMetadata(
                node_count=len(scored),
                filtered_node_count=filtered,
                skipped_nodes=skipped,
                industry_type=industry,
                config_version=CONFIG_VERSION,
            ),
        ))

    async def perform_comprehensive_assessment(
        self,
        nodes: GraphInput,
        workflow_id: str,
        industry_type: Optional[str] = None,
    ) -> RiskReport:
        """Async entry point; runs :meth:`assess` without internal awaits."""
        return self.assess(nodes, workflow_id, industry_type)

    # ------------------------------------------------------------------
    # Stage 1: filtering
    # ------------------------------------------------------------------

    def filter_nodes(self, graph: GraphModel) -> List[Node]:
        """Drop unlabelled nodes and placeholder nodes."""
        markers = self._risk_config.placeholder_markers
        valid = []
        for node in graph:
            if not node.id or not node.label:
                logger.debug("Risk filter dropped unlabelled node %r", node.id)
                continue
            if any(marker in node.label for marker in markers):
                logger.debug("Risk filter dropped placeholder node %r", node.id)
                continue
            valid.append(node)
        return valid

    def _score_nodes(self, nodes: Sequence[Node]) -> Tuple[List[_NodeScores], List[str]]:
        scored: List[_NodeScores] = []
        skipped: List[str] = []
        for node in nodes:
            try:
                scored.append(_NodeScores(
                    node, self._dimension_scores(node), self.assess_node(node),
                ))
            except (ValueError, TypeError) as exc:
                logger.warning("Skipping node %s in risk assessment: %s", node.id, exc)
                skipped.append(node.id)
        return scored, skipped

    def _dimension_scores(self, node: Node) -> Dict[str, int]:
        year = self._risk_config.reference_year
        return {
            "data_quality": heuristics.data_quality_score(node),
            "compliance": heuristics.compliance_score(node),
            "supply_chain": heuristics.supply_chain_score(node),
            "methodology": heuristics.methodology_score(node),
            "temporal": heuristics.temporal_score(node, year),
            "geographic": heuristics.geographic_score(node),
        }

    # ------------------------------------------------------------------
    # Stage 2: dimensions
    # ------------------------------------------------------------------

    def calculate_dimension_risks(
        self,
        scored: Sequence[_NodeScores],
        benchmark: IndustryBenchmark,
    ) -> RiskDimensions:
        """Average the per-node heuristics into six dimension results."""
        per_dimension: Dict[str, List[int]] = {
            name: [s.dimensions[name] for s in scored] for name in DIMENSIONS
        }
        nodes = [s.node for s in scored]
        builders: Dict[str, Callable[..., DimensionRisk]] = {
            "data_quality": self._data_quality,
            "compliance": self._compliance,
            "supply_chain": self._supply_chain,
            "methodology": self._methodology,
            "temporal": self._temporal,
            "geographic": self._geographic,
        }
        return RiskDimensions(**{
            name: builders[name](per_dimension[name], nodes, benchmark)
            for name in DIMENSIONS
        })

    def _dimension(
        self,
        scores: Sequence[int],
        issues: List[str],
        recommendations: List[str],
        details: Dict[str, object],
    ) -> DimensionRisk:
        score = clamp_score(mean(scores))
        return DimensionRisk(
            score=score,
            level=self.get_risk_level(score),
            issues=issues,
            recommendations=recommendations,
            details=details,
        )

    def _data_quality(
        self, scores: Sequence[int], nodes: Sequence[Node], benchmark: IndustryBenchmark,
    ) -> DimensionRisk:
        average = clamp_score(mean(scores))
        incomplete = sum(1 for s in scores if s < INCOMPLETE_NODE_SCORE)
        issues, recommendations = [], []
        if average < benchmark.average_data_quality:
            issues.append(
                f"Data quality below industry average ({benchmark.average_data_quality} points)"
            )
            recommendations.append("Establish a data quality management system")
        if incomplete:
            issues.append(f"{incomplete} nodes have incomplete data")
            recommendations.append("Complete the missing key data fields")
        return self._dimension(scores, issues, recommendations, {
            "average_completeness": average,
            "incomplete_node_count": incomplete,
            "benchmark_comparison": average - benchmark.average_data_quality,
        })

    def _compliance(
        self, scores: Sequence[int], nodes: Sequence[Node], benchmark: IndustryBenchmark,
    ) -> DimensionRisk:
        non_compliant = sum(1 for s in scores if s < NON_COMPLIANT_NODE_SCORE)
        eu_non_compliant = sum(1 for n in nodes if n.eu_compliant_factor is not True)
        eu_rate = percentage(len(nodes) - eu_non_compliant, len(nodes))
        verified = sum(1 for n in nodes if heuristics.is_verified(n))
        issues, recommendations = [], []
        if non_compliant:
            issues.append(f"{non_compliant} nodes carry compliance risk")
            recommendations.append("Update to emission factors meeting current regulations")
        if eu_non_compliant:
            issues.append(f"{eu_non_compliant} nodes do not meet EU standards")
            recommendations.append("Prepare CBAM compliance documentation")
        if eu_rate < benchmark.compliance_rate:
            issues.append(
                f"EU compliance rate {eu_rate}% below industry benchmark "
                f"({benchmark.compliance_rate}%)"
            )
            recommendations.append("Raise the share of EU-compliant emission factors")
        return self._dimension(scores, issues, recommendations, {
            "eu_compliance_rate": eu_rate,
            "non_compliant_node_count": non_compliant,
            "verification_rate": percentage(verified, len(nodes)),
        })

    def _supply_chain(
        self, scores: Sequence[int], nodes: Sequence[Node], benchmark: IndustryBenchmark,
    ) -> DimensionRisk:
        high_risk = sum(1 for s in scores if s < benchmark.supplier_risk_threshold)
        deep_tier = sum(1 for n in nodes if heuristics.is_deep_tier(n))
        direct = sum(
            1 for n in nodes if n.supplier_info is not None and n.supplier_info.is_direct_supplier
        )
        tiers = [heuristics.supplier_tier(n) or 1 for n in nodes]
        issues, recommendations = [], []
        if high_risk:
            issues.append(f"{high_risk} high-risk supplier nodes")
            recommendations.append("Establish a supplier ESG assessment system")
        if deep_tier:
            issues.append(f"{deep_tier} deep-tier supplier nodes")
            recommendations.append("Strengthen verification of deep-tier supply chain data")
        return self._dimension(scores, issues, recommendations, {
            "direct_supplier_ratio": percentage(direct, len(nodes)),
            "average_supplier_tier": float(round(mean(tiers), 2)),
            "high_risk_supplier_count": high_risk,
        })

    def _methodology(
        self, scores: Sequence[int], nodes: Sequence[Node], benchmark: IndustryBenchmark,
    ) -> DimensionRisk:
        average = clamp_score(mean(scores))
        below = average < METHODOLOGY_TARGET
        if average > 80:
            transparency = "high"
        elif average > 60:
            transparency = "medium"
        else:
            transparency = "low"
        return self._dimension(
            scores,
            ["Insufficient methodology transparency"] if below else [],
            ["Document the calculation method", "Provide an uncertainty analysis"] if below else [],
            {"average_methodology_score": average, "transparency_level": transparency},
        )

    def _temporal(
        self, scores: Sequence[int], nodes: Sequence[Node], benchmark: IndustryBenchmark,
    ) -> DimensionRisk:
        outdated = sum(1 for s in scores if s < LOW_DIMENSION_SCORE)
        return self._dimension(
            scores,
            [f"{outdated} nodes use outdated emission factors"] if outdated else [],
            ["Update to the latest emission factor vintage"] if outdated else [],
            {
                "average_temporal_score": clamp_score(mean(scores)),
                "outdated_factor_count": outdated,
            },
        )

    def _geographic(
        self, scores: Sequence[int], nodes: Sequence[Node], benchmark: IndustryBenchmark,
    ) -> DimensionRisk:
        low = sum(1 for s in scores if s < LOW_DIMENSION_SCORE)
        return self._dimension(
            scores,
            [f"{low} nodes lack geographical representativeness"] if low else [],
            ["Use localized emission factors"] if low else [],
            {
                "average_geographic_relevance": clamp_score(mean(scores)),
                "low_relevance_count": low,
            },
        )

    # ------------------------------------------------------------------
    # Stage 3: node risks
    # ------------------------------------------------------------------

    def assess_node(self, node: Node) -> NodeRisk:
        """Weight the five node factors into one NodeRisk."""
        factors = heuristics.node_risk_factors(node, self._risk_config.reference_year)
        overall = clamp_score(
            weighted_sum(factors.as_dict(), self._risk_config.node_factor_weights)
        )
        return NodeRisk(
            node_id=node.id,
            node_label=node.label,
            overall_risk=overall,
            risk_level=self.get_risk_level(overall),
            risk_factors=factors,
            critical_flags=heuristics.critical_flags(node, factors),
            recommendations=heuristics.node_recommendations(node, factors),
        )

    # ------------------------------------------------------------------
    # Stage 4: critical issues
    # ------------------------------------------------------------------

    def identify_critical_issues(self, scored: Sequence[_NodeScores]) -> List[CriticalIssue]:
        """Extract cross-cutting issues from the scored nodes."""
        issues: List[CriticalIssue] = []

        high_risk = [s.node for s in scored if s.risk.overall_risk < self._risk_config.thresholds.high]
        if high_risk:
            issues.append(CriticalIssue(
                id="high-risk-nodes",
                severity=IssueSeverity.HIGH,
                category="Data quality",
                description=f"{len(high_risk)} high-risk nodes found",
                affected_nodes=[n.id for n in high_risk],
                affected_node_labels=[n.label for n in high_risk],
                impact="Carbon footprint results may be inaccurate and undermine decisions",
                recommendation="Fix the data quality of these nodes first",
                urgency=Urgency.IMMEDIATE,
                estimated_impact="high",
            ))

        non_eu = [s.node for s in scored if s.node.eu_compliant_factor is not True]
        if non_eu:
            issues.append(CriticalIssue(
                id="compliance-issues",
                severity=IssueSeverity.MEDIUM,
                category="Compliance",
                description=f"{len(non_eu)} nodes carry compliance risk",
                affected_nodes=[n.id for n in non_eu],
                affected_node_labels=[n.label for n in non_eu],
                impact="Products may fail EU CBAM requirements, affecting exports",
                recommendation="Update to EU-compliant emission factors",
                urgency=Urgency.HIGH,
                estimated_impact="medium",
            ))

        deep = [s.node for s in scored if heuristics.is_deep_tier(s.node)]
        if deep:
            issues.append(CriticalIssue(
                id="supply-chain-risk",
                severity=IssueSeverity.MEDIUM,
                category="Supply chain",
                description=f"{len(deep)} deep-tier supplier nodes carry risk",
                affected_nodes=[n.id for n in deep],
                affected_node_labels=[n.label for n in deep],
                impact="Deep-tier supply chain data has low credibility and raises uncertainty",
                recommendation="Establish a supplier data verification mechanism",
                urgency=Urgency.MEDIUM,
                estimated_impact="medium",
            ))
        return issues

    # ------------------------------------------------------------------
    # Stage 5: recommendations
    # ------------------------------------------------------------------

    def generate_recommendations(
        self,
        node_risks: Sequence[NodeRisk],
        dimensions: RiskDimensions,
    ) -> List[RiskRecommendation]:
        """Apply the organisational recommendation rule table."""
        medium = self._risk_config.thresholds.medium
        average_risk = mean(r.overall_risk for r in node_risks)
        recommendations: List[RiskRecommendation] = []

        if average_risk < medium:
            recommendations.append(RiskRecommendation(
                priority=IssueSeverity.HIGH,
                category="Data quality improvement",
                action="Run a comprehensive data quality improvement program",
                expected_impact="Raise the overall risk score above 80",
                timeframe="1-2 months",
                resources=["Data management specialist", "Quality control system"],
                cost="medium",
                roi="high",
            ))
        if dimensions.compliance.score < medium:
            recommendations.append(RiskRecommendation(
                priority=IssueSeverity.HIGH,
                category="Compliance improvement",
                action="Build a CBAM compliance management program",
                expected_impact="Products meet EU carbon border adjustment requirements",
                timeframe="2-3 months",
                resources=["Compliance expert", "Legal support"],
                cost="high",
                roi="very_high",
            ))
        recommendations.append(RiskRecommendation(
            priority=IssueSeverity.MEDIUM,
            category="Automated monitoring",
            action="Set up continuous automated risk monitoring",
            expected_impact="Detect and flag risk changes as they happen",
            timeframe="2-3 months",
            resources=["Development team", "Monitoring system"],
            cost="medium",
            roi="high",
        ))
        if dimensions.supply_chain.score < medium:
            recommendations.append(RiskRecommendation(
                priority=IssueSeverity.MEDIUM,
                category="Supply chain management",
                action="Establish supplier ESG assessment and data verification",
                expected_impact="More credible and transparent supply chain data",
                timeframe="3-6 months",
                resources=["Supply chain team", "ESG expert"],
                cost="high",
                roi="medium",
            ))
        return recommendations

    # ------------------------------------------------------------------
    # Stage 6 and 7: overall score and trend
    # ------------------------------------------------------------------

    def calculate_overall_score(self, dimensions: RiskDimensions) -> int:
        """Weighted sum of the six dimension scores."""
        return clamp_score(
            weighted_sum(dimensions.scores(), self._risk_config.dimension_weights)
        )

    def predict_trends(
        self,
        node_risks: Sequence[NodeRisk],
        dimensions: RiskDimensions,
    ) -> RiskTrends:
        """Linear placeholder projection from the mean node risk."""
        current = clamp_score(mean(r.overall_risk for r in node_risks))
        projected = {horizon: clamp_score(current + delta) for horizon, delta in TREND_DELTAS}
        scores = dimensions.scores()
        drivers = sorted(DIMENSIONS, key=lambda name: scores[name])[:RISK_DRIVER_COUNT]
        return RiskTrends(
            current_risk=current,
            projected_risk=ProjectedRisk(**projected),
            trend_factors=list(TREND_FACTORS),
            risk_drivers=drivers,
            illustrative=True,
        )


def assess_risk(
    nodes: GraphInput,
    workflow_id: str,
    industry_type: Optional[str] = None,
    config: Optional[CarbonFlowConfig] = None,
) -> RiskReport:
    """Convenience wrapper around :meth:`RiskAssessmentEngine.assess`."""
    return RiskAssessmentEngine(config).assess(nodes, workflow_id, industry_type)
