"""Tests for RiskAssessmentEngine and the risk heuristics.

Covers:
- Node filtering and the no-valid-node error
- Risk level boundaries
- Dimension heuristics and node factor heuristics
- Node risk weighting, critical issues and recommendations
- Overall score, trend projection and the async entry point
"""

import asyncio

import pytest

from carbonflow.exceptions import ConfigurationError, RiskAssessmentError
from carbonflow.graph import GraphModel
from carbonflow.models import Node
from carbonflow.risk import (
    RiskAssessmentConfig,
    RiskAssessmentEngine,
    RiskLevel,
    assess_risk,
)
from carbonflow.risk import heuristics

from conftest import REFERENCE_YEAR, raw_node, verified_file


def node(**fields):
    fields.setdefault("id", "n1")
    return Node.model_validate(fields)


def reliable_node(**overrides):
    """A fully documented node with a national factor source."""
    record = {
        "id": "n1",
        "label": "Steel coil",
        "carbonFactor": "2",
        "quantity": "10",
        "activityUnit": "kg",
        "carbonFactorName": "Hot-rolled steel",
        "carbonFactordataSource": "国家温室气体排放因子库",
        "activitydataSource": "手动填写",
        "verificationStatus": "已验证",
        "emissionFactorTemporalRepresentativeness": "2023",
        "emissionFactorGeographicalRepresentativeness": "中国",
    }
    record.update(overrides)
    return record


# ==============================================================================
# Filtering
# ==============================================================================

class TestFiltering:
    """Tests for node filtering and the empty-result error."""

    def test_empty_graph_raises(self):
        """An empty graph has nothing to assess."""
        with pytest.raises(RiskAssessmentError) as exc_info:
            RiskAssessmentEngine().assess([], "wf-empty")

        assert exc_info.value.context["workflow_id"] == "wf-empty"
        assert exc_info.value.context["received"] == 0

    def test_placeholder_only_graph_raises(self):
        """Placeholder labels are filtered out before scoring."""
        with pytest.raises(RiskAssessmentError):
            RiskAssessmentEngine().assess(
                [raw_node("a", label="test node"), raw_node("b", label="临时节点")],
                "wf-1",
            )

    def test_unlabelled_nodes_filtered(self):
        """Nodes without a label are not assessed."""
        with pytest.raises(RiskAssessmentError) as exc_info:
            RiskAssessmentEngine().assess([{"id": "a"}], "wf-1")
        assert exc_info.value.context["filtered_out"] == 1

    def test_filtered_count_in_metadata(self):
        """Filtered nodes are counted in the report metadata."""
        report = RiskAssessmentEngine().assess(
            [raw_node("a"), raw_node("b", label="临时节点")], "wf-1",
        )

        assert report.metadata.node_count == 1
        assert report.metadata.filtered_node_count == 1
        assert report.metadata.skipped_nodes == []
        assert [r.node_id for r in report.node_risks] == ["a"]

    def test_malformed_record_does_not_abort_batch(self):
        """A record that fails validation is excluded and the rest are assessed."""
        graph = GraphModel.build([raw_node("a"), {"id": "b", "label": "x", "quantity": [1]}])
        report = RiskAssessmentEngine().assess(graph, "wf-1")

        assert [(d.node_id, d.reason) for d in graph.defects] == [("b", "invalid_payload")]
        assert [r.node_id for r in report.node_risks] == ["a"]
        assert report.metadata.node_count == 1

    def test_node_scoring_failure_is_skipped(self, monkeypatch):
        """A node whose heuristics fail is skipped and listed in the metadata."""
        original = heuristics.data_quality_score

        def failing_for_b(node):
            if node.id == "b":
                raise ValueError("unreadable source")
            return original(node)

        monkeypatch.setattr(heuristics, "data_quality_score", failing_for_b)
        report = RiskAssessmentEngine().assess([raw_node("a"), raw_node("b")], "wf-1")

        assert [r.node_id for r in report.node_risks] == ["a"]
        assert report.metadata.skipped_nodes == ["b"]


# ==============================================================================
# Configuration and levels
# ==============================================================================

class TestRiskLevels:
    """Tests for risk level classification and configuration checks."""

    @pytest.mark.parametrize("score,level", [
        (0, RiskLevel.CRITICAL),
        (39, RiskLevel.CRITICAL),
        (40, RiskLevel.HIGH),
        (59, RiskLevel.HIGH),
        (60, RiskLevel.MEDIUM),
        (74, RiskLevel.MEDIUM),
        (75, RiskLevel.LOW),
        (100, RiskLevel.LOW),
    ])
    def test_level_boundaries(self, score, level):
        """Cut points belong to the less severe level."""
        assert RiskAssessmentEngine().get_risk_level(score) is level

    def test_config_from_global(self, fixed_config):
        """The risk configuration follows the global configuration."""
        engine = RiskAssessmentEngine(fixed_config)

        assert engine.config.reference_year == REFERENCE_YEAR
        assert engine.config.placeholder_markers == ["test", "临时"]
        assert engine.config.thresholds.high == 60

    def test_dimension_weights_must_sum_to_one(self, fixed_config):
        """Dimension weights are validated independently of node weights."""
        base = RiskAssessmentConfig.from_config(fixed_config)
        weights = dict(base.dimension_weights, geographic=0.10)
        bad = base.model_copy(update={"dimension_weights": weights})

        with pytest.raises(ConfigurationError) as exc_info:
            RiskAssessmentEngine(risk_config=bad)
        assert exc_info.value.context["config_key"] == "dimension_weights"

    def test_node_factor_keys_must_match(self, fixed_config):
        """Node factor weights must name exactly the five factors."""
        base = RiskAssessmentConfig.from_config(fixed_config)
        bad = base.model_copy(update={"node_factor_weights": {"data_completeness": 1.0}})

        with pytest.raises(ConfigurationError) as exc_info:
            RiskAssessmentEngine(risk_config=bad)
        assert exc_info.value.context["config_key"] == "node_factor_weights"


# ==============================================================================
# Heuristics
# ==============================================================================

class TestDimensionHeuristics:
    """Tests for the per-node dimension heuristics."""

    @pytest.mark.parametrize("temporal,expected", [
        ("2023", 95),
        ("2022", 85),
        ("2021", 75),
        ("2019", 60),
        ("2010", 40),
        ("", 30),
        ("recent", 40),
    ])
    def test_temporal_score(self, temporal, expected):
        """Newer emission factors score higher."""
        scored = node(emissionFactorTemporalRepresentativeness=temporal)
        assert heuristics.temporal_score(scored, REFERENCE_YEAR) == expected

    @pytest.mark.parametrize("geography,expected", [
        ("中国", 90),
        ("CN", 90),
        ("China mainland", 90),
        ("Asia", 75),
        ("Global average", 65),
        ("Europe", 60),
        ("Brazil", 50),
        (None, 40),
    ])
    def test_geographic_score(self, geography, expected):
        """China-specific factors score highest."""
        scored = node(emissionFactorGeographicalRepresentativeness=geography)
        assert heuristics.geographic_score(scored) == expected

    def test_supply_chain_without_supplier(self):
        """Nodes without supplier information score a neutral 60."""
        assert heuristics.supply_chain_score(node()) == 60

    def test_supply_chain_deep_indirect_supplier(self):
        """A tier-4 indirect supplier in a developing region scores low."""
        scored = node(
            supplierInfo={"tier": 4, "isDirectSupplier": False},
            emissionFactorGeographicalRepresentativeness="developing countries",
        )
        assert heuristics.supply_chain_score(scored) == 40

    def test_supply_chain_direct_verified_supplier(self):
        """A direct supplier with verified evidence is capped at 100."""
        scored = node(
            supplierInfo={"tier": 1, "isDirectSupplier": True},
            evidenceFiles=[verified_file()],
            evidenceVerificationStatus="verified",
            emissionFactorGeographicalRepresentativeness="中国",
        )
        assert heuristics.supply_chain_score(scored) == 100

    def test_data_quality_extremes(self):
        """A blank node scores 0; a complete verified node is capped at 100."""
        assert heuristics.data_quality_score(node()) == 0

        complete = node(**reliable_node(
            supplementaryInfo="Metered on site",
            carbonFactordataSource="官方数据库",
        ))
        assert heuristics.data_quality_score(complete) == 100

    def test_data_quality_penalises_estimates(self):
        """Estimated activity data costs 15 points."""
        base = heuristics.data_quality_score(node(**reliable_node(verificationStatus="pending")))
        estimated = heuristics.data_quality_score(
            node(**reliable_node(verificationStatus="pending", activitydataSource="估算")),
        )
        assert (base, estimated) == (95, 80)

    def test_compliance_extremes(self):
        """A blank node scores 30; an EU-compliant verified official factor 100."""
        assert heuristics.compliance_score(node()) == 30

        compliant = node(
            euCompliantFactor=True,
            verificationStatus="verified",
            carbonFactordataSource="Official government database",
        )
        assert heuristics.compliance_score(compliant) == 100

    def test_methodology_sources(self):
        """IPCC sources outrank national and industry sources."""
        assert heuristics.methodology_score(node(carbonFactordataSource="IPCC 2019")) == 80
        assert heuristics.methodology_score(node(carbonFactordataSource="国家数据库")) == 75
        assert heuristics.methodology_score(node(carbonFactordataSource="行业平均")) == 70
        assert heuristics.methodology_score(node()) == 60

    def test_methodology_activity_score(self):
        """Activity scores above 4 add points, below 3 remove them."""
        assert heuristics.methodology_score(node(activityScore="4.5")) == 75
        assert heuristics.methodology_score(node(activityScore="2")) == 50


class TestNodeFactors:
    """Tests for per-node factor heuristics and node risk weighting."""

    def test_reliable_node_factors(self):
        """Each factor of a documented national-source node."""
        factors = heuristics.node_risk_factors(node(**reliable_node()), REFERENCE_YEAR)

        assert factors.data_completeness == 100
        assert factors.factor_reliability == 70
        assert factors.temporal_relevance == 90
        assert factors.geographic_relevance == 90
        assert factors.supplier_credibility == 60

    def test_assess_node_weighted(self):
        """Equal factor weights give the mean of the factors."""
        risk = RiskAssessmentEngine().assess_node(node(**reliable_node()))

        assert risk.overall_risk == 82
        assert risk.risk_level is RiskLevel.LOW
        assert risk.node_label == "Steel coil"

    def test_critical_flags(self):
        """A bare node raises the incomplete, EU and evidence flags."""
        risk = RiskAssessmentEngine().assess_node(node(label="Bare"))

        assert heuristics.FLAG_INCOMPLETE in risk.critical_flags
        assert heuristics.FLAG_NOT_EU in risk.critical_flags
        assert heuristics.FLAG_NO_EVIDENCE in risk.critical_flags
        assert "Arrange third-party verification" in risk.recommendations

    def test_supplier_credibility(self):
        """Deep tiers lose credibility, direct suppliers gain it."""
        assert heuristics.supplier_credibility(node(supplierInfo={"tier": 5})) == 50
        assert heuristics.supplier_credibility(
            node(supplierInfo={"tier": 1, "isDirectSupplier": True}),
        ) == 100


# ==============================================================================
# Full assessment
# ==============================================================================

class TestAssessment:
    """Tests for the complete assessment pipeline."""

    def test_overall_score_is_weighted_dimensions(self, complete_graph):
        """The overall score is the weighted sum of the dimension scores."""
        engine = RiskAssessmentEngine()
        report = engine.assess(complete_graph, "wf-1", "manufacturing")

        assert report.overall_risk_score == engine.calculate_overall_score(report.dimensions)
        assert report.risk_level is engine.get_risk_level(report.overall_risk_score)
        assert report.metadata.node_count == 6
        assert report.metadata.industry_type == "manufacturing"
        assert len(report.provenance_hash) == 64

    def test_trend_is_illustrative(self):
        """The trend projects fixed deltas from the mean node risk."""
        report = RiskAssessmentEngine().assess([reliable_node()], "wf-1")
        trends = report.risk_trends

        assert trends.illustrative is True
        assert trends.current_risk == 82
        assert trends.projected_risk.one_month == 80
        assert trends.projected_risk.three_months == 74
        assert trends.projected_risk.six_months == 67
        assert len(trends.risk_drivers) == 3

    def test_monitoring_recommendation_always_present(self, complete_graph):
        """Automated monitoring is recommended for every graph."""
        report = RiskAssessmentEngine().assess(complete_graph, "wf-1")
        categories = [r.category for r in report.recommendations]
        assert "Automated monitoring" in categories

    def test_non_eu_nodes_raise_compliance_issue(self):
        """Nodes without an EU-compliant factor are a critical issue."""
        report = RiskAssessmentEngine().assess([raw_node("a"), raw_node("b")], "wf-1")
        issues = {i.id: i for i in report.critical_issues}

        assert issues["compliance-issues"].affected_nodes == ["a", "b"]
        assert issues["compliance-issues"].affected_node_labels == ["Steel sheet", "Steel sheet"]

    def test_deep_tier_supplier_issue(self):
        """Suppliers beyond tier 2 raise a supply chain issue."""
        report = RiskAssessmentEngine().assess(
            [raw_node("a", supplierInfo={"tier": 3})], "wf-1",
        )
        assert "supply-chain-risk" in [i.id for i in report.critical_issues]

    def test_unknown_industry_uses_default_benchmark(self):
        """Unknown industries fall back to the default benchmark row."""
        report = RiskAssessmentEngine().assess([raw_node()], "wf-1", "aerospace")
        assert report.metadata.industry_type == "aerospace"

    def test_default_industry(self):
        """Without an industry the configured default is used."""
        report = RiskAssessmentEngine().assess([raw_node()], "wf-1")
        assert report.metadata.industry_type == "default"

    def test_async_entry_point(self):
        """The async entry point returns the same report."""
        engine = RiskAssessmentEngine()
        report = asyncio.run(engine.perform_comprehensive_assessment([raw_node()], "wf-1"))
        assert report == engine.assess([raw_node()], "wf-1")

    def test_assess_risk_wrapper(self):
        """The module-level wrapper builds an engine from configuration."""
        report = assess_risk([reliable_node()], "wf-2")

        assert report.workflow_id == "wf-2"
        assert report.node_risks[0].overall_risk == 82

    def test_deterministic(self, complete_graph):
        """Identical snapshots give identical hashes."""
        engine = RiskAssessmentEngine()
        first = engine.assess(complete_graph, "wf-1")
        second = engine.assess(complete_graph, "wf-1")
        assert first.provenance_hash == second.provenance_hash
