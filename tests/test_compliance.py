"""Tests for the multi-standard ComplianceChecker.

Covers:
- Level classification with inclusive cut points
- Per-standard weighted scoring, summaries and custom weights
- Configuration validation (unknown standards, empty lists, thresholds)
- Cross-standard aggregation, common issues and action items
"""

import pytest

from carbonflow.compliance import (
    ComplianceChecker,
    ComplianceLevel,
    ComplianceThresholds,
    RequirementSeverity,
    StandardId,
    classify_level,
    create_compliance_configuration,
    get_catalog,
    registered_standards,
)
from carbonflow.compliance.aliases import STANDARD_DISPLAY_NAMES
from carbonflow.config import CarbonFlowConfig
from carbonflow.exceptions import ConfigurationError

from conftest import REFERENCE_YEAR, raw_node


def ghg_only(**overrides):
    return create_compliance_configuration(["GHG_PROTOCOL"], **overrides)


def without_temporal(nodes):
    for node in nodes:
        node.pop("emissionFactorTemporalRepresentativeness", None)
    return nodes


def requirement(detail, requirement_id):
    return next(r for r in detail.requirement_results if r.requirement_id == requirement_id)


# ==============================================================================
# Level classification
# ==============================================================================

class TestClassifyLevel:
    """Tests for classify_level."""

    @pytest.mark.parametrize("score,level", [
        (100, ComplianceLevel.FULL),
        (90, ComplianceLevel.FULL),
        (89, ComplianceLevel.SUBSTANTIAL),
        (75, ComplianceLevel.SUBSTANTIAL),
        (74, ComplianceLevel.PARTIAL),
        (60, ComplianceLevel.PARTIAL),
        (59, ComplianceLevel.NON),
        (0, ComplianceLevel.NON),
    ])
    def test_default_cut_points(self, score, level):
        """A score equal to a cut point reaches that level."""
        assert classify_level(score, ComplianceThresholds()) is level


# ==============================================================================
# Single-standard scoring
# ==============================================================================

class TestStandardScoring:
    """Tests for one standard's weighted evaluation."""

    def test_complete_graph_meets_ghg_protocol(self, complete_graph):
        """Every GHG Protocol requirement passes on a complete graph."""
        report = ComplianceChecker().check(complete_graph, ghg_only())
        detail = report.standard_reports["GHG_PROTOCOL"]

        assert detail.overall_score == 100
        assert detail.level is ComplianceLevel.FULL
        assert detail.mandatory_compliance is True
        assert detail.improvements == []
        assert detail.node_issues == []

    def test_missing_base_year(self, complete_graph):
        """Dropping the reference year fails the 0.15-weighted base-year requirement."""
        report = ComplianceChecker().check(without_temporal(complete_graph), ghg_only())
        detail = report.standard_reports["GHG_PROTOCOL"]

        assert detail.overall_score == 85
        assert detail.level is ComplianceLevel.SUBSTANTIAL
        assert detail.mandatory_compliance is False

        base_year = requirement(detail, "ghg_base_year")
        assert base_year.score == 0
        assert base_year.compliant is False
        assert base_year.failing_nodes == 6

        assert detail.summary.total_requirements == 5
        assert detail.summary.compliant_requirements == 4
        assert detail.summary.major_issues == 1
        assert detail.summary.critical_issues == 0

        assert [i.requirement_id for i in detail.improvements] == ["ghg_base_year"]
        assert len(detail.node_issues) == 6
        assert detail.node_issues[0].issues[0].description == (
            "Temporal representativeness not declared"
        )

    def test_custom_thresholds_are_inclusive(self, complete_graph):
        """An acceptable threshold of 85 makes a score of 85 full compliance."""
        configuration = ghg_only(
            thresholds={"critical": 60, "warning": 75, "acceptable": 85},
        )
        report = ComplianceChecker().check(without_temporal(complete_graph), configuration)
        assert report.standard_reports["GHG_PROTOCOL"].level is ComplianceLevel.FULL

    def test_custom_weights_override_catalog(self, complete_graph):
        """A zero weight removes the requirement from the overall score."""
        configuration = ghg_only(customWeights={"ghg_base_year": 0})
        report = ComplianceChecker().check(without_temporal(complete_graph), configuration)
        detail = report.standard_reports["GHG_PROTOCOL"]

        assert detail.overall_score == 100
        assert requirement(detail, "ghg_base_year").weight == 0.0

    def test_category_scores(self, complete_graph):
        """Requirements are grouped into categories in catalog order."""
        report = ComplianceChecker().check(without_temporal(complete_graph), ghg_only())
        categories = report.standard_reports["GHG_PROTOCOL"].category_scores

        assert [c.category for c in categories] == ["Emission scopes", "Inventory management"]
        assert categories[0].score == 100
        assert categories[1].requirements == 2

    def test_rule_without_applicable_nodes_scores_zero(self):
        """A stage-scoped requirement with no nodes in that stage scores 0."""
        detail = ComplianceChecker().evaluate("GHG_PROTOCOL", [raw_node()])

        scope1 = requirement(detail, "ghg_scope1_identification")
        assert scope1.score == 0
        assert scope1.applicable_nodes == 0

    def test_stage_data_uses_type_derived_stage(self):
        """With stage derivation on, a type-staged node is judged on its stage fields."""
        checker = ComplianceChecker(
            CarbonFlowConfig(reference_year=REFERENCE_YEAR, derive_stage_from_type=True),
        )
        detail = checker.evaluate("GHG_PROTOCOL", [{
            "id": "m", "type": "manufacturing", "label": "Stamping",
            "carbonFactor": "0.58", "energyConsumption": "500", "energyType": "electricity",
        }])

        scope1 = requirement(detail, "ghg_scope1_identification")
        assert scope1.applicable_nodes == 1
        assert scope1.failing_nodes == 0
        assert scope1.score == 100

    def test_iso_temporal_window(self):
        """ISO 14067 accepts emission factors up to 10 years old."""
        checker = ComplianceChecker()
        old = checker.evaluate(
            "ISO_14067",
            [raw_node(emissionFactorTemporalRepresentativeness="2010")],
        )
        recent = checker.evaluate(
            "ISO_14067",
            [raw_node(emissionFactorTemporalRepresentativeness="2016")],
        )

        assert requirement(old, "iso14067_temporal_representativeness").score == 0
        assert requirement(recent, "iso14067_temporal_representativeness").score == 100

    def test_empty_graph_is_non_compliant(self):
        """An empty graph scores 0 under every standard."""
        report = ComplianceChecker().check([], ghg_only())
        detail = report.standard_reports["GHG_PROTOCOL"]

        assert detail.overall_score == 0
        assert detail.level is ComplianceLevel.NON


# ==============================================================================
# Configuration
# ==============================================================================

class TestComplianceConfiguration:
    """Tests for configuration building and validation."""

    def test_default_configuration(self):
        """Defaults come from the global configuration."""
        configuration = ComplianceChecker().default_configuration()

        assert configuration.enabled_standards == ["ISO_14067", "GHG_PROTOCOL"]
        assert configuration.thresholds.acceptable == 90
        assert configuration.include_recommendations is True

    def test_duplicate_standards_collapse(self):
        """A standard listed twice is enabled once."""
        configuration = create_compliance_configuration(["CBAM", StandardId.CBAM])
        assert configuration.enabled_standards == ["CBAM"]

    @pytest.mark.parametrize("standard", registered_standards())
    def test_catalog_ids_unique_and_weights_positive(self, standard):
        """Every registered catalog has distinct requirement ids and positive weights."""
        catalog = get_catalog(standard)
        ids = [requirement.id for requirement in catalog]

        assert len(ids) == len(set(ids))
        assert all(requirement.weight > 0 for requirement in catalog)

    def test_every_standard_has_display_name(self):
        """Display names cover every standard id."""
        assert set(STANDARD_DISPLAY_NAMES) == set(StandardId)

    def test_unknown_standard_rejected(self):
        """An unknown standard id is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            create_compliance_configuration(["ISO_9999"])
        assert exc_info.value.context["config_key"] == "enabled_standards"

    def test_uncatalogued_standard_rejected(self):
        """A known standard without a catalog is a configuration error."""
        with pytest.raises(ConfigurationError, match="TCFD"):
            create_compliance_configuration(["TCFD"])

    def test_empty_standard_list_rejected(self):
        """At least one standard must be enabled."""
        with pytest.raises(ConfigurationError):
            create_compliance_configuration([])

    def test_out_of_order_thresholds_rejected(self):
        """Thresholds must ascend strictly."""
        with pytest.raises(ConfigurationError):
            create_compliance_configuration(
                ["GHG_PROTOCOL"],
                thresholds={"critical": 80, "warning": 75, "acceptable": 90},
            )

    def test_unknown_custom_weight_rejected(self, complete_graph):
        """Custom weights must name requirements of the enabled standards."""
        configuration = ghg_only(customWeights={"iso14067_verification": 2.0})
        with pytest.raises(ConfigurationError, match="iso14067_verification"):
            ComplianceChecker().check(complete_graph, configuration)

    def test_registered_standards(self):
        """Six standards ship with a requirement catalog."""
        assert registered_standards() == [
            StandardId.ISO_14067,
            StandardId.GHG_PROTOCOL,
            StandardId.CBAM,
            StandardId.CHINA_ETS,
            StandardId.GB_T_32150,
            StandardId.EU_BATTERY_REGULATION,
        ]
        assert len(get_catalog("ISO_14067")) == 12
        assert len(get_catalog(StandardId.EU_BATTERY_REGULATION)) == 9


# ==============================================================================
# Aggregation
# ==============================================================================

class TestAggregation:
    """Tests for cross-standard aggregation."""

    def test_best_and_worst_standard(self, complete_graph):
        """GHG Protocol outperforms ISO 14067 on the complete graph."""
        report = ComplianceChecker().check(complete_graph)
        aggregate = report.aggregate_score

        assert report.standards == [StandardId.ISO_14067, StandardId.GHG_PROTOCOL]
        assert aggregate.best_performing_standard is StandardId.GHG_PROTOCOL
        assert aggregate.worst_performing_standard is StandardId.ISO_14067
        iso = report.standard_reports["ISO_14067"].overall_score
        assert iso < 100

    def test_common_issue_across_standards(self):
        """Missing evidence is reported once with the highest severity."""
        report = ComplianceChecker().check([raw_node()])
        common = {c.description: c for c in report.common_issues}

        issue = common["No supporting evidence attached"]
        assert issue.standards == [StandardId.ISO_14067, StandardId.GHG_PROTOCOL]
        assert issue.severity is RequirementSeverity.CRITICAL
        assert issue.affected_nodes == ["raw"]
        assert issue.occurrences == 2

    def test_action_items_ranked(self):
        """At most five action items, ranked by estimated impact."""
        report = ComplianceChecker().check([raw_node()])
        items = report.action_items

        assert 0 < len(items) <= 5
        assert [i.priority for i in items] == list(range(1, len(items) + 1))
        impacts = [i.estimated_impact for i in items]
        assert impacts == sorted(impacts, reverse=True)
        assert items[0].estimated_impact == 15

    def test_node_level_disabled(self):
        """Without node-level reporting there are no node or common issues."""
        configuration = create_compliance_configuration(includeNodeLevel=False)
        report = ComplianceChecker().check([raw_node()], configuration)

        assert all(d.node_issues == [] for d in report.standard_reports.values())
        assert report.common_issues == []

    def test_recommendations_disabled(self):
        """Without recommendations there are no improvements or action items."""
        configuration = create_compliance_configuration(include_recommendations=False)
        report = ComplianceChecker().check([raw_node()], configuration)

        assert report.action_items == []

    def test_report_is_deterministic(self, complete_graph):
        """Identical inputs give identical reports and hashes."""
        checker = ComplianceChecker()
        first = checker.check(complete_graph, workflow_id="wf-1", report_date="2024-06-30")
        second = checker.check(complete_graph, workflow_id="wf-1", report_date="2024-06-30")

        assert first.provenance_hash == second.provenance_hash
        assert first.report_date == "2024-06-30"
        assert first.workflow_id == "wf-1"
