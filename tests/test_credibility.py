"""Tests for CredibilityAggregator.

Covers the weighted combination, component clamping, determinism and the
effect of adding evidence on the aggregate score.
"""

import math

import pytest

from carbonflow.config import CarbonFlowConfig
from carbonflow.exceptions import ConfigurationError
from carbonflow.graph import GraphModel
from carbonflow.models import LifecycleStage
from carbonflow.scoring import CredibilityAggregator, aggregate_credibility

from conftest import raw_node, verified_file


class TestCredibilityAggregator:
    """Tests for the weighted credibility score."""

    def test_default_weights_sum_to_one(self):
        """The default weight vector sums to 1.0."""
        report = aggregate_credibility([raw_node()])
        assert math.isclose(sum(report.weights.values()), 1.0)

    def test_single_raw_node(self):
        """0.10*20 + 0.30*100 + 0.10*0 + 0.35*100 + 0.15*0 = 67."""
        report = aggregate_credibility([raw_node()])

        assert report.component_scores == {
            "lifecycle_completeness": 20,
            "node_completeness": 100,
            "mass_balance": 0,
            "data_traceability": 100,
            "validation": 0,
        }
        assert report.credibility_score == 67
        assert report.model_completeness.score == 40

    def test_complete_graph_scores_100(self, complete_graph):
        """Every component at 100 gives 100."""
        report = aggregate_credibility(complete_graph)

        assert report.credibility_score == 100
        assert report.missing_lifecycle_stages == []

    def test_empty_graph_scores_zero(self):
        """An empty graph scores 0 and misses every stage."""
        report = aggregate_credibility([])

        assert report.credibility_score == 0
        assert report.missing_lifecycle_stages == list(LifecycleStage)

    def test_component_reports_included(self):
        """The four component reports are returned alongside the score."""
        report = aggregate_credibility([raw_node()])

        assert report.data_traceability.score == 100
        assert report.validation.score == 0
        assert report.mass_balance.score == 0
        assert report.model_completeness.lifecycle_completeness == 20

    def test_identical_snapshots_identical_reports(self, complete_graph):
        """Scoring the same snapshot twice gives identical reports."""
        first = aggregate_credibility(complete_graph)
        second = aggregate_credibility(complete_graph)

        assert first.model_dump() == second.model_dump()
        assert first.provenance_hash == second.provenance_hash

    def test_node_order_does_not_change_score(self, complete_graph):
        """The score does not depend on node order."""
        forward = aggregate_credibility(complete_graph)
        backward = aggregate_credibility(list(reversed(complete_graph)))
        assert forward.credibility_score == backward.credibility_score

    def test_adding_verified_evidence_never_lowers_score(self):
        """Verified evidence can only raise the score."""
        before = aggregate_credibility([raw_node(carbonFactor="")])
        after = aggregate_credibility([
            raw_node(carbonFactor="", evidenceFiles=[verified_file()]),
        ])

        assert after.credibility_score >= before.credibility_score
        assert after.validation.score == 100

    def test_oversized_integer_quantity_degrades_node(self):
        """A quantity beyond float range lowers that node's score instead of raising."""
        report = aggregate_credibility([raw_node(quantity=10**400)])

        assert report.model_completeness.node_completeness == 50
        assert 0 <= report.credibility_score <= 100

    def test_accepts_graph_model(self):
        """The aggregator accepts a prebuilt GraphModel."""
        graph = GraphModel.build([raw_node()])
        assert CredibilityAggregator().aggregate(graph).credibility_score == 67

    def test_custom_weights(self):
        """Weights come from configuration."""
        config = CarbonFlowConfig(
            credibility_lifecycle_weight=0.0,
            credibility_node_weight=0.0,
            credibility_mass_balance_weight=0.0,
            credibility_traceability_weight=1.0,
            credibility_validation_weight=0.0,
        )
        report = CredibilityAggregator(config).aggregate([raw_node()])
        assert report.credibility_score == 100

    def test_weights_not_summing_to_one_rejected(self):
        """A weight vector that does not sum to 1.0 is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            CredibilityAggregator(CarbonFlowConfig(credibility_validation_weight=0.25))
        assert exc_info.value.context["config_key"] == "credibility_weights"
