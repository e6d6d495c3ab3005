"""Tests for CompletenessScorer."""

import pytest

from carbonflow.config import CarbonFlowConfig
from carbonflow.exceptions import ConfigurationError
from carbonflow.models import LifecycleStage
from carbonflow.scoring import CompletenessScorer, compute_completeness

from conftest import DIST, EOL, MFG, RAW, USE, raw_node


class TestCompletenessScorer:
    """Tests for stage coverage and stage-keyed field completeness."""

    def test_single_complete_raw_node(self):
        """One complete raw-material node covers one stage of five."""
        report = compute_completeness([raw_node()])

        assert report.node_completeness == 100
        assert report.lifecycle_completeness == 20
        assert report.score == 40
        assert (report.completed_fields, report.total_fields) == (2, 2)
        assert report.incomplete_nodes == []
        assert len(report.missing_lifecycle_stages) == 4

    def test_complete_graph_scores_100(self, complete_graph):
        """All five stages with every required field score 100."""
        report = compute_completeness(complete_graph)

        assert report.score == 100
        assert report.lifecycle_completeness == 100
        assert report.node_completeness == 100
        assert report.total_fields == 10
        assert report.missing_lifecycle_stages == []

    def test_empty_graph(self):
        """An empty graph scores zero and misses every stage."""
        report = compute_completeness([])

        assert report.score == 0
        assert report.node_completeness == 0
        assert report.missing_lifecycle_stages == list(LifecycleStage)

    @pytest.mark.parametrize("bad_value", ["0", "-5", "abc", "", None])
    def test_unusable_numeric_values_count_as_missing(self, bad_value):
        """Zero, negative, non-numeric and blank values do not fill a field."""
        report = compute_completeness([raw_node(carbonFactor=bad_value, quantity=bad_value)])

        assert report.node_completeness == 0
        assert report.incomplete_nodes[0].missing_fields == ["carbonFactor", "quantity"]
        assert report.score == 15

    def test_oversized_integer_counts_as_missing(self):
        """An integer too large for a float is an unusable quantity, not a crash."""
        report = compute_completeness([raw_node(quantity=10**400)])

        assert report.node_completeness == 50
        assert report.incomplete_nodes[0].missing_fields == ["quantity"]

    @pytest.mark.parametrize("stage", [None, RAW, MFG, DIST, USE, EOL])
    def test_adding_quantity_never_lowers_node_completeness(self, stage):
        """Filling an absent quantity keeps node completeness equal or higher."""
        before = raw_node(lifecycleStage=stage)
        del before["quantity"]
        after = dict(before, quantity="10")

        without = compute_completeness([before]).node_completeness
        with_quantity = compute_completeness([after]).node_completeness
        assert with_quantity >= without

    def test_adding_quantity_raises_raw_material_completeness(self):
        """A raw-material node gains the quantity field it was missing."""
        before = raw_node()
        del before["quantity"]

        assert compute_completeness([before]).node_completeness == 50
        assert compute_completeness([raw_node()]).node_completeness == 100

    def test_half_complete_node_rounds_half_up(self):
        """25% of 50 plus 75% of 20 is 27.5, which rounds to 28."""
        report = compute_completeness([raw_node(quantity="")])

        assert report.node_completeness == 50
        assert report.score == 28

    def test_fields_keyed_by_stage_not_type(self):
        """A product-typed node in the distribution stage needs distribution fields."""
        report = compute_completeness([
            {"id": "d", "type": "product", "lifecycleStage": DIST, "carbonFactor": "1"},
        ])

        assert report.total_fields == 5
        assert report.completed_fields == 1
        assert report.incomplete_nodes[0].missing_fields == [
            "distributionStartPoint",
            "distributionEndPoint",
            "transportationMode",
            "transportationDistance",
        ]

    def test_manufacturing_fields(self):
        """Manufacturing nodes need factor, energy consumption and energy type."""
        report = compute_completeness([
            {"id": "m", "lifecycleStage": MFG, "carbonFactor": "0.5", "energyConsumption": "0"},
        ])

        assert report.incomplete_nodes[0].missing_fields == ["energyConsumption", "energyType"]

    def test_usage_and_end_of_life_have_no_required_fields(self):
        """Usage and end-of-life nodes add coverage but no fields."""
        report = compute_completeness([
            {"id": "u", "lifecycleStage": USE},
            {"id": "e", "lifecycleStage": EOL},
        ])

        assert report.total_fields == 0
        assert report.lifecycle_completeness == 40
        assert report.incomplete_nodes == []

    def test_unstaged_nodes_are_not_penalised(self):
        """Nodes without a recognised stage have no required fields."""
        report = compute_completeness([raw_node(), {"id": "x", "type": "product"}])

        assert report.total_fields == 2
        assert report.incomplete_nodes == []

    def test_stage_derivation_from_config(self):
        """With derivation enabled, the node type fills a missing stage."""
        scorer = CompletenessScorer(CarbonFlowConfig(derive_stage_from_type=True))
        report = scorer.compute([{"id": "p", "type": "product", "carbonFactor": "1", "quantity": "1"}])

        assert report.lifecycle_completeness == 20
        assert report.total_fields == 2

    def test_invalid_weights_rejected(self):
        """Completeness weights must sum to 1.0."""
        with pytest.raises(ConfigurationError):
            CompletenessScorer(CarbonFlowConfig(completeness_node_weight=0.5))

    def test_report_is_stamped(self):
        """Every report carries a content hash."""
        report = compute_completeness([raw_node()])
        assert len(report.provenance_hash) == 64
