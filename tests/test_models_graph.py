"""Tests for the lifecycle graph models and the GraphModel view.

Covers:
- The shared positive-quantity predicate
- Node type and lifecycle stage parsing, including aliases
- camelCase host payloads, lenient flags and evidence status
- GraphModel construction defects (missing id, duplicate id, bad payload)
- Stage derivation and stage/type mismatches
"""

import pytest

from carbonflow.exceptions import GraphInputError
from carbonflow.graph import GraphModel, extract_year
from carbonflow.models import (
    EvidenceStatus,
    LifecycleStage,
    Node,
    NodeType,
    STAGE_REQUIRED_FIELDS,
    TYPE_STAGE,
    parse_positive,
)

from conftest import MFG, RAW, raw_node


# ==============================================================================
# Value predicates
# ==============================================================================

class TestParsePositive:
    """Tests for parse_positive."""

    @pytest.mark.parametrize("value,expected", [
        (10, 10.0),
        ("10", 10.0),
        (" 2.5 ", 2.5),
        (0.001, 0.001),
    ])
    def test_accepts_positive_numbers(self, value, expected):
        """Numbers and numeric strings above zero are accepted."""
        assert parse_positive(value) == expected

    @pytest.mark.parametrize("value", [
        None, 0, "0", "-5", -1.0, "abc", "", "   ", True, float("nan"), float("inf"), [],
        10**400,
    ])
    def test_rejects_non_positive_values(self, value):
        """Zero, negatives, blanks, text, booleans and non-finite values are absent."""
        assert parse_positive(value) is None

    def test_extract_year(self):
        """The first four-digit run is the year."""
        assert extract_year("Ecoinvent 3.9 (2022)") == 2022
        assert extract_year("recent") is None
        assert extract_year(None) is None


# ==============================================================================
# Enumerations
# ==============================================================================

class TestEnumerations:
    """Tests for NodeType and LifecycleStage parsing."""

    def test_node_type_parse(self):
        """Node types parse case- and separator-insensitively."""
        assert NodeType.parse("product") is NodeType.PRODUCT
        assert NodeType.parse("final_product") is NodeType.FINAL_PRODUCT
        assert NodeType.parse("finalProduct") is NodeType.FINAL_PRODUCT
        assert NodeType.parse("warehouse") is None
        assert NodeType.parse(None) is None

    def test_stage_parse_aliases(self):
        """Canonical names and aliases map to the same stage."""
        assert LifecycleStage.parse(RAW) is LifecycleStage.RAW_MATERIAL
        assert LifecycleStage.parse("生产制造阶段") is LifecycleStage.MANUFACTURING
        assert LifecycleStage.parse("Manufacturing") is LifecycleStage.MANUFACTURING
        assert LifecycleStage.parse("end of life") is LifecycleStage.END_OF_LIFE
        assert LifecycleStage.parse("somewhere") is None

    def test_canonical_stage_order(self):
        """Stages iterate in lifecycle order."""
        assert [s.value for s in LifecycleStage] == [
            "原材料获取阶段", "生产阶段", "分销运输阶段", "使用阶段", "寿命终止阶段",
        ]

    def test_stage_tables_cover_every_member(self):
        """Every stage has a required-field entry and every type an implied stage."""
        assert set(STAGE_REQUIRED_FIELDS) == set(LifecycleStage)
        assert set(TYPE_STAGE) == set(NodeType)


# ==============================================================================
# Node model
# ==============================================================================

class TestNode:
    """Tests for the Node host model."""

    def test_camel_case_payload(self):
        """Host camelCase keys populate snake_case attributes."""
        node = Node.model_validate(raw_node(activityUnit="kg"))

        assert node.id == "raw"
        assert node.lifecycle_stage == RAW
        assert node.carbon_factor == "1.5"
        assert node.activity_unit == "kg"
        assert node.stage is LifecycleStage.RAW_MATERIAL
        assert node.node_type is NodeType.PRODUCT

    def test_numeric_id_becomes_string(self):
        """Numeric ids are kept as strings."""
        node = Node.model_validate({"id": 7})
        assert node.id == "7"

    def test_unknown_keys_preserved(self):
        """Keys the model does not know are kept as extras."""
        node = Node.model_validate({"id": "n1", "customKey": "x"})
        assert node.model_extra["customKey"] == "x"

    def test_display_label_falls_back_to_id(self):
        """Unlabelled nodes are reported by id."""
        assert Node(id="n1").display_label == "Node n1"
        assert Node(id="n1", label="Steel").display_label == "Steel"

    def test_is_output(self):
        """A non-blank final product name marks an output."""
        assert Node.model_validate({"id": "o", "finalProductName": "Widget"}).is_output
        assert not Node.model_validate({"id": "o", "finalProductName": "  "}).is_output
        assert not Node(id="o").is_output

    def test_evidence_status_normalised(self):
        """Evidence status is case-insensitive; unknown values read as pending."""
        node = Node.model_validate({
            "id": "n1",
            "evidenceFiles": [
                {"id": "a", "status": "VERIFIED"},
                {"id": "b", "status": "archived"},
            ],
        })

        assert node.evidence_files[0].status is EvidenceStatus.VERIFIED
        assert node.evidence_files[1].status is EvidenceStatus.PENDING
        assert node.has_evidence
        assert node.has_verified_evidence

    def test_lenient_flags(self):
        """Boolean flags accept host strings."""
        assert Node.model_validate({"id": "n", "euCompliantFactor": "是"}).eu_compliant_factor is True
        assert Node.model_validate({"id": "n", "euCompliantFactor": "no"}).eu_compliant_factor is False
        assert Node.model_validate({"id": "n", "euCompliantFactor": "maybe"}).eu_compliant_factor is None

    def test_supplier_tier_lenient(self):
        """Supplier tiers accept numeric strings and drop junk."""
        node = Node.model_validate({"id": "n", "supplierInfo": {"tier": "3", "isDirectSupplier": "true"}})
        assert node.supplier_info.tier == 3
        assert node.supplier_info.is_direct_supplier is True

        node = Node.model_validate({"id": "n", "supplierInfo": {"tier": "deep"}})
        assert node.supplier_info.tier is None


# ==============================================================================
# GraphModel construction
# ==============================================================================

class TestGraphBuild:
    """Tests for GraphModel.build."""

    def test_build_valid_nodes(self):
        """Valid records become nodes in host order."""
        graph = GraphModel.build([raw_node("a"), raw_node("b")])

        assert len(graph) == 2
        assert [n.id for n in graph] == ["a", "b"]
        assert graph.defects == ()
        assert graph.get("b").id == "b"
        assert graph.get("zzz") is None

    def test_defective_records_are_excluded(self):
        """Missing ids, duplicates and unusable payloads are listed, not raised."""
        graph = GraphModel.build([
            raw_node("a"),
            raw_node("a"),
            {"label": "No id"},
            "not a record",
            {"id": "b", "evidenceFiles": "not a list"},
        ])

        assert [n.id for n in graph] == ["a"]
        assert [(d.index, d.reason) for d in graph.defects] == [
            (1, "duplicate_id"),
            (2, "missing_id"),
            (3, "invalid_payload"),
            (4, "invalid_payload"),
        ]
        assert graph.defects[3].node_id == "b"

    def test_none_is_empty_graph(self):
        """A missing node list is an empty graph."""
        assert len(GraphModel.build(None)) == 0

    @pytest.mark.parametrize("payload", ["nodes", {"id": "a"}, b"bytes", 5, 3.2, True, object()])
    def test_non_sequence_payload_raises(self, payload):
        """Only a payload that is not a sequence of records raises."""
        with pytest.raises(GraphInputError):
            GraphModel.build(payload)

    @pytest.mark.parametrize("edges", [5, "edges", {"source": "a", "target": "b"}])
    def test_non_sequence_edges_raise(self, edges):
        """An edge payload that is not a sequence raises the same error."""
        with pytest.raises(GraphInputError):
            GraphModel.build([raw_node("a")], edges)

    def test_oversized_integers_degrade_the_node(self):
        """Integers beyond float range read as absent values."""
        graph = GraphModel.build([
            raw_node("a", quantity=10**400),
            raw_node("b", evidenceFiles=[{"status": "verified", "size": 10**400}]),
        ])

        assert graph.defects == ()
        assert graph.has_quantity(graph.get("a")) is False
        assert graph.get("b").evidence_files[0].size is None
        assert graph.get("b").has_verified_evidence

    def test_nested_data_is_flattened(self):
        """Editor records that nest fields under "data" are accepted."""
        graph = GraphModel.build([
            {"id": "a", "data": {"label": "Steel", "quantity": 5}},
        ])

        node = graph.get("a")
        assert node.label == "Steel"
        assert graph.quantity_of(node) == 5.0

    def test_malformed_edges_dropped(self):
        """Edges missing an endpoint are dropped."""
        graph = GraphModel.build(
            [raw_node("a"), raw_node("b")],
            [{"source": "a", "target": "b"}, {"source": "a"}],
        )
        assert len(graph.edges) == 1

    def test_coerce_passes_graph_through(self):
        """coerce returns an existing GraphModel unchanged."""
        graph = GraphModel.build([raw_node()])
        assert GraphModel.coerce(graph) is graph


# ==============================================================================
# Stage handling
# ==============================================================================

class TestStages:
    """Tests for stage lookup, derivation and mismatches."""

    def test_missing_stages_in_canonical_order(self):
        """Missing stages are listed in lifecycle order."""
        graph = GraphModel.build([raw_node()])

        assert graph.present_stages() == [LifecycleStage.RAW_MATERIAL]
        assert graph.missing_lifecycle_stages() == [
            LifecycleStage.MANUFACTURING,
            LifecycleStage.DISTRIBUTION,
            LifecycleStage.USAGE,
            LifecycleStage.END_OF_LIFE,
        ]

    def test_stage_not_derived_by_default(self):
        """Without derivation, a type alone does not place a node in a stage."""
        graph = GraphModel.build([{"id": "m", "type": "manufacturing"}])
        assert graph.stage_of(graph.get("m")) is None

    def test_stage_derived_from_type_when_enabled(self):
        """With derivation, an undeclared stage follows the node type."""
        graph = GraphModel.build(
            [{"id": "m", "type": "manufacturing"}], derive_stage_from_type=True,
        )
        assert graph.stage_of(graph.get("m")) is LifecycleStage.MANUFACTURING

    def test_declared_stage_wins(self):
        """A declared stage is never overridden by the node type."""
        graph = GraphModel.build(
            [{"id": "p", "type": "product", "lifecycleStage": MFG}],
            derive_stage_from_type=True,
        )
        assert graph.stage_of(graph.get("p")) is LifecycleStage.MANUFACTURING

    def test_stage_type_mismatches(self):
        """Nodes whose declared stage disagrees with their type are reported."""
        graph = GraphModel.build([
            {"id": "p", "type": "product", "lifecycleStage": MFG},
            {"id": "ok", "type": "product", "lifecycleStage": RAW},
            {"id": "f", "type": "finalProduct"},
        ])

        mismatches = graph.stage_type_mismatches()
        assert [m.node_id for m in mismatches] == ["p"]
        assert mismatches[0].implied_stage == RAW
        assert mismatches[0].declared_stage == MFG
