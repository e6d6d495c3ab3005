# -*- coding: utf-8 -*-
"""
Footprint Calculator

Per-node emissions and per-stage totals for a lifecycle graph:

    emissions = quantity x carbon_factor x unit_conversion

The unit conversion is taken from the node when it is a real positive
number, otherwise derived from the activity unit and the emission factor
unit, otherwise 1. Final-product nodes aggregate upstream nodes and are
not counted again.

Zero-Hallucination Guarantees:
    - Decimal arithmetic throughout, ROUND_HALF_UP to 6 decimal places
    - Nodes without a positive quantity or factor contribute nothing and
      are listed with their missing fields
    - SHA-256 content hash on every report

Example:
    >>> from carbonflow.footprint import calculate_footprint
    >>> report = calculate_footprint([
    ...     {"id": "n1", "lifecycleStage": "原材料获取阶段",
    ...      "quantity": "10", "carbonFactor": "1.5"},
    ... ])
    >>> report.total_emissions
    15.0

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from carbonflow.arithmetic import to_decimal
from carbonflow.config import CarbonFlowConfig, get_config
from carbonflow.graph import GraphInput, GraphModel
from carbonflow.models import CARBON_FACTOR, QUANTITY, LifecycleStage, Node, NodeType
from carbonflow.provenance import stamp
from carbonflow.scoring.models import IncompleteNode
from carbonflow.units import conversion_factor

logger = logging.getLogger(__name__)

__all__ = [
    "ConversionSource",
    "NodeEmission",
    "FootprintReport",
    "FootprintCalculator",
    "calculate_footprint",
]

EMISSION_PLACES = Decimal("0.000001")
_QUANTIZE_CONTEXT = Context(prec=1000)
UNASSIGNED_STAGE = "unassigned"
FOOTPRINT_HINT = "Provide a positive quantity and emission factor"


class ConversionSource:
    """Where a node's unit conversion came from."""

    DECLARED = "declared"
    DERIVED = "derived"
    DEFAULT = "default"


# ---------------------------------------------------------------------------
# Report models
# ---------------------------------------------------------------------------


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class NodeEmission(_Frozen):
    """Emissions of one node, in kg CO2e."""

    node_id: str
    node_label: str
    stage: Optional[LifecycleStage] = None
    quantity: float
    carbon_factor: float
    unit_conversion: float
    conversion_source: str
    emissions: float


class FootprintReport(_Frozen):
    """Footprint totals of a graph snapshot.

    Attributes:
        total_emissions: Sum over every contributing node.
        stage_totals: Emissions per canonical stage, in canonical order;
            nodes with no recognised stage are summed under ``unassigned``.
        node_emissions: Per-node results in graph order.
        missing_data_nodes: Nodes lacking a positive quantity or factor.
        contributing_nodes: Number of nodes in ``node_emissions``.
    """

    total_emissions: float = 0.0
    stage_totals: Dict[str, float] = Field(default_factory=dict)
    node_emissions: List[NodeEmission] = Field(default_factory=list)
    missing_data_nodes: List[IncompleteNode] = Field(default_factory=list)
    contributing_nodes: int = Field(default=0, ge=0)
    provenance_hash: str = ""


def _rounded(value: Decimal) -> float:
    # Wide enough for the product of three float-range operands.
    return float(value.quantize(
        EMISSION_PLACES, rounding=ROUND_HALF_UP, context=_QUANTIZE_CONTEXT,
    ))


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------


class FootprintCalculator:
    """Computes per-node and per-stage emissions."""

    def __init__(self, config: Optional[CarbonFlowConfig] = None) -> None:
        cfg = config or get_config()
        self._derive_stage = cfg.derive_stage_from_type

    @staticmethod
    def unit_conversion(node: Node) -> Tuple[Decimal, str]:
        """Return the node's unit conversion and where it came from."""
        declared = node.positive("unit_conversion")
        if declared is not None:
            return to_decimal(declared), ConversionSource.DECLARED
        derived = conversion_factor(node.activity_unit, node.carbon_factor_unit)
        if derived is not None and derived > 0:
            return derived, ConversionSource.DERIVED
        return Decimal(1), ConversionSource.DEFAULT

    def calculate(self, graph: GraphInput) -> FootprintReport:
        """Compute the footprint report for a graph snapshot.

        Args:
            graph: GraphModel or iterable of node records.

        Returns:
            FootprintReport.
        """
        graph = GraphModel.coerce(graph, self._derive_stage)

        stage_totals: Dict[str, Decimal] = {s.value: Decimal(0) for s in LifecycleStage}
        unassigned = Decimal(0)
        emissions: List[NodeEmission] = []
        missing: List[IncompleteNode] = []

        for node in graph:
            if node.node_type is NodeType.FINAL_PRODUCT:
                continue
            absent = [f.key for f in (QUANTITY, CARBON_FACTOR) if not f.is_present(node)]
            if absent:
                missing.append(IncompleteNode(
                    id=node.id,
                    label=node.display_label,
                    missing_fields=absent,
                    hint=FOOTPRINT_HINT,
                ))
                continue

            quantity = to_decimal(node.positive("quantity"))
            factor = to_decimal(node.positive("carbon_factor"))
            conversion, source = self.unit_conversion(node)
            value = quantity * factor * conversion

            stage = graph.stage_of(node)
            if stage is None:
                unassigned += value
            else:
                stage_totals[stage.value] += value

            emissions.append(NodeEmission(
                node_id=node.id,
                node_label=node.display_label,
                stage=stage,
                quantity=float(quantity),
                carbon_factor=float(factor),
                unit_conversion=_rounded(conversion),
                conversion_source=source,
                emissions=_rounded(value),
            ))

        total = sum(stage_totals.values(), Decimal(0)) + unassigned
        totals = {name: _rounded(value) for name, value in stage_totals.items()}
        totals[UNASSIGNED_STAGE] = _rounded(unassigned)

        logger.debug(
            "Footprint calculated: nodes=%d contributing=%d missing=%d total=%s",
            len(graph), len(emissions), len(missing), total,
        )
        return stamp(FootprintReport(
            total_emissions=_rounded(total),
            stage_totals=totals,
            node_emissions=emissions,
            missing_data_nodes=missing,
            contributing_nodes=len(emissions),
        ))


def calculate_footprint(
    nodes: GraphInput,
    config: Optional[CarbonFlowConfig] = None,
) -> FootprintReport:
    """Convenience wrapper around :meth:`FootprintCalculator.calculate`."""
    return FootprintCalculator(config).calculate(nodes)
