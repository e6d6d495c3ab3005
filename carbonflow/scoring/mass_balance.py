# -*- coding: utf-8 -*-
"""
Mass Balance Scorer

Input/output quantity conservation across product nodes. Product nodes
carrying a final product name are outputs; all other product nodes are
inputs. Over-accounting (output above input) is capped at 100 rather than
penalised further.

Scoring:
    ratio = total_output / total_input   (0 when no input)
    score = min(100, round(ratio * 100))

Example:
    >>> from carbonflow.scoring.mass_balance import compute_mass_balance
    >>> report = compute_mass_balance([
    ...     {"id": "in", "type": "product", "quantity": 100},
    ...     {"id": "out", "type": "product", "quantity": 80,
    ...      "finalProductName": "Widget"},
    ... ])
    >>> (report.ratio, report.score)
    (0.8, 80)

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List

from carbonflow.arithmetic import clamp_score, to_decimal
from carbonflow.graph import GraphInput, GraphModel
from carbonflow.models import QUANTITY, NodeType
from carbonflow.provenance import stamp
from carbonflow.scoring.models import IncompleteNode, MassBalanceReport

logger = logging.getLogger(__name__)

__all__ = [
    "MassBalanceScorer",
    "compute_mass_balance",
]


class MassBalanceScorer:
    """Scores input/output quantity conservation over product nodes."""

    def compute(self, graph: GraphInput) -> MassBalanceReport:
        """Compute the mass balance report for a graph snapshot.

        Nodes whose quantity is not a real positive quantity contribute 0
        to their side and are flagged.

        Args:
            graph: GraphModel or iterable of node records.

        Returns:
            MassBalanceReport with ratio, totals and flagged nodes.
        """
        graph = GraphModel.coerce(graph)

        total_input = Decimal(0)
        total_output = Decimal(0)
        incomplete: List[IncompleteNode] = []

        for node in graph:
            if node.node_type is not NodeType.PRODUCT:
                continue
            if not graph.has_quantity(node):
                incomplete.append(IncompleteNode(
                    id=node.id, label=node.display_label,
                    missing_fields=[QUANTITY.key],
                ))
                continue
            quantity = to_decimal(graph.quantity_of(node))
            if node.is_output:
                total_output += quantity
            else:
                total_input += quantity

        ratio = total_output / total_input if total_input > 0 else Decimal(0)
        score = clamp_score(ratio * 100)

        logger.debug(
            "Mass balance computed: input=%s output=%s ratio=%s score=%d",
            total_input, total_output, ratio, score,
        )
        return stamp(MassBalanceReport(
            score=score,
            ratio=float(ratio),
            total_input=float(total_input),
            total_output=float(total_output),
            incomplete_nodes=incomplete,
        ))


def compute_mass_balance(nodes: GraphInput) -> MassBalanceReport:
    """Convenience wrapper around :meth:`MassBalanceScorer.compute`."""
    return MassBalanceScorer().compute(nodes)
