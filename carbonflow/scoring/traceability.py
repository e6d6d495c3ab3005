# -*- coding: utf-8 -*-
"""
Traceability Scorer

A node is traceable when it has at least one evidence file or a real
positive carbon factor, the latter standing in for a database-matched
factor source.

Example:
    >>> from carbonflow.scoring.traceability import compute_traceability
    >>> report = compute_traceability([{"id": "n1", "carbonFactor": "0"}])
    >>> (report.score, report.incomplete_nodes[0].hint)
    (0, 'Upload evidence or configure a database-matched factor')

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging

from carbonflow.arithmetic import percentage
from carbonflow.graph import GraphInput, GraphModel
from carbonflow.models import CARBON_FACTOR, Node
from carbonflow.provenance import stamp
from carbonflow.scoring.models import IncompleteNode, TraceabilityReport

logger = logging.getLogger(__name__)

__all__ = [
    "TRACEABILITY_HINT",
    "TraceabilityScorer",
    "compute_traceability",
    "is_traceable",
]

TRACEABILITY_HINT = "Upload evidence or configure a database-matched factor"


def is_traceable(node: Node) -> bool:
    """True when the node has evidence files or a positive carbon factor."""
    return bool(node.evidence_files) or CARBON_FACTOR.is_present(node)


class TraceabilityScorer:
    """Scores evidence-file or database-source coverage."""

    def compute(self, graph: GraphInput) -> TraceabilityReport:
        """Compute the traceability report for a graph snapshot.

        Args:
            graph: GraphModel or iterable of node records.

        Returns:
            TraceabilityReport where score equals coverage.
        """
        graph = GraphModel.coerce(graph)
        untraceable = [n for n in graph if not is_traceable(n)]
        traceable = len(graph) - len(untraceable)
        coverage = percentage(traceable, len(graph))

        logger.debug(
            "Traceability computed: %d/%d traceable, coverage=%d",
            traceable, len(graph), coverage,
        )
        return stamp(TraceabilityReport(
            score=coverage,
            coverage=coverage,
            traceable_nodes=traceable,
            total_nodes=len(graph),
            incomplete_nodes=[
                IncompleteNode(
                    id=n.id,
                    label=n.display_label,
                    missing_fields=["evidenceFiles", CARBON_FACTOR.key],
                    hint=TRACEABILITY_HINT,
                )
                for n in untraceable
            ],
        ))


def compute_traceability(nodes: GraphInput) -> TraceabilityReport:
    """Convenience wrapper around :meth:`TraceabilityScorer.compute`."""
    return TraceabilityScorer().compute(nodes)
