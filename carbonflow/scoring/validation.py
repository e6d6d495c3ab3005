# -*- coding: utf-8 -*-
"""
Validation Scorer

Share of nodes backed by at least one evidence file whose status is
``verified``. Pending and rejected files do not count.

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging

from carbonflow.arithmetic import percentage
from carbonflow.graph import GraphInput, GraphModel
from carbonflow.provenance import stamp
from carbonflow.scoring.models import IncompleteNode, ValidationReport

logger = logging.getLogger(__name__)

__all__ = [
    "VALIDATION_HINT",
    "ValidationScorer",
    "compute_validation",
]

VALIDATION_HINT = "Upload a verified evidence file"


class ValidationScorer:
    """Scores verified-evidence coverage."""

    def compute(self, graph: GraphInput) -> ValidationReport:
        """Compute the validation report for a graph snapshot.

        Args:
            graph: GraphModel or iterable of node records.

        Returns:
            ValidationReport where score equals consistency.
        """
        graph = GraphModel.coerce(graph)
        unverified = [n for n in graph if not n.has_verified_evidence]
        validated = len(graph) - len(unverified)
        consistency = percentage(validated, len(graph))

        logger.debug(
            "Validation computed: %d/%d verified, consistency=%d",
            validated, len(graph), consistency,
        )
        return stamp(ValidationReport(
            score=consistency,
            consistency=consistency,
            validated_nodes=validated,
            total_nodes=len(graph),
            incomplete_nodes=[
                IncompleteNode(
                    id=n.id,
                    label=n.display_label,
                    missing_fields=["evidenceFiles"],
                    hint=VALIDATION_HINT,
                )
                for n in unverified
            ],
        ))


def compute_validation(nodes: GraphInput) -> ValidationReport:
    """Convenience wrapper around :meth:`ValidationScorer.compute`."""
    return ValidationScorer().compute(nodes)
