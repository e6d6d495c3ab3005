# -*- coding: utf-8 -*-
"""
Completeness Scorer

Lifecycle-stage coverage and per-node required-field completeness for a
lifecycle graph. Stage coverage counts how many of the five canonical
stages are declared by at least one node; node completeness counts the
stage-specific required fields that carry usable values.

Zero-Hallucination Guarantees:
    - All scores are deterministic arithmetic (filled / required)
    - Numeric fields pass only when they are real positive quantities
    - Nodes are keyed by their lifecycle stage, never by their type
    - SHA-256 content hash on every report

Scoring:
    lifecycle_completeness = present_stages / 5 * 100
    node_completeness      = completed_fields / total_fields * 100
    score                  = round(0.25 * node + 0.75 * lifecycle)

Example:
    >>> from carbonflow.scoring.completeness import compute_completeness
    >>> report = compute_completeness([
    ...     {"id": "n1", "type": "product", "lifecycleStage": "原材料获取阶段",
    ...      "carbonFactor": "1.5", "quantity": "10"},
    ... ])
    >>> (report.node_completeness, report.lifecycle_completeness, report.score)
    (100, 20, 40)

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from carbonflow.arithmetic import clamp_score, percentage, weighted_sum
from carbonflow.config import CarbonFlowConfig, check_weight_sum, get_config
from carbonflow.graph import GraphInput, GraphModel
from carbonflow.models import STAGE_REQUIRED_FIELDS, LifecycleStage, Node
from carbonflow.provenance import stamp
from carbonflow.scoring.models import CompletenessReport, IncompleteNode

logger = logging.getLogger(__name__)

__all__ = [
    "CompletenessScorer",
    "compute_completeness",
]


class CompletenessScorer:
    """Scores stage coverage and required-field completeness.

    Attributes:
        _weights: Model completeness weights (node, lifecycle).
        _derive_stage: Whether missing stages are derived from node type.

    Example:
        >>> scorer = CompletenessScorer()
        >>> report = scorer.compute(graph)
        >>> assert 0 <= report.score <= 100
    """

    def __init__(self, config: Optional[CarbonFlowConfig] = None) -> None:
        """Initialize CompletenessScorer.

        Args:
            config: Optional configuration. Uses global config if None.

        Raises:
            ConfigurationError: If the completeness weights do not sum to 1.0.
        """
        cfg = config or get_config()
        self._weights = cfg.completeness_weights()
        check_weight_sum(self._weights, "completeness_weights", "CompletenessScorer")
        self._derive_stage = cfg.derive_stage_from_type
        logger.debug(
            "CompletenessScorer initialized: node_weight=%.2f lifecycle_weight=%.2f",
            self._weights["node_completeness"],
            self._weights["lifecycle_completeness"],
        )

    def compute(self, graph: GraphInput) -> CompletenessReport:
        """Compute the completeness report for a graph snapshot.

        Args:
            graph: GraphModel or iterable of node records.

        Returns:
            CompletenessReport with both sub-scores and flagged nodes.
        """
        graph = GraphModel.coerce(graph, self._derive_stage)

        missing_stages = graph.missing_lifecycle_stages()
        stage_count = len(LifecycleStage)
        lifecycle = percentage(stage_count - len(missing_stages), stage_count)

        completed = 0
        total = 0
        incomplete: List[IncompleteNode] = []
        for node in graph:
            node_completed, node_total, missing = self.check_node(graph, node)
            completed += node_completed
            total += node_total
            if missing:
                incomplete.append(IncompleteNode(
                    id=node.id, label=node.display_label, missing_fields=missing,
                ))

        node_completeness = percentage(completed, total)
        score = clamp_score(weighted_sum(
            {"node_completeness": node_completeness,
             "lifecycle_completeness": lifecycle},
            self._weights,
        ))

        logger.debug(
            "Completeness computed: score=%d lifecycle=%d node=%d (%d/%d fields)",
            score, lifecycle, node_completeness, completed, total,
        )
        return stamp(CompletenessReport(
            score=score,
            lifecycle_completeness=lifecycle,
            node_completeness=node_completeness,
            completed_fields=completed,
            total_fields=total,
            missing_lifecycle_stages=missing_stages,
            incomplete_nodes=incomplete,
        ))

    @staticmethod
    def check_node(graph: GraphModel, node: Node) -> Tuple[int, int, List[str]]:
        """Check one node's stage-specific required fields.

        Nodes without a recognised stage have no required fields.

        Returns:
            Tuple of (completed_fields, total_fields, missing_field_keys).
        """
        stage = graph.stage_of(node)
        if stage is None:
            return 0, 0, []
        required = STAGE_REQUIRED_FIELDS[stage]
        missing = [f.key for f in required if not f.is_present(node)]
        return len(required) - len(missing), len(required), missing


def compute_completeness(
    nodes: GraphInput,
    config: Optional[CarbonFlowConfig] = None,
) -> CompletenessReport:
    """Convenience wrapper around :meth:`CompletenessScorer.compute`."""
    return CompletenessScorer(config).compute(nodes)
