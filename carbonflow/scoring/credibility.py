# -*- coding: utf-8 -*-
"""
Credibility Aggregator

Combines the completeness, mass balance, traceability and validation
scorers into a single 0-100 credibility score plus the structured
component reports.

Zero-Hallucination Guarantees:
    - Pure function of the graph snapshot (no counters, no clocks)
    - Each component is clamped to [0, 100] before weighting
    - Weights validated to sum to 1.0 at construction
    - Identical snapshots produce bit-identical reports

Weighting (defaults):
    0.10 lifecycle completeness + 0.30 node completeness
    + 0.10 mass balance + 0.35 data traceability + 0.15 validation

Example:
    >>> from carbonflow.scoring.credibility import CredibilityAggregator
    >>> report = CredibilityAggregator().aggregate(nodes)
    >>> assert 0 <= report.credibility_score <= 100

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Optional

from carbonflow.arithmetic import clamp_score, weighted_sum
from carbonflow.config import CarbonFlowConfig, check_weight_sum, get_config
from carbonflow.graph import GraphInput, GraphModel
from carbonflow.provenance import stamp
from carbonflow.scoring.completeness import CompletenessScorer
from carbonflow.scoring.mass_balance import MassBalanceScorer
from carbonflow.scoring.models import CredibilityReport
from carbonflow.scoring.traceability import TraceabilityScorer
from carbonflow.scoring.validation import ValidationScorer

logger = logging.getLogger(__name__)

__all__ = [
    "CredibilityAggregator",
    "aggregate_credibility",
]


class CredibilityAggregator:
    """Weighted combination of the four credibility scorers.

    Attributes:
        _weights: Credibility weight vector keyed by component.
        _completeness: CompletenessScorer instance.
        _mass_balance: MassBalanceScorer instance.
        _traceability: TraceabilityScorer instance.
        _validation: ValidationScorer instance.
    """

    def __init__(self, config: Optional[CarbonFlowConfig] = None) -> None:
        """Initialize CredibilityAggregator.

        Args:
            config: Optional configuration. Uses global config if None.

        Raises:
            ConfigurationError: If the credibility weights do not sum to 1.0.
        """
        cfg = config or get_config()
        self._weights = cfg.credibility_weights()
        check_weight_sum(self._weights, "credibility_weights", "CredibilityAggregator")
        self._derive_stage = cfg.derive_stage_from_type
        self._completeness = CompletenessScorer(cfg)
        self._mass_balance = MassBalanceScorer()
        self._traceability = TraceabilityScorer()
        self._validation = ValidationScorer()
        logger.info(
            "CredibilityAggregator initialized: weights=[L=%.2f N=%.2f M=%.2f T=%.2f V=%.2f]",
            self._weights["lifecycle_completeness"],
            self._weights["node_completeness"],
            self._weights["mass_balance"],
            self._weights["data_traceability"],
            self._weights["validation"],
        )

    def aggregate(self, graph: GraphInput) -> CredibilityReport:
        """Score a graph snapshot and combine the component scores.

        Args:
            graph: GraphModel or iterable of node records.

        Returns:
            CredibilityReport with the weighted score and component reports.
        """
        graph = GraphModel.coerce(graph, self._derive_stage)

        completeness = self._completeness.compute(graph)
        mass_balance = self._mass_balance.compute(graph)
        traceability = self._traceability.compute(graph)
        validation = self._validation.compute(graph)

        components = {
            "lifecycle_completeness": clamp_score(completeness.lifecycle_completeness),
            "node_completeness": clamp_score(completeness.node_completeness),
            "mass_balance": clamp_score(mass_balance.score),
            "data_traceability": clamp_score(traceability.score),
            "validation": clamp_score(validation.score),
        }
        credibility = clamp_score(weighted_sum(components, self._weights))

        logger.info(
            "Credibility aggregated: score=%d nodes=%d components=%s",
            credibility, len(graph), components,
        )
        return stamp(CredibilityReport(
            credibility_score=credibility,
            missing_lifecycle_stages=completeness.missing_lifecycle_stages,
            component_scores=components,
            weights=self._weights,
            model_completeness=completeness,
            mass_balance=mass_balance,
            data_traceability=traceability,
            validation=validation,
        ))


def aggregate_credibility(
    nodes: GraphInput,
    config: Optional[CarbonFlowConfig] = None,
) -> CredibilityReport:
    """Convenience wrapper around :meth:`CredibilityAggregator.aggregate`."""
    return CredibilityAggregator(config).aggregate(nodes)
