# -*- coding: utf-8 -*-
"""
Credibility scoring for lifecycle graphs.

Four independent scorers (completeness, mass balance, traceability,
validation) and the aggregator that weights them into one credibility
score.
"""

from carbonflow.scoring.completeness import CompletenessScorer, compute_completeness
from carbonflow.scoring.credibility import CredibilityAggregator, aggregate_credibility
from carbonflow.scoring.mass_balance import MassBalanceScorer, compute_mass_balance
from carbonflow.scoring.models import (
    CompletenessReport,
    CredibilityReport,
    IncompleteNode,
    MassBalanceReport,
    TraceabilityReport,
    ValidationReport,
)
from carbonflow.scoring.traceability import TraceabilityScorer, compute_traceability
from carbonflow.scoring.validation import ValidationScorer, compute_validation

__all__ = [
    "CompletenessScorer",
    "MassBalanceScorer",
    "TraceabilityScorer",
    "ValidationScorer",
    "CredibilityAggregator",
    "compute_completeness",
    "compute_mass_balance",
    "compute_traceability",
    "compute_validation",
    "aggregate_credibility",
    "IncompleteNode",
    "CompletenessReport",
    "MassBalanceReport",
    "TraceabilityReport",
    "ValidationReport",
    "CredibilityReport",
]
