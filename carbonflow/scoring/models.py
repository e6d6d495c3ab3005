# -*- coding: utf-8 -*-
"""
Credibility Scoring Report Models

Immutable Pydantic v2 reports returned by the four credibility scorers and
the aggregator. Every report is JSON-compatible and carries a
``provenance_hash`` over its own content.

Models:
    - IncompleteNode
    - CompletenessReport, MassBalanceReport, TraceabilityReport,
      ValidationReport
    - CredibilityReport

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from carbonflow.models import LifecycleStage

ScoreValue = Annotated[int, Field(ge=0, le=100)]


class _Report(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)


class IncompleteNode(_Report):
    """A node flagged by a scorer.

    Attributes:
        id: Node identifier.
        label: Node label, or ``Node <id>`` when unlabelled.
        missing_fields: Host field names the node lacks.
        hint: Remediation hint, when the scorer has one.
    """

    id: str
    label: str
    missing_fields: List[str] = Field(default_factory=list)
    hint: Optional[str] = None


class CompletenessReport(_Report):
    """Stage coverage and per-node required-field completeness."""

    score: ScoreValue
    lifecycle_completeness: ScoreValue
    node_completeness: ScoreValue
    completed_fields: int = Field(default=0, ge=0)
    total_fields: int = Field(default=0, ge=0)
    missing_lifecycle_stages: List[LifecycleStage] = Field(default_factory=list)
    incomplete_nodes: List[IncompleteNode] = Field(default_factory=list)
    provenance_hash: str = ""


class MassBalanceReport(_Report):
    """Input/output quantity conservation across product nodes.

    ``ratio`` is the only unbounded figure; it is 0.0 when no input
    quantity exists.
    """

    score: ScoreValue
    ratio: float = Field(default=0.0, ge=0.0)
    total_input: float = Field(default=0.0, ge=0.0)
    total_output: float = Field(default=0.0, ge=0.0)
    incomplete_nodes: List[IncompleteNode] = Field(default_factory=list)
    provenance_hash: str = ""


class TraceabilityReport(_Report):
    """Evidence-file or database-source coverage."""

    score: ScoreValue
    coverage: ScoreValue
    traceable_nodes: int = Field(default=0, ge=0)
    total_nodes: int = Field(default=0, ge=0)
    incomplete_nodes: List[IncompleteNode] = Field(default_factory=list)
    provenance_hash: str = ""


class ValidationReport(_Report):
    """Share of nodes backed by verified evidence."""

    score: ScoreValue
    consistency: ScoreValue
    validated_nodes: int = Field(default=0, ge=0)
    total_nodes: int = Field(default=0, ge=0)
    incomplete_nodes: List[IncompleteNode] = Field(default_factory=list)
    provenance_hash: str = ""


class CredibilityReport(_Report):
    """Weighted credibility score plus the four component reports.

    Attributes:
        credibility_score: Weighted 0-100 aggregate.
        missing_lifecycle_stages: Canonical stages with no node.
        component_scores: Clamped component inputs used in the weighting.
        weights: Weights applied to each component.
        model_completeness: CompletenessReport.
        mass_balance: MassBalanceReport.
        data_traceability: TraceabilityReport.
        validation: ValidationReport.
    """

    credibility_score: ScoreValue
    missing_lifecycle_stages: List[LifecycleStage] = Field(default_factory=list)
    component_scores: Dict[str, int] = Field(default_factory=dict)
    weights: Dict[str, float] = Field(default_factory=dict)
    model_completeness: CompletenessReport
    mass_balance: MassBalanceReport
    data_traceability: TraceabilityReport
    validation: ValidationReport
    provenance_hash: str = ""


__all__ = [
    "IncompleteNode",
    "CompletenessReport",
    "MassBalanceReport",
    "TraceabilityReport",
    "ValidationReport",
    "CredibilityReport",
]
