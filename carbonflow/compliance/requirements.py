# -*- coding: utf-8 -*-
"""
Compliance Requirement Library

Building blocks for the per-standard requirement catalogs. A
:class:`Requirement` couples descriptive metadata (severity, weight,
mandatory flag, effort, recommendation) with a deterministic rule over the
graph:

    - :class:`NodeRule`: share of applicable nodes passing a
      :class:`NodeCheck`; failing nodes become node-level issues.
    - :class:`StageCoverageRule`: share of a stage set declared by at
      least one node.
    - :class:`GraphRule`: all-or-nothing predicate over the whole graph.
    - :class:`MassBalanceRule`: the mass-balance score reused as a
      requirement score.

:class:`NodeCheck` descriptions are shared between standards, so the same
data gap reported under two standards carries the same description string.

Zero-Hallucination Guarantees:
    - Every rule is a pure function of the graph and the reference year
    - A rule with no applicable nodes scores 0, it never raises
    - Integer scores through ROUND_HALF_UP percentages

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from carbonflow.arithmetic import percentage
from carbonflow.graph import GraphModel, extract_year
from carbonflow.models import (
    CARBON_FACTOR,
    QUANTITY,
    STAGE_REQUIRED_FIELDS,
    LifecycleStage,
    Node,
    NodeType,
    has_text,
    is_positive_quantity,
)
from carbonflow.compliance.models import Effort, RequirementSeverity
from carbonflow.scoring.mass_balance import MassBalanceScorer


# ---------------------------------------------------------------------------
# Evaluation plumbing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EvaluationContext:
    """Inputs shared by every rule during one evaluation.

    Attributes:
        reference_year: Year that temporal representativeness is measured
            against.
        graph: Graph under evaluation; node stages resolve through it.
    """

    reference_year: int
    graph: Optional[GraphModel] = None


@dataclass
class RuleOutcome:
    """Raw result of evaluating one rule."""

    score: int
    applicable: int = 0
    failing: List[Node] = field(default_factory=list)
    evidence: List[str] = field(default_factory=list)
    gaps: List[str] = field(default_factory=list)


NodePredicate = Callable[[Node, EvaluationContext], bool]


@dataclass(frozen=True)
class NodeCheck:
    """A named per-node predicate.

    Attributes:
        key: Short identifier.
        description: Issue text reported for a failing node.
        recommendation: Remediation text reported with the issue.
        predicate: Returns True when the node satisfies the check.
    """

    key: str
    description: str
    recommendation: str
    predicate: NodePredicate

    def passes(self, node: Node, context: EvaluationContext) -> bool:
        return self.predicate(node, context)


# ---------------------------------------------------------------------------
# Node predicates
# ---------------------------------------------------------------------------


def _has_emission_factor(node: Node, context: EvaluationContext) -> bool:
    return CARBON_FACTOR.is_present(node)


def _has_activity_data(node: Node, context: EvaluationContext) -> bool:
    return QUANTITY.is_present(node) and has_text(node.activity_unit)


def _has_embedded_emissions(node: Node, context: EvaluationContext) -> bool:
    return CARBON_FACTOR.is_present(node) and QUANTITY.is_present(node)


def _has_factor_provenance(node: Node, context: EvaluationContext) -> bool:
    return has_text(node.carbon_factor_name) and has_text(node.carbon_factor_data_source)


def _is_eu_compliant(node: Node, context: EvaluationContext) -> bool:
    return node.eu_compliant_factor is True


def _has_evidence(node: Node, context: EvaluationContext) -> bool:
    return node.has_evidence


def _has_verified_evidence(node: Node, context: EvaluationContext) -> bool:
    return node.has_verified_evidence


def _has_temporal_year(node: Node, context: EvaluationContext) -> bool:
    return extract_year(node.emission_factor_temporal_representativeness) is not None


def _temporal_within(years: int) -> NodePredicate:
    def predicate(node: Node, context: EvaluationContext) -> bool:
        year = extract_year(node.emission_factor_temporal_representativeness)
        return year is not None and context.reference_year - year <= years
    return predicate


def _has_geography(node: Node, context: EvaluationContext) -> bool:
    return has_text(node.emission_factor_geographical_representativeness)


def _geography_in(keywords: Sequence[str]) -> NodePredicate:
    lowered = tuple(k.lower() for k in keywords)

    def predicate(node: Node, context: EvaluationContext) -> bool:
        geography = node.text("emission_factor_geographical_representativeness").lower()
        return bool(geography) and any(k in geography for k in lowered)
    return predicate


def _stage_data_complete(node: Node, context: EvaluationContext) -> bool:
    stage = context.graph.stage_of(node) if context.graph is not None else node.stage
    if stage is None:
        return False
    return all(f.is_present(node) for f in STAGE_REQUIRED_FIELDS[stage])


def _has_end_of_life_treatment(node: Node, context: EvaluationContext) -> bool:
    return has_text(node.disposal_method) or is_positive_quantity(node.recycling_rate)


def _has_method_notes(node: Node, context: EvaluationContext) -> bool:
    return has_text(node.supplementary_info)


# ---------------------------------------------------------------------------
# Shared node checks
# ---------------------------------------------------------------------------


HAS_EMISSION_FACTOR = NodeCheck(
    key="emission_factor",
    description="Missing emission factor",
    recommendation="Assign a positive emission factor to the node",
    predicate=_has_emission_factor,
)
HAS_ACTIVITY_DATA = NodeCheck(
    key="activity_data",
    description="Missing activity data (quantity and unit)",
    recommendation="Record a positive quantity together with its activity unit",
    predicate=_has_activity_data,
)
HAS_EMBEDDED_EMISSIONS = NodeCheck(
    key="embedded_emissions",
    description="Embedded emissions cannot be calculated (factor or quantity missing)",
    recommendation="Provide both the emission factor and the activity quantity",
    predicate=_has_embedded_emissions,
)
HAS_FACTOR_PROVENANCE = NodeCheck(
    key="factor_provenance",
    description="Emission factor source not documented",
    recommendation="Record the emission factor name and its data source",
    predicate=_has_factor_provenance,
)
IS_EU_COMPLIANT = NodeCheck(
    key="eu_compliant_factor",
    description="Emission factor not EU-compliant",
    recommendation="Replace the factor with an EU-recognised emission factor",
    predicate=_is_eu_compliant,
)
HAS_EVIDENCE = NodeCheck(
    key="evidence",
    description="No supporting evidence attached",
    recommendation="Upload invoices, meter readings or supplier declarations",
    predicate=_has_evidence,
)
HAS_VERIFIED_EVIDENCE = NodeCheck(
    key="verified_evidence",
    description="No verified evidence",
    recommendation="Have at least one evidence file reviewed and verified",
    predicate=_has_verified_evidence,
)
HAS_TEMPORAL_YEAR = NodeCheck(
    key="temporal_year",
    description="Temporal representativeness not declared",
    recommendation="Declare the reference year of the emission factor",
    predicate=_has_temporal_year,
)
TEMPORAL_WITHIN_5_YEARS = NodeCheck(
    key="temporal_5y",
    description="Emission factor older than 5 years",
    recommendation="Update the emission factor to a dataset from the last 5 years",
    predicate=_temporal_within(5),
)
TEMPORAL_WITHIN_10_YEARS = NodeCheck(
    key="temporal_10y",
    description="Emission factor older than 10 years",
    recommendation="Update the emission factor to a dataset from the last 10 years",
    predicate=_temporal_within(10),
)
HAS_GEOGRAPHY = NodeCheck(
    key="geography",
    description="Geographical representativeness not declared",
    recommendation="Declare the region the emission factor represents",
    predicate=_has_geography,
)
CHINA_GEOGRAPHY = NodeCheck(
    key="china_geography",
    description="Emission factor not representative of China",
    recommendation="Use a national (China) emission factor",
    predicate=_geography_in(("中国", "china", "cn")),
)
STAGE_DATA_COMPLETE = NodeCheck(
    key="stage_data",
    description="Stage-specific activity data incomplete",
    recommendation="Fill in the required fields for the node's lifecycle stage",
    predicate=_stage_data_complete,
)
HAS_END_OF_LIFE_TREATMENT = NodeCheck(
    key="end_of_life",
    description="End-of-life treatment not described",
    recommendation="Record the disposal method or the recycling rate",
    predicate=_has_end_of_life_treatment,
)
HAS_METHOD_NOTES = NodeCheck(
    key="method_notes",
    description="Calculation method not documented",
    recommendation="Describe the calculation method in the supplementary information",
    predicate=_has_method_notes,
)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


class Rule:
    """Base class for requirement rules."""

    node_check: Optional[NodeCheck] = None

    def evaluate(self, graph: GraphModel, context: EvaluationContext) -> RuleOutcome:
        raise NotImplementedError


class NodeRule(Rule):
    """Share of applicable nodes passing ``check``.

    Args:
        check: Per-node check.
        stages: Restrict applicability to nodes in these stages. None means
            every node applies.
    """

    def __init__(
        self,
        check: NodeCheck,
        stages: Optional[Tuple[LifecycleStage, ...]] = None,
    ) -> None:
        self.node_check = check
        self.stages = stages

    def _applies(self, graph: GraphModel, node: Node) -> bool:
        return self.stages is None or graph.stage_of(node) in self.stages

    def evaluate(self, graph: GraphModel, context: EvaluationContext) -> RuleOutcome:
        applicable = [n for n in graph if self._applies(graph, n)]
        if not applicable:
            scope = (
                ", ".join(s.value for s in self.stages) if self.stages else "any stage"
            )
            return RuleOutcome(score=0, gaps=[f"No applicable nodes ({scope})"])

        failing = [n for n in applicable if not self.node_check.passes(n, context)]
        passing = len(applicable) - len(failing)
        outcome = RuleOutcome(
            score=percentage(passing, len(applicable)),
            applicable=len(applicable),
            failing=failing,
        )
        if passing:
            outcome.evidence.append(f"{passing}/{len(applicable)} nodes pass")
        if failing:
            outcome.gaps.append(
                f"{len(failing)}/{len(applicable)} nodes: {self.node_check.description}"
            )
        return outcome


class StageCoverageRule(Rule):
    """Share of ``stages`` declared by at least one node."""

    def __init__(self, stages: Tuple[LifecycleStage, ...]) -> None:
        self.stages = stages

    def evaluate(self, graph: GraphModel, context: EvaluationContext) -> RuleOutcome:
        present = set(graph.present_stages())
        covered = [s for s in self.stages if s in present]
        outcome = RuleOutcome(
            score=percentage(len(covered), len(self.stages)),
            applicable=len(graph),
        )
        if covered:
            outcome.evidence.append(
                "Stages modelled: " + ", ".join(s.value for s in covered)
            )
        outcome.gaps.extend(
            f"No nodes declared for stage {s.value}"
            for s in self.stages if s not in present
        )
        return outcome


class GraphRule(Rule):
    """All-or-nothing predicate over the whole graph."""

    def __init__(
        self,
        predicate: Callable[[GraphModel], bool],
        satisfied: str,
        gap: str,
    ) -> None:
        self.predicate = predicate
        self.satisfied = satisfied
        self.gap = gap

    def evaluate(self, graph: GraphModel, context: EvaluationContext) -> RuleOutcome:
        if len(graph) and self.predicate(graph):
            return RuleOutcome(score=100, applicable=len(graph), evidence=[self.satisfied])
        return RuleOutcome(score=0, applicable=len(graph), gaps=[self.gap])


class MassBalanceRule(Rule):
    """Mass-balance score reused as a requirement score."""

    def evaluate(self, graph: GraphModel, context: EvaluationContext) -> RuleOutcome:
        report = MassBalanceScorer().compute(graph)
        outcome = RuleOutcome(score=report.score, applicable=len(graph))
        outcome.evidence.append(
            f"Output/input ratio {report.ratio:.3f} "
            f"(input {report.total_input:g}, output {report.total_output:g})"
        )
        if report.score < 100:
            outcome.gaps.append("Product outputs do not balance product inputs")
        return outcome


def declares_final_product(graph: GraphModel) -> bool:
    """True when a final-product node or an output product exists."""
    return any(
        n.node_type is NodeType.FINAL_PRODUCT or n.is_output for n in graph
    )


# ---------------------------------------------------------------------------
# Requirement
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Requirement:
    """One named requirement of a standard's catalog.

    Attributes:
        id: Stable requirement identifier.
        name: Short display name.
        description: What the requirement demands.
        category: Grouping used for category scores.
        severity: Severity of failing the requirement.
        weight: Relative weight within the catalog.
        mandatory: Mandatory (True) or recommended (False).
        effort: Estimated effort to close a gap.
        recommendation: Remediation text for improvements.
        rule: Deterministic evaluation rule.
    """

    id: str
    name: str
    description: str
    category: str
    severity: RequirementSeverity
    weight: float
    mandatory: bool
    effort: Effort
    recommendation: str
    rule: Rule

    def evaluate(self, graph: GraphModel, context: EvaluationContext) -> RuleOutcome:
        return self.rule.evaluate(graph, context)


__all__ = [
    "EvaluationContext",
    "RuleOutcome",
    "NodeCheck",
    "Rule",
    "NodeRule",
    "StageCoverageRule",
    "GraphRule",
    "MassBalanceRule",
    "Requirement",
    "declares_final_product",
    "HAS_EMISSION_FACTOR",
    "HAS_ACTIVITY_DATA",
    "HAS_EMBEDDED_EMISSIONS",
    "HAS_FACTOR_PROVENANCE",
    "IS_EU_COMPLIANT",
    "HAS_EVIDENCE",
    "HAS_VERIFIED_EVIDENCE",
    "HAS_TEMPORAL_YEAR",
    "TEMPORAL_WITHIN_5_YEARS",
    "TEMPORAL_WITHIN_10_YEARS",
    "HAS_GEOGRAPHY",
    "CHINA_GEOGRAPHY",
    "STAGE_DATA_COMPLETE",
    "HAS_END_OF_LIFE_TREATMENT",
    "HAS_METHOD_NOTES",
]
