# -*- coding: utf-8 -*-
"""
Multi-Standard Compliance Checker

Evaluates a lifecycle graph against the requirement catalogs of one or
more compliance standards and aggregates the results across standards.

Per standard:
    1. Evaluate every requirement rule to a 0-100 score.
    2. Weighted-mean the requirement scores into overall, mandatory and
       recommended scores, plus per-category scores.
    3. Classify the overall score into a compliance level using the
       configured thresholds (a score equal to a cut point reaches it).
    4. Collect node-level issues and improvements for failing requirements.

Across standards:
    - average, best and worst performing standard
    - common issues: identical issue descriptions under two or more
      standards
    - action items: every improvement scored 15/10/5 by priority, sorted
      by impact and truncated to the top five

Zero-Hallucination Guarantees:
    - Requirement scores come from deterministic rules only
    - All averages use Decimal with ROUND_HALF_UP
    - Unknown or uncatalogued standards raise ConfigurationError
    - Identical inputs produce bit-identical reports (no timestamps)

Example:
    >>> from carbonflow.compliance import ComplianceChecker
    >>> checker = ComplianceChecker()
    >>> report = checker.check(nodes, workflow_id="wf-001")
    >>> 0 <= report.aggregate_score.average_score <= 100
    True

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from carbonflow.arithmetic import clamp_score, mean, weighted_mean
from carbonflow.compliance.aliases import get_standard_display_name
from carbonflow.compliance.models import (
    PRIORITY_IMPACT,
    SEVERITY_PRIORITY,
    SEVERITY_RANK,
    ActionItem,
    AggregateScore,
    CategoryScore,
    CommonIssue,
    ComplianceCheckConfiguration,
    ComplianceLevel,
    ComplianceScoreDetail,
    ComplianceSummary,
    ComplianceThresholds,
    Improvement,
    MultiStandardComplianceReport,
    NodeIssue,
    NodeIssueGroup,
    RequirementResult,
    RequirementSeverity,
    StandardId,
)
from carbonflow.compliance.requirements import EvaluationContext, Requirement, RuleOutcome
from carbonflow.compliance.standards import Catalog, get_catalog, resolve_standard
from carbonflow.config import CarbonFlowConfig, check_ascending_thresholds, get_config
from carbonflow.exceptions import ConfigurationError
from carbonflow.graph import GraphInput, GraphModel
from carbonflow.provenance import stamp

logger = logging.getLogger(__name__)

MAX_ACTION_ITEMS = 5

StandardInput = Union[StandardId, str]


# ---------------------------------------------------------------------------
# Level classification
# ---------------------------------------------------------------------------


def classify_level(score: int, thresholds: ComplianceThresholds) -> ComplianceLevel:
    """Map an overall score to a compliance level.

    Cut points are inclusive: a score equal to ``acceptable`` is full
    compliance, one point below is substantial compliance.
    """
    if score >= thresholds.acceptable:
        return ComplianceLevel.FULL
    if score >= thresholds.warning:
        return ComplianceLevel.SUBSTANTIAL
    if score >= thresholds.critical:
        return ComplianceLevel.PARTIAL
    return ComplianceLevel.NON


def validate_thresholds(thresholds: ComplianceThresholds) -> None:
    """Raise ConfigurationError unless critical < warning < acceptable in [0, 100]."""
    check_ascending_thresholds(
        {
            "critical": thresholds.critical,
            "warning": thresholds.warning,
            "acceptable": thresholds.acceptable,
        },
        "compliance_thresholds",
        engine_name="ComplianceChecker",
    )


# ---------------------------------------------------------------------------
# Single-standard evaluation
# ---------------------------------------------------------------------------


class StandardChecker:
    """Evaluates one standard's requirement catalog.

    Attributes:
        standard: Standard identifier.
        requirements: Requirement catalog.
    """

    def __init__(
        self,
        standard: StandardId,
        requirements: Catalog,
        pass_score: int = 75,
    ) -> None:
        self.standard = standard
        self.requirements = requirements
        self.pass_score = pass_score

    def evaluate(
        self,
        graph: GraphModel,
        context: EvaluationContext,
        thresholds: Optional[ComplianceThresholds] = None,
        custom_weights: Optional[Mapping[str, float]] = None,
        include_recommendations: bool = True,
        include_node_level: bool = True,
    ) -> ComplianceScoreDetail:
        """Evaluate the catalog against ``graph``.

        Args:
            graph: Graph snapshot.
            context: Shared evaluation inputs.
            thresholds: Level cut points (defaults 60/75/90).
            custom_weights: Requirement id to weight overrides.
            include_recommendations: Generate improvements.
            include_node_level: Collect per-node issues.

        Returns:
            ComplianceScoreDetail for this standard.
        """
        thresholds = thresholds or ComplianceThresholds()
        custom_weights = custom_weights or {}

        results: List[RequirementResult] = []
        outcomes: List[RuleOutcome] = []
        for requirement in self.requirements:
            outcome = requirement.evaluate(graph, context)
            weight = float(custom_weights.get(requirement.id, requirement.weight))
            score = clamp_score(outcome.score)
            compliant = score >= self.pass_score
            results.append(RequirementResult(
                requirement_id=requirement.id,
                requirement_name=requirement.name,
                category=requirement.category,
                severity=requirement.severity,
                mandatory=requirement.mandatory,
                weight=weight,
                score=score,
                compliant=compliant,
                applicable_nodes=outcome.applicable,
                failing_nodes=len(outcome.failing),
                evidence=outcome.evidence,
                gaps=outcome.gaps,
                recommendations=[] if compliant else [requirement.recommendation],
            ))
            outcomes.append(outcome)

        overall = clamp_score(weighted_mean((r.score, r.weight) for r in results))
        mandatory = [r for r in results if r.mandatory]
        recommended = [r for r in results if not r.mandatory]
        mandatory_score = (
            clamp_score(weighted_mean((r.score, r.weight) for r in mandatory))
            if mandatory else overall
        )
        recommended_score = (
            clamp_score(weighted_mean((r.score, r.weight) for r in recommended))
            if recommended else overall
        )
        level = classify_level(overall, thresholds)

        node_issues = (
            self._node_issues(graph, outcomes) if include_node_level else []
        )
        improvements = (
            self._improvements(results) if include_recommendations else []
        )

        failing = [r for r in results if not r.compliant]
        summary = ComplianceSummary(
            total_requirements=len(results),
            compliant_requirements=len(results) - len(failing),
            critical_issues=sum(1 for r in failing if r.severity is RequirementSeverity.CRITICAL),
            major_issues=sum(1 for r in failing if r.severity is RequirementSeverity.MAJOR),
            minor_issues=sum(1 for r in failing if r.severity is RequirementSeverity.MINOR),
        )

        logger.info(
            "Compliance evaluated: standard=%s score=%d level=%s compliant=%d/%d",
            self.standard.value, overall, level.value,
            summary.compliant_requirements, summary.total_requirements,
        )
        return stamp(ComplianceScoreDetail(
            standard=self.standard,
            standard_name=get_standard_display_name(self.standard),
            overall_score=overall,
            level=level,
            mandatory_score=mandatory_score,
            mandatory_compliance=all(r.compliant for r in mandatory),
            recommended_score=recommended_score,
            category_scores=self._category_scores(results),
            requirement_results=results,
            node_issues=node_issues,
            summary=summary,
            improvements=improvements,
        ))

    @staticmethod
    def _category_scores(results: Sequence[RequirementResult]) -> List[CategoryScore]:
        grouped: Dict[str, List[RequirementResult]] = OrderedDict()
        for result in results:
            grouped.setdefault(result.category, []).append(result)
        return [
            CategoryScore(
                category=category,
                score=clamp_score(weighted_mean((r.score, r.weight) for r in members)),
                requirements=len(members),
            )
            for category, members in grouped.items()
        ]

    def _node_issues(
        self,
        graph: GraphModel,
        outcomes: Sequence[RuleOutcome],
    ) -> List[NodeIssueGroup]:
        issues: Dict[str, List[NodeIssue]] = {}
        for requirement, outcome in zip(self.requirements, outcomes):
            check = requirement.rule.node_check
            if check is None:
                continue
            for node in outcome.failing:
                issues.setdefault(node.id, []).append(NodeIssue(
                    requirement_id=requirement.id,
                    requirement_name=requirement.name,
                    description=check.description,
                    severity=requirement.severity,
                    recommendation=check.recommendation,
                ))
        # Groups follow graph order.
        return [
            NodeIssueGroup(
                node_id=node.id,
                node_label=node.display_label,
                node_type=node.type,
                issues=issues[node.id],
            )
            for node in graph if node.id in issues
        ]

    def _improvements(self, results: Sequence[RequirementResult]) -> List[Improvement]:
        by_id = {r.id: r for r in self.requirements}
        improvements = []
        for result in results:
            if result.compliant:
                continue
            requirement: Requirement = by_id[result.requirement_id]
            improvements.append(Improvement(
                requirement_id=requirement.id,
                priority=SEVERITY_PRIORITY[requirement.severity],
                area=requirement.category,
                action=requirement.recommendation,
                impact=(
                    f"Raises '{requirement.name}' from {result.score} "
                    f"to at least {self.pass_score}"
                ),
                effort=requirement.effort,
            ))
        return improvements


def create_standard_checker(
    standard: StandardInput,
    pass_score: int = 75,
) -> StandardChecker:
    """Build the StandardChecker registered for ``standard``.

    Raises:
        ConfigurationError: If the standard is unknown or has no catalog.
    """
    standard_id = resolve_standard(standard)
    return StandardChecker(standard_id, get_catalog(standard_id), pass_score)


# ---------------------------------------------------------------------------
# Multi-standard checker
# ---------------------------------------------------------------------------


class ComplianceChecker:
    """Evaluates a graph against several standards and aggregates the results.

    Attributes:
        _config: Global configuration (pass score, defaults, reference year).
    """

    def __init__(self, config: Optional[CarbonFlowConfig] = None) -> None:
        """Initialize ComplianceChecker.

        Args:
            config: Optional configuration. Uses global config if None.
        """
        self._config = config or get_config()
        self._pass_score = self._config.requirement_pass_score
        logger.info(
            "ComplianceChecker initialized: pass_score=%d default_standards=%s",
            self._pass_score, self._config.default_standard_ids(),
        )

    def default_configuration(self) -> ComplianceCheckConfiguration:
        """Return a configuration built from the global defaults."""
        return create_compliance_configuration(config=self._config)

    def evaluate(
        self,
        standard: StandardInput,
        graph: GraphInput,
        configuration: Optional[ComplianceCheckConfiguration] = None,
    ) -> ComplianceScoreDetail:
        """Evaluate ``graph`` against a single standard.

        Raises:
            ConfigurationError: If the standard or thresholds are invalid.
        """
        configuration = configuration or self.default_configuration()
        validate_thresholds(configuration.thresholds)
        graph = GraphModel.coerce(graph, self._config.derive_stage_from_type)
        checker = create_standard_checker(standard, self._pass_score)
        self._check_custom_weights(configuration.custom_weights, [checker])
        return checker.evaluate(
            graph,
            self._context(graph),
            thresholds=configuration.thresholds,
            custom_weights=configuration.custom_weights,
            include_recommendations=configuration.include_recommendations,
            include_node_level=configuration.include_node_level,
        )

    def check(
        self,
        graph: GraphInput,
        configuration: Optional[ComplianceCheckConfiguration] = None,
        workflow_id: str = "",
        report_date: Optional[str] = None,
    ) -> MultiStandardComplianceReport:
        """Evaluate every enabled standard and aggregate the results.

        Args:
            graph: GraphModel or iterable of node records.
            configuration: Check configuration. Global defaults if None.
            workflow_id: Workflow the report belongs to.
            report_date: Caller-supplied report date, echoed verbatim.

        Returns:
            MultiStandardComplianceReport.

        Raises:
            ConfigurationError: If no standards are enabled, a standard is
                unknown or uncatalogued, thresholds are out of order or a
                custom weight is invalid.
        """
        configuration = configuration or self.default_configuration()
        checkers = self._resolve(configuration)
        graph = GraphModel.coerce(graph, self._config.derive_stage_from_type)
        context = self._context(graph)

        details: Dict[str, ComplianceScoreDetail] = OrderedDict()
        for checker in checkers:
            details[checker.standard.value] = checker.evaluate(
                graph,
                context,
                thresholds=configuration.thresholds,
                custom_weights=configuration.custom_weights,
                include_recommendations=configuration.include_recommendations,
                include_node_level=configuration.include_node_level,
            )

        reports = list(details.values())
        aggregate = aggregate_scores(reports)
        logger.info(
            "Multi-standard compliance checked: workflow=%s standards=%s average=%d",
            workflow_id, list(details), aggregate.average_score,
        )
        return stamp(MultiStandardComplianceReport(
            workflow_id=workflow_id,
            report_date=report_date,
            standards=[c.standard for c in checkers],
            standard_reports=details,
            aggregate_score=aggregate,
            common_issues=find_common_issues(reports),
            action_items=rank_action_items(reports),
        ))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _context(self, graph: GraphModel) -> EvaluationContext:
        return EvaluationContext(
            reference_year=self._config.resolved_reference_year(), graph=graph,
        )

    def _resolve(self, configuration: ComplianceCheckConfiguration) -> List[StandardChecker]:
        if not configuration.enabled_standards:
            logger.error("Compliance check requested with no enabled standards")
            raise ConfigurationError(
                "At least one compliance standard must be enabled",
                engine_name="ComplianceChecker",
                config_key="enabled_standards",
            )
        validate_thresholds(configuration.thresholds)

        checkers: List[StandardChecker] = []
        seen = set()
        for raw in configuration.enabled_standards:
            checker = create_standard_checker(raw, self._pass_score)
            if checker.standard in seen:
                continue
            seen.add(checker.standard)
            checkers.append(checker)
        self._check_custom_weights(configuration.custom_weights, checkers)
        return checkers

    @staticmethod
    def _check_custom_weights(
        custom_weights: Optional[Mapping[str, float]],
        checkers: Iterable[StandardChecker],
    ) -> None:
        if not custom_weights:
            return
        known = {r.id for c in checkers for r in c.requirements}
        unknown = sorted(k for k in custom_weights if k not in known)
        if unknown:
            raise ConfigurationError(
                f"custom_weights reference unknown requirements: {', '.join(unknown)}",
                engine_name="ComplianceChecker",
                config_key="custom_weights",
            )
        negative = sorted(k for k, v in custom_weights.items() if v < 0)
        if negative:
            raise ConfigurationError(
                f"custom_weights must be non-negative: {', '.join(negative)}",
                engine_name="ComplianceChecker",
                config_key="custom_weights",
            )


# ---------------------------------------------------------------------------
# Cross-standard aggregation
# ---------------------------------------------------------------------------


def aggregate_scores(reports: Sequence[ComplianceScoreDetail]) -> AggregateScore:
    """Average, best and worst standard; ties go to the earlier standard."""
    best = reports[0]
    worst = reports[0]
    for report in reports[1:]:
        if report.overall_score > best.overall_score:
            best = report
        if report.overall_score < worst.overall_score:
            worst = report
    return AggregateScore(
        average_score=clamp_score(mean(r.overall_score for r in reports)),
        best_performing_standard=best.standard,
        worst_performing_standard=worst.standard,
    )


def find_common_issues(reports: Sequence[ComplianceScoreDetail]) -> List[CommonIssue]:
    """Return issue descriptions raised under two or more standards.

    Matching is by exact description string. Results are sorted by the
    number of sharing standards, then by first appearance.
    """
    collected: Dict[str, Dict[str, Any]] = OrderedDict()
    for report in reports:
        for group in report.node_issues:
            for issue in group.issues:
                entry = collected.setdefault(issue.description, {
                    "standards": [],
                    "occurrences": 0,
                    "severity": issue.severity,
                    "nodes": [],
                    "solution": issue.recommendation,
                })
                if report.standard not in entry["standards"]:
                    entry["standards"].append(report.standard)
                entry["occurrences"] += 1
                if SEVERITY_RANK[issue.severity] > SEVERITY_RANK[entry["severity"]]:
                    entry["severity"] = issue.severity
                if group.node_id not in entry["nodes"]:
                    entry["nodes"].append(group.node_id)

    common = [
        CommonIssue(
            description=description,
            standards=entry["standards"],
            occurrences=entry["occurrences"],
            severity=entry["severity"],
            affected_nodes=entry["nodes"],
            solution=entry["solution"],
        )
        for description, entry in collected.items()
        if len(entry["standards"]) >= 2
    ]
    common.sort(key=lambda c: -len(c.standards))
    return common


def rank_action_items(
    reports: Sequence[ComplianceScoreDetail],
    limit: int = MAX_ACTION_ITEMS,
) -> List[ActionItem]:
    """Score every improvement by priority and keep the top ``limit``.

    The sort is stable, so equal impacts keep standard then catalog order.
    """
    candidates = [
        (report.standard, improvement)
        for report in reports
        for improvement in report.improvements
    ]
    candidates.sort(key=lambda pair: -PRIORITY_IMPACT[pair[1].priority])
    return [
        ActionItem(
            priority=rank,
            standard=standard,
            requirement_id=improvement.requirement_id,
            area=improvement.area,
            action=improvement.action,
            priority_level=improvement.priority,
            effort=improvement.effort,
            estimated_impact=PRIORITY_IMPACT[improvement.priority],
        )
        for rank, (standard, improvement) in enumerate(candidates[:limit], start=1)
    ]


# ---------------------------------------------------------------------------
# Configuration factory
# ---------------------------------------------------------------------------


def create_compliance_configuration(
    standards: Optional[Sequence[StandardInput]] = None,
    config: Optional[CarbonFlowConfig] = None,
    **overrides: Any,
) -> ComplianceCheckConfiguration:
    """Build a validated ComplianceCheckConfiguration.

    Args:
        standards: Enabled standards. Defaults to ``config.default_standards``.
        config: Source of defaults. Uses global config if None.
        **overrides: Any other ComplianceCheckConfiguration field.

    Raises:
        ConfigurationError: If a standard is unknown or uncatalogued, the
            list is empty or the thresholds are out of order.
    """
    cfg = config or get_config()
    raw = list(standards) if standards is not None else cfg.default_standard_ids()
    if not raw:
        raise ConfigurationError(
            "At least one compliance standard must be enabled",
            engine_name="ComplianceChecker",
            config_key="enabled_standards",
        )
    enabled = []
    for standard in raw:
        standard_id = resolve_standard(standard)
        get_catalog(standard_id)
        if standard_id.value not in enabled:
            enabled.append(standard_id.value)

    values: Dict[str, Any] = {
        "enabled_standards": enabled,
        "thresholds": ComplianceThresholds(**cfg.compliance_thresholds()),
    }
    values.update(overrides)
    configuration = ComplianceCheckConfiguration.model_validate(values)
    validate_thresholds(configuration.thresholds)
    return configuration


__all__ = [
    "MAX_ACTION_ITEMS",
    "classify_level",
    "validate_thresholds",
    "StandardChecker",
    "create_standard_checker",
    "ComplianceChecker",
    "aggregate_scores",
    "find_common_issues",
    "rank_action_items",
    "create_compliance_configuration",
]
