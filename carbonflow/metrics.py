# -*- coding: utf-8 -*-
"""
Prometheus Metrics - CarbonFlow Scoring

Seven Prometheus metrics for monitoring the scoring service. Metrics are
recorded by the service facade only; scorers and engines stay pure.

All metric names use the ``cf_`` prefix (CarbonFlow) for consistent
identification in Prometheus queries, dashboards and alerting rules.

Metrics:
    1. cf_analyses_total                (Counter,   labels: report)
    2. cf_credibility_score             (Histogram, buckets: score deciles)
    3. cf_compliance_checks_total       (Counter,   labels: standard, level)
    4. cf_risk_assessments_total        (Counter,   labels: level)
    5. cf_processing_duration_seconds   (Histogram, labels: operation)
    6. cf_graph_defects_total           (Counter,   labels: reason)
    7. cf_processing_errors_total       (Counter,   labels: error_type)

Label Values Reference:
    report:
        analysis, credibility, compliance, risk, footprint.
    standard:
        ISO_14067, GHG_PROTOCOL, CBAM, CHINA_ETS, GB_T_32150,
        EU_BATTERY_REGULATION.
    level:
        full_compliance, substantial_compliance, partial_compliance,
        non_compliance (compliance); CRITICAL, HIGH, MEDIUM, LOW (risk).
    operation:
        analyze, score_credibility, check_compliance, assess_risk,
        calculate_footprint.
    reason:
        missing_id, duplicate_id, invalid_payload.

Example:
    >>> from carbonflow.metrics import record_analysis, observe_duration
    >>> record_analysis("credibility")
    >>> observe_duration("score_credibility", 0.012)

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

# 1. Reports produced by report kind
cf_analyses_total = Counter(
    "cf_analyses_total",
    "Total scoring reports produced by the CarbonFlow service",
    labelnames=["report"],
)

# 2. Distribution of credibility scores
cf_credibility_score = Histogram(
    "cf_credibility_score",
    "Distribution of credibility scores (0-100)",
    buckets=(10, 20, 30, 40, 50, 60, 70, 80, 90, 100),
)

# 3. Compliance evaluations by standard and resulting level
cf_compliance_checks_total = Counter(
    "cf_compliance_checks_total",
    "Total per-standard compliance evaluations",
    labelnames=["standard", "level"],
)

# 4. Risk assessments by overall risk level
cf_risk_assessments_total = Counter(
    "cf_risk_assessments_total",
    "Total risk assessments by overall risk level",
    labelnames=["level"],
)

# 5. Processing duration by operation
cf_processing_duration_seconds = Histogram(
    "cf_processing_duration_seconds",
    "Duration of CarbonFlow scoring operations in seconds",
    labelnames=["operation"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5),
)

# 6. Defective node records by reason
cf_graph_defects_total = Counter(
    "cf_graph_defects_total",
    "Total defective node records flagged while building graphs",
    labelnames=["reason"],
)

# 7. Processing errors by exception type
cf_processing_errors_total = Counter(
    "cf_processing_errors_total",
    "Total errors raised by CarbonFlow operations",
    labelnames=["error_type"],
)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def record_analysis(report: str) -> None:
    """Record a produced report.

    Args:
        report: Report kind (analysis, credibility, compliance, risk,
            footprint).
    """
    cf_analyses_total.labels(report=report).inc()


def observe_credibility(score: int) -> None:
    """Record a credibility score in the score histogram."""
    cf_credibility_score.observe(score)


def record_compliance_check(standard: str, level: str) -> None:
    """Record one per-standard compliance evaluation.

    Args:
        standard: Standard identifier value.
        level: Compliance level value.
    """
    cf_compliance_checks_total.labels(standard=standard, level=level).inc()


def record_risk_assessment(level: str) -> None:
    """Record a risk assessment by its overall risk level."""
    cf_risk_assessments_total.labels(level=level).inc()


def observe_duration(operation: str, seconds: float) -> None:
    """Record the duration of a scoring operation.

    Args:
        operation: Operation name (analyze, score_credibility, ...).
        seconds: Wall-clock duration in seconds.
    """
    cf_processing_duration_seconds.labels(operation=operation).observe(seconds)


def record_graph_defect(reason: str) -> None:
    """Record a defective node record flagged by the graph builder."""
    cf_graph_defects_total.labels(reason=reason).inc()


def record_error(error_type: str) -> None:
    """Record an error raised by a scoring operation."""
    cf_processing_errors_total.labels(error_type=error_type).inc()


__all__ = [
    "cf_analyses_total",
    "cf_credibility_score",
    "cf_compliance_checks_total",
    "cf_risk_assessments_total",
    "cf_processing_duration_seconds",
    "cf_graph_defects_total",
    "cf_processing_errors_total",
    "record_analysis",
    "observe_credibility",
    "record_compliance_check",
    "record_risk_assessment",
    "observe_duration",
    "record_graph_defect",
    "record_error",
]
