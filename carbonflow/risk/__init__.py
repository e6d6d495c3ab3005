# -*- coding: utf-8 -*-
"""
Multi-dimensional risk assessment for lifecycle graphs.

:class:`RiskAssessmentEngine` scores six risk dimensions and five per-node
risk factors, then derives critical issues, recommendations and an
illustrative trend projection.
"""

from carbonflow.risk.engine import RiskAssessmentEngine, assess_risk
from carbonflow.risk.models import (
    DIMENSIONS,
    INDUSTRY_BENCHMARKS,
    NODE_FACTORS,
    CriticalIssue,
    DimensionRisk,
    IndustryBenchmark,
    IssueSeverity,
    NodeRisk,
    RiskAssessmentConfig,
    RiskDimensions,
    RiskFactors,
    RiskLevel,
    RiskMetadata,
    RiskRecommendation,
    RiskReport,
    RiskThresholds,
    RiskTrends,
    Urgency,
)

__all__ = [
    "RiskAssessmentEngine",
    "assess_risk",
    "DIMENSIONS",
    "NODE_FACTORS",
    "INDUSTRY_BENCHMARKS",
    "IndustryBenchmark",
    "RiskAssessmentConfig",
    "RiskThresholds",
    "RiskLevel",
    "IssueSeverity",
    "Urgency",
    "DimensionRisk",
    "RiskDimensions",
    "RiskFactors",
    "NodeRisk",
    "CriticalIssue",
    "RiskRecommendation",
    "RiskTrends",
    "RiskMetadata",
    "RiskReport",
]
