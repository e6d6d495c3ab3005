# -*- coding: utf-8 -*-
"""
Risk Heuristics

Per-node scoring rules used by the risk engine. Each function is a pure
mapping from one node (and, for temporal rules, a reference year) to an
integer score in [0, 100], where higher means lower risk.

Two families:
    - Dimension heuristics (data quality, compliance, supply chain,
      methodology, temporal, geographic), averaged per dimension.
    - Node factor heuristics (data completeness, factor reliability,
      temporal relevance, geographic relevance, supplier credibility),
      weighted into each node's overall risk.

Free-text fields are matched against keyword tables that accept both the
Chinese host vocabulary and English equivalents.

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import re
from typing import List, Optional

from carbonflow.graph import extract_year
from carbonflow.models import CARBON_FACTOR, QUANTITY, Node, has_text, parse_positive
from carbonflow.risk.models import RiskFactors

# ---------------------------------------------------------------------------
# Keyword tables
# ---------------------------------------------------------------------------


def _keywords(*words: str) -> re.Pattern[str]:
    """Compile a keyword table; Latin keywords must start a word."""
    parts = [
        rf"(?<![a-z]){re.escape(w)}" if w.isascii() else re.escape(w)
        for w in words
    ]
    return re.compile("|".join(parts))


OFFICIAL_SOURCES = _keywords("官方", "政府", "official", "government")
ASSOCIATION_SOURCES = _keywords("行业协会", "industry association")
THIRD_PARTY_SOURCES = _keywords("第三方", "third party", "third-party")
IPCC_SOURCES = _keywords("ipcc")
NATIONAL_SOURCES = _keywords("国家", "national")
INDUSTRY_SOURCES = _keywords("行业", "industry")
STANDARD_FACTOR_NAMES = _keywords("iso", "ghg")

VERIFIED = frozenset({"已验证", "verified"})
VERIFICATION_FAILED = frozenset({"验证失败", "failed", "verification failed"})
AI_GENERATED = frozenset({"ai生成", "ai generated", "ai-generated"})
ESTIMATED = frozenset({"估算", "estimated", "estimate"})
MANUAL_ENTRY = frozenset({"手动填写", "manual", "manual entry"})
FILE_PARSED = frozenset({"文件解析", "file parsed", "file parsing"})
NO_RISK = frozenset({"无", "none"})

CHINA_REGIONS = _keywords("中国", "china")
ASIA_REGIONS = _keywords("亚洲", "asia")
GLOBAL_REGIONS = _keywords("全球", "global")
EUROPE_REGIONS = _keywords("欧洲", "europe")
DEVELOPING_REGIONS = _keywords("发展中国家", "developing countr")

_CN_CODE = re.compile(r"(?<![A-Za-z])CN(?![A-Za-z])")

METHOD_NOTES_MIN_LENGTH = 50
DEEP_TIER = 2
VERY_DEEP_TIER = 3


def _norm(value: Optional[str]) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def _mentions(value: Optional[str], keywords: re.Pattern[str]) -> bool:
    return keywords.search(_norm(value)) is not None


def _is_china(geography: Optional[str]) -> bool:
    return _mentions(geography, CHINA_REGIONS) or bool(
        geography and _CN_CODE.search(geography)
    )


def _clamp(score: int) -> int:
    return max(0, min(100, score))


def is_verified(node: Node) -> bool:
    return _norm(node.verification_status) in VERIFIED


def verification_failed(node: Node) -> bool:
    return _norm(node.verification_status) in VERIFICATION_FAILED


def supplier_tier(node: Node) -> Optional[int]:
    """Return the supplier tier, or None when no supplier or tier is known."""
    if node.supplier_info is None:
        return None
    return node.supplier_info.tier


def is_deep_tier(node: Node, depth: int = DEEP_TIER) -> bool:
    tier = supplier_tier(node)
    return tier is not None and tier > depth


# ---------------------------------------------------------------------------
# Dimension heuristics
# ---------------------------------------------------------------------------


def data_quality_score(node: Node) -> int:
    """Field presence, activity data source and verification status."""
    score = 100
    if not CARBON_FACTOR.is_present(node):
        score -= 25
    if not QUANTITY.is_present(node):
        score -= 20
    if not has_text(node.activity_unit):
        score -= 15
    if not has_text(node.carbon_factor_name):
        score -= 10
    if not has_text(node.emission_factor_geographical_representativeness):
        score -= 10
    if not has_text(node.emission_factor_temporal_representativeness):
        score -= 10
    if not has_text(node.supplementary_info):
        score -= 5
    if not has_text(node.carbon_factor_data_source):
        score -= 5

    source = _norm(node.activity_data_source)
    if source in AI_GENERATED:
        score -= 10
    elif source in ESTIMATED:
        score -= 15

    if is_verified(node):
        score += 10
    elif verification_failed(node):
        score -= 20
    return _clamp(score)


def compliance_score(node: Node) -> int:
    """EU factor acceptance, verification and source authority."""
    score = 50
    score += 30 if node.eu_compliant_factor is True else -20

    if is_verified(node):
        score += 15
    elif verification_failed(node):
        score -= 25

    if _mentions(node.carbon_factor_data_source, OFFICIAL_SOURCES):
        score += 20
    elif _mentions(node.carbon_factor_data_source, ASSOCIATION_SOURCES):
        score += 10

    if _mentions(node.carbon_factor_name, STANDARD_FACTOR_NAMES):
        score += 10
    return _clamp(score)


def supply_chain_score(node: Node) -> int:
    """Supplier tier, evidence and geography."""
    supplier = node.supplier_info
    if supplier is None:
        return 60

    score = 70
    if supplier.is_direct_supplier:
        score += 20
    else:
        tier = supplier.tier or 1
        if tier == 1:
            score += 15
        elif tier == 2:
            score += 5
        elif tier == 3:
            score -= 10
        else:
            score -= 20

    if node.has_evidence:
        score += 10
    if _norm(node.evidence_verification_status) in VERIFIED:
        score += 15

    geography = node.emission_factor_geographical_representativeness
    if _is_china(geography):
        score += 10
    elif _mentions(geography, DEVELOPING_REGIONS):
        score -= 10
    return _clamp(score)


def methodology_score(node: Node) -> int:
    """Factor source quality, documentation and activity score."""
    score = 60
    source = node.carbon_factor_data_source
    if _mentions(source, IPCC_SOURCES):
        score += 20
    elif _mentions(source, NATIONAL_SOURCES):
        score += 15
    elif _mentions(source, INDUSTRY_SOURCES):
        score += 10

    if len(node.text("supplementary_info")) > METHOD_NOTES_MIN_LENGTH:
        score += 10

    data_risk = _norm(node.data_risk)
    if data_risk and data_risk not in NO_RISK:
        score += 5

    activity = parse_positive(node.activity_score)
    if activity is not None:
        if activity > 4:
            score += 15
        elif activity < 3:
            score -= 10
    return _clamp(score)


def temporal_score(node: Node, reference_year: int) -> int:
    """Age of the emission factor relative to ``reference_year``."""
    temporal = node.emission_factor_temporal_representativeness
    if not has_text(temporal):
        return 30
    year = extract_year(temporal)
    if year is None:
        return 40
    age = reference_year - year
    if age <= 1:
        return 95
    if age <= 2:
        return 85
    if age <= 3:
        return 75
    if age <= 5:
        return 60
    return 40


def geographic_score(node: Node) -> int:
    """Regional match of the emission factor."""
    geography = node.emission_factor_geographical_representativeness
    if not has_text(geography):
        return 40
    if _is_china(geography):
        return 90
    if _mentions(geography, ASIA_REGIONS):
        return 75
    if _mentions(geography, GLOBAL_REGIONS):
        return 65
    if _mentions(geography, EUROPE_REGIONS):
        return 60
    return 50


# ---------------------------------------------------------------------------
# Node factor heuristics
# ---------------------------------------------------------------------------


def data_completeness(node: Node) -> int:
    score = 100
    if not CARBON_FACTOR.is_present(node):
        score -= 30
    if not QUANTITY.is_present(node):
        score -= 20
    if not has_text(node.activity_unit):
        score -= 15
    if not has_text(node.carbon_factor_name):
        score -= 15
    if not has_text(node.emission_factor_geographical_representativeness):
        score -= 10
    if not has_text(node.emission_factor_temporal_representativeness):
        score -= 10
    return _clamp(score)


def factor_reliability(node: Node) -> int:
    score = 50
    source = node.carbon_factor_data_source
    if _mentions(source, OFFICIAL_SOURCES):
        score += 30
    elif _mentions(source, ASSOCIATION_SOURCES):
        score += 20
    elif _mentions(source, THIRD_PARTY_SOURCES):
        score += 10

    activity_source = _norm(node.activity_data_source)
    if activity_source in MANUAL_ENTRY:
        score += 10
    elif activity_source in FILE_PARSED:
        score += 5

    if is_verified(node):
        score += 10
    return _clamp(score)


def temporal_relevance(node: Node, reference_year: int) -> int:
    temporal = node.emission_factor_temporal_representativeness
    if not has_text(temporal):
        return 30
    year = extract_year(temporal)
    if year is None:
        return 40
    age = reference_year - year
    if age <= 1:
        return 90
    if age <= 3:
        return 75
    if age <= 5:
        return 60
    return 40


def geographic_relevance(node: Node) -> int:
    geography = node.emission_factor_geographical_representativeness
    if not has_text(geography):
        return 40
    if _is_china(geography):
        return 90
    if _mentions(geography, ASIA_REGIONS):
        return 70
    if _mentions(geography, GLOBAL_REGIONS):
        return 60
    return 50


def supplier_credibility(node: Node) -> int:
    supplier = node.supplier_info
    if supplier is None:
        return 60
    score = 70
    if supplier.is_direct_supplier:
        score += 20
    if supplier.tier == 1:
        score += 10
    elif supplier.tier == 2:
        score += 5
    elif supplier.tier is not None and supplier.tier > VERY_DEEP_TIER:
        score -= 20
    return _clamp(score)


def node_risk_factors(node: Node, reference_year: int) -> RiskFactors:
    """Compute all five node factors."""
    return RiskFactors(
        data_completeness=data_completeness(node),
        factor_reliability=factor_reliability(node),
        temporal_relevance=temporal_relevance(node, reference_year),
        geographic_relevance=geographic_relevance(node),
        supplier_credibility=supplier_credibility(node),
    )


# ---------------------------------------------------------------------------
# Node findings
# ---------------------------------------------------------------------------

FLAG_INCOMPLETE = "Incomplete data"
FLAG_LOW_RELIABILITY = "Low emission factor reliability"
FLAG_POOR_TEMPORAL = "Poor temporal relevance"
FLAG_NOT_EU = "Not EU-compliant"
FLAG_DEEP_TIER = "Deep-tier supplier"
FLAG_VERIFICATION_FAILED = "Verification failed"
FLAG_NO_EVIDENCE = "Missing evidence files"


def critical_flags(node: Node, factors: RiskFactors) -> List[str]:
    """Return the critical flags raised for ``node``."""
    flags = []
    if factors.data_completeness < 60:
        flags.append(FLAG_INCOMPLETE)
    if factors.factor_reliability < 50:
        flags.append(FLAG_LOW_RELIABILITY)
    if factors.temporal_relevance < 40:
        flags.append(FLAG_POOR_TEMPORAL)
    if node.eu_compliant_factor is not True:
        flags.append(FLAG_NOT_EU)
    if is_deep_tier(node, VERY_DEEP_TIER):
        flags.append(FLAG_DEEP_TIER)
    if verification_failed(node):
        flags.append(FLAG_VERIFICATION_FAILED)
    if not node.has_evidence:
        flags.append(FLAG_NO_EVIDENCE)
    return flags


def node_recommendations(node: Node, factors: RiskFactors) -> List[str]:
    """Return remediation suggestions for ``node``."""
    recommendations = []
    if factors.data_completeness < 70:
        recommendations.append("Complete the activity data and emission factor information")
    if factors.factor_reliability < 60:
        recommendations.append("Choose a more authoritative emission factor source")
    if node.eu_compliant_factor is not True:
        recommendations.append("Switch to an EU-compliant emission factor")
    if not node.has_evidence:
        recommendations.append("Upload supporting evidence files")
    if not is_verified(node):
        recommendations.append("Arrange third-party verification")
    return recommendations


__all__ = [
    "data_quality_score",
    "compliance_score",
    "supply_chain_score",
    "methodology_score",
    "temporal_score",
    "geographic_score",
    "data_completeness",
    "factor_reliability",
    "temporal_relevance",
    "geographic_relevance",
    "supplier_credibility",
    "node_risk_factors",
    "critical_flags",
    "node_recommendations",
    "is_verified",
    "verification_failed",
    "supplier_tier",
    "is_deep_tier",
]
