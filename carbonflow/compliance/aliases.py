# -*- coding: utf-8 -*-
"""
Compliance Standard Aliases

Maps free-text standard mentions and report types to :class:`StandardId`
values, and provides display names.

Latin aliases match case-insensitively on token boundaries, with any run
of whitespace (including none) accepted between words, so "GHG Protocol",
"ghgprotocol" and "ISO14067" all resolve. Chinese aliases match as plain
substrings.

Example:
    >>> from carbonflow.compliance.aliases import parse_standards
    >>> [s.value for s in parse_standards("按 GHG Protocol 和 ISO 14067 核算")]
    ['GHG_PROTOCOL', 'ISO_14067']

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Tuple, Union

from carbonflow.compliance.models import StandardId
from carbonflow.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Alias table
# ---------------------------------------------------------------------------

STANDARD_ALIASES: Dict[str, StandardId] = {
    # ISO
    "ISO 14067": StandardId.ISO_14067,
    "ISO 14040/14044": StandardId.ISO_14040_14044,
    "ISO 14040": StandardId.ISO_14040_14044,
    "ISO 14044": StandardId.ISO_14040_14044,
    "ISO 14064": StandardId.ISO_14064,
    "ISO 14001": StandardId.ISO_14001,
    "ISO 50001": StandardId.ISO_50001,
    # PAS
    "PAS 2050": StandardId.PAS_2050,
    "PAS 2060": StandardId.PAS_2060,
    # GHG Protocol
    "GHG Protocol": StandardId.GHG_PROTOCOL,
    "GHG协议": StandardId.GHG_PROTOCOL,
    # EU
    "EU Battery Regulation": StandardId.EU_BATTERY_REGULATION,
    "EU 2023/1542": StandardId.EU_BATTERY_REGULATION,
    "欧盟电池法": StandardId.EU_BATTERY_REGULATION,
    "CBAM": StandardId.CBAM,
    "欧盟碳边境调节机制": StandardId.CBAM,
    "EU Taxonomy": StandardId.EU_TAXONOMY,
    "欧盟分类法": StandardId.EU_TAXONOMY,
    "EU ETS": StandardId.EU_ETS,
    "欧盟排放交易体系": StandardId.EU_ETS,
    # China
    "GB/T 32150": StandardId.GB_T_32150,
    "GBT 32150": StandardId.GB_T_32150,
    "GB/T 32151": StandardId.GB_T_32151,
    "GBT 32151": StandardId.GB_T_32151,
    "China ETS": StandardId.CHINA_ETS,
    "中国碳排放交易体系": StandardId.CHINA_ETS,
    "CCER": StandardId.CCER,
    "中国核证自愿减排量": StandardId.CCER,
    # Other frameworks
    "TCFD": StandardId.TCFD,
    "气候相关财务信息披露": StandardId.TCFD,
    "SBTi": StandardId.SBTI,
    "科学碳目标倡议": StandardId.SBTI,
    "CDP": StandardId.CDP,
    "碳披露项目": StandardId.CDP,
    "GRI": StandardId.GRI,
    "全球报告倡议": StandardId.GRI,
}

REPORT_TYPE_STANDARDS: Dict[str, Tuple[StandardId, ...]] = {
    "ghg_protocol": (StandardId.GHG_PROTOCOL,),
    "iso_14064": (StandardId.ISO_14064,),
    "pas_2050": (StandardId.PAS_2050,),
    # Product category rules follow ISO 14067.
    "pcr": (StandardId.ISO_14067,),
    "other": (),
}

STANDARD_DISPLAY_NAMES: Dict[StandardId, str] = {
    StandardId.ISO_14067: "ISO 14067 产品碳足迹标准",
    StandardId.EU_BATTERY_REGULATION: "欧盟电池法 (EU 2023/1542)",
    StandardId.ISO_14040_14044: "ISO 14040/14044 生命周期评估标准",
    StandardId.ISO_14064: "ISO 14064 温室气体核算标准",
    StandardId.ISO_14001: "ISO 14001 环境管理体系",
    StandardId.ISO_50001: "ISO 50001 能源管理体系",
    StandardId.PAS_2050: "PAS 2050 产品碳足迹规范",
    StandardId.PAS_2060: "PAS 2060 碳中和规范",
    StandardId.GHG_PROTOCOL: "温室气体核算体系议定书",
    StandardId.CBAM: "欧盟碳边境调节机制",
    StandardId.EU_TAXONOMY: "欧盟分类法",
    StandardId.EU_ETS: "欧盟排放交易体系",
    StandardId.TCFD: "气候相关财务信息披露工作组",
    StandardId.CSRD: "企业可持续发展报告指令",
    StandardId.SBTI: "科学碳目标倡议",
    StandardId.CDP: "碳披露项目",
    StandardId.GRI: "全球报告倡议",
    StandardId.SASB: "可持续发展会计准则委员会",
    StandardId.IFRS_S1_S2: "IFRS可持续发展披露标准",
    StandardId.CHINA_ETS: "中国碳排放交易体系",
    StandardId.CHINA_ENVIRONMENTAL_LAW: "中国环境保护法",
    StandardId.CHINA_ENERGY_LAW: "中国节能法",
    StandardId.CHINA_CLEANER_PRODUCTION: "中国清洁生产促进法",
    StandardId.CCER: "中国核证自愿减排量",
    StandardId.GB_T_32150: "GB/T 32150 工业企业温室气体排放核算通则",
    StandardId.GB_T_32151: "GB/T 32151 产品碳足迹核算要求",
    StandardId.SBTI_NET_ZERO: "科学碳目标净零标准",
    StandardId.RACE_TO_ZERO: "奔向零排放倡议",
    StandardId.UNGC: "联合国全球契约",
    StandardId.PARIS_AGREEMENT: "巴黎协定",
    StandardId.KYOTO_PROTOCOL: "京都议定书",
}

if set(STANDARD_DISPLAY_NAMES) != set(StandardId):
    raise ConfigurationError(
        "STANDARD_DISPLAY_NAMES must name every standard",
        config_key="STANDARD_DISPLAY_NAMES",
    )


def _compile(alias: str) -> re.Pattern[str]:
    words = [re.escape(w) for w in alias.split()]
    body = r"\s*".join(words)
    if alias.isascii():
        body = rf"(?<![a-z0-9]){body}(?![a-z0-9])"
    return re.compile(body, re.IGNORECASE)


# Longest aliases first so "ISO 14040/14044" wins over "ISO 14040".
_PATTERNS: List[Tuple[re.Pattern[str], StandardId]] = [
    (_compile(alias), standard)
    for alias, standard in sorted(
        STANDARD_ALIASES.items(), key=lambda item: -len(item[0]),
    )
]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_standards(text: Optional[str]) -> List[StandardId]:
    """Return the standards mentioned in ``text``, in order of first mention.

    Args:
        text: Free text such as a scene description or a standard field.

    Returns:
        Deduplicated StandardIds. Empty when nothing matches.
    """
    if not text:
        return []
    first_seen: Dict[StandardId, int] = {}
    for pattern, standard in _PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        position = match.start()
        if standard not in first_seen or position < first_seen[standard]:
            first_seen[standard] = position
    standards = sorted(first_seen, key=lambda s: first_seen[s])
    logger.debug("Parsed standards from text: %s", [s.value for s in standards])
    return standards


def standards_for_report_type(report_type: Optional[str]) -> List[StandardId]:
    """Return the standards implied by a report type (empty if unknown)."""
    if not report_type:
        return []
    return list(REPORT_TYPE_STANDARDS.get(report_type.strip().lower(), ()))


def parse_scene_standards(
    standard_text: Optional[str] = None,
    report_type: Optional[str] = None,
) -> List[StandardId]:
    """Combine free-text and report-type standards without duplicates."""
    combined: List[StandardId] = []
    for standard in parse_standards(standard_text) + standards_for_report_type(report_type):
        if standard not in combined:
            combined.append(standard)
    return combined


def get_standard_display_name(standard: Union[StandardId, str]) -> str:
    """Return the display name of ``standard``; unknown ids are echoed back."""
    try:
        standard_id = StandardId(standard)
    except ValueError:
        return str(standard)
    return STANDARD_DISPLAY_NAMES[standard_id]


__all__ = [
    "STANDARD_ALIASES",
    "REPORT_TYPE_STANDARDS",
    "STANDARD_DISPLAY_NAMES",
    "parse_standards",
    "standards_for_report_type",
    "parse_scene_standards",
    "get_standard_display_name",
]
