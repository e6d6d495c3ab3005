# -*- coding: utf-8 -*-
"""
Multi-standard compliance checking for lifecycle graphs.

Requirement catalogs are registered per standard in
:mod:`carbonflow.compliance.standards`; :class:`ComplianceChecker`
evaluates any selection of them and aggregates the results.
"""

from carbonflow.compliance.aliases import (
    get_standard_display_name,
    parse_scene_standards,
    parse_standards,
    standards_for_report_type,
)
from carbonflow.compliance.checker import (
    ComplianceChecker,
    StandardChecker,
    classify_level,
    create_compliance_configuration,
    create_standard_checker,
)
from carbonflow.compliance.models import (
    ActionItem,
    AggregateScore,
    CommonIssue,
    ComplianceCheckConfiguration,
    ComplianceLevel,
    ComplianceScoreDetail,
    ComplianceThresholds,
    MultiStandardComplianceReport,
    RequirementSeverity,
    StandardId,
)
from carbonflow.compliance.standards import get_catalog, registered_standards

__all__ = [
    "ComplianceChecker",
    "StandardChecker",
    "classify_level",
    "create_compliance_configuration",
    "create_standard_checker",
    "get_catalog",
    "registered_standards",
    "parse_standards",
    "parse_scene_standards",
    "standards_for_report_type",
    "get_standard_display_name",
    "StandardId",
    "ComplianceLevel",
    "RequirementSeverity",
    "ComplianceThresholds",
    "ComplianceCheckConfiguration",
    "ComplianceScoreDetail",
    "AggregateScore",
    "CommonIssue",
    "ActionItem",
    "MultiStandardComplianceReport",
]
