# -*- coding: utf-8 -*-
"""
Compliance Standard Registry

Explicit registry mapping each supported :class:`StandardId` to its
requirement catalog. Catalogs are built once at import time and are
immutable.

Registered catalogs:
    ISO_14067, GHG_PROTOCOL, CBAM, CHINA_ETS, GB_T_32150,
    EU_BATTERY_REGULATION

Every other StandardId is recognised by the alias parser but has no
catalog; asking the registry for one raises ConfigurationError.

Example:
    >>> from carbonflow.compliance.standards import get_catalog
    >>> [r.id for r in get_catalog("CBAM")][:2]
    ['cbam_goods_classification', 'cbam_carbon_content']

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple, Union

from carbonflow.compliance.models import Effort, RequirementSeverity, StandardId
from carbonflow.compliance.requirements import (
    CHINA_GEOGRAPHY,
    HAS_ACTIVITY_DATA,
    HAS_EMBEDDED_EMISSIONS,
    HAS_EMISSION_FACTOR,
    HAS_END_OF_LIFE_TREATMENT,
    HAS_EVIDENCE,
    HAS_FACTOR_PROVENANCE,
    HAS_GEOGRAPHY,
    HAS_METHOD_NOTES,
    HAS_TEMPORAL_YEAR,
    HAS_VERIFIED_EVIDENCE,
    IS_EU_COMPLIANT,
    STAGE_DATA_COMPLETE,
    TEMPORAL_WITHIN_5_YEARS,
    TEMPORAL_WITHIN_10_YEARS,
    GraphRule,
    MassBalanceRule,
    NodeRule,
    Requirement,
    StageCoverageRule,
    declares_final_product,
)
from carbonflow.exceptions import ConfigurationError
from carbonflow.models import LifecycleStage

logger = logging.getLogger(__name__)

Catalog = Tuple[Requirement, ...]

CRITICAL = RequirementSeverity.CRITICAL
MAJOR = RequirementSeverity.MAJOR
MINOR = RequirementSeverity.MINOR

ALL_STAGES = tuple(LifecycleStage)
_RAW = LifecycleStage.RAW_MATERIAL
_MFG = LifecycleStage.MANUFACTURING
_DIST = LifecycleStage.DISTRIBUTION
_USE = LifecycleStage.USAGE
_EOL = LifecycleStage.END_OF_LIFE

_FINAL_PRODUCT = GraphRule(
    declares_final_product,
    satisfied="Final product declared",
    gap="No final product node declared",
)


# ---------------------------------------------------------------------------
# ISO 14067
# ---------------------------------------------------------------------------

ISO_14067_CATALOG: Catalog = (
    Requirement(
        id="iso14067_system_boundary",
        name="System boundary definition",
        description="The product system covers every lifecycle stage from cradle to grave",
        category="System boundary",
        severity=CRITICAL, weight=0.15, mandatory=True, effort=Effort.HIGH,
        recommendation="Model every lifecycle stage from raw material acquisition to end of life",
        rule=StageCoverageRule(ALL_STAGES),
    ),
    Requirement(
        id="iso14067_functional_unit",
        name="Functional unit",
        description="A final product and its reference flow are declared",
        category="Goal and scope",
        severity=CRITICAL, weight=0.12, mandatory=True, effort=Effort.LOW,
        recommendation="Declare the final product and its reference flow",
        rule=_FINAL_PRODUCT,
    ),
    Requirement(
        id="iso14067_assessment_method",
        name="Quantification method",
        description="Every unit process is quantified with an emission factor",
        category="Methodology",
        severity=CRITICAL, weight=0.15, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Assign an emission factor to every node",
        rule=NodeRule(HAS_EMISSION_FACTOR),
    ),
    Requirement(
        id="iso14067_data_collection",
        name="Data collection",
        description="Activity data is recorded with quantity and unit",
        category="Data quality",
        severity=CRITICAL, weight=0.15, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Collect activity quantities and units for every node",
        rule=NodeRule(HAS_ACTIVITY_DATA),
    ),
    Requirement(
        id="iso14067_primary_data_quality",
        name="Primary data quality",
        description="Activity data is backed by primary evidence",
        category="Data quality",
        severity=CRITICAL, weight=0.10, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Attach primary data evidence such as invoices and meter readings",
        rule=NodeRule(HAS_EVIDENCE),
    ),
    Requirement(
        id="iso14067_key_emission_sources",
        name="Key emission sources",
        description="Manufacturing energy and distribution transport data are complete",
        category="Methodology",
        severity=MAJOR, weight=0.08, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Complete energy data for manufacturing and transport data for distribution",
        rule=NodeRule(STAGE_DATA_COMPLETE, stages=(_MFG, _DIST)),
    ),
    Requirement(
        id="iso14067_cutoff_rules",
        name="Cut-off criteria",
        description="Product outputs balance product inputs",
        category="System boundary",
        severity=MAJOR, weight=0.08, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Account for every material input and output flow",
        rule=MassBalanceRule(),
    ),
    Requirement(
        id="iso14067_background_data_use",
        name="Secondary data use",
        description="Secondary emission factors name their dataset and source",
        category="Data quality",
        severity=MAJOR, weight=0.07, mandatory=True, effort=Effort.LOW,
        recommendation="Document the database and dataset behind each emission factor",
        rule=NodeRule(HAS_FACTOR_PROVENANCE),
    ),
    Requirement(
        id="iso14067_temporal_representativeness",
        name="Temporal representativeness",
        description="Emission factors are no older than 10 years",
        category="Data quality",
        severity=MAJOR, weight=0.06, mandatory=True, effort=Effort.LOW,
        recommendation="Replace emission factors older than 10 years",
        rule=NodeRule(TEMPORAL_WITHIN_10_YEARS),
    ),
    Requirement(
        id="iso14067_geographical_representativeness",
        name="Geographical representativeness",
        description="The region each emission factor represents is declared",
        category="Data quality",
        severity=MAJOR, weight=0.06, mandatory=True, effort=Effort.LOW,
        recommendation="Declare the geographical scope of each emission factor",
        rule=NodeRule(HAS_GEOGRAPHY),
    ),
    Requirement(
        id="iso14067_allocation_recycling",
        name="Allocation and recycling",
        description="End-of-life nodes describe disposal or recycling",
        category="Methodology",
        severity=MAJOR, weight=0.10, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Describe the end-of-life treatment and recycling rate",
        rule=NodeRule(HAS_END_OF_LIFE_TREATMENT, stages=(_EOL,)),
    ),
    Requirement(
        id="iso14067_verification",
        name="Critical review",
        description="Results are supported by verified evidence",
        category="Verification",
        severity=MAJOR, weight=0.05, mandatory=False, effort=Effort.HIGH,
        recommendation="Arrange third-party review of the supporting evidence",
        rule=NodeRule(HAS_VERIFIED_EVIDENCE),
    ),
)


# ---------------------------------------------------------------------------
# GHG Protocol
# ---------------------------------------------------------------------------

GHG_PROTOCOL_CATALOG: Catalog = (
    Requirement(
        id="ghg_scope1_identification",
        name="Scope 1 emissions",
        description="Direct emission sources in manufacturing are quantified",
        category="Emission scopes",
        severity=CRITICAL, weight=0.30, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Record energy consumption and energy type for every manufacturing node",
        rule=NodeRule(STAGE_DATA_COMPLETE, stages=(_MFG,)),
    ),
    Requirement(
        id="ghg_scope2_identification",
        name="Scope 2 emissions",
        description="Purchased energy in manufacturing carries an emission factor",
        category="Emission scopes",
        severity=CRITICAL, weight=0.25, mandatory=True, effort=Effort.LOW,
        recommendation="Apply grid or supplier-specific factors to purchased energy",
        rule=NodeRule(HAS_EMISSION_FACTOR, stages=(_MFG,)),
    ),
    Requirement(
        id="ghg_scope3_identification",
        name="Scope 3 emissions",
        description="Upstream and downstream value chain stages are modelled",
        category="Emission scopes",
        severity=MAJOR, weight=0.20, mandatory=False, effort=Effort.HIGH,
        recommendation="Extend the model to upstream materials, transport, use and end of life",
        rule=StageCoverageRule((_RAW, _DIST, _USE, _EOL)),
    ),
    Requirement(
        id="ghg_base_year",
        name="Base year",
        description="Every emission factor declares its reference year",
        category="Inventory management",
        severity=MAJOR, weight=0.15, mandatory=True, effort=Effort.LOW,
        recommendation="Declare the reference year of each emission factor",
        rule=NodeRule(HAS_TEMPORAL_YEAR),
    ),
    Requirement(
        id="ghg_data_traceability",
        name="Data traceability",
        description="Inventory data is backed by evidence",
        category="Inventory management",
        severity=MINOR, weight=0.10, mandatory=False, effort=Effort.MEDIUM,
        recommendation="Attach supporting evidence to inventory data",
        rule=NodeRule(HAS_EVIDENCE),
    ),
)


# ---------------------------------------------------------------------------
# CBAM
# ---------------------------------------------------------------------------

CBAM_CATALOG: Catalog = (
    Requirement(
        id="cbam_goods_classification",
        name="Goods classification",
        description="The imported good is declared as a final product",
        category="Declaration",
        severity=CRITICAL, weight=0.20, mandatory=True, effort=Effort.LOW,
        recommendation="Declare the final product and its CN classification",
        rule=_FINAL_PRODUCT,
    ),
    Requirement(
        id="cbam_carbon_content",
        name="Embedded emissions",
        description="Embedded emissions can be calculated for every node",
        category="Emissions",
        severity=CRITICAL, weight=0.30, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Provide emission factors and quantities for every node",
        rule=NodeRule(HAS_EMBEDDED_EMISSIONS),
    ),
    Requirement(
        id="cbam_production_route",
        name="Production route",
        description="The production process energy data is complete",
        category="Emissions",
        severity=MAJOR, weight=0.25, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Document energy consumption and energy type of the production route",
        rule=NodeRule(STAGE_DATA_COMPLETE, stages=(_MFG,)),
    ),
    Requirement(
        id="cbam_monitoring_reporting",
        name="Monitoring and reporting",
        description="Emission factors are accepted under EU rules",
        category="Reporting",
        severity=MAJOR, weight=0.15, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Use EU-recognised emission factors in the CBAM declaration",
        rule=NodeRule(IS_EU_COMPLIANT),
    ),
    Requirement(
        id="cbam_verification",
        name="Third-party verification",
        description="Embedded emissions are verified by an accredited verifier",
        category="Verification",
        severity=MAJOR, weight=0.10, mandatory=True, effort=Effort.HIGH,
        recommendation="Obtain verification from an accredited verifier",
        rule=NodeRule(HAS_VERIFIED_EVIDENCE),
    ),
)


# ---------------------------------------------------------------------------
# China ETS
# ---------------------------------------------------------------------------

CHINA_ETS_CATALOG: Catalog = (
    Requirement(
        id="china_ets_emission_factors",
        name="National emission factors",
        description="Emission factors are representative of China",
        category="Emissions",
        severity=CRITICAL, weight=0.30, mandatory=True, effort=Effort.LOW,
        recommendation="Use national default emission factors published for China",
        rule=NodeRule(CHINA_GEOGRAPHY),
    ),
    Requirement(
        id="china_ets_monitoring_plan",
        name="Monitoring plan",
        description="Manufacturing energy consumption is monitored",
        category="Monitoring",
        severity=CRITICAL, weight=0.25, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Record metered energy consumption for every manufacturing node",
        rule=NodeRule(STAGE_DATA_COMPLETE, stages=(_MFG,)),
    ),
    Requirement(
        id="china_ets_verification_report",
        name="Verification report",
        description="Emission data is verified",
        category="Verification",
        severity=CRITICAL, weight=0.25, mandatory=True, effort=Effort.HIGH,
        recommendation="Obtain a verification report for the emission data",
        rule=NodeRule(HAS_VERIFIED_EVIDENCE),
    ),
    Requirement(
        id="china_ets_data_quality",
        name="Data quality management",
        description="Emission factor sources are documented",
        category="Data quality",
        severity=MAJOR, weight=0.20, mandatory=True, effort=Effort.LOW,
        recommendation="Document the source of every emission factor",
        rule=NodeRule(HAS_FACTOR_PROVENANCE),
    ),
)


# ---------------------------------------------------------------------------
# GB/T 32150
# ---------------------------------------------------------------------------

GB_T_32150_CATALOG: Catalog = (
    Requirement(
        id="gbt32150_organizational_boundary",
        name="Organizational boundary",
        description="Material acquisition and production are inside the boundary",
        category="Boundary",
        severity=CRITICAL, weight=0.20, mandatory=True, effort=Effort.HIGH,
        recommendation="Model raw material acquisition and production stages",
        rule=StageCoverageRule((_RAW, _MFG)),
    ),
    Requirement(
        id="gbt32150_emission_sources",
        name="Emission source identification",
        description="Every emission source has an emission factor",
        category="Emissions",
        severity=CRITICAL, weight=0.25, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Assign an emission factor to every emission source",
        rule=NodeRule(HAS_EMISSION_FACTOR),
    ),
    Requirement(
        id="gbt32150_activity_data",
        name="Activity data",
        description="Activity data is recorded with quantity and unit",
        category="Data quality",
        severity=CRITICAL, weight=0.25, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Collect activity quantities and units for every emission source",
        rule=NodeRule(HAS_ACTIVITY_DATA),
    ),
    Requirement(
        id="gbt32150_emission_factors",
        name="Emission factor vintage",
        description="Emission factors are no older than 5 years",
        category="Data quality",
        severity=MAJOR, weight=0.15, mandatory=True, effort=Effort.LOW,
        recommendation="Update emission factors to datasets from the last 5 years",
        rule=NodeRule(TEMPORAL_WITHIN_5_YEARS),
    ),
    Requirement(
        id="gbt32150_calculation_method",
        name="Calculation method",
        description="The calculation method is documented",
        category="Methodology",
        severity=MAJOR, weight=0.15, mandatory=True, effort=Effort.LOW,
        recommendation="Describe the calculation method for each emission source",
        rule=NodeRule(HAS_METHOD_NOTES),
    ),
)


# ---------------------------------------------------------------------------
# EU Battery Regulation
# ---------------------------------------------------------------------------

EU_BATTERY_CATALOG: Catalog = (
    Requirement(
        id="eu_battery_system_boundary",
        name="System boundary",
        description="Raw material, production, distribution and end of life are modelled",
        category="System boundary",
        severity=CRITICAL, weight=0.12, mandatory=True, effort=Effort.HIGH,
        recommendation="Model every stage required by the battery carbon footprint rules",
        rule=StageCoverageRule((_RAW, _MFG, _DIST, _EOL)),
    ),
    Requirement(
        id="eu_battery_functional_unit",
        name="Functional unit",
        description="The battery is declared as the final product",
        category="Goal and scope",
        severity=CRITICAL, weight=0.10, mandatory=True, effort=Effort.LOW,
        recommendation="Declare the battery model as the final product",
        rule=_FINAL_PRODUCT,
    ),
    Requirement(
        id="eu_battery_inventory_data",
        name="Inventory data",
        description="Activity data is recorded with quantity and unit",
        category="Data quality",
        severity=CRITICAL, weight=0.12, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Collect inventory quantities and units for every node",
        rule=NodeRule(HAS_ACTIVITY_DATA),
    ),
    Requirement(
        id="eu_battery_primary_data_quality",
        name="Primary data",
        description="Company-specific data is backed by evidence",
        category="Data quality",
        severity=CRITICAL, weight=0.15, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Attach company-specific evidence for the inventory data",
        rule=NodeRule(HAS_EVIDENCE),
    ),
    Requirement(
        id="eu_battery_assessment_method",
        name="Assessment method",
        description="Emission factors are accepted under EU rules",
        category="Methodology",
        severity=CRITICAL, weight=0.15, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Use EU-recognised emission factors",
        rule=NodeRule(IS_EU_COMPLIANT),
    ),
    Requirement(
        id="eu_battery_key_emission_sources",
        name="Key emission sources",
        description="Production energy and distribution transport data are complete",
        category="Methodology",
        severity=MAJOR, weight=0.08, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Complete energy data for production and transport data for distribution",
        rule=NodeRule(STAGE_DATA_COMPLETE, stages=(_MFG, _DIST)),
    ),
    Requirement(
        id="eu_battery_data_vintage",
        name="Data vintage",
        description="Emission factors are no older than 5 years",
        category="Data quality",
        severity=MAJOR, weight=0.06, mandatory=True, effort=Effort.LOW,
        recommendation="Update emission factors to datasets from the last 5 years",
        rule=NodeRule(TEMPORAL_WITHIN_5_YEARS),
    ),
    Requirement(
        id="eu_battery_allocation_recycling",
        name="Recycled content and end of life",
        description="End-of-life nodes describe disposal or recycling",
        category="Methodology",
        severity=MAJOR, weight=0.10, mandatory=True, effort=Effort.MEDIUM,
        recommendation="Describe the end-of-life treatment and recycling rate",
        rule=NodeRule(HAS_END_OF_LIFE_TREATMENT, stages=(_EOL,)),
    ),
    Requirement(
        id="eu_battery_verification",
        name="Third-party verification",
        description="The carbon footprint declaration is verified",
        category="Verification",
        severity=CRITICAL, weight=0.12, mandatory=True, effort=Effort.HIGH,
        recommendation="Have the declaration verified by a notified body",
        rule=NodeRule(HAS_VERIFIED_EVIDENCE),
    ),
)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

STANDARD_REGISTRY: Dict[StandardId, Catalog] = {
    StandardId.ISO_14067: ISO_14067_CATALOG,
    StandardId.GHG_PROTOCOL: GHG_PROTOCOL_CATALOG,
    StandardId.CBAM: CBAM_CATALOG,
    StandardId.CHINA_ETS: CHINA_ETS_CATALOG,
    StandardId.GB_T_32150: GB_T_32150_CATALOG,
    StandardId.EU_BATTERY_REGULATION: EU_BATTERY_CATALOG,
}

for _standard, _catalog in STANDARD_REGISTRY.items():
    _ids = [r.id for r in _catalog]
    if len(_ids) != len(set(_ids)):
        raise ConfigurationError(
            f"duplicate requirement id in {_standard.value}",
            config_key="STANDARD_REGISTRY",
        )
    if not all(r.weight > 0 for r in _catalog):
        raise ConfigurationError(
            f"non-positive requirement weight in {_standard.value}",
            config_key="STANDARD_REGISTRY",
        )


def resolve_standard(standard: Union[StandardId, str]) -> StandardId:
    """Return the StandardId for ``standard``.

    Raises:
        ConfigurationError: If the id is not a known standard.
    """
    if isinstance(standard, StandardId):
        return standard
    try:
        return StandardId(str(standard).strip())
    except ValueError:
        logger.error("Unknown compliance standard requested: %r", standard)
        raise ConfigurationError(
            f"Unknown compliance standard: {standard!r}",
            engine_name="ComplianceChecker",
            config_key="enabled_standards",
            context={"standard": str(standard)},
        ) from None


def get_catalog(standard: Union[StandardId, str]) -> Catalog:
    """Return the requirement catalog registered for ``standard``.

    Raises:
        ConfigurationError: If the id is unknown or has no catalog.
    """
    standard_id = resolve_standard(standard)
    catalog = STANDARD_REGISTRY.get(standard_id)
    if catalog is None:
        logger.error("No requirement catalog registered for %s", standard_id.value)
        raise ConfigurationError(
            f"No requirement catalog registered for standard {standard_id.value}",
            engine_name="ComplianceChecker",
            config_key="enabled_standards",
            context={
                "standard": standard_id.value,
                "registered": [s.value for s in STANDARD_REGISTRY],
            },
        )
    return catalog


def registered_standards() -> List[StandardId]:
    """Return the standards that have a requirement catalog, in registry order."""
    return list(STANDARD_REGISTRY)


__all__ = [
    "Catalog",
    "STANDARD_REGISTRY",
    "ISO_14067_CATALOG",
    "GHG_PROTOCOL_CATALOG",
    "CBAM_CATALOG",
    "CHINA_ETS_CATALOG",
    "GB_T_32150_CATALOG",
    "EU_BATTERY_CATALOG",
    "resolve_standard",
    "get_catalog",
    "registered_standards",
]
