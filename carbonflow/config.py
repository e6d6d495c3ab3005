# -*- coding: utf-8 -*-
"""
CarbonFlow Scoring Configuration

Centralized configuration for the lifecycle-graph scoring core covering:
- Credibility aggregation weights (lifecycle, node, mass balance,
  traceability, validation)
- Model completeness weighting (node fields vs. stage coverage)
- Compliance level thresholds and requirement pass score
- Default enabled compliance standards
- Risk dimension weights and per-node risk factor weights
- Risk level thresholds and placeholder label markers
- Stage derivation and temporal reference year
- Logging

All settings can be overridden via environment variables with the
``CF_`` prefix (e.g. ``CF_RISK_HIGH_THRESHOLD``).

Example:
    >>> from carbonflow.config import get_config
    >>> cfg = get_config()
    >>> print(cfg.credibility_traceability_weight, cfg.risk_high_threshold)

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
import math
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from carbonflow.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Environment variable prefix
# ---------------------------------------------------------------------------

_ENV_PREFIX = "CF_"

WEIGHT_SUM_TOLERANCE = 1e-9


def check_weight_sum(
    weights: Mapping[str, float],
    name: str,
    engine_name: Optional[str] = None,
) -> None:
    """Raise ConfigurationError unless ``weights`` sum to 1.0.

    Args:
        weights: Mapping of weight name to value.
        name: Name of the weight vector, used in the error message.
        engine_name: Engine reporting the error.

    Raises:
        ConfigurationError: If any weight is negative or the sum is off
            by more than ``WEIGHT_SUM_TOLERANCE``.
    """
    negative = sorted(k for k, v in weights.items() if v < 0)
    if negative:
        raise ConfigurationError(
            f"{name} contains negative weights: {', '.join(negative)}",
            engine_name=engine_name,
            config_key=name,
        )
    total = math.fsum(weights.values())
    if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
        raise ConfigurationError(
            f"{name} must sum to 1.0 (got {total:.6f})",
            engine_name=engine_name,
            context={"weights": dict(weights)},
            config_key=name,
        )


def check_ascending_thresholds(
    thresholds: Mapping[str, float],
    name: str,
    engine_name: Optional[str] = None,
) -> None:
    """Raise ConfigurationError unless thresholds ascend strictly within [0, 100].

    Args:
        thresholds: Ordered mapping of cut point name to value.
        name: Name of the threshold set, used in the error message.
        engine_name: Engine reporting the error.

    Raises:
        ConfigurationError: If a value is out of range or out of order.
    """
    values = list(thresholds.values())
    if any(v < 0 or v > 100 for v in values):
        raise ConfigurationError(
            f"{name} must lie within [0, 100]",
            engine_name=engine_name,
            context={"thresholds": dict(thresholds)},
            config_key=name,
        )
    if any(a >= b for a, b in zip(values, values[1:])):
        raise ConfigurationError(
            f"{name} must be strictly ascending "
            f"({' < '.join(thresholds.keys())})",
            engine_name=engine_name,
            context={"thresholds": dict(thresholds)},
            config_key=name,
        )


# ---------------------------------------------------------------------------
# CarbonFlowConfig
# ---------------------------------------------------------------------------


@dataclass
class CarbonFlowConfig:
    """Complete configuration for the CarbonFlow scoring core.

    Attributes are grouped by concern: credibility weights, completeness
    weights, compliance thresholds, risk weights, risk thresholds, graph
    handling and logging.

    All attributes can be overridden via environment variables using the
    ``CF_`` prefix.

    Attributes:
        credibility_lifecycle_weight: Weight of stage coverage in credibility.
        credibility_node_weight: Weight of node field completeness.
        credibility_mass_balance_weight: Weight of the mass balance score.
        credibility_traceability_weight: Weight of data traceability.
        credibility_validation_weight: Weight of verified evidence coverage.
        completeness_node_weight: Node completeness share of model completeness.
        completeness_lifecycle_weight: Stage coverage share of model completeness.
        compliance_critical_threshold: Lowest score for partial compliance.
        compliance_warning_threshold: Lowest score for substantial compliance.
        compliance_acceptable_threshold: Lowest score for full compliance.
        requirement_pass_score: Minimum requirement score counted as compliant.
        default_standards: Comma-separated standard ids enabled by default.
        risk_data_quality_weight: Data quality dimension weight.
        risk_compliance_weight: Compliance dimension weight.
        risk_supply_chain_weight: Supply chain dimension weight.
        risk_methodology_weight: Methodology dimension weight.
        risk_temporal_weight: Temporal dimension weight.
        risk_geographic_weight: Geographic dimension weight.
        node_completeness_weight: Per-node data completeness factor weight.
        node_factor_reliability_weight: Per-node factor reliability weight.
        node_temporal_relevance_weight: Per-node temporal relevance weight.
        node_geographic_relevance_weight: Per-node geographic relevance weight.
        node_supplier_credibility_weight: Per-node supplier credibility weight.
        risk_critical_threshold: Scores below this are critical risk.
        risk_high_threshold: Scores below this are high risk.
        risk_medium_threshold: Scores below this are medium risk.
        placeholder_markers: Comma-separated label markers dropped by the
            risk engine.
        default_industry_type: Benchmark row used when none is given.
        derive_stage_from_type: Fill a missing lifecycle stage from node type.
        reference_year: Year used for vintage checks (0 = current year).
        log_level: Logging level for the scoring core.
    """

    # -- Credibility weights -------------------------------------------------
    credibility_lifecycle_weight: float = 0.10
    credibility_node_weight: float = 0.30
    credibility_mass_balance_weight: float = 0.10
    credibility_traceability_weight: float = 0.35
    credibility_validation_weight: float = 0.15

    # -- Model completeness --------------------------------------------------
    completeness_node_weight: float = 0.25
    completeness_lifecycle_weight: float = 0.75

    # -- Compliance ----------------------------------------------------------
    compliance_critical_threshold: int = 60
    compliance_warning_threshold: int = 75
    compliance_acceptable_threshold: int = 90
    requirement_pass_score: int = 75
    default_standards: str = "ISO_14067,GHG_PROTOCOL"

    # -- Risk dimension weights ----------------------------------------------
    risk_data_quality_weight: float = 0.30
    risk_compliance_weight: float = 0.25
    risk_supply_chain_weight: float = 0.20
    risk_methodology_weight: float = 0.15
    risk_temporal_weight: float = 0.05
    risk_geographic_weight: float = 0.05

    # -- Node risk factor weights --------------------------------------------
    node_completeness_weight: float = 0.20
    node_factor_reliability_weight: float = 0.20
    node_temporal_relevance_weight: float = 0.20
    node_geographic_relevance_weight: float = 0.20
    node_supplier_credibility_weight: float = 0.20

    # -- Risk thresholds -----------------------------------------------------
    risk_critical_threshold: int = 40
    risk_high_threshold: int = 60
    risk_medium_threshold: int = 75

    # -- Graph handling ------------------------------------------------------
    placeholder_markers: str = "test,临时"
    default_industry_type: str = "default"
    derive_stage_from_type: bool = False
    reference_year: int = 0

    # -- Logging -------------------------------------------------------------
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def credibility_weights(self) -> Dict[str, float]:
        """Return the credibility weight vector keyed by component."""
        return {
            "lifecycle_completeness": self.credibility_lifecycle_weight,
            "node_completeness": self.credibility_node_weight,
            "mass_balance": self.credibility_mass_balance_weight,
            "data_traceability": self.credibility_traceability_weight,
            "validation": self.credibility_validation_weight,
        }

    def completeness_weights(self) -> Dict[str, float]:
        """Return the model completeness weight vector."""
        return {
            "node_completeness": self.completeness_node_weight,
            "lifecycle_completeness": self.completeness_lifecycle_weight,
        }

    def risk_dimension_weights(self) -> Dict[str, float]:
        """Return the six risk dimension weights."""
        return {
            "data_quality": self.risk_data_quality_weight,
            "compliance": self.risk_compliance_weight,
            "supply_chain": self.risk_supply_chain_weight,
            "methodology": self.risk_methodology_weight,
            "temporal": self.risk_temporal_weight,
            "geographic": self.risk_geographic_weight,
        }

    def node_factor_weights(self) -> Dict[str, float]:
        """Return the five per-node risk factor weights."""
        return {
            "data_completeness": self.node_completeness_weight,
            "factor_reliability": self.node_factor_reliability_weight,
            "temporal_relevance": self.node_temporal_relevance_weight,
            "geographic_relevance": self.node_geographic_relevance_weight,
            "supplier_credibility": self.node_supplier_credibility_weight,
        }

    def compliance_thresholds(self) -> Dict[str, int]:
        """Return the compliance level cut points, lowest first."""
        return {
            "critical": self.compliance_critical_threshold,
            "warning": self.compliance_warning_threshold,
            "acceptable": self.compliance_acceptable_threshold,
        }

    def risk_thresholds(self) -> Dict[str, int]:
        """Return the risk level cut points, lowest first."""
        return {
            "critical": self.risk_critical_threshold,
            "high": self.risk_high_threshold,
            "medium": self.risk_medium_threshold,
        }

    def default_standard_ids(self) -> List[str]:
        """Return the default enabled standard ids."""
        return [s.strip() for s in self.default_standards.split(",") if s.strip()]

    def placeholder_marker_list(self) -> List[str]:
        """Return the placeholder label markers."""
        return [m for m in (p.strip() for p in self.placeholder_markers.split(",")) if m]

    def resolved_reference_year(self) -> int:
        """Return the reference year, defaulting to the current UTC year."""
        if self.reference_year > 0:
            return self.reference_year
        return datetime.now(timezone.utc).year

    def validate(self) -> None:
        """Check every weight vector and threshold set.

        Raises:
            ConfigurationError: On the first invalid setting found.
        """
        check_weight_sum(self.credibility_weights(), "credibility_weights")
        check_weight_sum(self.completeness_weights(), "completeness_weights")
        check_weight_sum(self.risk_dimension_weights(), "dimension_weights")
        check_weight_sum(self.node_factor_weights(), "node_factor_weights")
        check_ascending_thresholds(
            self.compliance_thresholds(), "compliance_thresholds",
        )
        check_ascending_thresholds(self.risk_thresholds(), "risk_thresholds")
        if not 0 <= self.requirement_pass_score <= 100:
            raise ConfigurationError(
                "requirement_pass_score must lie within [0, 100]",
                config_key="requirement_pass_score",
            )

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> CarbonFlowConfig:
        """Build a CarbonFlowConfig from environment variables.

        Every field can be overridden via ``CF_<FIELD_UPPER>``.
        Boolean values accept ``true/1/yes`` (case-insensitive).
        Integer values are parsed via ``int()``.
        Float values are parsed via ``float()``.

        Returns:
            Populated CarbonFlowConfig instance.
        """
        prefix = _ENV_PREFIX

        def _env(name: str, default: Any = None) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}", default)

        def _bool(name: str, default: bool) -> bool:
            val = _env(name)
            if val is None:
                return default
            return val.lower() in ("true", "1", "yes")

        def _int(name: str, default: int) -> int:
            val = _env(name)
            if val is None:
                return default
            try:
                return int(val)
            except ValueError:
                logger.warning(
                    "Invalid integer for %s%s=%s, using default %d",
                    prefix, name, val, default,
                )
                return default

        def _float(name: str, default: float) -> float:
            val = _env(name)
            if val is None:
                return default
            try:
                return float(val)
            except ValueError:
                logger.warning(
                    "Invalid float for %s%s=%s, using default %f",
                    prefix, name, val, default,
                )
                return default

        def _str(name: str, default: str) -> str:
            val = _env(name)
            if val is None:
                return default
            return val

        config = cls(
            # Credibility weights
            credibility_lifecycle_weight=_float(
                "CREDIBILITY_LIFECYCLE_WEIGHT", cls.credibility_lifecycle_weight,
            ),
            credibility_node_weight=_float(
                "CREDIBILITY_NODE_WEIGHT", cls.credibility_node_weight,
            ),
            credibility_mass_balance_weight=_float(
                "CREDIBILITY_MASS_BALANCE_WEIGHT",
                cls.credibility_mass_balance_weight,
            ),
            credibility_traceability_weight=_float(
                "CREDIBILITY_TRACEABILITY_WEIGHT",
                cls.credibility_traceability_weight,
            ),
            credibility_validation_weight=_float(
                "CREDIBILITY_VALIDATION_WEIGHT",
                cls.credibility_validation_weight,
            ),
            # Model completeness
            completeness_node_weight=_float(
                "COMPLETENESS_NODE_WEIGHT", cls.completeness_node_weight,
            ),
            completeness_lifecycle_weight=_float(
                "COMPLETENESS_LIFECYCLE_WEIGHT",
                cls.completeness_lifecycle_weight,
            ),
            # Compliance
            compliance_critical_threshold=_int(
                "COMPLIANCE_CRITICAL_THRESHOLD",
                cls.compliance_critical_threshold,
            ),
            compliance_warning_threshold=_int(
                "COMPLIANCE_WARNING_THRESHOLD",
                cls.compliance_warning_threshold,
            ),
            compliance_acceptable_threshold=_int(
                "COMPLIANCE_ACCEPTABLE_THRESHOLD",
                cls.compliance_acceptable_threshold,
            ),
            requirement_pass_score=_int(
                "REQUIREMENT_PASS_SCORE", cls.requirement_pass_score,
            ),
            default_standards=_str("DEFAULT_STANDARDS", cls.default_standards),
            # Risk dimension weights
            risk_data_quality_weight=_float(
                "RISK_DATA_QUALITY_WEIGHT", cls.risk_data_quality_weight,
            ),
            risk_compliance_weight=_float(
                "RISK_COMPLIANCE_WEIGHT", cls.risk_compliance_weight,
            ),
            risk_supply_chain_weight=_float(
                "RISK_SUPPLY_CHAIN_WEIGHT", cls.risk_supply_chain_weight,
            ),
            risk_methodology_weight=_float(
                "RISK_METHODOLOGY_WEIGHT", cls.risk_methodology_weight,
            ),
            risk_temporal_weight=_float(
                "RISK_TEMPORAL_WEIGHT", cls.risk_temporal_weight,
            ),
            risk_geographic_weight=_float(
                "RISK_GEOGRAPHIC_WEIGHT", cls.risk_geographic_weight,
            ),
            # Node risk factor weights
            node_completeness_weight=_float(
                "NODE_COMPLETENESS_WEIGHT", cls.node_completeness_weight,
            ),
            node_factor_reliability_weight=_float(
                "NODE_FACTOR_RELIABILITY_WEIGHT",
                cls.node_factor_reliability_weight,
            ),
            node_temporal_relevance_weight=_float(
                "NODE_TEMPORAL_RELEVANCE_WEIGHT",
                cls.node_temporal_relevance_weight,
            ),
            node_geographic_relevance_weight=_float(
                "NODE_GEOGRAPHIC_RELEVANCE_WEIGHT",
                cls.node_geographic_relevance_weight,
            ),
            node_supplier_credibility_weight=_float(
                "NODE_SUPPLIER_CREDIBILITY_WEIGHT",
                cls.node_supplier_credibility_weight,
            ),
            # Risk thresholds
            risk_critical_threshold=_int(
                "RISK_CRITICAL_THRESHOLD", cls.risk_critical_threshold,
            ),
            risk_high_threshold=_int(
                "RISK_HIGH_THRESHOLD", cls.risk_high_threshold,
            ),
            risk_medium_threshold=_int(
                "RISK_MEDIUM_THRESHOLD", cls.risk_medium_threshold,
            ),
            # Graph handling
            placeholder_markers=_str(
                "PLACEHOLDER_MARKERS", cls.placeholder_markers,
            ),
            default_industry_type=_str(
                "DEFAULT_INDUSTRY_TYPE", cls.default_industry_type,
            ),
            derive_stage_from_type=_bool(
                "DERIVE_STAGE_FROM_TYPE", cls.derive_stage_from_type,
            ),
            reference_year=_int("REFERENCE_YEAR", cls.reference_year),
            # Logging
            log_level=_str("LOG_LEVEL", cls.log_level),
        )

        logger.info(
            "CarbonFlowConfig loaded: credibility=[L=%.2f N=%.2f M=%.2f "
            "T=%.2f V=%.2f], compliance_thresholds=%d/%d/%d, pass=%d, "
            "standards=%s, risk_thresholds=%d/%d/%d, derive_stage=%s, "
            "reference_year=%d",
            config.credibility_lifecycle_weight,
            config.credibility_node_weight,
            config.credibility_mass_balance_weight,
            config.credibility_traceability_weight,
            config.credibility_validation_weight,
            config.compliance_critical_threshold,
            config.compliance_warning_threshold,
            config.compliance_acceptable_threshold,
            config.requirement_pass_score,
            config.default_standards,
            config.risk_critical_threshold,
            config.risk_high_threshold,
            config.risk_medium_threshold,
            config.derive_stage_from_type,
            config.reference_year,
        )
        return config


# ---------------------------------------------------------------------------
# Thread-safe singleton accessor
# ---------------------------------------------------------------------------

_config_instance: Optional[CarbonFlowConfig] = None
_config_lock = threading.Lock()


def get_config() -> CarbonFlowConfig:
    """Return the singleton CarbonFlowConfig, creating from env if needed.

    Uses double-checked locking for thread safety with minimal
    contention on the hot path.

    Returns:
        CarbonFlowConfig singleton instance.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = CarbonFlowConfig.from_env()
    return _config_instance


def set_config(config: CarbonFlowConfig) -> None:
    """Replace the singleton CarbonFlowConfig (useful for testing).

    Args:
        config: New configuration to install.
    """
    global _config_instance
    with _config_lock:
        _config_instance = config
    logger.info("CarbonFlowConfig replaced programmatically")


def reset_config() -> None:
    """Reset the singleton (primarily for test teardown)."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = [
    "CarbonFlowConfig",
    "WEIGHT_SUM_TOLERANCE",
    "check_weight_sum",
    "check_ascending_thresholds",
    "get_config",
    "set_config",
    "reset_config",
]
