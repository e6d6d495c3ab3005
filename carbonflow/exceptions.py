"""CarbonFlow Exception Hierarchy.

Errors raised by the scoring, compliance and risk engines. Input defects in
individual nodes are never raised: they degrade the node's contribution and
are surfaced as flagged entries in the reports. Only caller bugs and
unrecoverable batch conditions become exceptions.

Exception Hierarchy:
    CarbonFlowException (base)
    ├── ConfigurationError
    ├── GraphInputError
    └── AssessmentException
        └── RiskAssessmentError

All exceptions include rich context:
- error_code: Unique error identifier
- engine_name: Name of the engine that raised the error
- context: Dictionary with error-specific details
- timestamp: When the error occurred

Example:
    >>> from carbonflow.exceptions import ConfigurationError
    >>> raise ConfigurationError(
    ...     message="Unknown compliance standard: ISO_9999",
    ...     engine_name="ComplianceChecker",
    ...     context={"config_key": "enabled_standards", "value": "ISO_9999"}
    ... )

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

import json
import re
from datetime import datetime
from typing import Any, Dict, Optional


# ==============================================================================
# Base Exception
# ==============================================================================

class CarbonFlowException(Exception):
    """Base exception for all CarbonFlow errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error identifier (e.g., "CF_CONFIGURATION_ERROR")
        engine_name: Name of engine that raised the error (optional)
        context: Dictionary with error-specific details
        timestamp: When the error occurred
    """

    ERROR_PREFIX = "CF"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        engine_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize CarbonFlow exception with rich context.

        Args:
            message: Human-readable error message
            error_code: Unique error identifier (auto-generated if not provided)
            engine_name: Name of engine that raised the error
            context: Dictionary with error-specific details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.engine_name = engine_name
        self.context = context or {}
        self.timestamp = datetime.now()

    def _generate_error_code(self) -> str:
        """Generate error code based on exception class.

        Returns:
            Error code like "CF_CONFIGURATION_ERROR"
        """
        error_type = re.sub(r'(?<!^)(?=[A-Z])', '_', self.__class__.__name__).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary with all error details
        """
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "engine_name": self.engine_name,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        """Convert exception to JSON string.

        Returns:
            JSON string representation
        """
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        """String representation with error code and message."""
        parts = [f"[{self.error_code}]"]
        if self.engine_name:
            parts.append(f"Engine: {self.engine_name}")
        parts.append(self.message)
        return " - ".join(parts)

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}', "
            f"engine_name='{self.engine_name}')"
        )


# ==============================================================================
# Caller Errors
# ==============================================================================

class ConfigurationError(CarbonFlowException):
    """Configuration is invalid.

    Raised at the call boundary for caller bugs: unknown or uncatalogued
    standards, empty standard selections, weight vectors that do not sum
    to 1.0, and out-of-order thresholds.

    Example:
        >>> raise ConfigurationError(
        ...     message="dimension_weights must sum to 1.0 (got 0.95)",
        ...     engine_name="RiskAssessmentEngine",
        ...     config_key="dimension_weights",
        ... )
    """

    def __init__(
        self,
        message: str,
        engine_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        config_key: Optional[str] = None,
    ):
        """Initialize configuration error.

        Args:
            message: Error message
            engine_name: Name of engine
            context: Error context
            config_key: Name of the offending configuration key
        """
        context = dict(context or {})
        if config_key:
            context["config_key"] = config_key
        super().__init__(message, engine_name=engine_name, context=context)


class GraphInputError(CarbonFlowException):
    """The graph payload itself is unusable.

    Raised only when the top-level payload is not a sequence of node
    records. Individual malformed nodes are flagged, not raised.
    """
    pass


# ==============================================================================
# Assessment Exceptions
# ==============================================================================

class AssessmentException(CarbonFlowException):
    """Base exception for assessment-level failures."""
    ERROR_PREFIX = "CF_ASSESSMENT"


class RiskAssessmentError(AssessmentException):
    """Risk assessment cannot produce a meaningful report.

    Raised when no valid nodes remain after filtering. The caller decides
    whether to render an empty state.

    Example:
        >>> raise RiskAssessmentError(
        ...     message="No valid nodes remain after filtering",
        ...     workflow_id="wf-001",
        ...     context={"received": 3, "filtered_out": 3}
        ... )
    """

    def __init__(
        self,
        message: str,
        workflow_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize risk assessment error.

        Args:
            message: Error message
            workflow_id: Workflow whose assessment failed
            context: Error context
        """
        context = dict(context or {})
        if workflow_id:
            context["workflow_id"] = workflow_id
        super().__init__(
            message, engine_name="RiskAssessmentEngine", context=context,
        )


__all__ = [
    "CarbonFlowException",
    "ConfigurationError",
    "GraphInputError",
    "AssessmentException",
    "RiskAssessmentError",
]
