"""Tests for the CarbonFlow exception hierarchy.

Verifies error codes, context handling, serialization and inheritance.
"""

import json

import pytest

from carbonflow.exceptions import (
    AssessmentException,
    CarbonFlowException,
    ConfigurationError,
    GraphInputError,
    RiskAssessmentError,
)


class TestCarbonFlowException:
    """Tests for the base exception."""

    def test_basic_exception(self):
        """Message, generated code and empty context."""
        exc = CarbonFlowException("Something broke")

        assert exc.message == "Something broke"
        assert exc.error_code == "CF_CARBON_FLOW_EXCEPTION"
        assert exc.engine_name is None
        assert exc.context == {}

    def test_explicit_error_code(self):
        """An explicit code is kept."""
        exc = CarbonFlowException("x", error_code="CF_CUSTOM")
        assert exc.error_code == "CF_CUSTOM"

    def test_to_dict(self):
        """Serialised form has every field."""
        exc = CarbonFlowException("x", engine_name="Engine", context={"a": 1})
        data = exc.to_dict()

        assert set(data) == {
            "error_type", "error_code", "message", "engine_name", "context", "timestamp",
        }
        assert data["error_type"] == "CarbonFlowException"
        assert data["context"] == {"a": 1}

    def test_to_json(self):
        """JSON form round-trips the dictionary."""
        exc = CarbonFlowException("x", context={"a": 1})
        assert json.loads(exc.to_json())["context"] == {"a": 1}

    def test_str(self):
        """str() joins code, engine and message."""
        exc = CarbonFlowException("bad input", engine_name="GraphModel")
        assert str(exc) == "[CF_CARBON_FLOW_EXCEPTION] - Engine: GraphModel - bad input"


class TestConfigurationError:
    """Tests for ConfigurationError."""

    def test_error_code(self):
        """Code derives from the class name."""
        assert ConfigurationError("x").error_code == "CF_CONFIGURATION_ERROR"

    def test_config_key_in_context(self):
        """The offending key is merged into the context."""
        exc = ConfigurationError(
            "bad weights",
            engine_name="CredibilityAggregator",
            context={"weights": {}},
            config_key="credibility_weights",
        )
        assert exc.context == {"weights": {}, "config_key": "credibility_weights"}
        assert exc.engine_name == "CredibilityAggregator"

    def test_caller_context_not_mutated(self):
        """The config key is added to a copy of the caller's context."""
        context = {"weights": {}}
        exc = ConfigurationError("bad weights", context=context, config_key="credibility_weights")

        assert context == {"weights": {}}
        assert exc.context is not context


class TestGraphInputError:
    """Tests for GraphInputError."""

    def test_error_code(self):
        assert GraphInputError("x").error_code == "CF_GRAPH_INPUT_ERROR"


class TestRiskAssessmentError:
    """Tests for RiskAssessmentError."""

    def test_error_code_has_assessment_prefix(self):
        """Assessment errors carry the assessment prefix."""
        assert RiskAssessmentError("x").error_code == "CF_ASSESSMENT_RISK_ASSESSMENT_ERROR"

    def test_workflow_in_context(self):
        """The workflow id is merged into the context."""
        exc = RiskAssessmentError("empty", workflow_id="wf-1", context={"received": 0})

        assert exc.engine_name == "RiskAssessmentEngine"
        assert exc.context == {"received": 0, "workflow_id": "wf-1"}

    def test_caller_context_not_mutated(self):
        """The workflow id is added to a copy of the caller's context."""
        context = {"received": 0}
        exc = RiskAssessmentError("empty", workflow_id="wf-1", context=context)

        assert context == {"received": 0}
        assert exc.context["workflow_id"] == "wf-1"


class TestHierarchy:
    """Tests for inheritance."""

    @pytest.mark.parametrize("cls", [
        ConfigurationError, GraphInputError, AssessmentException, RiskAssessmentError,
    ])
    def test_subclasses_base(self, cls):
        """Every error is a CarbonFlowException."""
        assert issubclass(cls, CarbonFlowException)

    def test_catch_by_base(self):
        """Engine errors can be caught by the base class."""
        with pytest.raises(AssessmentException):
            raise RiskAssessmentError("x")
