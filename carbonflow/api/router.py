# -*- coding: utf-8 -*-
"""
CarbonFlow Scoring REST API

FastAPI router mounted at ``/api/v1/carbonflow``. Request bodies carry the
host's camelCase node records unchanged; responses are the JSON form of the
report models.

Endpoints:
    POST /analysis            merged credibility, compliance, risk, footprint
    POST /credibility         credibility report
    POST /compliance          multi-standard compliance report
    POST /risk                risk report
    POST /footprint           footprint report
    GET  /standards           standards with a requirement catalog
    GET  /standards/parse     standards mentioned in free text
    GET  /health              service health
    GET  /metrics             Prometheus exposition

Error mapping:
    ConfigurationError, GraphInputError -> 400
    RiskAssessmentError                 -> 422

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from carbonflow.compliance import (
    get_standard_display_name,
    get_catalog,
    parse_scene_standards,
    registered_standards,
)
from carbonflow.exceptions import (
    CarbonFlowException,
    ConfigurationError,
    GraphInputError,
    RiskAssessmentError,
)
from carbonflow.setup import CarbonFlowService, get_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/carbonflow", tags=["CarbonFlow"])


# =============================================================================
# Request Models
# =============================================================================


class _Request(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GraphRequest(_Request):
    """Graph snapshot request."""

    nodes: List[Dict[str, Any]] = Field(default_factory=list, description="Node records")
    workflow_id: str = Field(default="", description="Workflow identifier")


class AnalysisRequest(GraphRequest):
    """Merged analysis request."""

    edges: List[Dict[str, Any]] = Field(default_factory=list, description="Edge records")
    standards: Optional[List[str]] = Field(default=None, description="Standard ids")
    industry_type: Optional[str] = Field(default=None, description="Benchmark row")
    report_date: Optional[str] = Field(default=None, description="Report date")


class ComplianceRequest(GraphRequest):
    """Multi-standard compliance request."""

    standards: Optional[List[str]] = Field(default=None, description="Standard ids")
    thresholds: Optional[Dict[str, int]] = Field(default=None, description="Level cut points")
    include_recommendations: bool = True
    include_node_level: bool = True
    custom_weights: Optional[Dict[str, float]] = None
    report_date: Optional[str] = None


class RiskRequest(GraphRequest):
    """Risk assessment request."""

    industry_type: Optional[str] = Field(default=None, description="Benchmark row")


# =============================================================================
# Helpers
# =============================================================================


def _service(request: Request) -> CarbonFlowService:
    service = getattr(request.app.state, "carbonflow_service", None)
    return service if service is not None else get_service()


def _http_error(exc: CarbonFlowException) -> HTTPException:
    if isinstance(exc, RiskAssessmentError):
        return HTTPException(status_code=422, detail=exc.to_dict())
    return HTTPException(status_code=400, detail=exc.to_dict())


# =============================================================================
# Scoring Endpoints
# =============================================================================


@router.post("/analysis")
async def analyze(body: AnalysisRequest, request: Request) -> Dict[str, Any]:
    """Re-derive every report from one graph snapshot."""
    try:
        analysis = _service(request).analyze(
            body.nodes,
            body.edges,
            workflow_id=body.workflow_id,
            standards=body.standards,
            industry_type=body.industry_type,
            report_date=body.report_date,
        )
    except (ConfigurationError, GraphInputError) as exc:
        raise _http_error(exc) from exc
    return analysis.model_dump(mode="json")


@router.post("/credibility")
async def score_credibility(body: GraphRequest, request: Request) -> Dict[str, Any]:
    """Credibility report for a graph snapshot."""
    try:
        report = _service(request).score_credibility(body.nodes, body.workflow_id)
    except GraphInputError as exc:
        raise _http_error(exc) from exc
    return report.model_dump(mode="json")


@router.post("/compliance")
async def check_compliance(body: ComplianceRequest, request: Request) -> Dict[str, Any]:
    """Multi-standard compliance report for a graph snapshot."""
    overrides: Dict[str, Any] = {
        "include_recommendations": body.include_recommendations,
        "include_node_level": body.include_node_level,
        "custom_weights": body.custom_weights,
    }
    if body.thresholds is not None:
        overrides["thresholds"] = body.thresholds
    try:
        report = _service(request).check_compliance(
            body.nodes,
            body.standards,
            workflow_id=body.workflow_id,
            report_date=body.report_date,
            **overrides,
        )
    except (ConfigurationError, GraphInputError) as exc:
        raise _http_error(exc) from exc
    return report.model_dump(mode="json")


@router.post("/risk")
async def assess_risk(body: RiskRequest, request: Request) -> Dict[str, Any]:
    """Risk report for a graph snapshot."""
    try:
        report = _service(request).assess_risk(
            body.nodes, body.workflow_id, body.industry_type,
        )
    except (ConfigurationError, GraphInputError, RiskAssessmentError) as exc:
        raise _http_error(exc) from exc
    return report.model_dump(mode="json")


@router.post("/footprint")
async def calculate_footprint(body: GraphRequest, request: Request) -> Dict[str, Any]:
    """Per-node and per-stage emissions for a graph snapshot."""
    try:
        report = _service(request).calculate_footprint(body.nodes, body.workflow_id)
    except GraphInputError as exc:
        raise _http_error(exc) from exc
    return report.model_dump(mode="json")


# =============================================================================
# Reference Data Endpoints
# =============================================================================


@router.get("/standards")
async def list_standards() -> Dict[str, Any]:
    """List the standards that have a requirement catalog."""
    return {
        "standards": [
            {
                "id": standard.value,
                "name": get_standard_display_name(standard),
                "requirements": len(get_catalog(standard)),
            }
            for standard in registered_standards()
        ],
    }


@router.get("/standards/parse")
async def parse_standards_text(
    text: str = Query(default="", description="Free text mentioning standards"),
    report_type: Optional[str] = Query(default=None, alias="reportType"),
) -> Dict[str, Any]:
    """Map free-text standard mentions and a report type to standard ids."""
    standards = parse_scene_standards(text, report_type)
    return {
        "standards": [
            {"id": s.value, "name": get_standard_display_name(s)} for s in standards
        ],
    }


# =============================================================================
# Health and Metrics
# =============================================================================


@router.get("/health")
async def health(request: Request) -> Dict[str, Any]:
    """Service health check."""
    return _service(request).health_check()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = ["router"]
