"""Tests for the CarbonFlowService facade and the REST router."""

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from carbonflow.config import CarbonFlowConfig
from carbonflow.exceptions import ConfigurationError
from carbonflow.setup import (
    CarbonFlowService,
    configure_carbonflow,
    get_carbonflow,
    get_service,
    reset_service,
)

from conftest import MFG, RAW, raw_node


# ==============================================================================
# Service facade
# ==============================================================================

@pytest.fixture
def service(fixed_config):
    return CarbonFlowService(config=fixed_config)


class TestCarbonFlowService:
    """Tests for the service facade."""

    def test_analyze_complete_graph(self, service, complete_graph):
        """A complete graph yields every report and no warnings."""
        analysis = service.analyze(complete_graph, workflow_id="wf-1")

        assert analysis.workflow_id == "wf-1"
        assert analysis.node_count == 6
        assert analysis.credibility.credibility_score == 100
        assert analysis.risk is not None
        assert analysis.footprint.total_emissions == 520.0
        assert analysis.warnings == []
        assert len(analysis.provenance_hash) == 64

    def test_analyze_records_provenance(self, service, complete_graph):
        """One entry per report plus one for the analysis."""
        service.analyze(complete_graph, workflow_id="wf-1")

        assert service.provenance.entry_count == 5
        valid, chain = service.provenance.verify_chain("analysis", "wf-1")
        assert valid is True
        assert len(chain) == 1
        assert service.get_statistics()["analyses"] == 1
        assert service.get_statistics()["risk_reports"] == 1

    def test_analyze_empty_graph_skips_risk(self, service):
        """No valid node for risk yields a warning, not a failure."""
        analysis = service.analyze([], workflow_id="wf-empty")

        assert analysis.risk is None
        assert analysis.warnings[0].startswith("Risk assessment skipped")
        assert analysis.credibility.credibility_score == 0
        assert service.get_statistics()["errors"] == 1
        assert service.provenance.entry_count == 4

    def test_analyze_reports_defects(self, service):
        """Duplicate node records are excluded and reported."""
        analysis = service.analyze([raw_node(), raw_node()])

        assert analysis.node_count == 1
        assert "1 node records were excluded" in analysis.warnings
        assert analysis.graph_defects[0].reason == "duplicate_id"

    def test_analyze_keeps_valid_nodes_beside_malformed_record(self, service):
        """A record that fails validation is reported while the rest are analysed."""
        analysis = service.analyze([raw_node("a"), {"id": "b", "label": "x", "quantity": [1]}])

        assert analysis.node_count == 1
        assert analysis.risk is not None
        assert [r.node_id for r in analysis.risk.node_risks] == ["a"]
        assert analysis.graph_defects[0].reason == "invalid_payload"
        assert analysis.graph_defects[0].node_id == "b"
        assert "1 node records were excluded" in analysis.warnings

    def test_analyze_reports_stage_mismatch(self, service):
        """A product declared in manufacturing is flagged."""
        analysis = service.analyze([raw_node(lifecycleStage=MFG)])

        mismatch = analysis.stage_mismatches[0]
        assert mismatch.node_id == "raw"
        assert mismatch.declared_stage == MFG
        assert mismatch.implied_stage == RAW

    def test_unknown_standard_counts_as_error(self, service):
        """Configuration errors propagate and are counted."""
        with pytest.raises(ConfigurationError):
            service.check_compliance([raw_node()], ["ISO_9999"])
        assert service.get_statistics()["errors"] == 1

    def test_health_check(self, service):
        """Health lists the four engines and the lifecycle state."""
        health = service.health_check()

        assert health["status"] == "healthy"
        assert health["started"] is False
        assert health["engines_total"] == 4
        assert health["engines_available"] == 4

        service.startup()
        assert service.health_check()["started"] is True

    def test_invalid_config_rejected(self):
        """Weights that do not sum to 1.0 fail at construction."""
        with pytest.raises(ConfigurationError):
            CarbonFlowService(config=CarbonFlowConfig(credibility_node_weight=0.5))

    def test_singleton(self):
        """get_service returns one instance until reset."""
        first = get_service()
        assert get_service() is first

        reset_service()
        assert get_service() is not first

    def test_get_carbonflow_unconfigured(self):
        """An app without the service raises."""
        with pytest.raises(RuntimeError):
            get_carbonflow(FastAPI())


# ==============================================================================
# REST API
# ==============================================================================

@pytest.fixture
def client(fixed_config):
    app = FastAPI()
    asyncio.run(configure_carbonflow(app, fixed_config))
    return TestClient(app)


class TestCarbonFlowAPI:
    """Tests for the /api/v1/carbonflow endpoints."""

    def test_credibility(self, client):
        response = client.post("/api/v1/carbonflow/credibility", json={"nodes": [raw_node()]})

        assert response.status_code == 200
        assert response.json()["credibility_score"] == 67

    def test_footprint(self, client):
        response = client.post("/api/v1/carbonflow/footprint", json={"nodes": [raw_node()]})

        assert response.status_code == 200
        assert response.json()["total_emissions"] == 15.0

    def test_risk_without_valid_nodes(self, client):
        """An empty graph maps to 422."""
        response = client.post("/api/v1/carbonflow/risk", json={"nodes": []})

        assert response.status_code == 422
        assert response.json()["detail"]["error_type"] == "RiskAssessmentError"

    def test_compliance_unknown_standard(self, client):
        """An unknown standard maps to 400."""
        response = client.post(
            "/api/v1/carbonflow/compliance",
            json={"nodes": [raw_node()], "standards": ["ISO_9999"]},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "CF_CONFIGURATION_ERROR"

    def test_compliance(self, client, complete_graph):
        """camelCase request fields are accepted."""
        response = client.post(
            "/api/v1/carbonflow/compliance",
            json={
                "nodes": complete_graph,
                "standards": ["GHG_PROTOCOL"],
                "workflowId": "wf-2",
                "reportDate": "2024-06-30",
                "includeNodeLevel": False,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["workflow_id"] == "wf-2"
        assert body["report_date"] == "2024-06-30"
        assert body["standard_reports"]["GHG_PROTOCOL"]["overall_score"] == 100

    def test_analysis(self, client, complete_graph):
        response = client.post(
            "/api/v1/carbonflow/analysis",
            json={
                "nodes": complete_graph,
                "edges": [{"source": "raw", "target": "mfg"}],
                "workflowId": "wf-9",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["workflow_id"] == "wf-9"
        assert body["edge_count"] == 1
        assert body["risk"] is not None

    def test_list_standards(self, client):
        """Every standard with a catalog is listed."""
        standards = client.get("/api/v1/carbonflow/standards").json()["standards"]

        assert len(standards) == 6
        assert standards[0]["id"] == "ISO_14067"
        assert standards[0]["requirements"] == 12

    def test_parse_standards(self, client):
        """Free text and report type map to standard ids."""
        response = client.get(
            "/api/v1/carbonflow/standards/parse",
            params={"text": "CBAM", "reportType": "pcr"},
        )

        assert [s["id"] for s in response.json()["standards"]] == ["CBAM", "ISO_14067"]

    def test_health(self, client):
        body = client.get("/api/v1/carbonflow/health").json()

        assert body["status"] == "healthy"
        assert body["started"] is True

    def test_metrics(self, client):
        """Prometheus exposition includes the analysis counter."""
        client.post("/api/v1/carbonflow/credibility", json={"nodes": [raw_node()]})
        response = client.get("/api/v1/carbonflow/metrics")

        assert response.status_code == 200
        assert "cf_analyses_total" in response.text
