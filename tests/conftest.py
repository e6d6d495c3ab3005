# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures."""

import copy
from typing import Any, Dict, List

import pytest

from carbonflow.config import CarbonFlowConfig, reset_config, set_config
from carbonflow.setup import reset_service

REFERENCE_YEAR = 2024

RAW = "原材料获取阶段"
MFG = "生产阶段"
DIST = "分销运输阶段"
USE = "使用阶段"
EOL = "寿命终止阶段"


def verified_file(file_id: str = "f1") -> Dict[str, Any]:
    return {"id": file_id, "name": f"{file_id}.pdf", "status": "verified"}


def pending_file(file_id: str = "f1") -> Dict[str, Any]:
    return {"id": file_id, "name": f"{file_id}.pdf", "status": "pending"}


def raw_node(node_id: str = "raw", **overrides: Any) -> Dict[str, Any]:
    """Raw-material product node with both required fields."""
    node = {
        "id": node_id,
        "type": "product",
        "label": "Steel sheet",
        "lifecycleStage": RAW,
        "carbonFactor": "1.5",
        "quantity": "10",
    }
    node.update(overrides)
    return node


@pytest.fixture(autouse=True)
def fixed_config():
    """Install a configuration with a fixed reference year for every test."""
    config = CarbonFlowConfig(reference_year=REFERENCE_YEAR)
    set_config(config)
    yield config
    reset_config()
    reset_service()


@pytest.fixture
def complete_graph() -> List[Dict[str, Any]]:
    """Five-stage graph with every required field, verified evidence and a
    balanced product output."""
    shared = {
        "emissionFactorTemporalRepresentativeness": "2023",
        "emissionFactorGeographicalRepresentativeness": "中国",
        "euCompliantFactor": True,
        "verificationStatus": "已验证",
    }
    nodes = [
        {
            "id": "raw", "type": "product", "label": "Steel sheet",
            "lifecycleStage": RAW,
            "carbonFactor": "2.1", "quantity": "100",
            "activityUnit": "kg", "carbonFactorUnit": "kgCO2e/kg",
            "evidenceFiles": [verified_file("raw-invoice")],
        },
        {
            "id": "mfg", "type": "manufacturing", "label": "Stamping",
            "lifecycleStage": MFG,
            "carbonFactor": "0.58", "quantity": "500", "activityUnit": "kWh",
            "energyConsumption": "500", "energyType": "electricity",
            "evidenceFiles": [verified_file("meter")],
        },
        {
            "id": "dist", "type": "distribution", "label": "Sea freight",
            "lifecycleStage": DIST,
            "carbonFactor": "0.01", "quantity": "2000", "activityUnit": "t-km",
            "distributionStartPoint": "Shanghai",
            "distributionEndPoint": "Hamburg",
            "transportationMode": "sea",
            "transportationDistance": "20000",
            "evidenceFiles": [verified_file("bill-of-lading")],
        },
        {
            "id": "use", "type": "usage", "label": "Use phase",
            "lifecycleStage": USE,
            "evidenceFiles": [verified_file("usage-profile")],
        },
        {
            "id": "eol", "type": "disposal", "label": "Recycling",
            "lifecycleStage": EOL, "disposalMethod": "recycling",
            "evidenceFiles": [verified_file("recycler")],
        },
        {
            "id": "out", "type": "product", "label": "Widget",
            "finalProductName": "Widget", "quantity": "100",
            "evidenceFiles": [verified_file("datasheet")],
        },
    ]
    for node in nodes:
        node.update(copy.deepcopy(shared))
    return nodes
