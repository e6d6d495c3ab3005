# -*- coding: utf-8 -*-
"""
CarbonFlow Lifecycle Graph Data Models

Pydantic v2 models for the lifecycle graph snapshot supplied by the host
application. Host payloads use camelCase keys; every field is also
accepted by its snake_case name. Unknown host keys are preserved.

Numeric node fields (quantity, carbon factor, energy, distance) arrive as
numbers, numeric strings, ``"0"``, blanks or arbitrary text. They are kept
raw and read exclusively through :func:`parse_positive`, the single
"is this a real positive quantity" predicate shared by every scorer.

Models:
    - Enumerations: NodeType, LifecycleStage, EvidenceStatus
    - Core models: EvidenceFile, SupplierInfo, Node, Edge
    - Field registry: NodeField, STAGE_REQUIRED_FIELDS

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from carbonflow.exceptions import ConfigurationError

RawValue = Optional[Union[int, float, str]]


# ---------------------------------------------------------------------------
# Shared value predicates
# ---------------------------------------------------------------------------


def parse_positive(value: Any) -> Optional[float]:
    """Return ``value`` as a float when it is a real positive quantity.

    Absent values, booleans, blanks, ``"0"``, negatives, NaN/inf and
    non-numeric strings all yield ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def is_positive_quantity(value: Any) -> bool:
    """True when ``value`` is a real positive quantity."""
    return parse_positive(value) is not None


def has_text(value: Any) -> bool:
    """True when ``value`` is a non-blank string or a number."""
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class NodeType(str, Enum):
    """Structural node kind in the lifecycle graph."""

    PRODUCT = "product"
    MANUFACTURING = "manufacturing"
    DISTRIBUTION = "distribution"
    USAGE = "usage"
    DISPOSAL = "disposal"
    FINAL_PRODUCT = "finalProduct"

    @classmethod
    def parse(cls, value: Any) -> Optional[NodeType]:
        """Return the matching NodeType, or None for unknown values."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().replace("_", "").replace("-", "").lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


class LifecycleStage(str, Enum):
    """The five canonical lifecycle stages, in canonical order."""

    RAW_MATERIAL = "原材料获取阶段"
    MANUFACTURING = "生产阶段"
    DISTRIBUTION = "分销运输阶段"
    USAGE = "使用阶段"
    END_OF_LIFE = "寿命终止阶段"

    @classmethod
    def parse(cls, value: Any) -> Optional[LifecycleStage]:
        """Return the matching stage for a canonical name or alias."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        return _STAGE_ALIASES.get(value.strip().lower())


_STAGE_ALIASES: Dict[str, LifecycleStage] = {
    "原材料获取阶段": LifecycleStage.RAW_MATERIAL,
    "raw_material": LifecycleStage.RAW_MATERIAL,
    "raw material": LifecycleStage.RAW_MATERIAL,
    "生产阶段": LifecycleStage.MANUFACTURING,
    "生产制造阶段": LifecycleStage.MANUFACTURING,
    "manufacturing": LifecycleStage.MANUFACTURING,
    "分销运输阶段": LifecycleStage.DISTRIBUTION,
    "distribution": LifecycleStage.DISTRIBUTION,
    "使用阶段": LifecycleStage.USAGE,
    "usage": LifecycleStage.USAGE,
    "use": LifecycleStage.USAGE,
    "寿命终止阶段": LifecycleStage.END_OF_LIFE,
    "end_of_life": LifecycleStage.END_OF_LIFE,
    "end of life": LifecycleStage.END_OF_LIFE,
    "disposal": LifecycleStage.END_OF_LIFE,
}

# Stage implied by each structural type; final products aggregate and
# belong to no single stage.
TYPE_STAGE: Dict[NodeType, Optional[LifecycleStage]] = {
    NodeType.PRODUCT: LifecycleStage.RAW_MATERIAL,
    NodeType.MANUFACTURING: LifecycleStage.MANUFACTURING,
    NodeType.DISTRIBUTION: LifecycleStage.DISTRIBUTION,
    NodeType.USAGE: LifecycleStage.USAGE,
    NodeType.DISPOSAL: LifecycleStage.END_OF_LIFE,
    NodeType.FINAL_PRODUCT: None,
}


class EvidenceStatus(str, Enum):
    """Review state of an evidence file."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


# ---------------------------------------------------------------------------
# Core models
# ---------------------------------------------------------------------------


class _HostModel(BaseModel):
    """Base for host-supplied records: camelCase aliases, extras kept."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
        frozen=True,
    )


class EvidenceFile(_HostModel):
    """An evidence document attached to a node.

    Attributes:
        id: File identifier.
        name: Original file name.
        type: Host document category.
        upload_time: Upload timestamp as supplied by the host.
        url: Storage location.
        status: Review state; unknown values read as pending.
        size: Size in bytes.
        mime_type: MIME type.
    """

    id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    upload_time: Optional[str] = None
    url: Optional[str] = None
    status: EvidenceStatus = EvidenceStatus.PENDING
    size: Optional[float] = None
    mime_type: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalise_status(cls, v: Any) -> EvidenceStatus:
        if isinstance(v, str):
            try:
                return EvidenceStatus(v.strip().lower())
            except ValueError:
                return EvidenceStatus.PENDING
        if isinstance(v, EvidenceStatus):
            return v
        return EvidenceStatus.PENDING

    @field_validator("size", mode="before")
    @classmethod
    def _lenient_size(cls, v: Any) -> Optional[float]:
        return parse_positive(v)

    @property
    def is_verified(self) -> bool:
        """True when the file has passed review."""
        return self.status is EvidenceStatus.VERIFIED


class SupplierInfo(_HostModel):
    """Supplier relationship for a node's activity data.

    Attributes:
        id: Supplier identifier.
        name: Supplier name.
        tier: Supply chain tier (1 = direct tier).
        is_direct_supplier: Whether the supplier is contracted directly.
    """

    id: Optional[str] = None
    name: Optional[str] = None
    tier: Optional[int] = None
    is_direct_supplier: bool = False

    @field_validator("tier", mode="before")
    @classmethod
    def _lenient_tier(cls, v: Any) -> Optional[int]:
        number = parse_positive(v)
        return int(number) if number is not None else None

    @field_validator("is_direct_supplier", mode="before")
    @classmethod
    def _lenient_direct(cls, v: Any) -> bool:
        return _lenient_bool(v) is True


def _lenient_bool(v: Any) -> Optional[bool]:
    if v is None or isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        text = v.strip().lower()
        if text in ("true", "1", "yes", "是"):
            return True
        if text in ("false", "0", "no", "否"):
            return False
    return None


class Node(_HostModel):
    """One lifecycle-stage entity in the graph.

    Only ``id`` identifies a node; every other field may be absent. The
    scoring core reads nodes and never mutates them.

    Attributes:
        id: Unique, stable node identifier ("" when the host omitted it).
        type: Structural node kind as supplied (see :attr:`node_type`).
        lifecycle_stage: User/AI-assigned stage as supplied (see
            :attr:`stage`).
        label: Human-readable name.
        quantity: Activity-data magnitude.
        activity_unit: Unit of ``quantity``.
        carbon_factor: Emission factor (kg CO2e per activity unit).
        unit_conversion: Multiplier from activity unit to factor unit.
        eu_compliant_factor: Whether the factor is accepted under EU rules.
        evidence_files: Attached evidence documents, in host order.
        supplier_info: Supplier relationship, if known.
        final_product_name: Marks a product node as graph output.
    """

    id: str = ""
    type: Optional[str] = None
    lifecycle_stage: Optional[str] = None
    label: str = ""

    # -- Activity data and emission factor -------------------------------
    emission_type: Optional[str] = None
    quantity: RawValue = None
    activity_unit: Optional[str] = None
    activity_data_source: Optional[str] = Field(
        default=None, alias="activitydataSource",
    )
    activity_score: RawValue = None
    carbon_factor: RawValue = None
    carbon_factor_name: Optional[str] = None
    carbon_factor_unit: Optional[str] = None
    carbon_factor_data_source: Optional[str] = Field(
        default=None, alias="carbonFactordataSource",
    )
    unit_conversion: RawValue = None
    carbon_footprint: RawValue = None
    emission_factor_geographical_representativeness: Optional[str] = None
    emission_factor_temporal_representativeness: Optional[str] = None
    eu_compliant_factor: Optional[bool] = None

    # -- Verification and evidence ---------------------------------------
    verification_status: Optional[str] = None
    supplementary_info: Optional[str] = None
    has_evidence_files: Optional[bool] = None
    evidence_verification_status: Optional[str] = None
    data_risk: Optional[str] = None
    evidence_files: List[EvidenceFile] = Field(default_factory=list)
    supplier_info: Optional[SupplierInfo] = None

    # -- Manufacturing -----------------------------------------------------
    energy_consumption: RawValue = None
    energy_type: Optional[str] = None

    # -- Distribution ------------------------------------------------------
    transportation_mode: Optional[str] = None
    transportation_distance: RawValue = None
    distribution_start_point: Optional[str] = None
    distribution_end_point: Optional[str] = None

    # -- Usage / end of life -----------------------------------------------
    lifespan: RawValue = None
    usage_location: Optional[str] = None
    disposal_method: Optional[str] = None
    recycling_rate: RawValue = None

    # -- Output ------------------------------------------------------------
    final_product_name: Optional[str] = None
    total_carbon_footprint: RawValue = None
    certification_status: Optional[str] = None

    @field_validator("id", "label", mode="before")
    @classmethod
    def _none_to_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("eu_compliant_factor", "has_evidence_files", mode="before")
    @classmethod
    def _lenient_flags(cls, v: Any) -> Optional[bool]:
        return _lenient_bool(v)

    @field_validator("evidence_files", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    # ------------------------------------------------------------------
    # Typed views
    # ------------------------------------------------------------------

    @property
    def node_type(self) -> Optional[NodeType]:
        """The structural type, or None when unrecognised."""
        return NodeType.parse(self.type)

    @property
    def stage(self) -> Optional[LifecycleStage]:
        """The declared lifecycle stage, or None when unrecognised."""
        return LifecycleStage.parse(self.lifecycle_stage)

    @property
    def display_label(self) -> str:
        """Label for reports, falling back to the node id."""
        return self.label or f"Node {self.id}"

    @property
    def is_output(self) -> bool:
        """True when the node marks a final product (mass-balance output)."""
        return has_text(self.final_product_name)

    @property
    def has_evidence(self) -> bool:
        """True when at least one evidence file is attached or flagged."""
        return bool(self.evidence_files) or self.has_evidence_files is True

    @property
    def has_verified_evidence(self) -> bool:
        """True when any attached evidence file is verified."""
        return any(f.is_verified for f in self.evidence_files)

    def positive(self, attr: str) -> Optional[float]:
        """Read a numeric field through :func:`parse_positive`."""
        return parse_positive(getattr(self, attr))

    def text(self, attr: str) -> str:
        """Read a text field, returning "" when absent."""
        value = getattr(self, attr)
        return value.strip() if isinstance(value, str) else ""


class Edge(_HostModel):
    """Directed connection between two node ids."""

    id: Optional[str] = None
    source: str
    target: str


# ---------------------------------------------------------------------------
# Stage field registry
# ---------------------------------------------------------------------------


class NodeField(BaseModel):
    """A required node field checked by completeness scoring.

    Attributes:
        key: Host (camelCase) field name reported in missing-field lists.
        attr: Model attribute name.
        numeric: Whether presence means a real positive quantity.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    attr: str
    numeric: bool = False

    def is_present(self, node: Node) -> bool:
        """True when ``node`` carries a usable value for this field."""
        value = getattr(node, self.attr)
        if self.numeric:
            return is_positive_quantity(value)
        return has_text(value)


CARBON_FACTOR = NodeField(key="carbonFactor", attr="carbon_factor", numeric=True)
QUANTITY = NodeField(key="quantity", attr="quantity", numeric=True)
ENERGY_CONSUMPTION = NodeField(
    key="energyConsumption", attr="energy_consumption", numeric=True,
)
ENERGY_TYPE = NodeField(key="energyType", attr="energy_type")
DISTRIBUTION_START = NodeField(
    key="distributionStartPoint", attr="distribution_start_point",
)
DISTRIBUTION_END = NodeField(
    key="distributionEndPoint", attr="distribution_end_point",
)
TRANSPORT_MODE = NodeField(key="transportationMode", attr="transportation_mode")
TRANSPORT_DISTANCE = NodeField(
    key="transportationDistance", attr="transportation_distance", numeric=True,
)

# Usage and end-of-life nodes carry no required fields.
STAGE_REQUIRED_FIELDS: Dict[LifecycleStage, Tuple[NodeField, ...]] = {
    LifecycleStage.RAW_MATERIAL: (CARBON_FACTOR, QUANTITY),
    LifecycleStage.MANUFACTURING: (
        CARBON_FACTOR, ENERGY_CONSUMPTION, ENERGY_TYPE,
    ),
    LifecycleStage.DISTRIBUTION: (
        CARBON_FACTOR,
        DISTRIBUTION_START,
        DISTRIBUTION_END,
        TRANSPORT_MODE,
        TRANSPORT_DISTANCE,
    ),
    LifecycleStage.USAGE: (),
    LifecycleStage.END_OF_LIFE: (),
}

if set(STAGE_REQUIRED_FIELDS) != set(LifecycleStage):
    raise ConfigurationError(
        "STAGE_REQUIRED_FIELDS must cover every lifecycle stage",
        config_key="STAGE_REQUIRED_FIELDS",
    )
if set(TYPE_STAGE) != set(NodeType):
    raise ConfigurationError(
        "TYPE_STAGE must cover every node type", config_key="TYPE_STAGE",
    )


__all__ = [
    "RawValue",
    "parse_positive",
    "is_positive_quantity",
    "has_text",
    "NodeType",
    "LifecycleStage",
    "TYPE_STAGE",
    "EvidenceStatus",
    "EvidenceFile",
    "SupplierInfo",
    "Node",
    "Edge",
    "NodeField",
    "STAGE_REQUIRED_FIELDS",
]
