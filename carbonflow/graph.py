# -*- coding: utf-8 -*-
"""
Lifecycle Graph Model

Read-only view over the node/edge snapshot supplied by the host
application. Every scorer and engine consumes a :class:`GraphModel`.

Building the view never raises for individual node defects. Records with a
missing id, a duplicate id or an unparseable payload are skipped and
listed in :attr:`GraphModel.defects`. Only a payload that is not a
sequence of records at all raises :class:`GraphInputError`.

Example:
    >>> from carbonflow.graph import GraphModel
    >>> graph = GraphModel.build([
    ...     {"id": "n1", "type": "product", "lifecycleStage": "原材料获取阶段",
    ...      "carbonFactor": "1.5", "quantity": "10"},
    ... ])
    >>> graph.missing_lifecycle_stages()[0].value
    '生产阶段'

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from carbonflow.exceptions import GraphInputError
from carbonflow.models import (
    TYPE_STAGE,
    Edge,
    LifecycleStage,
    Node,
    is_positive_quantity,
    parse_positive,
)

logger = logging.getLogger(__name__)

NodeInput = Union[Node, Mapping[str, Any]]
GraphInput = Union["GraphModel", Iterable[NodeInput]]

_YEAR_RE = re.compile(r"(\d{4})")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def extract_year(text: Optional[str]) -> Optional[int]:
    """Return the first four-digit number in ``text``, if any."""
    if not text:
        return None
    match = _YEAR_RE.search(text)
    return int(match.group(1)) if match else None


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


class GraphDefect(BaseModel):
    """A node record excluded from scoring.

    Attributes:
        index: Position of the record in the supplied node list.
        node_id: Identifier of the record, when one was present.
        reason: missing_id, duplicate_id or invalid_payload.
        detail: Human-readable explanation.
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0)
    node_id: Optional[str] = None
    reason: str
    detail: str = ""


class StageMismatch(BaseModel):
    """A node whose declared stage differs from the stage its type implies."""

    model_config = ConfigDict(frozen=True)

    node_id: str
    node_type: str
    declared_stage: Optional[str] = None
    implied_stage: str


# ---------------------------------------------------------------------------
# GraphModel
# ---------------------------------------------------------------------------


class GraphModel:
    """Immutable, validated snapshot of a lifecycle graph.

    Attributes:
        nodes: Valid nodes in host order, ids unique.
        edges: Valid edges in host order.
        defects: Records excluded while building the view.
        derive_stage_from_type: When set, nodes without a recognised
            declared stage take the stage implied by their type.
    """

    def __init__(
        self,
        nodes: Sequence[Node],
        edges: Sequence[Edge] = (),
        defects: Sequence[GraphDefect] = (),
        derive_stage_from_type: bool = False,
    ) -> None:
        self._nodes = tuple(nodes)
        self._edges = tuple(edges)
        self._defects = tuple(defects)
        self.derive_stage_from_type = derive_stage_from_type
        self._by_id: Dict[str, Node] = {n.id: n for n in self._nodes}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(
        cls,
        nodes: Optional[Iterable[NodeInput]],
        edges: Optional[Iterable[Any]] = None,
        derive_stage_from_type: bool = False,
    ) -> GraphModel:
        """Validate host records into a GraphModel.

        Args:
            nodes: Node records (models or mappings). None means empty.
            edges: Edge records (models or mappings). Invalid edges are
                dropped with a warning.
            derive_stage_from_type: Fill missing stages from node type.

        Returns:
            GraphModel over the valid nodes.

        Raises:
            GraphInputError: If ``nodes`` or ``edges`` is not an iterable
                of records.
        """
        if nodes is None:
            nodes = []
        if isinstance(nodes, (str, bytes, Mapping)) or not isinstance(nodes, Iterable):
            raise GraphInputError(
                "Graph nodes must be a sequence of node records",
                context={"received": type(nodes).__name__},
            )

        valid: List[Node] = []
        defects: List[GraphDefect] = []
        seen: set = set()

        for index, record in enumerate(nodes):
            node = cls._coerce_node(index, record, defects)
            if node is None:
                continue
            if not node.id:
                defects.append(GraphDefect(
                    index=index, reason="missing_id",
                    detail=f"Node '{node.label}' has no id",
                ))
                continue
            if node.id in seen:
                defects.append(GraphDefect(
                    index=index, node_id=node.id, reason="duplicate_id",
                    detail=f"Duplicate node id '{node.id}' ignored",
                ))
                continue
            seen.add(node.id)
            valid.append(node)

        if edges is None:
            edges = []
        if isinstance(edges, (str, bytes, Mapping)) or not isinstance(edges, Iterable):
            raise GraphInputError(
                "Graph edges must be a sequence of edge records",
                context={"received": type(edges).__name__},
            )

        valid_edges: List[Edge] = []
        for record in edges:
            try:
                valid_edges.append(
                    record if isinstance(record, Edge) else Edge.model_validate(record)
                )
            except ValidationError:
                logger.warning("Dropping malformed edge record: %r", record)

        if defects:
            logger.warning(
                "Graph built with %d defective node records (%s)",
                len(defects), ", ".join(sorted({d.reason for d in defects})),
            )
        logger.debug(
            "GraphModel built: nodes=%d edges=%d defects=%d",
            len(valid), len(valid_edges), len(defects),
        )
        return cls(valid, valid_edges, defects, derive_stage_from_type)

    @staticmethod
    def _coerce_node(
        index: int,
        record: Any,
        defects: List[GraphDefect],
    ) -> Optional[Node]:
        if isinstance(record, Node):
            return record
        if not isinstance(record, Mapping):
            defects.append(GraphDefect(
                index=index, reason="invalid_payload",
                detail=f"Expected a mapping, got {type(record).__name__}",
            ))
            return None
        payload = record.get("data")
        if isinstance(payload, Mapping):
            # Editor-style records nest node fields under "data".
            record = {**payload, **{k: v for k, v in record.items() if k != "data"}}
        try:
            return Node.model_validate(record)
        except ValidationError as exc:
            node_id = record.get("id")
            defects.append(GraphDefect(
                index=index,
                node_id=str(node_id) if node_id is not None else None,
                reason="invalid_payload",
                detail="; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                    for err in exc.errors()
                ),
            ))
            return None

    @classmethod
    def coerce(cls, graph: GraphInput, derive_stage_from_type: bool = False) -> GraphModel:
        """Return ``graph`` unchanged if it is a GraphModel, else build one."""
        if isinstance(graph, GraphModel):
            return graph
        return cls.build(graph, derive_stage_from_type=derive_stage_from_type)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> tuple:
        return self._nodes

    @property
    def edges(self) -> tuple:
        return self._edges

    @property
    def defects(self) -> tuple:
        return self._defects

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def get(self, node_id: str) -> Optional[Node]:
        """Return the node with ``node_id``, if present."""
        return self._by_id.get(node_id)

    # ------------------------------------------------------------------
    # Stage handling
    # ------------------------------------------------------------------

    def stage_of(self, node: Node) -> Optional[LifecycleStage]:
        """Return the lifecycle stage scoring uses for ``node``.

        The declared stage always wins. The type-implied stage is used only
        when ``derive_stage_from_type`` is set and no stage is declared.
        """
        declared = node.stage
        if declared is not None or not self.derive_stage_from_type:
            return declared
        node_type = node.node_type
        return TYPE_STAGE.get(node_type) if node_type is not None else None

    def nodes_in_stage(self, stage: LifecycleStage) -> List[Node]:
        """Return the nodes whose effective stage is ``stage``."""
        return [n for n in self._nodes if self.stage_of(n) is stage]

    def present_stages(self) -> List[LifecycleStage]:
        """Return the canonical stages declared by at least one node."""
        present = {self.stage_of(n) for n in self._nodes}
        return [s for s in LifecycleStage if s in present]

    def missing_lifecycle_stages(self) -> List[LifecycleStage]:
        """Return the canonical stages no node declares, in canonical order."""
        present = set(self.present_stages())
        return [s for s in LifecycleStage if s not in present]

    def stage_type_mismatches(self) -> List[StageMismatch]:
        """List nodes whose declared stage disagrees with their type."""
        mismatches = []
        for node in self._nodes:
            node_type = node.node_type
            implied = TYPE_STAGE.get(node_type) if node_type is not None else None
            if implied is None:
                continue
            if node.stage is not implied:
                mismatches.append(StageMismatch(
                    node_id=node.id,
                    node_type=node_type.value,
                    declared_stage=node.lifecycle_stage,
                    implied_stage=implied.value,
                ))
        return mismatches

    # ------------------------------------------------------------------
    # Quantity helpers
    # ------------------------------------------------------------------

    @staticmethod
    def quantity_of(node: Node) -> float:
        """Return the node quantity, or 0.0 when it is not a real positive quantity."""
        return parse_positive(node.quantity) or 0.0

    @staticmethod
    def has_quantity(node: Node) -> bool:
        return is_positive_quantity(node.quantity)


__all__ = [
    "GraphDefect",
    "GraphInput",
    "GraphModel",
    "StageMismatch",
    "extract_year",
]
