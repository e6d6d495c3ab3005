# -*- coding: utf-8 -*-
"""
Provenance Tracking for CarbonFlow Scoring

Provides deterministic SHA-256 content hashes for every outbound report and
an in-memory chain-hashed operation log used by the service facade.

Zero-Hallucination Guarantees:
    - Report hashes cover report content only (no timestamps, no ids)
    - Identical graph snapshots always produce identical hashes
    - Chain hashing links service operations in sequence
    - JSON export for external audit systems

Example:
    >>> from carbonflow.provenance import ProvenanceTracker, compute_hash
    >>> tracker = ProvenanceTracker()
    >>> tracker.record("credibility", "wf-001", "score", compute_hash({"a": 1}))
    >>> valid, chain = tracker.verify_chain("credibility", "wf-001")
    >>> assert valid is True

Author: CarbonFlow Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

HASH_FIELD = "provenance_hash"

ReportT = TypeVar("ReportT", bound=BaseModel)


def canonical_json(data: Any) -> str:
    """Serialise ``data`` to canonical JSON (sorted keys, compact separators)."""
    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")
    return json.dumps(
        data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str,
    )


def compute_hash(data: Any) -> str:
    """Compute a deterministic SHA-256 hash of arbitrary data.

    A top-level ``provenance_hash`` key is excluded so a report can carry
    the hash of its own content.

    Args:
        data: Data to hash (dict, list, str, or Pydantic model).

    Returns:
        SHA-256 hex digest string.
    """
    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")
    if isinstance(data, dict) and HASH_FIELD in data:
        data = {k: v for k, v in data.items() if k != HASH_FIELD}
    return hashlib.sha256(canonical_json(data).encode("utf-8")).hexdigest()


def stamp(report: ReportT) -> ReportT:
    """Return a copy of ``report`` with its content hash filled in."""
    return report.model_copy(update={HASH_FIELD: compute_hash(report)})


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


class ProvenanceTracker:
    """Tracks service operations with SHA-256 chain hashing.

    Maintains an ordered log of operations whose hashes chain together to
    give a tamper-evident audit trail, grouped by entity type and id.

    Attributes:
        _chain_store: In-memory chain storage grouped by entity key.
        _global_chain: Flat list of all entries in order.
        _last_chain_hash: Most recent chain hash for linking.
        _lock: Thread-safety lock.
    """

    _GENESIS_HASH = hashlib.sha256(b"carbonflow-scoring-genesis").hexdigest()

    def __init__(self) -> None:
        """Initialize ProvenanceTracker."""
        self._chain_store: Dict[str, List[Dict[str, Any]]] = {}
        self._global_chain: List[Dict[str, Any]] = []
        self._last_chain_hash: str = self._GENESIS_HASH
        self._lock = threading.Lock()
        logger.info("ProvenanceTracker initialized")

    def record(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        data_hash: str,
    ) -> str:
        """Record a provenance entry for an operation.

        Args:
            entity_type: Report kind (credibility, compliance, risk, ...).
            entity_id: Workflow id the report was computed for.
            action: Action performed (score, check, assess, analyze).
            data_hash: Content hash of the produced report.

        Returns:
            Chain hash of the new entry.
        """
        timestamp = _utcnow().isoformat()
        store_key = f"{entity_type}:{entity_id}"

        with self._lock:
            previous = self._last_chain_hash
            chain_hash = self._compute_chain_hash(
                previous, data_hash, action, timestamp,
            )
            entry = {
                "entity_type": entity_type,
                "entity_id": entity_id,
                "action": action,
                "data_hash": data_hash,
                "timestamp": timestamp,
                "previous_hash": previous,
                "chain_hash": chain_hash,
            }
            self._chain_store.setdefault(store_key, []).append(entry)
            self._global_chain.append(entry)
            self._last_chain_hash = chain_hash

        logger.debug(
            "Recorded provenance: %s/%s action=%s hash=%s",
            entity_type, entity_id, action, chain_hash[:16],
        )
        return chain_hash

    def verify_chain(
        self,
        entity_type: str,
        entity_id: str,
    ) -> Tuple[bool, List[Dict[str, Any]]]:
        """Recompute the chain hashes of an entity and compare them.

        Args:
            entity_type: Report kind.
            entity_id: Workflow id whose chain to verify.

        Returns:
            Tuple of (is_valid, chain_entries).
        """
        with self._lock:
            chain = list(self._chain_store.get(f"{entity_type}:{entity_id}", []))

        for entry in chain:
            expected = self._compute_chain_hash(
                entry["previous_hash"], entry["data_hash"],
                entry["action"], entry["timestamp"],
            )
            if expected != entry["chain_hash"]:
                logger.warning(
                    "Chain verification failed for %s/%s at %s",
                    entity_type, entity_id, entry["timestamp"],
                )
                return False, chain
        return True, chain

    def get_global_chain(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Return up to ``limit`` entries, newest first."""
        with self._lock:
            return list(reversed(self._global_chain[-limit:]))

    def _compute_chain_hash(
        self,
        previous_hash: str,
        data_hash: str,
        action: str,
        timestamp: str,
    ) -> str:
        combined = json.dumps({
            "previous": previous_hash,
            "data": data_hash,
            "action": action,
            "timestamp": timestamp,
        }, sort_keys=True)
        return hashlib.sha256(combined.encode("utf-8")).hexdigest()

    @property
    def entry_count(self) -> int:
        """Return the total number of provenance entries."""
        with self._lock:
            return len(self._global_chain)

    def export_json(self) -> str:
        """Export all provenance records as a JSON string."""
        with self._lock:
            data = list(self._global_chain)
        return json.dumps(data, indent=2, default=str)


__all__ = [
    "HASH_FIELD",
    "ProvenanceTracker",
    "canonical_json",
    "compute_hash",
    "stamp",
]
