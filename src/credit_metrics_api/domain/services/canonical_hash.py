# src/credit_metrics_api/domain/services/canonical_hash.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Canonical serialization and content hashing.

Purpose:
    Deterministic canonical JSON and SHA-256 digests for registry entries,
    whole registry versions and arbitrary result payloads (replay proofs).

Layer:
    domain/services

Design:
    - ``canonicalize`` sorts mapping keys, strips a fixed set of non-semantic
      fields (identifiers, timestamps, foreign keys, per-entry hash) at every
      nesting level, preserves sequence order and passes scalars through.
    - Dataclasses are canonicalized through their fields, ``Present`` through
      its value, ``Absent`` as ``null``.
    - Decimals are normalized and rendered without exponent so ``1.0`` and
      ``1.00`` hash identically.
    - Digest: ``sha256(utf8(json(canonicalize(v))))`` with compact separators.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from credit_metrics_api.domain.entities.amount import Absent, Present
from credit_metrics_api.types import JsonValue

#: Keys removed before hashing. They never change what a formula computes.
NON_SEMANTIC_FIELDS: frozenset[str] = frozenset(
    {
        "id",
        "created_at",
        "updated_at",
        "published_at",
        "pinned_at",
        "registry_version_id",
        "definition_hash",
        "createdAt",
        "updatedAt",
        "publishedAt",
        "pinnedAt",
        "registryVersionId",
        "definitionHash",
    }
)


def _canonical_decimal(value: Decimal) -> str:
    if not value.is_finite():
        return str(value)
    normalized = value.normalize()
    if normalized == 0:
        return "0"
    return format(normalized, "f")


def _canonical_key(key: Any) -> str:
    if isinstance(key, Enum):
        return str(key.value)
    return str(key)


def canonicalize(value: Any) -> JsonValue:
    """Return the canonical JSON-compatible form of ``value``.

    Args:
        value: Mapping, sequence, dataclass, amount or scalar.

    Returns:
        A JSON-compatible structure with sorted keys and non-semantic fields
        removed.

    Raises:
        TypeError: If ``value`` contains an unsupported type.
    """
    if isinstance(value, Enum):
        return canonicalize(value.value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Present):
        return canonicalize(value.value)
    if isinstance(value, Absent):
        return None
    if isinstance(value, Decimal):
        return _canonical_decimal(value)
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return canonicalize({f.name: getattr(value, f.name) for f in dataclasses.fields(value)})
    if isinstance(value, Mapping):
        items = {_canonical_key(k): v for k, v in value.items()}
        return {
            key: canonicalize(items[key]) for key in sorted(items) if key not in NON_SEMANTIC_FIELDS
        }
    if isinstance(value, (list, tuple)):
        return [canonicalize(item) for item in value]
    raise TypeError(f"Cannot canonicalize value of type {type(value).__name__}")


def canonical_json(value: Any) -> str:
    """Return the canonical JSON text of ``value``."""
    return json.dumps(
        canonicalize(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def hash_value(value: Any) -> str:
    """Return the hex SHA-256 digest of the canonical JSON of ``value``."""
    return hashlib.sha256(canonical_json(value).encode("utf-8")).hexdigest()


def hash_entry(metric_key: str, definition_json: Mapping[str, Any]) -> str:
    """Return the content hash of a single metric definition."""
    return hash_value({"metric_key": metric_key, "definition_json": definition_json})


def _entry_payload(entry: Any) -> dict[str, Any]:
    if isinstance(entry, Mapping):
        return {"metric_key": entry["metric_key"], "definition_json": entry["definition_json"]}
    return {"metric_key": entry.metric_key, "definition_json": entry.definition_json}


def hash_registry(entries: Iterable[Any]) -> str:
    """Return the content hash of a registry version.

    Entries are reduced to ``metric_key`` and ``definition_json`` and sorted
    by metric key before canonicalization, so storage order never matters.

    Args:
        entries: ``RegistryEntry`` objects or mappings with ``metric_key`` and
            ``definition_json``.
    """
    payload = sorted((_entry_payload(e) for e in entries), key=lambda e: e["metric_key"])
    return hash_value(payload)


def hash_outputs(outputs: Any) -> str:
    """Return the content hash of a computation's outputs for replay proofs."""
    return hash_value(outputs)


__all__ = [
    "NON_SEMANTIC_FIELDS",
    "canonical_json",
    "canonicalize",
    "hash_entry",
    "hash_outputs",
    "hash_registry",
    "hash_value",
]
