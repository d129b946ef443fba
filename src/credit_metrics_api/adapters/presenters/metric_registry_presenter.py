# src/credit_metrics_api/adapters/presenters/metric_registry_presenter.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Presenters for metric registry HTTP responses.

Purpose:
    Transform registry entities and use-case results into stable HTTP
    response envelopes and schemas.

Layer:
    adapters/presenters
"""

from __future__ import annotations

from collections.abc import Sequence

from credit_metrics_api.adapters.schemas.http.envelopes import SuccessEnvelope
from credit_metrics_api.adapters.schemas.http.metric_registry_schemas import (
    BankRegistryPinHTTP,
    MetricDefinitionHTTP,
    RegistryBindingHTTP,
    RegistryEntryHTTP,
    RegistryVersionDetailHTTP,
    RegistryVersionHTTP,
)
from credit_metrics_api.application.use_cases.metric_registry.create_registry_draft import (
    CreateRegistryDraftResult,
)
from credit_metrics_api.application.use_cases.metric_registry.list_registry_versions import (
    LoadVersionEntriesResult,
)
from credit_metrics_api.domain.entities.metric_definition import MetricDefinition
from credit_metrics_api.domain.entities.metric_registry import (
    BankRegistryPin,
    RegistryBinding,
    RegistryEntry,
    RegistryVersion,
)


def to_version_http(version: RegistryVersion) -> RegistryVersionHTTP:
    """Map a registry version into its HTTP schema."""
    return RegistryVersionHTTP(
        id=version.id,
        name=version.name,
        version_number=version.version_number,
        status=version.status,
        content_hash=version.content_hash,
        published_at=version.published_at,
        created_at=version.created_at,
        updated_at=version.updated_at,
        created_by=version.created_by,
    )


def to_entry_http(entry: RegistryEntry) -> RegistryEntryHTTP:
    """Map a registry entry into its HTTP schema."""
    return RegistryEntryHTTP(
        id=entry.id,
        registry_version_id=entry.registry_version_id,
        metric_key=entry.metric_key,
        definition=dict(entry.definition_json),
        definition_hash=entry.definition_hash,
        created_at=entry.created_at,
    )


def _definition_http(definition: MetricDefinition) -> MetricDefinitionHTTP:
    return MetricDefinitionHTTP(
        key=definition.key,
        depends_on=list(definition.depends_on),
        formula=definition.formula.render(),
        description=definition.description,
        regulatory_reference=definition.regulatory_reference,
    )


def binding_http(binding: RegistryBinding) -> RegistryBindingHTTP:
    """Map a registry binding into its HTTP schema."""
    return RegistryBindingHTTP(
        version_id=binding.version_id,
        version_name=binding.version_name,
        content_hash=binding.content_hash,
        pinned=binding.pinned,
    )


def to_binding_http(binding: RegistryBinding | None) -> RegistryBindingHTTP | None:
    """Like :func:`binding_http`, passing ``None`` through."""
    return binding_http(binding) if binding is not None else None


def present_registry_version(version: RegistryVersion) -> SuccessEnvelope[RegistryVersionHTTP]:
    """Present a single registry version."""
    return SuccessEnvelope(data=to_version_http(version))


def present_registry_versions(
    versions: Sequence[RegistryVersion],
) -> SuccessEnvelope[list[RegistryVersionHTTP]]:
    """Present a list of versions, preserving repository ordering."""
    return SuccessEnvelope(data=[to_version_http(v) for v in versions])


def present_registry_draft(
    result: CreateRegistryDraftResult,
) -> SuccessEnvelope[RegistryVersionDetailHTTP]:
    """Present a freshly created draft with its seeded entries."""
    data = RegistryVersionDetailHTTP(
        version=to_version_http(result.version),
        entries=[to_entry_http(e) for e in result.entries],
    )
    return SuccessEnvelope(data=data)


def present_registry_entry(entry: RegistryEntry) -> SuccessEnvelope[RegistryEntryHTTP]:
    """Present a single appended entry."""
    return SuccessEnvelope(data=to_entry_http(entry))


def present_registry_version_detail(
    result: LoadVersionEntriesResult,
) -> SuccessEnvelope[RegistryVersionDetailHTTP]:
    """Present a version with its entries and validated definitions.

    Args:
        result: Loaded version, entries ordered by metric key and definitions.

    Returns:
        SuccessEnvelope containing a RegistryVersionDetailHTTP payload.
    """
    data = RegistryVersionDetailHTTP(
        version=to_version_http(result.version),
        entries=[to_entry_http(e) for e in result.entries],
        definitions=[_definition_http(d) for d in result.definitions],
    )
    return SuccessEnvelope(data=data)


def present_bank_pin(pin: BankRegistryPin) -> SuccessEnvelope[BankRegistryPinHTTP]:
    """Present a bank registry pin."""
    data = BankRegistryPinHTTP(
        id=pin.id,
        bank_id=pin.bank_id,
        registry_version_id=pin.registry_version_id,
        pinned_at=pin.pinned_at,
        pinned_by=pin.pinned_by,
        reason=pin.reason,
    )
    return SuccessEnvelope(data=data)


def present_registry_binding(
    binding: RegistryBinding | None,
) -> SuccessEnvelope[RegistryBindingHTTP | None]:
    """Present the resolved binding; ``data`` is null when nothing is published."""
    return SuccessEnvelope(data=to_binding_http(binding))


__all__ = [
    "binding_http",
    "present_bank_pin",
    "present_registry_binding",
    "present_registry_draft",
    "present_registry_entry",
    "present_registry_version",
    "present_registry_version_detail",
    "present_registry_versions",
    "to_binding_http",
    "to_entry_http",
    "to_version_http",
]
