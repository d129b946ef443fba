# src/credit_metrics_api/adapters/schemas/http/metric_registry_schemas.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""HTTP schemas for metric registry endpoints (v1).

Layer:
    adapters/schemas/http
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from credit_metrics_api.adapters.schemas.http.base import BaseHTTPSchema
from credit_metrics_api.domain.enums.metric_registry import RegistryVersionStatus

_DSCR_DEFINITION: dict[str, Any] = {
    "formula": {"type": "divide", "left": "NOI", "right": "DEBT_SERVICE"},
    "dependsOn": ["NOI", "DEBT_SERVICE"],
    "description": "Debt service coverage ratio",
}


class CreateRegistryDraftRequestHTTP(BaseModel):
    """Request body for POST /v1/metric-registry/drafts."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(
        ..., min_length=1, max_length=128, description="Version name.", examples=["v2"]
    )
    created_by: str | None = Field(
        default=None, max_length=128, description="Actor creating the draft."
    )
    entries: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Initial entries keyed by metric key.",
        examples=[{"DSCR": _DSCR_DEFINITION}],
    )


class AddRegistryEntryRequestHTTP(BaseModel):
    """Request body for POST /v1/metric-registry/drafts/{version_id}/entries."""

    model_config = ConfigDict(extra="forbid")

    metric_key: str = Field(
        ..., min_length=1, max_length=128, description="Metric key.", examples=["DSCR"]
    )
    definition: dict[str, Any] = Field(
        ...,
        description="Formula definition (structured or legacy expression string).",
        examples=[_DSCR_DEFINITION, {"expr": "NOI / DEBT_SERVICE"}],
    )


class RegistryTransitionRequestHTTP(BaseModel):
    """Optional body for publish/deprecate transitions."""

    model_config = ConfigDict(extra="forbid")

    actor: str | None = Field(default=None, max_length=128, description="Acting user.")


class PinBankRegistryRequestHTTP(BaseModel):
    """Request body for PUT /v1/metric-registry/pins/{bank_id}."""

    model_config = ConfigDict(extra="forbid")

    version_id: str = Field(..., description="Published or deprecated version to pin.")
    pinned_by: str | None = Field(default=None, max_length=128, description="Acting user.")
    reason: str | None = Field(default=None, description="Why the bank is pinned.")


class RegistryVersionHTTP(BaseHTTPSchema):
    """Registry version in HTTP form."""

    id: str = Field(..., description="Version identifier.")
    name: str = Field(..., description="Version name.")
    version_number: int = Field(..., description="Monotonic sequence number.")
    status: RegistryVersionStatus = Field(..., description="Governance status.")
    content_hash: str | None = Field(
        default=None, description="SHA-256 over canonicalized entries; null until published."
    )
    published_at: datetime | None = Field(default=None, description="Publish timestamp.")
    created_at: datetime = Field(..., description="Creation timestamp.")
    updated_at: datetime = Field(..., description="Last status change timestamp.")
    created_by: str | None = Field(default=None, description="Actor that created the draft.")


class RegistryEntryHTTP(BaseHTTPSchema):
    """Registry entry in HTTP form."""

    id: str = Field(..., description="Entry identifier.")
    registry_version_id: str = Field(..., description="Owning version.")
    metric_key: str = Field(..., description="Metric key.")
    definition: dict[str, Any] = Field(..., description="Stored definition document.")
    definition_hash: str = Field(..., description="SHA-256 of the canonical definition.")
    created_at: datetime = Field(..., description="Creation timestamp.")


class MetricDefinitionHTTP(BaseHTTPSchema):
    """Validated metric definition in HTTP form."""

    key: str = Field(..., description="Metric key.")
    depends_on: list[str] = Field(default_factory=list, description="Dependency keys.")
    formula: str = Field(
        ..., description="Human-readable formula.", examples=["NOI / DEBT_SERVICE"]
    )
    description: str | None = Field(default=None)
    regulatory_reference: str | None = Field(default=None)


class RegistryVersionDetailHTTP(BaseHTTPSchema):
    """A version together with its entries and definitions."""

    version: RegistryVersionHTTP
    entries: list[RegistryEntryHTTP] = Field(default_factory=list)
    definitions: list[MetricDefinitionHTTP] = Field(default_factory=list)


class BankRegistryPinHTTP(BaseHTTPSchema):
    """Bank registry pin in HTTP form."""

    id: str
    bank_id: str
    registry_version_id: str
    pinned_at: datetime
    pinned_by: str | None = None
    reason: str | None = None


class RegistryBindingHTTP(BaseHTTPSchema):
    """Registry version a computation is bound to."""

    version_id: str = Field(..., description="Bound version.")
    version_name: str = Field(..., description="Bound version name.")
    content_hash: str = Field(..., description="Content hash of the bound formula set.")
    pinned: bool = Field(default=False, description="True when resolved through a bank pin.")


__all__ = [
    "AddRegistryEntryRequestHTTP",
    "BankRegistryPinHTTP",
    "CreateRegistryDraftRequestHTTP",
    "MetricDefinitionHTTP",
    "PinBankRegistryRequestHTTP",
    "RegistryBindingHTTP",
    "RegistryEntryHTTP",
    "RegistryTransitionRequestHTTP",
    "RegistryVersionDetailHTTP",
    "RegistryVersionHTTP",
]
