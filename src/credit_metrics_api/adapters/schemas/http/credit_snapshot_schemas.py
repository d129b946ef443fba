# src/credit_metrics_api/adapters/schemas/http/credit_snapshot_schemas.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""HTTP schemas for credit snapshot endpoints (v1).

Layer:
    adapters/schemas/http

Notes:
    - Absent values are serialized as ``null``. A ``null`` value never means
      zero.
    - Decimals serialize as JSON strings.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from credit_metrics_api.adapters.schemas.http.base import BaseHTTPSchema
from credit_metrics_api.adapters.schemas.http.metric_registry_schemas import RegistryBindingHTTP
from credit_metrics_api.domain.enums.credit_analysis import (
    BusinessModel,
    DebtServiceAlignment,
    DebtServiceSource,
    FormulaDiagnosticCode,
    InstrumentSource,
    PaymentFrequency,
    PeriodSelectionStrategy,
    PeriodType,
    SnapshotIssueKind,
)

FactMap = dict[str, Decimal | None]


class FinancialPeriodHTTP(BaseModel):
    """One financial period of the deal's model."""

    model_config = ConfigDict(extra="forbid")

    period_id: str = Field(
        ..., min_length=1, description="Upstream period id.", examples=["p-fye-2024"]
    )
    period_end: date = Field(..., description="Last day covered by the period.")
    period_type: PeriodType = Field(..., description="Reporting window.", examples=["FYE"])
    income: FactMap | None = Field(
        default=None,
        description="Income-statement facts.",
        examples=[{"revenue": "1000000", "ebitda": "250000", "interest": "40000"}],
    )
    balance: FactMap | None = Field(default=None, description="Balance-sheet facts.")
    cashflow: FactMap | None = Field(default=None, description="Cash-flow facts.")
    quality_flags: list[str] = Field(default_factory=list, description="Upstream quality flags.")


class DebtInstrumentHTTP(BaseModel):
    """Debt instrument supplied with a snapshot request."""

    model_config = ConfigDict(extra="forbid")

    instrument_id: str = Field(..., min_length=1)
    source: InstrumentSource = Field(..., examples=["proposed"])
    principal: Decimal = Field(..., description="Outstanding principal.", examples=["1000000"])
    rate: Decimal = Field(..., description="Annual rate as a fraction.", examples=["0.065"])
    amortization_months: int = Field(..., description="Amortization schedule length.")
    payment_frequency: PaymentFrequency = Field(default=PaymentFrequency.MONTHLY)
    interest_only_months: int = Field(default=0)
    term_months: int | None = Field(default=None)
    balloon: bool = Field(default=False)


class PeriodSelectionHTTP(BaseModel):
    """Period selection options."""

    model_config = ConfigDict(extra="forbid")

    strategy: PeriodSelectionStrategy = Field(default=PeriodSelectionStrategy.LATEST_FY)
    period_id: str | None = Field(default=None, description="Required for EXPLICIT.")


class ReplayProofHTTP(BaseHTTPSchema):
    """Replay proof stored alongside exported results."""

    version_id: str
    content_hash: str
    outputs_hash: str


class ComputeCreditSnapshotRequestHTTP(BaseModel):
    """Request body for POST /v1/credit-snapshots/compute."""

    model_config = ConfigDict(extra="forbid")

    deal_id: str = Field(..., min_length=1, examples=["deal-001"])
    periods: list[FinancialPeriodHTTP] = Field(default_factory=list)
    period_selection: PeriodSelectionHTTP | None = Field(
        default=None, description="Defaults to the configured strategy."
    )
    instruments: list[DebtInstrumentHTTP] | None = Field(
        default=None,
        description="Instrument portfolio. When omitted the interest proxy is used.",
    )
    bank_id: str | None = Field(default=None, description="Tenant for registry pin resolution.")
    business_model: BusinessModel | None = Field(
        default=None, description="Declared business model; inferred when omitted."
    )
    replay_proof: ReplayProofHTTP | None = Field(
        default=None, description="Previously stored proof to verify."
    )


class PreviewRegistryUpgradeRequestHTTP(BaseModel):
    """Request body for POST /v1/credit-snapshots/upgrade-preview."""

    model_config = ConfigDict(extra="forbid")

    deal_id: str = Field(..., min_length=1)
    periods: list[FinancialPeriodHTTP] = Field(default_factory=list)
    candidate_version_id: str = Field(..., description="Registry version to compare against.")
    bank_id: str | None = Field(default=None)
    period_selection: PeriodSelectionHTTP | None = Field(default=None)


class PeriodSelectionDiagnosticsHTTP(BaseHTTPSchema):
    strategy: PeriodSelectionStrategy
    candidate_period_ids: list[str] = Field(default_factory=list)
    excluded_period_ids: list[str] = Field(default_factory=list)
    reason: str


class SelectedPeriodHTTP(BaseHTTPSchema):
    period_id: str
    period_end: date
    period_type: PeriodType
    diagnostics: PeriodSelectionDiagnosticsHTTP


class DebtServiceHTTP(BaseHTTPSchema):
    """Harmonized annual debt service."""

    period_id: str
    total_debt_service: Decimal | None = None
    existing: Decimal | None = None
    proposed: Decimal | None = None
    source: DebtServiceSource
    missing_components: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    alignment: DebtServiceAlignment | None = None


class MetricResultHTTP(BaseHTTPSchema):
    """One ratio with its audit trail."""

    metric: str = Field(..., examples=["dscr"])
    value: Decimal | None = Field(default=None, description="Null when unavailable.")
    available: bool
    formula: str
    inputs: dict[str, Decimal | None] = Field(default_factory=dict)
    missing_inputs: list[str] = Field(default_factory=list)
    divide_by_zero: bool = False


class SnapshotIssueHTTP(BaseHTTPSchema):
    metric: str
    issue: SnapshotIssueKind
    message: str


class SnapshotValidationHTTP(BaseHTTPSchema):
    valid: bool
    errors: list[SnapshotIssueHTTP] = Field(default_factory=list)
    warnings: list[SnapshotIssueHTTP] = Field(default_factory=list)


class FormulaDiagnosticHTTP(BaseHTTPSchema):
    code: FormulaDiagnosticCode
    metric: str
    message: str
    operand: str | None = None


class RegistryMetricsHTTP(BaseHTTPSchema):
    """Values computed from the bound registry."""

    values: dict[str, Decimal | None] = Field(default_factory=dict)
    diagnostics: list[FormulaDiagnosticHTTP] = Field(default_factory=list)


class ReplayVerificationHTTP(BaseHTTPSchema):
    verified: bool
    hash_match: bool
    binding_match: bool
    expected_outputs_hash: str
    actual_outputs_hash: str


class CreditSnapshotHTTP(BaseHTTPSchema):
    """Credit snapshot response."""

    deal_id: str
    generated_at: datetime
    selected_period: SelectedPeriodHTTP
    debt_service: DebtServiceHTTP
    ratios: list[MetricResultHTTP] = Field(default_factory=list)
    registry_binding: RegistryBindingHTTP | None = None
    registry_metrics: RegistryMetricsHTTP | None = None
    validation: SnapshotValidationHTTP
    outputs_hash: str = Field(..., description="Content hash of the replayable outputs.")
    replay_proof: ReplayProofHTTP | None = None
    replay_verification: ReplayVerificationHTTP | None = None


class MetricDeltaHTTP(BaseHTTPSchema):
    metric: str
    before: Decimal | None = None
    after: Decimal | None = None
    delta: Decimal | None = None


class RegistryUpgradePreviewHTTP(BaseHTTPSchema):
    """Metric drift between the current and a candidate registry version."""

    period_id: str
    current_binding: RegistryBindingHTTP | None = None
    candidate_binding: RegistryBindingHTTP
    has_drift: bool
    summary: dict[str, int] = Field(default_factory=dict)
    changed: list[MetricDeltaHTTP] = Field(default_factory=list)
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)
    current_diagnostics: list[FormulaDiagnosticHTTP] = Field(default_factory=list)
    candidate_diagnostics: list[FormulaDiagnosticHTTP] = Field(default_factory=list)


__all__ = [
    "ComputeCreditSnapshotRequestHTTP",
    "CreditSnapshotHTTP",
    "DebtInstrumentHTTP",
    "DebtServiceHTTP",
    "FinancialPeriodHTTP",
    "FormulaDiagnosticHTTP",
    "MetricDeltaHTTP",
    "MetricResultHTTP",
    "PeriodSelectionDiagnosticsHTTP",
    "PeriodSelectionHTTP",
    "PreviewRegistryUpgradeRequestHTTP",
    "RegistryMetricsHTTP",
    "RegistryUpgradePreviewHTTP",
    "ReplayProofHTTP",
    "ReplayVerificationHTTP",
    "SelectedPeriodHTTP",
    "SnapshotIssueHTTP",
    "SnapshotValidationHTTP",
]
