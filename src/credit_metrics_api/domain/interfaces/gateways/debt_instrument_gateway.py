# src/credit_metrics_api/domain/interfaces/gateways/debt_instrument_gateway.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Debt instrument gateway interface.

Purpose:
    Provider-agnostic contract for the external debt-instrument portfolio
    engine that supplies a deal's existing and proposed instruments.

Layer:
    domain/interfaces/gateways
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from credit_metrics_api.domain.entities.debt_instrument import DebtInstrument


class DebtInstrumentGateway(Protocol):
    """Protocol for debt-instrument portfolio providers."""

    async def list_instruments(self, deal_id: str) -> Sequence[DebtInstrument] | None:
        """Return the deal's instruments.

        Args:
            deal_id: Deal identifier.

        Returns:
            Instruments, or ``None`` when the deal has no portfolio on file;
            callers then fall back to the interest proxy.
        """
        ...


__all__ = ["DebtInstrumentGateway"]
