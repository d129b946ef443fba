# src/credit_metrics_api/application/use_cases/metric_registry/pin_bank_registry.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Use cases: Pin and unpin a bank to a registry version.

Purpose:
    A pin overrides the "latest published" default for one bank. A bank has
    at most one live pin; pinning again replaces it. Pins may reference a
    deprecated version deliberately, but never a draft.

Layer:
    application/use_cases/metric_registry
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from credit_metrics_api.application.uow import UnitOfWork
from credit_metrics_api.application.use_cases.metric_registry._common import (
    get_registry_repository,
    record_transition,
    require_version,
)
from credit_metrics_api.domain.entities.metric_registry import BankRegistryPin
from credit_metrics_api.domain.exceptions.base import DomainError
from credit_metrics_api.domain.exceptions.metric_registry import BankRegistryPinNotFound
from credit_metrics_api.domain.services.registry_state_machine import ensure_pinnable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PinBankRegistryRequest:
    """Request parameters for pinning a bank."""

    bank_id: str
    version_id: str
    pinned_by: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class UnpinBankRegistryRequest:
    """Request parameters for removing a bank pin."""

    bank_id: str


class PinBankRegistryUseCase:
    """Create or replace the live pin for a bank.

    Raises:
        RegistryVersionNotFound: If the version does not exist.
        RegistryNotPinnableError: If the version is a draft.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        """Initialize the use case."""
        self._uow = uow

    async def execute(self, req: PinBankRegistryRequest) -> BankRegistryPin:
        """Execute the pin upsert and commit."""
        try:
            async with self._uow as tx:
                repo = get_registry_repository(tx)
                version = await require_version(repo, req.version_id)
                ensure_pinnable(version)
                pin = await repo.upsert_bank_pin(
                    bank_id=req.bank_id,
                    version_id=version.id,
                    pinned_by=req.pinned_by,
                    reason=req.reason,
                )
                await tx.commit()
        except DomainError as exc:
            record_transition("pin", exc.code)
            raise

        record_transition("pin", "success")
        logger.info(
            "metric_registry.pin.success",
            extra={
                "bank_id": pin.bank_id,
                "version_id": pin.registry_version_id,
                "version_status": version.status.value,
                "pinned_by": pin.pinned_by,
            },
        )
        return pin


class UnpinBankRegistryUseCase:
    """Remove the live pin for a bank.

    Raises:
        BankRegistryPinNotFound: If the bank has no pin.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        """Initialize the use case."""
        self._uow = uow

    async def execute(self, req: UnpinBankRegistryRequest) -> None:
        """Execute the pin removal and commit."""
        async with self._uow as tx:
            repo = get_registry_repository(tx)
            removed = await repo.delete_bank_pin(req.bank_id)
            if not removed:
                record_transition("unpin", BankRegistryPinNotFound.code)
                raise BankRegistryPinNotFound(
                    f"No registry pin for bank {req.bank_id}.",
                    details={"bank_id": req.bank_id},
                )
            await tx.commit()

        record_transition("unpin", "success")
        logger.info("metric_registry.unpin.success", extra={"bank_id": req.bank_id})


__all__ = [
    "PinBankRegistryRequest",
    "PinBankRegistryUseCase",
    "UnpinBankRegistryRequest",
    "UnpinBankRegistryUseCase",
]
