"""ORM models for the registry store."""

from __future__ import annotations

from credit_metrics_api.infrastructure.database.models.base import Base, metadata
from credit_metrics_api.infrastructure.database.models.metric_registry import (
    BankRegistryPinRow,
    MetricRegistryEntry,
    MetricRegistryVersion,
)

__all__ = [
    "BankRegistryPinRow",
    "Base",
    "MetricRegistryEntry",
    "MetricRegistryVersion",
    "metadata",
]
