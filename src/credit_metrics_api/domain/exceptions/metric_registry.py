# src/credit_metrics_api/domain/exceptions/metric_registry.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Metric registry exceptions.

Purpose:
    Named errors raised by registry governance (publish, deprecate, authoring,
    pinning) and by the formula mapper. Each carries a stable ``code`` that
    adapters surface verbatim.

Layer:
    domain/exceptions
"""

from __future__ import annotations

from credit_metrics_api.domain.exceptions.base import (
    NotFoundError,
    StateConflictError,
    ValidationFailure,
)


class RegistryVersionNotFound(NotFoundError):
    """No registry version exists for the requested id."""

    code = "version_not_found"


class BankRegistryPinNotFound(NotFoundError):
    """No live pin exists for the requested bank."""

    code = "pin_not_found"


class RegistryImmutableError(StateConflictError):
    """The version is no longer a draft and cannot be changed or re-published."""

    code = "REGISTRY_IMMUTABLE"


class RegistryAlreadyDeprecatedError(StateConflictError):
    """The version has already been deprecated."""

    code = "already_deprecated"


class RegistryNotDeprecatableError(StateConflictError):
    """Only published versions can be deprecated."""

    code = "only_published_can_be_deprecated"


class RegistryNotPinnableError(StateConflictError):
    """Draft versions cannot be pinned to a bank."""

    code = "draft_not_pinnable"


class RegistryTransitionConflict(StateConflictError):
    """A compare-and-swap status transition lost a race.

    The transition name is folded into the code (``publish_failed`` or
    ``deprecate_failed``).
    """

    code = "transition_failed"

    def __init__(self, transition: str, *, version_id: str) -> None:
        """Initialize the conflict for a given transition.

        Args:
            transition: ``"publish"`` or ``"deprecate"``.
            version_id: Registry version identifier.
        """
        super().__init__(
            f"Concurrent {transition} detected for registry version {version_id}; "
            "status changed before the update was applied.",
            details={"version_id": version_id, "transition": transition},
        )
        self.code = f"{transition}_failed"


class RegistryVersionNumberConflict(StateConflictError):
    """Concurrent draft creations kept colliding on the next version number."""

    code = "version_number_conflict"


class DuplicateMetricKeyError(StateConflictError):
    """A draft already holds an entry for this metric key."""

    code = "duplicate_metric_key"


class RegistryNoEntriesError(ValidationFailure):
    """A version without entries cannot be published."""

    code = "no_entries"


class FormulaValidationError(ValidationFailure):
    """A registry entry lacks a usable formula or its formula is malformed."""

    code = "invalid_formula"

    def __init__(self, metric_key: str, reason: str) -> None:
        """Initialize the error naming the offending metric key.

        Args:
            metric_key: Metric key of the entry that failed validation.
            reason: Short description of the failure.
        """
        super().__init__(
            f"Invalid formula for metric {metric_key!r}: {reason}",
            details={"metric_key": metric_key, "reason": reason},
        )
        self.metric_key = metric_key


class MetricGraphCycleError(ValidationFailure):
    """Metric definitions depend on each other in a cycle."""

    code = "cycle_detected"


__all__ = [
    "BankRegistryPinNotFound",
    "DuplicateMetricKeyError",
    "FormulaValidationError",
    "MetricGraphCycleError",
    "RegistryAlreadyDeprecatedError",
    "RegistryImmutableError",
    "RegistryNoEntriesError",
    "RegistryNotDeprecatableError",
    "RegistryNotPinnableError",
    "RegistryTransitionConflict",
    "RegistryVersionNotFound",
    "RegistryVersionNumberConflict",
]
