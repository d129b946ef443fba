# src/credit_metrics_api/domain/services/registry_state_machine.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Registry version governance rules.

Purpose:
    Pure guards for the registry lifecycle:

        draft --publish--> published --deprecate--> deprecated

    Use cases call these before asking the store for the matching
    compare-and-swap transition. The store's guard remains authoritative
    under concurrency; these checks turn the common cases into precise,
    named errors.

Layer:
    domain/services
"""

from __future__ import annotations

from credit_metrics_api.domain.entities.metric_registry import RegistryVersion
from credit_metrics_api.domain.enums.metric_registry import RegistryVersionStatus
from credit_metrics_api.domain.exceptions.metric_registry import (
    RegistryAlreadyDeprecatedError,
    RegistryImmutableError,
    RegistryNoEntriesError,
    RegistryNotDeprecatableError,
    RegistryNotPinnableError,
)


def ensure_appendable(version: RegistryVersion) -> None:
    """Raise unless entries may still be added to ``version``.

    Raises:
        RegistryImmutableError: If the version is not a draft.
    """
    if not version.is_draft:
        raise RegistryImmutableError(
            f"Registry version {version.id} is {version.status.value}; entries are immutable.",
            details={"version_id": version.id, "status": version.status.value},
        )


def ensure_publishable(version: RegistryVersion, entry_count: int) -> None:
    """Raise unless ``version`` may be published.

    Raises:
        RegistryImmutableError: If the version is not a draft.
        RegistryNoEntriesError: If the version holds no entries.
    """
    if not version.is_draft:
        raise RegistryImmutableError(
            f"Registry version {version.id} is {version.status.value}; "
            "only drafts can be published.",
            details={"version_id": version.id, "status": version.status.value},
        )
    if entry_count < 1:
        raise RegistryNoEntriesError(
            f"Registry version {version.id} has no entries.",
            details={"version_id": version.id},
        )


def ensure_deprecatable(version: RegistryVersion) -> None:
    """Raise unless ``version`` may be deprecated.

    Raises:
        RegistryAlreadyDeprecatedError: If the version is already deprecated.
        RegistryNotDeprecatableError: If the version is still a draft.
    """
    if version.status is RegistryVersionStatus.DEPRECATED:
        raise RegistryAlreadyDeprecatedError(
            f"Registry version {version.id} is already deprecated.",
            details={"version_id": version.id},
        )
    if version.status is not RegistryVersionStatus.PUBLISHED:
        raise RegistryNotDeprecatableError(
            f"Registry version {version.id} is {version.status.value}; "
            "only published versions can be deprecated.",
            details={"version_id": version.id, "status": version.status.value},
        )


def ensure_pinnable(version: RegistryVersion) -> None:
    """Raise if ``version`` is a draft. Deprecated versions may be pinned.

    Raises:
        RegistryNotPinnableError: If the version is a draft.
    """
    if version.is_draft:
        raise RegistryNotPinnableError(
            f"Registry version {version.id} is a draft and cannot be pinned.",
            details={"version_id": version.id},
        )


__all__ = [
    "ensure_appendable",
    "ensure_deprecatable",
    "ensure_pinnable",
    "ensure_publishable",
]
