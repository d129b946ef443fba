# src/credit_metrics_api/domain/exceptions/base.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Base Domain Exceptions.

Summary:
    Canonical base classes for domain/application exceptions to ensure
    deterministic mapping to HTTP at the boundary. Three categories exist:
    NotFound, StateConflict and ValidationFailure. Missing inputs and
    arithmetic hazards are never raised; they travel as diagnostics.

Layer:
    domain/exceptions
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for all domain/application exceptions.

    Attributes:
        code:
            Stable error code suitable for mapping to HTTP and metrics.
        message:
            Human-readable error message.
        details:
            Optional machine-readable diagnostic payload used by adapters and
            logging/observability code.
    """

    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        """Initialize a DomainError instance.

        Args:
            message:
                Human-readable error message, safe to surface to API clients.
            details:
                Optional structured diagnostic payload for logs or adapters.
        """
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}

    def __str__(self) -> str:
        """Return the human-readable error message."""
        return self.message


class NotFoundError(DomainError):
    """A referenced version, entry, pin or period does not exist."""

    code = "NOT_FOUND"


class StateConflictError(DomainError):
    """An operation is illegal for the current governance state."""

    code = "STATE_CONFLICT"


class ValidationFailure(DomainError):
    """Governance data failed structural validation."""

    code = "VALIDATION_FAILURE"


__all__ = ["DomainError", "NotFoundError", "StateConflictError", "ValidationFailure"]
