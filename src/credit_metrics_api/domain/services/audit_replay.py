# src/credit_metrics_api/domain/services/audit_replay.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Replay proofs for audit exporters.

Purpose:
    Tie a computation's output hash to the registry binding that produced it,
    and verify a later recomputation against that proof.

Layer:
    domain/services
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from credit_metrics_api.domain.entities.metric_registry import RegistryBinding
from credit_metrics_api.domain.services.canonical_hash import hash_outputs


@dataclass(frozen=True)
class ReplayProof:
    """Stored alongside exported results."""

    version_id: str
    content_hash: str
    outputs_hash: str


@dataclass(frozen=True)
class ReplayVerification:
    """Outcome of re-running a computation against a stored proof."""

    hash_match: bool
    binding_match: bool
    expected_outputs_hash: str
    actual_outputs_hash: str

    @property
    def verified(self) -> bool:
        return self.hash_match and self.binding_match


def build_replay_proof(binding: RegistryBinding, outputs: Any) -> ReplayProof:
    """Return the proof for ``outputs`` computed under ``binding``."""
    return ReplayProof(
        version_id=binding.version_id,
        content_hash=binding.content_hash,
        outputs_hash=hash_outputs(outputs),
    )


def verify_replay(proof: ReplayProof, binding: RegistryBinding, outputs: Any) -> ReplayVerification:
    """Compare recomputed ``outputs`` and ``binding`` against ``proof``."""
    actual = hash_outputs(outputs)
    return ReplayVerification(
        hash_match=actual == proof.outputs_hash,
        binding_match=(
            binding.version_id == proof.version_id and binding.content_hash == proof.content_hash
        ),
        expected_outputs_hash=proof.outputs_hash,
        actual_outputs_hash=actual,
    )


__all__ = ["ReplayProof", "ReplayVerification", "build_replay_proof", "verify_replay"]
