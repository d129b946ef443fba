# src/credit_metrics_api/domain/services/metric_comparison.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Metric value comparison for registry upgrade previews and drift checks.

Layer:
    domain/services
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from credit_metrics_api.domain.entities.amount import ABSENT, Amount, Present


@dataclass(frozen=True)
class MetricDelta:
    """A metric whose value differs between two evaluations."""

    metric: str
    before: Amount
    after: Amount
    delta: Amount = ABSENT


@dataclass(frozen=True)
class MetricComparison:
    """Outcome of comparing two metric maps."""

    changed: tuple[MetricDelta, ...] = ()
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    unchanged: tuple[str, ...] = ()

    @property
    def has_drift(self) -> bool:
        return bool(self.changed or self.added or self.removed)

    def summary(self) -> dict[str, int]:
        return {
            "changed": len(self.changed),
            "added": len(self.added),
            "removed": len(self.removed),
            "unchanged": len(self.unchanged),
        }


def compare_metric_values(
    current: Mapping[str, Amount],
    candidate: Mapping[str, Amount],
) -> MetricComparison:
    """Compare two metric maps key by key.

    A metric going from a value to absent (or back) counts as changed.
    ``delta`` is only present when both sides have values.
    """
    changed: list[MetricDelta] = []
    unchanged: list[str] = []
    for metric in sorted(set(current) & set(candidate)):
        before, after = current[metric], candidate[metric]
        if before == after:
            unchanged.append(metric)
            continue
        delta: Amount = ABSENT
        if isinstance(before, Present) and isinstance(after, Present):
            delta = Present(after.value - before.value)
        changed.append(MetricDelta(metric=metric, before=before, after=after, delta=delta))
    return MetricComparison(
        changed=tuple(changed),
        added=tuple(sorted(set(candidate) - set(current))),
        removed=tuple(sorted(set(current) - set(candidate))),
        unchanged=tuple(unchanged),
    )


__all__ = ["MetricComparison", "MetricDelta", "compare_metric_values"]
