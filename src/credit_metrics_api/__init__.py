# src/credit_metrics_api/__init__.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Credit metrics API.

Deterministic credit-metrics computation on top of an immutable,
content-addressed formula registry.
"""

__version__ = "0.1.0"
