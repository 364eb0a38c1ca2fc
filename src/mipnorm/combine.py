"""Finalisation of block-row chains and their log-sum-exp combination."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from .errors import DegenerateNorm


def projected_log_norm(weights: np.ndarray, log_norm: float, *, block_row: int = 0) -> float:
    """Fold the all-ones projection of ``weights`` into ``log_norm``.

    Summing the entries of the running row vector is the final implicit
    multiplication by the all-ones column vector.
    """

    projection = float(np.sum(weights))
    if not math.isfinite(projection) or projection <= 0.0:
        raise DegenerateNorm(
            f"block row {block_row} projects to {projection!r}; its logarithm is undefined",
            block_row=block_row,
        )
    return log_norm + math.log(projection)


def log_sum_exp(values: Sequence[float]) -> float:
    """Return ``ln(sum(exp(x)))`` without overflowing for large ``x``.

    >>> log_sum_exp([0.0])
    0.0
    >>> abs(log_sum_exp([1000.0, 1000.0]) - (1000.0 + math.log(2.0))) < 1e-9
    True
    """

    if not values:
        raise ValueError("log_sum_exp requires at least one value")
    if len(values) == 1:
        return float(values[0])
    peak = max(values)
    total = 0.0
    for value in values:
        total += math.exp(value - peak)
    return peak + math.log(total)


__all__ = ["log_sum_exp", "projected_log_norm"]
