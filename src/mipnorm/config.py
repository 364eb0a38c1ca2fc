"""Configuration helpers for chain evaluation.

The module centralises defaults to keep them consistent between the CLI, tests,
and library callers.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

DEFAULT_LINES_PER_BATCH = 3
DEFAULT_BYTE_ORDER = "little"
RESULT_DECIMALS = 14

_BYTE_ORDER_CODES = {
    "little": "<",
    "big": ">",
    "native": "=",
}


def value_dtype(byte_order: str = DEFAULT_BYTE_ORDER) -> np.dtype:
    """Return the 8-byte float dtype used by model files for ``byte_order``."""

    try:
        code = _BYTE_ORDER_CODES[byte_order.lower()]
    except KeyError:
        choices = ", ".join(sorted(_BYTE_ORDER_CODES))
        raise ValueError(f"Unsupported byte order: {byte_order!r} (expected one of {choices})") from None
    return np.dtype(f"{code}f8")


@dataclass(frozen=True, slots=True)
class EvaluationConfig:
    """Tunable parameters for an evaluation run.

    Parameters
    ----------
    lines_per_batch:
        Number of symbol-source lines concatenated before their symbols are
        fed to the multiplier. Only affects I/O throughput.
    byte_order:
        Byte order of the doubles in the model file: ``"little"``, ``"big"``
        or ``"native"``.
    """

    lines_per_batch: int = DEFAULT_LINES_PER_BATCH
    byte_order: str = DEFAULT_BYTE_ORDER

    def __post_init__(self) -> None:
        if self.lines_per_batch < 1:
            raise ValueError("lines_per_batch must be >= 1")
        value_dtype(self.byte_order)

    def describe(self) -> str:
        """Return a human readable description.

        >>> EvaluationConfig().describe()
        'lines_per_batch=3 byte_order=little'
        >>> EvaluationConfig(lines_per_batch=64, byte_order="big").describe()
        'lines_per_batch=64 byte_order=big'
        """

        return f"lines_per_batch={self.lines_per_batch} byte_order={self.byte_order}"
