"""Streaming renormalised evaluation of symbol-indexed matrix chains.

For every block row the multiplier tracks ``[1..1] · M_{s1} · ... · M_{sn}``
up to scale: a unit row vector plus the sum of the logarithms of the norms
divided out after each matrix application. Symbols are consumed in arrival
order and every block row is advanced for a symbol before the next symbol is
read.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

import numpy as np

from .combine import log_sum_exp, projected_log_norm
from .config import RESULT_DECIMALS
from .errors import DegenerateNorm, InvalidSymbol
from .model import Model

LOGGER = logging.getLogger(__name__)


@dataclass(eq=False)
class BlockRowAccumulator:
    """Running state of one block row's chain."""

    block_row: int
    weights: np.ndarray
    log_norm: float = 0.0

    @classmethod
    def initial(cls, block_row: int, size: int) -> "BlockRowAccumulator":
        return cls(block_row=block_row, weights=np.ones(size, dtype=np.float64))

    @property
    def size(self) -> int:
        return int(self.weights.shape[0])


@dataclass(frozen=True)
class ChainResult:
    """Outcome of a completed evaluation."""

    log_norm: float
    block_row_log_norms: Tuple[float, ...]
    symbols_consumed: int = 0

    def format(self, decimals: int = RESULT_DECIMALS) -> str:
        return f"{self.log_norm:.{decimals}f}"


@dataclass(eq=False)
class ChainMultiplier:
    """Advance every block row of ``model`` one symbol at a time."""

    model: Model
    accumulators: List[BlockRowAccumulator] = field(init=False)
    _scratch: np.ndarray = field(init=False, repr=False)
    _consumed: int = field(init=False, default=0)
    _finalized: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        self.accumulators = [
            BlockRowAccumulator.initial(index, size)
            for index, size in enumerate(self.model.block_row_sizes)
        ]
        self._scratch = np.empty(self.model.max_block_row_size, dtype=np.float64)

    @property
    def symbols_consumed(self) -> int:
        return self._consumed

    @property
    def finalized(self) -> bool:
        return self._finalized

    def update(self, symbol: int) -> None:
        """Multiply every block row's vector by its matrix for ``symbol``."""

        if self._finalized:
            raise RuntimeError("chain has already been finalized")
        if symbol < 0 or symbol >= self.model.symbol_count:
            code = ord("1") + symbol
            character = chr(code) if code >= 0 else f"#{symbol}"
            raise InvalidSymbol(character, self.model.symbol_count, self._consumed)
        for accumulator in self.accumulators:
            self._advance(accumulator, symbol)
        self._consumed += 1

    def _advance(self, accumulator: BlockRowAccumulator, symbol: int) -> None:
        matrix = self.model.matrix(accumulator.block_row, symbol)
        product = self._scratch[: accumulator.size]
        np.dot(accumulator.weights, matrix, out=product)
        # Scale by the largest entry first so the sum of squares cannot under- or overflow.
        peak = float(np.max(np.abs(product)))
        if peak == 0.0 or not math.isfinite(peak):
            raise DegenerateNorm(
                f"block row {accumulator.block_row} reached norm {peak!r} "
                f"at symbol {self._consumed}",
                block_row=accumulator.block_row,
                position=self._consumed,
            )
        np.divide(product, peak, out=product)
        relative = math.sqrt(float(np.dot(product, product)))
        np.divide(product, relative, out=accumulator.weights)
        accumulator.log_norm += math.log(peak) + math.log(relative)

    def consume(self, symbols: Iterable[int]) -> int:
        """Feed ``symbols`` through :meth:`update` and return how many were used.

        An :class:`InvalidSymbol` raised while iterating ``symbols`` stops the
        pass immediately. Block rows keep the state reached for the symbols
        consumed before it.
        """

        start = self._consumed
        for symbol in symbols:
            self.update(symbol)
        consumed = self._consumed - start
        LOGGER.debug("Consumed %d symbols across %d block rows", consumed, len(self.accumulators))
        return consumed

    def finalize(self) -> ChainResult:
        """Fold in the all-ones projection and combine the block rows."""

        if self._finalized:
            raise RuntimeError("chain has already been finalized")
        self._finalized = True
        block_row_log_norms = tuple(
            projected_log_norm(acc.weights, acc.log_norm, block_row=acc.block_row)
            for acc in self.accumulators
        )
        return ChainResult(
            log_norm=log_sum_exp(block_row_log_norms),
            block_row_log_norms=block_row_log_norms,
            symbols_consumed=self._consumed,
        )


__all__ = ["BlockRowAccumulator", "ChainMultiplier", "ChainResult"]
