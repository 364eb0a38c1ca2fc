"""High level entry points tying the loader, stream and multiplier together."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from .chain import ChainMultiplier, ChainResult
from .config import DEFAULT_LINES_PER_BATCH, EvaluationConfig
from .model import Model, load_model
from .symbols import SymbolStream, open_symbol_stream

LOGGER = logging.getLogger(__name__)


def evaluate(model: Model, symbols: Iterable[int]) -> ChainResult:
    """Run ``symbols`` through every block row of ``model`` and combine."""

    chain = ChainMultiplier(model)
    chain.consume(symbols)
    result = chain.finalize()
    LOGGER.info(
        "Evaluated %d symbols over %d block rows: %s",
        result.symbols_consumed,
        model.block_row_count,
        result.format(),
    )
    return result


def evaluate_text(
    model: Model, text: str, *, lines_per_batch: int = DEFAULT_LINES_PER_BATCH
) -> ChainResult:
    """Evaluate a symbol string held in memory, e.g. ``"1221"``."""

    stream = SymbolStream.from_text(text, model.symbol_count, lines_per_batch=lines_per_batch)
    return evaluate(model, stream)


def evaluate_files(
    model_path: Path | str,
    symbols_path: Path | str,
    config: EvaluationConfig | None = None,
) -> ChainResult:
    """Load the model at ``model_path`` and evaluate the symbols in ``symbols_path``."""

    config = config or EvaluationConfig()
    LOGGER.debug("Evaluating with %s", config.describe())
    model = load_model(model_path, byte_order=config.byte_order)
    with open_symbol_stream(
        symbols_path, model.symbol_count, lines_per_batch=config.lines_per_batch
    ) as stream:
        return evaluate(model, stream)


__all__ = ["evaluate", "evaluate_files", "evaluate_text"]
