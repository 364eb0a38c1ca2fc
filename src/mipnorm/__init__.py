"""Log entrywise norms of long symbol-indexed matrix chains."""

from .chain import BlockRowAccumulator, ChainMultiplier, ChainResult
from .combine import log_sum_exp, projected_log_norm
from .config import DEFAULT_LINES_PER_BATCH, EvaluationConfig
from .errors import (
    DegenerateNorm,
    InvalidSymbol,
    MalformedModel,
    MipNormError,
    ModelReadError,
    SymbolSourceError,
)
from .evaluate import evaluate, evaluate_files, evaluate_text
from .model import Model, RegularityMode, load_model, read_model, write_model
from .symbols import SymbolStream, decode_symbol, open_symbol_stream

__all__ = [
    "BlockRowAccumulator",
    "ChainMultiplier",
    "ChainResult",
    "DEFAULT_LINES_PER_BATCH",
    "DegenerateNorm",
    "EvaluationConfig",
    "InvalidSymbol",
    "MalformedModel",
    "MipNormError",
    "Model",
    "ModelReadError",
    "RegularityMode",
    "SymbolSourceError",
    "SymbolStream",
    "decode_symbol",
    "evaluate",
    "evaluate_files",
    "evaluate_text",
    "load_model",
    "log_sum_exp",
    "open_symbol_stream",
    "projected_log_norm",
    "read_model",
    "write_model",
]
