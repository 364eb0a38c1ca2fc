"""Exception types raised while loading models and evaluating chains."""

from __future__ import annotations


class MipNormError(Exception):
    """Base class for every failure reported by :mod:`mipnorm`."""


class ModelReadError(MipNormError, OSError):
    """Raised when the model file cannot be opened or read."""


class MalformedModel(ModelReadError):
    """Raised when the model file ends early or describes impossible shapes."""


class SymbolSourceError(MipNormError, OSError):
    """Raised when the symbol source cannot be opened or read."""


class InvalidSymbol(MipNormError, ValueError):
    """Raised when a character does not map into the model's alphabet."""

    def __init__(self, character: str, symbol_count: int, position: int | None = None) -> None:
        self.character = character
        self.symbol_count = symbol_count
        self.position = position
        where = "" if position is None else f" at position {position}"
        last = chr(ord("1") + symbol_count - 1)
        super().__init__(
            f"symbol {character!r}{where} is outside the range '1'..{last!r}"
        )


class DegenerateNorm(MipNormError, ArithmeticError):
    """Raised when a chain collapses to a zero, negative, or non-finite norm."""

    def __init__(self, message: str, *, block_row: int, position: int | None = None) -> None:
        self.block_row = block_row
        self.position = position
        super().__init__(message)


__all__ = [
    "DegenerateNorm",
    "InvalidSymbol",
    "MalformedModel",
    "MipNormError",
    "ModelReadError",
    "SymbolSourceError",
]
