"""Binary matrix-model format.

A model file is a flat sequence of 8-byte IEEE-754 doubles. Fields that are
logically integers are stored as doubles too and rounded on load::

    k_sym                      1 value
    shift values               k_sym values
    simplex height             1 value
    delta                      1 value (kept as float)
    regularity mode            1 value (0 pad only, 1 pad and splice, 2 splice only)
    block row count B          1 value
    block row sizes            B values
    matrices                   for each block row i, for each symbol s:
                               size_i * size_i values, row-major

The loader validates lengths and shapes only; it does not check that matrix
entries are probabilities or otherwise meaningful.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Sequence, Tuple

import numpy as np

from .config import DEFAULT_BYTE_ORDER, value_dtype
from .errors import MalformedModel, ModelReadError

LOGGER = logging.getLogger(__name__)

VALUE_SIZE = 8
_CHUNK_BYTES = 1 << 20


class RegularityMode(enum.Enum):
    """Pad/splice regularity recorded alongside the matrices."""

    PAD_ONLY = 0
    PAD_AND_SPLICE = 1
    SPLICE_ONLY = 2
    UNKNOWN = -1

    @classmethod
    def from_code(cls, code: int) -> "RegularityMode":
        for mode in cls:
            if mode is not cls.UNKNOWN and mode.value == code:
                return mode
        return cls.UNKNOWN

    @property
    def label(self) -> str:
        return _REGULARITY_LABELS[self]


_REGULARITY_LABELS = {
    RegularityMode.PAD_ONLY: "pad only",
    RegularityMode.PAD_AND_SPLICE: "pad and splice",
    RegularityMode.SPLICE_ONLY: "splice only",
    RegularityMode.UNKNOWN: "regularity unknown",
}


@dataclass(frozen=True, eq=False)
class Model:
    """Matrices and metadata loaded from a model file.

    ``matrices[i]`` holds every symbol's matrix for block row ``i`` as a
    read-only array of shape ``(symbol_count, size_i, size_i)``.
    """

    symbol_count: int
    shift_values: Tuple[int, ...]
    simplex_height: int
    delta: float
    regularity: RegularityMode
    block_row_sizes: Tuple[int, ...]
    matrices: Tuple[np.ndarray, ...]

    def __post_init__(self) -> None:
        if self.symbol_count < 1:
            raise ValueError("symbol_count must be positive")
        if len(self.shift_values) != self.symbol_count:
            raise ValueError("shift_values must hold one value per symbol")
        if not self.block_row_sizes:
            raise ValueError("at least one block row is required")
        if len(self.matrices) != len(self.block_row_sizes):
            raise ValueError("matrices must hold one entry per block row")
        for index, (size, stack) in enumerate(zip(self.block_row_sizes, self.matrices)):
            if size < 1:
                raise ValueError(f"block row {index} has non-positive size {size}")
            expected = (self.symbol_count, size, size)
            if stack.shape != expected:
                raise ValueError(
                    f"block row {index} matrices have shape {stack.shape}, expected {expected}"
                )

    @classmethod
    def from_matrices(
        cls,
        block_rows: Sequence[Sequence[Sequence[Sequence[float]]]],
        *,
        shift_values: Sequence[int] | None = None,
        simplex_height: int = 0,
        delta: float = 0.0,
        regularity: RegularityMode = RegularityMode.PAD_ONLY,
    ) -> "Model":
        """Build a model from nested ``[block_row][symbol][row][col]`` values."""

        stacks = []
        for block_row in block_rows:
            stack = np.array(block_row, dtype=np.float64)
            if stack.ndim != 3:
                raise ValueError("each block row must be a sequence of square matrices")
            stack.setflags(write=False)
            stacks.append(stack)
        if not stacks:
            raise ValueError("at least one block row is required")
        symbol_count = stacks[0].shape[0]
        if shift_values is None:
            shift_values = [0] * symbol_count
        return cls(
            symbol_count=symbol_count,
            shift_values=tuple(int(value) for value in shift_values),
            simplex_height=int(simplex_height),
            delta=float(delta),
            regularity=regularity,
            block_row_sizes=tuple(int(stack.shape[1]) for stack in stacks),
            matrices=tuple(stacks),
        )

    @property
    def block_row_count(self) -> int:
        return len(self.block_row_sizes)

    @property
    def max_block_row_size(self) -> int:
        return max(self.block_row_sizes)

    def matrix(self, block_row: int, symbol: int) -> np.ndarray:
        """Return the read-only square matrix for ``block_row`` and ``symbol``."""

        return self.matrices[block_row][symbol]

    def describe(self) -> str:
        """Return the header summary shown before evaluation.

        >>> import numpy as np
        >>> Model.from_matrices([[np.eye(2), np.eye(2)]], shift_values=[1, 2], simplex_height=4).describe()
        '2 symbols; simplex height=4; delta=0; pad only; 1 block rows. shift amounts: 1 2'
        """

        shifts = " ".join(str(value) for value in self.shift_values)
        return (
            f"{self.symbol_count} symbols; simplex height={self.simplex_height}; "
            f"delta={self.delta:g}; {self.regularity.label}; "
            f"{self.block_row_count} block rows. shift amounts: {shifts}"
        )


def _round_half_away(value: float, field: str) -> int:
    if not math.isfinite(value):
        raise MalformedModel(f"{field} is not finite: {value!r}")
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


class _ValueReader:
    """Pull fixed-size runs of doubles from a binary handle."""

    def __init__(self, handle: BinaryIO, dtype: np.dtype) -> None:
        self._handle = handle
        self._dtype = dtype
        self.values_read = 0

    def read(self, count: int, field: str) -> np.ndarray:
        expected = count * VALUE_SIZE
        try:
            payload = self._read_bytes(expected)
        except OSError as exc:
            raise ModelReadError(f"Unable to read {field} from model file: {exc}") from exc
        if len(payload) < expected:
            raise MalformedModel(
                f"Model file ended while reading {field}: expected {count} values, "
                f"got {len(payload) // VALUE_SIZE} (after {self.values_read} values)"
            )
        self.values_read += count
        return np.frombuffer(payload, dtype=self._dtype).astype(np.float64)

    def _read_bytes(self, expected: int) -> bytes:
        # Header sizes are untrusted; never ask for more than a chunk at once.
        chunks = []
        received = 0
        while received < expected:
            chunk = self._handle.read(min(expected - received, _CHUNK_BYTES))
            if not chunk:
                break
            chunks.append(chunk)
            received += len(chunk)
        return b"".join(chunks)

    def read_scalar(self, field: str) -> float:
        return float(self.read(1, field)[0])

    def read_integer(self, field: str) -> int:
        return _round_half_away(self.read_scalar(field), field)

    def read_integers(self, count: int, field: str) -> list[int]:
        return [_round_half_away(float(value), field) for value in self.read(count, field)]

    def at_end(self) -> bool:
        return not self._handle.read(1)


def read_model(handle: BinaryIO, *, byte_order: str = DEFAULT_BYTE_ORDER) -> Model:
    """Parse a model from an open binary handle."""

    reader = _ValueReader(handle, value_dtype(byte_order))

    symbol_count = reader.read_integer("symbol count")
    if symbol_count < 1:
        raise MalformedModel(f"symbol count must be positive, got {symbol_count}")
    shift_values = reader.read_integers(symbol_count, "shift values")
    simplex_height = reader.read_integer("simplex height")
    delta = reader.read_scalar("delta")
    regularity = RegularityMode.from_code(reader.read_integer("regularity mode"))
    block_row_count = reader.read_integer("block row count")
    if block_row_count < 1:
        raise MalformedModel(f"block row count must be positive, got {block_row_count}")
    block_row_sizes = reader.read_integers(block_row_count, "block row sizes")
    for index, size in enumerate(block_row_sizes):
        if size < 1:
            raise MalformedModel(f"block row {index} has non-positive size {size}")

    stacks = []
    for index, size in enumerate(block_row_sizes):
        values = reader.read(symbol_count * size * size, f"matrices of block row {index}")
        if not np.all(np.isfinite(values)):
            raise MalformedModel(f"matrices of block row {index} contain non-finite entries")
        stack = values.reshape(symbol_count, size, size)
        stack.setflags(write=False)
        stacks.append(stack)

    if not reader.at_end():
        LOGGER.debug("Ignoring trailing bytes after %d model values", reader.values_read)

    model = Model(
        symbol_count=symbol_count,
        shift_values=tuple(shift_values),
        simplex_height=simplex_height,
        delta=delta,
        regularity=regularity,
        block_row_sizes=tuple(block_row_sizes),
        matrices=tuple(stacks),
    )
    LOGGER.info("Matrix data read: %s", model.describe())
    return model


def load_model(path: Path | str, *, byte_order: str = DEFAULT_BYTE_ORDER) -> Model:
    """Load a model file from ``path``."""

    path = Path(path)
    try:
        handle = path.open("rb")
    except OSError as exc:
        raise ModelReadError(f"Unable to open model file {path}: {exc.strerror or exc}") from exc
    with handle:
        return read_model(handle, byte_order=byte_order)


def dump_model(handle: BinaryIO, model: Model, *, byte_order: str = DEFAULT_BYTE_ORDER) -> None:
    """Write ``model`` to an open binary handle using the model file layout."""

    header = [
        float(model.symbol_count),
        *(float(value) for value in model.shift_values),
        float(model.simplex_height),
        float(model.delta),
        float(model.regularity.value),
        float(model.block_row_count),
        *(float(size) for size in model.block_row_sizes),
    ]
    dtype = value_dtype(byte_order)
    handle.write(np.asarray(header, dtype=dtype).tobytes())
    for stack in model.matrices:
        handle.write(np.ascontiguousarray(stack, dtype=dtype).tobytes())


def write_model(path: Path | str, model: Model, *, byte_order: str = DEFAULT_BYTE_ORDER) -> Path:
    """Write ``model`` to ``path`` and return the path."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        dump_model(handle, model, byte_order=byte_order)
    return path


__all__ = [
    "Model",
    "RegularityMode",
    "dump_model",
    "load_model",
    "read_model",
    "write_model",
]
