r"""Lazy symbol streams read from text sources.

Lines end at ``"\n"`` only. Each line loses that terminator (and a ``"\r"``
directly before it) and is concatenated with the others verbatim; every
remaining character is one symbol, mapped to a zero-based index through
``ord(character) - ord("1")``. Any other control character is an invalid
symbol.
"""

from __future__ import annotations

import io
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

from .config import DEFAULT_LINES_PER_BATCH
from .errors import InvalidSymbol, SymbolSourceError

LOGGER = logging.getLogger(__name__)

_FIRST_SYMBOL = ord("1")


def _strip_terminator(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


def decode_symbol(character: str, symbol_count: int, position: int | None = None) -> int:
    """Return the symbol index of ``character`` or raise :class:`InvalidSymbol`."""

    index = ord(character) - _FIRST_SYMBOL
    if index < 0 or index >= symbol_count:
        raise InvalidSymbol(character, symbol_count, position)
    return index


class SymbolStream:
    """Iterate validated symbol indices from an iterable of text lines.

    Lines are pulled ``lines_per_batch`` at a time and concatenated before
    their characters are decoded. The batch size only changes how much text
    is held at once; the symbol sequence is the same for any value.
    """

    def __init__(
        self,
        lines: Iterable[str],
        symbol_count: int,
        *,
        lines_per_batch: int = DEFAULT_LINES_PER_BATCH,
    ) -> None:
        if symbol_count < 1:
            raise ValueError("symbol_count must be positive")
        if lines_per_batch < 1:
            raise ValueError("lines_per_batch must be >= 1")
        self._lines = iter(lines)
        self.symbol_count = symbol_count
        self.lines_per_batch = lines_per_batch
        self._exhausted = False
        self.batches_read = 0
        self.position = 0

    @classmethod
    def from_text(
        cls, text: str, symbol_count: int, *, lines_per_batch: int = DEFAULT_LINES_PER_BATCH
    ) -> "SymbolStream":
        return cls(io.StringIO(text, newline="\n"), symbol_count, lines_per_batch=lines_per_batch)

    def has_more_batches(self) -> bool:
        """Return ``True`` until a batch has run into the end of the source."""

        return not self._exhausted

    def next_batch(self) -> str:
        """Return the next ``lines_per_batch`` lines joined together.

        The final batch may be short or empty. After it has been returned,
        :meth:`has_more_batches` reports ``False``.
        """

        if self._exhausted:
            return ""
        parts = []
        for _ in range(self.lines_per_batch):
            try:
                line = next(self._lines)
            except StopIteration:
                self._exhausted = True
                break
            except OSError as exc:
                raise SymbolSourceError(f"Unable to read symbol source: {exc}") from exc
            parts.append(_strip_terminator(line))
        self.batches_read += 1
        return "".join(parts)

    def __iter__(self) -> Iterator[int]:
        symbol_count = self.symbol_count
        while self.has_more_batches():
            batch = self.next_batch()
            LOGGER.debug("Batch %d holds %d symbols", self.batches_read, len(batch))
            for character in batch:
                symbol = decode_symbol(character, symbol_count, self.position)
                self.position += 1
                yield symbol


@contextmanager
def open_symbol_stream(
    path: Path | str,
    symbol_count: int,
    *,
    lines_per_batch: int = DEFAULT_LINES_PER_BATCH,
) -> Iterator[SymbolStream]:
    """Open ``path`` and yield a :class:`SymbolStream` over its lines."""

    path = Path(path)
    try:
        handle = path.open("r", encoding="latin-1", newline="\n")
    except OSError as exc:
        raise SymbolSourceError(f"Unable to open symbol file {path}: {exc.strerror or exc}") from exc
    with handle:
        yield SymbolStream(handle, symbol_count, lines_per_batch=lines_per_batch)


__all__ = [
    "SymbolStream",
    "decode_symbol",
    "open_symbol_stream",
]
