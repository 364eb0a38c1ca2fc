"""Typer-powered command-line interface for chain log-norm evaluation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mipnorm.chain import ChainResult
from mipnorm.config import DEFAULT_BYTE_ORDER, DEFAULT_LINES_PER_BATCH, EvaluationConfig
from mipnorm.errors import (
    DegenerateNorm,
    InvalidSymbol,
    ModelReadError,
    SymbolSourceError,
)
from mipnorm.evaluate import evaluate
from mipnorm.model import Model, load_model
from mipnorm.symbols import open_symbol_stream

app = typer.Typer(help="Log entrywise norm of a symbol-indexed matrix chain.")
console = Console(stderr=True)


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]{message}[/bold red]")
    raise typer.Exit(code=1)


@app.command(context_settings={"allow_extra_args": True})
def run(
    ctx: typer.Context,
    model_path: Optional[Path] = typer.Argument(
        None,
        metavar="MODEL",
        help="Binary M_i*P model file.",
        show_default=False,
    ),
    symbols_path: Optional[Path] = typer.Argument(
        None,
        metavar="SYMBOLS",
        help="Text file of symbols '1'..'k', one or more per line.",
        show_default=False,
    ),
    lines_per_batch: int = typer.Option(
        DEFAULT_LINES_PER_BATCH,
        "--lines-per-batch",
        envvar="MIPNORM_LINES_PER_BATCH",
        help="Number of symbol-file lines read per batch. Throughput only.",
        rich_help_panel="Advanced",
    ),
    byte_order: str = typer.Option(
        DEFAULT_BYTE_ORDER,
        "--byte-order",
        help="Byte order of the doubles in the model file: little, big or native.",
        rich_help_panel="Advanced",
    ),
    show_header: bool = typer.Option(
        False,
        "--show-header",
        help="Print the model header summary to stderr before evaluating.",
        rich_help_panel="Output",
    ),
    show_block_rows: bool = typer.Option(
        False,
        "--show-block-rows",
        help="Print each block row's final log-norm to stderr.",
        rich_help_panel="Output",
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Python logging level.",
        rich_help_panel="Output",
    ),
) -> None:
    """Print ln of the summed block-row entrywise norms for SYMBOLS under MODEL."""

    logging.basicConfig(level=getattr(logging, log_level.upper(), logging.WARNING))

    if model_path is None or symbols_path is None or ctx.args:
        _fail("Problem with input arguments.")
    try:
        config = EvaluationConfig(lines_per_batch=lines_per_batch, byte_order=byte_order)
    except ValueError as exc:
        _fail(escape(str(exc)))

    try:
        model = load_model(model_path, byte_order=config.byte_order)
    except ModelReadError as exc:
        _fail(f"Unable to read model file: {escape(str(exc))}")
    if show_header:
        console.print("Matrix data read:")
        console.print(escape(model.describe()))

    try:
        with open_symbol_stream(
            symbols_path, model.symbol_count, lines_per_batch=config.lines_per_batch
        ) as stream:
            result = evaluate(model, stream)
    except SymbolSourceError as exc:
        _fail(f"Unable to read symbol file: {escape(str(exc))}")
    except InvalidSymbol as exc:
        _fail(f"Symbol out of range in input string; multiplication failed. {escape(str(exc))}")
    except DegenerateNorm as exc:
        _fail(f"Degenerate matrix chain: {escape(str(exc))}")

    if show_block_rows:
        _display_block_rows(model, result)
    typer.echo(result.format())


def _display_block_rows(model: Model, result: ChainResult) -> None:
    table = Table(title="Block rows", show_lines=True)
    table.add_column("Block row", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Log-norm", justify="right")
    for index, (size, value) in enumerate(zip(model.block_row_sizes, result.block_row_log_norms)):
        table.add_row(str(index), str(size), f"{value:.14f}")
    console.print(table)
    console.print(f"{result.symbols_consumed} symbols consumed")


def main() -> None:
    """Entry point for ``python -m mipnorm_cli``."""

    app()


if __name__ == "__main__":
    main()
