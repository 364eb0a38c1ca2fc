from __future__ import annotations

from pathlib import Path
from typing import Callable

import numpy as np
import pytest

from mipnorm.model import Model, RegularityMode, write_model


@pytest.fixture()
def non_commuting_model() -> Model:
    """Two symbols, one 2x2 block row, ``1'AB1 = 10`` and ``1'BA1 = 9``."""

    first = [[2.0, 1.0], [0.0, 1.0]]
    second = [[1.0, 0.0], [1.0, 3.0]]
    return Model.from_matrices(
        [[first, second]],
        shift_values=[1, 2],
        simplex_height=2,
        delta=0.25,
        regularity=RegularityMode.PAD_AND_SPLICE,
    )


@pytest.fixture()
def two_block_row_model() -> Model:
    rng = np.random.default_rng(7)
    return Model.from_matrices(
        [
            rng.uniform(0.1, 1.0, size=(3, 2, 2)),
            rng.uniform(0.1, 1.0, size=(3, 3, 3)),
        ],
        shift_values=[0, 1, 2],
        simplex_height=3,
    )


@pytest.fixture()
def model_file(tmp_path: Path) -> Callable[..., Path]:
    def _write(model: Model, name: str = "model.bin", **kwargs) -> Path:
        return write_model(tmp_path / name, model, **kwargs)

    return _write


@pytest.fixture()
def symbol_file(tmp_path: Path) -> Callable[..., Path]:
    def _write(text: str, name: str = "symbols.txt") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf8")
        return path

    return _write


@pytest.fixture()
def scale_block_row() -> Callable[[Model, int, float], Model]:
    """Return a helper that copies a model with one block row's matrices scaled."""

    def _scale(model: Model, block_row: int, factor: float) -> Model:
        return Model.from_matrices(
            [
                stack * factor if index == block_row else stack
                for index, stack in enumerate(model.matrices)
            ],
            shift_values=model.shift_values,
            simplex_height=model.simplex_height,
            delta=model.delta,
            regularity=model.regularity,
        )

    return _scale
