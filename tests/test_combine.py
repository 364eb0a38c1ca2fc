from __future__ import annotations

import doctest
import math

import numpy as np
import pytest

from mipnorm import combine, config, model
from mipnorm.combine import log_sum_exp, projected_log_norm
from mipnorm.errors import DegenerateNorm


def test_log_sum_exp_matches_naive_sum_for_small_values() -> None:
    values = [0.1, -1.5, 2.25]

    assert log_sum_exp(values) == pytest.approx(math.log(sum(math.exp(v) for v in values)))


def test_log_sum_exp_is_stable_for_large_values() -> None:
    values = [5000.0, 5000.0 + math.log(3.0)]

    assert log_sum_exp(values) == pytest.approx(5000.0 + math.log(4.0))


def test_log_sum_exp_ignores_negligible_terms() -> None:
    assert log_sum_exp([-1e6, 0.0]) == pytest.approx(0.0)


def test_log_sum_exp_single_value_is_exact() -> None:
    assert log_sum_exp([123.456789]) == 123.456789


def test_log_sum_exp_requires_values() -> None:
    with pytest.raises(ValueError):
        log_sum_exp([])


def test_projected_log_norm_adds_log_of_sum() -> None:
    weights = np.array([0.6, 0.8])

    assert projected_log_norm(weights, 2.0) == pytest.approx(2.0 + math.log(1.4))


@pytest.mark.parametrize("weights", [[0.0, 0.0], [-0.6, -0.8], [0.6, -0.8]])
def test_projected_log_norm_rejects_non_positive_sums(weights: list[float]) -> None:
    with pytest.raises(DegenerateNorm) as excinfo:
        projected_log_norm(np.array(weights), 0.0, block_row=4)

    assert excinfo.value.block_row == 4


@pytest.mark.parametrize("module", [combine, config, model])
def test_docstring_examples(module) -> None:
    failures, _ = doctest.testmod(module)

    assert failures == 0
