from __future__ import annotations

import io
from pathlib import Path

import numpy as np
import pytest

from mipnorm.errors import MalformedModel, ModelReadError
from mipnorm.model import Model, RegularityMode, dump_model, load_model, read_model


def _encode(values: list[float], byte_order: str = "<") -> bytes:
    return np.asarray(values, dtype=f"{byte_order}f8").tobytes()


def _header(
    *,
    shifts: tuple[float, ...] = (1.0, 2.0),
    sizes: tuple[float, ...] = (2.0,),
    mode: float = 0.0,
) -> list[float]:
    return [float(len(shifts)), *shifts, 3.0, 0.5, mode, float(len(sizes)), *sizes]


def test_load_model_reads_written_file(non_commuting_model: Model, model_file) -> None:
    path = model_file(non_commuting_model)

    loaded = load_model(path)

    assert loaded.symbol_count == 2
    assert loaded.shift_values == (1, 2)
    assert loaded.simplex_height == 2
    assert loaded.delta == 0.25
    assert loaded.regularity is RegularityMode.PAD_AND_SPLICE
    assert loaded.block_row_sizes == (2,)
    assert loaded.max_block_row_size == 2
    np.testing.assert_array_equal(loaded.matrix(0, 0), [[2.0, 1.0], [0.0, 1.0]])
    np.testing.assert_array_equal(loaded.matrix(0, 1), [[1.0, 0.0], [1.0, 3.0]])


def test_matrices_are_read_only(non_commuting_model: Model, model_file) -> None:
    loaded = load_model(model_file(non_commuting_model))

    with pytest.raises(ValueError):
        loaded.matrix(0, 0)[0, 0] = 5.0


def test_integer_fields_round_half_away_from_zero() -> None:
    payload = [2.0, 2.5, -2.5, 3.4, 0.25, 1.0, 1.0, 1.6]
    payload += [float(v) for v in range(8)]

    model = read_model(io.BytesIO(_encode(payload)))

    assert model.shift_values == (3, -3)
    assert model.simplex_height == 3
    assert model.delta == 0.25
    assert model.block_row_sizes == (2,)
    np.testing.assert_array_equal(model.matrix(0, 1), [[4.0, 5.0], [6.0, 7.0]])


def test_matrix_payload_is_ordered_by_block_row_then_symbol() -> None:
    sizes = (1.0, 2.0)
    payload = _header(sizes=sizes)
    payload += [10.0, 20.0]
    payload += [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0]

    model = read_model(io.BytesIO(_encode(payload)))

    assert model.block_row_sizes == (1, 2)
    assert model.matrix(0, 0)[0, 0] == 10.0
    assert model.matrix(0, 1)[0, 0] == 20.0
    np.testing.assert_array_equal(model.matrix(1, 0), [[1.0, 2.0], [3.0, 4.0]])
    np.testing.assert_array_equal(model.matrix(1, 1), [[5.0, 6.0], [7.0, 8.0]])


@pytest.mark.parametrize("code, expected", [
    (0.0, RegularityMode.PAD_ONLY),
    (2.0, RegularityMode.SPLICE_ONLY),
    (7.0, RegularityMode.UNKNOWN),
])
def test_regularity_codes(code: float, expected: RegularityMode) -> None:
    payload = _header(mode=code) + [0.0] * 8

    assert read_model(io.BytesIO(_encode(payload))).regularity is expected


def test_truncated_matrix_payload_is_rejected() -> None:
    payload = _header() + [1.0] * 7

    with pytest.raises(MalformedModel, match="matrices of block row 0"):
        read_model(io.BytesIO(_encode(payload)))


def test_truncated_header_is_rejected() -> None:
    with pytest.raises(MalformedModel, match="shift values"):
        read_model(io.BytesIO(_encode([3.0, 1.0])))


def test_partial_value_counts_as_truncation() -> None:
    data = _encode(_header() + [1.0] * 8)[:-3]

    with pytest.raises(MalformedModel):
        read_model(io.BytesIO(data))


def test_empty_file_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "empty.bin"
    path.write_bytes(b"")

    with pytest.raises(MalformedModel, match="symbol count"):
        load_model(path)


def test_missing_file_raises_model_read_error(tmp_path: Path) -> None:
    with pytest.raises(ModelReadError) as excinfo:
        load_model(tmp_path / "absent.bin")

    assert isinstance(excinfo.value, OSError)
    assert not isinstance(excinfo.value, MalformedModel)


def test_non_positive_block_row_size_is_rejected() -> None:
    payload = _header(sizes=(0.0,))

    with pytest.raises(MalformedModel, match="non-positive size"):
        read_model(io.BytesIO(_encode(payload)))


def test_non_finite_matrix_entry_is_rejected() -> None:
    payload = _header() + [1.0, 1.0, float("nan"), 1.0] + [1.0] * 4

    with pytest.raises(MalformedModel, match="non-finite"):
        read_model(io.BytesIO(_encode(payload)))


def test_trailing_bytes_are_ignored() -> None:
    payload = _header() + [1.0] * 8 + [99.0, 99.0]

    model = read_model(io.BytesIO(_encode(payload)))

    assert model.block_row_sizes == (2,)


def test_big_endian_files(non_commuting_model: Model) -> None:
    buffer = io.BytesIO()
    dump_model(buffer, non_commuting_model, byte_order="big")
    buffer.seek(0)

    loaded = read_model(buffer, byte_order="big")

    assert loaded.shift_values == non_commuting_model.shift_values
    np.testing.assert_array_equal(loaded.matrices[0], non_commuting_model.matrices[0])


def test_unknown_byte_order_is_rejected() -> None:
    with pytest.raises(ValueError, match="byte order"):
        read_model(io.BytesIO(b""), byte_order="middle")


def test_describe_reports_header(non_commuting_model: Model) -> None:
    assert non_commuting_model.describe() == (
        "2 symbols; simplex height=2; delta=0.25; pad and splice; 1 block rows. shift amounts: 1 2"
    )


def test_oversized_header_counts_fail_as_truncation() -> None:
    payload = _header(sizes=(1e10,))

    with pytest.raises(MalformedModel, match="matrices of block row 0"):
        read_model(io.BytesIO(_encode(payload)))


def test_oversized_shift_count_fails_as_truncation() -> None:
    with pytest.raises(MalformedModel, match="shift values"):
        read_model(io.BytesIO(_encode([1e15, 1.0, 2.0])))


def test_model_rejects_mismatched_shapes() -> None:
    with pytest.raises(ValueError):
        Model.from_matrices([[np.eye(2), np.eye(2)], [np.eye(3)]])
