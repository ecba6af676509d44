import pytest

from tsadeval.labels import (
    ExtractionMode,
    extract_ranges,
    extract_unit_ranges,
    load_range_sets,
    read_labels,
)
from tsadeval.schemas import LabelError


def _write(path, labels):
    path.write_text("".join(f"{x}\n" for x in labels))
    return path


def test_read_labels_ignores_trailing_content():
    labels = read_labels(["1 anomaly\n", "0\n", "\n", "1,0.93\n", "0\t# normal\n"])
    assert labels.tolist() == [1, 0, 1, 0]


def test_read_labels_rejects_other_values():
    with pytest.raises(LabelError):
        read_labels(["0\n", "2\n"])
    with pytest.raises(LabelError):
        read_labels(["0\n", "yes\n"])


def test_extract_ranges():
    out = extract_ranges([0, 1, 1, 0, 1, 0, 0, 1, 1])
    assert [tuple(r) for r in out] == [(1, 2), (4, 4), (7, 8)]
    assert extract_ranges([0, 0, 0]) == []
    assert [tuple(r) for r in extract_ranges([1, 1])] == [(0, 1)]


def test_extract_unit_ranges():
    out = extract_unit_ranges([0, 1, 1, 0, 1])
    assert [tuple(r) for r in out] == [(1, 1), (2, 2), (4, 4)]


def test_load_range_sets_modes(tmp_path):
    real = _write(tmp_path / "a.real", [1, 1, 0, 1])
    pred = _write(tmp_path / "a.pred", [0, 1, 1, 0])

    r, p, n = load_range_sets(real, pred, ExtractionMode.RANGE)
    assert n == 4
    assert [tuple(x) for x in r] == [(0, 1), (3, 3)]
    assert [tuple(x) for x in p] == [(1, 2)]

    r, p, _ = load_range_sets(real, pred, ExtractionMode.CLASSICAL)
    assert [tuple(x) for x in r] == [(0, 0), (1, 1), (3, 3)]
    assert [tuple(x) for x in p] == [(1, 1), (2, 2)]

    r, p, _ = load_range_sets(real, pred, "numenta")
    assert [tuple(x) for x in r] == [(0, 1), (3, 3)]
    assert [tuple(x) for x in p] == [(1, 1), (2, 2)]


def test_load_range_sets_count_mismatch(tmp_path):
    real = _write(tmp_path / "a.real", [1, 1, 0])
    pred = _write(tmp_path / "a.pred", [0, 1])
    with pytest.raises(LabelError, match="different"):
        load_range_sets(real, pred)


def test_load_range_sets_empty(tmp_path):
    real = _write(tmp_path / "a.real", [])
    pred = _write(tmp_path / "a.pred", [])
    with pytest.raises(LabelError, match="No data items"):
        load_range_sets(real, pred)


def test_read_labels_undecodable(tmp_path):
    path = tmp_path / "bad.real"
    path.write_bytes(b"1\n0\xff\n")
    with pytest.raises(LabelError, match="Cannot decode"):
        read_labels(path)
