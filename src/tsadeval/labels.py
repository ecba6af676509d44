from __future__ import annotations

from enum import Enum
from pathlib import Path
import re
from typing import Iterable, List, Tuple, Union

import numpy as np

from .schemas import LabelError, TimeRange

_label_re = re.compile(r"^\s*([+-]?\d+)")


class ExtractionMode(str, Enum):
    CLASSICAL = "classical"  # unit-size ranges on both sides
    RANGE = "range"          # contiguous runs on both sides
    NUMENTA = "numenta"      # contiguous real runs, unit-size predictions


def _parse_lines(lines: Iterable[str]) -> np.ndarray:
    labels: List[int] = []
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        m = _label_re.match(line)
        if m is None:
            raise LabelError(f"Invalid anomaly label on line {lineno}: {line.strip()!r}")
        labels.append(int(m.group(1)))
    return _check_labels(np.asarray(labels, dtype=int))


def _check_labels(arr: np.ndarray) -> np.ndarray:
    bad = np.flatnonzero((arr != 0) & (arr != 1))
    if bad.size:
        raise LabelError(f"Invalid anomaly label {int(arr[bad[0]])} at position {int(bad[0])}.")
    return arr


def read_labels(source: Union[str, Path, Iterable[str]], encoding: str = "utf-8") -> np.ndarray:
    """Read 0/1 labels, one per line; anything after the leading integer is ignored."""
    if isinstance(source, (str, Path)):
        try:
            with open(source, encoding=encoding) as fh:
                return _parse_lines(fh)
        except UnicodeDecodeError as e:
            raise LabelError(f"Cannot decode {source}: {e}") from e
    return _parse_lines(source)


def extract_ranges(labels) -> List[TimeRange]:
    """One range per maximal run of anomalous (1) labels."""
    arr = _check_labels(np.asarray(labels, dtype=int).ravel())
    edges = np.diff(np.concatenate(([0], arr, [0])))
    starts = np.flatnonzero(edges == 1)
    ends = np.flatnonzero(edges == -1) - 1
    return [TimeRange(int(s), int(e)) for s, e in zip(starts, ends)]


def extract_unit_ranges(labels) -> List[TimeRange]:
    """One single-position range per anomalous label."""
    arr = _check_labels(np.asarray(labels, dtype=int).ravel())
    return [TimeRange(int(i), int(i)) for i in np.flatnonzero(arr == 1)]


def load_range_sets(
    real_path: Union[str, Path],
    predicted_path: Union[str, Path],
    mode: ExtractionMode = ExtractionMode.RANGE,
    encoding: str = "utf-8",
) -> Tuple[List[TimeRange], List[TimeRange], int]:
    """Read both label files and build (real, predicted, label_count)."""
    mode = ExtractionMode(mode)
    real_labels = read_labels(real_path, encoding=encoding)
    predicted_labels = read_labels(predicted_path, encoding=encoding)

    if len(real_labels) != len(predicted_labels):
        raise LabelError(
            f"Number of data items are different: {len(real_labels)} real vs "
            f"{len(predicted_labels)} predicted."
        )
    if len(real_labels) == 0:
        raise LabelError("No data items.")

    real_extract = extract_unit_ranges if mode == ExtractionMode.CLASSICAL else extract_ranges
    predicted_extract = extract_ranges if mode == ExtractionMode.RANGE else extract_unit_ranges
    return real_extract(real_labels), predicted_extract(predicted_labels), len(real_labels)
