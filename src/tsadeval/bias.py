from __future__ import annotations

import math
import warnings
from typing import Callable, Optional

from .schemas import (
    ConfigurationError,
    ContractViolationError,
    MetricSide,
    OverlapCardinality,
    PositionalBias,
)

GammaFunction = Callable[[int, MetricSide], float]
DeltaFunction = Callable[[int, int, MetricSide], float]

# "x" on the command line means "don't care": use the default selector.
_DONT_CARE = "x"


def default_udf_gamma(overlap_count: int, side: MetricSide) -> float:
    """Placeholder user-defined gamma: no fragmentation penalty."""
    return 1.0


def default_udf_delta(position: int, range_length: int, side: MetricSide) -> float:
    """Placeholder user-defined delta: every position weighs the same."""
    return 1.0


def _side_name(side) -> str:
    return side.value if isinstance(side, MetricSide) else str(side)


def _udf_name(udf) -> str:
    return getattr(udf, "__name__", type(udf).__name__)


def _call_udf_gamma(udf: GammaFunction, overlap_count: int, side: MetricSide) -> float:
    where = f"overlap_count={overlap_count} ({_side_name(side)})"
    raw = udf(overlap_count, side)
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise ContractViolationError(
            f"User-defined gamma function {_udf_name(udf)!r} returned non-numeric {raw!r} for {where}."
        ) from e
    if not (math.isfinite(value) and value >= 1.0):
        raise ContractViolationError(
            f"User-defined gamma function {_udf_name(udf)!r} returned {value} for "
            f"{where}; it must return a finite value >= 1."
        )
    return value


def _call_udf_delta(udf: DeltaFunction, position: int, range_length: int, side: MetricSide) -> float:
    where = f"position={position}, range_length={range_length} ({_side_name(side)})"
    raw = udf(position, range_length, side)
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise ContractViolationError(
            f"User-defined delta function {_udf_name(udf)!r} returned non-numeric {raw!r} for {where}."
        ) from e
    if not (math.isfinite(value) and value > 0.0):
        raise ContractViolationError(
            f"User-defined delta function {_udf_name(udf)!r} returned {value} for "
            f"{where}; it must return a finite value > 0."
        )
    return value


def overlap_cardinality(
    gamma,
    overlap_count: int,
    side: MetricSide,
    udf: Optional[GammaFunction] = None,
) -> float:
    """Fragmentation multiplier in (0, 1] for a range hitting ``overlap_count`` ranges.

    Unknown selectors are tolerated here: a ``RuntimeWarning`` is emitted and
    the ``one`` cardinality is used.
    """
    if gamma == OverlapCardinality.ONE:
        return 1.0
    if gamma == OverlapCardinality.RECIPROCAL:
        return 1.0 / overlap_count if overlap_count > 1 else 1.0
    if gamma == OverlapCardinality.UDF_GAMMA:
        if overlap_count <= 1:
            return 1.0
        return 1.0 / _call_udf_gamma(udf or default_udf_gamma, overlap_count, side)

    warnings.warn(
        f"Invalid overlap cardinality function for {_side_name(side)} = {gamma!r}; "
        "using default value 'one' instead.",
        RuntimeWarning,
        stacklevel=2,
    )
    return 1.0


def positional_bias(
    bias,
    position: int,
    range_length: int,
    side: MetricSide,
    udf: Optional[DeltaFunction] = None,
) -> float:
    """Weight of 1-indexed ``position`` inside a range of ``range_length`` positions.

    Unknown selectors fall back to ``flat`` with a ``RuntimeWarning``.
    """
    if bias == PositionalBias.FLAT:
        return 1.0
    if bias == PositionalBias.FRONT:
        return float(range_length - position + 1)
    if bias == PositionalBias.MIDDLE:
        if position <= range_length // 2:
            return float(position)
        return float(range_length - position + 1)
    if bias == PositionalBias.BACK:
        return float(position)
    if bias == PositionalBias.UDF_DELTA:
        return _call_udf_delta(udf or default_udf_delta, position, range_length, side)

    warnings.warn(
        f"Invalid positional bias for {_side_name(side)} = {bias!r}; "
        "using default value 'flat' instead.",
        RuntimeWarning,
        stacklevel=2,
    )
    return 1.0


def parse_cardinality(name: str) -> OverlapCardinality:
    name = name.strip().lower()
    if name == _DONT_CARE:
        return OverlapCardinality.ONE
    try:
        return OverlapCardinality(name)
    except ValueError as e:
        raise ConfigurationError(f"Invalid overlap cardinality value: {name!r}") from e


def parse_bias(name: str) -> PositionalBias:
    name = name.strip().lower()
    if name == _DONT_CARE:
        return PositionalBias.FLAT
    try:
        return PositionalBias(name)
    except ValueError as e:
        raise ConfigurationError(f"Invalid positional bias value: {name!r}") from e
