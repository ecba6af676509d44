import pytest

from tsadeval.bias import overlap_cardinality, parse_bias, parse_cardinality, positional_bias
from tsadeval.schemas import (
    ConfigurationError,
    ContractViolationError,
    MetricSide,
    OverlapCardinality,
    PositionalBias,
)

P = MetricSide.PRECISION
R = MetricSide.RECALL


def _weights(bias, length, udf=None):
    return [positional_bias(bias, i, length, R, udf=udf) for i in range(1, length + 1)]


def test_flat_front_back():
    assert _weights(PositionalBias.FLAT, 4) == [1.0, 1.0, 1.0, 1.0]
    assert _weights(PositionalBias.FRONT, 4) == [4.0, 3.0, 2.0, 1.0]
    assert _weights(PositionalBias.BACK, 4) == [1.0, 2.0, 3.0, 4.0]


def test_middle_peaks_at_center():
    assert _weights(PositionalBias.MIDDLE, 4) == [1.0, 2.0, 2.0, 1.0]
    assert _weights(PositionalBias.MIDDLE, 5) == [1.0, 2.0, 3.0, 2.0, 1.0]
    assert _weights(PositionalBias.MIDDLE, 1) == [1.0]


def test_udf_delta_is_called_with_side():
    seen = []

    def udf(position, range_length, side):
        seen.append(side)
        return 2.0

    assert _weights(PositionalBias.UDF_DELTA, 3, udf=udf) == [2.0, 2.0, 2.0]
    assert seen == [R, R, R]


def test_udf_delta_default_is_flat():
    assert _weights(PositionalBias.UDF_DELTA, 3) == [1.0, 1.0, 1.0]


def test_udf_delta_must_be_positive():
    def zero_delta(position, range_length, side):
        return 0.0

    with pytest.raises(ContractViolationError, match="zero_delta"):
        positional_bias(PositionalBias.UDF_DELTA, 2, 5, P, udf=zero_delta)


def test_unknown_bias_warns_and_uses_flat():
    with pytest.warns(RuntimeWarning, match="flat"):
        assert positional_bias("sideways", 3, 5, P) == 1.0


def test_cardinality_one_and_reciprocal():
    assert overlap_cardinality(OverlapCardinality.ONE, 5, R) == 1.0
    assert overlap_cardinality(OverlapCardinality.RECIPROCAL, 0, R) == 1.0
    assert overlap_cardinality(OverlapCardinality.RECIPROCAL, 1, R) == 1.0
    assert overlap_cardinality(OverlapCardinality.RECIPROCAL, 4, R) == pytest.approx(0.25)


def test_udf_gamma():
    def square(overlap_count, side):
        return float(overlap_count ** 2)

    assert overlap_cardinality(OverlapCardinality.UDF_GAMMA, 1, P, udf=square) == 1.0
    assert overlap_cardinality(OverlapCardinality.UDF_GAMMA, 3, P, udf=square) == pytest.approx(1 / 9)
    assert overlap_cardinality(OverlapCardinality.UDF_GAMMA, 3, P) == 1.0


def test_udf_gamma_must_be_at_least_one():
    def shrinking(overlap_count, side):
        return 0.5

    # not consulted for a single overlap
    assert overlap_cardinality(OverlapCardinality.UDF_GAMMA, 1, R, udf=shrinking) == 1.0
    with pytest.raises(ContractViolationError, match="overlap_count=2"):
        overlap_cardinality(OverlapCardinality.UDF_GAMMA, 2, R, udf=shrinking)


def test_unknown_cardinality_warns_and_uses_one():
    with pytest.warns(RuntimeWarning, match="one"):
        assert overlap_cardinality("many", 3, R) == 1.0


def test_parse_names():
    assert parse_cardinality("reciprocal") is OverlapCardinality.RECIPROCAL
    assert parse_cardinality("x") is OverlapCardinality.ONE
    assert parse_bias("Middle") is PositionalBias.MIDDLE
    assert parse_bias("x") is PositionalBias.FLAT


def test_parse_rejects_unknown_names():
    with pytest.raises(ConfigurationError):
        parse_cardinality("many")
    with pytest.raises(ConfigurationError):
        parse_bias("sideways")


@pytest.mark.parametrize("value", [float("inf"), float("nan")])
def test_udf_delta_must_be_finite(value):
    def unbounded(position, range_length, side):
        return value

    with pytest.raises(ContractViolationError, match="unbounded"):
        positional_bias(PositionalBias.UDF_DELTA, 1, 4, R, udf=unbounded)


@pytest.mark.parametrize("value", [float("inf"), float("nan")])
def test_udf_gamma_must_be_finite(value):
    def unbounded(overlap_count, side):
        return value

    with pytest.raises(ContractViolationError, match="unbounded"):
        overlap_cardinality(OverlapCardinality.UDF_GAMMA, 3, P, udf=unbounded)


def test_udf_non_numeric_results():
    def wordy_delta(position, range_length, side):
        return "heavy"

    def missing_gamma(overlap_count, side):
        return None

    with pytest.raises(ContractViolationError, match="wordy_delta.*position=2"):
        positional_bias(PositionalBias.UDF_DELTA, 2, 4, R, udf=wordy_delta)
    with pytest.raises(ContractViolationError, match="missing_gamma.*overlap_count=2"):
        overlap_cardinality(OverlapCardinality.UDF_GAMMA, 2, R, udf=missing_gamma)
