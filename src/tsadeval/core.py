from __future__ import annotations

from dataclasses import FrozenInstanceError, dataclass, field, replace as dc_replace
import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .bias import (
    DeltaFunction,
    GammaFunction,
    default_udf_delta,
    default_udf_gamma,
    overlap_cardinality,
    positional_bias,
)
from .ranges import RangeLike, as_ranges, format_ranges, overlap
from .schemas import (
    ConfigurationError,
    EvaluationResult,
    MetricSide,
    OverlapCardinality,
    PositionalBias,
    TimeRange,
)

logger = logging.getLogger(__name__)

# Evaluator attributes that may change after construction.
_MUTABLE_EVALUATOR_ATTRS = {"precision", "recall", "fscore", "verbose"}

# Settings fixed by the model; they exist only as read-only properties.
_FIXED_SETTINGS = {"alpha_p", "gamma_p", "gamma_r"}


def _reject_fixed_settings(names) -> None:
    fixed = _FIXED_SETTINGS.intersection(names)
    if fixed:
        raise ConfigurationError(
            f"{', '.join(sorted(fixed))} cannot be set: alpha_p is always 0 "
            "and gamma is shared by precision and recall."
        )


def _coerce_enum(enum_cls, value, what: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Invalid {what} value: {value!r}") from e


def _coerce_real(value, what: str) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid {what} value: {value!r}") from e
    if not math.isfinite(out):
        raise ConfigurationError(f"Invalid {what} value: {value!r}")
    return out


@dataclass(frozen=True)
class EvaluatorConfig:
    """Parameters of one range-based evaluation run.

    Precision has no existence reward (``alpha_p`` is always 0) and both
    metric sides share one overlap cardinality function, so neither can be
    configured. ``udf_gamma``/``udf_delta`` are only consulted when the
    ``udf_gamma``/``udf_delta`` selectors are chosen.
    """
    beta: float = 1.0
    alpha_r: float = 0.0
    gamma: OverlapCardinality = OverlapCardinality.ONE
    delta_p: PositionalBias = PositionalBias.FLAT
    delta_r: PositionalBias = PositionalBias.FLAT
    udf_gamma: GammaFunction = default_udf_gamma
    udf_delta: DeltaFunction = default_udf_delta

    def __new__(cls, *args: Any, **kwargs: Any):
        _reject_fixed_settings(kwargs)
        return super().__new__(cls)

    def __post_init__(self):
        beta = _coerce_real(self.beta, "beta")
        if beta < 0:
            raise ConfigurationError(f"Invalid beta value: {self.beta!r} (must be >= 0).")
        alpha_r = _coerce_real(self.alpha_r, "alpha_r")
        if not 0.0 <= alpha_r <= 1.0:
            raise ConfigurationError(f"Invalid alpha_r value: {self.alpha_r!r} (must be in [0, 1]).")
        if not callable(self.udf_gamma):
            raise ConfigurationError("udf_gamma must be callable.")
        if not callable(self.udf_delta):
            raise ConfigurationError("udf_delta must be callable.")

        object.__setattr__(self, "beta", beta)
        object.__setattr__(self, "alpha_r", alpha_r)
        object.__setattr__(self, "gamma", _coerce_enum(OverlapCardinality, self.gamma, "overlap cardinality"))
        object.__setattr__(self, "delta_p", _coerce_enum(PositionalBias, self.delta_p, "positional bias"))
        object.__setattr__(self, "delta_r", _coerce_enum(PositionalBias, self.delta_r, "positional bias"))

    @property
    def alpha_p(self) -> float:
        return 0.0

    @property
    def gamma_p(self) -> OverlapCardinality:
        return self.gamma

    @property
    def gamma_r(self) -> OverlapCardinality:
        return self.gamma

    def alpha_for(self, side: MetricSide) -> float:
        return self.alpha_p if side == MetricSide.PRECISION else self.alpha_r

    def delta_for(self, side: MetricSide) -> PositionalBias:
        return self.delta_p if side == MetricSide.PRECISION else self.delta_r

    def replace(self, **changes: Any) -> "EvaluatorConfig":
        """Validated copy with ``changes`` applied."""
        _reject_fixed_settings(changes)
        return dc_replace(self, **changes)


def f_beta_score(precision: float, recall: float, beta: float = 1.0) -> float:
    """Weighted harmonic mean of precision and recall.

    Returns 0.0 when ``beta**2 * precision + recall`` is zero; the numerator
    is zero in that case too.
    """
    beta_sqr = beta ** 2
    denom = beta_sqr * precision + recall
    if denom == 0:
        return 0.0
    return (1 + beta_sqr) * (precision * recall) / denom


@dataclass
class Evaluator:
    real: Sequence[RangeLike] = ()
    predicted: Sequence[RangeLike] = ()
    config: Optional[EvaluatorConfig] = None
    verbose: bool = False
    precision: float = field(default=0.0, init=False)
    recall: float = field(default=0.0, init=False)
    fscore: float = field(default=0.0, init=False)

    _initialised = False

    def __post_init__(self):
        if self.config is None:
            self.config = EvaluatorConfig()
        elif not isinstance(self.config, EvaluatorConfig):
            raise ConfigurationError(f"config must be an EvaluatorConfig, got {type(self.config).__name__}.")
        self.real = tuple(as_ranges(self.real))
        self.predicted = tuple(as_ranges(self.predicted))
        if self.verbose:
            print(
                f"[Evaluator] {len(self.real)} real and {len(self.predicted)} predicted ranges, "
                f"beta={self.beta}, alpha_r={self.alpha_r}, gamma={self.config.gamma.value}, "
                f"delta_p={self.config.delta_p.value}, delta_r={self.config.delta_r.value}"
            )
        self._initialised = True

    def __setattr__(self, name: str, value: Any) -> None:
        # inputs are fixed once built; only the cached results change
        if self._initialised and name not in _MUTABLE_EVALUATOR_ATTRS:
            raise FrozenInstanceError(f"cannot assign to field {name!r}; build a new Evaluator instead.")
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        if self._initialised:
            raise FrozenInstanceError(f"cannot delete field {name!r}")
        object.__delattr__(self, name)

    # -- configuration getters ------------------------------------------------

    @property
    def beta(self) -> float:
        return self.config.beta

    @property
    def alpha_p(self) -> float:
        return self.config.alpha_p

    @property
    def alpha_r(self) -> float:
        return self.config.alpha_r

    @property
    def gamma_p(self) -> OverlapCardinality:
        return self.config.gamma_p

    @property
    def gamma_r(self) -> OverlapCardinality:
        return self.config.gamma_r

    @property
    def delta_p(self) -> PositionalBias:
        return self.config.delta_p

    @property
    def delta_r(self) -> PositionalBias:
        return self.config.delta_r

    # -- weighting functions --------------------------------------------------

    def _delta(self, position: int, range_length: int, side: MetricSide) -> float:
        return positional_bias(
            self.config.delta_for(side), position, range_length, side, udf=self.config.udf_delta
        )

    def _gamma(self, overlap_count: int, side: MetricSide) -> float:
        gamma = self.config.gamma_p if side == MetricSide.PRECISION else self.config.gamma_r
        return overlap_cardinality(gamma, overlap_count, side, udf=self.config.udf_gamma)

    def omega(self, range_: TimeRange, overlap_: TimeRange, side: MetricSide) -> float:
        """Share of the positional-bias mass of ``range_`` covered by ``overlap_``."""
        length = len(range_)
        weights = np.fromiter(
            (self._delta(i, length, side) for i in range(1, length + 1)),
            dtype=float,
            count=length,
        )
        max_bias = float(weights.sum())
        lo = max(overlap_.start, range_.start) - range_.start
        hi = min(overlap_.end, range_.end) - range_.start
        captured_bias = float(weights[lo:hi + 1].sum()) if hi >= lo else 0.0
        if max_bias > 0:
            return captured_bias / max_bias
        return 0.0

    # -- pure computations ----------------------------------------------------

    def _aggregate(
        self,
        own: Sequence[TimeRange],
        other: Sequence[TimeRange],
        side: MetricSide,
    ) -> float:
        if not own:
            return 0.0

        alpha = self.config.alpha_for(side)
        total = 0.0
        for r in own:
            overlap_count = 0
            omega_reward = 0.0
            for p in other:
                ov = overlap(r, p)
                if ov is None:
                    continue
                overlap_count += 1
                omega_reward += self.omega(r, ov, side)

            overlap_reward = self._gamma(overlap_count, side) * omega_reward
            existence_reward = 1.0 if overlap_count > 0 else 0.0
            contribution = alpha * existence_reward + (1.0 - alpha) * overlap_reward
            logger.debug(
                "%s %s: overlaps=%d omega=%.6f contribution=%.6f",
                side.value, r, overlap_count, omega_reward, contribution,
            )
            total += contribution

        return total / len(own)

    def compute_precision(self) -> float:
        return self._aggregate(self.predicted, self.real, MetricSide.PRECISION)

    def compute_recall(self) -> float:
        return self._aggregate(self.real, self.predicted, MetricSide.RECALL)

    def compute_fscore(self) -> float:
        """F-score of the *cached* precision and recall."""
        return f_beta_score(self.precision, self.recall, self.beta)

    # -- cached results -------------------------------------------------------

    def update_precision(self) -> float:
        self.precision = self.compute_precision()
        return self.precision

    def update_recall(self) -> float:
        self.recall = self.compute_recall()
        return self.recall

    def update_fscore(self) -> float:
        self.fscore = self.compute_fscore()
        return self.fscore

    def update(self) -> EvaluationResult:
        self.update_precision()
        self.update_recall()
        self.update_fscore()
        if self.verbose:
            print(f"[Evaluator] precision={self.precision:.6f} recall={self.recall:.6f} fscore={self.fscore:.6f}")
        return self.result

    @property
    def result(self) -> EvaluationResult:
        return EvaluationResult(precision=self.precision, recall=self.recall, fscore=self.fscore)

    # -- diagnostics ----------------------------------------------------------

    def describe_real(self) -> List[str]:
        return format_ranges("Real Anomalies", self.real)

    def describe_predicted(self) -> List[str]:
        return format_ranges("Predicted Anomalies", self.predicted)


def evaluate(
    real: Sequence[RangeLike],
    predicted: Sequence[RangeLike],
    config: Optional[EvaluatorConfig] = None,
) -> EvaluationResult:
    return Evaluator(real=real, predicted=predicted, config=config).update()


def evaluate_many(
    real: Sequence[RangeLike],
    predictions: Mapping[str, Sequence[RangeLike]],
    config: Optional[EvaluatorConfig] = None,
) -> pd.DataFrame:
    """Score several detectors against one ground truth, one row per detector."""
    real_ranges = as_ranges(real)
    rows: List[Dict[str, Any]] = []
    for name, predicted in predictions.items():
        res = evaluate(real_ranges, predicted, config=config)
        rows.append({"detector": name, **res.to_dict()})
    return pd.DataFrame(rows, columns=["detector", "precision", "recall", "fscore"])
