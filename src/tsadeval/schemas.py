from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import numbers
from typing import Dict


class ConfigurationError(ValueError):
    """Out-of-domain evaluator setting (beta, alpha, gamma or delta)."""


class ContractViolationError(RuntimeError):
    """A user-defined gamma/delta function returned a value outside its range."""


class LabelError(ValueError):
    """Malformed or inconsistent label input."""


class MetricSide(str, Enum):
    PRECISION = "precision"
    RECALL = "recall"


class OverlapCardinality(str, Enum):
    ONE = "one"
    RECIPROCAL = "reciprocal"
    UDF_GAMMA = "udf_gamma"


class PositionalBias(str, Enum):
    FLAT = "flat"
    FRONT = "front"
    MIDDLE = "middle"
    BACK = "back"
    UDF_DELTA = "udf_delta"


@dataclass(frozen=True)
class TimeRange:
    start: int  # first anomalous position, 0-based
    end: int    # last anomalous position, inclusive

    def __post_init__(self):
        for name in ("start", "end"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ValueError(f"Range {name} must be an integer position, got {value!r}.")
        if self.start < 0:
            raise ValueError(f"Invalid range [{self.start}, {self.end}]: positions must be >= 0.")
        if self.start > self.end:
            raise ValueError(f"Invalid range [{self.start}, {self.end}]: start must be <= end.")

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __iter__(self):
        yield self.start
        yield self.end

    def __str__(self) -> str:
        return f"[{self.start}, {self.end}]"


@dataclass(frozen=True)
class EvaluationResult:
    precision: float
    recall: float
    fscore: float

    def to_dict(self) -> Dict[str, float]:
        return {"precision": self.precision, "recall": self.recall, "fscore": self.fscore}
