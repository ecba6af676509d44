from .core import Evaluator, EvaluatorConfig, evaluate, evaluate_many, f_beta_score
from .bias import overlap_cardinality, parse_bias, parse_cardinality, positional_bias
from .labels import ExtractionMode, extract_ranges, extract_unit_ranges, load_range_sets, read_labels
from .ranges import overlap
from .schemas import (
    ConfigurationError,
    ContractViolationError,
    EvaluationResult,
    LabelError,
    MetricSide,
    OverlapCardinality,
    PositionalBias,
    TimeRange,
)

__all__ = [
    "Evaluator",
    "EvaluatorConfig",
    "evaluate",
    "evaluate_many",
    "f_beta_score",
    "overlap_cardinality",
    "positional_bias",
    "parse_bias",
    "parse_cardinality",
    "ExtractionMode",
    "extract_ranges",
    "extract_unit_ranges",
    "load_range_sets",
    "read_labels",
    "overlap",
    "ConfigurationError",
    "ContractViolationError",
    "EvaluationResult",
    "LabelError",
    "MetricSide",
    "OverlapCardinality",
    "PositionalBias",
    "TimeRange",
]
