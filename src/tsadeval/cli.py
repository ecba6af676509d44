from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from .bias import parse_bias, parse_cardinality
from .core import Evaluator, EvaluatorConfig
from .labels import ExtractionMode, load_range_sets
from .schemas import ConfigurationError, EvaluationResult, LabelError


def _write_text(output_path: str, content: str) -> None:
    if output_path == "-":
        sys.stdout.write(content)
        if not content.endswith("\n"):
            sys.stdout.write("\n")
        return
    Path(output_path).write_text(content, encoding="utf-8")


def _format_result(result: EvaluationResult, fmt: str) -> str:
    fmt = fmt.lower()
    if fmt == "text":
        return (
            f"Precision = {result.precision:g}\n"
            f"Recall = {result.recall:g}\n"
            f"F-Score = {result.fscore:g}\n"
        )
    df = pd.DataFrame([result.to_dict()])
    if fmt == "csv":
        return df.to_csv(index=False)
    if fmt == "json":
        return json.dumps(df.to_dict(orient="records")[0])
    raise ValueError(f"Unsupported format: {fmt}")


def _config_from_args(args: argparse.Namespace) -> EvaluatorConfig:
    return EvaluatorConfig(
        beta=args.beta,
        alpha_r=args.alpha_r,
        gamma=parse_cardinality(args.gamma),
        delta_p=parse_bias(args.delta_p),
        delta_r=parse_bias(args.delta_r),
    )


def cmd_evaluate(args: argparse.Namespace) -> int:
    config = _config_from_args(args)
    real, predicted, _ = load_range_sets(
        args.real, args.predicted, mode=args.mode, encoding=args.encoding
    )

    ev = Evaluator(real=real, predicted=predicted, config=config)
    lines: List[str] = []
    if args.verbose:
        lines.extend(ev.describe_real())
        lines.extend(ev.describe_predicted())

    result = ev.update()
    content = _format_result(result, args.format)
    if lines:
        sys.stdout.write("\n".join(lines) + "\n")
    _write_text(args.output, content)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tsadeval",
        description="Range-based precision, recall and F-score for time-series anomaly detection.",
        epilog="Example: tsadeval -v -t simple.real simple.pred --gamma reciprocal --delta-r front",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Print the real and predicted anomaly ranges.")

    mode = p.add_mutually_exclusive_group(required=True)
    mode.add_argument("-c", "--classical", dest="mode", action="store_const", const=ExtractionMode.CLASSICAL,
                      help="Compute classical metrics (every anomalous label is its own range).")
    mode.add_argument("-t", "--time-series", dest="mode", action="store_const", const=ExtractionMode.RANGE,
                      help="Compute time series metrics (contiguous anomalous labels form one range).")
    mode.add_argument("-n", "--numenta", dest="mode", action="store_const", const=ExtractionMode.NUMENTA,
                      help="Compute numenta-like metrics (ranges for real data, unit ranges for predictions).")

    p.add_argument("real", help="Real (ground truth) label file, one 0/1 label per line.")
    p.add_argument("predicted", help="Predicted label file, one 0/1 label per line.")
    p.add_argument("--encoding", default="utf-8", help="Label file encoding. (default: utf-8)")

    p.add_argument("--beta", type=float, default=1.0,
                   help="F-Score parameter, relative importance of recall vs. precision (default: 1).")
    p.add_argument("--alpha-r", type=float, default=0.0,
                   help="Relative weight of existence reward for recall, in [0, 1] (default: 0).")
    p.add_argument("--gamma", default="one",
                   help="Overlap cardinality function for precision and recall: "
                        "one, reciprocal, udf_gamma (default: one).")
    p.add_argument("--delta-p", default="flat",
                   help="Positional bias for precision: flat, front, middle, back, udf_delta (default: flat).")
    p.add_argument("--delta-r", default="flat",
                   help="Positional bias for recall: flat, front, middle, back, udf_delta (default: flat).")

    p.add_argument("--format", choices=["text", "csv", "json"], default="text", help="Output format.")
    p.add_argument("-o", "--output", default="-", help="Output path, or '-' for stdout. (default: '-')")
    p.set_defaults(func=cmd_evaluate)
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        return int(args.func(args))
    except BrokenPipeError:
        return 0
    except (ConfigurationError, LabelError, OSError) as e:
        sys.stderr.write(f"Error: {e}\n")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
