from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pandas as pd

from uieval.constants import DEFAULT_DECIMALS, MACRO_ROW_LABEL, RESULT_FORMAT_VERSION
from uieval.eval.aggregate import EvaluationResult
from uieval.utils.io import ensure_dir, write_json

LOGGER = logging.getLogger(__name__)

# (header, width, left-aligned)
COLUMNS = [
    ("Class", 10, True),
    ("GT", 10, False),
    ("TP", 10, False),
    ("Precision", 12, False),
    ("Recall", 12, False),
    ("F1", 12, False),
]


def _format_row(cells: list[str]) -> str:
    out = []
    for cell, (_, width, left) in zip(cells, COLUMNS):
        out.append(cell.ljust(width) if left else cell.rjust(width))
    return "".join(out)


def render_table(result: EvaluationResult, decimals: int = DEFAULT_DECIMALS) -> str:
    """Render per-class and macro metrics as a fixed-width text table."""
    fmt = f"{{:.{decimals}f}}"
    sep = "-" * sum(width for _, width, _ in COLUMNS)
    lines = [_format_row([name for name, _, _ in COLUMNS]), sep]
    for tag in result.classes:
        m = result.per_class[tag]
        lines.append(
            _format_row(
                [
                    tag,
                    str(m.gt_count),
                    str(m.tp),
                    fmt.format(m.precision),
                    fmt.format(m.recall),
                    fmt.format(m.f1),
                ]
            )
        )
    lines.append(sep)
    # GT and TP are not meaningful as averages.
    lines.append(
        _format_row(
            [
                MACRO_ROW_LABEL,
                "",
                "",
                fmt.format(result.macro.precision),
                fmt.format(result.macro.recall),
                fmt.format(result.macro.f1),
            ]
        )
    )
    return "\n".join(lines)


def result_to_frame(result: EvaluationResult, decimals: int | None = None) -> pd.DataFrame:
    rows: list[dict[str, Any]] = []
    for tag in result.classes:
        m = result.per_class[tag]
        rows.append(
            {
                "class": tag,
                "gt": m.gt_count,
                "tp": m.tp,
                "fp": m.fp,
                "fn": m.fn,
                "precision": m.precision,
                "recall": m.recall,
                "f1": m.f1,
            }
        )
    rows.append(
        {
            "class": MACRO_ROW_LABEL,
            "gt": None,
            "tp": None,
            "fp": None,
            "fn": None,
            "precision": result.macro.precision,
            "recall": result.macro.recall,
            "f1": result.macro.f1,
        }
    )
    df = pd.DataFrame(rows)
    for col in ("gt", "tp", "fp", "fn"):
        df[col] = df[col].astype("Int64")
    if decimals is not None:
        df = df.round({"precision": decimals, "recall": decimals, "f1": decimals})
    return df


def _counts_payload(result: EvaluationResult, tag: str) -> dict[str, Any]:
    m = result.per_class[tag]
    return {
        "gt": m.gt_count,
        "tp": m.tp,
        "fp": m.fp,
        "fn": m.fn,
        "precision": m.precision,
        "recall": m.recall,
        "f1": m.f1,
    }


def result_to_payload(result: EvaluationResult) -> dict[str, Any]:
    return {
        "format_version": RESULT_FORMAT_VERSION,
        "iou_threshold": result.iou_threshold,
        "num_files": result.num_files,
        "classes": list(result.classes),
        "per_class": {tag: _counts_payload(result, tag) for tag in result.classes},
        "macro": {
            "precision": result.macro.precision,
            "recall": result.macro.recall,
            "f1": result.macro.f1,
        },
    }


def write_report(
    result: EvaluationResult,
    out_dir: Path,
    decimals: int = DEFAULT_DECIMALS,
    as_csv: bool = True,
    as_json: bool = True,
) -> dict[str, Path]:
    ensure_dir(out_dir)
    written: dict[str, Path] = {}
    if as_csv:
        csv_path = out_dir / "metrics.csv"
        result_to_frame(result, decimals=decimals).to_csv(csv_path, index=False)
        written["csv"] = csv_path
    if as_json:
        json_path = out_dir / "metrics.json"
        write_json(json_path, result_to_payload(result))
        written["json"] = json_path
    for kind, path in written.items():
        LOGGER.info("Wrote %s report: %s", kind, path)
    return written
