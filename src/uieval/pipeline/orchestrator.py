from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from pathlib import Path

from uieval.config.schema import RunConfig
from uieval.data.annotations import load_annotations
from uieval.eval.aggregate import EvaluationResult, aggregate
from uieval.reporting.table import write_report
from uieval.utils.io import ensure_dir, write_json
from uieval.utils.system import environment_summary, git_commit_or_none

LOGGER = logging.getLogger(__name__)


@dataclass
class RunOutputs:
    result: EvaluationResult
    artifacts: dict[str, Path] = field(default_factory=dict)


def _require_dir(value: Path | None, name: str) -> Path:
    if value is None:
        raise ValueError(f"paths.{name} is not set")
    return value


def write_run_manifest(config: RunConfig, run_dir: Path, artifacts: dict[str, Path]) -> Path:
    now = dt.datetime.now(dt.timezone.utc)
    manifest = {
        "run_id": now.strftime("%Y%m%d_%H%M%S"),
        "timestamp_utc": now.isoformat().replace("+00:00", "Z"),
        "config": config.model_dump(mode="json"),
        "artifacts": {k: str(v) for k, v in artifacts.items()},
        "git_commit": git_commit_or_none(config.runtime.workdir),
        "environment": environment_summary(),
    }
    path = run_dir / "run_manifest.json"
    write_json(path, manifest)
    return path


def run_evaluation(config: RunConfig) -> RunOutputs:
    """Load both annotation sets, score them and write report artifacts."""
    truth_dir = _require_dir(config.paths.truth_dir, "truth_dir")
    pred_dir = _require_dir(config.paths.pred_dir, "pred_dir")

    truths = load_annotations(truth_dir)
    preds = load_annotations(pred_dir)
    result = aggregate(
        truths,
        preds,
        classes=config.evaluation.classes,
        iou_threshold=config.evaluation.iou_threshold,
        score_orphan_predictions=config.evaluation.score_orphan_predictions,
    )
    LOGGER.info(
        "Scored %d files over %d classes: macro F1 %.3f",
        result.num_files,
        len(result.classes),
        result.macro.f1,
    )

    outputs = RunOutputs(result=result)
    if config.paths.outputs_root is None:
        return outputs

    out_dir = ensure_dir(config.paths.outputs_root)
    outputs.artifacts = write_report(
        result,
        out_dir,
        decimals=config.reporting.decimals,
        as_csv=config.reporting.write_csv,
        as_json=config.reporting.write_json,
    )
    outputs.artifacts["manifest"] = write_run_manifest(config, out_dir, outputs.artifacts)
    return outputs
