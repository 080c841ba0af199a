from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import typer

from uieval.config.loader import load_config
from uieval.config.schema import EvaluationConfig, RunConfig
from uieval.data.annotations import AnnotationError
from uieval.pipeline.orchestrator import run_evaluation
from uieval.reporting.table import render_table
from uieval.utils.logging import configure_logging

app = typer.Typer(help="Score UI-element detections against ground truth")

LOGGER = logging.getLogger(__name__)


def _expand(path: Path | None) -> Path | None:
    if path is None:
        return None
    return Path(os.path.expandvars(str(path))).expanduser()


def _load(cfg: Optional[Path], overrides: list[str]) -> RunConfig:
    config = load_config(cfg, overrides=overrides)
    config.runtime.workdir = _expand(config.runtime.workdir)
    config.paths.truth_dir = _expand(config.paths.truth_dir)
    config.paths.pred_dir = _expand(config.paths.pred_dir)
    config.paths.outputs_root = _expand(config.paths.outputs_root)
    config.paths.logs_root = _expand(config.paths.logs_root)
    log_file = config.paths.logs_root / "uieval.log" if config.paths.logs_root else None
    configure_logging(config.runtime.log_level, log_file)
    return config


@app.command("evaluate")
def evaluate(
    truth: Optional[Path] = typer.Option(None, "--truth", help="Directory of ground-truth JSON files"),
    pred: Optional[Path] = typer.Option(None, "--pred", help="Directory of predicted JSON files"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c"),
    iou_threshold: Optional[float] = typer.Option(None, "--iou-threshold"),
    class_tag: Optional[list[str]] = typer.Option(None, "--class", help="Class tag(s) to evaluate"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write CSV/JSON reports here"),
    orphans: Optional[bool] = typer.Option(
        None, "--orphans/--no-orphans", help="Score prediction files that have no ground truth"
    ),
    override: list[str] = typer.Option([], "--set", help="Override config: key=value"),
):
    try:
        config = _load(config_path, override)
        if truth is not None:
            config.paths.truth_dir = truth
        if pred is not None:
            config.paths.pred_dir = pred
        if output is not None:
            config.paths.outputs_root = output
        if orphans is not None:
            config.evaluation.score_orphan_predictions = orphans
        if iou_threshold is not None or class_tag:
            # Re-validate so CLI values get the same checks as config files.
            evaluation = config.evaluation.model_dump()
            if iou_threshold is not None:
                evaluation["iou_threshold"] = iou_threshold
            if class_tag:
                evaluation["classes"] = list(class_tag)
            config.evaluation = EvaluationConfig.model_validate(evaluation)
        outputs = run_evaluation(config)
    except (AnnotationError, FileNotFoundError, ValueError) as exc:
        LOGGER.error("%s", exc)
        raise typer.Exit(code=1) from exc

    typer.echo(render_table(outputs.result, decimals=config.reporting.decimals))
    for kind, path in outputs.artifacts.items():
        LOGGER.info("%s -> %s", kind, path)


@app.command("classes")
def classes(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c"),
    override: list[str] = typer.Option([], "--set", help="Override config: key=value"),
):
    try:
        config = _load(config_path, override)
    except (FileNotFoundError, ValueError) as exc:
        LOGGER.error("%s", exc)
        raise typer.Exit(code=1) from exc
    for tag in config.evaluation.classes:
        typer.echo(tag)


if __name__ == "__main__":
    app()
