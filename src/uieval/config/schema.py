from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from uieval.constants import DEFAULT_CLASSES, DEFAULT_DECIMALS, DEFAULT_IOU_THRESHOLD


class RuntimeConfig(BaseModel):
    log_level: str = "INFO"
    workdir: Path = Path(".")


class PathsConfig(BaseModel):
    truth_dir: Path | None = None
    pred_dir: Path | None = None
    outputs_root: Path | None = None
    logs_root: Path | None = None


class EvaluationConfig(BaseModel):
    classes: list[str] = Field(default_factory=lambda: list(DEFAULT_CLASSES))
    iou_threshold: float = DEFAULT_IOU_THRESHOLD
    score_orphan_predictions: bool = False

    @field_validator("classes")
    @classmethod
    def _check_classes(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("evaluation.classes must not be empty")
        if len(set(value)) != len(value):
            raise ValueError(f"evaluation.classes contains duplicates: {value}")
        return value

    @field_validator("iou_threshold")
    @classmethod
    def _check_threshold(cls, value: float) -> float:
        if not 0.0 < value <= 1.0:
            raise ValueError(f"evaluation.iou_threshold must be in (0, 1], got {value}")
        return value


class ReportingConfig(BaseModel):
    decimals: int = Field(default=DEFAULT_DECIMALS, ge=0, le=10)
    write_csv: bool = True
    write_json: bool = True


class RunConfig(BaseModel):
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)
