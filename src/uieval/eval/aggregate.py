from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

import numpy as np

from uieval.constants import DEFAULT_IOU_THRESHOLD
from uieval.data.annotations import Annotation
from uieval.eval.matching import match_file, validate_iou_threshold

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassMetrics:
    tag: str
    gt_count: int
    tp: int
    fp: int
    fn: int
    precision: float
    recall: float
    f1: float


@dataclass(frozen=True)
class MacroMetrics:
    precision: float
    recall: float
    f1: float


@dataclass(frozen=True)
class EvaluationResult:
    classes: tuple[str, ...]
    per_class: dict[str, ClassMetrics]
    macro: MacroMetrics
    iou_threshold: float
    num_files: int


def safe_ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


def prf_from_counts(tp: int, fp: int, fn: int) -> tuple[float, float, float]:
    precision = safe_ratio(tp, tp + fp)
    recall = safe_ratio(tp, tp + fn)
    f1 = safe_ratio(2.0 * precision * recall, precision + recall)
    return precision, recall, f1


def macro_average(per_class: Iterable[ClassMetrics]) -> MacroMetrics:
    rows = list(per_class)
    if not rows:
        return MacroMetrics(precision=0.0, recall=0.0, f1=0.0)
    return MacroMetrics(
        precision=float(np.mean([m.precision for m in rows])),
        recall=float(np.mean([m.recall for m in rows])),
        f1=float(np.mean([m.f1 for m in rows])),
    )


def _validate_classes(classes: Sequence[str]) -> tuple[str, ...]:
    out = tuple(classes)
    if not out:
        raise ValueError("At least one class is required for evaluation")
    dupes = sorted({c for c in out if out.count(c) > 1})
    if dupes:
        raise ValueError(f"Duplicate classes in evaluation set: {dupes}")
    return out


def _files_to_score(
    truths_by_file: Mapping[str, Sequence[Annotation]],
    preds_by_file: Mapping[str, Sequence[Annotation]],
    score_orphan_predictions: bool,
) -> list[str]:
    files = list(truths_by_file)
    orphans = [f for f in preds_by_file if f not in truths_by_file]
    if orphans:
        if score_orphan_predictions:
            files.extend(orphans)
        else:
            LOGGER.warning(
                "%d prediction file(s) have no ground truth and are not scored: %s",
                len(orphans),
                orphans[:5],
            )
    return files


def aggregate(
    truths_by_file: Mapping[str, Sequence[Annotation]],
    preds_by_file: Mapping[str, Sequence[Annotation]],
    classes: Sequence[str],
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
    score_orphan_predictions: bool = False,
) -> EvaluationResult:
    """Roll per-file matches into per-class and macro precision/recall/F1.

    Only ground-truth files are scored unless ``score_orphan_predictions`` is
    set, in which case prediction-only files are scored against an empty
    ground truth. A file absent from the predictions counts as having none.
    Tags outside ``classes`` are ignored.
    """
    class_list = _validate_classes(classes)
    iou_threshold = validate_iou_threshold(iou_threshold)
    files = _files_to_score(truths_by_file, preds_by_file, score_orphan_predictions)

    per_class: dict[str, ClassMetrics] = {}
    for tag in class_list:
        tp_total = fp_total = fn_total = 0
        for file_id in files:
            truths = truths_by_file.get(file_id, [])
            preds = preds_by_file.get(file_id, [])
            result = match_file(preds, truths, tag, iou_threshold=iou_threshold)
            tp_total += result.tp
            fp_total += result.fp
            fn_total += result.fn

        precision, recall, f1 = prf_from_counts(tp_total, fp_total, fn_total)
        per_class[tag] = ClassMetrics(
            tag=tag,
            gt_count=tp_total + fn_total,
            tp=tp_total,
            fp=fp_total,
            fn=fn_total,
            precision=precision,
            recall=recall,
            f1=f1,
        )
        LOGGER.debug("%s: tp=%d fp=%d fn=%d", tag, tp_total, fp_total, fn_total)

    return EvaluationResult(
        classes=class_list,
        per_class=per_class,
        macro=macro_average(per_class[tag] for tag in class_list),
        iou_threshold=iou_threshold,
        num_files=len(files),
    )
