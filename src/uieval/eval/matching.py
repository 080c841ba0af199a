from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from uieval.constants import DEFAULT_IOU_THRESHOLD
from uieval.data.annotations import Annotation, Box


def iou_xywh(a: Box, b: Box) -> float:
    inter_x1 = max(a.x, b.x)
    inter_y1 = max(a.y, b.y)
    inter_x2 = min(a.x2, b.x2)
    inter_y2 = min(a.y2, b.y2)
    iw = max(0.0, inter_x2 - inter_x1)
    ih = max(0.0, inter_y2 - inter_y1)
    inter = iw * ih
    # Areas are finite, so union is never NaN.
    union = a.area + (b.area - inter)
    # Two zero-area boxes with no overlap.
    if union <= 0:
        return 0.0
    return inter / union


@dataclass(frozen=True)
class MatchResult:
    tp: int
    fp: int
    fn: int


def validate_iou_threshold(iou_threshold: float) -> float:
    if not 0.0 < iou_threshold <= 1.0:
        raise ValueError(f"iou_threshold must be in (0, 1], got {iou_threshold}")
    return float(iou_threshold)


def match_boxes(
    predictions: Sequence[Box],
    truths: Sequence[Box],
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
) -> MatchResult:
    """Greedy first-fit matching of predictions to ground truth.

    Predictions are visited in the order given. Each one claims the first
    unclaimed truth, in the order given, whose IoU reaches ``iou_threshold``;
    the scan stops there even if a later truth overlaps more. This is not an
    optimal assignment and the counts depend on input order.
    """
    validate_iou_threshold(iou_threshold)
    claimed = [False] * len(truths)
    tp = 0
    for pred in predictions:
        for idx, truth in enumerate(truths):
            if not claimed[idx] and iou_xywh(pred, truth) >= iou_threshold:
                claimed[idx] = True
                tp += 1
                break
    return MatchResult(tp=tp, fp=len(predictions) - tp, fn=len(truths) - tp)


def boxes_for_tag(annotations: Sequence[Annotation], tag: str) -> list[Box]:
    return [ann.box for ann in annotations if ann.tag == tag]


def match_file(
    predictions: Sequence[Annotation],
    truths: Sequence[Annotation],
    tag: str,
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
) -> MatchResult:
    return match_boxes(
        boxes_for_tag(predictions, tag),
        boxes_for_tag(truths, tag),
        iou_threshold=iou_threshold,
    )
