from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from uieval.utils.io import list_json_files, read_json

LOGGER = logging.getLogger(__name__)

BOX_FIELDS = ("x", "y", "width", "height")


class AnnotationError(ValueError):
    """Raised when an annotation record cannot be turned into a valid box."""


def _coerce_coordinate(name: str, value: Any) -> float:
    # bool is an int subclass.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AnnotationError(f"Box field '{name}' must be a number, got {value!r}")
    try:
        out = float(value)
    except OverflowError as exc:
        raise AnnotationError(f"Box field '{name}' is too large, got {value!r}") from exc
    if not math.isfinite(out):
        raise AnnotationError(f"Box field '{name}' must be finite, got {value!r}")
    return out


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle anchored at its top-left corner."""

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        for name in BOX_FIELDS:
            object.__setattr__(self, name, _coerce_coordinate(name, getattr(self, name)))
        if self.width < 0 or self.height < 0:
            raise AnnotationError(
                f"Box extent must be non-negative, got width={self.width} height={self.height}"
            )
        if not all(math.isfinite(v) for v in (self.x2, self.y2, self.area)):
            raise AnnotationError(
                f"Box corner or area overflows: x={self.x} y={self.y} width={self.width} height={self.height}"
            )

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @classmethod
    def from_xywh(cls, values: list[float] | tuple[float, ...]) -> Box:
        if len(values) != 4:
            raise AnnotationError(f"Expected [x, y, width, height], got {values!r}")
        return cls(*values)

    @classmethod
    def from_mapping(cls, record: Mapping[str, Any]) -> Box:
        missing = [name for name in BOX_FIELDS if name not in record]
        if missing:
            raise AnnotationError(f"Box is missing field(s): {', '.join(missing)}")
        return cls(*(record[name] for name in BOX_FIELDS))


@dataclass(frozen=True)
class Annotation:
    tag: str
    box: Box


FileAnnotations = dict[str, list[Annotation]]


def parse_annotation(record: Any) -> Annotation:
    """Build an ``Annotation`` from one JSON record.

    Accepts the flat ``{tag, x, y, width, height}`` layout, a nested
    ``box`` object, or a COCO-style ``bbox: [x, y, w, h]`` list.
    """
    if not isinstance(record, Mapping):
        raise AnnotationError(f"Annotation must be an object, got {type(record).__name__}")
    tag = record.get("tag")
    if not isinstance(tag, str) or not tag:
        raise AnnotationError(f"Annotation tag must be a non-empty string, got {tag!r}")

    if "box" in record:
        nested = record["box"]
        if not isinstance(nested, Mapping):
            raise AnnotationError(f"Annotation 'box' must be an object, got {nested!r}")
        box = Box.from_mapping(nested)
    elif "bbox" in record:
        raw = record["bbox"]
        if not isinstance(raw, (list, tuple)):
            raise AnnotationError(f"Annotation 'bbox' must be a list, got {raw!r}")
        box = Box.from_xywh(raw)
    else:
        box = Box.from_mapping(record)
    return Annotation(tag=tag, box=box)


def parse_annotation_file(payload: Any, source: str) -> list[Annotation]:
    if not isinstance(payload, Mapping):
        raise AnnotationError(f"{source}: top level must be a JSON object")
    records = payload.get("annotations")
    if records is None:
        return []
    if not isinstance(records, list):
        raise AnnotationError(f"{source}: 'annotations' must be a list")

    out: list[Annotation] = []
    for idx, record in enumerate(records):
        try:
            out.append(parse_annotation(record))
        except AnnotationError as exc:
            raise AnnotationError(f"{source}: annotation #{idx}: {exc}") from exc
    return out


def load_annotations(directory: Path) -> FileAnnotations:
    """Read every ``*.json`` file in ``directory`` keyed by file name."""
    data: FileAnnotations = {}
    for path in list_json_files(directory):
        try:
            payload = read_json(path)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise AnnotationError(f"{path}: not valid UTF-8 JSON: {exc}") from exc
        data[path.name] = parse_annotation_file(payload, source=str(path))
    LOGGER.info(
        "Loaded %d files (%d annotations) from %s",
        len(data),
        sum(len(v) for v in data.values()),
        directory,
    )
    return data
