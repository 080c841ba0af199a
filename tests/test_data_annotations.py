import json
import math
from pathlib import Path

import pytest

from uieval.data.annotations import (
    Annotation,
    AnnotationError,
    Box,
    load_annotations,
    parse_annotation,
    parse_annotation_file,
)


def _write(path: Path, payload: object) -> None:
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_parse_flat_nested_and_bbox_layouts() -> None:
    flat = parse_annotation({"tag": "Button", "x": 1, "y": 2, "width": 3, "height": 4})
    nested = parse_annotation({"tag": "Button", "box": {"x": 1, "y": 2, "width": 3, "height": 4}})
    coco = parse_annotation({"tag": "Button", "bbox": [1, 2, 3, 4]})
    expected = Annotation(tag="Button", box=Box(1.0, 2.0, 3.0, 4.0))
    assert flat == nested == coco == expected


@pytest.mark.parametrize(
    "record",
    [
        {"tag": "Button", "x": 0, "y": 0, "width": 5},
        {"tag": "Button", "x": "0", "y": 0, "width": 5, "height": 5},
        {"tag": "Button", "x": 0, "y": 0, "width": -1, "height": 5},
        {"tag": "Button", "x": 0, "y": 0, "width": 5, "height": math.nan},
        {"tag": "Button", "x": True, "y": 0, "width": 5, "height": 5},
        {"tag": "", "x": 0, "y": 0, "width": 5, "height": 5},
        {"x": 0, "y": 0, "width": 5, "height": 5},
        {"tag": "Button", "bbox": [0, 0, 5]},
        ["Button", 0, 0, 5, 5],
        {"tag": "Button", "x": 10**400, "y": 0, "width": 5, "height": 5},
        {"tag": "Button", "x": 1e308, "y": 0, "width": 1e308, "height": 10},
        {"tag": "Button", "x": 0, "y": 0, "width": 1e200, "height": 1e200},
    ],
)
def test_malformed_records_fail_fast(record: object) -> None:
    with pytest.raises(AnnotationError):
        parse_annotation(record)


def test_zero_extent_box_is_valid() -> None:
    assert Box(1, 1, 0, 0).area == 0.0


def test_error_names_source_and_index() -> None:
    payload = {"annotations": [{"tag": "Input", "x": 0, "y": 0, "width": 1, "height": 1}, {"tag": "Input"}]}
    with pytest.raises(AnnotationError, match=r"screen\.json: annotation #1"):
        parse_annotation_file(payload, source="screen.json")


def test_missing_annotations_key_is_empty() -> None:
    assert parse_annotation_file({}, source="x.json") == []
    with pytest.raises(AnnotationError):
        parse_annotation_file([], source="x.json")
    with pytest.raises(AnnotationError):
        parse_annotation_file({"annotations": {}}, source="x.json")


def test_load_annotations_reads_json_files_in_order(tmp_path: Path) -> None:
    _write(tmp_path / "b.json", {"annotations": [{"tag": "Radio", "x": 0, "y": 0, "width": 2, "height": 2}]})
    _write(
        tmp_path / "a.json",
        {
            "annotations": [
                {"tag": "Input", "x": 5, "y": 5, "width": 1, "height": 1},
                {"tag": "Button", "x": 0, "y": 0, "width": 1, "height": 1},
            ]
        },
    )
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    data = load_annotations(tmp_path)
    assert list(data) == ["a.json", "b.json"]
    assert [a.tag for a in data["a.json"]] == ["Input", "Button"]


def test_load_annotations_missing_dir(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_annotations(tmp_path / "nope")


def test_load_annotations_reports_bad_json_file(tmp_path: Path) -> None:
    (tmp_path / "broken.json").write_text('{"annotations": [', encoding="utf-8")
    with pytest.raises(AnnotationError, match="broken.json"):
        load_annotations(tmp_path)


def test_load_annotations_reports_bad_encoding(tmp_path: Path) -> None:
    (tmp_path / "latin.json").write_bytes(b'{"annotations": [], "note": "\xe9"}')
    with pytest.raises(AnnotationError, match="latin.json"):
        load_annotations(tmp_path)
