import pytest

from conftest import region
from staged_ocr.detectors.base import NOT_SCORED, BoundingBox
from staged_ocr.errors import InferenceError
from staged_ocr.pipeline.postprocess import (
    DetectionEntry,
    DetectionResult,
    filter_regions,
    filter_text,
    reading_order,
    sort_reading_order,
)


@pytest.mark.parametrize(
    "confidences",
    [[0.9, 0.2, 0.8], [0.0, 0.0, 0.0], [1.0, 1.0, 1.0], [], [0.1]],
)
def test_disabled_filter_passes_text_through(confidences):
    assert filter_text("AAB", confidences, enabled=False, threshold=0.5) == "AAB"


def test_low_confidence_duplicate_is_dropped():
    assert filter_text("AAB", [0.9, 0.2, 0.8], enabled=True, threshold=0.5) == "AB"


def test_characters_dropped_at_any_position():
    text = "xHELLOy"
    confidences = [0.1, 0.9, 0.9, 0.2, 0.9, 0.9, 0.3]

    assert filter_text(text, confidences, enabled=True, threshold=0.5) == "HELO"


def test_confidence_equal_to_threshold_is_kept():
    assert filter_text("AB", [0.5, 0.49], enabled=True, threshold=0.5) == "A"


def test_filter_never_empties_the_text():
    assert filter_text("AAB", [0.1, 0.2, 0.3], enabled=True, threshold=0.5) == "AAB"


def test_empty_text_stays_empty():
    assert filter_text("", [], enabled=True, threshold=0.5) == ""


def test_misaligned_confidences_are_an_inference_error():
    with pytest.raises(InferenceError):
        filter_text("AAB", [0.9, 0.2], enabled=True, threshold=0.5)


def test_filter_regions_keeps_unscored_regions():
    regions = [
        region(0.1, 0.1, 0.1, 0.1, score=0.9),
        region(0.2, 0.2, 0.1, 0.1, score=0.2),
        region(0.3, 0.3, 0.1, 0.1, score=NOT_SCORED),
        region(0.4, 0.4, 0.1, 0.1, score=0.3),
    ]

    kept = filter_regions(regions, min_score=0.3)

    assert [r.score for r in kept] == [0.9, NOT_SCORED, 0.3]


def test_sort_reading_order_groups_lines():
    regions = [
        region(0.6, 0.505, 0.1, 0.05, label="d"),
        region(0.1, 0.1, 0.1, 0.05, label="a"),
        region(0.1, 0.5, 0.1, 0.05, label="c"),
        region(0.5, 0.095, 0.1, 0.05, label="b"),
    ]

    ordered = sort_reading_order(regions)

    assert [r.label for r in ordered] == ["a", "b", "c", "d"]


def test_records_in_normalised_and_pixel_space():
    result = DetectionResult(
        entries=[DetectionEntry(text="hi", score=NOT_SCORED, box=BoundingBox(0.25, 0.5, 0.5, 0.25))],
        image_size=(200, 100),
    )

    assert result.to_records() == [{"text": "hi", "score": -1.0, "box": [0.25, 0.5, 0.5, 0.25]}]
    assert result.to_records(pixels=True) == [{"text": "hi", "score": -1.0, "box": [50.0, 50.0, 100.0, 25.0]}]
    assert len(result) == 1
    assert result.texts == ["hi"]


def test_pixel_records_need_image_size():
    result = DetectionResult(entries=[DetectionEntry(text="a", score=0.5, box=BoundingBox(0, 0, 1, 1))])

    with pytest.raises(ValueError):
        result.to_records(pixels=True)


def test_reading_order_returns_positions():
    regions = [
        region(0.1, 0.5, 0.1, 0.05),
        region(0.5, 0.1, 0.1, 0.05),
        region(0.1, 0.1, 0.1, 0.05),
    ]

    assert reading_order(regions) == [2, 1, 0]
