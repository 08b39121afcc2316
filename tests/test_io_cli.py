import json

import cv2
import numpy as np
import pytest

from conftest import FakeDetector, IntensityRecognizer, region
from staged_ocr import cli
from staged_ocr.config import PipelineConfig
from staged_ocr.detectors.base import NOT_SCORED, BoundingBox
from staged_ocr.errors import InferenceError
from staged_ocr.pipeline.pipeline import OcrPipeline
from staged_ocr.pipeline.postprocess import DetectionEntry, DetectionResult, RegionFailure
from staged_ocr.utils.io import iter_images, load_image, result_to_dict, save_result


def _result() -> DetectionResult:
    box = BoundingBox(0.25, 0.5, 0.5, 0.25)
    return DetectionResult(
        entries=[DetectionEntry(text="hello", score=NOT_SCORED, box=box)],
        failures=[RegionFailure(index=1, region=region(0, 0, 0, 0), error=InferenceError("x"))],
        image_size=(200, 100),
    )


def test_result_dict_lists_detections_and_skipped_regions():
    payload = result_to_dict(_result())

    assert payload["detections"] == [{"text": "hello", "score": -1.0, "box": [0.25, 0.5, 0.5, 0.25]}]
    assert payload["image_size"] == [200, 100]
    assert payload["skipped"] == [1]
    assert "cancelled" not in payload


def test_save_result_writes_json(tmp_path):
    out = tmp_path / "nested" / "result.json"

    save_result(out, _result(), pixels=True)

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["detections"][0]["box"] == [50.0, 50.0, 100.0, 25.0]


def test_image_helpers(tmp_path):
    cv2.imwrite(str(tmp_path / "b.png"), np.zeros((4, 4, 3), dtype=np.uint8))
    cv2.imwrite(str(tmp_path / "a.jpg"), np.zeros((4, 4, 3), dtype=np.uint8))
    (tmp_path / "notes.txt").write_text("skip me", encoding="utf-8")

    assert [p.name for p in iter_images(tmp_path)] == ["a.jpg", "b.png"]
    assert load_image(tmp_path / "b.png").shape == (4, 4, 3)
    with pytest.raises(FileNotFoundError):
        load_image(tmp_path / "missing.png")


def test_cli_image_command(tmp_path, monkeypatch, capsys):
    regions = [region(0.1, 0.1, 0.5, 0.5)]
    config = PipelineConfig()
    config.recognizer.expand_regions = False
    image_path = tmp_path / "page.png"
    cv2.imwrite(str(image_path), np.full((20, 20, 3), 90, dtype=np.uint8))
    pipeline = OcrPipeline(detector=FakeDetector(regions), recognizer=IntensityRecognizer(), config=config)
    monkeypatch.setattr(cli, "create_pipeline", lambda *args, **kwargs: pipeline)
    out = tmp_path / "result.json"

    cli.main(["image", str(image_path), "--output", str(out)])

    printed = capsys.readouterr().out
    assert "'v90'" in printed
    assert json.loads(out.read_text(encoding="utf-8"))["detections"][0]["text"] == "v90"


def test_cli_detect_command(tmp_path, monkeypatch, capsys):
    regions = [region(0.1, 0.1, 0.5, 0.5, score=0.75, label="text")]
    image_path = tmp_path / "page.png"
    cv2.imwrite(str(image_path), np.zeros((20, 20, 3), dtype=np.uint8))
    pipeline = OcrPipeline(detector=FakeDetector(regions), recognizer=IntensityRecognizer())
    monkeypatch.setattr(cli, "create_pipeline", lambda *args, **kwargs: pipeline)

    cli.main(["detect", str(image_path)])

    assert "75.0% conf" in capsys.readouterr().out


def test_cli_requires_a_command():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])
