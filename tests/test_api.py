import pytest

from staged_ocr.api import build_pipeline
from staged_ocr.config import load_config
from staged_ocr.detectors.contour import ContourTextDetector
from staged_ocr.errors import ConfigurationError
from staged_ocr.ocr.tesseract_ocr import TesseractOCR
from staged_ocr.orientation.tesseract_osd import TesseractOrientation
from staged_ocr.pipeline.orientation import ClassifierPolicy, HeuristicPolicy
from staged_ocr.pipeline.pipeline import OcrPipeline


def test_default_pipeline_is_built_without_loading_engines():
    pipeline = build_pipeline(load_config())

    assert isinstance(pipeline, OcrPipeline)
    assert isinstance(pipeline._detectors.engines[0], ContourTextDetector)
    assert isinstance(pipeline._recognizers.engines[0], TesseractOCR)
    assert pipeline._recognizers.is_shared
    assert pipeline.orientation_policy == HeuristicPolicy(ratio_threshold=1.5)


def test_per_worker_policy_creates_one_engine_per_worker():
    config = load_config(overrides={"num_workers": 3, "engine_policy": "per_worker"})

    pipeline = build_pipeline(config)

    assert pipeline._recognizers.size == 3
    assert not pipeline._recognizers.is_shared


def test_classifier_policy_builds_orientation_engine():
    config = load_config(overrides={"orientation": {"policy": "classifier", "backend": "tesseract_osd"}})

    policy = build_pipeline(config).orientation_policy

    assert isinstance(policy, ClassifierPolicy)
    assert isinstance(policy.engine.engines[0], TesseractOrientation)


@pytest.mark.parametrize(
    "overrides",
    [
        {"detector": {"backend": "yolo_tensorrt"}},
        {"recognizer": {"backend": "paddleocr"}},
        {"orientation": {"policy": "classifier"}},
        {"orientation": {"policy": "classifier", "backend": "unknown"}},
    ],
)
def test_unsupported_backends_raise_configuration_error(overrides):
    with pytest.raises(ConfigurationError):
        build_pipeline(load_config(overrides=overrides))
