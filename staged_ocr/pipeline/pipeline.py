"""End-to-end detection, orientation and recognition pipeline."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Protocol, Sequence, Union

import numpy as np

from staged_ocr.config import PipelineConfig
from staged_ocr.detectors.base import NOT_SCORED, BoundingBox, DetectedRegion, Detector
from staged_ocr.errors import ConfigurationError, InferenceError, InvalidRegion
from staged_ocr.ocr.base import Recognizer
from staged_ocr.pipeline import postprocess
from staged_ocr.pipeline.engine_pool import EnginePool
from staged_ocr.pipeline.extract import extract
from staged_ocr.pipeline.orientation import HeuristicPolicy, OrientationNormalizer, OrientationPolicy
from staged_ocr.pipeline.postprocess import DetectionEntry, DetectionResult, RegionFailure
from staged_ocr.utils.timing import StageTimer


LOGGER = logging.getLogger(__name__)

_Outcome = Union[DetectionEntry, RegionFailure, None]


class ErrorReporter(Protocol):
    """Sink for regions that were skipped."""

    def report(self, failure: RegionFailure) -> None:
        ...


class LoggingErrorReporter:
    """Reports skipped regions as logging warnings."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or LOGGER

    def report(self, failure: RegionFailure) -> None:
        self.logger.warning(
            "Skipping region %d (%s): %s: %s",
            failure.index,
            failure.region.box.as_list(),
            type(failure.error).__name__,
            failure.error,
        )


def _as_pool(engine: object) -> EnginePool:
    return engine if isinstance(engine, EnginePool) else EnginePool.shared(engine)


def _check_image(image: np.ndarray) -> None:
    if not isinstance(image, np.ndarray) or image.ndim not in (2, 3) or image.size == 0:
        raise InferenceError("Expected a non-empty image array of shape (H, W) or (H, W, C)")


class OcrPipeline:
    """Coordinates detector, orientation normaliser, recogniser and post-filter.

    Detection runs once per image. Each detected region is then cropped,
    oriented, recognised and filtered independently, either in the calling
    thread (``num_workers == 0``) or on a bounded thread pool. Entries are
    always returned in detection order with the detector's original boxes
    and the index each region had in the detector output.
    """

    def __init__(
        self,
        detector: Union[Detector, EnginePool],
        recognizer: Union[Recognizer, EnginePool],
        config: PipelineConfig | None = None,
        orientation: OrientationPolicy | None = None,
        error_reporter: ErrorReporter | None = None,
    ) -> None:
        self.config = (config or PipelineConfig()).validate()
        if orientation is None:
            if self.config.orientation.policy == "classifier":
                raise ConfigurationError("Orientation policy 'classifier' requires an orientation engine")
            orientation = HeuristicPolicy(ratio_threshold=self.config.orientation.ratio_threshold)
        self._detectors = _as_pool(detector)
        self._recognizers = _as_pool(recognizer)
        self.normalizer = OrientationNormalizer(orientation)
        self.error_reporter: ErrorReporter = error_reporter or LoggingErrorReporter()
        self.timer = StageTimer()

    @property
    def orientation_policy(self) -> OrientationPolicy:
        return self.normalizer.policy

    def load(self) -> None:
        self._detectors.load()
        self._recognizers.load()
        self.normalizer.load()

    def _detect_indexed(self, image: np.ndarray) -> List[tuple[int, DetectedRegion]]:
        _check_image(image)
        det_cfg = self.config.detector
        with self.timer.time("detect"):
            with self._detectors.acquire() as detector:
                regions = list(detector.predict(image))
        kept = [
            (index, region)
            for index, region in enumerate(regions)
            if region.score == NOT_SCORED or region.score >= det_cfg.min_score
        ]
        if det_cfg.sort_regions:
            order = postprocess.reading_order([region for _, region in kept])
            kept = [kept[i] for i in order]
        LOGGER.debug("Detector returned %d regions, %d kept", len(regions), len(kept))
        return kept

    def detect(self, image: np.ndarray) -> List[DetectedRegion]:
        """Run the detector once and apply the configured region filters."""

        return [region for _, region in self._detect_indexed(image)]

    def _recognize(self, crop: np.ndarray) -> tuple[str, float, int]:
        rec_cfg = self.config.recognizer
        oriented, angle = self.normalizer.normalize(crop)
        with self.timer.time("recognize"):
            with self._recognizers.acquire() as recognizer:
                recognized = recognizer.predict(oriented)
        text = postprocess.filter_text(
            recognized.text,
            recognized.confidences,
            enabled=rec_cfg.filter_enabled,
            threshold=rec_cfg.filter_threshold,
        )
        score = recognized.score if recognized.score is not None else NOT_SCORED
        return text, score, angle

    def _process_region(
        self,
        image: np.ndarray,
        index: int,
        region: DetectedRegion,
        cancel: Optional[threading.Event],
    ) -> _Outcome:
        if cancel is not None and cancel.is_set():
            return None
        try:
            with self.timer.time("extract"):
                crop = extract(image, region.box, expand=self.config.recognizer.expand_regions)
            text, score, angle = self._recognize(crop)
        except (InvalidRegion, InferenceError) as exc:
            return RegionFailure(index=index, region=region, error=exc)
        return DetectionEntry(text=text, score=score, box=region.box, label=region.label, index=index, angle=angle)

    def _run_sequential(
        self,
        image: np.ndarray,
        regions: Sequence[tuple[int, DetectedRegion]],
        cancel: Optional[threading.Event],
    ) -> List[_Outcome]:
        outcomes: List[_Outcome] = [None] * len(regions)
        for slot, (index, region) in enumerate(regions):
            if cancel is not None and cancel.is_set():
                break
            outcomes[slot] = self._process_region(image, index, region, cancel)
        return outcomes

    def _run_parallel(
        self,
        image: np.ndarray,
        regions: Sequence[tuple[int, DetectedRegion]],
        cancel: Optional[threading.Event],
    ) -> List[_Outcome]:
        outcomes: List[_Outcome] = [None] * len(regions)
        workers = min(self.config.num_workers, len(regions))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ocr-region") as executor:
            futures: Dict[Future, int] = {
                executor.submit(self._process_region, image, index, region, cancel): slot
                for slot, (index, region) in enumerate(regions)
            }
            try:
                for future in as_completed(futures):
                    if future.cancelled():
                        continue
                    outcomes[futures[future]] = future.result()
                    if cancel is not None and cancel.is_set():
                        for pending in futures:
                            pending.cancel()
            except BaseException:
                # Queued regions must not start once an engine fault propagates.
                for pending in futures:
                    pending.cancel()
                raise
        return outcomes

    def run(self, image: np.ndarray, cancel: Optional[threading.Event] = None) -> DetectionResult:
        """Detect, orient, recognise and filter every text region of ``image``.

        Regions whose geometry or inference fails are skipped and passed to the
        error reporter. Setting ``cancel`` stops new regions from starting; the
        result then holds the entries finished so far and ``cancelled`` is set.
        """

        regions = self._detect_indexed(image)
        height, width = image.shape[:2]
        result = DetectionResult(image_size=(width, height))
        if not regions:
            return result

        if self.config.num_workers > 0 and len(regions) > 1:
            outcomes = self._run_parallel(image, regions, cancel)
        else:
            outcomes = self._run_sequential(image, regions, cancel)

        for outcome in outcomes:
            if outcome is None:
                result.cancelled = True
            elif isinstance(outcome, RegionFailure):
                result.failures.append(outcome)
                self.error_reporter.report(outcome)
            else:
                result.entries.append(outcome)

        LOGGER.debug(
            "Recognised %d/%d regions (%d failed, cancelled=%s) | timings %s",
            len(result.entries),
            len(regions),
            len(result.failures),
            result.cancelled,
            self.timer.summary(),
        )
        return result

    def recognize_line(self, image: np.ndarray) -> DetectionEntry:
        """Recognise an image that already holds a single text line.

        No detection or cropping takes place, so engine errors propagate.
        """

        _check_image(image)
        text, score, angle = self._recognize(image)
        return DetectionEntry(text=text, score=score, box=BoundingBox(0.0, 0.0, 1.0, 1.0), angle=angle)

    def process_batch(
        self, images: Sequence[np.ndarray], cancel: Optional[threading.Event] = None
    ) -> List[DetectionResult]:
        results: List[DetectionResult] = []
        for image in images:
            if cancel is not None and cancel.is_set():
                break
            results.append(self.run(image, cancel))
        return results


__all__ = ["ErrorReporter", "LoggingErrorReporter", "OcrPipeline"]
