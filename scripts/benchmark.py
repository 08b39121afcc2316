"""Benchmark pipeline latency over a directory of images."""
from __future__ import annotations

import argparse
import time

from staged_ocr.api import create_pipeline
from staged_ocr.utils.io import iter_images, load_image
from staged_ocr.utils.timing import MovingAverage


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Benchmark the staged OCR pipeline")
    parser.add_argument("source", help="Directory of images")
    parser.add_argument("--config", default=None, help="Path to YAML configuration")
    parser.add_argument("--images", type=int, default=200, help="Maximum number of images to process")
    parser.add_argument("--workers", type=int, default=0, help="Region workers (0 = sequential)")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    pipeline = create_pipeline(args.config, {"num_workers": args.workers})
    meter = MovingAverage(window=50)

    for idx, path in enumerate(iter_images(args.source)):
        image = load_image(path)
        start = time.perf_counter()
        result = pipeline.run(image)
        meter.update(time.perf_counter() - start)
        if (idx + 1) % 20 == 0:
            print(f"Processed {idx + 1} images | avg latency {meter.value * 1000:.2f} ms | last regions {len(result)}")
        if idx + 1 >= args.images:
            break

    if meter.value:
        print(f"Final average latency: {meter.value * 1000:.2f} ms")
        for stage, seconds in pipeline.timer.summary().items():
            print(f"  {stage}: {seconds * 1000:.2f} ms")


if __name__ == "__main__":
    main()
