"""Command line interface for the staged OCR pipeline."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable

from staged_ocr.api import create_pipeline
from staged_ocr.detectors.base import NOT_SCORED
from staged_ocr.pipeline.postprocess import DetectionEntry, DetectionResult
from staged_ocr.utils.io import load_image, save_result


def _format_score(score: float) -> str:
    return "unscored" if score == NOT_SCORED else f"{score * 100.0:.1f}% conf"


def _print_entries(tag: str, entries: Iterable[DetectionEntry]) -> None:
    printed = False
    for entry in entries:
        printed = True
        box = ", ".join(f"{v:.3f}" for v in entry.box.as_list())
        print(f"[{tag}] #{entry.index} {entry.text!r} ({_format_score(entry.score)}) box=[{box}]")
    if not printed:
        print(f"[{tag}] No text detected")


def _run_image(args: argparse.Namespace) -> None:
    pipeline = create_pipeline(args.config, {"num_workers": args.workers} if args.workers is not None else None)
    image = load_image(args.source)
    result = pipeline.run(image)
    _print_entries(str(args.source), result)
    if result.failures:
        print(f"[{args.source}] {len(result.failures)} region(s) skipped")
    if args.output:
        save_result(args.output, result, pixels=args.pixels)
        print(f"Results written to {args.output}")


def _run_detect(args: argparse.Namespace) -> None:
    pipeline = create_pipeline(args.config)
    image = load_image(args.source)
    regions = pipeline.detect(image)
    if not regions:
        print(f"[{args.source}] No text regions detected")
    for index, region in enumerate(regions):
        box = ", ".join(f"{v:.3f}" for v in region.box.as_list())
        print(f"[{args.source}] #{index} {region.label or '-'} ({_format_score(region.score)}) box=[{box}]")
    if args.output:
        height, width = image.shape[:2]
        result = DetectionResult(
            entries=[
                DetectionEntry(text=region.label or "", score=region.score, box=region.box, label=region.label, index=i)
                for i, region in enumerate(regions)
            ],
            image_size=(width, height),
        )
        save_result(args.output, result, pixels=args.pixels)
        print(f"Results written to {args.output}")


def _run_line(args: argparse.Namespace) -> None:
    pipeline = create_pipeline(args.config)
    entry = pipeline.recognize_line(load_image(args.source))
    print(f"[{args.source}] {entry.text!r} ({_format_score(entry.score)})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the staged OCR pipeline from the command line.")
    parser.add_argument("--config", type=Path, default=None, help="Path to the pipeline YAML config.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    image_parser = subparsers.add_parser("image", help="Detect and recognise all text in an image.")
    image_parser.add_argument("source", type=Path, help="Path to the input image.")
    image_parser.add_argument("--output", type=Path, help="Optional path to write JSON results.")
    image_parser.add_argument("--pixels", action="store_true", help="Write boxes in pixel coordinates.")
    image_parser.add_argument("--workers", type=int, default=None, help="Override the number of region workers.")
    image_parser.set_defaults(func=_run_image)

    detect_parser = subparsers.add_parser("detect", help="Only run text-region detection.")
    detect_parser.add_argument("source", type=Path, help="Path to the input image.")
    detect_parser.add_argument("--output", type=Path, help="Optional path to write JSON results.")
    detect_parser.add_argument("--pixels", action="store_true", help="Write boxes in pixel coordinates.")
    detect_parser.set_defaults(func=_run_detect)

    line_parser = subparsers.add_parser("line", help="Recognise an image holding a single text line.")
    line_parser.add_argument("source", type=Path, help="Path to the text-line image.")
    line_parser.set_defaults(func=_run_line)

    return parser


def main(argv: list[str] | None = None) -> None:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
