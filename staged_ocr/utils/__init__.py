"""Utility helpers."""
from .io import iter_images, load_image, result_to_dict, save_result
from .timing import MovingAverage, StageTimer, time_block

__all__ = [
    "iter_images",
    "load_image",
    "result_to_dict",
    "save_result",
    "MovingAverage",
    "StageTimer",
    "time_block",
]
