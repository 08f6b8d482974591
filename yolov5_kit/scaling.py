from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Tuple

from .types import Detection


def scale_ratio(orig_size: Tuple[int, int], input_size: Tuple[int, int]) -> Tuple[float, float]:
    """
    (width, height) ratio of the original image to the model input.

    Both sizes are (width, height).
    """

    orig_w, orig_h = orig_size
    in_w, in_h = input_size
    if orig_w <= 0 or orig_h <= 0:
        raise ValueError(f"Original size must be positive, got {orig_size}")
    if in_w <= 0 or in_h <= 0:
        raise ValueError(f"Model input size must be positive, got {input_size}")
    return orig_w / in_w, orig_h / in_h


def rescale_detection(det: Detection, ratio: Tuple[float, float]) -> Detection:
    """Map a detection from model input pixels to original image pixels."""
    rw, rh = ratio
    return replace(
        det,
        left=det.left * rw,
        top=det.top * rh,
        right=det.right * rw,
        bottom=det.bottom * rh,
    )


def rescale_detections(dets: Iterable[Detection], ratio: Tuple[float, float]) -> List[Detection]:
    return [rescale_detection(d, ratio) for d in dets]
