from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import numpy as np

from .errors import ImageReadError
from .scaling import scale_ratio

PathLike = Union[str, Path]


def _require_cv2():
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for image I/O. Install with `pip install opencv-python`.") from e
    return cv2


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    orig_size: Tuple[int, int]
    input_size: Tuple[int, int]
    ratio: Tuple[float, float]


def read_image(path: PathLike) -> np.ndarray:
    cv2 = _require_cv2()
    img = cv2.imread(str(path))
    if img is None:
        raise ImageReadError(f"Could not read image at path: {path}")
    return img


def to_blob(image_bgr: np.ndarray, input_size: Tuple[int, int]) -> PreprocessResult:
    """
    Stretch-resize a BGR image to `input_size` (width, height) and pack it as
    a float32 NCHW RGB blob in [0, 1].

    The returned ratio maps model input coordinates back to the original image.
    """

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    cv2 = _require_cv2()
    orig_h, orig_w = image_bgr.shape[:2]
    in_w, in_h = input_size
    ratio = scale_ratio((orig_w, orig_h), (in_w, in_h))

    img = image_bgr
    if (orig_w, orig_h) != (in_w, in_h):
        img = cv2.resize(img, (in_w, in_h))
    img = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)

    # HWC -> CHW, add batch
    blob = img.astype(np.float32) / 255.0
    blob = np.transpose(blob, (2, 0, 1))[None, ...]
    blob = np.ascontiguousarray(blob)

    return PreprocessResult(blob=blob, orig_size=(orig_w, orig_h), input_size=(in_w, in_h), ratio=ratio)
