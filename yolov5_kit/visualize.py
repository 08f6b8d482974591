from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from .metadata import class_name
from .types import Detection

BOX_COLOR: Tuple[int, int, int] = (0, 255, 0)


def _require_cv2():
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for drawing. Install with `pip install opencv-python`.") from e
    return cv2


def _check_image(image_bgr: np.ndarray) -> None:
    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Detection],
    *,
    class_names: Optional[Sequence[str]] = None,
    show_label: bool = True,
    color: Tuple[int, int, int] = BOX_COLOR,
    box_thickness: int = 2,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Draw bounding boxes + labels on an OpenCV BGR image and return a copy.

    Args:
        image_bgr: input image in BGR (H, W, 3).
        detections: detections in original image coordinates.
        class_names: optional list indexed by class id.
    """

    _check_image(image_bgr)
    out = image_bgr.copy()
    dets = list(detections)
    if not dets:
        return out

    cv2 = _require_cv2()
    h, w = out.shape[:2]

    for det in dets:
        x1i = int(np.clip(round(det.left), 0, w - 1))
        y1i = int(np.clip(round(det.top), 0, h - 1))
        x2i = int(np.clip(round(det.right), 0, w - 1))
        y2i = int(np.clip(round(det.bottom), 0, h - 1))
        cv2.rectangle(out, (x1i, y1i), (x2i, y2i), color, thickness=box_thickness)

        if not show_label:
            continue

        label = f"{class_name(class_names or [], det.class_id)}: {det.score:.2f}"
        (_, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
        # Above the box if it fits, else just inside.
        y_text = y1i - baseline if y1i - th - baseline >= 0 else min(y1i + th, h - 1)
        cv2.putText(
            out,
            label,
            (x1i, y_text),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            color,
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    return out


def draw_fps(image_bgr: np.ndarray, fps: float, color: Tuple[int, int, int] = BOX_COLOR) -> np.ndarray:
    _check_image(image_bgr)
    cv2 = _require_cv2()
    out = image_bgr.copy()
    cv2.putText(out, f"FPS: {int(fps)}", (50, 50), cv2.FONT_HERSHEY_SIMPLEX, 1, color, 2)
    return out
