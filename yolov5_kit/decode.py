"""
Score filtering and center-to-corner conversion for YOLOv5 style outputs.

Layout handled here (per image): (N, 5 + C) rows of
[cx, cy, w, h, obj, class_scores...]. Both steps return new arrays; the
caller's prediction buffer is never written to.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from .errors import MalformedPredictionError
from .types import DET_COLS, MIN_RAW_COLS, RAW_BOX_COLS, RAW_CLASS_START, RAW_OBJ_COL

logger = logging.getLogger(__name__)


def _as_float_array(preds: Any) -> np.ndarray:
    try:
        p = np.asarray(preds)
    except (ValueError, TypeError) as exc:
        raise MalformedPredictionError(f"Predictions are not a rectangular array: {exc}") from exc

    if p.dtype == object:
        raise MalformedPredictionError("Predictions are ragged or contain non-numeric values.")
    if np.issubdtype(p.dtype, np.complexfloating):
        raise MalformedPredictionError(f"Predictions must be real-valued, got dtype {p.dtype}.")
    if not np.issubdtype(p.dtype, np.floating):
        if not np.issubdtype(p.dtype, np.number) and p.dtype != np.bool_:
            raise MalformedPredictionError(f"Predictions must be numeric, got dtype {p.dtype}.")
        p = p.astype(np.float64)
    return p


def validate_image_predictions(pred: Any) -> np.ndarray:
    """
    Check a single image's raw candidates and return them as a float array.

    Raises MalformedPredictionError for anything that is not (N, 5 + C) with C >= 1.
    """

    p = _as_float_array(pred)
    if p.ndim != 2:
        raise MalformedPredictionError(f"Expected per-image predictions of shape (N, 5 + C), got {p.shape}.")
    if p.shape[1] < MIN_RAW_COLS:
        raise MalformedPredictionError(
            f"Each candidate needs at least {MIN_RAW_COLS} values "
            f"(cx, cy, w, h, obj, class scores), got {p.shape[1]}."
        )
    return p


def validate_predictions(preds: Any) -> np.ndarray:
    """
    Check a batch of raw candidates and return a (B, N, 5 + C) float array.

    A single (N, 5 + C) array is promoted to a batch of one.
    """

    p = _as_float_array(preds)
    if p.ndim == 2:
        p = p[None, ...]
    if p.ndim != 3:
        raise MalformedPredictionError(f"Expected predictions of shape (B, N, 5 + C), got {p.shape}.")
    if p.shape[2] < MIN_RAW_COLS:
        raise MalformedPredictionError(
            f"Each candidate needs at least {MIN_RAW_COLS} values "
            f"(cx, cy, w, h, obj, class scores), got {p.shape[2]}."
        )
    return p


def candidate_scores(pred: np.ndarray) -> np.ndarray:
    """objectness * best class score, one value per row."""
    return pred[:, RAW_OBJ_COL] * pred[:, RAW_CLASS_START:].max(axis=1)


def score_filter(pred: np.ndarray, score_threshold: float) -> np.ndarray:
    """
    Keep rows whose combined score is strictly above `score_threshold`.

    Row order is preserved. The result may have zero rows.
    """

    if pred.shape[0] == 0:
        return pred.copy()
    keep = candidate_scores(pred) > score_threshold
    out = pred[keep]
    logger.debug("score filter kept %d/%d candidates (thresh=%s)", out.shape[0], pred.shape[0], score_threshold)
    return out


def to_detection_array(pred: np.ndarray) -> np.ndarray:
    """
    Convert raw rows to [left, top, right, bottom, score, class_id] rows.

    Must be applied once, to raw rows only: feeding the output back in
    reads corner coordinates as center/size and corrupts the boxes.
    """

    n = pred.shape[0]
    dets = np.empty((n, DET_COLS), dtype=pred.dtype)
    if n == 0:
        return dets

    cx, cy, w, h = (pred[:, i] for i in range(RAW_BOX_COLS))
    left = cx - w / 2
    top = cy - h / 2
    dets[:, 0] = left
    dets[:, 1] = top
    dets[:, 2] = left + w
    dets[:, 3] = top + h

    class_scores = pred[:, RAW_CLASS_START:]
    class_ids = np.argmax(class_scores, axis=1)
    class_conf = class_scores[np.arange(n), class_ids]
    dets[:, 4] = pred[:, RAW_OBJ_COL] * class_conf
    dets[:, 5] = class_ids
    return dets
