from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import numpy as np

from .decode import score_filter, to_detection_array, validate_image_predictions, validate_predictions
from .nms import NMSConfig, nms
from .types import DET_CLASS_COL, DET_COLS, DET_SCORE_COL, Detection

logger = logging.getLogger(__name__)


@dataclass
class YoloPostConfig:
    """
    Post-processing settings for YOLOv5 style (N, 5 + C) outputs.
    """

    score_threshold: float = 0.4
    iou_threshold: float = 0.5
    # None keeps every detection that survives NMS.
    max_detections: Optional[int] = None
    # If False, runs per-class NMS then merges results by score.
    class_agnostic_nms: bool = True
    # Optional list of class IDs to keep; None keeps all.
    class_ids: Optional[Sequence[int]] = None
    # > 1 spreads images of a batch over a thread pool.
    workers: int = 1

    def __post_init__(self) -> None:
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.max_detections is not None and self.max_detections < 0:
            raise ValueError("max_detections must be >= 0 or None")
        if self.workers < 1:
            raise ValueError("workers must be >= 1")


class YoloPostprocessor:
    """
    Turns raw model output into per-image detection arrays.

    Each image goes through: score filter -> center to corner conversion ->
    optional class filter -> greedy NMS. Output rows are
    [left, top, right, bottom, score, class_id] in model input coordinates,
    ordered by descending score.
    """

    def __init__(self, cfg: YoloPostConfig = YoloPostConfig()):
        self.cfg = cfg

    def process(self, preds: Any) -> List[np.ndarray]:
        """
        Post-process a (B, N, 5 + C) batch.

        Returns one (M, 6) array per image in batch order. Images with no
        surviving candidates get a (0, 6) array.
        """

        batch = validate_predictions(preds)
        images = [batch[i] for i in range(batch.shape[0])]

        if self.cfg.workers > 1 and len(images) > 1:
            with ThreadPoolExecutor(max_workers=self.cfg.workers) as executor:
                return list(executor.map(self._process_validated, images))
        return [self._process_validated(pred) for pred in images]

    def process_image(self, pred: Any) -> np.ndarray:
        return self._process_validated(validate_image_predictions(pred))

    def to_detections(self, dets: np.ndarray) -> List[Detection]:
        return [
            Detection(
                left=float(left),
                top=float(top),
                right=float(right),
                bottom=float(bottom),
                score=float(score),
                class_id=int(cls_id),
            )
            for left, top, right, bottom, score, cls_id in dets
        ]

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _process_validated(self, pred: np.ndarray) -> np.ndarray:
        filtered = score_filter(pred, self.cfg.score_threshold)
        if filtered.shape[0] == 0:
            return np.empty((0, DET_COLS), dtype=pred.dtype)

        dets = to_detection_array(filtered)

        # Optional class filter
        if self.cfg.class_ids is not None:
            mask = np.isin(dets[:, DET_CLASS_COL].astype(np.int64), np.asarray(self.cfg.class_ids, dtype=np.int64))
            dets = dets[mask]
            if dets.shape[0] == 0:
                return dets

        kept = self._apply_nms(dets)
        logger.debug("nms kept %d/%d detections", kept.shape[0], dets.shape[0])
        return kept

    def _apply_nms(self, dets: np.ndarray) -> np.ndarray:
        nms_cfg = NMSConfig(iou_threshold=self.cfg.iou_threshold, max_detections=self.cfg.max_detections)
        boxes = dets[:, :4]
        scores = dets[:, DET_SCORE_COL]

        if self.cfg.class_agnostic_nms:
            return dets[nms(boxes, scores, nms_cfg)]

        class_ids = dets[:, DET_CLASS_COL]
        kept: List[int] = []
        for cls in np.unique(class_ids):
            idx = np.where(class_ids == cls)[0]
            keep_local = nms(boxes[idx], scores[idx], nms_cfg)
            kept.extend(idx[keep_local].tolist())

        if not kept:
            return dets[:0]

        # Merge classes by score; ties fall back to original candidate order.
        kept_idx = np.sort(np.array(kept, dtype=np.int64))
        order = np.argsort(-scores[kept_idx], kind="stable")
        kept_idx = kept_idx[order]
        if self.cfg.max_detections is not None:
            kept_idx = kept_idx[: self.cfg.max_detections]
        return dets[kept_idx]
