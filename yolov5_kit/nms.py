from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

import numpy as np


@dataclass
class NMSConfig:
    iou_threshold: float = 0.5
    # None keeps going until every candidate is either kept or suppressed.
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_detections is not None and self.max_detections < 0:
            raise ValueError("max_detections must be >= 0 or None")


@dataclass(frozen=True)
class NMSStep:
    """One selection round of greedy NMS."""

    kept: int
    suppressed: np.ndarray
    remaining_before: int
    remaining_after: int


def box_areas(boxes: np.ndarray) -> np.ndarray:
    """Areas of (N, 4) xyxy boxes; inverted boxes count as zero area."""
    w = np.maximum(0.0, boxes[:, 2] - boxes[:, 0])
    h = np.maximum(0.0, boxes[:, 3] - boxes[:, 1])
    return w * h


def iou_one_to_many(box: np.ndarray, area: float, others: np.ndarray, other_areas: np.ndarray) -> np.ndarray:
    """
    IoU of one xyxy box against (M, 4) boxes.

    Where the union is zero (two degenerate boxes) the IoU is 0, not NaN.
    """

    xx1 = np.maximum(box[0], others[:, 0])
    yy1 = np.maximum(box[1], others[:, 1])
    xx2 = np.minimum(box[2], others[:, 2])
    yy2 = np.minimum(box[3], others[:, 3])

    w = np.maximum(0.0, xx2 - xx1)
    h = np.maximum(0.0, yy2 - yy1)
    inter = w * h
    union = area + other_areas - inter

    iou = np.zeros_like(inter, dtype=np.float64)
    np.divide(inter, union, out=iou, where=union > 0)
    return iou


def iou_matrix(boxes: np.ndarray) -> np.ndarray:
    """Pairwise IoU for (N, 4) xyxy boxes, mostly useful for checking NMS output."""
    n = boxes.shape[0]
    areas = box_areas(boxes)
    out = np.zeros((n, n), dtype=np.float64)
    for i in range(n):
        out[i] = iou_one_to_many(boxes[i], areas[i], boxes, areas)
    return out


def iter_nms_steps(boxes: np.ndarray, scores: np.ndarray, iou_threshold: float) -> Iterator[NMSStep]:
    """
    Run greedy NMS one selection at a time.

    Candidates are visited by descending score; equal scores keep their
    input order. Each step keeps the best remaining candidate and drops
    every other remaining candidate whose IoU with it is above
    `iou_threshold` (an IoU equal to the threshold survives).
    """

    if boxes.shape[0] == 0:
        return

    areas = box_areas(boxes)
    order = np.argsort(-scores, kind="stable")

    while order.size > 0:
        i = order[0]
        rest = order[1:]
        iou = iou_one_to_many(boxes[i], areas[i], boxes[rest], areas[rest])
        survivors = iou <= iou_threshold
        yield NMSStep(
            kept=int(i),
            suppressed=rest[~survivors],
            remaining_before=int(order.size),
            remaining_after=int(rest[survivors].size),
        )
        order = rest[survivors]


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig = NMSConfig()) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices of boxes to keep, highest score first.
    """

    keep = []
    if cfg.max_detections == 0:
        return np.empty((0,), dtype=np.int64)

    for step in iter_nms_steps(boxes, scores, cfg.iou_threshold):
        keep.append(step.kept)
        if cfg.max_detections is not None and len(keep) >= cfg.max_detections:
            break

    return np.array(keep, dtype=np.int64)
