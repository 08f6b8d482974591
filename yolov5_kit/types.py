from dataclasses import dataclass
from typing import List, Tuple

# Raw candidate row: [cx, cy, w, h, objectness, class_score_0, ...]
RAW_BOX_COLS = 4
RAW_OBJ_COL = 4
RAW_CLASS_START = 5
MIN_RAW_COLS = RAW_CLASS_START + 1

# Detection row: [left, top, right, bottom, score, class_id]
DET_COLS = 6
DET_SCORE_COL = 4
DET_CLASS_COL = 5


@dataclass
class Detection:
    """
    Single detection in corner form.

    Coordinates are in whichever space the producer works in: model input
    pixels straight out of the post-processor, original image pixels after
    rescaling.
    """

    left: float
    top: float
    right: float
    bottom: float
    score: float
    class_id: int

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.left, self.top, self.right, self.bottom

    def as_row(self) -> Tuple[float, float, float, float, float, int]:
        return self.left, self.top, self.right, self.bottom, self.score, self.class_id


# One list per input image, same order as the batch.
DetectionBatch = List[List[Detection]]
