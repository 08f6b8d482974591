"""
YOLOv5 single-image detection helpers.

The post-processing core (score filter, box conversion, greedy NMS,
rescaling) only needs NumPy. OpenCV is used for image I/O and drawing;
torch / onnxruntime are only imported by the backend that needs them.
"""

from .types import Detection, DetectionBatch
from .errors import ImageReadError, MalformedPredictionError, ModelLoadError, YoloKitError
from .decode import score_filter, to_detection_array, validate_predictions
from .nms import NMSConfig, iou_one_to_many, nms
from .postprocess import YoloPostprocessor, YoloPostConfig
from .scaling import rescale_detection, rescale_detections, scale_ratio
from .preprocess import read_image, to_blob
from .runtime import YoloPipeline, load_pipeline
from .metadata import class_name, load_class_names
from .visualize import draw_detections, draw_fps
from .config import DetectConfig, load_detect_config

__all__ = [
    "Detection",
    "DetectionBatch",
    "YoloKitError",
    "MalformedPredictionError",
    "ModelLoadError",
    "ImageReadError",
    "score_filter",
    "to_detection_array",
    "validate_predictions",
    "NMSConfig",
    "iou_one_to_many",
    "nms",
    "YoloPostprocessor",
    "YoloPostConfig",
    "rescale_detection",
    "rescale_detections",
    "scale_ratio",
    "read_image",
    "to_blob",
    "YoloPipeline",
    "load_pipeline",
    "class_name",
    "load_class_names",
    "draw_detections",
    "draw_fps",
    "DetectConfig",
    "load_detect_config",
]
