from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import MalformedPredictionError
from .postprocess import YoloPostConfig, YoloPostprocessor
from .preprocess import PreprocessResult, to_blob
from .scaling import rescale_detections
from .types import Detection, DetectionBatch

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_BACKEND_BY_SUFFIX = {
    ".pt": "torchscript",
    ".ts": "torchscript",
    ".torchscript": "torchscript",
    ".onnx": "onnxruntime",
}


class YoloPipeline:
    """
    Plug-and-play pipeline: resize -> inference -> post-process -> rescale.

    The pipeline expects BGR images (OpenCV-style) as `np.ndarray` and returns
    `Detection` objects in original image coordinates.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        input_size: Tuple[int, int],
        *,
        backend: Optional[object] = None,
        backend_name: Optional[str] = None,
        post_cfg: YoloPostConfig = YoloPostConfig(),
    ):
        self._infer_fn = infer_fn
        self.input_size = input_size
        self.backend = backend
        self.backend_name = backend_name
        self.post = YoloPostprocessor(post_cfg)

    def preprocess(self, image_bgr: np.ndarray) -> PreprocessResult:
        return to_blob(image_bgr, self.input_size)

    def detect(self, image_bgr: np.ndarray) -> List[Detection]:
        return self.detect_batch([image_bgr])[0]

    def detect_batch(self, images_bgr: Sequence[np.ndarray]) -> DetectionBatch:
        """
        Run every image through the model as one (B, 3, H, W) batch.

        All images are resized to the same input size, so each keeps its own
        rescale ratio.
        """

        if not images_bgr:
            return []
        preps = [self.preprocess(img) for img in images_bgr]
        blob = np.concatenate([p.blob for p in preps], axis=0)
        preds = self._infer_fn(blob)
        per_image = self.post.process(preds)
        if len(per_image) != len(preps):
            raise MalformedPredictionError(
                f"Model returned predictions for {len(per_image)} images, expected {len(preps)}."
            )

        results: DetectionBatch = []
        for prep, dets in zip(preps, per_image):
            results.append(rescale_detections(self.post.to_detections(dets), prep.ratio))
        logger.debug("detections per image: %s", [len(r) for r in results])
        return results

    __call__ = detect


def load_pipeline(
    model_path: PathLike,
    input_size: Tuple[int, int],
    *,
    backend: Optional[str] = None,
    post_cfg: YoloPostConfig = YoloPostConfig(),
    torch_device: str = "cpu",
    torch_half: bool = False,
    onnx_providers: Optional[Sequence[str]] = None,
) -> YoloPipeline:
    """
    Create a pipeline for a model on disk.

    Args:
        model_path: exported YOLOv5 model
        input_size: (width, height) the model was exported with
        backend: "torchscript" or "onnxruntime"; None infers it from the file extension
    """

    path = Path(model_path).expanduser().resolve()
    chosen = backend
    if chosen is None:
        chosen = _BACKEND_BY_SUFFIX.get(path.suffix.lower())
        if chosen is None:
            raise ValueError(
                f"Could not infer backend from extension '{path.suffix}'. Pass backend=... explicitly."
            )

    chosen = chosen.lower()
    if chosen == "torchscript":
        from .backends.torchscript_backend import TorchScriptBackend, TorchScriptBackendConfig

        ts_backend = TorchScriptBackend(path, TorchScriptBackendConfig(device=torch_device, half=torch_half))
        return YoloPipeline(
            ts_backend.infer,
            input_size,
            backend=ts_backend,
            backend_name="torchscript",
            post_cfg=post_cfg,
        )

    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        ort_backend = OnnxRuntimeBackend(path, OnnxRuntimeBackendConfig(providers=onnx_providers))
        return YoloPipeline(
            ort_backend.infer,
            input_size,
            backend=ort_backend,
            backend_name="onnxruntime",
            post_cfg=post_cfg,
        )

    raise ValueError(f"Unsupported backend: {backend!r}")
