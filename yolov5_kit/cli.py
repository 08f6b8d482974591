from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence

import cv2

from .config import DetectConfig, load_detect_config
from .errors import ImageReadError, MalformedPredictionError, ModelLoadError
from .metadata import class_name, load_class_names
from .preprocess import read_image
from .runtime import load_pipeline
from .visualize import draw_detections, draw_fps


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {n}")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a YOLOv5 export on one image and draw the detections.")
    parser.add_argument("-m", "--model", required=True, help="TorchScript (.pt/.torchscript) or ONNX model.")
    parser.add_argument("-W", "--width", required=True, type=_positive_int, help="Model input width.")
    parser.add_argument("-H", "--height", required=True, type=_positive_int, help="Model input height.")
    parser.add_argument("-i", "--image", required=True, help="Image to run detection on.")
    parser.add_argument("--names", default=None, help="Class names file, one label per line.")
    parser.add_argument("--config", default=None, help="JSON detect config.")
    parser.add_argument("--score-thresh", type=float, default=None, help="Score threshold (default 0.4).")
    parser.add_argument("--iou-thresh", type=float, default=None, help="NMS IoU threshold (default 0.5).")
    parser.add_argument("--backend", choices=("torchscript", "onnxruntime"), default=None)
    parser.add_argument("--device", default="cpu", help="Torch device for the TorchScript backend.")
    parser.add_argument("--output", default="det.jpg", help="Annotated image path, written when anything is detected.")
    parser.add_argument("--show", action="store_true", help="Show the annotated image until a key is pressed.")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _merge_config(args: argparse.Namespace) -> DetectConfig:
    cfg = load_detect_config(Path(args.config)) if args.config else DetectConfig()
    return DetectConfig(
        score_threshold=cfg.score_threshold if args.score_thresh is None else args.score_thresh,
        iou_threshold=cfg.iou_threshold if args.iou_thresh is None else args.iou_thresh,
        max_detections=cfg.max_detections,
        class_names=args.names or cfg.class_names,
        backend=args.backend or cfg.backend,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    try:
        cfg = _merge_config(args)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    print(f"Using model: {args.model}")
    print(f"Image width: {args.width}")
    print(f"Image height: {args.height}")
    print(f"Image: {args.image}")

    try:
        pipeline = load_pipeline(
            args.model,
            (args.width, args.height),
            backend=cfg.backend,
            post_cfg=cfg.post_config(),
            torch_device=args.device,
        )
        names: List[str] = load_class_names(cfg.class_names) if cfg.class_names else []
        image = read_image(args.image)
    except (ModelLoadError, ImageReadError, FileNotFoundError, ImportError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    start = time.perf_counter()
    try:
        detections = pipeline.detect(image)
    except MalformedPredictionError as exc:
        print(f"error: unexpected model output: {exc}", file=sys.stderr)
        return 1
    elapsed = time.perf_counter() - start

    print(f"Got detections: {len(detections)}")
    for det in detections:
        print("\t".join(str(v) for v in det.as_row()) + f"\t{class_name(names, det.class_id)}")

    vis = draw_detections(image, detections, class_names=names)
    vis = draw_fps(vis, 1.0 / elapsed if elapsed > 0 else 0.0)

    if args.show:
        cv2.imshow("detections", vis)
        cv2.waitKey(0)
        cv2.destroyAllWindows()

    if detections:
        cv2.imwrite(args.output, vis)
        print(f"wrote {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
