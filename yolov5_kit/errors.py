"""
Exceptions raised by yolov5_kit.

Each error also derives from the builtin that callers would naturally catch,
so `except ValueError` / `except FileNotFoundError` keep working.
"""


class YoloKitError(Exception):
    """Base class for every error raised by this package."""


class MalformedPredictionError(YoloKitError, ValueError):
    """Raw prediction array has the wrong rank, width, or is ragged."""


class ModelLoadError(YoloKitError, RuntimeError):
    """Inference backend could not load the model file."""


class ImageReadError(YoloKitError, FileNotFoundError):
    """Image file is missing or could not be decoded."""
