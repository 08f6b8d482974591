"""
Optional inference backends for yolov5_kit.

Backends are kept in a separate module so the post-processing core stays
importable without torch or onnxruntime installed.
"""

from __future__ import annotations

__all__ = []
