"""Core configuration and error types."""

from video_bg_eraser.core.errors import (
    EraserError,
    UnsupportedDepth,
    EmptyClassIdSet,
    InferenceError,
    GeometryMismatch,
)

__all__ = [
    "EraserError",
    "UnsupportedDepth",
    "EmptyClassIdSet",
    "InferenceError",
    "GeometryMismatch",
]
