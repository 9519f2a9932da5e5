"""
Error Types for Video Background Eraser
========================================

Every failure raised by the eraser derives from ``EraserError`` so callers
can abort a stream with a single ``except`` clause.
"""

from typing import Optional, Tuple


class EraserError(Exception):
    """Base class for all eraser errors."""


class UnsupportedDepth(EraserError):
    """Input frame bit depth is not 8-bit, 16-bit unsigned or 32-bit float."""

    def __init__(self, dtype):
        self.dtype = dtype
        super().__init__(
            f"Unsupported input image depth ({dtype}). "
            "Supported depths are uint8, uint16 and float32"
        )


class EmptyClassIdSet(EraserError):
    """No background class ids were configured."""

    def __init__(self):
        super().__init__("background_class_ids is empty")


class InferenceError(EraserError):
    """A neural collaborator is not ready or its inference failed."""

    def __init__(self, model_name: str, message: str):
        self.model_name = model_name
        super().__init__(f"{model_name}: {message}")


class GeometryMismatch(EraserError):
    """Two arrays that must be pixel-aligned have different sizes."""

    def __init__(
        self,
        what: str,
        expected: Tuple[int, ...],
        actual: Tuple[int, ...],
        hint: Optional[str] = None,
    ):
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        message = f"{what}: expected size {self.expected}, got {self.actual}"
        if hint:
            message = f"{message} ({hint})"
        super().__init__(message)
