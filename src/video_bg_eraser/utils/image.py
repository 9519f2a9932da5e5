"""
Image Utilities for Video Background Eraser
============================================

Frame normalization between the supported input depths and the
canonical float32 [0, 1] representation, plus disk I/O for frames.
"""

from enum import Enum
from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np
from PIL import Image

from video_bg_eraser.core.errors import UnsupportedDepth


class FrameDepth(Enum):
    """Supported frame bit depths."""
    UINT8 = "uint8"
    UINT16 = "uint16"
    FLOAT32 = "float32"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.value)

    @property
    def scale(self) -> float:
        """Multiplier mapping [0, 1] floats onto this depth."""
        return _DEPTH_SCALE[self]

    @classmethod
    def of(cls, image: np.ndarray) -> "FrameDepth":
        """Return the depth of an array, raising UnsupportedDepth otherwise."""
        for depth in cls:
            if image.dtype == depth.dtype:
                return depth
        raise UnsupportedDepth(image.dtype)


_DEPTH_SCALE = {
    FrameDepth.UINT8: 255.0,
    FrameDepth.UINT16: 65535.0,
    FrameDepth.FLOAT32: 1.0,
}


def normalize_frame(frame: np.ndarray) -> Tuple[np.ndarray, FrameDepth]:
    """
    Convert a frame to float32 in [0, 1].

    Args:
        frame: HxWx3 frame of dtype uint8, uint16 or float32

    Returns:
        (normalized frame, original depth)
    """
    depth = FrameDepth.of(frame)

    if frame.ndim != 3 or frame.shape[2] != 3:
        raise ValueError(f"Frame must be HxWx3, got shape {frame.shape}")

    if depth == FrameDepth.FLOAT32:
        return frame, depth

    return frame.astype(np.float32) / depth.scale, depth


def denormalize_frame(frame: np.ndarray, depth: FrameDepth) -> np.ndarray:
    """
    Convert a float [0, 1] frame back to the given depth.

    Integer depths are rounded to nearest and saturated.
    """
    if depth == FrameDepth.FLOAT32:
        return frame.astype(np.float32, copy=False)

    scaled = np.rint(frame.astype(np.float64) * depth.scale)
    return np.clip(scaled, 0, depth.scale).astype(depth.dtype)


def to_gray_uint8(frame: np.ndarray) -> np.ndarray:
    """Grayscale an RGB float [0, 1] frame into uint8."""
    rgb_uint8 = denormalize_frame(frame, FrameDepth.UINT8)
    return cv2.cvtColor(rgb_uint8, cv2.COLOR_RGB2GRAY)


def load_image(path: Union[str, Path]) -> np.ndarray:
    """
    Load an RGB frame from disk.

    8-bit images load as uint8; 16-bit images as uint16.
    """
    path = Path(path)

    if path.suffix.lower() in (".png", ".tif", ".tiff"):
        # Pillow flattens 16-bit RGB, OpenCV keeps it
        image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if image is None:
            raise RuntimeError(f"Failed to read image: {path}")
        if image.ndim == 2:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
        if image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2RGB)
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

    img = Image.open(path).convert("RGB")
    return np.array(img)


def save_image(image: np.ndarray, path: Union[str, Path]) -> None:
    """
    Save an RGB or RGBA frame to disk.

    Float images are written as 8-bit; uint16 images keep their depth
    (PNG/TIFF only).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if image.dtype in (np.float32, np.float64):
        image = denormalize_frame(image, FrameDepth.UINT8)

    if image.dtype == np.uint16:
        code = cv2.COLOR_RGBA2BGRA if image.shape[-1] == 4 else cv2.COLOR_RGB2BGR
        if not cv2.imwrite(str(path), cv2.cvtColor(image, code)):
            raise RuntimeError(f"Failed to write image: {path}")
        return

    Image.fromarray(image).save(path)


def resize_image(
    image: np.ndarray,
    size: Tuple[int, int],
    method: str = "nearest",
) -> np.ndarray:
    """
    Resize an image.

    Args:
        image: Input image
        size: Target (width, height)
        method: Interpolation method (nearest, bilinear, cubic, area)

    Returns:
        Resized image
    """
    method_map = {
        "nearest": cv2.INTER_NEAREST,
        "bilinear": cv2.INTER_LINEAR,
        "cubic": cv2.INTER_CUBIC,
        "area": cv2.INTER_AREA,
    }

    interp = method_map[method]
    return cv2.resize(image, size, interpolation=interp)


def scaled_size(width: int, height: int, scale: float) -> Tuple[int, int]:
    """(width, height) after scaling, never smaller than one pixel."""
    return max(1, int(round(width * scale))), max(1, int(round(height * scale)))
