"""
Compositor for Video Background Eraser
======================================

Merges the matting model's alpha prediction with the trimap's hard regions
and the original color channels into the final RGBA cutout.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from video_bg_eraser.core.errors import GeometryMismatch
from video_bg_eraser.matting.trimap import TrimapValue
from video_bg_eraser.utils.image import FrameDepth, denormalize_frame


def clamp_alpha(alpha: np.ndarray, trimap: np.ndarray) -> np.ndarray:
    """
    Force definite regions of the trimap onto an alpha prediction.

    Alpha is 0 on definite background, 1 on definite foreground and the
    (clipped) prediction in the unknown band.
    """
    if alpha.shape != trimap.shape:
        raise GeometryMismatch("Alpha", trimap.shape, alpha.shape)

    clamped = np.clip(alpha.astype(np.float32), 0.0, 1.0)
    clamped[trimap == TrimapValue.BACKGROUND] = 0.0
    clamped[trimap == TrimapValue.FOREGROUND] = 1.0
    return clamped


def build_matting_input(frame: np.ndarray, trimap: np.ndarray) -> np.ndarray:
    """Stack a normalized RGB frame and its trimap into a float32 HxWx4 array."""
    if frame.shape[:2] != trimap.shape:
        raise GeometryMismatch("Trimap", frame.shape[:2], trimap.shape)

    rgba = np.empty(frame.shape[:2] + (4,), dtype=np.float32)
    rgba[..., :3] = frame
    rgba[..., 3] = trimap.astype(np.float32) / 255.0
    return rgba


@dataclass
class CompositorConfig:
    """Compositor configuration."""
    premultiply: bool = False        # Multiply RGB by alpha


class Compositor:
    """
    Final RGBA assembly.

    Example:
        >>> compositor = Compositor()
        >>> rgba = compositor.compose(frame, alpha, trimap, FrameDepth.UINT8)
    """

    def __init__(self, config: Optional[CompositorConfig] = None):
        self.config = config or CompositorConfig()

    def compose(
        self,
        frame: np.ndarray,
        alpha: np.ndarray,
        trimap: np.ndarray,
        depth: FrameDepth = FrameDepth.FLOAT32,
    ) -> np.ndarray:
        """
        Build the RGBA cutout.

        Args:
            frame: Normalized HxWx3 RGB frame
            alpha: HxW alpha prediction in [0, 1]
            trimap: HxW trimap
            depth: Depth to convert the result back to

        Returns:
            HxWx4 RGBA frame of the requested depth
        """
        if frame.shape[:2] != trimap.shape:
            raise GeometryMismatch("Trimap", frame.shape[:2], trimap.shape)

        clamped = clamp_alpha(alpha, trimap)

        rgba = np.empty(frame.shape[:2] + (4,), dtype=np.float32)
        rgba[..., :3] = frame
        if self.config.premultiply:
            rgba[..., :3] *= clamped[..., np.newaxis]
        rgba[..., 3] = clamped

        return denormalize_frame(rgba, depth)
