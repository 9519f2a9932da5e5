"""
Dense Optical Flow
==================

Motion compensation for the temporal tracker. The flow is computed from the
current frame towards the previous one, so ``(x, y) + flow(x, y)`` is where
the content of pixel ``(x, y)`` was in the previous frame. Any per-pixel
buffer aligned with the previous frame can then be pulled into the current
frame's geometry with :func:`warp_by_flow`.

Models:
- DIS (Dense Inverse Search), the default
- Farneback polynomial expansion
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import cv2
import numpy as np

from video_bg_eraser.core.errors import GeometryMismatch, InferenceError

logger = logging.getLogger(__name__)


class FlowMethod(Enum):
    """Available optical flow algorithms."""
    DIS = "dis"
    FARNEBACK = "farneback"


class DISPreset(Enum):
    """DIS speed/quality presets."""
    ULTRAFAST = "ultrafast"
    FAST = "fast"
    MEDIUM = "medium"


_DIS_PRESETS = {
    DISPreset.ULTRAFAST: cv2.DISOPTICAL_FLOW_PRESET_ULTRAFAST,
    DISPreset.FAST: cv2.DISOPTICAL_FLOW_PRESET_FAST,
    DISPreset.MEDIUM: cv2.DISOPTICAL_FLOW_PRESET_MEDIUM,
}

# DIS refuses frames smaller than this in both dimensions
DIS_MIN_SIZE = 12


class WarpInterpolation(Enum):
    """Resampling used when warping accumulated state."""
    NEAREST = "nearest"
    BILINEAR = "bilinear"


_WARP_INTERPOLATION = {
    WarpInterpolation.NEAREST: cv2.INTER_NEAREST,
    WarpInterpolation.BILINEAR: cv2.INTER_LINEAR,
}


@dataclass
class FlowConfig:
    """Optical flow configuration."""
    method: FlowMethod = FlowMethod.DIS
    preset: DISPreset = DISPreset.MEDIUM

    # Farneback parameters
    pyr_scale: float = 0.5
    levels: int = 3
    winsize: int = 15
    iterations: int = 3
    poly_n: int = 5
    poly_sigma: float = 1.2


class OpticalFlowEstimator:
    """
    Dense optical flow between consecutive grayscale frames.

    Example:
        >>> estimator = OpticalFlowEstimator(FlowConfig(preset=DISPreset.FAST))
        >>> flow = estimator.compute(current_gray, previous_gray)
        >>> remap = flow_to_remap(flow)
        >>> warped_history = warp_by_flow(history_entry, remap)
    """

    def __init__(self, config: Optional[FlowConfig] = None):
        self.config = config or FlowConfig()
        self._dis = None

        if self.config.method == FlowMethod.DIS:
            self._dis = cv2.DISOpticalFlow_create(_DIS_PRESETS[self.config.preset])

        logger.debug("Optical flow: %s", self.config.method.value)

    def compute(self, current: np.ndarray, previous: np.ndarray) -> np.ndarray:
        """
        Compute flow mapping each pixel of ``current`` into ``previous``.

        Args:
            current: HxW uint8 grayscale frame
            previous: HxW uint8 grayscale frame

        Returns:
            HxWx2 float32 flow field (dx, dy)
        """
        if current.shape != previous.shape:
            raise GeometryMismatch(
                "Optical flow input", previous.shape, current.shape,
                hint="frame size changed between calls",
            )

        h, w = current.shape[:2]
        if h < DIS_MIN_SIZE and w < DIS_MIN_SIZE:
            # Too small to estimate motion, treat as static
            logger.debug("Frame %dx%d too small for optical flow, using zero flow", w, h)
            return np.zeros((h, w, 2), dtype=np.float32)

        try:
            if self._dis is not None:
                flow = self._dis.calc(current, previous, None)
            else:
                cfg = self.config
                flow = cv2.calcOpticalFlowFarneback(
                    current, previous,
                    None,
                    pyr_scale=cfg.pyr_scale,
                    levels=cfg.levels,
                    winsize=cfg.winsize,
                    iterations=cfg.iterations,
                    poly_n=cfg.poly_n,
                    poly_sigma=cfg.poly_sigma,
                    flags=0,
                )
        except cv2.error as e:
            raise InferenceError("OpticalFlow", f"flow estimation failed: {e}") from e

        return flow.astype(np.float32, copy=False)


def flow_to_remap(flow: np.ndarray) -> np.ndarray:
    """Convert a flow field into absolute source coordinates (x + dx, y + dy)."""
    h, w = flow.shape[:2]

    # Create coordinate grid
    x, y = np.meshgrid(np.arange(w, dtype=np.float32), np.arange(h, dtype=np.float32))

    remap = np.empty((h, w, 2), dtype=np.float32)
    remap[..., 0] = x + flow[..., 0]
    remap[..., 1] = y + flow[..., 1]

    return remap


def warp_by_flow(
    array: np.ndarray,
    remap: np.ndarray,
    interpolation: WarpInterpolation = WarpInterpolation.NEAREST,
    fill_value: float = 0,
) -> np.ndarray:
    """
    Resample an array aligned to the previous frame into the current one.

    Args:
        array: HxW (or HxWxC) array in the previous frame's geometry
        remap: HxWx2 absolute source coordinates from :func:`flow_to_remap`
        interpolation: Resampling mode
        fill_value: Value for coordinates falling outside the array

    Returns:
        Warped array with the same dtype as ``array``
    """
    if array.shape[:2] != remap.shape[:2]:
        raise GeometryMismatch("Warped buffer", remap.shape[:2], array.shape[:2])

    return cv2.remap(
        array,
        np.ascontiguousarray(remap[..., 0]),
        np.ascontiguousarray(remap[..., 1]),
        interpolation=_WARP_INTERPOLATION[interpolation],
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=fill_value,
    )
