"""
Trimap Generation
=================

Trimaps have three regions:
- Background (0): Definitely background
- Unknown (128): Uncertain band resolved by the matting model
- Foreground (255): Definitely foreground

The foreground core is obtained with many erosions and the background with
a single dilation, so the unknown band sits mostly inside the detected
silhouette where hair and motion blur live.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple

import cv2
import numpy as np

from video_bg_eraser.utils.image import scaled_size


class TrimapValue(IntEnum):
    """Admissible trimap values."""
    BACKGROUND = 0
    UNKNOWN = 128
    FOREGROUND = 255


@dataclass
class MorphologyConfig:
    """Morphology parameters for trimap generation."""
    kernel_size: int = 3             # Side of the elliptical element
    dilate_iterations: int = 1
    erode_iterations: int = 15

    def __post_init__(self):
        if self.kernel_size < 1:
            raise ValueError(f"kernel_size must be >= 1, got {self.kernel_size}")
        if self.dilate_iterations < 0 or self.erode_iterations < 0:
            raise ValueError("Morphology iterations must be >= 0")


class TrimapGenerator:
    """
    Automatic trimap generation from foreground masks.

    Example:
        >>> generator = TrimapGenerator(MorphologyConfig(erode_iterations=10))
        >>> trimap = generator.generate_scaled(foreground_mask, scale=0.5)
    """

    def __init__(self, config: MorphologyConfig = None):
        self.config = config or MorphologyConfig()
        self.kernel = cv2.getStructuringElement(
            cv2.MORPH_ELLIPSE,
            (self.config.kernel_size, self.config.kernel_size),
        )

    def generate(self, foreground_mask: np.ndarray) -> np.ndarray:
        """
        Generate a trimap from a binary foreground mask.

        Args:
            foreground_mask: HxW boolean (or 0/nonzero) mask

        Returns:
            HxW uint8 trimap with values 0, 128, 255
        """
        mask = np.where(foreground_mask, 255, 0).astype(np.uint8)

        dilated = cv2.dilate(mask, self.kernel, iterations=self.config.dilate_iterations)
        eroded = cv2.erode(mask, self.kernel, iterations=self.config.erode_iterations)

        trimap = np.full(mask.shape, TrimapValue.UNKNOWN, dtype=np.uint8)
        trimap[eroded == 255] = TrimapValue.FOREGROUND
        trimap[dilated == 0] = TrimapValue.BACKGROUND

        return trimap

    def generate_scaled(self, foreground_mask: np.ndarray, scale: float = 1.0) -> np.ndarray:
        """
        Generate the trimap at a reduced resolution and bring it back.

        Both resizes use nearest-neighbour interpolation so the result only
        contains admissible trimap values.
        """
        if not 0.0 < scale <= 1.0:
            raise ValueError(f"scale must be in (0, 1], got {scale}")

        if scale == 1.0:
            return self.generate(foreground_mask)

        h, w = foreground_mask.shape[:2]
        small_size = scaled_size(w, h, scale)

        mask = np.where(foreground_mask, 255, 0).astype(np.uint8)
        mask_small = cv2.resize(mask, small_size, interpolation=cv2.INTER_NEAREST)

        trimap_small = self.generate(mask_small == 255)

        return cv2.resize(trimap_small, (w, h), interpolation=cv2.INTER_NEAREST)


def split_trimap(trimap: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return boolean (definite background, unknown, definite foreground) masks."""
    is_bg = trimap == TrimapValue.BACKGROUND
    is_fg = trimap == TrimapValue.FOREGROUND
    is_unknown = ~(is_bg | is_fg)
    return is_bg, is_unknown, is_fg
