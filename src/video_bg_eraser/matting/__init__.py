"""Trimap generation for alpha matting."""

from video_bg_eraser.matting.trimap import (
    MorphologyConfig,
    TrimapGenerator,
    TrimapValue,
    split_trimap,
)

__all__ = ["MorphologyConfig", "TrimapGenerator", "TrimapValue", "split_trimap"]
