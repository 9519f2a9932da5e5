"""Utility functions for Video Background Eraser."""

from video_bg_eraser.utils.image import (
    FrameDepth,
    normalize_frame,
    denormalize_frame,
    to_gray_uint8,
    load_image,
    save_image,
    resize_image,
)

__all__ = [
    "FrameDepth",
    "normalize_frame",
    "denormalize_frame",
    "to_gray_uint8",
    "load_image",
    "save_image",
    "resize_image",
]
