"""
Neural Models for Video Background Eraser
=========================================

- DeepLabV3: semantic segmentation into class ids
- Deep Image Matting: alpha prediction from RGB + trimap
"""

from video_bg_eraser.models.base import (
    BaseModel,
    DeviceType,
    MattingModel,
    ModelConfig,
    SegmentationModel,
)
from video_bg_eraser.models.deeplabv3 import DeepLabV3Segmentor, SegmentationConfig
from video_bg_eraser.models.deep_image_matting import DeepImageMatting, MattingConfig

__all__ = [
    # Base
    "BaseModel",
    "DeviceType",
    "MattingModel",
    "ModelConfig",
    "SegmentationModel",
    # DeepLabV3
    "DeepLabV3Segmentor",
    "SegmentationConfig",
    # Deep Image Matting
    "DeepImageMatting",
    "MattingConfig",
]
