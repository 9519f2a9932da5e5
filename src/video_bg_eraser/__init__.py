"""
Video Background Eraser
=======================

Frame-by-frame background removal for video streams:
- DeepLabV3 semantic segmentation for a per-frame background mask
- Temporal mask tracking with optical-flow motion compensation,
  windowed vote confirmation and per-pixel hysteresis against flicker
- Automatic trimap generation with multi-resolution morphology
- Deep Image Matting for soft, hair-accurate edges
- RGBA compositing back to the input bit depth
"""

__version__ = "1.0.0"

from video_bg_eraser.core.errors import (
    EraserError,
    UnsupportedDepth,
    EmptyClassIdSet,
    InferenceError,
    GeometryMismatch,
)
from video_bg_eraser.core.config import EraserConfig

# Pipeline
from video_bg_eraser.pipeline.eraser import VideoBackgroundEraser, FrameResult
from video_bg_eraser.pipeline.video import VideoPipeline, VideoConfig

# Components
from video_bg_eraser.segmentation.classifier import BackgroundClassifier
from video_bg_eraser.temporal.tracker import TemporalTracker, TemporalWindow, track_step
from video_bg_eraser.temporal.flow import OpticalFlowEstimator, FlowConfig
from video_bg_eraser.matting.trimap import TrimapGenerator, MorphologyConfig, TrimapValue
from video_bg_eraser.compositing.compositor import Compositor, clamp_alpha
from video_bg_eraser.utils.image import FrameDepth, normalize_frame, denormalize_frame

# Models
from video_bg_eraser.models.deeplabv3 import DeepLabV3Segmentor, SegmentationConfig
from video_bg_eraser.models.deep_image_matting import DeepImageMatting, MattingConfig

__all__ = [
    # Errors
    "EraserError",
    "UnsupportedDepth",
    "EmptyClassIdSet",
    "InferenceError",
    "GeometryMismatch",
    # Pipeline
    "EraserConfig",
    "VideoBackgroundEraser",
    "FrameResult",
    "VideoPipeline",
    "VideoConfig",
    # Components
    "BackgroundClassifier",
    "TemporalTracker",
    "TemporalWindow",
    "track_step",
    "OpticalFlowEstimator",
    "FlowConfig",
    "TrimapGenerator",
    "MorphologyConfig",
    "TrimapValue",
    "Compositor",
    "clamp_alpha",
    "FrameDepth",
    "normalize_frame",
    "denormalize_frame",
    # Models
    "DeepLabV3Segmentor",
    "SegmentationConfig",
    "DeepImageMatting",
    "MattingConfig",
    # Meta
    "__version__",
]
