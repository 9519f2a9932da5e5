"""Processing pipelines for Video Background Eraser."""

from video_bg_eraser.pipeline.eraser import FrameResult, VideoBackgroundEraser
from video_bg_eraser.pipeline.video import VideoConfig, VideoPipeline

__all__ = ["FrameResult", "VideoBackgroundEraser", "VideoConfig", "VideoPipeline"]
