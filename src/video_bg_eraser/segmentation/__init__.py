"""Background/foreground classification of segmentation output."""

from video_bg_eraser.segmentation.classifier import BackgroundClassifier

__all__ = ["BackgroundClassifier"]
