"""
Video Background Eraser - Per-Frame Pipeline
============================================

Coordinates the segmentation model, the temporal tracker, trimap
generation, the matting model and the final composite for one video
stream.

Per frame:
    normalize -> segment -> classify -> track -> trimap (scaled)
    -> matte (scaled) -> clamp + compose -> denormalize
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np

from video_bg_eraser.compositing.compositor import (
    Compositor,
    CompositorConfig,
    build_matting_input,
    clamp_alpha,
)
from video_bg_eraser.core.config import EraserConfig
from video_bg_eraser.core.errors import EraserError, GeometryMismatch
from video_bg_eraser.matting.trimap import TrimapGenerator
from video_bg_eraser.models.base import MattingModel, SegmentationModel
from video_bg_eraser.models.deep_image_matting import DeepImageMatting
from video_bg_eraser.models.deeplabv3 import DeepLabV3Segmentor
from video_bg_eraser.segmentation.classifier import BackgroundClassifier
from video_bg_eraser.temporal.flow import OpticalFlowEstimator
from video_bg_eraser.temporal.tracker import TemporalTracker
from video_bg_eraser.utils.image import normalize_frame, resize_image, scaled_size

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    """Result of erasing the background of one frame."""
    composite: np.ndarray                # HxWx4 RGBA, input depth
    background_mask: np.ndarray          # Raw per-frame classification
    foreground_mask: np.ndarray          # Debounced mask used for the trimap
    trimap: np.ndarray
    alpha: np.ndarray                    # Clamped alpha in [0, 1]
    frame_index: int = 0
    processing_time_ms: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)


class VideoBackgroundEraser:
    """
    Background removal for a single video stream.

    One instance owns the temporal state of one stream, so frames must be
    fed in order. Use one instance per stream to process several streams.

    If a frame fails (bad depth, inference error, size change) the error is
    raised and the temporal state stays at the last successful frame.

    Example:
        >>> config = EraserConfig(matting_scale=0.5)
        >>> config.segmentation.model_path = Path("deeplabv3.pt")
        >>> config.matting.model_path = Path("dim.pt")
        >>>
        >>> with VideoBackgroundEraser(config) as eraser:
        ...     for frame in frames:
        ...         rgba = eraser.run(frame)
    """

    def __init__(
        self,
        config: Optional[EraserConfig] = None,
        segmentation_model: Optional[SegmentationModel] = None,
        matting_model: Optional[MattingModel] = None,
        flow_estimator: Optional[OpticalFlowEstimator] = None,
    ):
        self.config = config or EraserConfig()
        self.config.validate()

        self.classifier = BackgroundClassifier(self.config.background_class_ids)
        self.segmentation = segmentation_model or DeepLabV3Segmentor(self.config.segmentation)
        self.matting = matting_model or DeepImageMatting(self.config.matting)

        self.tracker = TemporalTracker(
            windows=self.config.temporal_windows,
            status_expiry=self.config.status_expiry,
            flow_estimator=flow_estimator or OpticalFlowEstimator(self.config.flow),
        )
        self.trimap_generator = TrimapGenerator(self.config.morphology)
        self.compositor = Compositor(CompositorConfig(premultiply=self.config.premultiply))

        self._frame_index = 0

    @property
    def frame_index(self) -> int:
        """Number of frames successfully processed since the last reset."""
        return self._frame_index

    def load_models(self) -> None:
        self.segmentation.load()
        self.matting.load()

    def unload_models(self) -> None:
        self.segmentation.unload()
        self.matting.unload()

    def run(self, frame: np.ndarray) -> np.ndarray:
        """Erase the background of a frame; returns RGBA in the input depth."""
        return self.process(frame).composite

    def process(self, frame: np.ndarray) -> FrameResult:
        """
        Erase the background of the next frame of the stream.

        Args:
            frame: HxWx3 RGB frame, uint8, uint16 or float32

        Returns:
            FrameResult with the RGBA composite and intermediate products
        """
        start_time = time.time()

        try:
            result = self._process(frame)
        except EraserError as e:
            logger.warning("Frame %d aborted: %s", self._frame_index, e)
            raise

        result.processing_time_ms = (time.time() - start_time) * 1000
        self._frame_index += 1

        logger.debug(
            "Frame %d processed in %.1fms", result.frame_index, result.processing_time_ms
        )
        return result

    def _process(self, frame: np.ndarray) -> FrameResult:
        image, depth = normalize_frame(frame)

        class_map = self.segmentation.segment(image)
        if class_map.shape != image.shape[:2]:
            raise GeometryMismatch("Class map", image.shape[:2], class_map.shape)

        background = self.classifier.background_mask(class_map)

        update = None
        if self.config.enable_temporal_management:
            update = self.tracker.step(image, background)
            foreground = update.foreground_mask
        else:
            foreground = ~background

        trimap = self.trimap_generator.generate_scaled(foreground, self.config.matting_scale)
        alpha = clamp_alpha(self._predict_alpha(image, trimap), trimap)

        composite = self.compositor.compose(image, alpha, trimap, depth)

        # Only a fully processed frame may advance the temporal state
        if update is not None:
            self.tracker.commit(update)

        return FrameResult(
            composite=composite,
            background_mask=background,
            foreground_mask=foreground,
            trimap=trimap,
            alpha=alpha,
            frame_index=self._frame_index,
            metadata={
                "depth": depth.value,
                "temporal": self.config.enable_temporal_management,
                "matting_scale": self.config.matting_scale,
            },
        )

    def _predict_alpha(self, image: np.ndarray, trimap: np.ndarray) -> np.ndarray:
        """Run matting at ``matting_scale`` and bring alpha back to full size."""
        rgba = build_matting_input(image, trimap)
        scale = self.config.matting_scale
        h, w = trimap.shape

        if scale < 1.0:
            rgba = resize_image(rgba, scaled_size(w, h, scale), method="area")

        alpha = self.matting.matte(rgba)

        if scale < 1.0:
            alpha = resize_image(alpha.astype(np.float32), (w, h), method="cubic")

        if alpha.shape != trimap.shape:
            raise GeometryMismatch("Alpha", trimap.shape, alpha.shape)

        return np.clip(alpha, 0.0, 1.0)

    def reset(self) -> None:
        """Start a new stream (e.g. after a scene cut or a failed frame)."""
        self.tracker.reset()
        self._frame_index = 0

    def __enter__(self):
        self.load_models()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.unload_models()
        return False
