"""
DeepLabV3 Semantic Segmentation
===============================

Runs a TorchScript-exported DeepLabV3 network and returns the per-pixel
argmax class ids. Large frames can be processed as overlapping windows,
each window contributing only its central part to the stitched map.

Reference: "Rethinking Atrous Convolution for Semantic Image Segmentation"
https://arxiv.org/abs/1706.05587
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
import torch

from video_bg_eraser.core.errors import InferenceError
from video_bg_eraser.models.base import ModelConfig, SegmentationModel

logger = logging.getLogger(__name__)

IMAGENET_MEAN = (0.485, 0.456, 0.406)
IMAGENET_STD = (0.229, 0.224, 0.225)


@dataclass
class SegmentationConfig(ModelConfig):
    """DeepLabV3 configuration."""
    # Sliding window (None = whole frame at once)
    window_size: Optional[int] = None
    window_overlap: int = 32

    # Input normalization
    mean: Tuple[float, float, float] = IMAGENET_MEAN
    std: Tuple[float, float, float] = IMAGENET_STD

    def __post_init__(self):
        if self.window_size is not None:
            if self.window_size < 1:
                raise ValueError(f"window_size must be >= 1, got {self.window_size}")
            if not 0 <= self.window_overlap < self.window_size:
                raise ValueError("window_overlap must be in [0, window_size)")


@dataclass(frozen=True)
class Window:
    """A tile of the frame and the part of it kept in the stitched result."""
    y0: int
    y1: int
    x0: int
    x1: int
    keep_y0: int
    keep_y1: int
    keep_x0: int
    keep_x1: int


def _axis_windows(length: int, size: int, overlap: int) -> List[Tuple[int, int, int, int]]:
    """(start, end, keep_start, keep_end) along one axis."""
    if length <= size:
        return [(0, length, 0, length)]

    step = size - overlap
    starts = list(range(0, length - size + 1, step))
    if starts[-1] + size < length:
        starts.append(length - size)

    # Neighbouring windows split their overlap at its midpoint
    bounds = [0]
    for prev, nxt in zip(starts, starts[1:]):
        bounds.append((nxt + prev + size) // 2)
    bounds.append(length)

    return [(s, s + size, bounds[i], bounds[i + 1]) for i, s in enumerate(starts)]


def create_windows(height: int, width: int, size: int, overlap: int) -> List[Window]:
    """Tile a frame into overlapping windows covering every pixel exactly once."""
    windows = []
    for y0, y1, ky0, ky1 in _axis_windows(height, size, overlap):
        for x0, x1, kx0, kx1 in _axis_windows(width, size, overlap):
            windows.append(Window(y0, y1, x0, x1, ky0, ky1, kx0, kx1))
    return windows


class DeepLabV3Segmentor(SegmentationModel):
    """
    TorchScript DeepLabV3 segmentor.

    Example:
        >>> segmentor = DeepLabV3Segmentor(SegmentationConfig(
        ...     model_path=Path("deeplabv3_resnet101.pt"),
        ...     window_size=513,
        ... ))
        >>> segmentor.load()
        >>> class_map = segmentor.segment(frame)
    """

    name = "DeepLabV3"

    def __init__(self, config: Optional[SegmentationConfig] = None):
        super().__init__(config or SegmentationConfig())
        self._mean = torch.tensor(self.config.mean, dtype=torch.float32).view(1, 3, 1, 1)
        self._std = torch.tensor(self.config.std, dtype=torch.float32).view(1, 3, 1, 1)

    def segment(self, frame: np.ndarray) -> np.ndarray:
        self._require_loaded()

        if frame.ndim != 3 or frame.shape[2] != 3:
            raise InferenceError(self.name, f"expected HxWx3 frame, got shape {frame.shape}")

        h, w = frame.shape[:2]
        size = self.config.window_size

        try:
            if size is None:
                return self._run_window(frame)

            class_map = np.zeros((h, w), dtype=np.int64)
            windows = create_windows(h, w, size, self.config.window_overlap)
            logger.debug("Segmenting %dx%d frame in %d windows", w, h, len(windows))
            for win in windows:
                tile = frame[win.y0:win.y1, win.x0:win.x1]
                labels = self._run_window(tile)
                class_map[win.keep_y0:win.keep_y1, win.keep_x0:win.keep_x1] = labels[
                    win.keep_y0 - win.y0:win.keep_y1 - win.y0,
                    win.keep_x0 - win.x0:win.keep_x1 - win.x0,
                ]
            return class_map

        except (RuntimeError, KeyError) as e:
            raise InferenceError(self.name, f"inference failed: {e!r}") from e

    @torch.inference_mode()
    def _run_window(self, image: np.ndarray) -> np.ndarray:
        """Segment one tile, returning HxW class ids."""
        tensor = torch.from_numpy(np.ascontiguousarray(image, dtype=np.float32))
        tensor = tensor.permute(2, 0, 1).unsqueeze(0)
        tensor = ((tensor - self._mean) / self._std).to(self.device)

        output = self.model(tensor)

        # torchvision exports return {"out": ..., "aux": ...}
        if isinstance(output, dict):
            output = output["out"]
        elif isinstance(output, (tuple, list)):
            output = output[0]

        labels = output.argmax(dim=1).squeeze(0).cpu().numpy()

        if labels.shape != image.shape[:2]:
            raise InferenceError(
                self.name,
                f"output size {labels.shape} does not match input size {image.shape[:2]}",
            )

        return labels.astype(np.int64)
