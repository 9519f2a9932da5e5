"""Shared fixtures: stand-in models and a motionless flow estimator."""

from typing import Callable, List, Optional

import numpy as np
import pytest

from video_bg_eraser.core.config import EraserConfig
from video_bg_eraser.core.errors import InferenceError
from video_bg_eraser.models.base import MattingModel, SegmentationModel
from video_bg_eraser.pipeline.eraser import VideoBackgroundEraser


class FakeSegmenter(SegmentationModel):
    """Returns a class map produced by ``class_map_fn(frame)``."""

    name = "FakeSegmenter"

    def __init__(self, class_map_fn: Optional[Callable[[np.ndarray], np.ndarray]] = None):
        super().__init__()
        self.class_map_fn = class_map_fn or (lambda frame: np.zeros(frame.shape[:2], np.int64))
        self.calls = 0

    def load(self) -> None:
        self._is_loaded = True

    def unload(self) -> None:
        self._is_loaded = False

    def segment(self, frame: np.ndarray) -> np.ndarray:
        self.calls += 1
        return self.class_map_fn(frame)


class FakeMatter(MattingModel):
    """Predicts a constant alpha, or fails when ``fail`` is set."""

    name = "FakeMatter"

    def __init__(self, value: float = 0.5):
        super().__init__()
        self.value = value
        self.fail = False
        self.input_shapes: List[tuple] = []

    def load(self) -> None:
        self._is_loaded = True

    def unload(self) -> None:
        self._is_loaded = False

    def matte(self, image_rgba: np.ndarray) -> np.ndarray:
        self.input_shapes.append(image_rgba.shape)
        if self.fail:
            raise InferenceError(self.name, "simulated failure")
        return np.full(image_rgba.shape[:2], self.value, dtype=np.float32)


class ZeroFlow:
    """Flow estimator for a camera and scene that never move."""

    def __init__(self):
        self.calls = 0

    def compute(self, current: np.ndarray, previous: np.ndarray) -> np.ndarray:
        self.calls += 1
        return np.zeros(current.shape + (2,), dtype=np.float32)


class ShiftFlow:
    """Flow estimator reporting a uniform translation (dx, dy) to the previous frame."""

    def __init__(self, dx: float, dy: float = 0.0):
        self.dx = dx
        self.dy = dy

    def compute(self, current: np.ndarray, previous: np.ndarray) -> np.ndarray:
        flow = np.empty(current.shape + (2,), dtype=np.float32)
        flow[..., 0] = self.dx
        flow[..., 1] = self.dy
        return flow


def square_class_map(shape, top=16, left=16, size=32, class_id=15):
    """Class map with one foreground square (15 = person in Pascal VOC)."""
    class_map = np.zeros(shape, dtype=np.int64)
    class_map[top:top + size, left:left + size] = class_id
    return class_map


@pytest.fixture
def frame():
    rng = np.random.default_rng(0)
    return rng.integers(0, 256, size=(64, 64, 3), dtype=np.uint8)


@pytest.fixture
def zero_flow():
    return ZeroFlow()


@pytest.fixture
def matter():
    return FakeMatter()


@pytest.fixture
def make_eraser(zero_flow, matter):
    """Build an eraser with fake collaborators."""

    def _make(config: Optional[EraserConfig] = None, class_map_fn=None) -> VideoBackgroundEraser:
        eraser = VideoBackgroundEraser(
            config or EraserConfig(),
            segmentation_model=FakeSegmenter(class_map_fn),
            matting_model=matter,
            flow_estimator=zero_flow,
        )
        eraser.load_models()
        return eraser

    return _make
