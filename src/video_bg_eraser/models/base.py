"""
Base Model Interface for Video Background Eraser
================================================

Abstract collaborators consumed by the eraser pipeline:
- SegmentationModel: frame -> per-pixel class ids
- MattingModel: RGB + trimap -> per-pixel alpha

Both fail with InferenceError when the model is not ready or inference
breaks. Concrete models load TorchScript modules.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import numpy as np
import torch

from video_bg_eraser.core.errors import InferenceError

logger = logging.getLogger(__name__)


class DeviceType(Enum):
    """Supported compute devices."""
    CPU = "cpu"
    CUDA = "cuda"
    MPS = "mps"  # Apple Silicon


@dataclass
class ModelConfig:
    """Configuration shared by all models."""
    model_path: Optional[Path] = None
    device: DeviceType = DeviceType.CUDA


class BaseModel(ABC):
    """
    Abstract base class for the neural collaborators.

    Provides common functionality for:
    - Device management (CPU/CUDA/MPS)
    - TorchScript loading
    - Readiness checks
    """

    name = "model"

    def __init__(self, config: Optional[ModelConfig] = None):
        self.config = config or ModelConfig(device=DeviceType.CPU)
        self.model: Optional[torch.jit.ScriptModule] = None
        self.device = self._resolve_device()
        self._is_loaded = False

    def _resolve_device(self) -> torch.device:
        """Resolve the best available device."""
        if self.config.device == DeviceType.CUDA:
            if torch.cuda.is_available():
                return torch.device("cuda")
            logger.warning("CUDA not available, falling back to CPU")
            return torch.device("cpu")
        elif self.config.device == DeviceType.MPS:
            if torch.backends.mps.is_available():
                return torch.device("mps")
            logger.warning("MPS not available, falling back to CPU")
            return torch.device("cpu")
        return torch.device("cpu")

    @property
    def is_loaded(self) -> bool:
        return self._is_loaded

    def load(self) -> None:
        """Load the TorchScript module from ``config.model_path``."""
        if self._is_loaded:
            return

        path = self.config.model_path
        if path is None:
            raise InferenceError(self.name, "no model_path configured")

        logger.info("Loading %s from %s on %s", self.name, path, self.device)
        try:
            self.model = torch.jit.load(str(path), map_location=self.device)
        except (RuntimeError, ValueError, OSError) as e:
            raise InferenceError(self.name, f"failed to load {path}: {e}") from e

        self.model.eval()
        self._is_loaded = True

    def unload(self) -> None:
        """Unload model from memory."""
        self.model = None
        self._is_loaded = False

        if self.device.type == "cuda":
            torch.cuda.empty_cache()

    def _require_loaded(self) -> None:
        if not self._is_loaded:
            raise InferenceError(self.name, "model is not loaded. Call load() first.")

    def __enter__(self):
        self.load()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.unload()
        return False


class SegmentationModel(BaseModel):
    """Semantic segmentation collaborator."""

    name = "segmentation"

    @abstractmethod
    def segment(self, frame: np.ndarray) -> np.ndarray:
        """
        Args:
            frame: Normalized HxWx3 RGB frame

        Returns:
            HxW integer class-id map
        """


class MattingModel(BaseModel):
    """Alpha matting collaborator."""

    name = "matting"

    @abstractmethod
    def matte(self, image_rgba: np.ndarray) -> np.ndarray:
        """
        Args:
            image_rgba: HxWx4 float32, RGB in [0, 1] plus trimap / 255

        Returns:
            HxW float32 alpha in [0, 1]
        """

