"""
Deep Image Matting
==================

Predicts alpha from an RGB image stacked with its trimap, using a
TorchScript-exported network with a 4-channel NCHW input.

Reference: "Deep Image Matting"
https://arxiv.org/abs/1703.03872
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import torch

from video_bg_eraser.core.errors import InferenceError
from video_bg_eraser.models.base import MattingModel, ModelConfig

logger = logging.getLogger(__name__)


@dataclass
class MattingConfig(ModelConfig):
    """Deep Image Matting configuration."""
    use_fp16: bool = False


class DeepImageMatting(MattingModel):
    """
    TorchScript Deep Image Matting.

    Example:
        >>> matting = DeepImageMatting(MattingConfig(model_path=Path("dim.pt")))
        >>> matting.load()
        >>> alpha = matting.matte(build_matting_input(frame, trimap))
    """

    name = "DeepImageMatting"

    def __init__(self, config: Optional[MattingConfig] = None):
        super().__init__(config or MattingConfig())
        if self.config.use_fp16 and self.device.type != "cuda":
            logger.warning("FP16 matting requires CUDA, running in FP32")

    def load(self) -> None:
        super().load()
        if self.config.use_fp16 and self.device.type == "cuda":
            self.model.half()

    def matte(self, image_rgba: np.ndarray) -> np.ndarray:
        self._require_loaded()

        if image_rgba.ndim != 3 or image_rgba.shape[2] != 4:
            raise InferenceError(self.name, f"expected HxWx4 input, got shape {image_rgba.shape}")

        try:
            alpha = self._run(image_rgba)
        except RuntimeError as e:
            raise InferenceError(self.name, f"inference failed: {e}") from e

        if alpha.shape != image_rgba.shape[:2]:
            raise InferenceError(
                self.name,
                f"output size {alpha.shape} does not match input size {image_rgba.shape[:2]}",
            )

        return np.clip(alpha, 0.0, 1.0).astype(np.float32)

    @torch.inference_mode()
    def _run(self, image_rgba: np.ndarray) -> np.ndarray:
        # NHWC -> NCHW
        tensor = torch.from_numpy(np.ascontiguousarray(image_rgba, dtype=np.float32))
        tensor = tensor.permute(2, 0, 1).unsqueeze(0).to(self.device)

        if self.config.use_fp16 and self.device.type == "cuda":
            tensor = tensor.half()

        output = self.model(tensor)
        if isinstance(output, (tuple, list)):
            output = output[0]

        # First channel holds the alpha prediction
        if output.dim() == 4:
            output = output[0, 0]
        elif output.dim() == 3:
            output = output[0]

        return output.float().cpu().numpy()
