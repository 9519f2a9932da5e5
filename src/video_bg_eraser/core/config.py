"""
Eraser Configuration
====================

All recognized options of the eraser pipeline, with JSON persistence.

Example JSON:

    {
      "background_class_ids": [0],
      "enable_temporal_management": true,
      "matting_scale": 0.5,
      "temporal_windows": [{"threshold": 2, "window_size": 3}],
      "morphology": {"kernel_size": 3, "dilate_iterations": 1, "erode_iterations": 15},
      "segmentation": {"model_path": "deeplabv3.pt", "device": "cuda"},
      "matting": {"model_path": "dim.pt", "device": "cuda"}
    }
"""

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Union

from video_bg_eraser.core.errors import EmptyClassIdSet
from video_bg_eraser.matting.trimap import MorphologyConfig
from video_bg_eraser.models.base import DeviceType
from video_bg_eraser.models.deep_image_matting import MattingConfig
from video_bg_eraser.models.deeplabv3 import SegmentationConfig
from video_bg_eraser.temporal.flow import DISPreset, FlowConfig, FlowMethod
from video_bg_eraser.temporal.tracker import DEFAULT_STATUS_EXPIRY, TemporalWindow


@dataclass
class EraserConfig:
    """Configuration for the video background eraser."""
    # Segmentation classes counted as background (0 = Pascal VOC background)
    background_class_ids: List[int] = field(default_factory=lambda: [0])

    # Temporal tracking
    enable_temporal_management: bool = True
    temporal_windows: List[TemporalWindow] = field(
        default_factory=lambda: [TemporalWindow(threshold=2, window_size=3)]
    )
    status_expiry: int = DEFAULT_STATUS_EXPIRY
    flow: FlowConfig = field(default_factory=FlowConfig)

    # Trimap / matting
    matting_scale: float = 1.0
    morphology: MorphologyConfig = field(default_factory=MorphologyConfig)

    # Output
    premultiply: bool = False

    # Models
    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    matting: MattingConfig = field(default_factory=MattingConfig)

    def validate(self) -> None:
        """Raise on invalid option values."""
        if not self.background_class_ids:
            raise EmptyClassIdSet()
        if not 0.0 < self.matting_scale <= 1.0:
            raise ValueError(f"matting_scale must be in (0, 1], got {self.matting_scale}")
        if not self.temporal_windows:
            raise ValueError("temporal_windows must contain at least one window")
        if not 1 <= self.status_expiry <= 254:
            raise ValueError(f"status_expiry must be in [1, 254], got {self.status_expiry}")

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EraserConfig":
        data = dict(data)
        config = cls()

        if "imageMatting_scale" in data:
            data.setdefault("matting_scale", data.pop("imageMatting_scale"))

        if "background_class_ids" in data:
            config.background_class_ids = [int(i) for i in data["background_class_ids"]]
        if "enable_temporal_management" in data:
            config.enable_temporal_management = bool(data["enable_temporal_management"])
        if "temporal_windows" in data:
            config.temporal_windows = [_window_from(item) for item in data["temporal_windows"]]
        if "status_expiry" in data:
            config.status_expiry = int(data["status_expiry"])
        if "matting_scale" in data:
            config.matting_scale = float(data["matting_scale"])
        if "premultiply" in data:
            config.premultiply = bool(data["premultiply"])

        if "flow" in data:
            flow = dict(data["flow"])
            if "method" in flow:
                flow["method"] = FlowMethod(flow["method"])
            if "preset" in flow:
                flow["preset"] = DISPreset(flow["preset"])
            config.flow = FlowConfig(**flow)
        if "morphology" in data:
            config.morphology = MorphologyConfig(**data["morphology"])
        if "segmentation" in data:
            seg = _model_fields(data["segmentation"])
            for key in ("mean", "std"):
                if key in seg:
                    seg[key] = tuple(seg[key])
            config.segmentation = SegmentationConfig(**seg)
        if "matting" in data:
            config.matting = MattingConfig(**_model_fields(data["matting"]))

        config.validate()
        return config

    def save(self, path: Union[str, Path]) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "EraserConfig":
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)


def _window_from(item: Any) -> TemporalWindow:
    """Accept {"threshold": p, "window_size": q} or a [p, q] pair."""
    if isinstance(item, dict):
        return TemporalWindow(**item)
    threshold, window_size = item
    return TemporalWindow(threshold=int(threshold), window_size=int(window_size))


def _model_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    fields = dict(data)
    if fields.get("model_path") is not None:
        fields["model_path"] = Path(fields["model_path"])
    if "device" in fields:
        fields["device"] = DeviceType(fields["device"])
    return fields


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value
