"""EraserConfig validation and JSON persistence."""

import json
from pathlib import Path

import pytest

from video_bg_eraser.core.config import EraserConfig
from video_bg_eraser.core.errors import EmptyClassIdSet
from video_bg_eraser.models.base import DeviceType
from video_bg_eraser.temporal.flow import DISPreset, FlowMethod
from video_bg_eraser.temporal.tracker import TemporalWindow


class TestDefaults:
    def test_default_values(self):
        config = EraserConfig()

        assert config.background_class_ids == [0]
        assert config.enable_temporal_management is True
        assert config.temporal_windows == [TemporalWindow(threshold=2, window_size=3)]
        assert config.matting_scale == 1.0
        assert config.morphology.kernel_size == 3
        assert config.morphology.dilate_iterations == 1
        assert config.morphology.erode_iterations == 15

    def test_defaults_are_valid(self):
        EraserConfig().validate()


class TestValidation:
    def test_empty_class_ids(self):
        with pytest.raises(EmptyClassIdSet):
            EraserConfig(background_class_ids=[]).validate()

    @pytest.mark.parametrize("scale", [0.0, -1.0, 1.01])
    def test_matting_scale_range(self, scale):
        with pytest.raises(ValueError):
            EraserConfig(matting_scale=scale).validate()

    def test_empty_windows(self):
        with pytest.raises(ValueError):
            EraserConfig(temporal_windows=[]).validate()

    def test_status_expiry_range(self):
        with pytest.raises(ValueError):
            EraserConfig(status_expiry=255).validate()


class TestFromDict:
    def test_legacy_scale_key(self):
        config = EraserConfig.from_dict({"imageMatting_scale": 0.5})

        assert config.matting_scale == 0.5

    def test_windows_as_pairs(self):
        config = EraserConfig.from_dict({"temporal_windows": [[2, 3], [1, 2]]})

        assert config.temporal_windows == [TemporalWindow(2, 3), TemporalWindow(1, 2)]

    def test_nested_sections(self):
        config = EraserConfig.from_dict({
            "flow": {"method": "farneback", "preset": "fast"},
            "morphology": {"erode_iterations": 5},
            "segmentation": {"model_path": "seg.pt", "device": "cpu", "window_size": 256},
            "matting": {"model_path": "dim.pt", "device": "cpu", "use_fp16": True},
        })

        assert config.flow.method == FlowMethod.FARNEBACK
        assert config.flow.preset == DISPreset.FAST
        assert config.morphology.erode_iterations == 5
        assert config.segmentation.model_path == Path("seg.pt")
        assert config.segmentation.device == DeviceType.CPU
        assert config.segmentation.window_size == 256
        assert config.matting.use_fp16 is True

    def test_invalid_values_rejected(self):
        with pytest.raises(EmptyClassIdSet):
            EraserConfig.from_dict({"background_class_ids": []})


class TestPersistence:
    def test_save_and_load(self, tmp_path):
        config = EraserConfig(
            background_class_ids=[0, 9],
            matting_scale=0.5,
            temporal_windows=[TemporalWindow(2, 3), TemporalWindow(0, 2)],
        )
        config.matting.model_path = Path("models/dim.pt")
        path = tmp_path / "eraser.json"

        config.save(path)
        loaded = EraserConfig.load(path)

        assert loaded.background_class_ids == [0, 9]
        assert loaded.matting_scale == 0.5
        assert loaded.temporal_windows == config.temporal_windows
        assert loaded.matting.model_path == Path("models/dim.pt")
        assert loaded.segmentation.model_path is None

    def test_saved_file_is_plain_json(self, tmp_path):
        path = tmp_path / "eraser.json"

        EraserConfig().save(path)
        data = json.loads(path.read_text())

        assert data["flow"]["method"] == "dis"
        assert data["segmentation"]["device"] == "cuda"
        assert data["temporal_windows"] == [{"threshold": 2, "window_size": 3}]
