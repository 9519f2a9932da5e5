"""
Temporal Mask Tracking
======================

- Dense optical flow and state warping
- Windowed vote confirmation with hysteresis
"""

from video_bg_eraser.temporal.flow import (
    DISPreset,
    FlowConfig,
    FlowMethod,
    OpticalFlowEstimator,
    WarpInterpolation,
    flow_to_remap,
    warp_by_flow,
)
from video_bg_eraser.temporal.tracker import (
    TemporalTracker,
    TemporalWindow,
    TrackerState,
    TrackerUpdate,
    confirm_detections,
    history_capacity,
    track_step,
    update_status,
)

__all__ = [
    # Flow
    "DISPreset",
    "FlowConfig",
    "FlowMethod",
    "OpticalFlowEstimator",
    "WarpInterpolation",
    "flow_to_remap",
    "warp_by_flow",
    # Tracker
    "TemporalTracker",
    "TemporalWindow",
    "TrackerState",
    "TrackerUpdate",
    "confirm_detections",
    "history_capacity",
    "track_step",
    "update_status",
]
