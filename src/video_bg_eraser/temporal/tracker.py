"""
Temporal Consistency Tracker
============================

Debounces the per-frame foreground detection of a video stream.

Each frame:
1. Accumulated state (detection history, status map) is warped into the
   current frame's geometry with dense optical flow.
2. The new detection is pushed onto a bounded history.
3. A windowed vote confirms pixels detected often enough recently.
4. A per-pixel hysteresis counter keeps confirmed pixels alive for a short
   grace period after their detections stop.

The step itself is the pure function :func:`track_step`. A
:class:`TemporalTracker` owns the state of one stream and applies steps in
order.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from video_bg_eraser.core.errors import GeometryMismatch
from video_bg_eraser.temporal.flow import (
    OpticalFlowEstimator,
    WarpInterpolation,
    flow_to_remap,
    warp_by_flow,
)
from video_bg_eraser.utils.image import to_gray_uint8

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemporalWindow:
    """
    One vote group: a pixel is confirmed when it was detected strictly more
    than ``threshold`` times in ``window_size`` consecutive history entries.
    """
    threshold: int = 2
    window_size: int = 3

    def __post_init__(self):
        if self.window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {self.window_size}")
        if self.threshold < 0:
            raise ValueError(f"threshold must be >= 0, got {self.threshold}")


DEFAULT_WINDOWS: Tuple[TemporalWindow, ...] = (TemporalWindow(threshold=2, window_size=3),)
DEFAULT_STATUS_EXPIRY = 2


@dataclass(frozen=True)
class TrackerState:
    """Per-stream state carried from one frame to the next."""
    previous_gray: Optional[np.ndarray] = None
    history: Tuple[np.ndarray, ...] = ()    # Most recent first
    status_map: Optional[np.ndarray] = None
    frame_count: int = 0

    @property
    def is_initialized(self) -> bool:
        return self.previous_gray is not None


@dataclass(frozen=True)
class TrackerUpdate:
    """Outcome of one step, committed separately so failed frames leave no trace."""
    base: TrackerState
    state: TrackerState
    foreground_mask: np.ndarray


def history_capacity(windows: Sequence[TemporalWindow]) -> int:
    """Maximum number of history entries the vote groups can consume."""
    return sum(window.window_size for window in windows)


def confirm_detections(
    history: Sequence[np.ndarray],
    windows: Sequence[TemporalWindow],
    shape: Tuple[int, int],
) -> np.ndarray:
    """
    Windowed supermajority vote over the detection history.

    Groups consume consecutive, non-overlapping runs of history entries,
    newest first. A pixel is confirmed only if every group confirms it.
    """
    confirmed = np.ones(shape, dtype=bool)
    start = 0

    for window in windows:
        counts = np.zeros(shape, dtype=np.uint16)
        for detection in history[start:start + window.window_size]:
            counts += detection
        start += window.window_size

        confirmed &= counts > window.threshold

    return confirmed


def update_status(
    status_map: np.ndarray,
    confirmed: np.ndarray,
    expiry: int = DEFAULT_STATUS_EXPIRY,
) -> np.ndarray:
    """
    Hysteresis counter update.

    Confirmed pixels restart at 1, previously confirmed pixels age by one,
    and counters past ``expiry`` drop back to 0.
    """
    status = status_map.copy()
    status[confirmed] = 1

    aging = ~confirmed & (status != 0)
    status[aging] += 1

    status[status > expiry] = 0
    return status


def track_step(
    state: TrackerState,
    frame: np.ndarray,
    background_mask: np.ndarray,
    flow_estimator: OpticalFlowEstimator,
    windows: Sequence[TemporalWindow] = DEFAULT_WINDOWS,
    status_expiry: int = DEFAULT_STATUS_EXPIRY,
) -> Tuple[TrackerState, np.ndarray]:
    """
    Advance the tracker by one frame without mutating ``state``.

    Args:
        state: State after the previous frame
        frame: Normalized HxWx3 RGB frame
        background_mask: HxW boolean background mask of this frame
        flow_estimator: Object with ``compute(current_gray, previous_gray)``
        windows: Vote groups
        status_expiry: Largest counter value kept alive

    Returns:
        (new state, HxW boolean foreground mask)
    """
    if background_mask.shape != frame.shape[:2]:
        raise GeometryMismatch("Background mask", frame.shape[:2], background_mask.shape)

    gray = to_gray_uint8(frame)

    if not state.is_initialized:
        new_state = TrackerState(
            previous_gray=gray,
            history=(),
            status_map=np.zeros(gray.shape, dtype=np.uint8),
            frame_count=1,
        )
        return new_state, np.zeros(gray.shape, dtype=bool)

    if state.previous_gray.shape != gray.shape:
        raise GeometryMismatch(
            "Frame", state.previous_gray.shape, gray.shape,
            hint="frame size changed between calls",
        )

    # Re-align everything accumulated so far with the current frame
    flow = flow_estimator.compute(gray, state.previous_gray)
    remap = flow_to_remap(flow)

    history: List[np.ndarray] = [
        warp_by_flow(detection, remap, WarpInterpolation.NEAREST, 0)
        for detection in state.history
    ]
    status_map = warp_by_flow(state.status_map, remap, WarpInterpolation.NEAREST, 0)

    detection = (~background_mask).astype(np.uint8)
    history.insert(0, detection)
    del history[history_capacity(windows):]

    confirmed = confirm_detections(history, windows, gray.shape)
    status_map = update_status(status_map, confirmed, status_expiry)

    new_state = TrackerState(
        previous_gray=gray,
        history=tuple(history),
        status_map=status_map,
        frame_count=state.frame_count + 1,
    )

    logger.debug(
        "Tracker frame %d: %d confirmed, %d in foreground",
        new_state.frame_count,
        int(np.count_nonzero(confirmed)),
        int(np.count_nonzero(status_map)),
    )

    return new_state, status_map != 0


class TemporalTracker:
    """
    Temporal state of a single video stream.

    Frames must be fed strictly in order. :meth:`step` computes an update
    without touching the tracker; :meth:`commit` installs it. This lets the
    caller abort a frame (e.g. when matting fails) and keep the state of the
    last successful frame.

    Example:
        >>> tracker = TemporalTracker()
        >>> for frame, background in stream:
        ...     foreground = tracker.update(frame, background)
    """

    def __init__(
        self,
        windows: Optional[Sequence[TemporalWindow]] = None,
        status_expiry: int = DEFAULT_STATUS_EXPIRY,
        flow_estimator: Optional[OpticalFlowEstimator] = None,
    ):
        if windows is None:
            windows = DEFAULT_WINDOWS
        self.windows: Tuple[TemporalWindow, ...] = tuple(windows)
        if not self.windows:
            raise ValueError("At least one temporal window is required")
        if not 1 <= status_expiry <= 254:
            raise ValueError(f"status_expiry must be in [1, 254], got {status_expiry}")

        self.status_expiry = status_expiry
        self.flow_estimator = flow_estimator or OpticalFlowEstimator()
        self._state = TrackerState()

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def capacity(self) -> int:
        return history_capacity(self.windows)

    def step(self, frame: np.ndarray, background_mask: np.ndarray) -> TrackerUpdate:
        """Compute the update for the next frame."""
        new_state, foreground = track_step(
            self._state,
            frame,
            background_mask,
            self.flow_estimator,
            self.windows,
            self.status_expiry,
        )
        return TrackerUpdate(base=self._state, state=new_state, foreground_mask=foreground)

    def commit(self, update: TrackerUpdate) -> None:
        """Install an update computed from the current state."""
        if update.base is not self._state:
            raise ValueError("Tracker update is stale; frames must be committed in order")
        self._state = update.state

    def update(self, frame: np.ndarray, background_mask: np.ndarray) -> np.ndarray:
        """Step and commit in one call; returns the foreground mask."""
        update = self.step(frame, background_mask)
        self.commit(update)
        return update.foreground_mask

    def reset(self) -> None:
        """Forget all accumulated state (e.g. on a scene cut)."""
        self._state = TrackerState()
