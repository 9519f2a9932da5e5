"""Temporal tracking: history, windowed vote and hysteresis."""

import numpy as np
import pytest

from conftest import ShiftFlow, ZeroFlow
from video_bg_eraser.core.errors import GeometryMismatch
from video_bg_eraser.temporal.flow import OpticalFlowEstimator
from video_bg_eraser.temporal.tracker import (
    TemporalTracker,
    TemporalWindow,
    TrackerState,
    confirm_detections,
    history_capacity,
    track_step,
    update_status,
)

SHAPE = (24, 32)


def frame_of(shape=SHAPE):
    return np.full(shape + (3,), 0.5, dtype=np.float32)


def background_with_square(shape=SHAPE, top=8, left=8, size=8):
    background = np.ones(shape, dtype=bool)
    background[top:top + size, left:left + size] = False
    return background


def all_background(shape=SHAPE):
    return np.ones(shape, dtype=bool)


class TestFirstFrame:
    def test_first_frame_is_all_background(self):
        tracker = TemporalTracker(flow_estimator=ZeroFlow())

        foreground = tracker.update(frame_of(), background_with_square())

        assert not foreground.any()
        assert np.all(tracker.state.status_map == 0)
        assert tracker.state.history == ()
        assert tracker.state.frame_count == 1

    def test_first_frame_does_not_compute_flow(self):
        flow = ZeroFlow()
        tracker = TemporalTracker(flow_estimator=flow)

        tracker.update(frame_of(), all_background())

        assert flow.calls == 0


class TestConfirmation:
    def test_static_object_confirmed_on_fourth_frame(self):
        tracker = TemporalTracker(flow_estimator=ZeroFlow())
        background = background_with_square()

        visible = [tracker.update(frame_of(), background)[12, 12] for _ in range(6)]

        assert visible == [False, False, False, True, True, True]

    def test_confirmed_mask_matches_object(self):
        tracker = TemporalTracker(flow_estimator=ZeroFlow())
        background = background_with_square()

        for _ in range(4):
            foreground = tracker.update(frame_of(), background)

        np.testing.assert_array_equal(foreground, ~background)

    def test_single_spurious_detection_never_shows(self):
        tracker = TemporalTracker(flow_estimator=ZeroFlow())
        tracker.update(frame_of(), all_background())

        seen = []
        for i in range(8):
            background = background_with_square() if i % 3 == 0 else all_background()
            seen.append(tracker.update(frame_of(), background).any())

        assert not any(seen)

    def test_multiple_windows_require_older_detections(self):
        windows = [TemporalWindow(2, 3), TemporalWindow(0, 2)]
        tracker = TemporalTracker(windows=windows, flow_estimator=ZeroFlow())
        background = background_with_square()

        visible = [tracker.update(frame_of(), background)[12, 12] for _ in range(6)]

        assert tracker.capacity == 5
        assert visible == [False, False, False, False, True, True]


class TestHysteresis:
    def test_disappearing_object_has_one_frame_grace(self):
        tracker = TemporalTracker(flow_estimator=ZeroFlow())
        for _ in range(5):
            tracker.update(frame_of(), background_with_square())

        after = [tracker.update(frame_of(), all_background())[12, 12] for _ in range(3)]

        assert after == [True, False, False]

    def test_longer_expiry_extends_grace(self):
        tracker = TemporalTracker(status_expiry=4, flow_estimator=ZeroFlow())
        for _ in range(5):
            tracker.update(frame_of(), background_with_square())

        after = [tracker.update(frame_of(), all_background())[12, 12] for _ in range(4)]

        assert after == [True, True, True, False]

    def test_status_values_stay_bounded(self):
        rng = np.random.default_rng(3)
        tracker = TemporalTracker(flow_estimator=ZeroFlow())

        for _ in range(100):
            tracker.update(frame_of(), rng.random(SHAPE) < 0.3)
            assert set(np.unique(tracker.state.status_map)) <= {0, 1, 2}

    def test_history_is_bounded(self):
        tracker = TemporalTracker(flow_estimator=ZeroFlow())

        for _ in range(100):
            tracker.update(frame_of(), background_with_square())
            assert len(tracker.state.history) <= tracker.capacity

        assert len(tracker.state.history) == 3


class TestMotionCompensation:
    def test_history_follows_flow(self):
        # Object moves one pixel right per frame; flow points back to where it was
        tracker = TemporalTracker(flow_estimator=ShiftFlow(dx=-1.0))

        for i in range(5):
            foreground = tracker.update(frame_of(), background_with_square(left=8 + i))

        np.testing.assert_array_equal(foreground, ~background_with_square(left=12))

    def test_content_entering_from_border_is_not_confirmed(self):
        tracker = TemporalTracker(flow_estimator=ShiftFlow(dx=-1.0))
        full = np.zeros(SHAPE, dtype=bool)

        for _ in range(3):
            foreground = tracker.update(frame_of(), full)

        # Warping pulls zeros in at the left edge
        assert not foreground[:, 0].any()


class TestPureStep:
    def test_track_step_does_not_mutate_state(self):
        state, _ = track_step(TrackerState(), frame_of(), all_background(), ZeroFlow())
        before = state.status_map.copy()

        new_state, _ = track_step(state, frame_of(), background_with_square(), ZeroFlow())

        assert new_state is not state
        assert state.history == ()
        np.testing.assert_array_equal(state.status_map, before)
        assert new_state.frame_count == 2

    def test_confirm_detections_counts_strictly_above_threshold(self):
        ones = np.ones((2, 2), dtype=np.uint8)
        zeros = np.zeros((2, 2), dtype=np.uint8)

        two = confirm_detections([ones, ones, zeros], [TemporalWindow(2, 3)], (2, 2))
        three = confirm_detections([ones, ones, ones], [TemporalWindow(2, 3)], (2, 2))

        assert not two.any()
        assert three.all()

    def test_update_status_cycle(self):
        status = np.array([0, 1, 2, 0], dtype=np.uint8)
        confirmed = np.array([False, False, False, True])

        np.testing.assert_array_equal(update_status(status, confirmed), [0, 2, 0, 1])

    def test_history_capacity(self):
        assert history_capacity([TemporalWindow(2, 3), TemporalWindow(1, 4)]) == 7


class TestStepAndCommit:
    def test_step_leaves_state_untouched(self):
        tracker = TemporalTracker(flow_estimator=ZeroFlow())
        tracker.update(frame_of(), all_background())
        state = tracker.state

        tracker.step(frame_of(), background_with_square())

        assert tracker.state is state

    def test_stale_commit_rejected(self):
        tracker = TemporalTracker(flow_estimator=ZeroFlow())
        stale = tracker.step(frame_of(), all_background())
        tracker.update(frame_of(), all_background())

        with pytest.raises(ValueError):
            tracker.commit(stale)

    def test_frame_size_change(self):
        tracker = TemporalTracker(flow_estimator=ZeroFlow())
        tracker.update(frame_of(), all_background())

        with pytest.raises(GeometryMismatch):
            tracker.update(frame_of((12, 16)), all_background((12, 16)))

    def test_mask_size_mismatch(self):
        tracker = TemporalTracker(flow_estimator=ZeroFlow())

        with pytest.raises(GeometryMismatch):
            tracker.update(frame_of(), all_background((12, 16)))

    def test_reset(self):
        tracker = TemporalTracker(flow_estimator=ZeroFlow())
        for _ in range(4):
            tracker.update(frame_of(), background_with_square())

        tracker.reset()

        assert not tracker.state.is_initialized
        assert not tracker.update(frame_of(), background_with_square()).any()


class TestValidation:
    def test_empty_windows(self):
        with pytest.raises(ValueError):
            TemporalTracker(windows=[], flow_estimator=ZeroFlow())

    def test_expiry_range(self):
        with pytest.raises(ValueError):
            TemporalTracker(status_expiry=0, flow_estimator=ZeroFlow())

    def test_window_size(self):
        with pytest.raises(ValueError):
            TemporalWindow(threshold=1, window_size=0)


class TestTinyFrames:
    @pytest.mark.parametrize("shape", [(1, 1), (2, 3), (4, 4), (7, 9)])
    def test_real_flow_estimator_on_tiny_frames(self, shape):
        tracker = TemporalTracker(flow_estimator=OpticalFlowEstimator())
        foreground_only = np.zeros(shape, dtype=bool)

        for _ in range(5):
            foreground = tracker.update(frame_of(shape), foreground_only)

        assert foreground.shape == shape
        assert foreground.all()
