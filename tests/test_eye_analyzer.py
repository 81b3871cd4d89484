"""EyeClosureDetector 单元测试"""

import pytest

from detectors.eye_analyzer import EYE_CLOSURE_DURATION_MS, EyeClosureDetector
from models.data_models import EyeClosure, EyeState

THRESHOLD = 0.2
OPEN = 0.3
CLOSED = 0.1


@pytest.fixture
def detector():
    return EyeClosureDetector()


def _run(detector, frames, state=None):
    """frames: [(timestamp, left, right)]，返回 (最终状态, 事件列表, 眨眼次数)"""
    state = state or EyeState()
    events, blinks = [], 0
    for ts, left, right in frames:
        result = detector.update(state, left, right, THRESHOLD, ts)
        state = result.state
        if result.event is not None:
            events.append(result.event)
        if result.is_blink:
            blinks += 1
    return state, events, blinks


class TestClosure:
    def test_open_eyes_no_event(self, detector):
        state, events, blinks = _run(detector, [(t, OPEN, OPEN) for t in range(0, 3000, 100)])
        assert events == []
        assert blinks == 0
        assert state == EyeState()

    def test_closed_1600ms_then_open_emits_once(self, detector):
        frames = [(0, CLOSED, CLOSED), (800, CLOSED, CLOSED), (1600, CLOSED, CLOSED), (1700, OPEN, OPEN)]
        state, events, blinks = _run(detector, frames)
        assert events == [EyeClosure(duration_ms=1600)]
        assert blinks == 0
        assert state == EyeState()

    def test_dense_frames_emit_once_per_closure(self, detector):
        frames = [(t, CLOSED, CLOSED) for t in range(0, 4000, 100)] + [(4000, OPEN, OPEN)]
        _, events, blinks = _run(detector, frames)
        assert events == [EyeClosure(duration_ms=EYE_CLOSURE_DURATION_MS)]
        assert blinks == 0

    def test_closure_detected_on_reopen_after_gap(self, detector):
        _, events, _ = _run(detector, [(0, CLOSED, CLOSED), (2000, OPEN, OPEN)])
        assert events == [EyeClosure(duration_ms=2000)]

    def test_second_closure_emits_again(self, detector):
        frames = [(0, CLOSED, CLOSED), (1500, CLOSED, CLOSED), (1600, OPEN, OPEN),
                  (2000, CLOSED, CLOSED), (3600, CLOSED, CLOSED)]
        _, events, _ = _run(detector, frames)
        assert events == [EyeClosure(duration_ms=1500), EyeClosure(duration_ms=1600)]

    def test_either_eye_closed_counts(self, detector):
        state, _, _ = _run(detector, [(0, OPEN, CLOSED)])
        assert state.is_closed
        state, _, _ = _run(detector, [(0, CLOSED, OPEN)])
        assert state.is_closed

    def test_threshold_is_strict(self, detector):
        result = detector.update(EyeState(), THRESHOLD, THRESHOLD, THRESHOLD, 0)
        assert not result.state.is_closed


class TestBlink:
    def test_short_closure_is_blink(self, detector):
        state, events, blinks = _run(detector, [(0, CLOSED, CLOSED), (150, OPEN, OPEN)])
        assert events == []
        assert blinks == 1
        assert not state.is_closed

    def test_closure_just_under_limit_is_blink(self, detector):
        _, events, blinks = _run(detector, [(0, CLOSED, CLOSED), (1499, OPEN, OPEN)])
        assert events == []
        assert blinks == 1


class TestUnavailableRatio:
    def test_zero_ratio_keeps_state(self, detector):
        closed = EyeState(is_closed=True, closure_start_ms=0)
        result = detector.update(closed, 0.0, OPEN, THRESHOLD, 2000)
        assert result.state is closed
        assert result.event is None
        assert not result.is_blink

    def test_zero_ratio_does_not_start_closure(self, detector):
        result = detector.update(EyeState(), 0.0, 0.0, THRESHOLD, 0)
        assert result.state == EyeState()
