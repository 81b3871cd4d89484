"""YawnDetector 单元测试"""

import pytest

from detectors.mouth_analyzer import YawnDetector
from models.data_models import MouthState, Yawn

THRESHOLD = 0.7


@pytest.fixture
def detector():
    return YawnDetector()


def _run(detector, frames):
    state, events = MouthState(), []
    for ts, mar in frames:
        result = detector.update(state, mar, THRESHOLD, ts)
        state = result.state
        if result.event is not None:
            events.append(result.event)
    return state, events


def test_closed_mouth_no_event(detector):
    _, events = _run(detector, [(t, 0.2) for t in range(0, 3000, 100)])
    assert events == []


def test_sustained_opening_emits_once_while_open(detector):
    frames = [(t, 0.9) for t in range(0, 3000, 100)] + [(3000, 0.2)]
    state, events = _run(detector, frames)
    assert events == [Yawn(duration_ms=1000)]
    assert state == MouthState()


def test_yawn_detected_on_closing_after_gap(detector):
    _, events = _run(detector, [(0, 0.9), (1200, 0.2)])
    assert events == [Yawn(duration_ms=1200)]


def test_short_opening_is_not_yawn(detector):
    _, events = _run(detector, [(0, 0.9), (500, 0.9), (900, 0.2)])
    assert events == []


def test_threshold_is_strict(detector):
    result = detector.update(MouthState(), THRESHOLD, THRESHOLD, 0)
    assert not result.state.is_open


def test_zero_mar_keeps_state(detector):
    open_state = MouthState(is_open=True, open_start_ms=0)
    result = detector.update(open_state, 0.0, THRESHOLD, 5000)
    assert result.state is open_state
    assert result.event is None


def test_two_yawns(detector):
    frames = [(0, 0.9), (1000, 0.9), (1100, 0.2), (2000, 0.9), (3500, 0.2)]
    _, events = _run(detector, frames)
    assert events == [Yawn(duration_ms=1000), Yawn(duration_ms=1500)]
