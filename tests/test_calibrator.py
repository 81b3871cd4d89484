"""阈值校准模块单元测试"""

import math

import pytest

from calibration.threshold_calibrator import (
    CALIBRATION_DURATION_MS,
    Calibrator,
    compute_stats,
)
from models.data_models import CalibrationState


class TestComputeStats:
    """测试 compute_stats 辅助函数"""

    def test_basic_values(self):
        values = [1.0, 2.0, 3.0, 4.0, 5.0]
        result = compute_stats(values)
        assert result["mean"] == pytest.approx(3.0)
        assert result["min"] == 1.0
        assert result["max"] == 5.0
        expected_std = math.sqrt(sum((x - 3.0) ** 2 for x in values) / 5)
        assert result["std"] == pytest.approx(expected_std)

    def test_single_value(self):
        result = compute_stats([0.3])
        assert result["mean"] == pytest.approx(0.3)
        assert result["std"] == 0.0
        assert result["min"] == 0.3
        assert result["max"] == 0.3

    def test_tuple_input(self):
        result = compute_stats((0.28, 0.32))
        assert result["mean"] == pytest.approx(0.30)
        assert isinstance(result["mean"], float)


def _feed(calibrator, state, samples, start=0, step=100):
    """按 step 间隔送入样本，返回 (状态, 全部 CalibrationUpdate)"""
    updates = []
    for i, ear in enumerate(samples):
        update = calibrator.update(state, ear, start + i * step)
        state = update.state
        updates.append(update)
    return state, updates


class TestCalibratorUpdate:
    def test_full_window_produces_threshold(self):
        calibrator = Calibrator()
        state = calibrator.start(0)
        samples = [0.28 if i % 2 == 0 else 0.32 for i in range(150)]
        state, updates = _feed(calibrator, state, samples)
        assert state.active
        assert len(state.samples) == 150
        assert all(u.result is None for u in updates)

        final = calibrator.update(state, 0.30, CALIBRATION_DURATION_MS)
        assert final.finished
        assert not final.state.active
        assert final.state.samples == ()
        result = final.result
        assert result.new_threshold == pytest.approx(0.21)
        assert result.avg_ear == pytest.approx(0.30)
        assert result.min_ear == pytest.approx(0.28)
        assert result.max_ear == pytest.approx(0.32)
        assert result.sample_count == 150

    def test_progress_reported_per_sample(self):
        calibrator = Calibrator()
        _, updates = _feed(calibrator, calibrator.start(0), [0.3, 0.3, 0.3], start=0, step=7500)
        assert [u.progress for u in updates] == [0, 50, None]
        assert updates[0].current_ear == 0.3
        assert updates[2].finished

    def test_empty_samples_finish_without_result(self):
        calibrator = Calibrator()
        update = calibrator.update(calibrator.start(0), 0.3, CALIBRATION_DURATION_MS)
        assert update.finished
        assert update.result is None
        assert not update.state.active

    def test_zero_ear_is_not_sampled(self):
        calibrator = Calibrator()
        update = calibrator.update(calibrator.start(0), 0.0, 1000)
        assert update.state.samples == ()
        assert update.progress is None

    def test_lazy_start_uses_first_frame(self):
        calibrator = Calibrator()
        state = calibrator.start()
        assert state.start_ms is None
        update = calibrator.update(state, 0.3, 40000)
        assert update.state.start_ms == 40000
        assert update.progress == 0
        assert not update.finished

    def test_idle_state_ignored(self):
        calibrator = Calibrator()
        update = calibrator.update(CalibrationState(), 0.3, 1000)
        assert update.state == CalibrationState()
        assert not update.finished

    def test_stop_clears_samples(self):
        assert Calibrator.stop() == CalibrationState()


class TestCalibratorProgress:
    def test_idle_progress_is_zero(self):
        assert Calibrator().progress(CalibrationState(), 5000) == 0

    @pytest.mark.parametrize(
        "now_ms, expected",
        [(0, 0), (3000, 20), (7500, 50), (15000, 100), (99999, 100), (-500, 0)],
    )
    def test_progress_is_clamped(self, now_ms, expected):
        calibrator = Calibrator()
        assert calibrator.progress(calibrator.start(0), now_ms) == expected

    def test_progress_without_clock(self):
        calibrator = Calibrator()
        assert calibrator.progress(calibrator.start(0), None) == 0


def test_finish_empty_returns_none():
    assert Calibrator().finish([]) is None
