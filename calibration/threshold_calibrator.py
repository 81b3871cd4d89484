"""阈值校准模块，在固定预热时间内采集 EAR 基线并计算个人闭眼阈值"""

import logging
from typing import Optional, Sequence

import numpy as np

from models.data_models import CalibrationResult, CalibrationState, CalibrationUpdate

logger = logging.getLogger(__name__)

CALIBRATION_DURATION_MS = 15000
# 新阈值 = 基线平均 EAR * 该比例
THRESHOLD_RATIO = 0.7


def compute_stats(values: Sequence[float]) -> dict:
    """
    计算一组数值的统计信息。

    Args:
        values: 非空浮点数序列

    Returns:
        {"mean": float, "std": float, "min": float, "max": float}
    """
    arr = np.asarray(values, dtype=float)
    return {
        "mean": float(arr.mean()),
        "std": float(arr.std()),
        "min": float(arr.min()),
        "max": float(arr.max()),
    }


class Calibrator:
    """校准状态机：Idle -> Calibrating -> Idle"""

    def __init__(
        self,
        duration_ms: int = CALIBRATION_DURATION_MS,
        threshold_ratio: float = THRESHOLD_RATIO,
    ):
        self.duration_ms = duration_ms
        self.threshold_ratio = threshold_ratio

    def start(self, timestamp_ms: Optional[int] = None) -> CalibrationState:
        """开始校准并清空样本；timestamp_ms 为 None 时从下一帧开始计时"""
        logger.info("开始校准，持续时间: %dms", self.duration_ms)
        return CalibrationState(active=True, start_ms=timestamp_ms)

    @staticmethod
    def stop() -> CalibrationState:
        return CalibrationState()

    def update(self, state: CalibrationState, ear: float, timestamp_ms: int) -> CalibrationUpdate:
        """
        处理一帧校准数据。

        Args:
            state: 当前校准状态
            ear: 双眼平均 EAR，0.0 表示本帧无效
            timestamp_ms: 帧时间戳

        Returns:
            CalibrationUpdate；窗口到期时 finished 为 True，
            样本为空时 result 为 None
        """
        if not state.active:
            return CalibrationUpdate(state=state)

        if state.start_ms is None:
            state = CalibrationState(active=True, start_ms=timestamp_ms)

        elapsed = timestamp_ms - state.start_ms
        if elapsed >= self.duration_ms:
            result = self.finish(state.samples)
            return CalibrationUpdate(state=self.stop(), result=result, finished=True)

        if ear == 0.0:
            return CalibrationUpdate(state=state)

        progress = min(100, max(0, elapsed * 100 // self.duration_ms))
        new_state = CalibrationState(
            active=True,
            start_ms=state.start_ms,
            samples=state.samples + (ear,),
        )
        if progress % 20 == 0 and progress > 0:
            logger.debug("校准进度: %d%%", progress)
        return CalibrationUpdate(state=new_state, progress=progress, current_ear=ear)

    def progress(self, state: CalibrationState, now_ms: Optional[int]) -> int:
        """当前校准进度 0~100，未校准时为 0"""
        if not state.active or state.start_ms is None or now_ms is None:
            return 0
        elapsed = now_ms - state.start_ms
        return int(min(100, max(0, elapsed * 100 // self.duration_ms)))

    def finish(self, samples: Sequence[float]) -> Optional[CalibrationResult]:
        """根据样本计算新阈值，样本为空时返回 None"""
        if not samples:
            logger.warning("校准数据为空，保持原阈值")
            return None

        stats = compute_stats(samples)
        new_threshold = stats["mean"] * self.threshold_ratio

        logger.info(
            "校准完成: 最小值=%.4f, 最大值=%.4f, 平均值=%.4f, 新阈值=%.4f",
            stats["min"],
            stats["max"],
            stats["mean"],
            new_threshold,
        )
        return CalibrationResult(
            new_threshold=new_threshold,
            min_ear=stats["min"],
            max_ear=stats["max"],
            avg_ear=stats["mean"],
            sample_count=len(samples),
        )
