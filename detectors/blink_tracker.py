"""眨眼频率统计模块"""

import logging
from dataclasses import replace
from typing import Optional, Tuple

from models.data_models import BlinkState, HighBlinkFrequency

logger = logging.getLogger(__name__)

BLINK_DEBOUNCE_MS = 200
BLINK_WINDOW_MS = 60000
BLINK_FREQUENCY_THRESHOLD = 20


class BlinkFrequencyTracker:
    """按分钟窗口统计眨眼次数，并保存眨眼时间戳供 UI 查询"""

    def __init__(
        self,
        window_ms: int = BLINK_WINDOW_MS,
        frequency_threshold: int = BLINK_FREQUENCY_THRESHOLD,
        debounce_ms: int = BLINK_DEBOUNCE_MS,
    ):
        self.window_ms = window_ms
        self.frequency_threshold = frequency_threshold
        self.debounce_ms = debounce_ms

    def record_blink(self, state: BlinkState, timestamp_ms: int) -> Tuple[BlinkState, bool]:
        """
        记录一次眨眼候选。

        与上一次眨眼间隔不超过 debounce_ms 时并入上一次，不重复计数。

        Returns:
            (新状态, 是否计为一次新的眨眼)
        """
        if state.last_blink_ms is not None and timestamp_ms - state.last_blink_ms <= self.debounce_ms:
            return state, False

        new_state = replace(
            state,
            count=state.count + 1,
            last_blink_ms=timestamp_ms,
            log=state.log + (timestamp_ms,),
        )
        logger.debug("眨眼计数: %d", new_state.count)
        return new_state, True

    def roll_window(
        self, state: BlinkState, timestamp_ms: int
    ) -> Tuple[BlinkState, Optional[HighBlinkFrequency]]:
        """
        检查统计窗口是否到期。

        窗口到期时，次数超过阈值则输出 HighBlinkFrequency；无论是否输出，
        计数和窗口起点都会重置，并清理早于一个窗口的眨眼记录。
        """
        if state.window_start_ms is None:
            return replace(state, window_start_ms=timestamp_ms), None

        if timestamp_ms - state.window_start_ms < self.window_ms:
            return state, None

        event = None
        if state.count > self.frequency_threshold:
            logger.debug("眨眼频率过高: %d 次/分钟", state.count)
            event = HighBlinkFrequency(count=state.count)
        kept = tuple(t for t in state.log if timestamp_ms - t <= self.window_ms)
        return replace(state, count=0, window_start_ms=timestamp_ms, log=kept), event

    @staticmethod
    def recent_blink_count(
        state: BlinkState, window_ms: int, now_ms: int
    ) -> Tuple[BlinkState, int]:
        """清理早于 window_ms 的记录，返回 (新状态, 最近眨眼次数)"""
        kept = tuple(t for t in state.log if now_ms - t <= window_ms)
        return replace(state, log=kept), len(kept)
