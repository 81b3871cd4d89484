"""嘴巴状态分析模块，根据 MAR 判断哈欠"""

import logging
from dataclasses import replace

from models.data_models import MouthResult, MouthState, Yawn

logger = logging.getLogger(__name__)

YAWN_DURATION_MS = 1000


class YawnDetector:
    """张嘴状态机，持续张嘴超过时长阈值判定为哈欠"""

    def __init__(self, yawn_duration_ms: int = YAWN_DURATION_MS):
        self.yawn_duration_ms = yawn_duration_ms

    def update(
        self,
        state: MouthState,
        mar: float,
        threshold: float,
        timestamp_ms: int,
    ) -> MouthResult:
        """
        处理一帧 MAR。

        每次连续张嘴最多上报一次 Yawn：张嘴期间超过时长阈值时上报，
        或在闭嘴时发现已超过时长阈值时上报，以先到者为准。

        Args:
            state: 当前嘴巴状态
            mar: MAR 值，0.0 表示本帧无效
            threshold: 张嘴阈值
            timestamp_ms: 帧时间戳

        Returns:
            MouthResult(state, event)
        """
        if mar == 0.0:
            return MouthResult(state=state)

        if mar > threshold:
            if not state.is_open:
                return MouthResult(state=MouthState(is_open=True, open_start_ms=timestamp_ms))
            if state.confirmed:
                return MouthResult(state=state)
            elapsed = timestamp_ms - state.open_start_ms
            if elapsed >= self.yawn_duration_ms:
                logger.debug("检测到哈欠: %dms", elapsed)
                return MouthResult(
                    state=replace(state, confirmed=True),
                    event=Yawn(duration_ms=elapsed),
                )
            return MouthResult(state=state)

        if not state.is_open:
            return MouthResult(state=state)

        elapsed = timestamp_ms - state.open_start_ms
        if not state.confirmed and elapsed >= self.yawn_duration_ms:
            logger.debug("检测到哈欠: %dms", elapsed)
            return MouthResult(state=MouthState(), event=Yawn(duration_ms=elapsed))
        return MouthResult(state=MouthState())
