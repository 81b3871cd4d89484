"""眼睛状态分析模块，根据 EAR 区分持续闭眼和眨眼"""

import logging
from dataclasses import replace

from models.data_models import EyeClosure, EyeResult, EyeState

logger = logging.getLogger(__name__)

EYE_CLOSURE_DURATION_MS = 1500


class EyeClosureDetector:
    """闭眼状态机：Open -> Closed -> (Confirmed) -> Open"""

    def __init__(self, closure_duration_ms: int = EYE_CLOSURE_DURATION_MS):
        self.closure_duration_ms = closure_duration_ms

    def update(
        self,
        state: EyeState,
        left_ear: float,
        right_ear: float,
        threshold: float,
        timestamp_ms: int,
    ) -> EyeResult:
        """
        处理一帧双眼 EAR。

        任一只眼低于阈值即视为闭眼。闭眼持续达到时长阈值时上报一次
        EyeClosure，之后直到睁眼前不再上报；未达到时长就睁眼则判定为眨眼。

        Args:
            state: 当前眼睛状态
            left_ear: 左眼 EAR，0.0 表示本帧无效
            right_ear: 右眼 EAR，0.0 表示本帧无效
            threshold: 闭眼阈值
            timestamp_ms: 帧时间戳

        Returns:
            EyeResult(state, event, is_blink)
        """
        if left_ear == 0.0 or right_ear == 0.0:
            return EyeResult(state=state)

        any_eye_closed = left_ear < threshold or right_ear < threshold

        if any_eye_closed:
            if not state.is_closed:
                logger.debug("眼睛开始闭合 (左=%.3f, 右=%.3f)", left_ear, right_ear)
                return EyeResult(
                    state=EyeState(is_closed=True, closure_start_ms=timestamp_ms)
                )
            if state.confirmed:
                return EyeResult(state=state)
            elapsed = timestamp_ms - state.closure_start_ms
            if elapsed >= self.closure_duration_ms:
                logger.debug("眼睛闭合超时: %dms", elapsed)
                return EyeResult(
                    state=replace(state, confirmed=True),
                    event=EyeClosure(duration_ms=elapsed),
                )
            return EyeResult(state=state)

        if not state.is_closed:
            return EyeResult(state=state)

        elapsed = timestamp_ms - state.closure_start_ms
        if state.confirmed:
            return EyeResult(state=EyeState())
        if elapsed >= self.closure_duration_ms:
            # 两帧间隔较大时，睁眼这一帧才发现闭眼已超时
            logger.debug("眼睛闭合超时: %dms", elapsed)
            return EyeResult(state=EyeState(), event=EyeClosure(duration_ms=elapsed))
        logger.debug("眨眼: %dms", elapsed)
        return EyeResult(state=EyeState(), is_blink=True)
