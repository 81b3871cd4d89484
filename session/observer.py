"""检测会话观察者接口"""

import logging

from evaluators.fatigue_evaluator import describe_event
from models.data_models import DetectionResult, FatigueLevel

logger = logging.getLogger(__name__)


class FatigueObserver:
    """
    检测会话的通知接收者，所有方法默认什么都不做。

    回调在处理帧的线程上同步执行，回调内不要修改会话。
    """

    def on_calibration_started(self) -> None:
        pass

    def on_calibration_progress(self, progress: int, current_ear: float) -> None:
        pass

    def on_calibration_completed(
        self, threshold: float, min_ear: float, max_ear: float, avg_ear: float
    ) -> None:
        pass

    def on_blink(self) -> None:
        pass

    def on_fatigue_detected(self, result: DetectionResult) -> None:
        pass

    def on_fatigue_level_changed(self, level: FatigueLevel) -> None:
        pass


class LoggingObserver(FatigueObserver):
    """把所有通知写入日志"""

    def on_calibration_started(self) -> None:
        logger.info("校准已开始")

    def on_calibration_progress(self, progress: int, current_ear: float) -> None:
        logger.debug("校准进度: %d%%, EAR=%.3f", progress, current_ear)

    def on_calibration_completed(
        self, threshold: float, min_ear: float, max_ear: float, avg_ear: float
    ) -> None:
        logger.info(
            "校准完成！新阈值: %.3f (min=%.3f, max=%.3f, avg=%.3f)",
            threshold, min_ear, max_ear, avg_ear,
        )

    def on_blink(self) -> None:
        logger.debug("眨眼")

    def on_fatigue_detected(self, result: DetectionResult) -> None:
        reasons = ", ".join(describe_event(e) for e in result.events)
        logger.warning("检测到疲劳事件: %s (级别: %s)", reasons, result.fatigue_level.value)

    def on_fatigue_level_changed(self, level: FatigueLevel) -> None:
        if level is FatigueLevel.NORMAL:
            logger.info("疲劳级别恢复正常")
        else:
            logger.warning("疲劳级别变化: %s", level.value)
