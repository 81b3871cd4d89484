"""疲劳检测会话，持有全部检测状态并逐帧协调各检测模块"""

import logging
from dataclasses import replace
from typing import List, Optional

from calibration.threshold_calibrator import Calibrator
from config import validate_config
from detectors.blink_tracker import BlinkFrequencyTracker
from detectors.eye_analyzer import EyeClosureDetector
from detectors.geometry import calculate_ear, calculate_mar, eye_ratios
from detectors.mouth_analyzer import YawnDetector
from evaluators.fatigue_evaluator import describe_event, fatigue_level
from models.data_models import (
    BlinkState,
    CalibrationResult,
    DetectionResult,
    EyeState,
    FatigueEvent,
    FatigueLevel,
    LandmarkFrame,
    MouthState,
    SessionState,
)
from session.observer import FatigueObserver

logger = logging.getLogger(__name__)

_NORMAL_RESULT = DetectionResult(
    is_fatigue_detected=False,
    fatigue_level=FatigueLevel.NORMAL,
    events=(),
)


class DetectionSession:
    """
    疲劳检测会话。

    每次调用 process_frame 处理一帧关键点：校准中只交给校准器，
    否则依次运行闭眼、哈欠和眨眼频率检测，累计疲劳事件并计算疲劳级别。

    会话不是线程安全的，同一会话只能由一个线程按顺序送帧。
    """

    def __init__(self, config: Optional[dict] = None, observer: Optional[FatigueObserver] = None):
        self._config = validate_config(config or {})
        self._observer = observer

        self.eye_detector = EyeClosureDetector()
        self.yawn_detector = YawnDetector()
        self.blink_tracker = BlinkFrequencyTracker()
        self.calibrator = Calibrator()

        self._state = SessionState(
            ear_threshold=self._config["ear_threshold"],
            mar_threshold=self._config["mar_threshold"],
            fatigue_event_threshold=self._config["fatigue_event_threshold"],
        )

    # ---- 逐帧处理 ----

    def process_frame(self, frame: LandmarkFrame) -> DetectionResult:
        """
        处理一帧关键点。

        Args:
            frame: 关键点帧，faces 为空表示本帧没有人脸

        Returns:
            DetectionResult；任何异常都不会向外抛出，出错时返回正常结果
        """
        try:
            # 未启动或没有人脸时只更新会话时钟，进行中的闭眼/张嘴计时跨帧保留
            if not self._state.active or not frame.has_face:
                self._state = replace(self._state, last_timestamp_ms=frame.timestamp_ms)
                return _NORMAL_RESULT
            if self._state.calibration.active:
                return self._process_calibration(frame)
            return self._process_detection(frame)
        except Exception:
            logger.exception("处理关键点帧时发生错误 (timestamp=%s)", getattr(frame, "timestamp_ms", None))
            return _NORMAL_RESULT

    def _process_calibration(self, frame: LandmarkFrame) -> DetectionResult:
        state = self._state
        ear = calculate_ear(frame.primary_face)
        update = self.calibrator.update(state.calibration, ear, frame.timestamp_ms)
        new_state = replace(
            state,
            calibration=update.state,
            last_timestamp_ms=frame.timestamp_ms,
        )
        if update.result is not None:
            new_state = replace(new_state, ear_threshold=update.result.new_threshold)
        self._state = new_state

        if update.progress is not None:
            self._notify("on_calibration_progress", update.progress, update.current_ear)
        if update.result is not None:
            self._notify_calibration_completed(update.result)
        return _NORMAL_RESULT

    def _process_detection(self, frame: LandmarkFrame) -> DetectionResult:
        state = self._state
        timestamp_ms = frame.timestamp_ms
        points = frame.primary_face

        left_ear, right_ear = eye_ratios(points)
        mar = calculate_mar(points)

        events: List[FatigueEvent] = []

        # 1. 闭眼 / 眨眼
        eye = self.eye_detector.update(state.eye, left_ear, right_ear, state.ear_threshold, timestamp_ms)
        blink_state = state.blink
        blinked = False
        if eye.is_blink:
            blink_state, blinked = self.blink_tracker.record_blink(blink_state, timestamp_ms)
        if eye.event is not None:
            events.append(eye.event)

        # 2. 哈欠
        mouth = self.yawn_detector.update(state.mouth, mar, state.mar_threshold, timestamp_ms)
        if mouth.event is not None:
            events.append(mouth.event)

        # 3. 眨眼频率
        blink_state, frequency_event = self.blink_tracker.roll_window(blink_state, timestamp_ms)
        if frequency_event is not None:
            events.append(frequency_event)

        # 4. 累计事件并确定疲劳级别
        count = state.fatigue_event_count + len(events)
        level = fatigue_level(count, state.fatigue_event_threshold)
        previous_level = state.fatigue_level

        self._state = replace(
            state,
            eye=eye.state,
            mouth=mouth.state,
            blink=blink_state,
            fatigue_event_count=count,
            fatigue_level=level,
            last_timestamp_ms=timestamp_ms,
        )

        result = DetectionResult(
            is_fatigue_detected=level is not FatigueLevel.NORMAL,
            fatigue_level=level,
            events=tuple(events),
        )

        for event in events:
            logger.info("疲劳事件: %s (累计 %d)", describe_event(event), count)
        if blinked:
            self._notify("on_blink")
        if events:
            self._notify("on_fatigue_detected", result)
        if level is not previous_level:
            logger.info("疲劳级别变化: %s -> %s", previous_level.value, level.value)
            self._notify("on_fatigue_level_changed", level)
        return result

    # ---- 观察者 ----

    def set_observer(self, observer: Optional[FatigueObserver]) -> None:
        self._observer = observer

    def _notify(self, method: str, *args) -> None:
        """同步调用观察者，观察者抛出的异常只记录日志"""
        if self._observer is None:
            return
        try:
            getattr(self._observer, method)(*args)
        except Exception:
            logger.exception("观察者回调 %s 执行失败", method)

    def _notify_calibration_completed(self, result: CalibrationResult) -> None:
        self._notify(
            "on_calibration_completed",
            result.new_threshold,
            result.min_ear,
            result.max_ear,
            result.avg_ear,
        )

    # ---- 控制 ----

    def start(self) -> None:
        """开始接收帧，不影响校准状态"""
        self._state = replace(self._state, active=True)
        logger.info("疲劳检测已启动")

    def stop(self) -> None:
        """停止接收帧，不影响校准状态"""
        self._state = replace(self._state, active=False)
        logger.info("疲劳检测已停止")

    def reset(self) -> None:
        """清空全部检测状态，EAR 阈值恢复默认值并取消校准"""
        previous_level = self._state.fatigue_level
        self._state = replace(
            self._cleared_state(),
            ear_threshold=self._config["ear_threshold"],
            calibration=self.calibrator.stop(),
        )
        logger.info("疲劳检测器已重置")
        self._notify_level_cleared(previous_level)

    def reset_fatigue_events(self) -> None:
        """只清空事件计数和计时，保留校准阈值"""
        previous_level = self._state.fatigue_level
        self._state = self._cleared_state()
        logger.info("疲劳事件计数已重置")
        self._notify_level_cleared(previous_level)

    def _notify_level_cleared(self, previous_level: FatigueLevel) -> None:
        if previous_level is not FatigueLevel.NORMAL:
            self._notify("on_fatigue_level_changed", FatigueLevel.NORMAL)

    def _cleared_state(self) -> SessionState:
        return replace(
            self._state,
            eye=EyeState(),
            mouth=MouthState(),
            blink=BlinkState(),
            fatigue_event_count=0,
            fatigue_level=FatigueLevel.NORMAL,
        )

    def set_parameters(
        self,
        ear_threshold: Optional[float] = None,
        mar_threshold: Optional[float] = None,
        fatigue_event_threshold: Optional[int] = None,
    ) -> None:
        """设置检测参数，未传入的参数保持当前值，下一帧生效"""
        state = self._state
        self._state = replace(
            state,
            ear_threshold=state.ear_threshold if ear_threshold is None else ear_threshold,
            mar_threshold=state.mar_threshold if mar_threshold is None else mar_threshold,
            fatigue_event_threshold=(
                state.fatigue_event_threshold
                if fatigue_event_threshold is None
                else fatigue_event_threshold
            ),
        )
        logger.info(
            "疲劳检测参数已更新: EAR=%.3f, MAR=%.3f, 事件阈值=%d",
            self._state.ear_threshold,
            self._state.mar_threshold,
            self._state.fatigue_event_threshold,
        )

    def start_calibration(self, timestamp_ms: Optional[int] = None) -> None:
        """
        开始校准。

        Args:
            timestamp_ms: 校准起始时间；为 None 时以下一帧的时间戳为起点
        """
        self._state = replace(self._state, calibration=self.calibrator.start(timestamp_ms))
        self._notify("on_calibration_started")

    def stop_calibration(self) -> None:
        """立即取消校准，不发送完成通知"""
        if self._state.calibration.active:
            logger.info("校准已停止")
        self._state = replace(self._state, calibration=self.calibrator.stop())

    # ---- 查询 ----

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def fatigue_event_count(self) -> int:
        return self._state.fatigue_event_count

    @property
    def current_fatigue_level(self) -> FatigueLevel:
        return self._state.fatigue_level

    @property
    def is_calibrating(self) -> bool:
        return self._state.calibration.active

    @property
    def is_active(self) -> bool:
        return self._state.active

    @property
    def ear_threshold(self) -> float:
        return self._state.ear_threshold

    def calibration_progress(self, now_ms: Optional[int] = None) -> int:
        """校准进度 0~100，未校准时为 0；now_ms 默认为最近一帧时间戳"""
        if now_ms is None:
            now_ms = self._state.last_timestamp_ms
        return self.calibrator.progress(self._state.calibration, now_ms)

    def recent_blink_count(self, window_ms: int, now_ms: Optional[int] = None) -> int:
        """最近 window_ms 毫秒内的眨眼次数；now_ms 默认为最近一帧时间戳"""
        if now_ms is None:
            now_ms = self._state.last_timestamp_ms
        if now_ms is None:
            return 0
        blink_state, count = self.blink_tracker.recent_blink_count(
            self._state.blink, window_ms, now_ms
        )
        self._state = replace(self._state, blink=blink_state)
        return count
