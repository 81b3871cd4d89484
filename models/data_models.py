"""核心数据模型定义"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

# 归一化坐标点 (x, y) 或 (x, y, z)
Point = Sequence[float]


@dataclass
class LandmarkFrame:
    """单帧人脸关键点，faces 为空表示本帧未检测到人脸"""
    timestamp_ms: int
    faces: List[List[Point]] = field(default_factory=list)

    @property
    def has_face(self) -> bool:
        return len(self.faces) > 0

    @property
    def primary_face(self) -> Optional[List[Point]]:
        """只使用第一张人脸"""
        return self.faces[0] if self.faces else None


class FatigueLevel(Enum):
    """疲劳级别"""
    NORMAL = "normal"
    MODERATE = "moderate"
    SEVERE = "severe"


@dataclass(frozen=True)
class EyeClosure:
    """持续闭眼事件"""
    duration_ms: int


@dataclass(frozen=True)
class Yawn:
    """哈欠事件"""
    duration_ms: int


@dataclass(frozen=True)
class HighBlinkFrequency:
    """一分钟窗口内眨眼次数过高"""
    count: int


FatigueEvent = Union[EyeClosure, Yawn, HighBlinkFrequency]


@dataclass(frozen=True)
class DetectionResult:
    """单帧检测结果快照"""
    is_fatigue_detected: bool
    fatigue_level: FatigueLevel
    events: Tuple[FatigueEvent, ...] = ()


@dataclass(frozen=True)
class CalibrationResult:
    """基线校准结果"""
    new_threshold: float
    min_ear: float
    max_ear: float
    avg_ear: float
    sample_count: int


# ---- 各检测器状态，由 DetectionSession 统一持有 ----

@dataclass(frozen=True)
class EyeState:
    is_closed: bool = False
    closure_start_ms: int = 0
    # 本次闭眼已经上报过事件
    confirmed: bool = False


@dataclass(frozen=True)
class MouthState:
    is_open: bool = False
    open_start_ms: int = 0
    confirmed: bool = False


@dataclass(frozen=True)
class BlinkState:
    count: int = 0
    window_start_ms: Optional[int] = None
    last_blink_ms: Optional[int] = None
    log: Tuple[int, ...] = ()


@dataclass(frozen=True)
class CalibrationState:
    active: bool = False
    start_ms: Optional[int] = None
    samples: Tuple[float, ...] = ()


@dataclass(frozen=True)
class EyeResult:
    """眼睛检测器单步输出"""
    state: EyeState
    event: Optional[EyeClosure] = None
    is_blink: bool = False


@dataclass(frozen=True)
class MouthResult:
    """嘴巴检测器单步输出"""
    state: MouthState
    event: Optional[Yawn] = None


@dataclass(frozen=True)
class CalibrationUpdate:
    """校准器单步输出"""
    state: CalibrationState
    progress: Optional[int] = None
    current_ear: float = 0.0
    result: Optional[CalibrationResult] = None
    finished: bool = False


@dataclass(frozen=True)
class SessionState:
    """检测会话的全部可变状态"""
    ear_threshold: float
    mar_threshold: float
    fatigue_event_threshold: int
    eye: EyeState = EyeState()
    mouth: MouthState = MouthState()
    blink: BlinkState = BlinkState()
    calibration: CalibrationState = CalibrationState()
    fatigue_event_count: int = 0
    fatigue_level: FatigueLevel = FatigueLevel.NORMAL
    active: bool = False
    last_timestamp_ms: Optional[int] = None
