"""综合疲劳判断模块"""

from models.data_models import EyeClosure, FatigueEvent, FatigueLevel, HighBlinkFrequency, Yawn

DEFAULT_FATIGUE_EVENT_THRESHOLD = 3
SEVERE_FATIGUE_MULTIPLIER = 2


def fatigue_level(count: int, threshold: int = DEFAULT_FATIGUE_EVENT_THRESHOLD) -> FatigueLevel:
    """
    根据累计疲劳事件数确定疲劳级别。

    Args:
        count: 累计疲劳事件数
        threshold: 中度疲劳事件阈值，严重疲劳为其两倍

    Returns:
        FatigueLevel
    """
    if count >= threshold * SEVERE_FATIGUE_MULTIPLIER:
        return FatigueLevel.SEVERE
    if count >= threshold:
        return FatigueLevel.MODERATE
    return FatigueLevel.NORMAL


def describe_event(event: FatigueEvent) -> str:
    """事件的可读描述"""
    if isinstance(event, EyeClosure):
        return f"闭眼 {event.duration_ms}ms"
    if isinstance(event, Yawn):
        return f"哈欠 {event.duration_ms}ms"
    if isinstance(event, HighBlinkFrequency):
        return f"高频眨眼 {event.count}次/分钟"
    raise TypeError(f"未知的疲劳事件类型: {type(event).__name__}")
