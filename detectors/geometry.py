"""关键点几何计算模块，负责计算 EAR 和 MAR"""

import logging
import math
from typing import List, Sequence, Tuple

from models.data_models import Point

logger = logging.getLogger(__name__)

# 关键点索引（MediaPipe FaceMesh 468 点），顺序为 p1..p6
LEFT_EYE_INDICES = [33, 160, 158, 133, 153, 144]
RIGHT_EYE_INDICES = [362, 385, 387, 263, 373, 380]
MOUTH_INDICES = [78, 82, 312, 308, 317, 87]

_MIN_HORIZONTAL = 1e-6


def aspect_ratio(points: Sequence[Point], indices: List[int]) -> float:
    """
    计算 6 点纵横比。

    公式: ratio = (|p2-p6| + |p3-p5|) / (2 * |p1-p4|)

    Args:
        points: 一张人脸的全部关键点，只使用 x, y
        indices: 6 个关键点索引

    Returns:
        纵横比；索引不足、越界、分母接近零或坐标异常时返回 0.0
    """
    if len(indices) < 6:
        logger.debug("关键点索引不足: %d", len(indices))
        return 0.0
    if any(idx < 0 or idx >= len(points) for idx in indices[:6]):
        logger.debug("关键点索引越界: %s, 关键点数量 %d", indices, len(points))
        return 0.0

    try:
        p1, p2, p3, p4, p5, p6 = ((points[i][0], points[i][1]) for i in indices[:6])
        vertical_1 = math.dist(p2, p6)
        vertical_2 = math.dist(p3, p5)
        horizontal = math.dist(p1, p4)
    except (TypeError, ValueError, IndexError):
        logger.debug("关键点坐标格式错误: %s", indices)
        return 0.0

    if not horizontal >= _MIN_HORIZONTAL:
        return 0.0

    ratio = (vertical_1 + vertical_2) / (2.0 * horizontal)
    if not math.isfinite(ratio):
        return 0.0
    return ratio


def eye_ratios(points: Sequence[Point]) -> Tuple[float, float]:
    """返回 (左眼 EAR, 右眼 EAR)"""
    return aspect_ratio(points, LEFT_EYE_INDICES), aspect_ratio(points, RIGHT_EYE_INDICES)


def calculate_ear(points: Sequence[Point]) -> float:
    """双眼 EAR 平均值，任一只眼无效时返回 0.0"""
    left, right = eye_ratios(points)
    if left == 0.0 or right == 0.0:
        return 0.0
    return (left + right) / 2.0


def calculate_mar(points: Sequence[Point]) -> float:
    """嘴巴 MAR 值"""
    return aspect_ratio(points, MOUTH_INDICES)
