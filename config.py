"""检测参数配置"""

import json
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# 默认阈值
DEFAULTS = {
    "ear_threshold": 0.2,
    "mar_threshold": 0.7,
    "fatigue_event_threshold": 3,
}


def load_config(config_path: Optional[str] = None) -> dict:
    """从 JSON 配置文件加载阈值参数，缺失字段使用默认值。"""
    config = dict(DEFAULTS)

    if config_path is None:
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning("配置文件不存在 %s，使用默认阈值", config_path)
        return config
    except json.JSONDecodeError:
        logger.warning("配置文件格式错误 %s，使用默认阈值", config_path)
        return config

    if not isinstance(data, dict):
        logger.warning("配置文件内容不是对象 %s，使用默认阈值", config_path)
        return config

    # 用配置文件中的值覆盖默认值
    for key in DEFAULTS:
        if key in data and data[key] is not None:
            config[key] = data[key]

    return config


def validate_config(config: dict) -> dict:
    """合并默认值并检查阈值为正数"""
    merged = dict(DEFAULTS)
    merged.update({k: v for k, v in config.items() if k in DEFAULTS and v is not None})
    for key, value in merged.items():
        if value <= 0:
            raise ValueError(f"{key} 必须为正数: {value}")
    return merged
