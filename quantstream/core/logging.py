import sys
import logging
from typing import Optional

from quantstream.config.settings import settings

PLAIN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
JSON_FORMAT = '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}'


def setup_logging(level: Optional[str] = None, json_format: Optional[bool] = None) -> logging.Logger:
    """配置日志系统

    Args:
        level: 日志级别，默认读取 settings.LOG_LEVEL
        json_format: 是否输出 JSON 格式，默认读取 settings.LOG_JSON_FORMAT

    Returns:
        quantstream 包级 logger
    """
    level = level or settings.LOG_LEVEL
    if json_format is None:
        json_format = settings.LOG_JSON_FORMAT

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # 清除现有的 handlers，避免重复输出
    root_logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(JSON_FORMAT if json_format else PLAIN_FORMAT))
    root_logger.addHandler(handler)

    return logger


logger = logging.getLogger("quantstream")
