import logging
import sys

from .config import LOG_LEVEL

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(name: str) -> int:
    """将级别名解析为 logging 常量，无法识别时回退到 INFO。"""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    为 CLI 命令配置 stderr 日志。

    级别取自 CTRLZ_LOG_LEVEL，`verbose` 时强制为 DEBUG。
    已存在 handler 时 (例如宿主或测试框架已接管日志) 只调整级别。
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else resolve_level(LOG_LEVEL))

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT))
        root_logger.addHandler(handler)

    return root_logger
