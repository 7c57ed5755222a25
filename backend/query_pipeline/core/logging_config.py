"""
日志配置模块

- setup_logging: 按配置（LOG_LEVEL / LOG_FILE）初始化根日志器，控制台输出到 stderr，
  stdout 留给命令行的 JSON 结果
- OperationLogger: 记录一次增强请求的耗时，超过阈值时提升为 WARNING
- log_async_function_call: 记录异步阶段的调用与异常
"""
import functools
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from query_pipeline.config import settings
from .exceptions import ConfigurationError


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ColorFormatter(logging.Formatter):
    """彩色日志格式化器，只修改副本，文件日志不受影响"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        colored = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, "")
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def resolve_level(level: Optional[str]) -> int:
    """日志级别名转为数值，未知级别视为配置错误"""
    name = (level or settings.LOG_LEVEL).strip().upper()
    if name not in LEVELS:
        raise ConfigurationError(
            f"Unknown log level: {name!r}. Available: {list(LEVELS)}",
            config_key="LOG_LEVEL",
            value=level,
        )
    return getattr(logging, name)


def _build_handlers(log_file: Optional[str], use_color: bool) -> List[logging.Handler]:
    plain = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(
        ColorFormatter(LOG_FORMAT, DATE_FORMAT) if use_color and sys.stderr.isatty() else plain
    )
    handlers: List[logging.Handler] = [console]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(plain)
        handlers.append(file_handler)

    return handlers


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    use_color: bool = True,
) -> None:
    """
    配置日志系统

    Args:
        level: 日志级别，默认取 settings.LOG_LEVEL
        log_file: 日志文件路径，默认取 settings.LOG_FILE
        use_color: 终端输出是否着色
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(resolve_level(level))
    root_logger.handlers = _build_handlers(log_file or settings.LOG_FILE, use_color)


class OperationLogger:
    """
    操作耗时记录

    同时支持 with / async with。耗时超过 slow_ms 时以 WARNING 输出，
    便于发现接近时间预算的增强请求。
    """

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        level: int = logging.INFO,
        slow_ms: Optional[float] = None,
    ):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.slow_ms = slow_ms
        self.elapsed_ms: Optional[float] = None
        self._started: Optional[float] = None

    @property
    def is_slow(self) -> bool:
        return (
            self.slow_ms is not None
            and self.elapsed_ms is not None
            and self.elapsed_ms > self.slow_ms
        )

    def __enter__(self):
        self._started = time.perf_counter()
        self.logger.debug(f"{self.operation} started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self._started) * 1000
        if exc_type:
            self.logger.error(f"{self.operation} failed after {self.elapsed_ms:.1f}ms: {exc_val}")
        elif self.is_slow:
            self.logger.warning(
                f"{self.operation} took {self.elapsed_ms:.1f}ms (slow threshold {self.slow_ms:.0f}ms)"
            )
        else:
            self.logger.log(self.level, f"{self.operation} finished in {self.elapsed_ms:.1f}ms")
        return False

    async def __aenter__(self):
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return self.__exit__(exc_type, exc_val, exc_tb)


def log_async_function_call(logger: logging.Logger):
    """异步阶段调用日志装饰器，异常原样抛出"""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            logger.debug(f"-> {func.__qualname__}")
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.error(f"{func.__qualname__} raised {type(e).__name__}: {e}")
                raise
        return wrapper
    return decorator
