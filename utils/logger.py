"""
Logger Configuration
统一日志配置: providers / curation 两个包共用一个 Rich handler
"""
import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional

from rich.console import Console
from rich.logging import RichHandler


# 日志走 stderr，stdout 留给 --json 输出
console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DIR = Path(__file__).parent.parent / "logs"

PACKAGE_LOGGERS = ("providers", "curation")
# httpx 在 INFO 级别会逐条打印请求
NOISY_LOGGERS = ("httpx", "httpcore")


def _build_handler(level: int, use_rich: bool) -> logging.Handler:
    if use_rich:
        handler: logging.Handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    return handler


def setup_logger(
    name: str = "hires",
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    use_rich: bool = True,
) -> logging.Logger:
    """
    设置日志记录器

    重复调用只会调整级别，不会叠加 handler。

    Args:
        name: 日志记录器名称 (通常是包名)
        level: 日志级别
        log_file: 写入 logs/ 目录下的文件名 (可选)
        use_rich: 是否使用 Rich 输出
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    logger.addHandler(_build_handler(level, use_rich))

    if log_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOG_DIR / log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger


def configure_package_loggers(
    level: int = logging.INFO,
    use_rich: bool = True,
    log_file: Optional[str] = None,
    packages: Iterable[str] = PACKAGE_LOGGERS,
) -> None:
    """CLI 启动时调用一次: 配置各包日志并压低 HTTP 客户端的请求日志"""
    for name in packages:
        setup_logger(name, level=level, log_file=log_file, use_rich=use_rich)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def format_stats(stats: Mapping[str, int]) -> str:
    """把阶段计数压成一行: ``adapter_calls=9 raw_records=120 ...``"""
    return " ".join(f"{key}={stats[key]}" for key in sorted(stats) if stats[key])
