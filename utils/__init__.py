"""
Utils Module
通用工具函数
"""
from .logger import setup_logger, configure_package_loggers, format_stats
from .exceptions import (
    HiresError,
    ConfigurationError,
    InvalidRequestError,
    ProviderError,
    EnrichmentError,
)

__all__ = [
    "setup_logger",
    "configure_package_loggers",
    "format_stats",
    "HiresError",
    "ConfigurationError",
    "InvalidRequestError",
    "ProviderError",
    "EnrichmentError",
]
