"""
Custom Exceptions
图片搜索管线的异常层级

只有 InvalidRequestError 会穿透 search()/load_more() 抛给调用方，
其余异常在各阶段内部被转换为空结果并记录日志。
"""
from typing import Any, Dict, Optional


class HiresError(Exception):
    """图片搜索管线基础异常类"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = {key: value for key, value in (details or {}).items() if value is not None}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        extra = ", ".join(f"{key}={value}" for key, value in sorted(self.details.items()))
        return f"{self.message} ({extra})"


class ConfigurationError(HiresError):
    """配置错误 (未知的图片源标识等)"""


class InvalidRequestError(HiresError):
    """请求无效: 空查询 / 查询过短 / 分页参数越界，在 fan-out 之前抛出"""

    def __init__(self, message: str, query: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message, {"field": field})
        self.query = query
        self.field = field


class ProviderError(HiresError):
    """图片源返回限流或服务端错误，可重试"""

    def __init__(self, message: str, source: Optional[str] = None, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, {"source": source, "status": status_code, **kwargs})
        self.source = source
        self.status_code = status_code


class EnrichmentError(HiresError):
    """页面元数据补全失败 (非 HTML 页面等)"""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message, {"url": url})
        self.url = url
