"""
Base Image Provider
所有图片源适配器的抽象基类
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import asyncio
import logging
import time

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from config import Settings, get_settings
from core import ProviderOptions
from utils.exceptions import ProviderError


logger = logging.getLogger(__name__)


class BaseImageProvider(ABC):
    """
    图片源适配器抽象基类

    子类实现 ``_search`` 返回原始记录 (字段结构因图片源而异)，
    ``search`` 负责把任何失败转换为空列表，保证 fan-out 不被打断。
    """

    paid: bool = False
    page_size: int = 20
    supports_pagination: bool = True

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._client: Optional[httpx.AsyncClient] = None

    @property
    @abstractmethod
    def tag(self) -> str:
        """返回图片源标识 (与 normalizer 注册名一致)"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """返回图片源名称"""
        pass

    @abstractmethod
    async def _search(self, query: str, offset: int, options: ProviderOptions) -> List[Dict[str, Any]]:
        """
        实际的搜索请求

        Args:
            query: 已改写的查询
            offset: 结果偏移量
            options: 排序模式 / 黑名单 / 最小尺寸

        Returns:
            原始记录列表
        """
        pass

    def is_configured(self) -> bool:
        """
        检查是否已正确配置
        子类可以覆盖此方法来检查必要的API密钥等
        """
        return True

    async def search(
        self,
        query: str,
        offset: int = 0,
        options: Optional[ProviderOptions] = None,
    ) -> List[Dict[str, Any]]:
        """搜索接口，失败时返回空列表"""
        if not self.is_configured():
            logger.debug(f"[{self.name}] not configured, returning no results")
            return []
        try:
            records = await self._search(query, max(0, int(offset)), options or ProviderOptions())
        except Exception as exc:
            self._log_error(f"Search '{query}' @ {offset} failed", exc)
            return []
        self._log_search(query, len(records))
        return records

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(float(self.settings.general.request_timeout))

    def _get_client(self) -> httpx.AsyncClient:
        """获取或创建 HTTP 客户端"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout(),
                follow_redirects=True,
                headers={"User-Agent": self.settings.general.user_agent},
            )
        return self._client

    def _retrying(self) -> AsyncRetrying:
        """429 / 5xx 与网络错误重试 ``general.max_retries`` 次"""
        return AsyncRetrying(
            retry=retry_if_exception_type((httpx.TransportError, ProviderError)),
            stop=stop_after_attempt(max(0, int(self.settings.general.max_retries)) + 1),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        )

    async def _request(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        async for attempt in self._retrying():
            with attempt:
                response = await self._get_client().get(url, params=params, headers=headers)
                if response.status_code == 429 or response.status_code >= 500:
                    raise ProviderError(
                        f"HTTP {response.status_code}",
                        source=self.tag,
                        status_code=response.status_code,
                        url=str(response.url),
                    )
        response.raise_for_status()
        return response

    async def _get_json(self, url: str, **kwargs) -> Any:
        response = await self._request(url, **kwargs)
        return response.json()

    async def _get_text(self, url: str, **kwargs) -> str:
        response = await self._request(url, **kwargs)
        return str(response.text or "")

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()

    async def close(self):
        """清理资源"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _log_search(self, query: str, count: int):
        """记录搜索日志"""
        logger.info(f"[{self.name}] Search '{query}' returned {count} results")

    def _log_error(self, message: str, error: Exception):
        """记录错误日志"""
        logger.warning(f"[{self.name}] {message}: {error}")


class RateLimitedProvider(BaseImageProvider):
    """
    带速率限制的图片源基类
    """

    def __init__(self, settings: Optional[Settings] = None, requests_per_second: float = 1.0):
        super().__init__(settings)
        self._rate_limit = requests_per_second
        self._last_request_time = 0.0
        self._lock = asyncio.Lock()

    async def _wait_for_rate_limit(self):
        """等待满足速率限制"""
        async with self._lock:
            current_time = time.monotonic()
            time_since_last = current_time - self._last_request_time
            min_interval = 1.0 / self._rate_limit

            if time_since_last < min_interval:
                await asyncio.sleep(min_interval - time_since_last)

            self._last_request_time = time.monotonic()
