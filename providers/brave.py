"""
Brave Search Images API 适配器
API 文档: https://api.search.brave.com/app/documentation/image-search
"""
from typing import Any, Dict, List, Optional

from config import Settings
from core import ProviderOptions

from .base import RateLimitedProvider


class BraveProvider(RateLimitedProvider):
    """Brave 图片搜索 (免费档每秒 1 次请求)"""

    BASE_URL = "https://api.search.brave.com/res/v1/images/search"

    page_size = 20

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings, requests_per_second=1.0)
        self._api_key = self.settings.brave.api_key

    @property
    def tag(self) -> str:
        return "brave"

    @property
    def name(self) -> str:
        return "Brave Images"

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "X-Subscription-Token": str(self._api_key or ""),
        }

    async def _search(self, query: str, offset: int, options: ProviderOptions) -> List[Dict[str, Any]]:
        await self._wait_for_rate_limit()
        params = {
            "q": query,
            "count": self.page_size,
            "offset": offset,
            "safesearch": "moderate",
            "size": "large",
        }
        data = await self._get_json(self.BASE_URL, params=params, headers=self._headers())
        results = data.get("results") if isinstance(data, dict) else None
        return [
            item
            for item in (results or [])
            if isinstance(item, dict) and str((item.get("properties") or {}).get("url") or "").startswith("http")
        ]
