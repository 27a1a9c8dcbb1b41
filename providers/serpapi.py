"""
SerpApi google_images 适配器 (付费)
API 文档: https://serpapi.com/google-images-api
"""
from typing import Any, Dict, List, Optional

from config import Settings
from core import ProviderOptions, SortMode

from .base import BaseImageProvider


class SerpApiProvider(BaseImageProvider):
    """
    SerpApi 图片搜索

    单页最多 100 条，是补量阶段的默认来源。
    """

    BASE_URL = "https://serpapi.com/search.json"

    paid = True
    page_size = 100

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings)
        self._api_key = self.settings.serpapi.api_key

    @property
    def tag(self) -> str:
        return "serpapi"

    @property
    def name(self) -> str:
        return "SerpApi"

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def build_params(self, query: str, offset: int, options: ProviderOptions) -> Dict[str, Any]:
        return {
            "engine": "google_images",
            "q": query,
            "api_key": self._api_key,
            # isz:l = 只要大图
            "tbs": "isz:l,sort:date" if options.sort_mode == SortMode.RECENT else "isz:l",
            "ijn": offset // self.page_size,
            "start": offset + 1,
            "num": self.page_size,
        }

    async def _search(self, query: str, offset: int, options: ProviderOptions) -> List[Dict[str, Any]]:
        data = await self._get_json(self.BASE_URL, params=self.build_params(query, offset, options))
        if not isinstance(data, dict):
            return []
        if data.get("error"):
            self._log_error(f"Search '{query}' rejected", RuntimeError(str(data["error"])))
            return []
        results = data.get("images_results") or []
        return [item for item in results if isinstance(item, dict) and item.get("original")]
