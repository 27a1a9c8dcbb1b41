"""
Google Programmable Search (Custom Search JSON API) 图片适配器
API 文档: https://developers.google.com/custom-search/v1/reference/rest/v1/cse/list
"""
from typing import Any, Dict, List, Optional

from config import Settings
from core import ProviderOptions, SortMode

from .base import BaseImageProvider


class GoogleImagesProvider(BaseImageProvider):
    """
    Google CSE 图片搜索

    限制:
    - 每次最多 10 条
    - start 参数最大 91 (即最多 100 条)
    - 查询串过长会被拒绝，黑名单只追加前若干个域名
    """

    BASE_URL = "https://www.googleapis.com/customsearch/v1"
    MAX_START = 91
    MAX_BLACKLIST_SITES = 12

    page_size = 10

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings)
        self._api_key = self.settings.google_cse.api_key
        self._cx = self.settings.google_cse.cx

    @property
    def tag(self) -> str:
        return "google_cse"

    @property
    def name(self) -> str:
        return "Google Images"

    def is_configured(self) -> bool:
        return bool(self._api_key and self._cx)

    def build_query(self, query: str, options: ProviderOptions) -> str:
        sites = [f"-site:{domain}" for domain in options.blacklist[: self.MAX_BLACKLIST_SITES]]
        return " ".join([query] + sites)

    def build_params(self, query: str, offset: int, options: ProviderOptions) -> Dict[str, Any]:
        params = {
            "key": self._api_key,
            "cx": self._cx,
            "q": self.build_query(query, options),
            "searchType": "image",
            "num": self.page_size,
            "start": max(1, min(self.MAX_START, offset % 90 + 1)),
            "imgSize": "xxlarge",
            "imgType": "photo",
            "safe": "off",
        }
        if options.sort_mode == SortMode.RECENT:
            params["sort"] = "date"
        return params

    async def _search(self, query: str, offset: int, options: ProviderOptions) -> List[Dict[str, Any]]:
        data = await self._get_json(self.BASE_URL, params=self.build_params(query, offset, options))
        items = data.get("items") if isinstance(data, dict) else None
        return [item for item in (items or []) if isinstance(item, dict) and item.get("link")]
