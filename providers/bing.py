"""
Bing 图片 HTML 抓取适配器 (无需 API Key)
从搜索结果页 a.iusc 的 m 属性 (JSON) 中提取图片/页面 URL
"""
from typing import Any, Dict, List, Optional
import json
import logging

from bs4 import BeautifulSoup

from config import Settings
from core import ProviderOptions, SortMode

from .base import RateLimitedProvider


logger = logging.getLogger(__name__)


def parse_iusc_records(html: str) -> List[Dict[str, Any]]:
    """Extract the metadata JSON attached to each Bing image tile."""
    soup = BeautifulSoup(html or "", "lxml")
    records: List[Dict[str, Any]] = []
    seen = set()
    for tile in soup.select("a.iusc"):
        raw = tile.get("m")
        if not raw:
            continue
        try:
            meta = json.loads(raw)
        except (TypeError, ValueError):
            continue
        if not isinstance(meta, dict):
            continue
        image_url = str(meta.get("murl") or meta.get("imgurl") or "")
        if not image_url.lower().startswith(("http://", "https://")):
            continue
        key = image_url.lower()
        if key in seen:
            continue
        seen.add(key)
        records.append(meta)
    return records


class BingProvider(RateLimitedProvider):
    """
    Bing 图片抓取

    特性:
    - qft 过滤: 大图 + 照片
    - recent 排序时只取最近 7 天
    """

    BASE_URL = "https://www.bing.com/images/search"

    page_size = 35

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings, requests_per_second=5.0)
        self._enabled = self.settings.bing.enabled
        self._market = self.settings.bing.market

    @property
    def tag(self) -> str:
        return "bing"

    @property
    def name(self) -> str:
        return "Bing Images"

    def is_configured(self) -> bool:
        return bool(self._enabled)

    def build_params(self, query: str, offset: int, options: ProviderOptions) -> Dict[str, Any]:
        qft = ["+filterui:imagesize-large", "+filterui:photo-photo"]
        if options.sort_mode == SortMode.RECENT:
            qft.append("+filterui:age-lt7days")
        return {
            "q": query,
            "qft": "".join(qft),
            "first": max(0, offset),
            "mkt": self._market,
        }

    async def _search(self, query: str, offset: int, options: ProviderOptions) -> List[Dict[str, Any]]:
        await self._wait_for_rate_limit()
        html = await self._get_text(self.BASE_URL, params=self.build_params(query, offset, options))
        records = parse_iusc_records(html)
        if not records:
            logger.debug(f"[{self.name}] no iusc tiles for '{query}' @ {offset}")
        return records
