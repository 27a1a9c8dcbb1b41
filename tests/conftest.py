from __future__ import annotations

import asyncio
import re
from typing import Any, Callable, Dict, List, Optional

import pytest

from core import Candidate, PipelineConfig, ProviderOptions


class FakeProvider:
    """In-memory provider adapter; records every call it receives."""

    def __init__(
        self,
        tag: str,
        records: Optional[Callable[[str, int], List[Dict[str, Any]]]] = None,
        *,
        paid: bool = False,
        configured: bool = True,
        supports_pagination: bool = True,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        page_size: Optional[int] = None,
    ) -> None:
        self.tag = tag
        self.name = tag
        self.paid = paid
        self.page_size = page_size
        self.supports_pagination = supports_pagination
        self._configured = configured
        self._records = records or (lambda query, offset: [])
        self._error = error
        self._delay = delay
        self.calls: List[tuple] = []

    def is_configured(self) -> bool:
        return self._configured

    async def search(self, query: str, offset: int, options: ProviderOptions) -> List[Dict[str, Any]]:
        self.calls.append((query, offset))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._records(query, offset)

    async def close(self) -> None:
        return None


def slug(text: str) -> str:
    return re.sub(r"[^0-9a-z]+", "-", str(text).lower()).strip("-")


def image_records(tag: str, count: int, *, title: str, width: int = 2000, height: int = 1500):
    """Record factory producing ``count`` distinct JPEGs per (query, offset)."""

    def _records(query: str, offset: int) -> List[Dict[str, Any]]:
        return [
            {
                "image_url": f"https://{tag}.example.com/photos/{tag}-{slug(query)}-{offset}-{index}.jpg",
                "page_url": f"https://{tag}.example.com/gallery/{offset}/{index}",
                "title": title,
                "width": width,
                "height": height,
            }
            for index in range(count)
        ]

    return _records


@pytest.fixture
def make_candidate() -> Callable[..., Candidate]:
    def _make(image_url: str = "https://img.example.com/photos/sunset.jpg", **fields: Any) -> Candidate:
        payload: Dict[str, Any] = {
            "image_url": image_url,
            "page_url": "https://www.example.com/gallery/sunset",
            "title": "Sunset over the beach",
            "source_domain": "example.com",
            "width": 2000,
            "height": 1500,
            "provider_tag": "google_cse",
        }
        payload.update(fields)
        return Candidate(**payload)

    return _make


@pytest.fixture
def fake_config() -> Callable[..., PipelineConfig]:
    def _config(**overrides: Any) -> PipelineConfig:
        values: Dict[str, Any] = {
            "enabled_providers": ("alpha", "beta", "gamma"),
            "pages_per_provider": 1,
            "enable_enrichment": False,
            "provider_timeout_sec": 1.0,
            "supplemental_provider": None,
        }
        values.update(overrides)
        return PipelineConfig(**values)

    return _config
