"""
Providers Module
图片源适配器
"""
from typing import List, Optional

from config import Settings, get_settings

from .base import BaseImageProvider, RateLimitedProvider
from .bing import BingProvider
from .brave import BraveProvider
from .google_images import GoogleImagesProvider
from .serpapi import SerpApiProvider


def build_default_providers(settings: Optional[Settings] = None) -> List[BaseImageProvider]:
    """按优先级创建全部内置图片源 (是否启用由 PipelineConfig 决定)"""
    settings = settings or get_settings()
    return [
        GoogleImagesProvider(settings),
        SerpApiProvider(settings),
        BraveProvider(settings),
        BingProvider(settings),
    ]


__all__ = [
    "BaseImageProvider",
    "RateLimitedProvider",
    "GoogleImagesProvider",
    "SerpApiProvider",
    "BraveProvider",
    "BingProvider",
    "build_default_providers",
]
