"""
Settings Configuration
使用 Pydantic 进行配置验证和管理
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from core import PipelineConfig


class GoogleImagesSettings(BaseSettings):
    """Google Programmable Search (Custom Search JSON API) 配置"""
    api_key: Optional[str] = Field(default=None, description="Google API Key")
    cx: Optional[str] = Field(default=None, description="Search Engine ID")

    class Config:
        env_prefix = "GOOGLE_CSE_"


class SerpApiSettings(BaseSettings):
    """SerpApi (google_images engine) 配置，付费接口"""
    api_key: Optional[str] = Field(default=None, description="SerpApi Key")

    class Config:
        env_prefix = "SERPAPI_"


class BraveSettings(BaseSettings):
    """Brave Search Images API 配置"""
    api_key: Optional[str] = Field(default=None, description="Brave Subscription Token")

    class Config:
        env_prefix = "BRAVE_"


class BingSettings(BaseSettings):
    """Bing 图片 HTML 抓取配置 (无需 Key)"""
    enabled: bool = Field(default=True, description="是否启用 Bing 抓取")
    market: str = Field(default="en-US", description="市场/语言")

    class Config:
        env_prefix = "BING_"


class GeneralSettings(BaseSettings):
    """通用设置"""
    request_timeout: int = Field(default=8, description="单个请求超时时间(秒)")
    max_retries: int = Field(default=2, description="最大重试次数")
    user_agent: str = Field(
        default="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/128.0 Safari/537.36",
        description="抓取时使用的 User-Agent",
    )

    class Config:
        env_prefix = "GENERAL_"


class CurationSettings(BaseSettings):
    """结果筛选/去重/补量配置"""
    enabled_providers: List[str] = Field(
        default_factory=lambda: ["google_cse", "serpapi", "brave", "bing"],
        description="启用的图片源",
    )
    allow_paid_providers: bool = Field(default=True, description="是否允许调用付费接口")
    pages_per_provider: int = Field(default=3, description="每个图片源并发请求的分页数")
    offset_step: int = Field(default=20, description="分页步长")
    fanout_concurrency: int = Field(default=8, description="fan-out 并发上限")
    enrichment_concurrency: int = Field(default=8, description="页面补全并发上限")
    enrichment_timeout: float = Field(default=6.0, description="页面补全超时(秒)")
    min_dimension: int = Field(default=1000, description="最小边长阈值(px)")
    min_byte_size: int = Field(default=150_000, description="最小文件大小(bytes)")
    target_floor: int = Field(default=25, description="结果数量下限，低于则触发补量")
    max_recovery_tiers: int = Field(default=3, description="最多执行的补量阶段数")
    supplemental_provider: Optional[str] = Field(default="serpapi", description="补量阶段使用的图片源")
    language_filter: bool = Field(default=True, description="过滤非拉丁文字内容")
    content_type_probe: bool = Field(default=True, description="对无扩展名 URL 发起 HEAD 检查")
    heuristic_entity_pairing: bool = Field(default=True, description="无连接词时按词数猜测多实体")

    class Config:
        env_prefix = "CURATION_"


class Settings(BaseSettings):
    """主配置类 - 聚合所有子配置"""

    google_cse: GoogleImagesSettings = Field(default_factory=GoogleImagesSettings)
    serpapi: SerpApiSettings = Field(default_factory=SerpApiSettings)
    brave: BraveSettings = Field(default_factory=BraveSettings)
    bing: BingSettings = Field(default_factory=BingSettings)
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    curation: CurationSettings = Field(default_factory=CurationSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """从指定的 .env 文件加载配置"""
        if env_path is None:
            # 默认查找 config/.env
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            google_cse=GoogleImagesSettings(),
            serpapi=SerpApiSettings(),
            brave=BraveSettings(),
            bing=BingSettings(),
            general=GeneralSettings(),
            curation=CurationSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """获取全局配置单例"""
    return Settings.load_from_env_file()


def build_pipeline_config(settings: Optional[Settings] = None, **overrides) -> PipelineConfig:
    """
    把环境配置转换为一次性传入管线的 PipelineConfig

    管线内部各阶段只读取 PipelineConfig，不直接访问全局配置。
    """
    settings = settings or get_settings()
    curation = settings.curation
    values = {
        "enabled_providers": tuple(curation.enabled_providers),
        "allow_paid_providers": curation.allow_paid_providers,
        "pages_per_provider": max(1, min(5, int(curation.pages_per_provider))),
        "offset_step": max(1, int(curation.offset_step)),
        "provider_timeout_sec": float(max(1, settings.general.request_timeout)),
        "fanout_concurrency": max(1, int(curation.fanout_concurrency)),
        "enrichment_concurrency": max(1, int(curation.enrichment_concurrency)),
        "enrichment_timeout_sec": float(max(0.5, curation.enrichment_timeout)),
        "min_dimension": max(0, int(curation.min_dimension)),
        "min_byte_size": max(0, int(curation.min_byte_size)),
        "target_floor": max(0, int(curation.target_floor)),
        "max_recovery_tiers": max(1, min(3, int(curation.max_recovery_tiers))),
        "supplemental_provider": curation.supplemental_provider or None,
        "language_filter": curation.language_filter,
        "content_type_probe": curation.content_type_probe,
        "heuristic_entity_pairing": curation.heuristic_entity_pairing,
    }
    values.update(overrides)
    return PipelineConfig(**values)

