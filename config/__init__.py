"""
Configuration Management Module
统一配置管理，实现API配置解耦
"""
from .settings import (
    Settings,
    get_settings,
    build_pipeline_config,
)

__all__ = [
    "Settings",
    "get_settings",
    "build_pipeline_config",
]
