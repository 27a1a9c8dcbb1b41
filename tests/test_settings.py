from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from config.settings import CurationSettings, GeneralSettings, Settings, build_pipeline_config
from core import PipelineConfig


def test_curation_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("CURATION_TARGET_FLOOR", "40")
    monkeypatch.setenv("CURATION_ALLOW_PAID_PROVIDERS", "false")
    monkeypatch.setenv("SERPAPI_API_KEY", "from-env")

    settings = Settings.load_from_env_file(Path("/nonexistent/.env"))

    assert settings.curation.target_floor == 40
    assert settings.curation.allow_paid_providers is False
    assert settings.serpapi.api_key == "from-env"


def test_pipeline_config_clamps_out_of_range_values() -> None:
    settings = Settings(
        curation=CurationSettings(pages_per_provider=9, max_recovery_tiers=7, target_floor=-3, supplemental_provider=""),
        general=GeneralSettings(request_timeout=0),
    )

    config = build_pipeline_config(settings)

    assert config.pages_per_provider == 5
    assert config.max_recovery_tiers == 3
    assert config.target_floor == 0
    assert config.supplemental_provider is None
    assert config.provider_timeout_sec == 1.0


def test_pipeline_config_overrides_win() -> None:
    config = build_pipeline_config(Settings(), enable_enrichment=False, enabled_providers=("bing",))

    assert config.enable_enrichment is False
    assert config.enabled_providers == ("bing",)


def test_pipeline_config_is_frozen() -> None:
    config = PipelineConfig()

    with pytest.raises(ValidationError):
        config.target_floor = 1


def test_pipeline_config_rejects_invalid_values() -> None:
    with pytest.raises(ValidationError):
        PipelineConfig(pages_per_provider=0)
