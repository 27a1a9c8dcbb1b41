from __future__ import annotations

import logging

import pytest

import main
from config.settings import Settings
from utils.exceptions import InvalidRequestError, ProviderError
from utils.logger import configure_package_loggers, format_stats, setup_logger


def test_format_stats_sorted_and_skips_zero() -> None:
    assert format_stats({"raw_records": 12, "adapter_failures": 0, "adapter_calls": 3}) == (
        "adapter_calls=3 raw_records=12"
    )


def test_setup_logger_does_not_stack_handlers() -> None:
    first = setup_logger("hires-test", level=logging.INFO, use_rich=False)
    second = setup_logger("hires-test", level=logging.DEBUG, use_rich=False)

    assert first is second
    assert len(second.handlers) == 1
    assert second.handlers[0].level == logging.DEBUG


def test_configure_package_loggers_quiets_http_client() -> None:
    configure_package_loggers(level=logging.DEBUG, use_rich=False, packages=("hires-pkg-test",))

    assert logging.getLogger("httpx").level == logging.WARNING


def test_exception_details_render_in_message() -> None:
    error = ProviderError("HTTP 429", source="brave", status_code=429)

    assert str(error) == "HTTP 429 (source=brave, status=429)"
    assert str(InvalidRequestError("Query is empty", query="")) == "Query is empty"


def test_cli_rejects_unknown_provider_tags(monkeypatch) -> None:
    monkeypatch.setattr(main, "get_settings", lambda: Settings())

    with pytest.raises(main.ConfigurationError):
        main.build_pipeline(["bing", "flickr"])

    pipeline = main.build_pipeline(["bing"], enable_enrichment=False)
    assert [provider.tag for provider in pipeline.fanout.active_providers()] == ["bing"]
