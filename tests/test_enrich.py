from __future__ import annotations

import asyncio

import pytest

from core import PipelineConfig
from curation.enrich import (
    EmbeddedImage,
    MetadataEnricher,
    PageMetadata,
    extract_page_metadata,
    select_embedded_image,
)
from curation.quality_filter import QualityFilter
from curation.query_analyzer import analyze_query


PAGE_HTML = """
<html>
  <head>
    <title>Fallback title</title>
    <meta property="og:title" content="Taylor Swift and Travis Kelce courtside">
    <meta property="og:description" content="The couple at the game">
    <meta property="og:site_name" content="Example News">
    <meta property="og:image" content="/media/small-card.jpg">
    <meta property="og:image" content="https://cdn.example.com/media/hero-full.jpg">
    <meta property="og:image:width" content="600">
    <meta property="og:image:width" content="2400">
    <meta property="og:image:height" content="315">
    <meta property="og:image:height" content="1600">
    <link rel="image_src" href="https://cdn.example.com/media/link-src.jpg">
  </head>
  <body>
    <img src="/static/logo.png" alt="Example News logo">
    <img data-src="https://cdn.example.com/media/hero-full.jpg" alt="Stadium crowd">
    <img srcset="https://cdn.example.com/g/a-480.jpg 480w, https://cdn.example.com/g/a-1600.jpg 1600w" alt="Taylor Swift and Travis Kelce">
    <img src="data:image/gif;base64,R0lGOD" data-lazy-src="https://cdn.example.com/g/lazy.jpg" alt="">
  </body>
</html>
"""


def test_extract_page_metadata() -> None:
    metadata = extract_page_metadata(PAGE_HTML, "https://news.example.com/story/1")

    assert metadata.title == "Taylor Swift and Travis Kelce courtside"
    assert metadata.description == "The couple at the game"
    assert metadata.site_name == "Example News"
    assert metadata.meta_images == [
        "https://news.example.com/media/small-card.jpg",
        "https://cdn.example.com/media/hero-full.jpg",
        "https://cdn.example.com/media/link-src.jpg",
    ]
    assert metadata.best_guess == "https://cdn.example.com/media/hero-full.jpg"
    assert [image.url for image in metadata.images] == [
        "https://news.example.com/static/logo.png",
        "https://cdn.example.com/media/hero-full.jpg",
        "https://cdn.example.com/g/a-1600.jpg",
        "https://cdn.example.com/g/lazy.jpg",
    ]
    assert metadata.alt_for(metadata.best_guess) == "Stadium crowd"


def test_select_prefers_alt_matching_all_entities() -> None:
    metadata = extract_page_metadata(PAGE_HTML, "https://news.example.com/story/1")

    url, alt = select_embedded_image(metadata, analyze_query("Taylor Swift and Travis Kelce"))

    assert url == "https://cdn.example.com/g/a-1600.jpg"
    assert alt == "Taylor Swift and Travis Kelce"


def test_select_falls_back_to_best_guess() -> None:
    metadata = extract_page_metadata(PAGE_HTML, "https://news.example.com/story/1")

    url, alt = select_embedded_image(metadata, analyze_query("mountain lake"))

    assert url == "https://cdn.example.com/media/hero-full.jpg"
    assert alt == "Stadium crowd"


def test_select_ties_break_by_document_order() -> None:
    metadata = PageMetadata(
        images=[
            EmbeddedImage(url="https://x.example.com/first.jpg", alt="sunset beach"),
            EmbeddedImage(url="https://x.example.com/second.jpg", alt="sunset beach"),
        ]
    )

    url, _ = select_embedded_image(metadata, analyze_query("sunset beach"))

    assert url == "https://x.example.com/first.jpg"


def _enricher(monkeypatch, html: str = PAGE_HTML, error=None, **config):
    enricher = MetadataEnricher(PipelineConfig(**config))
    fetched = []

    async def _fake_fetch(url: str):
        fetched.append(url)
        return ("", error) if error else (html, None)

    monkeypatch.setattr(enricher, "_fetch_html", _fake_fetch)
    return enricher, fetched


@pytest.mark.asyncio
async def test_direct_image_is_not_fetched(monkeypatch, make_candidate) -> None:
    enricher, fetched = _enricher(monkeypatch)
    candidate = make_candidate("https://img.example.com/a.jpg")

    assert await enricher.enrich(candidate, analyze_query("sunset")) is candidate
    assert fetched == []


@pytest.mark.asyncio
async def test_page_candidate_resolves_to_image(monkeypatch, make_candidate) -> None:
    enricher, fetched = _enricher(monkeypatch, content_type_probe=False)
    candidate = make_candidate(
        "",
        page_url="https://news.example.com/story/1",
        title="",
        width=None,
        height=None,
        source_domain="",
    )

    enriched = await enricher.enrich(candidate, analyze_query("Taylor Swift and Travis Kelce"))

    assert fetched == ["https://news.example.com/story/1"]
    assert enriched.image_url == "https://cdn.example.com/g/a-1600.jpg"
    assert enriched.alt_text == "Taylor Swift and Travis Kelce"
    assert enriched.title == "Taylor Swift and Travis Kelce courtside"
    assert enriched.source_domain == "news.example.com"
    assert candidate.image_url == ""


@pytest.mark.asyncio
async def test_fetch_failure_leaves_candidate_unchanged(monkeypatch, make_candidate) -> None:
    enricher, _ = _enricher(monkeypatch, error="ConnectError: refused", content_type_probe=False)
    candidate = make_candidate("https://news.example.com/story/2", page_url="https://news.example.com/story/2")

    assert await enricher.enrich(candidate, analyze_query("sunset")) == candidate


@pytest.mark.asyncio
async def test_timeout_leaves_candidate_unchanged(monkeypatch, make_candidate) -> None:
    enricher = MetadataEnricher(PipelineConfig(enrichment_timeout_sec=0.05))

    async def _slow_fetch(url: str):
        await asyncio.sleep(1)
        return PAGE_HTML, None

    monkeypatch.setattr(enricher, "_fetch_html", _slow_fetch)
    candidate = make_candidate("", page_url="https://news.example.com/story/3")

    assert await enricher.enrich(candidate, analyze_query("sunset")) == candidate


@pytest.mark.asyncio
async def test_content_type_probe_for_extensionless_url(monkeypatch, make_candidate) -> None:
    enricher = MetadataEnricher(PipelineConfig())

    async def _fake_probe(url: str):
        assert url == "https://cdn.example.com/render?id=5"
        return "image/jpeg", 640_000, None

    monkeypatch.setattr(enricher, "_probe_content_type", _fake_probe)
    candidate = make_candidate("https://cdn.example.com/render?id=5", page_url="")

    enriched = await enricher.enrich(candidate, analyze_query("sunset"))

    assert enriched.content_type == "image/jpeg"
    assert enriched.byte_size == 640_000


@pytest.mark.asyncio
async def test_enrich_all_keeps_order_and_caps_concurrency(monkeypatch, make_candidate) -> None:
    enricher = MetadataEnricher(PipelineConfig(enrichment_concurrency=2, content_type_probe=False))
    in_flight = 0
    peak = 0

    async def _fake_fetch(url: str):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return "<html></html>", None

    monkeypatch.setattr(enricher, "_fetch_html", _fake_fetch)
    candidates = [
        make_candidate("", page_url=f"https://news.example.com/story/{index}", title=f"story {index}")
        for index in range(6)
    ] + [make_candidate("https://img.example.com/direct.jpg")]

    enriched = await enricher.enrich_all(candidates, analyze_query("sunset"))

    assert [candidate.title for candidate in enriched] == [candidate.title for candidate in candidates]
    assert peak == 2


LOGO_PAGE = '<meta property="og:image" content="https://cdn.example.com/site-logo?sig=ab,cd&amp;v">'


@pytest.mark.asyncio
async def test_confirmed_image_url_is_not_replaced(monkeypatch, make_candidate) -> None:
    enricher, fetched = _enricher(monkeypatch, html=LOGO_PAGE)
    probed = []

    async def _fake_probe(url: str):
        probed.append(url)
        return "text/html", None, None

    monkeypatch.setattr(enricher, "_probe_content_type", _fake_probe)
    candidate = make_candidate(
        "https://cdn.example.com/render?id=7",
        page_url="https://news.example.com/story/7",
        content_type="image/jpeg",
        width=3000,
        height=2000,
        byte_size=900_000,
    )

    enriched = await enricher.enrich(candidate, analyze_query("sunset"))

    assert fetched == ["https://news.example.com/story/7"]
    assert enriched.image_url == "https://cdn.example.com/render?id=7"
    assert (enriched.width, enriched.height, enriched.content_type) == (3000, 2000, "image/jpeg")
    assert probed == []


@pytest.mark.asyncio
async def test_replaced_image_url_drops_stale_size_and_is_probed(monkeypatch, make_candidate) -> None:
    config = PipelineConfig()
    enricher, _ = _enricher(monkeypatch, html=LOGO_PAGE)
    probed = []

    async def _fake_probe(url: str):
        probed.append(url)
        return "text/html", 4_000, None

    monkeypatch.setattr(enricher, "_probe_content_type", _fake_probe)
    candidate = make_candidate(
        "https://cdn.example.com/render?id=8",
        page_url="https://news.example.com/story/8",
        width=3000,
        height=2000,
        byte_size=900_000,
    )

    enriched = await enricher.enrich(candidate, analyze_query("sunset"))

    assert enriched.image_url == "https://cdn.example.com/site-logo?sig=ab,cd&v"
    assert probed == ["https://cdn.example.com/site-logo?sig=ab,cd&v"]
    assert (enriched.width, enriched.height) == (None, None)
    assert enriched.content_type == "text/html"
    assert enriched.byte_size == 4_000
    assert QualityFilter(config).apply([enriched]).kept == []
