from __future__ import annotations

from core import AdapterResult
from curation.normalize import normalize, normalize_results, registered_providers


def test_registry_covers_builtin_providers() -> None:
    assert {"google_cse", "serpapi", "brave", "bing"} <= set(registered_providers())


def test_google_cse_record() -> None:
    raw = {
        "link": "https://img.example.com/photos/sunset.jpg?utm_source=feed&size=xl#top",
        "title": "<b>Sunset</b> &amp; beach",
        "snippet": "Golden hour",
        "displayLink": "www.example.com",
        "mime": "image/jpeg",
        "image": {
            "contextLink": "https://www.example.com/gallery/sunset",
            "thumbnailLink": "https://t.example.com/thumb.jpg",
            "width": 2000,
            "height": "1500",
            "byteSize": 420000,
        },
    }

    candidate = normalize(raw, "google_cse", "sunset beach")

    assert candidate.image_url == "https://img.example.com/photos/sunset.jpg?utm_source=feed&size=xl#top"
    assert candidate.page_url == "https://www.example.com/gallery/sunset"
    assert candidate.thumbnail_url == "https://t.example.com/thumb.jpg"
    assert candidate.title == "Sunset & beach"
    assert candidate.description == "Golden hour"
    assert candidate.source_domain == "example.com"
    assert (candidate.width, candidate.height, candidate.byte_size) == (2000, 1500, 420000)
    assert candidate.content_type == "image/jpeg"
    assert candidate.provider_tag == "google_cse"
    assert candidate.origin_query == "sunset beach"
    assert candidate.signature == ""


def test_serpapi_record() -> None:
    raw = {
        "original": "https://cdn.example.org/a/photo.png",
        "link": "https://example.org/story",
        "thumbnail": "https://serpapi.example/thumb.jpg",
        "title": "Photo",
        "source": "Example Org",
        "original_width": 3000,
        "original_height": 2000,
    }

    candidate = normalize(raw, "serpapi", "q")

    assert candidate.image_url == "https://cdn.example.org/a/photo.png"
    assert candidate.source_name == "Example Org"
    assert candidate.pixel_count == 6_000_000


def test_brave_and_bing_records() -> None:
    brave = normalize(
        {
            "url": "https://news.example.com/article",
            "title": "Brave hit",
            "properties": {"url": "https://news.example.com/img/hero.webp", "width": 1600, "height": 900},
        },
        "brave",
        "q",
    )
    bing = normalize(
        {"murl": "https://b.example.net/full.jpg", "purl": "https://b.example.net/p", "t": "Bing hit", "mw": 2400, "mh": 1600},
        "bing",
        "q",
    )

    assert brave.image_url == "https://news.example.com/img/hero.webp"
    assert brave.thumbnail_url == "https://news.example.com/img/hero.webp"
    assert bing.page_url == "https://b.example.net/p"
    assert bing.width == 2400 and bing.height == 1600


def test_unknown_provider_uses_generic_mapping() -> None:
    candidate = normalize(
        {"imageUrl": "https://x.example.com/a.jpg", "pageUrl": "https://x.example.com/", "width": 1200, "height": 0},
        "somewhere",
        "q",
    )

    assert candidate.image_url == "https://x.example.com/a.jpg"
    assert candidate.width == 1200
    assert candidate.height is None


def test_malformed_input_yields_empty_candidate() -> None:
    for raw in (None, "string", 42, ["list"]):
        candidate = normalize(raw, "google_cse", "q")
        assert candidate.image_url == ""
        assert candidate.provider_tag == "google_cse"

    non_http = normalize({"link": "javascript:alert(1)"}, "google_cse", "q")
    assert non_http.image_url == ""


def test_normalize_results_flattens_and_skips_failed() -> None:
    results = [
        AdapterResult(provider_tag="bing", query="q", records=[{"murl": "https://a.example.com/1.jpg"}]),
        AdapterResult(provider_tag="brave", query="q", error="timeout"),
    ]

    candidates = normalize_results(results)

    assert [candidate.image_url for candidate in candidates] == ["https://a.example.com/1.jpg"]


def test_signed_query_string_is_returned_verbatim() -> None:
    signed = "https://cdn.example.com/a.jpg?w=2000&s=ab,cd&v"

    candidate = normalize({"link": signed}, "google_cse", "q")

    assert candidate.image_url == signed
    assert candidate.thumbnail_url == signed
