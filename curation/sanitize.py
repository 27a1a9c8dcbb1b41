"""URL canonicalization, HTML cleaning, and image URL helpers."""

from __future__ import annotations

import html as html_lib
import re
from typing import Optional
from urllib.parse import parse_qsl, unquote, urlencode, urlparse, urlunparse


_TRACKER_PARAM_RE = re.compile(r"^(utm_|gclid$|fbclid$|mc_|msclkid$|igshid$)", re.IGNORECASE)
_SCRIPT_RE = re.compile(r"<script\b[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style\b[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")

DIRECT_IMAGE_RE = re.compile(r"\.(jpe?g|png|webp|avif)(?:[?#]|$)", re.IGNORECASE)
EXCLUDED_IMAGE_RE = re.compile(r"\.(gif|svg)(?:[?#]|$)", re.IGNORECASE)
ALLOWED_IMAGE_MIME_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp", "image/avif")


def clean_html(value: object) -> str:
    """Strip tags/scripts and decode entities from provider-supplied text."""
    text = str(value or "")
    if not text:
        return ""
    text = _SCRIPT_RE.sub(" ", text)
    text = _STYLE_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    text = html_lib.unescape(text)
    return re.sub(r"\s+", " ", text).strip()


def is_http_url(url: str) -> bool:
    value = str(url or "").strip()
    if not value.lower().startswith(("http://", "https://")):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.netloc)


def canonicalize_url(url: str) -> str:
    """Drop fragment and tracker params, sort the remaining query keys."""
    value = str(url or "").strip()
    if not is_http_url(value):
        return value
    try:
        parsed = urlparse(value)
    except ValueError:
        return value

    pairs = [
        (key, val)
        for key, val in parse_qsl(parsed.query or "", keep_blank_values=True)
        if not _TRACKER_PARAM_RE.match(key)
    ]
    pairs.sort(key=lambda pair: pair[0])
    return urlunparse(
        (
            parsed.scheme.lower(),
            parsed.netloc.lower(),
            parsed.path or "/",
            parsed.params,
            urlencode(pairs, doseq=False),
            "",
        )
    )


def hostname(url: str) -> str:
    try:
        host = urlparse(str(url or "").strip()).hostname or ""
    except ValueError:
        return ""
    host = host.lower()
    return host[4:] if host.startswith("www.") else host


def get_domain(url: str) -> str:
    return hostname(url)


def url_filename(url: str) -> str:
    """Last path segment, percent-decoded and lower-cased."""
    try:
        path = urlparse(str(url or "").strip()).path or ""
    except ValueError:
        return ""
    name = path.rstrip("/").rsplit("/", 1)[-1]
    return unquote(name).lower()


def is_direct_image_url(url: str) -> bool:
    value = str(url or "").strip()
    if not value:
        return False
    try:
        path = urlparse(value).path or ""
    except ValueError:
        return False
    return bool(DIRECT_IMAGE_RE.search(path))


def is_excluded_image_url(url: str) -> bool:
    try:
        path = urlparse(str(url or "").strip()).path or ""
    except ValueError:
        return False
    return bool(EXCLUDED_IMAGE_RE.search(path))


def is_allowed_mime(content_type: Optional[str]) -> bool:
    lowered = str(content_type or "").lower()
    if not lowered:
        return False
    return any(mime in lowered for mime in ALLOWED_IMAGE_MIME_TYPES)


def url_words(url: str) -> str:
    """Turn a URL slug into space separated words for keyword matching."""
    text = unquote(str(url or "")).lower()
    return re.sub(r"[^0-9a-zÀ-ɏ]+", " ", text).strip()
