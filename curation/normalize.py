"""Normalization of provider-specific raw records into Candidate."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping

from core import AdapterResult, Candidate
from curation.sanitize import clean_html, get_domain, is_http_url


logger = logging.getLogger(__name__)

NormalizerFn = Callable[[Mapping[str, Any]], Dict[str, Any]]
_NORMALIZERS: Dict[str, NormalizerFn] = {}


def register_normalizer(provider_tag: str) -> Callable[[NormalizerFn], NormalizerFn]:
    """Register the field mapping used for one provider's raw records."""

    def _decorator(fn: NormalizerFn) -> NormalizerFn:
        _NORMALIZERS[str(provider_tag)] = fn
        return fn

    return _decorator


def registered_providers() -> List[str]:
    return sorted(_NORMALIZERS)


def _get(raw: Mapping[str, Any], *path: str) -> Any:
    node: Any = raw
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node


def _first(*values: Any) -> str:
    for value in values:
        text = str(value or "").strip()
        if text:
            return text
    return ""


@register_normalizer("google_cse")
def _google_cse_fields(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "image_url": raw.get("link"),
        "page_url": _get(raw, "image", "contextLink"),
        "thumbnail_url": _get(raw, "image", "thumbnailLink"),
        "title": raw.get("title"),
        "description": raw.get("snippet"),
        "source_name": raw.get("displayLink"),
        "width": _get(raw, "image", "width"),
        "height": _get(raw, "image", "height"),
        "byte_size": _get(raw, "image", "byteSize"),
        "content_type": raw.get("mime"),
    }


@register_normalizer("serpapi")
def _serpapi_fields(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "image_url": raw.get("original"),
        "page_url": raw.get("link"),
        "thumbnail_url": raw.get("thumbnail"),
        "title": raw.get("title"),
        "source_name": raw.get("source"),
        "width": _first(raw.get("original_width"), raw.get("width")) or None,
        "height": _first(raw.get("original_height"), raw.get("height")) or None,
    }


@register_normalizer("brave")
def _brave_fields(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "image_url": _get(raw, "properties", "url"),
        "page_url": raw.get("url"),
        "thumbnail_url": _first(_get(raw, "thumbnail", "src"), _get(raw, "properties", "url")),
        "title": raw.get("title"),
        "source_name": raw.get("source"),
        "width": _get(raw, "properties", "width"),
        "height": _get(raw, "properties", "height"),
    }


@register_normalizer("bing")
def _bing_fields(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "image_url": _first(raw.get("murl"), raw.get("imgurl")),
        "page_url": _first(raw.get("purl"), raw.get("surl")),
        "thumbnail_url": raw.get("turl"),
        "title": raw.get("t"),
        "description": raw.get("desc"),
        "width": raw.get("mw"),
        "height": raw.get("mh"),
    }


def _generic_fields(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "image_url": _first(raw.get("imageUrl"), raw.get("image_url"), raw.get("url")),
        "page_url": _first(raw.get("pageUrl"), raw.get("page_url"), raw.get("contextLink"), raw.get("link")),
        "thumbnail_url": _first(raw.get("thumbnail"), raw.get("thumbnailUrl")),
        "title": raw.get("title"),
        "alt_text": raw.get("alt"),
        "description": _first(raw.get("description"), raw.get("snippet")),
        "source_name": _first(raw.get("sourceName"), raw.get("source")),
        "width": raw.get("width"),
        "height": raw.get("height"),
        "byte_size": _first(raw.get("byteSize"), raw.get("byte_size")) or None,
        "content_type": raw.get("mime"),
    }


def normalize(raw: Any, provider_tag: str, origin_query: str) -> Candidate:
    """Map one raw record to a Candidate. Malformed input yields an empty image_url."""
    tag = str(provider_tag or "").strip()
    try:
        if not isinstance(raw, Mapping):
            raise TypeError(f"record is {type(raw).__name__}, expected mapping")
        fields = _NORMALIZERS.get(tag, _generic_fields)(raw)

        image_url = str(fields.get("image_url") or "").strip()
        image_url = image_url if is_http_url(image_url) else ""
        page_url = str(fields.get("page_url") or "").strip()
        page_url = page_url if is_http_url(page_url) else ""
        thumbnail_url = str(fields.get("thumbnail_url") or "").strip()

        return Candidate(
            image_url=image_url,
            page_url=page_url,
            thumbnail_url=thumbnail_url if is_http_url(thumbnail_url) else image_url,
            title=clean_html(fields.get("title")),
            alt_text=clean_html(fields.get("alt_text")),
            description=clean_html(fields.get("description")),
            source_name=clean_html(fields.get("source_name")) or get_domain(page_url or image_url),
            source_domain=get_domain(page_url or image_url),
            width=fields.get("width"),
            height=fields.get("height"),
            byte_size=fields.get("byte_size"),
            content_type=str(fields.get("content_type") or "").strip().lower() or None,
            origin_query=origin_query,
            provider_tag=tag,
        )
    except Exception as exc:
        logger.debug(f"[{tag}] malformed record dropped to empty candidate: {exc}")
        return Candidate(origin_query=str(origin_query or ""), provider_tag=tag)


def normalize_results(results: Iterable[AdapterResult]) -> List[Candidate]:
    """Normalize every record of every successful adapter result."""
    candidates: List[Candidate] = []
    for result in results:
        for raw in result.records:
            candidates.append(normalize(raw, result.provider_tag, result.query))
    return candidates
