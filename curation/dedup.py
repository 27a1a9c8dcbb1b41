"""Exact-URL and image-signature deduplication for candidates."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple
from urllib.parse import urlparse

from core import Candidate
from core.policy import DEFAULT_PROVIDER_PRIORITY
from curation.sanitize import canonicalize_url, url_filename


_EXTENSION_RE = re.compile(r"\.(jpe?g|png|webp|avif|gif|bmp|tiff?|svg)$")
_SIZE_SUFFIX_RE = re.compile(r"[-_]?\d{2,4}x\d{2,4}$")
_DENSITY_SUFFIX_RE = re.compile(r"@\d+(?:\.\d+)?x$")
_VARIANT_SUFFIX_RE = re.compile(
    r"[-_](scaled|large|medium|small|thumbnail|thumb|cropped|edited|retina|hd|uhd|4k|8k|full|original|orig)$"
)
_SEPARATOR_RUN_RE = re.compile(r"[-_]{2,}")

BUCKET_PX = 64
REFERENCE_EDGE_PX = 1024


def filename_stem(image_url: str) -> str:
    """Filename with extension and size/variant suffixes removed."""
    base = _EXTENSION_RE.sub("", url_filename(image_url))
    previous = None
    while base and base != previous:
        previous = base
        base = _SIZE_SUFFIX_RE.sub("", base)
        base = _DENSITY_SUFFIX_RE.sub("", base)
        base = _VARIANT_SUFFIX_RE.sub("", base)
    return _SEPARATOR_RUN_RE.sub("-", base).strip("-_")


def _bucket(value: float) -> int:
    return int(value / BUCKET_PX + 0.5)


def dimension_bucket(width: Optional[int], height: Optional[int]) -> str:
    """
    Footprint of the image shape on a 64px grid at a 1024px reference edge.

    Resized copies of one picture share a bucket; crops with a different
    aspect land in different buckets. Unknown dimensions bucket as 0x0.
    """
    w = int(width or 0)
    h = int(height or 0)
    if w <= 0 or h <= 0:
        return "0x0"
    scale = REFERENCE_EDGE_PX / float(max(w, h))
    return f"{_bucket(w * scale)}x{_bucket(h * scale)}"


def image_signature(image_url: str, width: Optional[int], height: Optional[int]) -> str:
    url = str(image_url or "").strip()
    if not url:
        return ""
    try:
        urlparse(url)
    except ValueError:
        return url.lower()
    stem = filename_stem(url)
    if not stem:
        return canonicalize_url(url).lower()
    return f"{stem}|{dimension_bucket(width, height)}"


def url_key(candidate: Candidate) -> str:
    return canonicalize_url(candidate.image_url).strip().lower()


def with_signature(candidate: Candidate) -> Candidate:
    """Assign the signature once; an existing signature is never recomputed."""
    if candidate.signature:
        return candidate
    return candidate.model_copy(
        update={"signature": image_signature(candidate.image_url, candidate.width, candidate.height)}
    )


def _representative_key(
    candidate: Candidate,
    priority: Mapping[str, int],
) -> Tuple[int, int, int, str, str, str, str]:
    # Total order so the winner never depends on arrival order.
    return (
        candidate.pixel_count,
        int(candidate.byte_size or 0),
        -int(priority.get(candidate.provider_tag, 99)),
        candidate.image_url,
        candidate.page_url,
        candidate.provider_tag,
        candidate.title,
    )


def _collapse(
    candidates: Sequence[Candidate],
    key_fn,
    priority: Mapping[str, int],
) -> List[Candidate]:
    best: Dict[str, Candidate] = {}
    order: List[str] = []
    for candidate in candidates:
        key = key_fn(candidate)
        current = best.get(key)
        if current is None:
            best[key] = candidate
            order.append(key)
            continue
        if _representative_key(candidate, priority) > _representative_key(current, priority):
            best[key] = candidate
    return [best[key] for key in order]


class DedupContext:
    """Per-session memory of what was already shown; reset on a fresh search."""

    def __init__(self) -> None:
        self._signatures: Set[str] = set()
        self._urls: Set[str] = set()

    def __len__(self) -> int:
        return len(self._signatures)

    def reset(self) -> None:
        self._signatures.clear()
        self._urls.clear()

    def is_seen(self, candidate: Candidate) -> bool:
        signature = candidate.signature or image_signature(candidate.image_url, candidate.width, candidate.height)
        if signature and signature in self._signatures:
            return True
        key = url_key(candidate)
        return bool(key) and key in self._urls

    def remember(self, candidates: Iterable[Candidate]) -> None:
        for candidate in candidates:
            signature = candidate.signature or image_signature(candidate.image_url, candidate.width, candidate.height)
            if signature:
                self._signatures.add(signature)
            key = url_key(candidate)
            if key:
                self._urls.add(key)

    def snapshot(self) -> Set[str]:
        return set(self._signatures)


def dedupe(
    candidates: Sequence[Candidate],
    *,
    context: Optional[DedupContext] = None,
    provider_priority: Optional[Mapping[str, int]] = None,
) -> List[Candidate]:
    """
    Collapse duplicates: exact URL first, then image signature.

    Keeps the largest pixel count per group (then byte size, then provider
    priority). When a context is given, previously shown images are dropped.
    The context itself is not modified.
    """
    priority = dict(provider_priority or DEFAULT_PROVIDER_PRIORITY)
    signed = [with_signature(candidate) for candidate in candidates]
    if context is not None:
        signed = [candidate for candidate in signed if not context.is_seen(candidate)]

    by_url = _collapse(signed, lambda c: url_key(c) or f"sig:{c.signature}", priority)
    return _collapse(by_url, lambda c: c.signature, priority)


def merge_unique(
    existing: Sequence[Candidate],
    incoming: Sequence[Candidate],
    *,
    provider_priority: Optional[Mapping[str, int]] = None,
) -> List[Candidate]:
    """Union of two candidate sets, one representative per signature."""
    return dedupe(list(existing) + list(incoming), provider_priority=provider_priority)
