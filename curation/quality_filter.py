"""Quality and source-policy filter applied after dedup, before scoring."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
import logging
import re
from typing import Dict, List, Optional, Sequence

from core import Candidate, PipelineConfig
from curation.sanitize import (
    hostname,
    is_allowed_mime,
    is_direct_image_url,
    is_excluded_image_url,
    is_http_url,
)


logger = logging.getLogger(__name__)

# Arabic, Hebrew, Cyrillic, CJK, kana, Hangul, Thai, Devanagari.
_NON_LATIN_RE = re.compile(
    r"[\u0590-\u05FF\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB1D-\uFDFF\uFE70-\uFEFF"
    r"\u0400-\u04FF\u0900-\u097F\u0E00-\u0E7F\u3040-\u30FF\u4E00-\u9FFF\uAC00-\uD7AF]"
)

REJECT_MISSING_URL = "missing_url"
REJECT_NOT_HTTP = "not_http"
REJECT_NOT_IMAGE = "not_image"
REJECT_SMALL_FILE = "small_file"
REJECT_SMALL_DIMENSIONS = "small_dimensions"
REJECT_BLOCKED_SOURCE = "blocked_source"
REJECT_NON_ENGLISH = "non_english"


def is_non_english(*texts: str) -> bool:
    return bool(_NON_LATIN_RE.search(" ".join(str(text or "") for text in texts)))


def _domain_blocked(host: str, blocked: Sequence[str]) -> bool:
    if not host:
        return False
    for entry in blocked:
        token = str(entry or "").strip().lower()
        if not token:
            continue
        if "." not in token:
            if token in host:
                return True
            continue
        if host == token or host.endswith("." + token):
            return True
    return False


@dataclass
class FilterOutcome:
    kept: List[Candidate] = field(default_factory=list)
    rejected: Dict[str, int] = field(default_factory=dict)


class QualityFilter:
    """Drops candidates that fail resolution, size, type, source or language policy."""

    def __init__(self, config: PipelineConfig) -> None:
        self._config = config

    def is_blocked_source(self, candidate: Candidate) -> bool:
        hosts = {
            str(candidate.source_domain or "").lower(),
            hostname(candidate.page_url),
            hostname(candidate.image_url),
        }
        hosts.discard("")
        for host in hosts:
            if any(host.startswith(prefix) for prefix in self._config.blocked_subdomain_prefixes):
                return True
            if _domain_blocked(host, self._config.blocked_domains):
                return True
        return False

    def rejection_reason(self, candidate: Candidate) -> Optional[str]:
        cfg = self._config
        url = candidate.image_url
        if not url:
            return REJECT_MISSING_URL
        if not is_http_url(url):
            return REJECT_NOT_HTTP
        if is_excluded_image_url(url):
            return REJECT_NOT_IMAGE
        if not is_direct_image_url(url) and not is_allowed_mime(candidate.content_type):
            return REJECT_NOT_IMAGE

        if candidate.byte_size is not None and candidate.byte_size < cfg.min_byte_size:
            return REJECT_SMALL_FILE

        width, height = candidate.width, candidate.height
        if width is not None and height is not None:
            if width < cfg.min_dimension and height < cfg.min_dimension:
                return REJECT_SMALL_DIMENSIONS
        if any(edge is not None and edge < cfg.min_edge for edge in (width, height)):
            return REJECT_SMALL_DIMENSIONS

        if self.is_blocked_source(candidate):
            return REJECT_BLOCKED_SOURCE

        if cfg.language_filter and is_non_english(candidate.title, candidate.description, candidate.alt_text):
            return REJECT_NON_ENGLISH
        return None

    def apply(self, candidates: Sequence[Candidate]) -> FilterOutcome:
        kept: List[Candidate] = []
        rejected: Counter = Counter()
        for candidate in candidates:
            reason = self.rejection_reason(candidate)
            if reason is None:
                kept.append(candidate)
            else:
                rejected[reason] += 1
        if rejected:
            logger.info(f"Quality filter kept {len(kept)}/{len(candidates)}; rejected {dict(rejected)}")
        return FilterOutcome(kept=kept, rejected=dict(rejected))


def filter_candidates(candidates: Sequence[Candidate], config: PipelineConfig) -> List[Candidate]:
    return QualityFilter(config).apply(candidates).kept
