"""Canonical data contracts for the image curation pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .policy import (
    DEFAULT_BLOCKED_DOMAINS,
    DEFAULT_BLOCKED_SUBDOMAIN_PREFIXES,
    DEFAULT_ENTITY_PROFILES,
    DEFAULT_PROVIDER_PRIORITY,
    DEFAULT_QUERY_REWRITES,
)


class SortMode(str, Enum):
    """Provider-side ordering hint."""

    RECENT = "recent"
    RELEVANCE = "relevance"


class RecoveryTier(str, Enum):
    """Volume-recovery states, in escalation order."""

    STRICT = "strict"
    RELAXED_EXPANSION = "relaxed_expansion"
    SUPPLEMENTAL_FETCH = "supplemental_fetch"
    DONE = "done"


def _positive_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


class Candidate(BaseModel):
    """One image result flowing through the pipeline."""

    image_url: str = ""
    page_url: str = ""
    thumbnail_url: str = ""
    title: str = ""
    alt_text: str = ""
    description: str = ""
    source_name: str = ""
    source_domain: str = ""
    width: Optional[int] = None
    height: Optional[int] = None
    byte_size: Optional[int] = None
    content_type: Optional[str] = None
    origin_query: str = ""
    provider_tag: str = ""
    quality_score: float = 0.0
    signature: str = ""

    @field_validator("width", "height", "byte_size", mode="before")
    @classmethod
    def _known_size(cls, value: Any) -> Optional[int]:
        return _positive_int(value)

    @field_validator(
        "image_url",
        "page_url",
        "thumbnail_url",
        "title",
        "alt_text",
        "description",
        "source_name",
        "source_domain",
        "origin_query",
        "provider_tag",
        mode="before",
    )
    @classmethod
    def _text(cls, value: Any) -> str:
        return str(value or "").strip()

    @property
    def pixel_count(self) -> int:
        return int(self.width or 0) * int(self.height or 0)

    @property
    def megapixels(self) -> float:
        return self.pixel_count / 1_000_000.0


class QueryEntities(BaseModel):
    """Read-only decomposition of a query, computed once per search."""

    model_config = ConfigDict(frozen=True)

    query: str = ""
    entities: Tuple[str, ...] = ()
    phrases: FrozenSet[str] = frozenset()
    residual_terms: FrozenSet[str] = frozenset()

    @property
    def is_multi_entity(self) -> bool:
        return len(self.entities) > 1


class ProviderOptions(BaseModel):
    """Options bag handed to every provider adapter call."""

    model_config = ConfigDict(frozen=True)

    sort_mode: SortMode = SortMode.RECENT
    blacklist: Tuple[str, ...] = ()
    min_size: int = 0
    extra: Dict[str, Any] = Field(default_factory=dict)


class SearchRequest(BaseModel):
    """Input envelope for one search or load-more call."""

    model_config = ConfigDict(frozen=True)

    query: str
    offset: int = 0
    page_size: int = 20
    sort_mode: SortMode = SortMode.RECENT
    provider_options: ProviderOptions = Field(default_factory=ProviderOptions)

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, value: Any) -> str:
        return " ".join(str(value or "").split())


class AdapterResult(BaseModel):
    """Settled outcome of one provider call: records on success, error text on failure."""

    provider_tag: str
    query: str
    offset: int = 0
    records: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class ResultSet(BaseModel):
    """Output envelope for one SearchRequest."""

    candidates: List[Candidate] = Field(default_factory=list)
    total_considered_count: int = 0
    recovery_tier_used: RecoveryTier = RecoveryTier.STRICT
    tiers_run: List[RecoveryTier] = Field(default_factory=list)
    next_offset: int = 0
    stats: Dict[str, int] = Field(default_factory=dict)

    @classmethod
    def empty(cls, *, next_offset: int = 0, stats: Optional[Dict[str, int]] = None) -> "ResultSet":
        return cls(next_offset=next_offset, stats=dict(stats or {}))


class EntityProfile(BaseModel):
    """Context vocabulary that separates one named person from same-named others."""

    model_config = ConfigDict(frozen=True)

    aliases: Tuple[str, ...] = ()
    context_keywords: Tuple[str, ...] = ()
    exclusion_terms: Tuple[str, ...] = ()
    profession: Optional[str] = None


def _default_profiles() -> Dict[str, EntityProfile]:
    return {name: EntityProfile(**payload) for name, payload in DEFAULT_ENTITY_PROFILES.items()}


class PipelineConfig(BaseModel):
    """Explicit configuration passed once into a pipeline instance."""

    model_config = ConfigDict(frozen=True)

    enabled_providers: Tuple[str, ...] = ("google_cse", "serpapi", "brave", "bing")
    allow_paid_providers: bool = True
    provider_priority: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_PROVIDER_PRIORITY))

    pages_per_provider: int = Field(default=3, ge=1, le=5)
    offset_step: int = Field(default=20, ge=1)
    provider_timeout_sec: float = Field(default=8.0, gt=0)
    fanout_concurrency: int = Field(default=8, ge=1)
    inter_call_delay_sec: float = Field(default=0.0, ge=0)

    enable_enrichment: bool = True
    enrichment_timeout_sec: float = Field(default=6.0, gt=0)
    enrichment_concurrency: int = Field(default=8, ge=1)
    content_type_probe: bool = True

    min_dimension: int = Field(default=1000, ge=0)
    min_edge: int = Field(default=300, ge=0)
    min_byte_size: int = Field(default=150_000, ge=0)
    language_filter: bool = True
    blocked_domains: Tuple[str, ...] = tuple(DEFAULT_BLOCKED_DOMAINS)
    blocked_subdomain_prefixes: Tuple[str, ...] = tuple(DEFAULT_BLOCKED_SUBDOMAIN_PREFIXES)

    target_floor: int = Field(default=25, ge=0)
    max_recovery_tiers: int = Field(default=3, ge=1, le=3)
    supplemental_provider: Optional[str] = "serpapi"
    supplemental_pages: int = Field(default=3, ge=1, le=5)

    heuristic_entity_pairing: bool = True
    query_rewrites: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_QUERY_REWRITES))
    entity_profiles: Dict[str, EntityProfile] = Field(default_factory=_default_profiles)

    def priority_rank(self, provider_tag: str) -> int:
        return int(self.provider_priority.get(str(provider_tag or ""), 99))
