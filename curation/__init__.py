"""Curation stages: analyze, fan-out, normalize, enrich, dedup, filter, score, recover."""

from .dedup import DedupContext, dedupe, image_signature, merge_unique
from .enrich import MetadataEnricher, extract_page_metadata, select_embedded_image
from .fanout import FanOutOrchestrator, flatten_results
from .normalize import normalize, normalize_results, register_normalizer
from .quality_filter import QualityFilter, filter_candidates
from .query_analyzer import (
    ConnectorOnlyStrategy,
    ConnectorPairingStrategy,
    EntityStrategy,
    QueryAnalyzer,
    analyze_query,
)
from .recovery import RecoveryStateMachine
from .runtime import ImageSearchPipeline, assemble_results
from .scoring import rank_candidates, score, sort_key

__all__ = [
    "ConnectorOnlyStrategy",
    "ConnectorPairingStrategy",
    "DedupContext",
    "EntityStrategy",
    "FanOutOrchestrator",
    "ImageSearchPipeline",
    "MetadataEnricher",
    "QualityFilter",
    "QueryAnalyzer",
    "RecoveryStateMachine",
    "analyze_query",
    "assemble_results",
    "dedupe",
    "extract_page_metadata",
    "filter_candidates",
    "flatten_results",
    "image_signature",
    "merge_unique",
    "normalize",
    "normalize_results",
    "rank_candidates",
    "register_normalizer",
    "score",
    "select_embedded_image",
    "sort_key",
]
