"""Core contracts and shared types for the curation pipeline."""

from .contracts import (
    AdapterResult,
    Candidate,
    EntityProfile,
    PipelineConfig,
    ProviderOptions,
    QueryEntities,
    RecoveryTier,
    ResultSet,
    SearchRequest,
    SortMode,
)

__all__ = [
    "AdapterResult",
    "Candidate",
    "EntityProfile",
    "PipelineConfig",
    "ProviderOptions",
    "QueryEntities",
    "RecoveryTier",
    "ResultSet",
    "SearchRequest",
    "SortMode",
]
