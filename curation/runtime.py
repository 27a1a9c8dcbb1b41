"""Pipeline runtime: search / load-more entry points over the curation stages."""

from __future__ import annotations

import asyncio
from collections import Counter
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from core import (
    Candidate,
    PipelineConfig,
    ProviderOptions,
    QueryEntities,
    RecoveryTier,
    ResultSet,
    SearchRequest,
    SortMode,
)
from curation.dedup import DedupContext, dedupe, merge_unique
from curation.enrich import MetadataEnricher
from curation.fanout import FanOutOrchestrator
from curation.normalize import normalize_results
from curation.quality_filter import QualityFilter
from curation.query_analyzer import ConnectorOnlyStrategy, ConnectorPairingStrategy, QueryAnalyzer
from curation.recovery import RecoveryStateMachine
from curation.scoring import rank_candidates, sort_key
from utils.exceptions import InvalidRequestError
from utils.logger import format_stats


logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_PAGE_SIZE = 100

OptionsLike = Union[ProviderOptions, Mapping[str, Any], None]


def assemble_results(candidates: Sequence[Candidate], page_size: int) -> List[Candidate]:
    """Final ordering by the scorer key, truncated to one page."""
    return sorted(candidates, key=sort_key)[: max(0, int(page_size))]


def validate_request(request: SearchRequest) -> None:
    query = request.query.replace('"', "").strip()
    if not query:
        raise InvalidRequestError("Query is empty", query=request.query, field="query")
    if len(query) < MIN_QUERY_LENGTH:
        raise InvalidRequestError(
            f"Query must be at least {MIN_QUERY_LENGTH} characters",
            query=request.query,
            field="query",
        )
    if not 1 <= request.page_size <= MAX_PAGE_SIZE:
        raise InvalidRequestError(
            f"page_size must be between 1 and {MAX_PAGE_SIZE}",
            query=request.query,
            field="page_size",
        )
    if request.offset < 0:
        raise InvalidRequestError("offset must be >= 0", query=request.query, field="offset")


class ImageSearchPipeline:
    """
    Orchestrates fan-out, normalization, enrichment, dedup, filtering,
    scoring and volume recovery for one query.

    The dedup context lives as long as the pipeline instance: ``search``
    resets it, ``load_more`` keeps it so already shown images stay hidden.
    """

    def __init__(
        self,
        config: PipelineConfig,
        providers: Sequence[Any],
        *,
        enricher: Optional[MetadataEnricher] = None,
        analyzer: Optional[QueryAnalyzer] = None,
        dedup_context: Optional[DedupContext] = None,
    ) -> None:
        self.config = config
        self.fanout = FanOutOrchestrator(providers, config)
        self.enricher = enricher or MetadataEnricher(config)
        strategy = ConnectorPairingStrategy() if config.heuristic_entity_pairing else ConnectorOnlyStrategy()
        self.analyzer = analyzer or QueryAnalyzer(strategy)
        self.context = dedup_context or DedupContext()
        self.quality_filter = QualityFilter(config)

    def _provider_options(self, sort_mode: SortMode, options: OptionsLike) -> ProviderOptions:
        if isinstance(options, ProviderOptions):
            return options
        payload: Dict[str, Any] = {
            "sort_mode": sort_mode,
            "blacklist": tuple(domain for domain in self.config.blocked_domains if "." in domain),
            "min_size": self.config.min_dimension,
        }
        payload.update(dict(options or {}))
        return ProviderOptions(**payload)

    async def _collect(
        self,
        query: str,
        entities: QueryEntities,
        offset: int,
        options: ProviderOptions,
        stats: Counter,
        *,
        providers: Optional[Sequence[Any]] = None,
        pages: Optional[int] = None,
    ) -> List[Candidate]:
        results = await self.fanout.fan_out(query, offset, options, providers=providers, pages=pages)
        stats["adapter_calls"] += len(results)
        stats["adapter_failures"] += sum(1 for result in results if not result.ok)

        candidates = normalize_results(results)
        stats["raw_records"] += len(candidates)

        if self.config.enable_enrichment:
            candidates = await self.enricher.enrich_all(candidates, entities)

        unique = dedupe(candidates, context=self.context, provider_priority=self.config.provider_priority)
        stats["duplicates_removed"] += len(candidates) - len(unique)

        outcome = self.quality_filter.apply(unique)
        for reason, count in outcome.rejected.items():
            stats[f"rejected_{reason}"] += count
        return outcome.kept

    async def _relaxed_batch(
        self,
        raw_query: str,
        entities: QueryEntities,
        offset: int,
        options: ProviderOptions,
        stats: Counter,
    ) -> List[Candidate]:
        variants = self.fanout.relaxed_queries(raw_query, entities)
        if not variants:
            logger.info("Relaxed expansion has no looser query variants")
            return []
        batches = await asyncio.gather(
            *[self._collect(variant, entities, offset, options, stats) for variant in variants]
        )
        return [candidate for batch in batches for candidate in batch]

    async def run(self, request: SearchRequest, *, continuation: bool = False) -> ResultSet:
        """Run every recovery tier needed for one request and assemble the page."""
        validate_request(request)
        config = self.config
        entities = self.analyzer.analyze(request.query)
        options = request.provider_options
        strict_query = self.fanout.refine_query(request.query, entities)
        supplemental = self.fanout.get_provider(config.supplemental_provider)

        machine = RecoveryStateMachine(
            target_floor=config.target_floor,
            max_tiers=config.max_recovery_tiers,
            supplemental_available=supplemental is not None,
        )
        stats: Counter = Counter()
        accumulated: List[Candidate] = []
        next_offset = request.offset + config.pages_per_provider * config.offset_step

        tier = machine.state
        while tier != RecoveryTier.DONE:
            if tier == RecoveryTier.STRICT:
                batch = await self._collect(strict_query, entities, request.offset, options, stats)
            elif tier == RecoveryTier.RELAXED_EXPANSION:
                batch = await self._relaxed_batch(request.query, entities, request.offset, options, stats)
            else:
                batch = await self._collect(
                    strict_query,
                    entities,
                    next_offset,
                    options,
                    stats,
                    providers=[supplemental],
                    pages=config.supplemental_pages,
                )
                next_offset += config.supplemental_pages * config.offset_step
            accumulated = merge_unique(accumulated, batch, provider_priority=config.provider_priority)
            stats[f"tier_{tier.value}"] = len(accumulated)
            tier = machine.advance(len(accumulated))

        ranked = rank_candidates(accumulated, entities, config.entity_profiles)
        page = assemble_results(ranked, request.page_size)
        self.context.remember(page)

        tiers_run = machine.history
        logger.info(
            f"{'Load more' if continuation else 'Search'} '{request.query}': "
            f"{len(page)}/{len(ranked)} returned after {', '.join(t.value for t in tiers_run)}"
            f" | {format_stats(stats)}"
        )
        return ResultSet(
            candidates=page,
            total_considered_count=len(ranked),
            recovery_tier_used=tiers_run[-1],
            tiers_run=tiers_run,
            next_offset=next_offset,
            stats=dict(stats),
        )

    async def search(
        self,
        query: str,
        page_size: int = 20,
        sort_mode: SortMode = SortMode.RECENT,
        options: OptionsLike = None,
    ) -> ResultSet:
        """Fresh search: clears the dedup context and returns a ResultSet."""
        self.context.reset()
        request = SearchRequest(
            query=query,
            offset=0,
            page_size=page_size,
            sort_mode=sort_mode,
            provider_options=self._provider_options(sort_mode, options),
        )
        try:
            return await self.run(request)
        except InvalidRequestError:
            raise
        except Exception as exc:
            logger.error(f"Search '{request.query}' failed: {exc}", exc_info=True)
            return ResultSet.empty(stats={"pipeline_errors": 1})

    async def load_more(
        self,
        query: str,
        offset: int,
        page_size: int = 20,
        options: OptionsLike = None,
        sort_mode: SortMode = SortMode.RECENT,
    ) -> List[Candidate]:
        """Continuation page; images already returned in this session are skipped."""
        request = SearchRequest(
            query=query,
            offset=offset,
            page_size=page_size,
            sort_mode=sort_mode,
            provider_options=self._provider_options(sort_mode, options),
        )
        try:
            result = await self.run(request, continuation=True)
        except InvalidRequestError:
            raise
        except Exception as exc:
            logger.error(f"Load more '{request.query}' @ {offset} failed: {exc}", exc_info=True)
            return []
        return result.candidates
