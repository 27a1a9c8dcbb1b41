"""Concurrent fan-out of one query to every enabled provider adapter."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence

from core import AdapterResult, PipelineConfig, ProviderOptions, QueryEntities


logger = logging.getLogger(__name__)


def _plain(query: str) -> str:
    return " ".join(str(query or "").replace('"', " ").split())


def _quote(text: str) -> str:
    return f'"{text}"'


class FanOutOrchestrator:
    """
    Dispatches one query to all enabled providers and settles every call.

    Each call gets its own timeout; errors and timeouts turn into an
    ``AdapterResult`` with ``error`` set so one provider never sinks the
    others. Paginating providers receive ``pages_per_provider`` calls.
    """

    def __init__(self, providers: Sequence[Any], config: PipelineConfig) -> None:
        self._providers = list(providers)
        self._config = config

    @property
    def providers(self) -> List[Any]:
        return list(self._providers)

    def active_providers(self) -> List[Any]:
        config = self._config
        active = []
        for provider in self._providers:
            tag = str(getattr(provider, "tag", "") or "")
            if tag not in config.enabled_providers:
                continue
            if getattr(provider, "paid", False) and not config.allow_paid_providers:
                logger.debug(f"[{tag}] skipped: paid providers disabled")
                continue
            if not provider.is_configured():
                logger.debug(f"[{tag}] skipped: not configured")
                continue
            active.append(provider)
        return active

    def get_provider(self, tag: Optional[str]) -> Optional[Any]:
        if not tag:
            return None
        for provider in self.active_providers():
            if provider.tag == tag:
                return provider
        return None

    def refine_query(self, raw_query: str, entities: QueryEntities) -> str:
        """Provider query for the strict tier: rewrite table, else quoted subjects."""
        key = _plain(raw_query).lower()
        rewrite = self._config.query_rewrites.get(key)
        if rewrite:
            return rewrite
        if '"' in raw_query:
            return " ".join(str(raw_query).split())
        if entities.is_multi_entity:
            return " ".join(_quote(entity) for entity in entities.entities)
        return _plain(raw_query)

    def relaxed_queries(self, raw_query: str, entities: QueryEntities) -> List[str]:
        """Looser variants: each subject on its own, then the unquoted query."""
        strict = self.refine_query(raw_query, entities)
        variants: List[str] = []
        for candidate in list(entities.entities) + [_plain(raw_query)]:
            text = _plain(candidate)
            if text and text != strict and text not in variants:
                variants.append(text)
        return variants

    async def _call(
        self,
        provider: Any,
        query: str,
        offset: int,
        options: ProviderOptions,
        semaphore: asyncio.Semaphore,
    ) -> AdapterResult:
        tag = str(provider.tag)
        async with semaphore:
            started = time.perf_counter()
            try:
                records = await asyncio.wait_for(
                    provider.search(query, offset, options),
                    timeout=self._config.provider_timeout_sec,
                )
                error = None
            except asyncio.TimeoutError:
                records, error = [], f"timeout after {self._config.provider_timeout_sec}s"
            except Exception as exc:
                records, error = [], f"{type(exc).__name__}: {exc}"
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            if self._config.inter_call_delay_sec:
                await asyncio.sleep(self._config.inter_call_delay_sec)

        if error:
            logger.warning(f"[{tag}] search failed for '{query}' @ {offset}: {error}")
        records = [record for record in (records or []) if isinstance(record, dict)]
        return AdapterResult(
            provider_tag=tag,
            query=query,
            offset=offset,
            records=records,
            error=error,
            elapsed_ms=elapsed_ms,
        )

    def page_offsets(self, provider: Any, offset: int, pages: int) -> List[int]:
        """
        Provider-native offsets for ``pages`` consecutive pages.

        ``offset`` counts in ``offset_step`` units and is rescaled by the
        provider's own ``page_size``, so a 10-per-page and a 100-per-page
        source both continue exactly where their previous window ended.
        """
        step = self._config.offset_step
        provider_step = int(getattr(provider, "page_size", None) or step)
        base = int(offset) * provider_step // step
        return [base + page * provider_step for page in range(pages)]

    async def fan_out(
        self,
        query: str,
        offset: int,
        options: ProviderOptions,
        *,
        providers: Optional[Sequence[Any]] = None,
        pages: Optional[int] = None,
    ) -> List[AdapterResult]:
        targets = list(providers) if providers is not None else self.active_providers()
        if not targets:
            logger.warning("No enabled provider adapters; fan-out skipped")
            return []

        page_count = max(1, min(5, int(pages or self._config.pages_per_provider)))
        semaphore = asyncio.Semaphore(self._config.fanout_concurrency)
        jobs = []
        for provider in targets:
            provider_pages = page_count if getattr(provider, "supports_pagination", True) else 1
            for page_offset in self.page_offsets(provider, offset, provider_pages):
                jobs.append(self._call(provider, query, page_offset, options, semaphore))

        results = await asyncio.gather(*jobs)
        failed = sum(1 for result in results if not result.ok)
        record_count = sum(len(result.records) for result in results)
        logger.info(
            f"Fan-out '{query}' @ {offset}: {len(results)} calls, {failed} failed, {record_count} records"
        )
        return list(results)


def flatten_results(results: Iterable[AdapterResult]) -> List[Dict[str, Any]]:
    """All records of all results, each tagged with its provider."""
    flattened: List[Dict[str, Any]] = []
    for result in results:
        for record in result.records:
            tagged = dict(record)
            tagged.setdefault("provider_tag", result.provider_tag)
            flattened.append(tagged)
    return flattened
