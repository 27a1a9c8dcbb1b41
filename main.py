"""CLI entrypoint for hi-res image search."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import List, Optional, Sequence

from rich.console import Console
from rich.table import Table

from config import build_pipeline_config, get_settings
from core import Candidate, SortMode
from curation import ImageSearchPipeline
from providers import build_default_providers
from utils.exceptions import ConfigurationError, InvalidRequestError
from utils.logger import configure_package_loggers, console


output = Console()


def build_pipeline(providers: Optional[Sequence[str]] = None, **overrides) -> ImageSearchPipeline:
    settings = get_settings()
    adapters = build_default_providers(settings)
    if providers:
        known = {adapter.tag for adapter in adapters}
        unknown = sorted(set(providers) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown provider(s): {', '.join(unknown)}",
                {"known": ", ".join(sorted(known))},
            )
        overrides["enabled_providers"] = tuple(providers)
    config = build_pipeline_config(settings, **overrides)
    return ImageSearchPipeline(config, adapters)


def _render_table(title: str, candidates: List[Candidate]) -> None:
    table = Table(title=title, show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Size")
    table.add_column("Source")
    table.add_column("Title", overflow="fold")
    table.add_column("Image URL", overflow="fold")
    for index, candidate in enumerate(candidates, start=1):
        size = f"{candidate.width}x{candidate.height}" if candidate.width and candidate.height else "?"
        table.add_row(
            str(index),
            f"{candidate.quality_score:.2f}",
            size,
            candidate.source_domain or candidate.provider_tag,
            candidate.title[:80],
            candidate.image_url,
        )
    output.print(table)


def _dump(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


async def _run(args: argparse.Namespace) -> int:
    providers = [item.strip() for item in str(args.providers or "").split(",") if item.strip()]
    overrides = {}
    if args.no_enrich:
        overrides["enable_enrichment"] = False
    try:
        pipeline = build_pipeline(providers, **overrides)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        return 2
    sort_mode = SortMode(args.sort)

    try:
        if args.command == "search":
            result = await pipeline.search(args.query, page_size=args.page_size, sort_mode=sort_mode)
            if args.json:
                _dump(result.model_dump(mode="json"))
            else:
                _render_table(
                    f"{args.query} | {len(result.candidates)}/{result.total_considered_count} "
                    f"| tier={result.recovery_tier_used.value} | next_offset={result.next_offset}",
                    result.candidates,
                )
            return 0

        candidates = await pipeline.load_more(
            args.query,
            args.offset,
            page_size=args.page_size,
            sort_mode=sort_mode,
        )
        if args.json:
            _dump([candidate.model_dump(mode="json") for candidate in candidates])
        else:
            _render_table(f"{args.query} @ {args.offset} | {len(candidates)}", candidates)
        return 0
    except InvalidRequestError as exc:
        console.print(f"[red]Invalid request:[/red] {exc}")
        return 2
    finally:
        for provider in pipeline.fanout.providers:
            await provider.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Hi-res image search CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    def _common(command: argparse.ArgumentParser) -> None:
        command.add_argument("query")
        command.add_argument("--page-size", type=int, default=20)
        command.add_argument("--sort", choices=[mode.value for mode in SortMode], default=SortMode.RECENT.value)
        command.add_argument("--providers", default="", help="comma separated provider tags")
        command.add_argument("--no-enrich", action="store_true")
        command.add_argument("--json", action="store_true")
        command.add_argument("--verbose", action="store_true")

    search = sub.add_parser("search")
    _common(search)

    more = sub.add_parser("load-more")
    _common(more)
    more.add_argument("--offset", type=int, required=True)

    args = parser.parse_args()
    configure_package_loggers(level=logging.DEBUG if args.verbose else logging.WARNING)
    raise SystemExit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
