"""Page-metadata enrichment for candidates whose image URL is not a direct image."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup
import httpx

from core import Candidate, PipelineConfig, QueryEntities
from curation.sanitize import (
    clean_html,
    get_domain,
    is_allowed_mime,
    is_direct_image_url,
    is_http_url,
    url_filename,
    url_words,
)
from utils.exceptions import EnrichmentError


logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/128.0 Safari/537.36"
)

_META_IMAGE_PROPS = (
    "og:image:secure_url",
    "og:image:url",
    "og:image",
    "twitter:image:src",
    "twitter:image",
)
_LAZY_SRC_ATTRS = ("data-src", "data-original", "data-lazy-src")

EXACT_QUERY_IN_ALT = 3
ALL_ENTITIES_IN_ALT_OR_NAME = 4
HAS_URL = 1


@dataclass
class EmbeddedImage:
    url: str
    alt: str = ""


@dataclass
class PageMetadata:
    title: str = ""
    description: str = ""
    site_name: str = ""
    canonical_url: str = ""
    meta_images: List[str] = field(default_factory=list)
    best_guess: str = ""
    images: List[EmbeddedImage] = field(default_factory=list)

    def alt_for(self, image_url: str) -> str:
        """Alt text of the <img> that shows ``image_url`` (matched by file name)."""
        target = url_filename(image_url)
        for image in self.images:
            if not image.alt:
                continue
            if image.url == image_url or (target and target in url_filename(image.url)):
                return image.alt
        return ""


def _meta_values(soup: BeautifulSoup, prop: str) -> List[str]:
    values: List[str] = []
    for tag in soup.find_all("meta"):
        key = str(tag.get("property") or tag.get("name") or "").strip().lower()
        content = str(tag.get("content") or "").strip()
        if key == prop and content:
            values.append(content)
    return values


def _first_meta(soup: BeautifulSoup, *props: str) -> str:
    for prop in props:
        values = _meta_values(soup, prop)
        if values:
            return values[0]
    return ""


def _to_int(value: str) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _largest_srcset_entry(srcset: str) -> str:
    best_url = ""
    best_size = -1.0
    for part in str(srcset or "").split(","):
        pieces = part.strip().split()
        if not pieces:
            continue
        descriptor = pieces[1] if len(pieces) > 1 else "1x"
        try:
            size = float(descriptor.rstrip("wx"))
        except ValueError:
            size = 0.0
        if size > best_size:
            best_size = size
            best_url = pieces[0]
    return best_url


def _img_source(tag) -> str:
    src = str(tag.get("src") or "").strip()
    if src and not src.startswith("data:"):
        return src
    for attr in _LAZY_SRC_ATTRS:
        value = str(tag.get(attr) or "").strip()
        if value:
            return value
    return _largest_srcset_entry(str(tag.get("srcset") or ""))


def extract_page_metadata(html: str, page_url: str) -> PageMetadata:
    """Collect page title, description, meta images and embedded <img> tags."""
    soup = BeautifulSoup(html or "", "lxml")

    title_tag = soup.find("title")
    title = _first_meta(soup, "og:title") or (title_tag.get_text(" ", strip=True) if title_tag else "")
    description = _first_meta(soup, "og:description", "description", "twitter:description")
    site_name = _first_meta(soup, "og:site_name") or get_domain(page_url)
    canonical = _first_meta(soup, "og:url") or page_url

    meta_images: List[str] = []
    for prop in _META_IMAGE_PROPS:
        meta_images.extend(_meta_values(soup, prop))
    link = soup.find("link", rel=lambda value: value and "image_src" in value)
    if link is not None and link.get("href"):
        meta_images.append(str(link.get("href")))
    meta_images = [urljoin(canonical, src) for src in meta_images if src]

    best_guess = meta_images[0] if meta_images else ""
    widths = [_to_int(value) for value in _meta_values(soup, "og:image:width")]
    heights = [_to_int(value) for value in _meta_values(soup, "og:image:height")]
    if len(meta_images) > 1 and widths and heights:
        best_area = 0
        for index, (width, height) in enumerate(zip(widths, heights)):
            if index < len(meta_images) and width * height > best_area:
                best_area = width * height
                best_guess = meta_images[index]

    images: List[EmbeddedImage] = []
    for tag in soup.find_all("img"):
        src = _img_source(tag)
        if not src:
            continue
        images.append(EmbeddedImage(url=urljoin(canonical, src), alt=clean_html(tag.get("alt"))))

    return PageMetadata(
        title=clean_html(title),
        description=clean_html(description),
        site_name=clean_html(site_name),
        canonical_url=canonical,
        meta_images=meta_images,
        best_guess=best_guess,
        images=images,
    )


def embedded_image_score(image: EmbeddedImage, entities: QueryEntities) -> int:
    alt_words = " ".join(url_words(image.alt).split())
    value = HAS_URL if image.url else 0
    if entities.query and alt_words and f" {entities.query} " in f" {alt_words} ":
        value += EXACT_QUERY_IN_ALT
    if entities.entities:
        haystack = set(alt_words.split()) | set(url_words(url_filename(image.url)).split())
        if all(all(word in haystack for word in entity.split()) for entity in entities.entities):
            value += ALL_ENTITIES_IN_ALT_OR_NAME
    return value


def select_embedded_image(metadata: PageMetadata, entities: QueryEntities) -> Tuple[str, str]:
    """
    Pick the image URL and alt text that best represent the page for this query.

    An embedded image wins only when its alt text or file name matches the
    query; otherwise the page's own best-guess meta image is used.
    """
    best: Optional[EmbeddedImage] = None
    best_score = 0
    for image in metadata.images:
        value = embedded_image_score(image, entities)
        if value > best_score:
            best, best_score = image, value

    if best is not None and best_score > HAS_URL:
        return best.url, best.alt
    if metadata.best_guess:
        return metadata.best_guess, metadata.alt_for(metadata.best_guess)
    if best is not None:
        return best.url, best.alt
    return "", ""


class MetadataEnricher:
    """
    Resolves page URLs into direct image URLs.

    Candidates that already point at an image file pass through untouched.
    Any fetch or parse failure leaves the candidate as it was.
    """

    def __init__(self, config: PipelineConfig, *, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self._config = config
        self._headers = {"User-Agent": user_agent, "Accept": "text/html,application/xhtml+xml"}

    async def _fetch_html(self, url: str) -> Tuple[str, Optional[str]]:
        timeout = httpx.Timeout(self._config.enrichment_timeout_sec)
        try:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
                response = await client.get(url, headers=self._headers)
                response.raise_for_status()
                content_type = str(response.headers.get("content-type") or "").lower()
                if content_type and "html" not in content_type:
                    raise EnrichmentError(f"non-HTML page ({content_type})", url=url)
                return str(response.text or ""), None
        except (httpx.HTTPError, EnrichmentError) as exc:
            return "", f"{type(exc).__name__}: {exc}"

    async def _probe_content_type(self, url: str) -> Tuple[Optional[str], Optional[int], Optional[str]]:
        timeout = httpx.Timeout(self._config.enrichment_timeout_sec)
        try:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
                response = await client.head(url, headers={"User-Agent": self._headers["User-Agent"]})
                response.raise_for_status()
        except httpx.HTTPError as exc:
            return None, None, f"{type(exc).__name__}: {exc}"
        content_type = str(response.headers.get("content-type") or "").split(";")[0].strip().lower()
        length = _to_int(response.headers.get("content-length") or "")
        return content_type or None, length or None, None

    def needs_enrichment(self, candidate: Candidate) -> bool:
        if is_direct_image_url(candidate.image_url):
            return False
        return is_http_url(candidate.page_url) or is_http_url(candidate.image_url)

    async def _resolve(self, candidate: Candidate, entities: QueryEntities) -> Candidate:
        update = {}
        image_url = candidate.image_url
        # A content type already confirmed by the provider pins the original URL.
        confirmed = is_allowed_mime(candidate.content_type)

        if is_http_url(candidate.page_url):
            html, error = await self._fetch_html(candidate.page_url)
            if error:
                logger.debug(f"Enrichment fetch failed for {candidate.page_url}: {error}")
            else:
                metadata = extract_page_metadata(html, candidate.page_url)
                chosen, alt = select_embedded_image(metadata, entities)
                if chosen and is_http_url(chosen) and chosen != image_url and not confirmed:
                    image_url = chosen
                    # size and type described the previous URL
                    update.update(
                        image_url=image_url,
                        width=None,
                        height=None,
                        byte_size=None,
                        content_type=None,
                    )
                    if not candidate.thumbnail_url or candidate.thumbnail_url == candidate.image_url:
                        update["thumbnail_url"] = image_url
                if alt and not candidate.alt_text:
                    update["alt_text"] = alt
                if metadata.title and not candidate.title:
                    update["title"] = metadata.title
                if metadata.description and not candidate.description:
                    update["description"] = metadata.description
                if metadata.site_name and not candidate.source_name:
                    update["source_name"] = metadata.site_name

        known_type = None if "image_url" in update else candidate.content_type
        if (
            self._config.content_type_probe
            and is_http_url(image_url)
            and not is_direct_image_url(image_url)
            and not known_type
        ):
            content_type, byte_size, error = await self._probe_content_type(image_url)
            if error:
                logger.debug(f"Content-type probe failed for {image_url}: {error}")
            else:
                update["content_type"] = content_type
                if byte_size and (candidate.byte_size is None or "image_url" in update):
                    update["byte_size"] = byte_size

        if not update:
            return candidate
        if "image_url" in update:
            update["source_domain"] = candidate.source_domain or get_domain(candidate.page_url or image_url)
        return candidate.model_copy(update=update)

    async def enrich(self, candidate: Candidate, entities: QueryEntities) -> Candidate:
        if not self.needs_enrichment(candidate):
            return candidate
        try:
            return await asyncio.wait_for(
                self._resolve(candidate, entities),
                timeout=self._config.enrichment_timeout_sec,
            )
        except asyncio.TimeoutError:
            logger.debug(f"Enrichment timed out for {candidate.page_url or candidate.image_url}")
        except Exception as exc:
            logger.debug(f"Enrichment error for {candidate.page_url or candidate.image_url}: {exc}")
        return candidate

    async def enrich_all(self, candidates: Sequence[Candidate], entities: QueryEntities) -> List[Candidate]:
        """Enrich concurrently under the configured cap; output keeps input order."""
        semaphore = asyncio.Semaphore(self._config.enrichment_concurrency)

        async def _run(candidate: Candidate) -> Candidate:
            async with semaphore:
                return await self.enrich(candidate, entities)

        pending = [candidate for candidate in candidates if self.needs_enrichment(candidate)]
        if pending:
            logger.info(f"Enriching {len(pending)}/{len(candidates)} candidates from page metadata")
        return list(await asyncio.gather(*[_run(candidate) for candidate in candidates]))
