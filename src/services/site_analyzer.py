from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup
from starlette.concurrency import run_in_threadpool

from .errors import InvalidURLError
from .fetcher import ResilientFetcher
from .link_discoverer import discover_links
from .page_parser import element_text, parse_document, select_all
from .recipe_extractor import RecipeExtractor
from .selector_patterns import OPTIONAL_FIELDS, FieldKind, patterns_for
from .types import ExtractedRecipe, SiteSelectors

logger = logging.getLogger("crawler.analyzer")


@dataclass
class SuggestedConfig:
    site_name: str
    site_url: str
    selectors: SiteSelectors


@dataclass
class SampleData:
    recipe_links: int
    sample_title: Optional[str] = None
    sample_description: Optional[str] = None
    sample_ingredients: list[str] = field(default_factory=list)
    sample_instructions: list[str] = field(default_factory=list)
    sample_image: Optional[str] = None


@dataclass
class SiteAnalysis:
    suggested_config: SuggestedConfig
    sample_data: SampleData


def suggest_site_name(url: str) -> str:
    """'https://www.lodge-cast-iron.com/x' -> 'Lodge Cast Iron'."""
    hostname = urlsplit(url).hostname or ""
    if hostname.startswith("www."):
        hostname = hostname[len("www."):]
    label = hostname.split(".")[0]
    return " ".join(part[:1].upper() + part[1:] for part in label.split("-") if part)


def pick_most_matches(document: BeautifulSoup, patterns: tuple[str, ...]) -> str:
    best_pattern = patterns[0]
    best_count = 0
    for pattern in patterns:
        count = len(select_all(document, pattern))
        if count > best_count:
            best_pattern, best_count = pattern, count
    return best_pattern


def pick_first_with_content(document: BeautifulSoup, patterns: tuple[str, ...]) -> Optional[str]:
    for pattern in patterns:
        if any(element_text(element) for element in select_all(document, pattern)):
            return pattern
    return None


def detect_selectors(document: BeautifulSoup) -> SiteSelectors:
    """
    Guess a selector configuration from the shared pattern table.

    recipeLinks takes the pattern with the most matches; every other field
    takes the first pattern with non-empty content. Required fields fall
    back to their first pattern, optional fields stay unset.
    """
    detected: dict[str, str] = {
        FieldKind.RECIPE_LINKS.value: pick_most_matches(document, patterns_for(FieldKind.RECIPE_LINKS)),
    }
    for kind in FieldKind:
        if kind is FieldKind.RECIPE_LINKS:
            continue
        patterns = patterns_for(kind)
        choice = pick_first_with_content(document, patterns)
        if choice is None and kind not in OPTIONAL_FIELDS:
            choice = patterns[0]
        if choice is not None:
            detected[kind.value] = choice
    return SiteSelectors.model_validate(detected)


class SiteAnalyzer:
    def __init__(
        self,
        fetcher: ResilientFetcher,
        extractor: RecipeExtractor | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._log = log or logger
        self._extractor = extractor or RecipeExtractor(fetcher, log=self._log)

    async def _load(self, url: str) -> BeautifulSoup:
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise InvalidURLError(f"Not an http(s) URL: {url}")
        html = await self._fetcher.fetch(url)
        return await run_in_threadpool(parse_document, html)

    async def detect_selectors(self, url: str) -> SiteSelectors:
        self._log.info("analyze.detect url=%s", url)
        selectors = detect_selectors(await self._load(url))
        self._log.info("analyze.detected url=%s selectors=%s", url, selectors.to_json())
        return selectors

    async def analyze(self, url: str) -> SiteAnalysis:
        """
        Suggest a configuration for `url` and preview it on the first link.

        Raises InvalidURLError or FetchFailedError when the page itself
        cannot be loaded; a failed sample extraction only leaves the sample
        fields empty.
        """
        self._log.info("analyze.start url=%s", url)
        document = await self._load(url)
        selectors = detect_selectors(document)
        links = discover_links(document, selectors.recipe_links, url, log=self._log)

        sample: Optional[ExtractedRecipe] = None
        if links:
            sample = await self._extractor.extract(links[0], selectors)

        analysis = SiteAnalysis(
            suggested_config=SuggestedConfig(
                site_name=suggest_site_name(url),
                site_url=url,
                selectors=selectors,
            ),
            sample_data=self._sample_data(len(links), sample),
        )
        self._log.info(
            "analyze.done url=%s links=%d sample=%s",
            url,
            len(links),
            "yes" if sample else "no",
        )
        return analysis

    @staticmethod
    def _sample_data(link_count: int, sample: Optional[ExtractedRecipe]) -> SampleData:
        if sample is None:
            return SampleData(recipe_links=link_count)
        return SampleData(
            recipe_links=link_count,
            sample_title=sample.title,
            sample_description=sample.description,
            sample_ingredients=list(sample.ingredients),
            sample_instructions=list(sample.instructions),
            sample_image=sample.image_url,
        )
