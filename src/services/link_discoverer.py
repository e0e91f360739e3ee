from __future__ import annotations

import logging
import re
from typing import Iterator

from bs4 import BeautifulSoup, Tag

from .page_parser import select_all
from .url_normalizer import normalize_url

logger = logging.getLogger("crawler.links")

RECIPE_KEYWORDS = ("recipe", "recipes", "cooking", "food")
# Standalone 2- or 4-digit runs, e.g. /2024/ or -42- in dated/ID'd permalinks.
NUMERIC_TOKEN_PATTERN = re.compile(r"(?<!\d)(?:\d{2}|\d{4})(?!\d)")


def is_recipe_like(url: str) -> bool:
    lowered = url.lower()
    if any(keyword in lowered for keyword in RECIPE_KEYWORDS):
        return True
    return NUMERIC_TOKEN_PATTERN.search(url) is not None


def _hrefs(element: Tag) -> Iterator[str]:
    href = element.get("href")
    if isinstance(href, str):
        yield href
        return
    for anchor in element.find_all("a", href=True):
        value = anchor.get("href")
        if isinstance(value, str):
            yield value


def discover_links(
    document: BeautifulSoup,
    selector: str,
    base_url: str,
    log: logging.Logger | None = None,
) -> list[str]:
    """
    Collect candidate recipe URLs from a listing page.

    Matched hrefs are normalized against `base_url`; unusable ones are
    dropped silently, the rest must pass `is_recipe_like`. Duplicates are
    removed keeping first-seen order.
    """
    log = log or logger
    matched = select_all(document, selector)
    links: dict[str, None] = {}

    for element in matched:
        for href in _hrefs(element):
            url = normalize_url(href, base_url)
            if not url or url.startswith("data:"):
                continue
            if not is_recipe_like(url):
                continue
            links.setdefault(url, None)

    log.info(
        "links.discovered base=%s selector=%r matched=%d kept=%d",
        base_url,
        selector,
        len(matched),
        len(links),
    )
    return list(links)
