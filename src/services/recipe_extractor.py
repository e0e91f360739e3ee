from __future__ import annotations

import logging
from typing import Optional

from starlette.concurrency import run_in_threadpool

from .errors import FetchFailedError
from .fetcher import ResilientFetcher
from .page_parser import parse_document
from .selector_engine import (
    extract_description,
    extract_difficulty,
    extract_image,
    extract_ingredients,
    extract_instructions,
    extract_minutes,
    extract_servings,
    extract_title,
)
from .types import ExtractedRecipe, SiteSelectors

logger = logging.getLogger("crawler.extractor")


def extract_from_html(
    html: str,
    url: str,
    selectors: SiteSelectors,
    log: logging.Logger | None = None,
) -> Optional[ExtractedRecipe]:
    """
    Pull every field out of one detail page.

    Returns None unless title, description, at least one ingredient and at
    least one instruction were all found. Optional fields that were not
    detected are left as None, never defaulted.
    """
    log = log or logger
    document = parse_document(html)

    title = extract_title(document, selectors.title)
    description = extract_description(document, selectors.description)
    ingredients = extract_ingredients(document, selectors.ingredients)
    instructions = extract_instructions(document, selectors.instructions)

    missing = [
        name
        for name, present in (
            ("title", bool(title)),
            ("description", bool(description)),
            ("ingredients", bool(ingredients)),
            ("instructions", bool(instructions)),
        )
        if not present
    ]
    if missing:
        log.info(
            "extract.incomplete url=%s missing=%s ingredients=%d instructions=%d",
            url,
            ",".join(missing),
            len(ingredients),
            len(instructions),
        )
        return None

    return ExtractedRecipe(
        title=title,
        description=description,
        ingredients=ingredients,
        instructions=instructions,
        source_url=url,
        image_url=extract_image(document, selectors.image, url),
        prep_time=extract_minutes(document, selectors.prep_time),
        cook_time=extract_minutes(document, selectors.cook_time),
        difficulty=extract_difficulty(document, selectors.difficulty),
        servings=extract_servings(document, selectors.servings),
    )


class RecipeExtractor:
    def __init__(self, fetcher: ResilientFetcher, log: logging.Logger | None = None) -> None:
        self._fetcher = fetcher
        self._log = log or logger

    async def extract(self, url: str, selectors: SiteSelectors) -> Optional[ExtractedRecipe]:
        self._log.info("extract.start url=%s", url)
        try:
            html = await self._fetcher.fetch(url)
        except FetchFailedError as error:
            self._log.warning("extract.fetch_failed url=%s error=%s", url, error)
            return None

        recipe = await run_in_threadpool(extract_from_html, html, url, selectors, log=self._log)
        if recipe is not None:
            self._log.info(
                "extract.ok url=%s title=%r ingredients=%d instructions=%d",
                url,
                recipe.title,
                len(recipe.ingredients),
                len(recipe.instructions),
            )
        return recipe
