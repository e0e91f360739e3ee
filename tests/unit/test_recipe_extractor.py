from __future__ import annotations

import asyncio
import threading

import pytest

from src.services.errors import FetchFailedError
from src.services import recipe_extractor
from src.services.recipe_extractor import RecipeExtractor, extract_from_html
from src.services.types import Difficulty, SiteSelectors

URL = "https://skillet.example.com/recipes/cornbread"

SELECTORS = SiteSelectors(
    recipeLinks=".card a",
    title=".recipe-title",
    description=".recipe-description",
    ingredients=".ingredients li",
    instructions=".instructions li",
    image=".hero img",
    prepTime=".prep",
    cookTime=".cook",
    difficulty=".level",
    servings=".yield",
)

TITLE = "<h2 class='recipe-title'>Skillet Cornbread</h2>"
DESCRIPTION = "<p class='recipe-description'>Golden and crisp.</p>"
INGREDIENTS = "<ul class='ingredients'><li>1 cup cornmeal</li><li>1 egg</li></ul>"
INSTRUCTIONS = "<ol class='instructions'><li>Heat the skillet.</li><li>Pour and bake.</li></ol>"
EXTRAS = (
    "<div class='hero'><img src='/img/cornbread.jpg'></div>"
    "<span class='prep'>10 min</span><span class='cook'>1 hour 5 minutes</span>"
    "<span class='level'>Beginner</span><span class='yield'>Serves 8</span>"
)


def page(*parts: str) -> str:
    return "<html><body>" + "".join(parts) + "</body></html>"


class FetcherStub:
    def __init__(self, pages: dict[str, str]) -> None:
        self.pages = pages
        self.requested: list[str] = []

    async def fetch(self, url: str) -> str:
        self.requested.append(url)
        if url not in self.pages:
            raise FetchFailedError(url, 3, "HTTP 404")
        return self.pages[url]


class TestExtractFromHtml:
    def test_full_record(self) -> None:
        recipe = extract_from_html(page(TITLE, DESCRIPTION, INGREDIENTS, INSTRUCTIONS, EXTRAS), URL, SELECTORS)

        assert recipe is not None
        assert recipe.title == "Skillet Cornbread"
        assert recipe.description == "Golden and crisp."
        assert recipe.ingredients == ["1 cup cornmeal", "1 egg"]
        assert recipe.instructions == ["Heat the skillet.", "Pour and bake."]
        assert recipe.source_url == URL
        assert recipe.image_url == "https://skillet.example.com/img/cornbread.jpg"
        assert recipe.prep_time == 10
        assert recipe.cook_time == 65
        assert recipe.difficulty is Difficulty.EASY
        assert recipe.servings == 8

    def test_optional_fields_stay_undetected(self) -> None:
        recipe = extract_from_html(page(TITLE, DESCRIPTION, INGREDIENTS, INSTRUCTIONS), URL, SELECTORS)

        assert recipe is not None
        assert recipe.image_url is None
        assert recipe.prep_time is None
        assert recipe.cook_time is None
        assert recipe.difficulty is None
        assert recipe.servings is None

    @pytest.mark.parametrize(
        "parts",
        [
            (DESCRIPTION, INGREDIENTS, INSTRUCTIONS),
            (TITLE, INGREDIENTS, INSTRUCTIONS),
            (TITLE, DESCRIPTION, INSTRUCTIONS),
            (TITLE, DESCRIPTION, INGREDIENTS),
            (),
        ],
        ids=["no-title", "no-description", "no-ingredients", "no-instructions", "empty"],
    )
    def test_incomplete_pages_rejected(self, parts: tuple[str, ...]) -> None:
        assert extract_from_html(page(*parts), URL, SELECTORS) is None

    def test_only_short_entries_counts_as_missing(self) -> None:
        html = page(
            TITLE,
            DESCRIPTION,
            INGREDIENTS,
            "<ol class='instructions'><li>Step 1</li><li>2.</li></ol>",
        )
        assert extract_from_html(html, URL, SELECTORS) is None

    def test_title_and_description_fallbacks_satisfy_gate(self) -> None:
        html = (
            "<html><head><meta name='description' content='Weeknight dinner.'></head>"
            "<body><h1>Cast Iron Steak</h1>" + INGREDIENTS + INSTRUCTIONS + "</body></html>"
        )
        recipe = extract_from_html(html, URL, SELECTORS)

        assert recipe is not None
        assert recipe.title == "Cast Iron Steak"
        assert recipe.description == "Weeknight dinner."


class TestRecipeExtractor:
    def test_fetches_and_extracts(self) -> None:
        fetcher = FetcherStub({URL: page(TITLE, DESCRIPTION, INGREDIENTS, INSTRUCTIONS)})
        extractor = RecipeExtractor(fetcher)

        recipe = asyncio.run(extractor.extract(URL, SELECTORS))

        assert recipe is not None
        assert recipe.title == "Skillet Cornbread"
        assert fetcher.requested == [URL]

    def test_fetch_failure_returns_none(self) -> None:
        extractor = RecipeExtractor(FetcherStub({}))

        assert asyncio.run(extractor.extract(URL, SELECTORS)) is None

    def test_parsing_runs_off_the_event_loop_thread(self, monkeypatch: pytest.MonkeyPatch) -> None:
        parse_threads: list[int] = []

        def recording_parse(html: str):
            parse_threads.append(threading.get_ident())
            return real_parse(html)

        real_parse = recipe_extractor.parse_document
        monkeypatch.setattr(recipe_extractor, "parse_document", recording_parse)
        extractor = RecipeExtractor(FetcherStub({URL: page(TITLE, DESCRIPTION, INGREDIENTS, INSTRUCTIONS)}))

        async def extract_on_loop():
            return threading.get_ident(), await extractor.extract(URL, SELECTORS)

        loop_thread, recipe = asyncio.run(extract_on_loop())

        assert recipe is not None
        assert len(parse_threads) == 1
        assert parse_threads[0] != loop_thread
