"""
Ordered selector patterns for every recipe field.

Both the crawl-time selector engine (image fallback) and the site analyzer
(selector suggestion) read from this one table, most specific pattern first.
"""
from __future__ import annotations

from enum import Enum


class FieldKind(str, Enum):
    RECIPE_LINKS = "recipeLinks"
    TITLE = "title"
    DESCRIPTION = "description"
    INGREDIENTS = "ingredients"
    INSTRUCTIONS = "instructions"
    IMAGE = "image"
    PREP_TIME = "prepTime"
    COOK_TIME = "cookTime"
    DIFFICULTY = "difficulty"
    SERVINGS = "servings"


REQUIRED_FIELDS = (
    FieldKind.RECIPE_LINKS,
    FieldKind.TITLE,
    FieldKind.DESCRIPTION,
    FieldKind.INGREDIENTS,
    FieldKind.INSTRUCTIONS,
)

OPTIONAL_FIELDS = (
    FieldKind.IMAGE,
    FieldKind.PREP_TIME,
    FieldKind.COOK_TIME,
    FieldKind.DIFFICULTY,
    FieldKind.SERVINGS,
)

FIELD_PATTERNS: dict[FieldKind, tuple[str, ...]] = {
    FieldKind.RECIPE_LINKS: (
        ".recipe-card__link",
        ".recipe-card a",
        "a[href*='recipe']",
        "a[href*='recipes']",
        ".recipe a",
        ".recipe-preview a",
        "article.recipe a",
        ".post a",
        "[class*='recipe'] a",
        "a[class*='recipe']",
    ),
    FieldKind.TITLE: (
        ".recipe-detail__title",
        "h1[class*='recipe']",
        "h1[class*='title']",
        "h1.recipe-title",
        "h1.entry-title",
        ".recipe-name",
        "[itemprop='name']",
        "[class*='recipe-title']",
        "[class*='recipe-name']",
        "h1",
    ),
    FieldKind.DESCRIPTION: (
        ".recipe-detail__description",
        "[class*='recipe-description']",
        ".recipe-description",
        "[itemprop='description']",
        ".entry-content p:first-of-type",
        ".recipe-summary",
        "[class*='description']",
        ".recipe-intro",
        "meta[name='description']",
        ".content p:first-of-type",
    ),
    FieldKind.INGREDIENTS: (
        ".recipe-detail__ingredients-list li",
        "[itemprop='recipeIngredient']",
        ".ingredients-list li",
        ".ingredient-list li",
        ".ingredients li",
        "[class*='ingredient'] li",
        "ul[class*='ingredient'] li",
        "[class*='ingredients'] li",
        "ul li",
    ),
    FieldKind.INSTRUCTIONS: (
        ".recipe-detail__instructions-list li",
        "[itemprop='recipeInstructions'] li",
        "[itemprop='recipeInstructions']",
        ".instructions-list li",
        ".directions li",
        ".steps li",
        "[class*='instruction'] li",
        "[class*='step'] li",
        "[class*='method'] li",
        "[class*='directions'] li",
        "ol li",
    ),
    FieldKind.IMAGE: (
        "meta[property='og:image']",
        "meta[name='og:image']",
        "meta[name='twitter:image']",
        "meta[property='twitter:image']",
        "[itemprop='image']",
        ".recipe-detail__image img",
        ".recipe-image img",
        "img.recipe-image",
        "[class*='recipe-image'] img",
        "[class*='featured-image'] img",
        ".wp-post-image",
    ),
    FieldKind.PREP_TIME: (
        "[itemprop='prepTime']",
        ".recipe-detail__prep-time",
        ".prep-time",
        "[class*='prep-time']",
        "[class*='prep_time']",
        "[class*='preptime']",
    ),
    FieldKind.COOK_TIME: (
        "[itemprop='cookTime']",
        ".recipe-detail__cook-time",
        ".cook-time",
        "[class*='cook-time']",
        "[class*='cook_time']",
        "[class*='cooktime']",
    ),
    FieldKind.DIFFICULTY: (
        ".recipe-detail__difficulty",
        ".difficulty",
        "[class*='difficulty']",
        "[class*='skill-level']",
    ),
    FieldKind.SERVINGS: (
        "[itemprop='recipeYield']",
        ".recipe-detail__servings",
        ".servings",
        "[class*='servings']",
        "[class*='yield']",
    ),
}

IMAGE_ATTRIBUTES = ("content", "src", "data-src", "data-lazy-src", "href")


def patterns_for(field: FieldKind) -> tuple[str, ...]:
    return FIELD_PATTERNS[field]
