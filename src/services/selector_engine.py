from __future__ import annotations

import re
from typing import Optional, Union

from bs4 import BeautifulSoup, Tag

from .page_parser import clean_text, element_text, select_all, select_first
from .selector_patterns import IMAGE_ATTRIBUTES, FieldKind, patterns_for
from .types import Difficulty
from .url_normalizer import normalize_url

MIN_INGREDIENT_LENGTH = 2
MIN_INSTRUCTION_LENGTH = 6

HOURS_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(?:hours?|hrs?|h)(?![a-z])", re.IGNORECASE)
MINUTES_PATTERN = re.compile(r"(\d+)\s*(?:minutes?|mins?|m)(?![a-z])", re.IGNORECASE)
ISO_DURATION_PATTERN = re.compile(
    r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:\d+(?:\.\d+)?S)?)?$",
    re.IGNORECASE,
)
INTEGER_PATTERN = re.compile(r"\d+")
STEP_TOKEN_PATTERN = re.compile(r"^(?:step\s*\d*|\d+)\s*[.):]?$", re.IGNORECASE)

FieldValue = Union[str, list[str], int, Difficulty, None]


def _first_text(document: BeautifulSoup, selector: Optional[str]) -> Optional[str]:
    for element in select_all(document, selector):
        text = element_text(element)
        if text:
            return text
    return None


def _all_texts(document: BeautifulSoup, selector: Optional[str]) -> list[str]:
    return [element_text(element) for element in select_all(document, selector)]


def extract_title(document: BeautifulSoup, selector: Optional[str]) -> Optional[str]:
    return _first_text(document, selector) or _first_text(document, "h1")


def extract_description(document: BeautifulSoup, selector: Optional[str]) -> Optional[str]:
    return _first_text(document, selector) or _first_text(document, "meta[name='description']")


def extract_ingredients(document: BeautifulSoup, selector: Optional[str]) -> list[str]:
    seen: set[str] = set()
    ingredients: list[str] = []
    for text in _all_texts(document, selector):
        if len(text) < MIN_INGREDIENT_LENGTH or text in seen:
            continue
        seen.add(text)
        ingredients.append(text)
    return ingredients


def is_step_token(text: str) -> bool:
    return bool(STEP_TOKEN_PATTERN.match(text.strip()))


def extract_instructions(document: BeautifulSoup, selector: Optional[str]) -> list[str]:
    # Repeated steps are legitimate, so no dedup here.
    return [
        text
        for text in _all_texts(document, selector)
        if len(text) >= MIN_INSTRUCTION_LENGTH and not is_step_token(text)
    ]


def _image_url_from(element: Tag, base_url: str) -> Optional[str]:
    for attribute in IMAGE_ATTRIBUTES:
        value = element.get(attribute)
        if isinstance(value, str):
            normalized = normalize_url(value, base_url)
            if normalized:
                return normalized
    # itemprop=image is sometimes a wrapper around the <img>
    nested = element.find("img")
    if isinstance(nested, Tag) and nested is not element:
        return _image_url_from(nested, base_url)
    return None


def extract_image(document: BeautifulSoup, selector: Optional[str], base_url: str) -> Optional[str]:
    candidates = ([selector] if selector else []) + list(patterns_for(FieldKind.IMAGE))
    for candidate in candidates:
        for element in select_all(document, candidate):
            url = _image_url_from(element, base_url)
            if url:
                return url
    return None


def _parse_iso_duration(text: str) -> Optional[int]:
    match = ISO_DURATION_PATTERN.match(text.strip())
    if not match or not any(match.groups()):
        return None
    days, hours, minutes = (int(group) if group else 0 for group in match.groups())
    return days * 24 * 60 + hours * 60 + minutes


def parse_duration_minutes(text: Optional[str]) -> Optional[int]:
    """
    Turn free-form duration text into whole minutes.

    "1 hour 30 minutes" -> 90, "2 hr" -> 120, "45" -> 45, "PT1H" -> 60.
    Returns None when nothing resembling a duration is present.
    """
    if not text:
        return None

    iso_minutes = _parse_iso_duration(text)
    if iso_minutes is not None:
        return iso_minutes

    hours = HOURS_PATTERN.findall(text)
    minutes = MINUTES_PATTERN.findall(text)
    if hours or minutes:
        total = sum(float(value) for value in hours) * 60 + sum(int(value) for value in minutes)
        return int(round(total))

    bare = INTEGER_PATTERN.search(text)
    if bare:
        return int(bare.group())
    return None


def _duration_sources(element: Tag) -> list[str]:
    sources = []
    for attribute in ("content", "datetime"):
        value = element.get(attribute)
        if isinstance(value, str) and value.strip():
            sources.append(value)
    sources.append(element_text(element))
    return sources


def extract_minutes(document: BeautifulSoup, selector: Optional[str]) -> Optional[int]:
    element = select_first(document, selector)
    if element is None:
        return None
    for source in _duration_sources(element):
        minutes = parse_duration_minutes(source)
        if minutes is not None:
            return minutes
    return None


def classify_difficulty(text: Optional[str]) -> Difficulty:
    lowered = clean_text(text).lower()
    if "easy" in lowered or "beginner" in lowered:
        return Difficulty.EASY
    if "hard" in lowered or "advanced" in lowered:
        return Difficulty.HARD
    return Difficulty.MEDIUM


def extract_difficulty(document: BeautifulSoup, selector: Optional[str]) -> Optional[Difficulty]:
    """None means the page had nothing to classify; callers default it at insert time."""
    text = _first_text(document, selector)
    if text is None:
        return None
    return classify_difficulty(text)


def parse_servings(text: Optional[str]) -> Optional[int]:
    if not text:
        return None
    match = INTEGER_PATTERN.search(text)
    if not match:
        return None
    servings = int(match.group())
    return servings if servings > 0 else None


def extract_servings(document: BeautifulSoup, selector: Optional[str]) -> Optional[int]:
    element = select_first(document, selector)
    if element is None:
        return None
    content = element.get("content")
    if isinstance(content, str):
        parsed = parse_servings(content)
        if parsed is not None:
            return parsed
    return parse_servings(element_text(element))


def extract_field(
    document: BeautifulSoup,
    selector: Optional[str],
    field: FieldKind,
    base_url: str = "",
) -> FieldValue:
    if field is FieldKind.TITLE:
        return extract_title(document, selector)
    if field is FieldKind.DESCRIPTION:
        return extract_description(document, selector)
    if field is FieldKind.INGREDIENTS:
        return extract_ingredients(document, selector)
    if field is FieldKind.INSTRUCTIONS:
        return extract_instructions(document, selector)
    if field is FieldKind.IMAGE:
        return extract_image(document, selector, base_url)
    if field in (FieldKind.PREP_TIME, FieldKind.COOK_TIME):
        return extract_minutes(document, selector)
    if field is FieldKind.DIFFICULTY:
        return extract_difficulty(document, selector)
    if field is FieldKind.SERVINGS:
        return extract_servings(document, selector)
    raise ValueError(f"Unsupported field for extraction: {field}")
