from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

logger = logging.getLogger("crawler.parser")

WHITESPACE_PATTERN = re.compile(r"\s+")
HTML_PARSER = "html.parser"


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", HTML_PARSER)


def select_all(document: BeautifulSoup | Tag, selector: str | None) -> list[Tag]:
    """Run a CSS query; an empty or malformed selector matches nothing."""
    if not selector or not selector.strip():
        return []
    try:
        return list(document.select(selector))
    except (SelectorSyntaxError, ValueError, NotImplementedError) as error:
        logger.debug("parser.invalid_selector selector=%r error=%s", selector, error)
        return []


def select_first(document: BeautifulSoup | Tag, selector: str | None) -> Tag | None:
    matches = select_all(document, selector)
    return matches[0] if matches else None


def element_text(element: Tag) -> str:
    """Visible text with whitespace collapsed; <meta> elements yield their content."""
    if element.name == "meta":
        content = element.get("content")
        return clean_text(content if isinstance(content, str) else "")
    return clean_text(element.get_text(" "))


def clean_text(value: str | None) -> str:
    if not value:
        return ""
    return WHITESPACE_PATTERN.sub(" ", value).strip()
