from __future__ import annotations

import re
from urllib.parse import SplitResult, urljoin, urlsplit

ABSOLUTE_PREFIXES = ("http://", "https://")
DATA_URI_PREFIX = "data:"
# Browsers drop tab/CR/LF anywhere in a URL before parsing it.
STRIPPED_CHARACTERS_PATTERN = re.compile(r"[\t\r\n]")
CONTROL_CHARACTER_PATTERN = re.compile(r"[\x00-\x1f\x7f]")


def _has_valid_port(parts: SplitResult) -> bool:
    try:
        parts.port
    except ValueError:
        return False
    return True


def _is_fetchable(parts: SplitResult) -> bool:
    return bool(parts.scheme and parts.netloc) and _has_valid_port(parts)


def _resolve(value: str, base_url: str) -> str:
    base = urlsplit(base_url)
    if not _is_fetchable(base):
        return ""
    if value.startswith("//"):
        return f"{base.scheme}:{value}"
    if value.startswith("/"):
        return f"{base.scheme}://{base.netloc}{value}"
    return urljoin(base_url, value)


def normalize_url(candidate: str | None, base_url: str) -> str:
    """
    Resolve an href/src value against the page it was found on.

    Tab, CR and LF are removed first. Returns an absolute URL, data URIs
    and already-absolute URLs as given, or '' when the value cannot be
    turned into a fetchable URL. Never raises.
    """
    if not isinstance(candidate, str):
        return ""
    value = STRIPPED_CHARACTERS_PATTERN.sub("", candidate).strip()
    if not value or CONTROL_CHARACTER_PATTERN.search(value):
        return ""

    lowered = value.lower()
    if lowered.startswith(DATA_URI_PREFIX):
        return value

    try:
        resolved = value if lowered.startswith(ABSOLUTE_PREFIXES) else _resolve(value, base_url)
        if not resolved or CONTROL_CHARACTER_PATTERN.search(resolved):
            return ""
        return resolved if _is_fetchable(urlsplit(resolved)) else ""
    except (ValueError, TypeError):
        return ""
