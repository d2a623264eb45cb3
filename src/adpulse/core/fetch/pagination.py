"""
Page decoding and cursor extraction for Graph API list responses.

Response shape: ``{"data": [...], "paging": {"next": url, "cursors": {...}}}``.
Unexpected shapes end pagination instead of raising, so a misbehaving
upstream can never keep the loop going.
"""

from __future__ import annotations

import logging
from typing import Any, Callable
from urllib.parse import parse_qs, urlparse

logger = logging.getLogger(__name__)

CursorExtractor = Callable[[Any], "str | None"]


def page_rows(payload: Any) -> list[dict[str, Any]] | None:
    """Rows of one page, or None when the page is malformed."""
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, list):
            return data
        return None
    if isinstance(payload, list):
        return payload
    return None


def after_cursor(payload: Any) -> str | None:
    """Default cursor extractor for Graph API cursor pagination.

    A next page exists only when ``paging.next`` is present. The cursor is
    the ``after`` parameter of that URL, falling back to
    ``paging.cursors.after``.
    """
    if not isinstance(payload, dict):
        return None

    paging = payload.get("paging")
    if paging is None:
        return None
    if not isinstance(paging, dict):
        logger.warning("Ignoring malformed paging field of type %s", type(paging).__name__)
        return None

    next_url = paging.get("next")
    if not next_url:
        return None
    if not isinstance(next_url, str):
        logger.warning("Ignoring malformed paging.next of type %s", type(next_url).__name__)
        return None

    values = parse_qs(urlparse(next_url).query).get("after")
    if values and values[0]:
        return values[0]

    cursors = paging.get("cursors")
    if isinstance(cursors, dict) and isinstance(cursors.get("after"), str) and cursors["after"]:
        return cursors["after"]

    logger.warning("paging.next has no after cursor; treating as last page")
    return None
