"""Cursor pagination for X Ads list endpoints."""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger("x-ads")


def paginate(
    fetch_page: Callable[[dict[str, Any]], dict[str, Any]],
    params: dict[str, Any] | None = None,
) -> list[Any]:
    """Fetch every page and return the ``data`` arrays concatenated in page order.

    Stops when a response carries no ``next_cursor`` or repeats the cursor that
    produced it. No upper bound is enforced on pages or results.
    """
    results: list[Any] = []
    cursor: str | None = None

    while True:
        page_params = dict(params or {})
        if cursor:
            page_params["cursor"] = cursor

        response = fetch_page(page_params)
        data = response.get("data")
        if isinstance(data, list):
            results.extend(data)
        elif data is not None:
            results.append(data)

        next_cursor = response.get("next_cursor")
        if not next_cursor:
            break
        if next_cursor == cursor:
            logger.warning("pagination_cursor_stalled cursor=%s results=%s", cursor, len(results))
            break
        cursor = next_cursor

    return results
