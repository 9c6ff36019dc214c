from __future__ import annotations

import math

from dashboard.schemas.listing import PageWindowEntry

ELLIPSIS = "..."


def total_pages_for(total_items: int, page_size: int) -> int:
    size = max(1, int(page_size))
    return max(1, math.ceil(max(0, int(total_items)) / size))


def clamp_page(page: int, total_pages: int) -> int:
    return min(max(1, int(page)), max(1, int(total_pages)))


def page_window(total_pages: int, current_page: int) -> list[PageWindowEntry]:
    """Page buttons to render: first, last and current +/- 1, with "..." for longer gaps.

    A gap hiding a single page shows that page instead of an ellipsis.
    """
    total = max(1, int(total_pages))
    current = clamp_page(current_page, total)
    kept = {1, total}
    kept.update(p for p in (current - 1, current, current + 1) if 1 <= p <= total)

    window: list[PageWindowEntry] = []
    previous = None
    for page in sorted(kept):
        if previous is not None:
            hidden = page - previous - 1
            if hidden == 1:
                window.append(previous + 1)
            elif hidden > 1:
                window.append(ELLIPSIS)
        window.append(page)
        previous = page
    return window
