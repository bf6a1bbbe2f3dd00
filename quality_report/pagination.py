"""Page walking shared by every paginated SonarQube query.

SonarQube paginates via ``p`` (page number) and ``ps`` (page size) and reports
the result count in ``response["paging"]["total"]``. It refuses to page past
10 000 results, so the walk stops there and flags the truncation.
"""

import logging
import warnings
from dataclasses import dataclass
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

MAX_RESULTS = 10_000


def continue_to_next_page(
    page: int, per_page: int, total: int, max_results: int = MAX_RESULTS
) -> tuple[int, bool]:
    """Advance *page* and tell whether the next page should be fetched.

    Returns ``(next_page, should_continue)``. A missing or non-positive
    *per_page* ends the walk.
    """
    page += 1
    if per_page <= 0:
        return page, False
    offset = page * per_page
    return page, offset < total and offset <= max_results


@dataclass
class PageCursor:
    page: int = 1
    per_page: int = 0
    total: int = 0
    max_results: int = MAX_RESULTS

    @property
    def truncated(self) -> bool:
        """True when the server holds more results than can be paged through."""
        return self.total > self.max_results

    def update(self, paging: dict) -> None:
        """Take ``total`` and ``pageSize`` from a response's paging block."""
        self.total = int(paging.get("total", 0))
        self.per_page = int(paging.get("pageSize", self.per_page))

    def advance(self) -> bool:
        self.page, more = continue_to_next_page(
            self.page, self.per_page, self.total, self.max_results
        )
        return more


def iterate_pages(
    fetch: Callable[[int], dict], max_results: int = MAX_RESULTS
) -> Iterator[dict]:
    """Yield every page returned by ``fetch(page)``, starting at page 1.

    Failures raised by *fetch* propagate untouched.
    """
    cursor = PageCursor(max_results=max_results)
    _warning_emitted = False

    while True:
        data = fetch(cursor.page)
        yield data

        cursor.update(data.get("paging", {}))

        if cursor.truncated and not _warning_emitted:
            logger.warning(
                "Result set truncated at %d of %d items", cursor.max_results, cursor.total
            )
            warnings.warn(
                f"Result set exceeds {cursor.max_results} items (total={cursor.total}). "
                "SonarQube caps pagination at 10 000 — some results are missing.",
                UserWarning,
                stacklevel=2,
            )
            _warning_emitted = True

        if not cursor.advance():
            break
