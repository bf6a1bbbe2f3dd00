"""Group paginated findings by the component (file) that owns them.

Functions:
    collect_groups(fetch_page, project_key, data_key, enrich) -> dict
    sort_groups(groups, primary_key)                         -> dict

A *group* is the component entry found in the page's ``components``
directory (``key``, ``path``, ``longName``, ``qualifier``, ...) plus an
``items`` list holding the enriched findings of that component.
"""

import logging
import re
from typing import Any, Callable

from quality_report.client import QueryFailure
from quality_report.pagination import iterate_pages

logger = logging.getLogger(__name__)

FetchPage = Callable[[str, int], dict]
Enrich = Callable[[dict], dict]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class MissingSortKey(Exception):
    """Raised when a finding lacks the field its group is sorted by."""

    def __init__(self, component: str, sort_key: str) -> None:
        super().__init__(
            f"Cannot sort items of '{component}': an item has no '{sort_key}' field"
        )
        self.component = component
        self.sort_key = sort_key


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def require_fields(record: dict, fields: tuple[str, ...], kind: str) -> None:
    """Raise QueryFailure when *record* lacks one of *fields*."""
    missing = [f for f in fields if f not in record]
    if missing:
        raise QueryFailure(
            f"Malformed {kind} record {record.get('key', '?')!r}: missing {', '.join(missing)}"
        )


def find_component(components: list[dict], key: str) -> dict | None:
    """Return the directory entry whose ``key`` is *key*, or None."""
    for component in components:
        if component.get("key") == key:
            return component
    return None


def collect_groups(
    fetch_page: FetchPage,
    project_key: str,
    data_key: str,
    enrich: Enrich,
) -> dict[str, dict]:
    """Drain a paginated query and group its records by component.

    Args:
        fetch_page:  ``fetch_page(project_key, page)`` returning one page
        project_key: SonarQube project key
        data_key:    key of the records list in each page (``"issues"``,
                     ``"hotspots"``)
        enrich:      called once per record, its return value is stored
    """
    groups: dict[str, dict] = {}

    def fetch(page: int) -> dict:
        logger.debug("Fetching %s page %d for %s", data_key, page, project_key)
        return fetch_page(project_key, page)

    for data in iterate_pages(fetch):
        # Each page carries its own directory of the components it references
        components = data.get("components", [])

        for record in data.get(data_key, []):
            require_fields(record, ("component",), data_key)
            key = record["component"]
            if key not in groups:
                entry = find_component(components, key) or {"key": key}
                groups[key] = {**entry, "items": []}
            groups[key]["items"].append(enrich(record))

    logger.info("Collected %s for %s across %d components", data_key, project_key, len(groups))
    return groups


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------

def _sort_value(value: Any) -> tuple:
    """Order numbers numerically, blanks before numbers and text after them."""
    if value is None or value == "":
        return (0, 0)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value)
    try:
        return (1, float(value))
    except (TypeError, ValueError):
        return (2, str(value))


def sort_groups(groups: dict[str, dict], primary_key: str) -> dict[str, dict]:
    """Sort each group's items by *primary_key* then ``line``, groups by key.

    Every item is checked before anything is reordered; the first component
    (in key order) holding an item without *primary_key* is reported through
    MissingSortKey.
    """
    ordered_keys = sorted(groups)

    for key in ordered_keys:
        if any(primary_key not in item for item in groups[key].get("items", [])):
            raise MissingSortKey(key, primary_key)

    result: dict[str, dict] = {}
    for key in ordered_keys:
        group = groups[key]
        items = sorted(
            group.get("items", []),
            key=lambda item: (_sort_value(item[primary_key]), _sort_value(item.get("line"))),
        )
        result[key] = {**group, "items": items}
    return result


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------

_HTML_TAG_RE = re.compile(r"<[^>]+>")


def strip_html(text: str) -> str:
    """Remove HTML tags injected by SonarQube syntax highlighting."""
    return _HTML_TAG_RE.sub("", text)


def snippet_source(snippet: dict, component: str) -> str:
    """Plain-text code of *component* from an ``issue_snippets`` response."""
    sources = snippet.get(component, {}).get("sources", [])
    return "".join(strip_html(line.get("code", "")) + "\n" for line in sources)
