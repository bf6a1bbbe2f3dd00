"""Security hotspot report.

Every hotspot is decorated with its code snippet and the ``hotspots/show``
detail (risk description, fix recommendations), then grouped by component
and sorted by ``vulnerability_level`` then ``line``.
"""

from typing import Any, Callable

from quality_report.aggregate import collect_groups, require_fields, snippet_source, sort_groups
from quality_report.client import SonarClient
from quality_report.reports.issues import derive_line

_VULNERABILITY_LEVELS = {
    "HIGH":   -1,
    "MEDIUM": -2,
    "LOW":    -1,
}


def vulnerability_level(probability: str | None) -> int:
    return _VULNERABILITY_LEVELS.get(probability, 0)


def hotspot_enricher(client: SonarClient) -> Callable[[dict], dict]:
    def enrich(raw: dict[str, Any]) -> dict[str, Any]:
        hotspot = dict(raw)
        require_fields(hotspot, ("key", "component"), "hotspot")
        hotspot["line"] = derive_line(hotspot)
        hotspot["vulnerability_level"] = vulnerability_level(
            hotspot.get("vulnerabilityProbability")
        )
        snippet = client.source_snippet(hotspot["key"])
        hotspot["source"] = snippet_source(snippet, hotspot["component"])
        hotspot["info"] = client.hotspot_detail(hotspot["key"])
        return hotspot

    return enrich


def get_hotspots(client: SonarClient, project_key: str) -> dict[str, dict]:
    """All hotspots of the project grouped by component."""
    groups = collect_groups(
        client.hotspots_search,
        project_key,
        "hotspots",
        hotspot_enricher(client),
    )
    return sort_groups(groups, "vulnerability_level")
