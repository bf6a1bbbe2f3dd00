"""Code duplication report.

Functions:
    collect_file_duplications(client, project_key)  -> dict  key -> entry
    get_duplications_summary(client, project_key)   -> dict  metric -> value
    summarize_duplications(client, project_key)     -> dict

Entries are file components (qualifier ``FIL``) with their duplication
measures flattened into ``{"duplicated_lines": 12, ...}``.
"""

import logging

from quality_report.aggregate import require_fields
from quality_report.client import SonarClient
from quality_report.measures import measures_to_dict
from quality_report.pagination import iterate_pages

logger = logging.getLogger(__name__)

FILE_QUALIFIER = "FIL"

#: View name -> metric it is filtered (and possibly ranked) on
FOCUS_METRICS: dict[str, str] = {
    "lines":  "duplicated_lines",
    "files":  "duplicated_files",
    "blocks": "duplicated_blocks",
}

#: Views ranked by descending metric value; ``files`` keeps key order
_RANKED_VIEWS = ("lines", "blocks")


def _metric(entry: dict, metric: str) -> float:
    value = entry.get("measures", {}).get(metric)
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def collect_file_duplications(client: SonarClient, project_key: str) -> dict[str, dict]:
    """Every file of the project with its duplication measures, by key."""
    duplications: dict[str, dict] = {}

    for data in iterate_pages(lambda page: client.duplications_tree(project_key, page)):
        for component in data.get("components", []):
            if component.get("qualifier") != FILE_QUALIFIER:
                continue
            require_fields(component, ("key",), "component")
            entry = dict(component)
            entry["measures"] = measures_to_dict(component.get("measures", []))
            duplications[entry["key"]] = entry

    logger.info("Collected duplication measures of %d files for %s", len(duplications), project_key)
    return dict(sorted(duplications.items()))


def get_duplications_summary(client: SonarClient, project_key: str) -> dict:
    """Project-wide duplication measures (root component only, one page)."""
    data = client.duplications_tree(project_key)
    return measures_to_dict(data.get("baseComponent", {}).get("measures", []))


def filter_view(duplications: dict[str, dict], metric: str, ranked: bool) -> dict[str, dict]:
    """Entries whose *metric* is above zero, ranked descending when asked.

    Ranking sorts ascending and reverses the result, so entries with equal
    values come out in reverse key order.
    """
    view = {k: v for k, v in duplications.items() if _metric(v, metric) > 0}
    if ranked:
        ascending = sorted(view.items(), key=lambda kv: _metric(kv[1], metric))
        view = dict(reversed(ascending))
    return view


def summarize_duplications(client: SonarClient, project_key: str) -> dict:
    duplications = collect_file_duplications(client, project_key)
    views = {
        name: filter_view(duplications, metric, ranked=name in _RANKED_VIEWS)
        for name, metric in FOCUS_METRICS.items()
    }
    return {
        "items":   duplications,
        "summary": get_duplications_summary(client, project_key),
        "lines":   views["lines"],
        "files":   views["files"],
        "blocks":  views["blocks"],
    }
