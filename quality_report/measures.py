"""Helpers for reading measure and facet payloads.

SonarQube returns measures as ``[{"metric": ..., "value": ...}, ...]`` and
facets as ``{"property": ..., "values": [{"val": ..., "count": ...}]}``.
"""

from typing import Any


def parse_value(raw: dict):
    """Return a numeric value from a SonarQube measure dict, or None if absent.

    SonarQube stores current-code values under ``"value"`` and (in older
    versions) new-code / leak-period values under ``"period": {"value": ...}``.
    """
    val = raw.get("value")
    if val is None:
        period = raw.get("period")
        val = period.get("value") if isinstance(period, dict) else None
    if val is None:
        return None
    try:
        f = float(val)
        # Return int when the float is a whole number (e.g. 88.0 → 88)
        return int(f) if f == int(f) else f
    except (ValueError, TypeError):
        return val


def measures_to_dict(measures: list[dict]) -> dict[str, Any]:
    """Convert a list of SonarQube measure dicts to ``{metric_key: value}``."""
    return {m["metric"]: parse_value(m) for m in measures}


def find_metric(data: dict, metric: str):
    """Value of *metric* in a ``measures/component`` response, or None."""
    for measure in data.get("component", {}).get("measures", []):
        if measure.get("metric") == metric:
            return parse_value(measure)
    return None


def find_severity(facet: dict, severity: str):
    """Count for *severity* in a ``severities`` facet, or None."""
    for value in facet.get("values", []):
        if value.get("val") == severity:
            return value.get("count")
    return None
