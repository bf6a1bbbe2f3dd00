"""Issue and vulnerability reports.

Functions:
    get_issues(client, project_key)           -> dict  component -> group
    get_vulnerabilities(client, project_key)  -> dict  component -> group
    build_severity_summary(groups)            -> dict

Groups are sorted by ``severity_level`` then ``line`` so the most severe
findings of each file come first.
"""

from typing import Any, Callable

from quality_report.aggregate import collect_groups, require_fields, snippet_source, sort_groups
from quality_report.client import SonarClient

_SEVERITY_LEVELS = {
    "BLOCKER":  -5,
    "CRITICAL": -4,
    "MAJOR":    -3,
    "MINOR":    -2,
    "INFO":     -1,
}

_SEVERITIES = tuple(_SEVERITY_LEVELS)
_TYPES      = ("BUG", "VULNERABILITY", "CODE_SMELL")


def severity_level(severity: str | None) -> int:
    """Sort rank of a severity; lower is more severe, unknown is 0."""
    return _SEVERITY_LEVELS.get(severity, 0)


def derive_line(record: dict[str, Any]) -> Any:
    """The record's ``line``, else ``textRange.startLine``, else ``""``."""
    if "line" in record:
        return record["line"]
    return (record.get("textRange") or {}).get("startLine", "")


def enrich_issue(raw: dict[str, Any]) -> dict[str, Any]:
    issue = dict(raw)
    issue["line"] = derive_line(issue)
    issue["severity_level"] = severity_level(issue.get("severity"))
    return issue


def vulnerability_enricher(client: SonarClient) -> Callable[[dict], dict]:
    """Issue enrichment plus the code snippet and the rule description."""

    def enrich(raw: dict[str, Any]) -> dict[str, Any]:
        issue = enrich_issue(raw)
        require_fields(issue, ("key", "component", "rule"), "vulnerability")
        snippet = client.source_snippet(issue["key"])
        issue["source"] = snippet_source(snippet, issue["component"])
        issue["rule_info"] = client.rule(issue["rule"]).get("rule")
        return issue

    return enrich


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_issues(client: SonarClient, project_key: str) -> dict[str, dict]:
    """All issues of the project grouped by component."""
    groups = collect_groups(
        lambda project, page: client.issues_search(project, page),
        project_key,
        "issues",
        enrich_issue,
    )
    return sort_groups(groups, "severity_level")


def get_vulnerabilities(client: SonarClient, project_key: str) -> dict[str, dict]:
    """Vulnerability issues grouped by component, with source and rule."""
    groups = collect_groups(
        lambda project, page: client.issues_search(project, page, types=["VULNERABILITY"]),
        project_key,
        "issues",
        vulnerability_enricher(client),
    )
    return sort_groups(groups, "severity_level")


def build_severity_summary(groups: dict[str, dict]) -> dict:
    """Count the grouped issues by severity and by type."""
    by_severity = {s: 0 for s in _SEVERITIES}
    by_type     = {t: 0 for t in _TYPES}
    total = 0

    for group in groups.values():
        for issue in group.get("items", []):
            total += 1
            sev = issue.get("severity")
            typ = issue.get("type")
            if sev in by_severity:
                by_severity[sev] += 1
            if typ in by_type:
                by_type[typ] += 1

    return {
        "total":       total,
        "by_severity": by_severity,
        "by_type":     by_type,
    }
