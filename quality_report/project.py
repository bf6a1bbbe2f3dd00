"""Per-project report context.

Usage:
    project = Project(client, "com.example.my-project")
    project.get_summary()       # flat headline figures
    project.get_items()         # issues, hotspots, vulnerabilities, duplications

Every remote payload is fetched on first use and kept for the lifetime of
the instance; nothing is ever refreshed.
"""

import logging
from typing import Any, Iterable

from quality_report.client import SonarClient
from quality_report.measures import find_metric, find_severity
from quality_report.reports.duplications import summarize_duplications
from quality_report.reports.hotspots import get_hotspots
from quality_report.reports.issues import get_issues, get_vulnerabilities

logger = logging.getLogger(__name__)


class Project:
    """Lazily fetched, memoized report data of one SonarQube project."""

    def __init__(self, client: SonarClient, key: str, metrics: Iterable[str] | None = None) -> None:
        self.client = client
        self.key = key
        self._metrics = list(metrics) if metrics else None
        self._measures: dict | None = None
        self._severities: dict | None = None
        self._last_run: str | None = None
        self._summary: dict | None = None
        self._items: dict | None = None
        self._duplications: dict | None = None

    def __repr__(self) -> str:
        return f"Project({self.key!r})"

    # ------------------------------------------------------------------
    # Cached payloads
    # ------------------------------------------------------------------

    @property
    def measures(self) -> dict:
        if self._measures is None:
            logger.info("Fetching measures for %s", self.key)
            self._measures = self.client.measures_component(self.key, self._metrics)
        return self._measures

    @property
    def severities(self) -> dict:
        """The ``severities`` facet of the project's issues."""
        if self._severities is None:
            logger.info("Fetching severity facet for %s", self.key)
            data = self.client.issues_search(self.key, 1, facets=["severities"])
            facets = data.get("facets") or [{}]
            self._severities = facets[0]
        return self._severities

    @property
    def last_run(self) -> str:
        """Date of the latest analysis, ``""`` when the project has none."""
        if self._last_run is None:
            analyses = self.client.project_analyses(self.key).get("analyses", [])
            self._last_run = analyses[0].get("date", "") if analyses else ""
        return self._last_run

    @property
    def name(self) -> str:
        return self.measures.get("component", {}).get("name", self.key)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_total_measures(self, metric: str) -> Any:
        return find_metric(self.measures, metric)

    def get_total_severity(self, severity: str) -> Any:
        return find_severity(self.severities, severity)

    # ------------------------------------------------------------------
    # Report data
    # ------------------------------------------------------------------

    def get_summary(self) -> dict:
        if self._summary is None:
            self._summary = {
                "name":          self.name,
                "lastrun":       self.last_run,
                "info":          self.get_total_severity("INFO"),
                "minor":         self.get_total_severity("MINOR"),
                "major":         self.get_total_severity("MAJOR"),
                "critical":      self.get_total_severity("CRITICAL"),
                "blocker":       self.get_total_severity("BLOCKER"),
                "code_smell":    self.get_total_measures("code_smells"),
                "bugs":          self.get_total_measures("bugs"),
                "vulnerability": self.get_total_measures("vulnerabilities"),
                "hotspot":       self.get_total_measures("security_hotspots"),
                "lines":         self.get_total_measures("ncloc"),
            }
        return self._summary

    def get_duplications(self) -> dict:
        if self._duplications is None:
            logger.info("Collecting duplications for %s", self.key)
            self._duplications = summarize_duplications(self.client, self.key)
        return self._duplications

    def get_items(self) -> dict:
        if self._items is None:
            logger.info("Collecting findings for %s", self.key)
            self._items = {
                "issues":          get_issues(self.client, self.key),
                "hotspots":        get_hotspots(self.client, self.key),
                "vulnerabilities": get_vulnerabilities(self.client, self.key),
                "duplications":    self.get_duplications(),
            }
        return self._items
