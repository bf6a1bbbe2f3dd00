"""SonarQube API client.

Usage:
    client = SonarClient(url="https://sonar.example.com", token="squ_xxx")
    data   = client.issues_search("my-project", page=2)
    tree   = client.duplications_tree("my-project")

Every endpoint the report needs has a named method; each returns the parsed
JSON body of a single page. Walking the pages is left to
``quality_report.pagination``.
"""

from typing import Any, Iterable

import requests

PAGE_SIZE = 500

#: Metrics fetched for the project summary when none are requested
DEFAULT_METRICS: tuple[str, ...] = (
    "code_smells",
    "coverage",
    "bugs",
    "vulnerabilities",
    "security_hotspots",
    "duplicated_lines",
    "lines",
    "ncloc",
)

DUPLICATION_METRICS: tuple[str, ...] = (
    "duplicated_lines",
    "duplicated_blocks",
    "duplicated_lines_density",
    "duplicated_files",
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class QueryFailure(Exception):
    """Base exception for all client errors."""


class AuthenticationError(QueryFailure):
    """Raised on HTTP 401 — invalid or expired token."""


class NotFoundError(QueryFailure):
    """Raised on HTTP 404 — project, rule or resource not found."""


class NetworkError(QueryFailure):
    """Raised on connection timeout or unreachable server."""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class SonarClient:
    """Thin wrapper around the SonarQube REST API.

    *extra_params* maps an endpoint path (or ``"global"``) to query
    parameters added to every request for that endpoint, e.g.
    ``{"global": {"branch": "develop"}}``.
    """

    def __init__(
        self,
        url: str,
        token: str,
        timeout: int = 30,
        extra_params: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.base_url = url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._extra_params = extra_params or {}
        self._session = requests.Session()
        # SonarQube auth: token as username, empty password
        self._session.auth = (token, "")
        self._session.headers.update({"Accept": "application/json"})

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """Perform a single GET request and return the parsed JSON response.

        Raises:
            AuthenticationError: HTTP 401
            NotFoundError:       HTTP 404
            QueryFailure:        Any other non-2xx response or a body that
                                 is not JSON
            NetworkError:        Timeout or connection failure
        """
        return self._request(endpoint, params or {})

    def measures_component(self, project: str, metrics: Iterable[str] | None = None) -> dict:
        """Headline measures of *project*; uses DEFAULT_METRICS when none given."""
        metrics = list(metrics or DEFAULT_METRICS)
        return self.get("/api/measures/component", {
            "component":  project,
            "metricKeys": ",".join(metrics),
        })

    def measures_component_tree(self, project: str, metrics: Iterable[str], page: int = 1) -> dict:
        return self.get("/api/measures/component_tree", {
            "component":  project,
            "metricKeys": ",".join(metrics),
            "ps":         PAGE_SIZE,
            "p":          page,
        })

    def duplications_tree(self, project: str, page: int = 1) -> dict:
        """Component tree of *project* carrying the four duplication metrics."""
        return self.measures_component_tree(project, DUPLICATION_METRICS, page)

    def issues_search(
        self,
        project: str,
        page: int = 1,
        facets: Iterable[str] = (),
        types: Iterable[str] = (),
    ) -> dict:
        return self.get("/api/issues/search", {
            "componentKeys": project,
            "ps":            PAGE_SIZE,
            "p":             page,
            "facets":        ",".join(facets),
            "types":         ",".join(types),
        })

    def hotspots_search(self, project: str, page: int = 1) -> dict:
        return self.get("/api/hotspots/search", {
            "projectKey": project,
            "ps":         PAGE_SIZE,
            "p":          page,
        })

    def source_snippet(self, issue_key: str) -> dict:
        """Code snippet around an issue or hotspot, keyed by component."""
        return self.get("/api/sources/issue_snippets", {"issueKey": issue_key})

    def hotspot_detail(self, hotspot_key: str) -> dict:
        return self.get("/api/hotspots/show", {"hotspot": hotspot_key})

    def rule(self, rule_key: str) -> dict:
        return self.get("/api/rules/show", {"key": rule_key})

    def project_analyses(self, project: str) -> dict:
        return self.get("/api/project_analyses/search", {"project": project})

    def is_queue_empty(self) -> bool:
        """True when the server has no pending analysis reports."""
        return self.get("/api/analysis_reports/is_queue_empty") is True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _merge_params(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        return {
            **params,
            **self._extra_params.get(endpoint, {}),
            **self._extra_params.get("global", {}),
        }

    def _request(self, endpoint: str, params: dict[str, Any]) -> Any:
        url = f"{self.base_url}{endpoint}"
        params = self._merge_params(endpoint, params)
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.exceptions.Timeout as exc:
            raise NetworkError(
                f"Request timed out after {self._timeout}s while contacting '{url}'"
            ) from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkError(
                f"Unable to reach SonarQube server at '{self.base_url}'"
            ) from exc

        if response.status_code == 401:
            raise AuthenticationError(
                "Authentication failed — check that your token is valid and not expired."
            )
        if response.status_code == 404:
            raise NotFoundError(
                f"Resource not found: {url}"
            )
        if not response.ok:
            raise QueryFailure(
                f"Unexpected response {response.status_code} from {url}: {response.text[:200]}"
            )

        try:
            return response.json()
        except ValueError as exc:
            raise QueryFailure(
                f"Response from {url} is not valid JSON: {response.text[:200]}"
            ) from exc
