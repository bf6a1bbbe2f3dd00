"""Tests for quality_report/project.py"""

import pytest

from quality_report.client import SonarClient
from quality_report.project import Project

BASE    = "https://sonar.example.com"
PROJECT = "sample_project"


def _measures() -> dict:
    return {"component": {
        "key": PROJECT, "name": "Sample Project", "qualifier": "TRK",
        "measures": [
            {"metric": "code_smells",       "value": "825", "bestValue": False},
            {"metric": "bugs",              "value": "12",  "bestValue": False},
            {"metric": "vulnerabilities",   "value": "3",   "bestValue": False},
            {"metric": "security_hotspots", "value": "7",   "bestValue": False},
            {"metric": "ncloc",             "value": "15210"},
        ],
    }}


def _severities() -> dict:
    return {
        "issues": [], "components": [],
        "paging": {"pageIndex": 1, "pageSize": 500, "total": 0},
        "facets": [{"property": "severities", "values": [
            {"val": "MAJOR",    "count": 400},
            {"val": "MINOR",    "count": 300},
            {"val": "CRITICAL", "count": 50},
            {"val": "INFO",     "count": 9},
            {"val": "BLOCKER",  "count": 66},
        ]}],
    }


@pytest.fixture
def api(requests_mock):
    adapters = {
        "measures": requests_mock.get(f"{BASE}/api/measures/component", json=_measures()),
        "issues":   requests_mock.get(f"{BASE}/api/issues/search", json=_severities()),
        "analyses": requests_mock.get(f"{BASE}/api/project_analyses/search", json={"analyses": [
            {"key": "a2", "date": "2023-02-19T08:49:40+0000"},
            {"key": "a1", "date": "2023-02-01T10:00:00+0000"},
        ]}),
        "hotspots": requests_mock.get(f"{BASE}/api/hotspots/search", json={
            "hotspots": [], "components": [], "paging": {"pageSize": 500, "total": 0},
        }),
        "tree":     requests_mock.get(f"{BASE}/api/measures/component_tree", json={
            "baseComponent": {"measures": [{"metric": "duplicated_lines", "value": "0"}]},
            "components": [], "paging": {"pageSize": 500, "total": 0},
        }),
    }
    return adapters


@pytest.fixture
def project():
    return Project(SonarClient(BASE, "tok"), PROJECT)


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

def test_summary_fields(api, project):
    assert project.get_summary() == {
        "name":          "Sample Project",
        "lastrun":       "2023-02-19T08:49:40+0000",
        "info":          9,
        "minor":         300,
        "major":         400,
        "critical":      50,
        "blocker":       66,
        "code_smell":    825,
        "bugs":          12,
        "vulnerability": 3,
        "hotspot":       7,
        "lines":         15210,
    }


def test_summary_is_memoized(api, project):
    first = project.get_summary()
    second = project.get_summary()

    assert first is second
    assert api["measures"].call_count == 1
    assert api["issues"].call_count == 1
    assert api["analyses"].call_count == 1


def test_severity_request_uses_facet(api, project):
    project.get_total_severity("MAJOR")
    assert api["issues"].last_request.qs["facets"] == ["severities"]


def test_instances_do_not_share_caches(api):
    client = SonarClient(BASE, "tok")
    Project(client, PROJECT).get_summary()
    Project(client, PROJECT).get_summary()
    assert api["measures"].call_count == 2


def test_total_lookups(api, project):
    assert project.get_total_measures("code_smells") == 825
    assert project.get_total_measures("coverage") is None
    assert project.get_total_severity("BLOCKER") == 66
    assert project.get_total_severity("NOPE") is None
    assert api["measures"].call_count == 1


def test_custom_metrics(api):
    Project(SonarClient(BASE, "tok"), PROJECT, metrics=["bugs"]).get_total_measures("bugs")
    assert api["measures"].last_request.qs["metrickeys"] == ["bugs"]


def test_last_run_blank_without_analyses(api, project, requests_mock):
    requests_mock.get(f"{BASE}/api/project_analyses/search", json={"analyses": []})
    assert project.last_run == ""
    assert project.get_summary()["lastrun"] == ""


def test_missing_facets_give_none(api, project, requests_mock):
    requests_mock.get(f"{BASE}/api/issues/search", json={"issues": []})
    assert project.get_total_severity("MAJOR") is None


def test_name(api, project):
    assert project.name == "Sample Project"


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

def test_items_keys(api, project):
    items = project.get_items()
    assert set(items) == {"issues", "hotspots", "vulnerabilities", "duplications"}
    assert set(items["duplications"]) == {"items", "summary", "lines", "files", "blocks"}


def test_items_are_memoized(api, project):
    project.get_items()
    calls = api["hotspots"].call_count
    project.get_items()
    project.get_duplications()
    assert api["hotspots"].call_count == calls == 1
    # duplications: one tree page plus one summary query
    assert api["tree"].call_count == 2
