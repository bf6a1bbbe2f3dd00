import pytest


@pytest.fixture(autouse=True)
def _no_sonar_env(monkeypatch):
    """Keep a developer's SONAR_URL / SONAR_TOKEN out of the tests."""
    monkeypatch.delenv("SONAR_URL", raising=False)
    monkeypatch.delenv("SONAR_TOKEN", raising=False)
