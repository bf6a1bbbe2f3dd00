"""SonarQube quality report builder."""

__version__ = "0.3.0"
