"""Pytest configuration for all tests."""

import pytest

from src.triage.classifier.models import IssueClassification
from src.triage.github.models import Issue
from src.triage.labels import Component, IssueType, Priority, Workflow


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the triage settings read."""
    for name in (
        "OPENAI_API_KEY",
        "OPENAI_BASE_URL",
        "TRIAGE_MODEL",
        "TRIAGE_REPO",
        "TRIAGE_LLM_TIMEOUT",
        "TRIAGE_BODY_LIMIT",
        "TRIAGE_ISSUE_LIMIT",
        "TRIAGE_DELAY_SECONDS",
        "GITHUB_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def sample_config_env(clean_env):
    """Set a minimal valid triage environment."""
    clean_env.setenv("OPENAI_API_KEY", "sk-test-key")
    return clean_env


@pytest.fixture
def crash_issue():
    return Issue(number=101, title="Crash on startup", body="It panics.", labels=[])


@pytest.fixture
def crash_classification():
    return IssueClassification(
        type=IssueType.BUG,
        priority=Priority.P0,
        components=[Component.CORE],
        workflow=Workflow.NEEDS_REPRO,
        reasoning="Crash affecting every user at startup.",
    )
