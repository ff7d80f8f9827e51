"""Unit tests for the TriageRunner.

An in-memory tracker stands in for the gh CLI and the classifier's LLM
client is an AsyncMock, so each test can assert exactly which issues were
fetched, classified, and labeled.
"""

import asyncio
import io
import json
from typing import Dict, List, Optional, Sequence
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest
from langchain_core.messages import AIMessage

from src.triage.applier import LabelApplier
from src.triage.classifier.agent import IssueClassifier
from src.triage.github.client import GitHubCLI, GitHubCLIError
from src.triage.github.models import Issue
from src.triage.reporting import Reporter
from src.triage.runner import TriageRunner
from src.triage.summary import TriageOutcome


def run_async(coro):
    return asyncio.run(coro)


class FakeTracker:
    """In-memory issue tracker recording every call."""

    def __init__(self, issues: List[Issue], fail_fetch: Sequence[int] = (), fail_edit: Sequence[int] = ()):
        self.issues: Dict[int, Issue] = {i.number: i for i in issues}
        self.order = [i.number for i in issues]
        self.fail_fetch = set(fail_fetch)
        self.fail_edit = set(fail_edit)
        self.viewed: List[int] = []
        self.edits: List[tuple] = []
        self._formatter = GitHubCLI(repo="acme/widgets")

    async def list_open_issues(self, limit: int = 500) -> List[Issue]:
        return [self.issues[n] for n in self.order][:limit]

    async def view_issue(self, number: int) -> Issue:
        self.viewed.append(number)
        if number in self.fail_fetch or number not in self.issues:
            raise GitHubCLIError("gh exited with code 1", exit_code=1)
        return self.issues[number]

    async def add_labels(self, number: int, labels: Sequence[str]) -> None:
        self.edits.append((number, list(labels)))
        if number in self.fail_edit:
            raise GitHubCLIError("gh exited with code 1", exit_code=1)
        issue = self.issues[number]
        merged = list(dict.fromkeys([*issue.labels, *labels]))
        self.issues[number] = issue.model_copy(update={"labels": merged})

    def format_add_labels_command(self, number: int, labels: Sequence[str]) -> str:
        return self._formatter.format_add_labels_command(number, labels)


def _response(payload: dict) -> AIMessage:
    return AIMessage(content=json.dumps(payload))


def _server_error() -> openai.InternalServerError:
    request = httpx.Request("POST", "https://llm.example.com/v1/chat/completions")
    response = httpx.Response(500, request=request)
    return openai.InternalServerError("Error code: 500", response=response, body=None)


CRASH = {
    "type": "bug",
    "priority": "P0",
    "components": ["T-core"],
    "workflow": "needs repro",
    "reasoning": "Crash on startup.",
}
DOCS = {"type": "enhancement", "priority": "P3", "components": ["T-documentation"], "workflow": None}


def _make_runner(
    tracker: FakeTracker,
    responses: Optional[list] = None,
    dry_run: bool = True,
    out: Optional[io.StringIO] = None,
) -> TriageRunner:
    reporter = Reporter(out if out is not None else io.StringIO())
    classifier = IssueClassifier(
        base_url="https://llm.example.com/v1",
        api_key="sk-test",
        model_name="gpt-4o-mini",
    )
    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=responses or [])
    classifier._llm = llm
    applier = LabelApplier(tracker, dry_run=dry_run, reporter=reporter)
    return TriageRunner(
        tracker=tracker,
        classifier=classifier,
        applier=applier,
        delay_seconds=0,
        reporter=reporter,
    )


class TestEndToEnd:
    def test_crash_issue_is_labeled_in_apply_mode(self):
        tracker = FakeTracker([Issue(number=1, title="Crash on startup", labels=[])])
        runner = _make_runner(tracker, responses=[_response(CRASH)], dry_run=False)

        summary = run_async(runner.run())

        assert set(tracker.issues[1].labels) == {"bug", "P0", "needs repro", "T-core"}
        assert (summary.triaged, summary.skipped, summary.failed) == (1, 0, 0)
        assert summary.exit_code == 0

    def test_already_triaged_issue_is_skipped_without_llm_call(self):
        tracker = FakeTracker([Issue(number=2, title="Old bug", labels=["bug", "P2"])])
        runner = _make_runner(tracker, dry_run=False)

        summary = run_async(runner.run())

        runner.classifier._llm.ainvoke.assert_not_called()
        assert tracker.viewed == []
        assert tracker.edits == []
        assert (summary.triaged, summary.skipped, summary.failed) == (0, 1, 0)

    def test_llm_500_fails_issue_and_batch_continues(self):
        tracker = FakeTracker(
            [
                Issue(number=3, title="Flaky transport", labels=[]),
                Issue(number=4, title="Docs typo", labels=["T-documentation"]),
            ]
        )
        runner = _make_runner(
            tracker, responses=[_server_error(), _response(DOCS)], dry_run=False
        )

        summary = run_async(runner.run())

        assert (summary.triaged, summary.skipped, summary.failed) == (1, 0, 1)
        assert summary.exit_code == 1
        assert summary.failed_issues == [3]
        assert tracker.edits == [(4, ["enhancement", "P3", "T-documentation"])]


class TestPerIssueFlow:
    def test_classification_attempted_exactly_once_per_untriaged_issue(self):
        tracker = FakeTracker(
            [
                Issue(number=10, title="a", labels=["bug"]),
                Issue(number=11, title="b", labels=["P1"]),
                Issue(number=12, title="c", labels=["bug", "P1"]),
                Issue(number=13, title="d", labels=[]),
            ]
        )
        runner = _make_runner(tracker, responses=[_response(CRASH)] * 3)

        summary = run_async(runner.run())

        assert runner.classifier._llm.ainvoke.await_count == 3
        assert tracker.viewed == [10, 11, 13]
        assert (summary.triaged, summary.skipped, summary.failed) == (3, 1, 0)

    def test_dry_run_never_mutates(self):
        tracker = FakeTracker(
            [Issue(number=20, title="x", labels=[]), Issue(number=21, title="y", labels=[])]
        )
        out = io.StringIO()
        runner = _make_runner(
            tracker, responses=[_response(CRASH), _server_error()], dry_run=True, out=out
        )

        summary = run_async(runner.run())

        assert tracker.edits == []
        assert tracker.issues[20].labels == []
        assert "[DRY-RUN]" in out.getvalue()
        assert (summary.triaged, summary.failed) == (1, 1)

    def test_invalid_classification_is_never_applied(self):
        tracker = FakeTracker([Issue(number=30, title="x", labels=[])])
        runner = _make_runner(
            tracker,
            responses=[_response({"type": "bug", "components": ["T-core"]})],
            dry_run=False,
        )

        summary = run_async(runner.run())

        assert tracker.edits == []
        assert summary.results[0].outcome is TriageOutcome.FAILED
        assert "classification failed" in summary.results[0].detail

    def test_fetch_failure_is_recorded_and_batch_continues(self):
        tracker = FakeTracker(
            [Issue(number=40, title="x", labels=[]), Issue(number=41, title="y", labels=[])],
            fail_fetch=[40],
        )
        runner = _make_runner(tracker, responses=[_response(CRASH)], dry_run=False)

        summary = run_async(runner.run())

        assert summary.failed_issues == [40]
        assert summary.triaged == 1
        assert runner.classifier._llm.ainvoke.await_count == 1

    def test_apply_failure_is_recorded(self):
        tracker = FakeTracker([Issue(number=50, title="x", labels=[])], fail_edit=[50])
        runner = _make_runner(tracker, responses=[_response(CRASH)], dry_run=False)

        summary = run_async(runner.run())

        assert summary.failed == 1
        assert "label apply failed" in summary.results[0].detail

    def test_workflow_and_components_only_when_present(self):
        tracker = FakeTracker([Issue(number=60, title="How do I?", labels=[])])
        runner = _make_runner(
            tracker,
            responses=[_response({"type": "question", "priority": "P3", "components": [], "workflow": None})],
            dry_run=False,
        )

        run_async(runner.run())

        assert tracker.edits == [(60, ["question", "P3"])]


class TestSingleIssueMode:
    def test_single_issue_is_fetched_directly(self):
        tracker = FakeTracker(
            [Issue(number=70, title="x", labels=[]), Issue(number=71, title="y", labels=[])]
        )
        runner = _make_runner(tracker, responses=[_response(CRASH)], dry_run=False)

        summary = run_async(runner.run(issue_number=71))

        assert tracker.viewed == [71]
        assert [r.number for r in summary.results] == [71]

    def test_single_triaged_issue_is_skipped(self):
        tracker = FakeTracker([Issue(number=72, title="x", labels=["question", "P3"])])
        out = io.StringIO()
        runner = _make_runner(tracker, out=out)

        summary = run_async(runner.run(issue_number=72))

        assert summary.skipped == 1
        assert "Already triaged" in out.getvalue()
        runner.classifier._llm.ainvoke.assert_not_called()

    def test_single_missing_issue_fails(self):
        tracker = FakeTracker([])
        runner = _make_runner(tracker)

        summary = run_async(runner.run(issue_number=999))

        assert summary.failed == 1
        assert summary.exit_code == 1


class TestBatchMode:
    def test_nothing_to_do(self):
        tracker = FakeTracker([Issue(number=80, title="x", labels=["bug", "P1"])])
        out = io.StringIO()
        runner = _make_runner(tracker, out=out)

        summary = run_async(runner.run())

        assert "All open issues are already triaged" in out.getvalue()
        assert summary.exit_code == 0

    def test_delay_between_issues(self):
        tracker = FakeTracker(
            [Issue(number=n, title="x", labels=[]) for n in (90, 91, 92)]
        )
        runner = _make_runner(tracker, responses=[_response(CRASH)] * 3)
        runner.delay_seconds = 1.5

        with patch("src.triage.runner.asyncio.sleep", new=AsyncMock()) as sleep_mock:
            run_async(runner.run())

        assert sleep_mock.await_count == 2
        sleep_mock.assert_awaited_with(1.5)

    def test_listing_failure_propagates(self):
        tracker = FakeTracker([])
        tracker.list_open_issues = AsyncMock(side_effect=GitHubCLIError("gh exited with code 4"))
        runner = _make_runner(tracker)

        with pytest.raises(GitHubCLIError):
            run_async(runner.run())
