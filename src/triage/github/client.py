"""Async wrapper around the ``gh`` CLI for issue reads and label edits.

The tool talks to GitHub exclusively through ``gh`` so that it reuses
whatever authentication the operator already has configured. Each call
runs ``gh`` as a subprocess, captures stdout/stderr, and decodes the JSON
output into Issue models.

Source:
- src/triage/github/models.py (Issue)
- src/triage/config.py (repo, github_token)
"""

import asyncio
import json
import os
import shlex
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import structlog
from pydantic import ValidationError

from src.triage.exceptions import TriageError
from src.triage.github.models import Issue

logger = structlog.get_logger()

ISSUE_FIELDS = "number,title,body,labels"


class GitHubCLIError(TriageError):
    """Raised when a ``gh`` invocation fails or returns unusable output.

    Attributes:
        command: The argument vector that was executed.
        exit_code: Process exit code (-1 when the process never started).
        stderr: Captured standard error.
    """

    def __init__(
        self,
        message: str,
        command: Sequence[str] = (),
        exit_code: Optional[int] = None,
        stderr: str = "",
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr


@dataclass
class CommandResult:
    """Captured output of a finished ``gh`` process."""

    exit_code: int
    stdout: str
    stderr: str


class GitHubCLI:
    """Issue tracker access through the GitHub CLI.

    Attributes:
        repo: Target repository in ``owner/name`` form.
        gh_path: Executable name or path of the gh CLI.
        token: Optional token exported to gh as GH_TOKEN and GITHUB_TOKEN.

    Example:
        >>> gh = GitHubCLI(repo="modelcontextprotocol/rust-sdk")
        >>> issue = await gh.view_issue(700)
        >>> await gh.add_labels(700, ["bug", "P1"])
    """

    def __init__(
        self,
        repo: str,
        gh_path: str = "gh",
        token: Optional[str] = None,
    ):
        self.repo = repo
        self.gh_path = gh_path
        self.token = token

    def _child_env(self) -> Optional[dict[str, str]]:
        """Build the subprocess environment, or None to inherit ours."""
        if not self.token:
            return None
        env = dict(os.environ)
        env["GH_TOKEN"] = self.token
        env["GITHUB_TOKEN"] = self.token
        return env

    async def _run(self, args: Sequence[str]) -> CommandResult:
        """Run gh with the given arguments and capture its output.

        Args:
            args: Arguments following the gh executable.

        Returns:
            CommandResult for a zero exit status.

        Raises:
            GitHubCLIError: If gh cannot be started or exits non-zero.
        """
        command = [self.gh_path, *args]
        logger.debug("Running gh", command=command)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._child_env(),
            )
            stdout, stderr = await process.communicate()
        except OSError as e:
            raise GitHubCLIError(
                f"Failed to start gh: {e}",
                command=command,
                exit_code=-1,
                cause=e,
            )

        result = CommandResult(
            exit_code=process.returncode or 0,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

        if result.exit_code != 0:
            logger.error(
                "gh command failed",
                command=command,
                exit_code=result.exit_code,
                stderr=result.stderr.strip()[:500],
            )
            raise GitHubCLIError(
                f"gh exited with code {result.exit_code}",
                command=command,
                exit_code=result.exit_code,
                stderr=result.stderr,
            )

        return result

    async def _run_json(self, args: Sequence[str]) -> Any:
        """Run gh and decode its stdout as JSON."""
        result = await self._run(args)
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise GitHubCLIError(
                f"gh returned invalid JSON: {e}",
                command=[self.gh_path, *args],
                exit_code=result.exit_code,
                stderr=result.stderr,
                cause=e,
            )

    def _to_issue(self, data: Any, args: Sequence[str]) -> Issue:
        try:
            return Issue.model_validate(data)
        except ValidationError as e:
            raise GitHubCLIError(
                f"gh returned an unexpected issue record: {e}",
                command=[self.gh_path, *args],
                cause=e,
            )

    async def list_open_issues(self, limit: int = 500) -> list[Issue]:
        """List open issues with their titles, bodies, and labels.

        Args:
            limit: Maximum number of issues gh should return.

        Returns:
            Issues in the order gh lists them.

        Raises:
            GitHubCLIError: If the listing fails.
        """
        args = [
            "issue", "list",
            "--repo", self.repo,
            "--state", "open",
            "--limit", str(limit),
            "--json", ISSUE_FIELDS,
        ]
        data = await self._run_json(args)
        if not isinstance(data, list):
            raise GitHubCLIError(
                "gh issue list did not return a JSON array",
                command=[self.gh_path, *args],
            )

        issues = [self._to_issue(item, args) for item in data]
        logger.info("Listed open issues", repo=self.repo, count=len(issues))
        return issues

    async def view_issue(self, number: int) -> Issue:
        """Fetch a single issue.

        Args:
            number: The issue number.

        Returns:
            The issue with its current labels.

        Raises:
            GitHubCLIError: If the issue cannot be fetched.
        """
        args = [
            "issue", "view", str(number),
            "--repo", self.repo,
            "--json", ISSUE_FIELDS,
        ]
        data = await self._run_json(args)
        return self._to_issue(data, args)

    def add_labels_args(self, number: int, labels: Sequence[str]) -> list[str]:
        """Build the full gh argument vector for adding labels."""
        args = [self.gh_path, "issue", "edit", str(number), "--repo", self.repo]
        for label in labels:
            args.extend(["--add-label", label])
        return args

    def format_add_labels_command(
        self, number: int, labels: Sequence[str]
    ) -> str:
        """Render the label-add command as a copy-pasteable shell line."""
        return shlex.join(self.add_labels_args(number, labels))

    async def add_labels(self, number: int, labels: Sequence[str]) -> None:
        """Add labels to an issue in a single ``gh issue edit`` call.

        Args:
            number: The issue number.
            labels: Label names to add. Existing labels are left alone.

        Raises:
            GitHubCLIError: If gh reports a failure.
        """
        if not labels:
            return
        command = self.add_labels_args(number, labels)
        await self._run(command[1:])
        logger.info("Labels added", issue_number=number, labels=list(labels))
