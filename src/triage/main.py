"""Command-line entry point for issue triage.

Usage:
    triage-issues                      # dry-run over all untriaged issues
    triage-issues --issue 700          # dry-run a single issue
    triage-issues --apply              # label all untriaged issues
    triage-issues --issue 700 --apply  # label a single issue

Exit status is 0 when every issue was triaged or skipped (including a
completed dry run) and 1 when any issue failed, an argument is invalid,
the gh CLI is missing, or OPENAI_API_KEY is not set.
"""

import argparse
import asyncio
import shutil
import sys
from typing import Optional, Sequence

import structlog
from pydantic import ValidationError

from src.triage.applier import LabelApplier
from src.triage.classifier.agent import IssueClassifier
from src.triage.config import TriageSettings, get_settings
from src.triage.exceptions import TriageError
from src.triage.github.client import GitHubCLI
from src.triage.log_config import configure_logging
from src.triage.reporting import BANNER, Reporter
from src.triage.runner import TriageRunner

logger = structlog.get_logger()


class UsageArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on invalid arguments."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid issue number: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"invalid issue number: {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = UsageArgumentParser(
        prog="triage-issues",
        description="Classify untriaged GitHub issues with an LLM and label them.",
        epilog=(
            "Environment:\n"
            "  OPENAI_API_KEY   Required. API key for the LLM\n"
            "  OPENAI_BASE_URL  Optional. API base URL\n"
            "  TRIAGE_MODEL     Optional. Model override\n"
            "  GITHUB_TOKEN     Optional. Token used by the gh CLI"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Apply labels to GitHub (default: dry-run)",
    )
    parser.add_argument(
        "--issue",
        type=_positive_int,
        metavar="NUM",
        help="Triage a single issue by number",
    )
    parser.add_argument(
        "--model",
        metavar="MODEL",
        help="LLM model to use (default: gpt-4o-mini)",
    )
    parser.add_argument(
        "--repo",
        metavar="OWNER/NAME",
        help="Repository to triage (default: modelcontextprotocol/rust-sdk)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr",
    )
    return parser


def _redact_secret(value: Optional[str], visible_chars: int = 4) -> str:
    """Redact a secret value, showing only the first few characters."""
    if not value:
        return "(unset)"
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def _log_configuration(settings: TriageSettings, dry_run: bool) -> None:
    """Log configuration values with secrets redacted."""
    logger.info(
        "Triage configuration",
        repo=settings.triage_repo,
        model=settings.triage_model,
        base_url=settings.openai_base_url,
        api_key=_redact_secret(settings.openai_api_key),
        github_token=_redact_secret(settings.github_token),
        body_limit=settings.triage_body_limit,
        issue_limit=settings.triage_issue_limit,
        delay_seconds=settings.triage_delay_seconds,
        dry_run=dry_run,
    )


def _print_header(reporter: Reporter, settings: TriageSettings, dry_run: bool) -> None:
    reporter.line(BANNER)
    reporter.line("  Ongoing Issue Triage")
    reporter.line(f"  Repo:  {settings.triage_repo}")
    reporter.line(f"  Model: {settings.triage_model}")
    if dry_run:
        reporter.line("  Mode:  DRY-RUN (pass --apply to execute)")
    else:
        reporter.line("  Mode:  APPLYING CHANGES")
    reporter.line(BANNER)
    reporter.line()


def build_runner(
    settings: TriageSettings,
    dry_run: bool,
    reporter: Reporter,
) -> TriageRunner:
    """Wire the tracker, classifier, and applier into a TriageRunner."""
    tracker = GitHubCLI(repo=settings.triage_repo, token=settings.github_token)
    classifier = IssueClassifier(
        base_url=settings.openai_base_url,
        api_key=settings.openai_api_key,
        model_name=settings.triage_model,
        repo=settings.triage_repo,
        body_limit=settings.triage_body_limit,
        timeout=settings.triage_llm_timeout,
    )
    applier = LabelApplier(tracker=tracker, dry_run=dry_run, reporter=reporter)
    return TriageRunner(
        tracker=tracker,
        classifier=classifier,
        applier=applier,
        delay_seconds=settings.triage_delay_seconds,
        issue_limit=settings.triage_issue_limit,
        reporter=reporter,
    )


async def run_triage(
    runner: TriageRunner,
    reporter: Reporter,
    issue_number: Optional[int],
    dry_run: bool,
) -> int:
    """Run triage and print the summary.

    Returns:
        Process exit status.
    """
    try:
        summary = await runner.run(issue_number)
    except TriageError as e:
        reporter.line(f"Error: {e.message}")
        logger.error("Triage run aborted", error=e.message)
        return 1

    summary.render(reporter, dry_run=dry_run)
    logger.info(
        "Triage run complete",
        triaged=summary.triaged,
        skipped=summary.skipped,
        failed=summary.failed,
    )
    return summary.exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, run preflight checks, and triage issues.

    Args:
        argv: Command-line arguments; defaults to sys.argv[1:].

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    reporter = Reporter()
    dry_run = not args.apply

    if shutil.which("gh") is None:
        reporter.line("Error: 'gh' CLI is required. Install from https://cli.github.com/")
        logger.error("Missing dependency", dependency="gh")
        return 1

    try:
        settings = get_settings(triage_model=args.model, triage_repo=args.repo)
    except ValidationError as e:
        reporter.line("Error: invalid configuration.")
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"]).upper()
            reporter.line(f"  {field}: {error['msg']}")
        logger.error(
            "Invalid configuration",
            fields=[".".join(str(p) for p in err["loc"]) for err in e.errors()],
        )
        return 1

    _log_configuration(settings, dry_run)
    _print_header(reporter, settings, dry_run)

    runner = build_runner(settings, dry_run, reporter)
    return asyncio.run(run_triage(runner, reporter, args.issue, dry_run))


def run() -> None:
    """Console-script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
