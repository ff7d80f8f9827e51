"""GitHub access through the gh CLI.

This module provides:
- Listing open issues and viewing a single issue
- Adding labels to an issue
- Rendering the label-add command for dry-run previews
"""

from src.triage.github.client import GitHubCLI, GitHubCLIError
from src.triage.github.models import Issue

__all__ = [
    "GitHubCLI",
    "GitHubCLIError",
    "Issue",
]
