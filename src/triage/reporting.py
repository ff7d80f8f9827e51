"""Human-readable progress output on stdout.

Structured log records go to stderr through structlog; the lines written
here are the operator-facing progress report.
"""

import sys
from typing import Optional, TextIO

RULE = "━" * 45
BANNER = "=" * 45


class Reporter:
    """Writes progress lines to a text stream (stdout by default)."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def line(self, text: str = "") -> None:
        print(text, file=self.stream, flush=True)
