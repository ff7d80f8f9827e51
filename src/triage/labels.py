"""Label taxonomy and the already-triaged check.

The taxonomy mirrors the labels configured on the target repository.
An issue counts as triaged only when it carries at least one type label
AND at least one priority label; either one alone is not enough.
"""

from enum import Enum
from typing import Iterable


class IssueType(str, Enum):
    """Nature of an issue. Exactly one per triaged issue.

    Attributes:
        BUG: Something is not working (errors, crashes, incorrect behavior).
        ENHANCEMENT: New feature or improvement request.
        QUESTION: User asking for help or clarification.
    """

    BUG = "bug"
    ENHANCEMENT = "enhancement"
    QUESTION = "question"


class Priority(str, Enum):
    """Urgency tier. Urgency rises as the number decreases."""

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


class Workflow(str, Enum):
    """Auxiliary status label, independent of type and priority."""

    NEEDS_CONFIRMATION = "needs confirmation"
    NEEDS_REPRO = "needs repro"
    READY_FOR_WORK = "ready for work"


class Component(str, Enum):
    """Subsystem tags, all prefixed with ``T-``."""

    CORE = "T-core"
    TRANSPORT = "T-transport"
    MACROS = "T-macros"
    HANDLER = "T-handler"
    MODEL = "T-model"
    SECURITY = "T-security"
    DOCUMENTATION = "T-documentation"
    EXAMPLES = "T-examples"
    SERVICE = "T-service"
    TEST = "T-test"
    CI = "T-CI"
    CONFIG = "T-config"
    DEPENDENCIES = "T-dependencies"


TYPE_LABELS = frozenset(t.value for t in IssueType)
PRIORITY_LABELS = frozenset(p.value for p in Priority)
WORKFLOW_LABELS = frozenset(w.value for w in Workflow)
COMPONENT_LABELS = frozenset(c.value for c in Component)


def has_type_label(labels: Iterable[str]) -> bool:
    """Return True if any label is a type label."""
    return any(label in TYPE_LABELS for label in labels)


def has_priority_label(labels: Iterable[str]) -> bool:
    """Return True if any label is exactly one of P0..P3."""
    return any(label in PRIORITY_LABELS for label in labels)


def has_triage_labels(labels: Iterable[str]) -> bool:
    """Check whether an issue already has both a type and a priority label.

    Args:
        labels: Label names currently on the issue, in any order.

    Returns:
        True only when both a type label and a priority label are present.
    """
    label_set = set(labels)
    return has_type_label(label_set) and has_priority_label(label_set)


def needs_triage(labels: Iterable[str]) -> bool:
    """Return True if the issue is missing a type or a priority label."""
    return not has_triage_labels(labels)
