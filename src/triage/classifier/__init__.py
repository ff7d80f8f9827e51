"""LLM-based issue classification.

This module classifies GitHub issues using an LLM to determine:
- Issue type (bug, enhancement, question)
- Priority (P0-P3)
- Affected components
- An optional workflow label
"""

from src.triage.classifier.agent import ClassificationError, IssueClassifier
from src.triage.classifier.models import IssueClassification

__all__ = [
    "ClassificationError",
    "IssueClassification",
    "IssueClassifier",
]
