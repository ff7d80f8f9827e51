"""Issue records as returned by ``gh issue list/view --json``.

The gh CLI returns labels as objects (``{"name": ..., "color": ...}``) and
the body as ``null`` for issues created without a description. The model
normalizes both so the rest of the tool only deals with plain strings.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class Issue(BaseModel):
    """An open GitHub issue, read-only apart from label additions.

    Attributes:
        number: Issue number within the repository.
        title: Issue title.
        body: Issue body, empty when the issue has no description.
        labels: Names of the labels currently on the issue.
    """

    number: int = Field(..., ge=1, description="Issue number")
    title: str = Field(default="", description="Issue title")
    body: str = Field(default="", description="Issue body")
    labels: list[str] = Field(
        default_factory=list,
        description="Label names currently on the issue",
    )

    @field_validator("title", "body", mode="before")
    @classmethod
    def coerce_missing_text(cls, v: Any) -> str:
        """Treat a null title or body as empty text."""
        return "" if v is None else v

    @field_validator("labels", mode="before")
    @classmethod
    def extract_label_names(cls, v: Any) -> list[str]:
        """Accept either label objects from gh or plain label names."""
        if v is None:
            return []
        names = []
        for label in v:
            if isinstance(label, dict):
                label = label.get("name")
            if label:
                names.append(str(label))
        return names

    @property
    def labels_display(self) -> str:
        """Comma-joined label names, or ``none`` when there are no labels."""
        return ", ".join(self.labels) if self.labels else "none"
