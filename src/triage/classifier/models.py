"""Classification result model for issue triage.

The models use Pydantic for validation, consistent with the Issue model in
github/models.py. Type and priority are required and must come from their
closed enumerations; components and workflow are advisory and optional.
"""

from typing import Optional

from pydantic import BaseModel, Field

from src.triage.labels import Component, IssueType, Priority, Workflow


class IssueClassification(BaseModel):
    """Structured output of the LLM classifier for one issue.

    Attributes:
        type: Exactly one type label.
        priority: Exactly one priority label.
        components: Zero or more component labels.
        workflow: Optional workflow label.
        reasoning: One-sentence explanation from the model.
    """

    type: IssueType = Field(..., description="The issue type label")

    priority: Priority = Field(..., description="The priority label")

    components: list[Component] = Field(
        default_factory=list,
        description="Component labels relevant to the issue",
    )

    workflow: Optional[Workflow] = Field(
        default=None,
        description="Optional workflow status label",
    )

    reasoning: Optional[str] = Field(
        default=None,
        description="Explanation of the classification decision",
    )

    def label_set(self) -> list[str]:
        """Build the labels to add, in application order.

        Type and priority always come first, followed by the workflow label
        when present and then each component. Duplicates are dropped.

        Returns:
            list[str]: Label names to add to the issue.
        """
        labels = [self.type.value, self.priority.value]
        if self.workflow is not None:
            labels.append(self.workflow.value)
        labels.extend(component.value for component in self.components)
        return list(dict.fromkeys(labels))

    def to_dict(self) -> dict:
        """Convert the classification to a plain dictionary for logging."""
        return {
            "type": self.type.value,
            "priority": self.priority.value,
            "components": [c.value for c in self.components],
            "workflow": self.workflow.value if self.workflow else None,
            "reasoning": self.reasoning,
        }
