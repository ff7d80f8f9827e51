"""LLM-based issue classifier for triage.

This module implements the IssueClassifier that asks an OpenAI-compatible
chat-completion endpoint to assign labels to a GitHub issue:
- Exactly one type (bug, enhancement, question)
- Exactly one priority (P0-P3)
- Zero or more components (T-*)
- An optional workflow label

The classifier uses LangChain's ChatOpenAI client. Transport errors,
non-200 responses, empty content, and responses without a valid type and
priority are all raised as ClassificationError; there is no fallback
classification and no automatic retry.

Source:
- src/triage/classifier/models.py (IssueClassification)
- src/triage/labels.py (label taxonomy)
- src/triage/config.py (openai_base_url, triage_model)
"""

import json
from typing import Any, Optional

import structlog
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import ValidationError

from src.triage.classifier.models import IssueClassification
from src.triage.exceptions import TriageError
from src.triage.github.models import Issue
from src.triage.labels import COMPONENT_LABELS, WORKFLOW_LABELS


logger = structlog.get_logger()

DEFAULT_BODY_LIMIT = 3000


CLASSIFICATION_SYSTEM_PROMPT = """You are an issue triage bot for the {repo} repository.

Your job is to classify GitHub issues by assigning labels. You MUST return valid JSON with exactly these fields:

{{
  "type": "<one of: bug, enhancement, question>",
  "priority": "<one of: P0, P1, P2, P3>",
  "components": ["<zero or more from the component list>"],
  "workflow": "<one of: needs confirmation, needs repro, ready for work, or null>",
  "reasoning": "<one sentence explaining your classification>"
}}

## Label Definitions

### Type
- bug: Something is not working (errors, crashes, incorrect behavior)
- enhancement: New feature or improvement request
- question: User asking for help or clarification

### Priority
- P0: Critical - blocking, security vulnerability, data loss, or crash affecting all users
- P1: High - specification violation, conformance blocker, or significant functionality broken
- P2: Medium - important but non-blocking improvement, interop issue, or DX gap
- P3: Low - nice-to-have, exploratory, long-term, or questions

### Components (prefix: T-)
- T-core: Core library internals, JSON-RPC, error handling
- T-transport: Transport layer (stdio, SSE, streamable HTTP)
- T-macros: Proc macros
- T-handler: Handler/service implementation
- T-model: Model/data structures and JSON-RPC types
- T-security: OAuth, auth, security features
- T-documentation: Documentation and guides
- T-examples: Example code
- T-service: Service layer
- T-test: Testing
- T-CI: CI/CD workflows
- T-config: Configuration
- T-dependencies: Dependency updates

### Workflow
- "needs confirmation": Bug report that needs verification from a maintainer
- "needs repro": Bug report without a minimal reproduction case
- "ready for work": Issue is well-scoped and ready for a contributor to pick up
- null: None of the above apply

## Rules
1. Every issue MUST get exactly one type and one priority.
2. Assign 0-2 component labels (only if clearly relevant).
3. Assign a workflow label only when appropriate; default to null.
4. When in doubt between two priorities, pick the higher one.
5. Security issues are always P0.
6. Specification violations are P1.
7. Questions from users are typically P3.
8. Return ONLY the JSON object, no markdown fences, no extra text."""


def _build_classification_prompt(issue: Issue, body_limit: int) -> str:
    """Build the user prompt for issue classification.

    Args:
        issue: The issue to classify.
        body_limit: Maximum number of body characters to include.

    Returns:
        Formatted prompt string for the LLM.
    """
    truncated_body = issue.body[:body_limit]

    return f"""Classify this GitHub issue.

Issue #{issue.number}: {issue.title}

Existing labels: {", ".join(issue.labels)}

Body:
{truncated_body}"""


def _strip_code_fences(response_text: str) -> str:
    """Remove markdown code fences the model may wrap around its JSON."""
    text = response_text.strip()

    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]

    if text.endswith("```"):
        text = text[:-3]

    return text.strip()


def _parse_llm_response(response_text: str) -> dict[str, Any]:
    """Parse the LLM response text into a dictionary.

    Args:
        response_text: Raw text response from the LLM.

    Returns:
        Parsed dictionary from the JSON response.

    Raises:
        json.JSONDecodeError: If the response is not valid JSON.
        ValueError: If the JSON is not an object.
    """
    data = json.loads(_strip_code_fences(response_text))
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def _is_label(value: Any, allowed: frozenset) -> bool:
    return isinstance(value, str) and value in allowed


def _normalize_response(data: dict[str, Any]) -> dict[str, Any]:
    """Normalize the advisory fields of a parsed LLM response.

    Type and priority are passed through untouched so that model
    validation rejects them when missing or invalid. Components and
    workflow are advisory: unknown values are dropped rather than failing
    the whole classification.

    Args:
        data: Parsed dictionary from LLM response.

    Returns:
        Dictionary ready for IssueClassification validation.
    """
    components = data.get("components") or []
    if not isinstance(components, list):
        components = []
    unknown = [c for c in components if not _is_label(c, COMPONENT_LABELS)]
    if unknown:
        logger.warning("Dropping unknown component labels", components=unknown)
    components = [c for c in components if _is_label(c, COMPONENT_LABELS)]

    workflow = data.get("workflow")
    if workflow in ("", "null"):
        workflow = None
    if workflow is not None and not _is_label(workflow, WORKFLOW_LABELS):
        logger.warning("Dropping unknown workflow label", workflow=workflow)
        workflow = None

    reasoning = data.get("reasoning")
    if reasoning is not None:
        reasoning = str(reasoning)

    return {
        "type": data.get("type"),
        "priority": data.get("priority"),
        "components": components,
        "workflow": workflow,
        "reasoning": reasoning,
    }


class ClassificationError(TriageError):
    """Raised when an issue cannot be classified.

    Covers transport failures, non-200 responses, empty content, invalid
    JSON, and responses missing a valid type or priority.
    """


class IssueClassifier:
    """LLM-based classifier for GitHub issues.

    Attributes:
        base_url: Base URL of the OpenAI-compatible endpoint.
        api_key: API key sent as a bearer token.
        model_name: Name of the model to use for inference.
        repo: Repository name included in the system prompt.
        temperature: Sampling temperature for the LLM.
        body_limit: Maximum issue body characters sent to the model.
        timeout: Optional request timeout in seconds.

    Example:
        >>> classifier = IssueClassifier(
        ...     base_url="https://api.openai.com/v1",
        ...     api_key="sk-...",
        ...     model_name="gpt-4o-mini",
        ... )
        >>> result = await classifier.classify(issue)
        >>> result.label_set()
        ['bug', 'P1', 'T-transport']
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model_name: str,
        repo: str = "modelcontextprotocol/rust-sdk",
        temperature: float = 0.1,
        body_limit: int = DEFAULT_BODY_LIMIT,
        timeout: Optional[float] = None,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.model_name = model_name
        self.repo = repo
        self.temperature = temperature
        self.body_limit = body_limit
        self.timeout = timeout
        self._llm: Optional[ChatOpenAI] = None

    @property
    def llm(self) -> ChatOpenAI:
        """Get the LLM client, creating it if necessary."""
        if self._llm is None:
            self._llm = ChatOpenAI(
                base_url=self.base_url,
                api_key=self.api_key,
                model=self.model_name,
                temperature=self.temperature,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._llm

    @property
    def system_prompt(self) -> str:
        return CLASSIFICATION_SYSTEM_PROMPT.format(repo=self.repo)

    async def classify(self, issue: Issue) -> IssueClassification:
        """Classify a GitHub issue using the LLM.

        Args:
            issue: The issue to classify.

        Returns:
            IssueClassification with a valid type and priority.

        Raises:
            ClassificationError: If the request fails or the response does
                not contain a valid classification.
        """
        logger.info(
            "Classifying issue",
            issue_number=issue.number,
            model=self.model_name,
            body_length=len(issue.body),
            labels=issue.labels,
        )

        messages = [
            SystemMessage(content=self.system_prompt),
            HumanMessage(content=_build_classification_prompt(issue, self.body_limit)),
        ]

        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            logger.error(
                "LLM invocation failed",
                issue_number=issue.number,
                error=str(e),
                error_type=type(e).__name__,
                status_code=getattr(e, "status_code", None),
            )
            raise ClassificationError(f"LLM invocation failed: {e}", cause=e)

        classification = self._parse_classification(issue, response.content)

        logger.info(
            "Issue classified",
            issue_number=issue.number,
            **classification.to_dict(),
        )
        return classification

    def _parse_classification(
        self, issue: Issue, content: Any
    ) -> IssueClassification:
        """Turn the raw completion content into a validated classification.

        Raises:
            ClassificationError: On empty, non-JSON, or schema-invalid content.
        """
        if not isinstance(content, str) or not content.strip() or content.strip() == "null":
            logger.error("Empty response from LLM", issue_number=issue.number)
            raise ClassificationError("Empty response from LLM")

        try:
            parsed = _parse_llm_response(content)
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(
                "LLM returned invalid classification",
                issue_number=issue.number,
                response_preview=content[:200],
                error=str(e),
            )
            raise ClassificationError(f"Invalid JSON response: {e}", cause=e)

        try:
            return IssueClassification.model_validate(_normalize_response(parsed))
        except ValidationError as e:
            logger.error(
                "LLM returned invalid classification",
                issue_number=issue.number,
                response_preview=content[:200],
                error=str(e),
            )
            raise ClassificationError(
                f"Response validation failed: {e}", cause=e
            )
