"""LLM-assisted triage of open GitHub issues.

This package finds open issues that are missing a type or priority label,
asks an OpenAI-compatible chat-completion endpoint to classify them, and
adds the resulting labels through the ``gh`` CLI:
- Issue fetching and label mutation via ``gh``
- Triage filtering on the type/priority label taxonomy
- LLM-based classification with strict schema validation
- Dry-run by default, label mutation only with ``--apply``
- Per-run summary with a failure-sensitive exit status
"""
