"""Validation layer for raw completion output.

Parses and validates JSON strings against the EntityClassificationOutput
schema.
"""

from __future__ import annotations

import json
import re
from typing import List

from pydantic import ValidationError

from localseo.llm.schema import EntityClassificationOutput


class CompletionOutputValidationError(Exception):
    """Raised when completion output fails parsing or schema validation.

    Attributes:
        stage: Which validation step failed ("json_parse" or "schema").
        errors: List of human-readable error descriptions.
        raw_response: The original string that failed validation.
    """

    def __init__(
        self,
        stage: str,
        errors: List[str],
        raw_response: str,
    ) -> None:
        self.stage = stage
        self.errors = errors
        self.raw_response = raw_response
        super().__init__(f"Completion output validation failed at stage '{stage}': " + "; ".join(errors))


def _strip_markdown_fences(text: str) -> str:
    """Remove optional markdown code fences wrapping JSON."""
    stripped = text.strip()
    match = re.match(
        r"^```(?:json)?\s*\n?(.*?)\n?\s*```$",
        stripped,
        re.DOTALL,
    )
    if match:
        return match.group(1).strip()
    return stripped


def _extract_json_object(text: str) -> str:
    """Cut the outermost `{...}` span when the model adds prose around it."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return text
    return text[start : end + 1]


def validate_classification_output(raw_response: str) -> EntityClassificationOutput:
    """Parse and validate a raw classification answer.

    Steps:
        1. Strip optional markdown fences and surrounding prose.
        2. Parse as JSON.
        3. Validate against the EntityClassificationOutput model.

    Raises:
        CompletionOutputValidationError: If JSON parsing or schema validation fails.
    """
    cleaned = _extract_json_object(_strip_markdown_fences(raw_response or ""))

    try:
        data = json.loads(cleaned)
    except (json.JSONDecodeError, TypeError) as exc:
        raise CompletionOutputValidationError(
            stage="json_parse",
            errors=[str(exc)],
            raw_response=raw_response,
        ) from exc

    if not isinstance(data, dict):
        raise CompletionOutputValidationError(
            stage="schema",
            errors=["top-level JSON must be an object"],
            raw_response=raw_response,
        )

    try:
        return EntityClassificationOutput.model_validate(data)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise CompletionOutputValidationError(
            stage="schema",
            errors=errors,
            raw_response=raw_response,
        ) from exc
