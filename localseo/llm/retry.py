"""
localseo/llm/retry.py

Format-error retries for classification completions.

Only JSON parse and schema failures are retried. Each retry repeats the
original request followed by a correction note naming what was wrong with
the previous answer. Transport errors from the adapter propagate unchanged.
"""

from __future__ import annotations

import logging

from localseo.llm.adapter import BaseCompletionAdapter
from localseo.llm.schema import EntityClassificationOutput
from localseo.llm.validator import CompletionOutputValidationError, validate_classification_output

logger = logging.getLogger(__name__)

RETRYABLE_STAGES = frozenset({"json_parse", "schema"})
MAX_ECHOED_ERRORS = 5


class CompletionRetryExhaustedError(Exception):
    """
    Every attempt returned output that failed validation.
    """

    def __init__(self, history: list[CompletionOutputValidationError]) -> None:
        self.history = history
        self.attempts = len(history)
        self.last_error = history[-1]
        super().__init__(
            f"Completion output validation failed after {self.attempts} attempt(s). Last error: {self.last_error}"
        )


def correction_prompt(user_prompt: str, error: CompletionOutputValidationError) -> str:
    problems = "\n".join(f"- {message}" for message in error.errors[:MAX_ECHOED_ERRORS])
    return (
        f"{user_prompt}\n\n"
        "Your previous answer could not be used:\n"
        f"{problems}\n"
        "Reply again with a single JSON object that has exactly the requested fields."
    )


def classify_with_retry(
    adapter: BaseCompletionAdapter,
    system_prompt: str,
    user_prompt: str,
    max_retries: int = 2,
) -> EntityClassificationOutput:
    """
    Request a classification, retrying up to `max_retries` extra times on
    formatting errors.

    Raises:
        CompletionOutputValidationError: non-retryable validation stage.
        CompletionRetryExhaustedError: every attempt failed to validate.
    """

    history: list[CompletionOutputValidationError] = []
    prompt = user_prompt

    while len(history) <= max_retries:
        raw = adapter.complete(system_prompt, prompt, json_mode=True).text
        try:
            output = validate_classification_output(raw)
        except CompletionOutputValidationError as exc:
            if exc.stage not in RETRYABLE_STAGES:
                raise
            history.append(exc)
            logger.warning(
                "Classification output rejected attempt=%d/%d stage=%s errors=%s",
                len(history),
                max_retries + 1,
                exc.stage,
                "; ".join(exc.errors),
            )
            prompt = correction_prompt(user_prompt, exc)
            continue

        if history:
            logger.info("Classification output validated attempt=%d/%d", len(history) + 1, max_retries + 1)
        return output

    raise CompletionRetryExhaustedError(history)
