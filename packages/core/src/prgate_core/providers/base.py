"""Base reviewer implementing the Template Method pattern.

All providers share the same review algorithm:
    review() → _build_system_prompt() + _build_user_prompt()
             → _call_with_retry() → _call_api()   ← only this differs per provider

Subclasses implement:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return a ProviderResponse
  - _is_timeout (optional): recognise the SDK's own timeout exception

Parsing the reply is not done here; the raw text goes to prgate_core.extract
so that a malformed reply still yields a usable outcome.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from prgate_core.errors import ProviderError, UpstreamTimeout

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_MAX_TOKENS = 1800
_DEFAULT_TIMEOUT_SECONDS = 300

SYSTEM_PROMPT = (
    "You are a strict code reviewer for pull requests. Return raw JSON only — no markdown, "
    "no code fences, no explanation. Keys: score (number 0.0-10.0), verdict (approve or "
    "request-changes), findings (array of objects with keys: severity, file, line, issue, fix). "
    "If score < {threshold}, findings MUST explain why points were deducted."
)


@dataclass(frozen=True)
class ProviderResponse:
    """Text of one model reply plus its token usage."""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0


class BaseReviewer(ABC):
    MODEL: str = ""
    MAX_RETRIES: int = _MAX_RETRIES
    MAX_TOKENS: int = _MAX_TOKENS
    TEMPERATURE: float = 0.0

    def __init__(self, model: str | None = None, timeout_seconds: int = _DEFAULT_TIMEOUT_SECONDS):
        self.model = model or self.MODEL
        self.timeout_seconds = timeout_seconds

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def review(self, diff: str, threshold: float = 9.0) -> ProviderResponse:
        """Ask the model to review a diff and return its raw reply.

        Raises UpstreamTimeout when the deadline passes (the caller fails
        open) and ProviderError for any other unrecoverable failure.
        """
        system = self._build_system_prompt(threshold)
        user = self._build_user_prompt(diff, threshold)
        response = self._call_with_retry(system, user)
        if not response.text.strip():
            raise ProviderError(f"{self.__class__.__name__} response did not contain text content")
        return response

    # ------------------------------------------------------------------ #
    # Abstract — implement in each provider                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> ProviderResponse:
        """Make a single API call and return the reply with token usage.

        It should raise on failure — _call_with_retry handles retries and logging.
        """

    def _is_timeout(self, error: Exception) -> bool:
        return isinstance(error, TimeoutError)

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _call_with_retry(self, system_prompt: str, user_prompt: str) -> ProviderResponse:
        """Retry _call_api with exponential backoff inside the overall deadline.

        A timeout, or a retry that could not finish before the deadline, is
        reported as UpstreamTimeout rather than retried further.
        """
        deadline = time.monotonic() + self.timeout_seconds
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._call_api(system_prompt, user_prompt)
            except Exception as e:
                if self._is_timeout(e):
                    raise UpstreamTimeout(
                        f"{self.__class__.__name__} timed out after {self.timeout_seconds} seconds"
                    ) from e
                if attempt == self.MAX_RETRIES - 1:
                    logger.error(
                        "%s API failed after %d attempts: %s",
                        self.__class__.__name__,
                        self.MAX_RETRIES,
                        e,
                    )
                    raise ProviderError(f"{self.__class__.__name__} API request failed: {e}") from e
                delay = 2**attempt
                if time.monotonic() + delay >= deadline:
                    raise UpstreamTimeout(
                        f"{self.__class__.__name__} exhausted its {self.timeout_seconds}s budget while retrying"
                    ) from e
                logger.warning(
                    "%s API error (attempt %d/%d): %s. Retrying in %ds...",
                    self.__class__.__name__,
                    attempt + 1,
                    self.MAX_RETRIES,
                    e,
                    delay,
                )
                time.sleep(delay)
        raise ProviderError(f"{self.__class__.__name__} made no attempts (MAX_RETRIES={self.MAX_RETRIES})")

    def _build_system_prompt(self, threshold: float) -> str:
        return SYSTEM_PROMPT.format(threshold=threshold)

    def _build_user_prompt(self, diff: str, threshold: float) -> str:
        return (
            f"Review this pull request diff. Score quality from 0.0 to 10.0 where {threshold}+ is passing. "
            "Prioritize correctness, regressions, and safety. Return JSON only.\n\n"
            f"PR Diff:\n{diff}"
        )
