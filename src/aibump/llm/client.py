"""Generative text classifier backed by the Anthropic Messages API."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import anthropic

from aibump.bumper.errors import ClassificationError
from aibump.manifests.semver import BumpKind

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"

CLASSIFY_SYSTEM_PROMPT = """You are a release engineer who decides semantic version bumps.
You read git diffs and answer with exactly one lowercase word: major, minor or patch."""

SUMMARY_SYSTEM_PROMPT = """You are a senior software engineer writing git commit messages for release commits.
Be specific and brief. The diff shows WHAT changed; summarise it for someone reading git log."""

_RETRYABLE = (
    anthropic.APIConnectionError,
    anthropic.RateLimitError,
    anthropic.InternalServerError,
)

_STRIP_CHARS = "\"'`"
_TRAILING_PUNCT = ".!,;:"


def normalise_kind(raw: str) -> Optional[BumpKind]:
    """Map a model reply onto a BumpKind, or None if it is not one."""
    text = raw.strip().strip(_STRIP_CHARS).rstrip(_TRAILING_PUNCT).strip(_STRIP_CHARS).strip()
    try:
        return BumpKind(text.lower())
    except ValueError:
        return None


class TextClassifier(ABC):
    """Anything that can turn a prompt into a bump kind or a short summary."""

    @abstractmethod
    def classify(self, prompt: str) -> BumpKind:
        """Return the bump kind for *prompt*. Raises ClassificationError."""

    @abstractmethod
    def summarize(self, prompt: str) -> str:
        """Return free text for *prompt*. Raises ClassificationError."""


class AnthropicClassifier(TextClassifier):
    """Claude client with bounded retries and linear backoff.

    Connection failures, timeouts, rate limits, 5xx responses and replies that
    are not one of ``major|minor|patch`` are retried up to *max_attempts*
    times, sleeping ``backoff_s * attempt`` seconds in between. Authentication
    failures and other 4xx responses are not retried.
    """

    CLASSIFY_MAX_TOKENS = 16

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        max_attempts: int = 3,
        backoff_s: float = 1.0,
        max_output_tokens: int = 512,
        client: Any = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.model = model
        self.max_attempts = max_attempts
        self.backoff_s = backoff_s
        self.max_output_tokens = max_output_tokens
        self._sleep = sleep
        self._client = client if client is not None else anthropic.Anthropic(api_key=api_key)

    def classify(self, prompt: str) -> BumpKind:
        last_raw: Optional[str] = None
        for attempt in range(1, self.max_attempts + 1):
            raw = self._complete(
                prompt,
                system=CLASSIFY_SYSTEM_PROMPT,
                max_tokens=self.CLASSIFY_MAX_TOKENS,
                attempt=attempt,
            )
            if raw is not None:
                last_raw = raw
                kind = normalise_kind(raw)
                if kind is not None:
                    logger.info("Model answered %r -> %s", raw, kind.value)
                    return kind
                logger.warning(
                    "Unexpected classifier response %r (attempt %d/%d)",
                    raw, attempt, self.max_attempts,
                )
            self._backoff(attempt)

        raise ClassificationError(
            f"No valid bump kind after {self.max_attempts} attempt(s)",
            raw_response=last_raw,
        )

    def summarize(self, prompt: str) -> str:
        for attempt in range(1, self.max_attempts + 1):
            raw = self._complete(
                prompt,
                system=SUMMARY_SYSTEM_PROMPT,
                max_tokens=self.max_output_tokens,
                attempt=attempt,
            )
            if raw is not None and raw.strip():
                return raw.strip()
            if raw is not None:
                logger.warning("Empty summary response (attempt %d/%d)", attempt, self.max_attempts)
            self._backoff(attempt)

        raise ClassificationError(
            f"No usable summary after {self.max_attempts} attempt(s)",
            raw_response="",
        )

    def _complete(self, prompt: str, *, system: str, max_tokens: int, attempt: int) -> Optional[str]:
        """One request. Returns the text, or None on a retryable transport failure."""
        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=0,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except _RETRYABLE as exc:
            logger.warning(
                "Claude request failed: %s (attempt %d/%d)",
                type(exc).__name__, attempt, self.max_attempts,
            )
            if attempt >= self.max_attempts:
                raise ClassificationError(
                    f"Claude API unavailable after {self.max_attempts} attempt(s): {exc}"
                ) from exc
            return None
        except anthropic.AuthenticationError as exc:
            raise ClassificationError(
                "Invalid API key. Check ANTHROPIC_API_KEY or AIBUMP_API_KEY."
            ) from exc
        except anthropic.APIStatusError as exc:
            raise ClassificationError(f"Claude API error ({exc.status_code}): {exc.message}") from exc

        for block in response.content:
            if getattr(block, "type", None) == "text":
                return block.text
        return ""

    def _backoff(self, attempt: int) -> None:
        if attempt < self.max_attempts and self.backoff_s > 0:
            self._sleep(self.backoff_s * attempt)
