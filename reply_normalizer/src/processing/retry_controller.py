from __future__ import annotations

import random
from typing import List, Optional

from loguru import logger

from ..config import Config
from ..errors import MaxRetriesExceededError, ParseError
from ..models import RetryContext, RetryPolicy, RetrySummary
from ..utils.text_utils import TextUtils
from .retry_prompts import (
    DEFAULT_ERROR_MESSAGE,
    ERROR_MESSAGES,
    FAILED_CONTENT_TMPL,
    RETRY_HEADER_TMPL,
)

BACKOFF_FACTOR = 1.5
JITTER_RANGE = (0.8, 1.2)


class RetryController:
    """Bookkeeping for the attempts of one structured request.

    A controller belongs to a single logical request. The attempt counter only
    moves forward until ``record_success`` or ``reset`` puts it back to 1.
    """

    def __init__(self, policy: Optional[RetryPolicy] = None):
        self.policy = policy or RetryPolicy.default()
        self.attempt = 1
        self.last_error: Optional[ParseError] = None
        self.last_failed_content: Optional[str] = None
        self._errors: List[ParseError] = []
        self._last_context: Optional[RetryContext] = None
        self._halted = False

    @property
    def attempts_made(self) -> int:
        return self.attempt - 1

    @property
    def can_retry(self) -> bool:
        return self.attempt <= self.policy.max_attempts

    @property
    def is_exhausted(self) -> bool:
        return self._halted or not self.can_retry

    @property
    def errors(self) -> List[ParseError]:
        return list(self._errors)

    def record_failure(self, error: ParseError, content: str = "") -> Optional[RetryContext]:
        """Record a failed attempt; return the context for the next one, if any."""
        attempt_number = self.attempt
        self.attempt += 1
        self.last_error = error
        self.last_failed_content = content
        self._errors.append(error)

        if not error.retryable:
            self._halted = True
            logger.warning(f"[retry] attempt {attempt_number} failed with terminal {error.kind}: {error}")
            return None
        if not self.can_retry:
            logger.warning(
                f"[retry] attempt {attempt_number}/{self.policy.max_attempts} failed, no attempts left: {error}"
            )
            return None

        self._last_context = RetryContext(
            attempt_number=attempt_number,
            max_attempts=self.policy.max_attempts,
            error=error,
            failed_content=content,
        )
        logger.info(
            f"[retry] attempt {attempt_number}/{self.policy.max_attempts} failed ({error.kind}), "
            f"{self._last_context.remaining_attempts} remaining"
        )
        return self._last_context

    def record_success(self) -> None:
        if self.attempts_made:
            logger.info(f"[retry] succeeded after {self.attempts_made} failed attempt(s)")
        self.reset()

    def reset(self) -> None:
        self.attempt = 1
        self.last_error = None
        self.last_failed_content = None
        self._errors = []
        self._last_context = None
        self._halted = False

    def get_last_retry_context(self) -> Optional[RetryContext]:
        return self._last_context

    def build_retry_prompt(self, original_prompt: str, context: RetryContext) -> str:
        """Append retry bookkeeping and, if enabled, what went wrong last time."""
        prompt = original_prompt + RETRY_HEADER_TMPL.format(
            attempt=context.attempt_number + 1,
            max_attempts=context.max_attempts,
            remaining=context.remaining_attempts,
        )
        if not self.policy.include_error_context:
            return prompt + DEFAULT_ERROR_MESSAGE

        template = ERROR_MESSAGES.get(context.error.kind)
        prompt += template.format(error=context.error.description) if template else DEFAULT_ERROR_MESSAGE
        if context.failed_content.strip():
            excerpt = TextUtils.truncate_text(context.failed_content.strip(), Config.RETRY_EXCERPT_MAX)
            prompt += FAILED_CONTENT_TMPL.format(excerpt=excerpt)
        return prompt

    def get_retry_delay(self) -> float:
        """Exponential backoff with jitter, based on the attempts made so far."""
        base = self.policy.retry_delay
        if base <= 0:
            return 0.0
        exponent = max(0, self.attempts_made - 1)
        return base * (BACKOFF_FACTOR ** exponent) * random.uniform(*JITTER_RANGE)

    def get_final_error(self) -> MaxRetriesExceededError:
        last = self.last_error.description if self.last_error else "Unknown error"
        return MaxRetriesExceededError(attempts=self.attempts_made, last_error=last)

    def get_summary(self) -> RetrySummary:
        return RetrySummary(
            total_attempts=self.attempts_made,
            max_attempts=self.policy.max_attempts,
            errors=[err.description for err in self._errors],
            is_exhausted=self.is_exhausted,
        )


__all__ = ["RetryController"]
