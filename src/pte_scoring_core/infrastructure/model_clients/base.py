"""
Model client base class and retry mixin

Defines the abstract base class inherited by all model clients
and the RetryMixin that consolidates shared retry logic.
"""

import time
from abc import ABC, abstractmethod

from pte_scoring_core.domain.value_objects import ModelResponse


class RetryMixin:
    """Exponential backoff retry. Subclasses set self.max_retries."""

    max_retries: int = 1

    def _with_retry(self, fn, retryable_exceptions=(Exception,), fatal_exceptions=()):
        """
        Execute with exponential backoff retry.

        Timeouts belong in fatal_exceptions: a timed-out call is abandoned by
        the orchestrator, not repeated.

        Args:
            fn: The function to retry (a callable with no arguments)
            retryable_exceptions: Tuple of exception types eligible for retry
            fatal_exceptions: Tuple of exception types raised immediately, even
                when they subclass a retryable type

        Returns:
            The return value of fn()

        Raises:
            ValueError: If max_retries is less than 1
            Exception: The last exception if max retries are exceeded
        """
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1.")

        last_exception: Exception | None = None
        for attempt in range(self.max_retries):
            try:
                return fn()
            except fatal_exceptions:
                raise
            except retryable_exceptions as e:
                last_exception = e
                if attempt < self.max_retries - 1:
                    time.sleep(2 ** attempt)

        assert last_exception is not None
        raise last_exception


class ModelClient(ABC):
    """Abstract base class for model clients"""

    model_name: str

    @abstractmethod
    def generate(
        self,
        system: str,
        user: str,
        *,
        max_tokens: int = 600,
        timeout_seconds: float = 8.0,
        json_mode: bool = False,
    ) -> ModelResponse:
        """Send a system + user prompt and retrieve the response"""
        pass
