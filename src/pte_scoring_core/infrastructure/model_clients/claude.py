"""
Anthropic Claude model client
"""

import time

from anthropic import (
    Anthropic,
    APIConnectionError,
    APITimeoutError,
    InternalServerError,
    RateLimitError,
)

from pte_scoring_core.domain.value_objects import ModelResponse
from pte_scoring_core.infrastructure.model_clients.base import ModelClient, RetryMixin


class ClaudeClient(RetryMixin, ModelClient):
    """Claude client using the Anthropic API"""

    def __init__(
        self,
        model_name: str,
        api_key: str | None = None,
        max_retries: int = 1,
        temperature: float = 0.2,
    ):
        """
        Args:
            model_name: Model name (e.g. claude-haiku-4-5-20251001)
            api_key: Anthropic API key (required)
            max_retries: Maximum number of attempts (default: 1)
            temperature: Sampling temperature (default: 0.2)
        """
        if not api_key:
            raise ValueError("ANTHROPIC_API_KEY is not set")

        self.model_name = model_name
        self.max_retries = max_retries
        self.temperature = temperature

        # Initialize the Anthropic client
        self.client = Anthropic(api_key=api_key, max_retries=0)

    def generate(
        self,
        system: str,
        user: str,
        *,
        max_tokens: int = 600,
        timeout_seconds: float = 8.0,
        json_mode: bool = False,
    ) -> ModelResponse:
        """
        Send a prompt and retrieve the response

        json_mode has no API switch here; the prompt carries the JSON contract.

        Raises:
            anthropic.APITimeoutError: If the call exceeds timeout_seconds
            Exception: If the maximum number of retries is exceeded
        """
        def _call():
            start_time = time.time()
            response = self.client.messages.create(
                model=self.model_name,
                max_tokens=max_tokens,
                temperature=self.temperature,
                system=system,
                messages=[{"role": "user", "content": user}],
                timeout=timeout_seconds,
            )
            end_time = time.time()

            latency_ms = int((end_time - start_time) * 1000)
            output = "".join(
                getattr(block, "text", "") for block in response.content
            ).strip()

            # Retrieve token usage
            input_tokens = getattr(response.usage, "input_tokens", 0) or 0
            output_tokens = getattr(response.usage, "output_tokens", 0) or 0

            return ModelResponse(
                output=output,
                latency_ms=latency_ms,
                model_name=self.model_name,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                finish_reason=getattr(response, "stop_reason", None),
                request_id=getattr(response, "id", None),
            )

        return self._with_retry(
            _call,
            retryable_exceptions=(APIConnectionError, RateLimitError, InternalServerError),
            fatal_exceptions=(APITimeoutError,),
        )
