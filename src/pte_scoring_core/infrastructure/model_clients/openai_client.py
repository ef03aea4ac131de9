"""
OpenAI (and OpenAI-compatible API) model client
"""

import time

import openai
from openai import OpenAI

from pte_scoring_core.domain.value_objects import ModelResponse
from pte_scoring_core.infrastructure.model_clients.base import ModelClient, RetryMixin


class OpenAIClient(RetryMixin, ModelClient):
    """Client using the OpenAI Chat Completions API"""

    def __init__(
        self,
        model_name: str,
        api_key: str | None = None,
        base_url: str | None = None,
        max_retries: int = 1,
        temperature: float = 0.2,
    ):
        """
        Args:
            model_name: Model name (e.g. gpt-4o-mini)
            api_key: OpenAI API key (required)
            base_url: API endpoint for OpenAI-compatible servers (SDK default if not specified)
            max_retries: Maximum number of attempts (default: 1)
            temperature: Sampling temperature (default: 0.2)
        """
        if not api_key:
            raise ValueError("OPENAI_API_KEY is not set")

        self.model_name = model_name
        self.max_retries = max_retries
        self.temperature = temperature
        self.base_url = base_url
        # SDK-level retries are disabled; RetryMixin owns retry policy
        self.client = OpenAI(api_key=api_key, base_url=base_url, max_retries=0)

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

        Raises:
            openai.APITimeoutError: If the call exceeds timeout_seconds
            Exception: If the maximum number of retries is exceeded
        """
        def _call():
            start_time = time.time()
            kwargs = {}
            if json_mode:
                kwargs["response_format"] = {"type": "json_object"}
            response = self.client.with_options(timeout=timeout_seconds).chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=self.temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
            end_time = time.time()

            latency_ms = int((end_time - start_time) * 1000)
            choice = response.choices[0]
            output = (choice.message.content or "").strip()

            # Retrieve token usage
            input_tokens = 0
            output_tokens = 0
            if response.usage:
                input_tokens = response.usage.prompt_tokens or 0
                output_tokens = response.usage.completion_tokens or 0

            return ModelResponse(
                output=output,
                latency_ms=latency_ms,
                model_name=self.model_name,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                finish_reason=choice.finish_reason,
                request_id=getattr(response, "id", None),
            )

        return self._with_retry(
            _call,
            retryable_exceptions=(
                openai.APIConnectionError,
                openai.RateLimitError,
                openai.InternalServerError,
            ),
            fatal_exceptions=(openai.APITimeoutError,),
        )
