"""
Google Gemini (Google GenAI SDK) model client
"""

import logging
import time

from google import genai
from google.genai import errors as genai_errors
from google.genai.types import GenerateContentConfig, HttpOptions

from pte_scoring_core.domain.value_objects import ModelResponse
from pte_scoring_core.infrastructure.model_clients.base import ModelClient, RetryMixin

logger = logging.getLogger(__name__)


class GeminiClient(RetryMixin, ModelClient):
    """Model client using the Google GenAI SDK (Gemini API)"""

    def __init__(
        self,
        model_name: str,
        api_key: str | None = None,
        fallback_model: str | None = None,
        max_retries: int = 1,
        temperature: float = 0.2,
    ):
        """
        Args:
            model_name: Model name (e.g. gemini-2.5-flash)
            api_key: Gemini API key (required)
            fallback_model: Model tried once when the primary model errors (not on timeout)
            max_retries: Maximum number of attempts per model (default: 1)
            temperature: Sampling temperature (default: 0.2)
        """
        if not api_key:
            raise ValueError("GEMINI_API_KEY is not set")

        self.model_name = model_name
        self.fallback_model = fallback_model if fallback_model != model_name else None
        self.max_retries = max_retries
        self.temperature = temperature
        self.client = genai.Client(api_key=api_key)

    def _generate_once(
        self,
        model: str,
        system: str,
        user: str,
        max_tokens: int,
        timeout_seconds: float,
        json_mode: bool,
    ) -> ModelResponse:
        config = GenerateContentConfig(
            system_instruction=system,
            temperature=self.temperature,
            max_output_tokens=max_tokens,
            response_mime_type="application/json" if json_mode else None,
            # HttpOptions timeout is in milliseconds
            http_options=HttpOptions(timeout=int(timeout_seconds * 1000)),
        )

        def _call():
            start_time = time.time()
            response = self.client.models.generate_content(
                model=model,
                contents=user,
                config=config,
            )
            end_time = time.time()

            latency_ms = int((end_time - start_time) * 1000)

            # Retrieve token usage
            input_tokens = 0
            output_tokens = 0
            if getattr(response, "usage_metadata", None):
                input_tokens = getattr(response.usage_metadata, "prompt_token_count", 0) or 0
                output_tokens = getattr(response.usage_metadata, "candidates_token_count", 0) or 0

            finish_reason = None
            if getattr(response, "candidates", None):
                reason = getattr(response.candidates[0], "finish_reason", None)
                finish_reason = getattr(reason, "value", reason)

            return ModelResponse(
                output=(response.text or "").strip(),
                latency_ms=latency_ms,
                model_name=model,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                finish_reason=str(finish_reason) if finish_reason is not None else None,
                request_id=getattr(response, "response_id", None),
            )

        return self._with_retry(
            _call,
            retryable_exceptions=(genai_errors.ServerError,),
        )

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

        Falls back to fallback_model once on an API error from the primary model.

        Raises:
            Exception: If both models fail
        """
        try:
            return self._generate_once(
                self.model_name, system, user, max_tokens, timeout_seconds, json_mode
            )
        except genai_errors.APIError as e:
            if not self.fallback_model:
                raise
            logger.warning(
                "Gemini model %s failed (%s); trying %s", self.model_name, e, self.fallback_model
            )
            return self._generate_once(
                self.fallback_model, system, user, max_tokens, timeout_seconds, json_mode
            )
