"""Gemini LLM service implementation."""

from google import genai
from google.genai import errors

from meeting_transcriber.domain.models import GeneratedText, GenerationRequest
from meeting_transcriber.exceptions import (
    ProviderNotConfiguredError,
    UpstreamServiceError,
)
from meeting_transcriber.logging import setup_logging

from .interfaces import LLMService

logger = setup_logging()


class GeminiLLMService(LLMService):
    """LLM service implementation using Google Gemini."""

    provider_name = "gemini"

    def __init__(self, client: genai.Client | None):
        self._client = client

    def generate(self, request: GenerationRequest) -> GeneratedText:
        """
        Generates a summary with Gemini.

        Args:
            request: Rendered prompts, model and sampling parameters.

        Returns:
            GeneratedText with the response text and the serialized response.

        Raises:
            ProviderNotConfiguredError: If no Gemini client was configured.
            UpstreamServiceError: If the Gemini API call fails.
        """
        if self._client is None:
            raise ProviderNotConfiguredError(self.provider_name, "GEMINI_API_KEY")

        try:
            response = self._client.models.generate_content(
                model=request.model,
                contents=request.user_prompt,
                config={
                    "system_instruction": request.system_prompt,
                    "temperature": request.temperature,
                    "max_output_tokens": request.max_tokens,
                },
            )
        except errors.APIError as e:
            logger.exception(
                "Gemini API call failed",
                extra={"model": request.model, "status_code": e.code},
            )
            raise UpstreamServiceError(
                self.provider_name, e.code, e.message or str(e), e
            ) from e
        except Exception as e:
            logger.exception("Gemini API call failed", extra={"model": request.model})
            raise UpstreamServiceError(self.provider_name, None, str(e), e) from e

        logger.info("LLM generation completed", extra={"model": request.model})
        return GeneratedText(
            content=response.text or "",
            raw_response=response.model_dump(mode="json", exclude_none=True),
        )
