"""Abstract interface for LLM service operations."""

from abc import ABC, abstractmethod

from meeting_transcriber.domain.models import GeneratedText, GenerationRequest


class LLMService(ABC):
    """Abstract base class for text-generation backends."""

    @abstractmethod
    def generate(self, request: GenerationRequest) -> GeneratedText:
        """
        Generates text for a rendered prompt.

        Args:
            request: System prompt, user prompt, model and sampling parameters.

        Returns:
            GeneratedText with the content and the raw provider response.

        Raises:
            ProviderNotConfiguredError: If the provider credential is absent.
            UpstreamServiceError: If the provider call fails.
        """
