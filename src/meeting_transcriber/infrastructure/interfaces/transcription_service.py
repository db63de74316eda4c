"""Abstract interface for speech-to-text providers."""

from abc import ABC, abstractmethod

from meeting_transcriber.domain.models import (
    ProviderSubmission,
    ProviderTranscript,
    TranscriptionRequest,
)


class TranscriptionService(ABC):
    """Abstract base class for speech-to-text provider gateways."""

    provider_name: str

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the provider credential is present."""

    @abstractmethod
    def transcribe(
        self, request: TranscriptionRequest
    ) -> ProviderTranscript | ProviderSubmission:
        """
        Submits a media reference to the provider.

        Args:
            request: Media URL, job id and resolved options.

        Returns:
            The normalized transcript when the provider answers synchronously,
            or a submission receipt when the result will arrive by callback.

        Raises:
            ProviderNotConfiguredError: If the provider credential is absent.
            ProviderTransportError: If the provider cannot be reached in time.
            UpstreamServiceError: If the provider rejects the request.
        """
