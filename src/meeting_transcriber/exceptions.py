"""Custom exceptions for the meeting-transcriber service."""

from uuid import UUID


class UnauthorizedError(Exception):
    """Raised when the caller identity is missing or invalid."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class WebhookAuthenticationError(UnauthorizedError):
    """Raised when a provider callback carries a wrong shared secret."""

    def __init__(self):
        super().__init__("Invalid webhook secret")


class ResourceNotFoundError(Exception):
    """Raised when a referenced resource is absent or not owned by the caller."""


class RecordingNotFoundError(ResourceNotFoundError):
    """Raised when a recording does not exist, is not owned, or is not usable."""

    def __init__(self, recording_id: UUID, reason: str = "not found"):
        self.recording_id = recording_id
        super().__init__(f"Recording {recording_id} {reason}")


class JobNotFoundError(ResourceNotFoundError):
    """Raised when a transcription job cannot be resolved."""

    def __init__(self, job_id: str | None):
        self.job_id = job_id
        super().__init__(f"Transcription job '{job_id}' not found")


class TemplateNotFoundError(ResourceNotFoundError):
    """Raised when an explicitly requested summary template does not exist."""

    def __init__(self, template_id: UUID):
        self.template_id = template_id
        super().__init__(f"Summary template {template_id} not found")


class SpeakerNotFoundError(ResourceNotFoundError):
    """Raised when no current segment carries the requested speaker id."""

    def __init__(self, recording_id: UUID, speaker_id: str):
        self.recording_id = recording_id
        self.speaker_id = speaker_id
        super().__init__(
            f"Speaker '{speaker_id}' not found in recording {recording_id}"
        )


class InvalidRequestError(Exception):
    """Raised when a request is malformed or its prerequisites are missing."""


class MissingTemplateError(InvalidRequestError):
    """Raised when no usable default summary template exists."""

    def __init__(self, reason: str = "No summary template found"):
        super().__init__(reason)


class NoTranscriptSegmentsError(InvalidRequestError):
    """Raised when a recording has no transcript segments to summarize."""

    def __init__(self, recording_id: UUID):
        self.recording_id = recording_id
        super().__init__(f"No transcript segments found for recording {recording_id}")


class InvalidCallbackPayloadError(InvalidRequestError):
    """Raised when a provider callback body cannot be parsed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid callback payload: {reason}")


class ConflictError(Exception):
    """Raised when a request collides with work already in progress."""


class TranscriptionInProgressError(ConflictError):
    """Raised when a recording already has an outstanding transcription job."""

    def __init__(self, recording_id: UUID):
        self.recording_id = recording_id
        super().__init__(f"Recording {recording_id} already has a transcription in progress")


class InvalidStateTransitionError(ConflictError):
    """Raised when a status write is not legal from the entity's current status."""

    def __init__(self, entity: str, entity_id: UUID, current: str | None, target: str):
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.target = target
        super().__init__(
            f"Illegal {entity} transition for {entity_id}: {current} -> {target}"
        )


class ProviderNotConfiguredError(Exception):
    """Raised when a required provider credential is absent. Never retried."""

    def __init__(self, provider: str, setting: str | None = None):
        self.provider = provider
        self.setting = setting
        detail = f" ({setting} is not set)" if setting else ""
        super().__init__(f"Provider '{provider}' is not configured{detail}")


class UpstreamServiceError(Exception):
    """Raised when an external provider returns a non-success result."""

    def __init__(
        self,
        provider: str,
        status_code: int | None,
        body: str,
        cause: Exception | None = None,
    ):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        self.cause = cause
        super().__init__(f"Provider '{provider}' request failed: {self.detail}")

    @property
    def detail(self) -> str:
        """Provider status and body as recorded on the failed job."""
        if self.status_code is None:
            return self.body
        return f"{self.status_code}: {self.body}"


class ProviderTransportError(UpstreamServiceError):
    """Raised when the provider could not be reached or did not answer in time."""

    def __init__(self, provider: str, cause: Exception | None = None):
        reason = f"transport failure: {cause}" if cause else "transport failure"
        super().__init__(provider, None, reason, cause)


class InternalPipelineError(Exception):
    """Raised on unexpected failures inside the pipeline."""


class StorageSignedUrlError(InternalPipelineError):
    """Raised when a time-limited media reference cannot be created."""

    def __init__(self, object_name: str, cause: Exception | None = None):
        self.object_name = object_name
        self.cause = cause
        super().__init__(f"Could not create signed URL for '{object_name}'")


class PersistenceError(InternalPipelineError):
    """Raised when writing pipeline results to the database fails."""

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Persistence failed during {operation}")


class LeaseServiceError(InternalPipelineError):
    """Raised when the per-recording lease store is unavailable."""

    def __init__(self, key: str, operation: str, cause: Exception | None = None):
        self.key = key
        self.operation = operation
        self.cause = cause
        super().__init__(f"Lease {operation} failed for key '{key}'")


class SummaryVersionConflictError(InternalPipelineError):
    """Raised when a summary version could not be claimed after retries."""

    def __init__(self, recording_id: UUID, attempts: int):
        self.recording_id = recording_id
        self.attempts = attempts
        super().__init__(
            f"Could not assign a summary version for recording {recording_id} "
            f"after {attempts} attempts"
        )
