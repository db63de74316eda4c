"""Handler for generating versioned transcript summaries."""

from uuid import UUID

from meeting_transcriber.config import PipelineDefaults
from meeting_transcriber.domain import (
    GenerationRequest,
    RecordingStatus,
    SummaryResult,
    format_transcript,
    render_prompt,
)
from meeting_transcriber.exceptions import (
    NoTranscriptSegmentsError,
    RecordingNotFoundError,
)
from meeting_transcriber.infrastructure.interfaces import LLMService
from meeting_transcriber.logging import setup_logging
from meeting_transcriber.repositories import (
    RecordingRepository,
    SegmentRepository,
    SummaryRepository,
    TemplateRepository,
)

logger = setup_logging()


class SummaryHandler:
    """Renders a template over the current transcript and stores a new version."""

    def __init__(
        self,
        recordings: RecordingRepository,
        templates: TemplateRepository,
        segments: SegmentRepository,
        summaries: SummaryRepository,
        llm: LLMService,
        defaults: PipelineDefaults,
    ):
        self._recordings = recordings
        self._templates = templates
        self._segments = segments
        self._summaries = summaries
        self._llm = llm
        self._defaults = defaults

    def generate(
        self,
        recording_id: UUID,
        owner_id: UUID,
        template_id: UUID | None = None,
        model_id: str | None = None,
        instructions: str | None = None,
    ) -> SummaryResult:
        """
        Generates and persists the next summary version of a recording.

        Nothing is written unless the provider returns a result.

        Raises:
            RecordingNotFoundError: If the recording is absent, not owned, or
                not ready.
            TemplateNotFoundError: If ``template_id`` does not exist.
            MissingTemplateError: If no single default template exists.
            NoTranscriptSegmentsError: If the recording has no transcript.
            ProviderNotConfiguredError: If the LLM credential is absent.
            UpstreamServiceError: If the LLM call fails.
        """
        recording = self._recordings.get_owned(recording_id, owner_id)
        if recording.status != RecordingStatus.ready:
            raise RecordingNotFoundError(recording_id, "not found or not ready")

        template = self._templates.resolve(template_id)

        segments = self._segments.list_current(recording_id)
        if not segments:
            raise NoTranscriptSegmentsError(recording_id)

        model = model_id or self._defaults.summary_model
        request = GenerationRequest(
            system_prompt=template.system_prompt,
            user_prompt=render_prompt(
                template.user_prompt, format_transcript(segments), instructions
            ),
            model=model,
            temperature=self._defaults.summary_temperature,
            max_tokens=self._defaults.summary_max_tokens,
        )

        logger.info(
            "Generating summary",
            extra={
                "recording_id": str(recording_id),
                "template_id": str(template.id),
                "model": model,
                "segment_count": len(segments),
            },
        )

        generated = self._llm.generate(request)

        summary = self._summaries.create_next_version(
            recording_id=recording_id,
            template_id=template.id,
            model_id=model,
            content=generated.content,
            raw_response=generated.raw_response,
        )

        return SummaryResult(
            summary_id=summary.id, version=summary.version, content=summary.content
        )
