from concurrent.futures import Future
from types import SimpleNamespace
from uuid import uuid4

import assemblyai as aai
import pytest

from meeting_transcriber.domain import ResolvedOptions, TranscriptionRequest
from meeting_transcriber.exceptions import (
    ProviderNotConfiguredError,
    ProviderTransportError,
    UpstreamServiceError,
)
from meeting_transcriber.infrastructure import AssemblyAITranscriber


class FakeTranscriber:
    def __init__(self, transcript=None, error=None, pending=False):
        self.transcript = transcript
        self.error = error
        self.pending = pending
        self.calls = []

    def transcribe_async(self, url, config=None):
        self.calls.append((url, config))
        future = Future()
        if self.pending:
            return future
        if self.error is not None:
            future.set_exception(self.error)
        else:
            future.set_result(self.transcript)
        return future


def _request():
    return TranscriptionRequest(
        job_id=uuid4(),
        media_url="https://media.example/a.mp3",
        options=ResolvedOptions(
            model_id="scribe_v2", diarize=True, tag_audio_events=False, language_code="en"
        ),
    )


def _transcript(**overrides):
    fields = dict(
        id="aai-1",
        status=aai.TranscriptStatus.completed,
        error=None,
        text="hi there hello",
        audio_duration=2,
        json_response={"id": "aai-1"},
        words=[
            SimpleNamespace(text="hi", start=0, end=500, speaker="A"),
            SimpleNamespace(text="there", start=500, end=900, speaker="A"),
            SimpleNamespace(text="hello", start=1000, end=1400, speaker="B"),
        ],
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_word_times_are_converted_to_seconds():
    fake = FakeTranscriber(transcript=_transcript())

    result = AssemblyAITranscriber(fake, "key").transcribe(_request())

    assert [(w.speaker_id, w.start, w.end) for w in result.words] == [
        ("A", 0.0, 0.5),
        ("A", 0.5, 0.9),
        ("B", 1.0, 1.4),
    ]
    assert result.duration_seconds == 2
    assert result.provider_job_id == "aai-1"

    url, config = fake.calls[0]
    assert url == "https://media.example/a.mp3"
    assert config.speaker_labels is True


def test_error_status_is_upstream_error():
    fake = FakeTranscriber(
        transcript=_transcript(status=aai.TranscriptStatus.error, error="bad audio")
    )

    with pytest.raises(UpstreamServiceError) as exc_info:
        AssemblyAITranscriber(fake, "key").transcribe(_request())

    assert exc_info.value.detail == "bad audio"


def test_sdk_exception_is_transport_error():
    fake = FakeTranscriber(error=RuntimeError("connection reset"))

    with pytest.raises(ProviderTransportError):
        AssemblyAITranscriber(fake, "key").transcribe(_request())


def test_missing_api_key():
    with pytest.raises(ProviderNotConfiguredError):
        AssemblyAITranscriber(FakeTranscriber(), "").transcribe(_request())


def test_unfinished_transcript_times_out():
    fake = FakeTranscriber(pending=True)
    transcriber = AssemblyAITranscriber(fake, "key", timeout_seconds=0.01)

    with pytest.raises(ProviderTransportError) as exc_info:
        transcriber.transcribe(_request())

    assert "no result after 0.01s" in exc_info.value.detail
