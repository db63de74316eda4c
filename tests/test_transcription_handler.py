from uuid import uuid4

import pytest
from sqlmodel import select

from conftest import FakeTranscriber, assert_status, load_recording, words_payload
from meeting_transcriber.db_models import Recording, TranscriptionJob
from meeting_transcriber.domain import (
    JobStatus,
    ProviderSubmission,
    ProviderTranscript,
    RecordingStatus,
    TranscriptionOptions,
)
from meeting_transcriber.exceptions import (
    PersistenceError,
    ProviderNotConfiguredError,
    RecordingNotFoundError,
    StorageSignedUrlError,
    TranscriptionInProgressError,
    UpstreamServiceError,
)
from meeting_transcriber.repositories import SegmentRepository


def _jobs(session_factory, recording_id):
    with session_factory() as db_session:
        return db_session.exec(
            select(TranscriptionJob).where(TranscriptionJob.recording_id == recording_id)
        ).all()


def test_sync_transcription_completes_job(
    recording, owner_id, make_transcription_handler, session_factory, lease, storage
):
    transcriber = FakeTranscriber(outcome=ProviderTranscript.from_payload(words_payload()))
    handler = make_transcription_handler(transcriber)

    result = handler.submit(recording.id, owner_id)

    assert result.status == JobStatus.completed
    assert result.provider_job_id == "el-123"

    stored = load_recording(session_factory, recording.id)
    assert stored.status == RecordingStatus.ready
    assert stored.duration_seconds == 1

    segments = SegmentRepository(session_factory).list_current(recording.id)
    assert [(s.speaker_label, s.start_ms, s.end_ms, s.text) for s in segments] == [
        ("Speaker 0", 0, 900, "hi there"),
        ("Speaker 1", 1000, 1400, "hello"),
    ]

    assert storage.requests == [("media", recording.storage_path, 7200)]
    assert transcriber.requests[0].media_url.startswith("https://media.example/")
    assert transcriber.requests[0].options.model_id == "scribe_v2"
    assert lease.holders == {}


def test_upstream_error_fails_job_and_recording(
    recording, owner_id, make_transcription_handler, session_factory, lease
):
    error = UpstreamServiceError("fake", 500, "internal boom")
    handler = make_transcription_handler(FakeTranscriber(error=error))

    with pytest.raises(UpstreamServiceError):
        handler.submit(recording.id, owner_id)

    [job] = _jobs(session_factory, recording.id)
    assert job.status == JobStatus.failed
    assert "internal boom" in job.error
    assert job.error.startswith("500")
    assert_status(session_factory, recording.id, RecordingStatus.failed)
    assert lease.holders == {}


def test_unexpected_provider_error_is_recorded(
    recording, owner_id, make_transcription_handler, session_factory
):
    handler = make_transcription_handler(FakeTranscriber(error=RuntimeError("kaboom")))

    with pytest.raises(RuntimeError):
        handler.submit(recording.id, owner_id)

    [job] = _jobs(session_factory, recording.id)
    assert job.status == JobStatus.failed
    assert job.error == "Unexpected provider error: kaboom"
    assert_status(session_factory, recording.id, RecordingStatus.failed)


def test_signed_url_failure_is_terminal(
    recording, owner_id, make_transcription_handler, session_factory, storage
):
    storage.fail = True
    transcriber = FakeTranscriber(outcome=ProviderTranscript())
    handler = make_transcription_handler(transcriber)

    with pytest.raises(StorageSignedUrlError):
        handler.submit(recording.id, owner_id)

    [job] = _jobs(session_factory, recording.id)
    assert job.status == JobStatus.failed
    assert job.error == "Could not create signed URL"
    assert_status(session_factory, recording.id, RecordingStatus.failed)
    assert transcriber.requests == []


def test_second_submission_rejected_while_lease_held(
    recording, owner_id, make_transcription_handler, session_factory, lease
):
    lease.holders[str(recording.id)] = "another-job"
    handler = make_transcription_handler(FakeTranscriber(outcome=ProviderTranscript()))

    with pytest.raises(TranscriptionInProgressError):
        handler.submit(recording.id, owner_id)

    assert _jobs(session_factory, recording.id) == []
    assert_status(session_factory, recording.id, RecordingStatus.uploaded)
    assert lease.holders == {str(recording.id): "another-job"}


def test_transcribing_recording_without_lease_is_recovered(
    recording, owner_id, make_transcription_handler, session_factory, lease
):
    with session_factory() as db_session:
        row = db_session.get(Recording, recording.id)
        row.status = RecordingStatus.transcribing
        db_session.add(row)
        db_session.commit()

    handler = make_transcription_handler(FakeTranscriber(outcome=ProviderTranscript()))

    result = handler.submit(recording.id, owner_id)

    assert result.status == JobStatus.completed
    assert_status(session_factory, recording.id, RecordingStatus.ready)
    assert lease.holders == {}


def test_lost_callback_does_not_block_retry(
    recording, owner_id, make_transcription_handler, session_factory, lease
):
    waiting = make_transcription_handler(
        FakeTranscriber(outcome=ProviderSubmission(provider_job_id="prov-1")),
        webhook_delivery=True,
    )
    first = waiting.submit(recording.id, owner_id)

    # lease TTL ran out without a callback
    lease.holders.clear()

    retry = make_transcription_handler(
        FakeTranscriber(outcome=ProviderTranscript.from_payload(words_payload()))
    )
    second = retry.submit(recording.id, owner_id)

    jobs = {job.id: job for job in _jobs(session_factory, recording.id)}
    assert jobs[first.job_id].status == JobStatus.failed
    assert jobs[first.job_id].error == "Timed out waiting for provider callback"
    assert jobs[second.job_id].status == JobStatus.completed
    assert_status(session_factory, recording.id, RecordingStatus.ready)
    assert len(SegmentRepository(session_factory).list_current(recording.id)) == 2


def test_held_lease_still_blocks_webhook_retry(
    recording, owner_id, make_transcription_handler, session_factory, lease
):
    waiting = make_transcription_handler(
        FakeTranscriber(outcome=ProviderSubmission(provider_job_id="prov-1")),
        webhook_delivery=True,
    )
    first = waiting.submit(recording.id, owner_id)

    with pytest.raises(TranscriptionInProgressError):
        waiting.submit(recording.id, owner_id)

    [job] = _jobs(session_factory, recording.id)
    assert (job.id, job.status) == (first.job_id, JobStatus.running)


def test_provider_job_write_failure_is_recorded(
    recording,
    owner_id,
    make_transcription_handler,
    session_factory,
    lease,
    tracker,
    monkeypatch,
):
    def broken_attach(*args, **kwargs):
        raise PersistenceError("attach_provider_job")

    monkeypatch.setattr(tracker, "attach_provider_job", broken_attach)
    handler = make_transcription_handler(
        FakeTranscriber(outcome=ProviderSubmission(provider_job_id="prov-1")),
        webhook_delivery=True,
    )

    with pytest.raises(PersistenceError):
        handler.submit(recording.id, owner_id)

    [job] = _jobs(session_factory, recording.id)
    assert job.status == JobStatus.failed
    assert job.error.startswith("Could not record provider job")
    assert_status(session_factory, recording.id, RecordingStatus.failed)
    assert lease.holders == {}


def test_unconfigured_provider_changes_nothing(
    recording, owner_id, make_transcription_handler, session_factory, lease
):
    handler = make_transcription_handler(FakeTranscriber(configured=False))

    with pytest.raises(ProviderNotConfiguredError):
        handler.submit(recording.id, owner_id)

    assert _jobs(session_factory, recording.id) == []
    assert_status(session_factory, recording.id, RecordingStatus.uploaded)
    assert lease.holders == {}


def test_other_owner_gets_not_found(recording, make_transcription_handler):
    handler = make_transcription_handler(FakeTranscriber(outcome=ProviderTranscript()))

    with pytest.raises(RecordingNotFoundError):
        handler.submit(recording.id, uuid4())


def test_webhook_mode_leaves_job_running(
    recording, owner_id, make_transcription_handler, session_factory, lease
):
    transcriber = FakeTranscriber(
        outcome=ProviderSubmission(provider_job_id="prov-9", raw_response={"ok": True})
    )
    handler = make_transcription_handler(transcriber, webhook_delivery=True)

    result = handler.submit(recording.id, owner_id)

    assert result.status == JobStatus.running
    assert result.provider_job_id == "prov-9"
    assert transcriber.requests[0].webhook is True

    [job] = _jobs(session_factory, recording.id)
    assert job.status == JobStatus.running
    assert job.provider_job_id == "prov-9"
    assert_status(session_factory, recording.id, RecordingStatus.transcribing)
    assert lease.holders == {str(recording.id): str(job.id)}


def test_request_options_override_defaults(
    recording, owner_id, make_transcription_handler, session_factory
):
    transcript = ProviderTranscript.from_payload(
        {"text": "hello world", "duration_seconds": 2.0, "words": []}
    )
    transcriber = FakeTranscriber(outcome=transcript)
    handler = make_transcription_handler(transcriber)

    handler.submit(
        recording.id,
        owner_id,
        TranscriptionOptions(diarize=False, language_code="en", model_id="scribe_v1"),
    )

    sent = transcriber.requests[0].options
    assert (sent.diarize, sent.language_code, sent.model_id) == (False, "en", "scribe_v1")

    [job] = _jobs(session_factory, recording.id)
    assert job.options["diarize"] is False

    segments = SegmentRepository(session_factory).list_current(recording.id)
    assert [(s.start_ms, s.end_ms, s.text) for s in segments] == [(0, 2000, "hello world")]


def test_retry_after_failure_reaches_ready(
    recording, owner_id, make_transcription_handler, session_factory
):
    failing = make_transcription_handler(
        FakeTranscriber(error=UpstreamServiceError("fake", 503, "busy"))
    )
    with pytest.raises(UpstreamServiceError):
        failing.submit(recording.id, owner_id)
    assert_status(session_factory, recording.id, RecordingStatus.failed)

    succeeding = make_transcription_handler(
        FakeTranscriber(outcome=ProviderTranscript.from_payload(words_payload()))
    )
    succeeding.submit(recording.id, owner_id)

    assert_status(session_factory, recording.id, RecordingStatus.ready)
    statuses = sorted(job.status.value for job in _jobs(session_factory, recording.id))
    assert statuses == ["completed", "failed"]
