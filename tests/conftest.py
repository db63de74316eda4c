from contextlib import contextmanager
from uuid import uuid4

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from meeting_transcriber.config import MinioConfig, PipelineDefaults
from meeting_transcriber.db_models import Recording, SummaryTemplate
from meeting_transcriber.domain import (
    GeneratedText,
    ProviderTranscript,
    RecordingStatus,
    SegmentBuilder,
)
from meeting_transcriber.exceptions import StorageSignedUrlError
from meeting_transcriber.handlers import (
    CallbackHandler,
    SummaryHandler,
    TranscriptIngestor,
    TranscriptionHandler,
)
from meeting_transcriber.infrastructure.interfaces import (
    LeaseService,
    LLMService,
    StorageClient,
    TranscriptionService,
)
from meeting_transcriber.repositories import (
    RecordingRepository,
    SegmentRepository,
    SummaryRepository,
    TemplateRepository,
    TranscriptionStateTracker,
)

WEBHOOK_SECRET = "s3cret"


class FakeLease(LeaseService):
    def __init__(self):
        self.holders = {}

    def acquire(self, recording_id, holder):
        if recording_id in self.holders:
            return False
        self.holders[recording_id] = holder
        return True

    def release(self, recording_id, holder):
        if self.holders.get(recording_id) != holder:
            return False
        del self.holders[recording_id]
        return True


class FakeStorage(StorageClient):
    def __init__(self, fail=False):
        self.fail = fail
        self.requests = []

    def create_signed_url(self, bucket_name, object_name, expires_seconds):
        self.requests.append((bucket_name, object_name, expires_seconds))
        if self.fail:
            raise StorageSignedUrlError(object_name, RuntimeError("minio down"))
        return f"https://media.example/{bucket_name}/{object_name}?sig=abc"

    def ensure_bucket_exists(self, bucket_name):
        pass


class FakeTranscriber(TranscriptionService):
    provider_name = "fake"

    def __init__(self, outcome=None, error=None, configured=True):
        self.outcome = outcome
        self.error = error
        self.configured = configured
        self.requests = []

    @property
    def is_configured(self):
        return self.configured

    def transcribe(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.outcome


class FakeLLM(LLMService):
    def __init__(self, content="## Summary\n- decided things", error=None):
        self.content = content
        self.error = error
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return GeneratedText(content=self.content, raw_response={"text": self.content})


def words_payload():
    return {
        "transcription_id": "el-123",
        "text": "hi there hello",
        "words": [
            {"text": "hi", "start": 0.0, "end": 0.5, "type": "word", "speaker_id": "speaker_0"},
            {"text": " ", "start": 0.5, "end": 0.5, "type": "spacing", "speaker_id": "speaker_0"},
            {"text": "there", "start": 0.5, "end": 0.9, "type": "word", "speaker_id": "speaker_0"},
            {"text": "hello", "start": 1.0, "end": 1.4, "type": "word", "speaker_id": "speaker_1"},
        ],
    }


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session_factory(engine):
    @contextmanager
    def factory():
        with Session(engine, expire_on_commit=False) as session:
            yield session

    return factory


@pytest.fixture
def owner_id():
    return uuid4()


@pytest.fixture
def recording(session_factory, owner_id):
    with session_factory() as db_session:
        recording = Recording(
            owner_id=owner_id,
            title="Weekly sync",
            source_filename="sync.mp3",
            storage_path=f"{owner_id}/sync.mp3",
            media_mime="audio/mpeg",
        )
        db_session.add(recording)
        db_session.commit()
        db_session.refresh(recording)
        return recording


@pytest.fixture
def default_template(session_factory):
    with session_factory() as db_session:
        template = SummaryTemplate(
            name="Meeting notes",
            system_prompt="You summarize meetings.",
            user_prompt="Transcript:\n{{TRANSCRIPT}}\n\nExtra: {{INSTRUCTIONS}}",
            is_default=True,
        )
        db_session.add(template)
        db_session.commit()
        db_session.refresh(template)
        return template


@pytest.fixture
def lease():
    return FakeLease()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def tracker(session_factory):
    return TranscriptionStateTracker(session_factory)


@pytest.fixture
def ingestor(tracker, lease):
    return TranscriptIngestor(tracker, SegmentBuilder(), lease)


@pytest.fixture
def make_transcription_handler(session_factory, tracker, storage, lease, ingestor):
    def make(transcriber, webhook_delivery=False):
        return TranscriptionHandler(
            recordings=RecordingRepository(session_factory),
            tracker=tracker,
            storage=storage,
            transcriber=transcriber,
            lease=lease,
            ingestor=ingestor,
            defaults=PipelineDefaults(),
            storage_config=MinioConfig(endpoint="minio:9000", user="u", password="p"),
            webhook_delivery=webhook_delivery,
        )

    return make


@pytest.fixture
def callback_handler(tracker, ingestor):
    return CallbackHandler(tracker, ingestor, WEBHOOK_SECRET)


@pytest.fixture
def make_summary_handler(session_factory):
    def make(llm):
        return SummaryHandler(
            recordings=RecordingRepository(session_factory),
            templates=TemplateRepository(session_factory),
            segments=SegmentRepository(session_factory),
            summaries=SummaryRepository(session_factory),
            llm=llm,
            defaults=PipelineDefaults(),
        )

    return make


@pytest.fixture
def ready_recording(recording, make_transcription_handler, owner_id):
    """A recording with one completed, diarized transcript."""
    handler = make_transcription_handler(
        FakeTranscriber(outcome=ProviderTranscript.from_payload(words_payload()))
    )
    handler.submit(recording.id, owner_id)
    return recording


def load_recording(session_factory, recording_id):
    with session_factory() as db_session:
        return db_session.get(Recording, recording_id)


def assert_status(session_factory, recording_id, status: RecordingStatus):
    assert load_recording(session_factory, recording_id).status == status
