"""Legal status transitions for recordings and transcription jobs."""

from .models import JobStatus, RecordingStatus

RECORDING_TRANSITIONS: dict[RecordingStatus, frozenset[RecordingStatus]] = {
    RecordingStatus.uploaded: frozenset({RecordingStatus.transcribing}),
    RecordingStatus.transcribing: frozenset(
        {RecordingStatus.ready, RecordingStatus.failed}
    ),
    RecordingStatus.ready: frozenset({RecordingStatus.transcribing}),
    RecordingStatus.failed: frozenset({RecordingStatus.transcribing}),
}

# Terminal job states have no outgoing edges; a retry creates a new job.
JOB_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.queued: frozenset({JobStatus.running, JobStatus.failed}),
    JobStatus.running: frozenset({JobStatus.completed, JobStatus.failed}),
    JobStatus.completed: frozenset(),
    JobStatus.failed: frozenset(),
}

TERMINAL_JOB_STATUSES = frozenset({JobStatus.completed, JobStatus.failed})


def can_transition_recording(
    current: RecordingStatus, target: RecordingStatus
) -> bool:
    return target in RECORDING_TRANSITIONS[current]


def can_transition_job(current: JobStatus, target: JobStatus) -> bool:
    return target in JOB_TRANSITIONS[current]


def recording_sources(target: RecordingStatus) -> list[RecordingStatus]:
    """Statuses from which a recording may move to ``target``."""
    return [
        status
        for status, targets in RECORDING_TRANSITIONS.items()
        if target in targets
    ]


def job_sources(target: JobStatus) -> list[JobStatus]:
    """Statuses from which a job may move to ``target``."""
    return [status for status, targets in JOB_TRANSITIONS.items() if target in targets]


def is_terminal(status: JobStatus) -> bool:
    return status in TERMINAL_JOB_STATUSES
