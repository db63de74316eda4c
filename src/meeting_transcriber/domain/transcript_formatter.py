"""Renders stored transcript segments into summary prompts."""

from typing import Protocol

TRANSCRIPT_PLACEHOLDER = "{{TRANSCRIPT}}"
INSTRUCTIONS_PLACEHOLDER = "{{INSTRUCTIONS}}"


class _Segment(Protocol):
    start_ms: int
    speaker_label: str
    text: str


def format_timestamp(ms: int) -> str:
    """Formats an offset as ``m:ss``."""
    total_seconds = ms // 1000
    return f"{total_seconds // 60}:{total_seconds % 60:02d}"


def format_transcript(segments: list[_Segment]) -> str:
    """One ``[m:ss] Label: text`` line per segment, in the given order."""
    return "\n".join(
        f"[{format_timestamp(s.start_ms)}] {s.speaker_label}: {s.text}"
        for s in segments
    )


def render_prompt(template: str, transcript: str, instructions: str | None) -> str:
    """Substitutes the transcript and user instructions into a prompt body."""
    return template.replace(TRANSCRIPT_PLACEHOLDER, transcript).replace(
        INSTRUCTIONS_PLACEHOLDER, instructions or "None"
    )
