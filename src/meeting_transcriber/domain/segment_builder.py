"""Core business logic for turning provider words into speaker segments."""

import math

from .models import DEFAULT_SPEAKER_ID, ProviderTranscript, ProviderWord, SegmentDraft


def seconds_to_ms(seconds: float | None) -> int:
    """Converts provider seconds to integer milliseconds, rounding half up."""
    if not seconds:
        return 0
    return int(math.floor(seconds * 1000 + 0.5))


def speaker_label(speaker_id: str) -> str:
    """Derives the default display label for a provider speaker id."""
    return f"Speaker {speaker_id.removeprefix('speaker_')}"


class SegmentBuilder:
    """Builds ordered, per-speaker transcript segments from a word stream."""

    def build(
        self, transcript: ProviderTranscript, diarize: bool
    ) -> list[SegmentDraft]:
        """
        Builds transcript segments for one completed job.

        With diarization and word timings, every maximal run of consecutive
        words from one speaker becomes a segment. Otherwise the plain text is
        emitted as a single segment spanning the reported duration.

        Args:
            transcript: Normalized provider result.
            diarize: Whether diarization was requested for the job.

        Returns:
            Segments ordered by start offset; empty if there is nothing to emit.
        """
        if diarize and transcript.words:
            return self._merge_runs(transcript.words)
        return self._plain_text_segment(transcript)

    def _merge_runs(self, words: list[ProviderWord]) -> list[SegmentDraft]:
        """Walks the words once, closing a run whenever the speaker changes."""
        segments: list[SegmentDraft] = []

        first = words[0]
        run_speaker = first.speaker_id or DEFAULT_SPEAKER_ID
        run_start = seconds_to_ms(first.start)
        run_end = run_start
        run_words: list[str] = []

        for word in words:
            speaker = word.speaker_id or DEFAULT_SPEAKER_ID

            if speaker != run_speaker:
                segments.append(
                    self._close_run(run_speaker, run_start, run_end, run_words)
                )
                run_speaker = speaker
                run_start = seconds_to_ms(word.start)
                run_words = []

            run_words.append(word.text)
            run_end = seconds_to_ms(word.end)

        if run_words:
            segments.append(self._close_run(run_speaker, run_start, run_end, run_words))

        return segments

    def _plain_text_segment(self, transcript: ProviderTranscript) -> list[SegmentDraft]:
        """Emits the whole transcript as one default-speaker segment."""
        text = transcript.text or " ".join(word.text for word in transcript.words)
        if not text:
            return []

        return [
            SegmentDraft(
                speaker_id=DEFAULT_SPEAKER_ID,
                speaker_label=speaker_label(DEFAULT_SPEAKER_ID),
                start_ms=0,
                end_ms=seconds_to_ms(transcript.duration_seconds),
                text=text,
            )
        ]

    def _close_run(
        self, speaker_id: str, start_ms: int, end_ms: int, words: list[str]
    ) -> SegmentDraft:
        return SegmentDraft(
            speaker_id=speaker_id,
            speaker_label=speaker_label(speaker_id),
            start_ms=start_ms,
            end_ms=end_ms,
            text=" ".join(words),
        )
