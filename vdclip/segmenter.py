import re

from vdclip.models import TranscriptUnit

# Zero-width split: terminal punctuation stays with the sentence before it.
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def segment(text: str) -> list[TranscriptUnit]:
    """Split transcript text into ordered sentence-like units.

    Text without terminal punctuation comes back as a single unit. Empty or
    whitespace-only input yields an empty list.
    """
    if not text or not text.strip():
        return []

    units: list[TranscriptUnit] = []
    for fragment in SENTENCE_BOUNDARY.split(text):
        stripped = fragment.strip()
        if stripped:
            units.append(TranscriptUnit(text=stripped))
    return units
