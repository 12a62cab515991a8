from dataclasses import dataclass, field


@dataclass
class TranscriptUnit:
    """One sentence-like span of transcript text."""

    text: str


@dataclass
class TimedCue:
    """A single subtitle entry."""

    index: int
    start: float  # seconds
    end: float  # seconds
    text: str


@dataclass
class ClipCandidate:
    """One clip proposal from the boundary extractor."""

    start: float | None = None
    end: float | None = None
    hook: str = ""
    headline: str = ""
    text: str | None = None


@dataclass
class ExtractorResult:
    """Outcome of parsing a boundary-extractor response.

    Either ``candidates`` holds the validated clips, or ``invalid`` is set
    and ``reason`` says why the response could not be used.
    """

    candidates: list[ClipCandidate] = field(default_factory=list)
    invalid: bool = False
    reason: str = ""

    @classmethod
    def rejected(cls, reason: str) -> "ExtractorResult":
        return cls(candidates=[], invalid=True, reason=reason)


@dataclass
class PlannedClip:
    candidate: ClipCandidate
    duration: float
    srt: str

    def to_dict(self) -> dict:
        return {
            "start": self.candidate.start,
            "end": self.candidate.end,
            "hook": self.candidate.hook,
            "headline": self.candidate.headline,
            "text": self.candidate.text,
            "srt": self.srt,
        }


@dataclass
class SourceMeta:
    title: str
    video_id: str


@dataclass
class ClipPlan:
    """Manifest for one ingestion: source metadata plus the finalized clips."""

    meta: SourceMeta
    clips: list[PlannedClip] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "meta": {"title": self.meta.title, "videoId": self.meta.video_id},
            "clips": [clip.to_dict() for clip in self.clips],
        }
