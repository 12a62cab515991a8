import json
import os
from typing import Callable

from vdclip.models import ClipCandidate, ClipPlan, PlannedClip, SourceMeta
from vdclip.parsing import parse_boundary_response
from vdclip.segmenter import segment
from vdclip.subtitles import allocate, write_srt

MIN_CLIP_SECONDS = 5
MANIFEST_FILENAME = "plan.json"

# (transcript, max_clips, clip_len_sec) -> raw JSON text
BoundaryExtractor = Callable[[str, int, float], str]


def validate_request(max_clips: object, clip_len_sec: object) -> None:
    if isinstance(max_clips, bool) or not isinstance(max_clips, int) or max_clips < 0:
        raise ValueError(f"max_clips must be a non-negative integer (got {max_clips!r})")
    if isinstance(clip_len_sec, bool) or not isinstance(clip_len_sec, (int, float)):
        raise ValueError(f"clip_len_sec must be a number (got {clip_len_sec!r})")
    if clip_len_sec < MIN_CLIP_SECONDS:
        raise ValueError(
            f"clip_len_sec must be at least {MIN_CLIP_SECONDS}s (got {clip_len_sec})"
        )


def clip_duration(candidate: ClipCandidate, clip_len_sec: float) -> float:
    """Clip length forced into [MIN_CLIP_SECONDS, clip_len_sec].

    A missing or non-positive span counts as the full ``clip_len_sec``.
    """
    span = None
    if candidate.start is not None and candidate.end is not None:
        span = candidate.end - candidate.start
    if span is None or span <= 0:
        span = clip_len_sec
    return float(min(clip_len_sec, max(MIN_CLIP_SECONDS, span)))


def _artifact_ref(artifact_prefix: str | None, path: str) -> str:
    name = os.path.basename(path)
    if artifact_prefix is None:
        return path
    return f"{artifact_prefix.rstrip('/')}/{name}"


def _warn_out_of_range(candidate: ClipCandidate, position: int, source_duration: float) -> None:
    if candidate.start is not None and candidate.start < 0:
        print(f"  Warning: clip {position} starts before the source ({candidate.start:.1f}s)")
    if source_duration > 0 and candidate.end is not None and candidate.end > source_duration:
        print(
            f"  Warning: clip {position} ends at {candidate.end:.1f}s, "
            f"past the source duration ({source_duration:.0f}s)"
        )


def materialize_clip(
    candidate: ClipCandidate,
    position: int,
    transcript: str,
    clip_len_sec: float,
    output_dir: str,
    artifact_prefix: str | None = None,
) -> PlannedClip:
    total = clip_duration(candidate, clip_len_sec)
    cues = allocate(segment(candidate.text or transcript), total)

    srt_path = os.path.join(output_dir, f"c{position}.srt")
    write_srt(cues, srt_path)
    return PlannedClip(candidate=candidate, duration=total, srt=_artifact_ref(artifact_prefix, srt_path))


def write_manifest(clip_plan: ClipPlan, path: str) -> None:
    """Write the manifest in one step so readers never see a partial file."""
    tmp_path = f"{path}.tmp"
    try:
        with open(tmp_path, "w", encoding="utf-8") as file_handle:
            json.dump(clip_plan.to_dict(), file_handle, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def plan(
    transcript: str,
    max_clips: int,
    clip_len_sec: float,
    extractor: BoundaryExtractor,
    output_dir: str,
    meta: SourceMeta,
    artifact_prefix: str | None = None,
    source_duration: float = 0.0,
) -> ClipPlan:
    """Mine ``transcript`` for clips and persist one SRT per clip plus the manifest.

    Extractor failures propagate to the caller. A malformed extractor
    response is not fatal: the plan is written with no clips.

    Subtitle files land in ``output_dir`` first; ``plan.json`` is written
    last, and any manifest left by an earlier run in the same directory is
    removed before the first subtitle is overwritten, so an interrupted run
    never publishes a manifest that points at missing or foreign files.
    """
    validate_request(max_clips, clip_len_sec)
    transcript = transcript or ""

    raw_response = extractor(transcript, max_clips, clip_len_sec)

    result = parse_boundary_response(raw_response)
    if result.invalid:
        print(f"  Boundary extractor returned unusable output ({result.reason}); no clips planned.")

    candidates = result.candidates[:max_clips]

    os.makedirs(output_dir, exist_ok=True)
    manifest_path = os.path.join(output_dir, MANIFEST_FILENAME)
    # A previous run's manifest must not outlive the subtitles it describes.
    if os.path.exists(manifest_path):
        os.remove(manifest_path)

    clips: list[PlannedClip] = []
    for position, candidate in enumerate(candidates, start=1):
        _warn_out_of_range(candidate, position, source_duration)
        clips.append(
            materialize_clip(
                candidate,
                position,
                transcript,
                clip_len_sec,
                output_dir,
                artifact_prefix=artifact_prefix,
            )
        )

    clip_plan = ClipPlan(meta=meta, clips=clips)
    write_manifest(clip_plan, manifest_path)
    return clip_plan
