import json
import math
import re

from vdclip.models import ClipCandidate, ExtractorResult
from vdclip.utils import parse_time_str

TEXT_FIELDS = ("hook", "headline")


def _looks_like_clips(payload: object) -> bool:
    if isinstance(payload, dict):
        return "clips" in payload
    if isinstance(payload, list):
        return bool(payload) and all(isinstance(item, dict) for item in payload)
    return False


def _parse_json_payload(text: str) -> dict | list:
    """Parse JSON from a raw model response, including markdown-wrapped JSON."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as direct_error:
        code_blocks = re.findall(r"```(?:json)?\s*([\s\S]*?)```", text, flags=re.IGNORECASE)
        for block in code_blocks:
            try:
                return json.loads(block)
            except json.JSONDecodeError:
                continue

        decoder = json.JSONDecoder()
        for match in re.finditer(r"[\[{]", text):
            try:
                payload, _ = decoder.raw_decode(text[match.start() :])
            except json.JSONDecodeError:
                continue
            # prose like "[2] clips" decodes too; keep looking for the plan
            if _looks_like_clips(payload):
                return payload

        raise ValueError(f"Invalid JSON: {direct_error.msg}") from direct_error


def _extract_clips(payload: dict | list) -> list:
    if isinstance(payload, dict):
        clips = payload.get("clips", [])
    elif isinstance(payload, list):
        clips = payload
    else:
        raise ValueError("Response JSON must be an object with 'clips' or a list of clip objects.")

    if not isinstance(clips, list):
        raise ValueError("'clips' must be a JSON array.")
    return clips


def _to_seconds(value: object) -> float | None:
    # bool is an int subclass; true/false are not timestamps
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            seconds = parse_time_str(value)
        except ValueError:
            return None
    else:
        return None
    return seconds if math.isfinite(seconds) else None


def _optional_text(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _normalize_clip(clip: dict) -> ClipCandidate:
    texts = {}
    for field in TEXT_FIELDS:
        value = clip.get(field)
        texts[field] = value.strip() if isinstance(value, str) else ""

    return ClipCandidate(
        start=_to_seconds(clip.get("start")),
        end=_to_seconds(clip.get("end")),
        hook=texts["hook"],
        headline=texts["headline"],
        text=_optional_text(clip.get("text")),
    )


def parse_boundary_response(text: str | None) -> ExtractorResult:
    """Project a raw boundary-extractor response onto clip candidates.

    Never raises: unusable responses come back as an invalid result so the
    caller can fall back to an empty clip list.
    """
    if not isinstance(text, str) or not text.strip():
        return ExtractorResult.rejected("empty response")

    try:
        payload = _parse_json_payload(text)
        clips = _extract_clips(payload)
    except ValueError as error:
        return ExtractorResult.rejected(str(error))

    candidates: list[ClipCandidate] = []
    for i, clip in enumerate(clips, start=1):
        if not isinstance(clip, dict):
            print(f"  Skipping clip {i}: expected object, got {type(clip).__name__}")
            continue
        candidates.append(_normalize_clip(clip))

    return ExtractorResult(candidates=candidates)
