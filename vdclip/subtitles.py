from vdclip.models import TimedCue, TranscriptUnit
from vdclip.segmenter import segment


def format_timestamp(seconds: float) -> str:
    """Formats seconds into SRT timestamp format: HH:MM:SS,mmm

    Hours keep counting past 24 instead of wrapping to the next day.
    """
    total_ms = int(round(max(0.0, seconds) * 1000))
    total_seconds, milliseconds = divmod(total_ms, 1000)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    secs = total_seconds % 60
    return f"{hours:02}:{minutes:02}:{secs:02},{milliseconds:03}"


def create_srt_block(index: int, start: float, end: float, text: str) -> str:
    start_fmt = format_timestamp(start)
    end_fmt = format_timestamp(end)
    return f"{index}\n{start_fmt} --> {end_fmt}\n{text}\n\n"


def allocate(units: list[TranscriptUnit], total_duration_sec: float) -> list[TimedCue]:
    """Give every unit an equal slice of ``total_duration_sec``, in order.

    Windows are equal-width regardless of sentence length; this is a timing
    heuristic, not acoustic alignment.
    """
    if not units:
        return []

    slice_sec = total_duration_sec / max(1, len(units))
    cues: list[TimedCue] = []
    acc = 0.0
    for index, unit in enumerate(units, start=1):
        cues.append(TimedCue(index=index, start=acc, end=acc + slice_sec, text=unit.text.strip()))
        acc += slice_sec
    return cues


def render_srt(cues: list[TimedCue]) -> str:
    return "".join(create_srt_block(cue.index, cue.start, cue.end, cue.text) for cue in cues)


def build_srt(text: str, total_duration_sec: float) -> str:
    """Segment ``text`` and spread it over ``total_duration_sec`` as SRT."""
    return render_srt(allocate(segment(text), total_duration_sec))


def write_srt(cues: list[TimedCue], path: str) -> None:
    with open(path, "w", encoding="utf-8") as file_handle:
        file_handle.write(render_srt(cues))
