import os
import re
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

STDIN_SOURCE = "-"
AUDIO_EXTENSIONS = (".m4a", ".mp3", ".webm", ".ogg", ".opus", ".wav", ".aac")
YOUTUBE_ID_PATTERN = re.compile(
    r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/shorts/)([A-Za-z0-9_-]{11})"
)


@dataclass
class MediaSource:
    """A resolved ingestion source."""

    video_id: str
    title: str
    location: str  # local path, URL, or "-" for stdin
    kind: str  # "upload" or "url"

    @property
    def is_remote(self) -> bool:
        return self.kind == "url"


def is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def extract_video_id(url: str) -> str | None:
    """Extract a YouTube video ID from URL. Returns None for non-YouTube URLs."""
    match = YOUTUBE_ID_PATTERN.search(url)
    return match.group(1) if match else None


def _upload_id() -> str:
    return f"upload-{int(time.time() * 1000)}"


def lookup_remote(url: str) -> tuple[str, str]:
    """Return ``(video_id, title)`` for a remote video using yt-dlp."""
    cmd = ["yt-dlp", "--skip-download", "--no-playlist", "--print", "id", "--print", "title", url]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError as exc:
        raise RuntimeError("yt-dlp is not installed or not on PATH") from exc

    if result.returncode != 0:
        raise RuntimeError(f"Video lookup failed for {url}: {(result.stderr or '').strip()[-300:]}")

    lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
    video_id = lines[0] if lines else extract_video_id(url)
    if not video_id:
        raise RuntimeError(f"Could not determine a video id for {url}")
    title = lines[1] if len(lines) > 1 else video_id
    return video_id, title


def download_audio(url: str, output_dir: str) -> str:
    """Download the best audio stream of ``url`` into ``output_dir``."""
    os.makedirs(output_dir, exist_ok=True)
    output_template = os.path.join(output_dir, "source.%(ext)s")
    cmd = [
        "yt-dlp",
        "-f", "bestaudio[ext=m4a]/bestaudio",
        "-o", output_template,
        "--no-playlist",
        "--retries", "2",
        url,
    ]

    print(f"  Downloading audio: {url}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError as exc:
        raise RuntimeError("yt-dlp is not installed or not on PATH") from exc

    if result.returncode != 0:
        raise RuntimeError(f"Audio download failed: {(result.stderr or '').strip()[-300:]}")

    downloads = sorted(
        (p for p in Path(output_dir).glob("source.*") if p.suffix.lower() in AUDIO_EXTENSIONS),
        key=lambda p: p.stat().st_size,
        reverse=True,
    )
    if not downloads:
        raise RuntimeError(f"Audio download produced no file in {output_dir}")
    return str(downloads[0])


def resolve_source(source: str, mode: str = "owner") -> MediaSource:
    """Classify ``source`` as an upload or a remote URL.

    ``strict`` mode only accepts local uploads. Raises ValueError for
    unusable input before any download or transcoding happens.
    """
    if not source or not source.strip():
        raise ValueError("A source file, URL or '-' is required")
    source = source.strip()

    if source == STDIN_SOURCE:
        return MediaSource(video_id=_upload_id(), title="upload", location=source, kind="upload")

    if is_url(source):
        if mode == "strict":
            raise ValueError("Strict mode: pass the local media file instead of a URL.")
        video_id, title = lookup_remote(source)
        return MediaSource(video_id=video_id, title=title, location=source, kind="url")

    if not os.path.isfile(source):
        raise ValueError(f"Media file not found: {source}")
    return MediaSource(
        video_id=_upload_id(),
        title=Path(source).stem,
        location=source,
        kind="upload",
    )
