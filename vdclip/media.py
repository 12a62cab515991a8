import os
import subprocess

SAMPLE_RATE = 16000
CHANNELS = 1


def _normalize_cmd(input_spec: str, out_wav: str) -> list[str]:
    return [
        "ffmpeg",
        "-y",
        "-i",
        input_spec,
        "-ac",
        str(CHANNELS),
        "-ar",
        str(SAMPLE_RATE),
        out_wav,
    ]


def _run_ffmpeg(cmd: list[str], **kwargs) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(cmd, capture_output=True, **kwargs)
    except FileNotFoundError as exc:
        raise RuntimeError("ffmpeg is not installed or not on PATH") from exc


def _check_result(result: subprocess.CompletedProcess, out_wav: str) -> str:
    if result.returncode != 0:
        stderr = result.stderr or b""
        if isinstance(stderr, bytes):
            stderr = stderr.decode("utf-8", errors="replace")
        raise RuntimeError(f"ffmpeg failed (exit code {result.returncode}): {stderr[-500:].strip()}")
    return out_wav


def normalize_audio(source_path: str, out_wav: str) -> str:
    """Convert any media file into a mono 16 kHz WAV. Returns ``out_wav``."""
    out_dir = os.path.dirname(out_wav)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    print(f"  Normalizing audio: {source_path} -> {out_wav}")
    result = _run_ffmpeg(_normalize_cmd(source_path, out_wav), text=True)
    return _check_result(result, out_wav)


def normalize_audio_bytes(data: bytes, out_wav: str) -> str:
    """Same as :func:`normalize_audio`, reading the media from memory via stdin."""
    if not data:
        raise ValueError("No media bytes provided")

    out_dir = os.path.dirname(out_wav)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    print(f"  Normalizing uploaded audio ({len(data)} bytes) -> {out_wav}")
    result = _run_ffmpeg(_normalize_cmd("pipe:0", out_wav), input=data)
    return _check_result(result, out_wav)


def get_media_duration(media_path: str) -> float:
    """Get media duration in seconds using ffprobe, or 0.0 when unknown."""
    cmd = [
        "ffprobe", "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        media_path,
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError:
        print("  Warning: ffprobe is not installed; source duration unknown.")
        return 0.0
    if result.returncode != 0 or not result.stdout.strip():
        return 0.0
    try:
        return float(result.stdout.strip())
    except ValueError:
        return 0.0
