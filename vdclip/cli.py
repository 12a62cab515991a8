import argparse
import json
import os
import sys

from vdclip.config import MODEL_DEFAULTS, load_config
from vdclip.media import get_media_duration, normalize_audio, normalize_audio_bytes
from vdclip.models import SourceMeta
from vdclip.planner import MANIFEST_FILENAME, plan, validate_request
from vdclip.providers import make_extractor
from vdclip.sources import STDIN_SOURCE, MediaSource, download_audio, resolve_source
from vdclip.transcription import TRANSCRIPTION_BACKENDS, transcribe_audio
from vdclip.utils import read_text


def _exit_with_error(message: str, code: int = 1) -> None:
    print(message)
    raise SystemExit(code)


def _resolve_provider(args: argparse.Namespace, cfg_provider: str | None) -> str | None:
    if args.openai:
        return "openai"
    if args.gemini:
        return "gemini"
    if args.ollama:
        return "ollama"
    return cfg_provider


def _prepare_audio(source: MediaSource, request_dir: str) -> str:
    """Produce the normalized WAV for ``source`` inside ``request_dir``."""
    wav_path = os.path.join(request_dir, f"{source.video_id}.wav")

    if source.location == STDIN_SOURCE:
        data = sys.stdin.buffer.read()
        return normalize_audio_bytes(data, wav_path)

    media_path = source.location
    if source.is_remote:
        media_path = download_audio(source.location, request_dir)
    return normalize_audio(media_path, wav_path)


def _public_ref(public_prefix: str, video_id: str, name: str) -> str:
    return f"{public_prefix.rstrip('/')}/{video_id}/{name}"


def main():
    parser = argparse.ArgumentParser(
        description="VDCLIP - mine short viral clips and subtitles from a video"
    )

    ai_group = parser.add_mutually_exclusive_group()
    ai_group.add_argument("-o", "--openai", action="store_true", help="Use OpenAI")
    ai_group.add_argument("-g", "--gemini", action="store_true", help="Use Google Gemini")
    ai_group.add_argument("-l", "--ollama", action="store_true", help="Use Ollama (local)")

    parser.add_argument("source", nargs="?", default=None,
                        help="Local media file, video URL, or '-' to read an upload from stdin")
    parser.add_argument("-d", "--output-dir", default=None, help="Output directory")
    parser.add_argument("--model", default=None, help="Override AI model name")
    parser.add_argument("--config", default=None, help="Path to config TOML file")
    parser.add_argument("--language", default=None, help="Transcription language hint (e.g. pt, en)")
    parser.add_argument("--max-clips", type=int, default=None, help="Maximum number of clips")
    parser.add_argument("--clip-len", type=float, default=None, help="Target clip length in seconds")
    parser.add_argument("--mode", choices=("owner", "strict"), default="owner",
                        help="'strict' only accepts local uploads")
    parser.add_argument("--backend", choices=TRANSCRIPTION_BACKENDS, default=None,
                        help="Transcription backend")
    parser.add_argument("--transcript", default=None,
                        help="Use this transcript text file instead of transcribing")
    parser.add_argument("--transcribe-only", action="store_true",
                        help="Normalize and transcribe, then stop before clip mining")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")

    args = parser.parse_args()

    cfg = load_config(args.config)

    # CLI flag > config > default
    output_dir = args.output_dir or cfg.output_dir
    language = args.language or cfg.language
    backend = args.backend or cfg.transcription_backend
    max_clips = args.max_clips if args.max_clips is not None else cfg.max_clips
    clip_len_sec = args.clip_len if args.clip_len is not None else cfg.clip_len_sec

    # Validate inputs before any external call
    if not args.source:
        _exit_with_error("A source is required: a media file, a video URL, or '-' for stdin.")

    if args.transcript and not os.path.isfile(args.transcript):
        _exit_with_error(f"Transcript not found: {args.transcript}")

    extractor = None
    if not args.transcribe_only:
        try:
            validate_request(max_clips, clip_len_sec)
        except ValueError as exc:
            _exit_with_error(f"Invalid clip settings: {exc}")

        provider = _resolve_provider(args, cfg.provider)
        if not provider:
            _exit_with_error(
                "No AI provider specified. Use -o/--openai, -g/--gemini, -l/--ollama, "
                "or set provider in config.toml"
            )

        model = args.model or cfg.model or MODEL_DEFAULTS.get(provider)
        if not model:
            _exit_with_error(f"No model configured for provider '{provider}'")

        try:
            extractor = make_extractor(provider, model)
        except ValueError as exc:
            _exit_with_error(str(exc))

    try:
        source = resolve_source(args.source, mode=args.mode)
    except ValueError as exc:
        _exit_with_error(str(exc))
    except RuntimeError as exc:
        _exit_with_error(f"Source lookup failed: {exc}")

    request_dir = os.path.join(output_dir, source.video_id)
    os.makedirs(request_dir, exist_ok=True)
    print(f"Source: {source.title} [{source.video_id}]")

    # Step 1: Audio + transcript
    wav_path = None
    if args.transcript:
        print(f"Reading transcript: {args.transcript}")
        transcript = read_text(args.transcript)
    else:
        try:
            wav_path = _prepare_audio(source, request_dir)
            transcript = transcribe_audio(
                wav_path, language=language, backend=backend, model=cfg.transcription_model
            )
        except ValueError as exc:
            _exit_with_error(str(exc))
        except RuntimeError as exc:
            _exit_with_error(f"Ingestion failed: {exc}")
    print(f"  {len(transcript)} characters of transcript")

    wav_ref = _public_ref(cfg.public_prefix, source.video_id, os.path.basename(wav_path)) if wav_path else None

    if args.transcribe_only:
        if args.json:
            print(json.dumps({"text": transcript, "wav": wav_ref}, ensure_ascii=False, indent=2))
        else:
            print(transcript)
        return

    # Step 2: Clip mining + subtitles
    source_duration = get_media_duration(wav_path) if wav_path else 0.0
    try:
        clip_plan = plan(
            transcript,
            max_clips,
            clip_len_sec,
            extractor,
            request_dir,
            SourceMeta(title=source.title, video_id=source.video_id),
            artifact_prefix=f"{cfg.public_prefix.rstrip('/')}/{source.video_id}",
            source_duration=source_duration,
        )
    except RuntimeError as exc:
        _exit_with_error(f"Clip mining failed: {exc}")

    plan_ref = _public_ref(cfg.public_prefix, source.video_id, MANIFEST_FILENAME)
    if args.json:
        response = {
            "videoId": source.video_id,
            "title": source.title,
            "clips": clip_plan.to_dict()["clips"],
            "planUrl": plan_ref,
        }
        print(json.dumps(response, ensure_ascii=False, indent=2))
        return

    # Summary
    print("\n" + "=" * 50)
    print("CLIPS:")
    print("=" * 50)
    for i, clip in enumerate(clip_plan.clips, start=1):
        headline = clip.candidate.headline or f"clip_{i}"
        print(f"  {i}. {headline} ({clip.duration:.0f}s)")
        if clip.candidate.hook:
            print(f"     {clip.candidate.hook}")
        print(f"    -> {clip.srt}")

    print(f"\n{len(clip_plan.clips)} clips planned in {request_dir}/")
    print(f"Manifest: {os.path.join(request_dir, MANIFEST_FILENAME)}")


if __name__ == "__main__":
    main()
