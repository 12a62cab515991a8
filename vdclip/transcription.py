TRANSCRIPTION_BACKENDS = ("openai", "whisper")
OPENAI_TRANSCRIPTION_MODEL = "whisper-1"
LOCAL_WHISPER_MODEL = "medium"


def _resolve_device(device: str) -> str:
    import torch

    if device == "cuda" and not torch.cuda.is_available():
        print("Warning: CUDA (GPU) not available. Falling back to CPU for transcription.")
        return "cpu"
    return device


def transcribe_openai(audio_path: str, language: str | None, model: str = OPENAI_TRANSCRIPTION_MODEL) -> str:
    try:
        from openai import OpenAI
    except ImportError as exc:
        raise RuntimeError("OpenAI transcription unavailable. Install dependency: pip install openai") from exc

    client = OpenAI()
    kwargs = {"model": model}
    if language:
        kwargs["language"] = language

    print(f"Transcribing {audio_path} with OpenAI ({model})...")
    try:
        with open(audio_path, "rb") as file_handle:
            response = client.audio.transcriptions.create(file=file_handle, **kwargs)
    except Exception as exc:
        raise RuntimeError(f"OpenAI transcription failed for '{audio_path}': {exc}") from exc

    return (getattr(response, "text", None) or "").strip()


def transcribe_whisper(
    audio_path: str,
    language: str | None,
    model_size: str = LOCAL_WHISPER_MODEL,
    device: str = "cuda",
) -> str:
    """Transcribe with a local openai-whisper model."""
    try:
        import torch
        import whisper
    except ImportError as exc:
        raise RuntimeError(
            "Local Whisper unavailable. Install dependency: pip install 'vdclip[whisper]'"
        ) from exc

    device = _resolve_device(device)

    print(f"Loading Whisper model '{model_size}' on {device}...")
    try:
        model = whisper.load_model(model_size, device=device)
    except Exception as exc:
        raise RuntimeError(f"Failed to load Whisper model '{model_size}' on {device}: {exc}") from exc

    try:
        print(f"Transcribing {audio_path}...")
        result = model.transcribe(audio_path, fp16=(device == "cuda"), language=language)
    except Exception as exc:
        raise RuntimeError(f"Whisper transcription failed for '{audio_path}': {exc}") from exc
    finally:
        del model
        if device == "cuda" and torch.cuda.is_available():
            torch.cuda.empty_cache()

    print(f"Detected language '{result.get('language')}'")
    return (result.get("text") or "").strip()


def transcribe_audio(
    audio_path: str,
    language: str | None = None,
    backend: str = "openai",
    model: str | None = None,
) -> str:
    """Return the transcript text of a normalized audio file."""
    if backend == "openai":
        return transcribe_openai(audio_path, language, model or OPENAI_TRANSCRIPTION_MODEL)
    if backend == "whisper":
        return transcribe_whisper(audio_path, language, model or LOCAL_WHISPER_MODEL)

    valid = ", ".join(TRANSCRIPTION_BACKENDS)
    raise ValueError(f"Unknown transcription backend '{backend}'. Expected one of: {valid}")
