import os
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

MODEL_DEFAULTS = {
    "openai": "gpt-4o-mini",
    "gemini": "gemini-3-flash-preview",
    "ollama": "llama3",
}

CONFIG_SEARCH_PATHS = [
    Path("config.toml"),
    Path.home() / ".config" / "vdclip" / "config.toml",
]

ENV_SEARCH_PATHS = [
    Path(".env"),
    Path(".env.local"),
]


@dataclass
class Config:
    provider: str | None = None
    model: str | None = None
    transcription_backend: str = "openai"
    transcription_model: str | None = None
    language: str = "pt"
    max_clips: int = 5
    clip_len_sec: float = 60
    output_dir: str = "./public"
    public_prefix: str = "/public"


def load_dotenv() -> None:
    """Load env vars from .env files.

    Loading order is deterministic:
    1) .env
    2) .env.local

    Existing process environment variables are never overridden.
    """
    merged: dict[str, str] = {}
    for env_path in ENV_SEARCH_PATHS:
        if not env_path.exists():
            continue
        values = dotenv_values(env_path)
        for key, value in values.items():
            if value is not None:
                merged[key] = value

    for key, value in merged.items():
        os.environ.setdefault(key, value)


def load_config(path: str | None = None) -> Config:
    """Load config from TOML file.

    Search order: explicit path > ./config.toml > ~/.config/vdclip/config.toml
    Missing config file is not an error (defaults are used).
    """
    load_dotenv()

    config_path = None
    if path:
        config_path = Path(path)
        if not config_path.exists():
            print(f"Config file not found: {path}")
            sys.exit(1)
    else:
        for candidate in CONFIG_SEARCH_PATHS:
            if candidate.exists():
                config_path = candidate
                break

    if config_path is None:
        return Config()

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    ai = data.get("ai", {})
    transcription = data.get("transcription", {})
    clips = data.get("clips", {})
    output = data.get("output", {})

    return Config(
        provider=ai.get("provider"),
        model=ai.get("model"),
        transcription_backend=transcription.get("backend", Config.transcription_backend),
        transcription_model=transcription.get("model"),
        language=transcription.get("language", Config.language),
        max_clips=clips.get("max_clips", Config.max_clips),
        clip_len_sec=clips.get("clip_len_sec", Config.clip_len_sec),
        output_dir=output.get("dir", Config.output_dir),
        public_prefix=output.get("public_prefix", Config.public_prefix),
    )
