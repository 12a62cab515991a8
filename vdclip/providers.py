import json
import os
from functools import partial

from vdclip.prompts import SYSTEM_PROMPT, USER_PROMPT_TEMPLATE


def build_user_prompt(transcript: str, max_clips: int, clip_len_sec: float) -> str:
    payload = json.dumps(
        {"N": max_clips, "clip_len_sec": clip_len_sec, "transcript": transcript},
        ensure_ascii=False,
    )
    return USER_PROMPT_TEMPLATE.format(payload=payload)


def find_clips_openai(transcript: str, model: str, max_clips: int, clip_len_sec: float) -> str:
    try:
        from openai import OpenAI
    except ImportError as exc:
        raise RuntimeError("OpenAI provider unavailable. Install dependency: pip install openai") from exc

    client = OpenAI()
    try:
        response = client.chat.completions.create(
            model=model,
            temperature=0.3,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(transcript, max_clips, clip_len_sec)},
            ],
        )
        content = response.choices[0].message.content
    except Exception as exc:
        raise RuntimeError(f"OpenAI request failed: {exc}") from exc

    if not content:
        raise RuntimeError("OpenAI returned an empty response.")
    return content.strip()


def find_clips_gemini(transcript: str, model: str, max_clips: int, clip_len_sec: float) -> str:
    try:
        from google import genai
    except ImportError as exc:
        raise RuntimeError(
            "Gemini provider unavailable. Install dependency: pip install google-genai"
        ) from exc

    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        raise RuntimeError("Gemini provider requires GEMINI_API_KEY to be set.")

    client = genai.Client(api_key=api_key)
    try:
        response = client.models.generate_content(
            model=model,
            contents=f"{SYSTEM_PROMPT}\n\n{build_user_prompt(transcript, max_clips, clip_len_sec)}",
        )
        content = response.text
    except Exception as exc:
        raise RuntimeError(f"Gemini request failed: {exc}") from exc

    if not content:
        raise RuntimeError("Gemini returned an empty response.")
    return content.strip()


def find_clips_ollama(transcript: str, model: str, max_clips: int, clip_len_sec: float) -> str:
    try:
        import ollama
    except ImportError as exc:
        raise RuntimeError("Ollama provider unavailable. Install dependency: pip install ollama") from exc

    try:
        response = ollama.chat(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(transcript, max_clips, clip_len_sec)},
            ],
        )
        content = response["message"]["content"]
    except Exception as exc:
        raise RuntimeError(f"Ollama request failed: {exc}") from exc

    if not content:
        raise RuntimeError("Ollama returned an empty response.")
    return content.strip()


PROVIDER_NAMES = ("openai", "gemini", "ollama")


def _handler_for(provider: str):
    provider_handlers = {
        "openai": find_clips_openai,
        "gemini": find_clips_gemini,
        "ollama": find_clips_ollama,
    }
    handler = provider_handlers.get(provider)
    if handler is None:
        valid_providers = ", ".join(provider_handlers.keys())
        raise ValueError(f"Unknown provider '{provider}'. Expected one of: {valid_providers}")
    return handler


def find_clips(
    provider: str, transcript: str, model: str, max_clips: int, clip_len_sec: float
) -> str:
    return _handler_for(provider)(transcript, model, max_clips, clip_len_sec)


def _call_provider(provider: str, model: str, transcript: str, max_clips: int, clip_len_sec: float) -> str:
    print(f"Mining clips with {provider} ({model})...")
    return find_clips(provider, transcript, model, max_clips, clip_len_sec)


def make_extractor(provider: str, model: str):
    """Bind a provider and model into the planner's extractor callable.

    Unknown providers are rejected here, before any request is made.
    """
    _handler_for(provider)
    return partial(_call_provider, provider, model)
