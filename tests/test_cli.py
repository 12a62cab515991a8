import io
import json
import sys
from types import SimpleNamespace

import pytest

from vdclip import cli, sources
from vdclip.sources import MediaSource


def _configure_common(monkeypatch, tmp_path, **overrides):
    cfg = SimpleNamespace(
        provider=None,
        model=None,
        transcription_backend="openai",
        transcription_model=None,
        language="pt",
        max_clips=5,
        clip_len_sec=60,
        output_dir=str(tmp_path / "public"),
        public_prefix="/public",
    )
    for key, value in overrides.items():
        setattr(cfg, key, value)
    monkeypatch.setattr(cli, "load_config", lambda _path: cfg)
    monkeypatch.setattr(sources.time, "time", lambda: 1700000000.0)
    return cfg


def _media_file(tmp_path):
    path = tmp_path / "talk.mp4"
    path.write_bytes(b"media")
    return str(path)


def _json_tail(out: str) -> dict:
    return json.loads(out[out.index("{\n"):])


def _fixed_extractor(response: str):
    def _factory(provider, model):
        return lambda transcript, max_clips, clip_len_sec: response

    return _factory


def test_missing_source_is_rejected_before_any_call(monkeypatch, capsys, tmp_path):
    _configure_common(monkeypatch, tmp_path)
    monkeypatch.setattr(sys, "argv", ["vdclip", "--openai"])
    monkeypatch.setattr(cli, "resolve_source", lambda *_a, **_k: pytest.fail("source should not be resolved"))

    with pytest.raises(SystemExit) as exc:
        cli.main()

    assert exc.value.code == 1
    assert "A source is required" in capsys.readouterr().out


def test_strict_mode_rejects_urls(monkeypatch, capsys, tmp_path):
    _configure_common(monkeypatch, tmp_path)
    monkeypatch.setattr(
        sys, "argv", ["vdclip", "https://youtu.be/dQw4w9WgXcQ", "--openai", "--mode", "strict"]
    )
    monkeypatch.setattr(sources.subprocess, "run", lambda *_a, **_k: pytest.fail("no lookup in strict mode"))

    with pytest.raises(SystemExit) as exc:
        cli.main()

    assert exc.value.code == 1
    assert "Strict mode" in capsys.readouterr().out


def test_invalid_clip_length_is_rejected(monkeypatch, capsys, tmp_path):
    _configure_common(monkeypatch, tmp_path)
    monkeypatch.setattr(sys, "argv", ["vdclip", _media_file(tmp_path), "--openai", "--clip-len", "3"])

    with pytest.raises(SystemExit) as exc:
        cli.main()

    assert exc.value.code == 1
    assert "Invalid clip settings: clip_len_sec must be at least 5s" in capsys.readouterr().out


def test_missing_provider_is_rejected(monkeypatch, capsys, tmp_path):
    _configure_common(monkeypatch, tmp_path)
    monkeypatch.setattr(sys, "argv", ["vdclip", _media_file(tmp_path)])

    with pytest.raises(SystemExit) as exc:
        cli.main()

    assert exc.value.code == 1
    assert "No AI provider specified" in capsys.readouterr().out


def test_unknown_config_provider_is_rejected(monkeypatch, capsys, tmp_path):
    _configure_common(monkeypatch, tmp_path, provider="azure", model="m")
    monkeypatch.setattr(sys, "argv", ["vdclip", _media_file(tmp_path)])

    with pytest.raises(SystemExit) as exc:
        cli.main()

    assert exc.value.code == 1
    assert "Unknown provider 'azure'" in capsys.readouterr().out


def test_transcript_file_runs_full_plan(monkeypatch, capsys, tmp_path):
    _configure_common(monkeypatch, tmp_path)
    transcript = tmp_path / "transcript.txt"
    transcript.write_text("Hello world. This is a test! Great.", encoding="utf-8")
    response = json.dumps(
        {"clips": [{"start": 10, "end": 12, "hook": "Hook", "headline": "Headline", "text": "Hello world."}]}
    )
    monkeypatch.setattr(cli, "make_extractor", _fixed_extractor(response))
    monkeypatch.setattr(cli, "transcribe_audio", lambda *_a, **_k: pytest.fail("should not transcribe"))
    monkeypatch.setattr(
        sys,
        "argv",
        ["vdclip", _media_file(tmp_path), "--openai", "--transcript", str(transcript), "--json"],
    )

    cli.main()

    result = _json_tail(capsys.readouterr().out)
    assert result["videoId"] == "upload-1700000000000"
    assert result["title"] == "talk"
    assert result["planUrl"] == "/public/upload-1700000000000/plan.json"
    assert result["clips"][0]["srt"] == "/public/upload-1700000000000/c1.srt"

    request_dir = tmp_path / "public" / "upload-1700000000000"
    manifest = json.loads((request_dir / "plan.json").read_text(encoding="utf-8"))
    assert manifest["meta"] == {"title": "talk", "videoId": "upload-1700000000000"}
    assert (request_dir / "c1.srt").read_text(encoding="utf-8") == (
        "1\n00:00:00,000 --> 00:00:05,000\nHello world.\n\n"
    )


def test_media_pipeline_with_malformed_extractor_output_succeeds(monkeypatch, capsys, tmp_path):
    _configure_common(monkeypatch, tmp_path)
    calls = []

    def fake_prepare(source, request_dir):
        calls.append(("prepare", source.video_id, request_dir))
        return f"{request_dir}/{source.video_id}.wav"

    def fake_transcribe(wav_path, language, backend, model):
        calls.append(("transcribe", language, backend))
        return "Some transcript."

    monkeypatch.setattr(cli, "_prepare_audio", fake_prepare)
    monkeypatch.setattr(cli, "transcribe_audio", fake_transcribe)
    monkeypatch.setattr(cli, "get_media_duration", lambda _path: 100.0)
    monkeypatch.setattr(cli, "make_extractor", _fixed_extractor("I could not find clips, sorry"))
    monkeypatch.setattr(sys, "argv", ["vdclip", _media_file(tmp_path), "-g", "--language", "en"])

    cli.main()

    out = capsys.readouterr().out
    assert "0 clips planned" in out
    assert [c[0] for c in calls] == ["prepare", "transcribe"]
    assert calls[1] == ("transcribe", "en", "openai")
    manifest_path = tmp_path / "public" / "upload-1700000000000" / "plan.json"
    assert json.loads(manifest_path.read_text(encoding="utf-8"))["clips"] == []


def test_transcription_failure_is_fatal(monkeypatch, capsys, tmp_path):
    _configure_common(monkeypatch, tmp_path)

    def failing_transcribe(*_a, **_k):
        raise RuntimeError("OpenAI transcription failed for 'x.wav': unreachable")

    def extractor_factory(provider, model):
        return lambda *_a: pytest.fail("extractor should not run after a failed transcription")

    monkeypatch.setattr(cli, "_prepare_audio", lambda source, request_dir: "x.wav")
    monkeypatch.setattr(cli, "transcribe_audio", failing_transcribe)
    monkeypatch.setattr(cli, "make_extractor", extractor_factory)
    monkeypatch.setattr(sys, "argv", ["vdclip", _media_file(tmp_path), "--openai"])

    with pytest.raises(SystemExit) as exc:
        cli.main()

    assert exc.value.code == 1
    assert "Ingestion failed: OpenAI transcription failed" in capsys.readouterr().out


def test_extractor_failure_is_fatal(monkeypatch, capsys, tmp_path):
    _configure_common(monkeypatch, tmp_path)
    transcript = tmp_path / "t.txt"
    transcript.write_text("Hi.", encoding="utf-8")

    def failing_extractor(*_a):
        raise RuntimeError("Ollama request failed: connection refused")

    monkeypatch.setattr(cli, "make_extractor", lambda provider, model: failing_extractor)
    monkeypatch.setattr(
        sys, "argv", ["vdclip", _media_file(tmp_path), "--ollama", "--transcript", str(transcript)]
    )

    with pytest.raises(SystemExit) as exc:
        cli.main()

    assert exc.value.code == 1
    assert "Clip mining failed: Ollama request failed: connection refused" in capsys.readouterr().out
    assert not (tmp_path / "public" / "upload-1700000000000" / "plan.json").exists()


def test_transcribe_only_skips_clip_mining(monkeypatch, capsys, tmp_path):
    _configure_common(monkeypatch, tmp_path)
    monkeypatch.setattr(cli, "make_extractor", lambda *_a: pytest.fail("no extractor in transcribe-only mode"))
    monkeypatch.setattr(
        cli, "_prepare_audio", lambda source, request_dir: f"{request_dir}/{source.video_id}.wav"
    )
    monkeypatch.setattr(cli, "transcribe_audio", lambda *_a, **_k: "Olá.")
    monkeypatch.setattr(sys, "argv", ["vdclip", _media_file(tmp_path), "--transcribe-only", "--json"])

    cli.main()

    result = _json_tail(capsys.readouterr().out)
    assert result == {
        "text": "Olá.",
        "wav": "/public/upload-1700000000000/upload-1700000000000.wav",
    }


def test_prepare_audio_downloads_remote_sources(monkeypatch, tmp_path):
    calls = []
    source = MediaSource(video_id="vid", title="t", location="https://youtu.be/x", kind="url")
    monkeypatch.setattr(cli, "download_audio", lambda url, out: calls.append(("download", url)) or f"{out}/source.m4a")
    monkeypatch.setattr(cli, "normalize_audio", lambda src, wav: calls.append(("normalize", src, wav)) or wav)

    wav = cli._prepare_audio(source, str(tmp_path))

    assert wav == f"{tmp_path}/vid.wav"
    assert calls == [
        ("download", "https://youtu.be/x"),
        ("normalize", f"{tmp_path}/source.m4a", f"{tmp_path}/vid.wav"),
    ]


def test_prepare_audio_reads_uploads_from_stdin(monkeypatch, tmp_path):
    seen = {}
    source = MediaSource(video_id="upload-1", title="upload", location="-", kind="upload")
    monkeypatch.setattr(cli.sys, "stdin", SimpleNamespace(buffer=io.BytesIO(b"bytes")))

    def fake_bytes(data, wav):
        seen["args"] = (data, wav)
        return wav

    monkeypatch.setattr(cli, "normalize_audio_bytes", fake_bytes)

    cli._prepare_audio(source, str(tmp_path))

    assert seen["args"] == (b"bytes", f"{tmp_path}/upload-1.wav")
