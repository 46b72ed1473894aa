"""Tests for the yt-dlp + speech-to-text fallback path."""
from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from youtube_knowledge.errors import (
    TranscriptFetchFailed,
    UpstreamServiceError,
    UpstreamTimeout,
    VideoAgeRestricted,
    VideoPrivateOrUnavailable,
)
from youtube_knowledge.ingestion import audio_transcriber
from youtube_knowledge.ingestion.audio_transcriber import (
    AudioTranscriber,
    classify_download_error,
    temporary_audio_path,
)


def _output_path(cmd: list[str]) -> Path:
    template = cmd[cmd.index("-o") + 1]
    return Path(template.replace(".%(ext)s", ".mp3"))


@pytest.fixture
def fake_ytdlp(monkeypatch):
    """Replaces subprocess.run; writes an mp3 unless told to fail."""
    state = {"returncode": 0, "stderr": "", "write_file": True, "cmds": [], "exc": None}

    def fake_run(cmd, capture_output=False, text=False, timeout=None):
        state["cmds"].append(cmd)
        if state["exc"]:
            raise state["exc"]
        if state["write_file"] and state["returncode"] == 0:
            _output_path(cmd).write_bytes(b"ID3fake")
        return subprocess.CompletedProcess(cmd, state["returncode"], "", state["stderr"])

    monkeypatch.setattr(audio_transcriber.subprocess, "run", fake_run)
    return state


class FakeSpeech:
    language = "en"

    def __init__(self, text: str = "spoken words"):
        self.text = text
        self.calls: list[str] = []

    def transcribe(self, audio_path: str) -> str:
        self.calls.append(audio_path)
        assert Path(audio_path).exists()
        return self.text


class FailingSpeech(FakeSpeech):
    def transcribe(self, audio_path: str) -> str:
        self.calls.append(audio_path)
        raise UpstreamServiceError("speech service down")


class TestClassifyDownloadError:
    def test_private(self):
        err = classify_download_error("v", "ERROR: [youtube] v: Private video")
        assert isinstance(err, VideoPrivateOrUnavailable)

    def test_unavailable(self):
        err = classify_download_error("v", "ERROR: Video unavailable")
        assert isinstance(err, VideoPrivateOrUnavailable)

    def test_age(self):
        err = classify_download_error("v", "ERROR: Sign in to confirm your age")
        assert isinstance(err, VideoAgeRestricted)

    def test_page_is_not_age(self):
        err = classify_download_error("v", "ERROR: could not parse page")
        assert isinstance(err, TranscriptFetchFailed)

    def test_empty_stderr(self):
        assert isinstance(classify_download_error("v", ""), TranscriptFetchFailed)


class TestTemporaryAudioPath:
    def test_removed_after_success(self):
        with temporary_audio_path("vid") as path:
            path.write_bytes(b"data")
            assert path.exists()
        assert not path.exists()
        assert not path.parent.exists()

    def test_removed_after_exception(self):
        with pytest.raises(RuntimeError):
            with temporary_audio_path("vid") as path:
                path.write_bytes(b"data")
                raise RuntimeError("boom")
        assert not path.parent.exists()

    def test_never_created_is_fine(self):
        with temporary_audio_path("vid") as path:
            assert path.parent.is_dir()
        assert not path.parent.exists()

    def test_sibling_files_removed(self):
        with temporary_audio_path("vid") as path:
            (path.parent / "audio.webm.part").write_bytes(b"partial")
            (path.parent / "audio.webm").write_bytes(b"intermediate")
        assert not path.parent.exists()

    def test_directory_already_gone_is_fine(self):
        with temporary_audio_path("vid") as path:
            path.parent.rmdir()
        assert not path.parent.exists()

    def test_directory_names_video(self):
        with temporary_audio_path("vid42") as path:
            assert path.parent.name.startswith("youtube-vid42-")
            assert path.suffix == ".mp3"

    def test_each_call_gets_its_own_directory(self):
        with temporary_audio_path("vid") as first, temporary_audio_path("vid") as second:
            assert first.parent != second.parent


class TestAudioTranscriber:
    def test_transcribes_and_cleans_up(self, fake_ytdlp):
        speech = FakeSpeech(text="hello from the audio")
        transcript = AudioTranscriber(speech).transcribe_video("abc123")

        assert transcript.text == "hello from the audio"
        assert transcript.source == "speech_to_text"
        assert transcript.language_code == "en"
        assert len(speech.calls) == 1
        assert not Path(speech.calls[0]).exists()

    def test_command_line(self, fake_ytdlp):
        AudioTranscriber(FakeSpeech(), ytdlp_binary="/opt/yt-dlp").transcribe_video("abc123")
        cmd = fake_ytdlp["cmds"][0]
        assert cmd[0] == "/opt/yt-dlp"
        assert "-x" in cmd
        assert cmd[cmd.index("--audio-format") + 1] == "mp3"
        assert cmd[-1] == "https://www.youtube.com/watch?v=abc123"

    def test_cleans_up_when_speech_fails(self, fake_ytdlp):
        speech = FailingSpeech()
        with pytest.raises(UpstreamServiceError):
            AudioTranscriber(speech).transcribe_video("abc123")
        assert not Path(speech.calls[0]).exists()

    def test_download_failure_classified(self, fake_ytdlp):
        fake_ytdlp["returncode"] = 1
        fake_ytdlp["stderr"] = "ERROR: [youtube] abc123: Private video. Sign in"
        speech = FakeSpeech()
        with pytest.raises(VideoPrivateOrUnavailable):
            AudioTranscriber(speech).transcribe_video("abc123")
        assert speech.calls == []

    def test_download_timeout(self, fake_ytdlp):
        fake_ytdlp["exc"] = subprocess.TimeoutExpired(cmd="yt-dlp", timeout=1)
        with pytest.raises(UpstreamTimeout):
            AudioTranscriber(FakeSpeech(), download_timeout=1).transcribe_video("abc123")

    def test_missing_binary(self, fake_ytdlp):
        fake_ytdlp["exc"] = FileNotFoundError("yt-dlp")
        with pytest.raises(TranscriptFetchFailed):
            AudioTranscriber(FakeSpeech()).transcribe_video("abc123")

    def test_no_file_produced(self, fake_ytdlp):
        fake_ytdlp["write_file"] = False
        with pytest.raises(TranscriptFetchFailed):
            AudioTranscriber(FakeSpeech()).transcribe_video("abc123")

    def test_timeout_removes_partial_download(self, monkeypatch):
        seen = {}

        def interrupted_run(cmd, capture_output=False, text=False, timeout=None):
            out_dir = _output_path(cmd).parent
            seen["dir"] = out_dir
            (out_dir / "audio.webm.part").write_bytes(b"half a download")
            raise subprocess.TimeoutExpired(cmd=cmd, timeout=timeout)

        monkeypatch.setattr(audio_transcriber.subprocess, "run", interrupted_run)
        with pytest.raises(UpstreamTimeout):
            AudioTranscriber(FakeSpeech(), download_timeout=1).transcribe_video("abc123")
        assert not seen["dir"].exists()

    def test_failed_download_removes_partial_files(self, monkeypatch):
        seen = {}

        def failing_run(cmd, capture_output=False, text=False, timeout=None):
            out_dir = _output_path(cmd).parent
            seen["dir"] = out_dir
            (out_dir / "audio.webm.part").write_bytes(b"partial")
            return subprocess.CompletedProcess(cmd, 1, "", "ERROR: HTTP Error 403")

        monkeypatch.setattr(audio_transcriber.subprocess, "run", failing_run)
        with pytest.raises(TranscriptFetchFailed):
            AudioTranscriber(FakeSpeech()).transcribe_video("abc123")
        assert not seen["dir"].exists()
