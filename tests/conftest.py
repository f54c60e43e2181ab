import subprocess
from pathlib import Path

import pytest

from chaptercrack.app import get_app_state
from chaptercrack.core.config import reset_settings

SILENCE_REPORT = """Input #0, mp3, from 'book.mp3':
  Duration: 00:01:40.00, start: 0.025057, bitrate: 128 kb/s
  Stream #0:0: Audio: mp3, 44100 Hz, stereo, fltp, 128 kb/s
[silencedetect @ 0x55d1c8a0f240] silence_start: 8.21
[silencedetect @ 0x55d1c8a0f240] silence_end: 10.500 | silence_duration: 2.29
[silencedetect @ 0x55d1c8a0f240] silence_start: 42.7
[silencedetect @ 0x55d1c8a0f240] silence_end: 45.002 | silence_duration: 2.302
size=N/A time=00:01:40.00 bitrate=N/A speed= 612x
"""

EXPECTED_DOCUMENT = (
    ";FFMETADATA1\n"
    "[CHAPTER]\nTIMEBASE=1/1000\nSTART=0\nEND=10499\ntitle=Chapter 1\n\n"
    "[CHAPTER]\nTIMEBASE=1/1000\nSTART=10500\nEND=45001\ntitle=Chapter 2\n\n"
    "[CHAPTER]\nTIMEBASE=1/1000\nSTART=45002\nEND=100000\ntitle=Chapter 3\n\n"
)


class FakeTools:
    """Stands in for subprocess.run, answering like ffmpeg and ffprobe would"""

    def __init__(self):
        self.calls = []
        self.silence_stderr = SILENCE_REPORT
        self.duration_stdout = "100.000000\n"
        self.failures = {}  # "silencedetect" | "ffprobe" | "mux" -> (returncode, stderr)
        self.muxed_metadata = None

    @staticmethod
    def kind(command) -> str:
        if Path(command[0]).name == "ffprobe":
            return "ffprobe"
        if any("silencedetect" in part for part in command):
            return "silencedetect"
        return "mux"

    def __call__(self, command, **kwargs):
        command = [str(part) for part in command]
        self.calls.append(command)
        kind = self.kind(command)

        if kind in self.failures:
            returncode, stderr = self.failures[kind]
            return subprocess.CompletedProcess(command, returncode, "", stderr)
        if kind == "ffprobe":
            return subprocess.CompletedProcess(command, 0, self.duration_stdout, "")
        if kind == "silencedetect":
            return subprocess.CompletedProcess(command, 0, "", self.silence_stderr)

        inputs = [command[i + 1] for i, part in enumerate(command) if part == "-i"]
        self.muxed_metadata = Path(inputs[1]).read_text(encoding="utf-8")
        Path(command[-1]).write_bytes(b"m4b")
        return subprocess.CompletedProcess(command, 0, "", "")

    def calls_of(self, kind):
        return [command for command in self.calls if self.kind(command) == kind]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    media_base = tmp_path / "media"
    media_base.mkdir()
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("MEDIA_BASE", str(media_base))
    for name in ("NOISE_THRESHOLD", "SILENCE_DURATION", "FFMPEG_BINARY", "FFPROBE_BINARY"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    get_app_state().reset()
    yield
    reset_settings()
    get_app_state().reset()


@pytest.fixture
def fake_tools(monkeypatch):
    tools = FakeTools()
    monkeypatch.setattr("chaptercrack.services.external_tools.subprocess.run", tools)
    return tools


@pytest.fixture
def media_base(tmp_path) -> Path:
    return tmp_path / "media"


@pytest.fixture
def audio_file(media_base) -> Path:
    path = media_base / "book.mp3"
    path.write_bytes(b"audio")
    return path
