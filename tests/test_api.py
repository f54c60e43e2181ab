from fastapi.testclient import TestClient

from chaptercrack.app import get_app_state
from chaptercrack.main import app
from chaptercrack.services.processing_pipeline import ChapterPipeline
from conftest import EXPECTED_DOCUMENT, SILENCE_REPORT

client = TestClient(app)


def test_health():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["conversion_running"] is False


def test_api_root_lists_endpoints():
    response = client.get("/api")

    assert response.status_code == 200
    assert response.json()["endpoints"]["preview"] == "/api/chapters/preview"


def test_preview_builds_document():
    response = client.post("/api/chapters/preview", json={"report": SILENCE_REPORT, "duration": "100.000000\n"})

    assert response.status_code == 200
    body = response.json()
    assert body["document"] == EXPECTED_DOCUMENT
    assert body["silence_ends"] == [10.5, 45.002]
    assert [c["title"] for c in body["chapters"]] == ["Chapter 1", "Chapter 2", "Chapter 3"]
    assert body["records"][1] == {"start_ms": 10500, "end_ms": 45001, "title": "Chapter 2"}


def test_preview_accepts_numeric_duration():
    response = client.post("/api/chapters/preview", json={"report": "", "duration": 12.5})

    assert response.status_code == 200
    assert response.json()["records"] == [{"start_ms": 0, "end_ms": 12500, "title": "Chapter 1"}]


def test_preview_rejects_malformed_report():
    response = client.post(
        "/api/chapters/preview",
        json={"report": "silence_end: 5.0\nsilence_end: 3.0\n", "duration": "100"},
    )

    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "MalformedSilenceReport"


def test_preview_rejects_invalid_duration():
    response = client.post("/api/chapters/preview", json={"report": SILENCE_REPORT, "duration": "N/A"})

    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "InvalidDuration"


def test_detection_config_roundtrip():
    assert client.get("/api/config/detection").json() == {"noise_threshold": "-30dB", "min_silence_duration": 2.0}

    response = client.post("/api/config/detection", json={"noise_threshold": "-38dB", "min_silence_duration": 1.5})

    assert response.status_code == 200
    assert client.get("/api/config/detection").json() == {"noise_threshold": "-38dB", "min_silence_duration": 1.5}


def test_detection_config_rejects_invalid_values():
    response = client.post("/api/config/detection", json={"noise_threshold": "quiet", "min_silence_duration": 1})

    assert response.status_code == 422


def test_output_config_partial_update():
    response = client.post("/api/config/output", json={"keep_metadata_file": True})

    assert response.status_code == 200
    assert response.json() == {"keep_metadata_file": True, "audio_codec": "copy"}


def test_convert_runs_pipeline(audio_file, fake_tools):
    response = client.post("/api/convert", json={"path": "book.mp3"})

    assert response.status_code == 200
    assert response.json()["output_path"] == str(audio_file.with_suffix(".m4b").resolve())

    state = client.get("/api/convert").json()
    assert state["running"] is False
    assert state["step"] == "completed"
    assert state["error"] is None
    assert len(state["chapters"]) == 3
    assert fake_tools.muxed_metadata == EXPECTED_DOCUMENT


def test_convert_reports_pipeline_failure(audio_file, fake_tools):
    fake_tools.failures["ffprobe"] = (1, "moov atom not found")

    assert client.post("/api/convert", json={"path": "book.mp3"}).status_code == 200

    state = client.get("/api/convert").json()
    assert state["step"] == "failed"
    assert state["error_type"] == "ExternalToolFailure"
    assert "moov atom not found" in state["error"]


def test_convert_rejects_path_outside_media_base(tmp_path, fake_tools):
    outside = tmp_path / "outside.mp3"
    outside.write_bytes(b"audio")

    response = client.post("/api/convert", json={"path": str(outside)})

    assert response.status_code == 400
    assert fake_tools.calls == []


def test_convert_rejects_missing_file(fake_tools):
    response = client.post("/api/convert", json={"path": "nothing.mp3"})

    assert response.status_code == 400


def test_convert_rejects_second_conversion(audio_file, fake_tools):
    get_app_state().running = True

    response = client.post("/api/convert", json={"path": "book.mp3"})

    assert response.status_code == 409
    assert fake_tools.calls == []


def test_convert_reports_unwritable_output(audio_file, media_base, fake_tools):
    (media_base / "outdir").mkdir()

    response = client.post("/api/convert", json={"path": "book.mp3", "output_path": "outdir"})

    assert response.status_code == 200
    state = client.get("/api/convert").json()
    assert state["running"] is False
    assert state["step"] == "failed"
    assert state["error_type"] == "IOFailure"
    assert "outdir" in state["error"]


def test_convert_records_unexpected_error(audio_file, fake_tools, monkeypatch):
    def explode(self):
        raise RuntimeError("disk vanished")

    monkeypatch.setattr(ChapterPipeline, "run", explode)

    assert client.post("/api/convert", json={"path": "book.mp3"}).status_code == 200

    state = client.get("/api/convert").json()
    assert state["running"] is False
    assert state["error_type"] == "RuntimeError"
    assert state["error"] == "disk vanished"
