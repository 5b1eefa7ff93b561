from pathlib import Path

import pytest

AppTest = pytest.importorskip("streamlit.testing.v1").AppTest

from fruitlens.api_client import BackendClassifier  # noqa: E402

APP_PATH = Path(__file__).resolve().parents[1] / "app" / "app.py"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("FRUITLENS_BACKEND_URL", raising=False)
    monkeypatch.delenv("FRUITLENS_MODEL", raising=False)


def test_model_unavailable_blocks_the_ui(monkeypatch, tmp_path):
    monkeypatch.setenv("FRUITLENS_MODEL", str(tmp_path / "missing.keras"))

    at = AppTest.from_file(str(APP_PATH), default_timeout=30).run()

    assert not at.exception
    errors = [e.value for e in at.error]
    assert any("Could not load the model" in e for e in errors)
    assert any("unavailable" in e for e in errors)
    assert len(at.button) == 0


def test_ready_shows_webcam_controls(monkeypatch):
    monkeypatch.setenv("FRUITLENS_BACKEND_URL", "http://backend.test")

    def healthy(self):
        self.labels = ("apple", "banana", "orange")
        return {"model_loaded": True}

    monkeypatch.setattr(BackendClassifier, "check", healthy)

    at = AppTest.from_file(str(APP_PATH), default_timeout=30).run()

    assert not at.exception
    assert len(at.error) == 0
    assert [b.label for b in at.button] == ["Start webcam"]
    assert "Identifies apple, banana, orange" in [c.value for c in at.caption]
    assert any(i.value == "Webcam is off" for i in at.info)


def test_sampler_notice_shows_in_live_view(monkeypatch):
    monkeypatch.setenv("FRUITLENS_BACKEND_URL", "http://backend.test")
    monkeypatch.setattr(BackendClassifier, "check", lambda self: {"model_loaded": True})

    at = AppTest.from_file(str(APP_PATH), default_timeout=30).run()
    at.session_state["fruitlens"].notify("warning", "Prediction failed: backend timed out")
    at.run()

    assert not at.exception
    assert [w.value for w in at.warning] == ["Prediction failed: backend timed out"]
    assert at.session_state["fruitlens"].notice is None
