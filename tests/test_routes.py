import time
import pytest
from fastapi.testclient import TestClient

from api.main import app
import api.routes as routes
from conftest import FakeDevice, make_capability, make_context


@pytest.fixture
def ctx(monkeypatch, settings):
    c = make_context(settings, capability=make_capability(labels=("gato", "perro"), probs=(0.91, 0.07)))
    monkeypatch.setattr(routes, "context", c)
    return c


def test_health():
    client = TestClient(app)
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_toggle_detect_stop(ctx):
    with TestClient(app) as client:
        r = client.post("/toggle")
        assert r.status_code == 200
        assert r.json()["armed"] is True
        assert client.get("/status").json()["state"] == "idle"

        r = client.post("/toggle", params={"facing": "environment"})
        assert r.json()["state"] == "live"
        assert ctx.session.facing == "environment"

        # the portal loop keeps running between requests; wait for a painted frame
        for _ in range(100):
            if ctx.session.current_frame is not None:
                break
            time.sleep(0.01)
        r = client.post("/detect")
        assert r.status_code == 200
        body = r.json()
        assert body["ran"] is True
        assert body["text"] == "Es un: gato - 91.00%"
        assert body["icon"] == "cat"

        st = client.get("/status").json()
        assert st["display"]["label"] == "gato"
        assert st["total_classes"] == 2

        client.post("/toggle")
        r = client.post("/toggle")
        assert r.json()["state"] == "idle"
        st = client.get("/status").json()
        assert st["display"]["label"] == ""


def test_interact_disarms(ctx):
    with TestClient(app) as client:
        client.post("/toggle")
        r = client.post("/interact")
        assert r.json() == {"confirm_armed": False}
        assert client.get("/status").json()["prompt"] is None


def test_toggle_device_error_returns_503(monkeypatch, settings):
    c = make_context(settings, device=FakeDevice(fail_open=True))
    monkeypatch.setattr(routes, "context", c)
    with TestClient(app) as client:
        client.post("/toggle")
        r = client.post("/toggle")
        assert r.status_code == 503
        assert client.get("/status").json()["state"] == "idle"


def test_frame_is_jpeg(ctx):
    with TestClient(app) as client:
        r = client.get("/frame")
        assert r.status_code == 200
        assert r.headers["content-type"] == "image/jpeg"
        assert r.content[:2] == b"\xff\xd8"


def test_detect_without_model_is_noop(monkeypatch, settings):
    c = make_context(settings)
    monkeypatch.setattr(routes, "context", c)
    with TestClient(app) as client:
        r = client.post("/detect")
        assert r.status_code == 200
        assert r.json()["ran"] is False
        assert client.get("/status").json()["model_loaded"] is False
