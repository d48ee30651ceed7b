import asyncio
import numpy as np

from detector.camera import CameraSession
from detector.models import PredictionEntry
from detector.trigger import classify
from conftest import make_capability


class ChattyCapability:
    """Returns more entries than it claims to support."""
    total_classes = 2
    def __init__(self):
        self.calls = 0
    async def predict(self, frame):
        self.calls += 1
        return [PredictionEntry(label=l, probability=p) for l, p in (("perro", 0.6), ("gato", 0.3), ("x", 0.1))]


def _live_session(device):
    s = CameraSession(device)
    asyncio.run(s.start("user"))
    s.refresh()
    return s


def test_classify_truncates_to_total_classes(device):
    cap = ChattyCapability()
    preds = asyncio.run(classify(cap, _live_session(device)))
    assert [p.label for p in preds] == ["perro", "gato"]


def test_classify_noop_without_model(device):
    assert asyncio.run(classify(None, _live_session(device))) is None


def test_classify_noop_when_idle(device):
    cap = ChattyCapability()
    assert asyncio.run(classify(cap, CameraSession(device))) is None
    assert cap.calls == 0


def test_classify_noop_before_first_frame(device):
    s = CameraSession(device)
    asyncio.run(s.start("user"))
    cap = ChattyCapability()
    assert asyncio.run(classify(cap, s)) is None
    assert cap.calls == 0


def test_classify_runs_real_capability(device):
    cap = make_capability(probs=(0.2, 0.8))
    preds = asyncio.run(classify(cap, _live_session(device)))
    assert [p.label for p in preds] == ["perro", "gato"]
    assert cap._model.batches[0].shape == (1, 224, 224, 3)
