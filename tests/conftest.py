import json
import pytest
import numpy as np
from pathlib import Path

from detector.camera import CameraDevice
from detector.classifier import ClassifierCapability
from detector.config import Settings
from detector.context import DetectorContext
from detector.errors import DeviceError
from detector.models import ModelMetadata


class FakeDevice(CameraDevice):
    """Camera stand-in: serves 480x640 frames, can fail open or individual reads."""
    def __init__(self, fail_open=False, bad_reads=()):
        self.fail_open = fail_open
        self.bad_reads = set(bad_reads)
        self.opened = 0
        self.released = 0
        self.reads = 0
        self.facing = None
        self.size = None
    def open(self, facing, width, height):
        if self.fail_open:
            raise DeviceError("permission denied")
        self.opened += 1
        self.facing = facing
        self.size = (width, height)
    def read(self):
        self.reads += 1
        if self.reads in self.bad_reads:
            return None
        return np.full((480, 640, 3), 100, dtype=np.uint8)
    def release(self):
        self.released += 1


class DummyModel:
    """Keras-like model returning fixed probabilities."""
    def __init__(self, probs):
        self.probs = np.asarray([probs], dtype=np.float32)
        self.output_shape = (None, len(probs))
        self.batches = []
    def predict(self, batch, verbose=0):
        self.batches.append(batch)
        return self.probs


def make_capability(labels=("perro", "gato"), probs=(0.82, 0.15)):
    return ClassifierCapability(DummyModel(list(probs)), ModelMetadata(labels=list(labels)))


def make_context(settings, capability=None, device=None):
    ctx = DetectorContext(settings, device or FakeDevice())
    ctx.capability = capability
    # skip the real model load
    ctx._started_up = True
    return ctx


@pytest.fixture
def settings(tmp_path):
    return Settings(MODEL_DIR=str(tmp_path), RENDER_FPS=200)


@pytest.fixture
def device():
    return FakeDevice()


@pytest.fixture
def metadata_file(tmp_path):
    p = tmp_path / "metadata.json"
    p.write_text(json.dumps({"labels": ["perro", "gato"], "imageSize": 224, "tmVersion": "2.4.7"}))
    return p
