import asyncio
import json
import numpy as np
import pytest

from detector import classifier as clf
from detector.errors import LoadError
from conftest import DummyModel, make_capability


def test_load_publishes_total_classes(tmp_path, metadata_file):
    model_file = tmp_path / "model.json"
    model_file.write_text("{}")
    seen = {}

    def loader(path):
        seen["path"] = path
        return DummyModel([0.3, 0.7])

    cap = asyncio.run(clf.load(model_file, metadata_file, model_loader=loader))
    assert cap.total_classes == 2
    assert cap.labels == ["perro", "gato"]
    assert cap.image_size == 224
    assert seen["path"] == model_file


def test_missing_metadata_raises(tmp_path):
    with pytest.raises(LoadError):
        asyncio.run(clf.load(tmp_path / "model.json", tmp_path / "nope.json",
                             model_loader=lambda p: DummyModel([0.5, 0.5])))


@pytest.mark.parametrize("content", ["{not json", json.dumps({"labels": []}), json.dumps({"foo": 1})])
def test_malformed_metadata_raises(tmp_path, content):
    meta = tmp_path / "metadata.json"
    meta.write_text(content)
    with pytest.raises(LoadError):
        clf.load_sync(tmp_path / "model.json", meta, model_loader=lambda p: DummyModel([0.5, 0.5]))


def test_missing_model_raises(tmp_path, metadata_file):
    with pytest.raises(LoadError):
        clf.load_sync(tmp_path / "model.json", metadata_file)


def test_model_label_mismatch_raises(tmp_path, metadata_file):
    with pytest.raises(LoadError):
        clf.load_sync(tmp_path / "model.json", metadata_file, model_loader=lambda p: DummyModel([0.2, 0.3, 0.5]))


def test_predict_keeps_class_order():
    cap = make_capability(labels=("perro", "gato"), probs=(0.1, 0.9))
    frame = np.zeros((300, 300, 3), dtype=np.uint8)
    preds = asyncio.run(cap.predict(frame))
    assert [p.label for p in preds] == ["perro", "gato"]
    assert preds[0].probability == pytest.approx(0.1)
    assert preds[1].probability == pytest.approx(0.9)


def test_preprocess_shape_and_range():
    frame = np.full((480, 640, 3), 255, dtype=np.uint8)
    batch = clf.preprocess(frame, 224)
    assert batch.shape == (1, 224, 224, 3)
    assert batch.dtype == np.float32
    assert np.allclose(batch, 1.0)


def test_center_crop_resize_keeps_middle():
    frame = np.zeros((100, 200, 3), dtype=np.uint8)
    frame[:, 50:150] = 255   # centered square
    out = clf.center_crop_resize(frame, 50, 50)
    assert out.shape == (50, 50, 3)
    assert out.min() == 255
