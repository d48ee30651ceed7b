"""
Classifier capability: a Teachable Machine image model loaded once at startup.

Pipeline (per predict call):
    1. BGR frame -> RGB
    2. Center crop to a square, resize to imageSize (224 by default)
    3. Normalise to [-1, 1]
    4. Run the Keras model, return one PredictionEntry per class in label order

TensorFlow is imported lazily so the rest of the package works without it.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, List, Optional

import cv2
import numpy as np
from pydantic import ValidationError

from detector.errors import LoadError
from detector.models import ModelMetadata, PredictionEntry

logger = logging.getLogger(__name__)


def center_crop_resize(frame: np.ndarray, width: int, height: int) -> np.ndarray:
    """Crop the largest centered region with the target aspect ratio, then resize.

    This is how the browser webcam helper fits a camera stream into its
    canvas, so the classifier and the display see the same framing.
    """
    h, w = frame.shape[:2]
    target_aspect = width / float(height)
    aspect = w / float(h)

    if aspect > target_aspect:
        # wider than target -> trim left + right
        new_w = int(round(h * target_aspect))
        x0 = (w - new_w) // 2
        frame = frame[:, x0:x0 + new_w]
    elif aspect < target_aspect:
        new_h = int(round(w / target_aspect))
        y0 = (h - new_h) // 2
        frame = frame[y0:y0 + new_h, :]

    if frame.shape[1] == width and frame.shape[0] == height:
        return frame
    return cv2.resize(frame, (width, height), interpolation=cv2.INTER_AREA)


def preprocess(frame_bgr: np.ndarray, image_size: int) -> np.ndarray:
    """BGR frame -> (1, image_size, image_size, 3) float32 batch in [-1, 1]."""
    rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
    img = center_crop_resize(rgb, image_size, image_size)
    img = img.astype(np.float32) / 127.5 - 1.0
    return np.expand_dims(img, axis=0)


class ClassifierCapability:
    """Loaded model + labels. Immutable once built."""

    def __init__(self, model: Any, metadata: ModelMetadata):
        self._model = model
        self._labels = tuple(metadata.labels)
        self._image_size = int(metadata.imageSize)
        self._name = metadata.modelName

    @property
    def total_classes(self) -> int:
        return len(self._labels)

    @property
    def labels(self) -> List[str]:
        return list(self._labels)

    @property
    def image_size(self) -> int:
        return self._image_size

    def predict_sync(self, frame_bgr: np.ndarray) -> List[PredictionEntry]:
        batch = preprocess(frame_bgr, self._image_size)
        probs = np.asarray(self._model.predict(batch, verbose=0))[0]
        probs_txt = "  ".join(f"{lbl}={float(p):.3f}" for lbl, p in zip(self._labels, probs))
        logger.debug(f"[classifier] probs {probs_txt}")
        # Class-index order, deliberately unsorted
        return [
            PredictionEntry(label=lbl, probability=float(p))
            for lbl, p in zip(self._labels, probs)
        ]

    async def predict(self, frame_bgr: np.ndarray) -> List[PredictionEntry]:
        return await asyncio.to_thread(self.predict_sync, frame_bgr)


# ═══════════════════════════════════════════════════════════════════════════
# Loader helpers
# ═══════════════════════════════════════════════════════════════════════════

def _read_metadata(metadata_ref: Path) -> ModelMetadata:
    try:
        with open(metadata_ref, encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as e:
        raise LoadError(f"metadata not found: {metadata_ref}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise LoadError(f"metadata unreadable: {metadata_ref}: {e}") from e
    try:
        return ModelMetadata.model_validate(raw)
    except ValidationError as e:
        raise LoadError(f"metadata malformed: {metadata_ref}: {e}") from e


def _load_keras_model(model_ref: Path) -> Any:
    """Load a TF.js layers model (model.json) or a Keras/SavedModel path."""
    if not model_ref.exists():
        raise LoadError(f"model not found: {model_ref}")

    os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "3")
    try:
        if model_ref.suffix == ".json":
            from tensorflowjs.converters import load_keras_model
            return load_keras_model(str(model_ref))
        import tensorflow as tf
        return tf.keras.models.load_model(str(model_ref), compile=False)
    except ImportError as e:
        raise LoadError(f"model backend unavailable ({e}); install the 'model' extra") from e
    except Exception as e:
        raise LoadError(f"model load failed: {model_ref}: {e}") from e


def _output_width(model: Any) -> Optional[int]:
    shape = getattr(model, "output_shape", None)
    if isinstance(shape, tuple) and shape and isinstance(shape[-1], int):
        return shape[-1]
    return None


def load_sync(model_ref: str | Path, metadata_ref: str | Path, model_loader=_load_keras_model) -> ClassifierCapability:
    model_ref = Path(model_ref)
    metadata_ref = Path(metadata_ref)
    logger.info(f"[classifier] loading model={model_ref} metadata={metadata_ref}")

    metadata = _read_metadata(metadata_ref)
    model = model_loader(model_ref)

    width = _output_width(model)
    if width is not None and width != len(metadata.labels):
        raise LoadError(
            f"model outputs {width} classes but metadata lists {len(metadata.labels)} labels"
        )

    cap = ClassifierCapability(model, metadata)
    logger.info(f"[classifier] loaded {cap.total_classes} classes: {cap.labels}")
    return cap


async def load(model_ref: str | Path, metadata_ref: str | Path, model_loader=_load_keras_model) -> ClassifierCapability:
    """
    Load the classifier capability from a model definition and its metadata.

    Raises:
        LoadError: either resource is missing or malformed.
    """
    return await asyncio.to_thread(load_sync, model_ref, metadata_ref, model_loader)
