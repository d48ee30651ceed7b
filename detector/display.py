"""Display surface & result rendering helpers.

- DisplaySurface: fixed-size canvas the render loop paints camera frames onto
- placeholder_image: what the surface shows while no session is live
- result_text / icon_for: the "Es un: ..." line and its dog/cat icon
- draw_result: burn the result line into a frame (desktop window)
"""
from __future__ import annotations
import cv2
import numpy as np
from typing import Optional, Tuple

from detector.interpreter import CAT_LABEL, DOG_LABEL
from detector.models import DisplayState

_ICONS = {DOG_LABEL: "dog", CAT_LABEL: "cat"}


class DisplaySurface:
    """A width x height BGR canvas. ``paint`` draws at (0, 0), clipped to the canvas."""

    def __init__(self, width: int = 300, height: int = 300):
        self.width = int(width)
        self.height = int(height)
        self.canvas = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        self.painted = False

    def paint(self, frame: np.ndarray) -> None:
        h = min(self.height, frame.shape[0])
        w = min(self.width, frame.shape[1])
        self.canvas[:h, :w] = frame[:h, :w]
        self.painted = True

    def clear(self) -> None:
        self.canvas[:] = 0
        self.painted = False

    def snapshot(self) -> np.ndarray:
        return self.canvas.copy()


def placeholder_image(width: int = 300, height: int = 300) -> np.ndarray:
    """Gray panel with a simple camera glyph."""
    img = np.full((height, width, 3), 229, dtype=np.uint8)
    cx, cy = width // 2, height // 2
    bw, bh = width // 3, height // 5
    cv2.rectangle(img, (cx - bw // 2, cy - bh // 2), (cx + bw // 2, cy + bh // 2), (80, 80, 80), 2)
    cv2.circle(img, (cx, cy), max(4, bh // 3), (80, 80, 80), 2)
    cv2.rectangle(img, (cx - bw // 6, cy - bh // 2 - 8), (cx + bw // 6, cy - bh // 2), (80, 80, 80), -1)
    return img


def icon_for(label: str) -> Optional[str]:
    return _ICONS.get(label)


def result_text(state: DisplayState) -> str:
    return f"Es un: {state.label} - {state.confidence_percent:.2f}%"


def draw_result(frame: np.ndarray,
                state: DisplayState,
                prompt: Optional[str] = None,
                color: Tuple[int, int, int] = (115, 196, 31)) -> np.ndarray:
    """Draw the result line (and the confirmation prompt, if armed) on a copy of frame."""
    out = frame.copy()
    h = out.shape[0]
    if prompt:
        cv2.putText(out, prompt, (5, 20), cv2.FONT_HERSHEY_SIMPLEX, 0.4, (0, 160, 0), 1, cv2.LINE_AA)
    if not state.is_empty:
        cv2.putText(out, result_text(state), (5, h - 10), cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 2, cv2.LINE_AA)
    return out


def encode_jpeg(img: np.ndarray, quality: int = 85) -> bytes:
    ok, buf = cv2.imencode(".jpg", img, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise RuntimeError("JPEG encoding failed")
    return bytes(buf)
