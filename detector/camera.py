"""
Camera session: lifecycle of one live capture stream.

States: idle -> acquiring -> live -> idle. Only one session may be live at a
time; ``start`` on a non-idle session is rejected and leaves state unchanged.
``is_live`` doubles as the liveness flag the render loop polls each tick.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional

import cv2
import numpy as np

from detector.classifier import center_crop_resize
from detector.config import Settings
from detector.errors import DeviceError, FrameError
from detector.models import Facing, SessionState

logger = logging.getLogger(__name__)


class CameraDevice(ABC):
    """Raw capture device. Implementations may block; open, read and release all run in worker threads."""

    @abstractmethod
    def open(self, facing: Facing, width: int, height: int) -> None:
        """Acquire the device. Raises DeviceError when it cannot be opened."""
        ...

    @abstractmethod
    def read(self) -> Optional[np.ndarray]:
        """Newest BGR frame, or None on failure."""
        ...

    @abstractmethod
    def release(self) -> None:
        ...


class CV2Camera(CameraDevice):
    """
    OpenCV webcam device.

    Facing has no meaning to VideoCapture, so it maps to a device index:
    CAMERA_INDEX for "user", ENVIRONMENT_CAMERA_INDEX (if set) for "environment".
    """

    def __init__(self, settings: Settings):
        self.s = settings
        self._cap = None

    def index_for(self, facing: Facing) -> int:
        if facing == "environment" and self.s.ENVIRONMENT_CAMERA_INDEX is not None:
            return self.s.ENVIRONMENT_CAMERA_INDEX
        return self.s.CAMERA_INDEX

    def open(self, facing: Facing, width: int, height: int) -> None:
        idx = self.index_for(facing)
        cap = cv2.VideoCapture(idx)
        if not cap.isOpened():
            cap.release()
            raise DeviceError(f"Could not open camera index {idx}")
        # A hint only; frames are cropped/resized by the session anyway
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        self._cap = cap
        logger.info(f"[camera] opened index={idx} facing={facing}")

    def read(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None
        ok, frame = self._cap.read()
        if not ok or frame is None:
            return None
        return frame

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("[camera] released")


class CameraSession:
    """Owns one capture device stream and its state machine."""

    def __init__(self, device: CameraDevice, width: int = 300, height: int = 300, mirrored: bool = False):
        self.device = device
        self.width = int(width)
        self.height = int(height)
        self.mirrored = bool(mirrored)
        self.facing: Optional[Facing] = None
        self._state: SessionState = "idle"
        self._frame: Optional[np.ndarray] = None
        # Serializes device reads against release; reads run in worker threads
        self._io = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, device: Optional[CameraDevice] = None) -> "CameraSession":
        return cls(
            device if device is not None else CV2Camera(settings),
            width=settings.FRAME_WIDTH,
            height=settings.FRAME_HEIGHT,
            mirrored=settings.MIRRORED,
        )

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_live(self) -> bool:
        return self._state == "live"

    @property
    def current_frame(self) -> Optional[np.ndarray]:
        return self._frame

    # ---- lifecycle ----
    async def start(self, facing: Facing = "user") -> bool:
        """
        Acquire the device and go live.

        Returns:
            bool: False when the guard rejects the start (session not idle).

        Raises:
            DeviceError: device missing or permission denied; state is back to idle.
        """
        if self._state != "idle":
            logger.warning(f"[camera] start rejected: state={self._state}")
            return False

        self._state = "acquiring"
        self.facing = facing
        logger.debug(f"[camera] acquiring facing={facing} {self.width}x{self.height} mirrored={self.mirrored}")
        try:
            await asyncio.to_thread(self.device.open, facing, self.width, self.height)
        except DeviceError:
            self._state = "idle"
            self.facing = None
            raise
        except Exception as e:
            self._state = "idle"
            self.facing = None
            raise DeviceError(f"camera acquisition failed: {e}") from e

        self._state = "live"
        logger.info("[camera] live")
        return True

    def read_raw(self) -> Optional[np.ndarray]:
        """Blocking device read. Waits for the camera's next frame; call it off the event loop."""
        with self._io:
            return self.device.read()

    def accept(self, raw: Optional[np.ndarray]) -> np.ndarray:
        """Fit a raw device frame to the session size and make it the current frame."""
        if not self.is_live:
            raise FrameError("session is not live")
        if raw is None:
            raise FrameError("camera returned no frame")
        frame = center_crop_resize(raw, self.width, self.height)
        if self.mirrored:
            frame = cv2.flip(frame, 1)
        self._frame = frame
        return frame

    def refresh(self) -> np.ndarray:
        """Pull the newest frame from the device. Raises FrameError on a bad read."""
        if not self.is_live:
            raise FrameError("session is not live")
        return self.accept(self.read_raw())

    def _release(self) -> None:
        with self._io:
            self.device.release()

    async def stop(self) -> bool:
        """Leave live state first (stops the render loop), then release the device."""
        if self._state != "live":
            logger.debug(f"[camera] stop ignored: state={self._state}")
            return False
        self._state = "idle"
        self._frame = None
        try:
            await asyncio.to_thread(self._release)
        finally:
            self.facing = None
        logger.info("[camera] stopped")
        return True

    def close(self) -> None:
        """Synchronous teardown used at shutdown."""
        self._state = "idle"
        self._frame = None
        self.facing = None
        self._release()
