"""
Detector context: the single owner of all UI-facing state.

Holds the classifier capability, the camera session, the display surface,
the render loop, the toggle confirmation and the current display state.
Every user action goes through here.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from detector import classifier as classifier_mod
from detector.camera import CameraDevice, CameraSession
from detector.classifier import ClassifierCapability
from detector.config import Settings
from detector.display import DisplaySurface, icon_for, placeholder_image, result_text
from detector.errors import DataError, LoadError
from detector.interpreter import interpret
from detector.models import DetectorStatus, DetectResult, DisplayState, Facing, ToggleResult
from detector.render import RenderLoop
from detector.trigger import classify

logger = logging.getLogger(__name__)

PROMPT_START = "¡Presiona de nuevo, para despertar la maquina!"
PROMPT_STOP = "¡Presiona de nuevo, para apagar la maquina!"


class ToggleConfirmation:
    """Two-press gate: press #1 arms, press #2 fires and disarms; anything else resets."""

    def __init__(self):
        self.armed = False

    def press(self) -> bool:
        """Returns True when this press should fire the toggle."""
        if not self.armed:
            self.armed = True
            return False
        self.armed = False
        return True

    def reset(self) -> None:
        self.armed = False


class DetectorContext:
    def __init__(self, settings: Settings, device: Optional[CameraDevice] = None):
        self.s = settings
        self.capability: Optional[ClassifierCapability] = None
        self.session = CameraSession.from_settings(settings, device)
        self.surface = DisplaySurface(settings.FRAME_WIDTH, settings.FRAME_HEIGHT)
        self.render_loop: Optional[RenderLoop] = None
        self.confirm = ToggleConfirmation()
        self.display = DisplayState()
        self._placeholder = placeholder_image(settings.FRAME_WIDTH, settings.FRAME_HEIGHT)
        self._transition = asyncio.Lock()
        self._started_up = False

    # ---- startup ----
    async def startup(self) -> bool:
        """Load the classifier once. A LoadError is logged and leaves the feature disabled."""
        if self._started_up:
            return self.capability is not None
        self._started_up = True
        try:
            self.capability = await classifier_mod.load(self.s.model_path, self.s.metadata_path)
        except LoadError:
            logger.exception("[startup] classifier load failed; detection disabled")
            self.capability = None
        return self.capability is not None

    @property
    def total_classes(self) -> Optional[int]:
        return self.capability.total_classes if self.capability is not None else None

    # ---- session lifecycle ----
    async def start_session(self, facing: Optional[Facing] = None) -> bool:
        """Start the camera and the render loop. DeviceError propagates; state stays idle."""
        async with self._transition:
            started = await self.session.start(facing or self.s.PREFERRED_FACING)
            if not started:
                return False
            self.render_loop = RenderLoop(self.session, self.surface, self.s.RENDER_FPS)
            self.render_loop.start()
            return True

    async def stop_session(self) -> bool:
        async with self._transition:
            return await self._stop_locked()

    async def _stop_locked(self) -> bool:
        if not await self.session.stop():
            return False
        if self.render_loop is not None:
            await self.render_loop.wait()
            self.render_loop = None
        # Cleared after the loop's last tick, so the blank canvas is final
        self.surface.clear()
        self.display = DisplayState()
        return True

    async def press_toggle(self, facing: Optional[Facing] = None) -> ToggleResult:
        """
        Start/Stop button. First press only arms the confirmation prompt;
        the second press starts or stops the session.
        """
        if self.session.state == "acquiring":
            logger.debug("[toggle] ignored while acquiring")
            return ToggleResult(armed=self.confirm.armed, prompt=self.prompt, state=self.session.state)

        if not self.confirm.press():
            return ToggleResult(armed=True, prompt=self.prompt, state=self.session.state)

        if self.session.is_live:
            changed = await self.stop_session()
        else:
            changed = await self.start_session(facing)
        return ToggleResult(armed=False, state=self.session.state, changed=changed)

    def interact(self) -> None:
        """Any interaction other than the toggle disarms the confirmation."""
        self.confirm.reset()

    @property
    def prompt(self) -> Optional[str]:
        if not self.confirm.armed:
            return None
        return PROMPT_STOP if self.session.is_live else PROMPT_START

    # ---- detection ----
    async def detect(self) -> DetectResult:
        """Detect button: classify the current frame and replace the display state."""
        self.interact()
        if not self.session.is_live or self.capability is None:
            return self._detect_result(ran=False)

        predictions = await classify(self.capability, self.session)
        if predictions is None:
            return self._detect_result(ran=False)
        if not self.session.is_live:
            # stopped while inference was in flight; the cleared state wins
            logger.debug("[detect] session stopped during inference; result dropped")
            return self._detect_result(ran=False)

        try:
            state = interpret(predictions, parity=self.s.CONFIDENCE_PARITY)
        except DataError as e:
            logger.warning(f"[detect] no result: {e}")
            state = DisplayState()
        self.display = state
        logger.info(f"[detect] {result_text(state)}")
        return self._detect_result(ran=True, predictions=predictions)

    def _detect_result(self, ran: bool, predictions=None) -> DetectResult:
        return DetectResult(
            ran=ran,
            display=self.display,
            text=result_text(self.display),
            icon=icon_for(self.display.label),
            predictions=predictions or [],
        )

    # ---- views ----
    def frame(self):
        """What the display region shows right now."""
        if self.session.is_live:
            return self.surface.snapshot()
        return self._placeholder.copy()

    def status(self) -> DetectorStatus:
        return DetectorStatus(
            state=self.session.state,
            model_loaded=self.capability is not None,
            total_classes=self.total_classes,
            facing=self.session.facing,
            confirm_armed=self.confirm.armed,
            prompt=self.prompt,
            display=self.display,
            text=result_text(self.display),
            icon=icon_for(self.display.label),
        )

    async def shutdown(self) -> None:
        # Taking the transition lock waits out a start still acquiring the device
        async with self._transition:
            if self.session.is_live:
                await self._stop_locked()
            else:
                self.session.close()
