"""
Live desktop window (OpenCV imshow) driving the detector context.

Keys:
  s  - Start/Stop (press twice: the first press only asks for confirmation)
  d  - Detect: classify the current frame
  q  - quit
Any other key counts as "another interaction" and disarms the confirmation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import cv2

from detector.camera import CameraDevice
from detector.config import Settings
from detector.context import DetectorContext
from detector.display import draw_result, icon_for
from detector.errors import DeviceError
from detector.models import Facing

logger = logging.getLogger(__name__)

WINDOW_TITLE = "Detectron MK-2 (s=start/stop, d=detect, q=quit)"
KEY_TOGGLE = ord("s")
KEY_DETECT = ord("d")
KEY_QUIT = ord("q")


async def handle_key(ctx: DetectorContext, key: int, facing: Optional[Facing] = None) -> bool:
    """Apply one key press. Returns False when the window should close."""
    if key == KEY_QUIT:
        return False
    if key == KEY_TOGGLE:
        try:
            res = await ctx.press_toggle(facing)
        except DeviceError as e:
            logger.warning(f"[window] camera unavailable: {e}")
            return True
        if res.prompt:
            logger.info(f"[window] {res.prompt}")
    elif key == KEY_DETECT:
        res = await ctx.detect()
        if res.ran:
            logger.info(f"[window] {res.text} icon={icon_for(res.display.label)}")
    else:
        ctx.interact()
    return True


async def run_live_window(settings: Settings,
                          facing: Optional[Facing] = None,
                          device: Optional[CameraDevice] = None) -> None:
    """
    Open the detector window. The model is loaded once before the first frame.
    """
    ctx = DetectorContext(settings, device)
    if not await ctx.startup():
        logger.warning("[window] classifier not available - detect is disabled")

    interval = 1.0 / settings.RENDER_FPS
    try:
        while True:
            shown = ctx.frame()
            if ctx.session.is_live or ctx.prompt:
                shown = draw_result(shown, ctx.display, ctx.prompt)
            cv2.imshow(WINDOW_TITLE, shown)

            key = cv2.waitKey(1) & 0xFF
            if key != 0xFF and not await handle_key(ctx, key, facing):
                break
            # Yield so the render loop gets its ticks
            await asyncio.sleep(interval)
    finally:
        await ctx.shutdown()
        cv2.destroyAllWindows()
