"""
REST endpoints for the camera detector.
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response, StreamingResponse

from detector.config import Settings
from detector.context import DetectorContext
from detector.display import encode_jpeg
from detector.errors import DeviceError
from detector.models import DetectorStatus, DetectResult, Facing, ToggleResult

router = APIRouter()
settings = Settings()
context = DetectorContext(settings)
logger = logging.getLogger(__name__)

_BOUNDARY = "frame"


@router.get("/status", response_model=DetectorStatus)
async def get_status():
    """
    Current session state, model availability, confirmation prompt and result.
    """
    return context.status()


@router.post("/toggle", response_model=ToggleResult)
async def toggle(facing: Optional[Facing] = None):
    """
    Start/Stop button. The first press arms a confirmation prompt; the second
    press starts or stops the camera.

    Args:
        facing: Optional camera facing for this start ("user" or "environment").
    """
    logger.debug(f"[api] /toggle facing={facing} state={context.session.state}")
    try:
        return await context.press_toggle(facing)
    except DeviceError as e:
        logger.warning(f"[api] camera unavailable: {e}")
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/detect", response_model=DetectResult)
async def detect():
    """
    Classify the current camera frame. A no-op unless the camera is live and
    the model is loaded.
    """
    try:
        return await context.detect()
    except Exception as e:
        logger.exception("[api] detect failed")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/interact")
async def interact():
    """Any other UI interaction: disarms a pending toggle confirmation."""
    context.interact()
    return {"confirm_armed": context.confirm.armed}


@router.get("/frame")
async def frame():
    """The 300x300 display region as JPEG: placeholder when idle, camera when live."""
    return Response(content=encode_jpeg(context.frame(), settings.JPEG_QUALITY), media_type="image/jpeg")


async def _mjpeg():
    interval = 1.0 / settings.RENDER_FPS
    while True:
        try:
            jpg = encode_jpeg(context.frame(), settings.JPEG_QUALITY)
        except Exception:
            logger.exception("[api] stream frame encode failed")
        else:
            yield (
                f"--{_BOUNDARY}\r\nContent-Type: image/jpeg\r\nContent-Length: {len(jpg)}\r\n\r\n".encode()
                + jpg + b"\r\n"
            )
        await asyncio.sleep(interval)


@router.get("/stream")
async def stream():
    """MJPEG stream of the display region."""
    return StreamingResponse(_mjpeg(), media_type=f"multipart/x-mixed-replace; boundary={_BOUNDARY}")
