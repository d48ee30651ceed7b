"""
On-demand classification of the current camera frame.

Never driven by the render loop: inference runs only when the user asks.
"""
from __future__ import annotations
import logging
from typing import List, Optional

from detector.camera import CameraSession
from detector.classifier import ClassifierCapability
from detector.models import PredictionEntry

logger = logging.getLogger(__name__)


async def classify(capability: Optional[ClassifierCapability],
                   session: Optional[CameraSession]) -> Optional[List[PredictionEntry]]:
    """
    Classify the session's current frame.

    Returns:
        The first ``total_classes`` entries in classifier order, or None when
        there is no model, no live session, or no frame yet.
    """
    if capability is None:
        logger.debug("[classify] skipped: model not loaded")
        return None
    if session is None or not session.is_live:
        logger.debug("[classify] skipped: session not live")
        return None
    frame = session.current_frame
    if frame is None:
        logger.debug("[classify] skipped: no frame yet")
        return None

    predictions = await capability.predict(frame)
    return list(predictions)[:capability.total_classes]
