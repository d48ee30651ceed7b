"""
Pydantic data models for predictions, display state and API IO.
"""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import List, Optional, Literal

Facing = Literal["user", "environment"]
SessionState = Literal["idle", "acquiring", "live"]


class PredictionEntry(BaseModel):
    label: str
    probability: Optional[float] = None


class DisplayState(BaseModel):
    label: str = ""
    confidence_percent: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.label


class ModelMetadata(BaseModel):
    """Subset of a Teachable Machine metadata.json we rely on."""
    labels: List[str] = Field(min_length=1)
    imageSize: int = 224
    tmVersion: Optional[str] = None
    modelName: Optional[str] = None


# api models


class ToggleResult(BaseModel):
    armed: bool
    prompt: Optional[str] = None
    state: SessionState
    changed: bool = False


class DetectResult(BaseModel):
    ran: bool
    display: DisplayState
    text: str
    icon: Optional[Literal["dog", "cat"]] = None
    predictions: List[PredictionEntry] = Field(default_factory=list)


class DetectorStatus(BaseModel):
    state: SessionState
    model_loaded: bool
    total_classes: Optional[int] = None
    facing: Optional[Facing] = None
    confirm_armed: bool = False
    prompt: Optional[str] = None
    display: DisplayState
    text: str
    icon: Optional[Literal["dog", "cat"]] = None
