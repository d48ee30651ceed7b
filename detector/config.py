"""
Configuration for the camera detector.
"""
from pathlib import Path
from pydantic import BaseModel
import os


def _env_flag(name: str, default: str) -> bool:
    return (os.getenv(name, default) or default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    MODEL_DIR: str = os.getenv("MODEL_DIR", "model")
    MODEL_FILE: str = os.getenv("MODEL_FILE", "model.json")
    METADATA_FILE: str = os.getenv("METADATA_FILE", "metadata.json")

    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))
    ENVIRONMENT_CAMERA_INDEX: int | None = (
        int(os.getenv("ENVIRONMENT_CAMERA_INDEX")) if os.getenv("ENVIRONMENT_CAMERA_INDEX") else None
    )
    PREFERRED_FACING: str = (os.getenv("PREFERRED_FACING", "user") or "user")
    FRAME_WIDTH: int = int(os.getenv("FRAME_WIDTH", "300"))
    FRAME_HEIGHT: int = int(os.getenv("FRAME_HEIGHT", "300"))
    MIRRORED: bool = _env_flag("MIRRORED", "0")
    RENDER_FPS: float = float(os.getenv("RENDER_FPS", "30"))

    CONFIDENCE_PARITY: bool = _env_flag("CONFIDENCE_PARITY", "1")
    JPEG_QUALITY: int = int(os.getenv("JPEG_QUALITY", "85"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "DEBUG")

    def __init__(self, **data):
        super().__init__(**data)
        # Normalize PREFERRED_FACING: lower-case, fall back to the front camera
        facing = (self.PREFERRED_FACING or "user").strip().lower()
        if facing not in ("user", "environment"):
            facing = "user"
        object.__setattr__(self, "PREFERRED_FACING", facing)
        if self.RENDER_FPS <= 0:
            object.__setattr__(self, "RENDER_FPS", 30.0)

    @property
    def model_path(self) -> Path:
        return Path(self.MODEL_DIR) / self.MODEL_FILE

    @property
    def metadata_path(self) -> Path:
        return Path(self.MODEL_DIR) / self.METADATA_FILE
