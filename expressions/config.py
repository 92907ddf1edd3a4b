"""
Configuration for the expression counter.
"""
from pydantic import BaseModel
import logging
import os

class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))
    FRAME_WIDTH: int = int(os.getenv("FRAME_WIDTH", "640"))
    FRAME_HEIGHT: int = int(os.getenv("FRAME_HEIGHT", "480"))

    FACE_LANDMARKER_MODEL: str = os.getenv("FACE_LANDMARKER_MODEL", "models/face_landmarker.task")
    MIN_DETECTION_CONFIDENCE: float = float(os.getenv("MIN_DETECTION_CONFIDENCE", "0.5"))
    MIN_TRACKING_CONFIDENCE: float = float(os.getenv("MIN_TRACKING_CONFIDENCE", "0.5"))

    THRESHOLDS_PATH: str = os.getenv("THRESHOLDS_PATH", "config/thresholds.json")
    THRESHOLDS_OVERRIDE_PATH: str | None = (
        os.getenv("THRESHOLDS_OVERRIDE_PATH", "config/thresholds.override.json") or None
    )

    REPORT_URL: str = os.getenv("REPORT_URL", "")
    REPORT_MIN_INTERVAL: float = float(os.getenv("REPORT_MIN_INTERVAL", "0.8"))
    REPORT_TIMEOUT: float = float(os.getenv("REPORT_TIMEOUT", "5"))

    LOG_LEVEL: str = (os.getenv("LOG_LEVEL", "INFO") or "INFO")

    def __init__(self, **data):
        super().__init__(**data)
        # Normalize LOG_LEVEL: strip comments/extra words, upper-case, validate
        parts = (self.LOG_LEVEL or "INFO").strip().split()
        level = parts[0].upper() if parts else "INFO"
        if not isinstance(logging.getLevelName(level), int):
            level = "INFO"
        object.__setattr__(self, "LOG_LEVEL", level)
