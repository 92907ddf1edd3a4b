"""
Pydantic data models for thresholds, detector IO and API payloads.
"""
from __future__ import annotations
from abc import abstractmethod
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from typing import Any, ClassVar, List, Literal, Mapping, Optional


class ThresholdConfigError(ValueError):
    """Raised when a threshold configuration leaves no hysteresis band or has a bad frame count."""


class _ValidatedConfig(BaseModel):
    """Re-raises construction errors as ThresholdConfigError."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    def __init__(self, **data):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ThresholdConfigError(str(e)) from e


class ExpressionThresholds(_ValidatedConfig):
    min_frames: int = Field(2, ge=1)
    release_frames: int = Field(1, ge=1)

    # Generic view used by the detector:
    #   rising=True  -> active when value >= enter_threshold (mouth, brow)
    #   rising=False -> active when value <= enter_threshold (eye)
    rising: ClassVar[bool] = True

    @property
    @abstractmethod
    def enter_threshold(self) -> float: ...

    @property
    @abstractmethod
    def exit_threshold(self) -> float: ...

    @model_validator(mode="after")
    def _check_band(self):
        enter, exit_ = self.enter_threshold, self.exit_threshold
        ordered = enter > exit_ if self.rising else enter < exit_
        if not ordered:
            side = "above" if self.rising else "below"
            raise ValueError(
                f"{type(self).__name__}: enter threshold {enter} must be strictly {side} "
                f"exit threshold {exit_} to leave a hysteresis band"
            )
        return self


class EyeThresholds(ExpressionThresholds):
    close_threshold: float = 0.20
    open_threshold: float = 0.25
    rising: ClassVar[bool] = False

    @property
    def enter_threshold(self) -> float:
        return self.close_threshold

    @property
    def exit_threshold(self) -> float:
        return self.open_threshold


class MouthThresholds(ExpressionThresholds):
    open_threshold: float = 0.60
    close_threshold: float = 0.50

    @property
    def enter_threshold(self) -> float:
        return self.open_threshold

    @property
    def exit_threshold(self) -> float:
        return self.close_threshold


class BrowThresholds(ExpressionThresholds):
    raise_threshold_pct: float = 0.08
    relax_threshold_pct: float = 0.04

    @property
    def enter_threshold(self) -> float:
        return self.raise_threshold_pct

    @property
    def exit_threshold(self) -> float:
        return self.relax_threshold_pct


class ThresholdConfig(_ValidatedConfig):
    """Thresholds for the three expressions; serialized with the EAR/MAR/BROW keys."""

    eye: EyeThresholds = Field(default_factory=EyeThresholds, alias="EAR")
    mouth: MouthThresholds = Field(default_factory=MouthThresholds, alias="MAR")
    brow: BrowThresholds = Field(default_factory=BrowThresholds, alias="BROW")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ThresholdConfig":
        """
        Validate a threshold document (e.g. parsed thresholds.json).

        Raises:
            ThresholdConfigError: if any record is malformed.
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise ThresholdConfigError(str(e)) from e

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class Metrics(BaseModel):
    """Scalar shape metrics for one landmark frame."""
    model_config = ConfigDict(frozen=True)

    ear: float
    mar: float
    brow: float


class DetectorOutput(BaseModel):
    """Read-only snapshot of the detector after one update."""
    model_config = ConfigDict(frozen=True)

    eye_is_closed: bool = False
    mouth_is_open: bool = False
    brow_is_raised: bool = False
    blinks: int = 0
    mouth_opens: int = 0
    brow_raises: int = 0

    def counters(self) -> tuple[int, int, int]:
        return self.blinks, self.mouth_opens, self.brow_raises


class CounterReport(BaseModel):
    """Outbound payload; aliases are the field names of the remote resource."""
    model_config = ConfigDict(populate_by_name=True)

    blinks: int = Field(0, alias="Parpadeo")
    brow_raises: int = Field(0, alias="Cejas")
    mouth_opens: int = Field(0, alias="Boca")
    timestamp: str = Field(..., alias="Fecha_Hora")


ExpressionName = Literal["blink", "mouth_open", "brow_raise"]

class ExpressionEvent(BaseModel):
    time: float
    frame: int
    expression: ExpressionName

class VideoAnalysis(BaseModel):
    blinks: int
    mouth_opens: int
    brow_raises: int
    frames_total: int
    frames_with_face: int
    fps: float
    events: List[ExpressionEvent] = Field(default_factory=list)


# api payloads

class LandmarkPayload(BaseModel):
    landmarks: List[List[float]]

class MetricsResponse(BaseModel):
    face_detected: bool
    metrics: Optional[Metrics] = None

class LiveStatus(BaseModel):
    running: bool
    started_at: float | None = None
    frames_processed: int = 0
    face_detected: bool = False
    last_output: DetectorOutput | None = None
