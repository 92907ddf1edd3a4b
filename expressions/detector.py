"""
Expression event detector.

Turns per-frame EAR / MAR / BROW scalars into debounced boolean states and
activation counters (blinks, mouth opens, brow raises). Each expression runs
its own hysteresis state machine:

- values past the enter threshold are evidence for the active state
- values past the exit threshold are evidence for the inactive state
- values inside the band carry no evidence and leave pending counts as they are
- a transition is committed after ``min_frames`` consecutive confirming frames
  (``release_frames`` when leaving the active state)
- counters only move on activation edges

A frame without a face (``None``) is a no-op: pending counts are frozen, so a
brief detection gap neither confirms nor cancels a gesture in progress.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from expressions.metrics import extract_metrics
from expressions.models import (
    DetectorOutput,
    ExpressionName,
    Metrics,
    ThresholdConfig,
    ThresholdConfigError,
    ExpressionThresholds,
)

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    NONE = "none"
    TOWARD_ACTIVE = "toward_active"
    TOWARD_INACTIVE = "toward_inactive"


@dataclass
class ExpressionState:
    active: bool = False
    pending_direction: Direction = Direction.NONE
    pending_frames: int = 0
    counter: int = 0


class ExpressionHysteresis:
    """Debounce one expression with a hysteresis band and consecutive confirmations."""
    def __init__(self, name: ExpressionName, thresholds: ExpressionThresholds):
        self.name = name
        self.th = thresholds
        self.state = ExpressionState()

    def direction(self, value: float) -> Direction:
        """Evidence carried by a single value, ignoring history."""
        th = self.th
        if th.rising:
            if value >= th.enter_threshold:
                return Direction.TOWARD_ACTIVE
            if value <= th.exit_threshold:
                return Direction.TOWARD_INACTIVE
        else:
            if value <= th.enter_threshold:
                return Direction.TOWARD_ACTIVE
            if value >= th.exit_threshold:
                return Direction.TOWARD_INACTIVE
        return Direction.NONE

    def step(self, value: float) -> bool:
        """
        Feed one value.

        Returns:
            True if this value committed an activation edge (counter incremented).
        """
        s = self.state
        d = self.direction(value)
        if d is Direction.NONE:
            return False

        supports_active = d is Direction.TOWARD_ACTIVE
        if supports_active == s.active:
            # agrees with the confirmed state: any run toward the other side is broken
            s.pending_direction = Direction.NONE
            s.pending_frames = 0
            return False

        if d is s.pending_direction:
            s.pending_frames += 1
        else:
            s.pending_direction = d
            s.pending_frames = 1

        needed = self.th.min_frames if supports_active else self.th.release_frames
        if s.pending_frames < needed:
            return False

        s.active = supports_active
        s.pending_direction = Direction.NONE
        s.pending_frames = 0
        if s.active:
            s.counter += 1
            logger.debug(f"[detector] {self.name} confirmed value={value:.3f} count={s.counter}")
            return True
        logger.debug(f"[detector] {self.name} released value={value:.3f}")
        return False


def _coerce_thresholds(thresholds: ThresholdConfig | Mapping[str, Any] | None) -> ThresholdConfig:
    if thresholds is None:
        return ThresholdConfig()
    if isinstance(thresholds, ThresholdConfig):
        return thresholds
    if isinstance(thresholds, Mapping):
        return ThresholdConfig.from_mapping(thresholds)
    raise ThresholdConfigError(f"Unsupported threshold config type: {type(thresholds).__name__}")


class ExpressionDetector:
    """
    Blink / mouth-open / brow-raise counter.

    Not thread-safe: callers feed frames strictly in order, one at a time.
    """
    def __init__(self, thresholds: ThresholdConfig | Mapping[str, Any] | None = None):
        self.thresholds = _coerce_thresholds(thresholds)
        self._eye = ExpressionHysteresis("blink", self.thresholds.eye)
        self._mouth = ExpressionHysteresis("mouth_open", self.thresholds.mouth)
        self._brow = ExpressionHysteresis("brow_raise", self.thresholds.brow)
        self.last_events: Tuple[ExpressionName, ...] = ()

    def update(self, metrics: Optional[Metrics]) -> DetectorOutput:
        """
        Advance all three state machines by one frame.

        Args:
            metrics: metrics for this frame, or None when no face was detected.

        Returns:
            DetectorOutput snapshot after the update.
        """
        if metrics is None:
            self.last_events = ()
            return self.snapshot()

        events = []
        for machine, value in (
            (self._eye, metrics.ear),
            (self._mouth, metrics.mar),
            (self._brow, metrics.brow),
        ):
            if machine.step(value):
                events.append(machine.name)
        self.last_events = tuple(events)
        return self.snapshot()

    def process(self, frame: Any) -> DetectorOutput:
        """Extract metrics from a landmark frame (or None) and update."""
        return self.update(extract_metrics(frame))

    def reset_counters(self) -> None:
        """Zero the counters; active states and pending evidence are kept."""
        for machine in (self._eye, self._mouth, self._brow):
            machine.state.counter = 0
        logger.debug("[detector] counters reset")

    def snapshot(self) -> DetectorOutput:
        return DetectorOutput(
            eye_is_closed=self._eye.state.active,
            mouth_is_open=self._mouth.state.active,
            brow_is_raised=self._brow.state.active,
            blinks=self._eye.state.counter,
            mouth_opens=self._mouth.state.counter,
            brow_raises=self._brow.state.counter,
        )

    @property
    def states(self) -> Dict[str, ExpressionState]:
        """Copies of the per-expression states, keyed eye/mouth/brow."""
        return {
            "eye": replace(self._eye.state),
            "mouth": replace(self._mouth.state),
            "brow": replace(self._brow.state),
        }
