"""Visualization helpers.

- draw_landmarks: dot a sample of the face mesh
- draw_overlays: landmarks + state badges (eyes / brows / mouth) + counters

Both return an annotated copy and leave the input frame untouched.
"""
from __future__ import annotations
import cv2
import numpy as np
from typing import Optional, Tuple

from expressions.models import DetectorOutput

ON_COLOR = (0, 0, 255)
OFF_COLOR = (0, 255, 0)


def draw_landmarks(frame: np.ndarray,
                   landmarks: Optional[np.ndarray],
                   step: int = 8,
                   color: Tuple[int, int, int] = (0, 255, 0)) -> np.ndarray:
    """Draw every ``step``-th landmark (normalized coords) as a small dot."""
    out = frame.copy()
    if landmarks is None or len(landmarks) == 0:
        return out
    h, w = out.shape[:2]
    for p in np.asarray(landmarks)[::max(1, step)]:
        x, y = int(p[0] * w), int(p[1] * h)
        if 0 <= x < w and 0 <= y < h:
            cv2.circle(out, (x, y), 2, color, -1, cv2.LINE_AA)
    return out


def draw_overlays(frame: np.ndarray,
                  landmarks: Optional[np.ndarray] = None,
                  output: Optional[DetectorOutput] = None,
                  face_detected: bool = True) -> np.ndarray:
    """Draw landmarks, expression badges and counters on a frame.

    Args:
        frame: BGR image
        landmarks: (N, 2|3) normalized landmarks, or None
        output: latest detector snapshot
        face_detected: when False a NO_FACE label is drawn

    Returns:
        Annotated copy of the frame
    """
    out = draw_landmarks(frame, landmarks)
    output = output or DetectorOutput()

    badges = [
        ("Eyes: closed" if output.eye_is_closed else "Eyes: open", output.eye_is_closed),
        ("Brows: raised" if output.brow_is_raised else "Brows: neutral", output.brow_is_raised),
        ("Mouth: open" if output.mouth_is_open else "Mouth: closed", output.mouth_is_open),
    ]
    y = 24
    for label, on in badges:
        cv2.putText(out, label, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6,
                    ON_COLOR if on else OFF_COLOR, 2, cv2.LINE_AA)
        y += 24

    counters = f"Blinks: {output.blinks}  Brows: {output.brow_raises}  Mouth: {output.mouth_opens}"
    cv2.putText(out, counters, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2, cv2.LINE_AA)

    if not face_detected:
        h = out.shape[0]
        cv2.putText(out, "NO_FACE", (10, h - 12), cv2.FONT_HERSHEY_SIMPLEX, 0.8, ON_COLOR, 2, cv2.LINE_AA)
    return out
