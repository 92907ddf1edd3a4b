"""
Shape metrics from a single landmark frame: EAR, MAR and brow raise.
"""
from __future__ import annotations
from typing import Any, Optional, Sequence

import numpy as np

from expressions import landmarks as lm
from expressions.models import Metrics


def _dist(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.linalg.norm(a - b))


def _safe_ratio(num: float, den: float) -> float:
    return num / den if den > 1e-9 else 0.0


def aspect_ratio(pts: np.ndarray, idx: Sequence[int]) -> float:
    """
    Six-point aspect ratio: (|p2-p6| + |p3-p5|) / (2 |p1-p4|).
    """
    p1, p2, p3, p4, p5, p6 = (pts[i] for i in idx)
    vertical = _dist(p2, p6) + _dist(p3, p5)
    horizontal = 2.0 * _dist(p1, p4)
    return _safe_ratio(vertical, horizontal)


def eye_aspect_ratio(pts: np.ndarray) -> float:
    """Mean EAR of both eyes; smaller means more closed."""
    left = aspect_ratio(pts, lm.LEFT_EYE)
    right = aspect_ratio(pts, lm.RIGHT_EYE)
    return (left + right) / 2.0


def mouth_aspect_ratio(pts: np.ndarray) -> float:
    """Inner-lip MAR; larger means more open."""
    return aspect_ratio(pts, lm.MOUTH)


def brow_raise_pct(pts: np.ndarray) -> float:
    """
    Vertical brow-to-eyelid gap as a fraction of face height, mean of both sides.

    Image y grows downward, so the gap is eyelid_y - brow_y.
    """
    face_h = _dist(pts[lm.FOREHEAD], pts[lm.CHIN])
    left = pts[lm.LEFT_EYE_TOP][1] - pts[lm.LEFT_BROW][1]
    right = pts[lm.RIGHT_EYE_TOP][1] - pts[lm.RIGHT_BROW][1]
    return _safe_ratio(float(left + right) / 2.0, face_h)


def extract_metrics(frame: Any) -> Optional[Metrics]:
    """
    Map one landmark frame to EAR/MAR/BROW.

    Args:
        frame: landmark frame (see ``landmarks.as_points``) or None when no face was found.

    Returns:
        Metrics, or None when there is no usable face in this frame.
    """
    pts = lm.as_points(frame)
    if pts is None:
        return None
    return Metrics(
        ear=eye_aspect_ratio(pts),
        mar=mouth_aspect_ratio(pts),
        brow=brow_raise_pct(pts),
    )
