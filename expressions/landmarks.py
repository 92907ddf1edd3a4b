"""
Face Mesh landmark roles and frame normalization.

Indices follow the MediaPipe Face Mesh topology (468 points, 478 with refined
irises). Eye and mouth groups are ordered p1..p6 for the aspect-ratio formula:
p1/p4 are the corners, p2/p3 the upper contour and p6/p5 the lower contour.
"""
from __future__ import annotations
from typing import Any, Optional, Sequence
import logging

import numpy as np

logger = logging.getLogger(__name__)

# Eyes (subject's left is image right for a mirrored selfie view)
LEFT_EYE = (33, 160, 158, 133, 153, 144)
RIGHT_EYE = (362, 385, 387, 263, 373, 380)

# Inner lip contour
MOUTH = (78, 81, 311, 308, 402, 178)

# Brow reference -> upper eyelid reference, per side
LEFT_BROW = 105
LEFT_EYE_TOP = 159
RIGHT_BROW = 334
RIGHT_EYE_TOP = 386

# Face-scale reference (forehead -> chin)
FOREHEAD = 10
CHIN = 152

MIN_LANDMARKS = 468


def as_points(frame: Any) -> Optional[np.ndarray]:
    """
    Normalize a landmark frame to an (N, 2) float array of x/y coordinates.

    Accepts a numpy array (N, 2|3), a sequence of (x, y[, z]) tuples, or a
    sequence of objects with ``.x``/``.y`` attributes (MediaPipe landmarks).

    Returns None when the frame does not satisfy the shape contract.
    """
    if frame is None:
        return None
    try:
        if isinstance(frame, np.ndarray):
            pts = frame
        else:
            seq: Sequence[Any] = list(frame)
            if seq and hasattr(seq[0], "x"):
                pts = np.array([[p.x, p.y] for p in seq], dtype=np.float64)
            else:
                pts = np.asarray(seq, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] < 2 or pts.shape[0] < MIN_LANDMARKS:
            logger.debug(f"[landmarks] rejecting frame with shape {pts.shape}")
            return None
        pts = pts[:, :2].astype(np.float64, copy=False)
    except (AttributeError, TypeError, ValueError):
        logger.debug("[landmarks] frame is not coercible to an array", exc_info=True)
        return None

    if not np.all(np.isfinite(pts)):
        logger.debug("[landmarks] rejecting frame with non-finite coordinates")
        return None
    return pts
