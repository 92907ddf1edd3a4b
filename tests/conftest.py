import pytest
import numpy as np
from pathlib import Path

from expressions import landmarks as lm

# Base data directory relative to repo root
CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


def _set_aspect(pts, idx, x0, y0, width, ratio):
    # p1/p4 corners, p2/p3 upper, p6/p5 lower; each vertical pair is ratio*width apart
    p1, p2, p3, p4, p5, p6 = idx
    half = ratio * width / 2.0
    pts[p1, :2] = (x0, y0)
    pts[p4, :2] = (x0 + width, y0)
    pts[p2, :2] = (x0 + width * 0.3, y0 - half)
    pts[p6, :2] = (x0 + width * 0.3, y0 + half)
    pts[p3, :2] = (x0 + width * 0.7, y0 - half)
    pts[p5, :2] = (x0 + width * 0.7, y0 + half)


def build_face(ear=0.30, mar=0.10, brow=0.06, n=478):
    """Synthetic Face Mesh frame whose EAR / MAR / BROW equal the given values."""
    pts = np.full((n, 3), 0.5, dtype=np.float64)
    pts[:, 2] = 0.0
    pts[lm.FOREHEAD, :2] = (0.5, 0.2)
    pts[lm.CHIN, :2] = (0.5, 0.8)  # face height 0.6
    _set_aspect(pts, lm.LEFT_EYE, 0.35, 0.40, 0.10, ear)
    _set_aspect(pts, lm.RIGHT_EYE, 0.55, 0.40, 0.10, ear)
    _set_aspect(pts, lm.MOUTH, 0.42, 0.65, 0.16, mar)
    for eye_top, brow_pt, x in ((lm.LEFT_EYE_TOP, lm.LEFT_BROW, 0.40), (lm.RIGHT_EYE_TOP, lm.RIGHT_BROW, 0.60)):
        pts[eye_top, :2] = (x, 0.38)
        pts[brow_pt, :2] = (x, 0.38 - brow * 0.6)
    return pts


@pytest.fixture
def make_face():
    return build_face

@pytest.fixture
def thresholds_path():
    return CONFIG_DIR / "thresholds.json"
