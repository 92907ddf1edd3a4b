import types
import numpy as np
import pytest

from expressions import landmarks as lm
from expressions.metrics import extract_metrics, aspect_ratio, eye_aspect_ratio


def test_extract_metrics_matches_geometry(make_face):
    m = extract_metrics(make_face(ear=0.28, mar=0.65, brow=0.09))
    assert m.ear == pytest.approx(0.28)
    assert m.mar == pytest.approx(0.65)
    assert m.brow == pytest.approx(0.09)


def test_metrics_are_scale_invariant(make_face):
    face = make_face(ear=0.22, mar=0.3, brow=0.07)
    # shrink the face around the centre, as if it were further from the camera
    small = face.copy()
    small[:, :2] = 0.5 + (small[:, :2] - 0.5) * 0.5
    a, b = extract_metrics(face), extract_metrics(small)
    assert b.ear == pytest.approx(a.ear)
    assert b.mar == pytest.approx(a.mar)
    assert b.brow == pytest.approx(a.brow)


def test_closed_eye_has_smaller_ear(make_face):
    assert extract_metrics(make_face(ear=0.1)).ear < extract_metrics(make_face(ear=0.3)).ear


def test_z_is_ignored(make_face):
    face = make_face(ear=0.25)
    tilted = face.copy()
    tilted[:, 2] = np.linspace(-0.2, 0.2, len(face))
    assert extract_metrics(tilted).ear == pytest.approx(extract_metrics(face).ear)


def test_accepts_tuples_and_landmark_objects(make_face):
    face = make_face(ear=0.2, mar=0.4)
    as_tuples = [tuple(p) for p in face.tolist()]
    as_objects = [types.SimpleNamespace(x=p[0], y=p[1], z=p[2]) for p in face]
    expected = extract_metrics(face)
    assert extract_metrics(as_tuples) == expected
    assert extract_metrics(as_objects) == expected


def test_no_face_or_malformed_frame_is_none(make_face):
    assert extract_metrics(None) is None
    assert extract_metrics(make_face()[:100]) is None
    assert extract_metrics(np.zeros(10)) is None
    assert extract_metrics([[0.1, 0.2], [0.3]]) is None
    bad = make_face()
    bad[lm.CHIN, 1] = np.nan
    assert extract_metrics(bad) is None


def test_uncoercible_frames_are_none(make_face):
    assert extract_metrics(np.full((468, 2), "n/a", dtype=object)) is None
    pts = [types.SimpleNamespace(x=p[0], y=p[1]) for p in make_face()]
    pts[-1] = types.SimpleNamespace(x=0.5)
    assert extract_metrics(pts) is None


def test_degenerate_width_gives_zero():
    pts = np.zeros((468, 2))
    assert aspect_ratio(pts, lm.LEFT_EYE) == 0.0
    assert eye_aspect_ratio(pts) == 0.0
    m = extract_metrics(pts)
    assert (m.ear, m.mar, m.brow) == (0.0, 0.0, 0.0)
