
import numpy as np
from expressions.models import DetectorOutput
from expressions.visual import draw_landmarks, draw_overlays

def test_draw_landmarks_marks_pixels_and_keeps_input(make_face):
    frame = np.zeros((120, 160, 3), dtype=np.uint8)
    out = draw_landmarks(frame, make_face())
    assert out.shape == frame.shape
    assert out.any()
    assert not frame.any()

def test_draw_landmarks_none():
    frame = np.zeros((40, 40, 3), dtype=np.uint8)
    assert not draw_landmarks(frame, None).any()

def test_draw_overlays_cases(make_face):
    frame = np.zeros((120, 200, 3), dtype=np.uint8)
    out1 = draw_overlays(frame, None, None, face_detected=False)
    assert out1.shape == frame.shape and out1.any()
    out2 = draw_overlays(frame, make_face(), DetectorOutput(eye_is_closed=True, blinks=4))
    assert out2.shape == frame.shape
    # active badge is drawn in the "on" colour (red channel in BGR)
    assert out2[..., 2].any()
    assert not frame.any()
