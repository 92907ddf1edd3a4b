# expressions/live.py
"""
Live (real-time) expression counting.

Reads webcam frames, extracts face landmarks with MediaPipe, and feeds one
landmark frame (or None when no face is found) per captured frame into the
ExpressionDetector. Counter changes are forwarded to the CounterReporter.

- LiveSession: background thread, no UI; status()/reset_counters() are safe
  to call from another thread (e.g. the API)
- run_live_overlay: OpenCV window with landmarks, badges and counters
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

import cv2
import numpy as np

from expressions.config import Settings
from expressions.detector import ExpressionDetector
from expressions.landmarker import FaceLandmarkSource
from expressions.metrics import extract_metrics
from expressions.models import DetectorOutput, LiveStatus
from expressions.reporter import CounterReporter
from expressions.thresholds import load_thresholds
from expressions.visual import draw_overlays

logger = logging.getLogger(__name__)

WINDOW_NAME = "Expression Counter"


def build_detector(settings: Settings) -> ExpressionDetector:
    """Detector with thresholds from THRESHOLDS_PATH merged with THRESHOLDS_OVERRIDE_PATH."""
    return ExpressionDetector(load_thresholds(settings.THRESHOLDS_PATH, settings.THRESHOLDS_OVERRIDE_PATH))


def open_camera(settings: Settings, camera_index: Optional[int] = None):
    cam_idx = settings.CAMERA_INDEX if camera_index is None else camera_index
    cap = cv2.VideoCapture(cam_idx)
    if not cap.isOpened():
        raise RuntimeError(f"Could not open camera index {cam_idx}")
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, settings.FRAME_WIDTH)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, settings.FRAME_HEIGHT)
    return cap


# -----------------------------------------------------------------------------
# LiveSession: background capture thread (no UI overlay)
# -----------------------------------------------------------------------------
class LiveSession:
    """Runs the capture -> landmarks -> detector loop on a daemon thread."""
    def __init__(self,
                 settings: Settings,
                 detector: Optional[ExpressionDetector] = None,
                 source_factory: Optional[Callable[[], FaceLandmarkSource]] = None,
                 reporter: Optional[CounterReporter] = None):
        self.s = settings
        self.detector = detector or build_detector(settings)
        self._source_factory = source_factory or (lambda: FaceLandmarkSource(settings))
        self.reporter = reporter or CounterReporter.from_settings(settings)
        self._run = False
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._started_at: Optional[float] = None
        self._frames = 0
        self._face = False
        self._last_output: Optional[DetectorOutput] = None

    # ---- lifecycle ----
    @property
    def running(self) -> bool:
        return self._run

    def start(self) -> None:
        if self._run:
            return
        self._run = True
        self._started_at = time.time()
        self.reporter.start()
        self._thread = threading.Thread(target=self._loop, name="live-session", daemon=True)
        self._thread.start()
        logger.info("[live] session started")

    def stop(self, timeout: float = 2.0) -> None:
        self._run = False
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
        self._thread = None
        self.reporter.close()
        logger.info("[live] session stopped")

    def status(self) -> LiveStatus:
        with self._lock:
            return LiveStatus(
                running=self._run,
                started_at=self._started_at,
                frames_processed=self._frames,
                face_detected=self._face,
                last_output=self._last_output,
            )

    def reset_counters(self) -> DetectorOutput:
        with self._lock:
            self.detector.reset_counters()
            out = self._last_output = self.detector.snapshot()
            self.reporter.report_reset()
        return out

    def open_source(self) -> FaceLandmarkSource:
        return self._source_factory()

    def feed(self, landmarks: Optional[np.ndarray]) -> DetectorOutput:
        """Push one landmark frame (None = no face) through the detector."""
        metrics = extract_metrics(landmarks)
        with self._lock:
            out = self.detector.update(metrics)
            self._frames += 1
            self._face = metrics is not None
            self._last_output = out
            self.reporter.observe(out)
        return out

    # ---- loop ----
    def _loop(self) -> None:
        try:
            cap = open_camera(self.s)
        except RuntimeError:
            logger.exception("[live] camera unavailable; stopping session")
            self._run = False
            self.reporter.close()
            return

        try:
            with self.open_source() as source:
                while self._run:
                    ok, frame = cap.read()
                    if not ok:
                        time.sleep(0.05)
                        continue
                    self.feed(source.process(frame))
        except Exception:
            logger.exception("[live] capture loop failed")
            self._run = False
        finally:
            cap.release()
            self.reporter.close()


# -----------------------------------------------------------------------------
# Live camera overlay window
# -----------------------------------------------------------------------------
def run_live_overlay(settings: Settings,
                     camera_index: Optional[int] = None,
                     detector: Optional[ExpressionDetector] = None,
                     source_factory: Optional[Callable[[], FaceLandmarkSource]] = None,
                     reporter: Optional[CounterReporter] = None) -> DetectorOutput:
    """
    Open webcam, count expressions, draw landmarks + badges + counters.

    Keys:
      - 'q' quits
      - 'r' resets the counters

    Returns the last detector snapshot.
    """
    cap = open_camera(settings, camera_index)
    session = LiveSession(settings, detector=detector, source_factory=source_factory, reporter=reporter)
    session.reporter.start()
    out = session.detector.snapshot()

    try:
        with session.open_source() as source:
            while True:
                ret, frame = cap.read()
                if not ret:
                    break
                landmarks = source.process(frame)
                out = session.feed(landmarks)
                annotated = draw_overlays(frame, landmarks, out, face_detected=landmarks is not None)
                cv2.imshow(WINDOW_NAME, annotated)
                key = cv2.waitKey(1) & 0xFF
                if key == ord("q"):
                    break
                if key == ord("r"):
                    out = session.reset_counters()
    finally:
        cap.release()
        session.reporter.close()
        cv2.destroyAllWindows()
    return out
