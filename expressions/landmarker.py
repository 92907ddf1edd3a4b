"""
MediaPipe FaceLandmarker wrapper (lazy-loaded).

Yields one (N, 3) landmark array per image, or None when no face is found.
Only the first face is used.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional
import logging

import cv2
import numpy as np

from expressions.config import Settings

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 33  # ~30 fps when the caller does not pass timestamps


class FaceLandmarkSource:
    """Wraps MediaPipe FaceLandmarker (Tasks API) in VIDEO running mode."""

    def __init__(self, settings: Settings):
        model_path = Path(settings.FACE_LANDMARKER_MODEL)
        if not model_path.exists():
            raise FileNotFoundError(
                f"FaceLandmarker model not found at {model_path}. "
                "Download it from https://storage.googleapis.com/mediapipe-models/"
                "face_landmarker/face_landmarker/float16/latest/face_landmarker.task"
            )

        # Lazy import so tests can substitute sys.modules['mediapipe']
        import mediapipe as mp

        self._mp = mp
        vision = mp.tasks.vision
        options = vision.FaceLandmarkerOptions(
            base_options=mp.tasks.BaseOptions(model_asset_path=str(model_path)),
            running_mode=vision.RunningMode.VIDEO,
            num_faces=1,
            min_face_detection_confidence=settings.MIN_DETECTION_CONFIDENCE,
            min_tracking_confidence=settings.MIN_TRACKING_CONFIDENCE,
            output_face_blendshapes=False,
            output_facial_transformation_matrixes=False,
        )
        self._landmarker = vision.FaceLandmarker.create_from_options(options)
        self._ts_ms = 0
        logger.debug(f"[landmarker] loaded model {model_path}")

    def process(self, image_bgr: np.ndarray, timestamp_ms: Optional[int] = None) -> Optional[np.ndarray]:
        """
        Detect landmarks on a BGR frame.

        Args:
            image_bgr: frame as read by cv2.VideoCapture
            timestamp_ms: frame timestamp; must increase monotonically. Defaults to a ~30 fps clock.

        Returns:
            (N, 3) float32 array in normalized image coordinates, or None if no face.
        """
        if timestamp_ms is None or timestamp_ms <= self._ts_ms:
            timestamp_ms = self._ts_ms + FRAME_INTERVAL_MS
        self._ts_ms = int(timestamp_ms)

        rgb = cv2.cvtColor(image_bgr, cv2.COLOR_BGR2RGB)
        mp_image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=rgb)
        result = self._landmarker.detect_for_video(mp_image, self._ts_ms)
        if not result.face_landmarks:
            return None
        face = result.face_landmarks[0]
        return np.array([[p.x, p.y, p.z] for p in face], dtype=np.float32)

    def close(self) -> None:
        self._landmarker.close()

    def __enter__(self) -> "FaceLandmarkSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
