# expressions/pipeline.py
from __future__ import annotations
from typing import Callable, List, Optional
import logging
import os

import cv2

from expressions.config import Settings
from expressions.detector import ExpressionDetector
from expressions.landmarker import FaceLandmarkSource
from expressions.metrics import extract_metrics
from expressions.models import ExpressionEvent, ThresholdConfig, VideoAnalysis
from expressions.thresholds import load_thresholds

logger = logging.getLogger(__name__)

def analyze_video(
    video_path: str,
    settings: Settings,
    thresholds: Optional[ThresholdConfig] = None,
    source_factory: Optional[Callable[[], FaceLandmarkSource]] = None,
) -> VideoAnalysis:
    """
    Count blinks, mouth opens and brow raises over a recorded video.

    Every frame is passed through the landmark source and the detector in order;
    frames without a face are no-ops for the detector.

    Args:
        video_path: Path to the video file.
        settings: Runtime settings (thresholds paths, landmarker model).
        thresholds: Optional thresholds; loaded from settings when omitted.
        source_factory: Optional landmark source constructor (defaults to MediaPipe).

    Returns:
        VideoAnalysis with final counters and one event per confirmed activation.
    """
    if not os.path.exists(video_path):
        raise FileNotFoundError(f"Video not found: {video_path}")

    if thresholds is None:
        thresholds = load_thresholds(settings.THRESHOLDS_PATH, settings.THRESHOLDS_OVERRIDE_PATH)
    detector = ExpressionDetector(thresholds)
    make_source = source_factory or (lambda: FaceLandmarkSource(settings))

    logger.debug(f"[pipeline] open video: {video_path}")
    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        raise RuntimeError(f"Could not open video: {video_path}")

    fps = cap.get(cv2.CAP_PROP_FPS) or 25.0
    frame_index = 0
    with_face = 0
    events: List[ExpressionEvent] = []

    try:
        with make_source() as source:
            while True:
                ok, frame = cap.read()
                if not ok:
                    break
                ts_ms = int(round(frame_index * 1000.0 / fps))
                metrics = extract_metrics(source.process(frame, ts_ms))
                if metrics is not None:
                    with_face += 1
                detector.update(metrics)
                for name in detector.last_events:
                    events.append(ExpressionEvent(time=round(frame_index / fps, 2), frame=frame_index, expression=name))
                frame_index += 1
    finally:
        cap.release()

    out = detector.snapshot()
    logger.debug(f"[pipeline] finished frames={frame_index} with_face={with_face} events={len(events)}")
    return VideoAnalysis(
        blinks=out.blinks,
        mouth_opens=out.mouth_opens,
        brow_raises=out.brow_raises,
        frames_total=frame_index,
        frames_with_face=with_face,
        fps=float(fps),
        events=events,
    )
