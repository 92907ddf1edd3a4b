"""
REST endpoints for expression counting.
"""
import os
import shutil
import tempfile
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, UploadFile, File, HTTPException
from fastapi.responses import JSONResponse

from expressions.config import Settings
from expressions.live import LiveSession
from expressions.metrics import extract_metrics
from expressions.models import LandmarkPayload, MetricsResponse, ThresholdConfigError
from expressions.pipeline import analyze_video
from expressions.thresholds import load_thresholds, save_threshold_overrides

router = APIRouter()
settings = Settings()
logger = logging.getLogger(__name__)

live_session = {"session": None}


@router.get("/thresholds")
async def get_thresholds():
    """
    Effective thresholds (base file merged with persisted overrides).
    """
    try:
        config = load_thresholds(settings.THRESHOLDS_PATH, settings.THRESHOLDS_OVERRIDE_PATH)
    except ThresholdConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return config.to_document()


@router.put("/thresholds")
async def put_thresholds(overrides: Dict[str, Any] = Body(...)):
    """
    Persist threshold overrides (EAR / MAR / BROW records) and return the effective thresholds.

    The override document is validated against the base file before it is written.
    """
    if not settings.THRESHOLDS_OVERRIDE_PATH:
        raise HTTPException(status_code=409, detail="Threshold overrides are disabled")
    try:
        config = save_threshold_overrides(overrides, settings.THRESHOLDS_OVERRIDE_PATH, settings.THRESHOLDS_PATH)
    except ThresholdConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except OSError as e:
        logger.exception("[api] saving threshold overrides failed")
        raise HTTPException(status_code=500, detail=str(e))
    logger.info(f"[api] threshold overrides saved -> {settings.THRESHOLDS_OVERRIDE_PATH}")
    return config.to_document()


@router.post("/analyze/metrics", response_model=MetricsResponse)
async def analyze_metrics(payload: LandmarkPayload):
    """
    Compute EAR / MAR / BROW for a single landmark frame.

    A frame that does not satisfy the landmark contract is reported as no face.
    """
    metrics = extract_metrics(payload.landmarks)
    return MetricsResponse(face_detected=metrics is not None, metrics=metrics)


@router.post("/analyze/video")
async def analyze_video_upload(file: UploadFile = File(...)):
    """
    Count blinks, mouth opens and brow raises in an uploaded video.

    Args:
        file: Uploaded video file.

    Returns:
        JSONResponse: VideoAnalysis payload.
    """
    logger.debug(f"[api] /analyze/video filename={file.filename}")
    try:
        suffix = os.path.splitext(file.filename or "")[1] or ".mp4"
        with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
            shutil.copyfileobj(file.file, tmp)
            tmp_path = tmp.name
    except OSError as e:
        logger.exception("[api] upload save failed")
        raise HTTPException(status_code=400, detail=f"Upload failed: {e}")

    try:
        result = analyze_video(tmp_path, settings)
        return JSONResponse(result.model_dump())
    except ThresholdConfigError as e:
        logger.exception("[api] invalid thresholds")
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.exception("[api] analyze_video failed")
        raise HTTPException(status_code=500, detail=str(e))
    finally:
        try:
            os.unlink(tmp_path)
        except OSError:
            logger.warning(f"[api] failed to cleanup tmp file: {tmp_path}")


def _current_session():
    return live_session["session"]


@router.post("/live/start")
async def live_start():
    session = _current_session()
    if session is not None and session.running:
        return {"status": "already_running"}
    if session is not None:
        # finished or failed session: release its reporter thread
        session.stop()
    try:
        session = LiveSession(settings)
    except ThresholdConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))
    session.start()
    live_session["session"] = session
    return {"status": "started"}

@router.get("/live/status")
async def live_status():
    session = _current_session()
    if session is None:
        return {"running": False}
    return session.status().model_dump()

@router.post("/live/reset")
async def live_reset():
    session = _current_session()
    if session is None:
        raise HTTPException(status_code=409, detail="No live session")
    return session.reset_counters().model_dump()

@router.post("/live/stop")
async def live_stop():
    session = _current_session()
    if session is None or not session.running:
        return {"status": "not_running"}
    session.stop()
    return {"status": "stopped"}
