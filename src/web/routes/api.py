from __future__ import annotations

import time

import cv2
from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from ..api_models import (
    DetectionItem,
    DetectionsResponse,
    HistoryItem,
    HistoryResponse,
    StatusResponse,
)
from ..state import state

router = APIRouter()


@router.get("/status", response_model=StatusResponse)
def status():
    """
    Monitor status for the UI.
    - ready/loading: detector model state
    - last_frame_age_s: seconds since the last completed cycle (None if never)
    - pipeline/sampler: cycle and tick counters
    """
    now = time.time()
    sys_stats = state.get_system_stats_copy()
    start_time = sys_stats.get("start_time") or now
    last_frame_ts = sys_stats.get("last_frame_ts")

    return StatusResponse(
        ready=state.ready,
        loading=not state.ready,
        last_frame_age_s=(now - last_frame_ts) if last_frame_ts else None,
        uptime_seconds=int(now - start_time),
        pipeline={k: v for k, v in (sys_stats.get("pipeline") or {}).items() if isinstance(v, int)},
        sampler=dict(sys_stats.get("sampler") or {}),
    )


@router.get("/detections", response_model=DetectionsResponse)
def detections():
    """Live detections from the most recent cycle, in detector order."""
    items = [
        DetectionItem(
            class_name=d.class_name,
            score=d.score,
            percent=round(d.score * 100),
            bbox=list(d.bbox.as_tuple()),
            label=d.label,
        )
        for d in state.get_detections()
    ]
    return DetectionsResponse(count=len(items), detections=items)


@router.get("/history", response_model=HistoryResponse)
def history():
    """Alert history, oldest first."""
    entries = [HistoryItem(**e.to_dict()) for e in state.get_history_entries()]
    return HistoryResponse(count=len(entries), entries=entries)


@router.get("/snapshot.jpg")
def snapshot():
    """Latest frame with the overlay composed on top."""
    frame = state.get_frame()
    if frame is None:
        raise HTTPException(status_code=404, detail="No frame available yet")
    ok, buf = cv2.imencode(".jpg", frame)
    if not ok:
        raise HTTPException(status_code=500, detail="Failed to encode frame")
    return Response(content=buf.tobytes(), media_type="image/jpeg")
