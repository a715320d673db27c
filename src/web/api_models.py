from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class StatusResponse(BaseModel):
    ready: bool = Field(..., description="True once the detector model has loaded")
    loading: bool = Field(..., description="True while the detector model is loading")
    last_frame_age_s: Optional[float] = Field(None, description="Seconds since last processed frame")
    uptime_seconds: int
    pipeline: Dict[str, int] = Field(default_factory=dict)
    sampler: Dict[str, int] = Field(default_factory=dict)


class DetectionItem(BaseModel):
    class_name: str
    score: float
    percent: int
    bbox: List[float]
    label: str


class DetectionsResponse(BaseModel):
    count: int
    detections: List[DetectionItem]


class HistoryItem(BaseModel):
    timestamp: str
    message: str
    text: str


class HistoryResponse(BaseModel):
    count: int
    entries: List[HistoryItem]
