from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class BranchStatsResponse(BaseModel):
    current_people: int
    total_in_today: int
    total_out_today: int
    avg_dwell_seconds: float
    gender_ratio: Dict[str, float]


class BranchResponse(BaseModel):
    id: str
    name: str
    location: str
    camera_status: str = Field(..., description="online|offline")
    stats: BranchStatsResponse


class BranchListResponse(BaseModel):
    branches: List[BranchResponse]
    global_total_people: int = Field(..., description="Current people across online branches")


class HourlyStatResponse(BaseModel):
    hour: int = Field(..., ge=0, le=23)
    ins: int
    outs: int
    avg_dwell_seconds: float


class CameraToggleResponse(BaseModel):
    id: str
    camera_status: str


class EventRequest(BaseModel):
    kind: str = Field(..., description="in|out")
    dwell_seconds: Optional[float] = Field(None, ge=0)


class IdentityBoxResponse(BaseModel):
    x: float
    y: float
    width: float
    height: float
    center_x: float
    center_y: float


class IdentityResponse(BaseModel):
    """One tracked person, as shown on the camera debug view."""
    id: int
    box: IdentityBoxResponse
    gender: str
    age: int
    created_at: float
    last_seen_at: float
    dwell_seconds: float


class StreamStatusResponse(BaseModel):
    stream_id: str
    status: str = Field(..., description="loading|running|error|no_camera|stopped")
    error_message: str = ""
    identities: List[IdentityResponse] = Field(default_factory=list)
