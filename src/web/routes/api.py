from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, HTTPException

from models.occupancy_event import OccupancyKind
from ..api_models import (
    BranchListResponse,
    BranchResponse,
    CameraToggleResponse,
    EventRequest,
    HourlyStatResponse,
    StreamStatusResponse,
)
from ..services.config_service import ConfigService
from ..services.health_service import HealthService
from ..services.logs_service import LogsService
from ..state import state

router = APIRouter()


def _require_store():
    if state.store is None:
        raise HTTPException(status_code=503, detail="Occupancy store not initialized")
    return state.store


def _stream_response(stream_id: str) -> dict:
    info = state.streams.get_status(stream_id)
    if info is None:
        raise HTTPException(status_code=404, detail=f"Unknown stream: {stream_id}")
    payload = info.to_dict()
    payload["identities"] = [i.to_dict() for i in state.streams.get_identities(stream_id)]
    return payload


@router.get("/branches", response_model=BranchListResponse)
def list_branches():
    store = _require_store()
    return {
        "branches": [b.to_dict() for b in store.list_branches()],
        "global_total_people": store.global_total_people(),
    }


@router.get("/branches/{branch_id}", response_model=BranchResponse)
def get_branch(branch_id: str):
    branch = _require_store().get_branch(branch_id)
    if branch is None:
        raise HTTPException(status_code=404, detail=f"Unknown branch: {branch_id}")
    return branch.to_dict()


@router.get("/branches/{branch_id}/hourly", response_model=List[HourlyStatResponse])
def get_hourly(branch_id: str):
    store = _require_store()
    if branch_id not in store:
        raise HTTPException(status_code=404, detail=f"Unknown branch: {branch_id}")
    return [h.to_dict() for h in store.get_hourly_stats(branch_id)]


@router.post("/branches/{branch_id}/camera/toggle", response_model=CameraToggleResponse)
def toggle_camera(branch_id: str):
    new_status = _require_store().toggle_camera_status(branch_id)
    if new_status is None:
        raise HTTPException(status_code=404, detail=f"Unknown branch: {branch_id}")
    logging.info(f"Camera status for {branch_id} set to {new_status} via API")
    return {"id": branch_id, "camera_status": new_status}


@router.post("/branches/{branch_id}/events", response_model=BranchResponse)
def record_event(branch_id: str, req: EventRequest):
    """Manual in/out entry, e.g. from a door counter or an operator correction."""
    store = _require_store()
    try:
        kind = OccupancyKind(req.kind)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"kind must be one of: in, out (got {req.kind!r})")
    if branch_id not in store:
        raise HTTPException(status_code=404, detail=f"Unknown branch: {branch_id}")

    store.record_event(branch_id, kind.value, dwell_seconds=req.dwell_seconds)
    return store.get_branch(branch_id).to_dict()


@router.get("/streams", response_model=List[StreamStatusResponse])
def list_streams():
    if state.streams is None:
        return []
    return [_stream_response(info.stream_id) for info in state.streams.list_statuses()]


@router.get("/streams/{stream_id}", response_model=StreamStatusResponse)
def get_stream(stream_id: str):
    if state.streams is None:
        raise HTTPException(status_code=503, detail="Streams not started")
    return _stream_response(stream_id)


@router.get("/health")
def health():
    cfg = state.get_config_copy() or {}
    streams = state.streams.list_statuses() if state.streams is not None else []
    return HealthService(cfg=cfg, streams=streams, uptime_seconds=state.uptime_seconds()).get_health_summary()


@router.get("/config")
def get_config():
    """Effective configuration as loaded from the layered YAML files."""
    cfg = state.get_config_copy()
    if cfg is None:
        cfg = ConfigService.load_effective_config(state.config_path)
    return cfg


@router.get("/logs/tail")
def logs_tail(lines: int = 200):
    cfg = state.get_config_copy() or {}
    log_path = cfg.get("log_path")
    return {"path": log_path, "lines": LogsService.tail(log_path, lines=lines)}
