"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Camera configuration (shared defaults or per-branch override)."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [640, 480])
    fps: int = 30
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    realtime: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [640, 480]),
            fps=d.get("fps", 30),
            swap_rb=d.get("swap_rb", False),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
            realtime=d.get("realtime", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "swap_rb": self.swap_rb,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
            "realtime": self.realtime,
        }


@dataclass
class DetectionConfig:
    """Detector and box filter configuration."""
    backend: str = "yolo"
    model: str = "yolov8n.pt"
    score_threshold: float = 0.5
    target_class: str = "person"
    iou_threshold: float = 0.45

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            backend=d.get("backend", "yolo"),
            model=d.get("model", "yolov8n.pt"),
            score_threshold=d.get("score_threshold", 0.5),
            target_class=d.get("target_class", "person"),
            iou_threshold=d.get("iou_threshold", 0.45),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "model": self.model,
            "score_threshold": self.score_threshold,
            "target_class": self.target_class,
            "iou_threshold": self.iou_threshold,
        }


@dataclass
class TrackingConfig:
    """Identity tracker configuration."""
    match_distance_px: float = 50.0
    inactivity_timeout_s: float = 2.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TrackingConfig":
        return cls(
            match_distance_px=d.get("match_distance_px", 50.0),
            inactivity_timeout_s=d.get("inactivity_timeout_s", 2.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_distance_px": self.match_distance_px,
            "inactivity_timeout_s": self.inactivity_timeout_s,
        }


@dataclass
class BranchConfig:
    """One store branch and its optional camera override."""
    id: str
    name: str
    location: str = ""
    camera_status: str = "online"
    camera: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BranchConfig":
        return cls(
            id=str(d["id"]),
            name=d.get("name", str(d["id"])),
            location=d.get("location", ""),
            camera_status=d.get("camera_status", "online"),
            camera=d.get("camera"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "camera_status": self.camera_status,
        }
        if self.camera is not None:
            d["camera"] = self.camera
        return d

    def camera_config(self, defaults: Dict[str, Any]) -> CameraConfig:
        """Resolve this branch's camera settings over the shared defaults."""
        merged = dict(defaults or {})
        merged.update(self.camera or {})
        return CameraConfig.from_dict(merged)


@dataclass
class WebConfig:
    """HTTP API configuration."""
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(host=d.get("host", "0.0.0.0"), port=d.get("port", 5000))

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    branches: List[BranchConfig] = field(default_factory=list)
    camera: CameraConfig = field(default_factory=CameraConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/occupancy_monitor.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            branches=[BranchConfig.from_dict(b) for b in d.get("branches", []) or []],
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            tracking=TrackingConfig.from_dict(d.get("tracking", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/occupancy_monitor.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "branches": [b.to_dict() for b in self.branches],
            "camera": self.camera.to_dict(),
            "detection": self.detection.to_dict(),
            "tracking": self.tracking.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }

    def get_branch(self, branch_id: str) -> Optional[BranchConfig]:
        for branch in self.branches:
            if branch.id == branch_id:
                return branch
        return None
