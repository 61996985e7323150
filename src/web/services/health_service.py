from __future__ import annotations

import os
import platform
import shutil
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.status import StreamStatus, StreamStatusInfo


@dataclass
class HealthService:
    cfg: Dict[str, Any]
    streams: List[StreamStatusInfo] = field(default_factory=list)
    uptime_seconds: Optional[float] = None

    def get_health_summary(self) -> Dict[str, Any]:
        log_path = self.cfg.get("log_path")
        by_status: Dict[str, int] = {}
        for info in self.streams:
            by_status[info.status.value] = by_status.get(info.status.value, 0) + 1
        return {
            "status": self.overall_status(),
            "timestamp": time.time(),
            "uptime_seconds": int(self.uptime_seconds) if self.uptime_seconds is not None else None,
            "platform": platform.platform(),
            "python": platform.python_version(),
            "cwd": os.getcwd(),
            "log_path": log_path,
            "disk": self.disk_usage(os.path.dirname(log_path or "") or "."),
            "streams": by_status,
        }

    def overall_status(self) -> str:
        """ok when every stream runs, degraded when some failed, offline when none run."""
        if not self.streams:
            return "ok"
        running = sum(1 for s in self.streams if s.status in (StreamStatus.RUNNING, StreamStatus.LOADING))
        if running == len(self.streams):
            return "ok"
        return "degraded" if running else "offline"

    @staticmethod
    def disk_usage(path: Optional[str] = None) -> Dict[str, Any]:
        """
        Lightweight disk stats for the health endpoint.
        """
        target = path or "."
        try:
            usage = shutil.disk_usage(target)
        except OSError:
            return {"total_bytes": None, "free_bytes": None, "pct_free": None}
        pct_free = (usage.free / usage.total * 100) if usage.total else None
        return {
            "total_bytes": usage.total,
            "free_bytes": usage.free,
            "pct_free": pct_free,
        }
