from __future__ import annotations

from collections import deque
from typing import List, Optional


class LogsService:
    MAX_LINES = 5000

    @staticmethod
    def tail(path: Optional[str], lines: int = 200) -> List[str]:
        if not path:
            return ["(log_path not configured)"]
        count = min(max(1, lines), LogsService.MAX_LINES)
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                return list(deque(f, maxlen=count))
        except FileNotFoundError:
            return [f"(log file not found: {path})"]
        except OSError as e:
            return [f"(failed to read log file: {e})"]
