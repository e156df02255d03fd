from __future__ import annotations

import json
from pathlib import Path

from ..config import settings
from .base import DeliveryResult, MonitoringEvent


class FileNotifier:
    """Appends one JSON object per event to <output_dir>/<filename>."""

    name = "file"
    channel = "file"

    def __init__(self, output_dir: Path, filename: str = "monitoring.log", enabled: bool = True) -> None:
        self.output_dir = output_dir
        self.filename = filename
        self.enabled = enabled

    @classmethod
    def from_settings(cls) -> "FileNotifier":
        return cls(output_dir=Path(settings.MONITOR_OUTPUT_DIR).expanduser())

    @property
    def path(self) -> Path:
        return self.output_dir / self.filename

    async def send(self, event: MonitoringEvent) -> DeliveryResult:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(event.to_dict(), default=str) + "\n")
        except OSError as e:
            return DeliveryResult(ok=False, error=str(e))
        return DeliveryResult(ok=True)
