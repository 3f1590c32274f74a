"""JSON file state store adapter.

Implements StateStorePort with a single JSON document mapping
subscription keys to tracking markers. The file is replaced atomically
on every save.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from relwatch.core.models import TrackingMarker
from relwatch.core.ports import StateStorePort

from .serialization import marker_from_dict, marker_to_dict

logger = logging.getLogger(__name__)


class JsonFileStateStore(StateStorePort):
    """Whole-file JSON state store."""

    def __init__(self, path: str):
        """Initialize the store.

        Args:
            path: Path of the JSON state file. Parent directories are
                created on first save.
        """
        self.path = Path(path)

    async def load(self) -> dict[str, TrackingMarker]:
        """Read the state file; a missing file is an empty state."""
        return await asyncio.to_thread(self._load_sync)

    async def save(self, markers: dict[str, TrackingMarker]) -> None:
        """Atomically replace the state file with `markers`."""
        await asyncio.to_thread(self._save_sync, dict(markers))

    def _load_sync(self) -> dict[str, TrackingMarker]:
        if not self.path.exists():
            logger.info("[State] No existing state, starting fresh")
            return {}

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"State file {self.path} is not valid JSON: {e}") from e

        if not isinstance(raw, dict):
            raise ValueError(f"State file {self.path} must contain a JSON object")

        markers: dict[str, TrackingMarker] = {}
        for key, entry in raw.items():
            try:
                markers[key] = marker_from_dict(entry, key)
            except ValueError as e:
                logger.warning(f"[State] Discarding malformed entry {key!r}: {e}")

        logger.info(f"[State] Loaded {len(markers)} subscription(s)")
        return markers

    def _save_sync(self, markers: dict[str, TrackingMarker]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {key: marker_to_dict(marker) for key, marker in sorted(markers.items())}

        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info(f"[State] Saved {len(markers)} subscription(s)")
