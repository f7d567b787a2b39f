"""
Local file-based durable tier.
Uses JSON files instead of MongoDB, for development without a database.
"""
import json
from datetime import datetime, timedelta
from pathlib import Path

from mapsy.core.logger import logs
import logging


class LocalPlacesRepository:
    """Stores saved responses as one JSON file per quantized coordinate."""

    def __init__(self, cache_dir: str = "data/cache"):
        """Initialize local storage directory."""
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        logs.log(logging.INFO, f"Local durable cache initialized at {self.cache_dir}")

    def _get_cache_file(self, lat: float, lon: float) -> Path:
        """Get the file path for a quantized coordinate."""
        return self.cache_dir / f"places_{lat}_{lon}.json"

    async def find_entry(self, lat: float, lon: float) -> dict | None:
        cache_file = self._get_cache_file(lat, lon)

        if not cache_file.exists():
            return None

        with open(cache_file, 'r') as f:
            cached = json.load(f)

        if datetime.now() >= datetime.fromisoformat(cached["expiresAt"]):
            cache_file.unlink(missing_ok=True)  # Delete expired cache
            return None

        return cached["data"]

    async def save_entry(self, lat: float, lon: float, entry: dict, ttl: int):
        now = datetime.now()
        cached = {
            "data": entry,
            "generalCoordinates": [lat, lon],
            "createdAt": now.isoformat(),
            "expiresAt": (now + timedelta(seconds=ttl)).isoformat()
        }

        with open(self._get_cache_file(lat, lon), 'w') as f:
            json.dump(cached, f, indent=2)
