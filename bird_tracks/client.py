"""HTTP client for the local bird tracking service."""

from __future__ import annotations

import sys
from typing import Any, Optional

import requests


class TrackingServiceClient:
    """Handle tracking service API interactions"""

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        request_timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = request_timeout
        self.session = session or requests.Session()

    def _get_json(self, endpoint: str, params: dict[str, Any]) -> Any:
        response = self.session.get(
            f"{self.base_url}/{endpoint}", params=params, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    def fetch_bird_ids(self, species: str) -> list[Any]:
        """Return all bird IDs recorded for a species, or [] on failure."""
        try:
            data = self._get_json("get_bird_ids", {"bird": species})
        except (requests.RequestException, ValueError) as e:
            print(f"[WARN] Error fetching bird IDs: {e}", file=sys.stderr)
            return []

        if not isinstance(data, list):
            print(
                f"[WARN] Bird ID response is not an array: {data!r}",
                file=sys.stderr,
            )
            return []
        return data

    def fetch_trajectory(self, species: str, bird_id: Any) -> list[dict[str, Any]]:
        """Return the ordered trajectory records of one bird, or [] on failure."""
        try:
            data = self._get_json(
                "get_trajectory_data", {"bird": species, "birdID": bird_id}
            )
        except (requests.RequestException, ValueError) as e:
            print(f"[WARN] Error fetching trajectory data: {e}", file=sys.stderr)
            return []

        if not isinstance(data, list):
            print(
                f"[WARN] Trajectory response is not an array: {data!r}",
                file=sys.stderr,
            )
            return []
        return data

    def close(self) -> None:
        self.session.close()
