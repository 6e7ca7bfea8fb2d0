"""
Mock platform client for running without the booking API.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from ..domain.exceptions import DataSourceError
from ..domain.models import AvailabilityProfile, Booking, coerce_bookings

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_expert_data.json"


class MockExpertClient:
    """
    Mock client that serves experts and sessions from a JSON file.

    The file holds an ``experts`` mapping (expert id -> availability
    document, same shape as the API) and a ``sessions`` list whose records
    carry an ``expertId``.
    """

    def __init__(self, data_file: Path | None = None, timezone: str = "UTC"):
        """
        Initialize the mock client.

        Args:
            data_file: JSON file to read; defaults to the bundled sample data
            timezone: Timezone used for naive timestamps and break dates
        """
        self.data_file = Path(data_file) if data_file else DEFAULT_DATA_FILE
        self.timezone = timezone
        self._data = self._load_data()

    def _load_data(self) -> Dict[str, Any]:
        """Load mock data from the JSON file."""
        if not self.data_file.exists():
            logger.warning("Mock data file %s not found; serving no experts", self.data_file)
            return {"experts": {}, "sessions": []}

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise DataSourceError(f"Could not read mock data {self.data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise DataSourceError(f"Mock data {self.data_file} must contain an object at the root")
        return data

    def expert_ids(self) -> List[str]:
        return sorted(self._data.get("experts", {}))

    def get_availability(self, expert_id: str) -> AvailabilityProfile:
        """
        Return the expert's availability profile.

        Raises:
            DataSourceError: If the expert is unknown
        """
        experts = self._data.get("experts", {})
        if expert_id not in experts:
            raise DataSourceError(f"Unknown expert: {expert_id}")
        return AvailabilityProfile.from_mapping(experts[expert_id], self.timezone)

    def get_bookings(self, expert_id: str) -> List[Booking]:
        """Return the sessions recorded for the expert."""
        records = [
            session
            for session in self._data.get("sessions", [])
            if isinstance(session, dict) and session.get("expertId") == expert_id
        ]
        return coerce_bookings(records, self.timezone)

    def test_connection(self, expert_id: str) -> Dict[str, Any]:
        """Mock connection test."""
        profile = self.get_availability(expert_id)
        return {"availability": profile.summary(), "bookings": len(self.get_bookings(expert_id))}
