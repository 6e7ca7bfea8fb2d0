"""
REST client for the booking platform's expert and session endpoints.
"""

import logging
from typing import Any, Dict, List

import requests

from ..domain.exceptions import DataSourceError
from ..domain.models import AvailabilityProfile, Booking, coerce_bookings

logger = logging.getLogger(__name__)


class ExpertApiClient:
    """
    Client for the platform API.

    Uses the expert profile endpoint for availability settings and the
    sessions endpoint for existing bookings.
    """

    PROFILE_PATH = "/api/expert/admin/profile/{expert_id}"
    SESSIONS_PATH = "/api/sessions/expert/{expert_id}"

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timezone: str = "UTC",
        timeout: float = 30,
        session: requests.Session | None = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Root URL of the platform, e.g. https://api.example.com
            token: Optional bearer token sent with every request
            timezone: Timezone used for naive timestamps and break dates
            timeout: Request timeout in seconds
            session: Optional requests session (shared connection pool)
        """
        self.base_url = base_url.rstrip("/")
        self.timezone = timezone
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def get_availability(self, expert_id: str) -> AvailabilityProfile:
        """
        Fetch the expert's availability profile.

        Response format:
        {
            "success": true,
            "data": {
                "availability": {
                    "sessionDuration": 30,
                    "maxPerDay": 1,
                    "weekly": {"mon": [{"from": "09:00", "to": "11:00"}]},
                    "breakDates": [{"start": "...", "end": "..."}]
                }
            }
        }

        Raises:
            DataSourceError: If the request fails or the payload is not understood
        """
        payload = self._get_json(self.PROFILE_PATH.format(expert_id=expert_id))

        data = payload.get("data", payload) if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise DataSourceError(f"Unexpected profile payload for expert {expert_id}")

        availability = data.get("availability", data if "weekly" in data else None)
        if availability is None:
            logger.debug("Expert %s has no availability; using defaults", expert_id)
        elif not isinstance(availability, dict):
            raise DataSourceError(f"Unexpected availability payload for expert {expert_id}")

        return AvailabilityProfile.from_mapping(availability, self.timezone)

    def get_bookings(self, expert_id: str) -> List[Booking]:
        """
        Fetch every session recorded for the expert.

        The endpoint returns a bare list; a ``{"data": [...]}`` envelope is
        accepted as well. Records with broken timestamps are kept as
        unparsable bookings.

        Raises:
            DataSourceError: If the request fails or the payload is not a list
        """
        payload = self._get_json(self.SESSIONS_PATH.format(expert_id=expert_id))

        records = payload.get("data") if isinstance(payload, dict) else payload
        if not isinstance(records, list):
            raise DataSourceError(f"Unexpected sessions payload for expert {expert_id}")

        return coerce_bookings(records, self.timezone)

    def _get_json(self, path: str) -> Any:
        url = f"{self.base_url}{path}"

        try:
            response = self.session.get(url, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            raise DataSourceError(f"Failed to fetch {url}: {e}") from e
        except ValueError as e:
            raise DataSourceError(f"Invalid JSON from {url}: {e}") from e

    def test_connection(self, expert_id: str) -> Dict[str, Any]:
        """
        Check that the API answers for an expert.

        Returns:
            Short summary with the expert's availability and booking count
        """
        profile = self.get_availability(expert_id)
        bookings = self.get_bookings(expert_id)
        return {"availability": profile.summary(), "bookings": len(bookings)}
