"""
Adapters layer - External integrations (booking platform API).
"""

from .expert_api_client import ExpertApiClient
from .mock_expert_client import MockExpertClient

__all__ = ["ExpertApiClient", "MockExpertClient"]
