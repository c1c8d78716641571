"""Base client interface for OAuth2 fitness APIs."""

from abc import ABC, abstractmethod
from typing import Dict, Optional

import requests


class BaseClient(ABC):
    """Abstract base class for bearer-token API clients.

    Clients hold no token state: the access token belongs to the flow that
    obtained it and is passed into every call.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()

    @abstractmethod
    def exchange_code(self, auth_code: str):
        """Exchange an OAuth2 authorization code for an access token."""
        pass

    @staticmethod
    def bearer_headers(access_token: str, json_body: bool = False) -> Dict[str, str]:
        """Headers for an authenticated API request."""
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {access_token}",
        }
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers
