"""OAuth2 authorization service."""

import logging
import webbrowser
from typing import Callable, Optional
from urllib.parse import urlencode

from polar_toolkit.clients.polar import PolarClient
from polar_toolkit.config import Config, PolarSettings, preview
from polar_toolkit.exceptions import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)


class AuthService:
    """Builds the authorization URL and turns codes into access tokens."""

    def __init__(
        self,
        settings: PolarSettings,
        client: Optional[PolarClient] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.settings = settings
        self.client = client or PolarClient(settings)
        self.log = log or logger

    def authorization_url(self) -> str:
        if not self.settings.client_id:
            self.log.error("CLIENT_ID environment variable required for authorization URL")
            raise ConfigurationError("CLIENT_ID environment variable is not set")
        query = urlencode({"response_type": "code", "client_id": self.settings.client_id})
        return f"{Config.AUTHORIZATION_URL}?{query}"

    def open_authorization_url(self, opener: Optional[Callable[[str], bool]] = None):
        """Open the authorization page in the default browser.

        Returns ``(url, opened)``; ``opened`` is False when no browser could be
        launched and the user has to copy the URL by hand.
        """
        opener = opener or webbrowser.open
        url = self.authorization_url()
        self.log.info(f"Opening OAuth2 authorization URL with CLIENT_ID: {self.settings.client_id}")
        try:
            opened = bool(opener(url))
        except webbrowser.Error as e:
            self.log.warning(f"Could not open browser: {e}")
            opened = False
        self.log.info("OAuth2 authorization URL generation completed")
        return url, opened

    def authenticate(self, auth_code: str) -> str:
        """Exchange ``auth_code`` for an access token or raise.

        Raises ConfigurationError when the code or client credentials are
        missing, AuthenticationError for any unsuccessful exchange.
        """
        if not auth_code:
            raise ConfigurationError(
                "Authorization code is required (parameter or AUTH_CODE env var)"
            )

        result = self.client.exchange_code(auth_code)
        if not result.ok:
            self.log.error("Failed to obtain access token from OAuth2 response")
            raise AuthenticationError(f"Authentication failed: {result.hint}", result=result)

        self.log.info("Token type: Bearer")
        self.log.info(f"Authentication completed, access token obtained: {preview(result.access_token)}")
        return result.access_token
