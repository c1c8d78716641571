"""Account service - member registration and profile lookup."""

import logging
from typing import Optional

from polar_toolkit.clients.polar import (
    PolarClient,
    RegistrationResult,
    UserInfoResult,
    REGISTER_STATUS_REGISTERED,
    REGISTER_STATUS_ALREADY_REGISTERED,
    REGISTER_STATUS_CONSENTS_NOT_ACCEPTED,
    USER_INFO_STATUS_OK,
    USER_INFO_STATUS_NO_DATA,
    USER_INFO_STATUS_FORBIDDEN,
    USER_INFO_STATUS_TRANSPORT_ERROR,
)
from polar_toolkit.config import PolarSettings
from polar_toolkit.exceptions import (
    ConfigurationError,
    ConsentError,
    PolarAPIError,
    TransportError,
)
from polar_toolkit.services.auth import AuthService

logger = logging.getLogger(__name__)


class AccountService:
    """Registers members and reads their profile.

    Both flows authenticate on their own; they are not part of the download
    run.
    """

    def __init__(
        self,
        settings: PolarSettings,
        client: Optional[PolarClient] = None,
        auth_service: Optional[AuthService] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.settings = settings
        self.client = client or PolarClient(settings)
        self.log = log or logger
        self.auth_service = auth_service or AuthService(settings, self.client, self.log)

    def register(self, auth_code: str, member_id: Optional[str] = None) -> RegistrationResult:
        """Register ``member_id`` (default: the configured one).

        409 counts as success. Raises ConsentError on 403 and PolarAPIError on
        any other failure.
        """
        self.settings.validate(require_member_id=False)
        member_id = member_id or self.settings.member_id
        if not member_id:
            raise ConfigurationError("A member id is required to register a user")

        self.log.info(f"Starting user registration for user ID: {member_id}")
        access_token = self.auth_service.authenticate(auth_code)

        result = self.client.register_user(access_token, member_id)

        if result.status == REGISTER_STATUS_REGISTERED:
            self.log.info(f"User registration successful for user ID: {member_id}")
        elif result.status == REGISTER_STATUS_ALREADY_REGISTERED:
            self.log.info(f"User already registered for user ID: {member_id} (HTTP 409)")
        elif result.status == REGISTER_STATUS_CONSENTS_NOT_ACCEPTED:
            self.log.error("User registration failed: consents not accepted (HTTP 403)")
            raise ConsentError(
                "User has not accepted mandatory consents",
                status_code=result.http_status,
                body=result.body,
            )
        else:
            self.log.error(f"User registration failed (HTTP {result.http_status}): {result.body}")
            raise PolarAPIError(
                f"User registration failed (HTTP {result.http_status})",
                status_code=result.http_status,
                body=result.body,
            )
        return result

    def fetch_user_info(self, auth_code: str) -> UserInfoResult:
        """Fetch the configured member's profile.

        Returns the result for 200 and 204. Raises TransportError when no
        response arrived, ConsentError on 403, PolarAPIError otherwise.
        """
        self.settings.validate()
        member_id = self.settings.member_id

        self.log.info(f"Starting user info retrieval for user ID: {member_id}")
        access_token = self.auth_service.authenticate(auth_code)

        result = self.client.get_user_info(access_token, member_id)

        if result.status == USER_INFO_STATUS_TRANSPORT_ERROR:
            self.log.error(f"User info request failed: {result.error}")
            connectivity = self.client.check_connectivity()
            self.log.info(f"Connectivity test result: {connectivity}")
            raise TransportError(
                f"No response from Polar API ({result.error}); connectivity test: {connectivity}"
            )
        if result.status == USER_INFO_STATUS_OK:
            self.log.info(f"User information retrieved successfully for user ID: {member_id}")
        elif result.status == USER_INFO_STATUS_NO_DATA:
            self.log.warning(f"No user information found for user ID: {member_id} (HTTP 204)")
        elif result.status == USER_INFO_STATUS_FORBIDDEN:
            self.log.error("Access forbidden for user info retrieval (HTTP 403)")
            raise ConsentError(
                "Access forbidden: consents not accepted or access denied",
                status_code=result.http_status,
                body=result.body,
            )
        else:
            self.log.error(f"Failed to retrieve user info (HTTP {result.http_status}): {result.body}")
            raise PolarAPIError(
                f"Failed to retrieve user information (HTTP {result.http_status})",
                status_code=result.http_status,
                body=result.body,
            )
        return result
