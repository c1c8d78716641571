"""Polar AccessLink client implementation."""

import base64
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import requests

from polar_toolkit.clients.base import BaseClient
from polar_toolkit.config import Config, PolarSettings, preview
from polar_toolkit.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Token exchange status values
AUTH_STATUS_SUCCESS = "success"
AUTH_STATUS_NO_TOKEN = "no_token"
AUTH_STATUS_INVALID_CODE = "invalid_code"
AUTH_STATUS_INVALID_CLIENT = "invalid_client"
AUTH_STATUS_FORBIDDEN = "forbidden"
AUTH_STATUS_FAILED = "failed"

# Registration status values
REGISTER_STATUS_REGISTERED = "registered"
REGISTER_STATUS_ALREADY_REGISTERED = "already_registered"
REGISTER_STATUS_CONSENTS_NOT_ACCEPTED = "consents_not_accepted"
REGISTER_STATUS_FAILED = "failed"

# User info status values
USER_INFO_STATUS_OK = "ok"
USER_INFO_STATUS_NO_DATA = "no_data"
USER_INFO_STATUS_FORBIDDEN = "forbidden"
USER_INFO_STATUS_FAILED = "failed"
USER_INFO_STATUS_TRANSPORT_ERROR = "transport_error"

AUTH_HINTS = {
    AUTH_STATUS_INVALID_CODE: "Check your authorization code - it may be expired or invalid",
    AUTH_STATUS_INVALID_CLIENT: "Client credentials are invalid",
    AUTH_STATUS_FORBIDDEN: "Access forbidden - check permissions",
    AUTH_STATUS_NO_TOKEN: "Token endpoint answered without an access token",
}

AUTH_ERROR_STATUSES = {
    400: AUTH_STATUS_INVALID_CODE,
    401: AUTH_STATUS_INVALID_CLIENT,
    403: AUTH_STATUS_FORBIDDEN,
}

USER_INFO_FIELDS = {
    "polar_user_id": "polar-user-id",
    "member_id": "member-id",
    "first_name": "first-name",
    "last_name": "last-name",
    "birthdate": "birthdate",
    "gender": "gender",
    "weight": "weight",
    "height": "height",
}


@dataclass
class TokenResult:
    status: str
    access_token: Optional[str] = None
    http_status: Optional[int] = None
    body: str = ""

    @property
    def ok(self) -> bool:
        return self.status == AUTH_STATUS_SUCCESS

    @property
    def hint(self) -> str:
        if self.http_status is None:
            return f"No response from token endpoint: {self.body}"
        return AUTH_HINTS.get(self.status, f"HTTP Status: {self.http_status}")


@dataclass
class RegistrationResult:
    status: str
    member_id: str
    http_status: Optional[int] = None
    body: str = ""

    @property
    def ok(self) -> bool:
        return self.status in (REGISTER_STATUS_REGISTERED, REGISTER_STATUS_ALREADY_REGISTERED)


@dataclass
class UserInfo:
    """Profile fields of a registered member; None where the API omitted one."""

    polar_user_id: Optional[str] = None
    member_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    birthdate: Optional[str] = None
    gender: Optional[str] = None
    weight: Optional[float] = None
    height: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "UserInfo":
        if not isinstance(payload, dict):
            return cls()
        return cls(**{attr: payload.get(key) for attr, key in USER_INFO_FIELDS.items()})


@dataclass
class UserInfoResult:
    status: str
    member_id: str
    user_info: Optional[UserInfo] = None
    http_status: Optional[int] = None
    body: str = ""
    error: Optional[str] = None


class PolarClient(BaseClient):
    """Client for the Polar AccessLink v3 API."""

    def __init__(self, settings: PolarSettings, session: Optional[requests.Session] = None):
        super().__init__(session)
        self.settings = settings
        self.token_url = Config.TOKEN_URL
        self.base_url = Config.API_V3_URL
        self.clock = time.monotonic

    def encode_credentials(self) -> str:
        """Basic-Auth token for the token endpoint: base64 of ``id:secret``."""
        missing = self.settings.missing(require_member_id=False)
        if missing:
            raise ConfigurationError(
                f"{' and '.join(missing)} required to authenticate"
            )
        raw = f"{self.settings.client_id}:{self.settings.client_secret}"
        return base64.b64encode(raw.encode("utf-8")).decode("ascii")

    def exchange_code(self, auth_code: str) -> TokenResult:
        """Exchange an authorization code for an access token.

        Never raises for HTTP or transport failures; the returned result says
        what happened. Missing credentials still raise ConfigurationError.
        """
        logger.info(
            f"Starting authentication process with authorization code: {preview(auth_code)}"
        )
        credentials = self.encode_credentials()
        logger.info("Client credentials encoded for Basic authentication")

        headers = {
            "Authorization": f"Basic {credentials}",
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }
        data = {"grant_type": "authorization_code", "code": auth_code}

        logger.info(f"Making OAuth2 token request to {self.token_url}")
        try:
            response = self.session.post(self.token_url, headers=headers, data=data)
        except requests.RequestException as e:
            logger.error(f"Authentication failed: token request error: {e}")
            return TokenResult(status=AUTH_STATUS_FAILED, body=str(e))

        logger.info(f"OAuth2 token request completed with HTTP status: {response.status_code}")
        result = self._classify_token_response(response)

        if result.ok:
            logger.info(
                f"Authentication successful - received access token: {preview(result.access_token)}"
            )
        elif result.status == AUTH_STATUS_FAILED:
            logger.error(f"Authentication failed (HTTP {result.http_status}): {result.body}")
        else:
            logger.error(f"Authentication failed (HTTP {result.http_status}): {result.hint}")
        return result

    @staticmethod
    def _classify_token_response(response) -> TokenResult:
        status_code = response.status_code
        body = response.text

        if status_code in AUTH_ERROR_STATUSES:
            return TokenResult(AUTH_ERROR_STATUSES[status_code], http_status=status_code, body=body)
        if status_code != 200:
            return TokenResult(AUTH_STATUS_FAILED, http_status=status_code, body=body)

        try:
            payload = response.json()
        except ValueError:
            payload = None
        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            return TokenResult(AUTH_STATUS_NO_TOKEN, http_status=status_code, body=body)
        return TokenResult(
            AUTH_STATUS_SUCCESS,
            access_token=access_token,
            http_status=status_code,
            body=body,
        )

    def register_user(self, access_token: str, member_id: str) -> RegistrationResult:
        """Register a member id against the authenticated account (one request)."""
        url = f"{self.base_url}/users"
        try:
            response = self.session.post(
                url,
                headers=self.bearer_headers(access_token, json_body=True),
                json={"member-id": member_id},
            )
        except requests.RequestException as e:
            logger.error(f"User registration request failed: {e}")
            return RegistrationResult(REGISTER_STATUS_FAILED, member_id, body=str(e))

        status_code = response.status_code
        logger.info(f"User registration request completed with HTTP status: {status_code}")

        if status_code == 200:
            status = REGISTER_STATUS_REGISTERED
        elif status_code == 409:
            status = REGISTER_STATUS_ALREADY_REGISTERED
        elif status_code == 403:
            status = REGISTER_STATUS_CONSENTS_NOT_ACCEPTED
        else:
            status = REGISTER_STATUS_FAILED
        return RegistrationResult(status, member_id, http_status=status_code, body=response.text)

    def get_user_info(self, access_token: str, member_id: str) -> UserInfoResult:
        """Fetch profile fields for a registered member.

        The whole exchange, body included, must finish within
        ``Config.USER_INFO_DEADLINE`` seconds; a slower response counts as a
        transport failure.
        """
        url = f"{self.base_url}/users/{member_id}"
        logger.info(f"Requesting user info from: {url}")
        logger.info(f"Using access token: {preview(access_token)}")

        started = self.clock()
        try:
            response = self.session.get(
                url,
                headers=self.bearer_headers(access_token),
                timeout=Config.USER_INFO_TIMEOUT,
                stream=True,
            )
            try:
                body = self._read_before(response, started + Config.USER_INFO_DEADLINE)
            finally:
                response.close()
        except requests.RequestException as e:
            logger.error(f"User info request failed before any HTTP status: {e}")
            return UserInfoResult(USER_INFO_STATUS_TRANSPORT_ERROR, member_id, error=str(e))

        status_code = response.status_code
        logger.info(f"User info request completed with HTTP status: {status_code}")

        if status_code == 200:
            try:
                payload = json.loads(body)
            except ValueError:
                payload = None
            return UserInfoResult(
                USER_INFO_STATUS_OK,
                member_id,
                user_info=UserInfo.from_payload(payload),
                http_status=status_code,
                body=body,
            )
        if status_code == 204:
            status = USER_INFO_STATUS_NO_DATA
        elif status_code == 403:
            status = USER_INFO_STATUS_FORBIDDEN
        else:
            status = USER_INFO_STATUS_FAILED
        return UserInfoResult(status, member_id, http_status=status_code, body=body)

    def _read_before(self, response, deadline: float) -> str:
        """Read a streamed body, raising requests.Timeout past ``deadline``."""
        chunks = []
        for chunk in response.iter_content(chunk_size=8192):
            if self.clock() > deadline:
                raise requests.Timeout(
                    f"Response not complete within {Config.USER_INFO_DEADLINE}s"
                )
            chunks.append(chunk)
        encoding = getattr(response, "encoding", None) or "utf-8"
        return b"".join(chunks).decode(encoding, errors="replace")

    def check_connectivity(self) -> str:
        """HEAD the API host; returns the status code or CONNECTION_FAILED.

        Used for diagnostics only.
        """
        try:
            response = self.session.head(
                f"{Config.API_BASE_URL}/",
                timeout=Config.CONNECTIVITY_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.info(f"Connectivity test failed: {e}")
            return "CONNECTION_FAILED"
        return str(response.status_code)

    def fetch_continuous_heart_rate(self, access_token: str, date_key: str, save_path: Path) -> int:
        """Write one day's continuous heart rate response body to ``save_path``.

        The body is written whatever the status; the caller decides what to
        keep. Returns the HTTP status code.
        """
        url = f"{self.base_url}/users/continuous-heart-rate/{date_key}"
        response = self.session.get(
            url,
            headers=self.bearer_headers(access_token),
            stream=True,
        )
        try:
            with open(save_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        f.write(chunk)
        finally:
            response.close()
        return response.status_code
