"""Tests for member registration and user info flows."""

import pytest
import requests

from polar_toolkit.clients.polar import (
    PolarClient,
    REGISTER_STATUS_ALREADY_REGISTERED,
    REGISTER_STATUS_REGISTERED,
    USER_INFO_STATUS_NO_DATA,
    USER_INFO_STATUS_OK,
)
from polar_toolkit.config import PolarSettings
from polar_toolkit.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConsentError,
    PolarAPIError,
    TransportError,
)
from polar_toolkit.services.account import AccountService

TOKEN_URL = "https://polarremote.com/v2/oauth2/token"


def _handler(fake_response, api_response, token_status=200):
    def handler(method, url, kwargs):
        if url == TOKEN_URL:
            if token_status == 200:
                return fake_response(200, {"access_token": "TOKEN123"})
            return fake_response(token_status, {"error": "unauthorized_client"})
        if method == "HEAD":
            return fake_response(200)
        return api_response

    return handler


def _service(settings, session):
    return AccountService(settings, client=PolarClient(settings, session=session))


class TestRegister:
    def test_registered(self, settings, fake_session, fake_response):
        session = fake_session(_handler(fake_response, fake_response(200, {"polar-user-id": 1})))
        result = _service(settings, session).register("AUTHCODE", "555")

        assert result.status == REGISTER_STATUS_REGISTERED
        assert session.calls[-1][2]["json"] == {"member-id": "555"}

    def test_already_registered_is_success(self, settings, fake_session, fake_response):
        session = fake_session(_handler(fake_response, fake_response(409, text="Conflict")))
        result = _service(settings, session).register("AUTHCODE")

        assert result.status == REGISTER_STATUS_ALREADY_REGISTERED
        assert result.ok
        assert result.member_id == "201787"

    def test_consents_not_accepted(self, settings, fake_session, fake_response):
        session = fake_session(_handler(fake_response, fake_response(403, text="consents")))

        with pytest.raises(ConsentError) as excinfo:
            _service(settings, session).register("AUTHCODE")
        assert excinfo.value.status_code == 403

    def test_other_failure_carries_status_and_body(self, settings, fake_session, fake_response):
        session = fake_session(_handler(fake_response, fake_response(500, text="boom")))

        with pytest.raises(PolarAPIError) as excinfo:
            _service(settings, session).register("AUTHCODE")
        assert not isinstance(excinfo.value, ConsentError)
        assert excinfo.value.status_code == 500
        assert excinfo.value.body == "boom"

    def test_exactly_one_registration_request(self, settings, fake_session, fake_response):
        session = fake_session(_handler(fake_response, fake_response(409)))
        _service(settings, session).register("AUTHCODE")

        assert len(session.calls_to("/v3/users")) == 1

    def test_authentication_failure_aborts(self, settings, fake_session, fake_response):
        session = fake_session(_handler(fake_response, fake_response(200), token_status=401))

        with pytest.raises(AuthenticationError) as excinfo:
            _service(settings, session).register("AUTHCODE")
        assert "Client credentials" in str(excinfo.value)
        assert session.calls_to("/v3/users") == []

    def test_member_id_not_required_from_env_when_given(self, fake_session, fake_response):
        settings = PolarSettings("client-id", "client-secret")
        session = fake_session(_handler(fake_response, fake_response(200)))

        result = _service(settings, session).register("AUTHCODE", "777")

        assert result.member_id == "777"

    def test_requires_some_member_id(self, fake_session):
        settings = PolarSettings("client-id", "client-secret")
        session = fake_session(lambda *a: pytest.fail("no request expected"))

        with pytest.raises(ConfigurationError):
            _service(settings, session).register("AUTHCODE")


class TestFetchUserInfo:
    def test_ok(self, settings, fake_session, fake_response):
        payload = {"member-id": "201787", "first-name": "Eka", "weight": 66.0}
        session = fake_session(_handler(fake_response, fake_response(200, payload)))

        result = _service(settings, session).fetch_user_info("AUTHCODE")

        assert result.status == USER_INFO_STATUS_OK
        assert result.user_info.first_name == "Eka"
        assert result.user_info.gender is None

    def test_no_data_is_not_fatal(self, settings, fake_session, fake_response):
        session = fake_session(_handler(fake_response, fake_response(204)))

        result = _service(settings, session).fetch_user_info("AUTHCODE")

        assert result.status == USER_INFO_STATUS_NO_DATA

    def test_forbidden(self, settings, fake_session, fake_response):
        session = fake_session(_handler(fake_response, fake_response(403)))

        with pytest.raises(ConsentError):
            _service(settings, session).fetch_user_info("AUTHCODE")

    def test_other_failure(self, settings, fake_session, fake_response):
        session = fake_session(_handler(fake_response, fake_response(404, text="not found")))

        with pytest.raises(PolarAPIError) as excinfo:
            _service(settings, session).fetch_user_info("AUTHCODE")
        assert excinfo.value.status_code == 404

    def test_transport_failure_checks_connectivity(self, settings, fake_session, fake_response):
        session = fake_session(_handler(fake_response, requests.ConnectTimeout("connect timeout")))

        with pytest.raises(TransportError, match="connectivity test: 200"):
            _service(settings, session).fetch_user_info("AUTHCODE")

        methods = [method for method, _, _ in session.calls]
        assert methods == ["POST", "GET", "HEAD"]

    def test_requires_member_id(self, fake_session):
        settings = PolarSettings("client-id", "client-secret")
        session = fake_session(lambda *a: pytest.fail("no request expected"))

        with pytest.raises(ConfigurationError, match="MEMBER_ID"):
            _service(settings, session).fetch_user_info("AUTHCODE")
