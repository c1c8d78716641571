import webbrowser

import pytest
import requests

from polar_toolkit.clients.polar import PolarClient, AUTH_STATUS_NO_TOKEN
from polar_toolkit.config import PolarSettings
from polar_toolkit.exceptions import AuthenticationError, ConfigurationError
from polar_toolkit.services.auth import AuthService


def test_authorization_url(settings):
    url = AuthService(settings).authorization_url()
    assert url == "https://flow.polar.com/oauth2/authorization?response_type=code&client_id=client-id"


def test_authorization_url_requires_client_id():
    with pytest.raises(ConfigurationError, match="CLIENT_ID"):
        AuthService(PolarSettings()).authorization_url()


def test_open_authorization_url(settings):
    opened_urls = []

    def opener(url):
        opened_urls.append(url)
        return True

    url, opened = AuthService(settings).open_authorization_url(opener=opener)

    assert opened
    assert opened_urls == [url]


def test_open_authorization_url_without_browser(settings):
    def opener(url):
        raise webbrowser.Error("could not locate runnable browser")

    url, opened = AuthService(settings).open_authorization_url(opener=opener)

    assert url.startswith("https://flow.polar.com/")
    assert not opened


def test_authenticate_returns_token(settings, fake_session, fake_response):
    session = fake_session(lambda *a: fake_response(200, {"access_token": "TOKEN123", "x_user_id": 1}))
    service = AuthService(settings, client=PolarClient(settings, session=session))

    assert service.authenticate("AUTHCODE") == "TOKEN123"


def test_authenticate_without_token_raises(settings, fake_session, fake_response):
    session = fake_session(lambda *a: fake_response(200, {}))
    service = AuthService(settings, client=PolarClient(settings, session=session))

    with pytest.raises(AuthenticationError) as excinfo:
        service.authenticate("AUTHCODE")
    assert excinfo.value.result.status == AUTH_STATUS_NO_TOKEN


def test_authenticate_requires_code(settings, fake_session):
    session = fake_session(lambda *a: pytest.fail("no request expected"))
    service = AuthService(settings, client=PolarClient(settings, session=session))

    with pytest.raises(ConfigurationError, match="Authorization code"):
        service.authenticate("")

def test_authenticate_transport_error_names_missing_response(settings, fake_session):
    session = fake_session(lambda *a: requests.ConnectionError("refused"))
    service = AuthService(settings, client=PolarClient(settings, session=session))

    with pytest.raises(AuthenticationError) as excinfo:
        service.authenticate("AUTHCODE")
    message = str(excinfo.value)
    assert "No response from token endpoint: refused" in message
    assert "None" not in message
