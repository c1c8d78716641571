"""Shared fixtures: fake requests session and canned responses."""

import json

import pytest

from polar_toolkit.config import PolarSettings


class FakeResponse:
    """Just enough of requests.Response for the Polar client."""

    def __init__(self, status_code, payload=None, text=None, content=None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text
        self.content = content if content is not None else text.encode("utf-8")
        self.closed = False

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start:start + chunk_size]

    def close(self):
        self.closed = True


class FakeSession:
    """Routes every request through ``handler(method, url, kwargs)``.

    The handler returns a FakeResponse or an exception instance to raise.
    """

    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    def _request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        result = self.handler(method, url, kwargs)
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, url, **kwargs):
        return self._request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._request("POST", url, **kwargs)

    def head(self, url, **kwargs):
        return self._request("HEAD", url, **kwargs)

    def calls_to(self, fragment):
        return [call for call in self.calls if fragment in call[1]]


@pytest.fixture
def settings():
    return PolarSettings(
        client_id="client-id",
        client_secret="client-secret",
        member_id="201787",
        auth_code="",
    )


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_session():
    return FakeSession
