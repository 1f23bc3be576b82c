"""
Pytest configuration and shared fixtures.

HTTP traffic goes through ScriptedAdapter, a requests transport adapter
mounted on the shared session that records each prepared request and
answers from a queue of canned responses.
"""

from typing import List

import pytest
import requests
from requests.adapters import BaseAdapter

from tableau_client.core.logger import Logger
from tableau_client.core.models import APISession
from tableau_client.handlers.api_client import TableauAPI
from tableau_client.handlers.dispatcher import RequestDispatcher

from tests.support import SERVER


class ScriptedAdapter(BaseAdapter):
    """Transport adapter replaying queued responses."""

    def __init__(self):
        super().__init__()
        self.requests: List[requests.PreparedRequest] = []
        self.timeouts = []
        self._queue = []

    def queue(self, status: int = 200, body: bytes = b'', headers=None):
        self._queue.append((status, body, headers or {}))
        return self

    def fail_with(self, error: Exception):
        self._queue.append(error)
        return self

    @property
    def last(self) -> requests.PreparedRequest:
        return self.requests[-1]

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.requests.append(request)
        self.timeouts.append(timeout)
        if not self._queue:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")

        item = self._queue.pop(0)
        if isinstance(item, Exception):
            raise item

        status, body, headers = item
        response = requests.Response()
        response.status_code = status
        response._content = body
        response.headers['Content-Type'] = 'application/xml'
        response.headers.update(headers)
        response.encoding = 'utf-8'
        response.request = request
        response.url = request.url
        return response

    def close(self):
        pass


@pytest.fixture
def adapter():
    return ScriptedAdapter()


@pytest.fixture
def http(adapter):
    session = requests.Session()
    session.mount(SERVER, adapter)
    yield session
    session.close()


@pytest.fixture
def api_session():
    return APISession(server=SERVER, version='2.3')


@pytest.fixture
def dispatcher(api_session, http):
    return RequestDispatcher(api_session, http=http)


@pytest.fixture
def api(http):
    return TableauAPI(SERVER, '2.3', http=http)


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    Logger.reset()
