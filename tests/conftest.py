# -*- coding: utf-8 -*-

import pytest
import requests

from cmc_api import Client

# Stands in for requests.Session. Records what it was asked to send and replays canned responses.
class FakeTransport:
    def __init__(self, responses = None, error = None):
        self.sent = []
        self.closed = False

        self._responses = list(responses or [])
        self._error = error

    def queue(self, response):
        self._responses.append(response)

    def send(self, request, **kwargs):
        self.sent.append((request, kwargs))

        if self._error is not None:
            raise self._error

        return self._responses.pop(0)

    def close(self):
        self.closed = True

def make_response(status = 200, body = b'', headers = None):
    response = requests.Response()
    response.status_code = status
    response._content = body.encode('utf-8') if isinstance(body, str) else body
    response._content_consumed = True
    response.headers.update(headers or {})

    return response

@pytest.fixture
def respond():
    return make_response

@pytest.fixture
def transport():
    return FakeTransport()

@pytest.fixture
def client(transport):
    return Client(session = transport)
