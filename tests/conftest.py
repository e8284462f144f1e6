"""
Shared fixtures.

HTTP is faked at the requests.Session boundary: tests queue real
requests.Response objects on ``session.request``.
"""

import json
from unittest.mock import Mock

import pytest
import requests

from facility_admin.api.client import ApiClient
from facility_admin.api.dashboard import DashboardAPI
from facility_admin.auth.token_store import InMemoryTokenStore
from facility_admin.domain import TokenPair

BASE_URL = "http://api.test"


def build_response(status_code=200, payload=None, url=BASE_URL):
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response.encoding = "utf-8"
    if payload is None:
        response._content = b""
    else:
        response._content = json.dumps(payload).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    return response


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def http_session():
    return Mock(spec=requests.Session)


@pytest.fixture
def token_store():
    return InMemoryTokenStore(TokenPair(access_token="access-1", refresh_token="refresh-1"))


@pytest.fixture
def api_client(http_session, token_store):
    return ApiClient(BASE_URL, token_store=token_store, session=http_session)


@pytest.fixture
def dashboard_api(api_client):
    return DashboardAPI(api_client)
