"""
Shared fixtures: an app client signed in through the OAuth flow, with the
Management API and token endpoint replaced by fakes from fakes.py.
"""

from __future__ import annotations

from typing import AsyncIterator
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from fakes import FakeManagementAPI, make_oauth_client, token_endpoint
from project_migrator.core.session import require_access_token
from project_migrator.main import app
from project_migrator.modules.migrate.client import ManagementAPIClient, get_management_client
from project_migrator.modules.migrate.services import snapshot_cache
from project_migrator.modules.oauth.client import OAuthClient, get_oauth_client


@pytest.fixture(autouse=True)
def _reset_app_state():
    yield
    app.dependency_overrides.clear()
    snapshot_cache.clear()


@pytest.fixture
def management_api() -> FakeManagementAPI:
    fake = FakeManagementAPI()

    async def override(
        access_token: str = Depends(require_access_token),
    ) -> AsyncIterator[ManagementAPIClient]:
        async with fake.client(access_token) as client:
            yield client

    app.dependency_overrides[get_management_client] = override
    return fake


@pytest.fixture
def oauth_client() -> OAuthClient:
    client = make_oauth_client(token_endpoint)
    app.dependency_overrides[get_oauth_client] = lambda: client
    return client


@pytest.fixture
def client() -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


def login(test_client: TestClient) -> None:
    """Run the OAuth flow against the fake token endpoint."""
    response = test_client.get("/connect-supabase/login", follow_redirects=False)
    assert response.status_code == 303
    state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]

    response = test_client.get(
        "/connect-supabase/oauth2/callback",
        params={"code": "auth-code", "state": state},
        follow_redirects=False,
    )
    assert response.status_code == 200


@pytest.fixture
def signed_in_client(client: TestClient, oauth_client: OAuthClient) -> TestClient:
    login(client)
    return client
