"""
Tests for intunesync.auth.credential_manager module.
"""

from __future__ import annotations

import io
import sys
from urllib.parse import unquote

import pytest
import requests
import requests_mock

from intunesync.auth import CredentialManager
from intunesync.exceptions import AuthenticationError

pytestmark = pytest.mark.unit

TOKEN_URL = "https://login.microsoftonline.com/tenant-1/oauth2/v2.0/token"


@pytest.fixture
def env(monkeypatch):
    """Set the three INTUNE_* variables and detach stdin from a terminal."""
    monkeypatch.setenv("INTUNE_TENANT_ID", "tenant-1")
    monkeypatch.setenv("INTUNE_CLIENT_ID", "client-1")
    monkeypatch.setenv("INTUNE_CLIENT_SECRET", "s3cret")
    monkeypatch.setattr(sys, "stdin", io.StringIO())
    return monkeypatch


class TestEnvironment:
    """Tests for reading credentials from the environment."""

    def test_getters_read_prefixed_variables(self, env):
        """Test that INTUNE_* variables are returned."""
        creds = CredentialManager()
        assert creds.get_tenant_id() == "tenant-1"
        assert creds.get_client_id() == "client-1"
        assert creds.get_client_secret() == "s3cret"

    def test_missing_variable_raises(self, env):
        """Test that a missing variable names the expected key."""
        env.delenv("INTUNE_TENANT_ID")
        creds = CredentialManager()
        with pytest.raises(AuthenticationError, match="INTUNE_TENANT_ID"):
            creds.get_tenant_id()

    def test_missing_secret_without_terminal_raises(self, env):
        """Test that no prompt is attempted when stdin is not a terminal."""
        env.delenv("INTUNE_CLIENT_SECRET")
        creds = CredentialManager()
        with pytest.raises(AuthenticationError, match="INTUNE_CLIENT_SECRET"):
            creds.get_client_secret()

    def test_custom_prefix(self, env):
        """Test that the prefix is configurable."""
        env.setenv("OTHER_TENANT_ID", "tenant-2")
        assert CredentialManager(env_prefix="OTHER_").get_tenant_id() == "tenant-2"


class TestToken:
    """Tests for the client-credentials token flow."""

    def test_token_request_and_cache(self, env):
        """Test that the token is fetched once and then cached."""
        with requests_mock.Mocker() as m:
            m.post(TOKEN_URL, json={"access_token": "abc", "expires_in": 3600})
            creds = CredentialManager()

            assert creds.get_token() == "abc"
            assert creds.get_token() == "abc"
            assert m.call_count == 1

            body = m.last_request.text
            assert "grant_type=client_credentials" in body
            assert "client_id=client-1" in body

    def test_token_refreshed_inside_margin(self, env):
        """Test that a token expiring within the margin is refreshed."""
        with requests_mock.Mocker() as m:
            m.post(
                TOKEN_URL,
                [
                    {"json": {"access_token": "short", "expires_in": 30}},
                    {"json": {"access_token": "fresh", "expires_in": 3600}},
                ],
            )
            creds = CredentialManager(refresh_margin=60)

            assert creds.get_token() == "short"
            assert creds.get_token() == "fresh"
            assert m.call_count == 2

    def test_rejected_credentials_raise(self, env):
        """Test that an error response raises AuthenticationError."""
        with requests_mock.Mocker() as m:
            m.post(
                TOKEN_URL,
                status_code=401,
                json={"error": "invalid_client", "error_description": "AADSTS7000215: Invalid client secret"},
            )
            with pytest.raises(AuthenticationError, match="AADSTS7000215"):
                CredentialManager().get_token()

    def test_network_failure_raises(self, env):
        """Test that connection errors raise AuthenticationError."""
        with requests_mock.Mocker() as m:
            m.post(TOKEN_URL, exc=requests.exceptions.ConnectTimeout("timeout"))
            with pytest.raises(AuthenticationError, match="Token request failed"):
                CredentialManager().get_token()

    def test_scope_is_sent(self, env):
        """Test that the configured scope is requested."""
        with requests_mock.Mocker() as m:
            m.post(TOKEN_URL, json={"access_token": "abc", "expires_in": 3600})
            CredentialManager(scope="https://graph.example/.default").get_token()
            assert "graph.example" in unquote(m.last_request.text)
