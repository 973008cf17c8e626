"""Tests for credential resolution."""

import pytest

from twentyi_mcp.credentials import Credentials, resolve
from twentyi_mcp.errors import CredentialError

FULL_ENV = {
    "TWENTYI_API_KEY": "envGeneral1",
    "TWENTYI_OAUTH_KEY": "envOauth2",
    "TWENTYI_COMBINED_KEY": "envCombined+3",
}

CREDENTIALS_TEXT = """\
Your API keys for 20i
Your general API key is: abc123DEF
Your OAuth client key is:  oauth789XYZ
Your combined API key is: c0mb+ined+KEY
"""


@pytest.fixture
def credentials_file(tmp_path):
    path = tmp_path / "ignor.txt"
    path.write_text(CREDENTIALS_TEXT)
    return path


class TestEnvironment:
    def test_all_three_variables_win(self, credentials_file):
        creds = resolve(environ=FULL_ENV, path=credentials_file)
        assert creds.api_key == "envGeneral1"
        assert creds.oauth_key == "envOauth2"
        assert creds.combined_key == "envCombined+3"

    def test_file_not_read_when_env_complete(self, tmp_path):
        creds = resolve(environ=FULL_ENV, path=tmp_path / "does-not-exist.txt")
        assert creds.api_key == "envGeneral1"

    def test_partial_env_falls_back_to_file(self, credentials_file):
        env = dict(FULL_ENV, TWENTYI_OAUTH_KEY="")
        creds = resolve(environ=env, path=credentials_file)
        assert creds.api_key == "abc123DEF"


class TestFallbackFile:
    def test_extracts_labelled_tokens(self, credentials_file):
        creds = resolve(environ={}, path=credentials_file)
        assert creds.api_key == "abc123DEF"
        assert creds.oauth_key == "oauth789XYZ"
        assert creds.combined_key == "c0mb+ined+KEY"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(CredentialError, match="unreadable"):
            resolve(environ={}, path=tmp_path / "missing.txt")

    def test_missing_label_raises_naming_token(self, tmp_path):
        path = tmp_path / "ignor.txt"
        path.write_text("Your general API key is: abc123\nYour OAuth client key is: def456\n")
        with pytest.raises(CredentialError, match="combined_key"):
            resolve(environ={}, path=path)

    def test_non_utf8_file_raises(self, tmp_path):
        path = tmp_path / "ignor.txt"
        path.write_text(CREDENTIALS_TEXT, encoding="utf-16")
        with pytest.raises(CredentialError, match="unreadable"):
            resolve(environ={}, path=path)

    def test_token_must_share_the_label_line(self, tmp_path):
        path = tmp_path / "ignor.txt"
        path.write_text(CREDENTIALS_TEXT.replace("is: abc123DEF", "is:\nabc123DEF"))
        with pytest.raises(CredentialError, match="api_key"):
            resolve(environ={}, path=path)


class TestCredentialsModel:
    def test_repr_hides_tokens(self):
        creds = Credentials(api_key="secretA", oauth_key="secretB", combined_key="secretC")
        assert "secret" not in repr(creds)

    def test_is_immutable(self):
        creds = Credentials(api_key="a", oauth_key="b", combined_key="c")
        with pytest.raises(Exception):
            creds.api_key = "other"
