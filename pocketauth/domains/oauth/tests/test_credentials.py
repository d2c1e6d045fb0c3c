"""Unit tests for SessionCredentials."""

import pytest

from pocketauth.domains.oauth.credentials import SessionCredentials


def test_starts_empty():
    creds = SessionCredentials()
    assert creds.as_tuple() == ("", "")
    assert creds.is_authenticated is False


def test_store_and_clear():
    creds = SessionCredentials()
    creds.store("tok", "alice")
    assert creds.as_tuple() == ("tok", "alice")
    assert creds.is_authenticated is True

    creds.clear()
    assert creds.as_tuple() == ("", "")
    assert creds.is_authenticated is False


def test_token_without_username_is_authenticated():
    creds = SessionCredentials()
    creds.store("tok", "")
    assert creds.is_authenticated is True


def test_empty_token_is_rejected():
    creds = SessionCredentials()
    with pytest.raises(ValueError):
        creds.store("", "alice")
    assert creds.as_tuple() == ("", "")
