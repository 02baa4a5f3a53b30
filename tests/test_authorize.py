"""Tests for authorization request URL construction."""

from urllib.parse import parse_qs, urlparse

from oauth.authorize import build_authorization_url


def test_adds_parameters_to_plain_endpoint():
    url = build_authorization_url("http://auth.example/authorize", {
        "response_type": "code",
        "scope": "openid profile",
        "client_id": "client123",
        "redirect_uri": "http://localhost:9000/callback",
        "state": "abc",
    })
    parsed = urlparse(url)
    query = parse_qs(parsed.query)

    assert parsed.netloc == "auth.example"
    assert parsed.path == "/authorize"
    assert query["response_type"] == ["code"]
    assert query["scope"] == ["openid profile"]
    assert query["client_id"] == ["client123"]
    assert query["redirect_uri"] == ["http://localhost:9000/callback"]
    assert query["state"] == ["abc"]


def test_keeps_existing_query_parameters():
    url = build_authorization_url("http://auth.example/authorize?tenant=acme", {"state": "abc"})
    query = parse_qs(urlparse(url).query)
    assert query["tenant"] == ["acme"]
    assert query["state"] == ["abc"]


def test_new_value_wins_for_duplicate_key():
    url = build_authorization_url("http://auth.example/authorize?state=old", {"state": "new"})
    assert parse_qs(urlparse(url).query)["state"] == ["new"]


def test_values_are_percent_encoded():
    url = build_authorization_url("http://auth.example/authorize", {
        "redirect_uri": "http://localhost:9000/callback?x=1&y=2",
    })
    assert "redirect_uri=http%3A%2F%2Flocalhost%3A9000%2Fcallback%3Fx%3D1%26y%3D2" in url


def test_none_values_are_skipped_and_fragment_set():
    url = build_authorization_url("http://auth.example/authorize", {"scope": None, "state": "s"}, fragment="top")
    parsed = urlparse(url)
    assert "scope" not in parse_qs(parsed.query)
    assert parsed.fragment == "top"


def test_repeated_endpoint_parameters_are_kept():
    url = build_authorization_url(
        "http://auth.example/authorize?resource=x&resource=y&state=old", {"state": "s"}
    )
    query = parse_qs(urlparse(url).query)
    assert query["resource"] == ["x", "y"]
    assert query["state"] == ["s"]
