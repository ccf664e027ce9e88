"""Unit tests for TokenVerifier."""

from __future__ import annotations

import base64
import json

import pytest

from slashid_sdk.exceptions import MalformedTokenError


@pytest.mark.parametrize("valid", [True, False])
def test_validate_returns_remote_verdict(make_client, valid: bool) -> None:
    client, recorder = make_client([(200, {"result": {"valid": valid}})])

    assert client.token.validate("aaaaa") is valid

    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/token/validate"
    assert json.loads(request.content) == {"token": "aaaaa"}


@pytest.mark.parametrize("response", [{}, {"result": {}}, {"result": []}, {"result": {"valid": 1}}])
def test_validate_defaults_to_false(make_client, response) -> None:
    client, _ = make_client([(200, response)])

    assert client.token.validate("aaaaa") is False


def test_validate_with_empty_body_is_false(make_client) -> None:
    client, _ = make_client([(204, None)])

    assert client.token.validate("aaaaa") is False


@pytest.mark.parametrize("token", ["aaaa", "aaaa.aaaa.aaaa.aaaa", "a.b"])
def test_extract_subject_rejects_wrong_segment_count(make_client, token: str) -> None:
    client, recorder = make_client()

    with pytest.raises(MalformedTokenError, match="The token is malformed."):
        client.token.extract_subject(token)

    assert recorder.requests == []


def test_extract_subject_reads_standard_base64_payload(make_client) -> None:
    client, _ = make_client()
    payload = base64.b64encode(json.dumps({"sub": "9999-9999-9999"}).encode()).decode()

    assert client.token.extract_subject(f"aaaa.{payload}.aaaa") == "9999-9999-9999"


def test_extract_subject_reads_unpadded_urlsafe_payload(make_client) -> None:
    client, _ = make_client()
    raw = json.dumps({"sub": "S", "name": "??>"}).encode()
    payload = base64.urlsafe_b64encode(raw).rstrip(b"=").decode()

    assert client.token.extract_subject(f"a.{payload}.c") == "S"


def test_extract_subject_without_sub_returns_none(make_client) -> None:
    client, _ = make_client()
    payload = base64.b64encode(b'{"iss":"x"}').decode()

    assert client.token.extract_subject(f"a.{payload}.c") is None


@pytest.mark.parametrize("payload", ["!!!!", base64.b64encode(b"not json").decode(), "WzFd"])
def test_extract_subject_rejects_undecodable_payload(make_client, payload: str) -> None:
    client, _ = make_client()

    with pytest.raises(MalformedTokenError):
        client.token.extract_subject(f"a.{payload}.c")
