"""Tests for roost.auth.tokens: encoding, decoding, issuing."""

import jwt
import pytest
from jwt.utils import base64url_encode

from roost.auth.tokens import (
    Algorithm,
    MalformedToken,
    decode_token,
    encode_token,
    issue_access_token,
    verify_hs256,
)
from roost.errors import ConfigurationError


def _segment(raw: bytes) -> str:
    return base64url_encode(raw).decode("ascii")


class TestDecodeToken:
    def test_three_segments_required(self) -> None:
        with pytest.raises(MalformedToken, match="Not enough segments"):
            decode_token("abc.def")

    def test_header_must_be_json(self) -> None:
        with pytest.raises(MalformedToken, match="Invalid header"):
            decode_token(f"{_segment(b'not json')}.{_segment(b'{}')}.sig")

    def test_payload_must_be_object(self) -> None:
        header = _segment(b'{"alg":"none"}')
        with pytest.raises(MalformedToken, match="json object"):
            decode_token(f"{header}.{_segment(b'[1, 2]')}.")

    def test_decodes_without_verifying(self) -> None:
        token = encode_token({"userId": 1}, secret="k", algorithm=Algorithm.HS256)
        decoded = decode_token(token)
        assert decoded.header == {"alg": "HS256", "typ": "JWT"}
        assert decoded.payload == {"userId": 1}
        assert decoded.token == token

    def test_ignores_expiry(self) -> None:
        token = encode_token({"userId": 1, "exp": 10}, secret="k", algorithm=Algorithm.HS256)
        assert decode_token(token).payload["exp"] == 10


class TestSigning:
    def test_verify_round_trip(self) -> None:
        token = encode_token({"userId": 1}, secret="secret", algorithm=Algorithm.HS256)
        assert verify_hs256(token, "secret")

    def test_wrong_secret_fails(self) -> None:
        token = encode_token({"userId": 1}, secret="secret", algorithm=Algorithm.HS256)
        assert not verify_hs256(token, "other")

    def test_tampered_payload_fails(self) -> None:
        header, _, signature = encode_token({"isAdmin": False}, secret="secret", algorithm=Algorithm.HS256).split(".")
        forged = _segment(b'{"isAdmin":true}')
        assert not verify_hs256(f"{header}.{forged}.{signature}", "secret")

    def test_unsigned_token_never_verifies(self) -> None:
        assert not verify_hs256(encode_token({"userId": 1}, algorithm=Algorithm.NONE), "secret")

    def test_expired_signature_still_verifies(self) -> None:
        token = encode_token({"exp": 10}, secret="secret", algorithm=Algorithm.HS256)
        assert verify_hs256(token, "secret")

    def test_hs256_without_secret(self) -> None:
        with pytest.raises(ConfigurationError):
            encode_token({}, algorithm=Algorithm.HS256)

    def test_unsigned_token_has_empty_signature(self) -> None:
        token = encode_token({"userId": 1}, algorithm=Algorithm.NONE)
        assert token.endswith(".")
        assert decode_token(token).header["alg"] == "none"


class TestAlgorithmParse:
    def test_known_values(self) -> None:
        assert Algorithm.parse("HS256") is Algorithm.HS256
        assert Algorithm.parse("none") is Algorithm.NONE

    def test_unknown_values(self) -> None:
        assert Algorithm.parse("RS256") is None
        assert Algorithm.parse("NONE") is None
        assert Algorithm.parse(None) is None


class TestIssueAccessToken:
    def test_adds_iat_and_exp(self) -> None:
        token = issue_access_token({"userId": 7}, secret="k", ttl=60, now=1000)
        assert decode_token(token).payload == {"userId": 7, "iat": 1000, "exp": 1060}

    def test_signed_when_secret_set(self) -> None:
        token = issue_access_token({"userId": 7}, secret="k")
        assert decode_token(token).header["alg"] == "HS256"
        assert jwt.decode(token, "k", algorithms=["HS256"])["userId"] == 7

    def test_unsigned_needs_permission(self) -> None:
        with pytest.raises(ConfigurationError, match="insecure dev mode"):
            issue_access_token({"userId": 7})

    def test_unsigned_in_dev_mode(self) -> None:
        token = issue_access_token({"userId": 7}, allow_unsigned=True)
        assert decode_token(token).header["alg"] == "none"
