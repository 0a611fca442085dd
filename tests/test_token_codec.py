from datetime import timedelta

import jwt
import pytest

from app.domain.exceptions import InvalidTokenError, TokenExpiredError, WrongTokenClassError
from app.services.token_codec import TokenClass, TokenCodec

from .conftest import ACCESS_SECRET, REFRESH_SECRET


class TestTokenCodec:
    def test_access_token_round_trip(self, token_codec):
        token = token_codec.issue(7, "alice@example.com", TokenClass.ACCESS)

        claims = token_codec.verify(token, TokenClass.ACCESS)

        assert claims.subject_id == "7"
        assert claims.subject_email == "alice@example.com"
        assert claims.token_class is TokenClass.ACCESS
        assert claims.token_id is None

    def test_tokens_are_signed_with_class_secret(self, token_codec):
        access = token_codec.issue(1, "a@example.com", TokenClass.ACCESS)
        refresh = token_codec.issue(1, "a@example.com", TokenClass.REFRESH)

        assert jwt.decode(access, ACCESS_SECRET, algorithms=["HS256"])["type"] == "access"
        payload = jwt.decode(refresh, REFRESH_SECRET, algorithms=["HS256"])
        assert payload["type"] == "refresh"
        assert payload["jti"]

    def test_access_lifetime_defaults_to_fifteen_minutes(self, token_codec):
        token = token_codec.issue(1, "a@example.com", TokenClass.ACCESS)
        payload = jwt.decode(token, ACCESS_SECRET, algorithms=["HS256"])

        assert payload["exp"] - payload["iat"] == 15 * 60

    def test_refresh_lifetime_defaults_to_seven_days(self, token_codec):
        token = token_codec.issue(1, "a@example.com", TokenClass.REFRESH)
        payload = jwt.decode(token, REFRESH_SECRET, algorithms=["HS256"])

        assert payload["exp"] - payload["iat"] == 7 * 24 * 3600

    def test_refresh_token_rejected_as_access(self, token_codec):
        refresh = token_codec.issue(1, "a@example.com", TokenClass.REFRESH)

        with pytest.raises(WrongTokenClassError) as exc_info:
            token_codec.verify(refresh, TokenClass.ACCESS)
        assert exc_info.value.code == "TOKEN_WRONG_CLASS"

    def test_access_token_rejected_as_refresh(self, token_codec):
        access = token_codec.issue(1, "a@example.com", TokenClass.ACCESS)

        with pytest.raises(WrongTokenClassError):
            token_codec.verify(access, TokenClass.REFRESH)

    def test_type_claim_checked_when_secrets_match(self):
        codec = TokenCodec(access_secret="shared", refresh_secret="shared")
        refresh = codec.issue(1, "a@example.com", TokenClass.REFRESH)

        with pytest.raises(WrongTokenClassError):
            codec.verify(refresh, TokenClass.ACCESS)

    def test_expired_token(self):
        codec = TokenCodec(
            access_secret=ACCESS_SECRET,
            refresh_secret=REFRESH_SECRET,
            access_ttl=timedelta(seconds=-5),
        )
        token = codec.issue(1, "a@example.com", TokenClass.ACCESS)

        with pytest.raises(TokenExpiredError) as exc_info:
            codec.verify(token, TokenClass.ACCESS)
        assert exc_info.value.code == "TOKEN_EXPIRED"

    def test_tampered_signature(self, token_codec):
        token = token_codec.issue(1, "a@example.com", TokenClass.ACCESS)
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[:-4] + ("AAAA" if signature[-4:] != "AAAA" else "BBBB")])

        with pytest.raises(InvalidTokenError) as exc_info:
            token_codec.verify(tampered, TokenClass.ACCESS)
        assert exc_info.value.code == "TOKEN_INVALID"

    def test_garbage_token(self, token_codec):
        with pytest.raises(InvalidTokenError):
            token_codec.verify("not.a.jwt", TokenClass.REFRESH)

    def test_token_signed_elsewhere(self, token_codec):
        foreign = jwt.encode({"sub": "1", "email": "a@example.com", "type": "access", "exp": 9999999999}, "other", algorithm="HS256")

        with pytest.raises(InvalidTokenError):
            token_codec.verify(foreign, TokenClass.ACCESS)

    def test_missing_secret_is_a_configuration_error(self):
        with pytest.raises(RuntimeError):
            TokenCodec(access_secret="", refresh_secret="x")
