import pytest
from datetime import datetime, timedelta, UTC
from jose import jwt

from app.core.exceptions import InvalidTokenError
from app.core.security import PasswordHasher, TokenCodec
from app.schemas.token import TokenPayload

PAYLOAD = TokenPayload(user_id=42, email="a@x.com")

def test_password_hash_is_salted(password_hasher: PasswordHasher):
    first = password_hasher.hash("secret1")
    second = password_hasher.hash("secret1")
    assert first != second
    assert "secret1" not in first

def test_password_verify(password_hasher: PasswordHasher):
    hashed = password_hasher.hash("secret1")
    assert password_hasher.verify("secret1", hashed)
    assert not password_hasher.verify("secret2", hashed)

def test_dummy_verify_never_matches(password_hasher: PasswordHasher):
    assert password_hasher.dummy_verify("secret1") is False

def test_password_hash_uses_configured_cost():
    hashed = PasswordHasher(rounds=5).hash("secret1")
    assert hashed.startswith("$2b$05$")

def test_access_token_round_trip(token_codec: TokenCodec):
    token = token_codec.sign_access(PAYLOAD)
    assert token_codec.verify_access(token) == PAYLOAD

def test_refresh_token_round_trip(token_codec: TokenCodec):
    token = token_codec.sign_refresh(PAYLOAD)
    assert token_codec.verify_refresh(token) == PAYLOAD

def test_tokens_for_same_payload_are_distinct(token_codec: TokenCodec):
    assert token_codec.sign_access(PAYLOAD) != token_codec.sign_access(PAYLOAD)
    assert token_codec.sign_refresh(PAYLOAD) != token_codec.sign_refresh(PAYLOAD)

def test_token_kinds_do_not_cross(token_codec: TokenCodec):
    with pytest.raises(InvalidTokenError):
        token_codec.verify_refresh(token_codec.sign_access(PAYLOAD))
    with pytest.raises(InvalidTokenError):
        token_codec.verify_access(token_codec.sign_refresh(PAYLOAD))

def test_expired_token_is_rejected():
    codec = TokenCodec("a", "r", access_expires=timedelta(seconds=-1))
    with pytest.raises(InvalidTokenError):
        codec.verify_access(codec.sign_access(PAYLOAD))

def test_expired_refresh_token_is_rejected():
    codec = TokenCodec("a", "r", refresh_expires=timedelta(seconds=-1))
    with pytest.raises(InvalidTokenError):
        codec.verify_refresh(codec.sign_refresh(PAYLOAD))

def test_wrong_secret_is_rejected(token_codec: TokenCodec):
    other = TokenCodec("other-access", "other-refresh")
    with pytest.raises(InvalidTokenError):
        token_codec.verify_access(other.sign_access(PAYLOAD))

def test_tampered_token_is_rejected(token_codec: TokenCodec):
    header, body, signature = token_codec.sign_access(PAYLOAD).split(".")
    tampered = ".".join([header, body, signature[::-1]])
    with pytest.raises(InvalidTokenError):
        token_codec.verify_access(tampered)

@pytest.mark.parametrize(
    "claims",
    [
        {"sub": "42", "type": "access"},
        {"sub": "not-a-number", "email": "a@x.com", "type": "access"},
        {"email": "a@x.com", "type": "access"},
    ],
)
def test_malformed_payload_is_rejected(token_codec: TokenCodec, claims):
    claims = {**claims, "exp": datetime.now(UTC) + timedelta(minutes=5)}
    token = jwt.encode(claims, token_codec.access_secret, algorithm=token_codec.algorithm)
    with pytest.raises(InvalidTokenError):
        token_codec.verify_access(token)

def test_token_carries_identity_claims(token_codec: TokenCodec):
    claims = jwt.get_unverified_claims(token_codec.sign_access(PAYLOAD))
    assert claims["sub"] == "42"
    assert claims["email"] == "a@x.com"
    assert claims["type"] == "access"
    assert claims["exp"] > claims["iat"]
