import datetime
import jwt
import pytest
import ninebooks.config
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
import ninebooks.middleware.auth as auth
from tests.conftest import make_token


def encode(claims):
    settings = ninebooks.config.settings
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def in_minutes(minutes: int) -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(minutes=minutes)


def test_valid_token():
    claims = auth.decode_session_token(make_token("user_42"))
    assert claims["sub"] == "user_42"


def test_expired_token():
    assert auth.decode_session_token(encode({"sub": "u", "exp": in_minutes(-10)})) is None


def test_token_without_subject():
    assert auth.decode_session_token(encode({"exp": in_minutes(10)})) is None


def test_wrong_signature():
    token = jwt.encode({"sub": "u", "exp": in_minutes(10)}, "another-secret", algorithm="HS256")
    assert auth.decode_session_token(token) is None


def test_issuer_is_checked_when_configured(mocker):
    mocker.patch.object(ninebooks.config.settings, "jwt_issuer", "https://id.example")

    assert auth.decode_session_token(encode({"sub": "u", "exp": in_minutes(10), "iss": "https://evil.example"})) is None
    assert auth.decode_session_token(encode({"sub": "u", "exp": in_minutes(10), "iss": "https://id.example"}))


def test_expired_token_on_protected_route(client):
    headers = {"Authorization": f"Bearer {encode({'sub': 'u', 'exp': in_minutes(-10)})}"}
    response = client.post("/api/v1/shelves", json={"name": "Mine"}, headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_require_user_passes_user_through():
    user = {"user_id": "u", "session_id": None}
    assert await auth.require_user(user) is user


def test_public_key_verifies_rs256_tokens(mocker):
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    public_pem = private_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo
    ).decode()
    mocker.patch.object(ninebooks.config.settings, "jwt_public_key", public_pem)

    token = jwt.encode({"sub": "idp_user", "exp": in_minutes(10)}, private_key, algorithm="RS256")
    claims = auth.decode_session_token(token)

    assert claims["sub"] == "idp_user"
    assert auth.decode_session_token(encode({"sub": "u", "exp": in_minutes(10)})) is None
