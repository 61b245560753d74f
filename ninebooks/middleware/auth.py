import typing
import logging
import jwt
import fastapi
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import ninebooks.config

logger = logging.getLogger(__name__)

CurrentUser = typing.Dict[str, typing.Any]

_bearer = HTTPBearer(auto_error=False)


def _verification() -> typing.Tuple[str, typing.List[str]]:
    # identity provider tokens are RS256 signed; local/dev tokens use the shared secret
    settings = ninebooks.config.settings
    if settings.jwt_public_key:
        return settings.jwt_public_key, ["RS256"]
    return settings.jwt_secret_key, [settings.jwt_algorithm]


def decode_session_token(token: str) -> typing.Optional[typing.Dict[str, typing.Any]]:
    settings = ninebooks.config.settings
    key, algorithms = _verification()
    options = {"require": ["sub", "exp"]}
    kwargs: typing.Dict[str, typing.Any] = {}
    if settings.jwt_issuer:
        kwargs["issuer"] = settings.jwt_issuer
        options["verify_iss"] = True

    try:
        return jwt.decode(
            token,
            key,
            algorithms=algorithms,
            leeway=settings.jwt_leeway_seconds,
            options=options,
            **kwargs
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Session token expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected session token: {e}")
    return None


async def get_current_user_optional(
    credentials: typing.Optional[HTTPAuthorizationCredentials] = fastapi.Depends(_bearer)
) -> typing.Optional[CurrentUser]:
    """Signed-in user or None. Bad tokens are treated like no token at all."""
    if credentials is None:
        return None

    claims = decode_session_token(credentials.credentials)
    if claims is None:
        return None

    return {"user_id": str(claims["sub"]), "session_id": claims.get("sid")}


async def require_user(
    user: typing.Optional[CurrentUser] = fastapi.Depends(get_current_user_optional)
) -> CurrentUser:
    if user is not None:
        return user
    raise fastapi.HTTPException(
        status_code=401,
        detail="Sign in required",
        headers={"WWW-Authenticate": "Bearer"}
    )
