# services/security.py – password hashing and JWT handling
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from config import Config
from errors import AuthenticationError

ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def create_token(user, config: Config, token_type: str = ACCESS, ttl: Optional[int] = None) -> str:
    if ttl is None:
        ttl = config.ACCESS_TOKEN_TTL if token_type == ACCESS else config.REFRESH_TOKEN_TTL
    now = datetime.now(timezone.utc)
    payload = {
        "userId": user.id,
        "username": user.username,
        "role": getattr(user.role, "value", user.role),
        "type": token_type,
        "iat": now,
        "exp": now + timedelta(seconds=ttl),
        "iss": config.JWT_ISSUER,
        "aud": config.JWT_AUDIENCE,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def issue_token_pair(user, config: Config) -> dict:
    return {
        "accessToken": create_token(user, config, ACCESS),
        "refreshToken": create_token(user, config, REFRESH),
        "tokenType": "Bearer",
        "expiresIn": config.ACCESS_TOKEN_TTL,
    }


def decode_token(token: str, config: Config, expected_type: str = ACCESS) -> dict:
    try:
        claims = jwt.decode(
            token,
            config.JWT_SECRET,
            algorithms=[config.JWT_ALGORITHM],
            audience=config.JWT_AUDIENCE,
            issuer=config.JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        if expected_type == REFRESH:
            raise AuthenticationError("Refresh token expired", "REFRESH_TOKEN_EXPIRED")
        raise AuthenticationError("Access token expired", "TOKEN_EXPIRED")
    except jwt.InvalidTokenError:
        if expected_type == REFRESH:
            raise AuthenticationError("Invalid refresh token", "INVALID_REFRESH_TOKEN")
        raise AuthenticationError("Invalid access token", "INVALID_TOKEN")

    if claims.get("type") != expected_type:
        raise AuthenticationError(f"Expected a {expected_type} token", "INVALID_TOKEN_TYPE")
    return claims
