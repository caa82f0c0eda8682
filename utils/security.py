"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT access/refresh token signing and verification via PyJWT
- Token pair issuance with refresh-token rotation
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Mapping, NamedTuple, Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from utils.exceptions import ConfigError, NotFound, TokenExpired, TokenInvalid


def build_password_hasher(time_cost: int = 3, memory_cost: int = 65536, parallelism: int = 4) -> PasswordHasher:
    """Argon2 hasher with an explicit work factor."""
    return PasswordHasher(time_cost=time_cost, memory_cost=memory_cost, parallelism=parallelism)


def hash_password(password: str, hasher: PasswordHasher) -> str:
    """Hash a plaintext password using Argon2 (fresh salt on every call)
    """
    return hasher.hash(password)


def verify_password(password: str, password_hash: str, hasher: PasswordHasher) -> bool:
    """ Verify a plaintext password using argon2
    """
    if not password_hash:
        return False
    try:
        return hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class TokenConfig:
    access_secret: Optional[str]
    refresh_secret: Optional[str]
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=10)
    algorithm: str = "HS256"
    issuer: str = "videotube-api"

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "TokenConfig":
        return cls(
            access_secret=config.get("ACCESS_TOKEN_SECRET"),
            refresh_secret=config.get("REFRESH_TOKEN_SECRET"),
            access_ttl=config.get("ACCESS_TOKEN_EXPIRES", cls.access_ttl),
            refresh_ttl=config.get("REFRESH_TOKEN_EXPIRES", cls.refresh_ttl),
            algorithm=config.get("JWT_ALGORITHM", cls.algorithm),
            issuer=config.get("JWT_ISSUER", cls.issuer),
        )


class TokenService:
    """
    Signs and verifies access/refresh JWTs.

    Access tokens are stateless. The refresh token is also persisted on the
    user row (one active value per user) by issue_pair(); callers that renew
    must compare the incoming token with the stored one.
    """

    def __init__(self, config: TokenConfig, store):
        self.config = config
        self.store = store

    def _secret(self, kind: TokenKind) -> str:
        secret = self.config.access_secret if kind is TokenKind.ACCESS else self.config.refresh_secret
        if not secret:
            raise ConfigError(f"{kind.value} token secret is not configured")
        return secret

    def _encode(self, kind: TokenKind, subject: str, ttl: timedelta, claims: Dict[str, Any] | None = None) -> str:
        now = _now()
        payload = {
            "iss": self.config.issuer,
            "sub": str(subject),
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            "type": kind.value,
            "jti": generate_jti(),
        }
        if claims:
            payload.update(claims)
        return jwt.encode(payload, self._secret(kind), algorithm=self.config.algorithm)

    def sign_access_token(self, user_id: str, user_name: str, full_name: str, email: str) -> str:
        return self._encode(
            TokenKind.ACCESS,
            user_id,
            self.config.access_ttl,
            {"userName": user_name, "fullName": full_name, "email": email},
        )

    def sign_refresh_token(self, user_id: str) -> str:
        return self._encode(TokenKind.REFRESH, user_id, self.config.refresh_ttl)

    def verify(self, token: str, expected_kind: TokenKind = TokenKind.ACCESS) -> Dict[str, Any]:
        """
        Decode and validate a JWT. Raises TokenExpired past expiry, TokenInvalid on a
        bad signature, malformed token or wrong token type.
        """
        expected_kind = TokenKind(expected_kind)
        try:
            decoded = jwt.decode(
                token,
                self._secret(expected_kind),
                algorithms=[self.config.algorithm],
                issuer=self.config.issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired("Token expired")
        except jwt.InvalidTokenError as exc:
            raise TokenInvalid(f"Invalid token: {exc}")

        if decoded.get("type") != expected_kind.value:
            raise TokenInvalid("Wrong token type")
        return decoded

    def issue_pair(self, user_id: str) -> TokenPair:
        """Sign both tokens and store the refresh token on the user, replacing any previous one."""
        user = self.store.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found")

        access_token = self.sign_access_token(user.id, user.user_name, user.full_name, user.email)
        refresh_token = self.sign_refresh_token(user.id)
        self.store.update(user, {"refresh_token": refresh_token})
        return TokenPair(access_token, refresh_token)
