"""
Access and refresh token codec.

Tokens are compact JWS strings signed with one pinned HMAC algorithm. The
claim set mirrors the registered ``iat``/``exp`` claims into ``issued_at`` and
``expires_at`` so the JWT library enforces expiry while consumers read typed
fields. Verification runs in a fixed order and maps every failure onto one
of the ``TokenError`` subclasses:

    header/claims parse  -> TokenMalformedError
    signature, algorithm -> TokenInvalidSignatureError
    exp                  -> TokenExpiredError
    iat/exp presence     -> TokenMalformedError
    token_kind           -> TokenWrongKindError
    typed claim decoding -> TokenMalformedError / UnknownPrincipalTypeError
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple
import secrets

from jose import ExpiredSignatureError, JWTError, jwt

from dashboard_api.config import settings
from dashboard_api.core.exceptions import (
    ConfigurationError,
    TokenExpiredError,
    TokenInvalidSignatureError,
    TokenMalformedError,
    TokenWrongKindError,
    UnknownPrincipalTypeError,
)
from dashboard_api.core.timeutils import from_timestamp, to_timestamp, utcnow

SUPPORTED_ALGORITHMS = ("HS256", "HS384", "HS512")

# Largest integer that survives a round trip through a JSON number in every
# consumer.
MAX_CLAIM_INT = 2 ** 53 - 1


class PrincipalType(str, Enum):
    ADMIN = "admin"
    USER = "user"
    DEVICE = "device"


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class AccessClaims:
    principal_id: int
    principal_type: PrincipalType
    token_version: int
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class RefreshClaims:
    principal_id: int
    principal_type: PrincipalType
    issued_at: datetime
    expires_at: datetime
    jti: str


def _claim_int(payload: Dict[str, Any], name: str) -> int:
    value = payload.get(name)
    # bool is an int subclass; floats are rejected even when integral.
    if type(value) is not int or not 1 <= value <= MAX_CLAIM_INT:
        raise TokenMalformedError(f"claim {name} is not an integer in range")
    return value


def _claim_principal_type(payload: Dict[str, Any]) -> PrincipalType:
    value = payload.get("principal_type")
    try:
        return PrincipalType(value)
    except ValueError:
        raise UnknownPrincipalTypeError(f"principal_type {value!r}")


class TokenCodec:
    """Stateless signer/verifier for access and refresh tokens"""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=1440),
        refresh_ttl: timedelta = timedelta(days=365),
    ):
        if not secret_key:
            raise ConfigurationError("Token signing secret is empty")
        algorithm = (algorithm or "").upper()
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(f"Unsupported token algorithm {algorithm!r}")
        if access_ttl <= timedelta(0) or refresh_ttl <= timedelta(0):
            raise ConfigurationError("Token lifetimes must be positive")

        self._secret_key = secret_key
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    # -- issuing ---------------------------------------------------------

    def _encode(self, claims: Dict[str, Any]) -> str:
        return jwt.encode(claims, self._secret_key, algorithm=self.algorithm)

    def issue_access(
        self,
        principal_id: int,
        principal_type: PrincipalType,
        token_version: int,
        now: Optional[datetime] = None,
    ) -> Tuple[str, datetime]:
        """
        Sign an access token bound to the principal's current token_version.

        Returns:
            (token, expires_at) with expires_at as naive UTC
        """
        issued = to_timestamp(now or utcnow())
        expires = issued + int(self.access_ttl.total_seconds())
        token = self._encode({
            "principal_id": principal_id,
            "principal_type": PrincipalType(principal_type).value,
            "token_version": token_version,
            "token_kind": TokenKind.ACCESS.value,
            "issued_at": issued,
            "expires_at": expires,
            "iat": issued,
            "exp": expires,
        })
        return token, from_timestamp(expires)

    def issue_refresh(
        self,
        principal_id: int,
        principal_type: PrincipalType,
        now: Optional[datetime] = None,
    ) -> Tuple[str, datetime]:
        """
        Sign a refresh token. The random ``jti`` keeps two tokens minted in the
        same second for the same principal distinct.
        """
        issued = to_timestamp(now or utcnow())
        expires = issued + int(self.refresh_ttl.total_seconds())
        token = self._encode({
            "principal_id": principal_id,
            "principal_type": PrincipalType(principal_type).value,
            "token_kind": TokenKind.REFRESH.value,
            "issued_at": issued,
            "expires_at": expires,
            "iat": issued,
            "exp": expires,
            "jti": secrets.token_urlsafe(16),
        })
        return token, from_timestamp(expires)

    # -- verifying -------------------------------------------------------

    def _decode(self, token: str, expected_kind: TokenKind) -> Dict[str, Any]:
        if not isinstance(token, str) or not token:
            raise TokenMalformedError("empty token")

        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise TokenMalformedError(str(exc))

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"verify_aud": False},
            )
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError as exc:
            raise TokenInvalidSignatureError(str(exc))

        if "exp" not in payload or "iat" not in payload:
            raise TokenMalformedError("missing iat/exp")

        kind = payload.get("token_kind")
        if kind not in (TokenKind.ACCESS.value, TokenKind.REFRESH.value):
            raise TokenMalformedError(f"token_kind {kind!r}")
        if kind != expected_kind.value:
            raise TokenWrongKindError(f"expected {expected_kind.value}, got {kind}")

        return payload

    def verify_access(self, token: str) -> AccessClaims:
        payload = self._decode(token, TokenKind.ACCESS)
        return AccessClaims(
            principal_id=_claim_int(payload, "principal_id"),
            principal_type=_claim_principal_type(payload),
            token_version=_claim_int(payload, "token_version"),
            issued_at=from_timestamp(_claim_int(payload, "issued_at")),
            expires_at=from_timestamp(_claim_int(payload, "expires_at")),
        )

    def verify_refresh(self, token: str) -> RefreshClaims:
        payload = self._decode(token, TokenKind.REFRESH)
        jti = payload.get("jti")
        if not isinstance(jti, str) or not jti:
            raise TokenMalformedError("missing jti")
        return RefreshClaims(
            principal_id=_claim_int(payload, "principal_id"),
            principal_type=_claim_principal_type(payload),
            issued_at=from_timestamp(_claim_int(payload, "issued_at")),
            expires_at=from_timestamp(_claim_int(payload, "expires_at")),
            jti=jti,
        )


@lru_cache()
def get_token_codec() -> TokenCodec:
    """Process-wide codec built from settings; raises ConfigurationError on bad config"""
    return TokenCodec(
        secret_key=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )
