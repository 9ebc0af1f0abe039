"""API dependencies - authentication and authorization"""

import logging
import re
from typing import Annotated, Callable, Optional

from fastapi import Depends, Path, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from dashboard_api.core.database import get_db
from dashboard_api.core.exceptions import (
    PermissionDeniedError,
    TokenError,
    TokenRevokedError,
    UnauthenticatedError,
)
from dashboard_api.core.metrics import AUTH_REJECTIONS
from dashboard_api.core.tokens import MAX_CLAIM_INT, PrincipalType
from dashboard_api.models.admin import Admin
from dashboard_api.models.user import User
from dashboard_api.services.auth_service import AuthenticatedPrincipal, AuthService

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme; missing credentials are reported by get_current_principal
security = HTTPBearer(auto_error=False)

_DECIMAL_ID = re.compile(r"[1-9][0-9]{0,15}")

# Path ids are bounded like token claims so oversized values fail validation.
RecordId = Annotated[int, Path(ge=1, le=MAX_CLAIM_INT)]


def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> AuthenticatedPrincipal:
    """
    Resolve the bearer token to a live principal

    Raises:
        UnauthenticatedError: no bearer credentials
        TokenError: token failed verification (generic 401 for the client)
        TokenRevokedError: token_version no longer matches; log in again
    """
    if credentials is None or not credentials.credentials:
        AUTH_REJECTIONS.labels("missing_credentials").inc()
        raise UnauthenticatedError()

    try:
        principal = AuthService.authenticate(db, credentials.credentials)
    except TokenError as exc:
        AUTH_REJECTIONS.labels(exc.reason).inc()
        logger.info(f"Rejected access token on {request.url.path}: {exc.detail}")
        raise
    except TokenRevokedError:
        AUTH_REJECTIONS.labels("revoked").inc()
        logger.info(f"Rejected revoked access token on {request.url.path}")
        raise

    request.state.principal = principal
    return principal


def parse_principal_id(raw: Optional[str]) -> Optional[int]:
    """Strict decimal parse of a path id; None when not a valid id"""
    if raw is None or not _DECIMAL_ID.fullmatch(raw):
        return None
    value = int(raw)
    if not 1 <= value <= MAX_CLAIM_INT:
        return None
    return value


def require_role(*principal_types: PrincipalType) -> Callable[..., AuthenticatedPrincipal]:
    """Dependency factory admitting only the given principal types"""
    allowed = frozenset(PrincipalType(t) for t in principal_types)

    def dependency(
        principal: AuthenticatedPrincipal = Depends(get_current_principal),
    ) -> AuthenticatedPrincipal:
        if principal.principal_type not in allowed:
            AUTH_REJECTIONS.labels("forbidden").inc()
            raise PermissionDeniedError()
        return principal

    return dependency


def require_self_or_role(
    role: PrincipalType,
    path_param: str,
    self_type: PrincipalType = PrincipalType.USER,
) -> Callable[..., AuthenticatedPrincipal]:
    """
    Dependency factory admitting any principal of ``role``, or the principal
    of ``self_type`` whose id equals the ``path_param`` path parameter.
    """
    role = PrincipalType(role)

    def dependency(
        request: Request,
        principal: AuthenticatedPrincipal = Depends(get_current_principal),
    ) -> AuthenticatedPrincipal:
        if principal.principal_type == role:
            return principal
        target = parse_principal_id(request.path_params.get(path_param))
        if principal.principal_type == self_type and target is not None and target == principal.principal_id:
            return principal
        AUTH_REJECTIONS.labels("forbidden").inc()
        raise PermissionDeniedError()

    return dependency


require_admin = require_role(PrincipalType.ADMIN)
require_user = require_role(PrincipalType.USER)


def get_current_admin(principal: AuthenticatedPrincipal = Depends(require_admin)) -> Admin:
    return principal.record


def get_current_user(principal: AuthenticatedPrincipal = Depends(require_user)) -> User:
    return principal.record
