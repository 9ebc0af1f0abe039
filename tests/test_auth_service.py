import pytest

from dashboard_api.config import settings
from dashboard_api.core.exceptions import (
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    ResourceAlreadyExistsError,
    TokenRevokedError,
    TokenWrongKindError,
)
from dashboard_api.core.security import get_password_hash, verify_password
from dashboard_api.core.tokens import PrincipalType, get_token_codec
from dashboard_api.models.device import Device
from dashboard_api.models.security import RefreshToken
from dashboard_api.models.user import User
from dashboard_api.services.auth_service import DEVICE_CREDENTIALS_ERROR, auth_service


def test_admin_version_scenario(db, make_admin):
    admin = make_admin(token_version=3)

    bundle = auth_service.login(db, "admin@example.com", "admin-password", PrincipalType.ADMIN)
    assert get_token_codec().verify_access(bundle.access_token).token_version == 4
    assert auth_service.authenticate(db, bundle.access_token).principal_id == admin.id

    assert auth_service.logout(db, admin.id, PrincipalType.ADMIN) == 5
    with pytest.raises(TokenRevokedError):
        auth_service.authenticate(db, bundle.access_token)

    # Refresh tokens survive a logout by default
    grant = auth_service.refresh(db, bundle.refresh_token)
    assert get_token_codec().verify_access(grant.access_token).token_version == 5
    assert auth_service.authenticate(db, grant.access_token).principal_type is PrincipalType.ADMIN


def test_login_sets_last_login(db, make_user):
    user = make_user()
    assert user.last_login is None
    auth_service.login(db, "alice@example.com", "alice-password", PrincipalType.USER)
    db.expire_all()
    assert db.get(User, user.id).last_login is not None


def test_second_login_invalidates_first_access_token(db, make_user):
    make_user()
    first = auth_service.login(db, "alice@example.com", "alice-password", PrincipalType.USER)
    second = auth_service.login(db, "alice@example.com", "alice-password", PrincipalType.USER)
    with pytest.raises(TokenRevokedError):
        auth_service.authenticate(db, first.access_token)
    assert auth_service.authenticate(db, second.access_token).principal_type is PrincipalType.USER


def test_unknown_email_and_wrong_password_fail_identically(db, make_admin):
    make_admin()
    with pytest.raises(InvalidCredentialsError) as unknown:
        auth_service.login(db, "nobody@example.com", "admin-password", PrincipalType.ADMIN)
    with pytest.raises(InvalidCredentialsError) as wrong:
        auth_service.login(db, "admin@example.com", "wrong-password", PrincipalType.ADMIN)
    assert unknown.value.message == wrong.value.message
    assert unknown.value.code == wrong.value.code


def test_failed_login_does_not_bump_version(db, make_admin):
    admin = make_admin(token_version=2)
    with pytest.raises(InvalidCredentialsError):
        auth_service.login(db, "admin@example.com", "wrong-password", PrincipalType.ADMIN)
    db.refresh(admin)
    assert admin.token_version == 2


def test_user_credentials_do_not_log_in_as_admin(db, make_user):
    make_user(email="shared@example.com", password="user-password")
    with pytest.raises(InvalidCredentialsError):
        auth_service.login(db, "shared@example.com", "user-password", PrincipalType.ADMIN)


def test_register_user_issues_tokens_at_version_one(db):
    user, bundle = auth_service.register_user(db, "Bob", "bob@example.com", "bob-password")
    assert user.token_version == 1
    assert user.admin_id is None
    assert verify_password("bob-password", user.password_hash)
    principal = auth_service.authenticate(db, bundle.access_token)
    assert principal.principal_id == user.id
    assert db.query(RefreshToken).filter(RefreshToken.token == bundle.refresh_token).count() == 1


def test_register_duplicate_email(db, make_user):
    make_user(email="bob@example.com")
    with pytest.raises(ResourceAlreadyExistsError):
        auth_service.register_user(db, "Bob", "bob@example.com", "bob-password")


def test_device_wrong_key_and_unknown_device_fail_identically(db, make_device):
    make_device(device_id="sensor-001", api_key="a" * 64)
    with pytest.raises(InvalidCredentialsError) as wrong_key:
        auth_service.authenticate_device(db, "sensor-001", "b" * 64)
    with pytest.raises(InvalidCredentialsError) as unknown:
        auth_service.authenticate_device(db, "sensor-404", "a" * 64)
    assert wrong_key.value.message == unknown.value.message == DEVICE_CREDENTIALS_ERROR
    assert wrong_key.value.status_code == unknown.value.status_code == 401


def test_device_authentication_marks_active_without_bump(db, make_device):
    device = make_device(device_id="sensor-001", api_key="a" * 64)
    bundle = auth_service.authenticate_device(db, "sensor-001", "a" * 64)

    db.expire_all()
    device = db.get(Device, device.id)
    assert device.status == "active"
    assert device.last_seen is not None
    assert device.token_version == 1
    assert get_token_codec().verify_access(bundle.access_token).token_version == 1
    assert auth_service.authenticate(db, bundle.access_token).principal_type is PrincipalType.DEVICE


def test_refresh_rejects_access_token(db, make_user):
    make_user()
    bundle = auth_service.login(db, "alice@example.com", "alice-password", PrincipalType.USER)
    with pytest.raises(InvalidRefreshTokenError):
        auth_service.refresh(db, bundle.access_token)
    # The codec still reports the precise reason to the ledger
    with pytest.raises(TokenWrongKindError):
        get_token_codec().verify_refresh(bundle.access_token)


def test_refresh_for_deleted_principal(db, make_user):
    user = make_user()
    bundle = auth_service.login(db, "alice@example.com", "alice-password", PrincipalType.USER)
    db.delete(db.get(User, user.id))
    db.commit()
    with pytest.raises(InvalidRefreshTokenError):
        auth_service.refresh(db, bundle.refresh_token)


def test_logout_revokes_refresh_tokens_when_configured(db, make_user, monkeypatch):
    monkeypatch.setattr(settings, "REVOKE_REFRESH_TOKENS_ON_LOGOUT", True)
    user = make_user()
    bundle = auth_service.login(db, "alice@example.com", "alice-password", PrincipalType.USER)
    auth_service.logout(db, user.id, PrincipalType.USER)
    with pytest.raises(InvalidRefreshTokenError):
        auth_service.refresh(db, bundle.refresh_token)


def test_reset_secret_replaces_hash_and_invalidates_access(db, make_user):
    user = make_user()
    bundle = auth_service.login(db, "alice@example.com", "alice-password", PrincipalType.USER)
    version = auth_service.reset_secret(db, user.id, PrincipalType.USER, get_password_hash("new-password"))
    assert version == 3

    with pytest.raises(TokenRevokedError):
        auth_service.authenticate(db, bundle.access_token)
    with pytest.raises(InvalidCredentialsError):
        auth_service.login(db, "alice@example.com", "alice-password", PrincipalType.USER)
    auth_service.login(db, "alice@example.com", "new-password", PrincipalType.USER)


def test_revoke_sessions_is_a_full_logout(db, make_user):
    user = make_user()
    bundle = auth_service.login(db, "alice@example.com", "alice-password", PrincipalType.USER)
    version, revoked = auth_service.revoke_sessions(db, user.id, PrincipalType.USER)
    assert (version, revoked) == (3, 1)
    with pytest.raises(TokenRevokedError):
        auth_service.authenticate(db, bundle.access_token)
    with pytest.raises(InvalidRefreshTokenError):
        auth_service.refresh(db, bundle.refresh_token)


def test_authenticate_rejects_token_of_deleted_principal(db, make_user):
    user = make_user()
    bundle = auth_service.login(db, "alice@example.com", "alice-password", PrincipalType.USER)
    db.delete(db.get(User, user.id))
    db.commit()
    with pytest.raises(TokenRevokedError):
        auth_service.authenticate(db, bundle.access_token)
