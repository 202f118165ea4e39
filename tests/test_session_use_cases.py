from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from authkit.application.dto.auth import LoginLocalInput, LogoutInput, RefreshSessionInput
from authkit.application.dto.sessions import (
    ListSessionsInput,
    RevokeOtherSessionsInput,
    RevokeSessionInput,
)
from authkit.application.use_cases.authenticate_request import AuthenticateRequestUseCase
from authkit.application.use_cases.list_sessions import ListSessionsUseCase
from authkit.application.use_cases.login_local import LoginLocalUseCase
from authkit.application.use_cases.logout_session import LogoutSessionUseCase
from authkit.application.use_cases.refresh_session import RefreshSessionUseCase
from authkit.application.use_cases.revoke_other_sessions import RevokeOtherSessionsUseCase
from authkit.application.use_cases.revoke_session import RevokeSessionUseCase
from authkit.domain.entities.user import AuthProvider
from authkit.domain.exceptions import (
    CannotRevokeCurrentSessionError,
    InvalidCredentialsError,
    InvalidSessionError,
    SessionExpiredError,
    SessionNotFoundError,
    UserInactiveError,
)
from tests.fakes import FakeAccountsPort, FakeCredentialHasher, make_token_service, make_user


def _login(accounts: FakeAccountsPort, password: str = "secret-pass", user_agent: str | None = None):
    use_case = LoginLocalUseCase(
        accounts_port=accounts,
        credential_hasher=FakeCredentialHasher(),
        token_port=make_token_service(),
    )
    return use_case.execute(
        LoginLocalInput(email="alice@example.com", password=password, user_agent=user_agent, ip="10.0.0.1")
    )


def _refresh(accounts: FakeAccountsPort, token: str):
    return RefreshSessionUseCase(accounts_port=accounts, token_port=make_token_service()).execute(
        RefreshSessionInput(refresh_token=token, user_agent=None, ip=None)
    )


def test_login_issues_tokens_and_session():
    accounts = FakeAccountsPort(users=[make_user()])

    output = _login(accounts)

    assert output.user.email == "alice@example.com"
    assert output.user.linked_providers == ["email"]
    session = accounts.sessions[output.session_id]
    assert session.is_valid is True
    assert session.device_name == "Unknown device"
    assert session.token_hash == make_token_service().hash_refresh_token(refresh_token=output.refresh_token)


def test_login_rejects_wrong_password():
    accounts = FakeAccountsPort(users=[make_user()])

    with pytest.raises(InvalidCredentialsError):
        _login(accounts, password="wrong-pass")

    assert not accounts.sessions


def test_login_rejects_oauth_only_account():
    accounts = FakeAccountsPort(
        users=[
            make_user(
                password_hash=None,
                linked_providers=(AuthProvider.GOOGLE,),
                primary_provider=AuthProvider.GOOGLE,
                google_id="g-1",
            )
        ]
    )

    with pytest.raises(InvalidCredentialsError):
        _login(accounts)


def test_login_rejects_deactivated_account():
    accounts = FakeAccountsPort(users=[make_user(is_deleted=True)])

    with pytest.raises(InvalidCredentialsError):
        _login(accounts)


def test_refresh_rotates_token_and_old_token_stops_working():
    accounts = FakeAccountsPort(users=[make_user()])
    first = _login(accounts)

    second = _refresh(accounts, first.refresh_token)

    assert second.session_id == first.session_id
    assert second.refresh_token != first.refresh_token
    with pytest.raises(InvalidSessionError):
        _refresh(accounts, first.refresh_token)
    assert _refresh(accounts, second.refresh_token).session_id == first.session_id


def test_refresh_extends_session_expiry():
    accounts = FakeAccountsPort(users=[make_user()])
    first = _login(accounts)
    session = accounts.sessions[first.session_id]
    accounts.sessions[session.id] = replace(session, expires_at=session.expires_at - timedelta(days=3))

    output = _refresh(accounts, first.refresh_token)

    assert output.refresh_expires_at > session.expires_at - timedelta(days=3)
    assert accounts.sessions[session.id].expires_at == output.refresh_expires_at


def test_refresh_of_expired_session_fails():
    accounts = FakeAccountsPort(users=[make_user()])
    first = _login(accounts)
    session = accounts.sessions[first.session_id]
    accounts.sessions[session.id] = replace(session, expires_at=session.created_at - timedelta(seconds=1))

    with pytest.raises(SessionExpiredError):
        _refresh(accounts, first.refresh_token)


def test_refresh_for_deactivated_user_fails():
    accounts = FakeAccountsPort(users=[make_user()])
    first = _login(accounts)
    accounts.users["user-1"] = replace(accounts.users["user-1"], is_deleted=True)

    with pytest.raises(UserInactiveError):
        _refresh(accounts, first.refresh_token)


def test_logout_invalidates_session():
    accounts = FakeAccountsPort(users=[make_user()])
    first = _login(accounts)
    use_case = LogoutSessionUseCase(accounts_port=accounts, token_port=make_token_service())

    assert use_case.execute(LogoutInput(refresh_token=first.refresh_token)) is True
    assert use_case.execute(LogoutInput(refresh_token=first.refresh_token)) is False

    assert accounts.sessions[first.session_id].is_valid is False
    with pytest.raises(SessionExpiredError):
        _refresh(accounts, first.refresh_token)


def test_access_token_is_rejected_after_logout():
    accounts = FakeAccountsPort(users=[make_user()])
    first = _login(accounts)
    authenticate = AuthenticateRequestUseCase(accounts_port=accounts, token_port=make_token_service())

    principal = authenticate.execute(access_token=first.access_token)
    assert principal.user.id == "user-1"
    assert principal.session.id == first.session_id

    LogoutSessionUseCase(accounts_port=accounts, token_port=make_token_service()).execute(
        LogoutInput(refresh_token=first.refresh_token)
    )
    with pytest.raises(SessionExpiredError):
        authenticate.execute(access_token=first.access_token)


def test_authenticate_rejects_garbage_token():
    authenticate = AuthenticateRequestUseCase(accounts_port=FakeAccountsPort(), token_port=make_token_service())

    with pytest.raises(InvalidSessionError):
        authenticate.execute(access_token="not-a-jwt")


def test_list_sessions_marks_current_device():
    accounts = FakeAccountsPort(users=[make_user()])
    first = _login(accounts)
    second = _login(accounts)

    rows = ListSessionsUseCase(accounts_port=accounts, token_port=make_token_service()).execute(
        ListSessionsInput(user_id="user-1", current_refresh_token=second.refresh_token)
    )

    assert len(rows) == 2
    current = {row.id: row.is_current for row in rows}
    assert current == {first.session_id: False, second.session_id: True}


def test_revoke_other_sessions_keeps_current():
    accounts = FakeAccountsPort(users=[make_user()])
    first = _login(accounts)
    second = _login(accounts)
    third = _login(accounts)

    output = RevokeOtherSessionsUseCase(accounts_port=accounts, token_port=make_token_service()).execute(
        RevokeOtherSessionsInput(user_id="user-1", current_refresh_token=second.refresh_token)
    )

    assert output.revoked_count == 2
    assert accounts.sessions[second.session_id].is_valid is True
    assert accounts.sessions[first.session_id].is_valid is False
    assert accounts.sessions[third.session_id].is_valid is False


def test_revoke_other_sessions_requires_owned_current_session():
    accounts = FakeAccountsPort(
        users=[make_user(), make_user(user_id="user-2", email="bob@example.com")]
    )
    first = _login(accounts)

    with pytest.raises(SessionExpiredError):
        RevokeOtherSessionsUseCase(accounts_port=accounts, token_port=make_token_service()).execute(
            RevokeOtherSessionsInput(user_id="user-2", current_refresh_token=first.refresh_token)
        )


def test_revoke_session_by_id():
    accounts = FakeAccountsPort(users=[make_user()])
    first = _login(accounts)
    second = _login(accounts)
    use_case = RevokeSessionUseCase(accounts_port=accounts, token_port=make_token_service())

    use_case.execute(
        RevokeSessionInput(
            user_id="user-1",
            session_id=first.session_id,
            current_refresh_token=second.refresh_token,
        )
    )

    assert accounts.sessions[first.session_id].is_valid is False
    with pytest.raises(SessionNotFoundError):
        use_case.execute(
            RevokeSessionInput(
                user_id="user-1",
                session_id=first.session_id,
                current_refresh_token=second.refresh_token,
            )
        )


def test_revoke_current_session_is_refused():
    accounts = FakeAccountsPort(users=[make_user()])
    first = _login(accounts)

    with pytest.raises(CannotRevokeCurrentSessionError):
        RevokeSessionUseCase(accounts_port=accounts, token_port=make_token_service()).execute(
            RevokeSessionInput(
                user_id="user-1",
                session_id=first.session_id,
                current_refresh_token=first.refresh_token,
            )
        )


def test_revoke_session_of_another_user_is_not_found():
    accounts = FakeAccountsPort(
        users=[make_user(), make_user(user_id="user-2", email="bob@example.com")]
    )
    first = _login(accounts)

    with pytest.raises(SessionNotFoundError):
        RevokeSessionUseCase(accounts_port=accounts, token_port=make_token_service()).execute(
            RevokeSessionInput(user_id="user-2", session_id=first.session_id, current_refresh_token=None)
        )
