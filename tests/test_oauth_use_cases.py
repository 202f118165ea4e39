from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from authkit.application.dto.oauth import (
    OAUTH_INTENT_LINK,
    LinkProviderInput,
    OAuthAuthorizeInput,
    OAuthCallbackInput,
    OAuthProfile,
    OAuthState,
    SetPrimaryProviderInput,
    UnlinkProviderInput,
)
from authkit.application.use_cases.get_linked_providers import GetLinkedProvidersUseCase
from authkit.application.use_cases.link_provider import CompleteOAuthLinkUseCase, LinkProviderUseCase
from authkit.application.use_cases.oauth_authorize import ListOAuthProvidersUseCase, OAuthAuthorizeUseCase
from authkit.application.use_cases.oauth_callback import OAuthCallbackUseCase
from authkit.application.use_cases.set_primary_provider import SetPrimaryProviderUseCase
from authkit.application.use_cases.unlink_provider import UnlinkProviderUseCase
from authkit.domain.entities.user import AuthProvider
from authkit.domain.exceptions import (
    AccountLinkRequiredError,
    CannotUnlinkLastProviderError,
    ConcurrentUpdateError,
    EmailMismatchOnLinkError,
    InvalidOAuthStateError,
    InvalidPrimaryProviderError,
    OAuthProviderError,
    ProviderAlreadyLinkedError,
    ProviderLinkedToOtherAccountError,
    ProviderNotLinkedError,
    UnsupportedProviderError,
)
from tests.fakes import FakeAccountsPort, FakeOAuthStrategy, make_token_service, make_user


def _profile(
    provider: AuthProvider = AuthProvider.GOOGLE,
    *,
    provider_user_id: str = "g-100",
    email: str | None = "alice@example.com",
    email_verified: bool = True,
    name: str | None = "Alice Google",
) -> OAuthProfile:
    return OAuthProfile(
        provider=provider,
        provider_user_id=provider_user_id,
        email=email,
        email_verified=email_verified,
        name=name,
    )


def _state(provider: AuthProvider, *, intent: str = "login", user_id: str | None = None) -> str:
    return make_token_service().create_oauth_state(
        state=OAuthState(provider=provider, intent=intent, user_id=user_id, nonce="n-1"),
        now=datetime.now(timezone.utc),
    )


def _callback(accounts: FakeAccountsPort, profile: OAuthProfile, *, auto_link: bool = True, state: str | None = None):
    use_case = OAuthCallbackUseCase(
        accounts_port=accounts,
        token_port=make_token_service(),
        strategies={profile.provider: FakeOAuthStrategy(profile.provider, profile)},
        default_role="user",
        auto_link_verified_email=auto_link,
    )
    return use_case.execute(
        OAuthCallbackInput(
            provider=profile.provider.value,
            code="auth-code",
            state=state or _state(profile.provider),
            user_agent=None,
            ip=None,
        )
    )


def test_list_providers_returns_enabled_strategies():
    use_case = ListOAuthProvidersUseCase(
        strategies={
            AuthProvider.GITHUB: FakeOAuthStrategy(AuthProvider.GITHUB),
            AuthProvider.GOOGLE: FakeOAuthStrategy(AuthProvider.GOOGLE),
        }
    )

    assert use_case.execute().providers == ["google", "github"]


def test_authorize_builds_url_with_signed_state():
    use_case = OAuthAuthorizeUseCase(
        token_port=make_token_service(),
        strategies={AuthProvider.GOOGLE: FakeOAuthStrategy(AuthProvider.GOOGLE)},
    )

    output = use_case.execute(OAuthAuthorizeInput(provider="Google"))

    assert output.provider == "google"
    assert output.authorization_url.endswith(f"state={output.state}")
    state = make_token_service().decode_oauth_state(token=output.state)
    assert state.provider == AuthProvider.GOOGLE
    assert state.intent == "login"
    assert state.user_id is None


def test_authorize_rejects_unknown_or_disabled_provider():
    use_case = OAuthAuthorizeUseCase(
        token_port=make_token_service(),
        strategies={AuthProvider.GOOGLE: FakeOAuthStrategy(AuthProvider.GOOGLE)},
    )

    with pytest.raises(UnsupportedProviderError):
        use_case.execute(OAuthAuthorizeInput(provider="twitter"))
    with pytest.raises(UnsupportedProviderError):
        use_case.execute(OAuthAuthorizeInput(provider="github"))
    with pytest.raises(UnsupportedProviderError):
        use_case.execute(OAuthAuthorizeInput(provider="email"))


def test_callback_creates_user_for_new_identity():
    accounts = FakeAccountsPort()

    output = _callback(accounts, _profile())

    user = accounts.users[output.user.id]
    assert user.email == "alice@example.com"
    assert user.name == "Alice Google"
    assert user.password_hash is None
    assert user.linked_providers == (AuthProvider.GOOGLE,)
    assert user.primary_provider == AuthProvider.GOOGLE
    assert user.google_id == "g-100"
    assert output.session_id in accounts.sessions


def test_callback_signs_in_existing_identity():
    existing = make_user(
        password_hash=None,
        linked_providers=(AuthProvider.GOOGLE,),
        primary_provider=AuthProvider.GOOGLE,
        google_id="g-100",
    )
    accounts = FakeAccountsPort(users=[existing])

    output = _callback(accounts, _profile(email="changed@example.com"))

    assert output.user.id == "user-1"
    assert len(accounts.users) == 1


def test_callback_auto_links_verified_email_to_existing_account():
    accounts = FakeAccountsPort(users=[make_user()])

    output = _callback(accounts, _profile())

    user = accounts.users["user-1"]
    assert output.user.id == "user-1"
    assert user.linked_providers == (AuthProvider.EMAIL, AuthProvider.GOOGLE)
    assert user.primary_provider == AuthProvider.GOOGLE
    assert user.google_id == "g-100"


def test_callback_requires_explicit_link_for_unverified_email():
    accounts = FakeAccountsPort(users=[make_user()])

    with pytest.raises(AccountLinkRequiredError):
        _callback(accounts, _profile(email_verified=False))

    assert accounts.users["user-1"].linked_providers == (AuthProvider.EMAIL,)
    assert not accounts.sessions


def test_callback_requires_explicit_link_when_auto_link_disabled():
    accounts = FakeAccountsPort(users=[make_user()])

    with pytest.raises(AccountLinkRequiredError):
        _callback(accounts, _profile(), auto_link=False)


def test_callback_refuses_second_account_of_same_provider():
    accounts = FakeAccountsPort(
        users=[
            make_user(
                linked_providers=(AuthProvider.EMAIL, AuthProvider.GOOGLE),
                primary_provider=AuthProvider.GOOGLE,
                google_id="g-other",
            )
        ]
    )

    with pytest.raises(ProviderAlreadyLinkedError):
        _callback(accounts, _profile())


def test_callback_rejects_state_for_other_provider_or_flow():
    accounts = FakeAccountsPort()

    with pytest.raises(InvalidOAuthStateError):
        _callback(accounts, _profile(), state=_state(AuthProvider.GITHUB))
    with pytest.raises(InvalidOAuthStateError):
        _callback(accounts, _profile(), state=_state(AuthProvider.GOOGLE, intent=OAUTH_INTENT_LINK, user_id="u"))
    with pytest.raises(InvalidOAuthStateError):
        _callback(accounts, _profile(), state="tampered")


def test_callback_without_email_fails_upstream():
    with pytest.raises(OAuthProviderError):
        _callback(FakeAccountsPort(), _profile(AuthProvider.GITHUB, email=None))


def test_callback_syncs_name_from_primary_provider():
    existing = make_user(
        name="Old Name",
        password_hash=None,
        linked_providers=(AuthProvider.GOOGLE,),
        primary_provider=AuthProvider.GOOGLE,
        google_id="g-100",
    )
    accounts = FakeAccountsPort(users=[existing])

    _callback(accounts, _profile(name="New Name"))

    user = accounts.users["user-1"]
    assert user.name == "New Name"
    assert user.last_synced_provider == AuthProvider.GOOGLE
    assert user.profile_synced_at is not None


def test_callback_does_not_sync_from_secondary_provider():
    existing = make_user(
        name="Alice",
        linked_providers=(AuthProvider.EMAIL, AuthProvider.GOOGLE, AuthProvider.GITHUB),
        primary_provider=AuthProvider.GOOGLE,
        google_id="g-100",
        github_id="gh-7",
    )
    accounts = FakeAccountsPort(users=[existing])

    _callback(accounts, _profile(AuthProvider.GITHUB, provider_user_id="gh-7", name="octocat"))

    assert accounts.users["user-1"].name == "Alice"


def test_link_flow_links_provider_for_signed_in_user():
    accounts = FakeAccountsPort(users=[make_user()])
    profile = _profile(AuthProvider.GITHUB, provider_user_id="gh-7")
    use_case = CompleteOAuthLinkUseCase(
        token_port=make_token_service(),
        strategies={AuthProvider.GITHUB: FakeOAuthStrategy(AuthProvider.GITHUB, profile)},
        link_provider_use_case=LinkProviderUseCase(accounts_port=accounts),
    )

    output = use_case.execute(
        LinkProviderInput(
            user_id="user-1",
            provider="github",
            code="auth-code",
            state=_state(AuthProvider.GITHUB, intent=OAUTH_INTENT_LINK, user_id="user-1"),
        )
    )

    assert output.linked_providers == ["email", "github"]
    assert output.primary_provider == "github"
    assert output.can_unlink == {"email": True, "github": True}
    assert accounts.users["user-1"].github_id == "gh-7"


def test_link_flow_rejects_state_issued_for_another_user():
    accounts = FakeAccountsPort(users=[make_user()])
    profile = _profile(AuthProvider.GITHUB, provider_user_id="gh-7")
    use_case = CompleteOAuthLinkUseCase(
        token_port=make_token_service(),
        strategies={AuthProvider.GITHUB: FakeOAuthStrategy(AuthProvider.GITHUB, profile)},
        link_provider_use_case=LinkProviderUseCase(accounts_port=accounts),
    )

    with pytest.raises(InvalidOAuthStateError):
        use_case.execute(
            LinkProviderInput(
                user_id="user-1",
                provider="github",
                code="auth-code",
                state=_state(AuthProvider.GITHUB, intent=OAUTH_INTENT_LINK, user_id="user-2"),
            )
        )


def test_link_rejects_email_mismatch():
    accounts = FakeAccountsPort(users=[make_user()])

    with pytest.raises(EmailMismatchOnLinkError):
        LinkProviderUseCase(accounts_port=accounts).execute(
            user_id="user-1",
            profile=_profile(email="someone-else@example.com"),
        )


def test_link_rejects_identity_owned_by_other_user():
    owner = make_user(
        user_id="user-2",
        email="bob@example.com",
        linked_providers=(AuthProvider.GOOGLE,),
        primary_provider=AuthProvider.GOOGLE,
        google_id="g-100",
    )
    accounts = FakeAccountsPort(users=[make_user(), owner])

    with pytest.raises(ProviderLinkedToOtherAccountError):
        LinkProviderUseCase(accounts_port=accounts).execute(user_id="user-1", profile=_profile())


def test_link_rejects_already_linked_provider_before_other_checks():
    user = make_user(
        linked_providers=(AuthProvider.EMAIL, AuthProvider.GOOGLE),
        primary_provider=AuthProvider.GOOGLE,
        google_id="g-1",
    )
    accounts = FakeAccountsPort(users=[user])

    with pytest.raises(ProviderAlreadyLinkedError):
        LinkProviderUseCase(accounts_port=accounts).execute(
            user_id="user-1",
            profile=_profile(email="mismatch@example.com"),
        )


def test_concurrent_link_is_reported_after_revalidation():
    accounts = FakeAccountsPort(users=[make_user()])

    def _other_request_links_facebook(port: FakeAccountsPort) -> None:
        current = port.users["user-1"]
        port.users["user-1"] = replace(
            current,
            linked_providers=current.linked_providers + (AuthProvider.FACEBOOK,),
            facebook_id="fb-1",
        )

    accounts.before_compare_and_set = _other_request_links_facebook

    with pytest.raises(ConcurrentUpdateError):
        LinkProviderUseCase(accounts_port=accounts).execute(
            user_id="user-1",
            profile=_profile(AuthProvider.GITHUB, provider_user_id="gh-7"),
        )

    assert accounts.users["user-1"].github_id is None


def test_concurrent_duplicate_link_surfaces_precise_error():
    accounts = FakeAccountsPort(users=[make_user()])

    def _other_request_links_google(port: FakeAccountsPort) -> None:
        current = port.users["user-1"]
        port.users["user-1"] = replace(
            current,
            linked_providers=current.linked_providers + (AuthProvider.GOOGLE,),
            google_id="g-100",
        )

    accounts.before_compare_and_set = _other_request_links_google

    with pytest.raises(ProviderAlreadyLinkedError):
        LinkProviderUseCase(accounts_port=accounts).execute(user_id="user-1", profile=_profile())


def test_link_keeps_password_changed_during_link():
    accounts = FakeAccountsPort(users=[make_user()])

    def _password_changed(port: FakeAccountsPort) -> None:
        port.update_user_password(
            user_id="user-1",
            password_hash="hashed::new-pass",
            updated_at=datetime.now(timezone.utc),
        )

    accounts.before_compare_and_set = _password_changed

    LinkProviderUseCase(accounts_port=accounts).execute(user_id="user-1", profile=_profile())

    user = accounts.users["user-1"]
    assert user.google_id == "g-100"
    assert user.password_hash == "hashed::new-pass"


def test_set_primary_keeps_password_changed_concurrently():
    user = make_user(
        linked_providers=(AuthProvider.EMAIL, AuthProvider.GOOGLE, AuthProvider.GITHUB),
        primary_provider=AuthProvider.GOOGLE,
        google_id="g-100",
        github_id="gh-7",
    )
    accounts = FakeAccountsPort(users=[user])

    def _password_changed(port: FakeAccountsPort) -> None:
        port.update_user_password(
            user_id="user-1",
            password_hash="hashed::new-pass",
            updated_at=datetime.now(timezone.utc),
        )

    accounts.before_compare_and_set = _password_changed

    SetPrimaryProviderUseCase(accounts_port=accounts).execute(
        SetPrimaryProviderInput(user_id="user-1", provider="github")
    )

    stored = accounts.users["user-1"]
    assert stored.primary_provider == AuthProvider.GITHUB
    assert stored.password_hash == "hashed::new-pass"


def test_unlink_primary_google_leaves_email_without_primary():
    user = make_user(
        linked_providers=(AuthProvider.EMAIL, AuthProvider.GOOGLE),
        primary_provider=AuthProvider.GOOGLE,
        google_id="g-100",
    )
    accounts = FakeAccountsPort(users=[user])

    output = UnlinkProviderUseCase(accounts_port=accounts).execute(
        UnlinkProviderInput(user_id="user-1", provider="google")
    )

    assert output.linked_providers == ["email"]
    assert output.primary_provider is None
    assert output.can_unlink == {"email": False}
    assert accounts.users["user-1"].google_id is None


def test_unlink_primary_reassigns_most_recently_linked_provider():
    user = make_user(
        linked_providers=(AuthProvider.EMAIL, AuthProvider.GOOGLE, AuthProvider.FACEBOOK, AuthProvider.GITHUB),
        primary_provider=AuthProvider.GOOGLE,
        google_id="g-100",
        facebook_id="fb-1",
        github_id="gh-7",
    )
    accounts = FakeAccountsPort(users=[user])

    output = UnlinkProviderUseCase(accounts_port=accounts).execute(
        UnlinkProviderInput(user_id="user-1", provider="google")
    )

    assert output.primary_provider == "github"


def test_unlink_email_drops_password():
    user = make_user(
        linked_providers=(AuthProvider.EMAIL, AuthProvider.GOOGLE),
        primary_provider=AuthProvider.GOOGLE,
        google_id="g-100",
    )
    accounts = FakeAccountsPort(users=[user])

    UnlinkProviderUseCase(accounts_port=accounts).execute(UnlinkProviderInput(user_id="user-1", provider="email"))

    stored = accounts.users["user-1"]
    assert stored.linked_providers == (AuthProvider.GOOGLE,)
    assert stored.password_hash is None
    assert stored.has_password is False


def test_unlink_last_provider_is_refused():
    accounts = FakeAccountsPort(users=[make_user()])

    with pytest.raises(CannotUnlinkLastProviderError):
        UnlinkProviderUseCase(accounts_port=accounts).execute(
            UnlinkProviderInput(user_id="user-1", provider="email")
        )


def test_unlink_provider_that_is_not_linked():
    accounts = FakeAccountsPort(users=[make_user()])

    with pytest.raises(ProviderNotLinkedError):
        UnlinkProviderUseCase(accounts_port=accounts).execute(
            UnlinkProviderInput(user_id="user-1", provider="github")
        )


def test_set_primary_provider():
    user = make_user(
        linked_providers=(AuthProvider.EMAIL, AuthProvider.GOOGLE, AuthProvider.GITHUB),
        primary_provider=AuthProvider.GOOGLE,
        google_id="g-100",
        github_id="gh-7",
    )
    accounts = FakeAccountsPort(users=[user])
    use_case = SetPrimaryProviderUseCase(accounts_port=accounts)

    output = use_case.execute(SetPrimaryProviderInput(user_id="user-1", provider="github"))

    assert output.primary_provider == "github"
    with pytest.raises(InvalidPrimaryProviderError):
        use_case.execute(SetPrimaryProviderInput(user_id="user-1", provider="email"))
    with pytest.raises(ProviderNotLinkedError):
        use_case.execute(SetPrimaryProviderInput(user_id="user-1", provider="facebook"))


def test_get_linked_providers_reports_unlink_eligibility():
    user = make_user(
        linked_providers=(AuthProvider.EMAIL, AuthProvider.GOOGLE),
        primary_provider=AuthProvider.GOOGLE,
        google_id="g-100",
    )

    output = GetLinkedProvidersUseCase(accounts_port=FakeAccountsPort(users=[user])).execute(user_id="user-1")

    assert output.linked_providers == ["email", "google"]
    assert output.can_unlink == {"email": True, "google": True}
