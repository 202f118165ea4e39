from __future__ import annotations

from authkit.application.dto.oauth import LinkedProvidersOutput, SetPrimaryProviderInput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.domain.entities.user import User, parse_provider
from authkit.domain.exceptions import UnsupportedProviderError
from authkit.domain.services.provider_linking import set_primary_provider

from .auth_common import apply_link_change, utcnow
from .get_linked_providers import build_linked_providers_output


class SetPrimaryProviderUseCase:
    def __init__(self, *, accounts_port: AccountsPort):
        self._accounts_port = accounts_port

    def execute(self, command: SetPrimaryProviderInput) -> LinkedProvidersOutput:
        provider = parse_provider(command.provider)
        if provider is None:
            raise UnsupportedProviderError(f"Unsupported provider '{command.provider}'.")

        def _change(user: User) -> User:
            return set_primary_provider(user, provider=provider, now=utcnow())

        user = apply_link_change(self._accounts_port, user_id=command.user_id, change=_change)
        return build_linked_providers_output(user)
