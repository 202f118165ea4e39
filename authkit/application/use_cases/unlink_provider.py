from __future__ import annotations

import logging

from authkit.application.dto.oauth import LinkedProvidersOutput, UnlinkProviderInput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.domain.entities.user import User, parse_provider
from authkit.domain.exceptions import UnsupportedProviderError
from authkit.domain.services.provider_linking import unlink_provider

from .auth_common import apply_link_change, utcnow
from .get_linked_providers import build_linked_providers_output


logger = logging.getLogger(__name__)


class UnlinkProviderUseCase:
    def __init__(self, *, accounts_port: AccountsPort):
        self._accounts_port = accounts_port

    def execute(self, command: UnlinkProviderInput) -> LinkedProvidersOutput:
        provider = parse_provider(command.provider)
        if provider is None:
            raise UnsupportedProviderError(f"Unsupported provider '{command.provider}'.")

        def _change(user: User) -> User:
            return unlink_provider(user, provider=provider, now=utcnow())

        user = apply_link_change(self._accounts_port, user_id=command.user_id, change=_change)
        logger.info(
            "unlink_provider: unlinked user_id=%s provider=%s primary=%s",
            user.id,
            provider.value,
            user.primary_provider.value if user.primary_provider else None,
        )
        return build_linked_providers_output(user)
