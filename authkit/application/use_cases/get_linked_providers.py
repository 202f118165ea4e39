from __future__ import annotations

from authkit.application.dto.oauth import LinkedProvidersOutput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.domain.entities.user import User
from authkit.domain.exceptions import UserNotFoundError
from authkit.domain.services.provider_linking import can_unlink_provider


def build_linked_providers_output(user: User) -> LinkedProvidersOutput:
    return LinkedProvidersOutput(
        user_id=user.id,
        linked_providers=[provider.value for provider in user.linked_providers],
        primary_provider=user.primary_provider.value if user.primary_provider else None,
        can_unlink={provider.value: can_unlink_provider(user, provider) for provider in user.linked_providers},
        profile_synced_at=user.profile_synced_at,
        last_synced_provider=user.last_synced_provider.value if user.last_synced_provider else None,
    )


class GetLinkedProvidersUseCase:
    def __init__(self, *, accounts_port: AccountsPort):
        self._accounts_port = accounts_port

    def execute(self, *, user_id: str) -> LinkedProvidersOutput:
        user = self._accounts_port.get_user_by_id(user_id=user_id)
        if user is None or user.is_deleted:
            raise UserNotFoundError("User not found.")
        return build_linked_providers_output(user)
