from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    POLICY_VIOLATION = "policy_violation"
    UNAUTHORIZED = "unauthorized"
    UPSTREAM = "upstream"


class DomainError(Exception):
    """Base for domain errors."""

    category = ErrorCategory.VALIDATION
    code = "domain_error"


class NotFoundError(DomainError):
    category = ErrorCategory.NOT_FOUND
    code = "not_found"


class ConflictError(DomainError):
    category = ErrorCategory.CONFLICT
    code = "conflict"


class ValidationError(DomainError):
    category = ErrorCategory.VALIDATION
    code = "validation_error"


class PolicyViolationError(DomainError):
    category = ErrorCategory.POLICY_VIOLATION
    code = "policy_violation"


class UnauthorizedError(DomainError):
    category = ErrorCategory.UNAUTHORIZED
    code = "unauthorized"


class UpstreamError(DomainError):
    category = ErrorCategory.UPSTREAM
    code = "upstream_error"


class DuplicateKeyError(ConflictError):
    """A unique constraint rejected the write."""

    code = "duplicate_key"

    def __init__(self, key: str, message: str | None = None):
        super().__init__(message or f"Duplicate value for '{key}'.")
        self.key = key


class RegistrationNotFoundError(NotFoundError):
    """No live pending registration for the email."""

    code = "registration_not_found"


class UserNotFoundError(NotFoundError):
    code = "user_not_found"


class ProviderNotLinkedError(NotFoundError):
    code = "provider_not_linked"


class RoleNotFoundError(NotFoundError):
    code = "role_not_found"


class SessionNotFoundError(NotFoundError):
    code = "session_not_found"


class PermissionNotGrantedError(NotFoundError):
    """The user has no direct grant for the permission."""

    code = "permission_not_granted"


class EmailAlreadyRegisteredError(ConflictError):
    code = "email_already_registered"


class ProviderAlreadyLinkedError(ConflictError):
    code = "provider_already_linked"


class ProviderLinkedToOtherAccountError(ConflictError):
    code = "provider_linked_to_other_account"


class PermissionAlreadyGrantedError(ConflictError):
    code = "permission_already_granted"


class RoleAlreadyExistsError(ConflictError):
    code = "role_already_exists"


class AccountLinkRequiredError(ConflictError):
    """An account with the provider email exists and must be linked explicitly."""

    code = "account_link_required"


class ConcurrentUpdateError(ConflictError):
    code = "concurrent_update"


class InvalidCodeError(ValidationError):
    code = "invalid_code"

    def __init__(self, message: str, *, remaining_attempts: int):
        super().__init__(message)
        self.remaining_attempts = remaining_attempts


class EmailMismatchOnLinkError(ValidationError):
    code = "email_mismatch_on_link"


class InvalidPermissionError(ValidationError):
    code = "invalid_permission"


class UnsupportedProviderError(ValidationError):
    code = "unsupported_provider"


class InvalidPrimaryProviderError(ValidationError):
    code = "invalid_primary_provider"


class SamePasswordError(ValidationError):
    code = "same_password"


class PasswordNotSetError(ValidationError):
    """Account signs in only through OAuth providers."""

    code = "password_not_set"


class CannotUnlinkLastProviderError(PolicyViolationError):
    code = "cannot_unlink_last_provider"


class TooManyAttemptsError(PolicyViolationError):
    code = "too_many_attempts"


class ProtectedRoleError(PolicyViolationError):
    code = "protected_role"


class RoleInUseError(PolicyViolationError):
    code = "role_in_use"


class CannotRevokeCurrentSessionError(PolicyViolationError):
    code = "cannot_revoke_current_session"


class PermissionDeniedError(PolicyViolationError):
    code = "permission_denied"


class CannotModifySelfError(PolicyViolationError):
    code = "cannot_modify_self"


class CannotManageUserError(PolicyViolationError):
    """The target holds permissions the acting user does not have."""

    code = "cannot_manage_user"


class SessionExpiredError(UnauthorizedError):
    code = "session_expired"


class InvalidSessionError(UnauthorizedError):
    code = "invalid_session"


class InvalidCredentialsError(UnauthorizedError):
    code = "invalid_credentials"


class InvalidOAuthStateError(UnauthorizedError):
    code = "invalid_oauth_state"


class UserInactiveError(UnauthorizedError):
    code = "user_inactive"


class OAuthProviderError(UpstreamError):
    """The OAuth provider rejected the exchange or returned an unusable profile."""

    code = "oauth_provider_error"


class ActivationEmailFailedError(UpstreamError):
    code = "activation_email_failed"
