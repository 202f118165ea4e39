from __future__ import annotations

from fastapi import HTTPException

from authkit.domain.exceptions import DomainError, ErrorCategory


STATUS_BY_CATEGORY = {
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.POLICY_VIOLATION: 403,
    ErrorCategory.UNAUTHORIZED: 401,
    ErrorCategory.UPSTREAM: 502,
}


def http_error(exc: DomainError) -> HTTPException:
    status_code = STATUS_BY_CATEGORY.get(exc.category, 400)
    detail = {"message": str(exc), "code": exc.code}
    remaining = getattr(exc, "remaining_attempts", None)
    if remaining is not None:
        detail["remaining_attempts"] = remaining
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return HTTPException(status_code=status_code, detail=detail, headers=headers)
