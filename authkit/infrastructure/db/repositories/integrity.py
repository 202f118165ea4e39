from __future__ import annotations

from typing import Mapping

from sqlalchemy.exc import IntegrityError

from authkit.domain.exceptions import DuplicateKeyError


def _constraint_name(exc: IntegrityError) -> str | None:
    diag = getattr(exc.orig, "diag", None)
    return getattr(diag, "constraint_name", None)


def as_duplicate_key(exc: IntegrityError, constraints: Mapping[str, str]) -> DuplicateKeyError | None:
    """Map a unique violation to the domain key it protects, or None when unrelated."""
    name = _constraint_name(exc)
    if name is None:
        message = str(exc.orig)
        name = next((constraint for constraint in constraints if constraint in message), None)
    if name is None or name not in constraints:
        return None
    return DuplicateKeyError(constraints[name])
