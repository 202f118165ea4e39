from __future__ import annotations

import secrets


CODE_MIN = 100000
CODE_MAX = 999999


def generate_activation_code() -> str:
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def remaining_attempts(*, attempts: int, max_attempts: int) -> int:
    return max(max_attempts - attempts, 0)
