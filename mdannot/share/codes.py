"""Short share codes drawn from an unambiguous alphabet."""

from __future__ import annotations

import re
import secrets

# Digits 2-9 and uppercase letters without I, L and O.
ALPHABET = "23456789ABCDEFGHJKMNPQRSTUVWXYZ"
CODE_LENGTH = 6

_CODE_RE = re.compile(rf"^[{ALPHABET}]{{{CODE_LENGTH}}}$")


def generate_code() -> str:
    """Return a random share code."""

    return "".join(secrets.choice(ALPHABET) for _ in range(CODE_LENGTH))


def normalize_code(code: str) -> str:
    """Return ``code`` stripped and uppercased."""

    return code.strip().upper()


def is_valid_code(code: str) -> bool:
    """Return whether ``code`` is a well-formed, normalized share code."""

    return bool(_CODE_RE.match(code))
