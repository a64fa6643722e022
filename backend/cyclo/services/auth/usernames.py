"""Handle generation from a display name."""

from __future__ import annotations

import re
import secrets
import string
from dataclasses import dataclass

BASE_MAX_LENGTH = 20
SUFFIX_LENGTH = 4
SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
FALLBACK_BASE = "user"

_STRIP_RE = re.compile(r"[\s\W]+")


@dataclass(frozen=True, slots=True)
class UsernamePair:
    """
    :param username: Lowercase handle, unique.
    :param display_username: Same handle in the casing the user typed.
    """

    username: str
    display_username: str


def normalize_base(display_name: str, *, email: str | None = None) -> str:
    """
    Strip whitespace and non-word characters and cap at 20 characters.

    Falls back to the email local part, then to ``"user"``, when nothing is
    left.
    """
    base = _STRIP_RE.sub("", display_name or "")[:BASE_MAX_LENGTH]
    if not base and email:
        base = _STRIP_RE.sub("", email.split("@", 1)[0])[:BASE_MAX_LENGTH]
    return base or FALLBACK_BASE


def random_suffix(length: int = SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(length))


def generate_username(display_name: str, *, email: str | None = None) -> UsernamePair:
    """
    Build a candidate handle: normalized base plus a 4-char ``[a-z0-9]`` suffix.

    >>> pair = generate_username("Alice Smith")
    >>> pair.username.startswith("alicesmith")
    True
    """
    handle = normalize_base(display_name, email=email) + random_suffix()
    return UsernamePair(username=handle.lower(), display_username=handle)
