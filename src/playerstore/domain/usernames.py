"""Base-37 username hashing used by friend and ignore lists.

Usernames are reduced to ``[a-z0-9 ]`` (anything else becomes a space),
trimmed, and capped at 12 characters before encoding. Decoding
capitalises the first letter of every word.

Examples:
    >>> hash_to_username(username_to_hash("mod ash"))
    'Mod Ash'
    >>> hash_to_username(-1)
    'invalid_name'
"""

from __future__ import annotations

INVALID_USERNAME = "invalid_name"
MAX_USERNAME_LENGTH = 12
# first value that would decode to thirteen characters
MAX_HASH = 0x5B5B57F8A98A5DD1


def _normalize(username: str) -> str:
    chars = [c if ("a" <= c <= "z" or "0" <= c <= "9") else " " for c in username.lower()]
    return "".join(chars).strip()[:MAX_USERNAME_LENGTH]


def username_to_hash(username: str) -> int:
    """Encode *username* as a base-37 integer."""
    value = 0
    for c in _normalize(username):
        value *= 37
        if "a" <= c <= "z":
            value += 1 + ord(c) - ord("a")
        elif "0" <= c <= "9":
            value += 27 + ord(c) - ord("0")
    return value


def hash_to_username(value: int) -> str:
    """Decode a base-37 username hash.

    Non-positive hashes, hashes past twelve characters and hashes ending
    in a space all decode to :data:`INVALID_USERNAME`.
    """
    if value <= 0 or value >= MAX_HASH or value % 37 == 0:
        return INVALID_USERNAME
    out = ""
    while value != 0:
        digit = value % 37
        value //= 37
        if digit == 0:
            out = " " + out
        elif digit < 27:
            base = ord("A") if value % 37 == 0 else ord("a")
            out = chr(base + digit - 1) + out
        else:
            out = chr(ord("0") + digit - 27) + out
    return out


def is_valid_hash(value: int) -> bool:
    return hash_to_username(value).lower() != INVALID_USERNAME
