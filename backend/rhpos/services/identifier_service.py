# Overview: Reversible public identifiers; keeps numeric primary keys off the wire.

"""
Identifier Service - obfuscated, reversible public ids

Every id that leaves the process (response bodies, path parameters, JWT
claims, object-storage prefixes) goes through IdentifierCodec.

GUARANTEES:
- Deterministic: the same id always yields the same token.
- One-to-one over non-negative integers; decode(encode(x)) == x.
- Tokens use a fixed alphabet and a minimum length.
- decode rejects malformed tokens, tokens carrying more than one number and
  tokens minted under a different salt (hashids re-encodes the decoded value
  and compares).

NOT A SECRET: this is obfuscation against casual inspection, not encryption.
"""

from __future__ import annotations

from flask import current_app
from hashids import Hashids

from ..errors import InvalidTokenFormatError


DEFAULT_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ1234567890"
DEFAULT_MIN_LENGTH = 7


class IdentifierCodec:
    def __init__(self, salt: str, alphabet: str = DEFAULT_ALPHABET, min_length: int = DEFAULT_MIN_LENGTH):
        if not salt:
            raise ValueError("identifier salt must not be empty")
        self._hashids = Hashids(salt=salt, min_length=min_length, alphabet=alphabet)
        self.alphabet = alphabet
        self.min_length = min_length

    def encode(self, value: int) -> str:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"identifier must be an int, got {type(value).__name__}")
        if value < 0:
            raise ValueError("identifier must be non-negative")
        return self._hashids.encode(value)

    def decode(self, token: str) -> int:
        if not isinstance(token, str) or not token.strip():
            raise InvalidTokenFormatError(token)
        numbers = self._hashids.decode(token.strip())
        if len(numbers) != 1:
            raise InvalidTokenFormatError(token)
        return numbers[0]

    def encode_optional(self, value: int | None) -> str | None:
        return None if value is None else self.encode(value)


def codec_from_config(config) -> IdentifierCodec:
    return IdentifierCodec(
        salt=config["HASHID_SALT"],
        alphabet=config.get("HASHID_ALPHABET") or DEFAULT_ALPHABET,
        min_length=int(config.get("HASHID_MIN_LENGTH", DEFAULT_MIN_LENGTH)),
    )


def get_codec() -> IdentifierCodec:
    """Codec configured for the current Flask app."""
    return current_app.extensions["identifier_codec"]
