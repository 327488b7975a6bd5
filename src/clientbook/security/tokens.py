"""Helpers for opaque bearer tokens.

Plain-text tokens have the form ``"{token_id}|{secret}"``. Only the
sha256 hash of the secret is stored, so a leaked database does not leak
usable tokens. The id prefix lets lookups go straight to one row.
"""

import hashlib
import hmac
import secrets

TOKEN_LENGTH = 40

# Largest value a BIGINT primary key can hold
MAX_TOKEN_ID = 2**63 - 1


def generate_token() -> str:
    """Generate a random url-safe secret of ``TOKEN_LENGTH`` characters."""
    return secrets.token_urlsafe(TOKEN_LENGTH)[:TOKEN_LENGTH]


def hash_token(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def split_token(plain_text: str) -> tuple[int | None, str]:
    """Split a plain-text token into its id prefix and secret.

    Only ASCII digits that fit a BIGINT count as an id prefix. Anything
    else returns ``(None, plain_text)``.
    """
    token_id, sep, secret = plain_text.partition("|")
    if (
        sep
        and token_id.isascii()
        and token_id.isdigit()
        and len(token_id) <= len(str(MAX_TOKEN_ID))
        and int(token_id) <= MAX_TOKEN_ID
    ):
        return int(token_id), secret
    return None, plain_text


def format_token(token_id: int, secret: str) -> str:
    return f"{token_id}|{secret}"


def hashes_match(secret: str, stored_hash: str) -> bool:
    """Compare a secret against a stored hash in constant time."""
    return hmac.compare_digest(hash_token(secret), stored_hash)
