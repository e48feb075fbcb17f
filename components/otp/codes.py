"""Generation and digesting of one-time codes."""

import hashlib
import hmac
import secrets
import string

CODE_LENGTH = 6
FALLBACK_TOKEN_LENGTH = 8


def generate_code() -> str:
    """Return a random 6-digit numeric code."""
    return str(100000 + secrets.randbelow(900000))


def generate_fallback_token(length: int = FALLBACK_TOKEN_LENGTH) -> str:
    """Return a longer alphanumeric code, used when 6-digit codes keep colliding."""
    characters = string.ascii_uppercase + string.digits
    return "".join(secrets.choice(characters) for _ in range(length))


def digest_code(code: str, secret: str) -> str:
    """Keyed one-way digest of a code (HMAC-SHA256, hex)."""
    return hmac.new(secret.encode(), str(code).strip().encode(), hashlib.sha256).hexdigest()


def codes_match(code: str, stored_digest: str, secret: str) -> bool:
    """Compare a supplied code against a stored digest in constant time."""
    return hmac.compare_digest(digest_code(code, secret), stored_digest)
