"""Password hashing, session tokens, CSRF tokens and client fingerprints."""

import base64
import hashlib
import hmac
import secrets
import time
from urllib.parse import urlparse

import bcrypt
from fastapi import Request

_BCRYPT_MAX_BYTES = 72
_DEV_SECRET = b"catalog-dev-secret"


def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash.

    Malformed hashes never verify.
    """
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token.

    Args:
        length: Number of random bytes to generate (default 32)

    Returns:
        URL-safe base64 encoded token
    """
    return (
        base64.urlsafe_b64encode(secrets.token_bytes(length))
        .decode("utf-8")
        .rstrip("=")
    )


def _signing_key(secret: str | None) -> bytes:
    return secret.encode("utf-8") if secret else _DEV_SECRET


def generate_csrf_token(
    session_id: str, secret: str | None, timestamp: int | None = None
) -> str:
    """Generate a CSRF token bound to a session and an hour bucket.

    Returns:
        ``"<hour>:<hmac>"``
    """
    if timestamp is None:
        timestamp = int(time.time() // 3600)

    message = f"{session_id}:{timestamp}"
    digest = hmac.new(_signing_key(secret), message.encode(), hashlib.sha256).hexdigest()
    return f"{timestamp}:{digest}"


def validate_csrf_token(
    session_id: str,
    csrf_token: str | None,
    secret: str | None,
    max_age_hours: int = 12,
) -> bool:
    """Validate a CSRF token produced by ``generate_csrf_token``."""
    if not csrf_token:
        return False

    token_timestamp, _, token_value = csrf_token.partition(":")
    try:
        timestamp = int(token_timestamp)
    except ValueError:
        return False

    current_hour = int(time.time() // 3600)
    if current_hour - timestamp > max_age_hours:
        return False

    expected = generate_csrf_token(session_id, secret, timestamp).split(":", 1)[1]
    return hmac.compare_digest(expected, token_value)


def sanitize_return_url(return_to: str | None, default: str = "/") -> str:
    """Only allow same-site relative redirect targets.

    Absolute URLs, protocol-relative URLs and paths with control characters
    fall back to ``default``.
    """
    if not return_to:
        return default

    return_to = return_to.strip()
    if (
        return_to.startswith("/")
        and not return_to.startswith("//")
        and all(ord(c) >= 32 for c in return_to)
        and not urlparse(return_to).netloc
    ):
        return return_to
    return default


def hash_client_fingerprint(
    user_agent: str | None, client_ip: str | None = None
) -> str:
    """Create a stable fingerprint for client context binding.

    Returns:
        SHA256 hash of client characteristics
    """
    components = [part.strip() for part in (user_agent, client_ip) if part]
    if not components:
        components.append("unknown-client")

    return hashlib.sha256("|".join(components).encode("utf-8")).hexdigest()


def extract_client_fingerprint(request: Request) -> str:
    """Hash the user agent and client IP of a request, honouring proxy headers."""
    user_agent = request.headers.get("user-agent")

    client_ip = None
    for header in ("x-forwarded-for", "x-real-ip"):
        value = request.headers.get(header)
        if value:
            client_ip = value.split(",")[0].strip()
            break

    if not client_ip and request.client:
        client_ip = request.client.host

    return hash_client_fingerprint(user_agent, client_ip)
