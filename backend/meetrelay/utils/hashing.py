"""Hashing utilities for session credentials, admin passwords and the calendar key."""
import hashlib
import hmac
import secrets
from typing import Optional
import bcrypt
from meetrelay.config import settings
from meetrelay.constants import SESSION_ID_BYTES, SESSION_PASSWORD_BYTES


def generate_session_id() -> str:
    """
    Generate a new external session identifier.

    Returns:
        24 lowercase hex characters (96 bits of randomness)
    """
    return secrets.token_hex(SESSION_ID_BYTES)


def generate_session_password() -> str:
    """
    Generate a one-time session password.

    Short on purpose: it is read aloud or embedded in a join link, and only
    ever unlocks a single, expiring session.

    Returns:
        8 uppercase hex characters
    """
    return secrets.token_hex(SESSION_PASSWORD_BYTES).upper()


def hash_password(password: str) -> str:
    """
    Hash a session password using SHA-256.
    
    Args:
        password: The plaintext session password
        
    Returns:
        SHA-256 hex digest
    """
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a session password against a stored hash.

    Session passwords are case-sensitive. The digests are compared with
    ``hmac.compare_digest`` so a mismatch does not return early.
    
    Args:
        password: The candidate password
        password_hash: The stored SHA-256 hex digest
        
    Returns:
        True if the password matches, False otherwise
    """
    if password is None or not password_hash:
        return False
    return hmac.compare_digest(hash_password(password), password_hash)


def hash_admin_password(password: str) -> str:
    """Hash an administrative password using bcrypt."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_admin_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a bcrypt hash.
    
    Args:
        password: The password to verify
        password_hash: The stored bcrypt hash
        
    Returns:
        True if the password matches, False otherwise
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def derive_calendar_api_key(secret_key: Optional[str] = None) -> str:
    """
    Derive the calendar integration key from the server secret.

    The key is never stored; it is recomputed on every call.

    Returns:
        First 32 hex characters of sha256("calendar-api-" + secret)
    """
    secret = secret_key if secret_key is not None else settings.secret_key
    return hashlib.sha256(f"calendar-api-{secret}".encode("utf-8")).hexdigest()[:32]


def verify_calendar_api_key(api_key: Optional[str]) -> bool:
    """Check a presented calendar key against the derived one."""
    if not api_key:
        return False
    return hmac.compare_digest(api_key.encode("utf-8"), derive_calendar_api_key().encode("utf-8"))
