"""URL utility functions."""
import urllib.parse
from typing import Optional

from meetrelay.config import settings


def decode_session_id(session_id: str) -> str:
    """
    Decode a URL-encoded session ID.
    
    Args:
        session_id: Potentially URL-encoded session ID
        
    Returns:
        Decoded session ID
    """
    return urllib.parse.unquote(session_id)


def _base_url(base_url: Optional[str]) -> str:
    return (base_url or settings.public_base_url).rstrip("/")


def build_join_url(session_id: str, password: str, base_url: Optional[str] = None) -> str:
    """
    Build the one-click client join link.

    The password travels as the ``p`` query parameter.
    """
    query = urllib.parse.urlencode({"p": password})
    return f"{_base_url(base_url)}/join/{urllib.parse.quote(session_id, safe='')}?{query}"


def build_host_url(session_id: str, base_url: Optional[str] = None) -> str:
    """Build the host viewer link for a session."""
    return f"{_base_url(base_url)}/viewer/{urllib.parse.quote(session_id, safe='')}"
