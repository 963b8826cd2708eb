"""Calendar bridge API key extraction."""
from typing import Optional
from fastapi import Header


def get_calendar_api_key_header(
    api_key: Optional[str] = Header(None, alias="X-API-Key", description="Calendar integration key"),
) -> Optional[str]:
    """
    Read the calendar key from the X-API-Key header.

    The key may also be sent in the request body as ``apiKey``; handlers
    prefer the body value when both are present. Verification happens in
    ``CalendarBridge.authenticate`` so an invalid key is rejected before
    the store is touched.
    """
    return api_key
