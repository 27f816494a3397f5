import secrets

from fastapi import Header

from salon.core.config import settings
from salon.core.exceptions import Forbidden


async def verify_staff_token(x_staff_token: str = Header(None)):
    """
    Guards the staff endpoints (timeline, settings, opening hours).
    Login and user management live outside this service; the admin panel
    forwards the shared staff token in the X-Staff-Token header.
    """
    if not settings.STAFF_TOKEN:
        raise Forbidden("Staff access is not configured.")

    if not x_staff_token or not secrets.compare_digest(x_staff_token, settings.STAFF_TOKEN):
        raise Forbidden("Invalid staff token.")
    return True
