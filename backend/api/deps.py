"""Shared API dependencies."""

from types import SimpleNamespace

from core.config import LOCAL_USER_ID
from services.database.local_store import LOCAL_USER_EMAIL, LOCAL_USER_NAME

# There is no authentication in local mode; every request acts as this user.
# SimpleNamespace gives the attribute access routers expect from a user object.
LOCAL_USER = SimpleNamespace(
    id=LOCAL_USER_ID,
    email=LOCAL_USER_EMAIL,
    display_name=LOCAL_USER_NAME,
)


async def get_current_user() -> SimpleNamespace:
    """Return the user the request acts for."""
    return LOCAL_USER
