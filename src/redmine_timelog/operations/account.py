from __future__ import annotations

from typing import Any, Optional

from redmine_timelog.models import RedmineAccountResponse
from redmine_timelog.session import Session

ACCOUNT_PATH = "/my/account.json"


def _parse_hours(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        hours = float(value)
    else:
        text = str(value).strip().replace(",", ".")
        if not text:
            return None
        try:
            hours = float(text)
        except ValueError:
            return None
    return hours if hours > 0 else None


async def get_user_weekly_hours(session: Session) -> Optional[float]:
    """
    The current user's contractual weekly hours, read from a custom field of
    the account. Returns None when the field is absent or not a positive number.
    """
    cache = session.cache
    if cache.weekly_hours_loaded:
        return cache.weekly_hours

    async with cache.account_lock:
        if cache.weekly_hours_loaded:
            return cache.weekly_hours

        response = await session.transport.request_model(
            RedmineAccountResponse, "GET", ACCOUNT_PATH, operation="account"
        )
        hours = _parse_hours(
            response.user.custom_field_value(session.config.weekly_hours_field_id)
        )
        cache.store_weekly_hours(hours)
        return hours


__all__ = ["get_user_weekly_hours"]
