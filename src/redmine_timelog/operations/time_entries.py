from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from redmine_timelog.errors import RedminePreconditionError, classify
from redmine_timelog.models import (
    MAX_COMMENT_LENGTH,
    RedmineTimeEntriesPage,
    RedmineTimeEntry,
    RedmineTimeEntryRequest,
    RedmineTimeEntryResponse,
    TimeEntry,
)
from redmine_timelog.operations.issues import resolve_issues
from redmine_timelog.operations.projects import get_projects_with_activities
from redmine_timelog.session import Session
from redmine_timelog.utils.dates import month_bounds

logger = logging.getLogger(__name__)

TIME_ENTRIES_PATH = "/time_entries.json"


def time_entry_path(entry_id: int) -> str:
    return f"/time_entries/{entry_id}.json"


async def _fetch_page(
    session: Session, params: Dict[str, Any], offset: int
) -> RedmineTimeEntriesPage:
    return await session.transport.request_model(
        RedmineTimeEntriesPage,
        "GET",
        TIME_ENTRIES_PATH,
        params={**params, "offset": offset},
        operation="time_entries",
    )


async def _fetch_month_records(
    session: Session, year: int, month: int
) -> List[Any]:
    """
    Raw records of the month, pages fetched in offset order.

    The total_count of the first page bounds the loop: collection stops once
    that many records arrived, or when a page comes back empty.
    """
    try:
        start, end = month_bounds(year, month)
    except ValueError as exc:
        raise RedminePreconditionError(str(exc)) from exc

    params = {
        "from": start.isoformat(),
        "to": end.isoformat(),
        "user_id": "me",
        "limit": session.config.page_size,
    }

    first = await _fetch_page(session, params, 0)
    total = max(first.total_count, 0)
    records = list(first.time_entries)

    while len(records) < total:
        page = await _fetch_page(session, params, len(records))
        if not page.time_entries:
            logger.warning(
                "time_entries.short_listing",
                extra={"fetched": len(records), "total_count": total},
            )
            break
        records.extend(page.time_entries)

    return records[:total]


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    loc = ".".join(str(p) for p in errors[0].get("loc", ()))
    return f"{loc}: {errors[0].get('msg', '')}" if loc else str(errors[0].get("msg"))


def _parse_record(record: Any) -> Optional[RedmineTimeEntry]:
    if not isinstance(record, dict):
        logger.warning("time_entry.skipped", extra={"reason": "not an object"})
        return None
    try:
        return RedmineTimeEntry.model_validate(record)
    except ValidationError as exc:
        logger.warning(
            "time_entry.skipped",
            extra={"entry_id": record.get("id"), "reason": _first_error(exc)},
        )
        return None


def _to_domain(session: Session, wire: RedmineTimeEntry) -> TimeEntry:
    cache = session.cache
    return wire.to_domain(cache.issues, cache.projects, cache.activities)


async def list_time_entries_for_month(
    session: Session, year: int, month: int
) -> List[TimeEntry]:
    """
    Every time entry of the current user dated within the given month, with
    project, activity and issue resolved. Records that cannot be mapped are
    logged and left out.
    """
    records = await _fetch_month_records(session, year, month)

    await get_projects_with_activities(session)

    parsed = [w for w in (_parse_record(r) for r in records) if w is not None]
    await resolve_issues(session, (w.issue.id for w in parsed))

    entries: List[TimeEntry] = []
    for wire in parsed:
        try:
            entries.append(_to_domain(session, wire))
        except ValidationError as exc:
            logger.warning(
                "time_entry.skipped",
                extra={"entry_id": wire.id, "reason": _first_error(exc)},
            )
    return entries


def _check_writable(session: Session, entry: TimeEntry) -> None:
    cap = session.config.max_daily_hours
    if entry.hours > cap:
        raise RedminePreconditionError(
            f"Time entry hours ({entry.hours}) exceed the daily limit of {cap}."
        )
    if entry.comments and len(entry.comments) > MAX_COMMENT_LENGTH:
        raise RedminePreconditionError(
            f"Time entry comments exceed {MAX_COMMENT_LENGTH} characters."
        )


async def _finish(session: Session, wire: RedmineTimeEntry) -> TimeEntry:
    await resolve_issues(session, [wire.issue.id])
    try:
        return _to_domain(session, wire)
    except ValidationError as exc:
        raise classify(200, wire.model_dump_json(), exc) from exc


async def create_time_entry(session: Session, entry: TimeEntry) -> TimeEntry:
    _check_writable(session, entry)
    payload = RedmineTimeEntryRequest.from_domain(entry).to_payload()

    response = await session.transport.request_model(
        RedmineTimeEntryResponse,
        "POST",
        TIME_ENTRIES_PATH,
        json=payload,
        operation="create_time_entry",
    )
    return await _finish(session, response.time_entry)


async def update_time_entry(session: Session, entry: TimeEntry) -> TimeEntry:
    """
    Replace an existing entry. Redmine acknowledges a PUT with an empty body,
    in which case the stored entry is read back.
    """
    if entry.id is None:
        raise RedminePreconditionError(
            "Time entry ID cannot be null for update operation"
        )
    _check_writable(session, entry)

    path = time_entry_path(entry.id)
    payload = RedmineTimeEntryRequest.from_domain(entry).to_payload()
    body = await session.transport.put(
        path, json=payload, operation="update_time_entry"
    )

    wire: Optional[RedmineTimeEntry] = None
    if body.get("time_entry"):
        try:
            wire = RedmineTimeEntryResponse.model_validate(body).time_entry
        except ValidationError:
            wire = None
    if wire is None:
        response = await session.transport.request_model(
            RedmineTimeEntryResponse, "GET", path, operation="update_time_entry"
        )
        wire = response.time_entry

    return await _finish(session, wire)


async def delete_time_entry(session: Session, entry_id: int) -> None:
    """
    Delete an entry. Not safe to retry blindly: a failure after the request
    left may still have removed the entry remotely.
    """
    if isinstance(entry_id, bool) or not isinstance(entry_id, int) or entry_id <= 0:
        raise RedminePreconditionError(f"Invalid time entry ID: {entry_id!r}")
    await session.transport.delete(
        time_entry_path(entry_id), operation="delete_time_entry"
    )


__all__ = [
    "list_time_entries_for_month",
    "create_time_entry",
    "update_time_entry",
    "delete_time_entry",
    "time_entry_path",
]
