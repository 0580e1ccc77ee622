from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from . import operations
from .config import ClientConfig, RetryConfig, load_env_config
from .models import Activity, Issue, Project, TimeEntry
from .session import Session


class RedmineClient:
    """
    Time tracking client for a Redmine server.
    - Owns one Session: the HTTP transport plus the reference data caches
    - Every operation is a coroutine; network round-trips are the only awaits
    - update_configuration() swaps in a fresh session in one step
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        config: Optional[ClientConfig] = None,
        retry: Optional[RetryConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or ClientConfig()
        self.retry = retry
        self.log = logger or logging.getLogger("redmine_timelog.client")
        self._session = self._open_session(base_url, api_key)
        self._swap_lock = asyncio.Lock()

    @classmethod
    def from_env(cls, **kwargs) -> "RedmineClient":
        base_url, api_key = load_env_config()
        return cls(base_url=base_url, api_key=api_key, **kwargs)

    def _open_session(self, base_url: str, api_key: str) -> Session:
        return Session.open(
            base_url=base_url,
            api_key=api_key,
            config=self.config,
            retry=self.retry,
            logger=self.log,
        )

    @property
    def session(self) -> Session:
        return self._session

    @property
    def base_url(self) -> str:
        return self._session.base_url

    async def aclose(self) -> None:
        await self._session.aclose()

    async def __aenter__(self) -> "RedmineClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def update_configuration(self, base_url: str, api_key: str) -> None:
        """
        Point the client at new credentials. The new transport and empty
        caches are published together; the old connection pool is closed.
        """
        async with self._swap_lock:
            fresh = self._open_session(base_url, api_key)
            previous, self._session = self._session, fresh
            self.log.info("client.reconfigured", extra={"endpoint": fresh.base_url})
        await previous.aclose()

    # --- time entries ---

    async def get_time_entries_for_month(self, year: int, month: int) -> List[TimeEntry]:
        return await operations.list_time_entries_for_month(self._session, year, month)

    async def create_time_entry(self, entry: TimeEntry) -> TimeEntry:
        return await operations.create_time_entry(self._session, entry)

    async def update_time_entry(self, entry: TimeEntry) -> TimeEntry:
        return await operations.update_time_entry(self._session, entry)

    async def delete_time_entry(self, entry_id: int) -> None:
        await operations.delete_time_entry(self._session, entry_id)

    # --- reference data ---

    async def get_projects_with_activities(self) -> List[Project]:
        return await operations.get_projects_with_activities(self._session)

    async def get_activities_for_project(self, project_id: int) -> List[Activity]:
        return await operations.get_activities_for_project(self._session, project_id)

    async def get_projects_with_open_issues(self) -> List[Project]:
        return await operations.get_projects_with_open_issues(self._session)

    async def get_issues(self, project_id: int) -> List[Issue]:
        return await operations.get_issues(self._session, project_id)

    async def get_user_weekly_hours(self) -> Optional[float]:
        return await operations.get_user_weekly_hours(self._session)


def create_client_from_env(**kwargs) -> RedmineClient:
    """Create a RedmineClient from REDMINE_URL / REDMINE_API_KEY."""
    base_url, api_key = load_env_config()
    if not base_url or not api_key:
        raise ValueError("Missing REDMINE_URL or REDMINE_API_KEY in environment.")
    return RedmineClient(base_url=base_url, api_key=api_key, **kwargs)


__all__ = ["RedmineClient", "create_client_from_env"]
