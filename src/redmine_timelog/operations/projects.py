from __future__ import annotations

import logging
from typing import List

from redmine_timelog.errors import RedmineConfigurationError, RedmineNotFoundError
from redmine_timelog.models import Activity, Project, RedmineProjectsResponse
from redmine_timelog.operations.issues import get_issues
from redmine_timelog.session import Session

logger = logging.getLogger(__name__)

PROJECTS_PATH = "/projects.json"
PROJECTS_LIMIT = 100


async def get_projects_with_activities(session: Session) -> List[Project]:
    """
    Return all visible projects, loading projects and their time entry
    activities in one request. Served from cache once both are warm.
    """
    cache = session.cache
    if cache.projects_warm:
        return cache.project_list()

    async with cache.projects_lock:
        # Another caller may have filled the cache while we waited.
        if cache.projects_warm:
            return cache.project_list()

        response = await session.transport.request_model(
            RedmineProjectsResponse,
            "GET",
            PROJECTS_PATH,
            params={"include": "time_entry_activities", "limit": PROJECTS_LIMIT},
            operation="projects",
        )
        for item in response.projects:
            if not item.is_valid:
                continue
            cache.store_project(item.to_domain(), item.activities())

        return cache.project_list()


async def get_activities_for_project(session: Session, project_id: int) -> List[Activity]:
    activities = session.cache.activities_for(project_id)
    if activities is not None:
        return activities

    await get_projects_with_activities(session)
    return session.cache.activities_for(project_id) or []


async def get_projects_with_open_issues(session: Session) -> List[Project]:
    """
    Projects that have at least one open issue.
    A project whose issues the user may not see counts as having none.
    """
    projects = await get_projects_with_activities(session)

    with_issues: List[Project] = []
    for project in projects:
        try:
            issues = await get_issues(session, project.id)
        except (RedmineConfigurationError, RedmineNotFoundError) as exc:
            logger.warning(
                "project.issues_unavailable",
                extra={"project_id": project.id, "status": exc.status_code},
            )
            session.cache.store_project_issues(project.id, [])
            continue
        if issues:
            with_issues.append(project)
    return with_issues


__all__ = [
    "get_projects_with_activities",
    "get_activities_for_project",
    "get_projects_with_open_issues",
]
