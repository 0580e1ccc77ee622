from __future__ import annotations

import logging
from typing import Iterable, List

from redmine_timelog.errors import RedmineApiError
from redmine_timelog.models import Issue, RedmineIssueResponse, RedmineIssuesResponse
from redmine_timelog.session import Session

logger = logging.getLogger(__name__)

ISSUES_PATH = "/issues.json"
OPEN_ISSUES_LIMIT = 100


def issue_path(issue_id: int) -> str:
    return f"/issues/{issue_id}.json"


async def get_issues(session: Session, project_id: int) -> List[Issue]:
    """
    Open issues of a project, most recently updated first.
    Fetched once per project; an empty result is cached as well.
    """
    cache = session.cache
    if cache.has_project_issues(project_id):
        return list(cache.project_issues[project_id])

    async with cache.project_issues_lock:
        if cache.has_project_issues(project_id):
            return list(cache.project_issues[project_id])

        response = await session.transport.request_model(
            RedmineIssuesResponse,
            "GET",
            ISSUES_PATH,
            params={
                "project_id": project_id,
                "status_id": "open",
                "limit": OPEN_ISSUES_LIMIT,
                "sort": "updated_on:desc",
            },
            operation="issues",
        )
        issues = [i.to_domain() for i in response.issues if i.id > 0 and i.subject]
        cache.store_project_issues(project_id, issues)
        return list(issues)


async def resolve_issues(session: Session, issue_ids: Iterable[int]) -> None:
    """
    Make sure every positive id has an entry in the issue cache.
    One request per unresolved id; failures fall back to a placeholder
    subject and are retried the next time the id is needed.
    """
    cache = session.cache
    pending = cache.unresolved_issue_ids(issue_ids)
    if not pending:
        return

    async with cache.issues_lock:
        for issue_id in cache.unresolved_issue_ids(pending):
            await _resolve_issue(session, issue_id)


async def _resolve_issue(session: Session, issue_id: int) -> None:
    cache = session.cache
    placeholder = Issue(id=issue_id, subject=session.config.placeholder_subject)
    try:
        response = await session.transport.request_model(
            RedmineIssueResponse, "GET", issue_path(issue_id), operation="issue"
        )
    except RedmineApiError as exc:
        logger.warning(
            "issue.unresolved",
            extra={
                "issue_id": issue_id,
                "status": exc.status_code,
                "error_kind": exc.kind.value,
            },
        )
        cache.store_issue(placeholder, placeholder=True)
        return

    if response.issue.id <= 0:
        cache.store_issue(placeholder, placeholder=True)
        return
    cache.store_issue(Issue(id=issue_id, subject=response.issue.subject))


__all__ = ["get_issues", "resolve_issues", "issue_path"]
