from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from .models import Activity, Issue, Project


@dataclass
class SessionCache:
    """
    Reference data for one client session.

    Entries are only ever added; the one removal path is clear(), run when
    the owning session is retired by a configuration change or close. Each lock
    serializes population of one family of entries so concurrent callers do
    not issue duplicate fetches.
    """

    projects: Dict[int, Project] = field(default_factory=dict)
    activities: Dict[int, Dict[int, Activity]] = field(default_factory=dict)
    project_issues: Dict[int, List[Issue]] = field(default_factory=dict)
    issues: Dict[int, Issue] = field(default_factory=dict)
    # Issue ids cached with a placeholder subject; retried on next demand.
    placeholder_issue_ids: Set[int] = field(default_factory=set)
    weekly_hours: Optional[float] = None
    weekly_hours_loaded: bool = False

    projects_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    project_issues_lock: asyncio.Lock = field(
        default_factory=asyncio.Lock, repr=False
    )
    issues_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    account_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    # --- projects + activities ---

    @property
    def projects_warm(self) -> bool:
        return bool(self.projects) and bool(self.activities)

    def store_project(self, project: Project, activities: Iterable[Activity]) -> None:
        self.projects[project.id] = project
        acts = list(activities)
        if acts:
            per_project = self.activities.setdefault(project.id, {})
            for activity in acts:
                per_project[activity.id] = activity

    def project_list(self) -> List[Project]:
        return list(self.projects.values())

    def activities_for(self, project_id: int) -> Optional[List[Activity]]:
        acts = self.activities.get(project_id)
        return list(acts.values()) if acts is not None else None

    # --- per-project open issues ---

    def has_project_issues(self, project_id: int) -> bool:
        return project_id in self.project_issues

    def store_project_issues(self, project_id: int, issues: List[Issue]) -> None:
        # An empty list is a negative entry: fetched, nothing open.
        self.project_issues[project_id] = list(issues)

    # --- issues by id ---

    def store_issue(self, issue: Issue, *, placeholder: bool = False) -> None:
        self.issues[issue.id] = issue
        if placeholder:
            self.placeholder_issue_ids.add(issue.id)
        else:
            self.placeholder_issue_ids.discard(issue.id)

    def unresolved_issue_ids(self, issue_ids: Iterable[int]) -> List[int]:
        """Distinct positive ids that are absent or only hold a placeholder."""
        seen: Set[int] = set()
        missing: List[int] = []
        for issue_id in issue_ids:
            if issue_id <= 0 or issue_id in seen:
                continue
            seen.add(issue_id)
            if issue_id not in self.issues or issue_id in self.placeholder_issue_ids:
                missing.append(issue_id)
        return missing

    # --- account ---

    def store_weekly_hours(self, hours: Optional[float]) -> None:
        self.weekly_hours = hours
        self.weekly_hours_loaded = True

    def clear(self) -> None:
        self.projects.clear()
        self.activities.clear()
        self.project_issues.clear()
        self.issues.clear()
        self.placeholder_issue_ids.clear()
        self.weekly_hours = None
        self.weekly_hours_loaded = False


__all__ = ["SessionCache"]
