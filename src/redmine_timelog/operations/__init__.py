"""
Remote operations against one client session.

Each function takes the Session it runs on, so a configuration change that
publishes a new session never mixes a new transport with stale caches.
"""

from .account import get_user_weekly_hours
from .issues import get_issues, resolve_issues
from .projects import (
    get_activities_for_project,
    get_projects_with_activities,
    get_projects_with_open_issues,
)
from .time_entries import (
    create_time_entry,
    delete_time_entry,
    list_time_entries_for_month,
    update_time_entry,
)

__all__ = [
    "get_user_weekly_hours",
    "get_issues",
    "resolve_issues",
    "get_activities_for_project",
    "get_projects_with_activities",
    "get_projects_with_open_issues",
    "list_time_entries_for_month",
    "create_time_entry",
    "update_time_entry",
    "delete_time_entry",
]
