from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_COMMENT_LENGTH = 255

# --- Domain Models ---


class Project(BaseModel):
    id: int = Field(gt=0)
    name: str = Field(min_length=1)

    model_config = ConfigDict(frozen=True)


class Activity(BaseModel):
    id: int = Field(gt=0)
    name: str = Field(min_length=1)

    model_config = ConfigDict(frozen=True)


class Issue(BaseModel):
    """
    A work item. A non-positive id means the entry is not attached to any
    issue; such issues are never resolved against the server.
    """

    id: int
    subject: str = ""

    model_config = ConfigDict(frozen=True)

    @property
    def is_resolvable(self) -> bool:
        return self.id > 0


class TimeEntry(BaseModel):
    """
    A logged amount of hours. The daily cap and the comment length limit
    apply to writes only; entries already stored in Redmine always map.
    """

    id: Optional[int] = None
    date: dt.date
    hours: float = Field(gt=0)
    activity: Activity
    project: Project
    issue: Issue
    comments: Optional[str] = None

    model_config = ConfigDict(frozen=True)


# --- Wire Models (Redmine JSON) ---


class RedmineNamedRef(BaseModel):
    id: int = -1
    name: str = ""

    model_config = ConfigDict(extra="ignore")


class RedmineIssueRef(BaseModel):
    id: int = -1
    subject: str = ""

    model_config = ConfigDict(extra="ignore")

    def to_domain(self) -> Issue:
        return Issue(id=self.id, subject=self.subject)


class RedmineTimeEntry(BaseModel):
    id: Optional[int] = None
    spent_on: dt.date
    hours: float
    activity: RedmineNamedRef = Field(default_factory=RedmineNamedRef)
    project: RedmineNamedRef = Field(default_factory=RedmineNamedRef)
    issue: RedmineIssueRef = Field(default_factory=RedmineIssueRef)
    comments: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("issue", mode="before")
    @classmethod
    def _missing_issue(cls, value: Any) -> Any:
        # Entries logged directly on a project carry "issue": null or no key.
        return {} if value is None else value

    def to_domain(
        self,
        issues: Mapping[int, Issue],
        projects: Optional[Mapping[int, Project]] = None,
        activities: Optional[Mapping[int, Mapping[int, Activity]]] = None,
    ) -> TimeEntry:
        """
        Map to the domain entry, preferring cached reference data.
        Raises pydantic.ValidationError when the record cannot form a valid entry.
        """
        project = (projects or {}).get(self.project.id) or Project(
            id=self.project.id, name=self.project.name
        )
        activity = ((activities or {}).get(self.project.id) or {}).get(
            self.activity.id
        ) or Activity(id=self.activity.id, name=self.activity.name)

        issue = issues.get(self.issue.id) if self.issue.id > 0 else None
        if issue is None:
            issue = self.issue.to_domain()

        return TimeEntry(
            id=self.id,
            date=self.spent_on,
            hours=self.hours,
            activity=activity,
            project=project,
            issue=issue,
            comments=self.comments,
        )


class RedmineTimeEntriesPage(BaseModel):
    # Entries stay raw so one malformed record cannot fail the whole page.
    time_entries: List[Any] = Field(default_factory=list)
    total_count: int = 0
    offset: int = 0
    limit: int = 25

    model_config = ConfigDict(extra="ignore")


class RedmineTimeEntryResponse(BaseModel):
    time_entry: RedmineTimeEntry

    model_config = ConfigDict(extra="ignore")


class RedmineProjectWithActivities(BaseModel):
    id: int = -1
    name: str = ""
    time_entry_activities: List[RedmineNamedRef] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @property
    def is_valid(self) -> bool:
        return self.id > 0 and bool(self.name)

    def to_domain(self) -> Project:
        return Project(id=self.id, name=self.name)

    def activities(self) -> List[Activity]:
        return [
            Activity(id=a.id, name=a.name)
            for a in self.time_entry_activities
            if a.id > 0 and a.name
        ]


class RedmineProjectsResponse(BaseModel):
    projects: List[RedmineProjectWithActivities] = Field(default_factory=list)
    total_count: Optional[int] = None

    model_config = ConfigDict(extra="ignore")


class RedmineIssuesResponse(BaseModel):
    issues: List[RedmineIssueRef] = Field(default_factory=list)
    total_count: Optional[int] = None

    model_config = ConfigDict(extra="ignore")


class RedmineIssueResponse(BaseModel):
    issue: RedmineIssueRef

    model_config = ConfigDict(extra="ignore")


class RedmineCustomField(BaseModel):
    id: int
    name: str = ""
    value: Optional[Any] = None

    model_config = ConfigDict(extra="ignore")


class RedmineUser(BaseModel):
    id: int = -1
    login: str = ""
    firstname: str = ""
    lastname: str = ""
    custom_fields: List[RedmineCustomField] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    def custom_field_value(self, field_id: int) -> Optional[Any]:
        for field in self.custom_fields:
            if field.id == field_id:
                return field.value
        return None


class RedmineAccountResponse(BaseModel):
    user: RedmineUser

    model_config = ConfigDict(extra="ignore")


# --- Input Models (Request Payloads) ---


class RedmineTimeEntryRequest(BaseModel):
    spent_on: str
    hours: float
    activity_id: int
    project_id: int
    issue_id: Optional[int] = None
    comments: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_domain(cls, entry: TimeEntry) -> "RedmineTimeEntryRequest":
        return cls(
            spent_on=entry.date.isoformat(),
            hours=entry.hours,
            activity_id=entry.activity.id,
            project_id=entry.project.id,
            issue_id=entry.issue.id if entry.issue.is_resolvable else None,
            comments=entry.comments,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {"time_entry": self.model_dump(exclude_none=True)}
