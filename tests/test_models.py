from datetime import date

import pytest
from conftest import load_fixture, make_entry
from pydantic import ValidationError
from redmine_timelog.models import (
    Activity,
    Issue,
    Project,
    RedmineProjectsResponse,
    RedmineTimeEntry,
    RedmineTimeEntryRequest,
    RedmineTimeEntryResponse,
    TimeEntry,
)


def _entry(**overrides) -> TimeEntry:
    values = dict(
        id=None,
        date=date(2024, 1, 10),
        hours=8.0,
        activity=Activity(id=9, name="Development"),
        project=Project(id=1, name="Proj"),
        issue=Issue(id=200, subject="Issue 200"),
        comments="work",
    )
    values.update(overrides)
    return TimeEntry(**values)


def test_to_domain_uses_issue_cache_when_available():
    wire = RedmineTimeEntry.model_validate(make_entry(1, 15, issue_id=123))
    issues = {123: Issue(id=123, subject="Fix critical bug in authentication system")}

    entry = wire.to_domain(issues)

    assert entry.issue.id == 123
    assert entry.issue.subject == "Fix critical bug in authentication system"
    assert entry.date == date(2024, 1, 15)
    assert entry.hours == 7.5
    assert entry.comments == "c1"


def test_to_domain_falls_back_to_wire_issue_when_not_cached():
    record = make_entry(1, issue_id=None)
    record["issue"] = {"id": 456, "subject": "API Response Subject"}
    wire = RedmineTimeEntry.model_validate(record)

    entry = wire.to_domain({})

    assert entry.issue == Issue(id=456, subject="API Response Subject")


def test_to_domain_prefers_cached_project_and_activity_names():
    wire = RedmineTimeEntry.model_validate(
        make_entry(1, project={"id": 1, "name": "old"}, activity={"id": 9, "name": "x"})
    )

    entry = wire.to_domain(
        {},
        projects={1: Project(id=1, name="Proj")},
        activities={1: {9: Activity(id=9, name="Development")}},
    )

    assert entry.project.name == "Proj"
    assert entry.activity.name == "Development"


def test_entry_without_issue_maps_to_non_resolvable_issue():
    wire = RedmineTimeEntry.model_validate(make_entry(1, issue_id=None))

    entry = wire.to_domain({})

    assert entry.issue.id == -1
    assert entry.issue.subject == ""
    assert not entry.issue.is_resolvable


def test_null_issue_is_tolerated():
    record = make_entry(1)
    record["issue"] = None

    wire = RedmineTimeEntry.model_validate(record)

    assert wire.issue.id == -1


def test_malformed_date_fails_validation():
    with pytest.raises(ValidationError):
        RedmineTimeEntry.model_validate(make_entry(1, spent_on="2024-13-45"))


def test_missing_project_fails_domain_mapping():
    record = make_entry(1)
    del record["project"]
    wire = RedmineTimeEntry.model_validate(record)

    with pytest.raises(ValidationError):
        wire.to_domain({})


def test_domain_entries_are_immutable():
    entry = _entry()

    with pytest.raises(ValidationError):
        entry.hours = 2.0  # type: ignore[misc]


@pytest.mark.parametrize(
    "overrides",
    [
        {"hours": 0},
        {"hours": -1.5},
    ],
)
def test_time_entry_field_constraints(overrides):
    with pytest.raises(ValidationError):
        _entry(**overrides)


def test_stored_entries_map_beyond_write_limits():
    wire = RedmineTimeEntry.model_validate(make_entry(1, hours=26.0))
    record = make_entry(2, issue_id=None)
    record["comments"] = "x" * 1024

    assert wire.to_domain({}).hours == 26.0
    assert len(RedmineTimeEntry.model_validate(record).to_domain({}).comments) == 1024


def test_reference_entities_require_positive_id_and_name():
    with pytest.raises(ValidationError):
        Project(id=0, name="Proj")
    with pytest.raises(ValidationError):
        Activity(id=3, name="")


def test_request_payload_uses_redmine_field_names():
    payload = RedmineTimeEntryRequest.from_domain(_entry()).to_payload()

    assert payload == {
        "time_entry": {
            "spent_on": "2024-01-10",
            "hours": 8.0,
            "activity_id": 9,
            "project_id": 1,
            "issue_id": 200,
            "comments": "work",
        }
    }


def test_request_payload_omits_unset_issue_and_comments():
    entry = _entry(issue=Issue(id=-1), comments=None)

    body = RedmineTimeEntryRequest.from_domain(entry).to_payload()["time_entry"]

    assert "issue_id" not in body
    assert "comments" not in body


def test_single_entry_envelope_parses_fixture():
    response = RedmineTimeEntryResponse.model_validate(load_fixture("time_entry.json"))

    assert response.time_entry.id == 10
    assert response.time_entry.issue.id == 200
    assert response.time_entry.issue.subject == ""


def test_projects_envelope_filters_invalid_entries():
    response = RedmineProjectsResponse.model_validate(
        load_fixture("projects_with_activities.json")
    )

    valid = [p for p in response.projects if p.is_valid]

    assert [p.to_domain() for p in valid] == [
        Project(id=1, name="Proj"),
        Project(id=2, name="Support"),
    ]
    assert valid[0].activities() == [
        Activity(id=9, name="Development"),
        Activity(id=10, name="Design"),
    ]
