import json
from pathlib import Path
from typing import Any, Dict, Optional

import pytest_asyncio
from redmine_timelog import RedmineClient, RetryConfig

BASE_URL = "https://redmine.test"
API_KEY = "test-key"


def load_fixture(name: str) -> dict:
    p = Path(__file__).parent / "fixtures" / name
    with open(p, encoding="utf-8") as f:
        return json.load(f)


def make_entry(
    entry_id: int,
    day: int = 1,
    *,
    issue_id: Optional[int] = 100,
    hours: float = 7.5,
    project: Optional[Dict[str, Any]] = None,
    activity: Optional[Dict[str, Any]] = None,
    spent_on: Optional[str] = None,
) -> Dict[str, Any]:
    """A time entry record shaped like Redmine's /time_entries.json output."""
    record: Dict[str, Any] = {
        "id": entry_id,
        "project": project or {"id": 1, "name": "Proj"},
        "user": {"id": 5, "name": "John Smith"},
        "activity": activity or {"id": 9, "name": "Development"},
        "hours": hours,
        "comments": f"c{entry_id}",
        "spent_on": spent_on or f"2024-01-{day:02d}",
    }
    if issue_id is not None:
        record["issue"] = {"id": issue_id}
    return record


@pytest_asyncio.fixture
async def client():
    client = RedmineClient(
        base_url=BASE_URL,
        api_key=API_KEY,
        retry=RetryConfig(max_retries=0),
    )
    yield client
    await client.aclose()
