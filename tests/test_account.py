import pytest
import respx
from conftest import BASE_URL, load_fixture
from httpx import Response
from redmine_timelog import ClientConfig, RedmineClient
from redmine_timelog.errors import RedmineConfigurationError


def _account(value):
    return {
        "user": {
            "id": 5,
            "login": "jsmith",
            "custom_fields": [{"id": 27, "name": "Weekly Hours", "value": value}],
        }
    }


@pytest.mark.asyncio
@respx.mock
async def test_weekly_hours_read_from_custom_field_and_cached(client):
    route = respx.get(f"{BASE_URL}/my/account.json").mock(
        return_value=Response(200, json=load_fixture("account.json"))
    )

    async with client:
        assert await client.get_user_weekly_hours() == 37.5
        assert await client.get_user_weekly_hours() == 37.5

    assert route.call_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "value,expected",
    [
        (40, 40.0),
        ("38,5", 38.5),
        ("", None),
        ("full time", None),
        ("0", None),
        (None, None),
    ],
)
@respx.mock
async def test_weekly_hours_value_parsing(client, value, expected):
    respx.get(f"{BASE_URL}/my/account.json").mock(
        return_value=Response(200, json=_account(value))
    )

    async with client:
        assert await client.get_user_weekly_hours() == expected


@pytest.mark.asyncio
@respx.mock
async def test_missing_field_is_cached_as_none(client):
    route = respx.get(f"{BASE_URL}/my/account.json").mock(
        return_value=Response(200, json={"user": {"id": 5, "custom_fields": []}})
    )

    async with client:
        assert await client.get_user_weekly_hours() is None
        assert await client.get_user_weekly_hours() is None

    assert route.call_count == 1


@pytest.mark.asyncio
@respx.mock
async def test_custom_field_id_is_configurable():
    client = RedmineClient(
        base_url=BASE_URL, api_key="k", config=ClientConfig(weekly_hours_field_id=12)
    )
    respx.get(f"{BASE_URL}/my/account.json").mock(
        return_value=Response(
            200,
            json={"user": {"id": 5, "custom_fields": [{"id": 12, "value": "20"}]}},
        )
    )

    async with client:
        assert await client.get_user_weekly_hours() == 20.0


@pytest.mark.asyncio
@respx.mock
async def test_account_failure_is_not_cached(client):
    route = respx.get(f"{BASE_URL}/my/account.json").mock(
        side_effect=[Response(401), Response(200, json=_account("40"))]
    )

    async with client:
        with pytest.raises(RedmineConfigurationError):
            await client.get_user_weekly_hours()
        assert await client.get_user_weekly_hours() == 40.0

    assert route.call_count == 2
