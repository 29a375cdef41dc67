from __future__ import annotations

import json

import httpx
import pytest
import respx

from membership_matrix.directory import (
    AuthenticationError,
    AuthorizationError,
    DirectoryAPIError,
    DirectoryClient,
    DirectoryClientConfig,
    DirectoryErrorCategory,
    NotFoundError,
)
from membership_matrix.utils import CancellationError, CancellationTokenSource


BASE_URL = "https://directory.example.com/Plone/++api++"


def _client(token: str | None = "session-token") -> DirectoryClient:
    return DirectoryClient(DirectoryClientConfig(base_url=BASE_URL), lambda: token)


@pytest.mark.asyncio
async def test_list_users_sends_search_filters_and_limit() -> None:
    client = _client()
    with respx.mock() as mock:
        route = mock.get(f"{BASE_URL}/@users").mock(
            return_value=httpx.Response(200, json=[{"id": "alice", "fullname": "Alice"}])
        )
        users = await client.list_users(
            search="ali", groups_filter=["editors", "", "reviewers"], limit=25
        )
    await client.close()

    assert users == [{"id": "alice", "fullname": "Alice"}]
    request = route.calls.last.request
    assert request.url.params["search"] == "ali"
    assert request.url.params.get_list("groups-filter:list") == ["editors", "reviewers"]
    assert request.url.params["limit"] == "25"
    assert request.headers["Authorization"] == "Bearer session-token"
    assert request.headers["Accept"] == "application/json"


@pytest.mark.parametrize("search", ["??", "o'brien & co*", "  ali  "])
@pytest.mark.asyncio
async def test_search_text_is_sent_as_typed(search: str) -> None:
    client = _client()
    with respx.mock() as mock:
        users = mock.get(f"{BASE_URL}/@users").mock(return_value=httpx.Response(200, json=[]))
        groups = mock.get(f"{BASE_URL}/@groups").mock(return_value=httpx.Response(200, json=[]))
        await client.list_users(search=search, limit=25)
        await client.list_groups(query=search)
    await client.close()

    assert users.calls.last.request.url.params["search"] == search
    assert groups.calls.last.request.url.params["query"] == search


@pytest.mark.asyncio
async def test_control_characters_are_removed_from_search() -> None:
    client = _client()
    with respx.mock() as mock:
        route = mock.get(f"{BASE_URL}/@users").mock(return_value=httpx.Response(200, json=[]))
        await client.list_users(search="ali\x00ce\n")
    await client.close()

    assert route.calls.last.request.url.params["search"] == "alice"


@pytest.mark.asyncio
async def test_list_users_without_criteria_sends_no_query() -> None:
    client = _client()
    with respx.mock() as mock:
        route = mock.get(f"{BASE_URL}/@users").mock(return_value=httpx.Response(200, json=[]))
        assert await client.list_users() == []
    await client.close()

    assert route.calls.last.request.url.query == b""


@pytest.mark.asyncio
async def test_list_groups_accepts_batched_payloads() -> None:
    client = _client(token=None)
    with respx.mock() as mock:
        route = mock.get(f"{BASE_URL}/@groups").mock(
            return_value=httpx.Response(
                200,
                json={"items": [{"id": "editors"}, "garbage", {"id": "reviewers"}]},
            )
        )
        groups = await client.list_groups(query="edit")
    await client.close()

    assert [group["id"] for group in groups] == ["editors", "reviewers"]
    request = route.calls.last.request
    assert request.url.params["query"] == "edit"
    assert "Authorization" not in request.headers


@pytest.mark.asyncio
async def test_update_group_members_patches_users_map() -> None:
    client = _client()
    with respx.mock() as mock:
        route = mock.patch(f"{BASE_URL}/@groups/editors").mock(return_value=httpx.Response(204))
        await client.update_group_members("editors", {"alice": True, "bob": False})
    await client.close()

    body = json.loads(route.calls.last.request.content)
    assert body == {"users": {"alice": True, "bob": False}}


@pytest.mark.asyncio
async def test_group_ids_are_quoted_in_the_path() -> None:
    client = _client()
    with respx.mock() as mock:
        route = mock.patch(url__regex=r".*/@groups/Site%20Administrators$").mock(
            return_value=httpx.Response(204)
        )
        await client.update_group_members("Site Administrators", {"alice": True})
    await client.close()

    assert route.called


@pytest.mark.asyncio
async def test_get_user_returns_payload() -> None:
    client = _client()
    with respx.mock() as mock:
        mock.get(f"{BASE_URL}/@users/admin").mock(
            return_value=httpx.Response(200, json={"id": "admin", "roles": ["Manager"]})
        )
        payload = await client.get_user("admin")
    await client.close()

    assert payload["roles"] == ["Manager"]


@pytest.mark.parametrize(
    ("status", "expected_type", "category"),
    [
        (401, AuthenticationError, DirectoryErrorCategory.AUTHENTICATION),
        (403, AuthorizationError, DirectoryErrorCategory.PERMISSION),
        (404, NotFoundError, DirectoryErrorCategory.NOT_FOUND),
        (409, DirectoryAPIError, DirectoryErrorCategory.CONFLICT),
        (400, DirectoryAPIError, DirectoryErrorCategory.VALIDATION),
        (503, DirectoryAPIError, DirectoryErrorCategory.SERVER),
    ],
)
@pytest.mark.asyncio
async def test_error_responses_are_mapped(
    status: int,
    expected_type: type[DirectoryAPIError],
    category: DirectoryErrorCategory,
) -> None:
    client = _client()
    with respx.mock() as mock:
        mock.patch(f"{BASE_URL}/@groups/editors").mock(
            return_value=httpx.Response(
                status,
                json={"error": {"type": "BadRequest", "message": "Nope"}},
            )
        )
        with pytest.raises(expected_type) as excinfo:
            await client.update_group_members("editors", {"alice": True})
    await client.close()

    error = excinfo.value
    assert error.category is category
    assert error.message == "Nope"
    assert error.code == "BadRequest"
    assert error.request_method == "PATCH"
    assert error.request_url == f"{BASE_URL}/@groups/editors"


@pytest.mark.asyncio
async def test_error_without_json_body_uses_text() -> None:
    client = _client()
    with respx.mock() as mock:
        mock.get(f"{BASE_URL}/@groups").mock(return_value=httpx.Response(502, text="Bad gateway"))
        with pytest.raises(DirectoryAPIError) as excinfo:
            await client.list_groups()
    await client.close()

    assert excinfo.value.message == "Bad gateway"
    assert excinfo.value.is_retriable is True


@pytest.mark.asyncio
async def test_transport_errors_become_network_errors() -> None:
    client = _client()
    with respx.mock() as mock:
        mock.get(f"{BASE_URL}/@users").mock(side_effect=httpx.ConnectTimeout)
        with pytest.raises(DirectoryAPIError) as excinfo:
            await client.list_users(search="al")
    await client.close()

    assert excinfo.value.category is DirectoryErrorCategory.NETWORK
    assert isinstance(excinfo.value.inner_error, httpx.ConnectTimeout)


@pytest.mark.asyncio
async def test_cancelled_token_stops_request_before_sending() -> None:
    client = _client()
    source = CancellationTokenSource()
    source.cancel(reason="superseded")
    with respx.mock(assert_all_called=False) as mock:
        route = mock.get(f"{BASE_URL}/@users").mock(return_value=httpx.Response(200, json=[]))
        with pytest.raises(CancellationError):
            await client.list_users(search="al", cancellation_token=source.token)
    await client.close()

    assert not route.called
