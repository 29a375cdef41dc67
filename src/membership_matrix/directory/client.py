from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Mapping, TypeVar
from urllib.parse import quote

import httpx

from membership_matrix.config.settings import DEFAULT_REQUEST_TIMEOUT, DEFAULT_USER_AGENT
from membership_matrix.directory.errors import (
    AuthenticationError,
    AuthorizationError,
    DirectoryAPIError,
    DirectoryErrorCategory,
    NotFoundError,
)
from membership_matrix.utils import CancellationToken, get_logger, strip_control_characters


logger = get_logger(__name__)


TokenProvider = Callable[[], str | None]

T = TypeVar("T")

GROUPS_FILTER_PARAM = "groups-filter:list"


class DirectoryAsyncClient(httpx.AsyncClient):
    """httpx client that turns transport failures and error responses into
    :class:`DirectoryAPIError` instances."""

    async def send(self, request: httpx.Request, **kwargs: Any) -> httpx.Response:
        start = time.perf_counter()
        try:
            response = await super().send(request, **kwargs)
        except httpx.TimeoutException as exc:
            raise DirectoryAPIError(
                message="Timed out waiting for the directory service",
                category=DirectoryErrorCategory.NETWORK,
                inner_error=exc,
            ) from exc
        except httpx.RequestError as exc:
            raise DirectoryAPIError(
                message=f"Network error communicating with the directory service: {exc}",
                category=DirectoryErrorCategory.NETWORK,
                inner_error=exc,
            ) from exc

        duration_ms = (time.perf_counter() - start) * 1000
        if response.status_code >= 400:
            error = _map_response_to_error(response)
            logger.warning(
                "Directory request failed",
                method=request.method,
                url=str(request.url),
                status=response.status_code,
                category=error.category.value,
                duration_ms=round(duration_ms, 1),
            )
            raise error

        logger.debug(
            "Directory request completed",
            method=request.method,
            url=str(request.url),
            status=response.status_code,
            duration_ms=round(duration_ms, 1),
        )
        return response


def _map_response_to_error(response: httpx.Response) -> DirectoryAPIError:
    status = response.status_code
    body: Any = {}
    try:
        body = json.loads(response.text) if response.text else {}
    except ValueError:
        body = {}

    # Plone style: {"error": {"type": ..., "message": ...}} or flat {"type", "message"}
    error_info = body.get("error", body) if isinstance(body, dict) else None
    code = None
    message = None
    if isinstance(error_info, dict):
        code = error_info.get("type") or error_info.get("code")
        message = error_info.get("message")

    message = (
        message
        if isinstance(message, str) and message
        else response.text or f"Directory request failed with status {status}"
    )

    if status == 401:
        error: DirectoryAPIError = AuthenticationError(message=message)
    elif status == 403:
        error = AuthorizationError(message=message)
    elif status == 404:
        error = NotFoundError(message=message)
    else:
        category = DirectoryErrorCategory.UNKNOWN
        if 500 <= status <= 599:
            category = DirectoryErrorCategory.SERVER
        elif status == 409:
            category = DirectoryErrorCategory.CONFLICT
        elif status in {400, 422}:
            category = DirectoryErrorCategory.VALIDATION
        error = DirectoryAPIError(message=message, category=category, status_code=status)
    error.code = code if isinstance(code, str) else None
    return error


@dataclass(slots=True)
class DirectoryClientConfig:
    base_url: str
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_REQUEST_TIMEOUT


class DirectoryClient:
    """REST access to the users and groups endpoints of the directory."""

    def __init__(
        self,
        config: DirectoryClientConfig,
        token_provider: TokenProvider | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._token_provider = token_provider
        self._transport = transport
        self._http_client: DirectoryAsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._config.base_url

    # ---------------------------------------------------------------- Users

    async def get_user(
        self,
        principal_id: str,
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> dict[str, Any]:
        payload = await self.request_json(
            "GET",
            f"/@users/{quote(principal_id, safe='')}",
            cancellation_token=cancellation_token,
        )
        return payload if isinstance(payload, dict) else {}

    async def list_users(
        self,
        *,
        search: str = "",
        groups_filter: Iterable[str] = (),
        limit: int | None = None,
        cancellation_token: CancellationToken | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {}
        if search:
            params["search"] = strip_control_characters(search)
        group_ids = [group_id for group_id in groups_filter if group_id]
        if group_ids:
            params[GROUPS_FILTER_PARAM] = group_ids
        if limit:
            params["limit"] = limit
        payload = await self.request_json(
            "GET",
            "/@users",
            params=params or None,
            cancellation_token=cancellation_token,
        )
        return _collection_items(payload)

    # --------------------------------------------------------------- Groups

    async def list_groups(
        self,
        *,
        query: str = "",
        cancellation_token: CancellationToken | None = None,
    ) -> list[dict[str, Any]]:
        payload = await self.request_json(
            "GET",
            "/@groups",
            params={"query": strip_control_characters(query)} if query else None,
            cancellation_token=cancellation_token,
        )
        return _collection_items(payload)

    async def update_group_members(
        self,
        group_id: str,
        users: Mapping[str, bool],
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> None:
        await self.request(
            "PATCH",
            f"/@groups/{quote(group_id, safe='')}",
            json_body={"users": {user_id: bool(flag) for user_id, flag in users.items()}},
            cancellation_token=cancellation_token,
        )

    # ------------------------------------------------------------ Transport

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
        headers: dict[str, str] | None = None,
        cancellation_token: CancellationToken | None = None,
    ) -> httpx.Response:
        if cancellation_token is not None:
            cancellation_token.raise_if_cancelled()
        client = self._get_http_client()
        try:
            return await self._await_with_cancellation(
                client.request(
                    method,
                    path,
                    params=params,
                    json=json_body,
                    headers=headers,
                ),
                cancellation_token,
            )
        except DirectoryAPIError as exc:
            exc.request_method = method.upper()
            exc.request_url = f"{self._config.base_url.rstrip('/')}{path}"
            raise

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
        cancellation_token: CancellationToken | None = None,
    ) -> Any:
        response = await self.request(
            method,
            path,
            params=params,
            json_body=json_body,
            headers={"Accept": "application/json"},
            cancellation_token=cancellation_token,
        )
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _await_with_cancellation(
        self,
        coro: Awaitable[T],
        token: CancellationToken | None,
    ) -> T:
        if token is None:
            return await coro
        task = asyncio.ensure_future(coro)
        unlink = token.link_task(task)
        try:
            return await task
        except asyncio.CancelledError:
            token.raise_if_cancelled()
            raise
        finally:
            unlink()

    def _get_http_client(self) -> DirectoryAsyncClient:
        if self._http_client is None:
            provider = self._token_provider

            def bearer_auth(request: httpx.Request) -> httpx.Request:
                token = provider() if provider is not None else None
                if token:
                    request.headers["Authorization"] = f"Bearer {token}"
                return request

            self._http_client = DirectoryAsyncClient(
                base_url=self._config.base_url,
                headers={"User-Agent": self._config.user_agent},
                auth=bearer_auth,
                timeout=httpx.Timeout(self._config.timeout, connect=10.0),
                transport=self._transport,
            )
        return self._http_client


def _collection_items(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, dict):
        payload = payload.get("items", [])
    if not isinstance(payload, list):
        return []
    return [item for item in payload if isinstance(item, dict)]


__all__ = [
    "DirectoryAsyncClient",
    "DirectoryClient",
    "DirectoryClientConfig",
    "TokenProvider",
]
