# src/daytasks/tasks/task_repo.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.ports import CredentialProvider
from ..errors import AuthExpiredError, TransportError
from .task_models import TaskStore, TaskTemplate

logger = logging.getLogger(__name__)

_AUTH_REJECTED = {401, 403}


class HttpTaskRepo:
    """
    HTTP client for the remote task store.

    Endpoints (relative to base_url):
    - GET    tasks        -> whole store (date-keys + "completions")
    - POST   tasks        {dateKey, task}
    - PUT    tasks        {dateKey, taskIndex, task}
    - DELETE tasks        {dateKey, taskIndex}
    - POST   completions  {completions}

    Errors:
    - 401/403 -> AuthExpiredError (caller discards credentials; no retry here)
    - other non-2xx, network errors, bad JSON -> TransportError
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialProvider,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._credentials = credentials
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/",
            timeout=httpx.Timeout(float(timeout_seconds)),
            transport=transport,
        )
        logger.info("HttpTaskRepo ready base_url=%s", base_url)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpTaskRepo:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ---- low-level helpers ----

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self._credentials.token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        try:
            resp = await self._client.request(method, path, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise TransportError(f"{method} {path} failed: {e}") from e

        if resp.status_code in _AUTH_REJECTED:
            logger.warning("%s %s rejected credentials status=%s", method, path, resp.status_code)
            raise AuthExpiredError(f"{method} {path} rejected credentials", status_code=resp.status_code)

        if not resp.is_success:
            logger.warning("%s %s returned status=%s", method, path, resp.status_code)
            raise TransportError(f"{method} {path} returned {resp.status_code}", status_code=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"{method} {path} returned invalid JSON") from e

    # ---- TaskRepo ----

    async def fetch_all(self) -> TaskStore:
        data = await self._request("GET", "tasks")
        if data is None:
            return TaskStore()
        try:
            store = TaskStore.from_wire(data)
        except ValueError as e:
            raise TransportError(f"unexpected task store payload: {e}") from e
        logger.debug("Fetched store days=%d completions=%d", len(store.days), len(store.completions))
        return store

    async def create(self, date_key: str, template: TaskTemplate) -> None:
        await self._request("POST", "tasks", {"dateKey": date_key, "task": template.to_wire()})

    async def update(self, date_key: str, index: int, template: TaskTemplate) -> None:
        await self._request(
            "PUT",
            "tasks",
            {"dateKey": date_key, "taskIndex": int(index), "task": template.to_wire()},
        )

    async def remove(self, date_key: str, index: int) -> None:
        await self._request("DELETE", "tasks", {"dateKey": date_key, "taskIndex": int(index)})

    async def set_completions(self, completions: dict[str, bool]) -> None:
        await self._request("POST", "completions", {"completions": dict(completions)})
