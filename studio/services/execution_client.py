# studio/services/execution_client.py
"""
HTTP client for the external execution runtime.

The runtime exposes two authenticated endpoints: ``POST /run`` takes a
Blueprint plus the user's input and answers with the conversation history
and final state, ``GET /history`` returns prior turns. Every failure
(transport, non-2xx status, unparseable body) is raised exactly once as an
ExecutionError; nothing is retried.
"""
import json
import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from studio.core.exceptions import ExecutionError
from studio.models.execution import ChatMessage, RunRequest, RunResponse

logger = logging.getLogger(__name__)

_HISTORY_ADAPTER = TypeAdapter(list[ChatMessage])


class ExecutionClient:
    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {token}"},
        )
        logger.info("Execution client initialized with base_url=%s", self.base_url)

    @classmethod
    def from_settings(cls, settings, transport: httpx.AsyncBaseTransport | None = None) -> "ExecutionClient":
        return cls(
            base_url=settings.RUNTIME_URL,
            token=settings.RUNTIME_AUTH_TOKEN,
            timeout=settings.RUNTIME_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def run(self, request: RunRequest) -> RunResponse:
        payload = {"graph": request.graph.to_wire(), "input": request.input}
        data = await self._request("POST", "/run", "run agent", json=payload)
        try:
            return RunResponse.model_validate(data)
        except ValidationError as exc:
            logger.error("Runtime returned an invalid run response: %s", exc)
            raise ExecutionError(f"Failed to run agent: malformed response ({exc.error_count()} error(s))") from exc

    async def get_history(self, execution_id: str | None = None) -> list[ChatMessage]:
        params = {"execution_id": execution_id} if execution_id else None
        data = await self._request("GET", "/history", "fetch history", params=params)
        try:
            return _HISTORY_ADAPTER.validate_python(data)
        except ValidationError as exc:
            logger.error("Runtime returned an invalid history payload: %s", exc)
            raise ExecutionError(f"Failed to fetch history: malformed response ({exc.error_count()} error(s))") from exc

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, action: str, **kwargs) -> Any:
        if self._client.is_closed:
            logger.error("Runtime request %s %s attempted on a closed client", method, path)
            raise ExecutionError(f"Failed to {action}: runtime client is closed")
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Runtime request %s %s failed: %s", method, path, exc)
            raise ExecutionError(f"Failed to {action}: {exc}") from exc

        if not response.is_success:
            logger.error("Runtime responded %s to %s %s", response.status_code, method, path)
            raise ExecutionError(
                f"Failed to {action}: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.error("Runtime response to %s %s was not JSON: %s", method, path, exc)
            raise ExecutionError(f"Failed to {action}: response was not valid JSON") from exc
