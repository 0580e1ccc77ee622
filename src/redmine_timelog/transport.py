from __future__ import annotations

import asyncio
import json as _json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .config import ClientConfig, RetryConfig, normalize_base_url
from .errors import CONNECTION_EXCEPTIONS, RedmineApiError, classify
from .observability import NO_RESPONSE, log_redmine_call

T = TypeVar("T", bound=BaseModel)

API_KEY_HEADER = "X-Redmine-API-Key"
JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class RawResponse:
    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class RedmineTransport:
    """
    One connection pool against one Redmine base URL.
    - Sends the API key header and JSON content negotiation on every request
    - Accepts self-signed certificates unless ClientConfig.verify_tls is set
    - Retries GETs on transient failures; writes are sent exactly once
    - Every failure leaves as a classified RedmineApiError
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        config: Optional[ClientConfig] = None,
        retry: Optional[RetryConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        api_key = (api_key or "").strip()
        if not api_key:
            raise ValueError("api_key must be provided.")

        self.base_url = normalize_base_url(base_url)
        self.config = config or ClientConfig()
        self.retry = retry if retry is not None else RetryConfig()
        self.log = logger or logging.getLogger("redmine_timelog.transport")

        self.http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                API_KEY_HEADER: api_key,
                "Accept": JSON_CONTENT_TYPE,
                "Content-Type": JSON_CONTENT_TYPE,
            },
            timeout=httpx.Timeout(
                self.config.request_timeout_seconds,
                connect=self.config.connect_timeout_seconds,
            ),
            verify=self.config.verify_tls,
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    @property
    def is_closed(self) -> bool:
        return self.http.is_closed

    async def send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> RawResponse:
        """
        One network round-trip. Returns (status, body) for any HTTP answer and
        raises the underlying I/O exception when no answer arrived in time.
        """
        resp = await asyncio.wait_for(
            self.http.request(method, path, params=params, json=json),
            timeout=self.config.request_timeout_seconds,
        )
        return RawResponse(status_code=resp.status_code, body=resp.text)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        operation: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Core request method.
        - Retries GETs on network/timeouts and retry_statuses (optionally 429)
        - Raises a classified RedmineApiError on non-2xx responses and I/O failures
        - Raises RedmineParseError if a non-empty body isn't a JSON object
        - Returns parsed JSON dict on success ({} for empty bodies)
        """
        raw = await self._exchange(
            method, path, params=params, json=json, operation=operation
        )
        return self._safe_json(raw)

    async def request_model(
        self, model: Type[T], method: str, path: str, **kwargs: Any
    ) -> T:
        raw = await self._exchange(method, path, **kwargs)
        payload = self._safe_json(raw)
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise classify(raw.status_code, raw.body, exc) from exc

    async def get(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        operation: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.request("GET", path, params=params, operation=operation)

    async def post(
        self, path: str, *, json: Dict[str, Any], operation: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self.request("POST", path, json=json, operation=operation)

    async def put(
        self, path: str, *, json: Dict[str, Any], operation: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self.request("PUT", path, json=json, operation=operation)

    async def delete(self, path: str, *, operation: Optional[str] = None) -> None:
        await self._exchange("DELETE", path, operation=operation)

    async def _exchange(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        operation: Optional[str] = None,
    ) -> RawResponse:
        method = method.upper()
        retryable = method == "GET"
        attempt = 0

        while True:
            start = time.perf_counter()
            try:
                raw = await self.send(method, path, params=params, json=json)
            except CONNECTION_EXCEPTIONS as exc:
                self._log_call(method, path, NO_RESPONSE, start, attempt, operation)
                if retryable and attempt < self.retry.max_retries:
                    await self._backoff(attempt)
                    attempt += 1
                    continue
                raise classify(0, "", exc) from exc
            except (httpx.HTTPError, httpx.InvalidURL, RuntimeError) as exc:
                # Other httpx exceptions and a closed pool - do not blindly retry
                self._log_call(method, path, NO_RESPONSE, start, attempt, operation)
                raise classify(0, "", exc) from exc

            self._log_call(method, path, raw.status_code, start, attempt, operation)

            if retryable and self._should_retry(raw.status_code):
                if attempt < self.retry.max_retries:
                    await self._backoff(attempt)
                    attempt += 1
                    continue

            if not raw.ok:
                raise self._to_api_error(raw, method=method, path=path)
            return raw

    def _should_retry(self, status_code: int) -> bool:
        return status_code in self.retry.retry_statuses or (
            self.retry.retry_on_429 and status_code == 429
        )

    async def _backoff(self, attempt: int) -> None:
        await asyncio.sleep(self.retry.backoff_base_seconds * (2**attempt))

    def _log_call(
        self,
        method: str,
        path: str,
        status: Any,
        start: float,
        attempt: int,
        operation: Optional[str],
    ) -> None:
        log_redmine_call(
            method=method,
            endpoint=path,
            status=status,
            started=start,
            attempt=attempt,
            operation=operation,
        )

    def _to_api_error(
        self, raw: RawResponse, *, method: str, path: str
    ) -> RedmineApiError:
        error = classify(raw.status_code, raw.body)
        self.log.warning(
            "redmine.request_failed",
            extra={
                "method": method,
                "endpoint": path,
                "status": raw.status_code,
                "error_kind": error.kind.value,
            },
        )
        return error

    @staticmethod
    def _safe_json(raw: RawResponse) -> Dict[str, Any]:
        # Handle empty responses (204 No Content, PUT/DELETE acknowledgements)
        if not raw.body.strip():
            return {}

        try:
            data = _json.loads(raw.body)
        except (ValueError, RecursionError) as exc:
            raise classify(raw.status_code, raw.body, exc) from exc

        if not isinstance(data, dict):
            raise classify(
                raw.status_code,
                raw.body,
                TypeError(f"expected a JSON object, got {type(data).__name__}"),
            )
        return data


__all__ = ["API_KEY_HEADER", "RawResponse", "RedmineTransport"]
