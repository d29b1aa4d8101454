"""
Async Azure Resource Manager client.

Every call is a guardian-checked GET. List endpoints are paged by following
nextLink (which already carries api-version and the continuation token) up to
a page cap. Throttling (429) and transient gateway errors (503/504) are retried
with exponential backoff, honouring Retry-After when ARM sends one.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncGenerator, Optional

import httpx

from ..config import (
    ARM_BASE_URL,
    BACKOFF_MULTIPLIER,
    INITIAL_BACKOFF_SECONDS,
    MAX_BACKOFF_SECONDS,
    MAX_CONCURRENT_REQUESTS,
    MAX_PAGES_PER_ENDPOINT,
    MAX_RETRIES,
)
from ..safety.guardian import SafetyGuardian

logger = logging.getLogger("azure_governance_engine.arm")

RETRYABLE_STATUS = frozenset({429, 503, 504})
TRANSIENT_ERRORS = (httpx.TimeoutException, httpx.ConnectError)


class ArmAPIError(Exception):
    """An ARM response the client will not retry or paper over."""

    def __init__(self, status_code: int, message: str, url: str):
        self.status_code = status_code
        self.url = url
        super().__init__(f"ARM {status_code} for {url}: {message}")


class ArmClient:
    """
    Usage:
        async with ArmClient(token, guardian) as arm:
            subs = await arm.list_all("/subscriptions", "2022-12-01")

    `transport` lets tests substitute an httpx.MockTransport.
    """

    def __init__(
        self,
        access_token: str,
        guardian: SafetyGuardian,
        max_pages: int = MAX_PAGES_PER_ENDPOINT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        initial_backoff: float = INITIAL_BACKOFF_SECONDS,
    ):
        self.access_token = access_token
        self.guardian = guardian
        self.max_pages = max_pages
        self.initial_backoff = initial_backoff
        self._transport = transport
        self._semaphore = asyncio.Semaphore(MAX_CONCURRENT_REQUESTS)
        self._stats = {"total_requests": 0, "throttle_events": 0, "pages_fetched": 0}
        self._http: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "ArmClient":
        self._http = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {self.access_token}",
                "Accept": "application/json",
            },
            timeout=httpx.Timeout(60.0, connect=30.0),
            limits=httpx.Limits(
                max_connections=MAX_CONCURRENT_REQUESTS * 2,
                max_keepalive_connections=MAX_CONCURRENT_REQUESTS,
            ),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *exc):
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def get(self, endpoint: str, api_version: str, params: Optional[dict] = None) -> dict:
        """One resource. 404 yields {"value": [], "_not_found": True}."""
        url = _absolute(endpoint)
        return await self._fetch(url, {"api-version": api_version, **(params or {})})

    async def list_all(self, endpoint: str, api_version: str, params: Optional[dict] = None) -> list[dict]:
        return [item async for item in self.list_stream(endpoint, api_version, params)]

    async def list_stream(
        self,
        endpoint: str,
        api_version: str,
        params: Optional[dict] = None,
    ) -> AsyncGenerator[dict, None]:
        """Yield items page by page."""
        url: Optional[str] = _absolute(endpoint)
        query: Optional[dict] = {"api-version": api_version, **(params or {})}
        pages = 0

        while url:
            if pages >= self.max_pages:
                logger.warning(f"Stopped paging {endpoint} at the {self.max_pages}-page cap")
                return
            page = await self._fetch(url, query)
            pages += 1
            self._stats["pages_fetched"] += 1
            for item in page.get("value", []):
                yield item
            url, query = page.get("nextLink"), None

    async def _fetch(self, url: str, params: Optional[dict]) -> dict:
        self.guardian.validate_request("GET", url)
        async with self._semaphore:
            return await self._get_with_retry(url, params)

    async def _get_with_retry(self, url: str, params: Optional[dict]) -> dict:
        if self._http is None:
            raise RuntimeError("ArmClient must be used as 'async with ArmClient(...)'")

        delay = self.initial_backoff
        for attempt in range(1, MAX_RETRIES + 2):
            last_attempt = attempt > MAX_RETRIES
            try:
                response = await self._http.get(url, params=params)
            except TRANSIENT_ERRORS as e:
                if last_attempt:
                    raise
                logger.warning(f"{type(e).__name__} on {url}; retry {attempt}/{MAX_RETRIES} in {delay:.1f}s")
                await asyncio.sleep(delay)
                delay = min(delay * BACKOFF_MULTIPLIER, MAX_BACKOFF_SECONDS)
                continue

            self._stats["total_requests"] += 1
            status = response.status_code

            if status in RETRYABLE_STATUS:
                self._stats["throttle_events"] += 1
                if last_attempt:
                    break
                wait = max(_retry_after(response, delay), delay)
                logger.warning(f"ARM {status} on {url}; retry {attempt}/{MAX_RETRIES} in {wait:.1f}s")
                await asyncio.sleep(wait)
                delay = min(delay * BACKOFF_MULTIPLIER, MAX_BACKOFF_SECONDS)
                continue

            if status == 404:
                logger.debug(f"Not found: {url}")
                return {"value": [], "_not_found": True}
            if status == 204:
                return {}
            if 200 <= status < 300:
                return _json_body(response, url)
            raise ArmAPIError(status, _error_message(response), url)

        raise ArmAPIError(429, f"still throttled after {MAX_RETRIES} retries", url)

    def get_stats(self) -> dict:
        return dict(self._stats)


def _absolute(endpoint: str) -> str:
    if endpoint.startswith(("https://", "http://")):
        return endpoint
    return f"{ARM_BASE_URL}/{endpoint.lstrip('/')}"


def _json_body(response: httpx.Response, url: str) -> dict:
    """Empty and non-JSON 2xx bodies read as an empty list page."""
    if not response.content.strip():
        return {"value": []}
    try:
        body = response.json()
    except ValueError:
        logger.debug(f"Non-JSON body from {url}")
        return {"value": []}
    return body if isinstance(body, dict) else {"value": body}


def _retry_after(response: httpx.Response, default: float) -> float:
    try:
        return float(response.headers.get("Retry-After", default))
    except ValueError:
        return default


def _error_message(response: httpx.Response) -> str:
    """ARM errors are {"error": {"code": ..., "message": ...}}."""
    try:
        body = response.json() if response.content else {}
    except ValueError:
        return response.text[:200]
    error = body.get("error", {}) if isinstance(body, dict) else {}
    return error.get("message") or error.get("code") or response.text[:200]
