from __future__ import annotations
from typing import Any, AsyncIterator
from urllib.parse import urlencode
import httpx
import structlog
from fitchallenge.config import settings

log = structlog.get_logger()


class ApiError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ApiNotConfigured(Exception):
    """Missing credentials or access token for a provider."""


def build_query(params: dict[str, Any]) -> str:
    return urlencode({k: v for k, v in params.items() if v is not None})


async def fetch_json(client: httpx.AsyncClient, method: str, url: str, **kwargs) -> Any:
    try:
        r = await client.request(method, url, **kwargs)
    except httpx.HTTPError as e:
        log.warning("api_request_failed", url=url, error=str(e))
        raise ApiError(f"Request failed: {e}") from e
    if r.is_error:
        try:
            detail = r.json().get("message")
        except (ValueError, AttributeError):
            detail = None
        log.warning("api_error", url=url, status=r.status_code)
        raise ApiError(detail or f"API Error: {r.status_code} {r.reason_phrase}", r.status_code)
    return r.json()


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
        yield client
