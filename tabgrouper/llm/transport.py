"""
HTTP transport for provider calls.

One POST per analysis, executed on a worker thread so the event loop stays
free while the provider answers. Failures are classified once and surfaced;
nothing here retries.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Protocol

import requests

from tabgrouper.config import ERROR_BODY_PREVIEW_CHARS, LLM_TIMEOUT_SECONDS
from tabgrouper.grouping.errors import ApiError, NetworkError, RateLimited, Unauthorized
from tabgrouper.llm.providers import ProviderRequest
from tabgrouper.observability.logging import get_logger
from tabgrouper.observability.telemetry import counter, log_event, time_block
from tabgrouper.utils.redaction import redact_url

logger = get_logger(__name__)


class Transport(Protocol):
    async def send(self, request: ProviderRequest) -> Any: ...


def error_message_from_body(status_code: int, body_text: str) -> str:
    """
    Pull a human-readable message out of a provider error body.

    Tries JSON `error.message`, then `message`. Bodies that are not JSON
    (local servers often answer in plain text) are returned truncated.
    """
    fallback = f"API error ({status_code})"
    try:
        parsed = json.loads(body_text)
    except ValueError:
        return body_text[:ERROR_BODY_PREVIEW_CHARS] if body_text else fallback

    if not isinstance(parsed, dict):
        return fallback

    error = parsed.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"]:
        return error["message"]
    message = parsed.get("message")
    if isinstance(message, str) and message:
        return message
    return fallback


def raise_for_status(response: requests.Response) -> None:
    """
    Map a non-2xx provider response to a typed error.

    Raises:
        Unauthorized: HTTP 401
        RateLimited: HTTP 429
        ApiError: Any other non-2xx status
    """
    status = response.status_code
    if 200 <= status < 300:
        return
    if status == 401:
        raise Unauthorized()
    if status == 429:
        raise RateLimited()
    raise ApiError(error_message_from_body(status, response.text or ""), status_code=status)


class RequestsTransport:
    """Provider transport backed by requests."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout_seconds: float = LLM_TIMEOUT_SECONDS,
    ):
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds

    def _post(self, request: ProviderRequest) -> Any:
        safe_url = redact_url(request.url)
        try:
            response = self.session.post(
                request.url,
                headers=request.headers,
                json=request.body,
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.RequestException as exc:
            counter("llm.network_error")
            # Exception text can echo the URL, which carries the Gemini key
            detail = str(exc).replace(request.url, safe_url)
            log_event("llm.request.failed", url=safe_url, error=type(exc).__name__)
            raise NetworkError(detail) from exc

        try:
            raise_for_status(response)
        except (Unauthorized, RateLimited, ApiError) as exc:
            counter(f"llm.{exc.kind}")
            log_event(
                "llm.request.failed",
                url=safe_url,
                status=response.status_code,
                kind=exc.kind,
            )
            raise

        try:
            return response.json()
        except ValueError as exc:
            counter("llm.non_json_body")
            logger.warning("Provider returned non-JSON body (status=%s)", response.status_code)
            raise ApiError(
                f"API error ({response.status_code}): response was not JSON",
                status_code=response.status_code,
            ) from exc

    async def send(self, request: ProviderRequest) -> Any:
        """
        POST the request and return the decoded JSON body.

        Side Effects:
            - Makes one outbound HTTP call
            - Increments llm.* telemetry counters
        """
        log_event("llm.request.sent", url=redact_url(request.url))
        with time_block("llm.request.latency"):
            return await asyncio.to_thread(self._post, request)
