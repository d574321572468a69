"""
FastAPI middleware for logging API requests and responses.

Uses pure ASGI middleware (not BaseHTTPMiddleware) so streamed replies are
passed through chunk by chunk.

Each request is logged with:
- Request: method, path, client identifier, JSON body (sensitive keys masked)
- Response: status code, duration, body for JSON responses
- Streamed replies: only chunk count and byte size, never the text
"""

import json
import logging
import time
import uuid
from typing import Dict, Optional
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, truncate_large_data
from ..core.rate_limit import get_client_identifier

logger = logging.getLogger(__name__)

STREAMING_CONTENT_TYPES = ("text/event-stream", "text/plain")
MAX_LOGGED_BODY = 5000


def _decode_headers(raw_headers) -> Dict[str, str]:
    return {
        k.decode("latin-1").lower(): v.decode("latin-1")
        for k, v in raw_headers
    }


def _sanitize_body(data: bytes) -> Optional[str]:
    """Masked, truncated rendering of a JSON body; plain text falls back to truncation."""
    if not data:
        return None
    text = data.decode("utf-8", errors="ignore")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return truncate_large_data(text, max_length=MAX_LOGGED_BODY)
    return truncate_large_data(
        json.dumps(filter_sensitive_data(payload), ensure_ascii=False), max_length=MAX_LOGGED_BODY
    )


def _extract_error_reason(response_text: Optional[str]) -> Optional[str]:
    """FastAPI puts the reason in ``detail``; validation errors put a list there."""
    if not response_text:
        return None
    try:
        payload = json.loads(response_text)
    except json.JSONDecodeError:
        return truncate_large_data(response_text, max_length=500)
    if isinstance(payload, dict) and payload.get("detail"):
        detail = payload["detail"]
        return detail if isinstance(detail, str) else truncate_large_data(json.dumps(detail), max_length=500)
    return None


class RequestLoggingMiddleware:
    """Pure ASGI middleware to log all API requests and responses."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[list] = None):
        """
        Initialize the logging middleware.

        Args:
            app: The ASGI application
            exclude_paths: Paths that are passed through without logging (e.g. ["/health"])
        """
        self.app = app
        self.exclude_paths = exclude_paths or ["/health", "/"]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        request_id = uuid.uuid4().hex[:12]
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        headers = _decode_headers(scope.get("headers", []))
        client_key = get_client_identifier(headers)

        body_chunks = []

        async def logging_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                body_chunks.append(message.get("body", b""))
            return message

        status_code = 0
        streaming = False
        response_chunks = []
        streamed_chunks = 0
        streamed_bytes = 0

        async def logging_send(message: Message) -> None:
            nonlocal status_code, streaming, streamed_chunks, streamed_bytes
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
                content_type = _decode_headers(message.get("headers", [])).get("content-type", "")
                streaming = content_type.startswith(STREAMING_CONTENT_TYPES)
            elif message["type"] == "http.response.body":
                body = message.get("body", b"")
                if streaming:
                    if body:
                        streamed_chunks += 1
                        streamed_bytes += len(body)
                else:
                    response_chunks.append(body)
            await send(message)

        logger.info(
            f"Request started: {method} {path}",
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "client": client_key,
                "user_agent": headers.get("user-agent"),
            }}
        )

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            logger.error(
                f"Request failed: {method} {path} - {str(e)}",
                exc_info=True,
                extra={"extra_fields": {
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "client": client_key,
                    "duration_ms": (time.time() - start_time) * 1000,
                    "error": str(e),
                }}
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        request_body = _sanitize_body(b"".join(body_chunks))
        response_body = None if streaming else _sanitize_body(b"".join(response_chunks))
        error_reason = _extract_error_reason(response_body) if status_code >= 400 else None

        if status_code < 400:
            log_level = logging.INFO
        elif status_code < 500:
            log_level = logging.WARNING
        else:
            log_level = logging.ERROR

        message = f"Request completed: {method} {path} - {status_code} ({duration_ms:.2f}ms)"
        if streaming:
            message += f" | streamed {streamed_chunks} chunk(s), {streamed_bytes} bytes"
        if error_reason:
            message += f" | error_reason={error_reason}"

        if request_body and logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Request body: {request_body}",
                extra={"extra_fields": {"request_id": request_id, "request_body": request_body}}
            )

        logger.log(
            log_level,
            message,
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "client": client_key,
                "status_code": status_code,
                "duration_ms": duration_ms,
                "streamed_bytes": streamed_bytes if streaming else None,
                "response_body": response_body,
                "error_reason": error_reason,
            }}
        )
