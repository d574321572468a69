"""
API dependencies - Process-wide services and shared request guards.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from ..config import Settings
from ..core import SessionRegistry
from ..core.errors import SERVICE_NOT_CONFIGURED, TOO_MANY_REQUESTS
from ..core.rate_limit import (
    InMemoryRateLimitBackend, RateLimitBackend, RateLimiter, StorageRateLimitBackend, get_client_identifier,
)
from ..llm import CompletionService, create_llm_provider
from ..storage import LocalStorage, ScenarioStore, SessionStore, StorageInterface

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    """Everything the routers share. Built once in the app lifespan."""
    storage: StorageInterface
    scenarios: ScenarioStore
    sessions: SessionStore
    registry: SessionRegistry
    rate_limiter: Optional[RateLimiter]
    completion: Optional[CompletionService]


def build_completion_service(config: Settings) -> Optional[CompletionService]:
    """Completion service from settings, or None when no API key is configured."""
    provider = create_llm_provider(
        provider=config.llm_provider,
        api_key=config.resolved_llm_api_key or "",
        model=config.llm_primary_model,
        base_url=config.llm_base_url,
        default_max_tokens=config.llm_max_tokens,
        timeout=config.llm_timeout_seconds,
        log_calls=config.log_llm_calls,
    )
    if provider is None:
        logger.warning("LLM API key is not set; chat replies are disabled")
        return None
    return CompletionService(
        provider,
        primary_model=config.llm_primary_model,
        fallback_model=config.llm_fallback_model,
        max_tokens=config.llm_max_tokens,
        thinking_delay_ms=config.llm_thinking_delay_ms,
    )


def build_rate_limiter(config: Settings, storage: StorageInterface) -> Optional[RateLimiter]:
    if not config.rate_limit_enabled:
        return None
    if config.rate_limit_backend == "storage":
        backend: RateLimitBackend = StorageRateLimitBackend(storage)
    elif config.rate_limit_backend == "memory":
        backend = InMemoryRateLimitBackend()
    else:
        raise ValueError(f"Unsupported rate limit backend: {config.rate_limit_backend}")
    return RateLimiter(
        backend,
        max_requests=config.rate_limit_max_requests,
        window_seconds=config.rate_limit_window_seconds,
    )


def build_services(config: Settings) -> AppServices:
    storage = LocalStorage(config.local_storage_path)
    expiry_seconds = config.session_expiry_minutes * 60
    return AppServices(
        storage=storage,
        scenarios=ScenarioStore(storage),
        sessions=SessionStore(storage, expiry_seconds=expiry_seconds),
        registry=SessionRegistry(expiry_seconds=expiry_seconds),
        rate_limiter=build_rate_limiter(config, storage),
        completion=build_completion_service(config),
    )


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_client_key(request: Request) -> str:
    return get_client_identifier(request.headers)


async def enforce_rate_limit(
    request: Request,
    services: AppServices = Depends(get_services),
) -> None:
    """Reject the request with 429 and Retry-After once the client is over its budget."""
    if services.rate_limiter is None:
        return
    result = await services.rate_limiter.check(get_client_key(request))
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=TOO_MANY_REQUESTS,
            headers={"Retry-After": str(result.retry_after_seconds)},
        )


def require_completion(services: AppServices = Depends(get_services)) -> CompletionService:
    if services.completion is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=SERVICE_NOT_CONFIGURED)
    return services.completion
