"""HTTP client factory translating a ClientConfiguration into an httpx.AsyncClient."""

import inspect
import logging
from typing import Any, Awaitable, Callable

import httpx

from restclient.configuration import (
    CONNECT_TIMEOUT_PROPERTY,
    READ_TIMEOUT_PROPERTY,
    ClientConfiguration,
)
from restclient.providers import RequestFilter, ResponseFilter
from restclient.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0

Hook = Callable[[Any], Awaitable[None]]


def _seconds(millis: Any) -> float | None:
    """Milliseconds to seconds; zero disables the timeout for that phase."""
    millis = int(millis)
    if millis == 0:
        return None
    return millis / 1000


def build_timeout(configuration: ClientConfiguration, settings: Settings) -> httpx.Timeout:
    overrides: dict[str, float | None] = {}
    connect = configuration.get_property(CONNECT_TIMEOUT_PROPERTY, settings.connect_timeout_ms)
    if connect is not None:
        overrides["connect"] = _seconds(connect)
    read = configuration.get_property(READ_TIMEOUT_PROPERTY, settings.read_timeout_ms)
    if read is not None:
        overrides["read"] = _seconds(read)
    return httpx.Timeout(DEFAULT_TIMEOUT_SECONDS, **overrides)


def _as_hook(callback: Callable[[Any], Any]) -> Hook:
    async def hook(message: Any) -> None:
        result = callback(message)
        if inspect.isawaitable(result):
            await result

    return hook


def create_http_client(
    configuration: ClientConfiguration,
    base_url: str,
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    instances: dict[type, Any] | None = None,
) -> httpx.AsyncClient:
    """
    Build an AsyncClient for ``base_url`` from the accumulated configuration.

    Registered request and response filters become httpx event hooks, in
    ascending priority order.
    """
    settings = settings or Settings.load()
    if instances is None:
        instances = {}
    request_hooks = [
        _as_hook(provider.filter_request)
        for provider in configuration.providers_for(RequestFilter, instances)
    ]
    response_hooks = [
        _as_hook(provider.filter_response)
        for provider in configuration.providers_for(ResponseFilter, instances)
    ]
    timeout = build_timeout(configuration, settings)
    logger.debug(
        "Creating HTTP client",
        extra={
            "base_url": base_url,
            "connect_timeout": timeout.connect,
            "read_timeout": timeout.read,
            "request_filters": len(request_hooks),
            "response_filters": len(response_hooks),
        },
    )
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=timeout,
        transport=transport,
        event_hooks={"request": request_hooks, "response": response_hooks},
    )
