"""Factories that turn a finished builder configuration into a client instance."""

import logging
from concurrent.futures import Executor
from typing import Any, Protocol, TypeVar

import httpx

from restclient.client import DefaultResponseExceptionMapper, RestClient
from restclient.configuration import DISABLE_DEFAULT_MAPPER_PROPERTY, ClientConfiguration
from restclient.http_client import create_http_client
from restclient.providers import ResponseExceptionMapper
from restclient.settings import Settings

logger = logging.getLogger(__name__)

_C = TypeVar("_C", bound=RestClient)

_TRUTHY = {"1", "true", "yes", "on"}


class ClientFactory(Protocol):
    def create(
        self,
        configuration: ClientConfiguration,
        base_url: str,
        interface: type[_C],
        executor: Executor | None,
    ) -> _C: ...


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


class HttpxClientFactory:
    """Creates interface instances backed by a fresh ``httpx.AsyncClient``."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    def create(
        self,
        configuration: ClientConfiguration,
        base_url: str,
        interface: type[_C],
        executor: Executor | None,
    ) -> _C:
        snapshot = configuration.snapshot()
        instances: dict[type, Any] = {}
        http_client = create_http_client(
            snapshot,
            base_url,
            self._settings,
            transport=self._transport,
            instances=instances,
        )
        mappers = snapshot.providers_for(ResponseExceptionMapper, instances)
        if not _flag(snapshot.get_property(DISABLE_DEFAULT_MAPPER_PROPERTY, False)) and not any(
            isinstance(mapper, DefaultResponseExceptionMapper) for mapper in mappers
        ):
            mappers.append(DefaultResponseExceptionMapper())
        logger.info(
            "Created REST client",
            extra={"interface": interface.__qualname__, "base_url": base_url},
        )
        return interface(
            http_client,
            configuration=snapshot,
            executor=executor,
            exception_mappers=mappers,
        )
