"""Fluent builder that configures and creates typed REST clients."""

import logging
from concurrent.futures import Executor
from typing import Any, Hashable, Mapping, Sequence, TypeVar

import httpx

from restclient.client import RestClient
from restclient.config import ConfigFacade
from restclient.configuration import (
    CONNECT_TIMEOUT_PROPERTY,
    READ_TIMEOUT_PROPERTY,
    ClientConfiguration,
    ConfigurationView,
    TimeUnit,
)
from restclient.factory import ClientFactory, HttpxClientFactory
from restclient.interface import CONNECT_TIMEOUT_KEY_FORMAT, READ_TIMEOUT_KEY_FORMAT, interface_name
from restclient.listeners import DEFAULT_CONTEXT, ListenerRegistry, RestClientListener, default_registry
from restclient.validator import check_valid

logger = logging.getLogger(__name__)

_C = TypeVar("_C", bound=RestClient)


class BuilderStateError(RuntimeError):
    """The builder is not ready to create a client."""


def _timeout_millis(value: int, unit: TimeUnit | None) -> int:
    if unit is None:
        raise ValueError("time unit must not be None")
    if value < 0:
        raise ValueError("timeout must be non-negative")
    return unit.to_millis(value)


class RestClientBuilder:
    """
    Accumulates the base URL, executor, timeouts and providers for a client.

    ``listeners`` injects the listeners notified on every build. Without it the
    listeners come from ``registry`` for ``context``, discovered once and shared
    by every builder using that context.
    """

    def __init__(
        self,
        *,
        config: ConfigFacade | None = None,
        listeners: Sequence[RestClientListener] | None = None,
        context: Hashable = DEFAULT_CONTEXT,
        registry: ListenerRegistry | None = None,
        factory: ClientFactory | None = None,
    ) -> None:
        self._base_url: str | None = None
        self._executor: Executor | None = None
        self._configuration = ClientConfiguration()
        self._config = config
        self._listeners = list(listeners) if listeners is not None else None
        self._context = context
        self._registry = registry or default_registry
        self._factory = factory or HttpxClientFactory()

    @property
    def context(self) -> Hashable:
        return self._context

    @property
    def listeners(self) -> list[RestClientListener]:
        if self._listeners is not None:
            return self._listeners
        return self._registry.listeners_for(self._context)

    @property
    def base_address(self) -> str | None:
        return self._base_url

    def base_url(self, url: str | httpx.URL) -> "RestClientBuilder":
        if url is None:
            raise ValueError("url must not be None")
        self._base_url = str(httpx.URL(url))
        return self

    def base_uri(self, uri: str | httpx.URL) -> "RestClientBuilder":
        if uri is None:
            raise ValueError("uri must not be None")
        self._base_url = str(httpx.URL(uri))
        return self

    def executor(self, executor: Executor) -> "RestClientBuilder":
        if executor is None:
            raise ValueError("executor must not be None")
        self._executor = executor
        return self

    def connect_timeout(self, timeout: int, unit: TimeUnit) -> "RestClientBuilder":
        return self.set_property(CONNECT_TIMEOUT_PROPERTY, _timeout_millis(timeout, unit))

    def read_timeout(self, timeout: int, unit: TimeUnit) -> "RestClientBuilder":
        return self.set_property(READ_TIMEOUT_PROPERTY, _timeout_millis(timeout, unit))

    def set_property(self, key: str, value: Any) -> "RestClientBuilder":
        self._configuration.set_property(key, value)
        return self

    def register(
        self,
        component: Any,
        priority: int | None = None,
        contracts: Sequence[type] | Mapping[type, int] | None = None,
    ) -> "RestClientBuilder":
        self._configuration.register(component, priority=priority, contracts=contracts)
        return self

    def get_configuration(self) -> ConfigurationView:
        return self._configuration.view()

    def build(self, interface: type[_C]) -> _C:
        if self._base_url is None:
            raise BuilderStateError("base url not set")
        check_valid(interface)

        for declared in interface.providers:
            if self._configuration.is_registered(declared.component):
                continue
            if declared.has_priority:
                self.register(declared.component, declared.priority)
            else:
                self.register(declared.component)

        self._apply_configured_timeouts(interface_name(interface))

        for listener in self.listeners:
            listener.on_new_client(interface, self)

        return self._factory.create(self._configuration, self._base_url, interface, self._executor)

    def _apply_configured_timeouts(self, name: str) -> None:
        if self._config is None:
            self._config = ConfigFacade.default()

        connect = self._config.get_optional(CONNECT_TIMEOUT_KEY_FORMAT % name, int)
        if connect is not None:
            self.connect_timeout(connect, TimeUnit.MILLISECONDS)
            logger.debug("connectTimeout set from config", extra={"interface": name, "timeout_ms": connect})

        read = self._config.get_optional(READ_TIMEOUT_KEY_FORMAT % name, int)
        if read is not None:
            self.read_timeout(read, TimeUnit.MILLISECONDS)
            logger.debug("readTimeout set from config", extra={"interface": name, "timeout_ms": read})
