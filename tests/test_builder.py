from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from restclient.builder import BuilderStateError, RestClientBuilder
from restclient.client import RestClient
from restclient.config import ConfigFacade
from restclient.configuration import CONNECT_TIMEOUT_PROPERTY, READ_TIMEOUT_PROPERTY, TimeUnit
from restclient.interface import Operation, interface_name
from restclient.providers import (
    ProviderRegistration,
    RequestFilter,
    ResponseFilter,
    register_provider,
)
from restclient.validator import RestClientDefinitionError


class AuthFilter(RequestFilter):
    def filter_request(self, request: httpx.Request) -> None:
        request.headers["Authorization"] = "Bearer token"


class AuditFilter(ResponseFilter):
    def filter_response(self, response: httpx.Response) -> None:
        pass


class PlainApi(RestClient):
    ping = Operation("GET", "/ping")


class AnnotatedApi(RestClient):
    providers = (
        ProviderRegistration(AuthFilter),
        ProviderRegistration(AuditFilter, priority=100),
    )
    ping = Operation("GET", "/ping")


@register_provider(AuthFilter, priority=10)
class DecoratedApi(RestClient):
    ping = Operation("GET", "/ping")


@dataclass
class FactoryCall:
    base_url: str
    interface: type
    executor: Any
    properties: dict[str, Any]
    classes: frozenset[type]


@dataclass
class RecordingFactory:
    calls: list[FactoryCall] = field(default_factory=list)

    def create(self, configuration, base_url, interface, executor):
        self.calls.append(
            FactoryCall(
                base_url=base_url,
                interface=interface,
                executor=executor,
                properties=dict(configuration.properties),
                classes=configuration.classes,
            )
        )
        return ("client", interface, len(self.calls))


@dataclass
class RecordingListener:
    seen: list[tuple[type, RestClientBuilder]] = field(default_factory=list)

    def on_new_client(self, interface: type, builder: RestClientBuilder) -> None:
        self.seen.append((interface, builder))
        builder.set_property("listener.touched", interface.__name__)


def _builder(values: dict[str, str] | None = None, **kwargs) -> tuple[RestClientBuilder, RecordingFactory]:
    factory = RecordingFactory()
    kwargs.setdefault("listeners", [])
    builder = RestClientBuilder(
        config=ConfigFacade.from_mapping(values or {}),
        factory=factory,
        **kwargs,
    )
    return builder, factory


def test_build_invokes_factory_once_with_stored_address() -> None:
    builder, factory = _builder()
    result = builder.base_url("http://api.local/v1").build(PlainApi)

    assert len(factory.calls) == 1
    call = factory.calls[0]
    assert call.base_url == "http://api.local/v1"
    assert call.interface is PlainApi
    assert call.executor is None
    assert call.classes == frozenset()
    assert result == ("client", PlainApi, 1)


def test_base_uri_accepts_httpx_url() -> None:
    builder, factory = _builder()
    builder.base_uri(httpx.URL("https://api.local/v2")).build(PlainApi)
    assert factory.calls[0].base_url == "https://api.local/v2"


def test_setters_return_builder() -> None:
    builder, _ = _builder()
    with ThreadPoolExecutor(max_workers=1) as pool:
        chained = (
            builder.base_url("http://api.local/v1")
            .executor(pool)
            .connect_timeout(1, TimeUnit.SECONDS)
            .read_timeout(2, TimeUnit.SECONDS)
            .set_property("custom", "yes")
            .register(AuthFilter)
        )
    assert chained is builder


def test_null_arguments_are_rejected() -> None:
    builder, _ = _builder()
    with pytest.raises(ValueError):
        builder.base_url(None)
    with pytest.raises(ValueError):
        builder.base_uri(None)
    with pytest.raises(ValueError):
        builder.executor(None)
    assert builder.base_address is None


def test_invalid_timeouts_leave_configuration_unchanged() -> None:
    builder, _ = _builder()
    with pytest.raises(ValueError):
        builder.connect_timeout(-1, TimeUnit.SECONDS)
    with pytest.raises(ValueError):
        builder.read_timeout(5, None)
    assert dict(builder.get_configuration().properties) == {}


def test_timeouts_are_stored_in_milliseconds() -> None:
    builder, _ = _builder()
    builder.connect_timeout(3, TimeUnit.SECONDS).read_timeout(2, TimeUnit.MINUTES)
    configuration = builder.get_configuration()
    assert configuration.get_property(CONNECT_TIMEOUT_PROPERTY) == 3_000
    assert configuration.get_property(READ_TIMEOUT_PROPERTY) == 120_000


def test_build_without_base_url_always_fails() -> None:
    builder, factory = _builder()
    for _ in range(2):
        with pytest.raises(BuilderStateError):
            builder.build(PlainApi)
    assert factory.calls == []


def test_validation_errors_propagate() -> None:
    class NoOperations(RestClient):
        pass

    builder, factory = _builder()
    builder.base_url("http://api.local")
    with pytest.raises(RestClientDefinitionError):
        builder.build(NoOperations)
    with pytest.raises(RestClientDefinitionError):
        builder.build(object)
    assert factory.calls == []


def test_declared_providers_are_registered_before_factory() -> None:
    builder, factory = _builder()
    builder.base_url("http://api.local").build(AnnotatedApi)

    assert factory.calls[0].classes == frozenset({AuthFilter, AuditFilter})
    configuration = builder.get_configuration()
    assert configuration.contracts_of(AuditFilter)[ResponseFilter] == 100
    assert configuration.contracts_of(AuthFilter)[RequestFilter] == 5000


def test_already_registered_provider_keeps_its_priority() -> None:
    builder, _ = _builder()
    builder.base_url("http://api.local").register(AuditFilter, priority=7).build(AnnotatedApi)
    assert builder.get_configuration().contracts_of(AuditFilter)[ResponseFilter] == 7


def test_decorated_interface_registers_provider() -> None:
    builder, factory = _builder()
    builder.base_url("http://api.local").build(DecoratedApi)
    assert factory.calls[0].classes == frozenset({AuthFilter})
    assert builder.get_configuration().contracts_of(AuthFilter)[RequestFilter] == 10


def test_configured_connect_timeout_overrides_explicit_value() -> None:
    key = f"{interface_name(PlainApi)}/mp-rest/connectTimeout"
    builder, factory = _builder({key: "250"})
    builder.base_url("http://api.local").connect_timeout(10, TimeUnit.SECONDS)
    builder.read_timeout(4, TimeUnit.SECONDS).build(PlainApi)

    properties = factory.calls[0].properties
    assert properties[CONNECT_TIMEOUT_PROPERTY] == 250
    assert properties[READ_TIMEOUT_PROPERTY] == 4_000


def test_configured_read_timeout_uses_config_key() -> None:
    class KeyedApi(RestClient):
        config_key = "jobs"
        ping = Operation("GET", "/ping")

    builder, factory = _builder({"jobs/mp-rest/readTimeout": "1500"})
    builder.base_url("http://api.local").build(KeyedApi)
    assert factory.calls[0].properties == {READ_TIMEOUT_PROPERTY: 1500}


def test_listeners_are_notified_and_may_mutate_builder() -> None:
    listener = RecordingListener()
    builder, factory = _builder(listeners=[listener])
    builder.base_url("http://api.local").build(PlainApi)

    assert listener.seen == [(PlainApi, builder)]
    assert factory.calls[0].properties["listener.touched"] == "PlainApi"


def test_build_is_repeatable() -> None:
    listener = RecordingListener()
    builder, factory = _builder(listeners=[listener])
    builder.base_url("http://api.local")
    first = builder.build(PlainApi)
    second = builder.build(PlainApi)

    assert first != second
    assert len(factory.calls) == 2
    assert len(listener.seen) == 2
