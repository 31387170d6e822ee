"""
Typed REST clients built on httpx.

Declare an interface as a ``RestClient`` subclass with ``Operation`` attributes,
then configure and create it through ``RestClientBuilder``.
"""

from restclient.builder import BuilderStateError, RestClientBuilder
from restclient.client import DefaultResponseExceptionMapper, ResponseError, RestClient, RestClientError
from restclient.config import (
    ConfigFacade,
    ConfigValueError,
    EnvironmentConfigSource,
    MappingConfigSource,
)
from restclient.configuration import ClientConfiguration, Priorities, TimeUnit
from restclient.factory import ClientFactory, HttpxClientFactory
from restclient.interface import Operation, interface_name
from restclient.listeners import DEFAULT_CONTEXT, ListenerRegistry, RestClientListener
from restclient.providers import (
    ProviderRegistration,
    RequestFilter,
    ResponseExceptionMapper,
    ResponseFilter,
    register_provider,
)
from restclient.settings import Settings, configure_logging
from restclient.validator import RestClientDefinitionError, check_valid

__all__ = [
    "BuilderStateError",
    "ClientConfiguration",
    "ClientFactory",
    "ConfigFacade",
    "ConfigValueError",
    "DEFAULT_CONTEXT",
    "DefaultResponseExceptionMapper",
    "EnvironmentConfigSource",
    "HttpxClientFactory",
    "ListenerRegistry",
    "MappingConfigSource",
    "Operation",
    "Priorities",
    "ProviderRegistration",
    "RequestFilter",
    "ResponseError",
    "ResponseExceptionMapper",
    "ResponseFilter",
    "RestClient",
    "RestClientBuilder",
    "RestClientDefinitionError",
    "RestClientError",
    "RestClientListener",
    "Settings",
    "TimeUnit",
    "check_valid",
    "configure_logging",
    "interface_name",
    "register_provider",
]
