"""Mutable client configuration: properties plus registered provider components."""

import enum
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence

from restclient.providers import PROVIDER_CONTRACTS

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_PROPERTY = "http.connection.timeout"
READ_TIMEOUT_PROPERTY = "http.receive.timeout"
DISABLE_DEFAULT_MAPPER_PROPERTY = "restclient.disable.default.mapper"


class Priorities:
    """Well-known provider priorities; lower values run first."""

    AUTHENTICATION = 1000
    AUTHORIZATION = 2000
    HEADER_DECORATOR = 3000
    ENTITY_CODER = 4000
    USER = 5000


class TimeUnit(enum.Enum):
    NANOSECONDS = 1e-6
    MICROSECONDS = 1e-3
    MILLISECONDS = 1
    SECONDS = 1_000
    MINUTES = 60_000
    HOURS = 3_600_000
    DAYS = 86_400_000

    def to_millis(self, value: int) -> int:
        """Convert ``value`` in this unit to whole milliseconds (floored)."""
        if self.value >= 1:
            return int(value) * int(self.value)
        divisor = round(1 / self.value)
        return int(value) // divisor


@dataclass(slots=True)
class ComponentRegistration:
    """A registered component and the contracts it was bound to."""

    component: Any
    component_class: type
    contracts: dict[type, int] = field(default_factory=dict)

    @property
    def is_instance(self) -> bool:
        return not isinstance(self.component, type)

    def instantiate(self) -> Any:
        if self.is_instance:
            return self.component
        return self.component_class()


def _component_class(component: Any) -> type:
    return component if isinstance(component, type) else type(component)


def _default_priority(component_class: type) -> int:
    priority = getattr(component_class, "priority", None)
    if isinstance(priority, int) and not isinstance(priority, bool):
        return priority
    return Priorities.USER


class ClientConfiguration:
    """Accumulates properties and provider registrations for a client."""

    def __init__(self) -> None:
        self._properties: dict[str, Any] = {}
        self._registrations: list[ComponentRegistration] = []

    def set_property(self, key: str, value: Any) -> None:
        if value is None:
            self._properties.pop(key, None)
            return
        self._properties[key] = value

    def get_property(self, key: str, default: Any = None) -> Any:
        return self._properties.get(key, default)

    @property
    def properties(self) -> Mapping[str, Any]:
        return MappingProxyType(self._properties)

    def register(
        self,
        component: Any,
        priority: int | None = None,
        contracts: Sequence[type] | Mapping[type, int] | None = None,
    ) -> None:
        """
        Register a provider class or instance.

        ``contracts`` restricts which provider roles the component plays, either
        as a sequence of contract types or as a mapping of contract to priority.
        Registering the same component class twice is a no-op.
        """
        if component is None:
            raise ValueError("component must not be None")
        if priority is not None and contracts is not None:
            raise ValueError("priority and contracts cannot be combined")

        component_class = _component_class(component)
        if self.is_registered(component_class):
            logger.warning(
                "Component already registered; ignoring",
                extra={"component": component_class.__qualname__},
            )
            return

        bound = self._bind_contracts(component_class, priority, contracts)
        if not bound:
            logger.warning(
                "Component implements no provider contract; ignoring",
                extra={"component": component_class.__qualname__},
            )
            return

        self._registrations.append(
            ComponentRegistration(
                component=component,
                component_class=component_class,
                contracts=bound,
            )
        )
        logger.debug(
            "Registered component",
            extra={
                "component": component_class.__qualname__,
                "contracts": sorted(c.__name__ for c in bound),
            },
        )

    def _bind_contracts(
        self,
        component_class: type,
        priority: int | None,
        contracts: Sequence[type] | Mapping[type, int] | None,
    ) -> dict[type, int]:
        default = priority if priority is not None else _default_priority(component_class)
        if contracts is None:
            requested: dict[type, int] = {
                contract: default
                for contract in PROVIDER_CONTRACTS
                if issubclass(component_class, contract)
            }
            return requested

        if isinstance(contracts, Mapping):
            requested = dict(contracts)
        else:
            requested = {contract: default for contract in contracts}

        bound: dict[type, int] = {}
        for contract, contract_priority in requested.items():
            if not isinstance(contract, type) or not issubclass(component_class, contract):
                logger.warning(
                    "Component does not implement contract; skipping",
                    extra={
                        "component": component_class.__qualname__,
                        "contract": getattr(contract, "__qualname__", repr(contract)),
                    },
                )
                continue
            bound[contract] = contract_priority
        return bound

    def is_registered(self, component: Any) -> bool:
        """Check a class by registered class, an instance by identity."""
        if isinstance(component, type):
            return any(r.component_class is component for r in self._registrations)
        return any(r.component is component for r in self._registrations)

    @property
    def registrations(self) -> tuple[ComponentRegistration, ...]:
        return tuple(self._registrations)

    @property
    def classes(self) -> frozenset[type]:
        return frozenset(r.component_class for r in self._registrations if not r.is_instance)

    @property
    def instances(self) -> tuple[Any, ...]:
        return tuple(r.component for r in self._registrations if r.is_instance)

    def contracts_of(self, component: Any) -> Mapping[type, int]:
        component_class = _component_class(component)
        for registration in self._registrations:
            if registration.component_class is component_class:
                return MappingProxyType(registration.contracts)
        return MappingProxyType({})

    def providers_for(self, contract: type, instances: dict[type, Any] | None = None) -> list[Any]:
        """
        Instantiate providers bound to ``contract``, lowest priority first.

        Pass the same ``instances`` dict across calls so a class bound to several
        contracts is instantiated once.
        """
        if instances is None:
            instances = {}
        bound: Iterable[tuple[int, int, ComponentRegistration]] = (
            (registration.contracts[contract], index, registration)
            for index, registration in enumerate(self._registrations)
            if contract in registration.contracts
        )
        providers = []
        for _, _, registration in sorted(bound, key=lambda item: item[:2]):
            if registration.component_class not in instances:
                instances[registration.component_class] = registration.instantiate()
            providers.append(instances[registration.component_class])
        return providers

    def snapshot(self) -> "ClientConfiguration":
        copy = ClientConfiguration()
        copy._properties = dict(self._properties)
        copy._registrations = [
            ComponentRegistration(
                component=r.component,
                component_class=r.component_class,
                contracts=dict(r.contracts),
            )
            for r in self._registrations
        ]
        return copy

    def view(self) -> "ConfigurationView":
        return ConfigurationView(self)


class ConfigurationView:
    """Read-only facade over a live ``ClientConfiguration``."""

    __slots__ = ("_configuration",)

    def __init__(self, configuration: ClientConfiguration) -> None:
        self._configuration = configuration

    @property
    def properties(self) -> Mapping[str, Any]:
        return self._configuration.properties

    def get_property(self, key: str, default: Any = None) -> Any:
        return self._configuration.get_property(key, default)

    def is_registered(self, component: Any) -> bool:
        return self._configuration.is_registered(component)

    @property
    def classes(self) -> frozenset[type]:
        return self._configuration.classes

    @property
    def instances(self) -> tuple[Any, ...]:
        return self._configuration.instances

    def contracts_of(self, component: Any) -> Mapping[type, int]:
        return self._configuration.contracts_of(component)
