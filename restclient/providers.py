"""Provider contracts and static provider declarations for client interfaces."""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import httpx

NO_PRIORITY = -1

_T = TypeVar("_T", bound=type)


class RequestFilter:
    """Runs against every outgoing request before it is sent."""

    def filter_request(self, request: httpx.Request) -> None | Awaitable[None]:
        raise NotImplementedError


class ResponseFilter:
    """Runs against every response before it reaches the caller."""

    def filter_response(self, response: httpx.Response) -> None | Awaitable[None]:
        raise NotImplementedError


class ResponseExceptionMapper:
    """Turns a response into an exception to raise, or ``None`` to pass it through."""

    def handles(self, response: httpx.Response) -> bool:
        return response.status_code >= 400

    def to_exception(self, response: httpx.Response) -> Exception | None:
        raise NotImplementedError


PROVIDER_CONTRACTS: tuple[type, ...] = (RequestFilter, ResponseFilter, ResponseExceptionMapper)


@dataclass(frozen=True, slots=True)
class ProviderRegistration:
    """A provider declared on an interface; ``priority=-1`` means no explicit priority."""

    component: Any
    priority: int = NO_PRIORITY

    @property
    def has_priority(self) -> bool:
        return self.priority != NO_PRIORITY


def register_provider(component: Any, priority: int = NO_PRIORITY) -> Callable[[_T], _T]:
    """
    Class decorator that adds a provider declaration to an interface.

    Stacked decorators keep their top-to-bottom order, ahead of any entries
    declared in the class body. The ``providers`` tuple is replaced, never
    mutated in place.
    """

    def decorator(interface: _T) -> _T:
        declared = tuple(getattr(interface, "providers", ()))
        interface.providers = (ProviderRegistration(component, priority),) + declared
        return interface

    return decorator
