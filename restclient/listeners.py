"""Listeners notified whenever a builder creates a client, and their discovery cache."""

import logging
import threading
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Callable, Hashable, Protocol

if TYPE_CHECKING:
    from restclient.builder import RestClientBuilder

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "restclient.listeners"
DEFAULT_CONTEXT = "default"


class RestClientListener(Protocol):
    def on_new_client(self, interface: type, builder: "RestClientBuilder") -> None: ...


def discover_listeners() -> list[RestClientListener]:
    """Load listeners advertised under the ``restclient.listeners`` entry-point group."""
    listeners: list[RestClientListener] = []
    for entry_point in entry_points(group=ENTRY_POINT_GROUP):
        loaded = entry_point.load()
        listener = loaded() if isinstance(loaded, type) else loaded
        listeners.append(listener)
        logger.debug("Discovered client listener", extra={"entry_point": entry_point.name})
    return listeners


class ListenerRegistry:
    """
    Caches one discovered listener list per context.

    The list for a context is built on first use and kept until ``release``
    or ``clear``; every builder using the same context shares that list.
    """

    def __init__(self, discover: Callable[[], list[RestClientListener]] = discover_listeners) -> None:
        self._discover = discover
        self._lock = threading.Lock()
        self._listeners: dict[Hashable, list[RestClientListener]] = {}

    def listeners_for(self, context: Hashable) -> list[RestClientListener]:
        with self._lock:
            listeners = self._listeners.get(context)
            if listeners is None:
                listeners = list(self._discover())
                self._listeners[context] = listeners
                logger.debug(
                    "Populated listener cache",
                    extra={"context": repr(context), "count": len(listeners)},
                )
            return listeners

    def release(self, context: Hashable) -> None:
        with self._lock:
            self._listeners.pop(context, None)

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()

    def contexts(self) -> list[Hashable]:
        with self._lock:
            return list(self._listeners)


default_registry = ListenerRegistry()
