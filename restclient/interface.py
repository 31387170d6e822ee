"""Static operation declarations for client interfaces."""

import string
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping
from urllib.parse import quote

if TYPE_CHECKING:
    from restclient.client import RestClient

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})
RESPONSE_KINDS = frozenset({"json", "text", "bytes", "raw", "none"})
# Keyword arguments of a bound operation call; unusable as placeholder names.
RESERVED_PARAMETERS = frozenset({"params", "json", "headers"})

CONNECT_TIMEOUT_KEY_FORMAT = "%s/mp-rest/connectTimeout"
READ_TIMEOUT_KEY_FORMAT = "%s/mp-rest/readTimeout"


def path_parameters(path: str) -> list[str | None]:
    """Return the placeholder names in ``path``; ``None`` marks a positional ``{}``."""
    names: list[str | None] = []
    for _, name, spec, conversion in string.Formatter().parse(path):
        if name is None:
            continue
        if spec or conversion:
            raise ValueError(f"placeholder {{{name}}} must not carry a format spec or conversion")
        names.append(name or None)
    return names


@dataclass(frozen=True)
class Operation:
    """
    Declares one remote operation on a ``RestClient`` subclass.

    Accessing the attribute on an instance returns an awaitable callable that
    takes the path placeholders as keyword arguments plus optional ``params``,
    ``json`` and ``headers``::

        class JobsApi(RestClient):
            get_status = Operation("GET", "/jobs/{job_id}/status")

        status = await api.get_status(job_id="42")
    """

    method: str
    path: str
    response: str = "json"
    name: str = field(default="", compare=False)

    def __set_name__(self, owner: type, name: str) -> None:
        object.__setattr__(self, "name", name)

    def __get__(self, instance: "RestClient | None", owner: type | None = None) -> Any:
        if instance is None:
            return self

        async def call(
            *,
            params: Mapping[str, Any] | None = None,
            json: Any = None,
            headers: Mapping[str, str] | None = None,
            **path_params: Any,
        ) -> Any:
            return await instance._invoke(
                self,
                path_params=path_params,
                params=params,
                json=json,
                headers=headers,
            )

        call.__name__ = self.name or "operation"
        return call

    def render_path(self, path_params: Mapping[str, Any]) -> str:
        expected = {name for name in path_parameters(self.path) if name}
        missing = expected - path_params.keys()
        unexpected = path_params.keys() - expected
        if missing or unexpected:
            raise ValueError(
                f"{self.name or self.path}: missing path parameters {sorted(missing)}, "
                f"unexpected {sorted(unexpected)}"
            )
        return self.path.format(**{key: quote(str(value), safe="") for key, value in path_params.items()})


def operations_of(interface: type) -> dict[str, Operation]:
    """Collect declared operations, base classes first."""
    found: dict[str, Operation] = {}
    for klass in reversed(interface.__mro__):
        for attr, value in vars(klass).items():
            if isinstance(value, Operation):
                found[attr] = value
    return found


def interface_name(interface: type) -> str:
    """Name used to build per-interface config keys."""
    config_key = getattr(interface, "config_key", None)
    if config_key:
        return str(config_key)
    return f"{interface.__module__}.{interface.__qualname__}"
