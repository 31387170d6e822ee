"""Checks that an interface type can back a REST client."""

import logging

from restclient.client import RestClient
from restclient.interface import (
    HTTP_METHODS,
    RESERVED_PARAMETERS,
    RESPONSE_KINDS,
    operations_of,
    path_parameters,
)
from restclient.providers import ProviderRegistration

logger = logging.getLogger(__name__)


class RestClientDefinitionError(ValueError):
    """The interface declaration is not usable as a REST client."""

    def __init__(self, interface: object, problems: list[str]) -> None:
        name = getattr(interface, "__qualname__", repr(interface))
        super().__init__(f"{name} is not a valid REST client interface: " + "; ".join(problems))
        self.interface = interface
        self.problems = problems


def _operation_problems(interface: type) -> list[str]:
    operations = operations_of(interface)
    if not operations:
        return ["no operations declared"]

    problems: list[str] = []
    for attr, operation in operations.items():
        if operation.method.upper() != operation.method or operation.method not in HTTP_METHODS:
            problems.append(f"{attr}: unsupported HTTP method {operation.method!r}")
        if operation.response not in RESPONSE_KINDS:
            problems.append(f"{attr}: unsupported response kind {operation.response!r}")
        try:
            names = path_parameters(operation.path)
        except ValueError as exc:
            problems.append(f"{attr}: {exc}")
            continue
        if None in names:
            problems.append(f"{attr}: path {operation.path!r} has an unnamed placeholder")
        for name in names:
            if name is not None and not name.isidentifier():
                problems.append(f"{attr}: path placeholder {{{name}}} is not an identifier")
            elif name in RESERVED_PARAMETERS:
                problems.append(f"{attr}: path placeholder {{{name}}} clashes with a call keyword")
    return problems


def check_valid(interface: object) -> None:
    """Raise ``RestClientDefinitionError`` listing every problem found."""
    if not isinstance(interface, type) or not issubclass(interface, RestClient):
        raise RestClientDefinitionError(interface, ["must be a subclass of RestClient"])

    problems = _operation_problems(interface)
    for declared in interface.providers:
        if not isinstance(declared, ProviderRegistration):
            problems.append(f"providers entry {declared!r} is not a ProviderRegistration")

    if problems:
        logger.debug(
            "Interface failed validation",
            extra={"interface": interface.__qualname__, "problems": problems},
        )
        raise RestClientDefinitionError(interface, problems)
