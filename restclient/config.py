"""
Config facade resolving per-interface keys such as ``<name>/mp-rest/readTimeout``.

Values come from an ordered set of sources; the highest ordinal wins. The
environment source maps keys to variable names the way MicroProfile Config
does, so ``com.example.Api/mp-rest/readTimeout`` can be supplied as
``COM_EXAMPLE_API_MP_REST_READTIMEOUT``.
"""

import logging
import os
import re
from typing import Callable, Iterable, Mapping, Protocol, TypeVar

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_T = TypeVar("_T")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


class ConfigValueError(ValueError):
    """A configured value exists but cannot be converted to the requested type."""


class ConfigSource(Protocol):
    ordinal: int

    def get_value(self, key: str) -> str | None: ...


class MappingConfigSource:
    """Serves values from an in-memory mapping."""

    def __init__(self, values: Mapping[str, str], ordinal: int = 100) -> None:
        self._values = dict(values)
        self.ordinal = ordinal

    def get_value(self, key: str) -> str | None:
        return self._values.get(key)


class EnvironmentConfigSource:
    """Serves values from ``os.environ``, optionally seeded from a local .env file."""

    def __init__(self, ordinal: int = 300, *, use_dotenv: bool = True) -> None:
        self.ordinal = ordinal
        if use_dotenv:
            load_dotenv()

    @staticmethod
    def candidate_names(key: str) -> tuple[str, ...]:
        sanitized = _NON_ALNUM.sub("_", key)
        return tuple(dict.fromkeys((key, sanitized, sanitized.upper())))

    def get_value(self, key: str) -> str | None:
        for name in self.candidate_names(key):
            value = os.environ.get(name)
            if value is not None:
                return value
        return None


class ConfigFacade:
    """Looks keys up across sources in descending ordinal order."""

    def __init__(self, sources: Iterable[ConfigSource]) -> None:
        self._sources = sorted(sources, key=lambda source: source.ordinal, reverse=True)

    @classmethod
    def default(cls) -> "ConfigFacade":
        return cls([EnvironmentConfigSource()])

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "ConfigFacade":
        return cls([MappingConfigSource(values)])

    def get_value(self, key: str) -> str | None:
        for source in self._sources:
            value = source.get_value(key)
            if value is not None:
                return value
        return None

    def get_optional(self, key: str, converter: Callable[[str], _T] = str) -> _T | None:
        raw = self.get_value(key)
        if raw is None:
            return None
        try:
            return converter(raw.strip())
        except (TypeError, ValueError) as exc:
            logger.error("Config value could not be converted", extra={"key": key, "value": raw})
            raise ConfigValueError(f"Config value for {key!r} is invalid: {raw!r}") from exc
