"""
Runtime base for typed REST clients.

Interfaces subclass ``RestClient`` and declare ``Operation`` attributes; the
builder's factory instantiates them around a configured ``httpx.AsyncClient``.
"""

import asyncio
import logging
import sys
from concurrent.futures import Executor
from typing import Any, ClassVar, Mapping, Sequence

import httpx

from restclient.configuration import ClientConfiguration
from restclient.interface import Operation
from restclient.providers import ProviderRegistration, ResponseExceptionMapper

logger = logging.getLogger(__name__)

_SNIPPET_LIMIT = 512


class RestClientError(RuntimeError):
    """Represents failures when communicating with the remote service."""


class ResponseError(RestClientError):
    """The remote service answered with an error status."""

    def __init__(self, message: str, *, status_code: int, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def _snippet(response: httpx.Response) -> str:
    snippet = response.text.strip()
    if len(snippet) > _SNIPPET_LIMIT:
        snippet = f"{snippet[:_SNIPPET_LIMIT]}..."
    return snippet


class DefaultResponseExceptionMapper(ResponseExceptionMapper):
    """Maps any 4xx/5xx response to ``ResponseError``; consulted after all others."""

    priority = sys.maxsize

    def to_exception(self, response: httpx.Response) -> Exception | None:
        snippet = _snippet(response)
        request = response.request
        return ResponseError(
            f"Remote service error ({response.status_code}) during {request.method} "
            f"{request.url.path}: {snippet or 'no body provided.'}",
            status_code=response.status_code,
            body=snippet,
        )


class RestClient:
    """Typed wrapper around a shared AsyncClient."""

    providers: ClassVar[Sequence[ProviderRegistration]] = ()
    config_key: ClassVar[str | None] = None

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        configuration: ClientConfiguration | None = None,
        executor: Executor | None = None,
        exception_mappers: Sequence[ResponseExceptionMapper] = (),
    ) -> None:
        self._client = http_client
        self._configuration = configuration or ClientConfiguration()
        self._executor = executor
        self._exception_mappers = tuple(exception_mappers)

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self._client

    @property
    def configuration(self) -> ClientConfiguration:
        return self._configuration

    @property
    def executor(self) -> Executor | None:
        return self._executor

    async def aclose(self) -> None:
        """Close the underlying HTTP resources."""
        await self._client.aclose()

    async def __aenter__(self) -> "RestClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _invoke(
        self,
        operation: Operation,
        *,
        path_params: Mapping[str, Any],
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        path = operation.render_path(path_params)
        logger.debug(
            "Invoking operation",
            extra={"operation": operation.name, "method": operation.method, "path": path},
        )
        kwargs: dict[str, Any] = {}
        if params is not None:
            kwargs["params"] = params
        if json is not None:
            kwargs["json"] = json
        if headers is not None:
            kwargs["headers"] = headers
        response = await self._request(operation.method, path, **kwargs)
        return await self._read(response, operation.response)

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Normalized request handler for all outgoing calls."""

        def _transport_error(message: str, *, exc: Exception | None = None) -> RestClientError:
            logger.error(
                message,
                extra={"method": method, "path": path},
                exc_info=exc,
            )
            return RestClientError(message)

        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise _transport_error(
                f"Request timed out ({method} {path}).",
                exc=exc,
            ) from exc
        except httpx.RequestError as exc:
            raise _transport_error(
                f"Request failed ({method} {path}): {exc!s}",
                exc=exc,
            ) from exc

        for mapper in self._exception_mappers:
            if not mapper.handles(response):
                continue
            error = mapper.to_exception(response)
            if error is not None:
                logger.warning(
                    "Remote service responded with error",
                    extra={
                        "method": method,
                        "path": path,
                        "status_code": response.status_code,
                        "mapper": type(mapper).__qualname__,
                    },
                )
                raise error

        return response

    async def _read(self, response: httpx.Response, kind: str) -> Any:
        if kind == "raw":
            return response
        if kind == "none":
            return None
        if kind == "bytes":
            return response.content
        if kind == "text":
            return response.text

        request = response.request
        try:
            if self._executor is None:
                return response.json()
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._executor, response.json)
        except ValueError as exc:
            logger.error(
                "Remote service returned invalid JSON",
                extra={"method": request.method, "path": request.url.path},
            )
            raise RestClientError(
                f"Remote service returned invalid JSON during {request.method} {request.url.path}."
            ) from exc
