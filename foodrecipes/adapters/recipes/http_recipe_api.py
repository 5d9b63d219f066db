from __future__ import annotations

import logging
import socket
import threading
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from foodrecipes.adapters.recipes.base import ApiResponse, RecipeService
from foodrecipes.core.cancellation import CancelToken
from foodrecipes.core.errors import (
    ApiFailure,
    RequestCanceled,
    RequestTimedOut,
    TransportFailure,
)
from foodrecipes.domain.models import RecipeResponse, RecipeSearchResponse

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

SEARCH_PATH = "/api/search"
GET_PATH = "/api/get"

# httpcore trace events that hand over the stream of a freshly opened connection
_CONNECTED_EVENTS = ("connection.connect_tcp.complete", "connection.start_tls.complete")


class _ConnectionAborter:
    """Shuts down the socket serving one call once its token is canceled.

    Installed as the request's ``trace`` extension, it learns the socket as soon
    as the connection is open. Closing the response alone does not wake a
    worker still blocked waiting for response headers.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sock: socket.socket | None = None
        self._aborted = False

    def trace(self, event_name: str, info: dict[str, Any]) -> None:
        if event_name not in _CONNECTED_EVENTS:
            return
        stream = info.get("return_value")
        sock = stream.get_extra_info("socket") if stream is not None else None
        if sock is None:
            return
        with self._lock:
            self._sock = sock
            aborted = self._aborted
        if aborted:
            self._shutdown(sock)

    def abort(self) -> None:
        with self._lock:
            self._aborted = True
            sock = self._sock
        if sock is not None:
            self._shutdown(sock)

    @staticmethod
    def _shutdown(sock: socket.socket) -> None:
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            # Already closed by the pool
            logger.debug("abort: socket shutdown failed: %s", e)


class HttpRecipeApi(RecipeService):
    """Blocking httpx client for the recipesapi ``search`` and ``get`` endpoints.

    Each call takes an optional CancelToken: its remaining deadline becomes the
    httpx timeout, and canceling it shuts down the call's connection so the
    worker is released whether it is waiting for headers or reading the body.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 3.0,
        connect_timeout_seconds: float = 5.0,
        user_agent: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required for HttpRecipeApi")
        self.base_url = base_url.rstrip("/")
        self._connect_timeout = connect_timeout_seconds
        self._timeout = httpx.Timeout(
            timeout_seconds, connect=min(connect_timeout_seconds, timeout_seconds)
        )
        headers = {"Accept": "application/json"}
        if user_agent:
            headers["User-Agent"] = user_agent
        # No idle connections are kept, so every call opens its own connection and
        # the aborter always sees the socket it has to shut down
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=self._timeout,
            headers=headers,
            transport=transport,
            limits=httpx.Limits(max_keepalive_connections=0),
        )

    def close(self) -> None:
        self._client.close()

    def search_recipe(
        self, api_key: str, query: str, page: int, *, token: CancelToken | None = None
    ) -> ApiResponse[RecipeSearchResponse]:
        params = {"key": api_key, "q": query, "page": str(page)}
        return self._execute(
            SEARCH_PATH, params, RecipeSearchResponse, token, label=f"search:{query}:{page}"
        )

    def get_recipe(
        self, api_key: str, recipe_id: str, *, token: CancelToken | None = None
    ) -> ApiResponse[RecipeResponse]:
        params = {"key": api_key, "rId": recipe_id}
        return self._execute(GET_PATH, params, RecipeResponse, token, label=f"lookup:{recipe_id}")

    def _timeout_for(self, token: CancelToken | None) -> httpx.Timeout:
        remaining = token.remaining() if token is not None else None
        if remaining is None:
            return self._timeout
        return httpx.Timeout(remaining, connect=min(self._connect_timeout, remaining))

    def _execute(
        self,
        path: str,
        params: dict[str, Any],
        model: type[ModelT],
        token: CancelToken | None,
        *,
        label: str,
    ) -> ApiResponse[ModelT]:
        if token is not None:
            if token.canceled:
                raise RequestCanceled("Request canceled before it was sent", request=label)
            if token.remaining() == 0.0:
                raise RequestTimedOut("Deadline elapsed before the request was sent", request=label)

        aborter = _ConnectionAborter()
        request = self._client.build_request(
            "GET",
            path,
            params=params,
            timeout=self._timeout_for(token),
            extensions={"trace": aborter.trace},
        )
        logger.debug("http_recipe_api.send %s %s", request.method, path)
        unregister = token.add_callback(aborter.abort) if token is not None else None
        try:
            response = self._send_and_read(request, token, label=label)
        finally:
            if unregister is not None:
                unregister()

        if response.status_code != 200:
            return ApiResponse(status_code=response.status_code, error_body=response.text)
        try:
            body = model.model_validate(response.json())
        except ValueError as e:
            # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
            raise ApiFailure(response.status_code, f"Malformed body: {e}", request=label) from e
        return ApiResponse(status_code=response.status_code, body=body)

    def _send_and_read(
        self, request: httpx.Request, token: CancelToken | None, *, label: str
    ) -> httpx.Response:
        try:
            response = self._client.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise RequestTimedOut(f"No response before deadline: {e}", request=label) from e
        except httpx.TransportError as e:
            # A canceled token shuts the socket down, which surfaces here
            if token is not None and token.canceled:
                raise RequestCanceled("Request canceled before the response arrived", request=label) from e
            raise TransportFailure(f"Transport error: {e}", request=label) from e

        unregister = token.add_callback(response.close) if token is not None else None
        try:
            response.read()
        except httpx.TimeoutException as e:
            raise RequestTimedOut(f"Response body not read before deadline: {e}", request=label) from e
        except (httpx.TransportError, httpx.StreamError) as e:
            # Closing the stream from the cancel callback surfaces here
            if token is not None and token.canceled:
                raise RequestCanceled("Request canceled while reading", request=label) from e
            raise TransportFailure(f"Transport error: {e}", request=label) from e
        finally:
            if unregister is not None:
                unregister()
            response.close()
        return response
