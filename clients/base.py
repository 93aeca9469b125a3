"""
Request pipeline shared by every MyWaifuList endpoint.

A single exchange is: build the URL, attach the API key, run the request
inside a deadline, check the status, decode the JSON body. Nothing is
retried or cached; the first failure is raised to the caller.
"""

import asyncio
import json
from typing import Any, Mapping, Optional, Union

import aiohttp

from config.settings import DEFAULT_API_URL
from domain.entities import (
    APIError, ApiRequest, ClientConfig, DecodeError, HTTPMethod,
    ParameterError, RequestTimeoutError, TransportError
)
from utils.logger import LogTimer, get_logger

logger = get_logger(__name__)

VERSION = "1.0.0"
DEFAULT_USER_AGENT = f"mywaifulist-py/{VERSION}"
DEFAULT_TIMEOUT_MS = 5000

QueryValue = Union[str, int, float, None]


def _check_timeout(timeout_ms: Any, name: str = "timeout_ms") -> int:
    # bool is an int subclass but never a sensible deadline
    if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, int) or timeout_ms <= 0:
        raise ParameterError(f"Parameter '{name}' must be a positive number of milliseconds")
    return timeout_ms


def encode_query(params: Optional[Mapping[str, QueryValue]]) -> dict[str, str]:
    """
    Turn query parameters into the string mapping sent on the wire.

    ``None`` values are dropped and numbers are written in base 10.
    """
    if not params:
        return {}
    return {key: str(value) for key, value in params.items() if value is not None}


class RequestExecutor:
    """
    Executes single HTTP exchanges against the MyWaifuList API.

    The configuration is frozen at construction and shared read-only by all
    concurrent calls. Each call gets its own deadline; one call timing out
    never affects another.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = DEFAULT_API_URL,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        user_agent: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize the executor.

        Args:
            api_key: Key registered with MyWaifuList, sent as the ``apikey`` header
            base_url: Override base URL (default: https://mywaifulist.moe/api/v1)
            timeout_ms: Deadline for each request in milliseconds (default: 5000)
            user_agent: User-Agent header (default: mywaifulist-py/<version>)
            session: Shared aiohttp session; when omitted one is created and owned

        Raises:
            ParameterError: If the API key or base URL is blank, or the timeout is not positive
        """
        if not api_key or not api_key.strip():
            raise ParameterError("Parameter 'api_key' cannot be left blank")
        if not base_url or not base_url.strip().rstrip("/"):
            raise ParameterError("Parameter 'base_url' cannot be left blank")
        if not base_url.startswith(("http://", "https://")):
            raise ParameterError(f"Parameter 'base_url' must be an http(s) URL: {base_url!r}")

        self._config = ClientConfig(
            base_url=base_url,
            api_key=api_key,
            timeout_ms=_check_timeout(timeout_ms),
            user_agent=user_agent or DEFAULT_USER_AGENT
        )
        self._session = session
        self._owns_session = session is None

        logger.debug(
            "Request executor initialized",
            base_url=self._config.base_url,
            timeout_ms=self._config.timeout_ms,
            shared_session=not self._owns_session
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def timeout_ms(self) -> int:
        return self._config.timeout_ms

    @property
    def user_agent(self) -> str:
        return self._config.user_agent

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(base_url={self.base_url!r}, "
            f"timeout_ms={self.timeout_ms})"
        )

    # Lifecycle

    async def __aenter__(self) -> "RequestExecutor":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the aiohttp session if this executor created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            logger.debug("Request executor session closed")
        if self._owns_session:
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        elif self._session.closed:
            if not self._owns_session:
                raise TransportError("The shared aiohttp session is closed")
            self._session = aiohttp.ClientSession()
        return self._session

    # Primitives

    async def get(
        self,
        path: str,
        params: Optional[Mapping[str, QueryValue]] = None,
        *,
        timeout_ms: Optional[int] = None
    ) -> Any:
        """
        Issue a GET request and return the decoded JSON body.

        Args:
            path: Resource path starting with ``/``, e.g. ``/waifu/rem``
            params: Query parameters; ``None`` values are omitted
            timeout_ms: Deadline for this call only (default: the configured one)

        Raises:
            ParameterError: On a blank path or invalid timeout
            RequestTimeoutError: When the deadline elapses first
            TransportError: On connection failures
            APIError: When the response status is not 200
            DecodeError: When the body is not valid JSON
        """
        request = ApiRequest(
            method=HTTPMethod.GET,
            path=self._check_path(path),
            query=encode_query(params)
        )
        return await self._send(request, timeout_ms)

    async def post_json(
        self,
        path: str,
        term: Any,
        *,
        timeout_ms: Optional[int] = None
    ) -> Any:
        """
        POST ``{"term": term}`` as JSON and return the decoded JSON body.

        Errors are the same as for :meth:`get`.
        """
        request = ApiRequest(
            method=HTTPMethod.POST,
            path=self._check_path(path),
            json_body={"term": term}
        )
        return await self._send(request, timeout_ms)

    # Internals

    @staticmethod
    def _check_path(path: str) -> str:
        if not path or not path.startswith("/"):
            raise ParameterError(f"Invalid request path: {path!r}")
        return path

    def _headers(self, request: ApiRequest) -> dict[str, str]:
        headers = {
            "apikey": self._config.api_key.get_secret_value(),
            "User-Agent": self._config.user_agent,
            "Accept": "application/json",
        }
        if request.json_body is not None:
            headers["Content-Type"] = "application/json"
        return headers

    async def _send(self, request: ApiRequest, timeout_ms: Optional[int] = None) -> Any:
        deadline_ms = (
            self._config.timeout_ms if timeout_ms is None
            else _check_timeout(timeout_ms)
        )
        url = f"{self._config.base_url}{request.path}"

        kwargs: dict[str, Any] = {"headers": self._headers(request)}
        if request.query:
            kwargs["params"] = request.query
        if request.json_body is not None:
            kwargs["data"] = json.dumps(request.json_body, separators=(",", ":"))

        session = self._get_session()

        with LogTimer(
            logger,
            f"MyWaifuList {request.describe()}",
            method=request.method.value,
            path=request.path,
            timeout_ms=deadline_ms
        ) as timer:
            try:
                # The deadline covers the body read as well as the headers
                async with asyncio.timeout(deadline_ms / 1000):
                    async with session.request(
                        request.method.value, url, **kwargs
                    ) as response:
                        status = response.status
                        raw = await response.read()
                        charset = response.charset
            except aiohttp.ClientError as e:
                raise TransportError(
                    f"Request {request.describe()} failed: {e}"
                ) from e
            except TimeoutError as e:
                raise RequestTimeoutError(
                    f"Request {request.describe()} timed out after {deadline_ms} ms",
                    timeout_ms=deadline_ms
                ) from e

            timer.add_context(status=status)
            return self._decode(status, raw, charset)

    @staticmethod
    def _decode(status: int, raw: bytes, charset: Optional[str]) -> Any:
        # Only an exact 200 counts as success; 201/204 etc. are API errors too
        if status != 200:
            raise APIError(status, _to_text(raw, charset), raw=raw)

        try:
            return json.loads(raw.decode(charset or "utf-8"))
        except (LookupError, ValueError) as e:
            # UnicodeDecodeError is a ValueError; LookupError is an unknown charset
            raise DecodeError(
                f"Response body is not valid JSON: {e}",
                body=_to_text(raw, charset)
            ) from e


def _to_text(raw: bytes, charset: Optional[str]) -> str:
    """Best-effort text of a body, for error reports only."""
    try:
        return raw.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")
