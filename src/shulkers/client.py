"""
client.py - Shared request core used by the Spiget, Modrinth and Hangar clients.

Provides:
  - RetryPolicy / ClientConfig: explicit, immutable configuration values.
  - RequestExecutor: issues HTTP calls through a requests.Session, applying the
    retry / backoff / Retry-After / timeout policy. It raises RequestFailure
    subclasses only and never a service-typed error.
  - APIClient: base for the service clients. Joins a base URL with endpoint
    templates, encodes query parameters, and hands every executor failure to an
    injected error-mapping strategy.

Usage example:
    from shulkers.client import APIClient, ClientConfig
    from shulkers.exceptions import map_modrinth_error

    api = APIClient(ClientConfig.for_service("https://api.modrinth.com/v2"), map_modrinth_error)
    stats = api.execute_json("/statistics")
"""

from __future__ import annotations

import time
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import *
from urllib.parse import quote

import requests

from .cancellation import CancellationToken
from .exceptions import (
    HttpStatusFailure,
    RequestCancelled,
    RequestFailure,
    ResponseDecodeFailure,
    TimeoutFailure,
    TransportFailure,
    UnexpectedPayloadError,
)
from .utils import DEFAULT_USER_AGENT, build_query_params, exponential_backoff, retry_after_from_headers, session_factory

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

RETRY_METHODS = frozenset({"GET", "PUT", "HEAD", "DELETE", "OPTIONS", "TRACE"})
RETRY_STATUS_CODES = frozenset({408, 413, 429, 500, 502, 503, 504})
RETRY_AFTER_STATUS_CODES = frozenset({413, 429, 503})

ErrorMapperFn = Callable[[BaseException, Any, str], NoReturn]


class EmptyResponse:
    """Type of the EMPTY sentinel returned for 204 / zero-length bodies."""

    _instance: Optional["EmptyResponse"] = None

    def __new__(cls) -> "EmptyResponse":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "EMPTY"


EMPTY = EmptyResponse()


@dataclass(frozen=True)
class RetryPolicy:
    """
    Which failures are retried, how many times and with what delay.

    Attributes
    ----------
    limit : int
        Maximum number of retries after the first attempt.
    methods : frozenset
        Upper-case methods eligible for retry at all.
    status_codes : frozenset
        HTTP statuses that may be retried.
    after_status_codes : frozenset
        Statuses for which a Retry-After / rate-limit reset header is honoured.
    backoff : Callable[[int], float]
        Retry number (1-based) -> delay in seconds.
    backoff_limit : Optional[float]
        Ceiling for computed backoff delays (None = unbounded).
    max_retry_after : Optional[float]
        Ceiling for header-advertised waits (None = unbounded).
    max_total_backoff : Optional[float]
        Ceiling on cumulative waiting for one logical request; when the next
        wait would cross it the failure propagates instead.
    """

    limit: int = 2
    methods: FrozenSet[str] = RETRY_METHODS
    status_codes: FrozenSet[int] = RETRY_STATUS_CODES
    after_status_codes: FrozenSet[int] = RETRY_AFTER_STATUS_CODES
    backoff: Callable[[int], float] = field(default=exponential_backoff, compare=False)
    backoff_limit: Optional[float] = None
    max_retry_after: Optional[float] = None
    max_total_backoff: Optional[float] = None

    def __post_init__(self):
        if self.limit < 0:
            raise ValueError("retry limit must be >= 0")
        object.__setattr__(self, "methods", frozenset(m.upper() for m in self.methods))
        object.__setattr__(self, "status_codes", frozenset(self.status_codes))
        object.__setattr__(self, "after_status_codes", frozenset(self.after_status_codes))

    @classmethod
    def disabled(cls) -> "RetryPolicy":
        """Policy that never retries."""
        return cls(limit=0)

    def delay_for(self, method: str, failure: BaseException, retry_count: int, *, now: Optional[float] = None) -> Optional[float]:
        """
        Compute the wait before retry number `retry_count`, or None if the failure is terminal.

        Parameters
        ----------
        method : str
            HTTP method of the request.
        failure : BaseException
            Failure raised by the last attempt.
        retry_count : int
            1-based number of the retry being considered.
        now : Optional[float]
            Epoch seconds used to resolve absolute rate-limit reset values.

        Returns
        -------
        Optional[float]
            Seconds to wait, or None when the failure must propagate.
        """
        if method.upper() not in self.methods:
            return None
        if retry_count > self.limit or isinstance(failure, TimeoutFailure):
            return None
        if isinstance(failure, ResponseDecodeFailure):
            return None
        if isinstance(failure, TransportFailure) and not failure.connection_error:
            return None

        if isinstance(failure, HttpStatusFailure):
            if failure.status not in self.status_codes:
                return None
            if failure.status == 413:
                return None
            if failure.status in self.after_status_codes:
                after = retry_after_from_headers(failure.headers, now=now)
                if after is not None:
                    if self.max_retry_after is not None:
                        after = min(after, self.max_retry_after)
                    return after

        delay = float(self.backoff(retry_count))
        if self.backoff_limit is not None:
            delay = min(delay, self.backoff_limit)
        return max(0.0, delay)


@dataclass(frozen=True)
class ClientConfig:
    """
    Construction-time configuration of a service client.

    Attributes
    ----------
    base_url : str
        Service root, without trailing slash.
    user_agent : str
        Value of the User-Agent header sent with every request.
    timeout : float
        Per-attempt timeout in seconds.
    retry : RetryPolicy
        Retry behaviour.
    """

    base_url: str
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def __post_init__(self):
        if not isinstance(self.base_url, str) or not self.base_url.startswith("http"):
            raise ValueError("base_url must be an http/https URL")
        if not self.user_agent or not isinstance(self.user_agent, str):
            raise ValueError("user_agent must be a non-empty string")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        object.__setattr__(self, "timeout", float(self.timeout))

    @classmethod
    def for_service(
        cls,
        default_base_url: str,
        *,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        retry: Optional[RetryPolicy] = None,
    ) -> "ClientConfig":
        """Build a config from a service default plus optional overrides; None means "keep the default"."""
        return cls(
            base_url=base_url or default_base_url,
            user_agent=user_agent or DEFAULT_USER_AGENT,
            timeout=timeout if timeout is not None else DEFAULT_TIMEOUT,
            retry=retry if retry is not None else RetryPolicy(),
        )

    def with_overrides(self, **changes) -> "ClientConfig":
        return replace(self, **changes)


class RequestExecutor:
    """
    Performs one logical HTTP operation with uniform retry / timeout / header injection.

    Each call owns its own retry counter; the executor holds no per-request
    state and can be shared by threads.

    Parameters
    ----------
    session : requests.Session
        Session used to issue requests.
    timeout : float
        Per-attempt timeout in seconds.
    retry : RetryPolicy
        Retry behaviour.
    headers : Optional[Dict[str, str]]
        Headers attached to every request (User-Agent).
    """

    def __init__(
        self,
        session: requests.Session,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        retry: Optional[RetryPolicy] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.session = session
        self.timeout = float(timeout)
        self.retry = retry or RetryPolicy()
        self.headers: Dict[str, str] = dict(headers or {})

    def request_json(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """
        Issue a request and return the decoded JSON body.

        Returns EMPTY for a 204 response or a zero-length body; those are never
        handed to the JSON parser.

        Raises
        ------
        TimeoutFailure, HttpStatusFailure, TransportFailure, ResponseDecodeFailure
            When the request ultimately fails.
        RequestCancelled
            When `cancel_token` fires before an attempt, while one is in flight
            (the response is discarded) or during a backoff wait.
        """
        method = method.upper()
        resp = self._run(method, url, params=params, json_body=json_body, stream=False, cancel_token=cancel_token)

        if resp.status_code == 204 or not resp.content:
            return EMPTY
        try:
            return resp.json()
        except ValueError as exc:
            raise ResponseDecodeFailure(exc, method=method, url=url, status=resp.status_code) from exc

    def request_raw(self, url: str, *, cancel_token: Optional[CancellationToken] = None) -> requests.Response:
        """
        GET `url` through the same retry pipeline and return the live, streaming response.

        The body is not read or parsed; the caller owns the response and should
        close it (or use it as a context manager).
        """
        return self._run("GET", url, params=None, json_body=None, stream=True, cancel_token=cancel_token)

    # internals
    def _run(self, method: str, url: str, *, params, json_body, stream: bool, cancel_token) -> requests.Response:
        retry_count = 0
        waited = 0.0
        while True:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            logger.debug("%s %s (attempt %d)", method, url, retry_count + 1)
            try:
                resp = self._send(method, url, params=params, json_body=json_body, stream=stream)
            except RequestFailure as failure:
                retry_count += 1
                delay = self.retry.delay_for(method, failure, retry_count)
                if delay is None:
                    logger.debug("%s %s failed terminally after %d attempt(s): %s", method, url, retry_count, failure)
                    raise
                limit = self.retry.max_total_backoff
                if limit is not None and waited + delay > limit:
                    logger.debug("%s %s: total backoff ceiling %.2fs reached", method, url, limit)
                    raise
                if isinstance(failure, HttpStatusFailure) and failure.status in self.retry.after_status_codes:
                    logger.warning("%s %s returned %s; retrying in %.2fs", method, url, failure.status, delay)
                else:
                    logger.debug("%s %s attempt %d failed (%s); retrying in %.2fs", method, url, retry_count, failure, delay)
                self._sleep(delay, cancel_token)
                waited += delay
                continue

            # the token may have fired while the call was in flight
            if cancel_token is not None and cancel_token.is_cancelled():
                resp.close()
                raise RequestCancelled(cancel_token.reason)
            return resp

    def _sleep(self, delay: float, cancel_token: Optional[CancellationToken]) -> None:
        if cancel_token is None:
            time.sleep(delay)
            return
        if cancel_token.wait(delay):
            raise RequestCancelled(cancel_token.reason)

    def _send(self, method: str, url: str, *, params, json_body, stream: bool) -> requests.Response:
        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self.headers,
                timeout=self.timeout,
                stream=stream,
            )
        except requests.Timeout as exc:
            raise TimeoutFailure(f"{method} {url} timed out", method=method, url=url, timeout=self.timeout) from exc
        except requests.ConnectionError as exc:
            raise TransportFailure(exc, method=method, url=url, connection_error=True) from exc
        except requests.RequestException as exc:
            raise TransportFailure(exc, method=method, url=url, connection_error=False) from exc

        if not 200 <= resp.status_code < 300:
            if stream:
                resp.close()
            raise HttpStatusFailure(resp.status_code, method=method, url=url, headers=resp.headers, response=resp)
        return resp


class APIClient:
    """
    Base for the service clients: composes a RequestExecutor, an error-mapping
    strategy and the service's endpoint templates.

    Parameters
    ----------
    config : ClientConfig
        Base URL, User-Agent, timeout and retry policy.
    map_error : Callable[[failure, default_code, default_message], NoReturn]
        Strategy turning executor failures into service errors. Must always raise.
    session : Optional[requests.Session]
        Session to use; a pooled one is created when omitted. Sessions passed
        in are not closed by close().
    """

    def __init__(self, config: ClientConfig, map_error: ErrorMapperFn, *, session: Optional[requests.Session] = None):
        self.config = config
        self.map_error = map_error
        self._owns_session = session is None
        self.session = session if session is not None else session_factory(config.user_agent)
        self.executor = RequestExecutor(
            self.session,
            timeout=config.timeout,
            retry=config.retry,
            headers={"User-Agent": config.user_agent},
        )

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def user_agent(self) -> str:
        return self.config.user_agent

    def render_endpoint(self, endpoint: str, path_params: Optional[Mapping[str, Any]] = None) -> str:
        """
        Substitute `path_params` into an endpoint template and return the relative path.

        Values are percent-encoded (including "/"); enums contribute their value.

        Example:
            render_endpoint("/project/{id}/version", {"id": "sodium"})  # "/project/sodium/version"
        """
        if path_params:
            encoded = {k: quote(str(v.value if isinstance(v, Enum) else v), safe="") for k, v in path_params.items()}
            try:
                endpoint = endpoint.format(**encoded)
            except (KeyError, IndexError) as e:
                raise ValueError(f"Failed to format endpoint path '{endpoint}' with {path_params}: {e}") from e
        if not endpoint.startswith("/"):
            endpoint = "/" + endpoint
        return endpoint

    def build_url(self, endpoint: str, path_params: Optional[Mapping[str, Any]] = None) -> str:
        """Build a fully qualified URL from a path template."""
        return f"{self.base_url}{self.render_endpoint(endpoint, path_params)}"

    def execute_json(self, endpoint: str, params: Optional[Mapping[str, Any]] = None, *,
                     path_params: Optional[Mapping[str, Any]] = None,
                     cancel_token: Optional[CancellationToken] = None) -> Any:
        """
        GET `endpoint` (relative to the base URL) and return its decoded JSON.

        Parameters
        ----------
        endpoint : str
            Path or path template ("/project/{id}").
        params : Optional[Mapping[str, Any]]
            Query parameters; None values are dropped, lists are JSON-encoded.
        path_params : Optional[Mapping[str, Any]]
            Values substituted into the template.
        cancel_token : Optional[CancellationToken]
            Cancels pending attempts and backoff waits.

        Raises
        ------
        ServiceError
            Whatever `map_error` raises for the failure.
        """
        path = self.render_endpoint(endpoint, path_params)
        try:
            return self.executor.request_json(
                "GET", f"{self.base_url}{path}", params=build_query_params(params), cancel_token=cancel_token
            )
        except RequestFailure as failure:
            failure.endpoint = path
            self.map_error(failure, "API_REQUEST_FAILED", f"Failed to fetch {path}")

    def execute_post(self, endpoint: str, body: Any = None, params: Optional[Mapping[str, Any]] = None, *,
                     path_params: Optional[Mapping[str, Any]] = None,
                     cancel_token: Optional[CancellationToken] = None) -> Any:
        """POST a JSON `body` to `endpoint` and return the decoded JSON answer. Never retried."""
        path = self.render_endpoint(endpoint, path_params)
        try:
            return self.executor.request_json(
                "POST", f"{self.base_url}{path}", params=build_query_params(params), json_body=body,
                cancel_token=cancel_token,
            )
        except RequestFailure as failure:
            failure.endpoint = path
            self.map_error(failure, "API_REQUEST_FAILED", f"Failed to post to {path}")

    def execute_raw(self, url: str, *, cancel_token: Optional[CancellationToken] = None) -> requests.Response:
        """GET an absolute `url` and return the unparsed streaming response (file downloads)."""
        try:
            return self.executor.request_raw(url, cancel_token=cancel_token)
        except RequestFailure as failure:
            self.map_error(failure, "DOWNLOAD_FAILED", f"Failed to download from {url}")

    def parse(self, parser: Callable[..., Any], payload: Any, *args: Any) -> Any:
        """
        Apply a types_models parser to a decoded body.

        A body of the wrong shape (including EMPTY where an object or array is
        required) is handed to `map_error` like any other failure, yielding
        INVALID_RESPONSE where the service defines it.

        Example:
            self.parse(parse_one, payload, ModrinthProject.from_dict)
        """
        try:
            return parser(payload, *args)
        except UnexpectedPayloadError as exc:
            self.map_error(exc, "API_REQUEST_FAILED", "Unexpected response shape")

    def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} base_url={self.base_url!r} user_agent={self.user_agent!r}>"
