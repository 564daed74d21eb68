"""
exceptions.py

Centralized exception types for the library.

Two families live here:

 - ``RequestFailure`` and its subclasses are raised by the request executor.
   They describe *what went wrong on the wire* (timeout, HTTP status,
   transport error) and know nothing about the service being called.
 - ``ServiceError`` and its per-service subclasses are what callers see.
   Each carries a machine readable ``code`` from a per-service enumeration,
   a human readable ``message`` and a ``context`` dict holding the original
   failure for diagnostics.

``ErrorMapper`` turns the first family into the second.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Iterable, NoReturn, Optional, Type

logger = logging.getLogger(__name__)


class RequestFailure(Exception):
    """
    Base class for failures raised by the request executor.

    Attributes
    ----------
    method : str
        HTTP method of the failed request.
    url : str
        Fully qualified URL of the failed request.
    endpoint : Optional[str]
        Service-relative endpoint, filled in by the service client.
    """

    def __init__(self, message: str, *, method: str = "GET", url: str = ""):
        self.method = method
        self.url = url
        self.endpoint: Optional[str] = None
        super().__init__(message)


class TimeoutFailure(RequestFailure):
    """A single attempt exceeded the configured timeout. Never retried."""

    def __init__(self, message: str, *, method: str = "GET", url: str = "", timeout: Optional[float] = None):
        self.timeout = timeout
        super().__init__(message, method=method, url=url)


class HttpStatusFailure(RequestFailure):
    """The server answered with a non-2xx status."""

    def __init__(
        self,
        status: int,
        *,
        method: str = "GET",
        url: str = "",
        headers: Optional[Dict[str, str]] = None,
        response: Optional[Any] = None,
    ):
        self.status = int(status)
        self.headers = headers if headers is not None else {}
        self.response = response
        super().__init__(f"HTTP {self.status} for {method} {url}", method=method, url=url)


class TransportFailure(RequestFailure):
    """
    Connection level failure (DNS, refused or reset connection, bad URL...).

    ``connection_error`` is True when the cause is a genuine network problem;
    the mappers only report those as NETWORK_ERROR.
    """

    def __init__(self, cause: BaseException, *, method: str = "GET", url: str = "", connection_error: bool = True):
        self.cause = cause
        self.connection_error = connection_error
        super().__init__(f"{type(cause).__name__}: {cause}", method=method, url=url)


class ResponseDecodeFailure(RequestFailure):
    """A successful response carried a body that is not valid JSON."""

    def __init__(self, cause: BaseException, *, method: str = "GET", url: str = "", status: Optional[int] = None):
        self.cause = cause
        self.status = status
        super().__init__(f"Invalid JSON body: {cause}", method=method, url=url)


class UnexpectedPayloadError(TypeError):
    """A decoded body does not have the JSON shape a typed result is built from."""

    def __init__(self, expected: str, payload: Any):
        self.expected = expected
        self.actual = type(payload).__name__
        super().__init__(f"expected a JSON {expected}, got {self.actual}")


class RequestCancelled(Exception):
    """Raised when the caller's cancellation token fires before or between attempts."""

    def __init__(self, reason: Any = None):
        self.reason = reason
        super().__init__(str(reason) if reason is not None else "Request cancelled")


class SpigetErrorCode(str, Enum):
    EXTERNAL_FILE_DOWNLOAD = "EXTERNAL_FILE_DOWNLOAD"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    INVALID_SEARCH_PARAMETERS = "INVALID_SEARCH_PARAMETERS"
    API_REQUEST_FAILED = "API_REQUEST_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_VERSION = "INVALID_VERSION"
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"


class ModrinthErrorCode(str, Enum):
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    INVALID_SEARCH_PARAMETERS = "INVALID_SEARCH_PARAMETERS"
    API_REQUEST_FAILED = "API_REQUEST_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_VERSION = "INVALID_VERSION"
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
    EXTERNAL_FILE_DOWNLOAD = "EXTERNAL_FILE_DOWNLOAD"


class HangarErrorCode(str, Enum):
    API_REQUEST_FAILED = "API_REQUEST_FAILED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INVALID_SEARCH_PARAMETERS = "INVALID_SEARCH_PARAMETERS"
    NETWORK_ERROR = "NETWORK_ERROR"
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    EXTERNAL_FILE_DOWNLOAD = "EXTERNAL_FILE_DOWNLOAD"


class ServiceError(Exception):
    """
    Base class for all errors surfaced to library users.

    Attributes
    ----------
    code : Enum
        Member of the service's error-code enumeration.
    message : str
        Human readable error message.
    context : dict
        Structured details: original ``status``, ``method``, ``url``,
        ``endpoint`` and the underlying ``cause`` when known.
    """

    service = "service"

    def __init__(self, code: Enum, message: str, context: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})
        super().__init__(self.__str__())

    @property
    def status(self) -> Optional[int]:
        return self.context.get("status")

    def __str__(self) -> str:
        base = f"[{self.code.value}] {self.message}"
        if self.status is not None:
            base += f" (status={self.status})"
        return base

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} code={self.code.value!r} message={self.message!r}>"

    def to_dict(self) -> Dict[str, Any]:
        """JSON friendly representation; the cause is rendered as a string."""
        context = {k: (str(v) if isinstance(v, BaseException) else v) for k, v in self.context.items()}
        return {
            "name": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "context": context,
        }


class SpigetError(ServiceError):
    """Error raised by the Spiget client."""

    service = "spiget"


class ModrinthError(ServiceError):
    """Error raised by the Modrinth client."""

    service = "modrinth"


class HangarError(ServiceError):
    """Error raised by the Hangar client."""

    service = "hangar"


class ErrorMapper:
    """
    Deterministic, total mapping from a ``RequestFailure`` to a ``ServiceError``.

    One instance exists per service; the instances differ only in the error
    class, the code enumeration, which statuses count as "unauthorized" and
    whether a dedicated validation status exists.

    Calling the mapper always raises; it never returns.

    Parameters
    ----------
    error_cls : Type[ServiceError]
        Exception class to raise.
    codes : Type[Enum]
        Code enumeration of the service.
    unauthorized_statuses : Iterable[int]
        Statuses mapped to UNAUTHORIZED.
    unauthorized_message : str
        Message used for those statuses.
    validation_status : Optional[int]
        Status mapped to VALIDATION_ERROR (Hangar only).
    """

    def __init__(
        self,
        error_cls: Type[ServiceError],
        codes: Type[Enum],
        *,
        unauthorized_statuses: Iterable[int] = (401,),
        unauthorized_message: str = "Unauthorized access",
        validation_status: Optional[int] = None,
    ):
        self.error_cls = error_cls
        self.codes = codes
        self.unauthorized_statuses = frozenset(unauthorized_statuses)
        self.unauthorized_message = unauthorized_message
        self.validation_status = validation_status

    def classify_status(self, status: int):
        """Return ``(code, message)`` for an HTTP status, or None when the table has no row for it."""
        codes = self.codes
        if status == 404:
            return codes.RESOURCE_NOT_FOUND, "Resource not found"
        if status in self.unauthorized_statuses:
            return codes.UNAUTHORIZED, self.unauthorized_message
        if status == 429:
            return codes.RATE_LIMIT_EXCEEDED, "Rate limit exceeded"
        if self.validation_status is not None and status == self.validation_status:
            return codes.VALIDATION_ERROR, "Validation error - check your request parameters"
        if 400 <= status < 500:
            return codes.INVALID_SEARCH_PARAMETERS, "Invalid request parameters"
        if 500 <= status < 600:
            return codes.API_REQUEST_FAILED, "Server error"
        return None

    def resolve_code(self, code: Any) -> Enum:
        """Member of this service's enumeration for `code`; unknown codes become API_REQUEST_FAILED."""
        if isinstance(code, self.codes):
            return code
        name = code.value if isinstance(code, Enum) else code
        try:
            return self.codes(name)
        except ValueError:
            logger.warning("%s has no error code %r; using API_REQUEST_FAILED", self.codes.__name__, name)
            return self.codes.API_REQUEST_FAILED

    def __call__(
        self,
        failure: BaseException,
        default_code: Any,
        default_message: str,
    ) -> NoReturn:
        context: Dict[str, Any] = {"cause": failure}
        if isinstance(failure, RequestFailure):
            context["method"] = failure.method
            context["url"] = failure.url
            if failure.endpoint is not None:
                context["endpoint"] = failure.endpoint

        code = self.resolve_code(default_code)
        message = default_message

        if isinstance(failure, HttpStatusFailure):
            context["status"] = failure.status
            row = self.classify_status(failure.status)
            if row is not None:
                code, message = row
        elif isinstance(failure, TimeoutFailure):
            suffix = f" after {failure.timeout:g}s" if failure.timeout is not None else ""
            message = f"{default_message} (request timed out{suffix})"
            context["timeout"] = failure.timeout
        elif isinstance(failure, TransportFailure) and failure.connection_error:
            code, message = self.codes.NETWORK_ERROR, "Network error occurred"
        elif isinstance(failure, ResponseDecodeFailure) and failure.status is not None:
            context["status"] = failure.status
        elif isinstance(failure, UnexpectedPayloadError):
            context["expected"] = failure.expected
            context["actual"] = failure.actual
            code = self.codes.__members__.get("INVALID_RESPONSE", code)
            message = f"{default_message}: {failure}"

        logger.debug("%s: mapped %s to %s", self.error_cls.service, type(failure).__name__, code.value)
        raise self.error_cls(code, message, context) from failure


map_spiget_error = ErrorMapper(SpigetError, SpigetErrorCode)
map_modrinth_error = ErrorMapper(ModrinthError, ModrinthErrorCode)
map_hangar_error = ErrorMapper(
    HangarError,
    HangarErrorCode,
    unauthorized_statuses=(401, 403),
    unauthorized_message="Unauthorized access - this endpoint may require authentication",
    validation_status=422,
)


__all__ = [
    "RequestFailure",
    "TimeoutFailure",
    "HttpStatusFailure",
    "TransportFailure",
    "ResponseDecodeFailure",
    "RequestCancelled",
    "UnexpectedPayloadError",
    "SpigetErrorCode",
    "ModrinthErrorCode",
    "HangarErrorCode",
    "ServiceError",
    "SpigetError",
    "ModrinthError",
    "HangarError",
    "ErrorMapper",
    "map_spiget_error",
    "map_modrinth_error",
    "map_hangar_error",
]
