from __future__ import annotations

import os,json,time,logging,math
from enum import Enum
from typing import *
from pathlib import Path
from datetime import timezone
from email.utils import parsedate_to_datetime

import requests
from requests.adapters import HTTPAdapter
from tqdm import tqdm

__all__ = [
    "DEFAULT_USER_AGENT",
    "RATE_LIMIT_HEADERS",
    "RETRY_AFTER_EPOCH_THRESHOLD",
    "logger_setup",
    "session_factory",
    "exponential_backoff",
    "parse_retry_after",
    "retry_after_from_headers",
    "encode_query_value",
    "build_query_params",
    "save_response",
]

DEFAULT_USER_AGENT = "shulkers/1.0.0"

# Checked in this order; the first header present wins.
RATE_LIMIT_HEADERS = ("Retry-After", "RateLimit-Reset", "X-RateLimit-Reset", "X-Rate-Limit-Reset")

# 2024-01-01T00:00:00Z. Numeric hints at or past this value are absolute epoch seconds.
RETRY_AFTER_EPOCH_THRESHOLD = 1704067200

logger = logging.getLogger(__name__)


def logger_setup(name: str = "shulkers",
                 level: int = logging.INFO,
                 *,
                 log_to_file: Optional[str] = None,
                 fmt: str = "%(asctime)s %(name)s %(levelname)s: %(message)s") -> logging.Logger:
    """
    Attach a console handler (and optionally a file handler) to a logger.

    The library only creates module loggers under ``shulkers.*`` and never
    attaches handlers; call this from application code to see attempt, retry
    and error-mapping records. Repeated calls for the same `name` do not add
    handlers again.

    Parameters
    ----------
    name : str
        Logger name (defaults to the package logger).
    level : int
        Level for the logger and its handlers (e.g. logging.DEBUG).
    log_to_file : Optional[str]
        Also write records to this file.

    Returns
    -------
    logging.Logger
    """
    log = logging.getLogger(name)
    log.setLevel(level)

    if not getattr(log, "_shulkers_setup_done", False):
        formatter = logging.Formatter(fmt=fmt)
        handlers: List[logging.Handler] = [logging.StreamHandler()]
        if log_to_file:
            handlers.append(logging.FileHandler(log_to_file, encoding="utf-8"))
        for handler in handlers:
            handler.setFormatter(formatter)
            log.addHandler(handler)
        log._shulkers_setup_done = True

    return log


def session_factory(user_agent: Optional[str] = None,
                    *,
                    pool_maxsize: int = 10,
                    pool_connections: int = 10,
                    default_headers: Optional[Dict[str, str]] = None) -> requests.Session:
    """
    Create a configured requests.Session for a service client.

    Features:
      - Sets default headers (Accept, User-Agent)
      - Installs an HTTPAdapter with connection pooling. urllib3-level retries
        stay disabled: retries are owned by the request executor so that the
        attempt counter and Retry-After handling live in one place.

    Parameters
    ----------
    user_agent : Optional[str]
        User-Agent string to set. If None, DEFAULT_USER_AGENT is used.
    pool_maxsize : int
        Max connection pool size for the adapter.
    pool_connections : int
        Pool connections count for the adapter.
    default_headers : Optional[Dict[str,str]]
        Additional headers to set on session.headers (merged with defaults).

    Returns
    -------
    requests.Session
    """
    session = requests.Session()

    headers = {
        "Accept": "application/json",
        "User-Agent": user_agent or DEFAULT_USER_AGENT,
    }
    if default_headers:
        headers.update(default_headers)
    session.headers.update(headers)

    adapter = HTTPAdapter(max_retries=0, pool_connections=pool_connections, pool_maxsize=pool_maxsize)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


def exponential_backoff(attempt: int, base: float = 0.3, factor: float = 2.0) -> float:
    """
    Calculate an exponential backoff delay in seconds: ``base * factor ** (attempt - 1)``.

    No jitter is applied; the result is deterministic for a given attempt.
    Ceilings are applied by the caller (see RetryPolicy.backoff_limit).

    Parameters
    ----------
    attempt : int
        1-based retry number.
    base : float
        Delay before the first retry.
    factor : float
        Multiplicative growth per attempt.

    Returns
    -------
    float
        Delay in seconds.

    Raises
    ------
    ValueError
        If `attempt` < 1 or parameters are negative.
    """
    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    if base < 0 or factor <= 0:
        raise ValueError("base must be >= 0 and factor must be positive")
    return float(base * (factor ** (attempt - 1)))


def parse_retry_after(value: Optional[Union[str, int, float]], *, now: Optional[float] = None) -> Optional[float]:
    """
    Parse a Retry-After style header value into a delay in seconds.

    Supported forms:
      - a plain number of seconds from now ("120")
      - a number at or past RETRY_AFTER_EPOCH_THRESHOLD, which is read as an
        absolute epoch-seconds timestamp (X-RateLimit-Reset style) and turned
        into a delay by subtracting `now`
      - an HTTP-date ("Wed, 21 Oct 2015 07:28:00 GMT")

    Values close to the threshold are inherently ambiguous; the threshold is
    applied as-is.

    Parameters
    ----------
    value : Optional[Union[str,int,float]]
        Raw header value.
    now : Optional[float]
        Current epoch seconds (defaults to time.time()).

    Returns
    -------
    Optional[float]
        Delay in seconds (never negative), or None when the value is missing
        or cannot be parsed.
    """
    if value is None:
        return None
    current = time.time() if now is None else float(now)

    text = str(value).strip()
    if not text:
        return None

    seconds: Optional[float]
    try:
        seconds = float(text)
    except ValueError:
        seconds = None

    if seconds is not None:
        if not math.isfinite(seconds):
            return None
        if seconds >= RETRY_AFTER_EPOCH_THRESHOLD:
            seconds -= current
        return max(0.0, seconds)

    try:
        dt = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return max(0.0, dt.timestamp() - current)


def retry_after_from_headers(headers: Mapping[str, str], *, now: Optional[float] = None) -> Optional[float]:
    """
    Return the delay advertised by the first recognised rate-limit header, or None.

    `headers` should be case-insensitive (requests' CaseInsensitiveDict);
    plain dicts are searched case-insensitively as a fallback.
    """
    if not headers:
        return None
    lowered = None
    for name in RATE_LIMIT_HEADERS:
        raw = headers.get(name)
        if raw is None:
            if lowered is None:
                lowered = {str(k).lower(): v for k, v in headers.items()}
            raw = lowered.get(name.lower())
        if raw is not None and str(raw).strip():
            return parse_retry_after(raw, now=now)
    return None


def encode_query_value(value: Any) -> Any:
    """
    Encode a single query parameter value the way the target APIs expect.

    - lists/tuples/dicts are JSON-stringified (compact, no spaces)
    - enums are replaced by their value
    - booleans become "true"/"false"
    - other scalars pass through unchanged
    """
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(_plain(value), separators=(",", ":"))
    return value


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    return value


def build_query_params(options: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Build the query-parameter dict sent with a request.

    Keys whose value is None are omitted entirely (never sent as "" or "null").
    Insertion order is preserved.

    Example
    -------
    >>> build_query_params({"query": "sodium", "ids": ["a", "b"], "limit": 10, "x": None})
    {'query': 'sodium', 'ids': '["a","b"]', 'limit': 10}
    """
    if options is None:
        return None
    return {str(key): encode_query_value(value) for key, value in options.items() if value is not None}


def save_response(response: requests.Response,
                  dest: Union[str, Path],
                  *,
                  chunk_size: int = 8192,
                  progress: bool = False) -> Path:
    """
    Stream a raw download response to `dest`.

    The body is written to a ``.part`` file next to the destination and
    promoted with os.replace once complete, so a partially written file never
    appears under the final name. The response is always closed.

    Parameters
    ----------
    response : requests.Response
        Response returned by a client's download method.
    dest : str | Path
        Target file path; parent directories are created.
    chunk_size : int
        Read buffer size in bytes.
    progress : bool
        Show a tqdm progress bar sized from Content-Length.

    Returns
    -------
    Path
        The final file path.
    """
    target = Path(dest)
    target.parent.mkdir(parents=True, exist_ok=True)
    part = target.with_name(target.name + ".part")

    total = response.headers.get("Content-Length")
    total_bytes = int(total) if total and str(total).isdigit() else None

    try:
        with open(part, "wb") as f, tqdm(total=total_bytes, unit="B", unit_scale=True,
                                         desc=target.name, disable=not progress) as bar:
            for chunk in response.iter_content(chunk_size=chunk_size):
                if not chunk:
                    continue
                f.write(chunk)
                bar.update(len(chunk))
        os.replace(str(part), str(target))
    except BaseException:
        if part.exists():
            part.unlink()
        raise
    finally:
        response.close()

    logger.debug("saved %s (%s bytes)", target, target.stat().st_size)
    return target
