"""
shulkers package initializer.

This file exposes the high-level public API for the package:
 - SpigetAPI, ModrinthAPI, HangarAPI (service clients)
 - create_client (convenience factory by service name)
 - Facet / FacetGroup / FacetBuilder (Modrinth search filters)
 - exceptions (service errors and executor failures)
 - typed dataclasses and enums from types_models

Implementation notes:
 - Avoid heavy work at import time; no network access happens until a
   client method is called.
"""

from typing import Any

__version__ = "1.0.0"

from .exceptions import *  # noqa: F401,F403
from .cancellation import CancellationToken
from .client import EMPTY, APIClient, ClientConfig, EmptyResponse, RequestExecutor, RetryPolicy
from .facets import Facet, FacetBuilder, FacetField, FacetGroup, FacetOperator, normalize_facets
from .types_models import *  # noqa: F401,F403
from .utils import logger_setup, save_response
from .spiget import SpigetAPI
from .modrinth import ModrinthAPI
from .hangar import HangarAPI

from . import exceptions as _exceptions
from . import types_models as _types_models

_SERVICES = {
    "spiget": SpigetAPI,
    "modrinth": ModrinthAPI,
    "hangar": HangarAPI,
}


def create_client(service: str, **kwargs: Any) -> APIClient:
    """
    Convenience factory to create a configured service client.

    Parameters
    ----------
    service : str
        "spiget", "modrinth" or "hangar" (case-insensitive).
    kwargs : additional args forwarded to the client constructor
        (base_url, user_agent, timeout, retry, session).

    Returns
    -------
    APIClient

    Raises
    ------
    ValueError
        For an unknown service name.
    """
    try:
        cls = _SERVICES[service.lower()]
    except KeyError:
        raise ValueError(f"unknown service {service!r}; expected one of {sorted(_SERVICES)}") from None
    return cls(**kwargs)


__all__ = [
    "__version__",
    "SpigetAPI",
    "ModrinthAPI",
    "HangarAPI",
    "create_client",
    "APIClient",
    "ClientConfig",
    "RetryPolicy",
    "RequestExecutor",
    "EMPTY",
    "EmptyResponse",
    "CancellationToken",
    "Facet",
    "FacetGroup",
    "FacetBuilder",
    "FacetField",
    "FacetOperator",
    "normalize_facets",
    "logger_setup",
    "save_response",
] + list(_exceptions.__all__) + list(_types_models.__all__)
