"""
hangar.py

Client for the Hangar v1 API (https://hangar.papermc.io/api/v1), PaperMC's
plugin repository for Paper, Velocity and Waterfall.

Usage example:
    from shulkers import HangarAPI, HangarPlatform

    with HangarAPI() as hangar:
        page = hangar.search_projects(q="worldedit", platform=HangarPlatform.PAPER, limit=5)
        latest = hangar.get_latest_version("WorldEdit", HangarPlatform.PAPER)
        save_response(hangar.download_version("WorldEdit", latest.name, HangarPlatform.PAPER), "WorldEdit.jar")
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

import requests

from .cancellation import CancellationToken
from .client import APIClient, ClientConfig, RetryPolicy
from .endpoints import HANGARAPIURLS
from .exceptions import HangarError, HangarErrorCode, map_hangar_error
from .types_models import (
    HangarCategory,
    HangarPage,
    HangarPlatform,
    HangarProject,
    HangarProjectSort,
    HangarUser,
    HangarVersion,
    HangarVersionChannel,
    parse_one,
    parse_page,
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 25


def _as_list(value) -> Optional[List[Any]]:
    """Wrap a single filter value into a list; None and empty values become None."""
    if value is None or value == "":
        return None
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value) or None
    return [value]


def _platform_key(platform: Union[HangarPlatform, str]) -> str:
    value = platform.value if isinstance(platform, Enum) else str(platform)
    return value.upper()


def _date_param(value: Union[str, datetime]) -> str:
    return value.isoformat() if isinstance(value, datetime) else value


class HangarAPI(APIClient):
    """
    Hangar API client. All covered endpoints are public; no API key is sent.

    Parameters
    ----------
    base_url : Optional[str]
        Overrides https://hangar.papermc.io/api/v1.
    user_agent : Optional[str]
        Overrides the default User-Agent.
    timeout : Optional[float]
        Per-attempt timeout in seconds.
    retry : Optional[RetryPolicy]
        Overrides the default retry policy.
    session : Optional[requests.Session]
        Session to use instead of a pooled one created by the client.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        retry: Optional[RetryPolicy] = None,
        *,
        session: Optional[requests.Session] = None,
    ):
        config = ClientConfig.for_service(
            HANGARAPIURLS.BASE_URL, base_url=base_url, user_agent=user_agent, timeout=timeout, retry=retry
        )
        super().__init__(config, map_hangar_error, session=session)

    def search_projects(
        self,
        q: Optional[str] = None,
        category: Optional[Union[HangarCategory, str, Sequence[Union[HangarCategory, str]]]] = None,
        platform: Optional[Union[HangarPlatform, str, Sequence[Union[HangarPlatform, str]]]] = None,
        owner: Optional[str] = None,
        sort: Optional[Union[HangarProjectSort, str]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> HangarPage[HangarProject]:
        """
        Search projects.

        Parameters
        ----------
        q : Optional[str]
            Free text query.
        category, platform
            A single value or a list; single values are sent as one-element lists.
        owner : Optional[str]
            Restrict to one owner.
        sort : Optional[HangarProjectSort | str]
        limit : Optional[int]
            Page size, capped at 25.
        offset : Optional[int]

        Returns
        -------
        HangarPage[HangarProject]
        """
        params: Dict[str, Any] = {
            "q": q or None,
            "owner": owner or None,
            "sort": sort or None,
            "limit": min(limit, MAX_PAGE_SIZE) if limit is not None else None,
            "offset": offset,
            "category": _as_list(category),
            "platform": _as_list(platform),
        }
        payload = self.execute_json(HANGARAPIURLS.PROJECTS, params, cancel_token=cancel_token)
        return self.parse(parse_page, payload, HangarProject.from_dict)

    def get_project(self, slug_or_id: Union[str, int]) -> HangarProject:
        payload = self.execute_json(HANGARAPIURLS.PROJECT, path_params={"slug": slug_or_id})
        return self.parse(parse_one, payload, HangarProject.from_dict)

    def get_user(self, username: str) -> HangarUser:
        payload = self.execute_json(HANGARAPIURLS.USER, path_params={"username": username})
        return self.parse(parse_one, payload, HangarUser.from_dict)

    def get_project_versions(
        self,
        slug_or_id: Union[str, int],
        platform: Optional[Union[HangarPlatform, str, Sequence[Union[HangarPlatform, str]]]] = None,
        channel: Optional[Union[HangarVersionChannel, str, Sequence[Union[HangarVersionChannel, str]]]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> HangarPage[HangarVersion]:
        params = {
            "limit": limit,
            "offset": offset,
            "platform": _as_list(platform),
            "channel": _as_list(channel),
        }
        payload = self.execute_json(HANGARAPIURLS.PROJECT_VERSIONS, params, path_params={"slug": slug_or_id})
        return self.parse(parse_page, payload, HangarVersion.from_dict)

    def get_project_version(self, slug_or_id: Union[str, int], version: str) -> HangarVersion:
        payload = self.execute_json(HANGARAPIURLS.PROJECT_VERSION,
                                    path_params={"slug": slug_or_id, "version": version})
        return self.parse(parse_one, payload, HangarVersion.from_dict)

    def get_latest_version(
        self,
        slug_or_id: Union[str, int],
        platform: Optional[Union[HangarPlatform, str]] = None,
        channel: Optional[Union[HangarVersionChannel, str]] = None,
    ) -> HangarVersion:
        """
        Fetch the newest version (full details) matching the optional filters.

        Raises
        ------
        HangarError
            RESOURCE_NOT_FOUND when the filtered listing is empty.
        """
        page = self.get_project_versions(slug_or_id, platform=platform, channel=channel, limit=1)
        if not page.result:
            raise HangarError(
                HangarErrorCode.RESOURCE_NOT_FOUND,
                f"No versions found for project {slug_or_id}",
                {"slug_or_id": slug_or_id, "platform": platform, "channel": channel},
            )
        return self.get_project_version(slug_or_id, page.result[0].name)

    def download_version(
        self,
        slug_or_id: Union[str, int],
        version: str,
        platform: Union[HangarPlatform, str],
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> requests.Response:
        """
        Download the file of `version` built for `platform`.

        Returns
        -------
        requests.Response
            Streaming response.

        Raises
        ------
        HangarError
            RESOURCE_NOT_FOUND (with ``available_platforms`` in the context) when
            the version has no file for the platform; EXTERNAL_FILE_DOWNLOAD when
            the platform entry only points to an external URL.
        """
        details = self.get_project_version(slug_or_id, version)
        key = _platform_key(platform)
        entry = details.downloads.get(key)
        if entry is None:
            raise HangarError(
                HangarErrorCode.RESOURCE_NOT_FOUND,
                f"Version {version} is not available for platform {key}",
                {"slug_or_id": slug_or_id, "version": version, "platform": key,
                 "available_platforms": details.platforms},
            )
        if not entry.downloadUrl:
            raise HangarError(
                HangarErrorCode.EXTERNAL_FILE_DOWNLOAD,
                f"Version {version} for {key} is hosted externally. Use external_url instead.",
                {"slug_or_id": slug_or_id, "version": version, "platform": key,
                 "external_url": entry.externalUrl},
            )
        logger.debug("downloading %s %s (%s) from %s", slug_or_id, version, key, entry.downloadUrl)
        return self.execute_raw(entry.downloadUrl, cancel_token=cancel_token)

    def download_latest_version(
        self,
        slug_or_id: Union[str, int],
        platform: Union[HangarPlatform, str],
        channel: Optional[Union[HangarVersionChannel, str]] = None,
    ) -> requests.Response:
        latest = self.get_latest_version(slug_or_id, platform, channel)
        return self.download_version(slug_or_id, latest.name, platform)

    def get_project_stats(
        self,
        slug_or_id: Union[str, int],
        from_date: Union[str, datetime],
        to_date: Union[str, datetime],
    ) -> Dict[str, Any]:
        """Daily view / download statistics between two ISO dates (raw JSON)."""
        params = {"fromDate": _date_param(from_date), "toDate": _date_param(to_date)}
        return self.execute_json(HANGARAPIURLS.PROJECT_STATS, params, path_params={"slug": slug_or_id})

    def get_categories(self) -> List[Any]:
        return self.execute_json(HANGARAPIURLS.CATEGORIES)

    def get_platforms(self) -> List[Any]:
        return self.execute_json(HANGARAPIURLS.PLATFORMS)


__all__ = ["HangarAPI", "MAX_PAGE_SIZE"]
