"""
spiget.py

Client for the Spiget API (https://api.spiget.org/v2), a read-only mirror of
SpigotMC resources, authors and categories.

Usage example:
    from shulkers import SpigetAPI, SpigetSearchField

    with SpigetAPI(user_agent="MyPlugin/1.0.0") as spiget:
        hits = spiget.search_resources("worldedit", SpigetSearchField.NAME, size=10, sort="-downloads")
        resource = spiget.get_resource(28140)
        if not resource.external:
            save_response(spiget.download_resource(28140), "plugins/WorldEdit.jar")
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

import requests

from .cancellation import CancellationToken
from .client import APIClient, ClientConfig, RetryPolicy
from .endpoints import SPIGETAPIURLS
from .exceptions import SpigetError, SpigetErrorCode, map_spiget_error
from .types_models import (
    SpigetAuthor,
    SpigetCategory,
    SpigetResource,
    SpigetResourcesForVersion,
    SpigetReview,
    SpigetSearchField,
    SpigetUpdate,
    SpigetVersion,
    SpigetVersionMethod,
    parse_list,
    parse_one,
)

logger = logging.getLogger(__name__)


def _page(size: Optional[int], page: Optional[int], sort: Optional[str], fields: Optional[str]) -> Dict[str, Any]:
    return {"size": size, "page": page, "sort": sort, "fields": fields}


class SpigetAPI(APIClient):
    """
    Spiget API client.

    Most listing methods accept the common pagination options:

      - size : items per page
      - page : 1-based page number
      - sort : field name, prefixed with "-" for descending ("-downloads")
      - fields : comma separated field selection ("id,name,tag")

    Parameters
    ----------
    base_url : Optional[str]
        Overrides https://api.spiget.org/v2.
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
            SPIGETAPIURLS.BASE_URL, base_url=base_url, user_agent=user_agent, timeout=timeout, retry=retry
        )
        super().__init__(config, map_spiget_error, session=session)

    # Search
    def search_resources(
        self,
        query: str,
        field: Union[SpigetSearchField, str] = SpigetSearchField.NAME,
        *,
        size: Optional[int] = None,
        page: Optional[int] = None,
        sort: Optional[str] = None,
        fields: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[SpigetResource]:
        """
        Search resources by name or tag.

        Parameters
        ----------
        query : str
            Search text (percent-encoded into the path).
        field : SpigetSearchField | str
            Field to search in.

        Returns
        -------
        List[SpigetResource]
        """
        params = {"field": field, **_page(size, page, sort, fields)}
        payload = self.execute_json(SPIGETAPIURLS.SEARCH_RESOURCES, params,
                                    path_params={"query": query}, cancel_token=cancel_token)
        return self.parse(parse_list, payload, SpigetResource.from_dict)

    def search_authors(
        self,
        query: str,
        field: str = "name",
        *,
        size: Optional[int] = None,
        page: Optional[int] = None,
        sort: Optional[str] = None,
        fields: Optional[str] = None,
    ) -> List[SpigetAuthor]:
        params = {"field": field, **_page(size, page, sort, fields)}
        payload = self.execute_json(SPIGETAPIURLS.SEARCH_AUTHORS, params, path_params={"query": query})
        return self.parse(parse_list, payload, SpigetAuthor.from_dict)

    # Status
    def get_status(self) -> Dict[str, Any]:
        """Return the raw API status document (fetcher state and totals)."""
        return self.execute_json(SPIGETAPIURLS.STATUS)

    # Resources
    def get_resources(self, *, size: Optional[int] = None, page: Optional[int] = None,
                      sort: Optional[str] = None, fields: Optional[str] = None) -> List[SpigetResource]:
        payload = self.execute_json(SPIGETAPIURLS.RESOURCES, _page(size, page, sort, fields))
        return self.parse(parse_list, payload, SpigetResource.from_dict)

    def get_premium_resources(self, *, size: Optional[int] = None, page: Optional[int] = None,
                              sort: Optional[str] = None, fields: Optional[str] = None) -> List[SpigetResource]:
        payload = self.execute_json(SPIGETAPIURLS.RESOURCES_PREMIUM, _page(size, page, sort, fields))
        return self.parse(parse_list, payload, SpigetResource.from_dict)

    def get_free_resources(self, *, size: Optional[int] = None, page: Optional[int] = None,
                           sort: Optional[str] = None, fields: Optional[str] = None) -> List[SpigetResource]:
        payload = self.execute_json(SPIGETAPIURLS.RESOURCES_FREE, _page(size, page, sort, fields))
        return self.parse(parse_list, payload, SpigetResource.from_dict)

    def get_new_resources(self, *, size: Optional[int] = None, page: Optional[int] = None,
                          sort: Optional[str] = None, fields: Optional[str] = None) -> List[SpigetResource]:
        payload = self.execute_json(SPIGETAPIURLS.RESOURCES_NEW, _page(size, page, sort, fields))
        return self.parse(parse_list, payload, SpigetResource.from_dict)

    def get_resources_for_version_detailed(
        self,
        version: str,
        method: Union[SpigetVersionMethod, str] = SpigetVersionMethod.ANY,
        *,
        size: Optional[int] = None,
        page: Optional[int] = None,
        sort: Optional[str] = None,
        fields: Optional[str] = None,
    ) -> SpigetResourcesForVersion:
        """
        Resources tested against `version` (several versions may be comma separated).

        Returns the full answer including the checked versions and the method.
        """
        params = {"method": method, **_page(size, page, sort, fields)}
        payload = self.execute_json(SPIGETAPIURLS.RESOURCES_FOR_VERSION, params, path_params={"version": version})
        return self.parse(parse_one, payload, SpigetResourcesForVersion.from_dict)

    def get_resources_for_version(
        self,
        version: str,
        method: Union[SpigetVersionMethod, str] = SpigetVersionMethod.ANY,
        **options,
    ) -> List[SpigetResource]:
        """Like get_resources_for_version_detailed() but returns only the matching resources."""
        return self.get_resources_for_version_detailed(version, method, **options).match

    def get_resource(self, resource_id: int, *, cancel_token: Optional[CancellationToken] = None) -> SpigetResource:
        payload = self.execute_json(SPIGETAPIURLS.RESOURCE, path_params={"resource_id": resource_id},
                                    cancel_token=cancel_token)
        return self.parse(parse_one, payload, SpigetResource.from_dict)

    def get_resource_author(self, resource_id: int) -> SpigetAuthor:
        payload = self.execute_json(SPIGETAPIURLS.RESOURCE_AUTHOR, path_params={"resource_id": resource_id})
        return self.parse(parse_one, payload, SpigetAuthor.from_dict)

    def get_resource_versions(self, resource_id: int, *, size: Optional[int] = None, page: Optional[int] = None,
                              sort: Optional[str] = None, fields: Optional[str] = None) -> List[SpigetVersion]:
        payload = self.execute_json(SPIGETAPIURLS.RESOURCE_VERSIONS, _page(size, page, sort, fields),
                                    path_params={"resource_id": resource_id})
        return self.parse(parse_list, payload, SpigetVersion.from_dict)

    def get_resource_version(self, resource_id: int, version_id: int) -> SpigetVersion:
        payload = self.execute_json(SPIGETAPIURLS.RESOURCE_VERSION,
                                    path_params={"resource_id": resource_id, "version_id": version_id})
        return self.parse(parse_one, payload, SpigetVersion.from_dict)

    def get_resource_latest_version(self, resource_id: int) -> SpigetVersion:
        payload = self.execute_json(SPIGETAPIURLS.RESOURCE_LATEST_VERSION, path_params={"resource_id": resource_id})
        return self.parse(parse_one, payload, SpigetVersion.from_dict)

    def get_resource_updates(self, resource_id: int, *, size: Optional[int] = None, page: Optional[int] = None,
                             sort: Optional[str] = None, fields: Optional[str] = None) -> List[SpigetUpdate]:
        payload = self.execute_json(SPIGETAPIURLS.RESOURCE_UPDATES, _page(size, page, sort, fields),
                                    path_params={"resource_id": resource_id})
        return self.parse(parse_list, payload, SpigetUpdate.from_dict)

    def get_resource_latest_update(self, resource_id: int) -> SpigetUpdate:
        payload = self.execute_json(SPIGETAPIURLS.RESOURCE_LATEST_UPDATE, path_params={"resource_id": resource_id})
        return self.parse(parse_one, payload, SpigetUpdate.from_dict)

    def get_resource_reviews(self, resource_id: int, *, size: Optional[int] = None, page: Optional[int] = None,
                             sort: Optional[str] = None, fields: Optional[str] = None) -> List[SpigetReview]:
        payload = self.execute_json(SPIGETAPIURLS.RESOURCE_REVIEWS, _page(size, page, sort, fields),
                                    path_params={"resource_id": resource_id})
        return self.parse(parse_list, payload, SpigetReview.from_dict)

    # Downloads
    def download_resource(self, resource_id: int, *,
                          cancel_token: Optional[CancellationToken] = None) -> requests.Response:
        """
        Download the current file of a resource.

        The resource is looked up first; externally hosted resources cannot be
        fetched through Spiget.

        Returns
        -------
        requests.Response
            Streaming response; pass it to utils.save_response() or read it.

        Raises
        ------
        SpigetError
            EXTERNAL_FILE_DOWNLOAD when the resource is external (the download
            endpoint is not contacted); mapped errors otherwise.
        """
        self._ensure_downloadable(resource_id, None, cancel_token)
        url = self.build_url(SPIGETAPIURLS.RESOURCE_DOWNLOAD, {"resource_id": resource_id})
        return self.execute_raw(url, cancel_token=cancel_token)

    def download_resource_version(self, resource_id: int, version_id: Union[int, str], *,
                                  cancel_token: Optional[CancellationToken] = None) -> requests.Response:
        """Download a specific version (or "latest") of a resource. Same rules as download_resource()."""
        self._ensure_downloadable(resource_id, version_id, cancel_token)
        url = self.build_url(SPIGETAPIURLS.RESOURCE_VERSION_DOWNLOAD,
                             {"resource_id": resource_id, "version_id": version_id})
        return self.execute_raw(url, cancel_token=cancel_token)

    def _ensure_downloadable(self, resource_id: int, version_id, cancel_token) -> SpigetResource:
        resource = self.get_resource(resource_id, cancel_token=cancel_token)
        if resource.external:
            context: Dict[str, Any] = {"resource_id": resource_id, "external_url": resource.external_url}
            if version_id is not None:
                context["version_id"] = version_id
            logger.debug("resource %s is external (%s)", resource_id, resource.external_url)
            raise SpigetError(
                SpigetErrorCode.EXTERNAL_FILE_DOWNLOAD,
                f"Cannot download external resource {resource_id}. Use externalUrl instead.",
                context,
            )
        return resource

    # Authors
    def get_authors(self, *, size: Optional[int] = None, page: Optional[int] = None,
                    sort: Optional[str] = None, fields: Optional[str] = None) -> List[SpigetAuthor]:
        payload = self.execute_json(SPIGETAPIURLS.AUTHORS, _page(size, page, sort, fields))
        return self.parse(parse_list, payload, SpigetAuthor.from_dict)

    def get_author(self, author_id: int) -> SpigetAuthor:
        payload = self.execute_json(SPIGETAPIURLS.AUTHOR, path_params={"author_id": author_id})
        return self.parse(parse_one, payload, SpigetAuthor.from_dict)

    def get_author_resources(self, author_id: int, *, size: Optional[int] = None, page: Optional[int] = None,
                             sort: Optional[str] = None, fields: Optional[str] = None) -> List[SpigetResource]:
        payload = self.execute_json(SPIGETAPIURLS.AUTHOR_RESOURCES, _page(size, page, sort, fields),
                                    path_params={"author_id": author_id})
        return self.parse(parse_list, payload, SpigetResource.from_dict)

    def get_author_reviews(self, author_id: int, *, size: Optional[int] = None, page: Optional[int] = None,
                           sort: Optional[str] = None, fields: Optional[str] = None) -> List[SpigetReview]:
        payload = self.execute_json(SPIGETAPIURLS.AUTHOR_REVIEWS, _page(size, page, sort, fields),
                                    path_params={"author_id": author_id})
        return self.parse(parse_list, payload, SpigetReview.from_dict)

    # Categories
    def get_categories(self, *, size: Optional[int] = None, page: Optional[int] = None,
                       sort: Optional[str] = None, fields: Optional[str] = None) -> List[SpigetCategory]:
        payload = self.execute_json(SPIGETAPIURLS.CATEGORIES, _page(size, page, sort, fields))
        return self.parse(parse_list, payload, SpigetCategory.from_dict)

    def get_category(self, category_id: int) -> SpigetCategory:
        payload = self.execute_json(SPIGETAPIURLS.CATEGORY, path_params={"category_id": category_id})
        return self.parse(parse_one, payload, SpigetCategory.from_dict)

    def get_category_resources(self, category_id: int, *, size: Optional[int] = None, page: Optional[int] = None,
                               sort: Optional[str] = None, fields: Optional[str] = None) -> List[SpigetResource]:
        payload = self.execute_json(SPIGETAPIURLS.CATEGORY_RESOURCES, _page(size, page, sort, fields),
                                    path_params={"category_id": category_id})
        return self.parse(parse_list, payload, SpigetResource.from_dict)


__all__ = ["SpigetAPI"]
