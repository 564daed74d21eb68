"""
modrinth.py

Client for the Modrinth v2 API (https://api.modrinth.com/v2).

Usage example:
    from shulkers import ModrinthAPI, FacetBuilder, FacetGroup, Facet, FacetOperator

    facets = (FacetBuilder()
              .add_group(FacetGroup.categories(["fabric", "quilt"]))
              .add_facet(Facet.versions("1.20.1"))
              .add_facet(Facet.downloads(FacetOperator.GREATER_THAN_OR_EQUAL, 1000)))

    with ModrinthAPI() as modrinth:
        results = modrinth.search_projects("sodium", facets=facets, limit=5)
        for hit in results.hits:
            print(hit.slug, hit.downloads)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import requests

from .cancellation import CancellationToken
from .client import APIClient, ClientConfig, RetryPolicy
from .endpoints import MODRINTHAPIURLS
from .exceptions import ModrinthError, ModrinthErrorCode, TransportFailure, UnexpectedPayloadError, map_modrinth_error
from .facets import FacetsInput, normalize_facets
from .types_models import (
    ModrinthProject,
    ModrinthSearchResults,
    ModrinthSortIndex,
    ModrinthTeamMember,
    ModrinthUser,
    ModrinthVersion,
    parse_list,
    parse_one,
)

logger = logging.getLogger(__name__)

MAX_RANDOM_PROJECTS = 100


def _version_map(payload: Any) -> Dict[str, ModrinthVersion]:
    if not isinstance(payload, dict):
        raise UnexpectedPayloadError("object", payload)
    return {h: parse_one(v, ModrinthVersion.from_dict) for h, v in payload.items()}


def _dependencies(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise UnexpectedPayloadError("object", payload)
    return {
        "projects": parse_list(payload.get("projects", []), ModrinthProject.from_dict),
        "versions": parse_list(payload.get("versions", []), ModrinthVersion.from_dict),
    }


def _teams(payload: Any) -> List[List[ModrinthTeamMember]]:
    if not isinstance(payload, list):
        raise UnexpectedPayloadError("array", payload)
    return [parse_list(team, ModrinthTeamMember.from_dict) for team in payload]


class ModrinthAPI(APIClient):
    """
    Modrinth API client.

    Parameters
    ----------
    base_url : Optional[str]
        Overrides https://api.modrinth.com/v2 (e.g. the staging API).
    user_agent : Optional[str]
        Overrides the default User-Agent. Modrinth asks for a uniquely
        identifying one ("github_user/project/1.0.0").
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
            MODRINTHAPIURLS.BASE_URL, base_url=base_url, user_agent=user_agent, timeout=timeout, retry=retry
        )
        super().__init__(config, map_modrinth_error, session=session)

    # Search
    def search_projects(
        self,
        query: Optional[str] = None,
        facets: Optional[FacetsInput] = None,
        index: Union[ModrinthSortIndex, str] = ModrinthSortIndex.RELEVANCE,
        offset: int = 0,
        limit: int = 10,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ModrinthSearchResults:
        """
        Search projects.

        Parameters
        ----------
        query : Optional[str]
            Free text query; omitted when empty.
        facets : str | FacetBuilder | FacetGroup | List[Facet] | None
            Filter expression. A flat list of facets is one OR group. The
            parameter is omitted entirely when the filter is empty.
        index : ModrinthSortIndex | str
            Sort order.
        offset, limit : int
            Paging.

        Returns
        -------
        ModrinthSearchResults
        """
        params: Dict[str, Any] = {"index": index, "offset": offset, "limit": limit}
        if query:
            params["query"] = query
        facet_string = normalize_facets(facets)
        if facet_string:
            params["facets"] = facet_string
        payload = self.execute_json(MODRINTHAPIURLS.SEARCH, params, cancel_token=cancel_token)
        return self.parse(parse_one, payload, ModrinthSearchResults.from_dict)

    # Projects
    def get_project(self, project_id: str) -> ModrinthProject:
        """Get a project by id or slug."""
        payload = self.execute_json(MODRINTHAPIURLS.PROJECT, path_params={"id": project_id})
        return self.parse(parse_one, payload, ModrinthProject.from_dict)

    def get_projects(self, ids: Sequence[str]) -> List[ModrinthProject]:
        payload = self.execute_json(MODRINTHAPIURLS.PROJECTS, {"ids": list(ids)})
        return self.parse(parse_list, payload, ModrinthProject.from_dict)

    def get_random_projects(self, count: int = 10) -> List[ModrinthProject]:
        """
        Get `count` random projects.

        Raises
        ------
        ModrinthError
            INVALID_SEARCH_PARAMETERS when count is outside 0..100 (no request is made).
        """
        if count < 0 or count > MAX_RANDOM_PROJECTS:
            raise ModrinthError(
                ModrinthErrorCode.INVALID_SEARCH_PARAMETERS,
                f"Count must be between 0 and {MAX_RANDOM_PROJECTS}",
                {"count": count},
            )
        payload = self.execute_json(MODRINTHAPIURLS.PROJECTS_RANDOM, {"count": count})
        return self.parse(parse_list, payload, ModrinthProject.from_dict)

    def check_project_validity(self, project_id: str) -> Dict[str, Any]:
        """Return {"id": ...} for an existing slug/id; a missing one raises RESOURCE_NOT_FOUND."""
        return self.execute_json(MODRINTHAPIURLS.PROJECT_CHECK, path_params={"id": project_id})

    def get_project_dependencies(self, project_id: str) -> Dict[str, Any]:
        """
        Return {"projects": [ModrinthProject], "versions": [ModrinthVersion]}.
        """
        payload = self.execute_json(MODRINTHAPIURLS.PROJECT_DEPENDENCIES, path_params={"id": project_id})
        return self.parse(_dependencies, payload)

    def get_project_team_members(self, project_id: str) -> List[ModrinthTeamMember]:
        payload = self.execute_json(MODRINTHAPIURLS.PROJECT_MEMBERS, path_params={"id": project_id})
        return self.parse(parse_list, payload, ModrinthTeamMember.from_dict)

    def get_project_versions(
        self,
        project_id: str,
        loaders: Optional[Sequence[str]] = None,
        game_versions: Optional[Sequence[str]] = None,
        featured: Optional[bool] = None,
    ) -> List[ModrinthVersion]:
        """
        List a project's versions, newest first, optionally filtered.

        `loaders` and `game_versions` are sent as JSON arrays.
        """
        params = {
            "loaders": list(loaders) if loaders is not None else None,
            "game_versions": list(game_versions) if game_versions is not None else None,
            "featured": featured,
        }
        payload = self.execute_json(MODRINTHAPIURLS.PROJECT_VERSIONS, params, path_params={"id": project_id})
        return self.parse(parse_list, payload, ModrinthVersion.from_dict)

    # Versions
    def get_version(self, version_id: str) -> ModrinthVersion:
        payload = self.execute_json(MODRINTHAPIURLS.VERSION, path_params={"id": version_id})
        return self.parse(parse_one, payload, ModrinthVersion.from_dict)

    def get_versions(self, ids: Sequence[str]) -> List[ModrinthVersion]:
        payload = self.execute_json(MODRINTHAPIURLS.VERSIONS, {"ids": list(ids)})
        return self.parse(parse_list, payload, ModrinthVersion.from_dict)

    def get_version_from_project(self, project_id: str, version_id: str) -> ModrinthVersion:
        """Get a version by id or version number within a project."""
        payload = self.execute_json(MODRINTHAPIURLS.PROJECT_VERSION,
                                    path_params={"id": project_id, "version_id": version_id})
        return self.parse(parse_one, payload, ModrinthVersion.from_dict)

    def get_version_from_hash(self, file_hash: str, algorithm: str = "sha1", multiple: bool = False) -> ModrinthVersion:
        payload = self.execute_json(MODRINTHAPIURLS.VERSION_FILE, {"algorithm": algorithm, "multiple": multiple},
                                    path_params={"hash": file_hash})
        return self.parse(parse_one, payload, ModrinthVersion.from_dict)

    def get_versions_from_hashes(self, hashes: Sequence[str], algorithm: str = "sha1") -> Dict[str, ModrinthVersion]:
        """Map each known file hash to its version (POST /version_files)."""
        payload = self.execute_post(MODRINTHAPIURLS.VERSION_FILES, {"hashes": list(hashes), "algorithm": algorithm})
        return self.parse(_version_map, payload)

    def get_latest_version_from_hash(
        self,
        file_hash: str,
        algorithm: str = "sha1",
        loaders: Optional[Sequence[str]] = None,
        game_versions: Optional[Sequence[str]] = None,
    ) -> ModrinthVersion:
        """Latest version of the project owning `file_hash`, matching the loader / game-version filters."""
        body = {"loaders": list(loaders or []), "game_versions": list(game_versions or [])}
        payload = self.execute_post(MODRINTHAPIURLS.VERSION_FILE_UPDATE, body, {"algorithm": algorithm},
                                    path_params={"hash": file_hash})
        return self.parse(parse_one, payload, ModrinthVersion.from_dict)

    def get_latest_versions_from_hashes(
        self,
        hashes: Sequence[str],
        algorithm: str = "sha1",
        loaders: Optional[Sequence[str]] = None,
        game_versions: Optional[Sequence[str]] = None,
    ) -> Dict[str, ModrinthVersion]:
        body = {
            "hashes": list(hashes),
            "algorithm": algorithm,
            "loaders": list(loaders or []),
            "game_versions": list(game_versions or []),
        }
        payload = self.execute_post(MODRINTHAPIURLS.VERSION_FILES_UPDATE, body)
        return self.parse(_version_map, payload)

    # Users and teams
    def get_user(self, user_id: str) -> ModrinthUser:
        payload = self.execute_json(MODRINTHAPIURLS.USER, path_params={"id": user_id})
        return self.parse(parse_one, payload, ModrinthUser.from_dict)

    def get_users(self, ids: Sequence[str]) -> List[ModrinthUser]:
        payload = self.execute_json(MODRINTHAPIURLS.USERS, {"ids": list(ids)})
        return self.parse(parse_list, payload, ModrinthUser.from_dict)

    def get_user_projects(self, user_id: str) -> List[ModrinthProject]:
        payload = self.execute_json(MODRINTHAPIURLS.USER_PROJECTS, path_params={"id": user_id})
        return self.parse(parse_list, payload, ModrinthProject.from_dict)

    def get_teams(self, team_ids: Sequence[str]) -> List[List[ModrinthTeamMember]]:
        payload = self.execute_json(MODRINTHAPIURLS.TEAMS, {"ids": list(team_ids)})
        return self.parse(_teams, payload)

    def get_team_members(self, team_id: str) -> List[ModrinthTeamMember]:
        payload = self.execute_json(MODRINTHAPIURLS.TEAM_MEMBERS, path_params={"id": team_id})
        return self.parse(parse_list, payload, ModrinthTeamMember.from_dict)

    # Tags (raw JSON arrays; an empty body yields EMPTY)
    def get_categories(self) -> List[Dict[str, Any]]:
        return self.execute_json(MODRINTHAPIURLS.TAG_CATEGORY)

    def get_loaders(self) -> List[Dict[str, Any]]:
        return self.execute_json(MODRINTHAPIURLS.TAG_LOADER)

    def get_game_versions(self) -> List[Dict[str, Any]]:
        return self.execute_json(MODRINTHAPIURLS.TAG_GAME_VERSION)

    def get_project_types(self) -> List[str]:
        return self.execute_json(MODRINTHAPIURLS.TAG_PROJECT_TYPE)

    def get_side_types(self) -> List[str]:
        return self.execute_json(MODRINTHAPIURLS.TAG_SIDE_TYPE)

    def get_report_types(self) -> List[str]:
        return self.execute_json(MODRINTHAPIURLS.TAG_REPORT_TYPE)

    # Misc
    def get_forge_updates(self, project_id: str) -> Dict[str, Any]:
        """Forge update-checker JSON ({"homepage": ..., "promos": {...}})."""
        return self.execute_json(MODRINTHAPIURLS.FORGE_UPDATES, path_params={"id": project_id})

    def get_statistics(self) -> Dict[str, Any]:
        return self.execute_json(MODRINTHAPIURLS.STATISTICS)

    # Downloads
    def download_file(self, url: str, *, cancel_token: Optional[CancellationToken] = None) -> requests.Response:
        """Stream any CDN file URL (e.g. ModrinthVersionFile.url)."""
        return self.execute_raw(url, cancel_token=cancel_token)

    def download_version_file(self, version_id: str) -> requests.Response:
        """
        Download the primary file of a version (or its first file when none is flagged primary).

        Raises
        ------
        ModrinthError
            RESOURCE_NOT_FOUND when the version has no files.
        """
        version = self.get_version(version_id)
        primary = version.primary_file
        if primary is None or not primary.url:
            raise ModrinthError(
                ModrinthErrorCode.RESOURCE_NOT_FOUND,
                f"No files found for version {version_id}",
                {"version_id": version_id},
            )
        return self.download_file(primary.url)

    def download_version_file_by_name(self, version_id: str, filename: str) -> requests.Response:
        version = self.get_version(version_id)
        file = version.file_named(filename)
        if file is None or not file.url:
            raise ModrinthError(
                ModrinthErrorCode.RESOURCE_NOT_FOUND,
                f"File {filename} not found in version {version_id}",
                {"version_id": version_id, "filename": filename},
            )
        return self.download_file(file.url)

    def download_latest_project_file(
        self,
        project_id: str,
        loaders: Optional[Sequence[str]] = None,
        game_versions: Optional[Sequence[str]] = None,
    ) -> requests.Response:
        """
        Download the primary file of the newest version matching the filters.

        Raises
        ------
        ModrinthError
            RESOURCE_NOT_FOUND when the project has no matching version.
        """
        versions = self.get_project_versions(project_id, loaders=loaders, game_versions=game_versions)
        if not versions:
            raise ModrinthError(
                ModrinthErrorCode.RESOURCE_NOT_FOUND,
                f"No versions found for project {project_id}",
                {"project_id": project_id, "loaders": loaders, "game_versions": game_versions},
            )
        return self.download_version_file(versions[0].id)

    def get_file_content(self, url: str) -> bytes:
        """Download `url` completely into memory."""
        with self.download_file(url) as response:
            try:
                return response.content
            except requests.RequestException as exc:
                failure = TransportFailure(exc, method="GET", url=url,
                                           connection_error=isinstance(exc, requests.ConnectionError))
                self.map_error(failure, ModrinthErrorCode.DOWNLOAD_FAILED, f"Failed to download from {url}")


__all__ = ["ModrinthAPI", "MAX_RANDOM_PROJECTS"]
