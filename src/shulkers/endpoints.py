"""
endpoints.py

Centralized containers for the REST endpoint paths of the three services.

These classes only store **relative path templates**; the service clients
substitute path parameters (percent-encoded) and prepend the configured base
URL.

Usage:
    >>> api.execute_json(MODRINTHAPIURLS.PROJECT, path_params={"id": "sodium"})
"""


class SPIGETAPIURLS:
    """
    Spiget (SpigotMC mirror) endpoints.

    Documentation Source:
        - https://spiget.org/documentation
    """

    BASE_URL = "https://api.spiget.org/v2"

    STATUS = "/status"

    RESOURCES = "/resources"
    RESOURCES_PREMIUM = "/resources/premium"
    RESOURCES_FREE = "/resources/free"
    RESOURCES_NEW = "/resources/new"
    RESOURCES_FOR_VERSION = "/resources/for/{version}"
    RESOURCE = "/resources/{resource_id}"
    RESOURCE_AUTHOR = "/resources/{resource_id}/author"
    RESOURCE_DOWNLOAD = "/resources/{resource_id}/download"
    RESOURCE_VERSIONS = "/resources/{resource_id}/versions"
    RESOURCE_VERSION = "/resources/{resource_id}/versions/{version_id}"
    RESOURCE_LATEST_VERSION = "/resources/{resource_id}/versions/latest"
    RESOURCE_VERSION_DOWNLOAD = "/resources/{resource_id}/versions/{version_id}/download"
    RESOURCE_UPDATES = "/resources/{resource_id}/updates"
    RESOURCE_LATEST_UPDATE = "/resources/{resource_id}/updates/latest"
    RESOURCE_REVIEWS = "/resources/{resource_id}/reviews"

    AUTHORS = "/authors"
    AUTHOR = "/authors/{author_id}"
    AUTHOR_RESOURCES = "/authors/{author_id}/resources"
    AUTHOR_REVIEWS = "/authors/{author_id}/reviews"

    CATEGORIES = "/categories"
    CATEGORY = "/categories/{category_id}"
    CATEGORY_RESOURCES = "/categories/{category_id}/resources"

    SEARCH_RESOURCES = "/search/resources/{query}"
    SEARCH_AUTHORS = "/search/authors/{query}"


class MODRINTHAPIURLS:
    """
    Modrinth v2 endpoints.

    Documentation Source:
        - https://docs.modrinth.com/api/

    Notes:
        - VERSION_FILES, VERSION_FILE_UPDATE and VERSION_FILES_UPDATE are POST endpoints.
    """

    BASE_URL = "https://api.modrinth.com/v2"

    SEARCH = "/search"

    PROJECT = "/project/{id}"
    PROJECTS = "/projects"
    PROJECTS_RANDOM = "/projects_random"
    PROJECT_CHECK = "/project/{id}/check"
    PROJECT_DEPENDENCIES = "/project/{id}/dependencies"
    PROJECT_MEMBERS = "/project/{id}/members"
    PROJECT_VERSIONS = "/project/{id}/version"
    PROJECT_VERSION = "/project/{id}/version/{version_id}"

    VERSION = "/version/{id}"
    VERSIONS = "/versions"
    VERSION_FILE = "/version_file/{hash}"
    VERSION_FILE_UPDATE = "/version_file/{hash}/update"
    VERSION_FILES = "/version_files"
    VERSION_FILES_UPDATE = "/version_files/update"

    USER = "/user/{id}"
    USERS = "/users"
    USER_PROJECTS = "/user/{id}/projects"

    TEAMS = "/teams"
    TEAM_MEMBERS = "/team/{id}/members"

    TAG_CATEGORY = "/tag/category"
    TAG_LOADER = "/tag/loader"
    TAG_GAME_VERSION = "/tag/game_version"
    TAG_PROJECT_TYPE = "/tag/project_type"
    TAG_SIDE_TYPE = "/tag/side_type"
    TAG_REPORT_TYPE = "/tag/report_type"

    FORGE_UPDATES = "/updates/{id}/forge_updates.json"
    STATISTICS = "/statistics"


class HANGARAPIURLS:
    """
    Hangar (PaperMC) v1 endpoints.

    Documentation Source:
        - https://hangar.papermc.io/api-docs
    """

    BASE_URL = "https://hangar.papermc.io/api/v1"

    PROJECTS = "/projects"
    PROJECT = "/projects/{slug}"
    PROJECT_VERSIONS = "/projects/{slug}/versions"
    PROJECT_VERSION = "/projects/{slug}/versions/{version}"
    PROJECT_STATS = "/projects/{slug}/stats"

    USER = "/users/{username}"

    CATEGORIES = "/data/categories"
    PLATFORMS = "/data/platforms"


__all__ = ["SPIGETAPIURLS", "MODRINTHAPIURLS", "HANGARAPIURLS"]
