"""
types_models.py

Typed dataclasses and enums for the objects returned by the Spiget, Modrinth
and Hangar APIs.

Purpose
-------
- Provide typed, documented containers for the most used response shapes.
- Supply `from_dict()` factories converting raw JSON into typed objects.
- Keep the original payload available in `.data` for forward compatibility.

Notes
-----
- Field values are not validated: missing keys become None / empty lists and
  unknown keys survive in `.data`. Only the top-level shape is checked by
  parse_one / parse_list / parse_page.
- Field names mirror the JSON keys of each service (camelCase for Spiget and
  Hangar, snake_case for Modrinth).
- Shapes without a dataclass here are returned by the clients as plain JSON.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Optional, List, Dict, Any, Callable, Generic, TypeVar
from enum import Enum
from datetime import datetime, timezone
import dateutil.parser as _dateutil_parser

from .exceptions import UnexpectedPayloadError

T = TypeVar("T")


def _without_raw(items) -> Dict[str, Any]:
    return {k: v for k, v in items if k != "data"}


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp (Modrinth / Hangar style) into an aware datetime.

    Returns None when `value` is empty or cannot be parsed.
    """
    if not value:
        return None
    try:
        dt = _dateutil_parser.isoparse(value)
    except (ValueError, OverflowError, TypeError):
        try:
            dt = _dateutil_parser.parse(value)
        except (ValueError, OverflowError, TypeError):
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def from_epoch_seconds(value: Optional[int]) -> Optional[datetime]:
    """Convert Spiget epoch seconds into an aware UTC datetime (None stays None)."""
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (ValueError, OverflowError, OSError, TypeError):
        return None


def parse_one(payload: Any, factory: Callable[[Dict[str, Any]], T]) -> T:
    """Build one model from a JSON object.

    Raises
    ------
    UnexpectedPayloadError
        When `payload` is not an object (an array, a scalar or the EMPTY body).
    """
    if not isinstance(payload, dict):
        raise UnexpectedPayloadError("object", payload)
    return factory(payload)


def parse_list(payload: Any, factory: Callable[[Dict[str, Any]], T]) -> List[T]:
    """Build a list of models from a JSON array of objects; any other shape raises UnexpectedPayloadError."""
    if not isinstance(payload, list):
        raise UnexpectedPayloadError("array", payload)
    return [parse_one(item, factory) for item in payload]


def parse_page(payload: Any, item: Callable[[Dict[str, Any]], T]) -> "HangarPage[T]":
    """Build a HangarPage from a ``{"pagination": ..., "result": [...]}`` object."""
    if not isinstance(payload, dict):
        raise UnexpectedPayloadError("object", payload)
    result = payload.get("result")
    if result is not None and not isinstance(result, list):
        raise UnexpectedPayloadError("array", result)
    return HangarPage.from_dict(payload, lambda entry: parse_one(entry, item))


# Enums
class SpigetSearchField(str, Enum):
    NAME = "name"
    TAG = "tag"


class SpigetVersionMethod(str, Enum):
    """How /resources/for/{versions} combines several versions."""
    ANY = "any"
    ALL = "all"


class ModrinthSortIndex(str, Enum):
    RELEVANCE = "relevance"
    DOWNLOADS = "downloads"
    FOLLOWS = "follows"
    NEWEST = "newest"
    UPDATED = "updated"


class ModrinthProjectType(str, Enum):
    MOD = "mod"
    MODPACK = "modpack"
    RESOURCEPACK = "resourcepack"
    SHADER = "shader"


class ModrinthSideType(str, Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"


class ModrinthVersionType(str, Enum):
    RELEASE = "release"
    BETA = "beta"
    ALPHA = "alpha"


class HangarCategory(str, Enum):
    ADMIN_TOOLS = "admin_tools"
    CHAT = "chat"
    DEV_TOOLS = "dev_tools"
    ECONOMY = "economy"
    GAMEPLAY = "gameplay"
    GAMES = "games"
    PROTECTION = "protection"
    ROLE_PLAYING = "role_playing"
    WORLD_MANAGEMENT = "world_management"
    MISC = "misc"


class HangarPlatform(str, Enum):
    PAPER = "PAPER"
    VELOCITY = "VELOCITY"
    WATERFALL = "WATERFALL"


class HangarProjectSort(str, Enum):
    VIEWS = "views"
    DOWNLOADS = "downloads"
    NEWEST = "newest"
    STARS = "stars"
    UPDATED = "updated"
    RECENT_DOWNLOADS = "recent_downloads"
    RECENT_VIEWS = "recent_views"


class HangarVersionChannel(str, Enum):
    RELEASE = "Release"
    SNAPSHOT = "Snapshot"
    ALPHA = "Alpha"
    BETA = "Beta"


class HangarVisibility(str, Enum):
    PUBLIC = "public"
    UNLISTED = "unlisted"
    PRIVATE = "private"


# Spiget
@dataclass
class SpigetFile:
    """
    Download descriptor of a Spiget resource.

    Attributes
    ----------
    type : Optional[str]
        File extension (".jar") or "external".
    size : Optional[float]
        File size expressed in `sizeUnit`.
    url : Optional[str]
        Relative SpigotMC download path.
    externalUrl : Optional[str]
        Off-site download location for externally hosted resources.
    """
    type: Optional[str] = None
    size: Optional[float] = None
    sizeUnit: Optional[str] = None
    url: Optional[str] = None
    externalUrl: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpigetFile":
        d = d or {}
        return cls(
            type=d.get("type"),
            size=d.get("size"),
            sizeUnit=d.get("sizeUnit"),
            url=d.get("url"),
            externalUrl=d.get("externalUrl"),
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)


@dataclass
class SpigetRating:
    count: Optional[int] = None
    average: Optional[float] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpigetRating":
        d = d or {}
        return cls(count=d.get("count"), average=d.get("average"), data=d)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)


@dataclass
class SpigetAuthor:
    id: Optional[int] = None
    name: Optional[str] = None
    iconUrl: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpigetAuthor":
        d = d or {}
        return cls(
            id=d.get("id"),
            name=d.get("name"),
            iconUrl=(d.get("icon") or {}).get("url"),
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)


@dataclass
class SpigetCategory:
    id: Optional[int] = None
    name: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpigetCategory":
        d = d or {}
        return cls(id=d.get("id"), name=d.get("name"), data=d)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)


@dataclass
class SpigetVersion:
    id: Optional[int] = None
    uuid: Optional[str] = None
    name: Optional[str] = None
    releaseDate: Optional[int] = None
    downloads: Optional[int] = None
    rating: Optional[SpigetRating] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpigetVersion":
        d = d or {}
        return cls(
            id=d.get("id"),
            uuid=d.get("uuid"),
            name=d.get("name"),
            releaseDate=d.get("releaseDate"),
            downloads=d.get("downloads"),
            rating=SpigetRating.from_dict(d["rating"]) if d.get("rating") else None,
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)

    def release_date_dt(self) -> Optional[datetime]:
        return from_epoch_seconds(self.releaseDate)


@dataclass
class SpigetReview:
    id: Optional[int] = None
    author: Optional[SpigetAuthor] = None
    rating: Optional[SpigetRating] = None
    message: Optional[str] = None
    responseMessage: Optional[str] = None
    version: Optional[str] = None
    date: Optional[int] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpigetReview":
        d = d or {}
        return cls(
            id=d.get("id"),
            author=SpigetAuthor.from_dict(d["author"]) if d.get("author") else None,
            rating=SpigetRating.from_dict(d["rating"]) if d.get("rating") else None,
            message=d.get("message"),
            responseMessage=d.get("responseMessage"),
            version=d.get("version"),
            date=d.get("date"),
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)


@dataclass
class SpigetUpdate:
    id: Optional[int] = None
    resource: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[int] = None
    likes: Optional[int] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpigetUpdate":
        d = d or {}
        return cls(
            id=d.get("id"),
            resource=d.get("resource"),
            title=d.get("title"),
            description=d.get("description"),
            date=d.get("date"),
            likes=d.get("likes"),
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)

    def date_dt(self) -> Optional[datetime]:
        return from_epoch_seconds(self.date)


@dataclass
class SpigetResource:
    """
    Typed representation of a SpigotMC resource (plugin).

    Important fields:
      - id / name / tag: identity and short description
      - external: True when the file is hosted off-site (cannot be downloaded
        through Spiget; see file.externalUrl)
      - premium / price / currency: paid resources
      - releaseDate / updateDate: epoch seconds
    """
    id: Optional[int] = None
    name: Optional[str] = None
    tag: Optional[str] = None
    contributors: Optional[str] = None
    likes: Optional[int] = None
    file: Optional[SpigetFile] = None
    testedVersions: List[str] = field(default_factory=list)
    links: Dict[str, Any] = field(default_factory=dict)
    rating: Optional[SpigetRating] = None
    releaseDate: Optional[int] = None
    updateDate: Optional[int] = None
    downloads: Optional[int] = None
    external: bool = False
    premium: bool = False
    price: Optional[float] = None
    currency: Optional[str] = None
    author: Optional[SpigetAuthor] = None
    category: Optional[SpigetCategory] = None
    version: Optional[SpigetVersion] = None
    sourceCodeLink: Optional[str] = None
    donationLink: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpigetResource":
        d = d or {}
        return cls(
            id=d.get("id"),
            name=d.get("name"),
            tag=d.get("tag"),
            contributors=d.get("contributors"),
            likes=d.get("likes"),
            file=SpigetFile.from_dict(d["file"]) if d.get("file") else None,
            testedVersions=d.get("testedVersions") or [],
            links=d.get("links") or {},
            rating=SpigetRating.from_dict(d["rating"]) if d.get("rating") else None,
            releaseDate=d.get("releaseDate"),
            updateDate=d.get("updateDate"),
            downloads=d.get("downloads"),
            external=bool(d.get("external", False)),
            premium=bool(d.get("premium", False)),
            price=d.get("price"),
            currency=d.get("currency"),
            author=SpigetAuthor.from_dict(d["author"]) if d.get("author") else None,
            category=SpigetCategory.from_dict(d["category"]) if d.get("category") else None,
            version=SpigetVersion.from_dict(d["version"]) if d.get("version") else None,
            sourceCodeLink=d.get("sourceCodeLink"),
            donationLink=d.get("donationLink"),
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)

    @property
    def external_url(self) -> Optional[str]:
        return self.file.externalUrl if self.file else None

    def release_date_dt(self) -> Optional[datetime]:
        return from_epoch_seconds(self.releaseDate)

    def update_date_dt(self) -> Optional[datetime]:
        return from_epoch_seconds(self.updateDate)

    def __repr__(self) -> str:
        return f"<SpigetResource id={self.id} name={self.name!r} external={self.external}>"


@dataclass
class SpigetResourcesForVersion:
    """Answer of /resources/for/{versions}: the checked versions, the method and the matches."""
    check: List[str] = field(default_factory=list)
    method: Optional[str] = None
    match: List[SpigetResource] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpigetResourcesForVersion":
        d = d or {}
        return cls(
            check=d.get("check") or [],
            method=d.get("method"),
            match=[SpigetResource.from_dict(r) for r in (d.get("match") or [])],
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)


# Modrinth
@dataclass
class ModrinthVersionFile:
    """
    One file attached to a Modrinth version.

    Attributes
    ----------
    hashes : Dict[str,str]
        Algorithm name ("sha1", "sha512") to hex digest.
    url : Optional[str]
        Direct CDN download URL.
    primary : bool
        Whether this is the version's main file.
    """
    hashes: Dict[str, str] = field(default_factory=dict)
    url: Optional[str] = None
    filename: Optional[str] = None
    primary: bool = False
    size: Optional[int] = None
    file_type: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModrinthVersionFile":
        d = d or {}
        return cls(
            hashes=d.get("hashes") or {},
            url=d.get("url"),
            filename=d.get("filename"),
            primary=bool(d.get("primary", False)),
            size=d.get("size"),
            file_type=d.get("file_type"),
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)


@dataclass
class ModrinthVersion:
    id: Optional[str] = None
    project_id: Optional[str] = None
    author_id: Optional[str] = None
    featured: bool = False
    name: Optional[str] = None
    version_number: Optional[str] = None
    changelog: Optional[str] = None
    dependencies: List[Dict[str, Any]] = field(default_factory=list)
    game_versions: List[str] = field(default_factory=list)
    version_type: Optional[str] = None
    loaders: List[str] = field(default_factory=list)
    date_published: Optional[str] = None
    downloads: Optional[int] = None
    files: List[ModrinthVersionFile] = field(default_factory=list)
    status: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModrinthVersion":
        d = d or {}
        return cls(
            id=d.get("id"),
            project_id=d.get("project_id"),
            author_id=d.get("author_id"),
            featured=bool(d.get("featured", False)),
            name=d.get("name"),
            version_number=d.get("version_number"),
            changelog=d.get("changelog"),
            dependencies=d.get("dependencies") or [],
            game_versions=d.get("game_versions") or [],
            version_type=d.get("version_type"),
            loaders=d.get("loaders") or [],
            date_published=d.get("date_published"),
            downloads=d.get("downloads"),
            files=[ModrinthVersionFile.from_dict(f) for f in (d.get("files") or [])],
            status=d.get("status"),
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)

    @property
    def primary_file(self) -> Optional[ModrinthVersionFile]:
        """The file flagged primary, else the first file, else None."""
        for f in self.files:
            if f.primary:
                return f
        return self.files[0] if self.files else None

    def file_named(self, filename: str) -> Optional[ModrinthVersionFile]:
        for f in self.files:
            if f.filename == filename:
                return f
        return None

    def date_published_dt(self) -> Optional[datetime]:
        return parse_iso_datetime(self.date_published)

    def __repr__(self) -> str:
        return f"<ModrinthVersion id={self.id!r} version_number={self.version_number!r} files={len(self.files)}>"


@dataclass
class ModrinthProject:
    """
    Typed representation of a Modrinth project (mod, modpack, resource pack, shader).

    `license` is kept as the raw {id, name, url} dict.
    """
    id: Optional[str] = None
    slug: Optional[str] = None
    project_type: Optional[str] = None
    team: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    body: Optional[str] = None
    published: Optional[str] = None
    updated: Optional[str] = None
    status: Optional[str] = None
    license: Dict[str, Any] = field(default_factory=dict)
    client_side: Optional[str] = None
    server_side: Optional[str] = None
    downloads: Optional[int] = None
    followers: Optional[int] = None
    categories: List[str] = field(default_factory=list)
    game_versions: List[str] = field(default_factory=list)
    loaders: List[str] = field(default_factory=list)
    versions: List[str] = field(default_factory=list)
    icon_url: Optional[str] = None
    source_url: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModrinthProject":
        d = d or {}
        return cls(
            id=d.get("id"),
            slug=d.get("slug"),
            project_type=d.get("project_type"),
            team=d.get("team"),
            title=d.get("title"),
            description=d.get("description"),
            body=d.get("body"),
            published=d.get("published"),
            updated=d.get("updated"),
            status=d.get("status"),
            license=d.get("license") or {},
            client_side=d.get("client_side"),
            server_side=d.get("server_side"),
            downloads=d.get("downloads"),
            followers=d.get("followers"),
            categories=d.get("categories") or [],
            game_versions=d.get("game_versions") or [],
            loaders=d.get("loaders") or [],
            versions=d.get("versions") or [],
            icon_url=d.get("icon_url"),
            source_url=d.get("source_url"),
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)

    def published_dt(self) -> Optional[datetime]:
        return parse_iso_datetime(self.published)

    def updated_dt(self) -> Optional[datetime]:
        return parse_iso_datetime(self.updated)

    def __repr__(self) -> str:
        return f"<ModrinthProject id={self.id!r} slug={self.slug!r}>"


@dataclass
class ModrinthSearchHit:
    project_id: Optional[str] = None
    project_type: Optional[str] = None
    slug: Optional[str] = None
    author: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    versions: List[str] = field(default_factory=list)
    downloads: Optional[int] = None
    follows: Optional[int] = None
    icon_url: Optional[str] = None
    date_created: Optional[str] = None
    date_modified: Optional[str] = None
    latest_version: Optional[str] = None
    license: Optional[str] = None
    client_side: Optional[str] = None
    server_side: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModrinthSearchHit":
        d = d or {}
        return cls(
            project_id=d.get("project_id"),
            project_type=d.get("project_type"),
            slug=d.get("slug"),
            author=d.get("author"),
            title=d.get("title"),
            description=d.get("description"),
            categories=d.get("categories") or [],
            versions=d.get("versions") or [],
            downloads=d.get("downloads"),
            follows=d.get("follows"),
            icon_url=d.get("icon_url"),
            date_created=d.get("date_created"),
            date_modified=d.get("date_modified"),
            latest_version=d.get("latest_version"),
            license=d.get("license"),
            client_side=d.get("client_side"),
            server_side=d.get("server_side"),
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)


@dataclass
class ModrinthSearchResults:
    hits: List[ModrinthSearchHit] = field(default_factory=list)
    offset: int = 0
    limit: int = 0
    total_hits: int = 0
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModrinthSearchResults":
        d = d or {}
        return cls(
            hits=[ModrinthSearchHit.from_dict(h) for h in (d.get("hits") or [])],
            offset=d.get("offset") or 0,
            limit=d.get("limit") or 0,
            total_hits=d.get("total_hits") or 0,
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)

    def __len__(self) -> int:
        return len(self.hits)


@dataclass
class ModrinthUser:
    id: Optional[str] = None
    username: Optional[str] = None
    name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    created: Optional[str] = None
    role: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModrinthUser":
        d = d or {}
        return cls(
            id=d.get("id"),
            username=d.get("username"),
            name=d.get("name"),
            bio=d.get("bio"),
            avatar_url=d.get("avatar_url"),
            created=d.get("created"),
            role=d.get("role"),
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)


@dataclass
class ModrinthTeamMember:
    team_id: Optional[str] = None
    user: Optional[ModrinthUser] = None
    role: Optional[str] = None
    permissions: Optional[int] = None
    accepted: bool = False
    ordering: Optional[int] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModrinthTeamMember":
        d = d or {}
        return cls(
            team_id=d.get("team_id"),
            user=ModrinthUser.from_dict(d["user"]) if d.get("user") else None,
            role=d.get("role"),
            permissions=d.get("permissions"),
            accepted=bool(d.get("accepted", False)),
            ordering=d.get("ordering"),
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)


# Hangar
@dataclass
class HangarDownload:
    """
    Per-platform download entry of a Hangar version.

    Exactly one of `downloadUrl` (hosted on Hangar) or `externalUrl`
    (hosted elsewhere) is normally set.
    """
    downloadUrl: Optional[str] = None
    externalUrl: Optional[str] = None
    name: Optional[str] = None
    sizeBytes: Optional[int] = None
    sha256Hash: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HangarDownload":
        d = d or {}
        info = d.get("fileInfo") or {}
        return cls(
            downloadUrl=d.get("downloadUrl"),
            externalUrl=d.get("externalUrl"),
            name=info.get("name", d.get("name")),
            sizeBytes=info.get("sizeBytes", d.get("sizeBytes")),
            sha256Hash=info.get("sha256Hash", d.get("sha256Hash")),
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)


@dataclass
class HangarVersion:
    """
    A Hangar version; `downloads` is keyed by platform name ("PAPER", ...).
    Compact listings carry no downloads.
    """
    id: Optional[int] = None
    name: Optional[str] = None
    createdAt: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    reviewState: Optional[str] = None
    channel: Dict[str, Any] = field(default_factory=dict)
    pinned: bool = False
    stats: Dict[str, Any] = field(default_factory=dict)
    downloads: Dict[str, HangarDownload] = field(default_factory=dict)
    platformDependencies: Dict[str, List[str]] = field(default_factory=dict)
    pluginDependencies: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HangarVersion":
        d = d or {}
        channel = d.get("channel")
        return cls(
            id=d.get("id"),
            name=d.get("name"),
            createdAt=d.get("createdAt"),
            description=d.get("description"),
            author=d.get("author"),
            reviewState=d.get("reviewState"),
            channel=channel if isinstance(channel, dict) else ({"name": channel} if channel else {}),
            pinned=bool(d.get("pinned", False)),
            stats=d.get("stats") or {},
            downloads={k: HangarDownload.from_dict(v) for k, v in (d.get("downloads") or {}).items()},
            platformDependencies=d.get("platformDependencies") or {},
            pluginDependencies=d.get("pluginDependencies") or {},
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)

    @property
    def platforms(self) -> List[str]:
        return list(self.downloads)

    def created_at_dt(self) -> Optional[datetime]:
        return parse_iso_datetime(self.createdAt)

    def __repr__(self) -> str:
        return f"<HangarVersion name={self.name!r} platforms={self.platforms}>"


@dataclass
class HangarProject:
    id: Optional[int] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    owner: Optional[str] = None
    description: Optional[str] = None
    createdAt: Optional[str] = None
    lastUpdated: Optional[str] = None
    visibility: Optional[str] = None
    avatarUrl: Optional[str] = None
    category: Optional[str] = None
    stats: Dict[str, Any] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HangarProject":
        d = d or {}
        namespace = d.get("namespace") or {}
        return cls(
            id=d.get("id"),
            name=d.get("name"),
            slug=d.get("slug", namespace.get("slug")),
            owner=d.get("owner", namespace.get("owner")),
            description=d.get("description"),
            createdAt=d.get("createdAt"),
            lastUpdated=d.get("lastUpdated"),
            visibility=d.get("visibility"),
            avatarUrl=d.get("avatarUrl"),
            category=d.get("category"),
            stats=d.get("stats") or {},
            settings=d.get("settings") or {},
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)

    def last_updated_dt(self) -> Optional[datetime]:
        return parse_iso_datetime(self.lastUpdated)


@dataclass
class HangarUser:
    id: Optional[int] = None
    name: Optional[str] = None
    avatarUrl: Optional[str] = None
    roles: List[Any] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HangarUser":
        d = d or {}
        return cls(
            id=d.get("id"),
            name=d.get("name"),
            avatarUrl=d.get("avatarUrl"),
            roles=d.get("roles") or [],
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)


@dataclass
class HangarPage(Generic[T]):
    """
    Paginated Hangar listing: `result` items plus limit/offset/count.
    """
    result: List[T] = field(default_factory=list)
    limit: Optional[int] = None
    offset: Optional[int] = None
    count: Optional[int] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any], item: Callable[[Dict[str, Any]], T]) -> "HangarPage[T]":
        d = d or {}
        pagination = d.get("pagination") or {}
        return cls(
            result=[item(x) for x in (d.get("result") or [])],
            limit=pagination.get("limit"),
            offset=pagination.get("offset"),
            count=pagination.get("count"),
            data=d,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_without_raw)

    def __len__(self) -> int:
        return len(self.result)

    def __iter__(self):
        return iter(self.result)


# Module exports
__all__ = [
    "parse_iso_datetime", "from_epoch_seconds", "parse_one", "parse_list", "parse_page",
    "SpigetSearchField", "SpigetVersionMethod",
    "ModrinthSortIndex", "ModrinthProjectType", "ModrinthSideType", "ModrinthVersionType",
    "HangarCategory", "HangarPlatform", "HangarProjectSort", "HangarVersionChannel", "HangarVisibility",
    "SpigetFile", "SpigetRating", "SpigetAuthor", "SpigetCategory", "SpigetVersion",
    "SpigetReview", "SpigetUpdate", "SpigetResource", "SpigetResourcesForVersion",
    "ModrinthVersionFile", "ModrinthVersion", "ModrinthProject", "ModrinthSearchHit",
    "ModrinthSearchResults", "ModrinthUser", "ModrinthTeamMember",
    "HangarDownload", "HangarVersion", "HangarProject", "HangarUser", "HangarPage",
]
