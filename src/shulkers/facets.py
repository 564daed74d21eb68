"""
facets.py

Modrinth search facets.

A search filter is an AND of OR-groups (conjunctive normal form):

    [["categories:forge", "categories:fabric"], ["versions:1.20.1"]]

means "(forge OR fabric) AND 1.20.1". This module provides:

  - Facet: one ``field<op>value`` criterion (immutable).
  - FacetGroup: an ordered OR-group of facets.
  - FacetBuilder: an ordered AND-sequence of groups, serialized with build().
  - normalize_facets(): accepts a pre-built string, a builder, a single group
    or a flat list of facets and returns the wire string.

Usage example:
    builder = (FacetBuilder()
               .add_group(FacetGroup.versions(["1.20.1", "1.19.4"]))
               .add_facet(Facet.project_type("mod")))
    builder.build()
    # '[["versions:1.20.1","versions:1.19.4"],["project_type:mod"]]'
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Union


class FacetField(str, Enum):
    """Filterable fields of the Modrinth search endpoint."""
    PROJECT_TYPE = "project_type"
    CATEGORIES = "categories"
    VERSIONS = "versions"
    CLIENT_SIDE = "client_side"
    SERVER_SIDE = "server_side"
    OPEN_SOURCE = "open_source"
    TITLE = "title"
    AUTHOR = "author"
    FOLLOWS = "follows"
    PROJECT_ID = "project_id"
    LICENSE = "license"
    DOWNLOADS = "downloads"
    COLOR = "color"
    CREATED_TIMESTAMP = "created_timestamp"
    MODIFIED_TIMESTAMP = "modified_timestamp"


class FacetOperator(str, Enum):
    EQUAL = ":"
    NOT_EQUAL = "!="
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="


FacetValue = Union[str, int, float, bool, Enum]


def _render_value(value: FacetValue) -> str:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class Facet:
    """
    A single ``field<operator>value`` filter criterion.

    Attributes
    ----------
    field : FacetField
        Filter key.
    operator : FacetOperator
        Comparison operator; EQUAL renders as a plain ``:``.
    value : str | int | float | bool | Enum
        Compared value. Booleans render as ``true`` / ``false``, enums by value.
    """
    field: FacetField
    operator: FacetOperator
    value: FacetValue

    def __post_init__(self):
        object.__setattr__(self, "field", FacetField(self.field))
        object.__setattr__(self, "operator", FacetOperator(self.operator))

    def __str__(self) -> str:
        return f"{self.field.value}{self.operator.value}{_render_value(self.value)}"

    # Shortcuts for the common criteria
    @classmethod
    def project_type(cls, value) -> "Facet":
        return cls(FacetField.PROJECT_TYPE, FacetOperator.EQUAL, value)

    @classmethod
    def categories(cls, value: str) -> "Facet":
        return cls(FacetField.CATEGORIES, FacetOperator.EQUAL, value)

    @classmethod
    def versions(cls, value: str) -> "Facet":
        return cls(FacetField.VERSIONS, FacetOperator.EQUAL, value)

    @classmethod
    def client_side(cls, value) -> "Facet":
        return cls(FacetField.CLIENT_SIDE, FacetOperator.EQUAL, value)

    @classmethod
    def server_side(cls, value) -> "Facet":
        return cls(FacetField.SERVER_SIDE, FacetOperator.EQUAL, value)

    @classmethod
    def open_source(cls, value: Union[bool, str]) -> "Facet":
        return cls(FacetField.OPEN_SOURCE, FacetOperator.EQUAL, value)

    @classmethod
    def title(cls, value: str) -> "Facet":
        return cls(FacetField.TITLE, FacetOperator.EQUAL, value)

    @classmethod
    def author(cls, value: str) -> "Facet":
        return cls(FacetField.AUTHOR, FacetOperator.EQUAL, value)

    @classmethod
    def follows(cls, operator: FacetOperator, value: int) -> "Facet":
        return cls(FacetField.FOLLOWS, operator, value)

    @classmethod
    def project_id(cls, value: str) -> "Facet":
        return cls(FacetField.PROJECT_ID, FacetOperator.EQUAL, value)

    @classmethod
    def license(cls, value: str) -> "Facet":
        return cls(FacetField.LICENSE, FacetOperator.EQUAL, value)

    @classmethod
    def downloads(cls, operator: FacetOperator, value: int) -> "Facet":
        return cls(FacetField.DOWNLOADS, operator, value)

    @classmethod
    def color(cls, value: Union[int, str]) -> "Facet":
        return cls(FacetField.COLOR, FacetOperator.EQUAL, value)

    @classmethod
    def created_timestamp(cls, operator: FacetOperator, value: Union[int, str]) -> "Facet":
        return cls(FacetField.CREATED_TIMESTAMP, operator, value)

    @classmethod
    def modified_timestamp(cls, operator: FacetOperator, value: Union[int, str]) -> "Facet":
        return cls(FacetField.MODIFIED_TIMESTAMP, operator, value)


class FacetGroup:
    """
    Ordered OR-group of facets. Mutators return ``self`` for chaining.
    """

    def __init__(self, facets: Optional[Iterable[Facet]] = None):
        self._facets: List[Facet] = list(facets or [])

    def add_facet(self, facet: Facet) -> "FacetGroup":
        self._facets.append(facet)
        return self

    def add_facets(self, facets: Iterable[Facet]) -> "FacetGroup":
        self._facets.extend(facets)
        return self

    def remove_facet(self, facet: Facet) -> "FacetGroup":
        """Remove the first facet equal to `facet`; no-op when absent."""
        if facet in self._facets:
            self._facets.remove(facet)
        return self

    def clear(self) -> "FacetGroup":
        self._facets = []
        return self

    @property
    def facets(self) -> List[Facet]:
        return list(self._facets)

    def is_empty(self) -> bool:
        return not self._facets

    def to_list(self) -> List[str]:
        return [str(f) for f in self._facets]

    def __len__(self) -> int:
        return len(self._facets)

    def __iter__(self):
        return iter(list(self._facets))

    def __str__(self) -> str:
        return json.dumps(self.to_list(), separators=(",", ":"))

    def __repr__(self) -> str:
        return f"<FacetGroup {self.to_list()!r}>"

    @classmethod
    def project_types(cls, types: Iterable) -> "FacetGroup":
        return cls(Facet.project_type(t) for t in types)

    @classmethod
    def categories(cls, categories: Iterable[str]) -> "FacetGroup":
        return cls(Facet.categories(c) for c in categories)

    @classmethod
    def versions(cls, versions: Iterable[str]) -> "FacetGroup":
        return cls(Facet.versions(v) for v in versions)


class FacetBuilder:
    """
    Accumulates facet groups and serializes them for the ``facets`` search parameter.

    Groups are AND'd, facets inside a group are OR'd. Insertion order is kept
    both for groups and for facets inside each group, so build() is
    deterministic. Not safe for concurrent mutation.
    """

    def __init__(self):
        self._groups: List[FacetGroup] = []

    def add_group(self, group: FacetGroup) -> "FacetBuilder":
        """Append `group`; empty groups are ignored."""
        if not group.is_empty():
            self._groups.append(group)
        return self

    def add_groups(self, groups: Iterable[FacetGroup]) -> "FacetBuilder":
        for group in groups:
            self.add_group(group)
        return self

    def add_facet(self, facet: Facet) -> "FacetBuilder":
        """Append `facet` as its own singleton group."""
        self._groups.append(FacetGroup([facet]))
        return self

    def add_facets(self, facets: Iterable[Facet]) -> "FacetBuilder":
        for facet in facets:
            self.add_facet(facet)
        return self

    def remove_group(self, group: FacetGroup) -> "FacetBuilder":
        """Remove `group` (by identity); no-op when absent."""
        for i, existing in enumerate(self._groups):
            if existing is group:
                del self._groups[i]
                break
        return self

    def clear(self) -> "FacetBuilder":
        self._groups = []
        return self

    @property
    def groups(self) -> List[FacetGroup]:
        return list(self._groups)

    def is_empty(self) -> bool:
        return not self._groups

    def __len__(self) -> int:
        return len(self._groups)

    # Fluent shortcuts
    def project_type(self, *types) -> "FacetBuilder":
        return self.add_group(FacetGroup.project_types(types))

    def category(self, *categories: str) -> "FacetBuilder":
        return self.add_group(FacetGroup.categories(categories))

    def version(self, *versions: str) -> "FacetBuilder":
        return self.add_group(FacetGroup.versions(versions))

    def license(self, value: str) -> "FacetBuilder":
        return self.add_facet(Facet.license(value))

    def downloads(self, operator: FacetOperator, value: int) -> "FacetBuilder":
        return self.add_facet(Facet.downloads(operator, value))

    def build(self) -> str:
        """
        Serialize to ``[[...],[...]]``.

        Returns the empty string when no (non-empty) group was added; callers
        must then omit the parameter instead of sending ``facets=``.
        """
        groups = [g.to_list() for g in self._groups if not g.is_empty()]
        if not groups:
            return ""
        return json.dumps(groups, separators=(",", ":"))

    def __str__(self) -> str:
        return self.build()

    def __repr__(self) -> str:
        return f"<FacetBuilder groups={len(self._groups)}>"


FacetsInput = Union[str, FacetBuilder, FacetGroup, Sequence[Facet]]


def normalize_facets(value: Optional[FacetsInput]) -> str:
    """
    Turn any accepted facets input into the wire string.

      - str: returned unchanged (assumed pre-serialized)
      - FacetBuilder: ``builder.build()``
      - FacetGroup: a single AND term, ``[[...]]``
      - list/tuple of Facet: treated as one OR group, ``[[...]]``

    None, empty groups and empty lists yield "" (no filter).

    Raises
    ------
    TypeError
        For any other input type.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, FacetBuilder):
        return value.build()
    if isinstance(value, FacetGroup):
        return FacetBuilder().add_group(value).build()
    if isinstance(value, (list, tuple)):
        if not all(isinstance(f, Facet) for f in value):
            raise TypeError("facet lists must contain only Facet instances")
        return FacetBuilder().add_group(FacetGroup(value)).build()
    raise TypeError(f"unsupported facets value: {type(value).__name__}")


__all__ = [
    "FacetField",
    "FacetOperator",
    "Facet",
    "FacetGroup",
    "FacetBuilder",
    "normalize_facets",
]
