from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum


class Tags(dict[str, str]):
    """Key/value attributes of a single element, last write wins."""

    def insert(self, key: str, value: str) -> None:
        self[key] = value

    def remove(self, key: str) -> str | None:
        return self.pop(key, None)

    def has(self, key: str) -> bool:
        return key in self


@dataclass(frozen=True)
class Info:
    version: int | None = None
    timestamp: int | None = None
    changeset: int | None = None
    uid: int | None = None
    user: str | None = None
    visible: bool | None = None

    @classmethod
    def default(cls) -> Info:
        return cls()


@dataclass
class Point:
    id: int
    latitude: float
    longitude: float
    tags: Tags = field(default_factory=Tags)
    info: Info = field(default_factory=Info.default)


@dataclass(frozen=True)
class Polyline:
    id: int
    nodes: tuple[int, ...] = ()
    tags: Tags = field(default_factory=Tags)
    info: Info = field(default_factory=Info.default)


class MemberKind(Enum):
    POINT = "node"
    POLYLINE = "way"
    RELATIONSHIP = "relation"

    @classmethod
    def from_osm(cls, value: str) -> MemberKind:
        """Map an OSM member type string to its kind, ValueError for unknown types."""
        return cls(value)


@dataclass(frozen=True)
class Member:
    kind: MemberKind
    id: int
    role: str = ""


@dataclass(frozen=True)
class Relationship:
    id: int
    members: tuple[Member, ...] = ()
    tags: Tags = field(default_factory=Tags)
    info: Info = field(default_factory=Info.default)


OsmEntity = Point | Polyline | Relationship
