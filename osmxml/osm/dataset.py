from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping
from typing import TypeVar

from osmxml.osm.types import Point
from osmxml.osm.types import Polyline
from osmxml.osm.types import Relationship

logger = logging.getLogger(__name__)

T = TypeVar("T", Point, Polyline, Relationship)


def _insert_if_absent(collection: dict[int, T], entity: T) -> bool:
    if entity.id in collection:
        logger.debug("Discarding duplicate %s %d", type(entity).__name__, entity.id)
        return False
    collection[entity.id] = entity
    return True


@dataclass
class DatasetStats:
    points: int = 0
    polylines: int = 0
    relationships: int = 0


class Dataset:
    """All points, polylines and relationships of one document.

    Each collection is keyed by id. Adding an entity whose id is already
    present keeps the first one and returns False.
    """

    def __init__(self, header: dict[str, str] | None = None) -> None:
        self.header: dict[str, str] = dict(header or {})
        self._points: dict[int, Point] = {}
        self._polylines: dict[int, Polyline] = {}
        self._relationships: dict[int, Relationship] = {}

    def add_point(self, point: Point) -> bool:
        return _insert_if_absent(self._points, point)

    def add_polyline(self, polyline: Polyline) -> bool:
        return _insert_if_absent(self._polylines, polyline)

    def add_relationship(self, relationship: Relationship) -> bool:
        return _insert_if_absent(self._relationships, relationship)

    @property
    def points(self) -> Mapping[int, Point]:
        return MappingProxyType(self._points)

    def has_point(self, id: int) -> bool:
        return id in self._points

    def get_point(self, id: int) -> Point | None:
        return self._points.get(id)

    @property
    def polylines(self) -> Mapping[int, Polyline]:
        return MappingProxyType(self._polylines)

    def has_polyline(self, id: int) -> bool:
        return id in self._polylines

    def get_polyline(self, id: int) -> Polyline | None:
        return self._polylines.get(id)

    @property
    def relationships(self) -> Mapping[int, Relationship]:
        return MappingProxyType(self._relationships)

    def relationships_mut(self) -> dict[int, Relationship]:
        return self._relationships

    def has_relationship(self, id: int) -> bool:
        return id in self._relationships

    def get_relationship(self, id: int) -> Relationship | None:
        return self._relationships.get(id)

    def stats(self) -> DatasetStats:
        return DatasetStats(
            points=len(self._points),
            polylines=len(self._polylines),
            relationships=len(self._relationships),
        )

    def into_inner(self) -> tuple[dict[int, Point], dict[int, Polyline], dict[int, Relationship]]:
        return self._points, self._polylines, self._relationships
