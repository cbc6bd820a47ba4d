"""Recursive descent reader turning lexical XML events into a Dataset.

The reader pulls events one at a time from any iterable of lexical events,
so it does not depend on a particular XML engine. ``read_xml`` wires it to
the defusedxml based tokenizer.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from collections.abc import Iterable
from datetime import datetime
from datetime import timezone
from typing import BinaryIO
from typing import TypeVar

from osmxml.osm.dataset import Dataset
from osmxml.osm.errors import InvalidAttributeValue
from osmxml.osm.errors import InvalidEnumValue
from osmxml.osm.errors import MissingAttribute
from osmxml.osm.errors import UnexpectedEvent
from osmxml.osm.events import Comment
from osmxml.osm.events import EndDocument
from osmxml.osm.events import EndElement
from osmxml.osm.events import LexicalEvent
from osmxml.osm.events import Position
from osmxml.osm.events import ProcessingInstruction
from osmxml.osm.events import StartElement
from osmxml.osm.tokenizer import DEFAULT_CHUNK_SIZE
from osmxml.osm.tokenizer import iter_events
from osmxml.osm.types import Info
from osmxml.osm.types import Member
from osmxml.osm.types import MemberKind
from osmxml.osm.types import Point
from osmxml.osm.types import Polyline
from osmxml.osm.types import Relationship
from osmxml.osm.types import Tags

logger = logging.getLogger(__name__)

T = TypeVar("T")

ROOT_ELEMENT = "osm"

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_INTEGER = re.compile(r"[+-]?[0-9]+")


def parse_int64(value: str) -> int:
    if not value:
        raise ValueError("cannot parse integer from empty string")
    if not _INTEGER.fullmatch(value):
        raise ValueError("invalid digit found in string")
    result = int(value)
    if not INT64_MIN <= result <= INT64_MAX:
        raise ValueError("number does not fit in a 64-bit integer")
    return result


def parse_float(value: str) -> float:
    if not value:
        raise ValueError("cannot parse float from empty string")
    if value != value.strip() or "_" in value:
        raise ValueError("invalid float literal")
    return float(value)


def parse_timestamp(value: str) -> int:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def parse_bool(value: str) -> bool:
    match value:
        case "true":
            return True
        case "false":
            return False
        case _:
            raise ValueError("expected 'true' or 'false'")


def coerce(element: StartElement, name: str, value: str, parse: Callable[[str], T]) -> T:
    try:
        return parse(value)
    except ValueError as e:
        raise InvalidAttributeValue(name, value, str(e), element.position) from e


def required_attribute(element: StartElement, name: str, parse: Callable[[str], T] = str) -> T:
    value = element.get(name)
    if value is None:
        raise MissingAttribute(name, element.name, element.position)
    return coerce(element, name, value, parse)


def lenient_attribute(element: StartElement, name: str, parse: Callable[[str], T]) -> T | None:
    """Parse an informational attribute, None when absent or unparsable."""
    value = element.get(name)
    if value is None:
        return None
    try:
        return parse(value)
    except ValueError:
        logger.debug("Ignoring %s=%r on '%s' at %s", name, value, element.name, element.position)
        return None


class DocumentReader:
    def __init__(self, events: Iterable[LexicalEvent]) -> None:
        self._events = iter(events)
        self.position = Position.start()

    def next_event(self) -> LexicalEvent:
        try:
            event = next(self._events)
        except StopIteration:
            raise UnexpectedEvent(None, "further events", self.position) from None
        self.position = event.position
        return event

    def skip_misc(self) -> LexicalEvent:
        while True:
            event = self.next_event()
            if not isinstance(event, (ProcessingInstruction, Comment)):
                return event

    def expect_nested(self) -> StartElement | None:
        """Return the next child element, or None once the enclosing element ends."""
        event = self.next_event()
        match event:
            case StartElement():
                return event
            case EndElement():
                return None
            case _:
                raise UnexpectedEvent(event, "element or end of element", event.position)

    def skip_element(self, element: StartElement) -> None:
        logger.debug("Ignoring element '%s' at %s", element.name, element.position)
        depth = 1
        while depth:
            event = self.next_event()
            match event:
                case StartElement():
                    depth += 1
                case EndElement():
                    depth -= 1
                case EndDocument():
                    raise UnexpectedEvent(event, f"end of element '{element.name}'", event.position)

    def skip_children(self) -> None:
        while (child := self.expect_nested()) is not None:
            self.skip_element(child)

    def read(self) -> Dataset:
        root = self.skip_misc()
        if not isinstance(root, StartElement) or root.name != ROOT_ELEMENT:
            raise UnexpectedEvent(root, f"element '{ROOT_ELEMENT}'", root.position)

        dataset = Dataset(header=dict(root.attributes))
        self.read_document(dataset)

        stats = dataset.stats()
        logger.debug(
            "Read %d points, %d polylines, %d relationships",
            stats.points,
            stats.polylines,
            stats.relationships,
        )
        return dataset

    def read_document(self, dataset: Dataset) -> None:
        while True:
            event = self.next_event()
            match event:
                case EndDocument():
                    return
                case EndElement(name=name) if name == ROOT_ELEMENT:
                    self.read_epilog()
                    return
                case StartElement(name="node"):
                    dataset.add_point(self.read_point(event))
                case StartElement(name="way"):
                    dataset.add_polyline(self.read_polyline(event))
                case StartElement(name="relation"):
                    dataset.add_relationship(self.read_relationship(event))
                case StartElement():
                    self.skip_element(event)
                case _:
                    raise UnexpectedEvent(event, "element or end of document", event.position)

    def read_epilog(self) -> None:
        event = self.skip_misc()
        if not isinstance(event, EndDocument):
            raise UnexpectedEvent(event, "end of document", event.position)

    def read_info(self, element: StartElement) -> Info:
        return Info(
            version=lenient_attribute(element, "version", parse_int64),
            timestamp=lenient_attribute(element, "timestamp", parse_timestamp),
            changeset=lenient_attribute(element, "changeset", parse_int64),
            uid=lenient_attribute(element, "uid", parse_int64),
            user=element.get("user"),
            visible=lenient_attribute(element, "visible", parse_bool),
        )

    def read_point(self, element: StartElement) -> Point:
        id = required_attribute(element, "id", parse_int64)
        latitude = required_attribute(element, "lat", parse_float)
        longitude = required_attribute(element, "lon", parse_float)
        info = self.read_info(element)

        tags = Tags()
        while (child := self.expect_nested()) is not None:
            match child.name:
                case "tag":
                    tags.insert(*self.read_tag(child))
                case _:
                    self.skip_element(child)

        return Point(id=id, latitude=latitude, longitude=longitude, tags=tags, info=info)

    def read_polyline(self, element: StartElement) -> Polyline:
        id = required_attribute(element, "id", parse_int64)
        info = self.read_info(element)

        nodes = []
        tags = Tags()
        while (child := self.expect_nested()) is not None:
            match child.name:
                case "nd":
                    nodes.append(self.read_nd(child))
                case "tag":
                    tags.insert(*self.read_tag(child))
                case _:
                    self.skip_element(child)

        return Polyline(id=id, nodes=tuple(nodes), tags=tags, info=info)

    def read_relationship(self, element: StartElement) -> Relationship:
        id = required_attribute(element, "id", parse_int64)
        info = self.read_info(element)

        members = []
        tags = Tags()
        while (child := self.expect_nested()) is not None:
            match child.name:
                case "member":
                    members.append(self.read_member(child))
                case "tag":
                    tags.insert(*self.read_tag(child))
                case _:
                    self.skip_element(child)

        return Relationship(id=id, members=tuple(members), tags=tags, info=info)

    def read_tag(self, element: StartElement) -> tuple[str, str]:
        key = required_attribute(element, "k")
        value = required_attribute(element, "v")
        self.skip_children()
        return key, value

    def read_nd(self, element: StartElement) -> int:
        ref = required_attribute(element, "ref", parse_int64)
        self.skip_children()
        return ref

    def read_member(self, element: StartElement) -> Member:
        raw_kind = required_attribute(element, "type")
        try:
            kind = MemberKind.from_osm(raw_kind)
        except ValueError:
            raise InvalidEnumValue("type", raw_kind, element.position) from None
        ref = required_attribute(element, "ref", parse_int64)
        role = required_attribute(element, "role")
        self.skip_children()
        return Member(kind=kind, id=ref, role=role)


def read_osm(events: Iterable[LexicalEvent]) -> Dataset:
    return DocumentReader(events).read()


def read_xml(source: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Dataset:
    return read_osm(iter_events(source, chunk_size=chunk_size))
