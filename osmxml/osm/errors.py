"""Errors raised while reading an OSM XML document.

Every error carries the source position at which reading failed. None of
them is recovered from: the whole document is rejected.
"""

from __future__ import annotations

from osmxml.osm.events import LexicalEvent
from osmxml.osm.events import Position
from osmxml.osm.events import describe


class OsmXmlError(Exception):
    def __init__(self, message: str, position: Position) -> None:
        super().__init__(message, position)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        return f"{self.message} at {self.position}"


class MissingAttribute(OsmXmlError):
    def __init__(self, attribute: str, element: str, position: Position) -> None:
        super().__init__(f"missing '{attribute}' attribute on element '{element}'", position)
        self.attribute = attribute
        self.element = element


class InvalidAttributeValue(OsmXmlError):
    def __init__(self, attribute: str, value: str, cause: str, position: Position) -> None:
        super().__init__(f"invalid value {value!r} for attribute '{attribute}': {cause}", position)
        self.attribute = attribute
        self.value = value
        self.cause = cause


class UnexpectedEvent(OsmXmlError):
    def __init__(self, event: LexicalEvent | None, expected: str, position: Position) -> None:
        found = describe(event) if event is not None else "end of event stream"
        super().__init__(f"expected {expected}, found {found}", position)
        self.event = event
        self.expected = expected


class InvalidEnumValue(OsmXmlError):
    def __init__(self, attribute: str, value: str, position: Position) -> None:
        super().__init__(f"invalid {attribute} {value!r}", position)
        self.attribute = attribute
        self.value = value


class XmlSyntaxError(OsmXmlError):
    pass
