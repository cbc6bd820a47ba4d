from __future__ import annotations

import logging
from collections import deque
from collections.abc import Generator
from contextlib import contextmanager
from typing import BinaryIO
from xml.sax import SAXParseException
from xml.sax.handler import ContentHandler
from xml.sax.handler import LexicalHandler
from xml.sax.handler import property_lexical_handler
from xml.sax.xmlreader import AttributesImpl
from xml.sax.xmlreader import IncrementalParser

from defusedxml import DefusedXmlException
from defusedxml.sax import make_parser

from osmxml.osm.errors import XmlSyntaxError
from osmxml.osm.events import Characters
from osmxml.osm.events import Comment
from osmxml.osm.events import EndDocument
from osmxml.osm.events import EndElement
from osmxml.osm.events import LexicalEvent
from osmxml.osm.events import Position
from osmxml.osm.events import ProcessingInstruction
from osmxml.osm.events import StartElement

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


def parser_position(parser: IncrementalParser) -> Position:
    # expat columns are 0-based
    return Position(parser.getLineNumber(), parser.getColumnNumber() + 1)


class EventCollector(ContentHandler, LexicalHandler):
    """Turns SAX callbacks into queued lexical events."""

    def __init__(self, parser: IncrementalParser) -> None:
        super().__init__()
        self.parser = parser
        self.events: deque[LexicalEvent] = deque()
        self._text: list[str] = []
        self._text_position: Position | None = None

    def _position(self) -> Position:
        return parser_position(self.parser)

    def _push(self, event: LexicalEvent) -> None:
        self._flush_text()
        self.events.append(event)

    def _flush_text(self) -> None:
        if not self._text:
            return
        text = "".join(self._text)
        if text.strip():
            self.events.append(Characters(text=text, position=self._text_position))
        self._text = []
        self._text_position = None

    def startElement(self, name: str, attrs: AttributesImpl) -> None:
        self._push(StartElement(name=name, attributes=tuple(attrs.items()), position=self._position()))

    def endElement(self, name: str) -> None:
        self._push(EndElement(name=name, position=self._position()))

    def characters(self, content: str) -> None:
        if not self._text:
            self._text_position = self._position()
        self._text.append(content)

    def processingInstruction(self, target: str, data: str) -> None:
        self._push(ProcessingInstruction(target=target, data=data, position=self._position()))

    def comment(self, content: str) -> None:
        self._push(Comment(text=content, position=self._position()))

    def endDocument(self) -> None:
        self._push(EndDocument(position=self._position()))

    def drain(self) -> Generator[LexicalEvent, None, None]:
        while self.events:
            yield self.events.popleft()


@contextmanager
def wrap_syntax_errors(parser: IncrementalParser):
    try:
        yield
    except SAXParseException as e:
        position = Position(e.getLineNumber(), e.getColumnNumber() + 1)
        raise XmlSyntaxError(e.getMessage(), position) from e
    except DefusedXmlException as e:
        raise XmlSyntaxError(str(e), parser_position(parser)) from e


def iter_events(source: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Generator[LexicalEvent, None, None]:
    parser = make_parser()
    collector = EventCollector(parser)
    parser.setContentHandler(collector)
    parser.setProperty(property_lexical_handler, collector)
    # close() is a no-op on a parser that was never fed
    parser.feed(b"")

    total = 0
    while True:
        data = source.read(chunk_size)
        total += len(data)
        with wrap_syntax_errors(parser):
            if data:
                parser.feed(data)
            else:
                parser.close()
        yield from collector.drain()
        if not data:
            logger.debug("Tokenized %d bytes", total)
            return
