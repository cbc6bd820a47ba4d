import io

import pytest

from osmxml.osm.errors import XmlSyntaxError
from osmxml.osm.events import Characters
from osmxml.osm.events import Comment
from osmxml.osm.events import EndDocument
from osmxml.osm.events import EndElement
from osmxml.osm.events import Position
from osmxml.osm.events import ProcessingInstruction
from osmxml.osm.events import StartElement
from osmxml.osm.tokenizer import iter_events


def tokenize(data: bytes, chunk_size: int = 5) -> list:
    return list(iter_events(io.BytesIO(data), chunk_size=chunk_size))


def test_event_sequence():
    events = tokenize(
        b'<?xml version="1.0"?>\n'
        b"<?generator data?>\n"
        b'<osm version="0.6"><!-- note --><node id="1" lat="2"/>text</osm>'
    )

    assert [type(event) for event in events] == [
        ProcessingInstruction,
        StartElement,
        Comment,
        StartElement,
        EndElement,
        Characters,
        EndElement,
        EndDocument,
    ]
    assert events[0].target == "generator"
    assert events[0].data == "data"
    assert events[1].name == "osm"
    assert events[1].attributes == (("version", "0.6"),)
    assert events[2].text == " note "
    assert events[3].attributes == (("id", "1"), ("lat", "2"))
    assert events[4].name == "node"
    assert events[5].text == "text"


def test_positions():
    events = tokenize(b"<osm>\n  <node/>\n</osm>")

    assert events[0].position == Position(1, 1)
    assert events[1] == StartElement(name="node", attributes=(), position=Position(2, 3))
    assert events[3].position.line == 3


def test_whitespace_is_dropped():
    events = tokenize(b"<osm>\n   \n\t<node/>  </osm>", chunk_size=2)
    assert not any(isinstance(event, Characters) for event in events)


def test_text_split_over_chunks_is_coalesced():
    events = tokenize(b"<osm>some longer text</osm>", chunk_size=3)
    texts = [event for event in events if isinstance(event, Characters)]
    assert len(texts) == 1
    assert texts[0].text == "some longer text"
    assert texts[0].position == Position(1, 6)


def test_malformed_document():
    with pytest.raises(XmlSyntaxError) as exc_info:
        tokenize(b"<osm>\n<node></osm>")
    assert exc_info.value.position.line == 2


def test_empty_document():
    with pytest.raises(XmlSyntaxError, match="no element found"):
        tokenize(b"")


def test_entities_are_forbidden():
    document = b'<!DOCTYPE osm [<!ENTITY a "aaaa">]><osm>&a;</osm>'
    with pytest.raises(XmlSyntaxError):
        tokenize(document, chunk_size=1024)


def test_events_are_lazy():
    source = io.BytesIO(b"<osm>" + b"<node/>" * 1000 + b"</osm>")
    events = iter_events(source, chunk_size=16)

    assert isinstance(next(events), StartElement)
    assert source.tell() < 100
