import pytest

from osmxml.osm.errors import UnexpectedEvent
from osmxml.osm.events import Characters
from osmxml.osm.events import EndDocument
from osmxml.osm.events import EndElement
from osmxml.osm.events import Position
from osmxml.osm.events import ProcessingInstruction
from osmxml.osm.events import StartElement
from osmxml.osm.reader import DocumentReader
from osmxml.osm.reader import parse_float
from osmxml.osm.reader import parse_int64
from osmxml.osm.reader import read_osm


def start(name, line, **attributes):
    return StartElement(name=name, attributes=tuple(attributes.items()), position=Position(line, 1))


def end(name, line):
    return EndElement(name=name, position=Position(line, 1))


def test_read_from_event_list():
    events = [
        ProcessingInstruction(target="xml-stylesheet", data="", position=Position(1, 1)),
        start("osm", 2),
        start("node", 3, id="1", lat="52.1", lon="13.4"),
        start("tag", 4, k="name", v="A"),
        end("tag", 4),
        end("node", 5),
        end("osm", 6),
        EndDocument(position=Position(7, 1)),
    ]
    dataset = read_osm(events)

    assert dataset.get_point(1).tags == {"name": "A"}


def test_end_of_document_inside_body_completes():
    dataset = read_osm([start("osm", 1), start("way", 2, id="4"), end("way", 2), EndDocument(Position(3, 1))])
    assert dataset.has_polyline(4)


def test_exhausted_event_source():
    with pytest.raises(UnexpectedEvent, match="end of event stream") as exc_info:
        read_osm([start("osm", 1), start("node", 2, id="1", lat="0", lon="0")])

    assert exc_info.value.position == Position(2, 1)
    assert exc_info.value.event is None


def test_empty_event_source():
    with pytest.raises(UnexpectedEvent) as exc_info:
        read_osm([])
    assert exc_info.value.position == Position.start()


def test_root_must_be_element():
    with pytest.raises(UnexpectedEvent, match="expected element 'osm', found character data"):
        read_osm([Characters(text="x", position=Position(1, 1))])


def test_foreign_end_element_in_body():
    with pytest.raises(UnexpectedEvent, match="end of element 'other'"):
        read_osm([start("osm", 1), end("other", 2), EndDocument(Position(3, 1))])


def test_content_after_root():
    with pytest.raises(UnexpectedEvent, match="expected end of document"):
        read_osm([start("osm", 1), end("osm", 1), start("node", 2, id="1", lat="0", lon="0")])


def test_unterminated_ignored_element():
    with pytest.raises(UnexpectedEvent, match="expected end of element 'bounds'"):
        read_osm([start("osm", 1), start("bounds", 2), EndDocument(Position(3, 1))])


def test_expect_nested():
    reader = DocumentReader([start("tag", 1, k="a", v="b"), end("tag", 1), end("node", 2)])

    assert reader.expect_nested().name == "tag"
    assert reader.expect_nested() is None
    assert reader.expect_nested() is None
    assert reader.position == Position(2, 1)


def test_parse_int64():
    assert parse_int64("0") == 0
    assert parse_int64("+17") == 17
    assert parse_int64("-9223372036854775808") == -(2**63)

    for value in ["", "1.0", "0x10", "1e3", "٣", "9223372036854775808"]:
        with pytest.raises(ValueError):
            parse_int64(value)


def test_parse_float():
    assert parse_float("-0.25") == -0.25
    assert parse_float("7") == 7.0

    for value in ["", "abc", " 1.0", "1_0.0"]:
        with pytest.raises(ValueError):
            parse_float(value)


def test_processing_instruction_inside_container():
    events = [
        start("osm", 1),
        start("way", 2, id="1"),
        ProcessingInstruction(target="render", data="skip", position=Position(3, 5)),
        end("way", 4),
        end("osm", 5),
        EndDocument(Position(6, 1)),
    ]
    with pytest.raises(UnexpectedEvent, match="found processing instruction 'render'") as exc_info:
        read_osm(events)

    assert exc_info.value.position == Position(3, 5)
    assert isinstance(exc_info.value.event, ProcessingInstruction)
