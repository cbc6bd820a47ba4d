from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    line: int
    column: int

    @classmethod
    def start(cls) -> Position:
        return cls(1, 1)

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class StartElement:
    name: str
    attributes: tuple[tuple[str, str], ...]
    position: Position

    def get(self, name: str) -> str | None:
        value = None
        for key, item in self.attributes:
            if key == name:
                value = item
        return value


@dataclass(frozen=True)
class EndElement:
    name: str
    position: Position


@dataclass(frozen=True)
class ProcessingInstruction:
    target: str
    data: str
    position: Position


@dataclass(frozen=True)
class Characters:
    text: str
    position: Position


@dataclass(frozen=True)
class Comment:
    text: str
    position: Position


@dataclass(frozen=True)
class EndDocument:
    position: Position


LexicalEvent = StartElement | EndElement | ProcessingInstruction | Characters | Comment | EndDocument


def describe(event: LexicalEvent) -> str:
    match event:
        case StartElement(name=name):
            return f"start of element '{name}'"
        case EndElement(name=name):
            return f"end of element '{name}'"
        case ProcessingInstruction(target=target):
            return f"processing instruction '{target}'"
        case Characters():
            return "character data"
        case Comment():
            return "comment"
        case EndDocument():
            return "end of document"
        case _:
            raise TypeError(f"Not a lexical event: {event!r}")
