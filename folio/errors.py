"""Error types for Folio.

Every failure that can be pinned to a single source document derives from
DocumentError and carries that document's identifier, so the build driver
can report it and decide whether to abort or skip the document.

Classes:
    FolioError: Base class for all Folio errors.
    DocumentError: Failure local to one document.
    MalformedFrontMatter: Front-matter block missing, unterminated or incomplete.
    InvalidDate: Front-matter date is not a valid calendar date.
    UnreadableDocument: Source file cannot be read or decoded.
    MalformedMarkup: Body markup contains an unterminated construct.
    DuplicateIdentifier: Two source files map to the same identifier.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class FolioError(Exception):
    """Base class for all Folio errors."""


class DocumentError(FolioError):
    """Error tied to a single document.

    Attributes:
        identifier: Identifier of the offending document.
        message: Human-readable error message.
    """

    def __init__(self, identifier: str, message: str):
        self.identifier = identifier
        self.message = message
        super().__init__(f"{identifier}: {message}")


class MalformedFrontMatter(DocumentError):
    """The front-matter block is missing, unterminated or lacks a required field."""


class InvalidDate(DocumentError):
    """The front-matter date cannot be parsed as a calendar date."""


class UnreadableDocument(DocumentError):
    """The source file cannot be read or is not valid UTF-8."""


class MalformedMarkup(DocumentError):
    """The body contains a construct the renderer refuses to guess about.

    Attributes:
        construct: Name of the offending construct, e.g. "fenced code block".
        line: 1-based line number in the body where the construct opens.
    """

    def __init__(self, identifier: str, construct: str, line: int):
        self.construct = construct
        self.line = line
        super().__init__(identifier, f"unterminated {construct} opened on line {line}")


class DuplicateIdentifier(FolioError):
    """Two documents resolved to the same identifier."""

    def __init__(self, identifier: str, paths: Iterable[Path | None]):
        self.identifier = identifier
        self.paths = [p for p in paths if p is not None]
        sources = ", ".join(str(p) for p in self.paths) or "in-memory documents"
        super().__init__(f"duplicate identifier {identifier!r} ({sources})")
