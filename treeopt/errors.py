"""Parse failures raised by the tree reader."""

from typing import Optional


class ParseError(ValueError):
    """
    The input text does not describe a tree.

    Carries the 1-based number and raw text of the offending line when one
    can be identified.
    """

    reason = "parse failure"

    def __init__(self, message: str = None, line_number: Optional[int] = None,
                 line: Optional[str] = None):
        self.message = message or self.reason
        self.line_number = line_number
        self.line = line
        super().__init__(str(self))

    def __str__(self):
        if self.line_number is None:
            return self.message
        return f"line {self.line_number}: {self.message}: {self.line!r}"


class UnknownKindError(ParseError):
    reason = "unknown node kind"


class MalformedArgumentError(ParseError):
    reason = "malformed argument"


class IndentationDepthError(ParseError):
    """A line is indented deeper than the depth expected at that point."""
    reason = "unexpected indentation"


class CapacityExceededError(ParseError):
    """The tree is nested deeper than the reader's configured limit."""
    reason = "tree too deep"
