from typing import Optional


class OrgParseError(Exception):
    """
    Base for every error raised while reading org text.

    `position` is the offset on the source text where the problem was found.
    """

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.position = position

    def __repr__(self):
        return "{}({!r}, position={})".format(type(self).__name__, self.message, self.position)


class StructuralError(OrgParseError):
    """An expected literal or pattern was not found at the current position."""
    pass


class SemanticError(OrgParseError):
    """
    The text has the expected shape but does not describe a valid value,
    like a day 31 of February or a weekday not matching its date.
    """
    pass


class TimestampParseError(OrgParseError):
    def __init__(self, message: str, position: Optional[int] = None, nested: Optional[OrgParseError] = None):
        super().__init__(message, position)
        self.nested = nested


class DocumentParseError(OrgParseError):
    def __init__(self, message: str, position: Optional[int] = None, nested: Optional[OrgParseError] = None):
        super().__init__(message, position)
        self.nested = nested


class TooMuchInput(TimestampParseError, DocumentParseError):
    """
    Raised by the entry points when the text was read successfully but
    not completely. `remaining` holds the unread text.
    """

    def __init__(self, remaining: str, position: Optional[int] = None):
        super().__init__("Unexpected text at offset {}: {!r}".format(position, remaining[:40]), position)
        self.remaining = remaining
