"""Exception types for the doc comment scanner."""


class DoclinkError(Exception):
    """Base exception for doclink errors."""

    pass


class ScanError(DoclinkError):
    """Problem found in the scanned source.

    Scan errors are never raised by ``scan`` itself. They are reported as
    diagnostics and the scan degrades to best effort; ``Diagnostic.to_error``
    builds the matching exception for callers that prefer to raise.
    """

    def __init__(self, message: str, offset: int = 0):
        super().__init__(message)
        self.offset = offset


class MalformedCommentError(ScanError):
    """A block comment is never terminated."""

    pass


class UnterminatedLiteralError(ScanError):
    """A string or char literal is never terminated."""

    pass


class UnbalancedScopeError(ScanError):
    """Braces never return to the file level, or close more than they open."""

    pass


class UnknownDialectError(DoclinkError, ValueError):
    """A dialect name or file extension cannot be resolved."""

    pass


class ConfigError(DoclinkError, ValueError):
    """Configuration holds an invalid value."""

    pass
