"""
Custom exceptions for the SPZ codec.

Every error raised by the reader and the writer derives from SpzError, so
callers can catch the whole family at once. Malformed content derives from
ValueError as well, and failures of the underlying source or sink from
OSError, matching the built-in exceptions they replace.
"""


class SpzError(Exception):
    """Base exception for all SPZ codec errors."""

    pass


class SpzIOError(SpzError, OSError):
    """Raised when the underlying source or sink fails, or the gzip stream is corrupt."""

    pass


class SpzFormatError(SpzError, ValueError):
    """Base exception for SPZ content that cannot be decoded."""

    pass


class InvalidMagicError(SpzFormatError):
    """Raised when the header does not start with the SPZ magic number."""

    def __init__(self, magic: int, expected: int):
        self.magic = magic
        self.expected = expected
        super().__init__(f"Invalid SPZ magic number: 0x{magic:08X}, expected 0x{expected:08X}")


class UnsupportedVersionError(SpzFormatError):
    """Raised when the header carries a version other than 2 or 3."""

    def __init__(self, version: int, supported=(2, 3)):
        self.version = version
        self.supported = tuple(supported)
        supported_str = ", ".join(str(v) for v in self.supported)
        super().__init__(f"Unsupported SPZ version: {version}, supported versions: {supported_str}")


class InvalidHeaderError(SpzFormatError):
    """Raised when a header field other than magic and version is out of range."""

    pass


class UnexpectedEofError(SpzFormatError):
    """Raised when the stream ends before a header or section is complete."""

    def __init__(self, section: str, expected: int, actual: int):
        self.section = section
        self.expected = expected
        self.actual = actual
        super().__init__(f"Unexpected end of SPZ data in section '{section}': expected {expected} bytes, got {actual}")
