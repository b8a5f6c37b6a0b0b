class ScannerError(Exception):
    """
    Base class for errors raised by the scanner.
    """

    pass


class DelimiterError(ScannerError, ValueError):
    """
    Raised when a delimiter pattern can not be used, ie. it does not compile,
    is a bytes pattern or matches the empty string.
    """

    pass


class BufferLimitError(ScannerError):
    """
    Thrown when a token, a line or an unresolved delimiter candidate needs
    more buffered bytes than the maximum buffer size allows. Nothing is
    consumed when this is raised.
    """

    pass


class WrongFileModeError(ScannerError):
    """
    Thrown when the scanner is given a stream opened in text mode
    where a binary stream is required.
    """

    pass
