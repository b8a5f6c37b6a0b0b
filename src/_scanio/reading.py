import io
import pathlib
from contextlib import contextmanager

from _scanio.errors import WrongFileModeError
from _scanio.scanner import Scanner


def binary_stream(filelike):
    """
    The binary stream underlying filelike. Text streams are unwrapped
    through their buffer attribute when they have one, eg. sys.stdin.
    """
    if isinstance(filelike, io.TextIOBase):
        if not hasattr(filelike, "buffer"):
            raise WrongFileModeError(
                f"Can not scan {filelike!r}: text stream without binary buffer"
            )
        return filelike.buffer
    return filelike


@contextmanager
def scan(filelike, **scanner_options):
    """
    Scans a file, ie.

    with scan("/my/file.txt") as scanner:
        for token in scanner:
            ...

    :param filelike: Either a path, or a stream. A path is opened and
        closed again when leaving the context.
    :param scanner_options: Keyword arguments for Scanner, eg.
        capacity and encoding.
    """
    did_open = False
    if isinstance(filelike, (str, pathlib.Path)):
        did_open = True
        stream = open(filelike, "rb")
    else:
        stream = binary_stream(filelike)

    try:
        yield Scanner(stream, **scanner_options)
    finally:
        if did_open:
            stream.close()
