import scanio.version
from _scanio.delimiter import DEFAULT_DELIMITER, Delimiter
from _scanio.elastic_buffer import DEFAULT_CAPACITY, DEFAULT_MAX_SIZE
from _scanio.errors import (
    BufferLimitError,
    DelimiterError,
    ScannerError,
    WrongFileModeError,
)
from _scanio.reading import scan
from _scanio.scanner import Scanner

__author__ = """Equinor"""
__email__ = "fg_sib-scout@equinor.com"

__version__ = scanio.version.version

__all__ = [
    "BufferLimitError",
    "DEFAULT_CAPACITY",
    "DEFAULT_DELIMITER",
    "DEFAULT_MAX_SIZE",
    "Delimiter",
    "DelimiterError",
    "Scanner",
    "ScannerError",
    "WrongFileModeError",
    "scan",
]
