"""
Implementation of the scanio package.

A Scanner reads a binary stream through an ElasticBuffer, finds delimiters
in the buffered window with a Delimiter, and parses tokens with the
functions in _scanio.numeric.
"""
