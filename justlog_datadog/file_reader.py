"""Line sources for the shipper.

Input is decoded as UTF-8 with surrogateescape so undecodable bytes reach
the parser and are reported as corrupt data instead of aborting the read.
"""

import io

ENCODING = "utf-8"
ERRORS = "surrogateescape"


def read_stream(stream) -> list[str]:
    """Read all non-empty stripped lines from an open text stream."""
    return [line.strip() for line in stream if line.strip()]


def read_batch(path: str) -> list[str]:
    """Read all non-empty stripped lines from a file."""
    with open(path, "r", encoding=ENCODING, errors=ERRORS) as f:
        return read_stream(f)


def wrap_binary(stream) -> io.TextIOWrapper:
    """Decode a binary stream (e.g. sys.stdin.buffer) the same way files are decoded."""
    return io.TextIOWrapper(stream, encoding=ENCODING, errors=ERRORS)
