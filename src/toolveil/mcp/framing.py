"""Newline framing for JSON-RPC over stdio.

Transport reads never line up with message boundaries, so bytes are buffered
until a newline arrives. Splitting is done on raw bytes before decoding, which
keeps multi-byte UTF-8 sequences intact when a read cuts through one.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 64 * 1024
NEWLINE = b"\n"
# Undecodable bytes survive a decode/encode round trip unchanged.
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"


class LineFramer:
    """Incremental splitter carrying a partial line between reads."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        """Bytes of the incomplete trailing line, if any."""
        return bytes(self._buffer)

    def feed(self, chunk: bytes) -> list[str]:
        """Add ``chunk`` and return every line it completes, newline excluded."""
        # The buffer never holds a newline, so only the new chunk is searched.
        end = chunk.rfind(NEWLINE)
        if end < 0:
            self._buffer.extend(chunk)
            return []

        complete = bytes(self._buffer) + chunk[:end]
        self._buffer = bytearray(chunk[end + 1 :])
        return [raw.decode(ENCODING, ENCODING_ERRORS) for raw in complete.split(NEWLINE)]

    def flush(self) -> str | None:
        """Return and clear the partial line; None when nothing is pending."""
        if not self._buffer:
            return None
        text = self._buffer.decode(ENCODING, ENCODING_ERRORS)
        self._buffer.clear()
        return text


async def iter_lines(
    reader: asyncio.StreamReader,
    framer: LineFramer | None = None,
    *,
    chunk_size: int = READ_CHUNK_BYTES,
) -> AsyncIterator[str]:
    """Yield complete lines from ``reader`` until EOF.

    A partial line still buffered at EOF is dropped.
    """
    framer = framer or LineFramer()
    while True:
        chunk = await reader.read(chunk_size)
        if not chunk:
            break
        for line in framer.feed(chunk):
            yield line

    if framer.pending:
        logger.debug("Discarding %d bytes of unterminated output at EOF", len(framer.pending))
