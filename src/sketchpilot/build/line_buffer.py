"""Line reassembly for process output streams.

Process pipes deliver text in arbitrary chunks that rarely end on a line
boundary. LineBufferer collects the chunks and hands complete lines,
separator included, to a line-oriented callback.
"""

import asyncio
import codecs
import os
from typing import Callable, Optional

LineCallback = Callable[[str], None]

CHUNK_SIZE = 4096


class LineBufferer:
    """
    Wrap a line callback so it can be fed arbitrary chunks.

    Example:
        lines = []
        buf = LineBufferer(lines.append, separator="\\n")
        buf.feed("AB")
        buf.feed("C\\nDEF\\nG")
        # lines == ["ABC\\n", "DEF\\n"], buf.pending == "G"

    The callback must not block; it runs synchronously inside feed().
    """

    def __init__(self, callback: LineCallback, separator: str = os.linesep):
        if not separator:
            raise ValueError("separator must not be empty")
        self.callback = callback
        self.separator = separator
        self._buffer = ""
        self._start = 0

    @property
    def pending(self) -> str:
        """Text received after the last complete line."""
        return self._buffer

    def feed(self, chunk: str) -> None:
        self._buffer += chunk
        while True:
            pos = self._buffer.find(self.separator, self._start)
            if pos < 0:
                # Resume where a split separator could still start
                self._start = max(0, len(self._buffer) - len(self.separator) + 1)
                return
            end = pos + len(self.separator)
            line = self._buffer[:end]
            self._buffer = self._buffer[end:]
            self._start = 0
            self.callback(line)

    def __call__(self, chunk: str) -> None:
        self.feed(chunk)

    def flush(self) -> None:
        """Hand over an unterminated last line, if any."""
        if self._buffer:
            line = self._buffer
            self._buffer = ""
            self._start = 0
            self.callback(line)


async def pump_stream(
    reader: Optional[asyncio.StreamReader],
    callback: LineCallback,
    separator: str = os.linesep,
) -> None:
    """Read a process pipe to its end and hand over complete lines.

    Bytes are decoded as UTF-8 with replacement; a multi-byte character split
    across two reads is decoded as one.
    """
    if reader is None:
        return
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    lines = LineBufferer(callback, separator)
    while True:
        chunk = await reader.read(CHUNK_SIZE)
        if not chunk:
            break
        lines.feed(decoder.decode(chunk))
    lines.feed(decoder.decode(b"", final=True))
    lines.flush()
