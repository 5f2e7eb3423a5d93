"""
Line framing for chunked log streams.

The log source delivers data in chunks whose boundaries do not line up
with line boundaries; the trailing fragment of each chunk is carried over
and prefixed to the next one.
"""

import codecs
from typing import List, Optional, Union


class LineBuffer:
    """
    Carry-over buffer splitting a chunked text stream into complete lines.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""

    @property
    def pending(self) -> str:
        """Incomplete trailing fragment waiting for its terminator."""
        return self._pending

    def feed(self, chunk: Union[bytes, str]) -> List[str]:
        """
        Append a chunk and return the lines it completes.

        Args:
            chunk: Newly received data

        Returns:
            Complete lines without their terminators, in stream order
        """
        if isinstance(chunk, bytes):
            # multi-byte characters may straddle chunks
            chunk = self._decoder.decode(chunk)

        data = self._pending + chunk
        lines = data.split("\n")
        self._pending = lines.pop()
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> Optional[str]:
        """
        Return the leftover fragment at end of stream, if any.
        """
        remainder = (self._pending + self._decoder.decode(b"", final=True)).rstrip("\r")
        self._pending = ""
        return remainder or None

    def clear(self) -> None:
        self._decoder.reset()
        self._pending = ""
