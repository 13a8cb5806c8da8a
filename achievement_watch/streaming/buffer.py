"""
Carry-over line buffering for tailed log data.

Bytes read from the console log rarely end on a line boundary. The buffer
keeps the trailing partial line between reads and hands back only complete
lines, decoded as UTF-8.
"""

import logging
from typing import List, Dict, Any

logger = logging.getLogger(__name__)


class LineBuffer:
    """
    Splits a byte stream into complete text lines.

    Features:
    - Keeps partial lines across reads
    - Decodes only complete lines, so multi-byte characters split between
      reads are never mangled
    - Strips CRLF terminators
    - Statistics tracking
    """

    def __init__(self, encoding: str = "utf-8", max_partial_bytes: int = 1024 * 1024):
        """
        Initialize line buffer.

        Args:
            encoding: Text encoding of the log
            max_partial_bytes: Largest partial line kept before it is dropped
        """
        self.encoding = encoding
        self.max_partial_bytes = max_partial_bytes

        self._pending = bytearray()
        self._total_bytes = 0
        self._total_lines = 0
        self._overflows = 0
        self._discarding = False

    def feed(self, data: bytes) -> List[str]:
        """
        Add bytes to the buffer.

        Args:
            data: Bytes read from the file

        Returns:
            Complete lines, in order, without terminators
        """
        if not data:
            return []

        self._total_bytes += len(data)
        self._pending.extend(data)

        *complete, remainder = self._pending.split(b"\n")

        if self._discarding:
            # Still inside an overflowed line: drop everything up to its newline
            if not complete:
                self._pending.clear()
                return []
            complete = complete[1:]
            self._discarding = False

        self._pending = bytearray(remainder)

        if len(self._pending) > self.max_partial_bytes:
            self._overflows += 1
            logger.warning(
                f"Partial line exceeded {self.max_partial_bytes} bytes, dropping it "
                f"(total overflows: {self._overflows})"
            )
            self._pending.clear()
            self._discarding = True

        lines = []
        for raw in complete:
            if raw.endswith(b"\r"):
                raw = raw[:-1]
            lines.append(raw.decode(self.encoding, errors="replace"))

        self._total_lines += len(lines)
        return lines

    def clear(self):
        """Drop any buffered partial line."""
        if self._pending:
            logger.debug(f"Discarding {len(self._pending)} buffered bytes")
        self._pending.clear()
        self._discarding = False

    def get_stats(self) -> Dict[str, Any]:
        """Get buffer statistics."""
        return {
            "pending_bytes": len(self._pending),
            "total_bytes": self._total_bytes,
            "total_lines": self._total_lines,
            "overflows": self._overflows,
        }

    @property
    def size(self) -> int:
        """Number of buffered bytes waiting for a line terminator."""
        return len(self._pending)

    @property
    def is_empty(self) -> bool:
        return not self._pending
