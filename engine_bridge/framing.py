from __future__ import annotations


class LineFramer:
    """Split a raw byte stream into complete, newline-delimited text lines.

    Contract:
      - `feed(chunk)` returns every line completed by `chunk`, in stream order.
      - a trailing fragment without a terminator is kept until a later chunk
        completes it (or `flush()` is called at end of stream).
      - lines are stripped of surrounding whitespace (including a `\\r` before
        the `\\n`); lines that are empty after stripping are dropped.

    The carry-over is kept as bytes so a multibyte UTF-8 sequence split across
    two reads decodes correctly. Undecodable bytes are replaced, never raised.
    """

    def __init__(self, *, encoding: str = "utf-8") -> None:
        self._encoding = encoding
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: bytes) -> list[str]:
        if not chunk:
            return []
        self._buffer.extend(chunk)
        end = self._buffer.rfind(b"\n")
        if end < 0:
            return []

        complete = bytes(self._buffer[: end + 1])
        del self._buffer[: end + 1]
        return self._decode_lines(complete.split(b"\n"))

    def flush(self) -> list[str]:
        rest = bytes(self._buffer)
        self._buffer.clear()
        return self._decode_lines([rest])

    def _decode_lines(self, raw_lines: list[bytes]) -> list[str]:
        lines: list[str] = []
        for raw in raw_lines:
            text = raw.decode(self._encoding, errors="replace").strip()
            if text:
                lines.append(text)
        return lines
