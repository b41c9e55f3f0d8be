"""Line reassembly over a chunked byte stream."""

from collections.abc import AsyncIterable, AsyncIterator


async def iter_lines(chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    """Yield newline-delimited lines from arbitrarily split byte chunks.

    The trailing ``\\n`` (and a ``\\r`` before it) is stripped. A final line
    without a terminator is yielded at end of stream if it is non-empty.
    Only the current partial line is buffered.
    """
    buffer = bytearray()
    async for chunk in chunks:
        if not chunk:
            continue
        buffer.extend(chunk)
        start = 0
        while True:
            end = buffer.find(b"\n", start)
            if end == -1:
                break
            yield _strip_cr(bytes(buffer[start:end]))
            start = end + 1
        if start:
            del buffer[:start]

    if buffer:
        yield _strip_cr(bytes(buffer))


def _strip_cr(line: bytes) -> bytes:
    return line[:-1] if line.endswith(b"\r") else line
