"""Fold incremental text fragments into a final string while forwarding chunks."""

from collections.abc import AsyncIterator, Callable


async def fold_stream(
    fragments: AsyncIterator[str],
    on_chunk: Callable[[str], None],
    min_chunk_chars: int = 0,
) -> str:
    """Consume a fragment stream and return the assembled text.

    Fragments are buffered until the buffer exceeds min_chunk_chars, then
    handed to on_chunk. Whatever is left is flushed when the stream ends.
    The accumulator is local to the call, so nothing leaks between runs.
    """
    parts: list[str] = []
    pending: list[str] = []
    pending_len = 0

    async for fragment in fragments:
        if not fragment:
            continue
        parts.append(fragment)
        pending.append(fragment)
        pending_len += len(fragment)
        if pending_len > min_chunk_chars:
            on_chunk("".join(pending))
            pending.clear()
            pending_len = 0

    if pending:
        on_chunk("".join(pending))

    return "".join(parts)
