"""Overlapping fixed-width text chunking with word-boundary snapping."""

from __future__ import annotations

from doc_retrieval.models import ChunkSpan

# A window is only snapped back to a space that lies past this fraction of
# ``chunk_size``; otherwise the full window is kept.
WORD_BOUNDARY_RATIO = 0.8


def chunk_text(text: str, chunk_size: int = 1000, overlap: int = 200) -> list[ChunkSpan]:
    """Split *text* into overlapping windows of at most *chunk_size* characters.

    Parameters
    ----------
    text:
        Plain text extracted from a document.  Empty text yields no chunks.
    chunk_size:
        Maximum number of characters per window.
    overlap:
        Number of characters shared by consecutive windows.

    Returns
    -------
    list[ChunkSpan]
        Windows in document order, indexed from 0.  ``start_position`` and
        ``end_position`` delimit the untrimmed window in *text*; ``content``
        is the trimmed window.

    Raises
    ------
    ValueError
        If ``chunk_size <= overlap`` or ``overlap < 0``.
    """
    if overlap < 0:
        raise ValueError(f"overlap ({overlap}) must be >= 0")
    if chunk_size <= overlap:
        raise ValueError(f"overlap ({overlap}) must be < chunk_size ({chunk_size})")

    spans: list[ChunkSpan] = []
    text_length = len(text)
    start = 0

    while start < text_length:
        end = min(start + chunk_size, text_length)
        window = text[start:end]

        if end < text_length:
            last_space = window.rfind(" ")
            if last_space > chunk_size * WORD_BOUNDARY_RATIO:
                window = window[:last_space]

        window_end = start + len(window)
        spans.append(
            ChunkSpan(
                index=len(spans),
                content=window.strip(),
                word_count=len(window.split()),
                start_position=start,
                end_position=window_end,
            )
        )

        # The window that reaches the end of the text is the last one.
        if window_end >= text_length:
            break
        start += max(len(window) - overlap, 1)

    return spans
