"""Word-window chunking for ingestion."""

DEFAULT_WINDOW_SIZE = 500
DEFAULT_OVERLAP = 50


def chunk_text(text: str, window_size: int = DEFAULT_WINDOW_SIZE, overlap: int = DEFAULT_OVERLAP) -> list[str]:
    """Split text into overlapping windows of whitespace-delimited words.

    Windows advance by window_size - overlap words. If fewer than overlap
    words would remain after a window, they are folded into that window
    instead of producing a near-duplicate trailing chunk. Words are re-joined
    with single spaces.

    Args:
        text (str): The text to split.
        window_size (int): Maximum words per window (before folding).
        overlap (int): Words shared between consecutive windows.

    Returns:
        list[str]: The chunks in order. Empty for empty or whitespace-only text.

    Raises:
        ValueError: If window_size < 1, overlap < 0 or overlap >= window_size.
    """
    if window_size < 1:
        raise ValueError(f"window_size must be at least 1, got {window_size}")
    if overlap < 0 or overlap >= window_size:
        raise ValueError(f"overlap must be in [0, window_size), got {overlap}")

    words = text.split()
    total = len(words)
    if total == 0:
        return []

    step = window_size - overlap
    chunks: list[str] = []
    start = 0
    while True:
        end = start + window_size
        if end >= total or total - end < overlap:
            chunks.append(" ".join(words[start:]))
            break
        chunks.append(" ".join(words[start:end]))
        start += step
    return chunks
