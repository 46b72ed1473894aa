def chunk_text(text: str, chunk_size: int = 500, overlap: int = 50) -> list[str]:
    """Split text into character windows of at most ``chunk_size``.

    Each chunk after the first starts ``overlap`` characters before the end of
    the previous one, so neighbours share exactly ``overlap`` characters. The
    final chunk may be shorter. Empty text yields no chunks.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError(
            f"overlap must be in [0, chunk_size), got {overlap} for size {chunk_size}"
        )

    chunks = []
    start = 0
    while start < len(text):
        end = min(start + chunk_size, len(text))
        chunks.append(text[start:end])
        if end == len(text):
            break
        start = end - overlap
    return chunks


def reconstruct(chunks: list[str], overlap: int) -> str:
    """Inverse of chunk_text: join chunks, dropping each repeated overlap."""
    if not chunks:
        return ""
    return chunks[0] + "".join(c[overlap:] for c in chunks[1:])
