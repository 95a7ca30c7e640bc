"""Text chunker — sliding character window with boundary snapping and overlap.

Each window is at most ``max_chars`` characters. A window that ends inside the
text is pulled back to just after the last newline it contains, or failing
that the last space, or is cut hard at ``max_chars``. The next window starts
``overlap`` characters before the previous end, so neighbouring fragments
share context.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_MAX_CHARS = 800
DEFAULT_OVERLAP = 100
DEFAULT_TITLE = "Knowledge"


@dataclass(frozen=True)
class Fragment:
    """One slice of a document, before embedding."""

    title: str
    content: str
    chunk_index: int


def chunk_content(
    content: object,
    title: str | None = None,
    max_chars: int = DEFAULT_MAX_CHARS,
    overlap: int = DEFAULT_OVERLAP,
) -> list[Fragment]:
    """Split *content* into ordered, overlapping fragments.

    Args:
        content: Document text. Anything that is not a non-blank string
            yields an empty list.
        title: Copied onto every fragment; blank titles become ``"Knowledge"``.
        max_chars: Window size in characters.
        overlap: Characters shared between consecutive fragments.

    Returns:
        Fragments with a contiguous 0-based ``chunk_index``. Deterministic for
        a given ``(content, title, max_chars, overlap)``.
    """
    if max_chars < 1:
        raise ValueError("max_chars must be >= 1")
    if overlap < 0:
        raise ValueError("overlap must be >= 0")
    if not isinstance(content, str):
        return []
    text = content.strip()
    if not text:
        return []

    label = title or DEFAULT_TITLE
    length = len(text)
    fragments: list[Fragment] = []
    start = 0

    while start < length:
        end = min(start + max_chars, length)
        if end < length:
            end = _snap_to_boundary(text, start, end)

        piece = text[start:end].strip()
        if piece:
            fragments.append(Fragment(title=label, content=piece, chunk_index=len(fragments)))

        if end >= length:
            break
        next_start = end - overlap
        if next_start <= start:
            # overlap >= window: drop the overlap rather than loop forever
            next_start = end
        start = next_start

    return fragments


def _snap_to_boundary(text: str, start: int, end: int) -> int:
    """Return the cut point for window ``text[start:end]``.

    Prefers the position just after the last newline inside the window, then
    just after the last space. A separator at *start* itself does not count,
    since cutting there would produce an empty window.
    """
    newline = text.rfind("\n", start + 1, end)
    if newline > start:
        return newline + 1
    space = text.rfind(" ", start + 1, end)
    if space > start:
        return space + 1
    return end


class TextChunker:
    """Chunker bound to a configured window size and overlap."""

    def __init__(self, max_chars: int = DEFAULT_MAX_CHARS, overlap: int = DEFAULT_OVERLAP) -> None:
        if max_chars < 1:
            raise ValueError("max_chars must be >= 1")
        if overlap < 0:
            raise ValueError("overlap must be >= 0")
        self.max_chars = max_chars
        self.overlap = overlap

    def chunk(self, content: object, title: str | None = None) -> list[Fragment]:
        return chunk_content(content, title, max_chars=self.max_chars, overlap=self.overlap)
