"""
Script loading: turns script text into the word sequence that is tracked.

Scripts may be plain text or Markdown. Markdown is rendered to HTML and only
the visible text is kept, so formatting markers never become "words" the
speaker is expected to say.
"""

from collections.abc import Iterable, Iterator, Sequence
from html.parser import HTMLParser
from typing import overload

import markdown

MARKDOWN_EXTENSIONS: list[str] = ['nl2br', 'sane_lists']

# One finalized recognition result, split into words
Batch = tuple[str, ...]


class _TextExtractor(HTMLParser):
    """Collects the text content of an HTML fragment."""

    # Block-level tags; text on either side must not run together
    BLOCK_TAGS: frozenset[str] = frozenset({
        'p', 'br', 'li', 'ul', 'ol', 'blockquote', 'pre',
        'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'hr', 'div',
    })

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.parts: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in self.BLOCK_TAGS:
            self.parts.append(' ')

    def handle_endtag(self, tag: str) -> None:
        if tag in self.BLOCK_TAGS:
            self.parts.append(' ')

    def handle_data(self, data: str) -> None:
        self.parts.append(data)

    def get_text(self) -> str:
        """Return the collected text."""
        return ''.join(self.parts)


def clean_batch(words: Iterable[str]) -> Batch:
    """Trim words and drop empty tokens."""
    return tuple(word for word in (w.strip() for w in words) if word)


def split_transcript(text: str) -> Batch:
    """Split a finalized transcript into whitespace-delimited words."""
    return tuple(text.split())


def markdown_to_text(text: str) -> str:
    """Render Markdown and return its visible text."""
    html: str = markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)
    extractor = _TextExtractor()
    extractor.feed(html)
    extractor.close()
    return extractor.get_text()


class Script(Sequence[str]):
    """
    Immutable, index-addressable sequence of script words.

    Words keep their original case and punctuation; matching lowercases
    segments at comparison time.
    """

    __slots__ = ('_words',)

    def __init__(self, words: Iterable[str] = ()) -> None:
        self._words: tuple[str, ...] = tuple(w for w in words if w)

    @classmethod
    def from_text(cls, text: str) -> 'Script':
        """Build a script by splitting plain text on whitespace."""
        return cls(text.split())

    @classmethod
    def from_markdown(cls, text: str) -> 'Script':
        """Build a script from Markdown, keeping only visible text."""
        return cls(markdown_to_text(text).split())

    @property
    def words(self) -> tuple[str, ...]:
        """The script words."""
        return self._words

    def slice_text(self, start: int, end: int) -> str:
        """Join the words in [start, end) with single spaces."""
        return ' '.join(self._words[start:end])

    @overload
    def __getitem__(self, index: int) -> str: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[str, ...]: ...

    def __getitem__(self, index):
        return self._words[index]

    def __len__(self) -> int:
        return len(self._words)

    def __iter__(self) -> Iterator[str]:
        return iter(self._words)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Script):
            return self._words == other._words
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._words)

    def __repr__(self) -> str:
        preview = ' '.join(self._words[:8])
        suffix = ' ...' if len(self._words) > 8 else ''
        return f"Script({len(self._words)} words: {preview!r}{suffix})"
