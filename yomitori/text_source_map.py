"""
Source position tracking for text transformations.

A TextSourceMap records, for every character of a transformed string, how
many characters of the original string it came from. Transformations that
merge characters (half-width dakuten, romaji) call combine(); those that
expand one source run into several characters call insert() with 0-length
entries.
"""

from typing import List, Optional


class TextSourceMap:
    """Maps prefixes of transformed text back to prefixes of the source."""

    def __init__(self, source: str, mapping: Optional[List[int]] = None):
        self.source = source
        self._mapping = list(mapping) if mapping is not None else None

    def get_source_length(self, final_length: int) -> int:
        """Number of source characters consumed by the first final_length characters."""
        if self._mapping is None:
            return final_length
        return sum(self._mapping[:final_length])

    def combine(self, index: int, count: int):
        """Merge the count entries after index into the entry at index."""
        if count <= 0:
            return
        mapping = self._ensure_mapping()
        parts = mapping[index + 1:index + 1 + count]
        del mapping[index + 1:index + 1 + count]
        mapping[index] += sum(parts)

    def insert(self, index: int, *items: int):
        """Insert entries at index (0 marks a character with no source)."""
        mapping = self._ensure_mapping()
        mapping[index:index] = items

    def get_mapping(self) -> List[int]:
        return list(self._ensure_mapping())

    def _ensure_mapping(self) -> List[int]:
        if self._mapping is None:
            self._mapping = [1] * len(self.source)
        return self._mapping

    def __eq__(self, other):
        if not isinstance(other, TextSourceMap):
            return NotImplemented
        return self.source == other.source and self.get_mapping() == other.get_mapping()

    def __repr__(self):
        return f"TextSourceMap(source={self.source!r}, mapping={self._mapping!r})"
