"""
Ordering rules for definitions, tags and kanji stats.

String comparison uses a locale-independent collation key: NFKD
normalization with case folding, falling back to the raw string so the
order stays total.
"""

import re
import unicodedata
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from yomitori.definitions import KanjiStat, Tag
from yomitori.models import DictionaryOptions


def collation_key(text: str) -> Tuple[str, str]:
    """
    Sort key for display strings.

    Not a locale collator: kana and kanji order by code point after NFKD
    normalization, which can differ from a Japanese locale collation order.
    """
    return (unicodedata.normalize('NFKD', text).casefold(), text)


def _expression_text(expression: Union[str, Sequence[str]]) -> str:
    # Merged definitions carry lists of expressions
    if isinstance(expression, str):
        return expression
    return ','.join(expression)


def sort_tags(tags: List[Tag]):
    """Sort tags in place by order, then name."""
    if len(tags) <= 1:
        return
    tags.sort(key=lambda tag: (tag.order, collation_key(tag.name)))


_NUMBER_PATTERN = re.compile(r'^\s*[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?\s*$')


def _notes_key(notes: str) -> Tuple[int, float, Tuple[str, str]]:
    if _NUMBER_PATTERN.match(notes):
        return (0, float(notes), collation_key(notes))
    return (1, 0.0, collation_key(notes))


def sort_kanji_stats(stats: List[KanjiStat]):
    """
    Sort stats in place by order, then notes.

    Numeric notes compare by value and sort before non-numeric notes.
    """
    if len(stats) <= 1:
        return
    stats.sort(key=lambda stat: (stat.order, _notes_key(stat.notes)))


def sort_definitions(definitions: List[Any], dictionaries: Optional[Mapping[str, DictionaryOptions]]):
    """
    Sort definitions in place.

    Keys, in order: dictionary priority (descending, only when a
    dictionary map is given), source length (descending), reason count
    (ascending), score (descending), expression length (descending),
    then the collated expression.
    """
    if len(definitions) <= 1:
        return

    def key(definition):
        expression = definition.expression
        parts = []
        if dictionaries is not None:
            info = dictionaries.get(definition.dictionary)
            priority = info.priority if info is not None else 0
            parts.append(-priority)
        parts.extend([
            -len(definition.source),
            len(definition.reasons),
            -definition.score,
            -len(expression),
            collation_key(_expression_text(expression)),
        ])
        return parts

    definitions.sort(key=key)


def sort_database_definitions_by_index(definitions: List[Any]):
    if len(definitions) <= 1:
        return
    definitions.sort(key=lambda definition: definition.index)
