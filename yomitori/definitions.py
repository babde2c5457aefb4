"""
Definition and record types for yomitori.

Records (DatabaseTerm, TagMeta, ...) are what the dictionary store hands
back; definitions are what Translator.find_terms and find_kanji return.
Definitions serialize to the camelCase JSON shape used by the original
popup renderer through to_dict().
"""

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Dict, List, Union

from yomitori.characters import FuriganaSegment


# ============================================================================
# Store Records
# ============================================================================

@dataclass
class DatabaseTerm:
    """A term row returned from the dictionary store."""
    index: int
    expression: str
    reading: str
    definition_tags: List[str]
    term_tags: List[str]
    rules: List[str]
    glossary: List[Any]
    score: int
    dictionary: str
    id: int
    sequence: int = -1


@dataclass
class DatabaseTermMeta:
    index: int
    expression: str
    mode: str
    data: Any
    dictionary: str


@dataclass
class DatabaseKanji:
    index: int
    character: str
    onyomi: List[str]
    kunyomi: List[str]
    tags: List[str]
    meanings: List[str]
    stats: Dict[str, Any]
    dictionary: str


@dataclass
class DatabaseKanjiMeta:
    index: int
    character: str
    mode: str
    data: Any
    dictionary: str


@dataclass
class TagMeta:
    """Tag metadata row from a dictionary's tag bank."""
    name: str
    category: str
    order: int
    notes: str
    score: int
    dictionary: str


# ============================================================================
# Tags
# ============================================================================

@dataclass
class Tag:
    name: str
    category: str = 'default'
    notes: str = ''
    order: int = 0
    score: int = 0
    dictionary: str = ''

    def clone(self) -> 'Tag':
        return Tag(self.name, self.category, self.notes, self.order, self.score, self.dictionary)


@dataclass
class KanjiStat(Tag):
    value: Any = None


# ============================================================================
# Term Metadata
# ============================================================================

@dataclass
class FrequencyData:
    expression: str
    frequency: Any
    dictionary: str


@dataclass
class PitchAccent:
    position: int
    tags: List[Tag] = field(default_factory=list)


@dataclass
class PitchData:
    reading: str
    dictionary: str
    pitches: List[PitchAccent] = field(default_factory=list)


# ============================================================================
# Term Definitions
# ============================================================================

@dataclass
class TermDefinition:
    """A single dictionary match for a deinflected candidate."""
    id: int
    source: str
    raw_source: str
    reasons: List[str]
    score: int
    sequence: int
    dictionary: str
    expression: str
    reading: str
    furigana_segments: List[FuriganaSegment]
    glossary: List[Any]
    definition_tags: List[Tag]
    term_tags: List[Tag]
    frequencies: List[FrequencyData] = field(default_factory=list)
    pitches: List[PitchData] = field(default_factory=list)
    type: str = 'term'


@dataclass
class GroupedTermDefinition:
    """Definitions sharing source, expression, reading and reasons."""
    source: str
    raw_source: str
    reasons: List[str]
    score: int
    dictionary: str
    expression: str
    reading: str
    furigana_segments: List[FuriganaSegment]
    term_tags: List[Tag]
    definitions: List[TermDefinition]
    frequencies: List[FrequencyData] = field(default_factory=list)
    pitches: List[PitchData] = field(default_factory=list)
    type: str = 'termGrouped'


@dataclass
class MergedGlossaryTermDefinition:
    """Definitions from one dictionary sharing an identical glossary."""
    source: str
    raw_source: str
    reasons: List[str]
    score: int
    dictionary: str
    expression: List[str]
    reading: List[str]
    glossary: List[Any]
    definition_tags: List[Tag]
    only: List[str]
    definitions: List[TermDefinition]
    type: str = 'termMergedByGlossary'


@dataclass
class ExpressionDetails:
    expression: str
    reading: str
    furigana_segments: List[FuriganaSegment]
    term_tags: List[Tag]
    term_frequency: str
    frequencies: List[FrequencyData] = field(default_factory=list)
    pitches: List[PitchData] = field(default_factory=list)


@dataclass
class MergedTermDefinition:
    """All senses of a main dictionary sequence, merged."""
    source: str
    raw_source: str
    reasons: List[str]
    score: int
    dictionary: str
    expression: List[str]
    reading: List[str]
    expressions: List[ExpressionDetails]
    definitions: List[Union[MergedGlossaryTermDefinition, TermDefinition]]
    frequencies: List[FrequencyData] = field(default_factory=list)
    pitches: List[PitchData] = field(default_factory=list)
    type: str = 'termMerged'


AnyTermDefinition = Union[TermDefinition, GroupedTermDefinition, MergedTermDefinition,
                          MergedGlossaryTermDefinition]


# ============================================================================
# Kanji Definitions
# ============================================================================

@dataclass
class KanjiFrequency:
    character: str
    frequency: Any
    dictionary: str


@dataclass
class KanjiDefinition:
    character: str
    dictionary: str
    onyomi: List[str]
    kunyomi: List[str]
    glossary: List[str]
    tags: List[Tag]
    stats: Dict[str, List[KanjiStat]]
    frequencies: List[KanjiFrequency] = field(default_factory=list)
    type: str = 'kanji'


# ============================================================================
# Serialization
# ============================================================================

def _camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.capitalize() for part in rest)


def to_dict(value: Any) -> Any:
    """
    Convert definitions (or lists/dicts of them) to JSON-ready data.

    Field names are converted to camelCase; furigana segments become
    {"text", "furigana"} objects.
    """
    if is_dataclass(value) and not isinstance(value, type):
        return {_camel(f.name): to_dict(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {key: to_dict(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dict(item) for item in value]
    return value
