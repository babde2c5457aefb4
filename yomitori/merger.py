"""
Grouping and merging of term definitions.

These helpers shape the flat definition list produced by the translator
into grouped and merged results. They are synchronous; the store
round-trips of merge mode live on Translator.
"""

import json
from typing import Dict, Iterable, List, Mapping, Optional, Set

from yomitori.characters import distribute_furigana
from yomitori.definitions import (
    ExpressionDetails, GroupedTermDefinition, MergedGlossaryTermDefinition, MergedTermDefinition,
    Tag, TermDefinition,
)
from yomitori.models import DictionaryOptions
from yomitori.sorting import sort_definitions, sort_tags


def create_map_key(values: Iterable) -> str:
    return json.dumps(list(values), ensure_ascii=False, separators=(',', ':'))


def get_max_definition_score(definitions: Iterable) -> int:
    return max((definition.score for definition in definitions), default=0)


def score_to_term_frequency(score: int) -> str:
    if score > 0:
        return 'popular'
    if score < 0:
        return 'rare'
    return 'normal'


def remove_duplicate_definitions(definitions: List[TermDefinition]):
    """
    Collapse definitions sharing an id, in place.

    A later duplicate replaces the kept one only when its expression is
    strictly longer; otherwise the later one is dropped.
    """
    kept: Dict[int, TermDefinition] = {}
    for definition in definitions:
        existing = kept.get(definition.id)
        if existing is None or len(definition.expression) > len(existing.expression):
            kept[definition.id] = definition
    survivors = set(id(definition) for definition in kept.values())
    definitions[:] = [definition for definition in definitions if id(definition) in survivors]


# ============================================================================
# Grouping
# ============================================================================

def create_grouped_term_definition(definitions: List[TermDefinition]) -> GroupedTermDefinition:
    first = definitions[0]
    return GroupedTermDefinition(
        source=first.source,
        raw_source=first.raw_source,
        reasons=list(first.reasons),
        score=get_max_definition_score(definitions),
        dictionary=first.dictionary,
        expression=first.expression,
        reading=first.reading,
        furigana_segments=list(first.furigana_segments),
        term_tags=[tag.clone() for tag in first.term_tags],
        definitions=definitions,
    )


def group_terms(definitions: List[TermDefinition],
                dictionaries: Optional[Mapping[str, DictionaryOptions]]) -> List[GroupedTermDefinition]:
    """Group definitions by (source, expression, reading, reasons)."""
    groups: Dict[str, List[TermDefinition]] = {}
    for definition in definitions:
        key = create_map_key([definition.source, definition.expression, definition.reading, *definition.reasons])
        groups.setdefault(key, []).append(definition)

    results = []
    for group_definitions in groups.values():
        sort_definitions(group_definitions, dictionaries)
        results.append(create_grouped_term_definition(group_definitions))
    return results


# ============================================================================
# Merging
# ============================================================================

class GlossaryGroup:
    """Definitions from one dictionary that share a glossary."""

    def __init__(self):
        self.expressions: Dict[str, None] = {}
        self.readings: Dict[str, None] = {}
        self.definitions: List[TermDefinition] = []


def merge_by_glossary(definitions: Iterable[TermDefinition], definitions_by_glossary: Dict[str, GlossaryGroup]):
    for definition in definitions:
        key = create_map_key([definition.dictionary, *definition.glossary])
        group = definitions_by_glossary.get(key)
        if group is None:
            group = GlossaryGroup()
            definitions_by_glossary[key] = group
        # Dicts as insertion-ordered sets
        group.expressions[definition.expression] = None
        group.readings[definition.reading] = None
        group.definitions.append(definition)


DefinitionDetailsMap = Dict[str, Dict[str, Dict[str, Tag]]]


def add_definition_details(definitions: Iterable[TermDefinition], details: DefinitionDetailsMap):
    """Record expression -> reading -> {tag name: tag} for definitions."""
    for definition in definitions:
        reading_map = details.setdefault(definition.expression, {})
        term_tags_map = reading_map.setdefault(definition.reading, {})
        for tag in definition.term_tags:
            if tag.name not in term_tags_map:
                term_tags_map[tag.name] = tag.clone()


def remove_used_definitions(definitions: List[TermDefinition], details: DefinitionDetailsMap,
                            used_definitions: Set[int]):
    """
    Keep only definitions whose (expression, reading) is in details, in place.

    Kept definitions are recorded in used_definitions by object id.
    """
    kept = []
    for definition in definitions:
        reading_map = details.get(definition.expression)
        if reading_map is not None and definition.reading in reading_map:
            used_definitions.add(id(definition))
            kept.append(definition)
    definitions[:] = kept


def get_unique_definition_tags(definitions: Iterable[TermDefinition]) -> List[Tag]:
    tags: Dict[str, Tag] = {}
    for definition in definitions:
        for tag in definition.definition_tags:
            if tag.name not in tags:
                tags[tag.name] = tag.clone()
    return list(tags.values())


def get_term_tags_score_sum(term_tags: Iterable[Tag]) -> int:
    return sum(tag.score for tag in term_tags)


def create_expression_details(expression: str, reading: str, term_tags: List[Tag]) -> ExpressionDetails:
    return ExpressionDetails(
        expression=expression,
        reading=reading,
        furigana_segments=distribute_furigana(expression, reading),
        term_tags=term_tags,
        term_frequency=score_to_term_frequency(get_term_tags_score_sum(term_tags)),
    )


def create_merged_glossary_term_definition(source: str, raw_source: str, definitions: List[TermDefinition],
                                           expressions: Iterable[str], readings: Iterable[str],
                                           all_expressions: Iterable[str],
                                           all_readings: Iterable[str]) -> MergedGlossaryTermDefinition:
    """
    Build a glossary group.

    `only` lists the group's expressions (and readings) when they are not
    all of the merged entry's, so a sense can be flagged as applying to
    some spellings only.
    """
    expressions = list(expressions)
    readings = list(readings)
    all_expressions = set(all_expressions)
    all_readings = set(all_readings)
    only = []
    if set(expressions) != all_expressions:
        only.extend(expression for expression in expressions if expression in all_expressions)
    if set(readings) != all_readings:
        only.extend(reading for reading in readings if reading in all_readings)

    definition_tags = get_unique_definition_tags(definitions)
    sort_tags(definition_tags)

    first = definitions[0]
    return MergedGlossaryTermDefinition(
        source=source,
        raw_source=raw_source,
        reasons=[],
        score=get_max_definition_score(definitions),
        dictionary=first.dictionary,
        expression=expressions,
        reading=readings,
        glossary=list(first.glossary),
        definition_tags=definition_tags,
        only=only,
        definitions=definitions,
    )


def create_merged_term_definition(source: str, raw_source: str, definitions: list, expressions: List[str],
                                  readings: List[str], expression_details: List[ExpressionDetails],
                                  reasons: List[str], dictionary: str, score: int) -> MergedTermDefinition:
    return MergedTermDefinition(
        source=source,
        raw_source=raw_source,
        reasons=reasons,
        score=score,
        dictionary=dictionary,
        expression=expressions,
        reading=readings,
        expressions=expression_details,
        definitions=definitions,
    )


# ============================================================================
# Tag Compaction
# ============================================================================

def _get_tag_names_with_category(tags: Iterable[Tag], category: str) -> List[str]:
    return sorted(tag.name for tag in tags if tag.category == category)


def compress_definition_tags(definitions: Iterable):
    """
    Drop tags repeated from the previous definition, in place.

    Dictionary tags are dropped when the dictionary did not change;
    part-of-speech tags when they match the previous definition of the
    same dictionary.
    """
    last_dictionary = ''
    last_part_of_speech = ''
    for definition in definitions:
        definition_tags = definition.definition_tags
        dictionary = create_map_key(_get_tag_names_with_category(definition_tags, 'dictionary'))
        part_of_speech = create_map_key(_get_tag_names_with_category(definition_tags, 'partOfSpeech'))

        remove_categories = set()
        if last_dictionary == dictionary:
            remove_categories.add('dictionary')
        else:
            last_dictionary = dictionary
            last_part_of_speech = ''

        if last_part_of_speech == part_of_speech:
            remove_categories.add('partOfSpeech')
        else:
            last_part_of_speech = part_of_speech

        if remove_categories:
            definition_tags[:] = [tag for tag in definition_tags if tag.category not in remove_categories]
