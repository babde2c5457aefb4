"""
Frequency and pitch accent metadata for yomitori definitions.
"""

import logging
from typing import Any, Dict, List, Optional

from yomitori.definitions import (
    FrequencyData, GroupedTermDefinition, KanjiDefinition, KanjiFrequency,
    MergedTermDefinition, PitchAccent, PitchData, TermDefinition,
)
from yomitori.models import DictionaryOptions
from yomitori.tags import TagResolver

logger = logging.getLogger(__name__)


def get_frequency_data(expression: str, data: Any, dictionary: str, term) -> Optional[FrequencyData]:
    """
    Frequency for a term, or None when the data targets another reading.

    Object data carries its own reading; plain values apply to every
    reading of the expression.
    """
    if isinstance(data, dict):
        term_reading = term.reading or expression
        if data.get('reading') != term_reading:
            return None
        return FrequencyData(expression=expression, frequency=data.get('frequency'), dictionary=dictionary)
    return FrequencyData(expression=expression, frequency=data, dictionary=dictionary)


async def get_pitch_data(expression: str, data: Any, dictionary: str, term,
                         tag_resolver: TagResolver) -> Optional[PitchData]:
    if not isinstance(data, dict):
        return None
    reading = data.get('reading')
    term_reading = term.reading or expression
    if reading != term_reading:
        return None

    pitches = []
    for pitch in data.get('pitches', []):
        tags = pitch.get('tags')
        tags = await tag_resolver.expand_tags(tags, dictionary) if isinstance(tags, list) else []
        pitches.append(PitchAccent(position=pitch.get('position'), tags=tags))

    return PitchData(reading=reading, dictionary=dictionary, pitches=pitches)


async def build_term_meta(definitions: List[Any], dictionaries: Dict[str, DictionaryOptions],
                          database, tag_resolver: TagResolver):
    """
    Attach frequency and pitch metadata to definitions in place.

    Merged definitions receive metadata on each of their expressions.
    """
    terms: List[Any] = []
    for definition in definitions:
        if isinstance(definition, (TermDefinition, GroupedTermDefinition)):
            terms.append(definition)
        elif isinstance(definition, MergedTermDefinition):
            terms.extend(definition.expressions)

    if not terms:
        return

    # Unique expressions, each with the terms that share it
    expressions_unique: List[str] = []
    terms_unique: List[List[Any]] = []
    terms_unique_map: Dict[str, List[Any]] = {}
    for term in terms:
        term_list = terms_unique_map.get(term.expression)
        if term_list is None:
            term_list = []
            expressions_unique.append(term.expression)
            terms_unique.append(term_list)
            terms_unique_map[term.expression] = term_list
        term_list.append(term)

    metas = await database.find_term_meta_bulk(expressions_unique, dictionaries)
    for meta in metas:
        if meta.mode == 'freq':
            for term in terms_unique[meta.index]:
                frequency_data = get_frequency_data(meta.expression, meta.data, meta.dictionary, term)
                if frequency_data is None:
                    continue
                term.frequencies.append(frequency_data)
        elif meta.mode == 'pitch':
            for term in terms_unique[meta.index]:
                pitch_data = await get_pitch_data(meta.expression, meta.data, meta.dictionary, term, tag_resolver)
                if pitch_data is None:
                    continue
                term.pitches.append(pitch_data)
        else:
            logger.debug(f"Ignoring term meta with unknown mode {meta.mode!r}")


async def build_kanji_meta(definitions: List[KanjiDefinition], dictionaries: Dict[str, DictionaryOptions],
                           database):
    characters = [definition.character for definition in definitions]
    if not characters:
        return

    metas = await database.find_kanji_meta_bulk(characters, dictionaries)
    for meta in metas:
        if meta.mode == 'freq':
            definitions[meta.index].frequencies.append(
                KanjiFrequency(character=meta.character, frequency=meta.data, dictionary=meta.dictionary)
            )
