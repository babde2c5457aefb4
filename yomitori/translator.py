"""
Term and kanji lookup for yomitori.

The Translator turns scanned text into dictionary definitions:

    1. Expand the text into normalization variants (text_variants).
    2. Deinflect every prefix of every variant, longest first.
    3. Look up all distinct candidate terms in one store call and keep
       entries whose part-of-speech rules fit each candidate.
    4. Build definitions (tags, furigana, provenance) and shape them
       according to the requested mode: simple, split, group or merge.

Usage:
    db = DictionaryDatabase("dict.db")
    db.prepare()
    translator = Translator(db)
    definitions, length = asyncio.run(
        translator.find_terms("group", "食べなかった", {}, options)
    )
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from yomitori.characters import distribute_furigana, is_code_point_japanese
from yomitori.database import DictionaryStore
from yomitori.deinflector import Deinflection, Deinflector, load_default_deinflector
from yomitori.definitions import DatabaseKanji, DatabaseTerm, KanjiDefinition, TermDefinition
from yomitori.merger import (
    add_definition_details,
    compress_definition_tags,
    create_expression_details,
    create_merged_glossary_term_definition,
    create_merged_term_definition,
    group_terms,
    merge_by_glossary,
    remove_duplicate_definitions,
    remove_used_definitions,
)
from yomitori.meta import build_kanji_meta, build_term_meta
from yomitori.models import DictionaryOptions, FindTermsDetails, FindTermsMode, FindTermsOptions
from yomitori.rules import rules_compatible, rules_to_rule_flags
from yomitori.sorting import sort_database_definitions_by_index, sort_definitions, sort_tags
from yomitori.tags import TagCache, TagResolver, create_dictionary_tag
from yomitori.text_variants import expand_text_variants

logger = logging.getLogger(__name__)

DictionaryMap = Dict[str, DictionaryOptions]


@dataclass
class _SequencedDefinition:
    reasons: List[str]
    score: int
    source: str
    raw_source: str
    dictionary: str
    definitions: List[TermDefinition] = field(default_factory=list)


def _coerce_options(options: Union[FindTermsOptions, dict, None]) -> FindTermsOptions:
    if options is None:
        return FindTermsOptions()
    if isinstance(options, FindTermsOptions):
        return options
    return FindTermsOptions.model_validate(options)


def _coerce_details(details: Union[FindTermsDetails, dict, None]) -> FindTermsDetails:
    if details is None:
        return FindTermsDetails()
    if isinstance(details, FindTermsDetails):
        return details
    return FindTermsDetails.model_validate(details)


class Translator:
    """Finds term and kanji definitions in a dictionary store."""

    def __init__(self, database: DictionaryStore, deinflector: Optional[Deinflector] = None):
        self._database = database
        self._deinflector = deinflector if deinflector is not None else load_default_deinflector()
        self.tag_cache = TagCache()
        self._tag_resolver = TagResolver(database, self.tag_cache)
        database.add_change_listener(self.clear_database_caches)

    def clear_database_caches(self):
        self.tag_cache.invalidate()

    async def find_terms(self, mode: Union[FindTermsMode, str, None], text: str,
                         details: Union[FindTermsDetails, dict, None] = None,
                         options: Union[FindTermsOptions, dict, None] = None) -> Tuple[List[Any], int]:
        """
        Find term definitions for the start of text.

        Args:
            mode: simple, split, group or merge; None uses
                options.general.result_output_mode.
            text: Scanned text; definitions are matched against its prefixes.
            details: Lookup details (wildcard).
            options: Lookup options.

        Returns:
            (definitions, length) where length is the number of characters
            of text consumed by the longest match. Unknown modes return
            ([], 0).

        Raises:
            LookupFailure: If a store query fails.
        """
        details = _coerce_details(details)
        options = _coerce_options(options)
        if mode is None:
            mode = options.general.result_output_mode

        try:
            mode = FindTermsMode(mode)
        except ValueError:
            logger.debug(f"Unknown find terms mode {mode!r}")
            return [], 0

        if mode == FindTermsMode.GROUP:
            return await self._find_terms_grouped(text, details, options)
        if mode == FindTermsMode.MERGE:
            return await self._find_terms_merged(text, details, options)
        if mode == FindTermsMode.SPLIT:
            return await self._find_terms_split(text, details, options)
        return await self._find_terms_simple(text, details, options)

    async def find_kanji(self, text: str,
                         options: Union[FindTermsOptions, dict, None] = None) -> List[KanjiDefinition]:
        """Find kanji definitions for each distinct character of text."""
        options = _coerce_options(options)
        dictionaries = options.get_enabled_dictionary_map()
        kanji_unique = list(dict.fromkeys(text))
        if not kanji_unique:
            return []

        database_definitions = await self._database.find_kanji_bulk(kanji_unique, dictionaries)
        if not database_definitions:
            return []

        sort_database_definitions_by_index(database_definitions)
        definitions = list(await asyncio.gather(*(
            self._create_kanji_definition(database_definition)
            for database_definition in database_definitions
        )))

        await build_kanji_meta(definitions, dictionaries, self._database)
        return definitions

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    async def _find_terms_grouped(self, text: str, details: FindTermsDetails, options: FindTermsOptions):
        dictionaries = options.get_enabled_dictionary_map()
        definitions, length = await self._find_terms_internal(text, dictionaries, details, options)

        grouped_definitions = group_terms(definitions, dictionaries)
        await build_term_meta(grouped_definitions, dictionaries, self._database, self._tag_resolver)
        sort_definitions(grouped_definitions, None)

        if options.general.compact_tags:
            for definition in grouped_definitions:
                compress_definition_tags(definition.definitions)

        return grouped_definitions, length

    async def _find_terms_merged(self, text: str, details: FindTermsDetails, options: FindTermsOptions):
        dictionaries = options.get_enabled_dictionary_map()
        secondary_search_dictionaries = options.get_secondary_search_dictionary_map()

        definitions, length = await self._find_terms_internal(text, dictionaries, details, options)
        sequenced_definitions, unsequenced_definitions = await self._get_sequenced_definitions(
            definitions, options.general.main_dictionary)

        details_maps = []
        for sequenced_definition in sequenced_definitions:
            details_map = {}
            add_definition_details(sequenced_definition.definitions, details_map)
            details_maps.append(details_map)

        secondary_results = await asyncio.gather(*(
            self._get_merged_secondary_search_results(details_map, secondary_search_dictionaries)
            for details_map in details_maps
        ))

        definitions_merged = []
        used_definitions = set()
        for sequenced_definition, details_map, secondary_definitions in zip(
                sequenced_definitions, details_maps, secondary_results):
            definitions_merged.append(self._get_merged_definition(
                sequenced_definition,
                details_map,
                unsequenced_definitions,
                secondary_definitions,
                dictionaries,
                used_definitions,
            ))

        unused_definitions = [
            definition for definition in unsequenced_definitions
            if id(definition) not in used_definitions
        ]
        for grouped_definition in group_terms(unused_definitions, dictionaries):
            expression_details = create_expression_details(
                grouped_definition.expression, grouped_definition.reading, grouped_definition.term_tags)
            definitions_merged.append(create_merged_term_definition(
                grouped_definition.source,
                grouped_definition.raw_source,
                grouped_definition.definitions,
                [grouped_definition.expression],
                [grouped_definition.reading],
                [expression_details],
                grouped_definition.reasons,
                grouped_definition.dictionary,
                grouped_definition.score,
            ))

        await build_term_meta(definitions_merged, dictionaries, self._database, self._tag_resolver)
        sort_definitions(definitions_merged, None)

        if options.general.compact_tags:
            for definition in definitions_merged:
                compress_definition_tags(definition.definitions)

        return definitions_merged, length

    async def _find_terms_split(self, text: str, details: FindTermsDetails, options: FindTermsOptions):
        dictionaries = options.get_enabled_dictionary_map()
        definitions, length = await self._find_terms_internal(text, dictionaries, details, options)
        await build_term_meta(definitions, dictionaries, self._database, self._tag_resolver)
        sort_definitions(definitions, dictionaries)
        return definitions, length

    async def _find_terms_simple(self, text: str, details: FindTermsDetails, options: FindTermsOptions):
        dictionaries = options.get_enabled_dictionary_map()
        definitions, length = await self._find_terms_internal(text, dictionaries, details, options)
        sort_definitions(definitions, None)
        return definitions, length

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    async def _find_terms_internal(self, text: str, dictionaries: DictionaryMap, details: FindTermsDetails,
                                   options: FindTermsOptions) -> Tuple[List[TermDefinition], int]:
        text = self._get_searchable_text(text, options)
        if not text:
            return [], 0

        if details.wildcard:
            deinflections = await self._find_term_wildcard(text, dictionaries, details.wildcard)
        else:
            deinflections = await self._find_term_deinflections(text, dictionaries, options)

        max_length = 0
        pending = []
        for deinflection in deinflections:
            if not deinflection.database_definitions:
                continue
            max_length = max(max_length, len(deinflection.raw_source))
            for database_definition in deinflection.database_definitions:
                pending.append(self._create_term_definition(
                    database_definition,
                    deinflection.source,
                    deinflection.raw_source,
                    deinflection.reasons,
                ))

        definitions = list(await asyncio.gather(*pending))
        remove_duplicate_definitions(definitions)
        return definitions, max_length

    async def _find_term_wildcard(self, text: str, dictionaries: DictionaryMap, wildcard) -> List[Deinflection]:
        database_definitions = await self._database.find_terms_bulk([text], dictionaries, wildcard)
        if not database_definitions:
            return []

        return [Deinflection(
            source=text,
            raw_source=text,
            term=text,
            rules=0,
            reasons=[],
            database_definitions=database_definitions,
        )]

    async def _find_term_deinflections(self, text: str, dictionaries: DictionaryMap,
                                       options: FindTermsOptions) -> List[Deinflection]:
        deinflections = self._get_all_deinflections(text, options)
        if not deinflections:
            return []

        # One lookup key per distinct term; candidates keep their own masks
        unique_terms: List[str] = []
        unique_arrays: List[List[Deinflection]] = []
        unique_map: Dict[str, List[Deinflection]] = {}
        for deinflection in deinflections:
            array = unique_map.get(deinflection.term)
            if array is None:
                array = []
                unique_terms.append(deinflection.term)
                unique_arrays.append(array)
                unique_map[deinflection.term] = array
            array.append(deinflection)

        database_definitions = await self._database.find_terms_bulk(unique_terms, dictionaries, None)

        for database_definition in database_definitions:
            definition_rules = rules_to_rule_flags(database_definition.rules)
            for deinflection in unique_arrays[database_definition.index]:
                if rules_compatible(deinflection.rules, definition_rules):
                    deinflection.database_definitions.append(database_definition)

        return deinflections

    def _get_all_deinflections(self, text: str, options: FindTermsOptions) -> List[Deinflection]:
        deinflections = []
        used = set()
        for text2, source_map in expand_text_variants(text, options.translation):
            for i in range(len(text2), 0, -1):
                text2_substring = text2[:i]
                if text2_substring in used:
                    break
                used.add(text2_substring)
                raw_source = source_map.source[:source_map.get_source_length(i)]
                deinflections.extend(self._deinflector.deinflect(text2_substring, raw_source))
        return deinflections

    def _get_searchable_text(self, text: str, options: FindTermsOptions) -> str:
        if not options.scanning.alphanumeric:
            length = 0
            for c in text:
                if not is_code_point_japanese(ord(c)):
                    break
                length += 1
            text = text[:length]
        return text

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    async def _get_sequenced_definitions(self, definitions: List[TermDefinition], main_dictionary: str):
        sequence_list = []
        sequenced_definition_map: Dict[int, _SequencedDefinition] = {}
        sequenced_definitions: List[_SequencedDefinition] = []
        unsequenced_definitions: List[TermDefinition] = []
        for definition in definitions:
            if main_dictionary == definition.dictionary and definition.sequence >= 0:
                sequenced_definition = sequenced_definition_map.get(definition.sequence)
                if sequenced_definition is None:
                    sequenced_definition = _SequencedDefinition(
                        reasons=definition.reasons,
                        score=definition.score,
                        source=definition.source,
                        raw_source=definition.raw_source,
                        dictionary=definition.dictionary,
                    )
                    sequenced_definition_map[definition.sequence] = sequenced_definition
                    sequenced_definitions.append(sequenced_definition)
                    sequence_list.append(definition.sequence)
                else:
                    sequenced_definition.score = max(sequenced_definition.score, definition.score)
            else:
                unsequenced_definitions.append(definition)

        if sequence_list:
            database_definitions = await self._database.find_terms_by_sequence_bulk(sequence_list, main_dictionary)
            created = await asyncio.gather(*(
                self._create_term_definition(
                    database_definition,
                    sequenced_definitions[database_definition.index].source,
                    sequenced_definitions[database_definition.index].raw_source,
                    sequenced_definitions[database_definition.index].reasons,
                )
                for database_definition in database_definitions
            ))
            for database_definition, definition in zip(database_definitions, created):
                sequenced_definitions[database_definition.index].definitions.append(definition)

        return sequenced_definitions, unsequenced_definitions

    async def _get_merged_secondary_search_results(self, details_map, secondary_search_dictionaries: DictionaryMap):
        if not secondary_search_dictionaries:
            return []

        expression_list = []
        reading_list = []
        for expression, reading_map in details_map.items():
            for reading in reading_map.keys():
                expression_list.append(expression)
                reading_list.append(reading)

        database_definitions = await self._database.find_terms_exact_bulk(
            expression_list, reading_list, secondary_search_dictionaries)
        sort_database_definitions_by_index(database_definitions)

        return list(await asyncio.gather(*(
            self._create_term_definition(
                database_definition,
                expression_list[database_definition.index],
                expression_list[database_definition.index],
                [],
            )
            for database_definition in database_definitions
        )))

    def _get_merged_definition(self, sequenced_definition: _SequencedDefinition, details_map,
                               unsequenced_definitions: List[TermDefinition],
                               secondary_definitions: List[TermDefinition],
                               dictionaries: DictionaryMap, used_definitions: set):
        definitions_by_glossary = {}
        merge_by_glossary(sequenced_definition.definitions, definitions_by_glossary)

        candidates = [*unsequenced_definitions, *secondary_definitions]
        remove_used_definitions(candidates, details_map, used_definitions)
        remove_duplicate_definitions(candidates)
        merge_by_glossary(candidates, definitions_by_glossary)

        # Dicts as insertion-ordered sets
        all_expressions: Dict[str, None] = {}
        all_readings: Dict[str, None] = {}
        for group in definitions_by_glossary.values():
            all_expressions.update(group.expressions)
            all_readings.update(group.readings)

        sub_definitions = [
            create_merged_glossary_term_definition(
                sequenced_definition.source,
                sequenced_definition.raw_source,
                group.definitions,
                group.expressions,
                group.readings,
                all_expressions,
                all_readings,
            )
            for group in definitions_by_glossary.values()
        ]
        sort_definitions(sub_definitions, dictionaries)

        expression_details_list = []
        for expression, reading_map in details_map.items():
            for reading, term_tags_map in reading_map.items():
                term_tags = list(term_tags_map.values())
                sort_tags(term_tags)
                expression_details_list.append(create_expression_details(expression, reading, term_tags))

        return create_merged_term_definition(
            sequenced_definition.source,
            sequenced_definition.raw_source,
            sub_definitions,
            list(all_expressions),
            list(all_readings),
            expression_details_list,
            sequenced_definition.reasons,
            sequenced_definition.dictionary,
            sequenced_definition.score,
        )

    # ------------------------------------------------------------------
    # Definition Creation
    # ------------------------------------------------------------------

    async def _create_term_definition(self, database_definition: DatabaseTerm, source: str,
                                      raw_source: str, reasons: List[str]) -> TermDefinition:
        dictionary = database_definition.dictionary
        term_tags, definition_tags = await asyncio.gather(
            self._tag_resolver.expand_tags(database_definition.term_tags, dictionary),
            self._tag_resolver.expand_tags(database_definition.definition_tags, dictionary),
        )
        definition_tags.append(create_dictionary_tag(dictionary))

        sort_tags(definition_tags)
        sort_tags(term_tags)

        return TermDefinition(
            id=database_definition.id,
            source=source,
            raw_source=raw_source,
            reasons=reasons,
            score=database_definition.score,
            sequence=database_definition.sequence,
            dictionary=dictionary,
            expression=database_definition.expression,
            reading=database_definition.reading,
            furigana_segments=distribute_furigana(database_definition.expression, database_definition.reading),
            glossary=database_definition.glossary,
            definition_tags=definition_tags,
            term_tags=term_tags,
        )

    async def _create_kanji_definition(self, database_definition: DatabaseKanji) -> KanjiDefinition:
        dictionary = database_definition.dictionary
        stats, tags = await asyncio.gather(
            self._tag_resolver.expand_stats(database_definition.stats, dictionary),
            self._tag_resolver.expand_tags(database_definition.tags, dictionary),
        )
        tags.append(create_dictionary_tag(dictionary))
        sort_tags(tags)

        return KanjiDefinition(
            character=database_definition.character,
            dictionary=dictionary,
            onyomi=database_definition.onyomi,
            kunyomi=database_definition.kunyomi,
            glossary=database_definition.meanings,
            tags=tags,
            stats=stats,
        )
