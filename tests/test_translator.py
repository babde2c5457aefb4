"""
Tests for translator.py - term and kanji lookup.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from yomitori.definitions import (
    GroupedTermDefinition, KanjiDefinition, MergedTermDefinition, TermDefinition, to_dict,
)
from yomitori.errors import LookupFailure
from yomitori.models import FindTermsOptions
from yomitori.translator import Translator


def find(translator, mode, text, options, details=None):
    return asyncio.run(translator.find_terms(mode, text, details or {}, options))


class TestSimpleMode:
    """Flat, sorted definitions."""

    def test_inflected_verb(self, translator, options):
        definitions, length = find(translator, 'simple', '見た', options)
        assert length == 2
        assert [d.expression for d in definitions] == ['見る', '見る', '見']
        assert [d.glossary for d in definitions] == [['to see'], ['to look after'], ['view']]
        assert [d.reasons for d in definitions] == [['past'], ['past'], []]
        assert all(isinstance(d, TermDefinition) for d in definitions)

    def test_provenance(self, translator, options):
        definitions, _ = find(translator, 'simple', '見た', options)
        assert definitions[0].source == '見た'
        assert definitions[0].raw_source == '見た'
        assert definitions[-1].source == '見'

    def test_tags_resolved_and_sorted(self, translator, options):
        definitions, _ = find(translator, 'simple', '見た', options)
        first = definitions[0]
        assert [tag.name for tag in first.definition_tags] == ['v1', 'JMdict']
        assert first.definition_tags[0].category == 'partOfSpeech'
        assert first.definition_tags[1].category == 'dictionary'
        assert first.definition_tags[1].order == 100
        assert [(tag.name, tag.category) for tag in first.term_tags] == [('P', 'popular')]

    def test_furigana(self, translator, options):
        definitions, _ = find(translator, 'simple', '見た', options)
        segments = definitions[0].furigana_segments
        assert [(s.text, s.furigana) for s in segments] == [('見', 'み'), ('る', '')]

    def test_katakana_input_matches_reading(self, translator, options):
        definitions, length = find(translator, 'simple', 'ミタ', options)
        assert length == 2
        longest = [d for d in definitions if d.source == 'みた']
        assert {d.expression for d in longest} == {'見る', '観る'}
        assert all(d.raw_source == 'ミタ' for d in longest)
        # み alone matches the reading of 見
        assert definitions[-1].expression == '見'
        assert definitions[-1].raw_source == 'ミ'

    def test_no_match(self, translator, options):
        assert find(translator, 'simple', 'xyz', options) == ([], 0)

    def test_non_japanese_prefix_without_alphanumeric(self, translator, options):
        options.scanning.alphanumeric = False
        assert find(translator, 'simple', 'abc見た', options) == ([], 0)

    def test_disabled_dictionary_not_searched(self, translator):
        options = FindTermsOptions.model_validate({
            'dictionaries': {'JMdict': {'enabled': False}, 'Extra': {'enabled': True}},
        })
        assert find(translator, 'simple', '見た', options) == ([], 0)


class TestExampleScenarios:
    """End-to-end behavior with a one-reason rule table."""

    def test_compatible_rules_accepted(self, memory_db, toy_deinflector):
        memory_db.add_dictionary('D')
        memory_db.add_terms('D', [{'expression': '見る', 'reading': 'みる', 'rules': ['v1'], 'glossary': ['see']}])
        translator = Translator(memory_db, toy_deinflector)
        options = {'dictionaries': {'D': {'enabled': True}}}

        definitions, length = find(translator, 'simple', '見た', options)
        assert len(definitions) == 1
        assert definitions[0].reasons == ['past']
        assert definitions[0].sequence == -1
        assert length == 2

    def test_incompatible_rules_rejected(self, memory_db, toy_deinflector):
        memory_db.add_dictionary('D')
        memory_db.add_terms('D', [{'expression': '見る', 'reading': 'みる', 'rules': ['v5'], 'glossary': ['see']}])
        translator = Translator(memory_db, toy_deinflector)
        options = {'dictionaries': {'D': {'enabled': True}}}

        assert find(translator, 'simple', '見た', options) == ([], 0)

    def test_incompatible_rules_fall_through_to_literal(self, memory_db, toy_deinflector):
        memory_db.add_dictionary('D')
        memory_db.add_terms('D', [
            {'expression': '見る', 'reading': 'みる', 'rules': ['v5'], 'glossary': ['see']},
            {'expression': '見', 'reading': 'み', 'glossary': ['view']},
        ])
        translator = Translator(memory_db, toy_deinflector)
        options = {'dictionaries': {'D': {'enabled': True}}}

        definitions, length = find(translator, 'simple', '見た', options)
        assert [d.expression for d in definitions] == ['見']
        assert length == 1

    def test_empty_text_makes_no_store_calls(self, toy_deinflector):
        store = MagicMock()
        store.find_terms_bulk = AsyncMock()
        translator = Translator(store, toy_deinflector)

        for mode in ('simple', 'split', 'group', 'merge'):
            assert find(translator, mode, '', {}) == ([], 0)
        store.find_terms_bulk.assert_not_called()

    def test_secondary_dictionary_sense_merged_into_sequence(self, translator, options):
        definitions, _ = find(translator, 'merge', '見た', options)
        merged = definitions[0]
        glossaries = [sub.glossary for sub in merged.definitions]
        assert ['to view (a performance)'] in glossaries
        extra = [sub for sub in merged.definitions if sub.dictionary == 'Extra']
        assert len(extra) == 1
        # Not left as a separate result
        assert all('Extra' != d.dictionary for d in definitions[1:])


class TestGroupMode:

    def test_groups(self, translator, options):
        definitions, length = find(translator, 'group', '見た', options)
        assert length == 2
        assert all(isinstance(d, GroupedTermDefinition) for d in definitions)
        assert [(d.expression, d.reading) for d in definitions] == [('見る', 'みる'), ('見', 'み')]

        group = definitions[0]
        assert group.score == 10
        assert group.reasons == ['past']
        assert [d.glossary for d in group.definitions] == [['to see'], ['to look after']]

    def test_metadata_attached(self, translator, options):
        definitions, _ = find(translator, 'group', '見た', options)
        group = definitions[0]
        assert [(f.frequency, f.dictionary) for f in group.frequencies] == [(120, 'JMdict')]
        # The pitch entry for another reading is skipped
        assert len(group.pitches) == 1
        assert group.pitches[0].reading == 'みる'
        assert group.pitches[0].pitches[0].position == 1

    def test_compact_tags(self, translator, options):
        options.general.compact_tags = True
        definitions, _ = find(translator, 'group', '見た', options)
        first, second = definitions[0].definitions
        assert [tag.name for tag in first.definition_tags] == ['v1', 'JMdict']
        assert second.definition_tags == []


class TestSplitMode:

    def test_flat_with_metadata(self, translator, options):
        definitions, length = find(translator, 'split', '見た', options)
        assert length == 2
        assert [d.expression for d in definitions] == ['見る', '見る', '見']
        assert [f.frequency for f in definitions[0].frequencies] == [120]
        assert definitions[2].frequencies == []

    def test_priority_sorts_first(self, translator, options):
        options.dictionaries['Extra'].priority = 5
        definitions, _ = find(translator, 'split', 'みた', options)
        assert definitions[0].dictionary == 'Extra'


class TestMergeMode:

    def test_merged_by_sequence(self, translator, options):
        definitions, length = find(translator, 'merge', '見た', options)
        assert length == 2
        assert all(isinstance(d, MergedTermDefinition) for d in definitions)

        merged = definitions[0]
        assert merged.expression == ['見る', '観る']
        assert merged.reading == ['みる']
        assert merged.reasons == ['past']
        assert merged.score == 10
        assert [sub.glossary for sub in merged.definitions] == [
            ['to see'], ['to look after'], ['to watch'], ['to view (a performance)'],
        ]

    def test_only_lists_partial_expressions(self, translator, options):
        definitions, _ = find(translator, 'merge', '見た', options)
        only = {sub.glossary[0]: sub.only for sub in definitions[0].definitions}
        assert only == {
            'to see': ['見る'],
            'to look after': ['見る'],
            'to watch': ['観る'],
            'to view (a performance)': ['観る'],
        }

    def test_expression_details(self, translator, options):
        definitions, _ = find(translator, 'merge', '見た', options)
        details = definitions[0].expressions
        assert [(d.expression, d.reading) for d in details] == [('見る', 'みる'), ('観る', 'みる')]
        assert details[0].term_frequency == 'popular'
        assert details[1].term_frequency == 'normal'
        assert [f.frequency for f in details[0].frequencies] == [120]
        assert details[1].frequencies == []

    def test_without_secondary_searches(self, translator, options):
        options.dictionaries['Extra'].allow_secondary_searches = False
        definitions, _ = find(translator, 'merge', '見た', options)
        assert [sub.dictionary for sub in definitions[0].definitions] == ['JMdict'] * 3

    def test_direct_unsequenced_match_joins_sequence(self, translator, options):
        options.dictionaries['Extra'].allow_secondary_searches = False
        definitions, _ = find(translator, 'merge', 'みた', options)
        assert [(d.expression, d.reading) for d in definitions] == [(['見る', '観る'], ['みる']), (['見'], ['み'])]
        assert [sub.dictionary for sub in definitions[0].definitions] == ['JMdict', 'JMdict', 'JMdict', 'Extra']
        assert definitions[0].definitions[-1].only == ['観る']
        assert definitions[1].definitions[0].dictionary == 'JMdict'

    def test_unsequenced_definitions_grouped(self, translator):
        options = FindTermsOptions.model_validate({
            'general': {'mainDictionary': 'Extra'},
            'dictionaries': {'JMdict': {}, 'Extra': {}},
        })
        definitions, _ = find(translator, 'merge', '見た', options)
        assert [d.expression for d in definitions] == [['見る'], ['見']]
        assert len(definitions[0].definitions) == 2
        assert definitions[0].dictionary == 'JMdict'

    def test_secondary_search_failure_fails_call(self, translator, options, populated_db):
        with patch.object(populated_db, 'find_terms_exact_bulk', side_effect=LookupFailure('store down')):
            with pytest.raises(LookupFailure):
                find(translator, 'merge', '見た', options)

    def test_deterministic(self, translator, options):
        first = to_dict(find(translator, 'merge', '見た', options)[0])
        second = to_dict(find(translator, 'merge', '見た', options)[0])
        assert first == second


class TestWildcard:

    def test_suffix_wildcard(self, translator, options):
        definitions, length = find(translator, 'simple', '見', options, {'wildcard': 'suffix'})
        assert length == 1
        assert [d.expression for d in definitions] == ['見る', '見る', '見']
        assert all(d.reasons == [] for d in definitions)

    def test_prefix_wildcard(self, translator, options):
        definitions, length = find(translator, 'simple', 'る', options, {'wildcard': 'prefix'})
        assert length == 1
        assert {d.expression for d in definitions} == {'見る', '観る', '食べる'}

    def test_wildcard_without_match(self, translator, options):
        assert find(translator, 'simple', 'ぬ', options, {'wildcard': 'suffix'}) == ([], 0)


class TestFindTermsErrors:

    def test_mode_from_options(self, translator, options):
        assert all(isinstance(d, GroupedTermDefinition) for d in find(translator, None, '見た', options)[0])
        options.general.result_output_mode = 'merge'
        definitions, length = find(translator, None, '見た', options)
        assert length == 2
        assert all(isinstance(d, MergedTermDefinition) for d in definitions)

    def test_unknown_mode(self, translator, options):
        assert find(translator, 'bogus', '見た', options) == ([], 0)

    def test_store_failure(self, translator, options, populated_db):
        with patch.object(populated_db, 'find_terms_bulk', side_effect=LookupFailure('store down')):
            with pytest.raises(LookupFailure):
                find(translator, 'group', '見た', options)

    def test_tag_cache_invalidated_on_change(self, translator, options, populated_db):
        find(translator, 'simple', '見た', options)
        assert len(translator.tag_cache) > 0
        populated_db.add_dictionary('Other')
        assert len(translator.tag_cache) == 0


class TestFindKanji:

    def test_kanji(self, translator, options):
        definitions = asyncio.run(translator.find_kanji('見日x見', options))
        assert all(isinstance(d, KanjiDefinition) for d in definitions)
        assert [d.character for d in definitions] == ['見', '日']

        kanji = definitions[0]
        assert kanji.onyomi == ['ケン']
        assert kanji.kunyomi == ['み.る', 'み.せる']
        assert kanji.glossary == ['see', 'look']
        assert [tag.name for tag in kanji.tags] == ['jouyou', 'KANJIDIC']
        assert [stat.name for stat in kanji.stats['misc']] == ['grade', 'strokes']
        assert kanji.stats['misc'][1].value == '7'
        assert [f.frequency for f in kanji.frequencies] == [200]
        assert definitions[1].frequencies == []

    def test_no_kanji(self, translator, options):
        assert asyncio.run(translator.find_kanji('', options)) == []
        assert asyncio.run(translator.find_kanji('xyz', options)) == []
