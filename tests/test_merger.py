"""
Tests for merger.py - deduplication, grouping and glossary merging.
"""

from yomitori.characters import FuriganaSegment
from yomitori.definitions import Tag, TermDefinition
from yomitori.merger import (
    add_definition_details,
    compress_definition_tags,
    create_map_key,
    create_merged_glossary_term_definition,
    group_terms,
    merge_by_glossary,
    remove_duplicate_definitions,
    remove_used_definitions,
    score_to_term_frequency,
)


def make_definition(id, expression, reading='', source=None, reasons=(), score=0, dictionary='D',
                    glossary=('gloss',), definition_tags=None, term_tags=None):
    return TermDefinition(
        id=id,
        source=source or expression,
        raw_source=source or expression,
        reasons=list(reasons),
        score=score,
        sequence=-1,
        dictionary=dictionary,
        expression=expression,
        reading=reading,
        furigana_segments=[FuriganaSegment(expression, reading)],
        glossary=list(glossary),
        definition_tags=definition_tags or [],
        term_tags=term_tags or [],
    )


class TestRemoveDuplicateDefinitions:

    def test_longer_expression_wins(self):
        short = make_definition(7, '食べ')
        long = make_definition(7, '食べる')
        definitions = [short, long]
        remove_duplicate_definitions(definitions)
        assert definitions == [long]

    def test_first_kept_on_equal_length(self):
        first = make_definition(7, '食べる', source='食べた')
        second = make_definition(7, '食べる', source='食べ')
        definitions = [first, second]
        remove_duplicate_definitions(definitions)
        assert definitions == [first]

    def test_shorter_later_duplicate_dropped(self):
        long = make_definition(7, '食べる')
        other = make_definition(8, '見る')
        short = make_definition(7, '食べ')
        definitions = [long, other, short]
        remove_duplicate_definitions(definitions)
        assert definitions == [long, other]

    def test_exactly_one_survivor_per_id(self):
        definitions = [make_definition(i % 3, 'x' * (i + 1)) for i in range(9)]
        remove_duplicate_definitions(definitions)
        assert sorted(d.id for d in definitions) == [0, 1, 2]
        for d in definitions:
            assert len(d.expression) == max(i + 1 for i in range(9) if i % 3 == d.id)


class TestGroupTerms:

    def test_grouping_key(self):
        definitions = [
            make_definition(1, '見る', 'みる', source='見た', reasons=['past'], score=1),
            make_definition(2, '見る', 'みる', source='見た', reasons=['past'], score=5),
            make_definition(3, '見る', 'みる', source='見る'),
        ]
        groups = group_terms(definitions, None)
        assert len(groups) == 2
        assert groups[0].score == 5
        assert [d.id for d in groups[0].definitions] == [2, 1]
        assert groups[1].definitions[0].id == 3

    def test_map_key(self):
        assert create_map_key(['見る', 'a']) == '["見る","a"]'


class TestMergeByGlossary:

    def test_same_glossary_different_dictionary(self):
        groups = {}
        merge_by_glossary([
            make_definition(1, '見る', 'みる', glossary=['see'], dictionary='A'),
            make_definition(2, '観る', 'みる', glossary=['see'], dictionary='A'),
            make_definition(3, '見る', 'みる', glossary=['see'], dictionary='B'),
        ], groups)
        assert len(groups) == 2
        first = list(groups.values())[0]
        assert list(first.expressions) == ['見る', '観る']
        assert list(first.readings) == ['みる']
        assert len(first.definitions) == 2

    def test_only(self):
        definitions = [make_definition(1, '見る', 'みる')]
        merged = create_merged_glossary_term_definition(
            '見た', '見た', definitions, ['見る'], ['みる'], ['見る', '観る'], ['みる'])
        assert merged.only == ['見る']

        merged = create_merged_glossary_term_definition(
            '見た', '見た', definitions, ['見る', '観る'], ['みる'], ['見る', '観る'], ['みる'])
        assert merged.only == []

    def test_only_includes_partial_readings(self):
        definitions = [make_definition(1, '日', 'ひ')]
        merged = create_merged_glossary_term_definition(
            '日', '日', definitions, ['日'], ['ひ'], ['日'], ['ひ', 'にち'])
        assert merged.only == ['ひ']


class TestDefinitionDetails:

    def test_remove_used(self):
        details = {}
        add_definition_details([make_definition(1, '見る', 'みる', term_tags=[Tag('P')])], details)
        assert list(details['見る']['みる']) == ['P']

        kept = make_definition(2, '見る', 'みる')
        dropped = make_definition(3, '見る', 'けんる')
        definitions = [kept, dropped]
        used = set()
        remove_used_definitions(definitions, details, used)
        assert definitions == [kept]
        assert used == {id(kept)}


class TestCompressDefinitionTags:

    def test_repeated_tags_dropped(self):
        pos = Tag('v1', category='partOfSpeech')
        definitions = [
            make_definition(1, 'a', definition_tags=[pos, Tag('D', category='dictionary')]),
            make_definition(2, 'a', definition_tags=[pos, Tag('D', category='dictionary'), Tag('uk')]),
            make_definition(3, 'a', definition_tags=[Tag('n', category='partOfSpeech'), Tag('D', category='dictionary')]),
            make_definition(4, 'a', definition_tags=[pos, Tag('E', category='dictionary')]),
        ]
        compress_definition_tags(definitions)
        assert [[t.name for t in d.definition_tags] for d in definitions] == [
            ['v1', 'D'], ['uk'], ['n'], ['v1', 'E'],
        ]


class TestTermFrequency:

    def test_labels(self):
        assert score_to_term_frequency(3) == 'popular'
        assert score_to_term_frequency(0) == 'normal'
        assert score_to_term_frequency(-1) == 'rare'
