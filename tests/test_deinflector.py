"""
Tests for deinflector.py and rules.py - rule masks and the deinflection closure.
"""

import json

import pytest

from yomitori.deinflector import Deinflector, load_default_deinflector
from yomitori.errors import RuleTableError
from yomitori.rules import RuleFlags, load_reasons, normalize_reasons, rules_compatible, rules_to_rule_flags


@pytest.fixture(scope="module")
def deinflector():
    return load_default_deinflector()


def candidates(deinflector, text):
    return {(c.term, tuple(c.reasons)) for c in deinflector.deinflect(text)}


class TestRuleFlags:

    def test_names_to_flags(self):
        assert rules_to_rule_flags(['v1']) == RuleFlags.V1
        assert rules_to_rule_flags(['v5', 'adj-i']) == RuleFlags.V5 | RuleFlags.ADJ_I
        assert rules_to_rule_flags([]) == RuleFlags.NONE

    def test_unknown_names_ignored(self):
        assert rules_to_rule_flags(['v1', 'n', 'exp']) == RuleFlags.V1

    def test_flags_are_disjoint(self):
        flags = [RuleFlags.V1, RuleFlags.V5, RuleFlags.VS, RuleFlags.VK, RuleFlags.ADJ_I, RuleFlags.IRU]
        for i, a in enumerate(flags):
            for b in flags[i + 1:]:
                assert a & b == 0


class TestMaskInvariant:

    def test_unconstrained_candidate_accepts_anything(self):
        assert rules_compatible(0, 0)
        assert rules_compatible(0, RuleFlags.V5)
        assert rules_compatible(0, RuleFlags.V1 | RuleFlags.ADJ_I)

    def test_constrained_candidate_needs_shared_bit(self):
        assert rules_compatible(RuleFlags.V1, RuleFlags.V1)
        assert rules_compatible(RuleFlags.V1, RuleFlags.V1 | RuleFlags.V5)
        assert not rules_compatible(RuleFlags.V1, RuleFlags.V5)
        assert not rules_compatible(RuleFlags.V1, 0)


class TestReasonTable:

    def test_normalize(self):
        table = normalize_reasons({
            'past': [{'kanaIn': 'た', 'kanaOut': 'る', 'rulesIn': ['v1'], 'rulesOut': ['v1']}],
        })
        assert len(table) == 1
        reason, variants = table[0]
        assert reason == 'past'
        assert variants[0].kana_in == 'た'
        assert variants[0].rules_out == RuleFlags.V1

    def test_malformed_entry(self):
        with pytest.raises(RuleTableError):
            normalize_reasons({'past': [{'kanaIn': 'た'}]})

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(RuleTableError):
            load_reasons(tmp_path / 'missing.json')

    def test_load_non_object(self, tmp_path):
        path = tmp_path / 'reasons.json'
        path.write_text(json.dumps([1, 2]), encoding='utf-8')
        with pytest.raises(RuleTableError):
            load_reasons(path)

    def test_from_file(self, tmp_path):
        path = tmp_path / 'reasons.json'
        path.write_text(json.dumps({
            'past': [{'kanaIn': 'た', 'kanaOut': 'る', 'rulesIn': [], 'rulesOut': ['v1']}],
        }), encoding='utf-8')
        deinflector = Deinflector.from_file(path)
        assert ('見る', ('past',)) in candidates(deinflector, '見た')


class TestDeinflect:

    def test_first_candidate_is_source(self, deinflector):
        first = deinflector.deinflect('食べた')[0]
        assert first.term == '食べた'
        assert first.rules == 0
        assert first.reasons == []

    def test_raw_source_defaults_to_source(self, deinflector):
        assert all(c.raw_source == '食べた' for c in deinflector.deinflect('食べた'))
        assert all(c.raw_source == 'タベタ' for c in deinflector.deinflect('たべた', 'タベタ'))

    def test_past(self, deinflector):
        assert ('食べる', ('past',)) in candidates(deinflector, '食べた')

    def test_chained_negative_past(self, deinflector):
        assert ('食べる', ('negative', 'past')) in candidates(deinflector, '食べなかった')

    def test_godan_polite(self, deinflector):
        assert ('書く', ('polite',)) in candidates(deinflector, '書きます')

    def test_adjective_past(self, deinflector):
        result = [c for c in deinflector.deinflect('高かった') if c.term == '高い']
        assert result
        assert result[0].rules == RuleFlags.ADJ_I

    def test_rule_mask_blocks_chain(self):
        deinflector = Deinflector({
            'past': [{'kanaIn': 'た', 'kanaOut': 'ない', 'rulesIn': [], 'rulesOut': ['v1']}],
            'negative': [{'kanaIn': 'ない', 'kanaOut': 'る', 'rulesIn': ['adj-i'], 'rulesOut': ['v1']}],
        })
        # The v1 result of past cannot feed negative, which takes adj-i
        assert candidates(deinflector, '見た') == {('見た', ()), ('見ない', ('past',))}

    def test_rule_mask_allows_chain(self):
        deinflector = Deinflector({
            'past': [{'kanaIn': 'た', 'kanaOut': 'ない', 'rulesIn': [], 'rulesOut': ['adj-i']}],
            'negative': [{'kanaIn': 'ない', 'kanaOut': 'る', 'rulesIn': ['adj-i'], 'rulesOut': ['v1']}],
        })
        assert ('見る', ('negative', 'past')) in candidates(deinflector, '見た')

    def test_multiple_variants_each_contribute(self):
        deinflector = Deinflector({
            'te': [
                {'kanaIn': 'って', 'kanaOut': 'う', 'rulesIn': [], 'rulesOut': ['v5']},
                {'kanaIn': 'って', 'kanaOut': 'つ', 'rulesIn': [], 'rulesOut': ['v5']},
                {'kanaIn': 'って', 'kanaOut': 'る', 'rulesIn': [], 'rulesOut': ['v5']},
            ],
        })
        terms = {c.term for c in deinflector.deinflect('待って')}
        assert terms == {'待って', '待う', '待つ', '待る'}

    def test_zero_length_result_skipped(self):
        deinflector = Deinflector({
            'strip': [{'kanaIn': 'た', 'kanaOut': '', 'rulesIn': [], 'rulesOut': ['v1']}],
        })
        assert [c.term for c in deinflector.deinflect('た')] == ['た']

    def test_long_chains_terminate(self, deinflector):
        for text in ('食べさせられなかった', '書かせられました', '行っちゃった', '見ない'):
            results = deinflector.deinflect(text)
            assert results[0].term == text
            assert len(results) < 1000

    def test_closure_terminates_with_cycle_free_shrinking_rules(self):
        deinflector = Deinflector({
            'a': [{'kanaIn': 'かか', 'kanaOut': 'か', 'rulesIn': [], 'rulesOut': []}],
        })
        results = deinflector.deinflect('かかかか')
        assert [c.term for c in results] == ['かかかか', 'かかか', 'かか', 'か']
        assert all(len(c.term) <= 4 for c in results)

    def test_reason_order_most_recent_first(self):
        deinflector = Deinflector({
            'outer': [{'kanaIn': 'B', 'kanaOut': 'A', 'rulesIn': [], 'rulesOut': []}],
            'inner': [{'kanaIn': 'A', 'kanaOut': 'x', 'rulesIn': [], 'rulesOut': []}],
        })
        result = deinflector.deinflect('zB')
        assert [(c.term, c.reasons) for c in result] == [
            ('zB', []),
            ('zA', ['outer']),
            ('zx', ['inner', 'outer']),
        ]
