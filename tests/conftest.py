"""
Shared fixtures for yomitori tests.

Every store is an in-memory SQLite database, so tests need no files on
disk and no installed dictionaries.
"""

import pytest

from yomitori.database import DictionaryDatabase
from yomitori.db.connection import create_memory_engine
from yomitori.deinflector import Deinflector
from yomitori.models import FindTermsOptions
from yomitori.translator import Translator


# A single reason, enough to exercise rule masks without the full table
TOY_REASONS = {
    'past': [
        {'kanaIn': 'た', 'kanaOut': 'る', 'rulesIn': ['v1'], 'rulesOut': ['v1']},
    ],
}


JMDICT_TERMS = [
    {'expression': '見る', 'reading': 'みる', 'definition_tags': ['v1'], 'term_tags': ['P'],
     'rules': ['v1'], 'glossary': ['to see'], 'score': 10, 'sequence': 1000},
    {'expression': '見る', 'reading': 'みる', 'definition_tags': ['v1'], 'term_tags': ['P'],
     'rules': ['v1'], 'glossary': ['to look after'], 'score': 5, 'sequence': 1000},
    {'expression': '観る', 'reading': 'みる', 'definition_tags': ['v1'], 'term_tags': [],
     'rules': ['v1'], 'glossary': ['to watch'], 'score': 1, 'sequence': 1000},
    {'expression': '見', 'reading': 'み', 'definition_tags': ['n'], 'term_tags': [],
     'rules': [], 'glossary': ['view'], 'score': 0, 'sequence': 3000},
    {'expression': '食べる', 'reading': 'たべる', 'definition_tags': ['v1'], 'term_tags': ['P'],
     'rules': ['v1'], 'glossary': ['to eat'], 'score': 10, 'sequence': 2000},
]

JMDICT_TAGS = [
    {'name': 'P', 'category': 'popular', 'order': -10, 'notes': 'common word', 'score': 10},
    {'name': 'v1', 'category': 'partOfSpeech', 'order': 0, 'notes': 'Ichidan verb', 'score': 0},
    {'name': 'n', 'category': 'partOfSpeech', 'order': 0, 'notes': 'noun', 'score': 0},
]

JMDICT_TERM_META = [
    {'expression': '見る', 'mode': 'freq', 'data': 120},
    {'expression': '見る', 'mode': 'pitch', 'data': {'reading': 'みる', 'pitches': [{'position': 1}]}},
    {'expression': '見る', 'mode': 'pitch', 'data': {'reading': 'けんる', 'pitches': [{'position': 0}]}},
]

EXTRA_TERMS = [
    {'expression': '観る', 'reading': 'みる', 'definition_tags': [], 'term_tags': [],
     'rules': ['v1'], 'glossary': ['to view (a performance)'], 'score': 0},
]

KANJIDIC_KANJI = [
    {'character': '見', 'onyomi': ['ケン'], 'kunyomi': ['み.る', 'み.せる'], 'tags': ['jouyou'],
     'meanings': ['see', 'look'], 'stats': {'strokes': '7', 'grade': '1'}},
    {'character': '日', 'onyomi': ['ニチ', 'ジツ'], 'kunyomi': ['ひ'], 'tags': [],
     'meanings': ['day', 'sun'], 'stats': {'strokes': '4'}},
]

KANJIDIC_TAGS = [
    {'name': 'strokes', 'category': 'misc', 'order': 1, 'notes': 'Stroke count'},
    {'name': 'grade', 'category': 'misc', 'order': 0, 'notes': 'School grade'},
    {'name': 'jouyou', 'category': 'frequent', 'order': 0, 'notes': 'Jouyou kanji'},
]


@pytest.fixture
def memory_db():
    """Prepared, empty in-memory dictionary database."""
    db = DictionaryDatabase(engine=create_memory_engine())
    db.prepare()
    yield db
    if db.is_prepared():
        db.close()


@pytest.fixture
def populated_db(memory_db):
    """In-memory database with a main, a secondary and a kanji dictionary."""
    memory_db.add_dictionary('JMdict', revision='test', sequenced=True)
    memory_db.add_terms('JMdict', JMDICT_TERMS)
    memory_db.add_tag_meta('JMdict', JMDICT_TAGS)
    memory_db.add_term_meta('JMdict', JMDICT_TERM_META)

    memory_db.add_dictionary('Extra', revision='test')
    memory_db.add_terms('Extra', EXTRA_TERMS)

    memory_db.add_dictionary('KANJIDIC', revision='test')
    memory_db.add_kanji('KANJIDIC', KANJIDIC_KANJI)
    memory_db.add_tag_meta('KANJIDIC', KANJIDIC_TAGS)
    memory_db.add_kanji_meta('KANJIDIC', [{'character': '見', 'mode': 'freq', 'data': 200}])
    return memory_db


@pytest.fixture
def toy_deinflector():
    return Deinflector(TOY_REASONS)


@pytest.fixture
def translator(populated_db, toy_deinflector):
    return Translator(populated_db, toy_deinflector)


@pytest.fixture
def options():
    """Options enabling every test dictionary, with JMdict as main dictionary."""
    return FindTermsOptions.model_validate({
        'general': {'mainDictionary': 'JMdict'},
        'dictionaries': {
            'JMdict': {'enabled': True, 'priority': 0},
            'Extra': {'enabled': True, 'priority': 0, 'allowSecondarySearches': True},
            'KANJIDIC': {'enabled': True},
        },
    })


@pytest.fixture
def db_file(tmp_path):
    """Path of a dictionary database file with JMdict terms and KANJIDIC kanji."""
    path = tmp_path / 'dict.db'
    db = DictionaryDatabase(path)
    db.prepare()
    db.add_dictionary('JMdict', sequenced=True)
    db.add_terms('JMdict', JMDICT_TERMS)
    db.add_tag_meta('JMdict', JMDICT_TAGS)
    db.add_dictionary('KANJIDIC')
    db.add_kanji('KANJIDIC', KANJIDIC_KANJI)
    db.close()
    return str(path)
