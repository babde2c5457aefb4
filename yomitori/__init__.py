"""
Yomitori: Japanese term deinflection and dictionary matching.

Finds dictionary entries for inflected Japanese text by deinflecting it
back to candidate base forms and grouping or merging the matches.

Example:
    >>> import asyncio
    >>> from yomitori import DictionaryDatabase, Translator
    >>> db = DictionaryDatabase("dict.db")
    >>> db.prepare()
    >>> translator = Translator(db)
    >>> definitions, length = asyncio.run(translator.find_terms("group", "食べなかった"))
"""

__version__ = "0.1.0"

from yomitori.database import DictionaryDatabase, DictionaryStore
from yomitori.deinflector import Deinflection, Deinflector, load_default_deinflector
from yomitori.errors import DatabaseNotPrepared, LookupFailure, RuleTableError, YomitoriError
from yomitori.models import FindTermsDetails, FindTermsMode, FindTermsOptions
from yomitori.text_parse import parse_text
from yomitori.translator import Translator

__all__ = [
    '__version__',
    'DatabaseNotPrepared',
    'Deinflection',
    'Deinflector',
    'DictionaryDatabase',
    'DictionaryStore',
    'FindTermsDetails',
    'FindTermsMode',
    'FindTermsOptions',
    'LookupFailure',
    'RuleTableError',
    'Translator',
    'YomitoriError',
    'load_default_deinflector',
    'parse_text',
]
