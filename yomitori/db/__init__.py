"""Database layer for yomitori."""

from yomitori.db.connection import (
    create_db_engine,
    create_memory_engine,
    get_db_path,
    get_session_factory,
    init_schema,
)
from yomitori.db.models import (
    Base,
    Dictionary,
    Kanji,
    KanjiMeta,
    TagMeta,
    Term,
    TermMeta,
)

__all__ = [
    'Base',
    'Dictionary',
    'Kanji',
    'KanjiMeta',
    'TagMeta',
    'Term',
    'TermMeta',
    'create_db_engine',
    'create_memory_engine',
    'get_db_path',
    'get_session_factory',
    'init_schema',
]
