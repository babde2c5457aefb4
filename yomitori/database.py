"""
Dictionary store for yomitori.

DictionaryDatabase keeps installed dictionaries in SQLite through
SQLAlchemy. Lookups are coroutines: each runs its blocking query in a
worker thread with its own session, so independent lookups from one
translator call can be awaited together. Row-writing methods are plain
synchronous calls and notify change listeners when they finish.

Any object implementing DictionaryStore can stand in for the database,
which is how tests inject failing stores.
"""

import asyncio
import logging
import threading
from collections import defaultdict
from contextlib import nullcontext
from pathlib import Path
from typing import (
    Any, Callable, Iterable, List, Mapping, Optional, Protocol, Sequence, TypeVar, Union,
)

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from yomitori.db import models
from yomitori.db.connection import create_db_engine, get_session_factory, init_schema
from yomitori.definitions import (
    DatabaseKanji, DatabaseKanjiMeta, DatabaseTerm, DatabaseTermMeta, TagMeta,
)
from yomitori.errors import DatabaseNotPrepared, LookupFailure, YomitoriError
from yomitori.models import (
    DictionarySummary, KanjiMetaRecord, KanjiRecord, TagRecord, TermMetaRecord, TermRecord,
    WildcardMode,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Titles of the dictionaries to search; any mapping keyed by title works
DictionaryTitles = Union[Mapping[str, Any], Iterable[str]]


class DictionaryStore(Protocol):
    """Lookup interface the translator depends on."""

    async def find_terms_bulk(self, terms: Sequence[str], dictionaries: DictionaryTitles,
                              wildcard: Optional[WildcardMode] = None) -> List[DatabaseTerm]: ...

    async def find_terms_exact_bulk(self, expressions: Sequence[str], readings: Sequence[str],
                                    dictionaries: DictionaryTitles) -> List[DatabaseTerm]: ...

    async def find_terms_by_sequence_bulk(self, sequences: Sequence[int],
                                          main_dictionary: str) -> List[DatabaseTerm]: ...

    async def find_term_meta_bulk(self, expressions: Sequence[str],
                                  dictionaries: DictionaryTitles) -> List[DatabaseTermMeta]: ...

    async def find_kanji_bulk(self, characters: Sequence[str],
                              dictionaries: DictionaryTitles) -> List[DatabaseKanji]: ...

    async def find_kanji_meta_bulk(self, characters: Sequence[str],
                                   dictionaries: DictionaryTitles) -> List[DatabaseKanjiMeta]: ...

    async def find_tag_for_title(self, name: str, title: str) -> Optional[TagMeta]: ...

    def add_change_listener(self, callback: Callable[[], None]): ...


# ============================================================================
# Row Conversion
# ============================================================================

def split_field(value: Optional[str]) -> List[str]:
    """Split a space-separated dictionary field."""
    if not value:
        return []
    return value.split(' ')


def join_field(values: Iterable[str]) -> str:
    return ' '.join(values)


def _titles(dictionaries: DictionaryTitles) -> List[str]:
    return list(dictionaries.keys()) if isinstance(dictionaries, Mapping) else list(dictionaries)


def _create_term(row: models.Term, index: int) -> DatabaseTerm:
    return DatabaseTerm(
        index=index,
        expression=row.expression,
        reading=row.reading,
        definition_tags=split_field(row.definition_tags),
        term_tags=split_field(row.term_tags),
        rules=split_field(row.rules),
        glossary=row.glossary,
        score=row.score,
        dictionary=row.dictionary,
        id=row.id,
        sequence=row.sequence if row.sequence is not None else -1,
    )


def _create_kanji(row: models.Kanji, index: int) -> DatabaseKanji:
    return DatabaseKanji(
        index=index,
        character=row.character,
        onyomi=split_field(row.onyomi),
        kunyomi=split_field(row.kunyomi),
        tags=split_field(row.tags),
        meanings=row.meanings or [],
        stats=row.stats or {},
        dictionary=row.dictionary,
    )


def _create_term_meta(row: models.TermMeta, index: int) -> DatabaseTermMeta:
    return DatabaseTermMeta(index=index, expression=row.expression, mode=row.mode,
                            data=row.data, dictionary=row.dictionary)


def _create_kanji_meta(row: models.KanjiMeta, index: int) -> DatabaseKanjiMeta:
    return DatabaseKanjiMeta(index=index, character=row.character, mode=row.mode,
                             data=row.data, dictionary=row.dictionary)


# ============================================================================
# Dictionary Database
# ============================================================================

class DictionaryDatabase:
    """
    SQLite-backed dictionary store.

    Example:
        db = DictionaryDatabase("dict.db")
        db.prepare()
        db.add_dictionary("JMdict", sequenced=True)
        db.add_terms("JMdict", [{"expression": "見る", "reading": "みる", "rules": ["v1"]}])
        terms = asyncio.run(db.find_terms_bulk(["見る"], {"JMdict"}))
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None, engine: Optional[Engine] = None):
        self.db_path = db_path
        self._engine_override = engine
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._change_listeners: List[Callable[[], None]] = []
        self._lock = nullcontext()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def prepare(self):
        """Open the engine and create missing tables."""
        if self._engine is not None:
            raise YomitoriError("Database already initialized")

        engine = self._engine_override or create_db_engine(self.db_path)
        try:
            init_schema(engine)
        except SQLAlchemyError as e:
            raise LookupFailure(f"Failed to initialize dictionary database: {e}") from e
        self._engine = engine
        self._session_factory = get_session_factory(engine)
        # Single shared connection: queries from worker threads must not overlap
        self._lock = threading.Lock() if isinstance(engine.pool, StaticPool) else nullcontext()
        logger.debug(f"Dictionary database prepared: {engine.url}")

    def close(self):
        self._validate()
        if self._engine_override is None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None

    def is_prepared(self) -> bool:
        return self._engine is not None

    def purge(self):
        """Delete every row from every table."""
        def run(session: Session):
            for table in reversed(models.ALL_TABLES):
                session.execute(delete(table))
            session.commit()

        self._run(run)
        logger.info("Dictionary database purged")
        self._notify_changed()

    def add_change_listener(self, callback: Callable[[], None]):
        """Register a callback invoked after dictionary contents change."""
        self._change_listeners.append(callback)

    def _notify_changed(self):
        for callback in self._change_listeners:
            callback()

    def _validate(self):
        if self._engine is None:
            raise DatabaseNotPrepared("Database not initialized")

    def _run(self, fn: Callable[..., T], *args) -> T:
        self._validate()
        try:
            with self._lock, self._session_factory() as session:
                return fn(session, *args)
        except SQLAlchemyError as e:
            raise LookupFailure(f"Dictionary store query failed: {e}") from e

    async def _run_async(self, fn: Callable[..., T], *args) -> T:
        return await asyncio.to_thread(self._run, fn, *args)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_dictionary(self, title: str, revision: str = '', sequenced: bool = False, version: int = 3):
        summary = DictionarySummary(title=title, revision=revision, sequenced=sequenced, version=version)

        def run(session: Session):
            session.add(models.Dictionary(**summary.model_dump()))
            session.commit()

        self._run(run)
        logger.info(f"Added dictionary {title!r}")
        self._notify_changed()

    def add_terms(self, title: str, records: Iterable[Union[TermRecord, dict]]) -> int:
        """Insert term rows for a dictionary; returns the number inserted."""
        rows = []
        for record in records:
            record = TermRecord.model_validate(record)
            rows.append(models.Term(
                dictionary=title,
                expression=record.expression,
                reading=record.reading,
                expression_reverse=record.expression[::-1],
                reading_reverse=record.reading[::-1],
                definition_tags=join_field(record.definition_tags),
                term_tags=join_field(record.term_tags),
                rules=join_field(record.rules),
                glossary=record.glossary,
                score=record.score,
                sequence=record.sequence,
            ))
        return self._add_rows(title, rows, 'terms')

    def add_term_meta(self, title: str, records: Iterable[Union[TermMetaRecord, dict]]) -> int:
        rows = []
        for record in records:
            record = TermMetaRecord.model_validate(record)
            rows.append(models.TermMeta(dictionary=title, **record.model_dump()))
        return self._add_rows(title, rows, 'term meta')

    def add_kanji(self, title: str, records: Iterable[Union[KanjiRecord, dict]]) -> int:
        rows = []
        for record in records:
            record = KanjiRecord.model_validate(record)
            rows.append(models.Kanji(
                dictionary=title,
                character=record.character,
                onyomi=join_field(record.onyomi),
                kunyomi=join_field(record.kunyomi),
                tags=join_field(record.tags),
                meanings=record.meanings,
                stats=record.stats,
            ))
        return self._add_rows(title, rows, 'kanji')

    def add_kanji_meta(self, title: str, records: Iterable[Union[KanjiMetaRecord, dict]]) -> int:
        rows = []
        for record in records:
            record = KanjiMetaRecord.model_validate(record)
            rows.append(models.KanjiMeta(dictionary=title, **record.model_dump()))
        return self._add_rows(title, rows, 'kanji meta')

    def add_tag_meta(self, title: str, records: Iterable[Union[TagRecord, dict]]) -> int:
        rows = []
        for record in records:
            record = TagRecord.model_validate(record)
            rows.append(models.TagMeta(dictionary=title, **record.model_dump()))
        return self._add_rows(title, rows, 'tags')

    def _add_rows(self, title: str, rows: list, kind: str) -> int:
        def run(session: Session):
            session.add_all(rows)
            session.commit()

        self._run(run)
        logger.debug(f"Inserted {len(rows)} {kind} rows for {title!r}")
        self._notify_changed()
        return len(rows)

    def delete_dictionary(self, title: str):
        """Remove a dictionary and all of its rows."""
        def run(session: Session):
            session.execute(delete(models.Dictionary).where(models.Dictionary.title == title))
            for table in (models.Kanji, models.KanjiMeta, models.Term, models.TermMeta, models.TagMeta):
                session.execute(delete(table).where(table.dictionary == title))
            session.commit()

        self._run(run)
        logger.info(f"Deleted dictionary {title!r}")
        self._notify_changed()

    def get_dictionary_info(self) -> List[DictionarySummary]:
        def run(session: Session):
            rows = session.execute(select(models.Dictionary).order_by(models.Dictionary.id)).scalars().all()
            return [
                DictionarySummary(title=row.title, revision=row.revision,
                                  sequenced=row.sequenced, version=row.version)
                for row in rows
            ]

        return self._run(run)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def find_terms_bulk(self, terms: Sequence[str], dictionaries: DictionaryTitles,
                              wildcard: Optional[WildcardMode] = None) -> List[DatabaseTerm]:
        """
        Find terms whose expression or reading matches any of terms.

        Each result's index is the position of the term it matched. A row
        matching several terms is returned once, for the first of them.
        With a wildcard, each term is a range: suffix mode matches
        expressions/readings starting with the term, prefix mode matches
        those ending with it.
        """
        terms = list(terms)
        titles = _titles(dictionaries)
        if not terms or not titles:
            return []
        wildcard = WildcardMode(wildcard) if wildcard else None

        def run(session: Session):
            term_model = models.Term
            visited = set()
            results = []

            def process(rows, index):
                for row in rows:
                    if row.id in visited:
                        continue
                    visited.add(row.id)
                    results.append(_create_term(row, index))

            if wildcard is None:
                stmt = (
                    select(term_model)
                    .where(and_(
                        term_model.dictionary.in_(titles),
                        or_(term_model.expression.in_(terms), term_model.reading.in_(terms)),
                    ))
                    .order_by(term_model.id)
                )
                rows = session.execute(stmt).scalars().all()
                by_expression = defaultdict(list)
                by_reading = defaultdict(list)
                for row in rows:
                    by_expression[row.expression].append(row)
                    by_reading[row.reading].append(row)
                for index, term in enumerate(terms):
                    process(by_expression.get(term, []), index)
                    process(by_reading.get(term, []), index)
                return results

            if wildcard == WildcardMode.PREFIX:
                column1, column2 = term_model.expression_reverse, term_model.reading_reverse
            else:
                column1, column2 = term_model.expression, term_model.reading
            for index, term in enumerate(terms):
                key = term[::-1] if wildcard == WildcardMode.PREFIX else term
                for column in (column1, column2):
                    stmt = (
                        select(term_model)
                        .where(and_(
                            term_model.dictionary.in_(titles),
                            column >= key,
                            column <= key + "\uffff",
                        ))
                        .order_by(column, term_model.id)
                    )
                    process(session.execute(stmt).scalars().all(), index)
            return results

        return await self._run_async(run)

    async def find_terms_exact_bulk(self, expressions: Sequence[str], readings: Sequence[str],
                                    dictionaries: DictionaryTitles) -> List[DatabaseTerm]:
        """Find terms matching (expressions[i], readings[i]) pairs exactly."""
        expressions = list(expressions)
        readings = list(readings)
        titles = _titles(dictionaries)
        if not expressions or not titles:
            return []

        def run(session: Session):
            stmt = (
                select(models.Term)
                .where(and_(models.Term.dictionary.in_(titles), models.Term.expression.in_(expressions)))
                .order_by(models.Term.id)
            )
            by_expression = defaultdict(list)
            for row in session.execute(stmt).scalars().all():
                by_expression[row.expression].append(row)

            results = []
            for index, expression in enumerate(expressions):
                for row in by_expression.get(expression, []):
                    if row.reading == readings[index]:
                        results.append(_create_term(row, index))
            return results

        return await self._run_async(run)

    async def find_terms_by_sequence_bulk(self, sequences: Sequence[int],
                                          main_dictionary: str) -> List[DatabaseTerm]:
        """Find every term of the given sequences in the main dictionary."""
        sequences = list(sequences)
        if not sequences:
            return []

        def run(session: Session):
            stmt = (
                select(models.Term)
                .where(and_(models.Term.dictionary == main_dictionary, models.Term.sequence.in_(sequences)))
                .order_by(models.Term.id)
            )
            by_sequence = defaultdict(list)
            for row in session.execute(stmt).scalars().all():
                by_sequence[row.sequence].append(row)

            results = []
            for index, sequence in enumerate(sequences):
                for row in by_sequence.get(sequence, []):
                    results.append(_create_term(row, index))
            return results

        return await self._run_async(run)

    async def _find_generic_bulk(self, model, column_name: str, values: Sequence[str],
                                 dictionaries: DictionaryTitles, create_result: Callable[[Any, int], T]) -> List[T]:
        values = list(values)
        titles = _titles(dictionaries)
        if not values or not titles:
            return []

        def run(session: Session):
            column = getattr(model, column_name)
            stmt = (
                select(model)
                .where(and_(model.dictionary.in_(titles), column.in_(values)))
                .order_by(model.id)
            )
            by_value = defaultdict(list)
            for row in session.execute(stmt).scalars().all():
                by_value[getattr(row, column_name)].append(row)

            results = []
            for index, value in enumerate(values):
                for row in by_value.get(value, []):
                    results.append(create_result(row, index))
            return results

        return await self._run_async(run)

    async def find_term_meta_bulk(self, expressions: Sequence[str],
                                  dictionaries: DictionaryTitles) -> List[DatabaseTermMeta]:
        return await self._find_generic_bulk(models.TermMeta, 'expression', expressions,
                                             dictionaries, _create_term_meta)

    async def find_kanji_bulk(self, characters: Sequence[str],
                              dictionaries: DictionaryTitles) -> List[DatabaseKanji]:
        return await self._find_generic_bulk(models.Kanji, 'character', characters,
                                             dictionaries, _create_kanji)

    async def find_kanji_meta_bulk(self, characters: Sequence[str],
                                   dictionaries: DictionaryTitles) -> List[DatabaseKanjiMeta]:
        return await self._find_generic_bulk(models.KanjiMeta, 'character', characters,
                                             dictionaries, _create_kanji_meta)

    async def find_tag_for_title(self, name: str, title: str) -> Optional[TagMeta]:
        """Find a tag by base name within one dictionary (last row wins)."""
        def run(session: Session):
            stmt = (
                select(models.TagMeta)
                .where(and_(models.TagMeta.dictionary == title, models.TagMeta.name == name))
                .order_by(models.TagMeta.id.desc())
            )
            row = session.execute(stmt).scalars().first()
            if row is None:
                return None
            return TagMeta(name=row.name, category=row.category, order=row.order,
                           notes=row.notes, score=row.score, dictionary=row.dictionary)

        return await self._run_async(run)
