"""
SQLAlchemy models for the yomitori dictionary store.

Tag, rule and reading lists are stored as space-separated strings, the
format used by dictionary archives; JSON columns hold glossaries and
metadata payloads. Terms also keep their expression and reading reversed
so suffix-anchored wildcard searches become prefix range scans.
"""

from typing import Any, Optional

from sqlalchemy import JSON, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Dictionary(Base):
    __tablename__ = 'dictionaries'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String, unique=True, index=True)
    revision: Mapped[str] = mapped_column(String, default='')
    sequenced: Mapped[bool] = mapped_column(default=False)
    version: Mapped[int] = mapped_column(Integer, default=3)


class Term(Base):
    __tablename__ = 'terms'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dictionary: Mapped[str] = mapped_column(String, index=True)
    expression: Mapped[str] = mapped_column(String, index=True)
    reading: Mapped[str] = mapped_column(String, index=True)
    expression_reverse: Mapped[str] = mapped_column(String, index=True)
    reading_reverse: Mapped[str] = mapped_column(String, index=True)
    definition_tags: Mapped[str] = mapped_column(Text, default='')
    term_tags: Mapped[str] = mapped_column(Text, default='')
    rules: Mapped[str] = mapped_column(Text, default='')
    glossary: Mapped[Any] = mapped_column(JSON)
    score: Mapped[int] = mapped_column(Integer, default=0)
    sequence: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)


class TermMeta(Base):
    __tablename__ = 'term_meta'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dictionary: Mapped[str] = mapped_column(String, index=True)
    expression: Mapped[str] = mapped_column(String, index=True)
    mode: Mapped[str] = mapped_column(String)
    data: Mapped[Any] = mapped_column(JSON)


class Kanji(Base):
    __tablename__ = 'kanji'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dictionary: Mapped[str] = mapped_column(String, index=True)
    character: Mapped[str] = mapped_column(String, index=True)
    onyomi: Mapped[str] = mapped_column(Text, default='')
    kunyomi: Mapped[str] = mapped_column(Text, default='')
    tags: Mapped[str] = mapped_column(Text, default='')
    meanings: Mapped[Any] = mapped_column(JSON)
    stats: Mapped[Any] = mapped_column(JSON)


class KanjiMeta(Base):
    __tablename__ = 'kanji_meta'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dictionary: Mapped[str] = mapped_column(String, index=True)
    character: Mapped[str] = mapped_column(String, index=True)
    mode: Mapped[str] = mapped_column(String)
    data: Mapped[Any] = mapped_column(JSON)


class TagMeta(Base):
    __tablename__ = 'tag_meta'
    __table_args__ = (
        Index('ix_tag_meta_dictionary_name', 'dictionary', 'name'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dictionary: Mapped[str] = mapped_column(String)
    name: Mapped[str] = mapped_column(String)
    category: Mapped[str] = mapped_column(String, default='')
    order: Mapped[int] = mapped_column(Integer, default=0)
    notes: Mapped[str] = mapped_column(Text, default='')
    score: Mapped[int] = mapped_column(Integer, default=0)


ALL_TABLES = (Dictionary, Term, TermMeta, Kanji, KanjiMeta, TagMeta)
