"""
Command line interface for yomitori.

Usage:
    yomitori "食べなかった"                  # grouped definitions
    yomitori -m merge "食べなかった"         # merged by main dictionary sequence
    yomitori -w suffix "食べ"               # wildcard lookup
    yomitori -k "日本"                      # kanji definitions
    yomitori -p -r romaji "日本語を読む"     # parse text into terms
    yomitori -j "食べる"                    # JSON output
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from yomitori import __version__
from yomitori.database import DictionaryDatabase
from yomitori.db.connection import get_db_path
from yomitori.definitions import (
    GroupedTermDefinition, KanjiDefinition, MergedGlossaryTermDefinition, MergedTermDefinition, TermDefinition,
    to_dict,
)
from yomitori.errors import YomitoriError
from yomitori.models import FindTermsMode, FindTermsOptions, ReadingMode, WildcardMode
from yomitori.settings import DEBUG
from yomitori.text_parse import parse_text
from yomitori.translator import Translator

logger = logging.getLogger(__name__)


def build_options(database: DictionaryDatabase, mode: str, main_dictionary: Optional[str] = None,
                  reading_mode: Optional[str] = None) -> FindTermsOptions:
    """
    Options enabling every installed dictionary.

    The main dictionary defaults to the first sequenced dictionary.
    Secondary searches stay off.
    """
    summaries = database.get_dictionary_info()
    if main_dictionary is None:
        main_dictionary = next((summary.title for summary in summaries if summary.sequenced), '')

    options = {
        'general': {'resultOutputMode': mode, 'mainDictionary': main_dictionary},
        'dictionaries': {
            summary.title: {'enabled': True, 'priority': 0, 'allowSecondarySearches': False}
            for summary in summaries
        },
    }
    if reading_mode is not None:
        options['parsing'] = {'readingMode': reading_mode}
    return FindTermsOptions.model_validate(options)


def _glossary_text(glossary: list) -> str:
    return '; '.join(item if isinstance(item, str) else json.dumps(item, ensure_ascii=False) for item in glossary)


def _tag_text(tags) -> str:
    names = [tag.name for tag in tags if tag.category != 'dictionary']
    return f"({', '.join(names)}) " if names else ''


def _heading(expression: str, reading: str, reasons: List[str]) -> str:
    line = expression
    if reading and reading != expression:
        line += f" 【{reading}】"
    if reasons:
        line += f"  « {' « '.join(reasons)}"
    return line


def format_definition(definition) -> str:
    """Format a term or kanji definition as text."""
    lines = []
    if isinstance(definition, TermDefinition):
        lines.append(_heading(definition.expression, definition.reading, definition.reasons))
        lines.append(f"  [{definition.dictionary}] {_tag_text(definition.definition_tags)}"
                     f"{_glossary_text(definition.glossary)}")
    elif isinstance(definition, GroupedTermDefinition):
        lines.append(_heading(definition.expression, definition.reading, definition.reasons))
        for i, sub in enumerate(definition.definitions, 1):
            lines.append(f"  {i}. [{sub.dictionary}] {_tag_text(sub.definition_tags)}"
                         f"{_glossary_text(sub.glossary)}")
    elif isinstance(definition, MergedTermDefinition):
        lines.append(_heading('、'.join(definition.expression), '、'.join(definition.reading), definition.reasons))
        for i, sub in enumerate(definition.definitions, 1):
            only = ''
            if isinstance(sub, MergedGlossaryTermDefinition) and sub.only:
                only = f"(only {', '.join(sub.only)}) "
            lines.append(f"  {i}. [{sub.dictionary}] {only}{_tag_text(sub.definition_tags)}"
                         f"{_glossary_text(sub.glossary)}")
    elif isinstance(definition, KanjiDefinition):
        lines.append(f"{definition.character}  [{definition.dictionary}]")
        if definition.onyomi:
            lines.append(f"  on: {'、'.join(definition.onyomi)}")
        if definition.kunyomi:
            lines.append(f"  kun: {'、'.join(definition.kunyomi)}")
        lines.append(f"  {_glossary_text(definition.glossary)}")
    return '\n'.join(lines)


async def run_lookup(parsed, database: DictionaryDatabase):
    """Run the lookup selected by the parsed arguments; returns JSON-ready data or text."""
    translator = Translator(database)
    options = build_options(database, parsed.mode, parsed.main_dictionary, parsed.reading_mode)
    text = parsed.text

    if parsed.kanji:
        definitions = await translator.find_kanji(text, options)
        definitions = definitions[:options.general.max_results]
        if parsed.json:
            return to_dict(definitions)
        return '\n\n'.join(format_definition(definition) for definition in definitions)

    if parsed.parse:
        terms = await parse_text(translator, text, options)
        if parsed.json:
            return to_dict(terms)
        return ' '.join(
            ''.join(segment.text if not segment.reading else f"{segment.text}[{segment.reading}]"
                    for segment in term)
            for term in terms
        )

    details = {'wildcard': parsed.wildcard} if parsed.wildcard else {}
    definitions, length = await translator.find_terms(
        None, text[:options.scanning.length], details, options)
    definitions = definitions[:options.general.max_results]
    if parsed.json:
        return {'length': length, 'definitions': to_dict(definitions)}
    return '\n\n'.join(format_definition(definition) for definition in definitions)


def main(args: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Look up Japanese text in installed dictionaries',
        prog='yomitori',
    )

    parser.add_argument(
        'text',
        nargs='*',
        help='Japanese text to look up',
    )

    parser.add_argument(
        '-d', '--database',
        type=str,
        default=None,
        metavar='PATH',
        help='Path to SQLite database file (default: $YOMITORI_DB_PATH)',
    )

    parser.add_argument(
        '-m', '--mode',
        choices=[mode.value for mode in FindTermsMode],
        default=FindTermsMode.GROUP.value,
        help='Result mode (default: group)',
    )

    parser.add_argument(
        '-w', '--wildcard',
        choices=[mode.value for mode in WildcardMode],
        default=None,
        help='Match terms by prefix or suffix instead of deinflecting',
    )

    parser.add_argument(
        '--main-dictionary',
        type=str,
        default=None,
        metavar='TITLE',
        help='Dictionary whose sequences drive merge mode (default: first sequenced dictionary)',
    )

    parser.add_argument(
        '-r', '--reading-mode',
        choices=[mode.value for mode in ReadingMode],
        default=None,
        help='Reading format for --parse (default: hiragana)',
    )

    parser.add_argument(
        '-j', '--json',
        action='store_true',
        help='Print results as JSON',
    )

    parser.add_argument(
        '-k', '--kanji',
        action='store_true',
        help='Look up kanji instead of terms',
    )

    parser.add_argument(
        '-p', '--parse',
        action='store_true',
        help='Split the text into dictionary terms',
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging',
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'yomitori {__version__}',
    )

    parsed = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose or DEBUG else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    parsed.text = ' '.join(parsed.text) if parsed.text else ''
    if not parsed.text:
        parser.print_help()
        return 1

    db_path = get_db_path(parsed.database)
    if not Path(db_path).exists():
        print(f'Error: dictionary database not found: {db_path}', file=sys.stderr)
        return 1

    database = DictionaryDatabase(db_path)
    try:
        database.prepare()
        output = asyncio.run(run_lookup(parsed, database))
    except YomitoriError as e:
        print(f'Error: {e}', file=sys.stderr)
        logger.debug("Lookup failed", exc_info=True)
        return 1
    finally:
        if database.is_prepared():
            database.close()

    if parsed.json:
        print(json.dumps(output, ensure_ascii=False))
    elif output:
        print(output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
