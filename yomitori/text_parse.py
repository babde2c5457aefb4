"""
Greedy text parsing for yomitori.

Scans text left to right, taking the longest dictionary match at each
position and splitting it into furigana segments. Characters with no
match are emitted on their own.
"""

from dataclasses import dataclass
from typing import List, Union

from yomitori.characters import (
    convert_hiragana_to_katakana,
    convert_katakana_to_hiragana,
    distribute_furigana_inflected,
    is_string_entirely_kana,
)
from yomitori.models import FindTermsMode, FindTermsOptions, ReadingMode
from yomitori.romanize import romanize_kana


@dataclass
class ParsedSegment:
    """A span of the parsed text and its reading in the requested mode."""
    text: str
    reading: str


def convert_reading(expression_fragment: str, reading_fragment: str,
                    reading_mode: Union[ReadingMode, str]) -> str:
    """
    Convert a furigana fragment for display.

    In romaji mode a fragment without furigana falls back to the text
    itself when that text is all kana.
    """
    reading_mode = ReadingMode(reading_mode)
    if reading_mode == ReadingMode.HIRAGANA:
        return convert_katakana_to_hiragana(reading_fragment)
    if reading_mode == ReadingMode.KATAKANA:
        return convert_hiragana_to_katakana(reading_fragment)
    if reading_mode == ReadingMode.ROMAJI:
        if reading_fragment:
            return romanize_kana(reading_fragment)
        if is_string_entirely_kana(expression_fragment):
            return romanize_kana(expression_fragment)
        return reading_fragment
    if reading_mode == ReadingMode.NONE:
        return ''
    return reading_fragment


async def parse_text(translator, text: str,
                     options: Union[FindTermsOptions, dict, None] = None) -> List[List[ParsedSegment]]:
    """
    Split text into dictionary terms.

    Args:
        translator: A Translator.
        text: Text to parse.
        options: Lookup options; scanning.length bounds each lookup and
            parsing.reading_mode selects the reading format.

    Returns:
        One list of segments per term or unmatched character, in order.
    """
    if options is None:
        options = FindTermsOptions()
    elif not isinstance(options, FindTermsOptions):
        options = FindTermsOptions.model_validate(options)

    reading_mode = options.parsing.reading_mode
    scan_length = options.scanning.length
    results = []
    while text:
        definitions, length = await translator.find_terms(
            FindTermsMode.SIMPLE, text[:scan_length], {}, options)
        if definitions and length > 0:
            definition = definitions[0]
            source = text[:length]
            segments = distribute_furigana_inflected(definition.expression, definition.reading, source)
            results.append([
                ParsedSegment(segment.text, convert_reading(segment.text, segment.furigana, reading_mode))
                for segment in segments
            ])
            text = text[len(source):]
        else:
            results.append([ParsedSegment(text[0], convert_reading(text[0], '', reading_mode))])
            text = text[1:]
    return results
