"""
Text variant expansion for yomitori.

A lookup may try the scanned text under several normalizations at once
(half-width kana, numerals, romaji, kana script, emphatic sequences).
Each option is off, on, or "variant" (try both), and the expander yields
every combination, each with a TextSourceMap back to the original text.
"""

from typing import Iterator, List, Sequence, Tuple, TypeVar

from yomitori.characters import (
    collapse_emphatic_sequences,
    convert_half_width_kana_to_full_width,
    convert_hiragana_to_katakana,
    convert_katakana_to_hiragana,
    convert_numeric_to_full_width,
)
from yomitori.deromanize import convert_alphabetic_to_kana
from yomitori.models import CollapseEmphatic, TextOption, TranslationOptions
from yomitori.text_source_map import TextSourceMap

T = TypeVar('T')


def get_text_option_variants(value: TextOption) -> List[bool]:
    value = TextOption(value)
    if value == TextOption.ON:
        return [True]
    if value == TextOption.VARIANT:
        return [False, True]
    return [False]


def get_collapse_emphatic_variants(value: CollapseEmphatic) -> List[Tuple[bool, bool]]:
    """(collapse, full) pairs; the uncollapsed text is always tried."""
    value = CollapseEmphatic(value)
    variants = [(False, False)]
    if value == CollapseEmphatic.ON:
        variants.append((True, False))
    elif value == CollapseEmphatic.FULL:
        variants.extend([(True, False), (True, True)])
    return variants


def get_array_variants(array_variants: Sequence[Sequence[T]]) -> Iterator[List[T]]:
    """
    Yield the cross product of the given choice lists.

    The first list varies fastest, so with all toggles off except the
    last one the unmodified text is yielded first.
    """
    total = 1
    for entry_variants in array_variants:
        total *= len(entry_variants)

    for a in range(total):
        variant = []
        index = a
        for entry_variants in array_variants:
            variant.append(entry_variants[index % len(entry_variants)])
            index //= len(entry_variants)
        yield variant


def expand_text_variants(text: str, options: TranslationOptions) -> Iterator[Tuple[str, TextSourceMap]]:
    """
    Yield (transformed text, source map) for every option combination.

    Transformations are applied in a fixed order: half-width kana,
    numerals, alphabetic characters, hiragana to katakana, katakana to
    hiragana, then emphatic sequence collapsing.
    """
    option_variants = [
        get_text_option_variants(options.convert_half_width_characters),
        get_text_option_variants(options.convert_numeric_characters),
        get_text_option_variants(options.convert_alphabetic_characters),
        get_text_option_variants(options.convert_hiragana_to_katakana),
        get_text_option_variants(options.convert_katakana_to_hiragana),
        get_collapse_emphatic_variants(options.collapse_emphatic_sequences),
    ]

    for half_width, numeric, alphabetic, katakana, hiragana, (collapse, collapse_full) in get_array_variants(option_variants):
        text2 = text
        source_map = TextSourceMap(text2)
        if half_width:
            text2 = convert_half_width_kana_to_full_width(text2, source_map)
        if numeric:
            text2 = convert_numeric_to_full_width(text2)
        if alphabetic:
            text2 = convert_alphabetic_to_kana(text2, source_map)
        if katakana:
            text2 = convert_hiragana_to_katakana(text2)
        if hiragana:
            text2 = convert_katakana_to_hiragana(text2)
        if collapse:
            text2 = collapse_emphatic_sequences(text2, collapse_full, source_map)
        yield text2, source_map
