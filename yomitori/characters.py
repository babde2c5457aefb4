"""
Character handling and kana conversion for yomitori.

Provides code point classification, hiragana/katakana conversion,
width normalization, emphatic sequence collapsing and furigana
distribution. Conversions that change string length accept an optional
TextSourceMap and record how characters were merged.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from yomitori.text_source_map import TextSourceMap

# ============================================================================
# Code Points
# ============================================================================

ITERATION_MARK_CODE_POINT = 0x3005
HIRAGANA_SMALL_TSU_CODE_POINT = 0x3063
KATAKANA_SMALL_TSU_CODE_POINT = 0x30C3
KATAKANA_SMALL_KA_CODE_POINT = 0x30F5
KATAKANA_SMALL_KE_CODE_POINT = 0x30F6
KANA_PROLONGED_SOUND_MARK_CODE_POINT = 0x30FC

HALFWIDTH_DAKUTEN_CODE_POINT = 0xFF9E
HALFWIDTH_HANDAKUTEN_CODE_POINT = 0xFF9F

HIRAGANA_RANGE = (0x3040, 0x309F)
KATAKANA_RANGE = (0x30A0, 0x30FF)

HIRAGANA_CONVERSION_RANGE = (0x3041, 0x3096)
KATAKANA_CONVERSION_RANGE = (0x30A1, 0x30F6)

KANA_RANGES = (HIRAGANA_RANGE, KATAKANA_RANGE)

CJK_UNIFIED_IDEOGRAPHS_RANGES = (
    (0x4E00, 0x9FFF),    # CJK Unified Ideographs
    (0x3400, 0x4DBF),    # Extension A
    (0x20000, 0x2A6DF),  # Extension B
    (0x2A700, 0x2B73F),  # Extension C
    (0x2B740, 0x2B81F),  # Extension D
    (0x2B820, 0x2CEAF),  # Extension E
    (0x2CEB0, 0x2EBEF),  # Extension F
    (0x2F800, 0x2FA1F),  # Compatibility Ideographs Supplement
)

# Roughly ordered by expected frequency
JAPANESE_RANGES = (
    HIRAGANA_RANGE,
    KATAKANA_RANGE,
    *CJK_UNIFIED_IDEOGRAPHS_RANGES,
    (0xFF66, 0xFF9F),  # Halfwidth katakana
    (0x30FB, 0x30FC),  # Katakana punctuation
    (0xFF61, 0xFF65),  # Kana punctuation
    (0x3000, 0x303F),  # CJK punctuation
    (0xFF10, 0xFF19),  # Fullwidth numbers
    (0xFF21, 0xFF3A),  # Fullwidth upper case Latin letters
    (0xFF41, 0xFF5A),  # Fullwidth lower case Latin letters
    (0xFF01, 0xFF0F),  # Fullwidth punctuation 1
    (0xFF1A, 0xFF1F),  # Fullwidth punctuation 2
    (0xFF3B, 0xFF3F),  # Fullwidth punctuation 3
    (0xFF5B, 0xFF60),  # Fullwidth punctuation 4
    (0xFFE0, 0xFFEE),  # Currency markers
)

# ============================================================================
# Kana Tables
# ============================================================================

# Half-width katakana -> (plain, with dakuten, with handakuten); None if invalid
HALFWIDTH_KATAKANA_MAPPING: Dict[str, Tuple[str, Optional[str], Optional[str]]] = {
    'ｦ': ('ヲ', 'ヺ', None),
    'ｧ': ('ァ', None, None), 'ｨ': ('ィ', None, None), 'ｩ': ('ゥ', None, None),
    'ｪ': ('ェ', None, None), 'ｫ': ('ォ', None, None),
    'ｬ': ('ャ', None, None), 'ｭ': ('ュ', None, None), 'ｮ': ('ョ', None, None),
    'ｯ': ('ッ', None, None), 'ｰ': ('ー', None, None),
    'ｱ': ('ア', None, None), 'ｲ': ('イ', None, None), 'ｳ': ('ウ', 'ヴ', None),
    'ｴ': ('エ', None, None), 'ｵ': ('オ', None, None),
    'ｶ': ('カ', 'ガ', None), 'ｷ': ('キ', 'ギ', None), 'ｸ': ('ク', 'グ', None),
    'ｹ': ('ケ', 'ゲ', None), 'ｺ': ('コ', 'ゴ', None),
    'ｻ': ('サ', 'ザ', None), 'ｼ': ('シ', 'ジ', None), 'ｽ': ('ス', 'ズ', None),
    'ｾ': ('セ', 'ゼ', None), 'ｿ': ('ソ', 'ゾ', None),
    'ﾀ': ('タ', 'ダ', None), 'ﾁ': ('チ', 'ヂ', None), 'ﾂ': ('ツ', 'ヅ', None),
    'ﾃ': ('テ', 'デ', None), 'ﾄ': ('ト', 'ド', None),
    'ﾅ': ('ナ', None, None), 'ﾆ': ('ニ', None, None), 'ﾇ': ('ヌ', None, None),
    'ﾈ': ('ネ', None, None), 'ﾉ': ('ノ', None, None),
    'ﾊ': ('ハ', 'バ', 'パ'), 'ﾋ': ('ヒ', 'ビ', 'ピ'), 'ﾌ': ('フ', 'ブ', 'プ'),
    'ﾍ': ('ヘ', 'ベ', 'ペ'), 'ﾎ': ('ホ', 'ボ', 'ポ'),
    'ﾏ': ('マ', None, None), 'ﾐ': ('ミ', None, None), 'ﾑ': ('ム', None, None),
    'ﾒ': ('メ', None, None), 'ﾓ': ('モ', None, None),
    'ﾔ': ('ヤ', None, None), 'ﾕ': ('ユ', None, None), 'ﾖ': ('ヨ', None, None),
    'ﾗ': ('ラ', None, None), 'ﾘ': ('リ', None, None), 'ﾙ': ('ル', None, None),
    'ﾚ': ('レ', None, None), 'ﾛ': ('ロ', None, None),
    'ﾜ': ('ワ', None, None), 'ﾝ': ('ン', None, None),
}

VOWEL_TO_KANA_MAPPING = {
    'a': 'ぁあかがさざただなはばぱまゃやらゎわヵァアカガサザタダナハバパマャヤラヮワヵヷ',
    'i': 'ぃいきぎしじちぢにひびぴみりゐィイキギシジチヂニヒビピミリヰヸ',
    'u': 'ぅうくぐすずっつづぬふぶぷむゅゆるゥウクグスズッツヅヌフブプムュユルヴ',
    'e': 'ぇえけげせぜてでねへべぺめれゑヶェエケゲセゼテデネヘベペメレヱヶヹ',
    'o': 'ぉおこごそぞとどのほぼぽもょよろをォオコゴソゾトドノホボポモョヨロヲヺ',
    '': 'のノ',
}

KANA_TO_VOWEL_MAPPING: Dict[str, str] = {}
for _vowel, _characters in VOWEL_TO_KANA_MAPPING.items():
    for _char in _characters:
        KANA_TO_VOWEL_MAPPING[_char] = _vowel

PROLONGED_HIRAGANA = {'a': 'あ', 'i': 'い', 'u': 'う', 'e': 'え', 'o': 'う'}


def get_prolonged_hiragana(previous_char: str) -> Optional[str]:
    """Get the hiragana that a long vowel mark stands for after previous_char."""
    return PROLONGED_HIRAGANA.get(KANA_TO_VOWEL_MAPPING.get(previous_char))


# ============================================================================
# Character Testing Functions
# ============================================================================

def is_code_point_in_ranges(code_point: int, ranges: Sequence[Tuple[int, int]]) -> bool:
    for low, high in ranges:
        if low <= code_point <= high:
            return True
    return False


def is_code_point_kanji(code_point: int) -> bool:
    return is_code_point_in_ranges(code_point, CJK_UNIFIED_IDEOGRAPHS_RANGES)


def is_code_point_kana(code_point: int) -> bool:
    return is_code_point_in_ranges(code_point, KANA_RANGES)


def is_code_point_japanese(code_point: int) -> bool:
    return is_code_point_in_ranges(code_point, JAPANESE_RANGES)


def is_string_entirely_kana(text: str) -> bool:
    """Check if text consists entirely of kana (hiragana or katakana)."""
    if not text:
        return False
    return all(is_code_point_kana(ord(c)) for c in text)


def is_string_partially_japanese(text: str) -> bool:
    """Check if any character of text is Japanese."""
    return any(is_code_point_japanese(ord(c)) for c in text)


# ============================================================================
# Kana Conversion
# ============================================================================

def convert_katakana_to_hiragana(text: str) -> str:
    """
    Convert katakana to hiragana.

    The long vowel mark becomes the vowel of the preceding kana where that
    vowel is known. Small ヵ/ヶ are left alone since they are usually
    counters rather than kana.
    """
    offset = HIRAGANA_CONVERSION_RANGE[0] - KATAKANA_CONVERSION_RANGE[0]
    result = []
    for char in text:
        code_point = ord(char)
        if code_point in (KATAKANA_SMALL_KA_CODE_POINT, KATAKANA_SMALL_KE_CODE_POINT):
            pass
        elif code_point == KANA_PROLONGED_SOUND_MARK_CODE_POINT:
            if result:
                prolonged = get_prolonged_hiragana(result[-1])
                if prolonged is not None:
                    char = prolonged
        elif KATAKANA_CONVERSION_RANGE[0] <= code_point <= KATAKANA_CONVERSION_RANGE[1]:
            char = chr(code_point + offset)
        result.append(char)
    return ''.join(result)


def convert_hiragana_to_katakana(text: str) -> str:
    """Convert hiragana to katakana."""
    offset = KATAKANA_CONVERSION_RANGE[0] - HIRAGANA_CONVERSION_RANGE[0]
    result = []
    for char in text:
        code_point = ord(char)
        if HIRAGANA_CONVERSION_RANGE[0] <= code_point <= HIRAGANA_CONVERSION_RANGE[1]:
            char = chr(code_point + offset)
        result.append(char)
    return ''.join(result)


def convert_numeric_to_full_width(text: str) -> str:
    """Convert ASCII digits to full-width digits."""
    return ''.join(
        chr(ord(c) + 0xFF10 - 0x30) if '0' <= c <= '9' else c
        for c in text
    )


def convert_half_width_kana_to_full_width(text: str, source_map: Optional[TextSourceMap] = None) -> str:
    """
    Convert half-width katakana to full-width.

    A following half-width dakuten/handakuten is folded into the kana
    when that combination exists; the two source characters then map to
    one output character.
    """
    result: List[str] = []
    i = 0
    length = len(text)
    while i < length:
        c = text[i]
        mapping = HALFWIDTH_KATAKANA_MAPPING.get(c)
        if mapping is None:
            result.append(c)
            i += 1
            continue

        index = 0
        if i + 1 < length:
            next_code_point = ord(text[i + 1])
            if next_code_point == HALFWIDTH_DAKUTEN_CODE_POINT:
                index = 1
            elif next_code_point == HALFWIDTH_HANDAKUTEN_CODE_POINT:
                index = 2

        c2 = mapping[index]
        if index > 0:
            if c2 is None:
                index = 0
                c2 = mapping[0]
            else:
                i += 1

        if source_map is not None and index > 0:
            source_map.combine(len(result), 1)
        result.append(c2)
        i += 1

    return ''.join(result)


def collapse_emphatic_sequences(text: str, full_collapse: bool,
                                source_map: Optional[TextSourceMap] = None) -> str:
    """
    Collapse repeated small tsu and long vowel marks.

    すっっごーーい becomes すっごーい; with full_collapse the marks are
    removed entirely (すごい). Removed characters are folded into the
    preceding output character in the source map.
    """
    emphatic = (HIRAGANA_SMALL_TSU_CODE_POINT, KATAKANA_SMALL_TSU_CODE_POINT,
                KANA_PROLONGED_SOUND_MARK_CODE_POINT)
    result: List[str] = []
    collapse_code_point = -1
    for char in text:
        c = ord(char)
        if c not in emphatic:
            collapse_code_point = -1
            result.append(char)
            continue

        if collapse_code_point != c:
            collapse_code_point = c
            if not full_collapse:
                result.append(char)
                continue

        if source_map is not None:
            source_map.combine(max(0, len(result) - 1), 1)
    return ''.join(result)


# ============================================================================
# Furigana Distribution
# ============================================================================

@dataclass
class FuriganaSegment:
    """A span of expression text and its reading ('' when already phonetic)."""
    text: str
    furigana: str


@dataclass
class _CharGroup:
    is_kana: bool
    text: str
    text_normalized: Optional[str] = None


def _segmentize(reading: str, reading_normalized: str,
                groups: List[_CharGroup], start: int) -> Optional[List[FuriganaSegment]]:
    group_count = len(groups) - start
    if group_count <= 0:
        return []

    group = groups[start]
    text_length = len(group.text)
    if group.is_kana:
        if reading_normalized.startswith(group.text_normalized):
            segments = _segmentize(
                reading[text_length:],
                reading_normalized[text_length:],
                groups,
                start + 1,
            )
            if segments is not None:
                furigana = '' if reading.startswith(group.text) else reading[:text_length]
                segments.insert(0, FuriganaSegment(group.text, furigana))
                return segments
        return None

    result = None
    for i in range(len(reading), text_length - 1, -1):
        segments = _segmentize(reading[i:], reading_normalized[i:], groups, start + 1)
        if segments is not None:
            if result is not None:
                # More than one way to split the tail
                return None
            segments.insert(0, FuriganaSegment(group.text, reading[:i]))
            result = segments
        # The last non-kana group can only take the whole remainder
        if group_count == 1:
            break
    return result


def distribute_furigana(expression: str, reading: str) -> List[FuriganaSegment]:
    """
    Split an expression into kanji/kana runs and assign each run its reading.

    Falls back to a single segment covering the whole expression when the
    reading cannot be split unambiguously.

    Example:
        >>> distribute_furigana("見る", "みる")
        [FuriganaSegment(text='見', furigana='み'), FuriganaSegment(text='る', furigana='')]
    """
    if not reading or reading == expression:
        return [FuriganaSegment(expression, '')]

    groups: List[_CharGroup] = []
    previous_is_kana = None
    for c in expression:
        code_point = ord(c)
        is_kana = not (is_code_point_kanji(code_point) or code_point == ITERATION_MARK_CODE_POINT)
        if groups and is_kana == previous_is_kana:
            groups[-1].text += c
        else:
            groups.append(_CharGroup(is_kana=is_kana, text=c))
            previous_is_kana = is_kana

    for group in groups:
        if group.is_kana:
            group.text_normalized = convert_katakana_to_hiragana(group.text)

    reading_normalized = convert_katakana_to_hiragana(reading)
    segments = _segmentize(reading, reading_normalized, groups, 0)
    if segments is not None:
        return segments

    return [FuriganaSegment(expression, reading)]


def distribute_furigana_inflected(expression: str, reading: str, source: str) -> List[FuriganaSegment]:
    """
    Distribute furigana over an inflected surface form.

    The shared stem of source and expression takes its reading from the
    dictionary form; the inflected tail is emitted without furigana.
    """
    stem_length = 0
    shortest = min(len(source), len(expression))
    source_hiragana = convert_katakana_to_hiragana(source)
    expression_hiragana = convert_katakana_to_hiragana(expression)
    while stem_length < shortest and source_hiragana[stem_length] == expression_hiragana[stem_length]:
        stem_length += 1
    offset = len(source) - stem_length

    stem_expression = source[:len(source) - offset]
    if offset == 0:
        stem_reading = reading
    else:
        stem_reading = reading[:max(0, len(reading) - len(expression) + stem_length)]

    output = distribute_furigana(stem_expression, stem_reading)
    if stem_length != len(source):
        output.append(FuriganaSegment(source[stem_length:], ''))
    return output
