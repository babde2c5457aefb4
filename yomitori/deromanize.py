"""
Deromanize module for yomitori.

Converts romanized Japanese (romaji) to kana. Used by the text variant
expander when alphabetic conversion is enabled, so conversion also reports
how many romaji characters each kana came from.
"""

from typing import Dict, List, Optional, Tuple

from yomitori.characters import convert_hiragana_to_katakana
from yomitori.text_source_map import TextSourceMap

# ============================================================================
# Romaji Mapping
# ============================================================================

ROMAJI_MAP: Dict[str, str] = {
    # Vowels
    'a': 'あ', 'i': 'い', 'u': 'う', 'e': 'え', 'o': 'お',

    # K-row
    'ka': 'か', 'ki': 'き', 'ku': 'く', 'ke': 'け', 'ko': 'こ',
    'kya': 'きゃ', 'kyu': 'きゅ', 'kyo': 'きょ',
    'ga': 'が', 'gi': 'ぎ', 'gu': 'ぐ', 'ge': 'げ', 'go': 'ご',
    'gya': 'ぎゃ', 'gyu': 'ぎゅ', 'gyo': 'ぎょ',

    # S-row
    'sa': 'さ', 'si': 'し', 'su': 'す', 'se': 'せ', 'so': 'そ',
    'sha': 'しゃ', 'shi': 'し', 'shu': 'しゅ', 'she': 'しぇ', 'sho': 'しょ',
    'sya': 'しゃ', 'syu': 'しゅ', 'syo': 'しょ',
    'za': 'ざ', 'zi': 'じ', 'zu': 'ず', 'ze': 'ぜ', 'zo': 'ぞ',
    'ja': 'じゃ', 'ji': 'じ', 'ju': 'じゅ', 'je': 'じぇ', 'jo': 'じょ',
    'zya': 'じゃ', 'zyu': 'じゅ', 'zyo': 'じょ',

    # T-row
    'ta': 'た', 'ti': 'ち', 'tu': 'つ', 'te': 'て', 'to': 'と',
    'chi': 'ち', 'tsu': 'つ',
    'cha': 'ちゃ', 'chu': 'ちゅ', 'che': 'ちぇ', 'cho': 'ちょ',
    'tya': 'ちゃ', 'tyu': 'ちゅ', 'tyo': 'ちょ',
    'da': 'だ', 'di': 'ぢ', 'du': 'づ', 'de': 'で', 'do': 'ど',
    'dya': 'ぢゃ', 'dyu': 'ぢゅ', 'dyo': 'ぢょ',

    # N-row
    'na': 'な', 'ni': 'に', 'nu': 'ぬ', 'ne': 'ね', 'no': 'の',
    'nya': 'にゃ', 'nyu': 'にゅ', 'nyo': 'にょ',

    # H-row
    'ha': 'は', 'hi': 'ひ', 'hu': 'ふ', 'he': 'へ', 'ho': 'ほ',
    'fu': 'ふ',
    'hya': 'ひゃ', 'hyu': 'ひゅ', 'hyo': 'ひょ',
    'ba': 'ば', 'bi': 'び', 'bu': 'ぶ', 'be': 'べ', 'bo': 'ぼ',
    'bya': 'びゃ', 'byu': 'びゅ', 'byo': 'びょ',
    'pa': 'ぱ', 'pi': 'ぴ', 'pu': 'ぷ', 'pe': 'ぺ', 'po': 'ぽ',
    'pya': 'ぴゃ', 'pyu': 'ぴゅ', 'pyo': 'ぴょ',

    # M-row
    'ma': 'ま', 'mi': 'み', 'mu': 'む', 'me': 'め', 'mo': 'も',
    'mya': 'みゃ', 'myu': 'みゅ', 'myo': 'みょ',

    # Y-row
    'ya': 'や', 'yu': 'ゆ', 'yo': 'よ',

    # R-row
    'ra': 'ら', 'ri': 'り', 'ru': 'る', 're': 'れ', 'ro': 'ろ',
    'rya': 'りゃ', 'ryu': 'りゅ', 'ryo': 'りょ',

    # W-row
    'wa': 'わ', 'wo': 'を',

    # N
    'n': 'ん', 'nn': 'ん', "n'": 'ん',

    # Small kana
    'xa': 'ぁ', 'xi': 'ぃ', 'xu': 'ぅ', 'xe': 'ぇ', 'xo': 'ぉ',
    'la': 'ぁ', 'li': 'ぃ', 'lu': 'ぅ', 'le': 'ぇ', 'lo': 'ぉ',
    'xya': 'ゃ', 'xyu': 'ゅ', 'xyo': 'ょ',
    'lya': 'ゃ', 'lyu': 'ゅ', 'lyo': 'ょ',
    'xtu': 'っ', 'ltu': 'っ', 'xtsu': 'っ', 'ltsu': 'っ',

    # Long vowel
    '-': 'ー',

    # Foreign sounds
    'fa': 'ふぁ', 'fi': 'ふぃ', 'fe': 'ふぇ', 'fo': 'ふぉ',
    'va': 'ゔぁ', 'vi': 'ゔぃ', 'vu': 'ゔ', 've': 'ゔぇ', 'vo': 'ゔぉ',
    'wi': 'うぃ', 'we': 'うぇ',
    'tsa': 'つぁ', 'tsi': 'つぃ', 'tse': 'つぇ', 'tso': 'つぉ',
}

MAX_ROMAJI_LENGTH = max(len(k) for k in ROMAJI_MAP)

SOKUON = 'っ'


# ============================================================================
# Romaji to Kana Conversion
# ============================================================================

def romaji_chunks(text: str) -> List[Tuple[str, str]]:
    """
    Split romanized text into (romaji, kana) chunks.

    Doubled consonants produce a small tsu chunk for the first letter.
    Characters without a mapping are passed through as their own chunk.

    Args:
        text: Romanized Japanese text.

    Returns:
        List of (source chunk, hiragana) pairs covering text in order.
    """
    chunks: List[Tuple[str, str]] = []
    i = 0
    text_lower = text.lower()

    while i < len(text_lower):
        # n before a syllable starting with n: the first n is ん on its own
        if text_lower[i:i + 2] == 'nn' and i + 2 < len(text_lower) and text_lower[i + 2] in 'aeiouy':
            chunks.append((text[i], 'ん'))
            i += 1
            continue

        # Gemination (double consonant -> っ)
        if i + 1 < len(text_lower) and text_lower[i] == text_lower[i + 1]:
            c = text_lower[i]
            if c.isalpha() and c not in 'aeioun':
                chunks.append((text[i], SOKUON))
                i += 1
                continue

        # Longest matching romaji
        for length in range(MAX_ROMAJI_LENGTH, 0, -1):
            chunk = text_lower[i:i + length]
            if len(chunk) == length and chunk in ROMAJI_MAP:
                chunks.append((text[i:i + length], ROMAJI_MAP[chunk]))
                i += length
                break
        else:
            chunks.append((text[i], text[i]))
            i += 1

    return chunks


def romaji_to_hiragana(text: str) -> str:
    """Convert romanized text to hiragana."""
    return ''.join(kana for _, kana in romaji_chunks(text))


def romaji_to_katakana(text: str) -> str:
    """Convert romanized text to katakana."""
    return convert_hiragana_to_katakana(romaji_to_hiragana(text))


def _convert_alphabetic_part_to_kana(part: str, source_map: Optional[TextSourceMap], start: int) -> str:
    result = []
    position = start
    for romaji, kana in romaji_chunks(part):
        if source_map is not None:
            source_map.combine(position, len(romaji) - 1)
            if len(kana) > 1:
                source_map.insert(position + 1, *([0] * (len(kana) - 1)))
        position += len(kana)
        result.append(kana)
    return ''.join(result)


def convert_alphabetic_to_kana(text: str, source_map: Optional[TextSourceMap] = None) -> str:
    """
    Convert runs of Latin letters (ASCII or full-width) to hiragana.

    Letters are lowercased and full-width letters narrowed before
    conversion; '-' and the full-width dash are kept as long vowel marks.
    Other characters are copied through unchanged.

    Args:
        text: Text to convert.
        source_map: Optional map updated so that each kana chunk maps back
            to the romaji it came from.
    """
    result: List[str] = []
    result_length = 0
    part: List[str] = []

    def flush():
        nonlocal result_length
        if part:
            converted = _convert_alphabetic_part_to_kana(''.join(part), source_map, result_length)
            result.append(converted)
            result_length += len(converted)
            part.clear()

    for char in text:
        c = ord(char)
        if 0x41 <= c <= 0x5A:        # 'A'-'Z'
            c += 0x61 - 0x41
        elif 0x61 <= c <= 0x7A:      # 'a'-'z'
            pass
        elif 0xFF21 <= c <= 0xFF3A:  # full-width 'A'-'Z'
            c += 0x61 - 0xFF21
        elif 0xFF41 <= c <= 0xFF5A:  # full-width 'a'-'z'
            c += 0x61 - 0xFF41
        elif c in (0x2D, 0xFF0D):    # '-' or full-width dash
            c = 0x2D
        else:
            flush()
            result.append(char)
            result_length += 1
            continue
        part.append(chr(c))

    flush()
    return ''.join(result)

